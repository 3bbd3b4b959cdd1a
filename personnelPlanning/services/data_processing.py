# personnelPlanning/services/data_processing.py
import re
import pandas as pd
import logging

from .exceptions import DistributionConfigError
from .models import GENDER_FEMALE, GENDER_MALE, Person, Rule, Team

# Get a logger for this module
logger = logging.getLogger(__name__)

STANDARD_FIELDS = ('id', 'name', 'gender', 'history', 'tags')
EXPORT_COLUMNS = ['team_id', 'team_name', 'person_id', 'name', 'gender', 'history', 'tags']


def is_missing(value):
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_cell(value):
    """Cell value as a trimmed string; missing cells become ''."""
    if is_missing(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return re.sub(r'\s+', ' ', str(value)).strip()


def normalize_gender(value):
    raw = clean_cell(value)
    if raw.upper().startswith('M') or raw == '남':
        return GENDER_MALE
    return GENDER_FEMALE


def split_list(value):
    """'Anseong, Hoil' -> ['Anseong', 'Hoil']; lists are cleaned element-wise."""
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = clean_cell(value).split(',')
    return [clean_cell(item) for item in items if clean_cell(item)]


def normalize_personnel(rows, mapping=None, extra_mappings=None):
    """
    Turn imported rows into Person records.

    ``mapping`` maps standard fields (id, name, gender, history, tags) to the
    row keys holding them; unmapped fields use their own name as the key.
    ``extra_mappings`` maps attribute labels to row keys. Without it every
    non-standard key of a row becomes an attribute. Rows without a name are
    dropped.
    """
    mapping = mapping or {}
    keys = {field: mapping.get(field, field) for field in STANDARD_FIELDS}
    standard_keys = set(keys.values())

    personnel = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"Skipping personnel row {idx + 1}: expected an object, got {type(row).__name__}")
            continue
        name = clean_cell(row.get(keys['name']))
        if not name:
            logger.info(f"Skipping personnel row {idx + 1}: no name")
            continue

        person_id = clean_cell(row.get(keys['id'])) or f"p-{idx}"

        if extra_mappings is not None:
            attributes = {
                label: row.get(header)
                for label, header in extra_mappings.items()
                if label and header in row
            }
        else:
            attributes = dict(row.get('attributes') or {})
            for key, value in row.items():
                if key not in standard_keys and key not in ('attributes', 'assignedTeamId'):
                    attributes[key] = value
        attributes = {key: ('' if is_missing(value) else value) for key, value in attributes.items()}

        personnel.append(Person(
            id=person_id,
            name=name,
            gender=normalize_gender(row.get(keys['gender'])),
            history=split_list(row.get(keys['history'])),
            tags=split_list(row.get(keys['tags'])),
            attributes=attributes,
        ))
    return personnel


def normalize_teams(rows):
    teams = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise DistributionConfigError(f"Team row {idx + 1} must be an object")
        capacity = row.get('capacity')
        try:
            capacity = int(float(str(capacity).replace(',', '.').strip()))
        except (TypeError, ValueError):
            logger.warning(f"Invalid capacity '{capacity}' for team row {idx + 1}, setting to 0")
            capacity = 0
        if capacity < 0:
            logger.warning(f"Negative capacity {capacity} for team row {idx + 1}, setting to 0")
            capacity = 0
        teams.append(Team.from_dict({**row, 'capacity': capacity}))
    return teams


def normalize_rules(rows):
    return [Rule.from_dict(row) for row in rows]


def result_to_frame(result):
    """One row per person: placed members team by team, then the unassigned."""
    records = []
    for team in result.teams:
        for member in team.members:
            records.append(_export_record(team.id, team.name, member))
    for person in result.unassigned:
        records.append(_export_record('', '', person))

    frame = pd.DataFrame.from_records(records, columns=EXPORT_COLUMNS)
    attribute_keys = []
    for record in records:
        for key in record:
            if key not in EXPORT_COLUMNS and key not in attribute_keys:
                attribute_keys.append(key)
    if attribute_keys:
        attributes = pd.DataFrame.from_records(
            [{key: record.get(key, '') for key in attribute_keys} for record in records],
            columns=attribute_keys,
        )
        frame = pd.concat([frame, attributes], axis=1)
    return frame


def _export_record(team_id, team_name, person):
    record = {
        'team_id': team_id,
        'team_name': team_name,
        'person_id': person.id,
        'name': person.name,
        'gender': person.gender,
        'history': ', '.join(person.history),
        'tags': ', '.join(person.tags),
    }
    for key, value in person.attributes.items():
        if key not in record:
            record[key] = value
    return record
