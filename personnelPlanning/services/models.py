"""
Value types exchanged between the distribution engine and its callers.

Every type accepts the camelCase keys used by the browser client in
``from_dict`` and produces the same shape from ``to_dict``.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .exceptions import DistributionConfigError

GENDER_MALE = 'M'
GENDER_FEMALE = 'F'
VALID_GENDERS = (GENDER_MALE, GENDER_FEMALE)

RULE_ASSIGN_TO_TEAM = 'assign_to_team'
RULE_DISTRIBUTE_EVENLY = 'distribute_evenly'
RULE_KINDS = (RULE_ASSIGN_TO_TEAM, RULE_DISTRIBUTE_EVENLY)


def _first_present(data: Dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _string_list(data: Dict, key: str, owner) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise DistributionConfigError(f"Personnel '{owner}' field '{key}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    gender: str
    history: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    assigned_team_id: Optional[str] = None

    def assigned_to(self, team_id: str) -> 'Person':
        """Return a copy of this person stamped with ``team_id``."""
        return replace(
            self,
            history=list(self.history),
            tags=list(self.tags),
            attributes=dict(self.attributes),
            assigned_team_id=team_id,
        )

    @classmethod
    def from_dict(cls, data: Dict) -> 'Person':
        if not isinstance(data, dict):
            raise DistributionConfigError(f"Personnel record must be an object, got {type(data).__name__}")
        person_id = data.get('id')
        if person_id is None or str(person_id).strip() == '':
            raise DistributionConfigError("Personnel record is missing 'id'")
        gender = str(data.get('gender', '')).strip().upper()
        if gender not in VALID_GENDERS:
            raise DistributionConfigError(f"Personnel '{person_id}' has invalid gender {data.get('gender')!r}")
        attributes = data.get('attributes')
        if attributes is None:
            attributes = {}
        elif not isinstance(attributes, dict):
            raise DistributionConfigError(
                f"Personnel '{person_id}' field 'attributes' must be an object, got {type(attributes).__name__}")
        return cls(
            id=str(person_id),
            name=str(data.get('name') or ''),
            gender=gender,
            history=_string_list(data, 'history', person_id),
            tags=_string_list(data, 'tags', person_id),
            attributes=dict(attributes),
            assigned_team_id=_first_present(data, 'assignedTeamId', 'assigned_team_id'),
        )

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'gender': self.gender,
            'history': list(self.history),
            'tags': list(self.tags),
            'attributes': dict(self.attributes),
        }
        if self.assigned_team_id is not None:
            data['assignedTeamId'] = self.assigned_team_id
        return data


@dataclass
class Team:
    id: str
    name: str
    capacity: int
    members: List[Person] = field(default_factory=list)

    @property
    def has_room(self) -> bool:
        return len(self.members) < self.capacity

    @property
    def fill_ratio(self) -> float:
        # Only consulted for teams with room, so capacity is positive here.
        return len(self.members) / self.capacity

    def male_count(self) -> int:
        return sum(1 for member in self.members if member.gender == GENDER_MALE)

    def copy(self) -> 'Team':
        return Team(id=self.id, name=self.name, capacity=self.capacity, members=list(self.members))

    @classmethod
    def from_dict(cls, data: Dict) -> 'Team':
        if not isinstance(data, dict):
            raise DistributionConfigError(f"Team record must be an object, got {type(data).__name__}")
        team_id = data.get('id')
        if team_id is None or str(team_id).strip() == '':
            raise DistributionConfigError("Team record is missing 'id'")
        try:
            capacity = int(data.get('capacity', 0))
        except (TypeError, ValueError) as e:
            raise DistributionConfigError(f"Team '{team_id}' has invalid capacity {data.get('capacity')!r}") from e
        return cls(
            id=str(team_id),
            name=str(data.get('name') or team_id),
            capacity=capacity,
            members=[Person.from_dict(m) for m in (data.get('members') or [])],
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'capacity': self.capacity,
            'members': [member.to_dict() for member in self.members],
        }


def ensure_unique_team_ids(teams: List[Team]) -> None:
    """Raise DistributionConfigError when two teams share an identifier."""
    seen = set()
    duplicates = []
    for team in teams:
        if team.id in seen and team.id not in duplicates:
            duplicates.append(team.id)
        seen.add(team.id)
    if duplicates:
        raise DistributionConfigError(f"Duplicate team ids: {', '.join(duplicates)}")


def ensure_unique_person_ids(personnel: List[Person]) -> None:
    """Raise DistributionConfigError when two people share an identifier."""
    seen = set()
    duplicates = []
    for person in personnel:
        if person.id in seen and person.id not in duplicates:
            duplicates.append(person.id)
        seen.add(person.id)
    if duplicates:
        raise DistributionConfigError(f"Duplicate personnel ids: {', '.join(duplicates)}")


@dataclass(frozen=True)
class Rule:
    column: str
    kind: str
    value: Optional[str] = None
    target_team_id: Optional[str] = None
    id: Optional[str] = None

    def describe(self) -> str:
        return f"{self.column}={self.value or '*'}"

    @classmethod
    def from_dict(cls, data: Dict) -> 'Rule':
        if not isinstance(data, dict):
            raise DistributionConfigError(f"Rule must be an object, got {type(data).__name__}")
        kind = _first_present(data, 'type', 'kind')
        if kind not in RULE_KINDS:
            raise DistributionConfigError(f"Unknown rule type {kind!r}; expected one of {', '.join(RULE_KINDS)}")
        column = data.get('column')
        if not column:
            raise DistributionConfigError("Rule is missing 'column'")
        value = data.get('value')
        target = _first_present(data, 'targetTeamId', 'target_team_id')
        return cls(
            column=str(column),
            kind=kind,
            value=None if value is None else str(value),
            target_team_id=None if target is None else str(target),
            id=None if data.get('id') is None else str(data['id']),
        )

    def to_dict(self) -> Dict:
        data = {'column': self.column, 'type': self.kind}
        if self.id is not None:
            data['id'] = self.id
        if self.value is not None:
            data['value'] = self.value
        if self.target_team_id is not None:
            data['targetTeamId'] = self.target_team_id
        return data


@dataclass(frozen=True)
class AdvisoryAssignment:
    person_id: str
    team_id: str
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'AdvisoryAssignment':
        if not isinstance(data, dict):
            raise DistributionConfigError(f"Advisory assignment must be an object, got {type(data).__name__}")
        person_id = _first_present(data, 'personId', 'person_id')
        team_id = _first_present(data, 'teamId', 'team_id')
        if person_id is None or team_id is None:
            raise DistributionConfigError("Advisory assignment needs 'personId' and 'teamId'")
        reason = data.get('reason')
        return cls(person_id=str(person_id), team_id=str(team_id), reason=None if reason is None else str(reason))

    def to_dict(self) -> Dict:
        data = {'personId': self.person_id, 'teamId': self.team_id}
        if self.reason:
            data['reason'] = self.reason
        return data


@dataclass
class DistributionResult:
    teams: List[Team]
    unassigned: List[Person]
    logs: List[str]

    def to_dict(self) -> Dict:
        return {
            'teams': [team.to_dict() for team in self.teams],
            'unassigned': [person.to_dict() for person in self.unassigned],
            'logs': list(self.logs),
        }
