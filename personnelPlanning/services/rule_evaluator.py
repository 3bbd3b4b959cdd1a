# personnelPlanning/services/rule_evaluator.py
"""
Rule evaluation phase of the distribution engine.

Rules are applied strictly in the order given. Each rule step takes the
previous ``RuleState`` and returns a new one, so no team list is shared
between steps or with the caller.
"""
import logging
import random
from typing import Callable, Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Set, Tuple

from .exceptions import DistributionConfigError
from .models import (RULE_ASSIGN_TO_TEAM, RULE_DISTRIBUTE_EVENLY, Person, Rule, Team, ensure_unique_person_ids,
                     ensure_unique_team_ids)

logger = logging.getLogger(__name__)

COLUMN_RESOLVERS: Dict[str, Callable[[Person], str]] = {
    'gender': lambda person: person.gender,
    'name': lambda person: person.name,
    'history': lambda person: ', '.join(person.history),
    'tags': lambda person: ', '.join(person.tags),
}
WELL_KNOWN_COLUMNS = tuple(COLUMN_RESOLVERS)


class RuleState(NamedTuple):
    teams: Tuple[Team, ...]
    settled_ids: FrozenSet[str]
    logs: Tuple[str, ...]


def resolve_column(person: Person, column: str) -> str:
    """Value of ``column`` for ``person`` as a string; missing attributes resolve to ''."""
    resolver = COLUMN_RESOLVERS.get(column)
    if resolver is not None:
        return resolver(person)
    value = person.attributes.get(column)
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def matches_rule(person: Person, rule: Rule) -> bool:
    if not rule.value:
        return True
    return rule.value in resolve_column(person, rule.column)


def declared_columns(personnel: Iterable[Person], columns: Optional[Iterable[str]] = None) -> List[str]:
    """
    Columns a rule may target.

    With an explicit ``columns`` list those are declared alongside the
    well-known person fields; otherwise every attribute key seen on the
    personnel is declared.
    """
    declared = list(WELL_KNOWN_COLUMNS)
    if columns is not None:
        extra = columns
    else:
        extra = (key for person in personnel for key in person.attributes)
    for column in extra:
        if column not in declared:
            declared.append(column)
    return declared


def _check_rule_columns(rules: List[Rule], known: List[str]) -> None:
    unknown = [rule.column for rule in rules if rule.column not in known]
    if unknown:
        raise DistributionConfigError(
            f"Rules reference undeclared columns: {', '.join(sorted(set(unknown)))}"
        )


def _assign_to_team(teams: List[Team], candidates: List[Person], rule: Rule, rule_no: int,
                    settled: Set[str], logs: List[str]) -> None:
    target = next((team for team in teams if team.id == rule.target_team_id), None)
    if target is None:
        logs.append(f"Rule {rule_no}: target team '{rule.target_team_id}' not found, rule skipped.")
        logger.warning(f"Rule {rule_no} targets unknown team {rule.target_team_id!r}")
        return

    placed = 0
    for person in candidates:
        if target.has_room:
            target.members.append(person.assigned_to(target.id))
            settled.add(person.id)
            placed += 1
        else:
            logs.append(f"Rule {rule_no}: {target.name} is full, skipped {person.name}.")
    logs.append(f"Rule {rule_no}: assigned {placed} of {len(candidates)} matching personnel to {target.name}.")


def _distribute_evenly(teams: List[Team], candidates: List[Person], rule: Rule, rule_no: int,
                       settled: Set[str], logs: List[str], rng: random.Random) -> None:
    shuffled = list(candidates)
    rng.shuffle(shuffled)

    placed = 0
    for person in shuffled:
        open_teams = [team for team in teams if team.has_room]
        if not open_teams:
            logs.append(f"Rule {rule_no}: no team has capacity left for {person.name}.")
            continue
        # min() keeps the first of equal keys, so ties fall back to team order.
        best = min(
            open_teams,
            key=lambda team: (sum(1 for member in team.members if matches_rule(member, rule)), team.fill_ratio),
        )
        best.members.append(person.assigned_to(best.id))
        settled.add(person.id)
        placed += 1
    logs.append(f"Rule {rule_no}: distributed {placed} of {len(candidates)} matching personnel evenly.")


def apply_rule(state: RuleState, personnel: List[Person], rule: Rule, rule_no: int,
               rng: random.Random) -> RuleState:
    """Apply a single rule on top of ``state`` and return the next state."""
    candidates = [
        person for person in personnel
        if person.id not in state.settled_ids and matches_rule(person, rule)
    ]
    if not candidates:
        logger.debug(f"Rule {rule_no} ({rule.describe()}) matched nobody")
        return state._replace(logs=state.logs + (f"Rule {rule_no} ({rule.describe()}): no matching personnel.",))

    teams = [team.copy() for team in state.teams]
    settled = set(state.settled_ids)
    logs: List[str] = []

    if rule.kind == RULE_ASSIGN_TO_TEAM:
        _assign_to_team(teams, candidates, rule, rule_no, settled, logs)
    elif rule.kind == RULE_DISTRIBUTE_EVENLY:
        _distribute_evenly(teams, candidates, rule, rule_no, settled, logs, rng)
    else:
        raise DistributionConfigError(f"Unknown rule type {rule.kind!r}")

    logger.debug(f"Rule {rule_no} ({rule.describe()}): {len(candidates)} candidates, {len(settled)} settled so far")
    return RuleState(teams=tuple(teams), settled_ids=frozenset(settled), logs=state.logs + tuple(logs))


def apply_rules(personnel: List[Person], teams: List[Team], rules: List[Rule],
                rng: Optional[random.Random] = None,
                columns: Optional[Iterable[str]] = None) -> Tuple[List[Team], Set[str], List[str]]:
    """
    Apply ``rules`` in order before general distribution.

    Returns ``(teams, settled_ids, logs)``. The caller's team list and member
    lists are left untouched; placed people are copies stamped with their
    team id.
    """
    ensure_unique_team_ids(teams)
    ensure_unique_person_ids(personnel)
    _check_rule_columns(rules, declared_columns(personnel, columns))
    rng = rng if rng is not None else random.Random()

    state = RuleState(teams=tuple(team.copy() for team in teams), settled_ids=frozenset(), logs=())
    for rule_no, rule in enumerate(rules, start=1):
        state = apply_rule(state, personnel, rule, rule_no, rng)

    return list(state.teams), set(state.settled_ids), list(state.logs)
