# personnelPlanning/services/engine.py
"""
Two-phase distribution pipeline: optional advisory pre-seeding, ordered
rule evaluation, then balanced greedy fill.
"""
import logging
import random
from typing import Iterable, List, Optional, Set, Tuple

from .distributor import distribute
from .logging_config import performance_monitor
from .models import (AdvisoryAssignment, DistributionResult, Person, Rule, Team, ensure_unique_person_ids,
                     ensure_unique_team_ids)
from .rule_evaluator import apply_rules, declared_columns

logger = logging.getLogger(__name__)


def seed_advisory_assignments(personnel: List[Person], teams: List[Team],
                              assignments: Iterable[AdvisoryAssignment]) -> Tuple[List[Team], List[Person], List[str]]:
    """
    Pre-fill team membership from advisory assignments.

    Returns ``(teams, remaining_personnel, logs)`` with the teams copied.
    Capacity is not checked: seeded members count as caller pre-fill.
    Unknown people or teams and repeated people are skipped.
    """
    teams = [team.copy() for team in teams]
    teams_by_id = {team.id: team for team in teams}
    people_by_id = {person.id: person for person in personnel}
    seeded: Set[str] = set()
    logs: List[str] = []

    for assignment in assignments:
        person = people_by_id.get(assignment.person_id)
        team = teams_by_id.get(assignment.team_id)
        if person is None or team is None:
            logger.warning(f"Skipping advisory assignment {assignment.person_id} -> {assignment.team_id} "
                           f"(unknown person or team)")
            logs.append(f"[AI] Ignored assignment of '{assignment.person_id}' to '{assignment.team_id}': "
                        f"unknown person or team.")
            continue
        if person.id in seeded:
            logger.debug(f"Advisory assignment for {person.id} repeated, keeping the first")
            continue
        team.members.append(person.assigned_to(team.id))
        seeded.add(person.id)

    if seeded:
        logs.append(f"[AI] Applied {len(seeded)} advisory assignments.")
    remaining = [person for person in personnel if person.id not in seeded]
    return teams, remaining, logs


@performance_monitor("engine_run_distribution")
def run_distribution(personnel: List[Person], teams: List[Team], rules: Iterable[Rule] = (),
                     advisory_assignments: Iterable[AdvisoryAssignment] = (),
                     columns: Optional[Iterable[str]] = None,
                     rng: Optional[random.Random] = None,
                     seed: Optional[int] = None) -> DistributionResult:
    """
    Run the full pipeline and return teams, unassigned personnel and the audit log.

    The same ``rng`` (or one built from ``seed``) drives every shuffle, so a
    fixed seed reproduces the exact result. Raises DistributionConfigError
    for duplicate team or personnel ids or rules on undeclared columns.
    """
    ensure_unique_team_ids(teams)
    if rng is None:
        rng = random.Random(seed)
    rules = list(rules)
    personnel = list(personnel)
    ensure_unique_person_ids(personnel)
    known_columns = declared_columns(personnel, columns)

    working_teams, remaining, logs = seed_advisory_assignments(personnel, teams,
                                                              advisory_assignments)

    working_teams, settled_ids, rule_logs = apply_rules(remaining, working_teams, rules,
                                                        rng=rng, columns=known_columns)
    logs.extend(rule_logs)

    unsettled = [person for person in remaining if person.id not in settled_ids]
    working_teams, unassigned, distribution_logs = distribute(unsettled, working_teams, rng=rng)
    logs.extend(distribution_logs)

    logger.info(f"Distribution finished: {len(personnel)} personnel, {len(rules)} rules, "
                f"{len(working_teams)} teams, {len(unassigned)} unassigned")
    return DistributionResult(teams=working_teams, unassigned=unassigned, logs=logs)
