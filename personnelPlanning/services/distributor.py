# personnelPlanning/services/distributor.py
"""
Balanced greedy distribution of everyone not settled by a rule.

Single pass, no backtracking: each person (in shuffled order) goes to the
least-filled open team that passes the history checks, or is left
unassigned with a log line.
"""
import logging
import random
from typing import List, Optional, Tuple

from .models import Person, Team, ensure_unique_person_ids, ensure_unique_team_ids

logger = logging.getLogger(__name__)

# Locations exempt from the repeat-visit cap.
REPEAT_EXEMPT_MARKERS = ('Anseong', '안성')
# Locations nobody may be sent straight back to.
NO_IMMEDIATE_RETURN_MARKERS = ('Hoil', '호일', 'Boseong', '보성')
MAX_PRIOR_VISITS = 2


def _contains_any(text: str, markers) -> bool:
    return any(marker in text for marker in markers)


def can_assign(person: Person, team_name: str) -> bool:
    """History-based eligibility of ``person`` for the team called ``team_name``."""
    history = person.history or []

    if not _contains_any(team_name, REPEAT_EXEMPT_MARKERS):
        visits = sum(1 for location in history if location == team_name)
        if visits >= MAX_PRIOR_VISITS:
            return False

    last_location = history[-1] if history else None
    # The flag is a substring check but the block needs an exact match.
    if last_location and _contains_any(last_location, NO_IMMEDIATE_RETURN_MARKERS):
        if last_location == team_name:
            return False

    return True


def rank_open_teams(teams: List[Team]) -> List[Team]:
    """Teams with room, least filled first, then fewest male members."""
    open_teams = [team for team in teams if team.has_room]
    # sorted() is stable: full ties keep team order.
    return sorted(open_teams, key=lambda team: (team.fill_ratio, team.male_count()))


def distribute(remaining_personnel: List[Person], teams: List[Team],
               rng: Optional[random.Random] = None) -> Tuple[List[Team], List[Person], List[str]]:
    """
    Place ``remaining_personnel`` into ``teams``.

    Returns ``(teams, unassigned, logs)``. Teams are copied before any
    placement; neither the input list nor the team member lists are mutated.
    """
    ensure_unique_team_ids(teams)
    ensure_unique_person_ids(remaining_personnel)
    rng = rng if rng is not None else random.Random()

    queue = list(remaining_personnel)
    rng.shuffle(queue)
    result_teams = [team.copy() for team in teams]
    unassigned: List[Person] = []
    logs = [f"Started distribution for {len(queue)} personnel into {len(result_teams)} teams."]
    logger.debug(f"Distributing {len(queue)} personnel into {len(result_teams)} teams")

    for person in queue:
        chosen = next(
            (team for team in rank_open_teams(result_teams) if can_assign(person, team.name)),
            None,
        )
        if chosen is None:
            unassigned.append(person)
            logs.append(f"Could not assign {person.name} due to constraints.")
            logger.debug(f"No eligible team for {person.id} (history={person.history})")
            continue
        chosen.members.append(person.assigned_to(chosen.id))

    return result_teams, unassigned, logs
