# personnelPlanning/services/advisory.py
"""
Optional advisory step: asks an external language model for assignment
proposals from a natural-language command.

Without an API key the agent runs in simulation mode and proposes nothing,
so the distribution engine never depends on this step.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import google.generativeai as genai
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .exceptions import AdvisoryError, DistributionConfigError
from .models import AdvisoryAssignment, Person, Team

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = 'prompts/system_prompt.j2'
DISTRIBUTION_PROMPT_TEMPLATE = 'prompts/distribution_prompt.j2'

_CODE_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)


@dataclass
class AdvisoryResponse:
    rationale: str
    assignments: List[AdvisoryAssignment] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    simulated: bool = False

    def to_dict(self) -> Dict:
        return {
            'rationale': self.rationale,
            'assignments': [a.to_dict() for a in self.assignments],
            'logs': list(self.logs),
            'simulated': self.simulated,
        }


def _simplify_person(person: Person) -> Dict:
    return {
        'id': person.id,
        'name': person.name,
        'gender': person.gender,
        'tags': list(person.tags),
        'history': list(person.history),
    }


def _simplify_team(team: Team) -> Dict:
    return {'id': team.id, 'name': team.name, 'capacity': team.capacity}


def parse_model_reply(text: str) -> AdvisoryResponse:
    """Parse the model's JSON reply; tolerates a surrounding markdown code fence."""
    if not text or not text.strip():
        raise AdvisoryError("No response from advisory model")
    cleaned = text.strip()
    fenced = _CODE_FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AdvisoryError(f"Advisory model returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise AdvisoryError("Advisory model reply must be a JSON object")

    logs = [str(entry) for entry in (payload.get('logs') or [])]
    assignments = []
    for raw in payload.get('assignments') or []:
        try:
            assignments.append(AdvisoryAssignment.from_dict(raw))
        except DistributionConfigError as e:
            logs.append(f"[System] Dropped malformed assignment: {e}")
    return AdvisoryResponse(rationale=str(payload.get('rationale') or ''), assignments=assignments, logs=logs)


class AdvisoryAgent:
    """Wraps the Gemini model used for advisory proposals."""

    def __init__(self, api_key: Optional[str], model_name: str, templates_folder: str, sample_size: int = 50):
        self.api_key = api_key
        self.model_name = model_name
        self.sample_size = sample_size
        self.env = Environment(loader=FileSystemLoader(templates_folder), undefined=StrictUndefined)

    @classmethod
    def from_config(cls, config) -> 'AdvisoryAgent':
        return cls(
            api_key=config.get('GEMINI_API_KEY'),
            model_name=config.get('GEMINI_MODEL', 'gemini-1.5-flash'),
            templates_folder=config['TEMPLATES_FOLDER'],
            sample_size=config.get('ADVISORY_PERSONNEL_SAMPLE', 50),
        )

    @property
    def simulation_mode(self) -> bool:
        return not self.api_key

    def build_prompt(self, personnel: List[Person], teams: List[Team], command: str) -> str:
        sample = personnel[:self.sample_size]
        system_prompt = self.env.get_template(SYSTEM_PROMPT_TEMPLATE).render()
        distribution_prompt = self.env.get_template(DISTRIBUTION_PROMPT_TEMPLATE).render(
            personnel_count=len(personnel),
            teams_count=len(teams),
            command=command,
            teams_json=json.dumps([_simplify_team(t) for t in teams], ensure_ascii=False),
            personnel_json=json.dumps([_simplify_person(p) for p in sample], ensure_ascii=False),
            sample_size=len(sample),
            truncated=len(sample) < len(personnel),
        )
        return f"{system_prompt}\n\n{distribution_prompt}"

    def _simulate(self, personnel: List[Person], teams: List[Team], command: str) -> AdvisoryResponse:
        drivers = sum(1 for p in personnel if any('driver' in tag.lower() or '운전' in tag for tag in p.tags))
        return AdvisoryResponse(
            rationale=(
                "No model API key is configured, so the agent is running in simulation mode.\n\n"
                f"The command \"{command}\" was received but no assignments are proposed; "
                "all personnel will be placed by the rule and balance phases."
            ),
            logs=[
                "[System] GEMINI_API_KEY is not set",
                f"[Simulation] {len(personnel)} personnel, {len(teams)} teams",
                f"[Simulation] Drivers identified: {drivers}",
                "[Simulation] Remaining personnel left to balanced distribution",
            ],
            simulated=True,
        )

    def _call_model(self, prompt: str) -> str:
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model_name)
        response = model.generate_content(prompt)
        return (getattr(response, 'text', '') or '').strip()

    def propose(self, personnel: List[Person], teams: List[Team], command: str) -> AdvisoryResponse:
        if self.simulation_mode:
            logger.info("No Gemini API key configured, running advisory step in simulation mode")
            return self._simulate(personnel, teams, command)

        prompt = self.build_prompt(personnel, teams, command)
        logger.info(f"Requesting advisory distribution from {self.model_name} "
                    f"({len(personnel)} personnel, {len(teams)} teams)")
        try:
            reply = self._call_model(prompt)
        except Exception as e:
            logger.error(f"Advisory model call failed: {e}", exc_info=True)
            raise AdvisoryError(f"Advisory model call failed: {e}") from e

        result = parse_model_reply(reply)
        result.logs.append(f"[System] Model: {self.model_name}")
        return result
