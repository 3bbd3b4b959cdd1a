"""
Test configuration and fixtures for the Personnel Planning Project.
"""
import random

import pytest

from config import Config
from personnelPlanning.app import create_app
from personnelPlanning.services.models import Person, Team


class NoShuffleRandom(random.Random):
    """Random source whose shuffle keeps the input order."""

    def shuffle(self, x, *args, **kwargs):
        return None


def make_person(person_id, gender='F', history=None, name=None, tags=None, **attributes):
    return Person(
        id=person_id,
        name=name or f"Person {person_id}",
        gender=gender,
        history=list(history or []),
        tags=list(tags or []),
        attributes=attributes,
    )


def make_team(team_id, capacity, name=None, members=None):
    return Team(id=team_id, name=name or team_id, capacity=capacity, members=list(members or []))


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""

    class TestConfig(Config):
        """Test-specific configuration."""
        TESTING = True
        DEBUG_MODE = True
        FLASK_DEBUG = False
        WTF_CSRF_ENABLED = False  # Disable CSRF for testing
        RATELIMIT_ENABLED = False
        GEMINI_API_KEY = None
        DISTRIBUTION_SEED = None
        LOG_DIR = str(tmp_path / 'logs')

    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def no_shuffle():
    return NoShuffleRandom()


@pytest.fixture
def sample_personnel():
    """Ten people, six women and four men, none with history."""
    people = [make_person(f"f{i}", 'F') for i in range(1, 7)]
    people += [make_person(f"m{i}", 'M') for i in range(1, 5)]
    return people


@pytest.fixture
def sample_teams():
    return [make_team('t1', 5, name='Anseong'), make_team('t2', 5, name='Hoil')]


@pytest.fixture
def sample_payload():
    """JSON payload as sent by the browser client."""
    return {
        'personnel': [
            {'id': 'p1', 'name': 'Kim', 'gender': 'M', 'history': ['Hoil'], 'tags': ['Driver'],
             'attributes': {'role': 'Part-timer'}},
            {'id': 'p2', 'name': 'Lee', 'gender': 'F', 'history': [], 'tags': [],
             'attributes': {'role': 'Staff'}},
            {'id': 'p3', 'name': 'Park', 'gender': 'M', 'history': ['Boseong', 'Boseong'], 'tags': ['Driver'],
             'attributes': {'role': 'Staff'}},
            {'id': 'p4', 'name': 'Choi', 'gender': 'F', 'history': ['Anseong'], 'tags': [],
             'attributes': {'role': 'Part-timer'}},
        ],
        'teams': [
            {'id': 't1', 'name': 'Hoil', 'capacity': 2},
            {'id': 't2', 'name': 'Boseong', 'capacity': 2},
        ],
        'rules': [
            {'id': 'r1', 'column': 'tags', 'value': 'Driver', 'type': 'distribute_evenly'},
        ],
        'seed': 7,
    }
