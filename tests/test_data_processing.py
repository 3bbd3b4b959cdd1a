"""
Unit tests for import normalization and export flattening.
"""
import math

import pytest

from conftest import make_person, make_team
from personnelPlanning.services.data_processing import (
    normalize_gender,
    normalize_personnel,
    normalize_rules,
    normalize_teams,
    result_to_frame,
    split_list,
)
from personnelPlanning.services.exceptions import DistributionConfigError
from personnelPlanning.services.models import DistributionResult


class TestNormalizePersonnel:

    @pytest.mark.parametrize('raw, expected', [
        ('M', 'M'), ('male', 'M'), (' Male ', 'M'), ('남', 'M'),
        ('F', 'F'), ('여', 'F'), ('', 'F'), (None, 'F'),
    ])
    def test_gender_coercion(self, raw, expected):
        assert normalize_gender(raw) == expected

    def test_list_splitting(self):
        assert split_list('Anseong, Hoil,, ') == ['Anseong', 'Hoil']
        assert split_list(['Hoil ', '', 'Boseong']) == ['Hoil', 'Boseong']
        assert split_list(math.nan) == []

    def test_rows_with_mapping(self):
        rows = [
            {'성명': 'Kim', '성별': '남', '실습 이력': 'Anseong, Hoil', '비고': 'Driver', 'Student ID': 2023.0},
            {'성명': '', '성별': 'F'},
            {'성명': 'Lee', '성별': 'F', '실습 이력': math.nan},
        ]
        mapping = {'name': '성명', 'gender': '성별', 'history': '실습 이력', 'tags': '비고'}

        people = normalize_personnel(rows, mapping=mapping, extra_mappings={'student_id': 'Student ID'})

        assert [p.id for p in people] == ['p-0', 'p-2']
        kim, lee = people
        assert (kim.name, kim.gender, kim.history, kim.tags) == ('Kim', 'M', ['Anseong', 'Hoil'], ['Driver'])
        assert kim.attributes == {'student_id': 2023.0}
        assert lee.history == []
        assert lee.attributes == {}

    def test_unmapped_keys_become_attributes(self):
        rows = [{'id': 'x1', 'name': 'Park', 'gender': 'M', 'role': 'Staff', 'note': None}]

        person = normalize_personnel(rows)[0]

        assert person.id == 'x1'
        assert person.attributes == {'role': 'Staff', 'note': ''}


class TestNormalizeTeams:

    def test_capacity_coercion(self):
        teams = normalize_teams([
            {'id': 't1', 'name': 'Hoil', 'capacity': '5'},
            {'id': 't2', 'name': 'Boseong', 'capacity': 'lots'},
            {'id': 't3', 'capacity': -2},
        ])

        assert [(t.id, t.name, t.capacity) for t in teams] == [('t1', 'Hoil', 5), ('t2', 'Boseong', 0), ('t3', 't3', 0)]

    def test_non_object_row_is_rejected(self):
        with pytest.raises(DistributionConfigError):
            normalize_teams(['t1'])


def test_normalize_rules():
    rules = normalize_rules([{'column': 'gender', 'value': 'M', 'type': 'assign_to_team', 'targetTeamId': 't1'}])

    assert rules[0].kind == 'assign_to_team'
    assert rules[0].target_team_id == 't1'


def test_result_to_frame():
    member = make_person('p1', 'M', name='Kim', history=['Hoil'], role='Staff').assigned_to('t1')
    team = make_team('t1', 2, name='Hoil', members=[member])
    result = DistributionResult(teams=[team], unassigned=[make_person('p2', name='Lee')], logs=[])

    frame = result_to_frame(result)

    assert list(frame.columns) == ['team_id', 'team_name', 'person_id', 'name', 'gender', 'history', 'tags', 'role']
    assert frame['person_id'].tolist() == ['p1', 'p2']
    assert frame['team_name'].tolist() == ['Hoil', '']
    assert frame['role'].tolist() == ['Staff', '']
