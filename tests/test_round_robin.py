"""
Unit tests for round-robin pairing and greedy round packing.
"""
from collections import Counter

import pytest

from tourney_api.models import MatchStatus, TournamentPhase
from tourney_api.round_robin import (
    RESERVED_NAME_MESSAGE,
    all_pairs,
    calculate_round_robin_stats,
    generate_round_robin_matches,
    match_id,
    schedule_pairs_in_rounds,
    validate_round_robin_teams,
)


def _teams(n):
    return [f"T{i:02d}" for i in range(1, n + 1)]


class TestScheduleShape:
    """Structural guarantees for every supported team count."""

    @pytest.mark.parametrize("n", range(2, 21))
    def test_match_count(self, n):
        result = generate_round_robin_matches(_teams(n), 20, 10)
        assert len(result.matches) == n * (n - 1) // 2

    @pytest.mark.parametrize("n", range(2, 21))
    def test_each_team_plays_everyone_once(self, n):
        teams = _teams(n)
        result = generate_round_robin_matches(teams, 20, 10)

        appearances = Counter()
        pairings = set()
        for m in result.matches:
            appearances[m.team1] += 1
            appearances[m.team2] += 1
            pairings.add(frozenset((m.team1, m.team2)))

        assert all(appearances[t] == n - 1 for t in teams)
        assert len(pairings) == len(result.matches)

    @pytest.mark.parametrize("n", range(2, 21))
    def test_no_team_twice_in_a_round(self, n):
        result = generate_round_robin_matches(_teams(n), 20, 10)

        by_round = {}
        for m in result.matches:
            by_round.setdefault(m.round, []).extend([m.team1, m.team2])

        for teams_in_round in by_round.values():
            assert len(teams_in_round) == len(set(teams_in_round))
        assert result.total_rounds == len(by_round)


class TestScheduleDetails:

    def test_three_teams_exact_order(self):
        result = generate_round_robin_matches(["A", "B", "C"], 20, 10)
        got = [(m.id, m.team1, m.team2, m.round) for m in result.matches]
        assert got == [
            ("RR-001", "B", "C", 1),
            ("RR-002", "A", "C", 2),
            ("RR-003", "A", "B", 3),
        ]
        assert result.total_rounds == 3
        assert result.matches_per_round == 1

    def test_four_teams_reverse_scan(self):
        rounds = schedule_pairs_in_rounds(all_pairs(["A", "B", "C", "D"]))
        assert rounds == [
            [("C", "D"), ("A", "B")],
            [("B", "D"), ("A", "C")],
            [("B", "C"), ("A", "D")],
        ]

    def test_match_fields(self):
        result = generate_round_robin_matches(["A", "B", "C", "D"], 10, 7)
        for m in result.matches:
            assert m.status == MatchStatus.SCHEDULED
            assert m.overs == 10
            assert m.max_wickets == 7
            assert not m.is_playoff
            assert m.phase == TournamentPhase.ROUND_ROBIN
        assert [m.id for m in result.matches] == [match_id("RR", i) for i in range(1, 7)]

    def test_deterministic(self):
        first = generate_round_robin_matches(_teams(9), 20, 10)
        second = generate_round_robin_matches(_teams(9), 20, 10)
        assert first == second

    @pytest.mark.parametrize("teams", [[], ["Solo"]])
    def test_fewer_than_two_teams(self, teams):
        result = generate_round_robin_matches(teams, 20, 10)
        assert result.matches == ()
        assert result.total_rounds == 0

    def test_match_id_format(self):
        assert match_id("RR", 1) == "RR-001"
        assert match_id("RR", 190) == "RR-190"


class TestRoundRobinStats:

    def test_four_teams(self):
        stats = calculate_round_robin_stats(["A", "B", "C", "D"])
        assert stats.total_matches == 6
        assert stats.matches_per_team == 3
        assert stats.min_rounds == 3

    def test_odd_team_count(self):
        stats = calculate_round_robin_stats(_teams(5))
        assert stats.total_matches == 10
        assert stats.matches_per_team == 4
        assert stats.min_rounds == 5

    def test_single_team(self):
        stats = calculate_round_robin_stats(["A"])
        assert stats.total_matches == 0
        assert stats.min_rounds == 0


class TestValidateTeams:

    def test_valid(self):
        v = validate_round_robin_teams(["A", "B"])
        assert v.valid
        assert v.errors == ()

    def test_too_few(self):
        v = validate_round_robin_teams(["A"])
        assert not v.valid
        assert "At least 2 teams are required for Round Robin" in v.errors

    def test_too_many(self):
        v = validate_round_robin_teams(_teams(21))
        assert not v.valid
        assert any("Maximum 20 teams" in e for e in v.errors)

    def test_duplicates(self):
        v = validate_round_robin_teams(["A", "B", "A"])
        assert "Duplicate team names are not allowed" in v.errors

    def test_blank_names(self):
        v = validate_round_robin_teams(["A", "  "])
        assert "Empty team names are not allowed" in v.errors

    def test_placeholder_name_reserved(self):
        v = validate_round_robin_teams(["A", " TBD "])
        assert not v.valid
        assert v.errors == (RESERVED_NAME_MESSAGE,)
