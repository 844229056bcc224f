"""
Unit tests for bracket shapes and playoff status reporting.
"""
import pytest

from conftest import build_state, play
from tourney_api.models import MatchStatus, PlayoffFormat, PlayoffType, TBD, TournamentPhase
from tourney_api.playoffs import (
    PlayoffPhase,
    bracket_shape,
    find_playoff_match,
    generate_playoff_bracket,
    get_league_playoff_status,
    get_playoff_status,
    get_world_cup_playoff_status,
    is_round_robin_complete,
    playoff_matches,
    round_robin_matches,
)


def _finish_round_robin(state):
    """Team1 wins every round-robin match."""
    for m in round_robin_matches(state.matches):
        state = play(state, m.id, 160, 140).state
    return state


class TestBracketShapes:

    @pytest.mark.parametrize("fmt", list(PlayoffFormat))
    def test_three_teams_final_only(self, fmt):
        gen = generate_playoff_bracket(3, fmt, 20, 10)
        assert gen.success
        assert [(m.id, m.playoff_type) for m in gen.playoff_matches] == [("F-001", PlayoffType.FINAL)]

    def test_world_cup(self):
        gen = generate_playoff_bracket(4, PlayoffFormat.WORLD_CUP, 20, 10)
        assert [(m.id, m.playoff_type, m.round) for m in gen.playoff_matches] == [
            ("SF-001", PlayoffType.SEMI_FINAL_1, 1),
            ("SF-002", PlayoffType.SEMI_FINAL_2, 1),
            ("F-001", PlayoffType.FINAL, 2),
        ]

    def test_league(self):
        gen = generate_playoff_bracket(6, PlayoffFormat.LEAGUE, 20, 10)
        assert [(m.id, m.playoff_type, m.round) for m in gen.playoff_matches] == [
            ("Q1-001", PlayoffType.QUALIFIER_1, 1),
            ("E-001", PlayoffType.ELIMINATOR, 1),
            ("Q2-001", PlayoffType.QUALIFIER_2, 2),
            ("F-001", PlayoffType.FINAL, 3),
        ]

    def test_all_slots_start_tbd(self):
        gen = generate_playoff_bracket(8, PlayoffFormat.LEAGUE, 10, 8)
        for m in gen.playoff_matches:
            assert m.team1 == TBD and m.team2 == TBD
            assert m.status == MatchStatus.SCHEDULED
            assert m.is_playoff
            assert m.phase == TournamentPhase.PLAYOFFS
            assert m.overs == 10 and m.max_wickets == 8

    def test_too_few_teams(self):
        gen = generate_playoff_bracket(2, PlayoffFormat.WORLD_CUP, 20, 10)
        assert not gen.success
        assert gen.playoff_matches == ()
        assert gen.errors == ("At least 3 teams are required for playoffs",)

    def test_shape_helper(self):
        assert bracket_shape(2, PlayoffFormat.LEAGUE) == ()
        assert len(bracket_shape(5, PlayoffFormat.WORLD_CUP)) == 3


class TestLookups:

    def test_split_and_find(self, world_cup_state):
        assert len(round_robin_matches(world_cup_state.matches)) == 6
        assert len(playoff_matches(world_cup_state.matches)) == 3
        assert find_playoff_match(world_cup_state.matches, PlayoffType.FINAL).id == "F-001"
        assert find_playoff_match(world_cup_state.matches, PlayoffType.ELIMINATOR) is None

    def test_round_robin_complete(self, three_team_state):
        assert not is_round_robin_complete(three_team_state)
        assert is_round_robin_complete(_finish_round_robin(three_team_state))


class TestWorldCupStatus:

    def test_round_robin_in_progress(self, world_cup_state):
        status = get_world_cup_playoff_status(world_cup_state)
        assert status.phase == PlayoffPhase.NOT_STARTED
        assert status.next_action == "Complete all round robin matches"

    def test_through_to_completion(self, world_cup_state):
        state = _finish_round_robin(world_cup_state)
        status = get_world_cup_playoff_status(state)
        assert status.phase == PlayoffPhase.SEMI_FINALS
        assert "0/2" in status.description

        state = play(state, "SF-001", 170, 150).state
        assert "1/2" in get_world_cup_playoff_status(state).description

        state = play(state, "SF-002", 170, 150).state
        assert get_world_cup_playoff_status(state).phase == PlayoffPhase.FINALS

        state = play(state, "F-001", 170, 150).state
        status = get_world_cup_playoff_status(state)
        assert status.phase == PlayoffPhase.COMPLETED
        assert status.next_action is None

    def test_three_teams_go_straight_to_final(self, three_team_state):
        state = _finish_round_robin(three_team_state)
        assert get_playoff_status(state).phase == PlayoffPhase.FINALS


class TestLeagueStatus:

    def test_through_to_completion(self, league_state):
        assert get_league_playoff_status(league_state).phase == PlayoffPhase.NOT_STARTED

        state = _finish_round_robin(league_state)
        assert get_league_playoff_status(state).phase == PlayoffPhase.QUALIFICATION

        state = play(state, "Q1-001", 170, 150).state
        state = play(state, "E-001", 170, 150).state
        assert get_league_playoff_status(state).phase == PlayoffPhase.QUALIFIER_2

        state = play(state, "Q2-001", 170, 150).state
        assert get_league_playoff_status(state).phase == PlayoffPhase.FINAL_READY

        state = play(state, "F-001", 170, 150).state
        assert get_league_playoff_status(state).phase == PlayoffPhase.COMPLETED

    def test_dispatch_follows_format(self, league_state):
        state = _finish_round_robin(league_state)
        assert get_playoff_status(state).phase == PlayoffPhase.QUALIFICATION


class TestNoBracket:

    def test_two_teams(self):
        state = _finish_round_robin(build_state(["A", "B"]))
        status = get_playoff_status(state)
        assert status.phase == PlayoffPhase.NOT_STARTED
        assert "No playoff bracket" in status.description
