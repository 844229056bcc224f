"""
Shared pytest fixtures for the tournament engine tests.

Running tests:
    pytest tests/
"""
import os

# Keep the app from touching a real snapshot file during tests
os.environ.setdefault("TOURNEY_PERSISTENCE_ENABLED", "0")

import pytest

from tourney_api.models import Match, PlayoffFormat
from tourney_api.simulator import ScoreInput
from tourney_api.tournament import (
    GenerateMatches,
    SetPlayoffFormat,
    SetTeams,
    SimulateMatchResult,
    apply,
    initial_tournament_state,
)


def make_match(team1="A", team2="B", overs=20, max_wickets=10, **kwargs):
    """A round-robin match with sensible defaults."""
    return Match(
        id=kwargs.pop("id", "RR-001"),
        team1=team1,
        team2=team2,
        round=kwargs.pop("round", 1),
        overs=overs,
        max_wickets=max_wickets,
        **kwargs,
    )


def build_state(teams, playoff_format=PlayoffFormat.WORLD_CUP):
    """Teams set, format chosen and matches generated."""
    state = initial_tournament_state()
    state = apply(state, SetPlayoffFormat(playoff_format)).state
    state = apply(state, SetTeams(tuple(teams))).state
    t = apply(state, GenerateMatches())
    assert t.success, t.errors
    return t.state


def play(state, match_id, team1_runs, team2_runs, team1_wickets=5, team2_wickets=5,
         team1_overs=20.0, team2_overs=20.0):
    """Simulates one match result and returns the transition."""
    t = apply(state, SimulateMatchResult(
        match_id,
        ScoreInput(runs=team1_runs, wickets=team1_wickets, overs=team1_overs),
        ScoreInput(runs=team2_runs, wickets=team2_wickets, overs=team2_overs),
    ))
    assert t.success, t.errors
    return t


@pytest.fixture
def match():
    return make_match()


@pytest.fixture
def three_team_state():
    return build_state(["A", "B", "C"])


@pytest.fixture
def world_cup_state():
    return build_state(["A", "B", "C", "D"], PlayoffFormat.WORLD_CUP)


@pytest.fixture
def league_state():
    return build_state(["A", "B", "C", "D"], PlayoffFormat.LEAGUE)
