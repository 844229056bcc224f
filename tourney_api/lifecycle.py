# tourney_api/lifecycle.py
from __future__ import annotations

import math
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Tuple

from tourney_api.models import (
    CricketMatchResult,
    InningsScore,
    MarginType,
    Match,
    MatchStatus,
    MatchType,
    TBD,
    TossDecision,
    TossResult,
)
from tourney_api.nrr_math import (
    balls_to_overs_float,
    calculate_run_rate,
    is_valid_cricket_overs,
    overs_to_balls,
)

# The finalization margin for a team2 win always counts from ten wickets
FULL_SIDE_WICKETS = 10

PLAYOFF_TIE_MESSAGE = "Playoff matches need a winner; equal scores are not accepted"


class TransitionError(ValueError):
    """Raised when a lifecycle transition is not legal for the match's current state."""


class MatchState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS_NEED_TOSS = "in-progress-need-toss"
    FIRST_INNINGS_READY = "first-innings-ready"
    FIRST_INNINGS_COMPLETE = "first-innings-complete"
    SECOND_INNINGS_READY = "second-innings-ready"
    READY_TO_FINISH = "ready-to-finish"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# -----------------------------
# Derivation
# -----------------------------
def team1_bats_first(match: Match) -> Optional[bool]:
    """
    team1 bats first iff it won the toss and chose to bat, or the other side
    won the toss and chose to bowl. None before the toss.
    """
    toss = match.toss
    if toss is None:
        return None
    if toss.decision == TossDecision.BAT:
        return toss.toss_winner == match.team1
    return toss.toss_winner != match.team1


def batting_order(match: Match) -> Optional[Tuple[str, str]]:
    first = team1_bats_first(match)
    if first is None:
        return None
    return (match.team1, match.team2) if first else (match.team2, match.team1)


def first_and_second_innings(match: Match) -> Tuple[Optional[InningsScore], Optional[InningsScore]]:
    first = team1_bats_first(match)
    if first is None or first:
        return match.team1_innings, match.team2_innings
    return match.team2_innings, match.team1_innings


def derive_match_state(match: Match) -> MatchState:
    if match.status == MatchStatus.COMPLETED:
        return MatchState.COMPLETED
    if match.status == MatchStatus.CANCELLED:
        return MatchState.CANCELLED
    if match.status == MatchStatus.SCHEDULED:
        return MatchState.NOT_STARTED

    if match.toss is None:
        return MatchState.IN_PROGRESS_NEED_TOSS

    first, second = first_and_second_innings(match)
    if first is None:
        return MatchState.FIRST_INNINGS_READY
    if second is not None:
        return MatchState.READY_TO_FINISH
    if match.second_innings_started:
        return MatchState.SECOND_INNINGS_READY
    return MatchState.FIRST_INNINGS_COMPLETE


# -----------------------------
# Score input
# -----------------------------
def _is_number(x: object) -> bool:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return False
    return math.isfinite(x)


def validate_score_input(runs: object, wickets: object, overs: object, match: Match) -> List[str]:
    """
    Manual score entry checks. Returns a list of messages (empty = valid).
    """
    errors: List[str] = []

    if not (_is_number(runs) and _is_number(wickets) and _is_number(overs)):
        errors.append("Please fill in all score fields with valid numbers.")
        return errors

    if runs < 0 or wickets < 0 or overs < 0:
        errors.append("Scores cannot be negative.")

    if float(runs) != int(runs) or float(wickets) != int(wickets):
        errors.append("Runs and wickets must be whole numbers.")

    if wickets > match.max_wickets:
        errors.append(f"Wickets cannot be more than {match.max_wickets}.")

    if overs > match.overs:
        errors.append(f"Overs cannot be more than {match.overs}.")
    elif overs >= 0 and not is_valid_cricket_overs(overs):
        errors.append("Overs must use cricket notation (balls part 0-5, e.g. 19.4).")

    return errors


def build_innings(team: str, runs: int, wickets: int, overs: float, match: Match) -> InningsScore:
    balls = overs_to_balls(overs)
    return InningsScore(
        team_name=team,
        runs=int(runs),
        wickets=int(wickets),
        overs=float(overs),
        balls_faced=balls,
        is_all_out=int(wickets) >= match.max_wickets,
        run_rate=calculate_run_rate(int(runs), balls_to_overs_float(balls)),
    )


# -----------------------------
# Transitions
# -----------------------------
def _require_real_teams(match: Match) -> None:
    if match.has_tbd_teams:
        raise TransitionError(f"Match {match.id} teams are not decided yet")


def start_match(match: Match) -> Match:
    _require_real_teams(match)
    if match.status != MatchStatus.SCHEDULED:
        raise TransitionError(f"Match {match.id} cannot be started from status '{match.status.value}'")
    return replace(match, status=MatchStatus.IN_PROGRESS)


def set_toss(match: Match, toss_winner: str, decision: TossDecision) -> Match:
    _require_real_teams(match)
    if match.status != MatchStatus.IN_PROGRESS:
        raise TransitionError(f"Match {match.id} must be in progress before the toss")
    if match.toss is not None:
        raise TransitionError(f"Toss for match {match.id} is already recorded")
    if toss_winner not in (match.team1, match.team2):
        raise TransitionError(f"Toss winner must be {match.team1} or {match.team2}")

    loser = match.team2 if toss_winner == match.team1 else match.team1
    return replace(
        match,
        toss=TossResult(toss_winner=toss_winner, decision=TossDecision(decision), toss_loser=loser),
    )


def record_innings(match: Match, team: str, innings: InningsScore) -> Match:
    """
    Attaches one innings. The first-batting side must be recorded first, and an
    innings that is already recorded is never overwritten.
    """
    if team not in (match.team1, match.team2):
        raise TransitionError(f"{team} is not playing in match {match.id}")

    state = derive_match_state(match)
    if state in (MatchState.NOT_STARTED, MatchState.IN_PROGRESS_NEED_TOSS):
        raise TransitionError(f"Match {match.id} needs to be started and tossed first")
    if state in (MatchState.COMPLETED, MatchState.CANCELLED):
        raise TransitionError(f"Match {match.id} is already {match.status.value}")
    if match.innings_for(team) is not None:
        raise TransitionError(f"Innings for {team} in match {match.id} is already recorded")

    first_team, _ = batting_order(match)
    if state == MatchState.FIRST_INNINGS_READY and team != first_team:
        raise TransitionError(f"{first_team} bats first in match {match.id}")

    is_second = state != MatchState.FIRST_INNINGS_READY
    if team == match.team1:
        updated = replace(match, team1_innings=innings, second_innings_started=match.second_innings_started or is_second)
    else:
        updated = replace(match, team2_innings=innings, second_innings_started=match.second_innings_started or is_second)
    _reject_playoff_tie(updated)
    return updated


def is_playoff_tie(match: Match, team1_innings: Optional[InningsScore], team2_innings: Optional[InningsScore]) -> bool:
    if not match.is_playoff or team1_innings is None or team2_innings is None:
        return False
    return team1_innings.runs == team2_innings.runs


def _reject_playoff_tie(match: Match) -> None:
    if is_playoff_tie(match, match.team1_innings, match.team2_innings):
        raise TransitionError(PLAYOFF_TIE_MESSAGE)


def start_second_innings(match: Match) -> Match:
    if derive_match_state(match) != MatchState.FIRST_INNINGS_COMPLETE:
        raise TransitionError(f"Match {match.id} is not between innings")
    return replace(match, second_innings_started=True)


def create_match_result(team1_innings: InningsScore, team2_innings: InningsScore) -> CricketMatchResult:
    """
    Finalization, by runs only:
    - equal runs -> draw, margin 0 (runs), no winner/loser
    - team1 more runs -> team1 wins by the run difference
    - otherwise -> team2 wins by (10 - team2 wickets) wickets

    The chase and overs used are not consulted, and the wicket margin always
    counts from ten regardless of the match's wicket setting.
    """
    t1_runs = team1_innings.runs
    t2_runs = team2_innings.runs

    if t1_runs == t2_runs:
        return CricketMatchResult(
            winner=None,
            loser=None,
            team1_innings=team1_innings,
            team2_innings=team2_innings,
            margin_type=MarginType.RUNS,
            margin=0,
            match_type=MatchType.COMPLETED,
            is_draw=True,
        )

    if t1_runs > t2_runs:
        return CricketMatchResult(
            winner=team1_innings.team_name,
            loser=team2_innings.team_name,
            team1_innings=team1_innings,
            team2_innings=team2_innings,
            margin_type=MarginType.RUNS,
            margin=t1_runs - t2_runs,
            match_type=MatchType.COMPLETED,
        )

    return CricketMatchResult(
        winner=team2_innings.team_name,
        loser=team1_innings.team_name,
        team1_innings=team1_innings,
        team2_innings=team2_innings,
        margin_type=MarginType.WICKETS,
        margin=FULL_SIDE_WICKETS - team2_innings.wickets,
        match_type=MatchType.COMPLETED,
    )


def complete_match(match: Match) -> Match:
    if match.status == MatchStatus.COMPLETED:
        raise TransitionError(f"Match {match.id} is already completed")
    if match.status == MatchStatus.CANCELLED:
        raise TransitionError(f"Match {match.id} was cancelled")
    if match.team1_innings is None or match.team2_innings is None:
        raise TransitionError(f"Both innings must be recorded before completing match {match.id}")

    _reject_playoff_tie(match)

    result = create_match_result(match.team1_innings, match.team2_innings)
    return replace(match, status=MatchStatus.COMPLETED, result=result)


def describe_result(match: Match) -> Optional[str]:
    """Short result line for a finalized match."""
    result = match.result
    if result is None:
        return None
    if result.is_no_result:
        return "No result"
    if result.is_draw:
        return "Match tied"
    return f"{result.winner} won by {result.margin} {result.margin_type.value}"
