# tourney_api/points_table.py
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from tourney_api.models import (
    BiggestWin,
    CricketMatchResult,
    CricketTeamStats,
    Match,
    MatchType,
)
from tourney_api.nrr_math import calculate_run_rate, effective_overs, format_nrr, net_run_rate

logger = logging.getLogger(__name__)

POINTS_FOR_WIN = 2
POINTS_FOR_DRAW = 1
POINTS_FOR_LOSS = 0
POINTS_FOR_NO_RESULT = 0


def initialize_team_stats(team_name: str) -> CricketTeamStats:
    return CricketTeamStats(team_name=team_name)


def initialize_stats_map(teams) -> Dict[str, CricketTeamStats]:
    return {t: initialize_team_stats(t) for t in teams}


def update_team_stats_after_match(
    stats: CricketTeamStats,
    match: Match,
    result: CricketMatchResult,
) -> CricketTeamStats:
    """
    Folds one finalized match into a team's aggregate.

    Rules:
    - Playoff matches never feed standings: stats are returned unchanged.
    - WIN = 2 points, DRAW = 1, LOSS / NO RESULT = 0.
    - NO RESULT counts as played but accumulates nothing else.
    - Overs: a side bowled out inside its quota is charged the full quota,
      on both the batting side and, symmetrically, the bowling side.
    - Biggest win compares raw margins, runs and wickets alike.
    """
    if match.is_playoff:
        return stats

    team = stats.team_name
    is_team1 = match.team1 == team
    team_innings = result.team1_innings if is_team1 else result.team2_innings
    opponent_innings = result.team2_innings if is_team1 else result.team1_innings

    played = stats.matches_played + 1

    if result.match_type == MatchType.NO_RESULT or result.is_no_result:
        return replace(
            stats,
            matches_played=played,
            no_results=stats.no_results + 1,
            points=stats.points + POINTS_FOR_NO_RESULT,
        )

    wins, losses, draws, points = stats.wins, stats.losses, stats.draws, stats.points
    if result.is_draw:
        draws += 1
        points += POINTS_FOR_DRAW
    elif result.winner == team:
        wins += 1
        points += POINTS_FOR_WIN
    else:
        losses += 1
        points += POINTS_FOR_LOSS

    overs_played = stats.total_overs_played + effective_overs(
        team_innings.balls_faced, all_out=team_innings.is_all_out, quota_overs=match.overs
    )
    overs_bowled = stats.total_overs_bowled + effective_overs(
        opponent_innings.balls_faced, all_out=opponent_innings.is_all_out, quota_overs=match.overs
    )
    runs_scored = stats.total_runs_scored + team_innings.runs
    runs_conceded = stats.total_runs_conceded + opponent_innings.runs

    highest = stats.highest_score
    if highest is None or team_innings.runs > highest:
        highest = team_innings.runs

    lowest = stats.lowest_score
    if lowest is None or team_innings.runs < lowest:
        lowest = team_innings.runs

    biggest = stats.biggest_win
    if result.winner == team and result.margin:
        if biggest is None or result.margin > biggest.margin:
            biggest = BiggestWin(
                opponent=opponent_innings.team_name,
                margin=result.margin,
                margin_type=result.margin_type,
            )

    return replace(
        stats,
        matches_played=played,
        wins=wins,
        losses=losses,
        draws=draws,
        points=points,
        total_runs_scored=runs_scored,
        total_balls_faced=stats.total_balls_faced + team_innings.balls_faced,
        total_overs_played=overs_played,
        total_runs_conceded=runs_conceded,
        total_balls_bowled=stats.total_balls_bowled + opponent_innings.balls_faced,
        total_overs_bowled=overs_bowled,
        batting_run_rate=calculate_run_rate(runs_scored, overs_played),
        bowling_run_rate=calculate_run_rate(runs_conceded, overs_bowled),
        net_run_rate=net_run_rate(runs_scored, overs_played, runs_conceded, overs_bowled),
        highest_score=highest,
        lowest_score=lowest,
        biggest_win=biggest,
    )


def apply_match_to_stats(
    stats_map: Mapping[str, CricketTeamStats],
    match: Match,
    result: CricketMatchResult,
) -> Dict[str, CricketTeamStats]:
    """Returns a new stats map with both sides of `match` updated."""
    out = dict(stats_map)
    if match.is_playoff:
        return out

    for team in (match.team1, match.team2):
        current = out.get(team) or initialize_team_stats(team)
        out[team] = update_team_stats_after_match(current, match, result)

    logger.debug("stats updated after %s: %s vs %s", match.id, match.team1, match.team2)
    return out


def _standings_key(s: CricketTeamStats) -> Tuple[int, float, int, str]:
    nrr_val = s.net_run_rate
    if nrr_val is None or math.isnan(nrr_val):
        nrr_val = -math.inf
    return (-s.points, -nrr_val, -s.wins, s.team_name)


def get_tournament_standings(stats_map: Mapping[str, CricketTeamStats]) -> List[CricketTeamStats]:
    """
    Returns teams sorted by:
    1) Points (desc)
    2) NRR (desc)
    3) Wins (desc)
    4) Team name (asc)
    """
    return sorted(stats_map.values(), key=_standings_key)


def standings_rows(standings: List[CricketTeamStats]) -> List[dict]:
    out: List[dict] = []
    for idx, s in enumerate(standings, start=1):
        out.append({
            "pos": idx,
            "team": s.team_name,
            "played": s.matches_played,
            "won": s.wins,
            "lost": s.losses,
            "drawn": s.draws,
            "nr": s.no_results,
            "points": s.points,
            "nrr": s.net_run_rate,
            "nrr_display": format_nrr(s.net_run_rate),
            "runs_for": s.total_runs_scored,
            "overs_for": round(s.total_overs_played, 3),
            "runs_against": s.total_runs_conceded,
            "overs_against": round(s.total_overs_bowled, 3),
            "highest": s.highest_score,
            "lowest": s.lowest_score,
        })
    return out


def standings_frame(standings: List[CricketTeamStats]) -> pd.DataFrame:
    """Points table as a DataFrame indexed by position."""
    rows = standings_rows(standings)
    columns: Optional[List[str]] = None
    if not rows:
        columns = [
            "pos", "team", "played", "won", "lost", "drawn", "nr", "points",
            "nrr", "nrr_display", "runs_for", "overs_for", "runs_against",
            "overs_against", "highest", "lowest",
        ]
    df = pd.DataFrame(rows, columns=columns)
    return df.set_index("pos")
