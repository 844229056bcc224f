# tourney_api/simulator.py
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Tuple

from tourney_api.models import Match, TossDecision
from tourney_api.nrr_math import BALLS_PER_OVER, balls_to_overs


@dataclass(frozen=True)
class ScoreInput:
    runs: int
    wickets: int
    overs: float  # cricket notation


def random_toss(match: Match, rng: Optional[random.Random] = None) -> Tuple[str, TossDecision]:
    """Coin flip for the winner, then a coin flip for bat/bowl."""
    rng = rng or random.Random()
    winner = match.team1 if rng.random() < 0.5 else match.team2
    decision = TossDecision.BAT if rng.random() < 0.5 else TossDecision.BOWL
    return winner, decision


def _innings_balls(rng: random.Random, quota_overs: int, all_out: bool, spread_overs: int) -> int:
    quota = quota_overs * BALLS_PER_OVER
    if not all_out:
        return quota
    # Bowled out somewhere in the last `spread_overs` overs of the quota
    low = max(1, quota - spread_overs * BALLS_PER_OVER)
    return rng.randint(low, quota)


def sample_scores(match: Match, rng: Optional[random.Random] = None) -> Tuple[ScoreInput, ScoreInput]:
    """
    Random but plausible scores for (team1, team2), always within the match's
    overs and wickets limits and in cricket notation.

    team1 makes 100-199, team2 lands within 20 runs either side (never below 50).
    Playoff matches never produce a tie, since a tied playoff has no one to advance.
    """
    rng = rng or random.Random()

    team1_runs = rng.randint(100, 199)
    team1_wickets = rng.randint(1, match.max_wickets)
    team1_balls = _innings_balls(rng, match.overs, team1_wickets >= match.max_wickets, spread_overs=10)

    team2_runs = max(50, team1_runs + rng.randint(-20, 19))
    if match.is_playoff and team2_runs == team1_runs:
        team2_runs += 1
    team2_wickets = rng.randint(1, match.max_wickets)
    team2_balls = _innings_balls(rng, match.overs, team2_wickets >= match.max_wickets, spread_overs=15)

    return (
        ScoreInput(runs=team1_runs, wickets=team1_wickets, overs=balls_to_overs(team1_balls)),
        ScoreInput(runs=team2_runs, wickets=team2_wickets, overs=balls_to_overs(team2_balls)),
    )
