# tourney_api/round_robin.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import combinations
from typing import List, Sequence, Tuple

from tourney_api.config import MAX_TEAMS
from tourney_api.models import TBD, Match, MatchStatus, TournamentPhase

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

RESERVED_NAME_MESSAGE = f'"{TBD}" is reserved for undecided playoff slots'


@dataclass(frozen=True)
class RoundRobinResult:
    matches: Tuple[Match, ...]
    total_rounds: int
    matches_per_round: int


@dataclass(frozen=True)
class RoundRobinStats:
    team_count: int
    total_matches: int
    matches_per_team: int
    min_rounds: int


@dataclass(frozen=True)
class TeamValidation:
    valid: bool
    errors: Tuple[str, ...] = ()


def match_id(prefix: str, number: int) -> str:
    return f"{prefix}-{number:03d}"


def all_pairs(teams: Sequence[str]) -> List[Pair]:
    """Every unordered pairing, in insertion order: (A,B), (A,C), (B,C)..."""
    return list(combinations(teams, 2))


def schedule_pairs_in_rounds(pairs: Sequence[Pair]) -> List[List[Pair]]:
    """
    Greedy round packing.

    Each round scans the remaining pairs from the END of the list and accepts a
    pair when neither team already plays in that round. Repeats until no pairs
    remain. No team appears twice in a round; the round count is not
    guaranteed minimal. The scan order fixes the output, so ids and rounds are
    reproducible for a given team order.
    """
    rounds: List[List[Pair]] = []
    remaining = list(pairs)

    while remaining:
        current: List[Pair] = []
        busy = set()

        for i in range(len(remaining) - 1, -1, -1):
            team1, team2 = remaining[i]
            if team1 in busy or team2 in busy:
                continue
            current.append((team1, team2))
            busy.add(team1)
            busy.add(team2)
            del remaining[i]

        rounds.append(current)
        logger.debug("round %d: %d matches scheduled", len(rounds), len(current))

    return rounds


def generate_round_robin_matches(
    teams: Sequence[str],
    max_overs: int,
    max_wickets: int,
) -> RoundRobinResult:
    """
    Every team plays every other team exactly once.
    Fewer than 2 teams -> no matches, zero rounds.
    """
    if len(teams) < 2:
        logger.info("need at least 2 teams for round robin, got %d", len(teams))
        return RoundRobinResult(matches=(), total_rounds=0, matches_per_round=0)

    rounds = schedule_pairs_in_rounds(all_pairs(teams))

    matches: List[Match] = []
    number = 1
    for round_no, round_pairs in enumerate(rounds, start=1):
        for team1, team2 in round_pairs:
            matches.append(Match(
                id=match_id("RR", number),
                team1=team1,
                team2=team2,
                round=round_no,
                overs=max_overs,
                max_wickets=max_wickets,
                status=MatchStatus.SCHEDULED,
                is_playoff=False,
                phase=TournamentPhase.ROUND_ROBIN,
            ))
            number += 1

    logger.info(
        "round robin generated: %d teams, %d matches, %d rounds",
        len(teams), len(matches), len(rounds),
    )
    return RoundRobinResult(
        matches=tuple(matches),
        total_rounds=len(rounds),
        matches_per_round=max(len(r) for r in rounds),
    )


def calculate_round_robin_stats(teams: Sequence[str]) -> RoundRobinStats:
    """
    `min_rounds` is a lower bound (all pitches busy every round), not what the
    greedy packer necessarily achieves.
    """
    n = len(teams)
    total = n * (n - 1) // 2
    per_round = n // 2
    min_rounds = math.ceil(total / per_round) if per_round > 0 else 0
    return RoundRobinStats(
        team_count=n,
        total_matches=total,
        matches_per_team=max(n - 1, 0),
        min_rounds=min_rounds,
    )


def validate_round_robin_teams(teams: Sequence[str], max_teams: int = MAX_TEAMS) -> TeamValidation:
    errors: List[str] = []

    if len(teams) < 2:
        errors.append("At least 2 teams are required for Round Robin")

    if len(teams) > max_teams:
        errors.append(f"Maximum {max_teams} teams allowed for Round Robin (too many matches otherwise)")

    if len(set(teams)) != len(teams):
        errors.append("Duplicate team names are not allowed")

    if any(not str(t).strip() for t in teams):
        errors.append("Empty team names are not allowed")

    if any(str(t).strip() == TBD for t in teams):
        errors.append(RESERVED_NAME_MESSAGE)

    return TeamValidation(valid=not errors, errors=tuple(errors))
