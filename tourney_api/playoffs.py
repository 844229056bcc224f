# tourney_api/playoffs.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from tourney_api.models import (
    Match,
    MatchStatus,
    PlayoffFormat,
    PlayoffType,
    TBD,
    TournamentPhase,
    TournamentState,
)

logger = logging.getLogger(__name__)

MIN_PLAYOFF_TEAMS = 3


@dataclass(frozen=True)
class BracketSlot:
    match_id: str
    playoff_type: PlayoffType
    round: int


@dataclass(frozen=True)
class PlayoffGeneration:
    success: bool
    playoff_matches: Tuple[Match, ...] = ()
    errors: Tuple[str, ...] = ()


class PlayoffPhase(str, Enum):
    NOT_STARTED = "not-started"
    SEMI_FINALS = "semi-finals"
    FINALS = "finals"
    QUALIFICATION = "qualification"
    QUALIFIER_2 = "qualifier-2"
    FINAL_READY = "final-ready"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PlayoffStatus:
    phase: PlayoffPhase
    description: str
    next_action: Optional[str] = None


# -----------------------------
# Bracket shapes
# -----------------------------
# 3 teams: top two meet in the final, either format
FINAL_ONLY: Tuple[BracketSlot, ...] = (
    BracketSlot("F-001", PlayoffType.FINAL, 1),
)

# SF1 = rank 1 vs 4, SF2 = rank 2 vs 3, winners meet in the final
WORLD_CUP_BRACKET: Tuple[BracketSlot, ...] = (
    BracketSlot("SF-001", PlayoffType.SEMI_FINAL_1, 1),
    BracketSlot("SF-002", PlayoffType.SEMI_FINAL_2, 1),
    BracketSlot("F-001", PlayoffType.FINAL, 2),
)

# Q1 = rank 1 vs 2 (winner to final, loser to Q2), E = rank 3 vs 4 (winner to Q2)
LEAGUE_BRACKET: Tuple[BracketSlot, ...] = (
    BracketSlot("Q1-001", PlayoffType.QUALIFIER_1, 1),
    BracketSlot("E-001", PlayoffType.ELIMINATOR, 1),
    BracketSlot("Q2-001", PlayoffType.QUALIFIER_2, 2),
    BracketSlot("F-001", PlayoffType.FINAL, 3),
)

_FULL_BRACKETS: Dict[PlayoffFormat, Tuple[BracketSlot, ...]] = {
    PlayoffFormat.WORLD_CUP: WORLD_CUP_BRACKET,
    PlayoffFormat.LEAGUE: LEAGUE_BRACKET,
}


def bracket_shape(team_count: int, playoff_format: PlayoffFormat) -> Tuple[BracketSlot, ...]:
    if team_count < MIN_PLAYOFF_TEAMS:
        return ()
    if team_count == MIN_PLAYOFF_TEAMS:
        return FINAL_ONLY
    try:
        return _FULL_BRACKETS[PlayoffFormat(playoff_format)]
    except KeyError:
        raise ValueError(f"Unknown playoff format: {playoff_format}") from None


def generate_playoff_bracket(
    team_count: int,
    playoff_format: PlayoffFormat,
    max_overs: int,
    max_wickets: int,
) -> PlayoffGeneration:
    """
    Builds the fixed-shape bracket with every slot TBD. The shape depends only
    on team count and format, so it is generated up front with the round robin.
    """
    if team_count < MIN_PLAYOFF_TEAMS:
        return PlayoffGeneration(
            success=False,
            errors=(f"At least {MIN_PLAYOFF_TEAMS} teams are required for playoffs",),
        )

    matches = tuple(
        Match(
            id=slot.match_id,
            team1=TBD,
            team2=TBD,
            round=slot.round,
            overs=max_overs,
            max_wickets=max_wickets,
            status=MatchStatus.SCHEDULED,
            is_playoff=True,
            playoff_type=slot.playoff_type,
            phase=TournamentPhase.PLAYOFFS,
        )
        for slot in bracket_shape(team_count, playoff_format)
    )

    logger.info(
        "playoff bracket generated (%s, %d teams): %s",
        PlayoffFormat(playoff_format).value, team_count, ", ".join(m.id for m in matches),
    )
    return PlayoffGeneration(success=True, playoff_matches=matches)


# -----------------------------
# Lookups
# -----------------------------
def find_playoff_match(matches: Sequence[Match], playoff_type: PlayoffType) -> Optional[Match]:
    for m in matches:
        if m.is_playoff and m.playoff_type == playoff_type:
            return m
    return None


def playoff_matches(matches: Sequence[Match]) -> List[Match]:
    return [m for m in matches if m.is_playoff]


def round_robin_matches(matches: Sequence[Match]) -> List[Match]:
    return [m for m in matches if not m.is_playoff]


def is_round_robin_complete(state: TournamentState) -> bool:
    rr = round_robin_matches(state.matches)
    return bool(rr) and all(m.status == MatchStatus.COMPLETED for m in rr)


def _is_completed(m: Optional[Match]) -> bool:
    return m is not None and m.status == MatchStatus.COMPLETED


# -----------------------------
# Status
# -----------------------------
def _round_robin_gate(state: TournamentState) -> Optional[PlayoffStatus]:
    if not is_round_robin_complete(state):
        return PlayoffStatus(
            phase=PlayoffPhase.NOT_STARTED,
            description="Round robin phase in progress",
            next_action="Complete all round robin matches",
        )
    if not playoff_matches(state.matches):
        return PlayoffStatus(
            phase=PlayoffPhase.NOT_STARTED,
            description=f"No playoff bracket (at least {MIN_PLAYOFF_TEAMS} teams are required)",
        )
    return None


def _final_status(
    final: Optional[Match],
    waiting_phase: PlayoffPhase,
    ready_phase: PlayoffPhase,
) -> PlayoffStatus:
    if final is None:
        return PlayoffStatus(phase=PlayoffPhase.NOT_STARTED, description="Final not generated")
    if final.has_tbd_teams:
        return PlayoffStatus(
            phase=waiting_phase,
            description="Final teams not decided yet",
            next_action="Resolve final teams",
        )
    if not _is_completed(final):
        return PlayoffStatus(
            phase=ready_phase,
            description="Final is ready",
            next_action="Complete the final match",
        )
    if final.result is None or not final.result.winner:
        return PlayoffStatus(phase=ready_phase, description="Final ended without a winner")
    return PlayoffStatus(phase=PlayoffPhase.COMPLETED, description="Tournament completed!")


def get_world_cup_playoff_status(state: TournamentState) -> PlayoffStatus:
    gate = _round_robin_gate(state)
    if gate is not None:
        return gate

    semis = [
        m for m in (
            find_playoff_match(state.matches, PlayoffType.SEMI_FINAL_1),
            find_playoff_match(state.matches, PlayoffType.SEMI_FINAL_2),
        )
        if m is not None
    ]
    completed = sum(1 for m in semis if _is_completed(m))
    if semis and completed < len(semis):
        return PlayoffStatus(
            phase=PlayoffPhase.SEMI_FINALS,
            description=f"Semi-finals in progress ({completed}/{len(semis)} completed)",
            next_action="Complete remaining semi-final matches",
        )

    return _final_status(
        find_playoff_match(state.matches, PlayoffType.FINAL),
        waiting_phase=PlayoffPhase.SEMI_FINALS,
        ready_phase=PlayoffPhase.FINALS,
    )


def get_league_playoff_status(state: TournamentState) -> PlayoffStatus:
    gate = _round_robin_gate(state)
    if gate is not None:
        return gate

    q1 = find_playoff_match(state.matches, PlayoffType.QUALIFIER_1)
    eliminator = find_playoff_match(state.matches, PlayoffType.ELIMINATOR)
    q2 = find_playoff_match(state.matches, PlayoffType.QUALIFIER_2)
    final = find_playoff_match(state.matches, PlayoffType.FINAL)

    if q1 is not None and eliminator is not None:
        done = [_is_completed(q1), _is_completed(eliminator)]
        if not all(done):
            return PlayoffStatus(
                phase=PlayoffPhase.QUALIFICATION,
                description=f"Qualification round in progress ({sum(done)}/2 completed)",
                next_action="Complete remaining qualification matches",
            )

    if q2 is not None and not _is_completed(q2):
        return PlayoffStatus(
            phase=PlayoffPhase.QUALIFIER_2,
            description="Qualifier 2 in progress",
            next_action="Complete Qualifier 2",
        )

    return _final_status(final, waiting_phase=PlayoffPhase.QUALIFIER_2, ready_phase=PlayoffPhase.FINAL_READY)


_STATUS_BY_FORMAT = {
    PlayoffFormat.WORLD_CUP: get_world_cup_playoff_status,
    PlayoffFormat.LEAGUE: get_league_playoff_status,
}


def get_playoff_status(state: TournamentState) -> PlayoffStatus:
    return _STATUS_BY_FORMAT[PlayoffFormat(state.playoff_format)](state)
