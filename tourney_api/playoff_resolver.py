# tourney_api/playoff_resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Literal, Optional, Tuple

from tourney_api.models import (
    Match,
    MatchStatus,
    PlayoffFormat,
    PlayoffType,
    TBD,
    TournamentState,
)
from tourney_api.playoffs import MIN_PLAYOFF_TEAMS, find_playoff_match, is_round_robin_complete
from tourney_api.points_table import get_tournament_standings

logger = logging.getLogger(__name__)

Slot = Literal["team1", "team2"]
Outcome = Literal["winner", "loser"]


@dataclass(frozen=True)
class SeedRule:
    """Fills `playoff_type` with the teams finishing at two standings ranks (1-based)."""
    playoff_type: PlayoffType
    team1_rank: int
    team2_rank: int


@dataclass(frozen=True)
class Advancement:
    """Sends the winner/loser of `source` into one slot of `target`."""
    source: PlayoffType
    outcome: Outcome
    target: PlayoffType
    slot: Slot


@dataclass(frozen=True)
class ResolverResult:
    success: bool
    updated_matches: Tuple[Match, ...]
    updates: Tuple[str, ...] = ()
    qualified_teams: Tuple[str, ...] = ()


# -----------------------------
# Rules
# -----------------------------
FINAL_ONLY_SEEDING: Tuple[SeedRule, ...] = (
    SeedRule(PlayoffType.FINAL, 1, 2),
)

_FULL_SEEDING: Dict[PlayoffFormat, Tuple[SeedRule, ...]] = {
    PlayoffFormat.WORLD_CUP: (
        SeedRule(PlayoffType.SEMI_FINAL_1, 1, 4),
        SeedRule(PlayoffType.SEMI_FINAL_2, 2, 3),
    ),
    PlayoffFormat.LEAGUE: (
        SeedRule(PlayoffType.QUALIFIER_1, 1, 2),
        SeedRule(PlayoffType.ELIMINATOR, 3, 4),
    ),
}

# Order matters: later rules may read slots filled by earlier ones
_ADVANCEMENT: Dict[PlayoffFormat, Tuple[Advancement, ...]] = {
    PlayoffFormat.WORLD_CUP: (
        Advancement(PlayoffType.SEMI_FINAL_1, "winner", PlayoffType.FINAL, "team1"),
        Advancement(PlayoffType.SEMI_FINAL_2, "winner", PlayoffType.FINAL, "team2"),
    ),
    PlayoffFormat.LEAGUE: (
        Advancement(PlayoffType.QUALIFIER_1, "loser", PlayoffType.QUALIFIER_2, "team1"),   # second chance
        Advancement(PlayoffType.ELIMINATOR, "winner", PlayoffType.QUALIFIER_2, "team2"),
        Advancement(PlayoffType.QUALIFIER_1, "winner", PlayoffType.FINAL, "team1"),        # direct entry
        Advancement(PlayoffType.QUALIFIER_2, "winner", PlayoffType.FINAL, "team2"),
    ),
}

_LABELS: Dict[PlayoffType, str] = {
    PlayoffType.SEMI_FINAL_1: "SF1",
    PlayoffType.SEMI_FINAL_2: "SF2",
    PlayoffType.QUALIFIER_1: "Q1",
    PlayoffType.ELIMINATOR: "Eliminator",
    PlayoffType.QUALIFIER_2: "Qualifier 2",
    PlayoffType.FINAL: "Final",
}


def seeding_rules(team_count: int, playoff_format: PlayoffFormat) -> Tuple[SeedRule, ...]:
    if team_count < MIN_PLAYOFF_TEAMS:
        return ()
    if team_count == MIN_PLAYOFF_TEAMS:
        return FINAL_ONLY_SEEDING
    return _FULL_SEEDING[PlayoffFormat(playoff_format)]


def advancement_rules(playoff_format: PlayoffFormat) -> Tuple[Advancement, ...]:
    return _ADVANCEMENT[PlayoffFormat(playoff_format)]


# -----------------------------
# Helpers
# -----------------------------
def _index_of(matches: List[Match], playoff_type: PlayoffType) -> Optional[int]:
    for i, m in enumerate(matches):
        if m.is_playoff and m.playoff_type == playoff_type:
            return i
    return None


def _fill_slot(matches: List[Match], target: PlayoffType, slot: Slot, team: str) -> bool:
    """Writes `team` into a TBD slot. Never overwrites a decided slot."""
    idx = _index_of(matches, target)
    if idx is None:
        return False
    match = matches[idx]
    if getattr(match, slot) != TBD:
        return False
    matches[idx] = replace(match, **{slot: team})
    return True


def _advancing_team(source: Optional[Match], outcome: Outcome) -> Optional[str]:
    if source is None or source.status != MatchStatus.COMPLETED or source.result is None:
        return None
    team = source.result.winner if outcome == "winner" else source.result.loser
    # Drawn playoff matches have no winner/loser to send on
    return team or None


# -----------------------------
# Initial seeding
# -----------------------------
def seed_playoff_teams(state: TournamentState) -> ResolverResult:
    """
    Once every round-robin match is completed, fills the first bracket layer
    from the standings. Only TBD slots are written.
    """
    if not is_round_robin_complete(state):
        return ResolverResult(success=False, updated_matches=state.matches)

    rules = seeding_rules(len(state.teams), state.playoff_format)
    standings = get_tournament_standings(state.team_stats)
    ranked = [s.team_name for s in standings]

    matches = list(state.matches)
    updates: List[str] = []
    deepest = 0

    for rule in rules:
        if rule.team1_rank > len(ranked) or rule.team2_rank > len(ranked):
            continue
        deepest = max(deepest, rule.team1_rank, rule.team2_rank)
        team1 = ranked[rule.team1_rank - 1]
        team2 = ranked[rule.team2_rank - 1]
        label = _LABELS[rule.playoff_type]

        if _fill_slot(matches, rule.playoff_type, "team1", team1):
            updates.append(f"{label} team1 seeded: {team1} (rank {rule.team1_rank})")
        if _fill_slot(matches, rule.playoff_type, "team2", team2):
            updates.append(f"{label} team2 seeded: {team2} (rank {rule.team2_rank})")

    for line in updates:
        logger.info(line)

    return ResolverResult(
        success=bool(updates),
        updated_matches=tuple(matches),
        updates=tuple(updates),
        qualified_teams=tuple(ranked[:deepest]),
    )


# -----------------------------
# Progressive propagation
# -----------------------------
def _propagate(state: TournamentState, rules: Tuple[Advancement, ...]) -> ResolverResult:
    matches = list(state.matches)
    updates: List[str] = []

    for rule in rules:
        team = _advancing_team(find_playoff_match(matches, rule.source), rule.outcome)
        if team is None:
            continue
        if _fill_slot(matches, rule.target, rule.slot, team):
            updates.append(
                f"{_LABELS[rule.target]} {rule.slot} updated: {team} "
                f"({_LABELS[rule.source]} {rule.outcome})"
            )

    for line in updates:
        logger.info(line)

    return ResolverResult(
        success=bool(updates),
        updated_matches=tuple(matches),
        updates=tuple(updates),
    )


def update_world_cup_playoff_teams(state: TournamentState) -> ResolverResult:
    return _propagate(state, advancement_rules(PlayoffFormat.WORLD_CUP))


def update_league_playoff_teams(state: TournamentState) -> ResolverResult:
    return _propagate(state, advancement_rules(PlayoffFormat.LEAGUE))


_UPDATERS = {
    PlayoffFormat.WORLD_CUP: update_world_cup_playoff_teams,
    PlayoffFormat.LEAGUE: update_league_playoff_teams,
}


def update_playoff_teams(state: TournamentState) -> ResolverResult:
    return _UPDATERS[PlayoffFormat(state.playoff_format)](state)


def has_resolvable_tbd_teams(state: TournamentState) -> bool:
    """
    True when some advancement target slot is still TBD and its source match
    is completed with a team to send on.
    """
    for rule in advancement_rules(state.playoff_format):
        target = find_playoff_match(state.matches, rule.target)
        if target is None or getattr(target, rule.slot) != TBD:
            continue
        if _advancing_team(find_playoff_match(state.matches, rule.source), rule.outcome) is not None:
            return True
    return False
