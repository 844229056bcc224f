# tourney_api/tournament.py
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple, Union

from tourney_api import config
from tourney_api.lifecycle import (
    PLAYOFF_TIE_MESSAGE,
    TransitionError,
    build_innings,
    complete_match,
    create_match_result,
    is_playoff_tie,
    record_innings,
    set_toss,
    start_match,
    start_second_innings,
    validate_score_input,
)
from tourney_api.models import (
    CricketTeamStats,
    Match,
    MatchStatus,
    PlayoffFormat,
    PlayoffType,
    TBD,
    TossDecision,
    TournamentPhase,
    TournamentState,
    TournamentType,
)
from tourney_api.playoff_resolver import (
    has_resolvable_tbd_teams,
    seed_playoff_teams,
    update_playoff_teams,
)
from tourney_api.playoffs import (
    PlayoffStatus,
    find_playoff_match,
    generate_playoff_bracket,
    get_playoff_status as _bracket_status,
    is_round_robin_complete,
    MIN_PLAYOFF_TEAMS,
)
from tourney_api.points_table import (
    apply_match_to_stats,
    get_tournament_standings,
    initialize_stats_map,
    initialize_team_stats,
)
from tourney_api.round_robin import (
    RESERVED_NAME_MESSAGE,
    RoundRobinStats,
    TeamValidation,
    calculate_round_robin_stats,
    generate_round_robin_matches,
    validate_round_robin_teams,
)
from tourney_api.simulator import ScoreInput, random_toss, sample_scores

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Tournament already generated. Reset the tournament to change teams or format."
NOTHING_TO_RESOLVE = "No playoff teams can be resolved yet"


def initial_tournament_state() -> TournamentState:
    return TournamentState(
        max_overs=config.DEFAULT_MAX_OVERS,
        max_wickets=config.DEFAULT_MAX_WICKETS,
    )


class MatchNotFoundError(LookupError):
    """Raised when a command references a match id that does not exist."""


# -----------------------------
# Commands
# -----------------------------
@dataclass(frozen=True)
class AddTeam:
    name: str


@dataclass(frozen=True)
class RemoveTeam:
    name: str


@dataclass(frozen=True)
class SetTeams:
    teams: Tuple[str, ...]


@dataclass(frozen=True)
class SetMaxOvers:
    overs: int


@dataclass(frozen=True)
class SetMaxWickets:
    wickets: int


@dataclass(frozen=True)
class SetPlayoffFormat:
    playoff_format: PlayoffFormat


@dataclass(frozen=True)
class SetAlgorithm:
    algorithm: TournamentType


@dataclass(frozen=True)
class GenerateMatches:
    pass


@dataclass(frozen=True)
class StartMatch:
    match_id: str


@dataclass(frozen=True)
class SetToss:
    match_id: str
    toss_winner: str
    decision: TossDecision


@dataclass(frozen=True)
class RecordInnings:
    match_id: str
    team: str
    score: ScoreInput


@dataclass(frozen=True)
class StartSecondInnings:
    match_id: str


@dataclass(frozen=True)
class CompleteMatch:
    match_id: str


@dataclass(frozen=True)
class SimulateMatchResult:
    """Records both innings at once and finalizes (no toss needed)."""
    match_id: str
    team1_score: ScoreInput
    team2_score: ScoreInput


@dataclass(frozen=True)
class ResolvePlayoffs:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Command = Union[
    AddTeam, RemoveTeam, SetTeams, SetMaxOvers, SetMaxWickets, SetPlayoffFormat,
    SetAlgorithm, GenerateMatches, StartMatch, SetToss, RecordInnings,
    StartSecondInnings, CompleteMatch, SimulateMatchResult, ResolvePlayoffs, Reset,
]


@dataclass(frozen=True)
class Transition:
    """
    Outcome of one command. On failure `state` is the unchanged input state.
    `errors` empty with success=False means there was nothing to do.
    """
    state: TournamentState
    success: bool
    errors: Tuple[str, ...] = ()
    next_match_id: Optional[str] = None
    updates: Tuple[str, ...] = ()


def _ok(state: TournamentState, **kwargs) -> Transition:
    return Transition(state=state, success=True, **kwargs)


def _fail(state: TournamentState, *errors: str) -> Transition:
    if errors:
        logger.info("command rejected: %s", "; ".join(errors))
    return Transition(state=state, success=False, errors=tuple(errors))


# -----------------------------
# Match helpers
# -----------------------------
def find_match(state: TournamentState, match_id: str) -> Optional[Match]:
    for m in state.matches:
        if m.id == match_id:
            return m
    return None


def get_match(state: TournamentState, match_id: str) -> Match:
    match = find_match(state, match_id)
    if match is None:
        raise MatchNotFoundError(f"Match {match_id} not found")
    return match


def _with_match(state: TournamentState, updated: Match) -> TournamentState:
    return replace(
        state,
        matches=tuple(updated if m.id == updated.id else m for m in state.matches),
    )


def _next_match_id(state: TournamentState, after_id: str) -> Optional[str]:
    """Next playable match in tournament order after `after_id`, wrapping around."""
    ids = [m.id for m in state.matches]
    if after_id not in ids:
        return None
    start = ids.index(after_id)
    ordered = state.matches[start + 1:] + state.matches[:start]
    for m in ordered:
        if m.status in (MatchStatus.COMPLETED, MatchStatus.CANCELLED) or m.has_tbd_teams:
            continue
        return m.id
    return None


# -----------------------------
# Setup
# -----------------------------
def _clear_generated(state: TournamentState, **changes) -> TournamentState:
    return replace(
        state,
        matches=(),
        is_generated=False,
        phase=TournamentPhase.SETUP,
        qualified_teams=(),
        **changes,
    )


def _add_team(state: TournamentState, cmd: AddTeam) -> Transition:
    if state.is_generated:
        return _fail(state, LOCKED_MESSAGE)

    name = (cmd.name or "").strip()
    if not name:
        return _fail(state, "Team name cannot be empty")
    if name == TBD:
        return _fail(state, RESERVED_NAME_MESSAGE)
    if name in state.teams:
        return _fail(state, f'Team "{name}" already exists')

    stats = dict(state.team_stats)
    stats[name] = initialize_team_stats(name)
    logger.info("team added: %s", name)
    return _ok(_clear_generated(state, teams=state.teams + (name,), team_stats=stats))


def _remove_team(state: TournamentState, cmd: RemoveTeam) -> Transition:
    if state.is_generated:
        return _fail(state, LOCKED_MESSAGE)
    if cmd.name not in state.teams:
        return _fail(state, f'Team "{cmd.name}" not found')

    stats = {k: v for k, v in state.team_stats.items() if k != cmd.name}
    logger.info("team removed: %s", cmd.name)
    return _ok(_clear_generated(
        state,
        teams=tuple(t for t in state.teams if t != cmd.name),
        team_stats=stats,
    ))


def _set_teams(state: TournamentState, cmd: SetTeams) -> Transition:
    if state.is_generated:
        return _fail(state, LOCKED_MESSAGE)

    teams = tuple(str(t).strip() for t in cmd.teams)
    errors: List[str] = []
    if any(not t for t in teams):
        errors.append("Empty team names are not allowed")
    if len(set(teams)) != len(teams):
        errors.append("Duplicate team names are not allowed")
    if TBD in teams:
        errors.append(RESERVED_NAME_MESSAGE)
    if errors:
        return _fail(state, *errors)

    logger.info("teams set: %s", ", ".join(teams))
    return _ok(_clear_generated(state, teams=teams, team_stats=initialize_stats_map(teams)))


def _set_max_overs(state: TournamentState, cmd: SetMaxOvers) -> Transition:
    if not (config.MIN_OVERS <= cmd.overs <= config.MAX_OVERS):
        return _fail(state, f"Overs must be between {config.MIN_OVERS} and {config.MAX_OVERS}")
    return _ok(replace(state, max_overs=int(cmd.overs)))


def _set_max_wickets(state: TournamentState, cmd: SetMaxWickets) -> Transition:
    if not (config.MIN_WICKETS <= cmd.wickets <= config.MAX_WICKETS):
        return _fail(state, f"Wickets must be between {config.MIN_WICKETS} and {config.MAX_WICKETS}")
    return _ok(replace(state, max_wickets=int(cmd.wickets)))


def _set_playoff_format(state: TournamentState, cmd: SetPlayoffFormat) -> Transition:
    if state.is_generated:
        return _fail(state, LOCKED_MESSAGE)
    fmt = PlayoffFormat(cmd.playoff_format)
    logger.info("playoff format set: %s", fmt.value)
    return _ok(_clear_generated(state, playoff_format=fmt))


def _set_algorithm(state: TournamentState, cmd: SetAlgorithm) -> Transition:
    if state.is_generated:
        return _fail(state, LOCKED_MESSAGE)
    algorithm = TournamentType(cmd.algorithm)
    logger.info("tournament algorithm set: %s", algorithm.value)
    return _ok(_clear_generated(state, algorithm=algorithm))


def _generate_matches(state: TournamentState, cmd: GenerateMatches) -> Transition:
    if state.is_generated:
        return _fail(state, "Matches already generated. Reset the tournament first.")

    validation = validate_round_robin_teams(state.teams)
    if not validation.valid:
        return _fail(state, *validation.errors)

    if state.algorithm != TournamentType.ROUND_ROBIN:
        return _fail(state, f"{state.algorithm.value} algorithm not yet implemented")

    rr = generate_round_robin_matches(state.teams, state.max_overs, state.max_wickets)
    matches = rr.matches

    if len(state.teams) >= MIN_PLAYOFF_TEAMS:
        bracket = generate_playoff_bracket(
            len(state.teams), state.playoff_format, state.max_overs, state.max_wickets
        )
        if not bracket.success:
            return _fail(state, *bracket.errors)
        matches = matches + bracket.playoff_matches

    logger.info(
        "tournament generated: %d teams, %d matches (%d rounds)",
        len(state.teams), len(matches), rr.total_rounds,
    )
    return _ok(replace(
        state,
        matches=matches,
        team_stats=initialize_stats_map(state.teams),
        is_generated=True,
        phase=TournamentPhase.ROUND_ROBIN,
        qualified_teams=(),
    ))


# -----------------------------
# Match lifecycle
# -----------------------------
def _lifecycle_step(state: TournamentState, match_id: str, step: Callable[[Match], Match]) -> Transition:
    match = get_match(state, match_id)
    try:
        updated = step(match)
    except TransitionError as e:
        return _fail(state, str(e))
    return _ok(_with_match(state, updated))


def _start_match(state: TournamentState, cmd: StartMatch) -> Transition:
    return _lifecycle_step(state, cmd.match_id, start_match)


def _set_toss(state: TournamentState, cmd: SetToss) -> Transition:
    return _lifecycle_step(state, cmd.match_id, lambda m: set_toss(m, cmd.toss_winner, cmd.decision))


def _record_innings(state: TournamentState, cmd: RecordInnings) -> Transition:
    match = get_match(state, cmd.match_id)
    score = cmd.score
    errors = validate_score_input(score.runs, score.wickets, score.overs, match)
    if errors:
        return _fail(state, *errors)

    innings = build_innings(cmd.team, score.runs, score.wickets, score.overs, match)
    return _lifecycle_step(state, cmd.match_id, lambda m: record_innings(m, cmd.team, innings))


def _start_second_innings(state: TournamentState, cmd: StartSecondInnings) -> Transition:
    return _lifecycle_step(state, cmd.match_id, start_second_innings)


def _after_match_completed(state: TournamentState, match: Match) -> Tuple[TournamentState, List[str]]:
    """
    Reactive step after a match is finalized: standings for round-robin
    matches, bracket seeding once the round robin is done, and TBD
    propagation for playoff matches.
    """
    updates: List[str] = []

    if not match.is_playoff:
        state = replace(state, team_stats=apply_match_to_stats(state.team_stats, match, match.result))

        if state.phase == TournamentPhase.ROUND_ROBIN and is_round_robin_complete(state):
            if not any(m.is_playoff for m in state.matches):
                logger.info("round robin complete; no playoff bracket for %d teams", len(state.teams))
                return replace(state, phase=TournamentPhase.COMPLETED), updates

            seeded = seed_playoff_teams(state)
            updates.extend(seeded.updates)
            state = replace(
                state,
                matches=seeded.updated_matches,
                phase=TournamentPhase.PLAYOFFS,
                qualified_teams=seeded.qualified_teams,
            )
            logger.info("round robin complete; qualified: %s", ", ".join(seeded.qualified_teams))
        return state, updates

    if has_resolvable_tbd_teams(state):
        resolved = update_playoff_teams(state)
        if resolved.success:
            updates.extend(resolved.updates)
            state = replace(state, matches=resolved.updated_matches)

    if match.playoff_type == PlayoffType.FINAL and match.result is not None and match.result.winner:
        state = replace(state, phase=TournamentPhase.COMPLETED)
        logger.info("final completed; winner: %s", match.result.winner)

    return state, updates


def _finish(state: TournamentState, finished: Match) -> Transition:
    state, updates = _after_match_completed(_with_match(state, finished), finished)
    return _ok(
        state,
        next_match_id=_next_match_id(state, finished.id),
        updates=tuple(updates),
    )


def _complete_match(state: TournamentState, cmd: CompleteMatch) -> Transition:
    match = get_match(state, cmd.match_id)
    if match.status == MatchStatus.COMPLETED:
        return _ok(state, next_match_id=_next_match_id(state, match.id))

    try:
        finished = complete_match(match)
    except TransitionError as e:
        return _fail(state, str(e))
    return _finish(state, finished)


def _simulate_match_result(state: TournamentState, cmd: SimulateMatchResult) -> Transition:
    match = get_match(state, cmd.match_id)
    if match.has_tbd_teams:
        return _fail(state, f"Match {match.id} teams are not decided yet")
    if match.status in (MatchStatus.COMPLETED, MatchStatus.CANCELLED):
        return _fail(state, f"Match {match.id} is already {match.status.value}")
    if match.team1_innings is not None or match.team2_innings is not None:
        return _fail(state, f"Match {match.id} already has a recorded innings")

    errors: List[str] = []
    for team, score in ((match.team1, cmd.team1_score), (match.team2, cmd.team2_score)):
        errors.extend(f"{team}: {e}" for e in validate_score_input(score.runs, score.wickets, score.overs, match))
    if errors:
        return _fail(state, *errors)

    t1 = build_innings(match.team1, cmd.team1_score.runs, cmd.team1_score.wickets, cmd.team1_score.overs, match)
    t2 = build_innings(match.team2, cmd.team2_score.runs, cmd.team2_score.wickets, cmd.team2_score.overs, match)
    if is_playoff_tie(match, t1, t2):
        return _fail(state, PLAYOFF_TIE_MESSAGE)
    finished = replace(
        match,
        status=MatchStatus.COMPLETED,
        team1_innings=t1,
        team2_innings=t2,
        second_innings_started=True,
        result=create_match_result(t1, t2),
    )
    logger.info("match %s simulated: %s %d vs %s %d", match.id, t1.team_name, t1.runs, t2.team_name, t2.runs)
    return _finish(state, finished)


def _resolve_playoffs(state: TournamentState, cmd: ResolvePlayoffs) -> Transition:
    updates: List[str] = []

    if is_round_robin_complete(state):
        seeded = seed_playoff_teams(state)
        if seeded.success:
            updates.extend(seeded.updates)
            state = replace(
                state,
                matches=seeded.updated_matches,
                phase=TournamentPhase.PLAYOFFS,
                qualified_teams=seeded.qualified_teams,
            )

    if has_resolvable_tbd_teams(state):
        resolved = update_playoff_teams(state)
        if resolved.success:
            updates.extend(resolved.updates)
            state = replace(state, matches=resolved.updated_matches)

    if not updates:
        return _fail(state, NOTHING_TO_RESOLVE)
    return _ok(state, updates=tuple(updates))


def _reset(state: TournamentState, cmd: Reset) -> Transition:
    logger.info("tournament reset")
    return _ok(initial_tournament_state())


_HANDLERS: Dict[type, Callable[[TournamentState, object], Transition]] = {
    AddTeam: _add_team,
    RemoveTeam: _remove_team,
    SetTeams: _set_teams,
    SetMaxOvers: _set_max_overs,
    SetMaxWickets: _set_max_wickets,
    SetPlayoffFormat: _set_playoff_format,
    SetAlgorithm: _set_algorithm,
    GenerateMatches: _generate_matches,
    StartMatch: _start_match,
    SetToss: _set_toss,
    RecordInnings: _record_innings,
    StartSecondInnings: _start_second_innings,
    CompleteMatch: _complete_match,
    SimulateMatchResult: _simulate_match_result,
    ResolvePlayoffs: _resolve_playoffs,
    Reset: _reset,
}


def apply(state: TournamentState, command: Command) -> Transition:
    """
    Pure transition: never mutates `state`. Raises MatchNotFoundError for an
    unknown match id; every other rejection comes back as success=False.
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown command: {type(command).__name__}")
    return handler(state, command)


# -----------------------------
# Convenience operations
# -----------------------------
def generate_random_toss(
    state: TournamentState,
    match_id: str,
    rng: Optional[random.Random] = None,
) -> Transition:
    winner, decision = random_toss(get_match(state, match_id), rng)
    return apply(state, SetToss(match_id=match_id, toss_winner=winner, decision=decision))


def generate_sample_results(
    state: TournamentState,
    rng: Optional[random.Random] = None,
) -> Transition:
    """
    Simulates every scheduled match whose teams are known, one after another in
    tournament order. Matches that only become playable along the way (seeded
    playoff slots) are left for the next call.
    Stops at the first rejected match; results recorded before it are kept.
    """
    rng = rng or random.Random(config.SAMPLE_SEED)
    pending = [m.id for m in pending_matches(state)]

    updates: List[str] = []
    for match_id in pending:
        team1_score, team2_score = sample_scores(get_match(state, match_id), rng)
        step = apply(state, SimulateMatchResult(match_id, team1_score, team2_score))
        if not step.success:
            return Transition(state=state, success=False, errors=step.errors, updates=tuple(updates))
        state = step.state
        updates.append(f"{match_id} simulated")
        updates.extend(step.updates)

    logger.info("sample results generated for %d matches", len(pending))
    return _ok(state, updates=tuple(updates))


# -----------------------------
# Queries
# -----------------------------
def get_team_standings(state: TournamentState) -> List[CricketTeamStats]:
    return get_tournament_standings(state.team_stats)


def get_playoff_status(state: TournamentState) -> PlayoffStatus:
    return _bracket_status(state)


def get_tournament_winner(state: TournamentState) -> Optional[str]:
    final = find_playoff_match(state.matches, PlayoffType.FINAL)
    if final is None or final.status != MatchStatus.COMPLETED or final.result is None:
        return None
    return final.result.winner or None


def is_tournament_complete(state: TournamentState) -> bool:
    return get_tournament_winner(state) is not None


def validate_teams(state: TournamentState) -> TeamValidation:
    return validate_round_robin_teams(state.teams)


def get_stats(state: TournamentState) -> Optional[RoundRobinStats]:
    if len(state.teams) < 2 or state.algorithm != TournamentType.ROUND_ROBIN:
        return None
    return calculate_round_robin_stats(state.teams)


def can_generate_finals(state: TournamentState) -> Tuple[bool, List[str]]:
    if has_resolvable_tbd_teams(state):
        return True, []
    return False, [NOTHING_TO_RESOLVE]


def pending_matches(state: TournamentState) -> List[Match]:
    return [m for m in state.matches if m.status == MatchStatus.SCHEDULED and not m.has_tbd_teams]
