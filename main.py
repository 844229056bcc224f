# main.py
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from tourney_api.config import (
    validate_config,
    LOG_LEVEL,
    MAX_OVERS,
    MAX_TEAM_NAME_LENGTH,
    MAX_WICKETS,
    MIN_OVERS,
    MIN_WICKETS,
    PERSISTENCE_ENABLED,
    STATE_FILE,
)
from tourney_api.lifecycle import derive_match_state, describe_result
from tourney_api.models import PlayoffFormat, TossDecision, TournamentState, TournamentType
from tourney_api.nrr_math import format_nrr
from tourney_api.points_table import standings_frame, standings_rows
from tourney_api.simulator import ScoreInput
from tourney_api.storage import StateStore
from tourney_api.tournament import (
    AddTeam,
    CompleteMatch,
    GenerateMatches,
    MatchNotFoundError,
    RecordInnings,
    RemoveTeam,
    ResolvePlayoffs,
    SetAlgorithm,
    SetMaxOvers,
    SetMaxWickets,
    SetPlayoffFormat,
    SetTeams,
    SimulateMatchResult,
    StartMatch,
    StartSecondInnings,
    SetToss,
    Transition,
    apply,
    can_generate_finals,
    find_match,
    generate_random_toss,
    generate_sample_results,
    get_playoff_status,
    get_stats,
    get_team_standings,
    get_tournament_winner,
    initial_tournament_state,
    is_tournament_complete,
    validate_teams,
)

logger = logging.getLogger("tourney_api")

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Round-Robin Tournament API",
    version="0.1.0",
    description="Round-robin scheduling, match lifecycle, NRR standings and playoff brackets for one cricket tournament",
)

# Swappable in tests
store = StateStore(STATE_FILE, enabled=PERSISTENCE_ENABLED, default_factory=initial_tournament_state)


@app.on_event("startup")
def on_startup():
    validate_config()
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s | %(levelname)-5s | %(name)s: %(message)s",
    )
    app.state.tournament = store.load()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}


# -----------------------
# Helpers
# -----------------------
def _current_state() -> TournamentState:
    state = getattr(app.state, "tournament", None)
    if state is None:
        state = store.load()
        app.state.tournament = state
    return state


def _commit(transition: Transition) -> Transition:
    if not transition.success:
        raise HTTPException(status_code=400, detail=list(transition.errors) or ["Nothing to do"])
    app.state.tournament = transition.state
    store.save(transition.state)
    return transition


def _execute(command) -> Transition:
    try:
        transition = apply(_current_state(), command)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _commit(transition)


def _require_match(match_id: str) -> None:
    if find_match(_current_state(), match_id) is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")


def _match_view(state: TournamentState, match_id: str) -> Dict[str, Any]:
    match = find_match(state, match_id)
    return {
        "match": match,
        "state": derive_match_state(match).value,
        "result_text": describe_result(match),
    }


def _transition_body(transition: Transition, match_id: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": transition.success,
        "phase": transition.state.phase.value,
        "updates": list(transition.updates),
    }
    if transition.next_match_id is not None:
        body["next_match_id"] = transition.next_match_id
    if match_id is not None:
        body.update(_match_view(transition.state, match_id))
    return body


# -----------------------
# Tournament
# -----------------------
@app.get("/api/tournament")
def get_tournament():
    state = _current_state()
    validation = validate_teams(state)
    return {
        "state": state,
        "match_states": {m.id: derive_match_state(m).value for m in state.matches},
        "stats": get_stats(state),
        "validation": {"valid": validation.valid, "errors": list(validation.errors)},
    }


@app.post("/api/reset")
def reset_tournament():
    store.clear()
    app.state.tournament = initial_tournament_state()
    logger.info("tournament data cleared")
    return {"success": True, "state": app.state.tournament}


# -----------------------
# Teams + settings
# -----------------------
class TeamIn(BaseModel):
    name: str = Field(..., description="Team name (trimmed)")


class TeamsIn(BaseModel):
    teams: List[str] = Field(default_factory=list)


def _check_name_length(name: str) -> None:
    if len(name.strip()) > MAX_TEAM_NAME_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=[f"Team name must be at most {MAX_TEAM_NAME_LENGTH} characters"],
        )


@app.post("/api/teams")
def add_team(req: TeamIn):
    _check_name_length(req.name)
    t = _execute(AddTeam(req.name))
    return {"success": True, "teams": list(t.state.teams)}


@app.put("/api/teams")
def set_teams(req: TeamsIn):
    for name in req.teams:
        _check_name_length(name)
    t = _execute(SetTeams(tuple(req.teams)))
    return {"success": True, "teams": list(t.state.teams)}


@app.delete("/api/teams/{name}")
def remove_team(name: str):
    t = _execute(RemoveTeam(name))
    return {"success": True, "teams": list(t.state.teams)}


class SettingsIn(BaseModel):
    max_overs: Optional[int] = Field(None, description=f"{MIN_OVERS}-{MAX_OVERS}")
    max_wickets: Optional[int] = Field(None, description=f"{MIN_WICKETS}-{MAX_WICKETS}")
    playoff_format: Optional[PlayoffFormat] = None
    algorithm: Optional[TournamentType] = None


@app.put("/api/settings")
def update_settings(req: SettingsIn):
    commands = []
    if req.max_overs is not None:
        commands.append(SetMaxOvers(req.max_overs))
    if req.max_wickets is not None:
        commands.append(SetMaxWickets(req.max_wickets))
    if req.playoff_format is not None:
        commands.append(SetPlayoffFormat(req.playoff_format))
    if req.algorithm is not None:
        commands.append(SetAlgorithm(req.algorithm))

    # All-or-nothing: nothing is saved unless every setting is accepted
    state = _current_state()
    for command in commands:
        t = apply(state, command)
        if not t.success:
            raise HTTPException(status_code=400, detail=list(t.errors))
        state = t.state

    _commit(Transition(state=state, success=True))
    return {
        "success": True,
        "max_overs": state.max_overs,
        "max_wickets": state.max_wickets,
        "playoff_format": state.playoff_format.value,
        "algorithm": state.algorithm.value,
    }


@app.post("/api/generate")
def generate_matches():
    t = _execute(GenerateMatches())
    return {
        "success": True,
        "matches": list(t.state.matches),
        "stats": get_stats(t.state),
    }


# -----------------------
# Match lifecycle
# -----------------------
class TossIn(BaseModel):
    toss_winner: Optional[str] = Field(None, description="Leave empty for a random toss")
    decision: Optional[TossDecision] = None
    seed: Optional[int] = None


class ScoreIn(BaseModel):
    # Loose numeric types: range/notation checks produce engine messages (400), not 422s
    runs: float
    wickets: float
    overs: float = Field(..., description="Cricket notation, e.g. 19.4")

    def to_score(self) -> ScoreInput:
        return ScoreInput(runs=self.runs, wickets=self.wickets, overs=self.overs)


class InningsIn(ScoreIn):
    team: str


class SimulateIn(BaseModel):
    team1: ScoreIn
    team2: ScoreIn


@app.post("/api/matches/{match_id}/start")
def start(match_id: str):
    return _transition_body(_execute(StartMatch(match_id)), match_id)


@app.post("/api/matches/{match_id}/toss")
def toss(match_id: str, req: TossIn):
    if req.toss_winner is None:
        _require_match(match_id)
        rng = random.Random(req.seed) if req.seed is not None else None
        t = _commit(generate_random_toss(_current_state(), match_id, rng))
    else:
        if req.decision is None:
            raise HTTPException(status_code=400, detail=["decision is required with toss_winner"])
        t = _execute(SetToss(match_id, req.toss_winner, req.decision))
    return _transition_body(t, match_id)


@app.post("/api/matches/{match_id}/innings")
def innings(match_id: str, req: InningsIn):
    return _transition_body(_execute(RecordInnings(match_id, req.team, req.to_score())), match_id)


@app.post("/api/matches/{match_id}/second-innings")
def second_innings(match_id: str):
    return _transition_body(_execute(StartSecondInnings(match_id)), match_id)


@app.post("/api/matches/{match_id}/complete")
def complete(match_id: str):
    return _transition_body(_execute(CompleteMatch(match_id)), match_id)


@app.post("/api/matches/{match_id}/simulate")
def simulate(match_id: str, req: SimulateIn):
    t = _execute(SimulateMatchResult(match_id, req.team1.to_score(), req.team2.to_score()))
    return _transition_body(t, match_id)


@app.post("/api/sample-results")
def sample_results(seed: Optional[int] = None):
    rng = random.Random(seed) if seed is not None else None
    t = generate_sample_results(_current_state(), rng)
    if not t.success:
        raise HTTPException(status_code=400, detail=list(t.errors))
    _commit(t)
    return _transition_body(t)


# -----------------------
# Standings
# -----------------------
@app.get("/api/standings")
def standings():
    rows = standings_rows(get_team_standings(_current_state()))
    return {"count": len(rows), "standings": rows}


@app.get("/api/standings.csv")
def standings_csv():
    df = standings_frame(get_team_standings(_current_state()))
    return Response(
        content=df.to_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="standings.csv"'},
    )


# -----------------------
# Playoffs
# -----------------------
@app.get("/api/playoffs/status")
def playoffs_status():
    state = _current_state()
    status = get_playoff_status(state)
    can_resolve, reasons = can_generate_finals(state)
    return {
        "format": state.playoff_format.value,
        "phase": status.phase.value,
        "description": status.description,
        "next_action": status.next_action,
        "qualified_teams": list(state.qualified_teams),
        "can_resolve": can_resolve,
        "reasons": reasons,
        "matches": [m for m in state.matches if m.is_playoff],
    }


@app.post("/api/playoffs/resolve")
def playoffs_resolve():
    return _transition_body(_execute(ResolvePlayoffs()))


@app.get("/api/winner")
def winner():
    state = _current_state()
    champion = get_tournament_winner(state)
    top = get_team_standings(state)
    return {
        "complete": is_tournament_complete(state),
        "winner": champion,
        "table_leader": top[0].team_name if top else None,
        "table_leader_nrr": format_nrr(top[0].net_run_rate) if top else None,
    }
