from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

# Placeholder for playoff slots that depend on an unfinished match
TBD = "TBD"


# -----------------------------
# Enumerations
# -----------------------------
class TournamentType(str, Enum):
    ROUND_ROBIN = "round-robin"
    SINGLE_ELIMINATION = "single-elimination"
    DOUBLE_ELIMINATION = "double-elimination"
    TRIPLE_ELIMINATION = "triple-elimination"


class TournamentPhase(str, Enum):
    SETUP = "setup"
    ROUND_ROBIN = "round-robin"
    PLAYOFFS = "playoffs"
    COMPLETED = "completed"


class PlayoffFormat(str, Enum):
    WORLD_CUP = "world-cup"
    LEAGUE = "league"


class PlayoffType(str, Enum):
    SEMI_FINAL_1 = "semi-final-1"
    SEMI_FINAL_2 = "semi-final-2"
    QUALIFIER_1 = "qualifier-1"
    ELIMINATOR = "eliminator"
    QUALIFIER_2 = "qualifier-2"
    FINAL = "final"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TossDecision(str, Enum):
    BAT = "bat"
    BOWL = "bowl"


class MarginType(str, Enum):
    RUNS = "runs"
    WICKETS = "wickets"


class MatchType(str, Enum):
    COMPLETED = "completed"
    NO_RESULT = "no-result"


# -----------------------------
# Match pieces
# -----------------------------
@dataclass(frozen=True)
class TossResult:
    toss_winner: str
    decision: TossDecision
    toss_loser: str


@dataclass(frozen=True)
class InningsScore:
    """
    One team's batting turn.

    `overs` is cricket notation (19.4 = 19 overs + 4 balls), `balls_faced`
    is the same quantity in legal deliveries.
    """
    team_name: str
    runs: int
    wickets: int
    overs: float
    balls_faced: int
    is_all_out: bool
    run_rate: float


@dataclass(frozen=True)
class CricketMatchResult:
    winner: Optional[str]
    loser: Optional[str]
    team1_innings: InningsScore
    team2_innings: InningsScore
    margin_type: MarginType
    margin: int
    match_type: MatchType = MatchType.COMPLETED
    is_draw: bool = False
    is_no_result: bool = False


@dataclass(frozen=True)
class Match:
    id: str
    team1: str
    team2: str
    round: int
    overs: int
    max_wickets: int
    status: MatchStatus = MatchStatus.SCHEDULED
    is_playoff: bool = False
    playoff_type: Optional[PlayoffType] = None
    phase: TournamentPhase = TournamentPhase.ROUND_ROBIN
    toss: Optional[TossResult] = None

    # Innings recorded while the match is in progress
    team1_innings: Optional[InningsScore] = None
    team2_innings: Optional[InningsScore] = None
    second_innings_started: bool = False

    # Present only once finalized
    result: Optional[CricketMatchResult] = None

    @property
    def has_tbd_teams(self) -> bool:
        return self.team1 == TBD or self.team2 == TBD

    def innings_for(self, team: str) -> Optional[InningsScore]:
        if team == self.team1:
            return self.team1_innings
        if team == self.team2:
            return self.team2_innings
        return None


# -----------------------------
# Standings
# -----------------------------
@dataclass(frozen=True)
class BiggestWin:
    opponent: str
    margin: int
    margin_type: MarginType


@dataclass(frozen=True)
class CricketTeamStats:
    """
    Per-team aggregate built from completed round-robin matches only.

    Overs totals are true decimal overs (balls / 6) after the all-out
    substitution, so they can be divided into runs directly.
    """
    team_name: str
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    no_results: int = 0
    points: int = 0

    total_runs_scored: int = 0
    total_balls_faced: int = 0
    total_overs_played: float = 0.0
    total_runs_conceded: int = 0
    total_balls_bowled: int = 0
    total_overs_bowled: float = 0.0

    batting_run_rate: float = 0.0
    bowling_run_rate: float = 0.0
    net_run_rate: float = 0.0

    highest_score: Optional[int] = None
    lowest_score: Optional[int] = None
    biggest_win: Optional[BiggestWin] = None


# -----------------------------
# Tournament
# -----------------------------
@dataclass(frozen=True)
class TournamentState:
    teams: Tuple[str, ...] = ()
    matches: Tuple[Match, ...] = ()
    team_stats: Dict[str, CricketTeamStats] = field(default_factory=dict)
    max_overs: int = 20
    max_wickets: int = 10
    phase: TournamentPhase = TournamentPhase.SETUP
    playoff_format: PlayoffFormat = PlayoffFormat.WORLD_CUP
    qualified_teams: Tuple[str, ...] = ()
    is_generated: bool = False
    algorithm: TournamentType = TournamentType.ROUND_ROBIN
