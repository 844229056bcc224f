# tourney_api/nrr_math.py
from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

BALLS_PER_OVER = 6
OversLike = Union[str, int, float]

_EPS = 1e-6


def overs_to_balls(overs: OversLike) -> int:
    """
    Converts cricket overs notation to balls.

    Supported inputs:
    - "20.0", "19.4", "7.2" (string overs notation)
    - 20 (int overs)
    - 19.4 (float), read digit-wise: the first decimal digit is the ball count

    Rule: ".x" means x balls (0-5). Example: 19.4 = 19*6 + 4 = 118 balls.
    """
    if overs is None:
        raise ValueError("Overs cannot be None")
    if isinstance(overs, bool):
        raise ValueError(f"Invalid overs: {overs}")

    if isinstance(overs, str):
        return _string_overs_to_balls(overs)

    value = float(overs)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Invalid overs: {overs}")

    ov_i = math.floor(value)
    ball_digit = (value - ov_i) * 10
    balls_i = round(ball_digit)
    if abs(ball_digit - balls_i) > _EPS:
        raise ValueError(f"Invalid overs format: {overs} (only one decimal digit allowed)")
    if balls_i > 5:
        raise ValueError(f"Invalid overs format: {overs} (balls part must be 0-5)")

    return int(ov_i) * BALLS_PER_OVER + balls_i


def _string_overs_to_balls(raw: str) -> int:
    s = raw.strip()
    if not s:
        raise ValueError("Overs cannot be empty")

    # Allow plain integer overs "20"
    if "." not in s:
        ov_i = int(s)
        if ov_i < 0:
            raise ValueError(f"Invalid overs: {raw}")
        return ov_i * BALLS_PER_OVER

    ov_part, ball_part = s.split(".", 1)
    ov_i = int(ov_part) if ov_part else 0

    ball_part = ball_part.strip()
    if ball_part == "":
        balls_i = 0
    elif len(ball_part) != 1:
        raise ValueError(f"Invalid overs format: {raw} (only one decimal digit allowed)")
    else:
        balls_i = int(ball_part)

    if ov_i < 0:
        raise ValueError(f"Invalid overs: {raw}")
    if balls_i < 0 or balls_i > 5:
        raise ValueError(f"Invalid overs format: {raw} (balls part must be 0-5)")

    return ov_i * BALLS_PER_OVER + balls_i


def balls_to_overs(balls: int) -> float:
    """Balls -> cricket notation (31 balls = 5.1 overs)."""
    if balls <= 0:
        return 0.0
    complete, remaining = divmod(int(balls), BALLS_PER_OVER)
    return round(complete + remaining / 10, 1)


def balls_to_overs_float(balls: int) -> float:
    """Balls -> true decimal overs (31 balls = 5.1666...), the unit run rates divide by."""
    if balls <= 0:
        return 0.0
    return balls / float(BALLS_PER_OVER)


def is_valid_cricket_overs(overs: OversLike) -> bool:
    try:
        overs_to_balls(overs)
    except (TypeError, ValueError):
        return False
    return True


def format_cricket_overs(value: float) -> float:
    """
    Normalizes sloppy overs input: 3.7 -> 4.1, 3.6 -> 4.0.
    """
    complete = math.floor(value)
    balls = round((value - complete) * 10)
    extra, remaining = divmod(balls, BALLS_PER_OVER)
    return round(complete + extra + remaining / 10, 1)


def display_cricket_overs(value: float) -> str:
    return f"{format_cricket_overs(value):.1f}"


def run_rate(runs: int, balls: int) -> float:
    overs = balls_to_overs_float(balls)
    if overs == 0.0:
        return 0.0
    return runs / overs


def calculate_run_rate(runs: int, overs: float) -> float:
    """Runs per (decimal) over, rounded to 3 places; 0 when no overs were bowled."""
    if overs == 0:
        return 0.0
    return round(runs / overs, 3)


def effective_overs(balls: int, *, all_out: bool, quota_overs: int) -> float:
    """
    NRR rule: a side bowled out before its quota is charged the full quota.
    Otherwise the actual balls faced count.

    Returns decimal overs (18.2 all out in a 20-over match -> 20.0).
    """
    if balls < 0:
        raise ValueError("Balls cannot be negative")
    quota_balls = int(quota_overs) * BALLS_PER_OVER
    if all_out and balls < quota_balls:
        return float(quota_overs)
    return balls_to_overs_float(balls)


def net_run_rate(
    runs_scored: int,
    overs_played: float,
    runs_conceded: int,
    overs_bowled: float,
) -> float:
    """
    Net Run Rate = (runs scored / overs faced) - (runs conceded / overs bowled)
    Each side is 0 when its overs total is 0.
    """
    batting = runs_scored / overs_played if overs_played > 0 else 0.0
    bowling = runs_conceded / overs_bowled if overs_bowled > 0 else 0.0
    return round(batting - bowling, 3)


def format_nrr(nrr: float) -> str:
    """
    Signed, 3 decimal places, half-up: 1.2345 -> "+1.235", -0.5 -> "-0.500".
    Zero (including -0.0) is "0.000".
    """
    if not math.isfinite(nrr):
        raise ValueError(f"NRR must be finite: {nrr}")

    q = Decimal(str(nrr)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    if q == 0:
        return "0.000"
    if q > 0:
        return f"+{q}"
    return f"-{abs(q)}"
