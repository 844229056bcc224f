"""
Unit tests for overs notation, run rates and NRR formatting.
"""
import math

import pytest

from tourney_api.nrr_math import (
    balls_to_overs,
    balls_to_overs_float,
    calculate_run_rate,
    display_cricket_overs,
    effective_overs,
    format_cricket_overs,
    format_nrr,
    is_valid_cricket_overs,
    net_run_rate,
    overs_to_balls,
    run_rate,
)


class TestOversToBalls:
    """Cricket notation -> legal deliveries."""

    def test_string_notation(self):
        assert overs_to_balls("19.4") == 118
        assert overs_to_balls("20.0") == 120
        assert overs_to_balls("20") == 120
        assert overs_to_balls(" 7.2 ") == 44

    def test_numeric_notation(self):
        assert overs_to_balls(19.4) == 118
        assert overs_to_balls(20) == 120
        assert overs_to_balls(0.5) == 5
        assert overs_to_balls(0) == 0

    @pytest.mark.parametrize("bad", [19.6, "19.6", "19.45", 3.25, -1, "-2.0", float("nan"), float("inf")])
    def test_rejects_illegal_notation(self, bad):
        with pytest.raises(ValueError):
            overs_to_balls(bad)

    def test_rejects_bool_and_none(self):
        with pytest.raises(ValueError):
            overs_to_balls(True)
        with pytest.raises(ValueError):
            overs_to_balls(None)

    def test_round_trips_every_legal_value(self):
        """Every overs.balls value with balls 0-5 survives the trip."""
        for complete in range(0, 51):
            for balls in range(0, 6):
                notation = complete + balls / 10
                total = complete * 6 + balls
                assert overs_to_balls(notation) == total
                assert balls_to_overs(total) == round(notation, 1)


class TestBallsToOvers:

    def test_cricket_notation(self):
        assert balls_to_overs(118) == 19.4
        assert balls_to_overs(31) == 5.1
        assert balls_to_overs(120) == 20.0
        assert balls_to_overs(0) == 0.0

    def test_true_decimal_overs(self):
        assert balls_to_overs_float(31) == pytest.approx(5.1667, abs=1e-4)
        assert balls_to_overs_float(120) == 20.0
        assert balls_to_overs_float(0) == 0.0


class TestCricketOversHelpers:

    def test_is_valid_cricket_overs(self):
        assert is_valid_cricket_overs(19.5)
        assert not is_valid_cricket_overs(19.6)
        assert not is_valid_cricket_overs("abc")

    def test_format_cricket_overs_carries_extra_balls(self):
        assert format_cricket_overs(3.7) == 4.1
        assert format_cricket_overs(3.6) == 4.0
        assert format_cricket_overs(3.4) == 3.4

    def test_display(self):
        assert display_cricket_overs(3.7) == "4.1"
        assert display_cricket_overs(20) == "20.0"


class TestRunRates:

    def test_calculate_run_rate(self):
        assert calculate_run_rate(150, 20) == 7.5
        assert calculate_run_rate(100, 0) == 0.0

    def test_calculate_run_rate_rounds_to_three_places(self):
        assert calculate_run_rate(100, 3) == 33.333

    def test_run_rate_from_balls(self):
        assert run_rate(150, 120) == 7.5
        assert run_rate(10, 0) == 0.0

    def test_net_run_rate_example(self):
        """150 off 20 overs, 140 conceded off 20 overs -> +0.500."""
        assert net_run_rate(150, 20.0, 140, 20.0) == 0.5

    def test_net_run_rate_zero_overs_side_is_zero(self):
        assert net_run_rate(0, 0.0, 140, 20.0) == -7.0
        assert net_run_rate(150, 20.0, 0, 0.0) == 7.5


class TestEffectiveOvers:

    def test_all_out_inside_quota_charged_full_quota(self):
        """Bowled out in 18.2 of 20 overs counts as 20, not 18.33."""
        assert effective_overs(overs_to_balls(18.2), all_out=True, quota_overs=20) == 20.0

    def test_not_all_out_uses_actual_balls(self):
        assert effective_overs(110, all_out=False, quota_overs=20) == pytest.approx(18.333, abs=1e-3)

    def test_all_out_on_last_ball(self):
        assert effective_overs(120, all_out=True, quota_overs=20) == 20.0

    def test_negative_balls_rejected(self):
        with pytest.raises(ValueError):
            effective_overs(-1, all_out=False, quota_overs=20)


class TestFormatNrr:

    def test_positive_gets_sign_and_half_up_rounding(self):
        assert format_nrr(1.2345) == "+1.235"
        assert format_nrr(2) == "+2.000"

    def test_negative(self):
        assert format_nrr(-0.5) == "-0.500"
        assert format_nrr(-1.2344) == "-1.234"

    def test_zero_and_negative_zero(self):
        assert format_nrr(0) == "0.000"
        assert format_nrr(-0.0) == "0.000"
        assert format_nrr(-0.0004) == "0.000"

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            format_nrr(math.nan)
