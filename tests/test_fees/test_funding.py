"""Tests for skew-driven funding fees.

Velocity of ONE_YEAR_SECONDS per year moves the rate by exactly 1 per second,
which keeps the expected values exact.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from perpcalc.constants import ONE_YEAR_SECONDS, ContractsVersion
from perpcalc.exceptions import ArithmeticInvariantError, MissingDataError
from perpcalc.fees.funding import (
    get_avg_funding_rate_per_second_p,
    get_current_funding_velocity_per_year,
    get_long_short_apr_multiplier,
    get_pair_pending_acc_funding_fees,
    get_seconds_to_reach_zero_rate,
    get_trade_funding_fees,
    get_trade_funding_fees_collateral,
    get_trade_funding_fees_collateral_simple,
)
from perpcalc.fees.models import FundingFeeParams, PairFundingFeeContext, PairFundingFeeData
from perpcalc.models import PairOiToken, Trade
from perpcalc.pairs import PairMap

ONE_PER_SECOND = Decimal(ONE_YEAR_SECONDS)


@pytest.fixture
def params() -> FundingFeeParams:
    return FundingFeeParams(
        skew_coefficient_per_year=ONE_PER_SECOND,
        absolute_velocity_per_year_cap=Decimal("1000000000"),
        absolute_rate_per_second_cap=Decimal("100"),
        theta_threshold_usd=Decimal("0"),
    )


@pytest.fixture
def data() -> PairFundingFeeData:
    return PairFundingFeeData(
        acc_funding_fee_long_p=Decimal("10"),
        acc_funding_fee_short_p=Decimal("-10"),
        last_funding_rate_per_second_p=Decimal("0.001"),
        last_funding_update_ts=1000,
    )


class TestVelocity:
    """Test get_current_funding_velocity_per_year."""

    def test_zero_exposure(self) -> None:
        velocity = get_current_funding_velocity_per_year(
            Decimal("0"), Decimal("0"), Decimal("1"), Decimal("10"), Decimal("0")
        )
        assert velocity == Decimal("0")

    def test_below_theta_threshold(self) -> None:
        """Exposure worth less than theta does not move the rate."""
        velocity = get_current_funding_velocity_per_year(
            Decimal("5"), Decimal("499"), Decimal("1"), Decimal("10"), Decimal("500")
        )
        assert velocity == Decimal("0")

    def test_uncapped_positive(self) -> None:
        velocity = get_current_funding_velocity_per_year(
            Decimal("5"), Decimal("5000"), Decimal("0.5"), Decimal("10"), Decimal("500")
        )
        assert velocity == Decimal("2.5")

    def test_capped_and_signed(self) -> None:
        """Short-heavy exposure yields a negative velocity capped in magnitude."""
        velocity = get_current_funding_velocity_per_year(
            Decimal("-100"), Decimal("-100000"), Decimal("1"), Decimal("10"), Decimal("0")
        )
        assert velocity == Decimal("-10")


class TestAvgFundingRate:
    """Test get_avg_funding_rate_per_second_p."""

    def test_linear_ramp_below_cap(self) -> None:
        projection = get_avg_funding_rate_per_second_p(
            Decimal("0"), Decimal("100"), ONE_PER_SECOND, 10
        )
        assert projection.current_funding_rate_per_second_p == Decimal("10")
        assert projection.avg_funding_rate_per_second_p == Decimal("5")

    def test_ramp_then_flat_at_cap(self) -> None:
        """Reaches cap 4 after 4s of a 10s period: avg = (2*4 + 4*6) / 10."""
        projection = get_avg_funding_rate_per_second_p(
            Decimal("0"), Decimal("4"), ONE_PER_SECOND, 10
        )
        assert projection.current_funding_rate_per_second_p == Decimal("4")
        assert projection.avg_funding_rate_per_second_p == Decimal("3.2")

    def test_already_at_cap(self) -> None:
        projection = get_avg_funding_rate_per_second_p(
            Decimal("-4"), Decimal("4"), -ONE_PER_SECOND, 10
        )
        assert projection.avg_funding_rate_per_second_p == Decimal("-4")
        assert projection.current_funding_rate_per_second_p == Decimal("-4")

    def test_zero_cap_zeroes_rate(self) -> None:
        projection = get_avg_funding_rate_per_second_p(
            Decimal("3"), Decimal("0"), ONE_PER_SECOND, 10
        )
        assert projection.avg_funding_rate_per_second_p == Decimal("0")
        assert projection.current_funding_rate_per_second_p == Decimal("0")

    def test_no_velocity_keeps_rate(self) -> None:
        projection = get_avg_funding_rate_per_second_p(
            Decimal("0.5"), Decimal("4"), Decimal("0"), 10
        )
        assert projection.avg_funding_rate_per_second_p == Decimal("0.5")
        assert projection.current_funding_rate_per_second_p == Decimal("0.5")

    @pytest.mark.parametrize("elapsed", [0, 1, 3, 7, 60, 3600, 86400])
    @pytest.mark.parametrize("velocity_sign", [1, -1])
    def test_rate_never_exceeds_cap(self, elapsed: int, velocity_sign: int) -> None:
        cap = Decimal("5")
        projection = get_avg_funding_rate_per_second_p(
            Decimal("2") * velocity_sign, cap, ONE_PER_SECOND * velocity_sign, elapsed
        )
        assert abs(projection.current_funding_rate_per_second_p) <= cap
        assert abs(projection.avg_funding_rate_per_second_p) <= cap


class TestSecondsToZeroRate:
    """Test get_seconds_to_reach_zero_rate."""

    def test_moving_towards_zero(self) -> None:
        assert get_seconds_to_reach_zero_rate(Decimal("-2"), ONE_PER_SECOND) == Decimal("2")

    def test_zero_velocity_raises(self) -> None:
        with pytest.raises(ArithmeticInvariantError):
            get_seconds_to_reach_zero_rate(Decimal("1"), Decimal("0"))

    def test_moving_away_from_zero_raises(self) -> None:
        with pytest.raises(ArithmeticInvariantError):
            get_seconds_to_reach_zero_rate(Decimal("1"), ONE_PER_SECOND)


class TestAprMultiplier:
    """Test get_long_short_apr_multiplier."""

    def test_disabled(self) -> None:
        multipliers = get_long_short_apr_multiplier(Decimal("1"), Decimal("300"), Decimal("100"), False)
        assert multipliers.long_multiplier == Decimal("1")
        assert multipliers.short_multiplier == Decimal("1")

    def test_shorts_earn_on_positive_rate(self) -> None:
        multipliers = get_long_short_apr_multiplier(Decimal("1"), Decimal("300"), Decimal("100"), True)
        assert multipliers.long_multiplier == Decimal("1")
        assert multipliers.short_multiplier == Decimal("3")

    def test_longs_earn_on_negative_rate(self) -> None:
        multipliers = get_long_short_apr_multiplier(Decimal("-1"), Decimal("100"), Decimal("400"), True)
        assert multipliers.long_multiplier == Decimal("4")
        assert multipliers.short_multiplier == Decimal("1")

    def test_capped_at_100x(self) -> None:
        multipliers = get_long_short_apr_multiplier(Decimal("1"), Decimal("1000"), Decimal("1"), True)
        assert multipliers.short_multiplier == Decimal("100")


class TestPairPendingAccFundingFees:
    """Test get_pair_pending_acc_funding_fees."""

    @pytest.mark.parametrize("now", [1000, 1001, 5000, 10_000_000])
    def test_disabled_never_changes_accumulators(self, params: FundingFeeParams, data: PairFundingFeeData, now: int) -> None:
        disabled = replace(params, funding_fees_enabled=False)
        pending = get_pair_pending_acc_funding_fees(
            disabled, data, Decimal("2"), PairOiToken(Decimal("5"), Decimal("1")), Decimal("4"), Decimal("8"), now
        )
        assert pending.acc_funding_fee_long_p == data.acc_funding_fee_long_p
        assert pending.acc_funding_fee_short_p == data.acc_funding_fee_short_p
        assert pending.current_funding_rate_per_second_p == data.last_funding_rate_per_second_p

    def test_constant_rate_moves_sides_in_opposite_directions(
        self, params: FundingFeeParams, data: PairFundingFeeData
    ) -> None:
        """No exposure: rate stays 0.001; delta = 0.001 * 100s * price 2 = 0.2."""
        pending = get_pair_pending_acc_funding_fees(
            params, data, Decimal("2"), PairOiToken(Decimal("1"), Decimal("1")), Decimal("0"), Decimal("0"), 1100
        )
        assert pending.acc_funding_fee_long_p == Decimal("10.2")
        assert pending.acc_funding_fee_short_p == Decimal("-10.2")
        assert pending.current_funding_rate_per_second_p == Decimal("0.001")

    def test_timestamp_before_last_update_is_no_op(self, params: FundingFeeParams, data: PairFundingFeeData) -> None:
        pending = get_pair_pending_acc_funding_fees(
            params, data, Decimal("2"), PairOiToken(Decimal("1"), Decimal("1")), Decimal("0"), Decimal("0"), 900
        )
        assert pending.acc_funding_fee_long_p == Decimal("10")
        assert pending.acc_funding_fee_short_p == Decimal("-10")

    def test_sign_change_splits_period(self, params: FundingFeeParams) -> None:
        """Rate goes -2 -> 2 over 4s, crossing zero at 2s.

        First half: avg -1, delta -2, longs earn 2x (200/100).
        Second half: avg 1, delta 2, shorts earn 0.5x (100/200).
        """
        apr_params = replace(params, apr_multiplier_enabled=True)
        data = PairFundingFeeData(Decimal("0"), Decimal("0"), Decimal("-2"), 0)

        pending = get_pair_pending_acc_funding_fees(
            apr_params, data, Decimal("1"), PairOiToken(Decimal("100"), Decimal("200")), Decimal("1"), Decimal("1"), 4
        )

        assert pending.current_funding_rate_per_second_p == Decimal("2")
        assert pending.acc_funding_fee_long_p == Decimal("-2")
        assert pending.acc_funding_fee_short_p == Decimal("1")

    def test_sign_change_without_apr_uses_average(self, params: FundingFeeParams) -> None:
        """Symmetric crossing averages to 0, so nothing accrues."""
        data = PairFundingFeeData(Decimal("0"), Decimal("0"), Decimal("-2"), 0)
        pending = get_pair_pending_acc_funding_fees(
            params, data, Decimal("1"), PairOiToken(Decimal("100"), Decimal("200")), Decimal("1"), Decimal("1"), 4
        )
        assert pending.acc_funding_fee_long_p == Decimal("0")
        assert pending.acc_funding_fee_short_p == Decimal("0")


class TestTradeFundingFees:
    """Test per-trade funding fee helpers."""

    def test_simple_fee(self, long_trade: Trade) -> None:
        """10000 size * 0.5 delta / 100 open / 100."""
        fee = get_trade_funding_fees_collateral_simple(
            long_trade, ContractsVersion.V10, Decimal("0"), Decimal("0.5")
        )
        assert fee == Decimal("0.5")

    def test_pre_v10_trades_pay_nothing(self, long_trade: Trade) -> None:
        fee = get_trade_funding_fees_collateral_simple(
            long_trade, ContractsVersion.V9_2, Decimal("0"), Decimal("0.5")
        )
        assert fee == Decimal("0")

    def test_fee_from_context_uses_trade_side(
        self, short_trade: Trade, params: FundingFeeParams, data: PairFundingFeeData
    ) -> None:
        """Shorts read the short accumulator: -10.2 - (-10) = -0.2 (they earn)."""
        context = PairFundingFeeContext(current_timestamp=1100, params=params, data=data)
        fee = get_trade_funding_fees_collateral(
            short_trade, ContractsVersion.V10, Decimal("-10"), Decimal("2"), context
        )
        assert fee == Decimal("-0.2")

    def test_breakdown_for_keyed_pair(
        self, long_trade: Trade, params: FundingFeeParams, data: PairFundingFeeData
    ) -> None:
        result = get_trade_funding_fees(
            long_trade,
            ContractsVersion.V10,
            Decimal("10"),
            Decimal("2"),
            PairOiToken(Decimal("1"), Decimal("1")),
            Decimal("0"),
            Decimal("0"),
            1100,
            PairMap({(1, 1): params}),
            PairMap({(1, 1): data}),
        )
        assert result.current_acc_funding_fee_p == Decimal("10.2")
        assert result.funding_fee_collateral == Decimal("0.2")
        assert result.funding_fee_p == Decimal("0.02")

    def test_missing_pair_raises(self, long_trade: Trade) -> None:
        with pytest.raises(MissingDataError):
            get_trade_funding_fees(
                long_trade,
                ContractsVersion.V10,
                Decimal("0"),
                Decimal("2"),
                PairOiToken(Decimal("1"), Decimal("1")),
                Decimal("0"),
                Decimal("0"),
                1100,
                PairMap(),
                PairMap(),
            )
