"""Data models for funding, borrowing and fee tier calculations.

Parameter snapshots are immutable per (collateral, pair) and refreshed by the
data layer. The engine never mutates them; "advance" computations return new
values which the caller may persist.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum

from perpcalc.models import PairOiToken

ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Funding fees (v10+)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FundingFeeParams:
    """Skew-driven funding configuration for one collateral/pair."""

    skew_coefficient_per_year: Decimal
    absolute_velocity_per_year_cap: Decimal
    absolute_rate_per_second_cap: Decimal
    theta_threshold_usd: Decimal  # min |net exposure| in USD before funding moves
    funding_fees_enabled: bool = True
    apr_multiplier_enabled: bool = False


@dataclass(frozen=True)
class PairFundingFeeData:
    """Funding accumulators for one collateral/pair."""

    acc_funding_fee_long_p: Decimal
    acc_funding_fee_short_p: Decimal
    last_funding_rate_per_second_p: Decimal
    last_funding_update_ts: int


@dataclass(frozen=True)
class FundingRateProjection:
    """Average and end-of-period funding rate per second."""

    avg_funding_rate_per_second_p: Decimal
    current_funding_rate_per_second_p: Decimal


@dataclass(frozen=True)
class AprMultipliers:
    """APR multipliers applied to each side's funding delta."""

    long_multiplier: Decimal = Decimal("1")
    short_multiplier: Decimal = Decimal("1")


@dataclass(frozen=True)
class PairPendingAccFundingFees:
    """Accumulators advanced to the current timestamp."""

    acc_funding_fee_long_p: Decimal
    acc_funding_fee_short_p: Decimal
    current_funding_rate_per_second_p: Decimal


@dataclass(frozen=True)
class PairFundingFeeContext:
    """Everything needed to advance one pair's funding accumulators."""

    current_timestamp: int
    params: FundingFeeParams
    data: PairFundingFeeData
    pair_oi: PairOiToken | None = None
    net_exposure_token: Decimal = ZERO


@dataclass(frozen=True)
class TradeFundingFeeResult:
    """Funding fee owed by one trade."""

    funding_fee_collateral: Decimal
    funding_fee_p: Decimal
    current_acc_funding_fee_p: Decimal
    initial_acc_funding_fee_p: Decimal


# ---------------------------------------------------------------------------
# Borrowing fees v1 (hierarchical, pre-v10)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BorrowingPairGroup:
    """Point-in-time snapshot of a pair's membership in a borrowing group."""

    group_index: int
    block: int
    initial_acc_fee_long: Decimal = ZERO
    initial_acc_fee_short: Decimal = ZERO
    prev_group_acc_fee_long: Decimal = ZERO
    prev_group_acc_fee_short: Decimal = ZERO
    pair_acc_fee_long: Decimal = ZERO
    pair_acc_fee_short: Decimal = ZERO


@dataclass(frozen=True)
class BorrowingPair:
    """Pair-level borrowing accumulator and its group history."""

    fee_per_block: Decimal
    acc_fee_long: Decimal
    acc_fee_short: Decimal
    acc_last_updated_block: int
    fee_exponent: int = 1
    groups: tuple[BorrowingPairGroup, ...] = ()


@dataclass(frozen=True)
class BorrowingGroup:
    """Group-level borrowing accumulator."""

    oi_long: Decimal
    oi_short: Decimal
    max_oi: Decimal
    fee_per_block: Decimal
    acc_fee_long: Decimal
    acc_fee_short: Decimal
    acc_last_updated_block: int
    fee_exponent: int = 1


@dataclass(frozen=True)
class BorrowingInitialAccFees:
    """Accumulator values recorded when the trade opened."""

    acc_pair_fee: Decimal
    acc_group_fee: Decimal
    block: int


@dataclass(frozen=True)
class PendingAccFees:
    """Accumulators after applying the pending per-block delta."""

    acc_fee_long: Decimal
    acc_fee_short: Decimal
    delta: Decimal


@dataclass(frozen=True)
class GroupAccFeesDeltas:
    """One history level's contribution to a trade's borrowing fee."""

    delta_group: Decimal
    delta_pair: Decimal
    before_trade_open: bool


# ---------------------------------------------------------------------------
# Borrowing fees v2 (flat, v10+)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BorrowingFeeV2Params:
    """Borrowing rate for one collateral/pair (% per second)."""

    borrowing_rate_per_second_p: Decimal


@dataclass(frozen=True)
class PairBorrowingFeeV2Data:
    """Borrowing v2 accumulator for one collateral/pair."""

    acc_borrowing_fee_p: Decimal
    last_borrowing_update_ts: int


@dataclass(frozen=True)
class PairBorrowingFeeV2Context:
    """Pair-scoped borrowing v2 snapshot."""

    current_timestamp: int
    params: BorrowingFeeV2Params | None
    data: PairBorrowingFeeV2Data | None


@dataclass(frozen=True)
class TradeBorrowingFeeV2Input:
    """Trade values needed for a borrowing v2 fee."""

    position_size_collateral: Decimal
    open_price: Decimal
    current_pair_price: Decimal
    initial_acc_borrowing_fee_p: Decimal
    current_timestamp: int | None = None


# ---------------------------------------------------------------------------
# Fee tiers
# ---------------------------------------------------------------------------


class TraderEnrollmentStatus(IntEnum):
    """Fee tier enrollment status."""

    ENROLLED = 0
    EXCLUDED = 1


@dataclass(frozen=True)
class FeeTier:
    """Volume bracket: traders at or above the threshold pay the multiplier."""

    fee_multiplier: Decimal  # e.g. 0.975 = 2.5% discount
    points_threshold: Decimal


@dataclass(frozen=True)
class TraderFeeTierInfo:
    """Trader's stored trailing points bookkeeping."""

    last_day_updated: int
    trailing_points: Decimal
    enrollment: TraderEnrollmentStatus = TraderEnrollmentStatus.ENROLLED
    daily_points: dict[int, Decimal] = field(default_factory=dict)  # day -> points


# ---------------------------------------------------------------------------
# Trading / holding fees
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TradeHoldingFees:
    """Pending holding fees for one trade, in collateral."""

    funding_fee_collateral: Decimal = ZERO
    borrowing_fee_collateral: Decimal = ZERO  # borrowing v2
    borrowing_fee_collateral_v1: Decimal = ZERO
    total_fee_collateral: Decimal = ZERO


@dataclass(frozen=True)
class GlobalTradeFeeParams:
    """Relative shares used to split a trade fee between recipients."""

    referral_fee_p: Decimal = ZERO
    gov_fee_p: Decimal = ZERO
    trigger_order_fee_p: Decimal = ZERO
    otc_fee_p: Decimal = ZERO
    g_token_fee_p: Decimal = ZERO

    @property
    def total_p(self) -> Decimal:
        return self.referral_fee_p + self.gov_fee_p + self.trigger_order_fee_p + self.otc_fee_p + self.g_token_fee_p


@dataclass(frozen=True)
class TradeFeesBreakdown:
    """A trade fee split by recipient, in collateral."""

    referral_fee_collateral: Decimal = ZERO
    gov_fee_collateral: Decimal = ZERO
    trigger_fee_collateral: Decimal = ZERO
    otc_fee_collateral: Decimal = ZERO
    g_token_fee_collateral: Decimal = ZERO

    @property
    def total_fee_collateral(self) -> Decimal:
        return (
            self.referral_fee_collateral
            + self.gov_fee_collateral
            + self.trigger_fee_collateral
            + self.otc_fee_collateral
            + self.g_token_fee_collateral
        )


@dataclass(frozen=True)
class HoldingFeeRates:
    """Current holding fee rates in % of position per hour.

    Funding rates are signed (negative = the side earns). Borrowing is
    always a cost.
    """

    long_hourly_rate: Decimal = ZERO
    short_hourly_rate: Decimal = ZERO
    funding_fee_long_hourly_rate: Decimal = ZERO
    funding_fee_short_hourly_rate: Decimal = ZERO
    borrowing_fee_hourly_rate: Decimal = ZERO
    current_funding_rate_per_second_p: Decimal = ZERO
    current_borrowing_rate_per_second_p: Decimal = ZERO
