"""Volume fee tiers: trailing 30-day points -> fee multiplier.

Traders earn points per day. The trailing total covers the last
TRAILING_PERIOD_DAYS days; buckets older than that expire. The multiplier is
that of the highest tier whose threshold the trailing total reaches.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal

from perpcalc.constants import FEE_MULTIPLIER_SCALE, MAX_FEE_TIERS, SECONDS_PER_DAY, TRAILING_PERIOD_DAYS
from perpcalc.fees.models import FeeTier, TraderEnrollmentStatus, TraderFeeTierInfo

ZERO = Decimal("0")


def get_current_day(timestamp: int) -> int:
    """Day number (days since epoch) of a unix timestamp."""
    return timestamp // SECONDS_PER_DAY


def get_fee_tiers_count(fee_tiers: Sequence[FeeTier]) -> int:
    """Number of configured tiers: highest index with a non-zero multiplier."""
    for i in range(min(MAX_FEE_TIERS, len(fee_tiers)), 0, -1):
        if fee_tiers[i - 1].fee_multiplier > 0:
            return i
    return 0


def get_trailing_points(
    trader: TraderFeeTierInfo,
    daily_points: Mapping[int, Decimal],
    current_day: int,
) -> Decimal:
    """Trailing points as of ``current_day``.

    Folds the last updated day's bucket into the stored total and removes
    buckets that fell out of the window. If the last update is older than the
    window, everything has expired.
    """
    if current_day <= trader.last_day_updated:
        return trader.trailing_points

    earliest_active_day = current_day - TRAILING_PERIOD_DAYS
    if trader.last_day_updated < earliest_active_day:
        return ZERO

    points = trader.trailing_points + daily_points.get(trader.last_day_updated, ZERO)

    earliest_outdated_day = trader.last_day_updated - TRAILING_PERIOD_DAYS
    expired = ZERO
    for day in range(earliest_outdated_day, earliest_active_day):
        expired += daily_points.get(day, ZERO)

    return points - expired


def compute_fee_multiplier(
    trader: TraderFeeTierInfo,
    fee_tiers: Sequence[FeeTier],
    current_day: int,
    daily_points: Mapping[int, Decimal] | None = None,
) -> Decimal:
    """Fee multiplier for a trader on ``current_day``.

    Args:
        trader: Stored trailing points and enrollment.
        fee_tiers: Tiers ordered by ascending threshold (at most 8 used).
        current_day: Day number to evaluate.
        daily_points: Per-day point buckets; defaults to ``trader.daily_points``.

    Returns:
        Tier multiplier, or 1 for excluded traders and when no tier matches.
    """
    if trader.enrollment == TraderEnrollmentStatus.EXCLUDED:
        return FEE_MULTIPLIER_SCALE

    points = get_trailing_points(
        trader,
        trader.daily_points if daily_points is None else daily_points,
        current_day,
    )

    for i in range(get_fee_tiers_count(fee_tiers), 0, -1):
        tier = fee_tiers[i - 1]
        if points >= tier.points_threshold:
            return tier.fee_multiplier

    return FEE_MULTIPLIER_SCALE


def calculate_fee_amount(fee: Decimal, fee_multiplier: Decimal | None) -> Decimal:
    """Apply a trader's fee multiplier (unset or zero leaves the fee unchanged)."""
    if fee_multiplier is None or fee_multiplier == 0:
        return fee
    return fee * fee_multiplier
