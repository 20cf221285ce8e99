"""Cumulative volume price impact over depth bands.

Recent same-direction volume (active OI from the rolling windows) has
already eaten into the book, so a trade is priced as if it started where
that volume left off:

    a = active_oi * cumulative_factor
    impact = I(a) + (I(a + size) - I(a)) / 2

where ``I`` is the depth band integral on the side of the book the trade
walks. The result is signed with the trade's skew direction and scaled by
the protection close factor.
"""

from decimal import Decimal

from perpcalc.constants import (
    DEFAULT_CUMULATIVE_FACTOR,
    DEFAULT_PROTECTION_CLOSE_FACTOR,
    PERCENTAGE,
    ContractsVersion,
)
from perpcalc.logging import get_logger
from perpcalc.price_impact.depth_bands import integrate_depth_bands
from perpcalc.price_impact.models import CumulVolContext
from perpcalc.price_impact.oi_windows import get_active_oi, get_current_oi_window_id
from perpcalc.price_impact.spread import increases_positive_skew

logger = get_logger(__name__)

ZERO = Decimal("0")
TWO = Decimal("2")


def is_protection_close_factor_active(
    is_open: bool,
    is_pnl_positive: bool,
    created_block: int,
    context: CumulVolContext,
) -> bool:
    """Whether a profitable close still falls inside the protection window."""
    factor = context.pair_factor
    return (
        is_pnl_positive
        and not is_open
        and factor.protection_close_factor > 0
        and context.current_block <= created_block + factor.protection_close_factor_blocks
        and not context.protection_close_factor_whitelist
    )


def get_protection_close_factor(
    is_open: bool,
    is_pnl_positive: bool,
    created_block: int,
    context: CumulVolContext,
) -> Decimal:
    """Protection close factor times the user's impact multiplier (if set)."""
    if context.contracts_version != ContractsVersion.BEFORE_V9_2 and is_protection_close_factor_active(
        is_open, is_pnl_positive, created_block, context
    ):
        factor = context.pair_factor.protection_close_factor
    else:
        factor = DEFAULT_PROTECTION_CLOSE_FACTOR

    user = context.user_price_impact
    if user is not None and user.cumul_vol_price_impact_multiplier > 0:
        factor *= user.cumul_vol_price_impact_multiplier
    return factor


def get_cumulative_factor(context: CumulVolContext) -> Decimal:
    cumulative_factor = context.pair_factor.cumulative_factor
    return cumulative_factor if cumulative_factor != 0 else DEFAULT_CUMULATIVE_FACTOR


def get_trade_cumul_vol_price_impact_p(
    long: bool,
    trade_size_usd: Decimal,
    is_pnl_positive: bool,
    is_open: bool,
    last_pos_increase_block: int,
    context: CumulVolContext,
) -> Decimal:
    """Signed cumulative volume price impact %, excluding the fixed spread.

    Args:
        long: Trade direction.
        trade_size_usd: Size being opened or closed, in USD.
        is_pnl_positive: Whether the close is profitable (closes only).
        is_open: Opening (True) or closing (False).
        last_pos_increase_block: Fallback for the trade's created block.
        context: Depth bands, OI windows and pair factors.

    Returns:
        Impact percentage; 0 when exempt or when the book side has no depth.
    """
    factor = context.pair_factor
    created_block = context.created_block or last_pos_increase_block

    if not is_open and context.contracts_version == ContractsVersion.BEFORE_V9_2:
        return ZERO
    if is_open and factor.exempt_on_open:
        logger.debug("cumul_vol_exempt_on_open")
        return ZERO
    if (
        not is_open
        and factor.exempt_after_protection_close_factor
        and not is_protection_close_factor_active(is_open, is_pnl_positive, created_block, context)
    ):
        logger.debug("cumul_vol_exempt_after_protection_close_factor")
        return ZERO

    increasing = increases_positive_skew(long, is_open)
    depth = context.pair_depth_bands
    bands = None if depth is None else (depth.above if increasing else depth.below)
    if bands is None or context.depth_bands_mapping is None or bands.total_depth_usd == 0:
        return ZERO

    active_oi = ZERO
    settings = context.oi_windows_settings
    # A zero window duration means no windows are tracked
    if settings is not None and settings.windows_duration > 0:
        active_oi = get_active_oi(
            get_current_oi_window_id(settings, context.current_timestamp),
            settings.windows_count,
            context.oi_windows,
            long if is_open else not long,
        )

    sign = 1 if increasing else -1
    signed_active = sign * active_oi * get_cumulative_factor(context)
    signed_combined = signed_active + sign * trade_size_usd

    active_impact = integrate_depth_bands(abs(signed_active), bands, context.depth_bands_mapping)
    combined_impact = integrate_depth_bands(abs(signed_combined), bands, context.depth_bands_mapping)
    impact_p = (active_impact + (combined_impact - active_impact) / TWO) * PERCENTAGE

    if signed_combined < 0:
        impact_p = -impact_p

    return impact_p * get_protection_close_factor(is_open, is_pnl_positive, created_block, context)
