"""Linear skew price impact for v10+ trades.

    impact_p = (net_skew_token + signed_trade_size_token / 2) / skew_depth * 100 / 2

The trailing divider halves the impact to match the cumulative volume scale.
"""

from decimal import Decimal

from perpcalc.constants import PERCENTAGE, SKEW_PRICE_IMPACT_DIVIDER, ContractsVersion
from perpcalc.exceptions import ConfigurationError
from perpcalc.logging import get_logger
from perpcalc.models import PairOiToken
from perpcalc.position.sizing import calculate_position_size_token
from perpcalc.price_impact.models import SkewDirection, SkewPriceImpactContext, SkewPriceImpactResult
from perpcalc.price_impact.spread import increases_positive_skew

logger = get_logger(__name__)

ZERO = Decimal("0")
TWO = Decimal("2")


def get_net_skew_token(pair_oi: PairOiToken) -> Decimal:
    """Long minus short open interest, in tokens (positive = long heavy)."""
    return pair_oi.oi_long_token - pair_oi.oi_short_token


def get_net_skew_collateral(net_skew_token: Decimal, current_price: Decimal) -> Decimal:
    return net_skew_token * current_price


def get_trade_skew_direction(long: bool, is_open: bool) -> bool:
    """True when the trade increases positive skew."""
    return increases_positive_skew(long, is_open)


def _to_impact_p(skew_token: Decimal, skew_depth: Decimal) -> Decimal:
    return skew_token / skew_depth * PERCENTAGE / SKEW_PRICE_IMPACT_DIVIDER


def calculate_skew_price_impact_p(
    existing_skew_token: Decimal,
    trade_size_token: Decimal,
    skew_depth: Decimal,
    trade_increases_skew: bool,
) -> Decimal:
    """Signed skew price impact %.

    Args:
        existing_skew_token: Net skew before the trade (signed).
        trade_size_token: Trade size in tokens (unsigned).
        skew_depth: Skew depth in tokens; 0 disables skew impact.
        trade_increases_skew: Whether the trade adds to positive skew.

    Returns:
        Price impact percentage, 0 when ``skew_depth`` is 0.
    """
    if skew_depth == 0:
        return ZERO

    signed_trade_size = trade_size_token if trade_increases_skew else -trade_size_token
    return _to_impact_p(existing_skew_token + signed_trade_size / TWO, skew_depth)


def get_trade_skew_price_impact(
    long: bool,
    is_open: bool,
    position_size_token: Decimal,
    context: SkewPriceImpactContext,
) -> SkewPriceImpactResult:
    """Skew impact split into the existing-skew and own-trade components.

    Raises:
        ConfigurationError: If the skew depth or pair OI snapshot is missing.
    """
    if context.skew_depth is None or context.pair_oi_token is None:
        raise ConfigurationError("skew price impact requires skew depth and pair OI")

    net_skew_token = get_net_skew_token(context.pair_oi_token)
    increases = get_trade_skew_direction(long, is_open)

    if context.skew_depth == 0:
        base_p = trade_p = ZERO
    else:
        signed_trade_size = position_size_token if increases else -position_size_token
        base_p = _to_impact_p(net_skew_token, context.skew_depth)
        trade_p = _to_impact_p(signed_trade_size / TWO, context.skew_depth)

    total_p = base_p + trade_p
    if total_p > 0:
        direction = SkewDirection.INCREASE
    elif total_p < 0:
        direction = SkewDirection.DECREASE
    else:
        direction = SkewDirection.NEUTRAL

    return SkewPriceImpactResult(
        base_price_impact_p=base_p,
        trade_price_impact_p=trade_p,
        total_price_impact_p=total_p,
        net_skew_token=net_skew_token,
        trade_direction=direction,
    )


def get_trade_skew_price_impact_with_checks(
    long: bool,
    is_open: bool,
    position_size_collateral: Decimal,
    current_price: Decimal,
    contracts_version: ContractsVersion,
    context: SkewPriceImpactContext,
    is_counter_trade: bool = False,
) -> Decimal:
    """Total skew impact %, 0 for pre-v10 trades and counter trades."""
    if contracts_version < ContractsVersion.V10:
        return ZERO
    if is_counter_trade:
        logger.debug("skew_impact_counter_trade_exempt")
        return ZERO

    position_size_token = calculate_position_size_token(position_size_collateral, current_price)
    return get_trade_skew_price_impact(long, is_open, position_size_token, context).total_price_impact_p
