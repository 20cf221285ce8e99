"""Execution price for a trade being opened."""

from decimal import Decimal

from perpcalc.constants import ContractsVersion
from perpcalc.position.sizing import calculate_position_size_token
from perpcalc.price_impact.cumul_vol import get_trade_cumul_vol_price_impact_p
from perpcalc.price_impact.models import (
    PriceImpactContext,
    SkewPriceImpactResult,
    SkewDirection,
    TradeOpeningPriceImpactInput,
    TradeOpeningPriceImpactResult,
)
from perpcalc.price_impact.skew import get_trade_skew_price_impact
from perpcalc.price_impact.spread import get_fixed_spread_p, get_price_after_impact

ZERO = Decimal("0")

NO_SKEW_IMPACT = SkewPriceImpactResult(ZERO, ZERO, ZERO, ZERO, SkewDirection.NEUTRAL)


def get_trade_opening_price_impact(
    trade_input: TradeOpeningPriceImpactInput,
    context: PriceImpactContext,
) -> TradeOpeningPriceImpactResult:
    """Spread, cumulative volume and skew impact for an open.

    The token size used for skew impact is taken at the price after spread
    and volume impact, matching how the position is recorded on open.

    Args:
        trade_input: The trade being opened.
        context: Collateral price plus volume and skew snapshots.

    Returns:
        Impact breakdown, execution price and the percent profit the impact
        implies (negative of the total impact).
    """
    position_size_collateral = trade_input.collateral_amount * trade_input.leverage

    spread_p = get_fixed_spread_p(trade_input.pair_spread_p, trade_input.long, is_open=True)
    cumul_vol_p = get_trade_cumul_vol_price_impact_p(
        trade_input.long,
        position_size_collateral * context.collateral_price_usd,
        is_pnl_positive=False,
        is_open=True,
        last_pos_increase_block=0,
        context=context.cumul_vol,
    )

    price_before_skew = get_price_after_impact(trade_input.open_price, spread_p + cumul_vol_p)
    position_size_token = calculate_position_size_token(position_size_collateral, price_before_skew)

    if trade_input.contracts_version >= ContractsVersion.V10 and not trade_input.is_counter_trade:
        skew = get_trade_skew_price_impact(trade_input.long, True, position_size_token, context.skew)
    else:
        skew = NO_SKEW_IMPACT

    total_p = spread_p + cumul_vol_p + skew.total_price_impact_p

    return TradeOpeningPriceImpactResult(
        price_after_impact=get_price_after_impact(trade_input.open_price, total_p),
        percent_profit_p=-total_p,
        fixed_spread_p=spread_p,
        cumul_vol_price_impact_p=cumul_vol_p,
        base_skew_price_impact_p=skew.base_price_impact_p,
        trade_skew_price_impact_p=skew.trade_price_impact_p,
        total_skew_price_impact_p=skew.total_price_impact_p,
        total_price_impact_p=total_p,
        total_price_impact_p_from_market_price=spread_p + cumul_vol_p + skew.trade_price_impact_p,
        position_size_token=position_size_token,
    )
