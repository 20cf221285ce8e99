"""Execution price for a trade being (partially) closed."""

from decimal import Decimal

from perpcalc.constants import ContractsVersion
from perpcalc.logging import get_logger
from perpcalc.pnl import get_pnl_percent, get_trade_value
from perpcalc.position.sizing import calculate_closing_position_size_token
from perpcalc.price_impact.cumul_vol import get_trade_cumul_vol_price_impact_p
from perpcalc.price_impact.models import (
    PriceImpactContext,
    TradeClosingPriceImpactInput,
    TradeClosingPriceImpactResult,
)
from perpcalc.price_impact.skew import get_trade_skew_price_impact
from perpcalc.price_impact.spread import get_fixed_spread_p, get_price_after_impact

logger = get_logger(__name__)

ZERO = Decimal("0")


def get_trade_closing_price_impact(
    trade_input: TradeClosingPriceImpactInput,
    context: PriceImpactContext,
) -> TradeClosingPriceImpactResult:
    """Spread, cumulative volume and skew impact for a close.

    Volume impact is first computed assuming a losing close. If the trade
    turns out profitable at that price, it is recomputed so the protection
    close factor can apply.

    Args:
        trade_input: Trade, prices and the size being closed.
        context: Collateral price plus volume and skew snapshots.

    Returns:
        Impact breakdown and execution price. Pre-v9.2 trades close at the
        oracle price with no impact.
    """
    if trade_input.contracts_version == ContractsVersion.BEFORE_V9_2:
        return TradeClosingPriceImpactResult(
            position_size_token=ZERO,
            fixed_spread_p=ZERO,
            cumul_vol_price_impact_p=ZERO,
            skew_price_impact_p=ZERO,
            total_price_impact_p=ZERO,
            price_after_impact=trade_input.oracle_price,
            trade_value_collateral_no_factor=ZERO,
        )

    trade = trade_input.trade
    position_size_token = ZERO
    if trade.position_size_token:
        position_size_token = calculate_closing_position_size_token(
            trade_input.position_size_collateral,
            trade.position_size_token,
            trade.collateral_amount,
            trade.leverage,
        )

    fixed_spread_p = get_fixed_spread_p(trade_input.pair_spread_p, trade.long, is_open=False)

    cumul_vol_p = ZERO
    trade_value_no_factor = ZERO
    if trade_input.use_cumulative_vol_price_impact:
        position_size_usd = trade_input.position_size_collateral * context.collateral_price_usd

        cumul_vol_p = get_trade_cumul_vol_price_impact_p(
            trade.long,
            position_size_usd,
            is_pnl_positive=False,
            is_open=False,
            last_pos_increase_block=trade_input.last_pos_increase_block,
            context=context.cumul_vol,
        )
        price_with_impact = get_price_after_impact(
            trade_input.current_pair_price, fixed_spread_p + cumul_vol_p
        )
        pnl_percent = get_pnl_percent(trade.open_price, price_with_impact, trade.long, trade.leverage)
        trade_value_no_factor = get_trade_value(trade.collateral_amount, pnl_percent, ZERO)

        if pnl_percent > 0:
            logger.debug("closing_impact_recomputed_for_profit", pnl_percent=str(pnl_percent))
            cumul_vol_p = get_trade_cumul_vol_price_impact_p(
                trade.long,
                position_size_usd,
                is_pnl_positive=True,
                is_open=False,
                last_pos_increase_block=trade_input.last_pos_increase_block,
                context=context.cumul_vol,
            )

    skew_p = ZERO
    if trade_input.contracts_version >= ContractsVersion.V10:
        skew_p = get_trade_skew_price_impact(
            trade.long, False, position_size_token, context.skew
        ).total_price_impact_p

    total_p = fixed_spread_p + cumul_vol_p + skew_p

    return TradeClosingPriceImpactResult(
        position_size_token=position_size_token,
        fixed_spread_p=fixed_spread_p,
        cumul_vol_price_impact_p=cumul_vol_p,
        skew_price_impact_p=skew_p,
        total_price_impact_p=total_p,
        price_after_impact=get_price_after_impact(trade_input.current_pair_price, total_p),
        trade_value_collateral_no_factor=trade_value_no_factor,
    )
