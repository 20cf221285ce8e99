"""Liquidation threshold and liquidation price.

A trade is liquidated once its loss net of fees reaches ``threshold`` of its
collateral. The threshold interpolates linearly between a start and end
value over a leverage range; any missing parameter falls back to 90%.
"""

from dataclasses import replace
from decimal import Decimal

from perpcalc.constants import DEFAULT_LIQ_THRESHOLD_P, PERCENTAGE, ContractsVersion
from perpcalc.context import LiquidationContext, TradingFeeContext
from perpcalc.fees.trading import get_total_trade_fees_collateral, get_trade_pending_holding_fees_collateral
from perpcalc.logging import get_logger
from perpcalc.models import LiquidationParams, Trade
from perpcalc.price_impact.spread import get_spread_p

logger = get_logger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


def get_liq_pnl_threshold_p(
    params: LiquidationParams | None,
    leverage: Decimal | None,
) -> Decimal:
    """Loss threshold (fraction of collateral) at which a trade is liquidated."""
    if (
        params is None
        or leverage is None
        or params.max_liq_spread_p == 0
        or params.start_liq_threshold_p == 0
        or params.end_liq_threshold_p == 0
        or params.start_leverage == 0
        or params.end_leverage == 0
    ):
        return DEFAULT_LIQ_THRESHOLD_P

    if leverage < params.start_leverage:
        return params.start_liq_threshold_p
    if leverage > params.end_leverage:
        return params.end_liq_threshold_p
    if params.start_liq_threshold_p == params.end_liq_threshold_p:
        return params.end_liq_threshold_p

    return params.start_liq_threshold_p - (
        (leverage - params.start_leverage)
        * (params.start_liq_threshold_p - params.end_liq_threshold_p)
        / (params.end_leverage - params.start_leverage)
    )


def _closing_fee(position_size_collateral: Decimal, is_counter_trade: bool, trading: TradingFeeContext) -> Decimal:
    # Fee tiers never apply to the liquidation closing fee
    return get_total_trade_fees_collateral(
        position_size_collateral,
        is_counter_trade,
        replace(trading, trader_fee_multiplier=None),
    )


def _applies_closing_spread(context: LiquidationContext) -> bool:
    params = context.liquidation_params
    user = context.user_price_impact
    return context.trade_info.contracts_version >= ContractsVersion.V9_2 and (
        (params is not None and params.max_liq_spread_p > 0)
        or (user is not None and user.fixed_spread_p > 0)
    )


def _liquidation_price(
    long: bool,
    open_price: Decimal,
    collateral: Decimal,
    leverage: Decimal,
    total_fees_collateral: Decimal,
    context: LiquidationContext,
) -> Decimal:
    threshold = get_liq_pnl_threshold_p(context.liquidation_params, leverage)
    distance = open_price * (collateral * threshold - total_fees_collateral) / collateral / leverage

    if _applies_closing_spread(context):
        closing_spread_p = get_spread_p(
            context.pair_spread_p,
            is_liquidation=True,
            liquidation_params=context.liquidation_params,
            user_price_impact=context.user_price_impact,
        )
        distance -= open_price * closing_spread_p / PERCENTAGE

    price = open_price - distance if long else open_price + distance
    return max(price, ZERO)


def get_liquidation_price(trade: Trade, context: LiquidationContext) -> Decimal:
    """Price at which ``trade`` gets liquidated.

    Total fees are the closing fee, plus pending holding fees net of
    realized PnL (scaled by the partial close multiplier), plus any
    additional fee. They pull the liquidation price towards the open price.

    Args:
        trade: The trade to evaluate.
        context: Fee snapshots, liquidation params and per-call adjustments.

    Returns:
        Liquidation price, floored at 0.
    """
    closing_fee = _closing_fee(trade.position_size_collateral, trade.is_counter_trade, context.trading)

    holding_fees = ZERO
    total_realized_pnl = ZERO
    if not context.before_opened:
        holding_fees = get_trade_pending_holding_fees_collateral(
            trade,
            context.trade_info,
            context.trade_fees_data,
            context.current_pair_price,
            context.holding,
        ).total_fee_collateral
        total_realized_pnl = (
            context.trade_fees_data.realized_pnl_collateral
            - context.trade_fees_data.realized_trading_fees_collateral
        )

    total_fees = (
        closing_fee
        + (holding_fees - total_realized_pnl) * context.partial_close_multiplier
        + context.additional_fee_collateral
    )

    return _liquidation_price(
        trade.long,
        trade.open_price,
        trade.collateral_amount,
        trade.leverage,
        total_fees,
        context,
    )


def get_liquidation_price_after_position_update(
    existing_trade: Trade,
    new_collateral_amount: Decimal,
    new_leverage: Decimal,
    is_leverage_update: bool,
    position_size_collateral_delta: Decimal,
    pnl_to_realize_collateral: Decimal,
    context: LiquidationContext,
) -> Decimal:
    """Liquidation price once a size or leverage update has executed.

    Increases use the weighted ``new_open_price`` and the context's
    additional (opening) fee. Leverage decreases add the closing fee minus
    the PnL realized by the update. Partial closes scale holding fees by the
    share of the position that remains.
    """
    closing_fee = _closing_fee(
        new_collateral_amount * new_leverage, existing_trade.is_counter_trade, context.trading
    )
    holding_fees = get_trade_pending_holding_fees_collateral(
        existing_trade,
        context.trade_info,
        context.trade_fees_data,
        context.current_pair_price,
        context.holding,
    ).total_fee_collateral
    total_realized_pnl = (
        context.trade_fees_data.realized_pnl_collateral
        - context.trade_fees_data.realized_trading_fees_collateral
    )

    existing_size = existing_trade.position_size_collateral
    is_increase = new_collateral_amount * new_leverage > existing_size

    if is_increase:
        additional_fee = context.additional_fee_collateral
        partial_close_multiplier = ONE
    elif is_leverage_update:
        additional_fee = closing_fee - pnl_to_realize_collateral
        partial_close_multiplier = ONE
    else:
        additional_fee = ZERO
        partial_close_multiplier = (existing_size - position_size_collateral_delta) / existing_size

    logger.debug(
        "liquidation_position_update",
        is_increase=is_increase,
        is_leverage_update=is_leverage_update,
        partial_close_multiplier=str(partial_close_multiplier),
    )

    total_fees = (
        closing_fee
        + (holding_fees - total_realized_pnl) * partial_close_multiplier
        + additional_fee
    )
    open_price = existing_trade.open_price
    if is_increase and context.new_open_price:
        open_price = context.new_open_price

    return _liquidation_price(
        existing_trade.long,
        open_price,
        new_collateral_amount,
        new_leverage,
        total_fees,
        context,
    )
