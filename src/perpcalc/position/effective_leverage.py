"""Effective leverage of a trade once unrealized PnL is taken into account.

Effective leverage rises as the trade loses and falls as it gains:

    effective_collateral = collateral + unrealized_pnl - opening_fees
    effective_leverage = position_size / effective_collateral

Unrealized PnL is measured at the closing execution price (spread, volume and
skew impact included), the same price a close would receive.
"""

from dataclasses import dataclass, replace
from decimal import Decimal

from perpcalc.logging import get_logger
from perpcalc.models import Trade, TradeInfo
from perpcalc.position.sizing import calculate_position_size_token
from perpcalc.price_impact.closing import get_trade_closing_price_impact
from perpcalc.price_impact.models import PriceImpactContext, TradeClosingPriceImpactInput

logger = get_logger(__name__)

ZERO = Decimal("0")
INFINITE_LEVERAGE = Decimal("Infinity")


@dataclass(frozen=True)
class TradeEffectiveLeverageInput:
    """A trade and the position values it would have after an update."""

    trade: Trade
    new_open_price: Decimal
    new_collateral_amount: Decimal
    new_leverage: Decimal
    current_pair_price: Decimal
    opening_fees_collateral: Decimal = ZERO


@dataclass(frozen=True)
class TradeEffectiveLeverageContext:
    price_impact: PriceImpactContext
    trade_info: TradeInfo
    pair_spread_p: Decimal = ZERO


@dataclass(frozen=True)
class TradeEffectiveLeverageResult:
    effective_leverage: Decimal
    unrealized_pnl: Decimal
    effective_collateral: Decimal
    position_size: Decimal


def get_trade_new_effective_leverage(
    leverage_input: TradeEffectiveLeverageInput,
    context: TradeEffectiveLeverageContext,
) -> TradeEffectiveLeverageResult:
    """Effective leverage of a trade with new open price, collateral and leverage.

    A trade without a recorded token size is sized at the new open price.

    Args:
        leverage_input: Trade and its updated position values.
        context: Closing price impact snapshots and trade bookkeeping.

    Returns:
        Effective leverage and its components. Leverage is infinite when the
        effective collateral is zero or negative.
    """
    trade = leverage_input.trade
    new_position_size = leverage_input.new_collateral_amount * leverage_input.new_leverage

    position_size_token = trade.position_size_token
    if position_size_token == 0:
        position_size_token = calculate_position_size_token(new_position_size, leverage_input.new_open_price)

    updated_trade = replace(
        trade,
        open_price=leverage_input.new_open_price,
        collateral_amount=leverage_input.new_collateral_amount,
        leverage=leverage_input.new_leverage,
        position_size_token=position_size_token,
    )
    closing = get_trade_closing_price_impact(
        TradeClosingPriceImpactInput(
            trade=updated_trade,
            oracle_price=leverage_input.current_pair_price,
            current_pair_price=leverage_input.current_pair_price,
            position_size_collateral=new_position_size,
            pair_spread_p=context.pair_spread_p,
            contracts_version=context.trade_info.contracts_version,
            last_pos_increase_block=context.trade_info.last_pos_increase_block,
        ),
        context.price_impact,
    )

    if trade.long:
        price_diff = closing.price_after_impact - leverage_input.new_open_price
    else:
        price_diff = leverage_input.new_open_price - closing.price_after_impact
    unrealized_pnl = price_diff * closing.position_size_token

    effective_collateral = (
        leverage_input.new_collateral_amount + unrealized_pnl - leverage_input.opening_fees_collateral
    )
    if effective_collateral > 0:
        effective_leverage = new_position_size / effective_collateral
    else:
        logger.debug("effective_collateral_exhausted", effective_collateral=str(effective_collateral))
        effective_leverage = INFINITE_LEVERAGE

    return TradeEffectiveLeverageResult(
        effective_leverage=effective_leverage,
        unrealized_pnl=unrealized_pnl,
        effective_collateral=effective_collateral,
        position_size=new_position_size,
    )


def get_trade_effective_leverage(
    trade: Trade,
    current_pair_price: Decimal,
    context: TradeEffectiveLeverageContext,
) -> TradeEffectiveLeverageResult:
    """Effective leverage of an existing trade (no opening fees)."""
    return get_trade_new_effective_leverage(
        TradeEffectiveLeverageInput(
            trade=trade,
            new_open_price=trade.open_price,
            new_collateral_amount=trade.collateral_amount,
            new_leverage=trade.leverage,
            current_pair_price=current_pair_price,
        ),
        context,
    )
