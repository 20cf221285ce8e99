"""Trade PnL, trade value and the full PnL breakdown shown for open trades."""

from dataclasses import dataclass
from decimal import Decimal

from perpcalc.constants import PERCENTAGE
from perpcalc.context import PnlContext
from perpcalc.fees.trading import get_total_trade_fees_collateral, get_trade_pending_holding_fees_collateral
from perpcalc.liquidation import get_liq_pnl_threshold_p
from perpcalc.logging import get_logger
from perpcalc.models import Trade, TradeFeesData

logger = get_logger(__name__)

ZERO = Decimal("0")
MAX_LOSS_P = Decimal("-100")


@dataclass(frozen=True)
class RealizedPnl:
    realized_pnl_collateral: Decimal
    realized_trading_fees_collateral: Decimal
    total_realized_pnl_collateral: Decimal


@dataclass(frozen=True)
class PriceImpactPnl:
    percent: Decimal
    collateral: Decimal


@dataclass(frozen=True)
class PnlFees:
    borrowing_v1: Decimal
    borrowing_v2: Decimal
    funding: Decimal
    closing: Decimal
    total: Decimal


@dataclass(frozen=True)
class ComprehensivePnl:
    """PnL at market price (raw) and at execution price (impact)."""

    pnl_percent: Decimal
    pnl_collateral: Decimal
    impact_pnl_percent: Decimal
    impact_pnl_collateral: Decimal
    price_impact: PriceImpactPnl
    trade_value: Decimal
    u_pnl_collateral: Decimal  # after holding fees, before closing fee
    u_pnl_percent: Decimal
    realized_pnl_collateral: Decimal  # after all fees, at execution price
    realized_pnl_percent: Decimal
    fees: PnlFees
    is_liquidated: bool
    is_profitable: bool


def get_trade_realized_pnl_collateral(trade_fees_data: TradeFeesData) -> RealizedPnl:
    realized = trade_fees_data.realized_pnl_collateral
    realized_fees = trade_fees_data.realized_trading_fees_collateral
    return RealizedPnl(realized, realized_fees, realized - realized_fees)


def get_pnl_percent(
    open_price: Decimal,
    current_price: Decimal,
    long: bool,
    leverage: Decimal,
) -> Decimal:
    """Leveraged PnL %, floored at -100 (and -100 for a zero open price)."""
    if open_price == 0:
        return MAX_LOSS_P

    price_diff = current_price - open_price if long else open_price - current_price
    return max(price_diff / open_price * PERCENTAGE * leverage, MAX_LOSS_P)


def get_trade_value(collateral: Decimal, pnl_percent: Decimal, total_fees: Decimal) -> Decimal:
    """Collateral returned on close, floored at 0."""
    return max(ZERO, collateral + collateral * pnl_percent / PERCENTAGE - total_fees)


def get_comprehensive_pnl(
    trade: Trade,
    market_price: Decimal,
    execution_price: Decimal,
    context: PnlContext,
) -> ComprehensivePnl:
    """Full PnL breakdown for an open trade.

    Args:
        trade: The open trade.
        market_price: Current price without price impact.
        execution_price: Price after spread, volume and skew impact.
        context: Fee snapshots and liquidation params.

    Returns:
        Raw and impact-adjusted PnL, fees, trade value and status flags.
        Liquidated trades (raw PnL at or past the threshold) report -100%.
    """
    raw_pnl_percent = get_pnl_percent(trade.open_price, market_price, trade.long, trade.leverage)
    impact_pnl_percent = get_pnl_percent(trade.open_price, execution_price, trade.long, trade.leverage)

    holding = get_trade_pending_holding_fees_collateral(
        trade,
        context.trade_info,
        context.trade_fees_data,
        execution_price,
        context.holding,
    )
    closing_fee = get_total_trade_fees_collateral(
        trade.position_size_collateral,
        trade.is_counter_trade,
        context.trading,
    )
    total_holding_fees = holding.total_fee_collateral
    total_fees = total_holding_fees + closing_fee

    liq_threshold_p = -get_liq_pnl_threshold_p(context.liquidation_params, trade.leverage) * PERCENTAGE
    is_liquidated = raw_pnl_percent <= liq_threshold_p
    if is_liquidated:
        logger.debug("pnl_trade_liquidated", pair_index=trade.pair_index, index=trade.index)
        raw_pnl_percent = MAX_LOSS_P
        impact_pnl_percent = MAX_LOSS_P

    total_realized = get_trade_realized_pnl_collateral(context.trade_fees_data).total_realized_pnl_collateral
    collateral = trade.collateral_amount

    raw_pnl_collateral = collateral * raw_pnl_percent / PERCENTAGE
    impact_pnl_collateral = collateral * impact_pnl_percent / PERCENTAGE

    u_pnl_collateral = raw_pnl_collateral - total_holding_fees + total_realized
    realized_pnl_collateral = impact_pnl_collateral - total_fees + total_realized

    return ComprehensivePnl(
        pnl_percent=raw_pnl_percent,
        pnl_collateral=raw_pnl_collateral,
        impact_pnl_percent=impact_pnl_percent,
        impact_pnl_collateral=impact_pnl_collateral,
        price_impact=PriceImpactPnl(
            percent=impact_pnl_percent - raw_pnl_percent,
            collateral=impact_pnl_collateral - raw_pnl_collateral,
        ),
        trade_value=get_trade_value(collateral, impact_pnl_percent, total_fees),
        u_pnl_collateral=u_pnl_collateral,
        u_pnl_percent=u_pnl_collateral / collateral * PERCENTAGE,
        realized_pnl_collateral=realized_pnl_collateral,
        realized_pnl_percent=realized_pnl_collateral / collateral * PERCENTAGE,
        fees=PnlFees(
            borrowing_v1=holding.borrowing_fee_collateral_v1,
            borrowing_v2=holding.borrowing_fee_collateral,
            funding=holding.funding_fee_collateral,
            closing=closing_fee,
            total=total_fees,
        ),
        is_liquidated=is_liquidated,
        is_profitable=raw_pnl_percent > 0,
    )


def get_price_for_target_pnl_percentage(
    target_pnl_percent: Decimal,
    trade: Trade,
    context: PnlContext,
    net_pnl: bool = False,
) -> Decimal:
    """Price at which the trade reaches ``target_pnl_percent`` after holding fees.

    Holding fees are evaluated at the open price. With ``net_pnl`` the
    closing fee is also covered.
    """
    holding = get_trade_pending_holding_fees_collateral(
        trade,
        context.trade_info,
        context.trade_fees_data,
        trade.open_price,
        context.holding,
    )
    size = trade.position_size_collateral

    target_gross = trade.collateral_amount * target_pnl_percent / PERCENTAGE + holding.total_fee_collateral
    if net_pnl:
        target_gross += get_total_trade_fees_collateral(size, trade.is_counter_trade, context.trading)

    move = target_gross * trade.open_price / size
    return trade.open_price + move if trade.long else trade.open_price - move
