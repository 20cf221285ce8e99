"""Trade economics calculator: one entry point for client-side previews.

Wraps the fee, price impact, liquidation and PnL engines. Every call runs in
a Decimal context built from EngineSettings, so a given configuration always
yields the same digits regardless of the caller's ambient context.
"""

from collections.abc import Sequence
from decimal import Decimal, localcontext

from perpcalc.config import EngineSettings
from perpcalc.context import HoldingFeesContext, LiquidationContext, PnlContext, TradingFeeContext
from perpcalc.fees.models import FeeTier, TradeHoldingFees, TraderFeeTierInfo
from perpcalc.fees.tiers import compute_fee_multiplier, get_current_day
from perpcalc.fees.trading import get_total_trade_fees_collateral, get_trade_pending_holding_fees_collateral
from perpcalc.liquidation import get_liquidation_price, get_liquidation_price_after_position_update
from perpcalc.logging import get_logger
from perpcalc.models import Trade, TradeFeesData, TradeInfo
from perpcalc.pnl import ComprehensivePnl, get_comprehensive_pnl
from perpcalc.price_impact.closing import get_trade_closing_price_impact
from perpcalc.price_impact.models import (
    PriceImpactContext,
    TradeClosingPriceImpactInput,
    TradeClosingPriceImpactResult,
    TradeOpeningPriceImpactInput,
    TradeOpeningPriceImpactResult,
)
from perpcalc.price_impact.opening import get_trade_opening_price_impact

logger = get_logger(__name__)


class TradeEconomicsCalculator:
    """Computes liquidation prices, PnL, price impact and fees for trades.

    Stateless apart from its settings; safe to share between threads since
    each call uses its own Decimal context.

    Args:
        settings: Decimal precision and rounding. Defaults to EngineSettings().
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self._settings = settings or EngineSettings()
        self._context = self._settings.decimal_context()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def liquidation_price(self, trade: Trade, context: LiquidationContext) -> Decimal:
        with localcontext(self._context):
            price = get_liquidation_price(trade, context)
        logger.debug(
            "liquidation_price_computed",
            pair_index=trade.pair_index,
            index=trade.index,
            long=trade.long,
            liquidation_price=str(price),
        )
        return price

    def liquidation_price_after_update(
        self,
        existing_trade: Trade,
        new_collateral_amount: Decimal,
        new_leverage: Decimal,
        is_leverage_update: bool,
        position_size_collateral_delta: Decimal,
        pnl_to_realize_collateral: Decimal,
        context: LiquidationContext,
    ) -> Decimal:
        with localcontext(self._context):
            price = get_liquidation_price_after_position_update(
                existing_trade,
                new_collateral_amount,
                new_leverage,
                is_leverage_update,
                position_size_collateral_delta,
                pnl_to_realize_collateral,
                context,
            )
        logger.debug(
            "liquidation_price_after_update_computed",
            pair_index=existing_trade.pair_index,
            index=existing_trade.index,
            liquidation_price=str(price),
        )
        return price

    def pnl(
        self,
        trade: Trade,
        market_price: Decimal,
        execution_price: Decimal,
        context: PnlContext,
    ) -> ComprehensivePnl:
        with localcontext(self._context):
            result = get_comprehensive_pnl(trade, market_price, execution_price, context)
        logger.debug(
            "pnl_computed",
            pair_index=trade.pair_index,
            index=trade.index,
            pnl_percent=str(result.pnl_percent),
            is_liquidated=result.is_liquidated,
        )
        return result

    def opening_price_impact(
        self,
        trade_input: TradeOpeningPriceImpactInput,
        context: PriceImpactContext,
    ) -> TradeOpeningPriceImpactResult:
        with localcontext(self._context):
            result = get_trade_opening_price_impact(trade_input, context)
        logger.debug(
            "opening_price_impact_computed",
            pair_index=trade_input.pair_index,
            total_price_impact_p=str(result.total_price_impact_p),
        )
        return result

    def closing_price_impact(
        self,
        trade_input: TradeClosingPriceImpactInput,
        context: PriceImpactContext,
    ) -> TradeClosingPriceImpactResult:
        with localcontext(self._context):
            result = get_trade_closing_price_impact(trade_input, context)
        logger.debug(
            "closing_price_impact_computed",
            pair_index=trade_input.trade.pair_index,
            total_price_impact_p=str(result.total_price_impact_p),
        )
        return result

    def holding_fees(
        self,
        trade: Trade,
        trade_info: TradeInfo,
        trade_fees_data: TradeFeesData,
        current_pair_price: Decimal,
        context: HoldingFeesContext,
    ) -> TradeHoldingFees:
        with localcontext(self._context):
            fees = get_trade_pending_holding_fees_collateral(
                trade, trade_info, trade_fees_data, current_pair_price, context
            )
        logger.debug(
            "holding_fees_computed",
            pair_index=trade.pair_index,
            index=trade.index,
            total_fee_collateral=str(fees.total_fee_collateral),
        )
        return fees

    def trade_fees(
        self,
        position_size_collateral: Decimal,
        is_counter_trade: bool,
        context: TradingFeeContext,
    ) -> Decimal:
        with localcontext(self._context):
            return get_total_trade_fees_collateral(position_size_collateral, is_counter_trade, context)

    def fee_multiplier(
        self,
        trader: TraderFeeTierInfo,
        fee_tiers: Sequence[FeeTier],
        current_timestamp: int,
    ) -> Decimal:
        with localcontext(self._context):
            multiplier = compute_fee_multiplier(trader, fee_tiers, get_current_day(current_timestamp))
        logger.debug("fee_multiplier_computed", fee_multiplier=str(multiplier))
        return multiplier
