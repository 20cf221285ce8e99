"""Tests for effective leverage after unrealized PnL."""

from dataclasses import replace
from decimal import Decimal

import pytest

from perpcalc.constants import ContractsVersion
from perpcalc.models import PairOiToken, Trade, TradeInfo
from perpcalc.position.effective_leverage import (
    TradeEffectiveLeverageContext,
    TradeEffectiveLeverageInput,
    get_trade_effective_leverage,
    get_trade_new_effective_leverage,
)
from perpcalc.price_impact.models import CumulVolContext, PriceImpactContext, SkewPriceImpactContext


def _context(skew_depth: Decimal, oi: PairOiToken, info: TradeInfo) -> TradeEffectiveLeverageContext:
    return TradeEffectiveLeverageContext(
        price_impact=PriceImpactContext(
            collateral_price_usd=Decimal("1"),
            cumul_vol=CumulVolContext(contracts_version=ContractsVersion.V10, current_block=200, current_timestamp=0),
            skew=SkewPriceImpactContext(skew_depth=skew_depth, pair_oi_token=oi),
        ),
        trade_info=info,
    )


@pytest.fixture
def no_impact(balanced_oi: PairOiToken, v10_info: TradeInfo) -> TradeEffectiveLeverageContext:
    """Closes execute at the current price."""
    return _context(Decimal("0"), balanced_oi, v10_info)


class TestTradeEffectiveLeverage:
    """Test get_trade_effective_leverage on the 1000 collateral 10x trade."""

    def test_profit_lowers_leverage(self, long_trade: Trade, no_impact: TradeEffectiveLeverageContext) -> None:
        """+1000 PnL at 110: 10000 / 2000 = 5."""
        result = get_trade_effective_leverage(long_trade, Decimal("110"), no_impact)

        assert result.unrealized_pnl == Decimal("1000")
        assert result.effective_collateral == Decimal("2000")
        assert result.position_size == Decimal("10000")
        assert result.effective_leverage == Decimal("5")

    def test_short_profit(self, short_trade: Trade, no_impact: TradeEffectiveLeverageContext) -> None:
        result = get_trade_effective_leverage(short_trade, Decimal("90"), no_impact)
        assert result.effective_leverage == Decimal("5")

    def test_exhausted_collateral_is_infinite(
        self, long_trade: Trade, no_impact: TradeEffectiveLeverageContext
    ) -> None:
        result = get_trade_effective_leverage(long_trade, Decimal("90"), no_impact)

        assert result.effective_collateral == Decimal("0")
        assert result.effective_leverage == Decimal("Infinity")


class TestTradeNewEffectiveLeverage:
    """Test get_trade_new_effective_leverage."""

    def test_opening_fees_reduce_collateral(
        self, long_trade: Trade, no_impact: TradeEffectiveLeverageContext
    ) -> None:
        leverage_input = TradeEffectiveLeverageInput(
            trade=long_trade,
            new_open_price=Decimal("100"),
            new_collateral_amount=Decimal("1000"),
            new_leverage=Decimal("10"),
            current_pair_price=Decimal("100"),
            opening_fees_collateral=Decimal("500"),
        )
        assert get_trade_new_effective_leverage(leverage_input, no_impact).effective_leverage == Decimal("20")

    def test_pnl_measured_at_closing_execution_price(
        self, long_trade: Trade, balanced_oi: PairOiToken, v10_info: TradeInfo
    ) -> None:
        """Skew impact of -2.5% closes at 97.5: -250 PnL, 250 fees, 10000 / 500 = 20."""
        context = _context(Decimal("1000"), balanced_oi, v10_info)
        leverage_input = TradeEffectiveLeverageInput(
            trade=long_trade,
            new_open_price=Decimal("100"),
            new_collateral_amount=Decimal("1000"),
            new_leverage=Decimal("10"),
            current_pair_price=Decimal("100"),
            opening_fees_collateral=Decimal("250"),
        )
        result = get_trade_new_effective_leverage(leverage_input, context)

        assert result.unrealized_pnl == Decimal("-250")
        assert result.effective_collateral == Decimal("500")
        assert result.effective_leverage == Decimal("20")

    def test_trade_without_token_size(self, long_trade: Trade, no_impact: TradeEffectiveLeverageContext) -> None:
        """10000 at a new open price of 125 is 80 tokens; +12.5 each at 137.5."""
        leverage_input = TradeEffectiveLeverageInput(
            trade=replace(long_trade, position_size_token=Decimal("0")),
            new_open_price=Decimal("125"),
            new_collateral_amount=Decimal("1000"),
            new_leverage=Decimal("10"),
            current_pair_price=Decimal("137.5"),
        )
        result = get_trade_new_effective_leverage(leverage_input, no_impact)

        assert result.unrealized_pnl == Decimal("1000")
        assert result.effective_leverage == Decimal("5")
