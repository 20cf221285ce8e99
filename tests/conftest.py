"""Shared test fixtures for the trading economics engine."""

from dataclasses import replace
from decimal import Decimal

import pytest

from perpcalc.config import EngineSettings
from perpcalc.constants import ContractsVersion
from perpcalc.context import HoldingFeesContext, TradingFeeContext
from perpcalc.models import Fee, LiquidationParams, PairOiToken, Trade, TradeInfo
from perpcalc.price_impact.models import DepthBands, DepthBandsMapping, PairDepthBands

# Cumulative liquidity fractions used across depth band tests
SAMPLE_BANDS = tuple(
    Decimal(v)
    for v in (
        "0.1", "0.2", "0.3", "0.4", "0.5", "0.55", "0.6", "0.65", "0.7", "0.75",
        "0.8", "0.82", "0.84", "0.86", "0.88", "0.9", "0.91", "0.92", "0.93", "0.94",
        "0.95", "0.96", "0.97", "0.98", "0.99", "0.995", "0.997", "0.998", "0.999", "1",
    )
)

SAMPLE_OFFSETS = tuple(
    Decimal(v)
    for v in (
        "0.0001", "0.0002", "0.0003", "0.0005", "0.0008", "0.0013", "0.002", "0.003",
        "0.0045", "0.0065", "0.009", "0.012", "0.0155", "0.0195", "0.024", "0.029",
        "0.0345", "0.0405", "0.047", "0.054", "0.0615", "0.0695", "0.078", "0.087",
        "0.0965", "0.1065", "0.117", "0.128", "0.1395", "0.15",
    )
)


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Default engine settings (34 digits, half-even)."""
    return EngineSettings()


@pytest.fixture
def long_trade() -> Trade:
    """1000 collateral, 10x long opened at 100."""
    return Trade(
        user="0xtrader",
        index=0,
        pair_index=1,
        collateral_index=1,
        long=True,
        collateral_amount=Decimal("1000"),
        leverage=Decimal("10"),
        open_price=Decimal("100"),
        position_size_token=Decimal("100"),
    )


@pytest.fixture
def short_trade(long_trade: Trade) -> Trade:
    """Same as long_trade, but short."""
    return replace(long_trade, long=False)


@pytest.fixture
def v10_info() -> TradeInfo:
    return TradeInfo(contracts_version=ContractsVersion.V10, created_block=100, last_pos_increase_block=100)


@pytest.fixture
def liquidation_params() -> LiquidationParams:
    """Threshold moves from 90% at 10x to 80% at 100x."""
    return LiquidationParams(
        max_liq_spread_p=Decimal("0.5"),
        start_liq_threshold_p=Decimal("0.9"),
        end_liq_threshold_p=Decimal("0.8"),
        start_leverage=Decimal("10"),
        end_leverage=Decimal("100"),
    )


@pytest.fixture
def trading_fees() -> TradingFeeContext:
    """0.06% position size fee, collateral priced at 1 USD."""
    return TradingFeeContext(
        fee=Fee(total_position_size_fee_p=Decimal("0.0006"), min_position_size_usd=Decimal("0")),
        collateral_price_usd=Decimal("1"),
    )


@pytest.fixture
def empty_holding() -> HoldingFeesContext:
    """No holding fee snapshots: every holding fee is 0."""
    return HoldingFeesContext(current_timestamp=1_700_000_000)


@pytest.fixture
def sample_mapping() -> DepthBandsMapping:
    return DepthBandsMapping(bands=SAMPLE_OFFSETS)


@pytest.fixture
def sample_depth() -> PairDepthBands:
    """$1M on each side of the book."""
    side = DepthBands(total_depth_usd=Decimal("1000000"), bands=SAMPLE_BANDS)
    return PairDepthBands(above=side, below=side)


@pytest.fixture
def balanced_oi() -> PairOiToken:
    return PairOiToken(oi_long_token=Decimal("1000"), oi_short_token=Decimal("1000"))
