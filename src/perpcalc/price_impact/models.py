"""Price impact data structures.

Depth band liquidity fractions and price offsets are plain fractions in
[0, 1] (0.01 = 1%). Impact results are percentages.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from perpcalc.constants import ContractsVersion
from perpcalc.models import LiquidationParams, PairFactor, PairOiToken, Trade, UserPriceImpact

ZERO = Decimal("0")


@dataclass(frozen=True)
class DepthBands:
    """One side of a pair's order book depth.

    ``bands[i]`` is the cumulative share of ``total_depth_usd`` available
    up to price offset ``mapping.bands[i]``.
    """

    total_depth_usd: Decimal
    bands: tuple[Decimal, ...]


@dataclass(frozen=True)
class PairDepthBands:
    above: DepthBands | None = None
    below: DepthBands | None = None


@dataclass(frozen=True)
class DepthBandsMapping:
    """Global price offsets, one per band, shared by all pairs."""

    bands: tuple[Decimal, ...]


@dataclass(frozen=True)
class OiWindowsSettings:
    start_ts: int
    windows_duration: int
    windows_count: int


@dataclass(frozen=True)
class OiWindow:
    """Open interest traded during one window, in USD."""

    oi_long_usd: Decimal = ZERO
    oi_short_usd: Decimal = ZERO


class SkewDirection(str, Enum):
    """Effect of a trade's skew impact on execution price."""

    INCREASE = "increase"
    DECREASE = "decrease"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class SkewPriceImpactContext:
    """Skew depth (tokens) and pair open interest for linear skew impact.

    Either field may be missing in a snapshot; the skew engine refuses to
    run without them.
    """

    skew_depth: Decimal | None
    pair_oi_token: PairOiToken | None


@dataclass(frozen=True)
class SkewPriceImpactResult:
    base_price_impact_p: Decimal  # from the existing net skew
    trade_price_impact_p: Decimal  # from the trade's own size
    total_price_impact_p: Decimal
    net_skew_token: Decimal
    trade_direction: SkewDirection


@dataclass(frozen=True)
class CumulVolContext:
    """Everything the cumulative volume impact needs for one pair."""

    contracts_version: ContractsVersion
    current_block: int
    current_timestamp: int
    pair_factor: PairFactor = field(default_factory=PairFactor)
    pair_depth_bands: PairDepthBands | None = None
    depth_bands_mapping: DepthBandsMapping | None = None
    oi_windows_settings: OiWindowsSettings | None = None
    oi_windows: dict[int, OiWindow] = field(default_factory=dict)
    user_price_impact: UserPriceImpact | None = None
    liquidation_params: LiquidationParams | None = None
    created_block: int = 0
    protection_close_factor_whitelist: bool = False


@dataclass(frozen=True)
class TradeOpeningPriceImpactInput:
    pair_index: int
    collateral_index: int
    long: bool
    collateral_amount: Decimal
    leverage: Decimal
    open_price: Decimal
    pair_spread_p: Decimal
    contracts_version: ContractsVersion = ContractsVersion.V10
    is_counter_trade: bool = False


@dataclass(frozen=True)
class PriceImpactContext:
    """Combined context for opening and closing impact."""

    collateral_price_usd: Decimal
    cumul_vol: CumulVolContext
    skew: SkewPriceImpactContext


@dataclass(frozen=True)
class TradeOpeningPriceImpactResult:
    price_after_impact: Decimal
    percent_profit_p: Decimal
    fixed_spread_p: Decimal
    cumul_vol_price_impact_p: Decimal
    base_skew_price_impact_p: Decimal
    trade_skew_price_impact_p: Decimal
    total_skew_price_impact_p: Decimal
    total_price_impact_p: Decimal
    total_price_impact_p_from_market_price: Decimal
    position_size_token: Decimal


@dataclass(frozen=True)
class TradeClosingPriceImpactInput:
    trade: Trade
    oracle_price: Decimal
    current_pair_price: Decimal
    position_size_collateral: Decimal
    pair_spread_p: Decimal
    contracts_version: ContractsVersion
    last_pos_increase_block: int = 0
    use_cumulative_vol_price_impact: bool = True


@dataclass(frozen=True)
class TradeClosingPriceImpactResult:
    position_size_token: Decimal
    fixed_spread_p: Decimal
    cumul_vol_price_impact_p: Decimal
    skew_price_impact_p: Decimal
    total_price_impact_p: Decimal
    price_after_impact: Decimal
    trade_value_collateral_no_factor: Decimal
