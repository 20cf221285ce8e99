"""Shared value structures handed to the engine by the data layer.

CRITICAL: All monetary values use Decimal. Never use float for prices, sizes,
accumulators or fees. Callers convert on-chain fixed-point values before
building these snapshots.
"""

from dataclasses import dataclass
from decimal import Decimal

from perpcalc.constants import ContractsVersion


@dataclass(frozen=True)
class Trade:
    """An open (or about to be opened) leveraged position."""

    user: str
    index: int
    pair_index: int
    collateral_index: int
    long: bool
    collateral_amount: Decimal
    leverage: Decimal
    open_price: Decimal
    position_size_token: Decimal = Decimal("0")
    is_counter_trade: bool = False

    @property
    def position_size_collateral(self) -> Decimal:
        return self.collateral_amount * self.leverage


@dataclass(frozen=True)
class TradeInfo:
    """Version and block bookkeeping for a trade."""

    contracts_version: ContractsVersion
    created_block: int = 0
    last_pos_increase_block: int = 0


@dataclass(frozen=True)
class TradeFeesData:
    """Per-trade fee snapshot captured at open / last partial close."""

    realized_trading_fees_collateral: Decimal = Decimal("0")
    realized_pnl_collateral: Decimal = Decimal("0")
    initial_acc_funding_fee_p: Decimal = Decimal("0")
    initial_acc_borrowing_fee_p: Decimal = Decimal("0")


@dataclass(frozen=True)
class LiquidationParams:
    """Leverage-dependent liquidation threshold parameters.

    Thresholds are fractions of collateral (0.9 = liquidated at 90% loss).
    """

    max_liq_spread_p: Decimal
    start_liq_threshold_p: Decimal
    end_liq_threshold_p: Decimal
    start_leverage: Decimal
    end_leverage: Decimal


@dataclass(frozen=True)
class OpenInterest:
    """Open interest for one side pair, in collateral."""

    long: Decimal
    short: Decimal
    max: Decimal = Decimal("0")  # 0 = unlimited


@dataclass(frozen=True)
class PairOiToken:
    """Post-v10 open interest in pair tokens."""

    oi_long_token: Decimal
    oi_short_token: Decimal


@dataclass(frozen=True)
class UserPriceImpact:
    """Per-user price impact overrides."""

    cumul_vol_price_impact_multiplier: Decimal = Decimal("0")  # 0 = not set
    fixed_spread_p: Decimal = Decimal("0")


@dataclass(frozen=True)
class PairFactor:
    """Per-pair cumulative volume and protection close settings."""

    cumulative_factor: Decimal = Decimal("0")  # 0 = default (1)
    protection_close_factor: Decimal = Decimal("0")
    protection_close_factor_blocks: int = 0
    exempt_on_open: bool = False
    exempt_after_protection_close_factor: bool = False


@dataclass(frozen=True)
class Fee:
    """Trading fee configuration for a pair's fee group."""

    total_position_size_fee_p: Decimal  # fraction of position size, e.g. 0.0006
    min_position_size_usd: Decimal = Decimal("0")
    total_liq_collateral_fee_p: Decimal = Decimal("0")  # fraction of collateral


@dataclass(frozen=True)
class CounterTradeSettings:
    """Fee overrides for trades that reduce the pair's skew."""

    fee_rate_multiplier: Decimal = Decimal("1")
