"""Per-trade contexts assembled by the caller from data-layer snapshots.

The holding fee models active for a trade are resolved once from its
contract version and the snapshots available, rather than by checking
optional fields at every call site.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from perpcalc.constants import ContractsVersion
from perpcalc.fees.borrowing_v1 import BorrowingV1Context
from perpcalc.fees.models import (
    BorrowingInitialAccFees,
    GlobalTradeFeeParams,
    PairBorrowingFeeV2Context,
    PairFundingFeeContext,
)
from perpcalc.models import (
    CounterTradeSettings,
    Fee,
    LiquidationParams,
    TradeFeesData,
    TradeInfo,
    UserPriceImpact,
)


class ActiveFeeModels(str, Enum):
    """Holding fee models that apply to a trade."""

    V1 = "v1"  # hierarchical borrowing fees
    V2 = "v2"  # flat borrowing v2 only
    V10 = "v10"  # funding fees + borrowing v2


def resolve_active_fee_models(
    contracts_version: ContractsVersion,
    has_borrowing_v1: bool,
    has_borrowing_v2: bool,
) -> ActiveFeeModels:
    """Pick the holding fee models for a trade.

    v10+ trades accrue funding and borrowing v2. Older trades accrue v1
    borrowing fees, or borrowing v2 only when no v1 snapshot exists but a v2
    one does.
    """
    if contracts_version >= ContractsVersion.V10:
        return ActiveFeeModels.V10
    if not has_borrowing_v1 and has_borrowing_v2:
        return ActiveFeeModels.V2
    return ActiveFeeModels.V1


@dataclass(frozen=True)
class HoldingFeesContext:
    """Pair-scoped fee snapshots for one trade."""

    current_timestamp: int
    funding: PairFundingFeeContext | None = None
    borrowing_v1: BorrowingV1Context | None = None
    borrowing_v1_initial_acc_fees: BorrowingInitialAccFees | None = None
    borrowing_v2: PairBorrowingFeeV2Context | None = None

    def active_models(self, contracts_version: ContractsVersion) -> ActiveFeeModels:
        return resolve_active_fee_models(
            contracts_version,
            has_borrowing_v1=self.borrowing_v1 is not None and self.borrowing_v1_initial_acc_fees is not None,
            has_borrowing_v2=self.borrowing_v2 is not None,
        )


@dataclass(frozen=True)
class TradingFeeContext:
    """Opening/closing fee configuration."""

    fee: Fee
    collateral_price_usd: Decimal
    counter_trade_settings: CounterTradeSettings | None = None
    trader_fee_multiplier: Decimal | None = None
    global_trade_fee_params: GlobalTradeFeeParams | None = None


@dataclass(frozen=True)
class LiquidationContext:
    """Everything needed to compute a liquidation price."""

    holding: HoldingFeesContext
    trading: TradingFeeContext
    trade_info: TradeInfo
    trade_fees_data: TradeFeesData
    current_pair_price: Decimal
    liquidation_params: LiquidationParams | None = None
    pair_spread_p: Decimal | None = None
    user_price_impact: UserPriceImpact | None = None
    additional_fee_collateral: Decimal = Decimal("0")
    partial_close_multiplier: Decimal = Decimal("1")
    before_opened: bool = False
    new_open_price: Decimal | None = None  # weighted open price after an increase


@dataclass(frozen=True)
class PnlContext:
    """Everything needed for a full PnL breakdown."""

    holding: HoldingFeesContext
    trading: TradingFeeContext
    trade_info: TradeInfo
    trade_fees_data: TradeFeesData
    liquidation_params: LiquidationParams | None = None
