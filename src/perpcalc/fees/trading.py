"""Trading (open/close/liquidation) fees, holding fee aggregation and rates."""

from decimal import Decimal

from perpcalc.constants import ONE_YEAR_SECONDS, PERCENTAGE, SECONDS_PER_HOUR
from perpcalc.context import ActiveFeeModels, HoldingFeesContext, TradingFeeContext
from perpcalc.exceptions import ConfigurationError, InvalidInputError
from perpcalc.fees import borrowing_v1, borrowing_v2, funding
from perpcalc.fees.models import (
    BorrowingFeeV2Params,
    FundingFeeParams,
    HoldingFeeRates,
    PairBorrowingFeeV2Data,
    PairFundingFeeData,
    TradeBorrowingFeeV2Input,
    TradeFeesBreakdown,
    TradeHoldingFees,
)
from perpcalc.fees.tiers import calculate_fee_amount
from perpcalc.logging import get_logger
from perpcalc.models import PairOiToken, Trade, TradeFeesData, TradeInfo

logger = get_logger(__name__)

ZERO = Decimal("0")


def get_total_trade_fees_collateral(
    position_size_collateral: Decimal,
    is_counter_trade: bool,
    context: TradingFeeContext,
) -> Decimal:
    """Total opening or closing fee for a position, in collateral.

    The fee basis is the position size (scaled by the counter-trade fee
    multiplier for counter trades), floored at the minimum position size.
    The trader's fee tier multiplier is applied last.

    Args:
        position_size_collateral: Collateral * leverage.
        is_counter_trade: Whether the trade reduces the pair's skew.
        context: Fee configuration and collateral price.

    Returns:
        Fee in collateral.

    Raises:
        InvalidInputError: If the collateral price is not positive.
    """
    if context.collateral_price_usd <= 0:
        raise InvalidInputError("collateral price in USD must be positive")

    multiplier = (
        context.counter_trade_settings.fee_rate_multiplier
        if is_counter_trade and context.counter_trade_settings is not None
        else Decimal("1")
    )
    min_position_size_collateral = context.fee.min_position_size_usd / context.collateral_price_usd
    position_size_basis = max(position_size_collateral * multiplier, min_position_size_collateral)

    raw_fee = context.fee.total_position_size_fee_p * position_size_basis
    return calculate_fee_amount(raw_fee, context.trader_fee_multiplier)


def get_trade_fees_collateral(
    position_size_collateral: Decimal,
    is_counter_trade: bool,
    context: TradingFeeContext,
) -> TradeFeesBreakdown:
    """Split the total trade fee between its recipients.

    Each recipient gets its share of the global fee params, so the parts sum
    to ``get_total_trade_fees_collateral``.

    Raises:
        ConfigurationError: If the global fee params are missing or all zero.
    """
    params = context.global_trade_fee_params
    if params is None or params.total_p <= 0:
        raise ConfigurationError("global trade fee params are required to split trade fees")

    total_fee = get_total_trade_fees_collateral(position_size_collateral, is_counter_trade, context)
    total_p = params.total_p

    return TradeFeesBreakdown(
        referral_fee_collateral=total_fee * params.referral_fee_p / total_p,
        gov_fee_collateral=total_fee * params.gov_fee_p / total_p,
        trigger_fee_collateral=total_fee * params.trigger_order_fee_p / total_p,
        otc_fee_collateral=total_fee * params.otc_fee_p / total_p,
        g_token_fee_collateral=total_fee * params.g_token_fee_p / total_p,
    )


def get_total_trade_liq_fees_collateral(collateral_amount: Decimal, context: TradingFeeContext) -> Decimal:
    """Liquidation fee: a share of the collateral, after the trader fee multiplier."""
    raw_fee = collateral_amount * context.fee.total_liq_collateral_fee_p
    return calculate_fee_amount(raw_fee, context.trader_fee_multiplier)


def get_trade_pending_holding_fees_collateral(
    trade: Trade,
    trade_info: TradeInfo,
    trade_fees_data: TradeFeesData,
    current_pair_price: Decimal,
    context: HoldingFeesContext,
) -> TradeHoldingFees:
    """Pending funding and borrowing fees for a trade, in collateral.

    Missing snapshots for an active model contribute 0.
    """
    models = context.active_models(trade_info.contracts_version)
    size = trade.position_size_collateral

    funding_fee = ZERO
    borrowing_v2_fee = ZERO
    borrowing_v1_fee = ZERO

    if models is ActiveFeeModels.V1:
        if context.borrowing_v1 is not None and context.borrowing_v1_initial_acc_fees is not None:
            borrowing_v1_fee = borrowing_v1.get_borrowing_fee(
                size,
                trade.pair_index,
                trade.long,
                context.borrowing_v1_initial_acc_fees,
                context.borrowing_v1,
            )
        else:
            logger.debug("borrowing_v1_context_missing", pair_index=trade.pair_index)
    else:
        if models is ActiveFeeModels.V10 and context.funding is not None:
            funding_fee = funding.get_trade_funding_fees_collateral(
                trade,
                trade_info.contracts_version,
                trade_fees_data.initial_acc_funding_fee_p,
                current_pair_price,
                context.funding,
            )
        if context.borrowing_v2 is not None:
            borrowing_v2_fee = borrowing_v2.get_trade_borrowing_fees_collateral(
                TradeBorrowingFeeV2Input(
                    position_size_collateral=size,
                    open_price=trade.open_price,
                    current_pair_price=current_pair_price,
                    initial_acc_borrowing_fee_p=trade_fees_data.initial_acc_borrowing_fee_p,
                ),
                context.borrowing_v2,
            )

    return TradeHoldingFees(
        funding_fee_collateral=funding_fee,
        borrowing_fee_collateral=borrowing_v2_fee,
        borrowing_fee_collateral_v1=borrowing_v1_fee,
        total_fee_collateral=funding_fee + borrowing_v2_fee + borrowing_v1_fee,
    )


def get_pair_holding_fee_rates(
    funding_params: FundingFeeParams | None,
    funding_data: PairFundingFeeData | None,
    pair_oi_token: PairOiToken,
    net_exposure_token: Decimal,
    net_exposure_usd: Decimal,
    borrowing_params: BorrowingFeeV2Params | None,
    borrowing_data: PairBorrowingFeeV2Data | None,
    current_pair_price: Decimal,
    current_timestamp: int,
) -> HoldingFeeRates:
    """Current hourly holding fee rates for each side of a v10+ pair.

    The funding rate is first advanced to ``current_timestamp``. Longs pay the
    rate times the long APR multiplier and shorts receive it times the short
    multiplier, so with a positive rate the short rate is negative. Borrowing
    v2 is charged to both sides.

    Args:
        funding_params: Funding configuration, or None when the pair has none.
        funding_data: Stored funding accumulators.
        pair_oi_token: Long/short OI in tokens.
        net_exposure_token: Net exposure in tokens.
        net_exposure_usd: Net exposure in USD.
        borrowing_params: Borrowing v2 rate, or None.
        borrowing_data: Borrowing v2 accumulator, or None.
        current_pair_price: Current pair price.
        current_timestamp: Unix seconds.

    Returns:
        Per-hour rates in % of the position, with the funding/borrowing split.
    """
    funding_long = ZERO
    funding_short = ZERO
    funding_rate = ZERO

    if funding_params is not None and funding_data is not None and funding_params.funding_fees_enabled:
        pending = funding.get_pair_pending_acc_funding_fees(
            funding_params,
            funding_data,
            current_pair_price,
            pair_oi_token,
            net_exposure_token,
            net_exposure_usd,
            current_timestamp,
        )
        funding_rate = pending.current_funding_rate_per_second_p
        multipliers = funding.get_long_short_apr_multiplier(
            funding_rate,
            pair_oi_token.oi_long_token,
            pair_oi_token.oi_short_token,
            funding_params.apr_multiplier_enabled,
        )

        base_hourly_rate = funding_rate * SECONDS_PER_HOUR * current_pair_price / PERCENTAGE
        funding_long = base_hourly_rate * multipliers.long_multiplier
        funding_short = -base_hourly_rate * multipliers.short_multiplier

    borrowing_hourly = ZERO
    borrowing_rate = ZERO
    if borrowing_params is not None and borrowing_data is not None:
        borrowing_rate = borrowing_params.borrowing_rate_per_second_p
        borrowing_hourly = borrowing_rate * SECONDS_PER_HOUR * current_pair_price / PERCENTAGE

    return HoldingFeeRates(
        long_hourly_rate=funding_long + borrowing_hourly,
        short_hourly_rate=funding_short + borrowing_hourly,
        funding_fee_long_hourly_rate=funding_long,
        funding_fee_short_hourly_rate=funding_short,
        borrowing_fee_hourly_rate=borrowing_hourly,
        current_funding_rate_per_second_p=funding_rate,
        current_borrowing_rate_per_second_p=borrowing_rate,
    )


def convert_rate_per_second_to_apr(rate_per_second: Decimal) -> Decimal:
    """Annualize a per-second rate, as a percentage."""
    return rate_per_second * ONE_YEAR_SECONDS * PERCENTAGE
