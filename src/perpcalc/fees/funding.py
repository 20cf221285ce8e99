"""Skew-driven funding fees for v10+ trades.

The funding rate drifts at a velocity proportional to the pair's net
exposure (long OI minus short OI, in tokens) and is capped in absolute value.
Accumulators integrate the rate over time, weighted by the pair price:

    delta = avg_rate_per_second * seconds * pair_price
    acc_long  += delta * long_multiplier
    acc_short -= delta * short_multiplier

Positive rate = longs pay shorts. With the APR multiplier enabled, the
earning (smaller) side receives ``larger_oi / smaller_oi`` times its share,
capped at 100x.
"""

from decimal import Decimal

from perpcalc.constants import FUNDING_APR_MULTIPLIER_CAP, ONE_YEAR_SECONDS, ContractsVersion
from perpcalc.exceptions import ArithmeticInvariantError
from perpcalc.fees.models import (
    AprMultipliers,
    FundingFeeParams,
    FundingRateProjection,
    PairFundingFeeContext,
    PairFundingFeeData,
    PairPendingAccFundingFees,
    TradeFundingFeeResult,
)
from perpcalc.logging import get_logger
from perpcalc.models import PairOiToken, Trade
from perpcalc.pairs import PairMap

logger = get_logger(__name__)

ZERO = Decimal("0")
ONE_YEAR = Decimal(ONE_YEAR_SECONDS)


def get_current_funding_velocity_per_year(
    net_exposure_token: Decimal,
    net_exposure_usd: Decimal,
    skew_coefficient_per_year: Decimal,
    absolute_velocity_per_year_cap: Decimal,
    theta_threshold_usd: Decimal,
) -> Decimal:
    """Yearly funding velocity implied by the current skew.

    Args:
        net_exposure_token: Long OI minus short OI, in tokens.
        net_exposure_usd: Net exposure in USD (compared against theta).
        skew_coefficient_per_year: Velocity per token of exposure.
        absolute_velocity_per_year_cap: Cap on |velocity|.
        theta_threshold_usd: Exposure below which funding does not move.

    Returns:
        Signed velocity per year, same sign as net_exposure_token.
    """
    if (
        net_exposure_token == 0
        or skew_coefficient_per_year == 0
        or absolute_velocity_per_year_cap == 0
    ):
        return ZERO

    if abs(net_exposure_usd) < theta_threshold_usd:
        return ZERO

    absolute_velocity = min(
        abs(net_exposure_token) * skew_coefficient_per_year,
        absolute_velocity_per_year_cap,
    )
    return -absolute_velocity if net_exposure_token < 0 else absolute_velocity


def get_seconds_to_reach_zero_rate(
    last_funding_rate_per_second_p: Decimal,
    current_velocity_per_year: Decimal,
) -> Decimal:
    """Seconds until a linearly drifting rate crosses zero.

    Raises:
        ArithmeticInvariantError: If velocity is zero or the result is negative
            (the rate is moving away from zero).
    """
    if current_velocity_per_year == 0:
        raise ArithmeticInvariantError(
            "velocity cannot be zero when calculating time to reach zero rate"
        )

    seconds = -last_funding_rate_per_second_p * ONE_YEAR / current_velocity_per_year
    if seconds < 0:
        raise ArithmeticInvariantError(
            f"seconds to reach zero rate cannot be negative: {seconds}"
        )
    return seconds


def get_avg_funding_rate_per_second_p(
    last_funding_rate_per_second_p: Decimal,
    absolute_rate_per_second_cap: Decimal,
    current_velocity_per_year: Decimal,
    seconds_since_last_update: Decimal | int,
) -> FundingRateProjection:
    """Project the funding rate forward and average it over the period.

    The rate moves linearly toward ``cap * sign(velocity)``. If it reaches the
    cap mid-period, the average weights the ramp (trapezoid) and the flat
    segment at the cap by their durations.
    """
    elapsed = Decimal(seconds_since_last_update)
    last_rate = last_funding_rate_per_second_p

    if absolute_rate_per_second_cap == 0:
        return FundingRateProjection(ZERO, ZERO)

    if current_velocity_per_year == 0 or elapsed == 0:
        return FundingRateProjection(last_rate, last_rate)

    rate_cap = (
        -absolute_rate_per_second_cap
        if current_velocity_per_year < 0
        else absolute_rate_per_second_cap
    )

    if rate_cap == last_rate:
        return FundingRateProjection(rate_cap, rate_cap)

    seconds_to_reach_cap = (rate_cap - last_rate) * ONE_YEAR / current_velocity_per_year

    if elapsed > seconds_to_reach_cap:
        ramp_avg = (last_rate + rate_cap) / 2
        avg = (ramp_avg * seconds_to_reach_cap + rate_cap * (elapsed - seconds_to_reach_cap)) / elapsed
        return FundingRateProjection(avg, rate_cap)

    current = last_rate + elapsed * current_velocity_per_year / ONE_YEAR
    return FundingRateProjection((last_rate + current) / 2, current)


def get_long_short_apr_multiplier(
    avg_funding_rate_per_second_p: Decimal,
    pair_oi_long_token: Decimal,
    pair_oi_short_token: Decimal,
    apr_multiplier_enabled: bool,
) -> AprMultipliers:
    """APR multipliers for the paying and earning sides.

    The paying side always keeps 1. Longs earn when the rate is negative.
    """
    if avg_funding_rate_per_second_p == 0 or not apr_multiplier_enabled:
        return AprMultipliers()

    longs_earn = avg_funding_rate_per_second_p < 0
    long_multiplier = Decimal("1")
    short_multiplier = Decimal("1")

    if longs_earn and pair_oi_long_token > 0:
        long_multiplier = pair_oi_short_token / pair_oi_long_token
    elif not longs_earn and pair_oi_short_token > 0:
        short_multiplier = pair_oi_long_token / pair_oi_short_token

    return AprMultipliers(
        long_multiplier=min(long_multiplier, FUNDING_APR_MULTIPLIER_CAP),
        short_multiplier=min(short_multiplier, FUNDING_APR_MULTIPLIER_CAP),
    )


def get_pair_pending_acc_funding_fees(
    params: FundingFeeParams,
    data: PairFundingFeeData,
    current_pair_price: Decimal,
    pair_oi_token: PairOiToken,
    net_exposure_token: Decimal,
    net_exposure_usd: Decimal,
    current_timestamp: int,
) -> PairPendingAccFundingFees:
    """Advance a pair's funding accumulators to ``current_timestamp``.

    When the APR multiplier is enabled and the rate changes sign during the
    period, the period is split at the zero crossing so each half uses the
    multipliers of the side that was actually earning.

    Args:
        params: Funding parameters for the pair.
        data: Stored accumulators and last rate.
        current_pair_price: Current pair price.
        pair_oi_token: Long/short OI in tokens (for APR multipliers).
        net_exposure_token: Net exposure in tokens (drives velocity).
        net_exposure_usd: Net exposure in USD (theta threshold check).
        current_timestamp: Unix seconds.

    Returns:
        New accumulators and the end-of-period funding rate.
    """
    acc_long = data.acc_funding_fee_long_p
    acc_short = data.acc_funding_fee_short_p
    last_rate = data.last_funding_rate_per_second_p

    if not params.funding_fees_enabled:
        return PairPendingAccFundingFees(acc_long, acc_short, last_rate)

    elapsed = Decimal(max(0, current_timestamp - data.last_funding_update_ts))

    velocity = get_current_funding_velocity_per_year(
        net_exposure_token,
        net_exposure_usd,
        params.skew_coefficient_per_year,
        params.absolute_velocity_per_year_cap,
        params.theta_threshold_usd,
    )
    projection = get_avg_funding_rate_per_second_p(
        last_rate,
        params.absolute_rate_per_second_cap,
        velocity,
        elapsed,
    )
    current_rate = projection.current_funding_rate_per_second_p

    rate_changed_sign = params.apr_multiplier_enabled and (
        (current_rate > 0 and last_rate < 0) or (current_rate < 0 and last_rate > 0)
    )

    if rate_changed_sign:
        seconds_to_zero = get_seconds_to_reach_zero_rate(last_rate, velocity)

        # last rate -> 0
        avg_rate_1 = last_rate / 2
        delta_1 = avg_rate_1 * seconds_to_zero * current_pair_price
        multipliers_1 = get_long_short_apr_multiplier(
            avg_rate_1, pair_oi_token.oi_long_token, pair_oi_token.oi_short_token, True
        )
        acc_long += delta_1 * multipliers_1.long_multiplier
        acc_short -= delta_1 * multipliers_1.short_multiplier

        # 0 -> current rate
        avg_rate_2 = current_rate / 2
        delta_2 = avg_rate_2 * (elapsed - seconds_to_zero) * current_pair_price
        multipliers_2 = get_long_short_apr_multiplier(
            avg_rate_2, pair_oi_token.oi_long_token, pair_oi_token.oi_short_token, True
        )
        acc_long += delta_2 * multipliers_2.long_multiplier
        acc_short -= delta_2 * multipliers_2.short_multiplier

        logger.debug(
            "funding_rate_sign_change_split",
            last_rate=str(last_rate),
            current_rate=str(current_rate),
            seconds_to_zero=str(seconds_to_zero),
        )
    else:
        delta = projection.avg_funding_rate_per_second_p * elapsed * current_pair_price
        multipliers = get_long_short_apr_multiplier(
            projection.avg_funding_rate_per_second_p,
            pair_oi_token.oi_long_token,
            pair_oi_token.oi_short_token,
            params.apr_multiplier_enabled,
        )
        acc_long += delta * multipliers.long_multiplier
        acc_short -= delta * multipliers.short_multiplier

    return PairPendingAccFundingFees(acc_long, acc_short, current_rate)


def get_pair_pending_acc_funding_fees_for_context(
    current_pair_price: Decimal,
    context: PairFundingFeeContext,
) -> PairPendingAccFundingFees:
    """Advance accumulators using a pair-scoped context.

    Net exposure in USD is derived from the token exposure and the price.
    """
    return get_pair_pending_acc_funding_fees(
        context.params,
        context.data,
        current_pair_price,
        context.pair_oi or PairOiToken(ZERO, ZERO),
        context.net_exposure_token,
        context.net_exposure_token * current_pair_price,
        context.current_timestamp,
    )


def get_trade_funding_fees_collateral_simple(
    trade: Trade,
    contracts_version: ContractsVersion,
    initial_acc_funding_fee_p: Decimal,
    current_acc_funding_fee_p: Decimal,
) -> Decimal:
    """Funding fee owed by a trade given both accumulator values.

    Funding fees are only charged on v10+ trades.
    """
    if contracts_version < ContractsVersion.V10:
        return ZERO

    fee_delta = current_acc_funding_fee_p - initial_acc_funding_fee_p
    return trade.position_size_collateral * fee_delta / trade.open_price / 100


def get_trade_funding_fees_collateral(
    trade: Trade,
    contracts_version: ContractsVersion,
    initial_acc_funding_fee_p: Decimal,
    current_pair_price: Decimal,
    context: PairFundingFeeContext,
) -> Decimal:
    """Funding fee owed by a trade, advancing the pair accumulators first."""
    if contracts_version < ContractsVersion.V10 or not context.params.funding_fees_enabled:
        return ZERO

    pending = get_pair_pending_acc_funding_fees_for_context(current_pair_price, context)
    current_acc = pending.acc_funding_fee_long_p if trade.long else pending.acc_funding_fee_short_p

    return get_trade_funding_fees_collateral_simple(
        trade, contracts_version, initial_acc_funding_fee_p, current_acc
    )


def get_trade_funding_fees(
    trade: Trade,
    contracts_version: ContractsVersion,
    initial_acc_funding_fee_p: Decimal,
    current_pair_price: Decimal,
    pair_oi_token: PairOiToken,
    net_exposure_token: Decimal,
    net_exposure_usd: Decimal,
    current_timestamp: int,
    funding_params: PairMap[FundingFeeParams],
    funding_data: PairMap[PairFundingFeeData],
) -> TradeFundingFeeResult:
    """Funding fee breakdown for a trade, looking up its pair snapshots.

    Raises:
        MissingDataError: If params or data are missing for the trade's pair.
    """
    params = funding_params.require(trade.collateral_index, trade.pair_index)
    data = funding_data.require(trade.collateral_index, trade.pair_index)

    pending = get_pair_pending_acc_funding_fees(
        params,
        data,
        current_pair_price,
        pair_oi_token,
        net_exposure_token,
        net_exposure_usd,
        current_timestamp,
    )
    current_acc = pending.acc_funding_fee_long_p if trade.long else pending.acc_funding_fee_short_p

    fee_collateral = get_trade_funding_fees_collateral_simple(
        trade, contracts_version, initial_acc_funding_fee_p, current_acc
    )
    fee_p = (
        fee_collateral / trade.collateral_amount * 100
        if trade.collateral_amount > 0
        else ZERO
    )

    return TradeFundingFeeResult(
        funding_fee_collateral=fee_collateral,
        funding_fee_p=fee_p,
        current_acc_funding_fee_p=current_acc,
        initial_acc_funding_fee_p=initial_acc_funding_fee_p,
    )
