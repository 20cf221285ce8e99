"""Flat per-second borrowing fees for v10+ trades.

A single accumulator per collateral/pair grows at ``rate * seconds * price``;
a trade owes its share of the growth since it opened:

    fee = position_size_collateral * (acc_now - acc_initial) / open_price / 100
"""

from decimal import Decimal

from perpcalc.constants import MAX_BORROWING_RATE_PER_SECOND, PERCENTAGE
from perpcalc.exceptions import InvalidInputError
from perpcalc.fees.models import (
    BorrowingFeeV2Params,
    PairBorrowingFeeV2Context,
    PairBorrowingFeeV2Data,
    TradeBorrowingFeeV2Input,
)
from perpcalc.pairs import PairMap

ZERO = Decimal("0")


def validate_borrowing_rate(borrowing_rate_per_second_p: Decimal) -> Decimal:
    """Check a rate is within [0, MAX_BORROWING_RATE_PER_SECOND].

    Raises:
        InvalidInputError: If the rate is negative or above the maximum.
    """
    if borrowing_rate_per_second_p < 0 or borrowing_rate_per_second_p > MAX_BORROWING_RATE_PER_SECOND:
        raise InvalidInputError(
            f"borrowing rate {borrowing_rate_per_second_p} outside "
            f"[0, {MAX_BORROWING_RATE_PER_SECOND}] %/s"
        )
    return borrowing_rate_per_second_p


def get_pair_pending_acc_borrowing_fees(
    params: BorrowingFeeV2Params,
    data: PairBorrowingFeeV2Data,
    current_pair_price: Decimal,
    current_timestamp: int,
) -> Decimal:
    """Accumulated borrowing fee advanced to ``current_timestamp``.

    Returns the stored accumulator unchanged when no time has elapsed.
    """
    elapsed = max(0, current_timestamp - data.last_borrowing_update_ts)
    if elapsed == 0:
        return data.acc_borrowing_fee_p

    return data.acc_borrowing_fee_p + params.borrowing_rate_per_second_p * elapsed * current_pair_price


def get_trade_borrowing_fees_collateral(
    trade_input: TradeBorrowingFeeV2Input,
    context: PairBorrowingFeeV2Context,
) -> Decimal:
    """Borrowing fee owed by a trade, in collateral (0 without params/data)."""
    if context.params is None or context.data is None:
        return ZERO

    timestamp = (
        trade_input.current_timestamp
        if trade_input.current_timestamp is not None
        else context.current_timestamp
    )
    current_acc = get_pair_pending_acc_borrowing_fees(
        context.params, context.data, trade_input.current_pair_price, timestamp
    )
    fee_delta_p = current_acc - trade_input.initial_acc_borrowing_fee_p

    return trade_input.position_size_collateral * fee_delta_p / trade_input.open_price / PERCENTAGE


def get_pair_borrowing_fees(
    collateral_index: int,
    pair_index: int,
    current_pair_price: Decimal,
    current_timestamp: int,
    borrowing_params: PairMap[BorrowingFeeV2Params],
    borrowing_data: PairMap[PairBorrowingFeeV2Data],
) -> Decimal:
    """Pending accumulator for a keyed pair, 0 when the pair has no snapshot."""
    params = borrowing_params.get(collateral_index, pair_index)
    data = borrowing_data.get(collateral_index, pair_index)
    if params is None or data is None:
        return ZERO

    return get_pair_pending_acc_borrowing_fees(params, data, current_pair_price, current_timestamp)
