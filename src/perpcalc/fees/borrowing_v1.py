"""Hierarchical (group -> pair) borrowing fees for pre-v10 trades.

Each pair accrues a per-block borrowing fee, and so does the borrowing group
it belongs to. A trade pays, for every period of group membership since it
opened, the larger of the group delta and the pair delta. Group membership
history is stored as ``BorrowingPairGroup`` snapshots on the pair, with
non-decreasing ``block`` values.

Pending delta per level:

    delta = fee_per_block * blocks_elapsed * (|oi_long - oi_short| / max_oi) ** fee_exponent

The delta accrues to the majority side (longs when longs outweigh shorts).
"""

from dataclasses import dataclass, field
from decimal import Decimal

from perpcalc.fees.models import (
    BorrowingGroup,
    BorrowingInitialAccFees,
    BorrowingPair,
    BorrowingPairGroup,
    GroupAccFeesDeltas,
    PendingAccFees,
)
from perpcalc.logging import get_logger
from perpcalc.models import OpenInterest

logger = get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BorrowingV1Context:
    """Borrowing v1 state for one collateral."""

    current_block: int
    groups: dict[int, BorrowingGroup] = field(default_factory=dict)
    pairs: dict[int, BorrowingPair] = field(default_factory=dict)
    open_interest: dict[int, OpenInterest] = field(default_factory=dict)


def get_pending_acc_fees(
    acc_fee_long: Decimal,
    acc_fee_short: Decimal,
    oi_long: Decimal,
    oi_short: Decimal,
    max_oi: Decimal,
    fee_per_block: Decimal,
    fee_exponent: int,
    current_block: int,
    acc_last_updated_block: int,
) -> PendingAccFees:
    """Apply the pending per-block fee to a long/short accumulator pair.

    Args:
        acc_fee_long: Stored long accumulator.
        acc_fee_short: Stored short accumulator.
        oi_long: Long open interest.
        oi_short: Short open interest.
        max_oi: Max open interest (0 = unlimited, no fee accrues).
        fee_per_block: Fee % per block at full utilisation.
        fee_exponent: Exponent applied to the imbalance ratio.
        current_block: Current block number.
        acc_last_updated_block: Block the accumulators were last written.

    Returns:
        Updated accumulators and the signed delta (positive = long heavy).
    """
    blocks = current_block - acc_last_updated_block
    net_oi = oi_long - oi_short

    if max_oi <= 0 or blocks <= 0 or net_oi == 0:
        return PendingAccFees(acc_fee_long, acc_fee_short, ZERO)

    magnitude = fee_per_block * blocks * (abs(net_oi) / max_oi) ** fee_exponent
    delta = magnitude if net_oi > 0 else -magnitude

    return PendingAccFees(
        acc_fee_long=acc_fee_long + delta if delta > 0 else acc_fee_long,
        acc_fee_short=acc_fee_short - delta if delta < 0 else acc_fee_short,
        delta=delta,
    )


def get_pair_pending_acc_fees(
    pair_index: int,
    context: BorrowingV1Context,
) -> PendingAccFees:
    """Pending accumulators for a pair, using the pair's own open interest."""
    pair = context.pairs[pair_index]
    oi = context.open_interest.get(pair_index, OpenInterest(ZERO, ZERO, ZERO))
    return get_pending_acc_fees(
        pair.acc_fee_long,
        pair.acc_fee_short,
        oi.long,
        oi.short,
        oi.max,
        pair.fee_per_block,
        pair.fee_exponent,
        context.current_block,
        pair.acc_last_updated_block,
    )


def get_pair_pending_acc_fee(pair_index: int, long: bool, context: BorrowingV1Context) -> Decimal:
    pending = get_pair_pending_acc_fees(pair_index, context)
    return pending.acc_fee_long if long else pending.acc_fee_short


def get_group_pending_acc_fees(
    group_index: int,
    context: BorrowingV1Context,
) -> PendingAccFees:
    """Pending accumulators for a borrowing group."""
    group = context.groups[group_index]
    return get_pending_acc_fees(
        group.acc_fee_long,
        group.acc_fee_short,
        group.oi_long,
        group.oi_short,
        group.max_oi,
        group.fee_per_block,
        group.fee_exponent,
        context.current_block,
        group.acc_last_updated_block,
    )


def get_group_pending_acc_fee(group_index: int, long: bool, context: BorrowingV1Context) -> Decimal:
    pending = get_group_pending_acc_fees(group_index, context)
    return pending.acc_fee_long if long else pending.acc_fee_short


def get_pair_group_acc_fees_deltas(
    i: int,
    pair_groups: tuple[BorrowingPairGroup, ...],
    initial_fees: BorrowingInitialAccFees,
    pair_index: int,
    long: bool,
    context: BorrowingV1Context,
) -> GroupAccFeesDeltas:
    """Group and pair fee deltas accrued during membership period ``i``.

    The most recent period uses live pending accumulators; older periods use
    the values snapshotted when the next period started.
    """
    group = pair_groups[i]
    before_trade_open = group.block < initial_fees.block

    if i == len(pair_groups) - 1:
        delta_group = get_group_pending_acc_fee(group.group_index, long, context)
        delta_pair = get_pair_pending_acc_fee(pair_index, long, context)
    else:
        next_group = pair_groups[i + 1]
        if before_trade_open and next_group.block < initial_fees.block:
            return GroupAccFeesDeltas(ZERO, ZERO, before_trade_open)
        delta_group = (
            next_group.prev_group_acc_fee_long if long else next_group.prev_group_acc_fee_short
        )
        delta_pair = next_group.pair_acc_fee_long if long else next_group.pair_acc_fee_short

    if before_trade_open:
        delta_group -= initial_fees.acc_group_fee
        delta_pair -= initial_fees.acc_pair_fee
    else:
        delta_group -= group.initial_acc_fee_long if long else group.initial_acc_fee_short
        delta_pair -= group.pair_acc_fee_long if long else group.pair_acc_fee_short

    return GroupAccFeesDeltas(delta_group, delta_pair, before_trade_open)


def get_borrowing_fee(
    position_size_collateral: Decimal,
    pair_index: int,
    long: bool,
    initial_acc_fees: BorrowingInitialAccFees,
    context: BorrowingV1Context,
) -> Decimal:
    """Borrowing fee owed by a trade, in collateral.

    Walks the pair's group history backwards (most recent first), summing
    ``size * max(group_delta, pair_delta) / 100`` and stopping at the first
    period that started before the trade opened.

    Args:
        position_size_collateral: Trade collateral * leverage.
        pair_index: Pair the trade is on.
        long: Trade direction.
        initial_acc_fees: Accumulators recorded at trade open.
        context: Borrowing v1 state.

    Returns:
        Borrowing fee in collateral; 0 when the pair has no borrowing data.
    """
    pair = context.pairs.get(pair_index)
    if pair is None:
        logger.debug("borrowing_v1_missing_pair", pair_index=pair_index)
        return ZERO

    pair_groups = pair.groups
    fee_p = ZERO

    # Pair-only accrual before the pair joined its first group
    if not pair_groups or pair_groups[0].block > initial_acc_fees.block:
        if not pair_groups:
            pair_acc_fee = get_pair_pending_acc_fee(pair_index, long, context)
        else:
            first = pair_groups[0]
            pair_acc_fee = first.pair_acc_fee_long if long else first.pair_acc_fee_short
        fee_p = pair_acc_fee - initial_acc_fees.acc_pair_fee

    for i in range(len(pair_groups) - 1, -1, -1):
        deltas = get_pair_group_acc_fees_deltas(
            i, pair_groups, initial_acc_fees, pair_index, long, context
        )
        fee_p += max(deltas.delta_group, deltas.delta_pair)
        if deltas.before_trade_open:
            break

    return position_size_collateral * fee_p / 100


def within_max_group_oi(
    pair_index: int,
    long: bool,
    position_size_collateral: Decimal,
    context: BorrowingV1Context,
) -> bool:
    """Whether adding ``position_size_collateral`` keeps the group under its max OI.

    A group with ``max_oi == 0`` is unlimited. A pair without a current group
    is not constrained.
    """
    pair = context.pairs.get(pair_index)
    if pair is None or not pair.groups:
        return True

    group = context.groups.get(pair.groups[-1].group_index)
    if group is None or group.max_oi <= 0:
        return True

    side_oi = group.oi_long if long else group.oi_short
    return side_oi + position_size_collateral <= group.max_oi
