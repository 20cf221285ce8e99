"""Tests for hierarchical (group -> pair) borrowing fees."""

from decimal import Decimal

import pytest

from perpcalc.fees.borrowing_v1 import (
    BorrowingV1Context,
    get_borrowing_fee,
    get_pending_acc_fees,
    within_max_group_oi,
)
from perpcalc.fees.models import BorrowingGroup, BorrowingInitialAccFees, BorrowingPair, BorrowingPairGroup
from perpcalc.models import OpenInterest

SIZE = Decimal("10000")


def make_pair(groups: tuple[BorrowingPairGroup, ...] = ()) -> BorrowingPair:
    """Pair accruing 0.01%/block at full imbalance, long acc 1 at block 100."""
    return BorrowingPair(
        fee_per_block=Decimal("0.01"),
        acc_fee_long=Decimal("1"),
        acc_fee_short=Decimal("0"),
        acc_last_updated_block=100,
        groups=groups,
    )


def make_group() -> BorrowingGroup:
    """Group accruing 0.02%/block at full imbalance, long acc 2 at block 100."""
    return BorrowingGroup(
        oi_long=Decimal("60"),
        oi_short=Decimal("20"),
        max_oi=Decimal("100"),
        fee_per_block=Decimal("0.02"),
        acc_fee_long=Decimal("2"),
        acc_fee_short=Decimal("0"),
        acc_last_updated_block=100,
    )


@pytest.fixture
def pair_oi() -> dict[int, OpenInterest]:
    return {1: OpenInterest(long=Decimal("60"), short=Decimal("20"), max=Decimal("100"))}


class TestPendingAccFees:
    """Test get_pending_acc_fees."""

    def test_long_heavy_accrues_to_longs(self) -> None:
        """0.01 * 10 blocks * (40 / 100) = 0.04."""
        pending = get_pending_acc_fees(
            Decimal("0"), Decimal("0"), Decimal("60"), Decimal("20"), Decimal("100"),
            Decimal("0.01"), 1, 110, 100,
        )
        assert pending.delta == Decimal("0.04")
        assert pending.acc_fee_long == Decimal("0.04")
        assert pending.acc_fee_short == Decimal("0")

    def test_short_heavy_accrues_to_shorts(self) -> None:
        pending = get_pending_acc_fees(
            Decimal("0"), Decimal("0"), Decimal("20"), Decimal("60"), Decimal("100"),
            Decimal("0.01"), 1, 110, 100,
        )
        assert pending.delta == Decimal("-0.04")
        assert pending.acc_fee_long == Decimal("0")
        assert pending.acc_fee_short == Decimal("0.04")

    def test_fee_exponent(self) -> None:
        """0.01 * 10 * 0.4^2 = 0.016."""
        pending = get_pending_acc_fees(
            Decimal("0"), Decimal("0"), Decimal("60"), Decimal("20"), Decimal("100"),
            Decimal("0.01"), 2, 110, 100,
        )
        assert pending.acc_fee_long == Decimal("0.016")

    @pytest.mark.parametrize(
        ("max_oi", "current_block", "oi_short"),
        [
            (Decimal("0"), 110, Decimal("20")),  # unlimited
            (Decimal("100"), 100, Decimal("20")),  # no blocks elapsed
            (Decimal("100"), 110, Decimal("60")),  # balanced
        ],
    )
    def test_neutral_cases(self, max_oi: Decimal, current_block: int, oi_short: Decimal) -> None:
        pending = get_pending_acc_fees(
            Decimal("1"), Decimal("2"), Decimal("60"), oi_short, max_oi,
            Decimal("0.01"), 1, current_block, 100,
        )
        assert pending.delta == Decimal("0")
        assert pending.acc_fee_long == Decimal("1")
        assert pending.acc_fee_short == Decimal("2")


class TestBorrowingFee:
    """Test get_borrowing_fee across group histories."""

    def test_missing_pair_is_free(self) -> None:
        context = BorrowingV1Context(current_block=110)
        fee = get_borrowing_fee(SIZE, 1, True, BorrowingInitialAccFees(Decimal("0"), Decimal("0"), 50), context)
        assert fee == Decimal("0")

    def test_pair_without_groups(self, pair_oi: dict[int, OpenInterest]) -> None:
        """Pending pair acc 1.04 - initial 0.5 = 0.54%, on 10000 = 54."""
        context = BorrowingV1Context(current_block=110, pairs={1: make_pair()}, open_interest=pair_oi)
        initial = BorrowingInitialAccFees(acc_pair_fee=Decimal("0.5"), acc_group_fee=Decimal("0"), block=50)

        assert get_borrowing_fee(SIZE, 1, True, initial, context) == Decimal("54")

    def test_current_group_takes_larger_delta(self, pair_oi: dict[int, OpenInterest]) -> None:
        """Group: 2.08 - 1.5 = 0.58. Pair: 1.04 - 0.5 = 0.54. Larger wins."""
        context = BorrowingV1Context(
            current_block=110,
            groups={7: make_group()},
            pairs={1: make_pair(groups=(BorrowingPairGroup(group_index=7, block=10),))},
            open_interest=pair_oi,
        )
        initial = BorrowingInitialAccFees(acc_pair_fee=Decimal("0.5"), acc_group_fee=Decimal("1.5"), block=50)

        assert get_borrowing_fee(SIZE, 1, True, initial, context) == Decimal("58")

    def test_group_change_after_open_sums_levels(self, pair_oi: dict[int, OpenInterest]) -> None:
        """Trade opened at block 50 in group 3, pair moved to group 7 at block 80.

        Group 3 period (snapshot on group 7 entry): group 1.2 - 1.0, pair 0.8 - 0.5 -> 0.3.
        Group 7 period (live): group 2.08 - 1.9, pair 1.04 - 0.8 -> 0.24.
        """
        history = (
            BorrowingPairGroup(group_index=3, block=10),
            BorrowingPairGroup(
                group_index=7,
                block=80,
                initial_acc_fee_long=Decimal("1.9"),
                prev_group_acc_fee_long=Decimal("1.2"),
                pair_acc_fee_long=Decimal("0.8"),
            ),
        )
        context = BorrowingV1Context(
            current_block=110,
            groups={7: make_group()},
            pairs={1: make_pair(groups=history)},
            open_interest=pair_oi,
        )
        initial = BorrowingInitialAccFees(acc_pair_fee=Decimal("0.5"), acc_group_fee=Decimal("1.0"), block=50)

        assert get_borrowing_fee(SIZE, 1, True, initial, context) == Decimal("54")

    def test_pair_accrual_before_first_group(self, pair_oi: dict[int, OpenInterest]) -> None:
        """Trade opened at block 50, pair joined group 7 at block 80.

        Pair-only period: 0.8 - 0.5 = 0.3.
        Group 7 period: max(2.08 - 1.9, 1.04 - 0.8) = 0.24.
        """
        history = (
            BorrowingPairGroup(
                group_index=7,
                block=80,
                initial_acc_fee_long=Decimal("1.9"),
                pair_acc_fee_long=Decimal("0.8"),
            ),
        )
        context = BorrowingV1Context(
            current_block=110,
            groups={7: make_group()},
            pairs={1: make_pair(groups=history)},
            open_interest=pair_oi,
        )
        initial = BorrowingInitialAccFees(acc_pair_fee=Decimal("0.5"), acc_group_fee=Decimal("0"), block=50)

        assert get_borrowing_fee(SIZE, 1, True, initial, context) == Decimal("54")


class TestWithinMaxGroupOi:
    """Test within_max_group_oi."""

    def _context(self, max_oi: Decimal) -> BorrowingV1Context:
        group = BorrowingGroup(
            oi_long=Decimal("60"),
            oi_short=Decimal("20"),
            max_oi=max_oi,
            fee_per_block=Decimal("0"),
            acc_fee_long=Decimal("0"),
            acc_fee_short=Decimal("0"),
            acc_last_updated_block=0,
        )
        return BorrowingV1Context(
            current_block=0,
            groups={7: group},
            pairs={1: make_pair(groups=(BorrowingPairGroup(group_index=7, block=0),))},
        )

    def test_at_limit_allowed(self) -> None:
        assert within_max_group_oi(1, True, Decimal("40"), self._context(Decimal("100"))) is True

    def test_over_limit_rejected(self) -> None:
        assert within_max_group_oi(1, True, Decimal("41"), self._context(Decimal("100"))) is False

    def test_unlimited_group(self) -> None:
        assert within_max_group_oi(1, True, Decimal("1000000"), self._context(Decimal("0"))) is True

    def test_pair_without_group(self) -> None:
        assert within_max_group_oi(9, False, Decimal("1000000"), self._context(Decimal("100"))) is True
