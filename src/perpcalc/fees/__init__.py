"""Holding and trading fee engines.

Funding fees and borrowing v2 apply to v10+ trades; borrowing v1 applies to
older ones. Trading fees and holding fee aggregation live in
``perpcalc.fees.trading``.
"""

from perpcalc.fees.borrowing_v1 import BorrowingV1Context, get_borrowing_fee, within_max_group_oi
from perpcalc.fees.borrowing_v2 import get_pair_pending_acc_borrowing_fees, get_trade_borrowing_fees_collateral
from perpcalc.fees.funding import get_pair_pending_acc_funding_fees, get_trade_funding_fees
from perpcalc.fees.tiers import calculate_fee_amount, compute_fee_multiplier

__all__ = [
    "BorrowingV1Context",
    "calculate_fee_amount",
    "compute_fee_multiplier",
    "get_borrowing_fee",
    "get_pair_pending_acc_borrowing_fees",
    "get_pair_pending_acc_funding_fees",
    "get_trade_borrowing_fees_collateral",
    "get_trade_funding_fees",
    "within_max_group_oi",
]
