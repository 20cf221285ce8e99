"""Protocol constants shared by the fee, price impact and liquidation engines.

Values mirror the on-chain contracts. They are module-level constants and
must never be reassigned at runtime.
"""

from decimal import Decimal
from enum import IntEnum


class ContractsVersion(IntEnum):
    """Contract generation a trade was opened under."""

    BEFORE_V9_2 = 0
    V9_2 = 1
    V10 = 2


ONE_YEAR_SECONDS = 365 * 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * 60 * 60

# Funding fees
FUNDING_APR_MULTIPLIER_CAP = Decimal("100")  # smaller side earns up to 100x APR

# Borrowing v2 (validation only, 1000% APR)
MAX_BORROWING_RATE_PER_SECOND = Decimal("0.0317097")
PERCENTAGE = Decimal("100")

# Depth bands
DEPTH_BANDS_COUNT = 30
DEPTH_BANDS_PER_SLOT1 = 14
BPS = Decimal("10000")

# Price impact
SKEW_PRICE_IMPACT_DIVIDER = Decimal("2")  # matches cumulative volume impact scale
DEFAULT_PROTECTION_CLOSE_FACTOR = Decimal("1")
DEFAULT_CUMULATIVE_FACTOR = Decimal("1")

# Liquidation
DEFAULT_LIQ_THRESHOLD_P = Decimal("0.9")

# Fee tiers
TRAILING_PERIOD_DAYS = 30
MAX_FEE_TIERS = 8
FEE_MULTIPLIER_SCALE = Decimal("1")
