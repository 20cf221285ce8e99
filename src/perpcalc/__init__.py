"""Off-chain trading economics for a leveraged perpetuals protocol.

Pure Decimal implementations of funding fees, borrowing fees (v1 and v2),
fee tiers, price impact, liquidation prices and PnL.
"""

from perpcalc.calculator import TradeEconomicsCalculator
from perpcalc.config import AppSettings, EngineSettings
from perpcalc.constants import ContractsVersion
from perpcalc.exceptions import (
    ArithmeticInvariantError,
    ConfigurationError,
    EngineError,
    InvalidInputError,
    MissingDataError,
)
from perpcalc.models import Trade, TradeFeesData, TradeInfo

__all__ = [
    "AppSettings",
    "ArithmeticInvariantError",
    "ConfigurationError",
    "ContractsVersion",
    "EngineError",
    "EngineSettings",
    "InvalidInputError",
    "MissingDataError",
    "Trade",
    "TradeEconomicsCalculator",
    "TradeFeesData",
    "TradeInfo",
]
