"""Fixed spread and price-after-impact helpers."""

from decimal import Decimal

from perpcalc.constants import PERCENTAGE
from perpcalc.models import LiquidationParams, UserPriceImpact

ZERO = Decimal("0")
TWO = Decimal("2")


def increases_positive_skew(long: bool, is_open: bool) -> bool:
    """Long opens and short closes buy; they push skew (and price) up."""
    return long == is_open


def get_fixed_spread_p(pair_spread_p: Decimal, long: bool, is_open: bool) -> Decimal:
    """Half the pair spread, signed against the trader."""
    half = pair_spread_p / TWO
    return half if increases_positive_skew(long, is_open) else -half


def get_spread_p(
    pair_spread_p: Decimal | None,
    is_liquidation: bool = False,
    liquidation_params: LiquidationParams | None = None,
    user_price_impact: UserPriceImpact | None = None,
) -> Decimal:
    """Unsigned spread % including any user fixed spread.

    For liquidations the spread is capped at ``max_liq_spread_p`` when set.
    """
    fixed_spread_p = user_price_impact.fixed_spread_p if user_price_impact is not None else ZERO

    if pair_spread_p is None or (pair_spread_p == 0 and fixed_spread_p == 0):
        return ZERO

    spread_p = pair_spread_p / TWO + fixed_spread_p

    if (
        is_liquidation
        and liquidation_params is not None
        and liquidation_params.max_liq_spread_p > 0
        and spread_p > liquidation_params.max_liq_spread_p
    ):
        return liquidation_params.max_liq_spread_p
    return spread_p


def get_price_after_impact(price: Decimal, price_impact_p: Decimal) -> Decimal:
    return price * (1 + price_impact_p / PERCENTAGE)
