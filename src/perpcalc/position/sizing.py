"""Position size conversions between collateral and pair tokens.

All calculations use Decimal arithmetic exclusively -- no float conversions.
"""

from decimal import Decimal

from perpcalc.exceptions import InvalidInputError


def calculate_position_size_token(
    position_size_collateral: Decimal,
    current_price: Decimal,
) -> Decimal:
    """Convert a position size from collateral to pair tokens.

    Args:
        position_size_collateral: Position size in collateral units.
        current_price: Current pair price.

    Returns:
        Position size in tokens.

    Raises:
        InvalidInputError: If current_price is zero.
    """
    if current_price == 0:
        raise InvalidInputError("current price cannot be zero")
    return position_size_collateral / current_price


def calculate_position_size_collateral(
    position_size_token: Decimal,
    current_price: Decimal,
) -> Decimal:
    """Convert a position size from pair tokens to collateral."""
    return position_size_token * current_price


def calculate_partial_size_token(
    original_size_collateral: Decimal,
    delta_collateral: Decimal,
    original_size_token: Decimal,
) -> Decimal:
    """Token delta proportional to a collateral delta for partial adds/closes.

    Returns 0 when the original collateral size is 0.
    """
    if original_size_collateral == 0:
        return Decimal("0")
    return delta_collateral * original_size_token / original_size_collateral


def calculate_closing_position_size_token(
    position_size_collateral: Decimal,
    original_position_size_token: Decimal,
    original_collateral: Decimal,
    original_leverage: Decimal,
) -> Decimal:
    """Token size of the portion of a trade being closed.

    Args:
        position_size_collateral: Position size (collateral units) being closed.
        original_position_size_token: Full position size in tokens.
        original_collateral: Trade collateral amount.
        original_leverage: Trade leverage.

    Returns:
        Closing portion in tokens, 0 for an empty trade.
    """
    total_position_size_collateral = original_collateral * original_leverage
    if total_position_size_collateral == 0:
        return Decimal("0")
    return (
        position_size_collateral * original_position_size_token / total_position_size_collateral
    )
