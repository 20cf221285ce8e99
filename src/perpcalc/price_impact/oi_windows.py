"""Rolling open interest windows used as cumulative volume."""

from collections.abc import Mapping
from decimal import Decimal

from perpcalc.exceptions import InvalidInputError
from perpcalc.price_impact.models import OiWindow, OiWindowsSettings

ZERO = Decimal("0")


def get_current_oi_window_id(settings: OiWindowsSettings, current_timestamp: int) -> int:
    if settings.windows_duration <= 0:
        raise InvalidInputError(f"OI windows duration must be positive, got {settings.windows_duration}")
    return (current_timestamp - settings.start_ts) // settings.windows_duration


def get_active_oi(
    current_window_id: int,
    windows_count: int,
    oi_windows: Mapping[int, OiWindow] | None,
    buy: bool,
) -> Decimal:
    """Sum the buy- or sell-side OI over the last ``windows_count`` windows."""
    if oi_windows is None or windows_count == 0:
        return ZERO

    active_oi = ZERO
    for window_id in range(current_window_id - (windows_count - 1), current_window_id + 1):
        window = oi_windows.get(window_id)
        if window is not None:
            active_oi += window.oi_long_usd if buy else window.oi_short_usd
    return active_oi
