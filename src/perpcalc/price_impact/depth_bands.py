"""Order book depth bands: validation, integration and on-chain slot codec.

A pair's depth on each side of mid is described by 30 cumulative liquidity
fractions. The global mapping gives the price offset reached at the end of
each band. Between two band edges the offset grows linearly with consumed
depth, so the cost of consuming part of a band is a trapezoid.

On-chain, bands are packed into two 256-bit slots as 16-bit basis points:

    slot1 = total_depth_usd (32 bits) | bands[0..13] << 32 + 16*i
    slot2 = bands[14..29] << 16*(i - 14)

The mapping uses the same layout without the total depth prefix.
"""

from collections.abc import Sequence
from decimal import Decimal

from perpcalc.constants import BPS, DEPTH_BANDS_COUNT, DEPTH_BANDS_PER_SLOT1
from perpcalc.exceptions import InvalidInputError
from perpcalc.price_impact.models import DepthBands, DepthBandsMapping

ZERO = Decimal("0")
ONE = Decimal("1")
TWO = Decimal("2")

UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF
TOTAL_DEPTH_BITS = 32
BAND_BITS = 16


def _validate_fractions(values: Sequence[Decimal], name: str) -> None:
    if len(values) != DEPTH_BANDS_COUNT:
        raise InvalidInputError(f"{name} must have {DEPTH_BANDS_COUNT} entries, got {len(values)}")

    previous = ZERO
    for i, value in enumerate(values):
        if value < 0 or value > 1:
            raise InvalidInputError(f"{name}[{i}]={value} outside [0, 1]")
        if value < previous:
            raise InvalidInputError(f"{name} must be non-decreasing (index {i})")
        previous = value


def validate_depth_bands(bands: DepthBands) -> None:
    """Raise InvalidInputError unless ``bands`` is well formed."""
    if bands.total_depth_usd < 0:
        raise InvalidInputError("total_depth_usd must be non-negative")
    _validate_fractions(bands.bands, "bands")


def validate_depth_bands_mapping(mapping: DepthBandsMapping) -> None:
    _validate_fractions(mapping.bands, "mapping")


def integrate_depth_bands(
    size_usd: Decimal,
    bands: DepthBands,
    mapping: DepthBandsMapping,
) -> Decimal:
    """Average price offset (fraction) paid to consume ``size_usd`` of depth.

    Bands whose cumulative fraction does not increase are merged into the
    next band. The band reaching 100% absorbs all remaining size on the same
    trapezoid, so the offset keeps climbing past the band end for sizes
    larger than the book.

    Args:
        size_usd: Size to consume, as an unsigned magnitude.
        bands: One side of the pair's depth.
        mapping: Global band price offsets.

    Returns:
        Size-weighted average offset, 0 for no size or no depth.

    Raises:
        InvalidInputError: If ``size_usd`` is negative or the bands are malformed.
    """
    if size_usd < 0:
        raise InvalidInputError("depth band integration needs a non-negative size")
    validate_depth_bands(bands)
    validate_depth_bands_mapping(mapping)

    if size_usd == 0 or bands.total_depth_usd == 0:
        return ZERO

    remaining = size_usd
    weighted_offset = ZERO
    prev_fraction = ZERO
    prev_offset = ZERO

    for fraction, offset in zip(bands.bands, mapping.bands):
        if fraction <= prev_fraction:
            continue

        band_depth = (fraction - prev_fraction) * bands.total_depth_usd
        consumed = remaining if fraction >= ONE else min(remaining, band_depth)
        avg_offset = prev_offset + (offset - prev_offset) * consumed / band_depth / TWO
        weighted_offset += avg_offset * consumed
        remaining -= consumed

        prev_fraction = fraction
        prev_offset = offset
        if remaining == 0:
            break

    # Book described less than 100% of depth
    if remaining > 0:
        weighted_offset += prev_offset * remaining

    return weighted_offset / size_usd


def _check_uint(value: int, maximum: int, name: str) -> None:
    if value < 0 or value > maximum:
        raise InvalidInputError(f"{name}={value} does not fit in {maximum.bit_length()} bits")


def _pack_bands(values: Sequence[int], name: str) -> tuple[int, int]:
    if len(values) != DEPTH_BANDS_COUNT:
        raise InvalidInputError(f"{name} must have {DEPTH_BANDS_COUNT} entries, got {len(values)}")

    low = 0
    high = 0
    for i, value in enumerate(values):
        _check_uint(value, UINT16_MAX, f"{name}[{i}]")
        if i < DEPTH_BANDS_PER_SLOT1:
            low |= value << (i * BAND_BITS)
        else:
            high |= value << ((i - DEPTH_BANDS_PER_SLOT1) * BAND_BITS)
    return low, high


def _unpack_bands(low: int, high: int) -> list[int]:
    bands = [(low >> (i * BAND_BITS)) & UINT16_MAX for i in range(DEPTH_BANDS_PER_SLOT1)]
    bands.extend(
        (high >> ((i - DEPTH_BANDS_PER_SLOT1) * BAND_BITS)) & UINT16_MAX
        for i in range(DEPTH_BANDS_PER_SLOT1, DEPTH_BANDS_COUNT)
    )
    return bands


def encode_depth_bands(total_depth_usd: int, band_percentages_bps: Sequence[int]) -> tuple[int, int]:
    """Pack total depth and 30 band bps values into two uint256 slots."""
    _check_uint(total_depth_usd, UINT32_MAX, "total_depth_usd")
    low, high = _pack_bands(band_percentages_bps, "band_percentages_bps")
    return total_depth_usd | (low << TOTAL_DEPTH_BITS), high


def decode_depth_bands(slot1: int, slot2: int) -> tuple[int, list[int]]:
    """Inverse of ``encode_depth_bands``: (total_depth_usd, band bps)."""
    return slot1 & UINT32_MAX, _unpack_bands(slot1 >> TOTAL_DEPTH_BITS, slot2)


def encode_depth_bands_mapping(band_offsets_bps: Sequence[int]) -> tuple[int, int]:
    return _pack_bands(band_offsets_bps, "band_offsets_bps")


def decode_depth_bands_mapping(slot1: int, slot2: int) -> list[int]:
    return _unpack_bands(slot1, slot2)


def depth_bands_from_bps(total_depth_usd: int | Decimal, band_percentages_bps: Sequence[int]) -> DepthBands:
    """Build validated ``DepthBands`` from decoded slot values."""
    bands = DepthBands(
        total_depth_usd=Decimal(total_depth_usd),
        bands=tuple(Decimal(value) / BPS for value in band_percentages_bps),
    )
    validate_depth_bands(bands)
    return bands


def depth_bands_mapping_from_bps(band_offsets_bps: Sequence[int]) -> DepthBandsMapping:
    mapping = DepthBandsMapping(bands=tuple(Decimal(value) / BPS for value in band_offsets_bps))
    validate_depth_bands_mapping(mapping)
    return mapping
