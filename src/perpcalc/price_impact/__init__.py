"""Price impact: fixed spread, cumulative volume over depth bands, and skew.

Opening and closing composition live in ``perpcalc.price_impact.opening``
and ``perpcalc.price_impact.closing``.
"""

from perpcalc.price_impact.cumul_vol import get_trade_cumul_vol_price_impact_p
from perpcalc.price_impact.depth_bands import (
    decode_depth_bands,
    decode_depth_bands_mapping,
    encode_depth_bands,
    encode_depth_bands_mapping,
    integrate_depth_bands,
)
from perpcalc.price_impact.skew import calculate_skew_price_impact_p, get_trade_skew_price_impact
from perpcalc.price_impact.spread import get_fixed_spread_p, get_price_after_impact, get_spread_p

__all__ = [
    "calculate_skew_price_impact_p",
    "decode_depth_bands",
    "decode_depth_bands_mapping",
    "encode_depth_bands",
    "encode_depth_bands_mapping",
    "get_fixed_spread_p",
    "get_price_after_impact",
    "get_spread_p",
    "get_trade_cumul_vol_price_impact_p",
    "get_trade_skew_price_impact",
    "integrate_depth_bands",
]
