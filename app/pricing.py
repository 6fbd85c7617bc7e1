# Price-range parsing for free-text listing prices ("$300,000 - $400,000").
# Bounds are extracted once at write time and stored as numeric columns for filtering and sorting.
from __future__ import annotations

import re
from typing import Optional, Tuple

# A numeral with optional thousands separators and an optional decimal part
_NUMERAL = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?")


def parse_price_range(text: Optional[str]) -> Tuple[float, float]:
    """
    Return (minimum, maximum) parsed from a free-text price range.

    - The first numeral is the minimum; the second, when present, the maximum.
    - A single numeral yields the same value for both bounds.
    - No numeral at all yields (0.0, 0.0).
    """
    if not text:
        return 0.0, 0.0
    found = [float(m.replace(",", "")) for m in _NUMERAL.findall(text)]
    if not found:
        return 0.0, 0.0
    low = found[0]
    high = found[1] if len(found) > 1 else low
    if high < low:
        high = low
    return low, high
