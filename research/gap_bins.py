"""
Gap Binning and Numeric Helpers
===============================
Shared by the daily extractor, the aggregation engine and the 0-15m overlay.

Bins partition absolute gap size (percent) into four half-open intervals:

    [effective_min, 0.5)  [0.5, 1.0)  [1.0, 1.5)  [1.5, inf)

where effective_min = max(min_gap, 0.1). A gap below effective_min (only
possible when min_gap < 0.1) lands in no bin and is labelled "other".
"""

from dataclasses import dataclass
import math
from typing import List, Optional, Sequence, Tuple

from core.types import Recommendation

BIN_FLOOR = 0.1
BIN_EDGES = (0.5, 1.0, 1.5)
OTHER_LABEL = "other"

FOLLOW_THRESHOLD = 60.0
FADE_THRESHOLD = 40.0


@dataclass(frozen=True)
class GapBin:
    """Half-open [lower, upper) range of absolute gap percent."""
    index: int
    lower: float
    upper: float
    label: str

    def contains(self, abs_gap: float) -> bool:
        return self.lower <= abs_gap < self.upper


def _edge_label(value: float) -> str:
    """0.3 -> '0.3', 0.25 -> '0.25', 1 -> '1.0'."""
    text = f"{value:.2f}".rstrip("0")
    return text + "0" if text.endswith(".") else text


def default_bins(min_gap: float, floor: float = BIN_FLOOR,
                 edges: Sequence[float] = BIN_EDGES) -> List[GapBin]:
    """
    Build the four gap-size bins for a minimum-gap threshold.

    The first bin's lower edge (and label) is the effective minimum, so
    consumers see the true lower edge rather than a fixed constant.
    """
    start = max(min_gap, floor)
    lowers = [start] + list(edges)
    uppers = list(edges) + [math.inf]

    bins = []
    for i, (lower, upper) in enumerate(zip(lowers, uppers)):
        if math.isinf(upper):
            label = f">{_edge_label(lower)}%"
        else:
            label = f"{_edge_label(lower)}–{_edge_label(upper)}%"
        bins.append(GapBin(index=i, lower=lower, upper=upper, label=label))
    return bins


def classify_gap(abs_gap: float, bins: Sequence[GapBin]) -> Tuple[Optional[int], str]:
    """Return (bin index, label) for an absolute gap, or (None, 'other')."""
    for gap_bin in bins:
        if gap_bin.contains(abs_gap):
            return gap_bin.index, gap_bin.label
    return None, OTHER_LABEL


def sign(x: float) -> int:
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


def pct_change(new: float, base: float) -> float:
    """(new - base) / base * 100, 0 when base is zero."""
    if base == 0:
        return 0.0
    return (new - base) / base * 100.0


def rate(numerator: int, denominator: int) -> float:
    """
    Percentage numerator/denominator, 0 for an empty denominator.

    Multiplying before dividing keeps exact ratios exact (3 of 5 is 60.0,
    not 60.00000000000001), which the strict recommendation thresholds rely on.
    """
    if denominator == 0:
        return 0.0
    return numerator * 100.0 / denominator


def average(total: float, count: int) -> float:
    if count == 0:
        return 0.0
    return total / count


def recommend(continuation_rate: float,
              follow_threshold: float = FOLLOW_THRESHOLD,
              fade_threshold: float = FADE_THRESHOLD) -> Recommendation:
    """FOLLOW above 60%, FADE below 40%, NEUTRAL otherwise (bounds inclusive)."""
    if continuation_rate > follow_threshold:
        return Recommendation.FOLLOW
    if continuation_rate < fade_threshold:
        return Recommendation.FADE
    return Recommendation.NEUTRAL


def round_half_away(value: float, places: int) -> float:
    """
    Round to `places` decimals, halves away from zero.

    Python's round() is half-to-even on the binary value; reports use the
    conventional rounding instead. Negative zero is normalised to 0.0.
    """
    if value is None or math.isnan(value) or math.isinf(value):
        return value
    scale = 10 ** places
    rounded = math.floor(abs(value) * scale + 0.5) / scale
    return math.copysign(rounded, value) + 0.0


def round1(value: float) -> float:
    return round_half_away(value, 1)


def round2(value: float) -> float:
    return round_half_away(value, 2)


def round3(value: float) -> float:
    return round_half_away(value, 3)
