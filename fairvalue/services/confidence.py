"""Confidence scoring for comparable-based valuations.

Four independent factors add up to a 0-100 score:

    comparables count   0-30
    data quality        0-25   (coefficient of variation of prices)
    location match      0-25   (district coverage)
    price consistency   0-20   (mean vs. median distance)

Warnings are collected in that same order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from .comparables import ComparableStatistics
from ..core.utils import normalize_district
from ..data.base import PropertyInput

ConfidenceLevel = Literal["low", "medium", "high"]

HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 40
NO_DATA_SCORE = 10

WARN_NO_COMPARABLES = (
    "No comparable properties found: this is a purely theoretical estimate."
)


@dataclass(frozen=True)
class ConfidenceFactor:
    score: int
    max_score: int
    description: str


@dataclass(frozen=True)
class ConfidenceResult:
    comparables_count: ConfidenceFactor
    data_quality: ConfidenceFactor
    location_match: ConfidenceFactor
    price_consistency: ConfidenceFactor
    total_score: int
    level: ConfidenceLevel
    warnings: List[str] = field(default_factory=list)

    @property
    def factors(self) -> Tuple[ConfidenceFactor, ...]:
        return (self.comparables_count, self.data_quality, self.location_match, self.price_consistency)


def confidence_level(total: int) -> ConfidenceLevel:
    if total >= HIGH_THRESHOLD:
        return "high"
    if total >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def _count_factor(count: int) -> Tuple[ConfidenceFactor, Optional[str]]:
    if count >= 20:
        return ConfidenceFactor(30, 30, f"{count} comparables: a robust sample"), None
    if count >= 10:
        return ConfidenceFactor(25, 30, f"{count} comparables: a good sample"), None
    if count >= 5:
        return ConfidenceFactor(18, 30, f"{count} comparables: an adequate sample"), None
    if count >= 3:
        return (
            ConfidenceFactor(10, 30, f"{count} comparables: a small sample"),
            f"Few comparables ({count}): treat the estimate as indicative.",
        )
    return (
        ConfidenceFactor(3, 30, f"{count} comparable(s): too small a sample"),
        f"Critically few comparables ({count}): the estimate is unreliable.",
    )


def _quality_factor(cv: float) -> Tuple[ConfidenceFactor, Optional[str]]:
    if cv <= 10:
        return ConfidenceFactor(25, 25, f"Prices are tightly clustered (CV {cv:.1f}%)"), None
    if cv <= 20:
        return ConfidenceFactor(20, 25, f"Prices are moderately spread (CV {cv:.1f}%)"), None
    if cv <= 35:
        return (
            ConfidenceFactor(12, 25, f"Prices are widely spread (CV {cv:.1f}%)"),
            f"Wide price dispersion among comparables (CV {cv:.1f}%).",
        )
    return (
        ConfidenceFactor(5, 25, f"Prices are scattered (CV {cv:.1f}%)"),
        f"Extreme price dispersion among comparables (CV {cv:.1f}%).",
    )


def _location_factor(stats: ComparableStatistics, prop: PropertyInput) -> ConfidenceFactor:
    wanted = normalize_district(prop.district)
    district_match = bool(wanted) and wanted in {normalize_district(d) for d in stats.districts}
    if district_match and stats.count >= 5:
        return ConfidenceFactor(25, 25, f"Comparables include the {prop.district} district")
    if district_match:
        return ConfidenceFactor(18, 25, f"Few comparables from the {prop.district} district")
    if stats.count >= 10:
        return ConfidenceFactor(15, 25, "City-wide comparables, no district match")
    return ConfidenceFactor(8, 25, "Weak location match")


def _consistency_factor(stats: ComparableStatistics) -> Tuple[ConfidenceFactor, Optional[str]]:
    if stats.avg_price:
        deviation = abs(stats.avg_price - stats.median_price) / stats.avg_price * 100
    else:
        deviation = 0.0
    if deviation <= 5:
        return ConfidenceFactor(20, 20, f"Mean and median agree ({deviation:.1f}% apart)"), None
    if deviation <= 15:
        return ConfidenceFactor(15, 20, f"Mean and median are close ({deviation:.1f}% apart)"), None
    if deviation <= 30:
        return (
            ConfidenceFactor(8, 20, f"Mean and median diverge ({deviation:.1f}% apart)"),
            f"Possible outliers: mean and median price differ by {deviation:.1f}%.",
        )
    return (
        ConfidenceFactor(3, 20, f"Mean and median are far apart ({deviation:.1f}% apart)"),
        f"Extreme outliers: mean and median price differ by {deviation:.1f}%.",
    )


def _no_data_result() -> ConfidenceResult:
    # City-level knowledge is all that remains
    return ConfidenceResult(
        comparables_count=ConfidenceFactor(0, 30, "No comparables found"),
        data_quality=ConfidenceFactor(0, 25, "No price data"),
        location_match=ConfidenceFactor(NO_DATA_SCORE, 25, "City-level market knowledge only"),
        price_consistency=ConfidenceFactor(0, 20, "No price data"),
        total_score=NO_DATA_SCORE,
        level="low",
        warnings=[WARN_NO_COMPARABLES],
    )


def score_confidence(stats: Optional[ComparableStatistics], prop: PropertyInput) -> ConfidenceResult:
    """Score how far a valuation built on `stats` can be trusted.

    None statistics short-circuit to a fixed low result; no factor is
    evaluated against missing data.
    """
    if stats is None or stats.count == 0:
        return _no_data_result()

    warnings: List[str] = []
    count, warning = _count_factor(stats.count)
    if warning:
        warnings.append(warning)
    quality, warning = _quality_factor(stats.coefficient_of_variation)
    if warning:
        warnings.append(warning)
    location = _location_factor(stats, prop)
    consistency, warning = _consistency_factor(stats)
    if warning:
        warnings.append(warning)

    total = count.score + quality.score + location.score + consistency.score
    return ConfidenceResult(
        comparables_count=count,
        data_quality=quality,
        location_match=location,
        price_consistency=consistency,
        total_score=total,
        level=confidence_level(total),
        warnings=warnings,
    )
