"""Comparable selection and the descriptive statistics derived from it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..data.base import CatalogQuery, ComparableProperty, PropertyCatalog, PropertyInput

AREA_TOLERANCE = 0.2
ROOMS_TOLERANCE = 1
MAX_COMPARABLES = 50


def build_catalog_query(prop: PropertyInput, limit: int = MAX_COMPARABLES) -> CatalogQuery:
    """Same city, for sale, area within ±20 % and (when known) rooms within ±1."""
    rooms_min = rooms_max = None
    if prop.rooms:
        rooms_min = prop.rooms - ROOMS_TOLERANCE
        rooms_max = prop.rooms + ROOMS_TOLERANCE
    return CatalogQuery(
        city=prop.city,
        area_min=prop.area_m2 * (1 - AREA_TOLERANCE),
        area_max=prop.area_m2 * (1 + AREA_TOLERANCE),
        rooms_min=rooms_min,
        rooms_max=rooms_max,
        limit=limit,
    )


async def select_comparables(
    catalog: PropertyCatalog, prop: PropertyInput, limit: int = MAX_COMPARABLES
) -> List[ComparableProperty]:
    """Newest matching listings. An empty list means no market data."""
    comparables = await catalog.find(build_catalog_query(prop, limit))
    return list(comparables)[:limit]


@dataclass(frozen=True)
class ComparableStatistics:
    count: int
    avg_price: int
    avg_price_per_m2: int
    median_price: float
    median_price_per_m2: float
    min_price: float
    max_price: float
    min_price_per_m2: float
    max_price_per_m2: float
    standard_deviation: float
    coefficient_of_variation: float
    districts: Tuple[str, ...]


def _middle(values: np.ndarray) -> float:
    # Upper middle for even-length sets, no interpolation
    return float(np.sort(values)[len(values) // 2])


def calculate_statistics(
    comparables: Sequence[ComparableProperty],
) -> Optional[ComparableStatistics]:
    """Reduce comparables to descriptive statistics.

    Returns None for an empty sequence; callers must branch on it rather
    than treating it as zero-filled statistics. The standard deviation is
    the population one (divide by N) and the coefficient of variation is a
    percentage of the mean price, 0 when the mean is 0. Both keep full
    precision so confidence thresholds see the exact value; the API rounds
    them for display.
    """
    if not comparables:
        return None

    prices = np.array([c.price for c in comparables], dtype=float)
    per_m2 = np.array([c.price_per_m2 for c in comparables], dtype=float)

    mean_price = float(prices.mean())
    std = float(prices.std())
    cv = std / mean_price * 100 if mean_price else 0.0

    districts = []
    for c in comparables:
        if c.district and c.district not in districts:
            districts.append(c.district)

    return ComparableStatistics(
        count=len(comparables),
        avg_price=int(round(mean_price)),
        avg_price_per_m2=int(round(float(per_m2.mean()))),
        median_price=_middle(prices),
        median_price_per_m2=_middle(per_m2),
        min_price=float(prices.min()),
        max_price=float(prices.max()),
        min_price_per_m2=float(per_m2.min()),
        max_price_per_m2=float(per_m2.max()),
        standard_deviation=std,
        coefficient_of_variation=cv,
        districts=tuple(districts),
    )
