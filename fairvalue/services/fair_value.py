"""Quick check of an asking price against comparable listings."""

from dataclasses import dataclass
from typing import Literal, Optional

from ..data.base import PropertyCatalog, PropertyInput
from .comparables import calculate_statistics, select_comparables

FAIR_VALUE_SAMPLE = 100
MIN_COMPARABLES = 3

FairValueStatus = Literal[
    "insufficient_data", "great_deal", "good_deal", "fair", "overpriced", "very_overpriced"
]

# Upper bound of the price difference (%) for each status, checked in order
_BANDS = (
    (-15, "great_deal", "Great price"),
    (-5, "good_deal", "Good price"),
    (5, "fair", "Fair price"),
    (15, "overpriced", "Slightly overpriced"),
)


@dataclass(frozen=True)
class FairValueAssessment:
    status: FairValueStatus
    label: str
    comparables_count: int
    asking_price: float
    fair_value: Optional[int] = None
    difference: Optional[int] = None
    difference_percent: Optional[int] = None
    avg_price_per_m2: Optional[int] = None
    median_price_per_m2: Optional[int] = None


def classify_difference(difference_percent: float) -> tuple[FairValueStatus, str]:
    for bound, status, label in _BANDS:
        if difference_percent <= bound:
            return status, label
    return "very_overpriced", "Overpriced"


async def assess_fair_value(
    catalog: PropertyCatalog, prop: PropertyInput, asking_price: float
) -> FairValueAssessment:
    """Compare `asking_price` with the median price/m² of up to 100 comparables.

    The median keeps single outliers from moving the fair value.
    """
    comparables = await select_comparables(catalog, prop, limit=FAIR_VALUE_SAMPLE)
    stats = calculate_statistics(comparables)
    if stats is None or stats.count < MIN_COMPARABLES:
        return FairValueAssessment(
            status="insufficient_data",
            label="Not enough similar properties",
            comparables_count=len(comparables),
            asking_price=asking_price,
        )

    fair_value = int(round(stats.median_price_per_m2 * prop.area_m2))
    difference = int(round(asking_price - fair_value))
    difference_percent = int(round(difference / fair_value * 100)) if fair_value else 0
    status, label = classify_difference(difference_percent)

    return FairValueAssessment(
        status=status,
        label=label,
        comparables_count=stats.count,
        asking_price=asking_price,
        fair_value=fair_value,
        difference=difference,
        difference_percent=difference_percent,
        avg_price_per_m2=stats.avg_price_per_m2,
        median_price_per_m2=int(round(stats.median_price_per_m2)),
    )
