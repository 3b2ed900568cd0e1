"""Shared fixtures for valuation tests.

Fixture: 65 m², 2-room renovated apartment in Bratislava-Ružinov.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fairvalue.core.cache import cache
from fairvalue.data.base import (
    CatalogListing, City, ComparableProperty, ListingType, PropertyCondition, PropertyInput,
)
from fairvalue.data.catalog_client import InMemoryCatalog
from fairvalue.data.market_context import StaticMarketContext
from fairvalue.models.base import Narrative, NarrativeError, ValuationFactor


def make_comparable(i: int = 0, price: float = 200_000, area_m2: float = 65.0, **kw) -> ComparableProperty:
    defaults = dict(
        id=f"cmp-{i}",
        title=f"2-room apartment #{i}",
        price=price,
        area_m2=area_m2,
        price_per_m2=round(price / area_m2),
        rooms=2,
        floor=3,
        condition=PropertyCondition.RENOVATED,
        district="Ružinov",
        days_on_market=20,
        is_distressed=False,
    )
    defaults.update(kw)
    return ComparableProperty(**defaults)


def make_listing(
    comparable: ComparableProperty,
    city: City = City.BRATISLAVA,
    listing_type: ListingType = ListingType.SALE,
    age_days: int = 0,
) -> CatalogListing:
    return CatalogListing(
        listing=comparable,
        city=city,
        listing_type=listing_type,
        created_at=datetime(2026, 6, 1, tzinfo=timezone.utc) - timedelta(days=age_days),
    )


class FakeCatalog:
    """Returns a fixed list and remembers the queries it saw."""

    def __init__(self, comparables=()):
        self.comparables = list(comparables)
        self.queries = []

    async def find(self, query):
        self.queries.append(query)
        return list(self.comparables)[:query.limit]


class FakeNarrator:
    def __init__(self, narrative: Narrative | None = None, error: Exception | None = None):
        self.narrative = narrative
        self.error = error
        self.requests = []

    async def synthesize(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.narrative


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def sample_input() -> PropertyInput:
    return PropertyInput(
        city=City.BRATISLAVA,
        district="Ružinov",
        area_m2=65,
        rooms=2,
        condition=PropertyCondition.RENOVATED,
        has_balcony=True,
    )


@pytest.fixture
def tight_comparables() -> list[ComparableProperty]:
    """12 listings around €200k, six of them in Ružinov."""
    prices = [194_000, 196_000, 197_000, 198_000, 199_000, 200_000,
              200_000, 201_000, 202_000, 203_000, 204_000, 206_000]
    return [
        make_comparable(i, price=p, district="Ružinov" if i % 2 == 0 else "Petržalka")
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def ai_narrative() -> Narrative:
    return Narrative(
        estimated_price=205_000,
        price_low=195_000,
        price_high=215_000,
        analysis="Priced in line with renovated two-room flats in Ružinov.",
        factors=[ValuationFactor("Location", "positive", "Well connected district")],
        market_insight="Demand in Ružinov remains steady.",
        confidence="low",
    )


@pytest.fixture
def failing_narrator() -> FakeNarrator:
    return FakeNarrator(error=NarrativeError("upstream timeout"))


@pytest.fixture
def market_context() -> StaticMarketContext:
    return StaticMarketContext()


@pytest.fixture
def memory_catalog() -> InMemoryCatalog:
    listings = [
        make_listing(make_comparable(0, area_m2=65), age_days=5),
        make_listing(make_comparable(1, area_m2=52.5), age_days=1),
        make_listing(make_comparable(2, area_m2=77.5), age_days=2),
        make_listing(make_comparable(3, area_m2=51.9), age_days=0),           # too small
        make_listing(make_comparable(4, area_m2=78.1), age_days=0),           # too large
        make_listing(make_comparable(5, rooms=4), age_days=0),                # too many rooms
        make_listing(make_comparable(6, rooms=1), age_days=3),
        make_listing(make_comparable(7, rooms=None), age_days=0),             # rooms unknown
        make_listing(make_comparable(8), city=City.KOSICE),
        make_listing(make_comparable(9), listing_type=ListingType.RENT),
    ]
    return InMemoryCatalog(listings)
