from datetime import datetime, timedelta, timezone
from typing import Iterable, List
from .base import (
    CatalogListing, CatalogQuery, City, ComparableProperty, ListingType,
    PropertyCatalog, PropertyCondition,
)
from ..core.utils import fnv1a_32, seeded_rand
from ..core.config import settings
import httpx

class InMemoryCatalog(PropertyCatalog):
    """
    Evaluates catalog queries over a fixed list of listings.
    Newest listings first, truncated to the query limit.
    """
    def __init__(self, listings: Iterable[CatalogListing]):
        self.listings = list(listings)

    async def find(self, query: CatalogQuery) -> List[ComparableProperty]:
        hits = [item for item in self.listings if query.matches(item)]
        hits.sort(key=lambda item: item.created_at, reverse=True)
        return [item.listing for item in hits[:query.limit]]

# Typical asking price per m² for apartments, by city
_BASE_PRICE_PER_M2 = {
    City.BRATISLAVA: 3850,
    City.KOSICE: 2450,
    City.PRESOV: 2050,
    City.ZILINA: 2680,
    City.BANSKA_BYSTRICA: 2150,
    City.TRNAVA: 2550,
    City.TRENCIN: 2350,
    City.NITRA: 2250,
}

_DISTRICTS = {
    City.BRATISLAVA: ["Staré Mesto", "Ružinov", "Petržalka", "Nové Mesto", "Karlova Ves", "Dúbravka"],
    City.KOSICE: ["Staré Mesto", "Sever", "Juh", "Západ", "Dargovských hrdinov"],
    City.PRESOV: ["Centrum", "Sekčov", "Sídlisko III", "Solivar"],
    City.ZILINA: ["Staré Mesto", "Vlčince", "Hliny", "Solinky"],
    City.BANSKA_BYSTRICA: ["Centrum", "Fončorda", "Sásová", "Radvaň"],
    City.TRNAVA: ["Staré Mesto", "Prednádražie", "Linčianska", "Družba"],
    City.TRENCIN: ["Centrum", "Juh", "Sihoť", "Zámostie"],
    City.NITRA: ["Staré Mesto", "Chrenová", "Klokočina", "Zobor"],
}

class MockCatalog(InMemoryCatalog):
    """
    Synthetic listings per city. Prices/attributes are plausible but fake;
    the same city always yields the same listings.
    """
    def __init__(self, per_city: int = 150):
        now = datetime.now(timezone.utc)
        super().__init__(
            item for city in City for item in self._generate(city, per_city, now)
        )

    @staticmethod
    def _generate(city: City, count: int, now: datetime) -> List[CatalogListing]:
        seed = fnv1a_32(city.value)
        districts = _DISTRICTS[city]
        conditions = list(PropertyCondition)
        base = _BASE_PRICE_PER_M2[city]
        out: List[CatalogListing] = []
        for i in range(count):
            r = seeded_rand(seed + i * 97, 8)
            rooms = 1 + int(r[0] * 5)                                # 1..5
            area = round(22 + rooms * 17 + r[1] * 22, 1)
            condition = conditions[int(r[2] * len(conditions)) % len(conditions)]
            price_per_m2 = round(base * condition.price_multiplier * (0.85 + r[3] * 0.3))
            district = districts[int(r[4] * len(districts)) % len(districts)]
            listing_type = ListingType.SALE if r[5] < 0.85 else ListingType.RENT
            age_days = int(r[6] * 180)
            out.append(CatalogListing(
                listing=ComparableProperty(
                    id=f"{city.value.lower()}-{i:04d}",
                    title=f"{rooms}-room apartment, {district}",
                    price=round(price_per_m2 * area),
                    area_m2=area,
                    price_per_m2=price_per_m2,
                    rooms=rooms,
                    floor=int(r[7] * 12),
                    condition=condition,
                    district=district,
                    days_on_market=age_days,
                    is_distressed=r[7] > 0.95,
                ),
                city=city,
                listing_type=listing_type,
                created_at=now - timedelta(days=age_days, minutes=i),
            ))
        return out

class HttpCatalog(PropertyCatalog):
    """
    Client for the listings service that owns the property catalog.
    """
    def __init__(self, base_url: str, timeout: float = 15, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def find(self, query: CatalogQuery) -> List[ComparableProperty]:
        params = {
            "city": query.city.value,
            "listing_type": query.listing_type.value,
            "area_min": query.area_min,
            "area_max": query.area_max,
            "limit": query.limit,
            "order": "-created_at",
        }
        if query.rooms_min is not None:
            params["rooms_min"] = query.rooms_min
        if query.rooms_max is not None:
            params["rooms_max"] = query.rooms_max
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.get(f"{self.base_url}/listings", params=params)
            r.raise_for_status()
            items = r.json()
            return [
                ComparableProperty(
                    id=str(i["id"]),
                    title=i.get("title") or "",
                    price=float(i["price"]),
                    area_m2=float(i["area_m2"]),
                    price_per_m2=float(i["price_per_m2"]),
                    rooms=i.get("rooms"), floor=i.get("floor"),
                    condition=PropertyCondition(i["condition"]) if i.get("condition") else None,
                    district=i.get("district"),
                    days_on_market=i.get("days_on_market"),
                    is_distressed=bool(i.get("is_distressed", False)),
                ) for i in items[:query.limit]
            ]

def catalog_client() -> PropertyCatalog:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.CATALOG_PROVIDER == "http" and settings.CATALOG_BASE_URL:
        return HttpCatalog(settings.CATALOG_BASE_URL)
    return MockCatalog()
