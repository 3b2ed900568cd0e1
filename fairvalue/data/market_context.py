"""Macro-market context for valuation prompts.

Regional residential prices published quarterly by the National Bank of
Slovakia (NBS), rendered as a short text block. Providers never raise: the
HTTP provider falls back to the bundled quarterly table when the service
fails, and works uncached when the cache backend is down.
"""

import logging
from typing import Iterable, List

import httpx
import redis

from .base import MarketContextProvider, RegionalPrice
from ..core.cache import Cache, cache as shared_cache
from ..core.config import settings

logger = logging.getLogger(__name__)

# NBS residential prices, Q3 2025
NBS_Q3_2025: List[RegionalPrice] = [
    RegionalPrice("Bratislavský kraj", "APARTMENT", 3850, 5.2),
    RegionalPrice("Bratislavský kraj", "HOUSE", 2950, 4.8),
    RegionalPrice("Košický kraj", "APARTMENT", 2450, 7.8),
    RegionalPrice("Košický kraj", "HOUSE", 1850, 6.2),
    RegionalPrice("Žilinský kraj", "APARTMENT", 2680, 6.5),
    RegionalPrice("Žilinský kraj", "HOUSE", 2100, 5.8),
    RegionalPrice("Nitriansky kraj", "APARTMENT", 2150, 5.9),
    RegionalPrice("Nitriansky kraj", "HOUSE", 1680, 4.5),
    RegionalPrice("Prešovský kraj", "APARTMENT", 2080, 8.2),
    RegionalPrice("Prešovský kraj", "HOUSE", 1520, 7.1),
    RegionalPrice("Trenčiansky kraj", "APARTMENT", 2280, 5.4),
    RegionalPrice("Trenčiansky kraj", "HOUSE", 1780, 4.2),
    RegionalPrice("Trnavský kraj", "APARTMENT", 2520, 4.8),
    RegionalPrice("Trnavský kraj", "HOUSE", 1950, 3.9),
    RegionalPrice("Banskobystrický kraj", "APARTMENT", 1920, 7.5),
    RegionalPrice("Banskobystrický kraj", "HOUSE", 1450, 6.8),
]

def format_regional_prices(rows: Iterable[RegionalPrice]) -> str:
    """One line per region: apartment and house price per m², YoY change of apartments."""
    by_region: dict[str, dict] = {}
    for row in rows:
        entry = by_region.setdefault(row.region, {})
        if row.property_type == "APARTMENT":
            entry["apartment"] = row.price_per_m2
            entry["change_yoy"] = row.change_yoy
        elif row.property_type == "HOUSE":
            entry["house"] = row.price_per_m2

    lines = []
    for region, v in by_region.items():
        parts = []
        if v.get("apartment") is not None:
            parts.append(f"apartments €{v['apartment']:.0f}/m²")
        if v.get("house") is not None:
            parts.append(f"houses €{v['house']:.0f}/m²")
        if not parts:
            continue
        yoy = ""
        if v.get("change_yoy") is not None:
            yoy = f" (YoY {'+' if v['change_yoy'] > 0 else ''}{v['change_yoy']}%)"
        lines.append(f"- {region}: {', '.join(parts)}{yoy}")

    if not lines:
        return ""
    return "\n".join(["NBS data (quarterly residential prices):", *lines])

class StaticMarketContext(MarketContextProvider):
    """
    Serves the bundled NBS table. Used offline and as the default.
    """
    def __init__(self, rows: Iterable[RegionalPrice] = NBS_Q3_2025):
        self.rows = list(rows)

    async def context_text(self) -> str:
        return format_regional_prices(self.rows)

class HttpMarketContext(MarketContextProvider):
    """
    Fetches the regional price table from a statistics service and keeps
    the rendered text in the shared cache. Falls back to the bundled table
    when the service is unreachable or returns nothing usable.
    """
    cache_key = "market_context:nbs"

    def __init__(
        self,
        base_url: str,
        cache: Cache = shared_cache,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
        fallback_rows: Iterable[RegionalPrice] = NBS_Q3_2025,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.timeout = timeout
        self.transport = transport
        self.fallback_rows = list(fallback_rows)

    async def context_text(self) -> str:
        cached = self._cached()
        if cached:
            return cached
        try:
            rows = await self._fetch()
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Market context service unavailable, using bundled NBS table: %s", exc)
            return format_regional_prices(self.fallback_rows)
        text = format_regional_prices(rows)
        if not text:
            logger.warning("Market context service returned no rows, using bundled NBS table")
            return format_regional_prices(self.fallback_rows)
        self._store(text)
        return text

    async def _fetch(self) -> List[RegionalPrice]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.get(f"{self.base_url}/property-prices")
            r.raise_for_status()
            items = r.json()
        return [
            RegionalPrice(
                region=i["region"],
                property_type=i["propertyType"],
                price_per_m2=float(i["pricePerSqm"]),
                change_yoy=i.get("changeYoY"),
            ) for i in items
        ]

    def _cached(self) -> str | None:
        try:
            return self.cache.get(self.cache_key)
        except redis.RedisError as exc:
            logger.warning("Market context cache read failed: %s", exc)
            return None

    def _store(self, text: str) -> None:
        try:
            self.cache.set(self.cache_key, text)
        except redis.RedisError as exc:
            logger.warning("Market context cache write failed: %s", exc)

def market_context_client() -> MarketContextProvider:
    if settings.MARKET_CONTEXT_PROVIDER == "http" and settings.MARKET_CONTEXT_BASE_URL:
        return HttpMarketContext(settings.MARKET_CONTEXT_BASE_URL)
    return StaticMarketContext()
