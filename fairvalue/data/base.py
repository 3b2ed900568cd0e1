from typing import Protocol, List, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# ----- Enumerations -----

class City(str, Enum):
    BRATISLAVA = "BRATISLAVA"
    KOSICE = "KOSICE"
    PRESOV = "PRESOV"
    ZILINA = "ZILINA"
    BANSKA_BYSTRICA = "BANSKA_BYSTRICA"
    TRNAVA = "TRNAVA"
    TRENCIN = "TRENCIN"
    NITRA = "NITRA"

    @property
    def label(self) -> str:
        return CITY_LABELS[self]

CITY_LABELS = {
    City.BRATISLAVA: "Bratislava",
    City.KOSICE: "Košice",
    City.PRESOV: "Prešov",
    City.ZILINA: "Žilina",
    City.BANSKA_BYSTRICA: "Banská Bystrica",
    City.TRNAVA: "Trnava",
    City.TRENCIN: "Trenčín",
    City.NITRA: "Nitra",
}

class PropertyCondition(str, Enum):
    ORIGINAL = "original"
    RENOVATED = "renovated"
    NEW_BUILD = "new-build"

    @property
    def label(self) -> str:
        return {
            PropertyCondition.ORIGINAL: "original condition",
            PropertyCondition.RENOVATED: "renovated",
            PropertyCondition.NEW_BUILD: "new build",
        }[self]

    @property
    def price_multiplier(self) -> float:
        # Relative to a renovated unit
        return {
            PropertyCondition.ORIGINAL: 0.85,
            PropertyCondition.RENOVATED: 1.0,
            PropertyCondition.NEW_BUILD: 1.15,
        }[self]

    @property
    def impact(self) -> str:
        return {
            PropertyCondition.ORIGINAL: "negative",
            PropertyCondition.RENOVATED: "neutral",
            PropertyCondition.NEW_BUILD: "positive",
        }[self]

class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"

# ----- Data shapes (thin & explicit) -----

@dataclass(frozen=True)
class PropertyInput:
    """The subject property of a valuation request."""
    city: City
    area_m2: float
    condition: PropertyCondition
    district: Optional[str] = None
    rooms: Optional[int] = None
    floor: Optional[int] = None
    has_balcony: Optional[bool] = None
    has_parking: Optional[bool] = None
    is_new_building: Optional[bool] = None
    additional_info: Optional[str] = None

    def __post_init__(self):
        if self.area_m2 <= 0:
            raise ValueError("area_m2 must be positive")
        if self.rooms is not None and self.rooms < 1:
            raise ValueError("rooms must be a positive integer")

@dataclass(frozen=True)
class ComparableProperty:
    # Read-only projection of a catalog listing
    id: str
    title: str
    price: float
    area_m2: float
    price_per_m2: float
    rooms: Optional[int] = None
    floor: Optional[int] = None
    condition: Optional[PropertyCondition] = None
    district: Optional[str] = None
    days_on_market: Optional[int] = None
    is_distressed: bool = False

@dataclass(frozen=True)
class CatalogListing:
    # Full catalog record as held by in-process catalogs
    listing: ComparableProperty
    city: City
    listing_type: ListingType
    created_at: datetime

@dataclass(frozen=True)
class CatalogQuery:
    city: City
    area_min: float
    area_max: float
    listing_type: ListingType = ListingType.SALE
    rooms_min: Optional[int] = None
    rooms_max: Optional[int] = None
    limit: int = 50

    def matches(self, item: CatalogListing) -> bool:
        c = item.listing
        if item.city != self.city or item.listing_type != self.listing_type:
            return False
        if not (self.area_min <= c.area_m2 <= self.area_max):
            return False
        if self.rooms_min is not None or self.rooms_max is not None:
            if c.rooms is None:
                return False
            if self.rooms_min is not None and c.rooms < self.rooms_min:
                return False
            if self.rooms_max is not None and c.rooms > self.rooms_max:
                return False
        return True

@dataclass(frozen=True)
class RegionalPrice:
    # One row of the NBS quarterly residential price statistics
    region: str
    property_type: str          # "APARTMENT" | "HOUSE"
    price_per_m2: float
    change_yoy: Optional[float] = None

# ----- Protocols (interfaces) -----

class PropertyCatalog(Protocol):
    async def find(self, query: CatalogQuery) -> List[ComparableProperty]: ...

class MarketContextProvider(Protocol):
    async def context_text(self) -> str: ...
