from pydantic import BaseModel, Field, field_validator

from .data.base import City, PropertyCondition, PropertyInput

class PropertyRequest(BaseModel):
    city: City
    district: str | None = Field(default=None, max_length=120)
    area_m2: float = Field(gt=0, le=10_000)
    rooms: int | None = Field(default=None, ge=1, le=50)
    floor: int | None = None
    condition: PropertyCondition
    has_balcony: bool | None = None
    has_parking: bool | None = None
    is_new_building: bool | None = None
    additional_info: str | None = Field(default=None, max_length=2000)

    def to_input(self) -> PropertyInput:
        district = self.district.strip() if self.district else None
        return PropertyInput(
            city=self.city,
            district=district or None,
            area_m2=self.area_m2,
            rooms=self.rooms,
            floor=self.floor,
            condition=self.condition,
            has_balcony=self.has_balcony,
            has_parking=self.has_parking,
            is_new_building=self.is_new_building,
            additional_info=self.additional_info,
        )

class ValuationRequest(PropertyRequest):
    pass

class FairValueRequest(PropertyRequest):
    asking_price: float = Field(gt=0, allow_inf_nan=False)

class Range(BaseModel):
    low: int
    high: int

class FactorScore(BaseModel):
    score: int
    max_score: int
    description: str

class ConfidenceFactors(BaseModel):
    comparables_count: FactorScore
    data_quality: FactorScore
    location_match: FactorScore
    price_consistency: FactorScore

class ComparableStats(BaseModel):
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
    districts: list[str]

    @field_validator("standard_deviation", "coefficient_of_variation")
    @classmethod
    def _two_decimals(cls, v: float) -> float:
        return round(v, 2)

class Factor(BaseModel):
    factor: str
    impact: str
    description: str

class ValuationResponse(BaseModel):
    currency: str = "EUR"
    estimated_price: int
    price_range: Range
    price_per_m2: int
    confidence: str
    confidence_score: int = Field(ge=0, le=100)
    confidence_factors: ConfidenceFactors
    comparables: ComparableStats | None
    analysis: str
    factors: list[Factor]
    market_insight: str
    warnings: list[str]
    source: str
    disclaimer: str = "This valuation is an estimate and not a financial appraisal."
    etag: str | None = None

class FairValueResponse(BaseModel):
    status: str
    label: str
    comparables_count: int
    asking_price: float
    fair_value: int | None = None
    difference: int | None = None
    difference_percent: int | None = None
    avg_price_per_m2: int | None = None
    median_price_per_m2: int | None = None
