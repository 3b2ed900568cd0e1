import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

from ..data.base import ComparableProperty, PropertyInput
from ..services.comparables import ComparableStatistics

Impact = Literal["positive", "negative", "neutral"]
_IMPACTS = ("positive", "negative", "neutral")

class NarrativeError(RuntimeError):
    """The narrative call failed or its reply could not be used."""

@dataclass(frozen=True)
class ValuationFactor:
    factor: str
    impact: Impact
    description: str

@dataclass(frozen=True)
class NarrativeRequest:
    prompt: str
    property: PropertyInput
    statistics: Optional[ComparableStatistics]
    comparables: Sequence[ComparableProperty] = ()

@dataclass
class Narrative:
    estimated_price: float
    price_low: float
    price_high: float
    analysis: str
    factors: List[ValuationFactor] = field(default_factory=list)
    market_insight: str = ""
    # Self-reported by the model; superseded by the local confidence score
    confidence: Optional[str] = None

class NarrativeSynthesizer(Protocol):
    async def synthesize(self, request: NarrativeRequest) -> Narrative:
        """
        Produce a price estimate, range and explanation for the request.
        Raises NarrativeError (or any exception) when no narrative is available.
        """
        ...

_FENCE = re.compile(r"```(?:json)?\s*|\s*```")

def _number(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NarrativeError(f"{key} must be a number, got {value!r}")
    if value <= 0:
        raise NarrativeError(f"{key} must be positive, got {value!r}")
    return float(value)

def parse_narrative(text: str) -> Narrative:
    """Decode a completion that should hold one JSON object.

    Markdown code fences around the object are stripped first.
    """
    cleaned = _FENCE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise NarrativeError("Completion is not valid JSON") from exc
    if not isinstance(data, dict):
        raise NarrativeError("Completion JSON is not an object")

    missing = {"estimatedPrice", "priceLow", "priceHigh", "analysis"}.difference(data)
    if missing:
        raise NarrativeError(f"Malformed response missing keys: {sorted(missing)}")

    factors = []
    for item in data.get("factors") or []:
        if not isinstance(item, dict) or not item.get("factor"):
            continue
        impact = item.get("impact")
        factors.append(ValuationFactor(
            factor=str(item["factor"]),
            impact=impact if impact in _IMPACTS else "neutral",
            description=str(item.get("description") or ""),
        ))

    return Narrative(
        estimated_price=_number(data, "estimatedPrice"),
        price_low=_number(data, "priceLow"),
        price_high=_number(data, "priceHigh"),
        analysis=str(data["analysis"]),
        factors=factors,
        market_insight=str(data.get("marketInsight") or ""),
        confidence=data.get("confidence"),
    )
