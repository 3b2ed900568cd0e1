import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.config import settings
from ..core.metrics import CONFIDENCE_SCORE, NARRATIVE_LATENCY, VALUATION_OUTCOMES
from ..core.utils import format_eur
from ..data.base import MarketContextProvider, PropertyCatalog, PropertyInput
from ..data.catalog_client import catalog_client
from ..data.market_context import market_context_client
from ..models.base import Narrative, NarrativeRequest, NarrativeSynthesizer, ValuationFactor
from ..models.mock_model import MockNarrator
from ..models.openai_model import OpenAINarrator
from .comparables import ComparableStatistics, calculate_statistics, select_comparables
from .confidence import ConfidenceLevel, ConfidenceResult, confidence_level, score_confidence
from .prompt import build_prompt

logger = logging.getLogger(__name__)

FALLBACK_PENALTY = 15
FALLBACK_FLOOR = 10
FALLBACK_SPREAD = 0.1
WARN_AI_UNAVAILABLE = "AI analysis unavailable: estimate computed from comparable averages."

class ValuationError(Exception):
    """Base class for valuation failures."""

class InsufficientDataError(ValuationError):
    """No comparables and no narrative: there is no price basis at all."""

@dataclass(frozen=True)
class PriceRange:
    low: int
    high: int

@dataclass
class ValuationResult:
    estimated_price: int
    price_range: PriceRange
    price_per_m2: int
    confidence: ConfidenceLevel
    confidence_score: int
    confidence_factors: ConfidenceResult
    comparables: Optional[ComparableStatistics]
    analysis: str
    factors: List[ValuationFactor] = field(default_factory=list)
    market_insight: str = ""
    warnings: List[str] = field(default_factory=list)
    source: str = "ai"  # ai | fallback

def assemble_result(
    narrative: Narrative,
    prop: PropertyInput,
    stats: Optional[ComparableStatistics],
    confidence: ConfidenceResult,
) -> ValuationResult:
    """Merge the narrative with the locally computed confidence.

    The model's own confidence label is ignored; local scoring is authoritative.
    """
    estimate = int(round(narrative.estimated_price))
    return ValuationResult(
        estimated_price=estimate,
        price_range=PriceRange(int(round(narrative.price_low)), int(round(narrative.price_high))),
        price_per_m2=int(round(estimate / prop.area_m2)),
        confidence=confidence.level,
        confidence_score=confidence.total_score,
        confidence_factors=confidence,
        comparables=stats,
        analysis=narrative.analysis,
        factors=list(narrative.factors),
        market_insight=narrative.market_insight,
        warnings=list(confidence.warnings),
        source="ai",
    )

def fallback_estimate(
    stats: Optional[ComparableStatistics],
    prop: PropertyInput,
    confidence: ConfidenceResult,
) -> ValuationResult:
    """Arithmetic estimate used when the narrative is unavailable.

    avg price/m² × area × condition multiplier, ±10 % range, confidence
    reduced by 15 points (never below 10).
    """
    if stats is None:
        raise InsufficientDataError("Not enough data to estimate the property value")

    estimate = int(round(stats.avg_price_per_m2 * prop.area_m2 * prop.condition.price_multiplier))
    score = max(FALLBACK_FLOOR, confidence.total_score - FALLBACK_PENALTY)

    return ValuationResult(
        estimated_price=estimate,
        price_range=PriceRange(
            low=int(round(estimate * (1 - FALLBACK_SPREAD))),
            high=int(round(estimate * (1 + FALLBACK_SPREAD))),
        ),
        price_per_m2=int(round(estimate / prop.area_m2)),
        confidence=confidence_level(score),
        confidence_score=score,
        confidence_factors=confidence,
        comparables=stats,
        analysis=(
            f"Estimate based on {stats.count} similar properties in {prop.city.label}. "
            f"The average price per m² is {format_eur(stats.avg_price_per_m2)}."
        ),
        factors=[ValuationFactor("Condition", prop.condition.impact, prop.condition.label)],
        market_insight="Estimate computed algorithmically (AI unavailable).",
        warnings=[*confidence.warnings, WARN_AI_UNAVAILABLE],
        source="fallback",
    )

def build_narrator() -> NarrativeSynthesizer:
    """Pick the narrative provider based on env."""
    if settings.NARRATIVE_PROVIDER == "openai":
        return OpenAINarrator()
    return MockNarrator()

class ValuationService:
    """
    Orchestrates:
      input → comparables → statistics → confidence → narrative (or fallback)
    Every request is computed from scratch; nothing is cached here.
    """
    def __init__(
        self,
        catalog: PropertyCatalog,
        narrator: NarrativeSynthesizer,
        market_context: MarketContextProvider,
    ):
        self.catalog = catalog
        self.narrator = narrator
        self.market_context = market_context

    async def get_valuation(self, prop: PropertyInput) -> ValuationResult:
        # 1) Comparables and their statistics
        comparables = await select_comparables(self.catalog, prop)
        stats = calculate_statistics(comparables)

        # 2) Local confidence
        confidence = score_confidence(stats, prop)
        CONFIDENCE_SCORE.observe(confidence.total_score)

        # 3) Narrative, falling back to arithmetic
        context = await self.market_context.context_text()
        request = NarrativeRequest(
            prompt=build_prompt(prop, stats, comparables, context),
            property=prop,
            statistics=stats,
            comparables=comparables,
        )
        start = time.perf_counter()
        try:
            narrative = await self.narrator.synthesize(request)
        except Exception as exc:
            logger.warning(
                "Narrative synthesis failed (%s: %s); %s",
                type(exc).__name__, exc,
                "using fallback estimate" if stats else "no comparables to fall back on",
            )
            try:
                result = fallback_estimate(stats, prop, confidence)
            except InsufficientDataError:
                VALUATION_OUTCOMES.labels(outcome="insufficient_data").inc()
                raise
            VALUATION_OUTCOMES.labels(outcome="fallback").inc()
            return result
        finally:
            NARRATIVE_LATENCY.observe(time.perf_counter() - start)

        VALUATION_OUTCOMES.labels(outcome="ai").inc()
        return assemble_result(narrative, prop, stats, confidence)

def build_valuation_service() -> ValuationService:
    return ValuationService(
        catalog=catalog_client(),
        narrator=build_narrator(),
        market_context=market_context_client(),
    )
