"""Prompt construction for the valuation narrative."""

from typing import Optional, Sequence

from .comparables import ComparableStatistics
from ..core.utils import format_eur
from ..data.base import ComparableProperty, PropertyInput

PROMPT_SAMPLE_SIZE = 10

RESPONSE_FORMAT = """{
  "estimatedPrice": <number - estimated price in EUR>,
  "priceLow": <number - lower bound of the estimate>,
  "priceHigh": <number - upper bound of the estimate>,
  "confidence": "<low|medium|high>",
  "analysis": "<2-3 sentences explaining the estimate>",
  "factors": [
    {"factor": "<factor name>", "impact": "<positive|negative|neutral>", "description": "<short description>"}
  ],
  "marketInsight": "<1-2 sentences about the current market in this location>"
}"""

RULES = """Rules:
1. The price must be realistic for the current Slovak market.
2. Account for condition (a new build is worth more than original condition).
3. Account for location (Bratislava > Košice > smaller towns).
4. Without comparable data, use standard market prices for the location."""


def _yes_no(flag: Optional[bool], unknown: str = "no/not stated") -> str:
    return "yes" if flag else unknown


def describe_property(prop: PropertyInput) -> str:
    lines = [
        "Property to value:",
        f"- City: {prop.city.label}",
        f"- District: {prop.district or 'not stated'}",
        f"- Floor area: {prop.area_m2:g} m²",
        f"- Rooms: {prop.rooms or 'not stated'}",
        f"- Floor: {prop.floor if prop.floor is not None else 'not stated'}",
        f"- Condition: {prop.condition.label}",
        f"- Balcony/terrace: {_yes_no(prop.has_balcony)}",
        f"- Parking: {_yes_no(prop.has_parking)}",
        f"- New building: {_yes_no(prop.is_new_building, 'no')}",
    ]
    if prop.additional_info:
        lines.append(f"- Additional info: {prop.additional_info}")
    return "\n".join(lines)


def describe_comparable(c: ComparableProperty) -> str:
    condition = c.condition.label if c.condition else "condition unknown"
    return (
        f"- {c.title}: {format_eur(c.price)} ({c.area_m2:g} m², "
        f"{format_eur(c.price_per_m2)}/m², {condition}, {c.district or 'district unknown'})"
    )


def describe_comparables(
    stats: Optional[ComparableStatistics], comparables: Sequence[ComparableProperty]
) -> str:
    if stats is None:
        return "No comparable properties in the database."
    lines = [
        f"Comparable properties in the database ({stats.count} listings):",
        f"- Average price: {format_eur(stats.avg_price)}",
        f"- Median price: {format_eur(stats.median_price)}",
        f"- Price range: {format_eur(stats.min_price)} - {format_eur(stats.max_price)}",
        f"- Average price per m²: {format_eur(stats.avg_price_per_m2)}/m²",
        f"- Price per m² range: {format_eur(stats.min_price_per_m2)} - "
        f"{format_eur(stats.max_price_per_m2)}/m²",
        "",
        "Sample of comparable properties:",
    ]
    lines.extend(describe_comparable(c) for c in comparables[:PROMPT_SAMPLE_SIZE])
    return "\n".join(lines)


def build_prompt(
    prop: PropertyInput,
    stats: Optional[ComparableStatistics],
    comparables: Sequence[ComparableProperty],
    market_context: str = "",
) -> str:
    sections = [
        "You are an expert on the Slovak real estate market. Using the data "
        "provided, determine a realistic market value for the property.",
        describe_property(prop),
        describe_comparables(stats, comparables),
    ]
    if market_context:
        sections.append(market_context)
    sections.append(
        "Produce a detailed analysis and price estimate. Reply EXACTLY in this "
        "JSON format (no markdown, plain JSON only):\n" + RESPONSE_FORMAT
    )
    sections.append(RULES)
    return "\n\n".join(sections)
