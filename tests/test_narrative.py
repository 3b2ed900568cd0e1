"""Tests for narrative parsing and the OpenAI narrator."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from fairvalue.models.base import NarrativeError, NarrativeRequest, parse_narrative
from fairvalue.models.openai_model import OpenAINarrator


def reply(**overrides) -> dict:
    data = {
        "estimatedPrice": 185000,
        "priceLow": 175000,
        "priceHigh": 195000,
        "confidence": "high",
        "analysis": "Solid demand for renovated flats.",
        "factors": [
            {"factor": "Location", "impact": "positive", "description": "Close to the centre"},
            {"factor": "Floor", "impact": "neutral", "description": "Middle floor"},
        ],
        "marketInsight": "Prices rose 5% year on year.",
    }
    data.update(overrides)
    return data


def openai_client(content: str) -> AsyncMock:
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    client = AsyncMock()
    client.chat.completions.create = AsyncMock(return_value=completion)
    return client


# ── Parsing ──────────────────────────────────────────────────────

class TestParseNarrative:
    def test_plain_json(self):
        n = parse_narrative(json.dumps(reply()))
        assert n.estimated_price == 185000
        assert (n.price_low, n.price_high) == (175000, 195000)
        assert n.analysis.startswith("Solid")
        assert [f.factor for f in n.factors] == ["Location", "Floor"]
        assert n.market_insight == "Prices rose 5% year on year."
        assert n.confidence == "high"

    def test_strips_code_fences(self):
        text = "```json\n" + json.dumps(reply()) + "\n```"
        assert parse_narrative(text).estimated_price == 185000

    def test_strips_bare_fences(self):
        text = "```\n" + json.dumps(reply()) + "\n```"
        assert parse_narrative(text).price_high == 195000

    def test_optional_fields_default(self):
        data = reply()
        del data["factors"], data["marketInsight"], data["confidence"]
        n = parse_narrative(json.dumps(data))
        assert n.factors == []
        assert n.market_insight == ""
        assert n.confidence is None

    def test_unknown_impact_becomes_neutral(self):
        data = reply(factors=[{"factor": "View", "impact": "great", "description": "Castle view"}])
        assert parse_narrative(json.dumps(data)).factors[0].impact == "neutral"

    @pytest.mark.parametrize("text", [
        "",
        "The property is worth about 180k.",
        "[1, 2, 3]",
        json.dumps({"estimatedPrice": 1}),
        json.dumps(reply(estimatedPrice="a lot")),
        json.dumps(reply(priceLow=-5)),
    ])
    def test_rejects_unusable_replies(self, text):
        with pytest.raises(NarrativeError):
            parse_narrative(text)


# ── OpenAI narrator ──────────────────────────────────────────────

class TestOpenAINarrator:
    async def test_sends_prompt_and_parses(self, sample_input):
        client = openai_client("```json\n" + json.dumps(reply()) + "\n```")
        narrator = OpenAINarrator(client=client, model="gpt-test", max_tokens=512)

        narrative = await narrator.synthesize(NarrativeRequest("PROMPT", sample_input, None))

        assert narrative.estimated_price == 185000
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 512
        assert kwargs["messages"][-1] == {"role": "user", "content": "PROMPT"}

    async def test_bad_reply_raises(self, sample_input):
        narrator = OpenAINarrator(client=openai_client("not json"), model="gpt-test")
        with pytest.raises(NarrativeError):
            await narrator.synthesize(NarrativeRequest("PROMPT", sample_input, None))

    async def test_transport_error_propagates(self, sample_input):
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(side_effect=TimeoutError("slow"))
        narrator = OpenAINarrator(client=client, model="gpt-test")
        with pytest.raises(TimeoutError):
            await narrator.synthesize(NarrativeRequest("PROMPT", sample_input, None))

    def test_requires_api_key_without_client(self, monkeypatch):
        from fairvalue.models import openai_model
        monkeypatch.setattr(openai_model.settings, "OPENAI_API_KEY", None)
        with pytest.raises(RuntimeError):
            OpenAINarrator()
