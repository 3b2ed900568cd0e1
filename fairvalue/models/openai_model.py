"""OpenAI-backed narrative synthesizer."""

from __future__ import annotations

from typing import Optional

from openai import AsyncOpenAI

from .base import Narrative, NarrativeError, NarrativeRequest, NarrativeSynthesizer, parse_narrative
from ..core.config import settings


class OpenAINarrator(NarrativeSynthesizer):
    """Send the valuation prompt to a chat completion model.

    Parameters
    ----------
    client: AsyncOpenAI, optional
        Pre-built client. Built from ``OPENAI_API_KEY`` when omitted.
    model: str, optional
        Model identifier, defaults to ``OPENAI_MODEL``.
    max_tokens: int, optional
        Completion budget, defaults to ``OPENAI_MAX_TOKENS``.
    """

    system_prompt = (
        "You are an expert on the Slovak residential real estate market. "
        "Return only valid JSON."
    )

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise RuntimeError("OPENAI_API_KEY missing from settings")
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client
        self.model = model or settings.OPENAI_MODEL
        self.max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS

    async def synthesize(self, request: NarrativeRequest) -> Narrative:
        completion = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": request.prompt},
            ],
        )
        if not completion.choices:
            raise NarrativeError("Completion returned no choices")
        content = completion.choices[0].message.content
        return parse_narrative(content or "")
