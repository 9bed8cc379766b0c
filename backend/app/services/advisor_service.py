"""
FinSight Backend — Advisor Service (LLM-backed endpoints)
===========================================================

What:  Business logic behind POST /analyze and GET /market-stats.
How:   prompt template → one LLMService.complete() call → extract_json().
Who:   Called by the advisor routes; receives its LLMService by injection.

Flow:
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│ Build prompt │───▶│  LLM call    │───▶│ Extract  │
    │ (analyze)│    │              │    │ (no retry)   │    │  JSON    │
    └──────────┘    └──────────────┘    └──────────────┘    └──────────┘

Errors:
    Missing analyze fields → ValidationError (raised before any upstream call)
    Upstream failure       → UpstreamError, re-labelled with the endpoint's
                             generic message
    Unparsable completion  → ParseFailure
"""

import logging
from typing import Any, Mapping

from app.exceptions import UpstreamError
from app.services.json_extractor import extract_json
from app.services.llm_base import LLMService
from app.services.validation import require_fields

logger = logging.getLogger(__name__)

SUGGESTION_FIELDS = ("price", "risk", "investmentType", "duration")

SUGGESTION_PROMPT = """
You are a financial advisor. Based on:
- Investment: ₹{price}
- Risk level: {risk} (1=Low, 5=High)
- Investment type: {investment_type}
- Time duration: {duration}
Suggest 5 investments with:
- name
- description
- current_price
- sell_price
- stop_loss

Return strictly valid JSON only, in this shape:
{{
"suggestions": [
    {{ "name": "", "description": "", "current_price": "", "sell_price": "", "stop_loss": "" }}
]
}}
"""

MARKET_STATS_PROMPT = """
Provide the current market summary for these indices/commodities:
- Nifty50
- Sensex
- Bank Nifty
- Gold (1g)
- Silver (1kg)
- Crude Oil (per barrel)
- USD/INR exchange rate

For each item include: name, current (numeric), change (absolute numeric), change_pct (numeric)
Return strictly valid JSON only in this exact shape:
{
"indices": [
    { "name": "Nifty50", "current": 0, "change": 0, "change_pct": 0 }
]
}
Use numbers only for numeric fields (no commas). Do not include extra commentary.
"""

SUGGESTION_FAILURE_MESSAGE = "Something went wrong."
MARKET_STATS_FAILURE_MESSAGE = "Unable to generate market stats."


class AdvisorService:
    """Prompt building and completion post-processing for the advisor routes."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    def build_suggestion_prompt(self, request: Mapping[str, Any]) -> str:
        return SUGGESTION_PROMPT.format(
            price=request["price"],
            risk=request["risk"],
            investment_type=request["investmentType"],
            duration=request["duration"],
        )

    async def suggest_investments(self, request: Mapping[str, Any]) -> Any:
        """
        Ask the model for five investment suggestions.

        Args:
            request: Mapping with price, risk, investmentType and duration
                     (the camelCase names of the public API).

        Raises:
            ValidationError: a field is missing; the model is never called.
            UpstreamError:   the completion call failed.
            ParseFailure:    the completion held no JSON.
        """
        require_fields(request, SUGGESTION_FIELDS, "All fields are required.")

        prompt = self.build_suggestion_prompt(request)
        output = await self._complete(prompt, SUGGESTION_FAILURE_MESSAGE)
        return extract_json(output)

    async def market_stats(self) -> Any:
        """Ask the model for the fixed market summary."""
        output = await self._complete(MARKET_STATS_PROMPT, MARKET_STATS_FAILURE_MESSAGE)
        return extract_json(output)

    async def _complete(self, prompt: str, failure_message: str) -> str:
        try:
            return await self.llm.complete(prompt)
        except UpstreamError as e:
            logger.error(
                "Upstream completion failed (%s via %s): %s",
                e.reason,
                self.llm.name,
                e.message,
            )
            raise UpstreamError(message=failure_message, reason=e.reason, context=e.context) from e
