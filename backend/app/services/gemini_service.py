"""
FinSight Backend — Google Gemini Completion Service
=====================================================

What:  LLMService implementation backed by the Google Generative AI SDK.
Why:   Alternate provider, selected with LLM_PROVIDER=gemini, for deployments
       that hold a Gemini key instead of an OpenRouter one.
How:   Sends the prompt as a single-turn generate_content call, bounded by
       asyncio.wait_for. No retry; one failure surfaces immediately.
"""

import asyncio
import logging
import time
import uuid

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from app.config import Settings
from app.exceptions import UpstreamError
from app.services.llm_base import LLMService

logger = logging.getLogger(__name__)


class GeminiService(LLMService):
    name = "gemini"

    def __init__(self, settings: Settings):
        # The SDK keeps the API key in module-level state
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)

        self.model_name = settings.gemini_model
        self.timeout = settings.llm_timeout
        self.model = genai.GenerativeModel(settings.gemini_model)

        logger.info(
            "GeminiService initialized with model=%s, timeout=%.0fs",
            self.model_name,
            self.timeout,
        )

    async def complete(self, prompt: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("[%s] Gemini call timed out after %.0fs", request_id, self.timeout)
            raise UpstreamError(
                reason="timeout",
                context={"request_id": request_id},
            ) from e
        except (google_exceptions.GoogleAPIError, ValueError) as e:
            # ValueError: the SDK rejected the request or response shape
            logger.warning("[%s] Gemini call failed: %s", request_id, str(e))
            raise UpstreamError(
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        try:
            text = response.text
        except ValueError:
            # .text raises when the response carries no candidate parts
            text = ""

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not text or not text.strip():
            logger.warning("[%s] Gemini returned no content after %.0fms", request_id, duration_ms)
            raise UpstreamError(
                message="No content returned from model",
                reason="empty",
                context={"request_id": request_id},
            )

        logger.info("[%s] Gemini completion finished in %.0fms, %d chars", request_id, duration_ms, len(text))
        return text

    async def health_check(self) -> bool:
        """List models (free call) to verify the key and connectivity."""
        try:
            models = await asyncio.to_thread(lambda: list(genai.list_models()))
        except google_exceptions.GoogleAPIError as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
        target = f"models/{self.model_name}"
        if target not in [m.name for m in models]:
            logger.warning("Configured model %s not found in available models", target)
        return True
