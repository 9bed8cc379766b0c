"""
FinSight Backend — OpenRouter Completion Service
==================================================

What:  LLMService implementation for OpenRouter's OpenAI-compatible
       chat-completions API.
How:   One httpx.AsyncClient per service instance, bearer API key, bounded
       timeout, a single POST per completion.
Who:   Built at startup by build_llm_service(); called by AdvisorService.

Failure mapping (all raised as UpstreamError):
    httpx.TimeoutException   → reason="timeout"
    other httpx.HTTPError    → reason="request_failed"
    non-2xx status           → reason="request_failed"
    missing/blank content    → reason="empty"

The raw upstream error goes to the log and into UpstreamError.context;
it is never part of an API response.
"""

import logging
import time
import uuid
from typing import Any, Optional

import httpx

from app.config import Settings
from app.exceptions import UpstreamError
from app.services.llm_base import LLMService

logger = logging.getLogger(__name__)


def completion_text(payload: Any) -> Optional[str]:
    """Pull choices[0].message.content out of a chat-completions body."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class OpenRouterService(LLMService):
    name = "openrouter"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.api_url = settings.openrouter_api_url
        self.model = settings.llm_model
        self.timeout = settings.llm_timeout
        self._api_key = settings.openrouter_api_key
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

        logger.info(
            "OpenRouterService initialized with model=%s, timeout=%.0fs",
            self.model,
            self.timeout,
        )

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, prompt: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = await self._client.post(
                self.api_url,
                json=body,
                headers=self._headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.warning("[%s] Completion timed out after %.0fs", request_id, self.timeout)
            raise UpstreamError(
                reason="timeout",
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                "[%s] Completion API returned HTTP %d",
                request_id,
                e.response.status_code,
            )
            raise UpstreamError(
                context={"request_id": request_id, "status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            # ValueError: body was not JSON
            logger.warning("[%s] Completion request failed: %s", request_id, str(e))
            raise UpstreamError(
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        content = completion_text(payload)
        if not content or not content.strip():
            logger.warning("[%s] No content returned from model after %.0fms", request_id, duration_ms)
            raise UpstreamError(
                message="No content returned from model",
                reason="empty",
                context={"request_id": request_id},
            )

        logger.info(
            "[%s] Completion finished in %.0fms, %d chars",
            request_id,
            duration_ms,
            len(content),
        )
        return content

    async def health_check(self) -> bool:
        """
        GET the provider's model listing, a sibling of the completions URL.

        No tokens are consumed.
        """
        models_url = self.api_url.rsplit("/chat/completions", 1)[0] + "/models"
        try:
            response = await self._client.get(models_url, headers=self._headers, timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("OpenRouter health check failed: %s", str(e))
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
