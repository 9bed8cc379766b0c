"""
FinSight Backend — FastAPI Dependencies
=========================================

What:  Providers for the per-process service objects and the auth gate.
How:   create_app() builds the Settings-derived services once and stores
       them on app.state. These providers hand them to route handlers, so
       tests swap any of them through app.dependency_overrides.

Auth gate:
    get_current_claims reads the bearer token from the Authorization header,
    falling back to the `token` cookie set by /login. A missing, invalid or
    expired token raises AuthError, which every protected route reports the
    same way: HTTP 401 "Please login first".
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import Settings
from app.exceptions import AuthError
from app.security import TokenService, TokenStatus
from app.services.advisor_service import AdvisorService
from app.services.llm_base import LLMService

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

_bearer_scheme = HTTPBearer(auto_error=False)


def build_llm_service(settings: Settings) -> LLMService:
    """Instantiate the completion provider named by settings.llm_provider."""
    if settings.llm_provider == "gemini":
        from app.services.gemini_service import GeminiService
        return GeminiService(settings)
    from app.services.openrouter_service import OpenRouterService
    return OpenRouterService(settings)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service


def get_advisor_service(llm: LLMService = Depends(get_llm_service)) -> AdvisorService:
    return AdvisorService(llm)


async def get_current_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """
    Return the verified claims of the caller's token.

    Raises:
        AuthError: no token, a tampered/malformed token, or an expired one.
    """
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise AuthError(context={"reason": "missing_token"})

    result = tokens.verify(token)
    if result.status is not TokenStatus.VALID:
        logger.info("Rejected %s token on %s", result.status.value, request.url.path)
        raise AuthError(context={"reason": f"{result.status.value}_token"})

    request.state.user_id = result.claims.get("sub")
    return result.claims
