"""
FinSight Backend — Advisor Route Handlers
===========================================

What:  POST /analyze (investment suggestions) and GET /market-stats.
Who:   Authenticated callers only; the auth gate runs before the body of
       either handler, so an unauthenticated request never reaches the model.

Responses are the JSON recovered from the completion, returned as-is.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_advisor_service, get_current_claims
from app.schemas.advisor import AnalyzeRequest, MarketStatsResponse, SuggestionsResponse
from app.schemas.common import ErrorResponse
from app.services.advisor_service import AdvisorService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Advisor"])

_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    500: {"description": "Completion API failed or returned unparsable JSON", "model": ErrorResponse},
}


@router.post(
    "/analyze",
    responses={
        200: {"description": "Investment suggestions", "model": SuggestionsResponse},
        400: {"description": "A required field is missing", "model": ErrorResponse},
        **_ERRORS,
    },
    summary="Suggest investments for an amount, risk level and horizon",
)
async def analyze(
    body: AnalyzeRequest,
    claims: Dict[str, Any] = Depends(get_current_claims),
    advisor: AdvisorService = Depends(get_advisor_service),
) -> JSONResponse:
    logger.info("Suggestion request from %s", claims.get("sub"))
    result = await advisor.suggest_investments(body.model_dump())
    return JSONResponse(content=result)


@router.get(
    "/market-stats",
    responses={
        200: {"description": "Market summary", "model": MarketStatsResponse},
        **_ERRORS,
    },
    summary="Current summary of major Indian indices and commodities",
)
async def market_stats(
    claims: Dict[str, Any] = Depends(get_current_claims),
    advisor: AdvisorService = Depends(get_advisor_service),
) -> JSONResponse:
    result = await advisor.market_stats()
    return JSONResponse(content=result)
