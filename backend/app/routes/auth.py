"""
FinSight Backend — Auth Route Handlers
========================================

What:  POST /login and POST /signin.
How:   Thin handlers: parse the body, delegate to UserService, shape the
       response. Errors propagate to the global exception handlers.

Session cookie:
    /login sets `token` as an HttpOnly, SameSite=strict cookie whose max-age
    matches the token lifetime. Secure is set when ENVIRONMENT=production.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db_session
from app.dependencies import TOKEN_COOKIE, get_settings, get_token_service
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    UserSummary,
)
from app.schemas.common import ErrorResponse
from app.security import TokenService
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    result = await user_service.login(db, body.email, body.password, tokens)

    response.set_cookie(
        key=TOKEN_COOKIE,
        value=result.token,
        max_age=tokens.ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )

    user = result.user
    return LoginResponse(
        token=result.token,
        role=user.role,
        user=UserSummary(id=str(user.id), name=user.name, email=user.email),
    )


@router.post(
    "/signin",
    status_code=201,
    response_model=SignupResponse,
    responses={
        400: {"description": "Name, email or password missing", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signin(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    user = await user_service.signup(db, body.model_dump())
    return SignupResponse(user=user.public_dict())
