# src/flexstore/api/routes/auth.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from flexstore.api.dependencies import get_identity_service, get_principal
from flexstore.api.rate_limit import rate_limit
from flexstore.api.schemas import AuthResponse, LoginRequest, SignupRequest, UserOut
from flexstore.auth.rbac import Principal
from flexstore.services.identity_service import IdentityService

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
async def signup(
    payload: SignupRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Create a workspace and its first (Admin) user, and return a token.
    """
    with tracer.start_as_current_span("api.signup"):
        result = identity.signup(payload.username, payload.email, payload.password)
        return {"token": result.token, "user": result.user}


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("login"))],
)
async def login(
    payload: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    with tracer.start_as_current_span("api.login"):
        result = identity.login(payload.email, payload.password)
        return {"token": result.token, "user": result.user}


@router.get("/me", response_model=UserOut)
async def me(
    principal: Optional[Principal] = Depends(get_principal),
    identity: IdentityService = Depends(get_identity_service),
):
    return identity.me(principal)
