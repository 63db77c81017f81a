"""
Readlog Backend - Authentication Route
=======================================

What:  POST /auth/login checks a username/password pair and returns the
       user (without password) and their records.

There is no token or session: a successful login only confirms the
credentials. Unknown usernames and wrong passwords both produce the same
401 body. The rate limiter gives this path its own, tighter budget.
"""

from fastapi import APIRouter, Depends

from readlog.gateway import PersistenceGateway, get_gateway
from readlog.schemas.envelope import Envelope, envelope_response
from readlog.schemas.user import LoginRequest, UserResponse
from readlog.services.user_service import user_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=Envelope[UserResponse],
    responses={
        400: {"description": "Invalid request body", "model": Envelope[None]},
        401: {"description": "Invalid credentials", "model": Envelope[None]},
        429: {"description": "Too many login attempts", "model": Envelope[None]},
    },
    summary="Authenticate a user",
)
async def login(
    credentials: LoginRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    user = await user_service.authenticate(gateway, credentials.username, credentials.password)
    return envelope_response(data=user, message="Authentication successful")
