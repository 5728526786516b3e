"""
Session endpoints: password login and the current-user lookup.
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_config, get_current_claims, get_db
from api.exceptions import NotFoundError, UnauthorizedError
from api.schemas.user import LoginRequest, LoginResponse, LoginUser, MeResponse
from cinemesh.auth import Claims, generate_token, verify_password
from cinemesh.config import Config
from cinemesh.database import DatabaseManager

router = APIRouter()
logger = logging.getLogger("api.auth")


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: DatabaseManager = Depends(get_db),
    config: Config = Depends(get_config),
):
    """
    Exchange email and password for a JWT.

    Unknown emails and wrong passwords get the same 401.
    """
    user = db.get_user_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise UnauthorizedError("invalid credentials")

    token = generate_token(user, config)
    logger.info(f"User logged in: user_id={user.id}")
    return LoginResponse(
        token=token,
        user=LoginUser(id=user.id, username=user.username, email=user.email, role=user.role),
    )


@router.get("/me", response_model=MeResponse)
async def me(
    claims: Claims = Depends(get_current_claims),
    db: DatabaseManager = Depends(get_db),
):
    user = db.get_user_by_id(claims.user_id)
    if not user:
        raise NotFoundError("User", claims.user_id)
    return MeResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        avatar_url=user.avatar_url,
        role=user.role,
    )
