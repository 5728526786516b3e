"""
User registration and lookup endpoints.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.dependencies import get_db
from api.exceptions import BadRequestError, ConflictError, NotFoundError
from api.schemas.user import UserCreatedResponse, UserCreateRequest
from cinemesh.auth import hash_password
from cinemesh.database import DatabaseManager, DuplicateRecordError
from cinemesh.models import ROLE_USER, USER_ROLES, User

router = APIRouter()
logger = logging.getLogger("api.users")

MIN_PASSWORD_LENGTH = 6


@router.post("/users", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    db: DatabaseManager = Depends(get_db),
):
    """
    Register a user.

    Role defaults to "user"; the username defaults to the email's local part.
    """
    email = request.email.strip()
    if "@" not in email:
        raise BadRequestError("invalid email address")
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

    role = request.role or ROLE_USER
    if role not in USER_ROLES:
        raise BadRequestError("role must be 'user' or 'admin'")

    user = User(
        id=None,
        username=(request.username or "").strip() or email.split("@")[0],
        email=email,
        password_hash=hash_password(request.password),
        role=role,
    )
    try:
        db.create_user(user)
    except DuplicateRecordError:
        raise ConflictError("user with this email already exists")

    logger.info(f"New user created: user_id={user.id}")
    return UserCreatedResponse(id=user.id, email=user.email, role=user.role)


@router.get("/users/{user_id}")
async def get_user(user_id: str, db: DatabaseManager = Depends(get_db)):
    try:
        uid = int(user_id)
    except ValueError:
        raise BadRequestError("invalid id")

    user = db.get_user_by_id(uid)
    if not user:
        raise NotFoundError("User", uid)
    return user.to_public_dict()
