"""
User and session Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginUser(BaseModel):
    id: int
    username: str
    email: str
    role: str


class LoginResponse(BaseModel):
    """Issued session token with the user it belongs to."""

    token: str
    user: LoginUser


class UserCreateRequest(BaseModel):
    """
    Self-service registration.

    Password length and role are checked by the endpoint so that
    violations answer 400 rather than 422.
    """

    email: str = Field(..., min_length=1)
    password: str
    username: Optional[str] = None
    role: Optional[str] = None


class UserCreatedResponse(BaseModel):
    id: int
    email: str
    role: str


class MeResponse(BaseModel):
    id: int
    username: str
    email: str
    avatar_url: str = ""
    role: str
