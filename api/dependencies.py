"""
Dependency injection for the API.

Provides cached core components, pagination parsing and the
session checks used by authenticated routes.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, TypeVar

from fastapi import Depends, Query, Request

from api.exceptions import AdminLoginRequired, AdminPageError, UnauthorizedError
from api.logging_config import logger
from cinemesh.auth import Claims, InvalidTokenError, parse_token
from cinemesh.client import TMDBClient
from cinemesh.config import Config
from cinemesh.database import DatabaseManager
from cinemesh.fetcher import MovieFetcher
from cinemesh.importer import CatalogImporter
from cinemesh.models import ROLE_ADMIN

T = TypeVar("T")

TOKEN_COOKIE = "token"

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@lru_cache()
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()


@lru_cache()
def get_db() -> DatabaseManager:
    """Get cached DatabaseManager instance."""
    return DatabaseManager(get_config())


@lru_cache()
def get_tmdb_client() -> TMDBClient:
    """Get cached TMDBClient instance."""
    config = get_config()
    if config.tmdb_api_key:
        logger.info(f"TMDb client initialized (key {config.masked_api_key()})")
    else:
        logger.warning("TMDB_API_KEY not set; TMDb import endpoints are disabled")
    return TMDBClient(config)


def get_fetcher(client: TMDBClient = Depends(get_tmdb_client)) -> MovieFetcher:
    return MovieFetcher(client)


def get_importer(
    db: DatabaseManager = Depends(get_db),
    client: TMDBClient = Depends(get_tmdb_client),
    fetcher: MovieFetcher = Depends(get_fetcher),
    config: Config = Depends(get_config),
) -> CatalogImporter:
    return CatalogImporter(db, client, fetcher, max_cast=config.max_cast_members)


# ============ PAGINATION ============


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_pagination(
    page: Optional[str] = Query(None, description="Page number (default 1)"),
    limit: Optional[str] = Query(None, description="Items per page, 1-100 (default 20)"),
) -> Pagination:
    """
    Parse page/limit leniently.

    A page below 1 (or unparseable) becomes 1; a limit outside 1..100
    (or unparseable) becomes 20.
    """
    page_num = _parse_int(page)
    limit_num = _parse_int(limit)
    if page_num is None or page_num < 1:
        page_num = 1
    if limit_num is None or limit_num < 1 or limit_num > MAX_LIMIT:
        limit_num = DEFAULT_LIMIT
    return Pagination(page=page_num, limit=limit_num)


def paginate(items: List[T], total: int, pagination: Pagination) -> Dict:
    """
    Create a paginated response structure.

    Returns:
        {"data": items, "pagination": {"page", "limit", "total", "totalPages"}}
    """
    total_pages = (total + pagination.limit - 1) // pagination.limit
    return {
        "data": items,
        "pagination": {
            "page": pagination.page,
            "limit": pagination.limit,
            "total": total,
            "totalPages": total_pages,
        },
    }


# ============ SESSION CHECKS ============


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(TOKEN_COOKIE) or None


def get_current_claims(request: Request, config: Config = Depends(get_config)) -> Claims:
    """Claims of the caller's token; 401 when missing or invalid."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedError("missing token")
    try:
        return parse_token(token, config)
    except InvalidTokenError:
        raise UnauthorizedError("invalid token")


def require_admin(request: Request, config: Config = Depends(get_config)) -> Claims:
    """
    Gate for every admin panel route.

    Raises:
        AdminLoginRequired: No token or an invalid one.
        AdminPageError: Authenticated, but not an admin (403).
    """
    token = extract_token(request)
    if not token:
        raise AdminLoginRequired()
    try:
        claims = parse_token(token, config)
    except InvalidTokenError:
        raise AdminLoginRequired()
    if claims.role != ROLE_ADMIN:
        raise AdminPageError(403, "admin access required")
    return claims
