"""
Admin TMDb endpoints: search page, search proxy, one-click import and
form prefill.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from api.dependencies import get_fetcher, get_importer, get_tmdb_client, require_admin
from api.exceptions import BadRequestError, ConflictError, TMDbServiceError
from api.schemas.tmdb import ImportRequest
from api.templating import templates
from cinemesh.client import TMDBClient, TMDBError
from cinemesh.fetcher import MovieFetcher
from cinemesh.importer import CatalogImporter, ImportFailedError, MovieAlreadyExistsError

logger = logging.getLogger("api.admin.tmdb")

router = APIRouter(dependencies=[Depends(require_admin)])

CLIENT_MISSING_HINT = "set TMDB_API_KEY in the server environment and restart"


def ensure_configured(client: TMDBClient) -> None:
    if not client.is_configured:
        raise TMDbServiceError("TMDb client not initialized", details={"hint": CLIENT_MISSING_HINT})


@router.get("/search", response_class=HTMLResponse)
async def search_page(request: Request, client: TMDBClient = Depends(get_tmdb_client)):
    return templates.TemplateResponse(
        request,
        "tmdb_search.html",
        {"title": "Import from TMDb", "tmdb_enabled": client.is_configured},
    )


@router.get("/api/search")
async def search(
    q: Optional[str] = Query(None, description="Movie title"),
    page: int = Query(1, ge=1),
    client: TMDBClient = Depends(get_tmdb_client),
):
    """Proxy a TMDb title search."""
    if not q or not q.strip():
        raise BadRequestError("query parameter required")
    ensure_configured(client)

    try:
        results = client.search_movies(q.strip(), page=page)
    except TMDBError as e:
        raise TMDbServiceError(f"TMDb API error: {e}")
    return results.to_dict()


@router.post("/import")
async def import_movie(
    request: ImportRequest,
    client: TMDBClient = Depends(get_tmdb_client),
    importer: CatalogImporter = Depends(get_importer),
):
    """
    Import a TMDb movie with its genres, top cast and key crew.

    Everything is written in one transaction; a failure leaves the
    catalog untouched.
    """
    ensure_configured(client)

    try:
        movie = importer.import_movie(request.tmdb_id)
    except MovieAlreadyExistsError as e:
        raise ConflictError("movie already exists", details={"movie_id": e.movie_id})
    except ImportFailedError as e:
        raise TMDbServiceError(str(e))

    logger.info(f"Imported TMDb {request.tmdb_id} as movie {movie.id}")
    return {"message": "movie imported successfully with cast", "movie": movie.to_dict()}


@router.get("/prefill")
async def prefill(
    tmdb_id: Optional[str] = Query(None),
    client: TMDBClient = Depends(get_tmdb_client),
    fetcher: MovieFetcher = Depends(get_fetcher),
):
    """Converted movie for filling the manual movie form; nothing is stored."""
    if not tmdb_id:
        raise BadRequestError("tmdb_id required")
    try:
        tid = int(tmdb_id)
    except ValueError:
        raise BadRequestError("invalid tmdb_id")
    ensure_configured(client)

    try:
        movie = fetcher.fetch_movie_by_tmdb_id(tid)
    except TMDBError as e:
        raise TMDbServiceError(str(e))
    return movie.to_dict()
