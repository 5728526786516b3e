"""
Public read-only catalog endpoints.

No authentication. Mounted under /api/public.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from api.dependencies import Pagination, get_config, get_db, get_pagination, paginate
from api.exceptions import BadRequestError, NotFoundError
from api.schemas.common import DataResponse, ErrorResponse, PaginatedResponse
from api.services.ranking import rank_by_similarity
from api.templating import templates
from cinemesh.config import Config
from cinemesh.database import DatabaseManager

logger = logging.getLogger("api.public")

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


def render_api_docs(request: Request, config: Config) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "api_docs.html",
        {"title": "Cinemesh API", "base_url": config.base_url.rstrip("/")},
    )


@router.get("/docs", response_class=HTMLResponse, include_in_schema=False)
async def api_docs(request: Request, config: Config = Depends(get_config)):
    return render_api_docs(request, config)


@router.get("/movies", response_model=PaginatedResponse[dict])
async def list_movies(
    pagination: Pagination = Depends(get_pagination),
    search: Optional[str] = Query(None, description="Case-insensitive title substring"),
    genre: Optional[str] = Query(None, description="Genre name (case-insensitive)"),
    db: DatabaseManager = Depends(get_db),
):
    """
    Browse movies, newest first, with their genres and cast.
    """
    movies, total = db.get_movies_public(
        page=pagination.page,
        limit=pagination.limit,
        search=search or None,
        genre=genre or None,
    )
    return paginate([m.to_dict() for m in movies], total, pagination)


@router.get("/movies/{identifier}", response_model=DataResponse[dict], responses=NOT_FOUND)
async def get_movie(identifier: str, db: DatabaseManager = Depends(get_db)):
    """Movie by numeric ID or slug."""
    movie = db.get_movie_public(identifier)
    if not movie:
        raise NotFoundError("Movie", identifier)
    return {"data": movie.to_dict()}


@router.get("/genres", response_model=DataResponse[List[dict]])
async def list_genres(db: DatabaseManager = Depends(get_db)):
    return {"data": [g.to_dict() for g in db.list_genres()]}


@router.get("/genres/{identifier}", response_model=DataResponse[dict], responses=NOT_FOUND)
async def get_genre(identifier: str, db: DatabaseManager = Depends(get_db)):
    """Genre by numeric ID or name, with its movies."""
    result = db.get_genre_public(identifier)
    if not result:
        raise NotFoundError("Genre", identifier)
    genre, movies = result
    return {
        "data": {
            "genre": genre.to_dict(),
            "movies": [m.to_dict() for m in movies],
        }
    }


@router.get("/people", response_model=PaginatedResponse[dict])
async def list_people(
    pagination: Pagination = Depends(get_pagination),
    search: Optional[str] = Query(None, description="Case-insensitive name substring"),
    db: DatabaseManager = Depends(get_db),
):
    people, total = db.get_people_public(
        page=pagination.page,
        limit=pagination.limit,
        search=search or None,
    )
    return paginate([p.to_dict() for p in people], total, pagination)


@router.get("/people/{person_id}", response_model=DataResponse[dict], responses={**NOT_FOUND, **BAD_REQUEST})
async def get_person(person_id: str, db: DatabaseManager = Depends(get_db)):
    """Person with the movies they are credited on."""
    try:
        pid = int(person_id)
    except ValueError:
        raise BadRequestError("invalid person id")

    result = db.get_person_public(pid)
    if not result:
        raise NotFoundError("Person", pid)
    person, movies = result
    return {"data": {"person": person.to_dict(), "movies": movies}}


@router.get("/search", response_model=DataResponse[dict], responses=BAD_REQUEST)
async def search(
    q: Optional[str] = Query(None, description="Search query"),
    db: DatabaseManager = Depends(get_db),
):
    """
    Search movies, people and genres at once.

    Movie and people hits are ordered by similarity to the query.
    """
    if not q or not q.strip():
        raise BadRequestError("query parameter 'q' is required")
    query = q.strip()

    results = db.search_catalog(query)
    movies = rank_by_similarity(query, results["movies"], key=lambda m: m.title)
    people = rank_by_similarity(query, results["people"], key=lambda p: p.name)

    logger.info(
        f"Search '{query}': {len(movies)} movies, {len(people)} people, "
        f"{len(results['genres'])} genres"
    )
    return {
        "data": {
            "movies": [m.to_dict() for m in movies],
            "people": [p.to_dict() for p in people],
            "genres": [g.to_dict() for g in results["genres"]],
        }
    }


@router.get("/stats", response_model=DataResponse[dict])
async def stats(db: DatabaseManager = Depends(get_db)):
    return {"data": db.get_stats()}
