"""
Server-rendered admin panel.

Login and logout are open; every other route needs an admin session
(token cookie or bearer header). Form posts redirect back to the
listing on success and render error.html on failure.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from api.dependencies import TOKEN_COOKIE, get_config, get_db, require_admin
from api.exceptions import AdminPageError
from api.templating import CAST_ROLES, templates
from cinemesh.auth import generate_token, hash_password, verify_password
from cinemesh.config import Config
from cinemesh.database import ADMIN_MOVIE_SORTS, DatabaseManager, DuplicateRecordError
from cinemesh.models import ROLE_USER, USER_ROLES, Genre, Movie, User
from cinemesh.utils import parse_date, parse_optional_int, slugify

logger = logging.getLogger("api.admin")

SESSION_MAX_AGE = 86400

# Login/logout live outside the admin gate
session_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin)])


def render(request: Request, template: str, context: dict, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(request, template, context, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


def parse_id(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise AdminPageError(400, "invalid id")


# ============ SESSION ============


@session_router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return render(request, "login.html", {"title": "Admin Login"})


@session_router.post("/login")
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: DatabaseManager = Depends(get_db),
    config: Config = Depends(get_config),
):
    email = email.strip()
    if not email or not password:
        return render(
            request,
            "login.html",
            {"title": "Admin Login", "error": "Email and password required", "email": email},
            status_code=400,
        )

    user = db.get_user_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed admin login attempt")
        return render(
            request,
            "login.html",
            {"title": "Admin Login", "error": "Invalid credentials", "email": email},
            status_code=401,
        )

    response = redirect("/admin/")
    response.set_cookie(
        TOKEN_COOKIE,
        generate_token(user, config),
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Admin session started: user_id={user.id}")
    return response


@session_router.post("/logout")
async def logout():
    response = redirect("/admin/login")
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return response


# ============ DASHBOARD ============


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request, db: DatabaseManager = Depends(get_db)):
    return render(request, "dashboard.html", {"title": "Admin Dashboard", "stats": db.get_status()})


# ============ USERS ============


@router.get("/users", response_class=HTMLResponse)
async def list_users(request: Request, db: DatabaseManager = Depends(get_db)):
    return render(request, "users.html", {"title": "Users", "users": db.list_users()})


@router.get("/users/new", response_class=HTMLResponse)
async def new_user_form(request: Request):
    return render(
        request,
        "user_form.html",
        {"title": "New User", "user": User(id=None, username="", email=""), "action": "/admin/users"},
    )


@router.post("/users")
async def create_user(
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    role: str = Form(ROLE_USER),
    db: DatabaseManager = Depends(get_db),
):
    email = email.strip()
    if not email or not password:
        raise AdminPageError(400, "email and password are required")
    if role not in USER_ROLES:
        raise AdminPageError(400, "role must be 'user' or 'admin'")

    user = User(
        id=None,
        username=username.strip() or email.split("@")[0],
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    try:
        db.create_user(user)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    return redirect("/admin/users")


@router.get("/users/{user_id}/edit", response_class=HTMLResponse)
async def edit_user_form(request: Request, user_id: str, db: DatabaseManager = Depends(get_db)):
    uid = parse_id(user_id)
    user = db.get_user_by_id(uid)
    if not user:
        raise AdminPageError(404, "user not found")
    return render(
        request,
        "user_form.html",
        {"title": "Edit User", "user": user, "action": f"/admin/users/{uid}"},
    )


@router.post("/users/{user_id}")
async def update_user(
    user_id: str,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    role: str = Form(ROLE_USER),
    db: DatabaseManager = Depends(get_db),
):
    """Update a user; a blank password keeps the current one."""
    uid = parse_id(user_id)
    user = db.get_user_by_id(uid)
    if not user:
        raise AdminPageError(404, "user not found")
    if role not in USER_ROLES:
        raise AdminPageError(400, "role must be 'user' or 'admin'")

    user.username = username.strip() or user.username
    user.email = email.strip() or user.email
    user.role = role
    if password:
        user.password_hash = hash_password(password)

    try:
        db.update_user(user)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    return redirect("/admin/users")


@router.post("/users/{user_id}/delete")
async def delete_user(user_id: str, db: DatabaseManager = Depends(get_db)):
    db.delete_user(parse_id(user_id))
    return redirect("/admin/users")


# ============ MOVIES ============


async def read_movie_form(request: Request, movie: Movie) -> List[int]:
    """
    Apply the posted movie form to movie and return the selected genre IDs.

    Blank release date or duration clear the stored value.
    """
    form = await request.form()

    movie.title = (form.get("title") or "").strip()
    if not movie.title:
        raise AdminPageError(400, "title is required")
    movie.slug = (form.get("slug") or "").strip() or slugify(movie.title)
    if not movie.slug:
        raise AdminPageError(400, "slug is required when the title has no latin characters")
    movie.synopsis = form.get("synopsis") or ""
    movie.poster_url = (form.get("poster_url") or "").strip()
    movie.backdrop_url = (form.get("backdrop_url") or "").strip()
    movie.mpaa_rating = (form.get("mpaa_rating") or "").strip()

    try:
        movie.release_date = parse_date(form.get("release_date"))
    except ValueError:
        raise AdminPageError(400, "invalid release date")

    try:
        movie.duration_minutes = parse_optional_int(form.get("duration_minutes"))
    except ValueError:
        raise AdminPageError(400, "invalid duration")

    genre_ids = []
    for value in form.getlist("genres"):
        try:
            genre_ids.append(int(value))
        except ValueError:
            continue
    return genre_ids


@router.get("/movies", response_class=HTMLResponse)
async def list_movies(
    request: Request,
    sort: str = Query("id"),
    order: str = Query("desc"),
    db: DatabaseManager = Depends(get_db),
):
    if sort not in ADMIN_MOVIE_SORTS:
        sort = "id"
    if order not in ("asc", "desc"):
        order = "desc"
    return render(
        request,
        "movies.html",
        {
            "title": "Movies",
            "movies": db.list_movies_admin(sort, order),
            "sort": sort,
            "order": order,
            "sorts": ADMIN_MOVIE_SORTS,
        },
    )


@router.get("/movies/new", response_class=HTMLResponse)
async def new_movie_form(request: Request, db: DatabaseManager = Depends(get_db)):
    return render(
        request,
        "movie_form.html",
        {
            "title": "New Movie",
            "movie": Movie(id=None, title="", slug=""),
            "genres": db.list_genres(),
            "selected_genres": [],
            "action": "/admin/movies",
        },
    )


@router.post("/movies")
async def create_movie(request: Request, db: DatabaseManager = Depends(get_db)):
    movie = Movie(id=None, title="", slug="")
    genre_ids = await read_movie_form(request, movie)
    try:
        db.create_movie(movie, genre_ids)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    logger.info(f"Movie created from admin: {movie.id}")
    return redirect("/admin/movies")


@router.get("/movies/{movie_id}/edit", response_class=HTMLResponse)
async def edit_movie_form(request: Request, movie_id: str, db: DatabaseManager = Depends(get_db)):
    mid = parse_id(movie_id)
    movie = db.get_movie(mid)
    if not movie:
        raise AdminPageError(404, "movie not found")
    return render(
        request,
        "movie_form.html",
        {
            "title": "Edit Movie",
            "movie": movie,
            "genres": db.list_genres(),
            "selected_genres": movie.genre_ids(),
            "action": f"/admin/movies/{mid}",
        },
    )


@router.post("/movies/{movie_id}")
async def update_movie(request: Request, movie_id: str, db: DatabaseManager = Depends(get_db)):
    mid = parse_id(movie_id)
    movie = db.get_movie(mid)
    if not movie:
        raise AdminPageError(404, "movie not found")

    genre_ids = await read_movie_form(request, movie)
    try:
        db.update_movie(movie, genre_ids)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    return redirect("/admin/movies")


@router.post("/movies/{movie_id}/delete")
async def delete_movie(movie_id: str, db: DatabaseManager = Depends(get_db)):
    db.delete_movie(parse_id(movie_id))
    return redirect("/admin/movies")


# ============ CAST ============


@router.get("/movies/{movie_id}/cast", response_class=HTMLResponse)
async def manage_cast(request: Request, movie_id: str, db: DatabaseManager = Depends(get_db)):
    mid = parse_id(movie_id)
    movie = db.get_movie(mid)
    if not movie:
        raise AdminPageError(404, "movie not found")
    return render(
        request,
        "cast.html",
        {
            "title": f"Cast - {movie.title}",
            "movie": movie,
            "cast": db.get_movie_cast(mid),
            "people": db.list_people_admin(),
        },
    )


@router.post("/movies/{movie_id}/cast")
async def add_cast_member(
    movie_id: str,
    person_id: str = Form(""),
    role: str = Form(""),
    character_name: str = Form(""),
    cast_order: str = Form(""),
    db: DatabaseManager = Depends(get_db),
):
    mid = parse_id(movie_id)
    if not db.get_movie(mid):
        raise AdminPageError(404, "movie not found")

    pid = parse_id(person_id)
    if not db.get_person(pid):
        raise AdminPageError(404, "person not found")
    if role not in CAST_ROLES:
        raise AdminPageError(400, "invalid role")

    try:
        order: Optional[int] = parse_optional_int(cast_order)
    except ValueError:
        raise AdminPageError(400, "invalid cast order")

    if not db.add_cast_member(mid, pid, role, character_name.strip(), order):
        raise AdminPageError(409, "person already credited in this role")
    return redirect(f"/admin/movies/{mid}/cast")


@router.post("/movies/{movie_id}/cast/{person_id}/{role}/delete")
async def remove_cast_member(
    movie_id: str,
    person_id: str,
    role: str,
    db: DatabaseManager = Depends(get_db),
):
    mid = parse_id(movie_id)
    db.remove_cast_member(mid, parse_id(person_id), role)
    return redirect(f"/admin/movies/{mid}/cast")


# ============ PEOPLE ============


@router.get("/people", response_class=HTMLResponse)
async def list_people(
    request: Request,
    search: Optional[str] = Query(None),
    db: DatabaseManager = Depends(get_db),
):
    return render(
        request,
        "people.html",
        {"title": "People", "people": db.list_people_admin(search or None), "search": search or ""},
    )


@router.post("/people/{person_id}/delete")
async def delete_person(person_id: str, db: DatabaseManager = Depends(get_db)):
    """Soft-delete; a later TMDb import of the same person restores the row."""
    pid = parse_id(person_id)
    if not db.soft_delete_person(pid):
        raise AdminPageError(404, "person not found")
    return redirect("/admin/people")


# ============ GENRES ============


@router.get("/genres", response_class=HTMLResponse)
async def list_genres(request: Request, db: DatabaseManager = Depends(get_db)):
    return render(request, "genres.html", {"title": "Genres", "genres": db.list_genres()})


@router.get("/genres/new", response_class=HTMLResponse)
async def new_genre_form(request: Request):
    return render(
        request,
        "genre_form.html",
        {"title": "New Genre", "genre": Genre(id=None, name=""), "action": "/admin/genres"},
    )


@router.post("/genres")
async def create_genre(name: str = Form(""), db: DatabaseManager = Depends(get_db)):
    name = name.strip()
    if not name:
        raise AdminPageError(400, "name is required")
    try:
        db.create_genre(name)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    return redirect("/admin/genres")


@router.get("/genres/{genre_id}/edit", response_class=HTMLResponse)
async def edit_genre_form(request: Request, genre_id: str, db: DatabaseManager = Depends(get_db)):
    gid = parse_id(genre_id)
    genre = db.get_genre(gid)
    if not genre:
        raise AdminPageError(404, "genre not found")
    return render(
        request,
        "genre_form.html",
        {"title": "Edit Genre", "genre": genre, "action": f"/admin/genres/{gid}"},
    )


@router.post("/genres/{genre_id}")
async def update_genre(genre_id: str, name: str = Form(""), db: DatabaseManager = Depends(get_db)):
    gid = parse_id(genre_id)
    genre = db.get_genre(gid)
    if not genre:
        raise AdminPageError(404, "genre not found")

    genre.name = name.strip()
    if not genre.name:
        raise AdminPageError(400, "name is required")
    try:
        db.update_genre(genre)
    except DuplicateRecordError as e:
        raise AdminPageError(409, str(e))
    return redirect("/admin/genres")


@router.post("/genres/{genre_id}/delete")
async def delete_genre(genre_id: str, db: DatabaseManager = Depends(get_db)):
    db.delete_genre(parse_id(genre_id))
    return redirect("/admin/genres")
