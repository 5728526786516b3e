"""
Shared fixtures for Cinemesh tests.

Provides an in-memory database, a mock TMDb client, sample data and
FastAPI test clients with dependency overrides.
"""

import copy
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

import bcrypt
import pytest
from fastapi.testclient import TestClient

from cinemesh.auth import generate_token
from cinemesh.client import TMDBError
from cinemesh.config import Config
from cinemesh.database import ADMIN_MOVIE_SORTS, DuplicateRecordError
from cinemesh.models import (
    ROLE_ACTOR,
    ROLE_ADMIN,
    ROLE_DIRECTOR,
    ROLE_USER,
    CastEntry,
    Genre,
    Movie,
    Person,
    TMDbCredits,
    TMDbGenre,
    TMDbMovieDetails,
    TMDbSearchResponse,
    User,
)


# =============================================================================
# SAMPLE DATA
# =============================================================================

# Low cost factor keeps the suite fast; verify_password accepts any cost.
ADMIN_PASSWORD = "adminpass"
USER_PASSWORD = "userpass"
ADMIN_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()
USER_HASH = bcrypt.hashpw(USER_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()


def tmdb_movie_payload(
    tmdb_id: int,
    title: str,
    release_date: str,
    genres: List[Tuple[int, str]],
    certifications: List[str],
    runtime: int = 120,
    vote_average: float = 8.0,
) -> dict:
    """A /movie/{id}?append_to_response=release_dates body."""
    return {
        "id": tmdb_id,
        "title": title,
        "original_title": title,
        "overview": f"The overview of {title}.",
        "poster_path": f"/poster_{tmdb_id}.jpg",
        "backdrop_path": f"/backdrop_{tmdb_id}.jpg",
        "release_date": release_date,
        "runtime": runtime,
        "vote_average": vote_average,
        "status": "Released",
        "genres": [{"id": gid, "name": name} for gid, name in genres],
        "release_dates": {
            "results": [
                {
                    "iso_3166_1": "GB",
                    "release_dates": [{"certification": "12A", "release_date": release_date, "type": 3}],
                },
                {
                    "iso_3166_1": "US",
                    "release_dates": [
                        {"certification": c, "release_date": release_date, "type": 3}
                        for c in certifications
                    ],
                },
            ]
        },
    }


def inception_credits() -> dict:
    cast = [
        {"id": 6193, "name": "Leonardo DiCaprio", "character": "Dom Cobb", "order": 0, "profile_path": "/leo.jpg"},
        {"id": 24045, "name": "Joseph Gordon-Levitt", "character": "Arthur", "order": 1, "profile_path": "/jgl.jpg"},
        {"id": 27578, "name": "Elliot Page", "character": "Ariadne", "order": 2, "profile_path": None},
        {"id": 2524, "name": "Tom Hardy", "character": "Eames", "order": 3, "profile_path": "/hardy.jpg"},
        {"id": 3899, "name": "Ken Watanabe", "character": "Saito", "order": 4, "profile_path": None},
        {"id": 2037, "name": "Cillian Murphy", "character": "Robert Fischer", "order": 5, "profile_path": None},
        {"id": 8293, "name": "Marion Cotillard", "character": "Mal", "order": 6, "profile_path": None},
        {"id": 3895, "name": "Michael Caine", "character": "Miles", "order": 7, "profile_path": "/caine.jpg"},
        {"id": 4935, "name": "Dileep Rao", "character": "Yusuf", "order": 8, "profile_path": None},
        {"id": 95697, "name": "Tom Berenger", "character": "Browning", "order": 9, "profile_path": None},
        {"id": 526, "name": "Lukas Haas", "character": "Nash", "order": 10, "profile_path": None},
        {"id": 66441, "name": "Talulah Riley", "character": "Blonde", "order": 11, "profile_path": None},
    ]
    crew = [
        {"id": 525, "name": "Christopher Nolan", "job": "Director", "department": "Directing"},
        {"id": 525, "name": "Christopher Nolan", "job": "Screenplay", "department": "Writing"},
        {"id": 525, "name": "Christopher Nolan", "job": "Producer", "department": "Production"},
        {"id": 556, "name": "Emma Thomas", "job": "Producer", "department": "Production"},
        {"id": 947, "name": "Hans Zimmer", "job": "Original Music Composer", "department": "Sound"},
        {"id": 3769, "name": "Lee Smith", "job": "Editor", "department": "Editing"},
    ]
    return {"id": 27205, "cast": cast, "crew": crew}


TMDB_MOVIES = {
    27205: tmdb_movie_payload(
        27205, "Inception", "2010-07-15",
        [(28, "Action"), (878, "Science Fiction"), (12, "Adventure")],
        ["", "PG-13"], runtime=148, vote_average=8.369,
    ),
    155: tmdb_movie_payload(
        155, "The Dark Knight", "2008-07-16",
        [(18, "Drama"), (28, "Action"), (80, "Crime"), (53, "Thriller")],
        ["PG-13"], runtime=152, vote_average=8.5,
    ),
    603: tmdb_movie_payload(
        603, "The Matrix", "1999-03-30",
        [(28, "Action"), (878, "Science Fiction")],
        ["R"], runtime=136, vote_average=8.2,
    ),
}

TMDB_CREDITS = {
    27205: inception_credits(),
    155: {
        "id": 155,
        "cast": [
            {"id": 3894, "name": "Christian Bale", "character": "Bruce Wayne", "order": 0},
            {"id": 3895, "name": "Michael Caine", "character": "Alfred Pennyworth", "order": 1},
        ],
        "crew": [{"id": 525, "name": "Christopher Nolan", "job": "Director", "department": "Directing"}],
    },
    603: {"id": 603, "cast": [], "crew": []},
}


# =============================================================================
# MOCK DATABASE
# =============================================================================

class MockDatabaseManager:
    """
    In-memory stand-in for DatabaseManager.

    transaction() snapshots every table and restores the snapshot when the
    block raises, mirroring a database rollback.
    """

    TABLES = ["users", "movies", "genres", "movie_genres", "people", "movie_people"]

    def __init__(self, config: Optional[Config] = None):
        self.config = config
        self.reset()

    def reset(self):
        self.users: Dict[int, User] = {}
        self.movies: Dict[int, Movie] = {}
        self.genres: Dict[int, Genre] = {}
        self.movie_genres: set = set()
        self.people: Dict[int, Person] = {}
        self.movie_people: Dict[tuple, dict] = {}
        self.next_ids = {"users": 1, "movies": 1, "genres": 1, "people": 1}
        self.clock = datetime(2024, 1, 1, 12, 0, 0)
        self.fail_on: Dict[str, Exception] = {}
        # Callables run just before an insert-ignore, standing in for a concurrent writer
        self.before_insert: Dict[str, Callable] = {}
        self.transactions = 0
        self.rollbacks = 0
        self.tables_created = False

    def _state_attrs(self):
        return ("users", "movies", "genres", "movie_genres", "people", "movie_people", "next_ids")

    def _next_id(self, table: str) -> int:
        value = self.next_ids[table]
        self.next_ids[table] += 1
        return value

    def _now(self) -> datetime:
        self.clock += timedelta(minutes=1)
        return self.clock

    def _maybe_fail(self, name: str):
        if name in self.fail_on:
            raise self.fail_on.pop(name)

    def _run_before_insert(self, name: str, *args):
        hook = self.before_insert.pop(name, None)
        if hook:
            hook(*args)

    @contextmanager
    def transaction(self):
        self.transactions += 1
        snapshot = {attr: copy.deepcopy(getattr(self, attr)) for attr in self._state_attrs()}
        try:
            yield self
        except Exception:
            self.rollbacks += 1
            for attr, value in snapshot.items():
                setattr(self, attr, value)
            raise

    # Setup & Status
    def check_and_create_tables(self) -> dict:
        self.tables_created = True
        return {"existing": [], "created": list(self.TABLES), "all_present": True}

    def get_status(self) -> dict:
        return {
            "users": len(self.users),
            "movies": len(self.movies),
            "genres": len(self.genres),
            "people": len([p for p in self.people.values() if not p.is_deleted]),
            "cast_links": len(self.movie_people),
        }

    def get_stats(self) -> dict:
        status = self.get_status()
        return {
            "total_movies": status["movies"],
            "total_genres": status["genres"],
            "total_people": status["people"],
        }

    # Users
    def get_user_by_id(self, user_id: int) -> Optional[User]:
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    def list_users(self) -> List[User]:
        return [copy.deepcopy(self.users[k]) for k in sorted(self.users)]

    def _check_user_unique(self, user: User):
        for other in self.users.values():
            if other.id != user.id and (other.email == user.email or other.username == user.username):
                raise DuplicateRecordError("user with this email or username already exists")

    def create_user(self, user: User) -> User:
        self._check_user_unique(user)
        user.id = self._next_id("users")
        user.created_at = user.updated_at = self._now()
        self.users[user.id] = copy.deepcopy(user)
        return user

    def update_user(self, user: User) -> bool:
        if user.id not in self.users:
            return False
        self._check_user_unique(user)
        user.updated_at = self._now()
        self.users[user.id] = copy.deepcopy(user)
        return True

    def delete_user(self, user_id: int) -> bool:
        return self.users.pop(user_id, None) is not None

    def ensure_admin_user(self, email: str, password_hash: str = "") -> Tuple[User, bool]:
        existing = self.get_user_by_email(email)
        if existing:
            return existing, False
        admin = User(id=None, username=email.split("@")[0], email=email,
                     password_hash=password_hash, role=ROLE_ADMIN)
        return self.create_user(admin), True

    # Movies
    def _hydrate(self, movie: Movie, with_cast: bool = False) -> Movie:
        movie = copy.deepcopy(movie)
        movie.genres = sorted(
            (copy.deepcopy(self.genres[gid]) for mid, gid in self.movie_genres if mid == movie.id),
            key=lambda g: g.name,
        )
        movie.cast = self.get_movie_cast(movie.id) if with_cast else []
        return movie

    def _check_movie_unique(self, movie: Movie):
        for other in self.movies.values():
            if other.id == movie.id:
                continue
            if other.slug == movie.slug or (movie.tmdb_id is not None and other.tmdb_id == movie.tmdb_id):
                raise DuplicateRecordError("movie with this slug already exists")

    def list_movies_admin(self, sort: str = "id", order: str = "desc") -> List[Movie]:
        if sort not in ADMIN_MOVIE_SORTS:
            sort = "id"
        movies = sorted(
            self.movies.values(),
            key=lambda m: (getattr(m, sort) is None, getattr(m, sort) or 0),
            reverse=(order != "asc"),
        )
        return [self._hydrate(m) for m in movies]

    def get_movie(self, movie_id: int, with_cast: bool = False) -> Optional[Movie]:
        movie = self.movies.get(movie_id)
        return self._hydrate(movie, with_cast) if movie else None

    def get_movie_by_slug(self, slug: str, with_cast: bool = False) -> Optional[Movie]:
        for movie in self.movies.values():
            if movie.slug == slug:
                return self._hydrate(movie, with_cast)
        return None

    def find_movie_by_slug_or_tmdb_id(self, slug: str, tmdb_id: Optional[int]) -> Optional[Movie]:
        for movie in self.movies.values():
            if movie.slug == slug or (tmdb_id is not None and movie.tmdb_id == tmdb_id):
                return copy.deepcopy(movie)
        return None

    def create_movie(self, movie: Movie, genre_ids: List[int]) -> Movie:
        with self.transaction() as conn:
            movie.id = self.insert_movie(conn, movie)
            for gid in genre_ids:
                if gid in self.genres:
                    self.link_movie_genre(conn, movie.id, gid)
        return movie

    def update_movie(self, movie: Movie, genre_ids: List[int]) -> bool:
        if movie.id not in self.movies:
            return False
        self._check_movie_unique(movie)
        stored = copy.deepcopy(movie)
        stored.tmdb_id = self.movies[movie.id].tmdb_id
        stored.created_at = self.movies[movie.id].created_at
        stored.genres, stored.cast = [], []
        self.movies[movie.id] = stored
        self.movie_genres = {(m, g) for m, g in self.movie_genres if m != movie.id}
        for gid in genre_ids:
            if gid in self.genres:
                self.movie_genres.add((movie.id, gid))
        return True

    def delete_movie(self, movie_id: int) -> bool:
        if self.movies.pop(movie_id, None) is None:
            return False
        self.movie_genres = {(m, g) for m, g in self.movie_genres if m != movie_id}
        self.movie_people = {k: v for k, v in self.movie_people.items() if k[0] != movie_id}
        return True

    # Genres
    def list_genres(self) -> List[Genre]:
        return sorted((copy.deepcopy(g) for g in self.genres.values()), key=lambda g: g.name)

    def get_genre(self, genre_id: int) -> Optional[Genre]:
        genre = self.genres.get(genre_id)
        return copy.deepcopy(genre) if genre else None

    def get_genre_by_name(self, name: str) -> Optional[Genre]:
        for genre in self.genres.values():
            if genre.name.lower() == name.lower():
                return copy.deepcopy(genre)
        return None

    def create_genre(self, name: str, tmdb_id: Optional[int] = None) -> Genre:
        if self.get_genre_by_name(name):
            raise DuplicateRecordError(f"genre '{name}' already exists")
        genre = Genre(id=self._next_id("genres"), name=name, tmdb_id=tmdb_id)
        self.genres[genre.id] = genre
        return copy.deepcopy(genre)

    def update_genre(self, genre: Genre) -> bool:
        if genre.id not in self.genres:
            return False
        existing = self.get_genre_by_name(genre.name)
        if existing and existing.id != genre.id:
            raise DuplicateRecordError(f"genre '{genre.name}' already exists")
        self.genres[genre.id].name = genre.name
        return True

    def delete_genre(self, genre_id: int) -> bool:
        if self.genres.pop(genre_id, None) is None:
            return False
        self.movie_genres = {(m, g) for m, g in self.movie_genres if g != genre_id}
        return True

    # People & cast
    def add_person(self, name: str, tmdb_id: Optional[int] = None, deleted: bool = False) -> Person:
        """Test helper: insert a person directly."""
        now = self._now()
        person = Person(
            id=self._next_id("people"), name=name, tmdb_id=tmdb_id,
            created_at=now, updated_at=now, deleted_at=now if deleted else None,
        )
        self.people[person.id] = person
        return copy.deepcopy(person)

    def list_people_admin(self, search: Optional[str] = None) -> List[Person]:
        people = [p for p in self.people.values() if not p.is_deleted]
        if search:
            people = [p for p in people if search.lower() in p.name.lower()]
        return sorted((copy.deepcopy(p) for p in people), key=lambda p: p.name)

    def get_person(self, person_id: int, include_deleted: bool = False) -> Optional[Person]:
        person = self.people.get(person_id)
        if not person or (person.is_deleted and not include_deleted):
            return None
        return copy.deepcopy(person)

    def soft_delete_person(self, person_id: int) -> bool:
        person = self.people.get(person_id)
        if not person or person.is_deleted:
            return False
        person.deleted_at = self._now()
        return True

    def get_movie_cast(self, movie_id: int) -> List[CastEntry]:
        entries = []
        for (mid, pid, role), link in self.movie_people.items():
            person = self.people.get(pid)
            if mid != movie_id or person is None or person.is_deleted:
                continue
            entries.append(CastEntry(
                movie_id=mid, person_id=pid, role=role,
                character_name=link["character_name"], cast_order=link["cast_order"],
                person=copy.deepcopy(person),
            ))
        entries.sort(key=lambda e: (e.cast_order is None, e.cast_order or 0, e.role, e.person.name))
        return entries

    def add_cast_member(self, movie_id, person_id, role, character_name="", cast_order=None) -> bool:
        return self.link_movie_person_ignore(self, movie_id, person_id, role, character_name, cast_order)

    def remove_cast_member(self, movie_id: int, person_id: int, role: str) -> bool:
        return self.movie_people.pop((movie_id, person_id, role), None) is not None

    # Public queries
    def get_movies_public(self, page=1, limit=20, search=None, genre=None) -> Tuple[List[Movie], int]:
        movies = list(self.movies.values())
        if search:
            movies = [m for m in movies if search.lower() in m.title.lower()]
        if genre:
            movies = [
                m for m in movies
                if any(g.name.lower() == genre.lower() for g in self._hydrate(m).genres)
            ]
        movies.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        start = (page - 1) * limit
        return [self._hydrate(m, with_cast=True) for m in movies[start:start + limit]], len(movies)

    def get_movie_public(self, identifier: str) -> Optional[Movie]:
        try:
            return self.get_movie(int(identifier), with_cast=True)
        except ValueError:
            return self.get_movie_by_slug(identifier, with_cast=True)

    def get_genre_public(self, identifier: str):
        try:
            genre = self.get_genre(int(identifier))
        except ValueError:
            genre = self.get_genre_by_name(identifier)
        if not genre:
            return None
        movies = [self._hydrate(self.movies[mid]) for mid, gid in self.movie_genres if gid == genre.id]
        return genre, sorted(movies, key=lambda m: m.title)

    def get_people_public(self, page=1, limit=20, search=None) -> Tuple[List[Person], int]:
        people = self.list_people_admin(search)
        start = (page - 1) * limit
        return people[start:start + limit], len(people)

    def get_person_public(self, person_id: int):
        person = self.get_person(person_id)
        if not person:
            return None
        credits = []
        for (mid, pid, role), link in self.movie_people.items():
            if pid != person_id:
                continue
            item = self.movies[mid].to_dict()
            del item["cast"]
            del item["genres"]
            item["role"] = role
            if link["character_name"]:
                item["character_name"] = link["character_name"]
            if link["cast_order"] is not None:
                item["cast_order"] = link["cast_order"]
            credits.append(item)
        credits.sort(key=lambda m: m["release_date"] or "", reverse=True)
        return person, credits

    def search_catalog(self, query: str) -> dict:
        q = query.lower()
        movies = [
            self._hydrate(m) for m in self.movies.values()
            if q in m.title.lower() or q in (m.synopsis or "").lower()
        ][:10]
        people = [p for p in self.list_people_admin() if q in p.name.lower()][:10]
        genres = [g for g in self.list_genres() if q in g.name.lower()][:5]
        return {"movies": movies, "people": people, "genres": genres}

    # Import helpers (conn is the manager itself)
    def find_genre_by_name_ci(self, conn, name: str) -> Optional[Genre]:
        return self.get_genre_by_name(name)

    def find_genre_by_tmdb_id(self, conn, tmdb_id: int) -> Optional[Genre]:
        for genre in self.genres.values():
            if genre.tmdb_id == tmdb_id:
                return copy.deepcopy(genre)
        return None

    def insert_genre_ignore(self, conn, name: str, tmdb_id: Optional[int]) -> bool:
        self._maybe_fail("insert_genre_ignore")
        self._run_before_insert("insert_genre_ignore", name, tmdb_id)
        if self.get_genre_by_name(name) or (tmdb_id is not None and self.find_genre_by_tmdb_id(conn, tmdb_id)):
            return False
        self.create_genre(name, tmdb_id)
        return True

    def find_person_by_tmdb_id(self, conn, tmdb_id: int) -> Optional[Person]:
        for person in self.people.values():
            if person.tmdb_id == tmdb_id:
                return copy.deepcopy(person)
        return None

    def restore_person(self, conn, person_id: int) -> None:
        self.people[person_id].deleted_at = None

    def insert_person_ignore(self, conn, name: str, profile_image_url: str, tmdb_id: int) -> bool:
        self._maybe_fail("insert_person_ignore")
        self._run_before_insert("insert_person_ignore", name, tmdb_id)
        if self.find_person_by_tmdb_id(conn, tmdb_id):
            return False
        person = self.add_person(name, tmdb_id)
        self.people[person.id].profile_image_url = profile_image_url
        return True

    def insert_movie(self, conn, movie: Movie) -> int:
        self._maybe_fail("insert_movie")
        self._check_movie_unique(movie)
        stored = copy.deepcopy(movie)
        stored.id = self._next_id("movies")
        stored.created_at = self._now()
        stored.genres, stored.cast = [], []
        self.movies[stored.id] = stored
        return stored.id

    def link_movie_genre(self, conn, movie_id: int, genre_id: int) -> None:
        self.movie_genres.add((movie_id, genre_id))

    def link_movie_person_ignore(self, conn, movie_id, person_id, role, character_name="", cast_order=None) -> bool:
        self._maybe_fail("link_movie_person_ignore")
        key = (movie_id, person_id, role)
        if key in self.movie_people:
            return False
        self.movie_people[key] = {"character_name": character_name or "", "cast_order": cast_order}
        return True


def seed_catalog(db: MockDatabaseManager) -> dict:
    """Populate db with a small catalog and two accounts."""
    drama = db.create_genre("Drama", 18)
    action = db.create_genre("Action", 28)
    scifi = db.create_genre("Science Fiction", 878)
    crime = db.create_genre("Crime", 80)

    fight_club = db.create_movie(Movie(
        id=None, title="Fight Club", slug="fight-club", release_date=date(1999, 10, 15),
        duration_minutes=139, synopsis="An insomniac office worker and a soap maker.",
        average_rating=8.4, mpaa_rating="R", tmdb_id=550,
    ), [drama.id])
    matrix = db.create_movie(Movie(
        id=None, title="The Matrix", slug="the-matrix", release_date=date(1999, 3, 30),
        duration_minutes=136, synopsis="A hacker learns the truth about reality.",
        average_rating=8.2, mpaa_rating="R", tmdb_id=603,
    ), [action.id, scifi.id])
    pulp = db.create_movie(Movie(
        id=None, title="Pulp Fiction", slug="pulp-fiction", release_date=date(1994, 10, 14),
        duration_minutes=154, synopsis="Intertwining tales of crime in Los Angeles.",
        average_rating=8.5, mpaa_rating="R", tmdb_id=680,
    ), [crime.id, drama.id])

    pitt = db.add_person("Brad Pitt", 287)
    norton = db.add_person("Edward Norton", 819)
    fincher = db.add_person("David Fincher", 7467)
    reeves = db.add_person("Keanu Reeves", 6384)
    caine = db.add_person("Michael Caine", 3895, deleted=True)

    db.add_cast_member(fight_club.id, norton.id, ROLE_ACTOR, "The Narrator", 0)
    db.add_cast_member(fight_club.id, pitt.id, ROLE_ACTOR, "Tyler Durden", 1)
    db.add_cast_member(fight_club.id, fincher.id, ROLE_DIRECTOR)
    db.add_cast_member(matrix.id, reeves.id, ROLE_ACTOR, "Neo", 0)

    admin = db.create_user(User(id=None, username="admin", email="admin@cinemesh.com",
                                password_hash=ADMIN_HASH, role=ROLE_ADMIN))
    user = db.create_user(User(id=None, username="viewer", email="viewer@example.com",
                               password_hash=USER_HASH, role=ROLE_USER))

    return {
        "genres": {"drama": drama, "action": action, "scifi": scifi, "crime": crime},
        "movies": {"fight_club": fight_club, "matrix": matrix, "pulp": pulp},
        "people": {"pitt": pitt, "norton": norton, "fincher": fincher, "reeves": reeves, "caine": caine},
        "admin": admin,
        "user": user,
    }


# =============================================================================
# MOCK TMDB CLIENT
# =============================================================================

class MockTMDBClient:
    """TMDb client serving canned payloads."""

    def __init__(self, movies: Optional[dict] = None, credits: Optional[dict] = None, configured: bool = True):
        self.movies = movies if movies is not None else copy.deepcopy(TMDB_MOVIES)
        self.credits = credits if credits is not None else copy.deepcopy(TMDB_CREDITS)
        self.configured = configured
        self.fail_credits = False
        self.calls: List[tuple] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def _check(self):
        if not self.configured:
            raise TMDBError("TMDb client not initialized: TMDB_API_KEY is not set")

    def search_movies(self, query: str, page: int = 1) -> TMDbSearchResponse:
        self._check()
        self.calls.append(("search_movies", query, page))
        hits = [m for m in self.movies.values() if query.lower() in m["title"].lower()]
        return TMDbSearchResponse.from_tmdb({
            "page": page, "results": hits, "total_pages": 1 if hits else 0, "total_results": len(hits),
        })

    def get_movie_details(self, tmdb_id: int) -> TMDbMovieDetails:
        self._check()
        self.calls.append(("get_movie_details", tmdb_id))
        if tmdb_id not in self.movies:
            raise TMDBError("tmdb api error: status 404", status_code=404)
        return TMDbMovieDetails.from_tmdb(self.movies[tmdb_id])

    def get_movie_credits(self, tmdb_id: int) -> TMDbCredits:
        self._check()
        self.calls.append(("get_movie_credits", tmdb_id))
        if self.fail_credits:
            raise TMDBError("tmdb api error: status 503", status_code=503)
        return TMDbCredits.from_tmdb(self.credits.get(tmdb_id, {"cast": [], "crew": []}))

    def get_genres(self) -> List[TMDbGenre]:
        self._check()
        return [TMDbGenre(id=28, name="Action"), TMDbGenre(id=18, name="Drama")]

    def test_connection(self) -> bool:
        return self.configured


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def test_config(tmp_path):
    return Config(
        db_user="cinemesh",
        db_name="cinemesh_test",
        tmdb_api_key="test-api-key-1234",
        jwt_secret="test-secret-that-is-long-enough-for-hs256",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def mock_db(test_config):
    """Provide a fresh mock database for each test."""
    return MockDatabaseManager(test_config)


@pytest.fixture
def catalog(mock_db):
    """Mock database pre-populated with the sample catalog; returns the seeded records."""
    return seed_catalog(mock_db)


@pytest.fixture
def mock_tmdb_client():
    return MockTMDBClient()


@pytest.fixture
def api_client(mock_db, catalog, mock_tmdb_client, test_config):
    """Provide FastAPI test client with mocked dependencies."""
    from api.main import app
    from api import dependencies

    dependencies.get_config.cache_clear()
    dependencies.get_db.cache_clear()
    dependencies.get_tmdb_client.cache_clear()

    app.dependency_overrides[dependencies.get_db] = lambda: mock_db
    app.dependency_overrides[dependencies.get_config] = lambda: test_config
    app.dependency_overrides[dependencies.get_tmdb_client] = lambda: mock_tmdb_client

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_token(catalog, test_config):
    return generate_token(catalog["admin"], test_config)


@pytest.fixture
def user_token(catalog, test_config):
    return generate_token(catalog["user"], test_config)


@pytest.fixture
def admin_client(api_client, admin_token):
    """Test client carrying an admin session cookie."""
    api_client.cookies.set("token", admin_token)
    return api_client
