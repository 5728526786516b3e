"""
Data models for Cinemesh.

Provides dataclasses for catalog records (movies, genres, people, cast
links, users) and for the TMDb API payloads the importer consumes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)

# Credit roles stored in movie_people.role
ROLE_ACTOR = "Actor"
ROLE_DIRECTOR = "Director"
ROLE_WRITER = "Writer"
ROLE_PRODUCER = "Producer"

# TMDb crew job -> catalog credit role
CREW_JOB_ROLES = {
    "Director": ROLE_DIRECTOR,
    "Screenplay": ROLE_WRITER,
    "Writer": ROLE_WRITER,
    "Producer": ROLE_PRODUCER,
}


def _iso(value: Any) -> Optional[str]:
    """Serialize a date/datetime for JSON output."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


@dataclass
class Genre:
    """Catalog genre."""

    id: Optional[int]
    name: str
    tmdb_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "tmdb_id": self.tmdb_id}

    @classmethod
    def from_row(cls, row: Mapping) -> "Genre":
        return cls(id=row["id"], name=row["name"], tmdb_id=row.get("tmdb_id"))


@dataclass
class Person:
    """Cast or crew member. Soft-deleted rows carry deleted_at."""

    id: Optional[int]
    name: str
    biography: str = ""
    birth_date: Optional[date] = None
    profile_image_url: str = ""
    tmdb_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "biography": self.biography or "",
            "birth_date": _iso(self.birth_date),
            "profile_image_url": self.profile_image_url or "",
            "tmdb_id": self.tmdb_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: Mapping) -> "Person":
        return cls(
            id=row["id"],
            name=row["name"],
            biography=row.get("biography") or "",
            birth_date=_as_date(row.get("birth_date")),
            profile_image_url=row.get("profile_image_url") or "",
            tmdb_id=row.get("tmdb_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            deleted_at=row.get("deleted_at"),
        )


@dataclass
class CastEntry:
    """A movie_people link: one person in one role on one movie."""

    movie_id: int
    person_id: int
    role: str
    character_name: str = ""
    cast_order: Optional[int] = None
    person: Optional[Person] = None

    def to_dict(self) -> dict:
        data = {
            "movie_id": self.movie_id,
            "person_id": self.person_id,
            "role": self.role,
            "person": self.person.to_dict() if self.person else None,
        }
        if self.character_name:
            data["character_name"] = self.character_name
        if self.cast_order is not None:
            data["cast_order"] = self.cast_order
        return data


@dataclass
class Movie:
    """Catalog movie with its genres and cast."""

    id: Optional[int]
    title: str
    slug: str
    release_date: Optional[date] = None
    duration_minutes: Optional[int] = None
    synopsis: str = ""
    poster_url: str = ""
    backdrop_url: str = ""
    average_rating: float = 0.0
    mpaa_rating: str = ""
    tmdb_id: Optional[int] = None
    created_at: Optional[datetime] = None

    genres: List[Genre] = field(default_factory=list)
    cast: List[CastEntry] = field(default_factory=list)

    def genre_ids(self) -> List[int]:
        return [g.id for g in self.genres if g.id is not None]

    def to_record(self) -> dict:
        """Column values for INSERT/UPDATE into the movies table."""
        return {
            "title": self.title,
            "slug": self.slug,
            "release_date": self.release_date,
            "duration_minutes": self.duration_minutes,
            "synopsis": self.synopsis or "",
            "poster_url": self.poster_url or "",
            "backdrop_url": self.backdrop_url or "",
            "average_rating": round(float(self.average_rating or 0.0), 2),
            "mpaa_rating": self.mpaa_rating or "",
            "tmdb_id": self.tmdb_id,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "release_date": _iso(self.release_date),
            "duration_minutes": self.duration_minutes,
            "synopsis": self.synopsis or "",
            "poster_url": self.poster_url or "",
            "backdrop_url": self.backdrop_url or "",
            "average_rating": float(self.average_rating or 0.0),
            "mpaa_rating": self.mpaa_rating or "",
            "tmdb_id": self.tmdb_id,
            "created_at": _iso(self.created_at),
            "genres": [g.to_dict() for g in self.genres],
            "cast": [c.to_dict() for c in self.cast],
        }

    @classmethod
    def from_row(cls, row: Mapping) -> "Movie":
        rating = row.get("average_rating")
        if isinstance(rating, Decimal):
            rating = float(rating)
        return cls(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            release_date=_as_date(row.get("release_date")),
            duration_minutes=row.get("duration_minutes"),
            synopsis=row.get("synopsis") or "",
            poster_url=row.get("poster_url") or "",
            backdrop_url=row.get("backdrop_url") or "",
            average_rating=rating or 0.0,
            mpaa_rating=row.get("mpaa_rating") or "",
            tmdb_id=row.get("tmdb_id"),
            created_at=row.get("created_at"),
        )


@dataclass
class User:
    """Application account."""

    id: Optional[int]
    username: str
    email: str
    password_hash: str = ""
    avatar_url: str = ""
    role: str = ROLE_USER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_public_dict(self) -> dict:
        """User view safe to return from the API (no password hash)."""
        data = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if self.avatar_url:
            data["avatar_url"] = self.avatar_url
        return data

    @classmethod
    def from_row(cls, row: Mapping) -> "User":
        return cls(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row.get("password_hash") or "",
            avatar_url=row.get("avatar_url") or "",
            role=row.get("role") or ROLE_USER,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# ============ TMDB PAYLOADS ============


@dataclass
class TMDbGenre:
    id: int
    name: str

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbGenre":
        return cls(id=data.get("id"), name=data.get("name", ""))


@dataclass
class TMDbMovieResult:
    """One hit of /search/movie."""

    id: int
    title: str
    original_title: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    release_date: str = ""
    vote_average: float = 0.0
    adult: bool = False
    genre_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "original_title": self.original_title,
            "overview": self.overview,
            "poster_path": self.poster_path,
            "backdrop_path": self.backdrop_path,
            "release_date": self.release_date,
            "vote_average": self.vote_average,
            "adult": self.adult,
            "genre_ids": self.genre_ids,
        }

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbMovieResult":
        return cls(
            id=data.get("id"),
            title=data.get("title", ""),
            original_title=data.get("original_title") or "",
            overview=data.get("overview") or "",
            poster_path=data.get("poster_path") or "",
            backdrop_path=data.get("backdrop_path") or "",
            release_date=data.get("release_date") or "",
            vote_average=data.get("vote_average") or 0.0,
            adult=bool(data.get("adult", False)),
            genre_ids=list(data.get("genre_ids") or []),
        )


@dataclass
class TMDbSearchResponse:
    page: int = 1
    results: List[TMDbMovieResult] = field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "results": [r.to_dict() for r in self.results],
            "total_pages": self.total_pages,
            "total_results": self.total_results,
        }

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbSearchResponse":
        return cls(
            page=data.get("page", 1),
            results=[TMDbMovieResult.from_tmdb(r) for r in data.get("results", [])],
            total_pages=data.get("total_pages", 0),
            total_results=data.get("total_results", 0),
        )


@dataclass
class TMDbReleaseDate:
    certification: str = ""
    release_date: str = ""
    type: int = 0


@dataclass
class TMDbMovieDetails:
    """Payload of /movie/{id}?append_to_response=release_dates."""

    id: int
    title: str
    original_title: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    release_date: str = ""
    runtime: int = 0
    vote_average: float = 0.0
    status: str = ""
    tagline: str = ""
    genres: List[TMDbGenre] = field(default_factory=list)
    # ISO 3166-1 country code -> release dates in that country
    release_dates: dict = field(default_factory=dict)

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbMovieDetails":
        release_dates = {}
        for country in (data.get("release_dates") or {}).get("results", []):
            release_dates[country.get("iso_3166_1", "")] = [
                TMDbReleaseDate(
                    certification=(rd.get("certification") or "").strip(),
                    release_date=rd.get("release_date") or "",
                    type=rd.get("type") or 0,
                )
                for rd in country.get("release_dates", [])
            ]
        return cls(
            id=data.get("id"),
            title=data.get("title", ""),
            original_title=data.get("original_title") or "",
            overview=data.get("overview") or "",
            poster_path=data.get("poster_path") or "",
            backdrop_path=data.get("backdrop_path") or "",
            release_date=data.get("release_date") or "",
            runtime=data.get("runtime") or 0,
            vote_average=data.get("vote_average") or 0.0,
            status=data.get("status") or "",
            tagline=data.get("tagline") or "",
            genres=[TMDbGenre.from_tmdb(g) for g in data.get("genres", [])],
            release_dates=release_dates,
        )


@dataclass
class TMDbCastMember:
    id: int
    name: str
    character: str = ""
    order: int = 0
    profile_path: str = ""
    known_for_department: str = ""

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbCastMember":
        return cls(
            id=data.get("id"),
            name=data.get("name", "Unknown"),
            character=data.get("character") or "",
            order=data.get("order") or 0,
            profile_path=data.get("profile_path") or "",
            known_for_department=data.get("known_for_department") or "",
        )


@dataclass
class TMDbCrewMember:
    id: int
    name: str
    job: str = ""
    department: str = ""
    profile_path: str = ""

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbCrewMember":
        return cls(
            id=data.get("id"),
            name=data.get("name", "Unknown"),
            job=data.get("job") or "",
            department=data.get("department") or "",
            profile_path=data.get("profile_path") or "",
        )


@dataclass
class TMDbCredits:
    cast: List[TMDbCastMember] = field(default_factory=list)
    crew: List[TMDbCrewMember] = field(default_factory=list)

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbCredits":
        return cls(
            cast=[TMDbCastMember.from_tmdb(c) for c in data.get("cast", [])],
            crew=[TMDbCrewMember.from_tmdb(c) for c in data.get("crew", [])],
        )


@dataclass
class TMDbPersonDetail:
    id: int
    name: str
    biography: str = ""
    birthday: Optional[str] = None
    profile_path: str = ""

    @classmethod
    def from_tmdb(cls, data: dict) -> "TMDbPersonDetail":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            biography=data.get("biography") or "",
            birthday=data.get("birthday"),
            profile_path=data.get("profile_path") or "",
        )
