"""
TMDb catalog importer.

Pulls a movie, its genres and its credits from TMDb and writes them into
the catalog in a single transaction. People and genres are matched to
existing rows before anything is inserted, so re-importing overlapping
casts never duplicates a person.
"""

from typing import Iterable, List, Optional

from .client import TMDBClient, TMDBError, get_full_image_url
from .database import DatabaseManager
from .fetcher import MovieFetcher
from .models import CREW_JOB_ROLES, ROLE_ACTOR, Genre, Movie, Person
from .utils import progress_bar, setup_logger


class MovieAlreadyExistsError(Exception):
    """Raised when the movie being imported is already in the catalog."""

    def __init__(self, movie_id: int):
        super().__init__(f"movie already exists (id {movie_id})")
        self.movie_id = movie_id


class ImportFailedError(Exception):
    """Raised when an import could not be completed; nothing was written."""


class CatalogImporter:
    """
    Imports TMDb movies into the catalog.

    Responsibilities:
    - Duplicate detection by slug and TMDb ID
    - Genre and person find-or-create (restoring soft-deleted people)
    - Cast and crew linking
    - All-or-nothing writes through DatabaseManager.transaction()
    """

    def __init__(
        self,
        db: DatabaseManager,
        client: TMDBClient,
        fetcher: Optional[MovieFetcher] = None,
        max_cast: int = 10,
    ):
        self.db = db
        self.client = client
        self.fetcher = fetcher or MovieFetcher(client)
        self.max_cast = max_cast
        self.logger = setup_logger("importer", getattr(db.config, "log_dir", None))

    def import_movie(self, tmdb_id: int) -> Movie:
        """
        Import one movie with its genres and credits.

        Raises:
            MovieAlreadyExistsError: If the slug or TMDb ID is already present.
            ImportFailedError: On any TMDb or database failure. The
                transaction is rolled back before this is raised.
        """
        try:
            movie = self.fetcher.fetch_movie_by_tmdb_id(tmdb_id)
        except TMDBError as e:
            raise ImportFailedError(f"failed to fetch from TMDb: {e}") from e

        existing = self.db.find_movie_by_slug_or_tmdb_id(movie.slug, movie.tmdb_id)
        if existing:
            raise MovieAlreadyExistsError(existing.id)

        step = "begin transaction"
        try:
            with self.db.transaction() as conn:
                step = "resolve genres"
                genres = [self.get_or_create_genre(conn, g) for g in movie.genres]

                step = "create movie"
                movie.id = self.db.insert_movie(conn, movie)

                step = "link genres"
                for genre in genres:
                    self.db.link_movie_genre(conn, movie.id, genre.id)

                step = "import credits"
                counts = self.import_movie_credits(conn, movie.id, tmdb_id)
        except Exception as e:
            self.logger.error(f"Import of TMDb {tmdb_id} failed at '{step}': {e}")
            raise ImportFailedError(f"{step}: {e}") from e

        self.logger.info(
            f"Imported '{movie.title}' (TMDb {tmdb_id}) as movie {movie.id}: "
            f"{counts['cast']} cast, {counts['crew']} crew"
        )
        return self.db.get_movie(movie.id, with_cast=True) or movie

    def import_movie_credits(self, conn, movie_id: int, tmdb_id: int) -> dict:
        """
        Link the top-billed cast and key crew of a movie.

        Returns:
            {"cast": int, "crew": int} counts of links created
        """
        credits = self.client.get_movie_credits(tmdb_id)
        counts = {"cast": 0, "crew": 0}

        for member in credits.cast[: self.max_cast]:
            person = self.get_or_create_person(conn, member.id, member.name, member.profile_path)
            if self.db.link_movie_person_ignore(
                conn, movie_id, person.id, ROLE_ACTOR, member.character, member.order
            ):
                counts["cast"] += 1

        seen_crew = set()
        for member in credits.crew:
            role = CREW_JOB_ROLES.get(member.job)
            if role is None or member.id in seen_crew:
                continue
            seen_crew.add(member.id)

            person = self.get_or_create_person(conn, member.id, member.name, member.profile_path)
            if self.db.link_movie_person_ignore(conn, movie_id, person.id, role):
                counts["crew"] += 1

        return counts

    def get_or_create_person(self, conn, tmdb_id: int, name: str, profile_path: str) -> Person:
        """Find a person by TMDb ID (restoring soft-deleted rows) or create one."""
        person = self.db.find_person_by_tmdb_id(conn, tmdb_id)

        if person is None:
            inserted = self.db.insert_person_ignore(
                conn, name, get_full_image_url(profile_path), tmdb_id
            )
            person = self.db.find_person_by_tmdb_id(conn, tmdb_id)
            if person is None:
                raise ImportFailedError(f"person with TMDb ID {tmdb_id} missing after insert")
            if not inserted:
                self.logger.debug(f"Person {tmdb_id} created concurrently, reusing id {person.id}")

        if person.is_deleted:
            self.db.restore_person(conn, person.id)
            person.deleted_at = None
            self.logger.info(f"Restored soft-deleted person {person.id} ({person.name})")

        return person

    def get_or_create_genre(self, conn, tmdb_genre: Genre) -> Genre:
        """Match a genre by case-insensitive name, creating it with its TMDb ID if absent."""
        genre = self.db.find_genre_by_name_ci(conn, tmdb_genre.name)
        if genre:
            return genre

        self.db.insert_genre_ignore(conn, tmdb_genre.name, tmdb_genre.tmdb_id)
        genre = self.db.find_genre_by_name_ci(conn, tmdb_genre.name)
        if genre is None and tmdb_genre.tmdb_id is not None:
            # Renamed locally; the TMDb ID still identifies it
            genre = self.db.find_genre_by_tmdb_id(conn, tmdb_genre.tmdb_id)
        if genre is None:
            raise ImportFailedError(f"genre '{tmdb_genre.name}' missing after insert")
        return genre

    def import_many(self, tmdb_ids: Iterable[int], show_progress: bool = True) -> List[dict]:
        """
        Import several movies, recording an outcome per ID instead of stopping.

        Returns:
            [{"tmdb_id", "status": "imported"|"exists"|"failed", "movie_id"?, "title"?, "error"?}]
        """
        tmdb_ids = list(tmdb_ids)
        results = []

        for tmdb_id in progress_bar(
            tmdb_ids, total=len(tmdb_ids), desc="Importing", unit="movies", disable=not show_progress
        ):
            try:
                movie = self.import_movie(tmdb_id)
                results.append({
                    "tmdb_id": tmdb_id,
                    "status": "imported",
                    "movie_id": movie.id,
                    "title": movie.title,
                })
            except MovieAlreadyExistsError as e:
                results.append({"tmdb_id": tmdb_id, "status": "exists", "movie_id": e.movie_id})
            except ImportFailedError as e:
                results.append({"tmdb_id": tmdb_id, "status": "failed", "error": str(e)})

        return results
