"""
Converts TMDb movie payloads into catalog movies.
"""

from .client import TMDBClient, TMDBError, build_backdrop_url, build_poster_url
from .models import Genre, Movie, TMDbMovieDetails
from .utils import parse_date, slugify


def extract_mpaa_rating(details: TMDbMovieDetails) -> str:
    """First non-empty US certification, or an empty string."""
    for release in details.release_dates.get("US", []):
        if release.certification:
            return release.certification
    return ""


class MovieFetcher:
    """Fetches movies from TMDb and maps them onto the catalog model."""

    def __init__(self, client: TMDBClient):
        self.client = client

    def fetch_movie_by_tmdb_id(self, tmdb_id: int) -> Movie:
        details = self.client.get_movie_details(tmdb_id)
        return self.convert_to_movie(details)

    def search_and_convert(self, query: str) -> Movie:
        """Fetch the first TMDb search hit for query."""
        results = self.client.search_movies(query)
        if not results.results:
            raise TMDBError(f"no results found for: {query}")
        return self.fetch_movie_by_tmdb_id(results.results[0].id)

    @staticmethod
    def convert_to_movie(details: TMDbMovieDetails) -> Movie:
        try:
            release_date = parse_date(details.release_date)
        except ValueError:
            release_date = None

        return Movie(
            id=None,
            title=details.title,
            slug=slugify(details.title) or f"tmdb-{details.id}",
            release_date=release_date,
            duration_minutes=details.runtime if details.runtime and details.runtime > 0 else None,
            synopsis=details.overview,
            poster_url=build_poster_url(details.poster_path),
            backdrop_url=build_backdrop_url(details.backdrop_path),
            average_rating=details.vote_average or 0.0,
            mpaa_rating=extract_mpaa_rating(details),
            tmdb_id=details.id,
            genres=[Genre(id=None, name=g.name, tmdb_id=g.id) for g in details.genres],
        )
