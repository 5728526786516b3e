"""
TMDb API client for Cinemesh.

Handles all TMDb API interactions including:
- Rate limiting
- Retry logic for throttled and failed requests
- Response parsing into data models
- Image URL construction
"""

from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Config
from .models import (
    TMDbCredits,
    TMDbGenre,
    TMDbMovieDetails,
    TMDbPersonDetail,
    TMDbSearchResponse,
)
from .utils import RateLimiter, setup_logger

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"

SIZE_POSTER_W92 = "w92"
SIZE_POSTER_W154 = "w154"
SIZE_POSTER_W185 = "w185"
SIZE_POSTER_W342 = "w342"
SIZE_POSTER_W500 = "w500"
SIZE_POSTER_W780 = "w780"
SIZE_BACKDROP_W300 = "w300"
SIZE_BACKDROP_W780 = "w780"
SIZE_BACKDROP_W1280 = "w1280"
SIZE_ORIGINAL = "original"


def build_image_url(size: str, path: Optional[str]) -> str:
    """Build a TMDb image URL; an empty path yields an empty string."""
    if not path:
        return ""
    return f"{IMAGE_BASE_URL}{size}{path}"


def build_poster_url(path: Optional[str]) -> str:
    return build_image_url(SIZE_POSTER_W500, path)


def build_backdrop_url(path: Optional[str]) -> str:
    return build_image_url(SIZE_BACKDROP_W1280, path)


def get_full_image_url(path: Optional[str]) -> str:
    """Profile picture URL used for imported people."""
    return build_image_url(SIZE_POSTER_W500, path)


class TMDBError(Exception):
    """Raised when a TMDb request cannot be completed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TMDBClient:
    """
    Handles all TMDb API interactions.

    Responsibilities:
    - Rate limiting (below TMDb's 40/sec limit)
    - Retries on 429 and 5xx responses with exponential backoff
    - Response parsing into data models
    """

    MAX_RATE_LIMIT = 40

    def __init__(self, config: Config):
        self.config = config
        self.session = self._create_session()
        self.rate_limiter = RateLimiter(min(config.tmdb_rate_limit, self.MAX_RATE_LIMIT))
        self.logger = setup_logger("tmdb_client", config.log_dir)

    @property
    def is_configured(self) -> bool:
        return bool(self.config.tmdb_api_key)

    def _create_session(self) -> requests.Session:
        """Create requests session with retry configuration."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            respect_retry_after_header=True,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({"Accept": "application/json"})

        return session

    def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """
        Make a rate-limited GET request against the TMDb API.

        Args:
            endpoint: API endpoint (e.g., '/movie/123')
            params: Query parameters (api_key is added here)

        Returns:
            Decoded JSON body

        Raises:
            TMDBError: On missing credentials, transport errors,
                non-200 responses or undecodable bodies.
        """
        if not self.is_configured:
            raise TMDBError("TMDb client not initialized: TMDB_API_KEY is not set")

        params = dict(params or {})
        url = f"{self.config.tmdb_base_url}{endpoint}"
        safe_params = "&".join(f"{k}={v}" for k, v in params.items())
        self.logger.info(f"TMDb API request: {url}?api_key=***&{safe_params}")

        params["api_key"] = self.config.tmdb_api_key
        self.rate_limiter.acquire()

        try:
            response = self.session.get(url, params=params, timeout=self.config.tmdb_timeout)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"HTTP request failed for {endpoint}: {e}")
            raise TMDBError(f"http get: {e}") from e

        if response.status_code != 200:
            self.logger.error(
                f"TMDb API error: status {response.status_code}, body: {response.text[:500]}"
            )
            raise TMDBError(
                f"tmdb api error: status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            self.logger.error(f"Failed to decode TMDb response for {endpoint}: {e}")
            raise TMDBError(f"unmarshal: {e}") from e

        self.logger.info(f"TMDb API response: {len(response.content)} bytes")
        return data

    def search_movies(self, query: str, page: int = 1) -> TMDbSearchResponse:
        """
        Search movies by title.
        Uses: /search/movie?query={query}&include_adult=false
        """
        data = self._request(
            "/search/movie",
            params={"query": query, "include_adult": "false", "page": page},
        )
        return TMDbSearchResponse.from_tmdb(data)

    def get_movie_details(self, tmdb_id: int) -> TMDbMovieDetails:
        """
        Get movie details including per-country release dates.
        Uses: /movie/{id}?append_to_response=release_dates
        """
        data = self._request(
            f"/movie/{tmdb_id}",
            params={"append_to_response": "release_dates"},
        )
        return TMDbMovieDetails.from_tmdb(data)

    def get_genres(self) -> List[TMDbGenre]:
        """Get the TMDb movie genre list."""
        data = self._request("/genre/movie/list")
        return [TMDbGenre.from_tmdb(g) for g in data.get("genres", [])]

    def get_movie_credits(self, tmdb_id: int) -> TMDbCredits:
        """Get cast and crew for a movie."""
        data = self._request(f"/movie/{tmdb_id}/credits")
        return TMDbCredits.from_tmdb(data)

    def get_person_details(self, tmdb_id: int) -> TMDbPersonDetail:
        """Get biography details for a person."""
        data = self._request(f"/person/{tmdb_id}")
        return TMDbPersonDetail.from_tmdb(data)

    def test_connection(self) -> bool:
        """Test API connection by fetching the genre list."""
        try:
            return len(self.get_genres()) > 0
        except TMDBError as e:
            self.logger.error(f"API connection test failed: {e}")
            return False
