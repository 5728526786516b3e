"""
Cinemesh - Movie catalog core.

This package provides tools for:
- Storing movies, genres, people and accounts in MySQL
- Fetching movie data from the TMDb API
- Importing TMDb movies with their cast and crew
- Password hashing and JWT session tokens
"""

from .config import Config
from .models import CastEntry, Genre, Movie, Person, User
from .client import TMDBClient, TMDBError
from .database import DatabaseManager, DuplicateRecordError
from .fetcher import MovieFetcher
from .importer import CatalogImporter, ImportFailedError, MovieAlreadyExistsError

__version__ = "1.0.0"
__all__ = [
    "Config",
    "CastEntry",
    "Genre",
    "Movie",
    "Person",
    "User",
    "TMDBClient",
    "TMDBError",
    "DatabaseManager",
    "DuplicateRecordError",
    "MovieFetcher",
    "CatalogImporter",
    "ImportFailedError",
    "MovieAlreadyExistsError",
]
