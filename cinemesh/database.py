"""
Database manager for Cinemesh.

Handles all database operations including:
- Connection management with SQLAlchemy
- Schema setup
- CRUD for users, movies, genres, people and cast links
- Public catalog queries
- Transactional helpers used by the TMDb importer
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from .config import Config
from .models import ROLE_ADMIN, CastEntry, Genre, Movie, Person, User
from .utils import setup_logger

MYSQL_DUPLICATE_ENTRY = 1062

ADMIN_MOVIE_SORTS = ("id", "title", "release_date", "average_rating")

PERSON_COLUMNS = (
    "p.id, p.name, p.biography, p.birth_date, p.profile_image_url, "
    "p.tmdb_id, p.created_at, p.updated_at, p.deleted_at"
)


class DuplicateRecordError(Exception):
    """Raised when an insert or update violates a unique constraint."""


def _is_duplicate(error: IntegrityError) -> bool:
    args = getattr(error.orig, "args", None) or (None,)
    return args[0] == MYSQL_DUPLICATE_ENTRY or "Duplicate entry" in str(error)


class DatabaseManager:
    """
    Handles all database operations.

    Responsibilities:
    - Connection management with SQLAlchemy
    - Transaction management
    - CRUD for all catalog and account tables
    """

    # Creation order respects foreign keys
    TABLES = ["users", "movies", "genres", "movie_genres", "people", "movie_people"]

    def __init__(self, config: Config):
        self.config = config
        self.engine = self._create_engine()
        self.logger = setup_logger("database", config.log_dir)

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with connection pooling."""
        return create_engine(
            self.config.get_db_url(),
            pool_size=25,
            max_overflow=0,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    def _execute(self, query: str, params: dict = None) -> list:
        """Execute a query and return results."""
        with self.engine.connect() as conn:
            result = conn.execute(text(query), params or {})
            conn.commit()
            return result.fetchall() if result.returns_rows else []

    def _fetch_mappings(self, query: str, params: dict = None) -> list:
        """Execute a read query and return rows as mappings."""
        with self.engine.connect() as conn:
            return list(conn.execute(text(query), params or {}).mappings())

    def _count(self, query: str, params: dict = None) -> int:
        result = self._execute(query, params)
        return int(result[0][0]) if result else 0

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Yield a connection inside a single transaction.

        Commits when the block exits normally and rolls back when it raises.
        """
        with self.engine.begin() as conn:
            yield conn

    # ============ SETUP OPERATIONS ============

    def table_exists(self, table_name: str) -> bool:
        """Check if a specific table exists."""
        return self._count(
            """SELECT COUNT(*) FROM information_schema.tables
               WHERE table_schema = :db AND table_name = :table""",
            {"db": self.config.db_name, "table": table_name},
        ) > 0

    def check_and_create_tables(self) -> dict:
        """
        Check which tables exist and create any that are missing.

        Returns:
            {"existing": List[str], "created": List[str], "all_present": bool}
        """
        result = {"existing": [], "created": [], "all_present": False}

        for table in self.TABLES:
            if self.table_exists(table):
                result["existing"].append(table)
            elif self._create_table(table):
                result["created"].append(table)

        result["all_present"] = len(result["existing"]) + len(result["created"]) == len(self.TABLES)
        return result

    def create_all_tables(self) -> List[str]:
        """Create every table in dependency order. Returns the tables that failed."""
        return [table for table in self.TABLES if not self._create_table(table)]

    def _create_table(self, table: str) -> bool:
        """Create a specific table with its indexes."""
        sql_templates = {
            "users": """
                CREATE TABLE IF NOT EXISTS users (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    username VARCHAR(50) NOT NULL,
                    email VARCHAR(100) NOT NULL,
                    password_hash VARCHAR(255) NOT NULL,
                    avatar_url VARCHAR(255) NOT NULL DEFAULT '',
                    role VARCHAR(20) NOT NULL DEFAULT 'user',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
                    UNIQUE KEY uq_users_username (username),
                    UNIQUE KEY uq_users_email (email)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
            "movies": """
                CREATE TABLE IF NOT EXISTS movies (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    title VARCHAR(255) NOT NULL,
                    slug VARCHAR(255) NOT NULL,
                    release_date DATE,
                    duration_minutes INT,
                    synopsis TEXT,
                    poster_url VARCHAR(512) NOT NULL DEFAULT '',
                    backdrop_url VARCHAR(512) NOT NULL DEFAULT '',
                    average_rating DECIMAL(4,2) NOT NULL DEFAULT 0.00,
                    mpaa_rating VARCHAR(20) NOT NULL DEFAULT '',
                    tmdb_id INT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE KEY uq_movies_slug (slug),
                    UNIQUE KEY uq_movies_tmdb_id (tmdb_id),
                    INDEX idx_movies_title (title),
                    INDEX idx_movies_release_date (release_date)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
            "genres": """
                CREATE TABLE IF NOT EXISTS genres (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    name VARCHAR(100) NOT NULL,
                    tmdb_id INT NULL,
                    UNIQUE KEY uq_genres_name (name),
                    UNIQUE KEY uq_genres_tmdb_id (tmdb_id)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
            "movie_genres": """
                CREATE TABLE IF NOT EXISTS movie_genres (
                    movie_id INT NOT NULL,
                    genre_id INT NOT NULL,
                    PRIMARY KEY (movie_id, genre_id),
                    CONSTRAINT fk_movie_genres_movie FOREIGN KEY (movie_id)
                        REFERENCES movies (id) ON DELETE CASCADE,
                    CONSTRAINT fk_movie_genres_genre FOREIGN KEY (genre_id)
                        REFERENCES genres (id) ON DELETE CASCADE
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
            "people": """
                CREATE TABLE IF NOT EXISTS people (
                    id INT AUTO_INCREMENT PRIMARY KEY,
                    name VARCHAR(100) NOT NULL,
                    biography TEXT,
                    birth_date DATE,
                    profile_image_url VARCHAR(255) NOT NULL DEFAULT '',
                    tmdb_id INT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
                    deleted_at TIMESTAMP NULL DEFAULT NULL,
                    UNIQUE KEY uq_people_tmdb_id (tmdb_id),
                    INDEX idx_people_name (name),
                    INDEX idx_people_deleted_at (deleted_at)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
            "movie_people": """
                CREATE TABLE IF NOT EXISTS movie_people (
                    movie_id INT NOT NULL,
                    person_id INT NOT NULL,
                    role VARCHAR(50) NOT NULL,
                    character_name VARCHAR(100) NOT NULL DEFAULT '',
                    cast_order INT NULL,
                    PRIMARY KEY (movie_id, person_id, role),
                    INDEX idx_movie_people_role (role),
                    CONSTRAINT fk_movie_people_movie FOREIGN KEY (movie_id)
                        REFERENCES movies (id) ON DELETE CASCADE,
                    CONSTRAINT fk_movie_people_person FOREIGN KEY (person_id)
                        REFERENCES people (id) ON DELETE CASCADE
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """,
        }

        try:
            self._execute(sql_templates[table])
            self.logger.info(f"Created table: {table}")
            return True
        except Exception as e:
            self.logger.error(f"Error creating table {table}: {e}")
            return False

    def get_status(self) -> dict:
        """Row counts for every catalog table."""
        return {
            "users": self._count("SELECT COUNT(*) FROM users"),
            "movies": self._count("SELECT COUNT(*) FROM movies"),
            "genres": self._count("SELECT COUNT(*) FROM genres"),
            "people": self._count("SELECT COUNT(*) FROM people WHERE deleted_at IS NULL"),
            "cast_links": self._count("SELECT COUNT(*) FROM movie_people"),
        }

    # ============ USER OPERATIONS ============

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        rows = self._fetch_mappings("SELECT * FROM users WHERE id = :id", {"id": user_id})
        return User.from_row(rows[0]) if rows else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        rows = self._fetch_mappings("SELECT * FROM users WHERE email = :email", {"email": email})
        return User.from_row(rows[0]) if rows else None

    def list_users(self) -> List[User]:
        return [User.from_row(r) for r in self._fetch_mappings("SELECT * FROM users ORDER BY id ASC")]

    def create_user(self, user: User) -> User:
        """
        Insert a user and return it with its new ID.

        Raises:
            DuplicateRecordError: If the email or username is taken.
        """
        try:
            with self.transaction() as conn:
                result = conn.execute(
                    text("""
                        INSERT INTO users (username, email, password_hash, avatar_url, role)
                        VALUES (:username, :email, :password_hash, :avatar_url, :role)
                    """),
                    {
                        "username": user.username,
                        "email": user.email,
                        "password_hash": user.password_hash,
                        "avatar_url": user.avatar_url or "",
                        "role": user.role,
                    },
                )
                user.id = result.lastrowid
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError("user with this email or username already exists") from e
            raise
        self.logger.info(f"Created user: id={user.id} role={user.role}")
        return user

    def update_user(self, user: User) -> bool:
        try:
            with self.transaction() as conn:
                result = conn.execute(
                    text("""
                        UPDATE users
                        SET username = :username, email = :email, role = :role,
                            password_hash = :password_hash, avatar_url = :avatar_url
                        WHERE id = :id
                    """),
                    {
                        "id": user.id,
                        "username": user.username,
                        "email": user.email,
                        "role": user.role,
                        "password_hash": user.password_hash,
                        "avatar_url": user.avatar_url or "",
                    },
                )
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError("user with this email or username already exists") from e
            raise
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        with self.transaction() as conn:
            result = conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
        return result.rowcount > 0

    def ensure_admin_user(self, email: str, password_hash: str = "") -> Tuple[User, bool]:
        """
        Make sure an admin account exists for email.

        Returns:
            (user, created)
        """
        existing = self.get_user_by_email(email)
        if existing:
            self.logger.info("Admin user already present")
            return existing, False

        admin = User(
            id=None,
            username=email.split("@")[0] or "admin",
            email=email,
            password_hash=password_hash,
            role=ROLE_ADMIN,
        )
        self.create_user(admin)
        self.logger.info("Admin user created")
        return admin, True

    # ============ MOVIE OPERATIONS ============

    def _attach_genres(self, conn: Connection, movies: List[Movie]) -> None:
        """Batch-load genres for movies."""
        if not movies:
            return
        by_id = {m.id: m for m in movies}
        query = text("""
            SELECT mg.movie_id, g.id, g.name, g.tmdb_id
            FROM movie_genres mg
            JOIN genres g ON g.id = mg.genre_id
            WHERE mg.movie_id IN :ids
            ORDER BY g.name ASC
        """).bindparams(bindparam("ids", expanding=True))
        for row in conn.execute(query, {"ids": list(by_id)}).mappings():
            by_id[row["movie_id"]].genres.append(Genre.from_row(row))

    def _attach_cast(self, conn: Connection, movies: List[Movie]) -> None:
        """Batch-load cast links (with people) for movies, skipping soft-deleted people."""
        if not movies:
            return
        by_id = {m.id: m for m in movies}
        query = text(f"""
            SELECT mp.movie_id, mp.person_id, mp.role, mp.character_name, mp.cast_order,
                   {PERSON_COLUMNS}
            FROM movie_people mp
            JOIN people p ON p.id = mp.person_id
            WHERE mp.movie_id IN :ids AND p.deleted_at IS NULL
            ORDER BY mp.movie_id, mp.cast_order IS NULL, mp.cast_order, mp.role, p.name
        """).bindparams(bindparam("ids", expanding=True))
        for row in conn.execute(query, {"ids": list(by_id)}).mappings():
            by_id[row["movie_id"]].cast.append(
                CastEntry(
                    movie_id=row["movie_id"],
                    person_id=row["person_id"],
                    role=row["role"],
                    character_name=row["character_name"] or "",
                    cast_order=row["cast_order"],
                    person=Person.from_row(row),
                )
            )

    def _load_movies(
        self,
        query: str,
        params: dict,
        with_cast: bool = False,
        conn: Optional[Connection] = None,
    ) -> List[Movie]:
        if conn is None:
            with self.engine.connect() as own_conn:
                return self._load_movies(query, params, with_cast, own_conn)
        movies = [Movie.from_row(r) for r in conn.execute(text(query), params).mappings()]
        self._attach_genres(conn, movies)
        if with_cast:
            self._attach_cast(conn, movies)
        return movies

    def list_movies_admin(self, sort: str = "id", order: str = "desc") -> List[Movie]:
        """All movies with genres, ordered by a whitelisted column."""
        if sort not in ADMIN_MOVIE_SORTS:
            sort = "id"
        if order not in ("asc", "desc"):
            order = "desc"
        return self._load_movies(f"SELECT * FROM movies ORDER BY {sort} {order.upper()}", {})

    def get_movie(self, movie_id: int, with_cast: bool = False) -> Optional[Movie]:
        movies = self._load_movies("SELECT * FROM movies WHERE id = :id", {"id": movie_id}, with_cast)
        return movies[0] if movies else None

    def get_movie_by_slug(self, slug: str, with_cast: bool = False) -> Optional[Movie]:
        movies = self._load_movies("SELECT * FROM movies WHERE slug = :slug", {"slug": slug}, with_cast)
        return movies[0] if movies else None

    def find_movie_by_slug_or_tmdb_id(self, slug: str, tmdb_id: Optional[int]) -> Optional[Movie]:
        """Existing movie that an import of (slug, tmdb_id) would collide with."""
        rows = self._fetch_mappings(
            "SELECT * FROM movies WHERE slug = :slug OR (:tmdb_id IS NOT NULL AND tmdb_id = :tmdb_id) LIMIT 1",
            {"slug": slug, "tmdb_id": tmdb_id},
        )
        return Movie.from_row(rows[0]) if rows else None

    def _replace_movie_genres(self, conn: Connection, movie_id: int, genre_ids: List[int]) -> None:
        conn.execute(text("DELETE FROM movie_genres WHERE movie_id = :id"), {"id": movie_id})
        if not genre_ids:
            return
        existing = conn.execute(
            text("SELECT id FROM genres WHERE id IN :ids").bindparams(bindparam("ids", expanding=True)),
            {"ids": list(set(genre_ids))},
        ).fetchall()
        for row in existing:
            self.link_movie_genre(conn, movie_id, row[0])

    def create_movie(self, movie: Movie, genre_ids: List[int]) -> Movie:
        """
        Insert a movie with its genre links.

        Raises:
            DuplicateRecordError: If the slug or TMDb ID is taken.
        """
        try:
            with self.transaction() as conn:
                movie.id = self.insert_movie(conn, movie)
                self._replace_movie_genres(conn, movie.id, genre_ids)
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError("movie with this slug already exists") from e
            raise
        self.logger.info(f"Created movie: {movie.title} (ID: {movie.id})")
        return movie

    def update_movie(self, movie: Movie, genre_ids: List[int]) -> bool:
        """Update movie fields and replace its genre set."""
        record = movie.to_record()
        del record["tmdb_id"]  # TMDb link is set only by import
        set_clause = ", ".join(f"{k} = :{k}" for k in record)
        record["id"] = movie.id
        try:
            with self.transaction() as conn:
                result = conn.execute(text(f"UPDATE movies SET {set_clause} WHERE id = :id"), record)
                if result.rowcount == 0:
                    return False
                self._replace_movie_genres(conn, movie.id, genre_ids)
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError("movie with this slug already exists") from e
            raise
        return True

    def delete_movie(self, movie_id: int) -> bool:
        """Delete a movie; genre and cast links cascade."""
        with self.transaction() as conn:
            result = conn.execute(text("DELETE FROM movies WHERE id = :id"), {"id": movie_id})
        return result.rowcount > 0

    # ============ GENRE OPERATIONS ============

    def list_genres(self) -> List[Genre]:
        return [Genre.from_row(r) for r in self._fetch_mappings("SELECT * FROM genres ORDER BY name ASC")]

    def get_genre(self, genre_id: int) -> Optional[Genre]:
        rows = self._fetch_mappings("SELECT * FROM genres WHERE id = :id", {"id": genre_id})
        return Genre.from_row(rows[0]) if rows else None

    def get_genre_by_name(self, name: str) -> Optional[Genre]:
        """Case-insensitive lookup by name."""
        rows = self._fetch_mappings(
            "SELECT * FROM genres WHERE LOWER(name) = LOWER(:name) LIMIT 1", {"name": name}
        )
        return Genre.from_row(rows[0]) if rows else None

    def create_genre(self, name: str) -> Genre:
        try:
            with self.transaction() as conn:
                result = conn.execute(text("INSERT INTO genres (name) VALUES (:name)"), {"name": name})
                genre = Genre(id=result.lastrowid, name=name)
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError(f"genre '{name}' already exists") from e
            raise
        return genre

    def update_genre(self, genre: Genre) -> bool:
        try:
            with self.transaction() as conn:
                result = conn.execute(
                    text("UPDATE genres SET name = :name WHERE id = :id"),
                    {"name": genre.name, "id": genre.id},
                )
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateRecordError(f"genre '{genre.name}' already exists") from e
            raise
        return result.rowcount > 0

    def delete_genre(self, genre_id: int) -> bool:
        with self.transaction() as conn:
            result = conn.execute(text("DELETE FROM genres WHERE id = :id"), {"id": genre_id})
        return result.rowcount > 0

    # ============ PEOPLE & CAST OPERATIONS ============

    def list_people_admin(self, search: Optional[str] = None) -> List[Person]:
        where_sql = "p.deleted_at IS NULL"
        params = {}
        if search:
            where_sql += " AND LOWER(p.name) LIKE :search"
            params["search"] = f"%{search.lower()}%"
        rows = self._fetch_mappings(
            f"SELECT {PERSON_COLUMNS} FROM people p WHERE {where_sql} ORDER BY p.name ASC", params
        )
        return [Person.from_row(r) for r in rows]

    def get_person(self, person_id: int, include_deleted: bool = False) -> Optional[Person]:
        query = f"SELECT {PERSON_COLUMNS} FROM people p WHERE p.id = :id"
        if not include_deleted:
            query += " AND p.deleted_at IS NULL"
        rows = self._fetch_mappings(query, {"id": person_id})
        return Person.from_row(rows[0]) if rows else None

    def soft_delete_person(self, person_id: int) -> bool:
        with self.transaction() as conn:
            result = conn.execute(
                text("UPDATE people SET deleted_at = CURRENT_TIMESTAMP WHERE id = :id AND deleted_at IS NULL"),
                {"id": person_id},
            )
        return result.rowcount > 0

    def get_movie_cast(self, movie_id: int) -> List[CastEntry]:
        movie = Movie(id=movie_id, title="", slug="")
        with self.engine.connect() as conn:
            self._attach_cast(conn, [movie])
        return movie.cast

    def add_cast_member(
        self,
        movie_id: int,
        person_id: int,
        role: str,
        character_name: str = "",
        cast_order: Optional[int] = None,
    ) -> bool:
        """Link a person to a movie. Returns False when the link already exists."""
        with self.transaction() as conn:
            return self.link_movie_person_ignore(conn, movie_id, person_id, role, character_name, cast_order)

    def remove_cast_member(self, movie_id: int, person_id: int, role: str) -> bool:
        with self.transaction() as conn:
            result = conn.execute(
                text("""
                    DELETE FROM movie_people
                    WHERE movie_id = :movie_id AND person_id = :person_id AND role = :role
                """),
                {"movie_id": movie_id, "person_id": person_id, "role": role},
            )
        return result.rowcount > 0

    # ============ PUBLIC API QUERIES ============

    def get_movies_public(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> Tuple[List[Movie], int]:
        """Paginated movies with genres and cast, newest first."""
        where_clauses = []
        params: Dict = {}

        if search:
            where_clauses.append("LOWER(m.title) LIKE :search")
            params["search"] = f"%{search.lower()}%"

        if genre:
            where_clauses.append("""EXISTS (
                SELECT 1 FROM movie_genres mg JOIN genres g ON g.id = mg.genre_id
                WHERE mg.movie_id = m.id AND LOWER(g.name) = LOWER(:genre)
            )""")
            params["genre"] = genre

        where_sql = " AND ".join(where_clauses) if where_clauses else "1=1"
        total = self._count(f"SELECT COUNT(*) FROM movies m WHERE {where_sql}", params)

        params["limit"] = limit
        params["offset"] = (page - 1) * limit
        movies = self._load_movies(
            f"""
                SELECT m.* FROM movies m
                WHERE {where_sql}
                ORDER BY m.created_at DESC, m.id DESC
                LIMIT :limit OFFSET :offset
            """,
            params,
            with_cast=True,
        )
        return movies, total

    def get_movie_public(self, identifier: str) -> Optional[Movie]:
        """Movie by numeric ID, otherwise by slug."""
        try:
            movie_id = int(identifier)
        except ValueError:
            return self.get_movie_by_slug(identifier, with_cast=True)
        return self.get_movie(movie_id, with_cast=True)

    def get_genre_public(self, identifier: str) -> Optional[Tuple[Genre, List[Movie]]]:
        """Genre by numeric ID, otherwise by case-insensitive name, with its movies by title."""
        try:
            genre = self.get_genre(int(identifier))
        except ValueError:
            genre = self.get_genre_by_name(identifier)
        if not genre:
            return None

        movies = self._load_movies(
            """
                SELECT m.* FROM movies m
                JOIN movie_genres mg ON mg.movie_id = m.id
                WHERE mg.genre_id = :genre_id
                ORDER BY m.title ASC
            """,
            {"genre_id": genre.id},
        )
        return genre, movies

    def get_people_public(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> Tuple[List[Person], int]:
        where_sql = "p.deleted_at IS NULL"
        params: Dict = {}
        if search:
            where_sql += " AND LOWER(p.name) LIKE :search"
            params["search"] = f"%{search.lower()}%"

        total = self._count(f"SELECT COUNT(*) FROM people p WHERE {where_sql}", params)

        params["limit"] = limit
        params["offset"] = (page - 1) * limit
        rows = self._fetch_mappings(
            f"""
                SELECT {PERSON_COLUMNS} FROM people p
                WHERE {where_sql}
                ORDER BY p.name ASC
                LIMIT :limit OFFSET :offset
            """,
            params,
        )
        return [Person.from_row(r) for r in rows], total

    def get_person_public(self, person_id: int) -> Optional[Tuple[Person, List[dict]]]:
        """Person with every movie they are credited on, newest release first."""
        person = self.get_person(person_id)
        if not person:
            return None

        with self.engine.connect() as conn:
            rows = list(conn.execute(
                text("""
                    SELECT m.*, mp.role AS credit_role, mp.character_name, mp.cast_order
                    FROM movies m
                    JOIN movie_people mp ON mp.movie_id = m.id
                    WHERE mp.person_id = :id
                    ORDER BY m.release_date DESC
                """),
                {"id": person_id},
            ).mappings())

        credits = []
        for row in rows:
            item = Movie.from_row(row).to_dict()
            del item["cast"]
            del item["genres"]
            item["role"] = row["credit_role"]
            if row["character_name"]:
                item["character_name"] = row["character_name"]
            if row["cast_order"] is not None:
                item["cast_order"] = row["cast_order"]
            credits.append(item)
        return person, credits

    def search_catalog(self, query: str) -> dict:
        """Substring search across movies (title/synopsis), people and genres."""
        pattern = f"%{query.lower()}%"
        movies = self._load_movies(
            """
                SELECT m.* FROM movies m
                WHERE LOWER(m.title) LIKE :pattern OR LOWER(m.synopsis) LIKE :pattern
                LIMIT 10
            """,
            {"pattern": pattern},
        )
        people = [
            Person.from_row(r)
            for r in self._fetch_mappings(
                f"""
                    SELECT {PERSON_COLUMNS} FROM people p
                    WHERE p.deleted_at IS NULL AND LOWER(p.name) LIKE :pattern
                    LIMIT 10
                """,
                {"pattern": pattern},
            )
        ]
        genres = [
            Genre.from_row(r)
            for r in self._fetch_mappings(
                "SELECT * FROM genres WHERE LOWER(name) LIKE :pattern LIMIT 5", {"pattern": pattern}
            )
        ]
        return {"movies": movies, "people": people, "genres": genres}

    def get_stats(self) -> dict:
        status = self.get_status()
        return {
            "total_movies": status["movies"],
            "total_genres": status["genres"],
            "total_people": status["people"],
        }

    # ============ IMPORT HELPERS (run inside transaction()) ============

    def find_genre_by_name_ci(self, conn: Connection, name: str) -> Optional[Genre]:
        row = conn.execute(
            text("SELECT * FROM genres WHERE LOWER(name) = LOWER(:name) LIMIT 1"), {"name": name}
        ).mappings().fetchone()
        return Genre.from_row(row) if row else None

    def find_genre_by_tmdb_id(self, conn: Connection, tmdb_id: int) -> Optional[Genre]:
        row = conn.execute(
            text("SELECT * FROM genres WHERE tmdb_id = :tmdb_id LIMIT 1"), {"tmdb_id": tmdb_id}
        ).mappings().fetchone()
        return Genre.from_row(row) if row else None

    def insert_genre_ignore(self, conn: Connection, name: str, tmdb_id: Optional[int]) -> bool:
        """Insert a genre unless its name or TMDb ID already exists. True if inserted."""
        result = conn.execute(
            text("INSERT IGNORE INTO genres (name, tmdb_id) VALUES (:name, :tmdb_id)"),
            {"name": name, "tmdb_id": tmdb_id},
        )
        return result.rowcount == 1

    def find_person_by_tmdb_id(self, conn: Connection, tmdb_id: int) -> Optional[Person]:
        """Lookup including soft-deleted people."""
        row = conn.execute(
            text(f"SELECT {PERSON_COLUMNS} FROM people p WHERE p.tmdb_id = :tmdb_id LIMIT 1"),
            {"tmdb_id": tmdb_id},
        ).mappings().fetchone()
        return Person.from_row(row) if row else None

    def restore_person(self, conn: Connection, person_id: int) -> None:
        conn.execute(text("UPDATE people SET deleted_at = NULL WHERE id = :id"), {"id": person_id})

    def insert_person_ignore(
        self,
        conn: Connection,
        name: str,
        profile_image_url: str,
        tmdb_id: int,
    ) -> bool:
        """Insert a person unless the TMDb ID already exists. True if inserted."""
        result = conn.execute(
            text("""
                INSERT IGNORE INTO people (name, biography, profile_image_url, tmdb_id)
                VALUES (:name, '', :profile_image_url, :tmdb_id)
            """),
            {"name": name[:100], "profile_image_url": profile_image_url, "tmdb_id": tmdb_id},
        )
        return result.rowcount == 1

    def insert_movie(self, conn: Connection, movie: Movie) -> int:
        record = movie.to_record()
        columns = ", ".join(record.keys())
        placeholders = ", ".join(f":{k}" for k in record.keys())
        result = conn.execute(text(f"INSERT INTO movies ({columns}) VALUES ({placeholders})"), record)
        return result.lastrowid

    def link_movie_genre(self, conn: Connection, movie_id: int, genre_id: int) -> None:
        conn.execute(
            text("INSERT IGNORE INTO movie_genres (movie_id, genre_id) VALUES (:movie_id, :genre_id)"),
            {"movie_id": movie_id, "genre_id": genre_id},
        )

    def link_movie_person_ignore(
        self,
        conn: Connection,
        movie_id: int,
        person_id: int,
        role: str,
        character_name: str = "",
        cast_order: Optional[int] = None,
    ) -> bool:
        """Insert a (movie, person, role) link; an existing triple is left untouched."""
        result = conn.execute(
            text("""
                INSERT IGNORE INTO movie_people (movie_id, person_id, role, character_name, cast_order)
                VALUES (:movie_id, :person_id, :role, :character_name, :cast_order)
            """),
            {
                "movie_id": movie_id,
                "person_id": person_id,
                "role": role,
                "character_name": (character_name or "")[:100],
                "cast_order": cast_order,
            },
        )
        return result.rowcount == 1
