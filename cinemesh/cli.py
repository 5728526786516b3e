"""
Command-line interface for Cinemesh.

Provides commands for:
- setup: Check and create required tables
- status: Show current database status
- seed: Ensure the configured admin account exists
- create-admin: Create or promote an admin account
- search: Search TMDb for movies
- import: Import movies from TMDb by ID
- test: Test TMDb and database connectivity
- serve: Run the web application
"""

import argparse
import getpass
import sys
from typing import Optional

from .auth import hash_password
from .client import TMDBClient, TMDBError
from .config import Config
from .database import DatabaseManager, DuplicateRecordError
from .importer import CatalogImporter
from .models import ROLE_ADMIN, User
from .utils import confirm_action, format_number, print_header, print_status_table


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog="cinemesh",
        description="Cinemesh - Movie catalog with TMDb import and admin panel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Setup (run first)
  python -m cinemesh setup

  # Check status
  python -m cinemesh status

  # Create an admin account
  python -m cinemesh create-admin admin@example.com --username admin

  # Search TMDb
  python -m cinemesh search "Inception"

  # Import movies by TMDb ID
  python -m cinemesh import 27205 603

  # Run the web server
  python -m cinemesh serve --reload
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("setup", help="Check for missing tables and create them")
    subparsers.add_parser("status", help="Show current database status")
    subparsers.add_parser("seed", help="Ensure ADMIN_EMAIL exists as an admin account")

    admin_parser = subparsers.add_parser("create-admin", help="Create or promote an admin account")
    admin_parser.add_argument("email", help="Admin email address")
    admin_parser.add_argument("--username", help="Username (default: email local part)")
    admin_parser.add_argument("--password", help="Password (prompted when omitted)")
    admin_parser.add_argument(
        "--yes",
        action="store_true",
        help="Promote an existing account without asking",
    )

    search_parser = subparsers.add_parser("search", help="Search TMDb for movies")
    search_parser.add_argument("query", help="Movie title to search for")
    search_parser.add_argument("--page", type=int, default=1, help="Result page (default: 1)")

    import_parser = subparsers.add_parser("import", help="Import movies from TMDb with cast and crew")
    import_parser.add_argument("tmdb_ids", type=int, nargs="+", metavar="TMDB_ID")
    import_parser.add_argument("--quiet", action="store_true", help="Hide the progress bar")

    subparsers.add_parser("test", help="Test TMDb API and database connections")

    serve_parser = subparsers.add_parser("serve", help="Run the web application with uvicorn")
    serve_parser.add_argument("--host", help="Bind address (default: API_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port (default: PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


def seed_admin(db: DatabaseManager, config: Config) -> User:
    """Ensure the configured admin account exists."""
    password_hash = hash_password(config.admin_password) if config.admin_password else ""
    user, created = db.ensure_admin_user(config.admin_email, password_hash)
    if created and not password_hash:
        print("WARNING: ADMIN_PASSWORD is not set; the seeded admin cannot log in.")
    return user


def cmd_setup(db: DatabaseManager) -> int:
    """Run setup command."""
    print_header("Cinemesh Setup")

    result = db.check_and_create_tables()

    print("\nTables:")
    for table in DatabaseManager.TABLES:
        if table in result["existing"]:
            print(f"  {table:<20} EXISTS")
        elif table in result["created"]:
            print(f"  {table:<20} CREATED")
        else:
            print(f"  {table:<20} MISSING")

    print(f"\nSetup complete! {len(result['created'])} tables created, "
          f"{len(result['existing'])} already existed.")

    if result["all_present"]:
        print("All required tables are now present.")
        return 0
    print("WARNING: Some tables are still missing!")
    return 1


def cmd_status(db: DatabaseManager) -> int:
    """Run status command."""
    print_header("Cinemesh Status")

    status = db.get_status()
    print_status_table(
        {
            "Users": format_number(status["users"]),
            "Movies": format_number(status["movies"]),
            "Genres": format_number(status["genres"]),
            "People": format_number(status["people"]),
            "Cast & crew links": format_number(status["cast_links"]),
        },
        title="Database Status",
    )
    return 0


def cmd_seed(db: DatabaseManager, config: Config) -> int:
    user = seed_admin(db, config)
    print(f"Admin account: {user.email} (id {user.id})")
    return 0


def cmd_create_admin(db: DatabaseManager, args) -> int:
    """Run create-admin command."""
    existing = db.get_user_by_email(args.email)
    if existing:
        if existing.is_admin:
            print(f"{args.email} is already an admin.")
            return 0
        if not args.yes and not confirm_action(f"{args.email} exists as a regular user. Promote to admin?"):
            print("Cancelled.")
            return 0
        existing.role = ROLE_ADMIN
        db.update_user(existing)
        print(f"Promoted {args.email} to admin.")
        return 0

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.")
        return 1

    user = User(
        id=None,
        username=args.username or args.email.split("@")[0],
        email=args.email,
        password_hash=hash_password(password),
        role=ROLE_ADMIN,
    )
    try:
        db.create_user(user)
    except DuplicateRecordError as e:
        print(f"Failed: {e}")
        return 1

    print(f"Created admin {user.email} (id {user.id})")
    return 0


def cmd_search(client: TMDBClient, args) -> int:
    """Run search command."""
    print_header("Search TMDb")

    response = client.search_movies(args.query, page=args.page)
    if not response.results:
        print(f"\nNo movies found for '{args.query}'")
        return 0

    print(f"\nPage {response.page}/{response.total_pages} "
          f"({format_number(response.total_results)} results):\n")
    for result in response.results:
        year = result.release_date[:4] if result.release_date else "----"
        print(f"  {result.id:>8}  {year}  {result.title}  ({result.vote_average:.1f})")
    print("\nImport with: python -m cinemesh import <TMDB_ID>")
    return 0


def cmd_import(importer: CatalogImporter, args) -> int:
    """Run import command."""
    print_header("Import From TMDb")

    results = importer.import_many(args.tmdb_ids, show_progress=not args.quiet)

    print()
    for result in results:
        if result["status"] == "imported":
            print(f"  {result['tmdb_id']:>8}  IMPORTED  {result['title']} (id {result['movie_id']})")
        elif result["status"] == "exists":
            print(f"  {result['tmdb_id']:>8}  EXISTS    movie id {result['movie_id']}")
        else:
            print(f"  {result['tmdb_id']:>8}  FAILED    {result['error']}")

    failed = sum(1 for r in results if r["status"] == "failed")
    imported = sum(1 for r in results if r["status"] == "imported")
    print(f"\nSummary: {imported} imported, {len(results) - imported - failed} existing, {failed} failed")
    return 1 if failed else 0


def cmd_test(db: DatabaseManager, client: TMDBClient) -> int:
    """Run test connection command."""
    print_header("Connection Test")

    api_ok = False
    if not client.is_configured:
        print("\nAPI Connection: SKIPPED (TMDB_API_KEY not set)")
    else:
        api_ok = client.test_connection()
        print(f"\nAPI Connection: {'OK' if api_ok else 'FAILED'}")

    db_error = None
    try:
        db.get_status()
    except Exception as e:
        db_error = e
    print(f"DB Connection: {'OK' if db_error is None else 'FAILED'}")
    if db_error is not None:
        print(f"  Error: {db_error}")

    return 0 if db_error is None and (api_ok or not client.is_configured) else 1


def cmd_serve(db: DatabaseManager, config: Config, args) -> int:
    """Prepare the database and run the web application."""
    import uvicorn

    result = db.check_and_create_tables()
    if not result["all_present"]:
        print("WARNING: Some tables are still missing!")
    if config.seed_data:
        seed_admin(db, config)
    if not config.tmdb_api_key:
        print("WARNING: TMDB_API_KEY not set; TMDb import features are disabled.")
    print(f"CORS origins: {', '.join(config.allowed_origins)}")

    uvicorn.run(
        "api.main:app",
        host=args.host or config.api_host,
        port=args.port or config.api_port,
        reload=args.reload,
    )
    return 0


def main(args: Optional[list] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 0

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("\nMake sure your .env file contains:")
        print("  DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME")
        print("  JWT_SECRET=<random secret>")
        print("  TMDB_API_KEY=<your_tmdb_api_key>  (optional, enables imports)")
        return 1

    try:
        db = DatabaseManager(config)
        client = TMDBClient(config)
        importer = CatalogImporter(db, client, max_cast=config.max_cast_members)
    except Exception as e:
        print(f"Error initializing: {e}")
        return 1

    try:
        if parsed_args.command == "setup":
            return cmd_setup(db)
        elif parsed_args.command == "status":
            return cmd_status(db)
        elif parsed_args.command == "seed":
            return cmd_seed(db, config)
        elif parsed_args.command == "create-admin":
            return cmd_create_admin(db, parsed_args)
        elif parsed_args.command == "search":
            return cmd_search(client, parsed_args)
        elif parsed_args.command == "import":
            return cmd_import(importer, parsed_args)
        elif parsed_args.command == "test":
            return cmd_test(db, client)
        elif parsed_args.command == "serve":
            return cmd_serve(db, config, parsed_args)
        else:
            parser.print_help()
            return 0

    except KeyboardInterrupt:
        print("\n\nOperation cancelled.")
        return 130
    except TMDBError as e:
        print(f"\nTMDb error: {e}")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
