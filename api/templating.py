"""
Jinja2 template environment for the admin panel and the API docs page.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from cinemesh.models import ROLE_ACTOR, ROLE_DIRECTOR, ROLE_PRODUCER, ROLE_WRITER, USER_ROLES

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Credit roles offered by the cast form
CAST_ROLES = (ROLE_ACTOR, ROLE_DIRECTOR, ROLE_WRITER, ROLE_PRODUCER)

templates.env.globals["user_roles"] = USER_ROLES
templates.env.globals["cast_roles"] = CAST_ROLES
