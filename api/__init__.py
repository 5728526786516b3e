"""
Cinemesh web application.

FastAPI app serving the public catalog API, account endpoints and the
server-rendered admin panel with TMDb import.
"""

from api.main import app

__all__ = ["app"]
