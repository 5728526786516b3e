"""
Schemas for the admin TMDb endpoints.
"""

from pydantic import BaseModel, Field


class ImportRequest(BaseModel):
    """Body of POST /admin/tmdb/import."""

    tmdb_id: int = Field(..., gt=0, description="TMDb movie ID")
