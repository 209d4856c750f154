"""
License records offered to resource creators.
"""

from __future__ import annotations

from pydantic import BaseModel


class License(BaseModel):
    id: int
    name: str
    url: str | None = None
    image_url: str | None = None
