"""
Upload I/O models.
"""

from __future__ import annotations

from pydantic import BaseModel


class UploadRead(BaseModel):
    url: str
    filename: str
    size: int
    content_type: str
