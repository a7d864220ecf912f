"""Pydantic schemas for session endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class SessionOpenRequest(BaseModel):
    """Open a portfolio session; no owner means the anonymous local session."""

    owner_id: Optional[str] = Field(default=None, min_length=1, max_length=128)


class SessionResponse(BaseModel):
    session_id: str
    owner_id: Optional[str] = None
    anonymous: bool
    loaded: bool
