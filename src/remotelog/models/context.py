"""Resolved remote coordinates for a repository path."""

from typing import Optional

from pydantic import BaseModel, Field


class RepositoryContext(BaseModel):
    """Where a repository lives remotely and who is looking at it."""

    owner: str = Field(..., description="Repository owner on the remote")
    name: str = Field(..., description="Repository name on the remote")
    viewer: Optional[str] = Field(None, description="Display label of the authenticated viewer")
    viewer_email: Optional[str] = Field(None, description="Email of the authenticated viewer")
    viewer_username: Optional[str] = Field(None, description="Login of the authenticated viewer")
