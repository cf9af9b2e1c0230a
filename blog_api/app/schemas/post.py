"""
Pydantic models for blog posts.

``PostBase`` holds the fields a client may supply; ``PostCreate`` is
the payload for new posts and ``PostRead`` adds the store-managed
``id`` and timestamps.  ``PostUpdate`` makes every field optional so
that only the supplied ones are written.  Timestamp and option fields
use camelCase aliases, which is also how they are stored.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from blog_api.app.core.db import format_timestamp


class SortField(str, Enum):
    created_at = "createdAt"
    updated_at = "updatedAt"


class SortOrder(str, Enum):
    ascending = "ascending"
    descending = "descending"


class PostBase(BaseModel):
    title: str = Field(..., min_length=1, examples=["Learning Redux"])
    author: Optional[str] = Field(None, examples=["Naa Gyamfi"])
    contents: Optional[str] = Field(None, examples=["Connecting to the database"])
    tags: List[str] = Field(default_factory=list, examples=[["redux", "react"]])


class PostCreate(PostBase):
    """Schema for creating a post."""
    pass


class PostRead(PostBase):
    """Schema for reading a post from the API."""

    id: str
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class PostUpdate(BaseModel):
    """Schema for updating a post.

    All fields are optional; only provided fields will be updated.
    ``author`` and ``contents`` may be cleared with ``null``; ``title``
    may not, and a ``null`` tag list clears the tags.
    """

    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = None
    contents: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def title_cannot_be_cleared(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("`title` is required")
        return value

    @field_validator("tags")
    @classmethod
    def clear_tags(cls, value: Optional[List[str]]) -> List[str]:
        return [] if value is None else value


class PostListOptions(BaseModel):
    """Sorting options for post listings."""

    sort_by: SortField = Field(SortField.created_at, alias="sortBy")
    sort_order: SortOrder = Field(SortOrder.descending, alias="sortOrder")

    model_config = {
        "populate_by_name": True,
    }


class DeleteResult(BaseModel):
    """Outcome of a delete: how many posts were removed (0 or 1)."""

    deleted_count: int = Field(..., alias="deletedCount")

    model_config = {
        "populate_by_name": True,
    }
