"""
Service layer for blog posts.

``PostService`` implements the post lifecycle on top of a document
store collection: create, list (optionally filtered by author or tag),
get, partial update and delete.  Payloads are validated against the
schemas in ``schemas.post`` before anything is written, so a failed
validation never leaves a partial record behind.

Lookups by id follow one convention across get, update and delete: a
well-formed id that matches nothing is reported as ``None`` (or a
zero delete count), not as an error.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from blog_api.app.core.db import ASCENDING, DESCENDING, DocumentStore
from blog_api.app.core.exceptions import InvalidPostIdError, ValidationError
from blog_api.app.schemas.post import (
    DeleteResult,
    PostCreate,
    PostListOptions,
    PostRead,
    PostUpdate,
    SortOrder,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_POST_ID = re.compile(r"^[0-9a-f]{32}$")


def _validation_messages(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Flatten pydantic errors into ``{field: [message, ...]}``."""
    messages: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__all__"
        if error["type"] in {"missing", "string_too_short"}:
            message = f"`{field}` is required"
        elif error["type"] == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = error["msg"]
        messages.setdefault(field, []).append(message)
    return messages


def _validate(schema: Type[SchemaT], data: Union[SchemaT, Mapping[str, Any], None]) -> SchemaT:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data if data is not None else {})
    except PydanticValidationError as exc:
        raise ValidationError(_validation_messages(exc)) from exc


def _check_post_id(post_id: Any) -> str:
    if not isinstance(post_id, str) or not _POST_ID.match(post_id):
        raise InvalidPostIdError(f"Invalid post id: {post_id!r}")
    return post_id


class PostService:
    """Service class for managing blog posts."""

    collection_name = "posts"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.posts = store.collection(self.collection_name, timestamps=True)

    async def create_post(self, data: Union[PostCreate, Mapping[str, Any]]) -> PostRead:
        """Insert a new post and return it with its id and timestamps.

        Raises ``ValidationError`` if ``title`` is missing or empty.
        """
        post = _validate(PostCreate, data)
        document = self.posts.insert_one(post.model_dump())
        logger.info("Created post %s '%s'", document["id"], post.title)
        return PostRead.model_validate(document)

    def _list_posts(
        self,
        filters: Dict[str, Any],
        options: Union[PostListOptions, Mapping[str, Any], None],
    ) -> List[PostRead]:
        opts = _validate(PostListOptions, options)
        direction = ASCENDING if opts.sort_order is SortOrder.ascending else DESCENDING
        documents = self.posts.find(filters, sort=[(opts.sort_by.value, direction)])
        logger.debug(
            "Listed %d post(s) filters=%s sort=%s %s",
            len(documents),
            filters,
            opts.sort_by.value,
            opts.sort_order.value,
        )
        return [PostRead.model_validate(document) for document in documents]

    async def list_all_posts(
        self, options: Union[PostListOptions, Mapping[str, Any], None] = None
    ) -> List[PostRead]:
        """Return every post.

        ``options`` may set ``sortBy`` (``createdAt`` or ``updatedAt``)
        and ``sortOrder`` (``ascending`` or ``descending``); the default
        is newest first by ``createdAt``.  Posts with equal sort keys
        keep the order in which they were stored.
        """
        return self._list_posts({}, options)

    async def list_posts_by_author(
        self, author: str, options: Union[PostListOptions, Mapping[str, Any], None] = None
    ) -> List[PostRead]:
        """Return posts whose author is exactly ``author`` (case-sensitive)."""
        return self._list_posts({"author": author}, options)

    async def list_posts_by_tag(
        self, tag: str, options: Union[PostListOptions, Mapping[str, Any], None] = None
    ) -> List[PostRead]:
        """Return posts whose tags contain ``tag``."""
        return self._list_posts({"tags": tag}, options)

    async def get_post_by_id(self, post_id: str) -> Optional[PostRead]:
        """Retrieve a single post, or ``None`` if no post has this id."""
        document = self.posts.find_by_id(_check_post_id(post_id))
        if document is None:
            logger.debug("Post %s not found", post_id)
            return None
        return PostRead.model_validate(document)

    async def update_post(
        self, post_id: str, data: Union[PostUpdate, Mapping[str, Any]]
    ) -> Optional[PostRead]:
        """Update an existing post.

        Only fields provided in ``data`` are written and ``updatedAt`` is
        refreshed.  Returns the updated post, or ``None`` if the post
        does not exist.
        """
        post_id = _check_post_id(post_id)
        changes = _validate(PostUpdate, data).model_dump(exclude_unset=True)
        document = self.posts.update_by_id(post_id, changes)
        if document is None:
            logger.info("Post %s not found, nothing updated", post_id)
            return None
        logger.info("Updated post %s fields=%s", post_id, sorted(changes))
        return PostRead.model_validate(document)

    async def delete_post(self, post_id: str) -> DeleteResult:
        """Delete a post and report how many records were removed."""
        deleted = self.posts.delete_by_id(_check_post_id(post_id))
        logger.info("Deleted post %s (deleted_count=%d)", post_id, deleted)
        return DeleteResult(deleted_count=deleted)
