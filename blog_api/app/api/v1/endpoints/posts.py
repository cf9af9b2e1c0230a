"""
Post endpoints for API v1.

These routes expose a CRUD API for blog posts.  Listing supports
filtering by author or by tag (not both at once) and sorting by
``createdAt`` or ``updatedAt``.  Missing posts produce HTTP 404;
payload validation is left to the request schemas and, behind them,
to ``PostService``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from blog_api.app.schemas.post import (
    PostCreate,
    PostListOptions,
    PostRead,
    PostUpdate,
    SortField,
    SortOrder,
)
from blog_api.app.services.post_service import PostService

router = APIRouter()


def get_post_service(request: Request) -> PostService:
    """Build a ``PostService`` over the store opened by the application."""
    return PostService(request.app.state.store)


@router.get("/", response_model=List[PostRead])
async def list_posts(
    author: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    sort_by: SortField = Query(SortField.created_at, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.descending, alias="sortOrder"),
    service: PostService = Depends(get_post_service),
) -> List[PostRead]:
    """List posts.

    - **author**: only posts written by this author (exact match).
    - **tag**: only posts carrying this tag.
    - **sortBy**: `createdAt` (default) or `updatedAt`.
    - **sortOrder**: `descending` (default) or `ascending`.
    """
    if author and tag:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query by either author or tag, not both",
        )
    options = PostListOptions(sort_by=sort_by, sort_order=sort_order)
    if author:
        return await service.list_posts_by_author(author, options)
    if tag:
        return await service.list_posts_by_tag(tag, options)
    return await service.list_all_posts(options)


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: str, service: PostService = Depends(get_post_service)) -> PostRead:
    """Retrieve a single post by its ID."""
    post = await service.get_post_by_id(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.post("/", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def create_post(post_in: PostCreate, service: PostService = Depends(get_post_service)) -> PostRead:
    """Create a new post."""
    return await service.create_post(post_in)


@router.patch("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: str,
    post_in: PostUpdate,
    service: PostService = Depends(get_post_service),
) -> PostRead:
    """Update only the supplied fields of a post."""
    post = await service.update_post(post_id, post_in)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, service: PostService = Depends(get_post_service)) -> Response:
    """Delete a post."""
    result = await service.delete_post(post_id)
    if result.deleted_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
