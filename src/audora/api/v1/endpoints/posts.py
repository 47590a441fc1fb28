# src/audora/api/v1/endpoints/posts.py
"""Post-related endpoints for the Audora API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from audora.core.errors import ValidationError, field_errors_from_pydantic
from audora.schemas.common import MessageResponse, Pagination
from audora.schemas.post import PostCreate, PostFeedResponse, PostResponse, PostUpdate
from audora.services import posts as post_service
from audora.services.uploads import audio_policy, discard_staged, stage_upload

from ..dependencies import (
    CurrentUserDep,
    MediaStorageDep,
    OptionalUserDep,
    PageParams,
    SessionDep,
    pagination,
)

router = APIRouter(prefix="/posts", tags=["posts"])

FEED_PAGE_SIZE = 10
FeedPageDep = Annotated[PageParams, Depends(pagination(FEED_PAGE_SIZE))]


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: MediaStorageDep,
    audio_file: Annotated[UploadFile | None, File(alias="audioFile")] = None,
    title: Annotated[str | None, Form()] = None,
    subject: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
) -> PostResponse:
    """Create a new audio post.

    The upload is staged locally, the text fields are validated, the audio is
    pushed to media storage and only then is the post row written. The staged
    file is removed on every path.
    """
    if audio_file is None:
        raise ValidationError("Audio file is required.")

    staged = stage_upload(audio_file, audio_policy())
    try:
        fields = {"title": title, "subject": subject}
        if description is not None:
            fields["description"] = description
        try:
            post_data = PostCreate.model_validate(fields)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Validation failed",
                errors=field_errors_from_pydantic(exc.errors()),
            ) from exc

        asset = await run_in_threadpool(storage.upload_audio, staged, owner_id=current_user.id)
        post = post_service.create_post(db, author=current_user, data=post_data, asset=asset)
    finally:
        discard_staged(staged)

    return post_service.describe_post(db, post, viewer_id=current_user.id)


@router.get("/explore", response_model=PostFeedResponse)
async def explore_feed(
    db: SessionDep,
    viewer: OptionalUserDep,
    page: FeedPageDep,
) -> PostFeedResponse:
    """All posts, newest first, with `isLiked` for the signed-in viewer."""
    feed = post_service.explore_feed(
        db,
        viewer_id=viewer.id if viewer else None,
        skip=page.skip,
        limit=page.limit,
    )
    return PostFeedResponse(
        data=feed.posts,
        pagination=Pagination.build(page=page.page, limit=page.limit, total=feed.total),
    )


@router.get("/home-feed", response_model=PostFeedResponse)
async def home_feed(
    db: SessionDep,
    current_user: CurrentUserDep,
    page: FeedPageDep,
) -> PostFeedResponse:
    """Posts by the current user and the accounts they follow."""
    feed = post_service.home_feed(
        db,
        viewer_id=current_user.id,
        skip=page.skip,
        limit=page.limit,
    )
    return PostFeedResponse(
        data=feed.posts,
        pagination=Pagination.build(page=page.page, limit=page.limit, total=feed.total),
    )


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, viewer: OptionalUserDep) -> PostResponse:
    """Get a specific post by ID."""
    post = post_service.get_post_or_404(db, post_id)
    return post_service.describe_post(db, post, viewer_id=viewer.id if viewer else None)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    changes: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Update title, subject or description of the caller's own post."""
    post = post_service.update_post(
        db,
        post_id=post_id,
        viewer_id=current_user.id,
        changes=changes,
    )
    return post_service.describe_post(db, post, viewer_id=current_user.id)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: MediaStorageDep,
) -> MessageResponse:
    """Delete the caller's own post and, best effort, its remote audio."""
    post_service.delete_post(db, post_id=post_id, viewer_id=current_user.id, storage=storage)
    return MessageResponse(message="Post deleted")
