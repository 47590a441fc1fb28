# src/audora/api/v1/endpoints/users.py
"""Profile and social graph endpoints for the Audora API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from audora.core.errors import ValidationError, field_errors_from_pydantic
from audora.schemas.common import MessageResponse, Pagination
from audora.schemas.user import (
    IsFollowingResponse,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    UserListItem,
    UserListResponse,
    UserPublic,
)
from audora.services import social_graph
from audora.services import users as user_service
from audora.services.uploads import discard_staged, image_policy, stage_upload

from ..dependencies import (
    CurrentUserDep,
    MediaStorageDep,
    OptionalUserDep,
    PageParams,
    SessionDep,
    pagination,
)

router = APIRouter(prefix="/users", tags=["users"])

USER_LIST_PAGE_SIZE = 10
UserPageDep = Annotated[PageParams, Depends(pagination(USER_LIST_PAGE_SIZE))]


@router.get("/profile/me", response_model=ProfileResponse)
async def get_my_profile(current_user: CurrentUserDep, db: SessionDep) -> ProfileResponse:
    """Get the current user's own profile, including email."""
    return user_service.build_profile(
        db,
        current_user,
        include_email=True,
        post_limit=user_service.OWN_PROFILE_POSTS,
    )


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_my_profile(
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: MediaStorageDep,
    bio: Annotated[str | None, Form()] = None,
    avatar_file: Annotated[UploadFile | None, File(alias="avatarFile")] = None,
) -> ProfileUpdateResponse:
    """Update bio and/or avatar of the current user."""
    staged = stage_upload(avatar_file, image_policy()) if avatar_file is not None else None
    try:
        try:
            changes = ProfileUpdate.model_validate({"bio": bio})
        except PydanticValidationError as exc:
            raise ValidationError(
                "Validation failed",
                errors=field_errors_from_pydantic(exc.errors()),
            ) from exc

        updated = await run_in_threadpool(
            user_service.update_profile,
            db,
            current_user,
            bio=changes.bio,
            avatar_path=staged,
            storage=storage,
        )
    finally:
        discard_staged(staged)

    if updated is None:
        return ProfileUpdateResponse(message="No changes provided to update.")
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserPublic.model_validate(updated),
    )


@router.post(
    "/{user_id}/follow",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def follow_user(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    """Follow another user."""
    target = social_graph.follow(db, follower_id=current_user.id, target_id=user_id)
    return MessageResponse(message=f"Successfully followed user {target.username}.")


@router.delete("/{user_id}/unfollow", response_model=MessageResponse)
async def unfollow_user(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    """Stop following a user."""
    social_graph.unfollow(db, follower_id=current_user.id, target_id=user_id)
    return MessageResponse(message="Successfully unfollowed user.")


@router.get("/{user_id}/followers", response_model=UserListResponse)
async def list_followers(user_id: int, db: SessionDep, page: UserPageDep) -> UserListResponse:
    """Users who follow `user_id`."""
    users, total = social_graph.list_followers(db, user_id=user_id, skip=page.skip, limit=page.limit)
    return UserListResponse(
        data=[UserListItem.model_validate(user) for user in users],
        pagination=Pagination.build(page=page.page, limit=page.limit, total=total),
    )


@router.get("/{user_id}/following", response_model=UserListResponse)
async def list_following(user_id: int, db: SessionDep, page: UserPageDep) -> UserListResponse:
    """Users that `user_id` follows."""
    users, total = social_graph.list_following(db, user_id=user_id, skip=page.skip, limit=page.limit)
    return UserListResponse(
        data=[UserListItem.model_validate(user) for user in users],
        pagination=Pagination.build(page=page.page, limit=page.limit, total=total),
    )


@router.get("/{user_id}/is-following", response_model=IsFollowingResponse)
async def check_is_following(user_id: int, viewer: OptionalUserDep, db: SessionDep) -> IsFollowingResponse:
    return IsFollowingResponse(
        is_following=social_graph.is_following(
            db,
            viewer_id=viewer.id if viewer else None,
            target_id=user_id,
        )
    )


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(username: str, viewer: OptionalUserDep, db: SessionDep) -> ProfileResponse:
    """Public profile by username, with `isFollowing` for the viewer."""
    return user_service.get_profile_by_username(
        db,
        username,
        viewer_id=viewer.id if viewer else None,
    )
