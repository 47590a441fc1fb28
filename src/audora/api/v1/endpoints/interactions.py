# src/audora/api/v1/endpoints/interactions.py
"""Like and comment endpoints for the Audora API."""

from fastapi import APIRouter, Response, status

from audora.schemas.interaction import CommentCreate, CommentResponse, LikeToggleResponse
from audora.services import interactions as interaction_service
from audora.services.posts import get_post_or_404

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: int,
    response: Response,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> LikeToggleResponse:
    """Like or unlike a post. Responds 201 when a like was created, 200 when removed."""
    result = interaction_service.toggle_like(db, user_id=current_user.id, post_id=post_id)
    if result.liked:
        response.status_code = status.HTTP_201_CREATED
        message = "Post liked successfully."
    else:
        message = "Post unliked successfully."
    return LikeToggleResponse(message=message, liked=result.liked, like_count=result.like_count)


@router.post(
    "/{post_id}/comment",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentResponse:
    """Comment on a post."""
    comment = interaction_service.create_comment(
        db,
        user_id=current_user.id,
        post_id=post_id,
        text=payload.text,
    )
    return CommentResponse.model_validate(comment)


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(post_id: int, db: SessionDep) -> list[CommentResponse]:
    """All comments on a post, oldest first."""
    get_post_or_404(db, post_id)
    comments = interaction_service.list_comments(db, post_id=post_id)
    return [CommentResponse.model_validate(comment) for comment in comments]
