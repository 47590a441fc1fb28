"""Post creation, feeds and author-only mutations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from audora.core.errors import AuthorizationError, NotFoundError, ValidationError
from audora.models import Comment, Follow, Like, Notification, Post, User
from audora.schemas.post import PostCreate, PostResponse, PostUpdate
from audora.schemas.user import UserSummary
from audora.services import notifications
from audora.services.media import AUDIO_RESOURCE_TYPE, MediaStorage, StoredAsset, destroy_quietly

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedPage:
    """One page of posts already shaped for a particular viewer."""

    posts: list[PostResponse]
    total: int


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).options(joinedload(Post.author)).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _count_by_post(db: Session, model: type[Like] | type[Comment], post_ids: Sequence[int]) -> dict[int, int]:
    if not post_ids:
        return {}
    rows = db.execute(
        select(model.post_id, func.count(model.id))
        .where(model.post_id.in_(post_ids))
        .group_by(model.post_id)
    ).all()
    return {post_id: int(count) for post_id, count in rows}


def liked_post_ids(db: Session, viewer_id: int | None, post_ids: Sequence[int]) -> set[int]:
    """Return the subset of `post_ids` liked by the viewer.

    Only the ids on the current page are checked, so a feed page costs one
    extra query rather than one per post.
    """
    if viewer_id is None or not post_ids:
        return set()
    return set(
        db.scalars(
            select(Like.post_id).where(Like.user_id == viewer_id, Like.post_id.in_(post_ids))
        ).all()
    )


def to_post_response(
    post: Post,
    *,
    like_count: int = 0,
    comment_count: int = 0,
    is_liked: bool = False,
) -> PostResponse:
    """Convert a Post ORM instance to an API schema."""
    return PostResponse(
        id=post.id,
        title=post.title,
        subject=post.subject,
        description=post.description,
        audio_url=post.audio_url,
        audio_public_id=post.audio_public_id,
        author_id=post.author_id,
        author=UserSummary.model_validate(post.author),
        created_at=post.created_at,
        updated_at=post.updated_at,
        like_count=like_count,
        comment_count=comment_count,
        is_liked=is_liked,
    )


def shape_posts(db: Session, posts: Sequence[Post], *, viewer_id: int | None) -> list[PostResponse]:
    """Attach counts and the viewer's `is_liked` flag to a list of posts."""
    post_ids = [post.id for post in posts]
    likes = _count_by_post(db, Like, post_ids)
    comments = _count_by_post(db, Comment, post_ids)
    liked = liked_post_ids(db, viewer_id, post_ids)
    return [
        to_post_response(
            post,
            like_count=likes.get(post.id, 0),
            comment_count=comments.get(post.id, 0),
            is_liked=post.id in liked,
        )
        for post in posts
    ]


def describe_post(db: Session, post: Post, *, viewer_id: int | None = None) -> PostResponse:
    return shape_posts(db, [post], viewer_id=viewer_id)[0]


def _feed(
    db: Session,
    *,
    viewer_id: int | None,
    skip: int,
    limit: int,
    author_ids: Sequence[int] | None = None,
) -> FeedPage:
    query = db.query(Post)
    if author_ids is not None:
        query = query.filter(Post.author_id.in_(author_ids))
    total = query.count()
    posts = (
        query.options(joinedload(Post.author))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return FeedPage(posts=shape_posts(db, posts, viewer_id=viewer_id), total=total)


def explore_feed(db: Session, *, viewer_id: int | None, skip: int, limit: int) -> FeedPage:
    """All posts, newest first."""
    return _feed(db, viewer_id=viewer_id, skip=skip, limit=limit)


def home_feed(db: Session, *, viewer_id: int, skip: int, limit: int) -> FeedPage:
    """Posts by the viewer and by the accounts the viewer follows, newest first."""
    followed = db.scalars(
        select(Follow.following_id).where(Follow.follower_id == viewer_id)
    ).all()
    author_ids = sorted({viewer_id, *followed})
    return _feed(db, viewer_id=viewer_id, skip=skip, limit=limit, author_ids=author_ids)


def create_post(
    db: Session,
    *,
    author: User,
    data: PostCreate,
    asset: StoredAsset,
) -> Post:
    """Persist a post for an already-uploaded asset and notify followers.

    The post row and the NEW_POST fan-out are committed together.
    """
    post = Post(
        title=data.title,
        subject=data.subject,
        description=data.description,
        audio_url=asset.url,
        audio_public_id=asset.public_id,
        author_id=author.id,
    )
    db.add(post)
    db.flush()
    notifications.fan_out_new_post(db, author_id=author.id, post_id=post.id)
    db.commit()
    db.refresh(post)
    logger.info("User %s created post %s", author.id, post.id)
    return post


def _get_owned_post(db: Session, post_id: int, viewer_id: int, action: str) -> Post:
    post = get_post_or_404(db, post_id)
    if post.author_id != viewer_id:
        raise AuthorizationError(f"You are not allowed to {action} this post")
    return post


def update_post(db: Session, *, post_id: int, viewer_id: int, changes: PostUpdate) -> Post:
    """Apply a partial metadata update to a post owned by the viewer."""
    post = _get_owned_post(db, post_id, viewer_id, "update")
    updates = changes.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationError("At least one field must be provided for update")
    for key, value in updates.items():
        setattr(post, key, value)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, *, post_id: int, viewer_id: int, storage: MediaStorage) -> None:
    """Delete a post owned by the viewer along with its likes, comments and notifications.

    Remote audio deletion is best effort; a failure there does not keep the row.
    """
    post = _get_owned_post(db, post_id, viewer_id, "delete")
    destroy_quietly(storage, post.audio_public_id, resource_type=AUDIO_RESOURCE_TYPE)

    db.query(Notification).filter(Notification.post_id == post.id).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.post_id == post.id).delete(synchronize_session=False)
    db.query(Like).filter(Like.post_id == post.id).delete(synchronize_session=False)
    db.delete(post)
    db.commit()
    logger.info("User %s deleted post %s", viewer_id, post_id)
