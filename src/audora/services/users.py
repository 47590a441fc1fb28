"""Account registration, credential checks and profile management."""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audora.core import security
from audora.core.errors import AuthenticationError, ConflictError, NotFoundError
from audora.models import Follow, Post, User
from audora.schemas.user import (
    ProfileCounts,
    ProfilePost,
    ProfileResponse,
    SignupRequest,
)
from audora.services.media import IMAGE_RESOURCE_TYPE, MediaStorage, destroy_quietly
from audora.services.social_graph import is_following

__all__ = [
    "register_user",
    "authenticate",
    "build_profile",
    "get_profile_by_username",
    "update_profile",
]

logger = logging.getLogger(__name__)

PUBLIC_PROFILE_POSTS = 10
OWN_PROFILE_POSTS = 20


def register_user(db: Session, payload: SignupRequest) -> User:
    """Create an account with lowercase identifiers and a bcrypt password hash.

    Raises:
        ConflictError: If the email or username is already registered. A
            concurrent signup that slips past the lookup is caught by the
            unique constraints and reported the same way.
    """
    email = payload.email.lower()
    username = payload.username.lower()

    existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
    if existing is not None:
        if existing.email == email:
            raise ConflictError("User with this email already exists.")
        raise ConflictError("Username is already taken.")

    user = User(
        username=username,
        email=email,
        password_hash=security.get_password_hash(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("User with this email or username already exists.") from err
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    """Return the user for valid credentials.

    Raises:
        AuthenticationError: For an unknown email or a wrong password alike.
    """
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not security.verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials.")
    return user


def _profile_counts(db: Session, user_id: int) -> ProfileCounts:
    followers = db.query(func.count(Follow.id)).filter(Follow.following_id == user_id).scalar()
    following = db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar()
    posts = db.query(func.count(Post.id)).filter(Post.author_id == user_id).scalar()
    return ProfileCounts(
        followers=int(followers or 0),
        following=int(following or 0),
        posts=int(posts or 0),
    )


def build_profile(
    db: Session,
    user: User,
    *,
    include_email: bool,
    post_limit: int,
    viewer_id: int | None = None,
) -> ProfileResponse:
    recent = (
        db.query(Post)
        .filter(Post.author_id == user.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(post_limit)
        .all()
    )
    return ProfileResponse(
        id=user.id,
        username=user.username,
        email=user.email if include_email else None,
        avatar_url=user.avatar_url,
        bio=user.bio,
        created_at=user.created_at,
        counts=_profile_counts(db, user.id),
        posts=[ProfilePost.model_validate(post) for post in recent],
        is_following=None if include_email else is_following(db, viewer_id=viewer_id, target_id=user.id),
    )


def get_profile_by_username(db: Session, username: str, *, viewer_id: int | None) -> ProfileResponse:
    user = db.query(User).filter(User.username == username.lower()).first()
    if user is None:
        raise NotFoundError("User profile not found")
    return build_profile(
        db,
        user,
        include_email=False,
        post_limit=PUBLIC_PROFILE_POSTS,
        viewer_id=viewer_id,
    )


def update_profile(
    db: Session,
    user: User,
    *,
    bio: str | None,
    avatar_path: Path | None,
    storage: MediaStorage,
) -> User | None:
    """Update bio and/or avatar. Returns None when nothing was supplied.

    A replaced avatar is removed from media storage on a best-effort basis.
    """
    changed = False
    previous_public_id = None
    if avatar_path is not None:
        previous_public_id = user.avatar_public_id
        asset = storage.upload_avatar(avatar_path, owner_id=user.id)
        user.avatar_url = asset.url
        user.avatar_public_id = asset.public_id
        changed = True

    if bio is not None:
        user.bio = bio
        changed = True

    if not changed:
        return None
    db.commit()
    db.refresh(user)
    # Only drop the old asset once the row no longer references it.
    destroy_quietly(storage, previous_public_id, resource_type=IMAGE_RESOURCE_TYPE)
    return user
