# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from itertools import count
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from audora.api.v1.dependencies import get_media_storage_dep
from audora.core.security import create_access_token, get_password_hash
from audora.core.settings import settings
from audora.db.session import Base
from audora.db.session import get_db as app_get_session
from audora.main import app as fastapi_app
from audora.models import Follow, Post, User
from audora.services.media import MediaStorageError, StoredAsset
from audora.services.uploads import clear_staging_dir

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "secret-password"

# Hashing once keeps fixture users cheap; bcrypt is deliberately slow.
_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)
_ASSET_COUNTER = count(1)


class FakeMediaStorage:
    """In-memory stand-in for Cloudinary that records every call."""

    def __init__(self) -> None:
        self.uploads: list[dict[str, object]] = []
        self.destroyed: list[tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_destroy = False

    def _store(self, kind: str, path: Path, owner_id: int) -> StoredAsset:
        if self.fail_uploads:
            raise MediaStorageError("Failed to upload media.")
        n = next(_ASSET_COUNTER)
        self.uploads.append(
            {"kind": kind, "name": path.name, "existed": path.exists(), "owner_id": owner_id}
        )
        return StoredAsset(
            url=f"https://media.audora.dev/{kind}/{owner_id}/{n}",
            public_id=f"{kind}/{owner_id}/{n}",
        )

    def upload_audio(self, path: Path, *, owner_id: int) -> StoredAsset:
        return self._store("audio_posts", path, owner_id)

    def upload_avatar(self, path: Path, *, owner_id: int) -> StoredAsset:
        return self._store("avatars", path, owner_id)

    def destroy(self, public_id: str, *, resource_type: str) -> None:
        if self.fail_destroy:
            raise MediaStorageError(f"Failed to delete media asset {public_id}.")
        self.destroyed.append((public_id, resource_type))


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Services commit, so wipe every table to isolate tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def media_storage() -> FakeMediaStorage:
    return FakeMediaStorage()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    media_storage: FakeMediaStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_media_storage_dep] = lambda: media_storage
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_media_storage_dep, None)


@pytest.fixture(autouse=True)
def staging_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point upload staging at a per-test directory."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", upload_dir)
    try:
        yield upload_dir
    finally:
        clear_staging_dir(upload_dir)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_user(db_session: Session, username: str, **fields: object) -> User:
    user = User(
        username=username,
        email=f"{username}@audora.dev",
        password_hash=_PASSWORD_HASH,
        **fields,
    )
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    return user


def make_post(db_session: Session, author: User, title: str = "Morning birds") -> Post:
    n = next(_ASSET_COUNTER)
    post = Post(
        title=title,
        subject="nature",
        description="Recorded at dawn",
        audio_url=f"https://media.audora.dev/audio_posts/{author.id}/{n}",
        audio_public_id=f"audio_posts/{author.id}/{n}",
        author_id=author.id,
    )
    db_session.add(post)
    db_session.flush()
    db_session.refresh(post)
    return post


def make_follow(db_session: Session, follower: User, following: User) -> Follow:
    edge = Follow(follower_id=follower.id, following_id=following.id)
    db_session.add(edge)
    db_session.flush()
    return edge


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token(user.id, email=user.email, username=user.username)
    return {"Cookie": f"{settings.auth_cookie_name}={token}"}


def cookie_from(response, name: str = "accessToken") -> str | None:
    """Extract a cookie value from the raw Set-Cookie headers."""
    for header in response.headers.get_list("set-cookie"):
        key, _, rest = header.partition("=")
        if key.strip() == name:
            return rest.split(";", 1)[0]
    return None


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return make_user(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return make_user(db_session, "bob")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return session cookie headers for the primary test user."""
    return auth_headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return session cookie headers for the secondary test user."""
    return auth_headers_for(other_user)


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Post:
    """Create a baseline post authored by the primary test user."""
    return make_post(db_session, test_user)
