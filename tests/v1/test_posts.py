# tests/v1/test_posts.py
"""Tests for post creation, retrieval, update and deletion."""

from __future__ import annotations

from fastapi import status

from audora.core.settings import settings
from audora.models import Comment, Like, Notification, NotificationType, Post
from tests.conftest import make_follow, make_user

AUDIO_BYTES = b"ID3\x03\x00\x00\x00" + b"\x00" * 2048


def _create(client, headers, *, data=None, files=None):
    if data is None:
        data = {"title": "Rain on tin", "subject": "field recording", "description": "Storm"}
    if files is None:
        files = {"audioFile": ("rain.mp3", AUDIO_BYTES, "audio/mpeg")}
    return client.post("/api/posts", data=data, files=files, headers=headers)


def test_create_post_uploads_audio_and_persists(
    client, db_session, test_user, auth_token, media_storage, staging_dir
) -> None:
    response = _create(client, auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()

    assert data["title"] == "Rain on tin"
    assert data["subject"] == "field recording"
    assert data["description"] == "Storm"
    assert data["author"]["username"] == "alice"
    assert data["likeCount"] == 0
    assert data["commentCount"] == 0
    assert data["isLiked"] is False
    assert data["audioUrl"].startswith("https://media.audora.dev/audio_posts/")

    [upload] = media_storage.uploads
    assert upload["kind"] == "audio_posts"
    assert upload["owner_id"] == test_user.id
    assert upload["existed"] is True
    assert str(upload["name"]).startswith("audioFile-")
    # Staged copy is gone once the request finishes.
    assert list(staging_dir.iterdir()) == []

    stored = db_session.get(Post, data["id"])
    assert stored is not None
    assert stored.audio_public_id == data["audioPublicId"]


def test_create_post_description_defaults_to_empty(client, auth_token) -> None:
    response = _create(client, auth_token, data={"title": "Hum", "subject": "drone"})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["description"] == ""


def test_create_post_requires_audio_file(client, auth_token, media_storage) -> None:
    response = client.post(
        "/api/posts",
        data={"title": "Silence", "subject": "none"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Audio file is required."
    assert media_storage.uploads == []


def test_create_post_rejects_non_audio(client, auth_token, media_storage, staging_dir) -> None:
    response = _create(
        client,
        auth_token,
        files={"audioFile": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Invalid file type. Only audio files are allowed."
    assert media_storage.uploads == []


def test_create_post_rejects_oversized_audio(
    client, auth_token, media_storage, staging_dir, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "max_audio_upload_bytes", 1024 * 1024)
    response = _create(
        client,
        auth_token,
        files={"audioFile": ("long.wav", b"\x00" * (1024 * 1024 + 1), "audio/wav")},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "File too large. Maximum size is 1 MB."
    assert media_storage.uploads == []
    assert list(staging_dir.iterdir()) == []


def test_create_post_missing_title_is_validation_error(
    client, db_session, auth_token, media_storage, staging_dir
) -> None:
    response = _create(client, auth_token, data={"subject": "no title"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["message"] == "Validation failed"
    assert any(error["field"] == "title" for error in body["errors"])
    assert media_storage.uploads == []
    assert db_session.query(Post).count() == 0
    assert list(staging_dir.iterdir()) == []


def test_create_post_media_failure_leaves_no_row(
    client, db_session, auth_token, media_storage, staging_dir
) -> None:
    media_storage.fail_uploads = True
    response = _create(client, auth_token)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"message": "Failed to upload media."}
    assert db_session.query(Post).count() == 0
    assert list(staging_dir.iterdir()) == []


def test_create_post_requires_auth(client, media_storage) -> None:
    response = _create(client, {})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert media_storage.uploads == []


def test_create_post_notifies_followers_only(
    client, db_session, test_user, auth_token
) -> None:
    first = make_user(db_session, "fan_one")
    second = make_user(db_session, "fan_two")
    make_user(db_session, "stranger")
    make_follow(db_session, first, test_user)
    make_follow(db_session, second, test_user)

    response = _create(client, auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    post_id = response.json()["id"]

    rows = db_session.query(Notification).filter(Notification.post_id == post_id).all()
    assert sorted(row.recipient_id for row in rows) == sorted([first.id, second.id])
    assert {row.type for row in rows} == {NotificationType.NEW_POST}
    assert {row.trigger_user_id for row in rows} == {test_user.id}
    assert all(row.read is False for row in rows)


def test_get_post_by_id(client, test_post) -> None:
    response = client.get(f"/api/posts/{test_post.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == test_post.id
    assert data["author"]["id"] == test_post.author_id
    assert data["isLiked"] is False


def test_get_post_reports_counts_and_viewer_like(
    client, db_session, test_post, other_user, other_auth_token
) -> None:
    db_session.add(Like(user_id=other_user.id, post_id=test_post.id))
    db_session.add(Comment(text="lovely", user_id=other_user.id, post_id=test_post.id))
    db_session.flush()

    response = client.get(f"/api/posts/{test_post.id}", headers=other_auth_token)
    data = response.json()
    assert data["likeCount"] == 1
    assert data["commentCount"] == 1
    assert data["isLiked"] is True


def test_get_post_not_found(client) -> None:
    response = client.get("/api/posts/999999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Post not found"}


def test_update_post_by_author(client, test_post, auth_token) -> None:
    response = client.put(
        f"/api/posts/{test_post.id}",
        json={"title": "Evening birds"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["title"] == "Evening birds"
    assert data["subject"] == test_post.subject
    assert data["audioUrl"] == test_post.audio_url


def test_update_post_ignores_audio_fields(client, test_post, auth_token) -> None:
    original_url = test_post.audio_url
    response = client.put(
        f"/api/posts/{test_post.id}",
        json={"subject": "birdsong", "audioUrl": "https://evil.example/x.mp3"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["audioUrl"] == original_url


def test_update_post_requires_a_field(client, test_post, auth_token) -> None:
    response = client.put(f"/api/posts/{test_post.id}", json={}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_post_rejects_explicit_nulls(client, test_post, auth_token) -> None:
    response = client.put(
        f"/api/posts/{test_post.id}",
        json={"title": None},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_post_by_other_user_forbidden(client, db_session, test_post, other_auth_token) -> None:
    response = client.put(
        f"/api/posts/{test_post.id}",
        json={"title": "Hijacked"},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "You are not allowed to update this post"
    db_session.refresh(test_post)
    assert test_post.title == "Morning birds"


def test_update_missing_post(client, auth_token) -> None:
    response = client.put("/api/posts/424242", json={"title": "x"}, headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_post_removes_row_and_dependents(
    client, db_session, test_post, test_user, other_user, auth_token, media_storage
) -> None:
    db_session.add(Like(user_id=other_user.id, post_id=test_post.id))
    db_session.add(Comment(text="nice", user_id=other_user.id, post_id=test_post.id))
    db_session.add(
        Notification(
            recipient_id=test_user.id,
            trigger_user_id=other_user.id,
            type=NotificationType.LIKE,
            post_id=test_post.id,
        )
    )
    db_session.flush()
    post_id = test_post.id
    public_id = test_post.audio_public_id

    response = client.delete(f"/api/posts/{post_id}", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Post deleted"}

    assert db_session.get(Post, post_id) is None
    assert db_session.query(Like).filter(Like.post_id == post_id).count() == 0
    assert db_session.query(Comment).filter(Comment.post_id == post_id).count() == 0
    assert db_session.query(Notification).filter(Notification.post_id == post_id).count() == 0
    assert media_storage.destroyed == [(public_id, "video")]


def test_delete_post_survives_media_failure(
    client, db_session, test_post, auth_token, media_storage
) -> None:
    media_storage.fail_destroy = True
    post_id = test_post.id
    response = client.delete(f"/api/posts/{post_id}", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(Post, post_id) is None


def test_delete_post_by_other_user_forbidden(
    client, db_session, test_post, other_auth_token, media_storage
) -> None:
    response = client.delete(f"/api/posts/{test_post.id}", headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert db_session.get(Post, test_post.id) is not None
    assert media_storage.destroyed == []
