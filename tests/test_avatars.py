"""Tests for avatar replacement."""

from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from services import users
from services.avatars import normalize_extensions
from utils.errors import InternalFailure, ValidationError


def _image_bytes(fmt: str = "PNG", mode: str = "RGB", size=(400, 300)) -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, "red" if mode == "RGB" else (255, 0, 0, 128)).save(buffer, fmt)
    return buffer.getvalue()


def _upload(app, data: bytes, name: str = "upload.png") -> Path:
    path = Path(app.config["UPLOAD_TMP_DIR"]) / name
    path.write_bytes(data)
    return path


def _stored(app, user_id: str) -> list[str]:
    return sorted(n for n in os.listdir(app.config["AVATAR_DIR"]) if n.startswith(user_id))


def test_replace_writes_single_resized_avatar(app, accounts):
    user = accounts.register("pic@example.com", "pw123456")
    tmp = _upload(app, _image_bytes())

    url = accounts.update_avatar(user.id, tmp, "face.png")

    assert url == f"http://testserver/avatars/{user.id}_face.png"
    assert users.get_one(user.id).avatar_url == url
    assert not tmp.exists()
    assert _stored(app, user.id) == [f"{user.id}_face.png"]
    with Image.open(Path(app.config["AVATAR_DIR"]) / f"{user.id}_face.png") as stored:
        assert stored.size == (250, 250)


def test_second_upload_replaces_first(app, accounts):
    user = accounts.register("twice@example.com", "pw123456")
    other = accounts.register("other@example.com", "pw123456")

    accounts.update_avatar(other.id, _upload(app, _image_bytes(), "o.png"), "other.png")
    accounts.update_avatar(user.id, _upload(app, _image_bytes(), "a.png"), "first.png")
    assert _stored(app, user.id) == [f"{user.id}_first.png"]

    rgba = _image_bytes(mode="RGBA")
    accounts.update_avatar(user.id, _upload(app, rgba, "b.png"), "second.jpg")

    assert _stored(app, user.id) == [f"{user.id}_second.jpg"]
    assert _stored(app, other.id) == [f"{other.id}_other.png"]


def test_undecodable_upload_is_cleaned_up(app, accounts):
    user = accounts.register("broken@example.com", "pw123456")
    accounts.update_avatar(user.id, _upload(app, _image_bytes(), "ok.png"), "ok.png")
    before = users.get_one(user.id).avatar_url

    tmp = _upload(app, b"definitely not an image", "broken.png")
    with pytest.raises(ValidationError):
        accounts.update_avatar(user.id, tmp, "broken.png")

    assert not tmp.exists()
    assert users.get_one(user.id).avatar_url == before
    assert _stored(app, user.id) == [f"{user.id}_ok.png"]


@pytest.mark.parametrize("filename", ["../evil.png", "notes.txt", "noextension", ""])
def test_rejected_filename_is_cleaned_up(app, accounts, filename):
    user = accounts.register("names@example.com", "pw123456")
    before = users.get_one(user.id).avatar_url
    tmp = _upload(app, _image_bytes())

    with pytest.raises(ValidationError):
        accounts.update_avatar(user.id, tmp, filename)

    assert not tmp.exists()
    assert users.get_one(user.id).avatar_url == before
    assert _stored(app, user.id) == []


def test_normalize_extensions():
    assert normalize_extensions(".PNG, jpg") == {"png", "jpg", "jpeg"}
    assert normalize_extensions(None) == {"jpg", "jpeg", "png", "gif", "bmp"}
    assert normalize_extensions([" ", 3]) == {"jpg", "jpeg", "png", "gif", "bmp"}


def _login_headers(app, client, email: str) -> tuple[str, dict[str, str]]:
    client.post("/api/users/signup", json={"email": email, "password": "pw123456"})
    with app.app_context():
        user = users.get_by_email(email)
        user_id, token = user.id, user.verification_token
    client.get(f"/api/users/verify/{token}")
    response = client.post("/api/users/login", json={"email": email, "password": "pw123456"})
    return user_id, {"Authorization": f"Bearer {response.get_json()['token']}"}


def test_avatar_route_uploads_and_serves(app, client):
    user_id, headers = _login_headers(app, client, "route@example.com")

    response = client.patch(
        "/api/users/avatars",
        data={"avatar": (BytesIO(_image_bytes()), "me.png")},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    avatar_url = response.get_json()["avatar_url"]
    assert avatar_url == f"http://testserver/avatars/{user_id}_me.png"
    assert os.listdir(app.config["UPLOAD_TMP_DIR"]) == []

    served = client.get(f"/avatars/{user_id}_me.png")
    assert served.status_code == 200
    served.close()


def test_avatar_route_rejects_bad_image(app, client):
    user_id, headers = _login_headers(app, client, "bad@example.com")
    with app.app_context():
        before = users.get_one(user_id).avatar_url

    response = client.patch(
        "/api/users/avatars",
        data={"avatar": (BytesIO(b"junk"), "me.png")},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert os.listdir(app.config["UPLOAD_TMP_DIR"]) == []
    with app.app_context():
        assert users.get_one(user_id).avatar_url == before


def test_avatar_route_requires_file(app, client):
    _, headers = _login_headers(app, client, "nofile@example.com")

    response = client.patch(
        "/api/users/avatars",
        data={},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 400


def test_cmyk_jpeg_stored_as_png(app, accounts):
    user = accounts.register("cmyk@example.com", "pw123456")
    cmyk = BytesIO()
    Image.new("CMYK", (300, 300), (0, 255, 255, 0)).save(cmyk, "JPEG")

    url = accounts.update_avatar(user.id, _upload(app, cmyk.getvalue(), "c.jpg"), "photo.png")

    assert url.endswith(f"/avatars/{user.id}_photo.png")
    assert _stored(app, user.id) == [f"{user.id}_photo.png"]
    with Image.open(Path(app.config["AVATAR_DIR"]) / f"{user.id}_photo.png") as stored:
        assert stored.mode == "RGB"
        assert stored.size == (250, 250)


def test_greyscale_alpha_png_replaces_previous_avatar(app, accounts):
    user = accounts.register("la@example.com", "pw123456")
    accounts.update_avatar(user.id, _upload(app, _image_bytes(), "old.png"), "old.png")
    la_png = BytesIO()
    Image.new("LA", (300, 300), (128, 64)).save(la_png, "PNG")

    url = accounts.update_avatar(user.id, _upload(app, la_png.getvalue(), "la.png"), "new.bmp")

    assert users.get_one(user.id).avatar_url == url
    assert _stored(app, user.id) == [f"{user.id}_new.bmp"]

    accounts.update_avatar(user.id, _upload(app, la_png.getvalue(), "la2.png"), "alpha.png")
    with Image.open(Path(app.config["AVATAR_DIR"]) / f"{user.id}_alpha.png") as stored:
        assert stored.mode == "RGBA"


def test_write_failure_cleans_up_and_keeps_url(app, accounts, monkeypatch, tmp_path):
    user = accounts.register("diskfull@example.com", "pw123456")
    accounts.update_avatar(user.id, _upload(app, _image_bytes(), "ok.png"), "ok.png")
    before = users.get_one(user.id).avatar_url

    monkeypatch.setattr(
        accounts.avatars.storage, "path", lambda name: tmp_path / "missing" / name
    )
    tmp = _upload(app, _image_bytes(), "next.png")
    with pytest.raises(InternalFailure):
        accounts.update_avatar(user.id, tmp, "next.png")

    assert not tmp.exists()
    assert users.get_one(user.id).avatar_url == before
    assert _stored(app, user.id) == [f"{user.id}_ok.png"]


def test_cleanup_error_does_not_mask_pipeline_error(app, accounts, monkeypatch):
    user = accounts.register("locked@example.com", "pw123456")
    before = users.get_one(user.id).avatar_url
    tmp = _upload(app, b"not an image", "locked.png")
    good = _upload(app, _image_bytes(), "locked2.png")
    real_remove = os.remove

    def _deny(path, *args, **kwargs):
        if Path(path) in (tmp, good):
            raise PermissionError("read-only upload dir")
        return real_remove(path, *args, **kwargs)

    monkeypatch.setattr(os, "remove", _deny)

    with pytest.raises(ValidationError):
        accounts.update_avatar(user.id, tmp, "locked.png")
    assert users.get_one(user.id).avatar_url == before

    with pytest.raises(InternalFailure):
        accounts.update_avatar(user.id, good, "fine.png")
    assert users.get_one(user.id).avatar_url == before
