"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from services import get_accounts  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PUBLIC_BASE_URL = "http://testserver"
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = "DEBUG"


def build_config(tmp_path: Path, **overrides) -> type[Config]:
    """Return a test config class writing files below ``tmp_path``."""

    class TestConfig(_BaseTestConfig):
        AVATAR_DIR = str(tmp_path / "avatars")
        UPLOAD_TMP_DIR = str(tmp_path / "tmp")

    for key, value in overrides.items():
        setattr(TestConfig, key, value)
    return TestConfig


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(build_config(tmp_path))

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()
        get_accounts().verification.mailer.shutdown(wait=True)


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def accounts(app: Flask):
    """Yield the account services inside an application context."""

    with app.app_context():
        yield get_accounts()


@pytest.fixture()
def make_app(tmp_path):
    """Return a factory building apps with config overrides."""

    def _make(**overrides) -> Flask:
        return create_app(build_config(tmp_path, **overrides))

    return _make
