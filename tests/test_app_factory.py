"""Tests for the Flask application factory."""
from __future__ import annotations

from services import get_accounts
from services.accounts import AccountLifecycle


def test_health_endpoint_returns_ok(client, tmp_path):
    """The health endpoint should respond with an OK payload and create storage dirs."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
    assert (tmp_path / "avatars").is_dir()
    assert (tmp_path / "tmp").is_dir()


def test_blueprints_registered(app):
    """Application factory should register expected blueprints."""
    assert {"users", "avatars"}.issubset(set(app.blueprints.keys()))


def test_services_built_from_config(app):
    with app.app_context():
        accounts = get_accounts()
    assert isinstance(accounts, AccountLifecycle)
    assert accounts.avatars.base_url == "http://testserver"
    assert accounts.avatars.size == 250
    assert accounts.tokens.expires_delta.total_seconds() == 3600
    assert accounts.verification.mailer.suppress is True


def test_json_error_shape_for_invalid_request(client):
    response = client.post(
        "/api/users/signup",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["detail"]
    assert payload["request_id"]
    assert response.headers.get("X-Request-ID") == payload["request_id"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers.get("X-Request-ID") == "abc-123"


def test_protected_route_without_token_returns_json_401(client):
    response = client.get("/api/users/current")

    assert response.status_code == 401
    payload = response.get_json()
    assert payload["error"] == "Unauthorized"
    assert payload["request_id"]


def test_cors_allows_configured_origin(make_app):
    app = make_app(CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get("/health", headers={"Origin": "https://client.example"})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
