"""Users blueprint: registration, verification, sessions, and profile."""

from __future__ import annotations

import uuid
from http import HTTPStatus
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import current_user, jwt_required
from werkzeug.datastructures import FileStorage

from services import get_accounts
from storage.local_storage import LocalStorage
from utils.errors import ValidationError
from utils.pagination import page_bounds
from utils.request_validation import parse_json_request, require_valid
from utils import validators

users_bp = Blueprint("users", __name__)


def _credentials() -> tuple[str, str]:
    payload = parse_json_request(request)
    require_valid(validators.check_credentials, payload)
    return payload["email"].strip(), payload["password"]


def _save_temporary(file: FileStorage) -> Path:
    """Write the upload to the temp directory under a unique name."""

    storage = LocalStorage(current_app.config["UPLOAD_TMP_DIR"])
    suffix = Path(file.filename or "").suffix
    name = storage.save(file, f"{uuid.uuid4().hex}{suffix}")
    return storage.path(name)


@users_bp.route("", methods=["GET"])
@jwt_required()
def list_users():
    """Return one page of account summaries."""

    start_index, end_index = page_bounds(request.args)
    accounts = get_accounts()
    page = accounts.list_page(accounts.list_all(), start_index, end_index)
    return jsonify({"users": [user.to_dict() for user in page]})


@users_bp.route("/current", methods=["GET"])
@jwt_required()
def get_current():
    return jsonify({"user": current_user.to_dict()})


@users_bp.route("/<user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id: str):
    user = get_accounts().get_one(user_id, current_user.id)
    return jsonify({"user": user.to_dict()})


@users_bp.route("/signup", methods=["POST"])
def register() -> tuple:
    """Register a new, unverified account and send its verification email."""

    email, password = _credentials()
    user = get_accounts().register(email, password)
    return (
        jsonify({"message": "Registration successful.", "user": user.to_dict()}),
        HTTPStatus.CREATED,
    )


@users_bp.route("/verify/<verification_token>", methods=["GET"])
def verify(verification_token: str):
    get_accounts().verify(verification_token)
    return jsonify({"message": "Verification successful."})


@users_bp.route("/verify", methods=["POST"])
def reverify():
    """Send a fresh verification link to an unverified account."""

    payload = parse_json_request(request)
    require_valid(validators.check_reverify, payload)
    get_accounts().reverify(payload["email"].strip())
    return jsonify({"message": "Verification email sent."})


@users_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a verified account and return its session token."""

    email, password = _credentials()
    token, user = get_accounts().login(email, password)
    return jsonify({"token": token, "user": user.to_dict()}), HTTPStatus.OK


@users_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    payload = parse_json_request(request, allow_empty=True)
    require_valid(validators.check_logout, payload)
    get_accounts().logout(current_user.id)
    return "", HTTPStatus.NO_CONTENT


@users_bp.route("", methods=["PATCH"])
@jwt_required()
def update_profile():
    accounts = get_accounts()
    payload = parse_json_request(request)
    require_valid(validators.check_profile, payload, accounts.subscription_tiers)
    user = accounts.update_profile(current_user.id, payload)
    return jsonify({"user": user.to_dict()})


@users_bp.route("/subscription", methods=["PATCH"])
@jwt_required()
def update_subscription():
    payload = parse_json_request(request)
    user = get_accounts().update_subscription(
        current_user.id, payload.get("subscription")
    )
    return jsonify({"user": user.to_dict()})


@users_bp.route("/avatars", methods=["PATCH"])
@jwt_required()
def update_avatar():
    """Replace the current account's avatar with the uploaded image."""

    file = request.files.get("avatar")
    if not isinstance(file, FileStorage) or not file.filename:
        raise ValidationError("An avatar file is required.")

    tmp_path = _save_temporary(file)
    avatar_url = get_accounts().update_avatar(current_user.id, tmp_path, file.filename)
    return jsonify({"avatar_url": avatar_url})


@users_bp.route("", methods=["DELETE"])
@jwt_required()
def remove():
    user_id = current_user.id
    get_accounts().remove(user_id)
    return jsonify({"message": "User removed.", "user": user_id})
