"""Public avatar files."""

from __future__ import annotations

import os

from flask import Blueprint, current_app, send_from_directory

avatars_bp = Blueprint("avatars", __name__)


@avatars_bp.route("/<path:filename>", methods=["GET"])
def avatar_file(filename: str):
    directory = os.path.abspath(current_app.config["AVATAR_DIR"])
    return send_from_directory(directory, filename)
