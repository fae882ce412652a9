"""Avatar upload processing.

An upload arrives as a temporary file plus the name the client gave it. The
pipeline checks the name, decodes and resizes the image, replaces whatever
avatar the account already had in the avatar directory, and records the new
public URL on the account. The temporary file is removed on every exit path.

Replacement is not serialized per account: two concurrent uploads for the same
id may both survive the prefix scan, leaving two files, or delete each other's
output. The stored URL is whichever write committed last.
"""

from __future__ import annotations

import logging
import os
from io import BytesIO
from typing import Iterable

from PIL import Image, UnidentifiedImageError

from services import users
from storage.abstract_storage import AbstractStorage
from utils.errors import InternalFailure, ValidationError
from utils.validators import check_avatar_filename

logger = logging.getLogger(__name__)

AVATAR_SIZE = 250
AVATARS_PATH = "avatars"
DEFAULT_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp")
_ALPHA_EXTENSIONS = {"png", "gif"}
_ALPHA_MODES = {"RGBA", "RGBa", "LA", "La", "PA"}


def normalize_extensions(configured: str | Iterable[str] | None) -> set[str]:
    """Return lower-case extensions without dots; jpg and jpeg go together."""

    if not configured:
        return set(DEFAULT_EXTENSIONS)
    if isinstance(configured, str):
        values: Iterable[str] = configured.split(",")
    else:
        values = configured

    normalized: set[str] = set()
    for raw in values:
        if not isinstance(raw, str):
            continue
        item = raw.strip().lower().lstrip(".")
        if item:
            normalized.add(item)

    if not normalized:
        return set(DEFAULT_EXTENSIONS)
    if normalized & {"jpg", "jpeg"}:
        normalized |= {"jpg", "jpeg"}
    return normalized


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or (
        image.mode == "P" and "transparency" in image.info
    )


def stored_name(user_id: str, original_filename: str) -> str:
    return f"{user_id}_{original_filename}"


class AvatarPipeline:
    """Replaces account avatars inside a single storage directory."""

    def __init__(
        self,
        storage: AbstractStorage,
        base_url: str,
        *,
        size: int = AVATAR_SIZE,
        extensions: str | Iterable[str] | None = None,
    ):
        self.storage = storage
        self.base_url = base_url.rstrip("/")
        self.size = size
        self.extensions = normalize_extensions(extensions)

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/{AVATARS_PATH}/{name}"

    def replace(self, user_id: str, tmp_path: str | os.PathLike, original_filename: str) -> str:
        """Store a new avatar for ``user_id`` and return its public URL."""

        try:
            name = self._write_avatar(user_id, tmp_path, original_filename)
        except BaseException:
            self._discard(tmp_path, reraise=False)
            raise
        self._discard(tmp_path)

        url = self.public_url(name)
        users.update(user_id, {"avatar_url": url})
        logger.info("Avatar replaced for user %s", user_id)
        return url

    def purge(self, user_id: str, keep: str | None = None) -> list[str]:
        """Delete every stored avatar belonging to ``user_id`` except ``keep``."""

        removed = [n for n in self.storage.list(self._prefix(user_id)) if n != keep]
        for name in removed:
            self.storage.delete(name)
        return removed

    def _prefix(self, user_id: str) -> str:
        return f"{user_id}_"

    def _write_avatar(self, user_id: str, tmp_path, original_filename: str) -> str:
        message = check_avatar_filename(original_filename, self.extensions)
        if message:
            raise ValidationError(message)

        try:
            with Image.open(tmp_path) as source:
                source.load()
                resized = source.resize((self.size, self.size), Image.Resampling.LANCZOS)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError):
            raise ValidationError("Uploaded file is not a valid image.")

        extension = original_filename.rsplit(".", 1)[-1].lower()
        encoded = self._encode(resized, extension)

        # Old files go only once the new one is on disk.
        name = stored_name(user_id, original_filename)
        try:
            self.storage.path(name).write_bytes(encoded)
            self.purge(user_id, keep=name)
        except OSError:
            logger.exception("Writing avatar %s failed", name)
            raise InternalFailure()
        return name

    def _encode(self, image: Image.Image, extension: str) -> bytes:
        fmt = Image.registered_extensions().get(f".{extension}")
        if fmt is None:
            raise ValidationError(f"Cannot store avatars as .{extension}.")

        target = "RGB"
        if extension in _ALPHA_EXTENSIONS and _has_alpha(image):
            target = "RGBA"

        buffer = BytesIO()
        try:
            if image.mode != target:
                image = image.convert(target)
            image.save(buffer, fmt)
        except (OSError, ValueError, KeyError):
            raise ValidationError(f"Image cannot be stored as .{extension}.")
        return buffer.getvalue()

    def _discard(self, tmp_path, reraise: bool = True) -> None:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Could not remove temporary upload %s", tmp_path)
            if reraise:
                raise InternalFailure()
