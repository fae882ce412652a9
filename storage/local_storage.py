"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO

from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist files to the local filesystem under a single directory."""

    def __init__(self, directory: str | os.PathLike):
        self.base_directory = Path(directory)
        os.makedirs(self.base_directory, exist_ok=True)

    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Save a file and return the relative path within the directory."""

        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        destination = self.base_directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())

        return str(destination.relative_to(self.base_directory))

    def path(self, name: str) -> Path:
        return self.base_directory / name

    def list(self, prefix: str = "") -> list[str]:
        return sorted(
            entry.name
            for entry in os.scandir(self.base_directory)
            if entry.is_file() and entry.name.startswith(prefix)
        )

    def delete(self, name: str) -> None:
        try:
            os.remove(self.base_directory / name)
        except FileNotFoundError:
            pass
