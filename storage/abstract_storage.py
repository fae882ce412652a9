"""Storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO


class AbstractStorage(ABC):
    """Interface for storage backends."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Persist a file and return the stored (relative) path."""

    @abstractmethod
    def path(self, name: str) -> Path:
        """Return the absolute location of a stored name."""

    @abstractmethod
    def list(self, prefix: str = "") -> list[str]:
        """Return stored names that start with ``prefix``."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove a stored name; missing names are ignored."""
