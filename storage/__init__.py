"""Filesystem storage for uploaded and avatar files."""

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage

__all__ = ["AbstractStorage", "LocalStorage"]
