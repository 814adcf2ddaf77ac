"""Utility helpers."""

from .config import Settings
from .lines import LineBuffer

__all__ = ["LineBuffer", "Settings"]
