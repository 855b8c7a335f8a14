"""Severity definitions for scanner findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Return an integer ranking; higher is more severe."""

        ordering = {
            Severity.ERROR: 2,
            Severity.WARNING: 1,
            Severity.INFO: 0,
        }
        return ordering[self]

    @classmethod
    def from_setting(cls, value: str) -> "Severity":
        """Map a config severity keyword (``warn``/``error``) onto a level."""

        mapping = {"warn": cls.WARNING, "error": cls.ERROR, "info": cls.INFO}
        try:
            return mapping[value]
        except KeyError:
            return cls(value)
