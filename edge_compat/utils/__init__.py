"""Utility helpers for the scanner."""

from .discovery import discover_files, matches_any
from .fileio import read_source_file, read_yaml_file
from .git import get_changed_files
from .validation import validate_file, validate_path

__all__ = [
    "discover_files",
    "matches_any",
    "read_source_file",
    "read_yaml_file",
    "get_changed_files",
    "validate_file",
    "validate_path",
]
