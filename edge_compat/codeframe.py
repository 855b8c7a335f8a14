"""Source excerpt rendering and offset/location helpers."""

from __future__ import annotations

from typing import Tuple

from .result import CodeFrame, SourceLocation


def location_from_offset(source: str, offset: int) -> Tuple[int, int]:
    """Return the 1-based line and 0-based column of a character offset."""

    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start


def build_location(file_path: str, source: str, start: int, end: int) -> SourceLocation:
    """Build a location spanning the characters ``source[start:end]``."""

    line, column = location_from_offset(source, start)
    end_line, end_column = location_from_offset(source, end)
    return SourceLocation(
        file=file_path,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
    )


def generate_code_frame(source: str, location: SourceLocation, context_lines: int = 3) -> CodeFrame:
    """Render the lines around ``location`` with a ``>`` marker on the matched lines."""

    lines = source.split("\n")
    last_line = location.end_line if location.end_line is not None else location.line
    start_index = max(0, location.line - context_lines - 1)
    end_index = min(len(lines) - 1, last_line + context_lines - 1)
    width = len(str(end_index + 1))

    framed = []
    for index in range(start_index, end_index + 1):
        line_number = index + 1
        marker = ">" if location.line <= line_number <= last_line else " "
        framed.append(f"{marker} {line_number:>{width}} | {lines[index]}")
    return CodeFrame(code="\n".join(framed), location=location)
