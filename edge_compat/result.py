"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class SourceLocation:
    """Point at a construct: ``line`` is 1-based, ``column`` is 0-based."""

    file: str
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"file": self.file, "line": self.line, "column": self.column}
        if self.end_line is not None:
            data["end_line"] = self.end_line
        if self.end_column is not None:
            data["end_column"] = self.end_column
        return data


@dataclass(frozen=True)
class CodeFrame:
    """Rendered source excerpt around a location."""

    code: str
    location: SourceLocation


@dataclass(frozen=True)
class Suggestion:
    """Remediation hint attached to a finding."""

    message: str
    replacement: Optional[str] = None
    package: Optional[str] = None
    import_statement: Optional[str] = None
    docs_url: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {key: value for key, value in self.__dict__.items() if value is not None}


@dataclass(frozen=True)
class Finding:
    """Capture a single rule match."""

    rule_id: str
    severity: Severity
    message: str
    location: SourceLocation
    code_frame: Optional[CodeFrame] = None
    suggestions: Tuple[Suggestion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "location": self.location.to_dict(),
        }
        if self.code_frame is not None:
            data["code_frame"] = self.code_frame.code
        if self.suggestions:
            data["suggestions"] = [suggestion.to_dict() for suggestion in self.suggestions]
        return data


@dataclass(frozen=True)
class FileError:
    """Per-file execution failure reported next to an empty finding set."""

    file: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "message": self.message}


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    error: int = 0
    warning: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {severity.value: getattr(self, severity.value) for severity in SEVERITY_ORDER}

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value.upper(), getattr(self, severity.value)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value) for severity in SEVERITY_ORDER)


@dataclass(frozen=True)
class ScanResult:
    """Bundle the findings and counters of one ``Scanner.scan()`` call."""

    findings: Tuple[Finding, ...] = ()
    file_count: int = 0
    duration: float = 0.0
    cached_count: Optional[int] = None
    errors: Tuple[FileError, ...] = field(default_factory=tuple)

    @property
    def summary(self) -> Summary:
        summary = Summary()
        for finding in self.findings:
            summary.increment(finding.severity)
        return summary

    def has_severity(self, severity: Severity) -> bool:
        return any(finding.severity == severity for finding in self.findings)

    def exit_code(self, strict: bool = False) -> int:
        if self.has_severity(Severity.ERROR):
            return 2
        if strict and self.has_severity(Severity.WARNING):
            return 2
        if self.findings:
            return 1
        return 0

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "file_count": self.file_count,
            "duration": round(self.duration, 2),
        }
        if self.cached_count is not None:
            data["cached_count"] = self.cached_count
        if self.errors:
            data["errors"] = [error.to_dict() for error in self.errors]
        return data

    def top_findings(self, limit: Optional[int] = None) -> List[Finding]:
        """Return findings ordered by severity, most severe first."""

        ordered = sorted(
            self.findings,
            key=lambda finding: (-finding.severity.rank, finding.location.file, finding.location.line),
        )
        return ordered if limit is None else ordered[:limit]
