"""Diagnostic types for XML well-formedness errors.

A :class:`XmlDiagnostic` captures the first error libxml2 reports for a
document and renders it as a human-readable block with the offending
source line and a caret under the failing column.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence

from lxml import etree


class DiagnosticLevel(Enum):
    """Severity of a well-formedness diagnostic, as classified by libxml2."""

    WARNING = 1
    ERROR = 2
    FATAL = 3

    @property
    def label(self) -> str:
        """Prefix used when formatting the diagnostic."""
        return {
            DiagnosticLevel.WARNING: "Warning",
            DiagnosticLevel.ERROR: "Error",
            DiagnosticLevel.FATAL: "Fatal Error",
        }[self]


@dataclass(frozen=True)
class XmlDiagnostic:
    """Single well-formedness error with its location in the source."""

    line: int
    column: int
    level: DiagnosticLevel
    code: int
    message: str

    def __post_init__(self) -> None:
        """Validate diagnostic location."""
        if self.line < 0:
            raise ValueError("Diagnostic line cannot be negative")
        if self.column < 0:
            raise ValueError("Diagnostic column cannot be negative")

    @classmethod
    def from_log_entry(cls, entry: Any) -> "XmlDiagnostic":
        """Build a diagnostic from an ``lxml.etree._LogEntry``."""
        try:
            level = DiagnosticLevel(entry.level)
        except ValueError:
            level = DiagnosticLevel.FATAL
        return cls(
            line=max(entry.line, 0),
            column=max(entry.column, 0),
            level=level,
            code=entry.type,
            message=entry.message or "",
        )

    @classmethod
    def first_of(
        cls,
        error: etree.XMLSyntaxError,
        error_log: Iterable[Any] = ()
    ) -> Optional["XmlDiagnostic"]:
        """Return the first error of a failed parse, if there is one.

        Args:
            error: Exception raised by the parse
            error_log: Log of the parser that raised ``error``. The log on
                the exception itself is a copy of lxml's thread-wide log and
                may start with errors of earlier, unrelated parses.

        Returns:
            Diagnostic for the first logged entry, else for the position
            carried by ``error``, else None
        """
        for entry in error_log:
            return cls.from_log_entry(entry)
        if error.lineno is None:
            return None
        # Some errors only carry a position on the exception itself.
        line, column = error.position
        return cls(
            line=max(line or 0, 0),
            column=max(column or 0, 0),
            level=DiagnosticLevel.FATAL,
            code=error.code or 0,
            message=error.msg or str(error),
        )

    def format(self, content: Sequence[str]) -> str:
        """Render the diagnostic against the source split into lines.

        The offending line and a ``---^`` marker are only included when the
        error line exists in ``content``.
        """
        parts = []
        if 0 < self.line <= len(content):
            parts.append(content[self.line - 1] + "\n")
            parts.append("-" * self.column + "^\n")
        parts.append(f"{self.level.label} {self.code}: ")
        parts.append(
            f"{self.message.strip()}\n  Line: {self.line}\n  Column: {self.column}"
        )
        return "".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation used by the command line report."""
        return {
            "line": self.line,
            "column": self.column,
            "level": self.level.name,
            "code": self.code,
            "message": self.message.strip(),
        }
