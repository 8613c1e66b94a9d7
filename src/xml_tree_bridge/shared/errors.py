"""Exception hierarchy for tree/XML conversions.

All failures surface to the caller as one of these types; nothing is
swallowed. Only XML parse failures are retried, and only within the
caller's retry budget.
"""

from typing import Optional

from .result import XmlDiagnostic


class XmlBridgeError(Exception):
    """Base exception for all conversion errors."""


class NotFoundError(XmlBridgeError):
    """The resolved input path is not a regular file."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ParseError(XmlBridgeError):
    """XML could not be parsed.

    Attributes:
        diagnostic: First well-formedness error reported by the parser, if any
        attempts: Number of parse attempts made before giving up
    """

    def __init__(
        self,
        message: str,
        diagnostic: Optional[XmlDiagnostic] = None,
        attempts: int = 1
    ):
        super().__init__(message)
        self.diagnostic = diagnostic
        self.attempts = attempts


class DecodeError(XmlBridgeError):
    """Normalization of a parsed document did not yield a usable tree."""


class EncodingError(XmlBridgeError):
    """Text could not be detected or converted to the output encoding."""


class XmlIOError(XmlBridgeError, OSError):
    """A destination file could not be deleted, created, opened or written."""


class DocumentError(XmlBridgeError):
    """An XML document could not be built or serialized."""
