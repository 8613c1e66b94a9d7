"""Shared utilities for tree/XML conversions.

This module provides configuration objects, diagnostics, the exception
hierarchy, file resolution and logging used across all components.
"""

from .result import (
    DiagnosticLevel,
    XmlDiagnostic,
)
from .errors import (
    DecodeError,
    DocumentError,
    EncodingError,
    NotFoundError,
    ParseError,
    XmlBridgeError,
    XmlIOError,
)
from .config import (
    BridgeConfig,
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    ReaderConfig,
    WriterConfig,
)
from .files import FileLocator
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "DiagnosticLevel",
    "XmlDiagnostic",
    "DecodeError",
    "DocumentError",
    "EncodingError",
    "NotFoundError",
    "ParseError",
    "XmlBridgeError",
    "XmlIOError",
    "BridgeConfig",
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "ReaderConfig",
    "WriterConfig",
    "FileLocator",
    "CorrelationLogger",
    "get_logger",
]
