"""XML Tree Bridge.

Converts nested trees of mappings, sequences and scalars into XML
documents and reads XML files back into such trees.

Progressive API Disclosure:
- Level 1: Simple functions - build_xml(), render_xml(), write_xml(),
  parse_string(), parse_file(), read_xml(), xml_to_tree()
- Level 2: Configured components - TreeToDomBuilder, TreeToStreamWriter,
  XmlParser, ArrayReader
- Level 3: Aggregate configuration - BridgeConfig loaded from JSON
"""

__version__ = "0.1.0"
__author__ = "XML Tree Bridge Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured components
from .api import ArrayReader, XmlParser, parse_file, parse_string, read_xml
from .stream import TreeToStreamWriter, render_xml, write_xml
from .tree import TreeToDomBuilder, build_xml, prune_empty, xml_to_tree

# Configuration classes for advanced usage
from .shared.config import BridgeConfig, BuilderConfig, ReaderConfig, WriterConfig

# Diagnostics and errors
from .shared.errors import (
    DecodeError,
    DocumentError,
    EncodingError,
    NotFoundError,
    ParseError,
    XmlBridgeError,
    XmlIOError,
)
from .shared.result import DiagnosticLevel, XmlDiagnostic

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "build_xml",
    "render_xml",
    "write_xml",
    "parse_string",
    "parse_file",
    "read_xml",
    "xml_to_tree",
    "prune_empty",

    # Level 2: Configured components
    "TreeToDomBuilder",
    "TreeToStreamWriter",
    "XmlParser",
    "ArrayReader",

    # Configuration classes
    "BridgeConfig",
    "BuilderConfig",
    "ReaderConfig",
    "WriterConfig",

    # Diagnostics and errors
    "DiagnosticLevel",
    "XmlDiagnostic",
    "XmlBridgeError",
    "NotFoundError",
    "ParseError",
    "DecodeError",
    "EncodingError",
    "XmlIOError",
    "DocumentError",
]
