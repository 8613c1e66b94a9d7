"""Reading side: parsing XML and reading files into trees."""

from .parser import XmlParser, parse_file, parse_string
from .reader import ArrayReader, read_xml

__all__ = [
    "XmlParser",
    "parse_file",
    "parse_string",
    "ArrayReader",
    "read_xml",
]
