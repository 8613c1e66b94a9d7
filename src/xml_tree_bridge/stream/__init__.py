"""Streaming XML output for large trees."""

from .writer import CDATA_PATTERN, TreeToStreamWriter, render_xml, write_xml

__all__ = [
    "CDATA_PATTERN",
    "TreeToStreamWriter",
    "render_xml",
    "write_xml",
]
