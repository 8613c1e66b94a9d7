"""Streaming serialization of trees into XML files.

Building a full DOM for very large trees is memory-prohibitive, so the
writer emits tokens through :func:`lxml.etree.xmlfile` and flushes the
serializer buffer to the destination every ``flush_threshold`` leaf
elements. Flushes only happen between complete leaf elements, so buffer
boundaries never split a tag.

Conventions for the tree:

- keys starting with ``@`` hold attributes of the enclosing element;
  ``@attributes`` may hold a whole mapping of them
- a mapping whose only other key is ``#text`` is a leaf with attributes
- a sequence repeats its key as sibling elements, one per item
- a leaf is written as CDATA when its tag is force-listed or its text
  contains anything outside ``[a-zA-Z0-9-_.,:;# /]``, else as plain text

A failed write is not rolled back: whatever was flushed before the
failure stays in the destination file.
"""

import io
import logging
import os
import re
import time
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import psutil
from lxml import etree

from ..character.encoding import BOMDetector, transcode
from ..shared.config import WriterConfig
from ..shared.errors import DocumentError, XmlIOError
from ..shared.files import FileLocator
from ..shared.logging import get_logger
from ..tree.values import is_associative, is_sequence, to_text

CDATA_PATTERN = re.compile(r"[^a-zA-Z0-9\-_.,:;# /]")
CDATA_TERMINATOR = "]]>"
ATTRIBUTE_PREFIX = "@"
ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"
MS_PER_SECOND = 1000


class TreeToStreamWriter:
    """Writes trees as XML incrementally, without materializing a DOM.

    An instance keeps a flush counter that is mutated while writing; do not
    share one instance between threads.

    Examples:
        >>> writer = TreeToStreamWriter()
        >>> writer.add_force_character_data("description")
        >>> xml = writer.render("catalog", {"version": 2}, {"item": ["a", "b"]})
    """

    def __init__(
        self,
        config: Optional[WriterConfig] = None,
        locator: Optional[FileLocator] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or WriterConfig()
        self.base_path = self.config.base_path
        self.file_name = self.config.file_name
        self.flush_threshold = self.config.flush_threshold
        self.indent = self.config.indent
        self.locator = locator or FileLocator()
        self.logger = get_logger(__name__, correlation_id, "stream_writer")

        self._force_character_data = set(self.config.force_character_data)
        self._flush_counter = 0
        self._elements_written = 0
        self._encoding = self.config.encoding
        self._target: Optional[io.IOBase] = None

    @property
    def force_character_data(self) -> FrozenSet[str]:
        """Element names whose text is always written as CDATA."""
        return frozenset(self._force_character_data)

    def add_force_character_data(self, element_name: str) -> None:
        self._force_character_data.add(element_name)

    def write(
        self,
        root_tag: str,
        root_attributes: Mapping[str, Any],
        tree: Mapping[str, Any],
        append: bool = False,
        version: Optional[str] = None,
        encoding: Optional[str] = None
    ) -> None:
        """Write ``tree`` as a document into the configured file.

        Args:
            root_tag: Tag of the document element
            root_attributes: Attributes of the document element
            tree: Mapping whose keys become child elements of the root
            append: Keep an existing file and append the document to it;
                the XML declaration is only written into an empty file
            version: XML version for the declaration
            encoding: Output encoding

        Raises:
            XmlIOError: If the destination can not be prepared or written
            EncodingError: If a value can not be written in ``encoding``
            DocumentError: If the tree holds names lxml rejects
        """
        if not self.file_name:
            raise ValueError("No file name configured for the writer")

        start_time = time.time()
        path = self.locator.resolve(self.file_name, self.base_path)

        if not append and os.path.lexists(path):
            try:
                os.remove(path)
            except OSError as e:
                self.logger.error("Could not delete file", extra={"path": path, "error": str(e)})
                raise XmlIOError(f"Could not delete file: {path} because: {e}") from e

        self.locator.ensure_directory(os.path.dirname(path))

        try:
            target = open(path, "ab")
        except OSError as e:
            self.logger.error("Could not open file", extra={"path": path, "error": str(e)})
            raise XmlIOError(f"Could not open file: {path} because: {e}") from e

        with target:
            try:
                self._emit(
                    target,
                    root_tag,
                    root_attributes,
                    tree,
                    version or self.config.version,
                    encoding or self.config.encoding,
                    write_declaration=target.tell() == 0,
                )
            except OSError as e:
                self.logger.error("Could not write file", extra={"path": path, "error": str(e)})
                raise XmlIOError(f"Could not write file: {path} because: {e}") from e

        self.logger.info(
            "Wrote XML file",
            extra={
                "path": path,
                "append": append,
                "elements_written": self._elements_written,
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )

    def render(
        self,
        root_tag: str,
        root_attributes: Mapping[str, Any],
        tree: Mapping[str, Any],
        version: Optional[str] = None,
        encoding: Optional[str] = None
    ) -> str:
        """Return ``tree`` as an XML document string, without file I/O."""
        encoding = encoding or self.config.encoding
        target = io.BytesIO()
        self._emit(
            target,
            root_tag,
            root_attributes,
            tree,
            version or self.config.version,
            encoding,
            write_declaration=True,
        )
        return target.getvalue().decode(encoding)

    def _emit(
        self,
        target: Any,
        root_tag: str,
        root_attributes: Mapping[str, Any],
        tree: Mapping[str, Any],
        version: str,
        encoding: str,
        write_declaration: bool
    ) -> None:
        if not is_associative(tree):
            raise DocumentError(
                f"Tree for <{root_tag}> must be a mapping, got {type(tree).__name__}"
            )

        self._target = target
        self._encoding = encoding
        self._flush_counter = 0
        self._elements_written = 0

        own_attributes, children = self._split_attributes(tree)
        attributes = dict(root_attributes)
        attributes.update(own_attributes)

        try:
            with etree.xmlfile(target, encoding=encoding) as xf:
                if write_declaration:
                    xf.write_declaration(version=version)
                with xf.element(root_tag, self._encode_attributes(attributes)):
                    for key, value in children:
                        self._add_element(xf, key, value, 1)
                    if children:
                        xf.write("\n")
            target.write(_line_break(encoding))
        except (ValueError, TypeError, LookupError, etree.LxmlError) as e:
            self.logger.error(
                "Could not write XML", extra={"root_tag": root_tag, "error": str(e)}
            )
            raise DocumentError(f"Could not write XML: {e}") from e
        finally:
            self._target = None

    def _add_element(self, xf: Any, name: str, data: Any, depth: int) -> None:
        if is_associative(data):
            attributes, children = self._split_attributes(data)
            if [key for key, _ in children] == [TEXT_KEY]:
                self._write_data(xf, name, self._leaf_text(children[0][1]), depth, attributes)
                return

            xf.write("\n" + self.indent * depth)
            with xf.element(name, self._encode_attributes(attributes)):
                for key, value in children:
                    self._add_element(xf, key, value, depth + 1)
                if children:
                    xf.write("\n" + self.indent * depth)
        elif is_sequence(data):
            for item in data:
                self._add_element(xf, name, item, depth)
        else:
            self._write_data(xf, name, self._leaf_text(data), depth)

    def _leaf_text(self, value: Any) -> str:
        return transcode(value if isinstance(value, bytes) else to_text(value), self._encoding)

    def _write_data(
        self,
        xf: Any,
        name: str,
        text: str,
        depth: int,
        attributes: Optional[Dict[str, Any]] = None
    ) -> None:
        element = etree.Element(name, self._encode_attributes(attributes or {}))
        if name in self._force_character_data or CDATA_PATTERN.search(text):
            if CDATA_TERMINATOR in text:
                self.logger.debug(
                    "Writing text with CDATA terminator as escaped text",
                    extra={"element": name}
                )
                element.text = text
            else:
                element.text = etree.CDATA(text)
        else:
            element.text = text

        xf.write("\n" + self.indent * depth)
        xf.write(element)

        self._elements_written += 1
        self._flush_counter += 1
        if self._flush_counter >= self.flush_threshold:
            self._flush(xf)

    def _flush(self, xf: Any) -> None:
        xf.flush()
        if self._target is not None:
            self._target.flush()

        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Flushed XML buffer",
                extra={
                    "elements_written": self._elements_written,
                    "rss_bytes": psutil.Process().memory_info().rss,
                }
            )
        self._flush_counter = 0

    def _split_attributes(
        self, mapping: Mapping[Any, Any]
    ) -> Tuple[Dict[str, Any], List[Tuple[str, Any]]]:
        attributes: Dict[str, Any] = {}
        children: List[Tuple[str, Any]] = []
        for key, value in mapping.items():
            key = str(key)
            if key == ATTRIBUTES_KEY and is_associative(value):
                attributes.update((str(name), item) for name, item in value.items())
            elif key.startswith(ATTRIBUTE_PREFIX):
                attributes[key[len(ATTRIBUTE_PREFIX):]] = value
            else:
                children.append((key, value))
        return attributes, children

    def _encode_attributes(self, attributes: Mapping[str, Any]) -> Dict[str, str]:
        return {name: self._leaf_text(value) for name, value in attributes.items()}


def _line_break(encoding: str) -> bytes:
    """Encode a newline without the byte order mark some codecs prepend."""
    data = "\n".encode(encoding)
    bom = BOMDetector().detect(data)
    return data[bom.bom_length:] if bom else data


def render_xml(
    root_tag: str,
    tree: Mapping[str, Any],
    root_attributes: Optional[Mapping[str, Any]] = None,
    version: str = "1.0",
    encoding: str = "UTF-8",
    force_character_data: Optional[List[str]] = None,
    correlation_id: Optional[str] = None
) -> str:
    """Render ``tree`` as an XML document string with the streaming writer."""
    writer = TreeToStreamWriter(
        WriterConfig(force_character_data=frozenset(force_character_data or ())),
        correlation_id=correlation_id,
    )
    return writer.render(root_tag, root_attributes or {}, tree, version, encoding)


def write_xml(
    path: str,
    root_tag: str,
    tree: Mapping[str, Any],
    root_attributes: Optional[Mapping[str, Any]] = None,
    append: bool = False,
    version: str = "1.0",
    encoding: str = "UTF-8",
    force_character_data: Optional[List[str]] = None,
    correlation_id: Optional[str] = None
) -> None:
    """Write ``tree`` as an XML document to ``path``."""
    writer = TreeToStreamWriter(
        WriterConfig(
            file_name=str(path),
            force_character_data=frozenset(force_character_data or ()),
        ),
        correlation_id=correlation_id,
    )
    writer.write(root_tag, root_attributes or {}, tree, append, version, encoding)
