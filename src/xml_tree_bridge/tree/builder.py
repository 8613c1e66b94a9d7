"""DOM-based serialization of trees into XML documents.

The builder lowers a tree into :mod:`~xml_tree_bridge.tree.nodes` shapes,
builds an lxml element tree from them and serializes the whole document
at once. Use :mod:`xml_tree_bridge.stream.writer` for trees too large to
hold as a DOM.

Leaf text goes into a CDATA section only when it would not survive as
markup: the value is wrapped in a throwaway ``<root>`` element and parsed,
and any well-formedness error selects CDATA.
"""

import time
from typing import Any, Mapping, Optional

from lxml import etree

from ..shared.config import BuilderConfig
from ..shared.errors import DocumentError
from ..shared.logging import get_logger
from .nodes import Attributed, Element, Node, Repeated, Scalar, lower

MS_PER_SECOND = 1000
CDATA_TERMINATOR = "]]>"


def needs_cdata(text: str) -> bool:
    """Return True when ``text`` is not well-formed element content."""
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        etree.fromstring(f"<root>{text}</root>", parser)
    except (etree.XMLSyntaxError, ValueError):
        return True
    return False


class TreeToDomBuilder:
    """Builds XML documents from trees through an in-memory DOM.

    Examples:
        >>> builder = TreeToDomBuilder()
        >>> print(builder.build({"name": "x"}, "item"))
        <?xml version="1.0" encoding="utf-8"?>
        <item>
          <name>x</name>
        </item>
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or BuilderConfig()
        self.logger = get_logger(__name__, correlation_id, "dom_builder")

    def build(
        self,
        tree: Mapping[str, Any],
        root_tag: str,
        create_empty_tags: Optional[bool] = None,
        collapse_empty_tags: Optional[bool] = None
    ) -> str:
        """Serialize ``tree`` as a document with root element ``root_tag``.

        Args:
            tree: Mapping whose keys become child elements of the root
            root_tag: Tag of the document element
            create_empty_tags: Emit an element for an empty sequence
            collapse_empty_tags: Write such elements as ``<tag/>`` rather
                than ``<tag></tag>``

        Returns:
            The serialized document including the XML declaration

        Raises:
            DocumentError: If the document can not be built or serialized
        """
        start_time = time.time()
        root = self.build_element(tree, root_tag, create_empty_tags, collapse_empty_tags)
        text = self.serialize(root)

        self.logger.info(
            "Built XML document",
            extra={
                "root_tag": root_tag,
                "output_length": len(text),
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )
        return text

    def build_element(
        self,
        tree: Mapping[str, Any],
        root_tag: str,
        create_empty_tags: Optional[bool] = None,
        collapse_empty_tags: Optional[bool] = None
    ) -> etree._Element:
        """Build the document element for ``tree`` without serializing it."""
        if create_empty_tags is None:
            create_empty_tags = self.config.create_empty_tags
        if collapse_empty_tags is None:
            collapse_empty_tags = self.config.collapse_empty_tags

        try:
            root = etree.Element(root_tag)
            self._fill(root, lower(tree), create_empty_tags, collapse_empty_tags)
        except (ValueError, TypeError) as e:
            self.logger.error(
                "Could not build XML document", extra={"root_tag": root_tag, "error": str(e)}
            )
            raise DocumentError(f"Could not build XML document: {e}") from e
        return root

    def serialize(self, root: etree._Element) -> str:
        """Serialize a document element with the configured declaration."""
        encoding = self.config.encoding
        try:
            body = etree.tostring(
                root,
                encoding=encoding,
                xml_declaration=False,
                pretty_print=self.config.pretty_print,
            )
            text = body.decode(encoding)
        except (etree.LxmlError, LookupError, UnicodeError) as e:
            self.logger.error("Could not save XML", extra={"error": str(e)})
            raise DocumentError(f"Could not save XML: {e}") from e

        declaration = f'<?xml version="{self.config.version}" encoding="{encoding}"?>\n'
        return declaration + text

    def _fill(
        self,
        element: etree._Element,
        node: Node,
        create_empty_tags: bool,
        collapse_empty_tags: bool
    ) -> None:
        if isinstance(node, Attributed):
            for name, value in node.attributes:
                element.set(name, value)
            if node.content is not None:
                self._fill(element, node.content, create_empty_tags, collapse_empty_tags)
        elif isinstance(node, Element):
            for key, child in node.children:
                self._append(element, key, child, create_empty_tags, collapse_empty_tags)
        elif isinstance(node, Scalar):
            self._set_content(element, node.text)
        else:
            raise DocumentError(
                f"Nested sequences can not be expressed as elements of <{element.tag}>"
            )

    def _append(
        self,
        parent: etree._Element,
        key: str,
        node: Node,
        create_empty_tags: bool,
        collapse_empty_tags: bool
    ) -> None:
        if isinstance(node, Repeated):
            if node.is_empty:
                if create_empty_tags:
                    child = etree.SubElement(parent, key)
                    if not collapse_empty_tags:
                        child.text = ""
                return
            for item in node.items:
                child = etree.SubElement(parent, key)
                self._fill(child, item, create_empty_tags, collapse_empty_tags)
        else:
            child = etree.SubElement(parent, key)
            self._fill(child, node, create_empty_tags, collapse_empty_tags)

    def _set_content(self, element: etree._Element, text: str) -> None:
        if needs_cdata(text):
            if CDATA_TERMINATOR in text:
                raise DocumentError(
                    f"Content of <{element.tag}> contains '{CDATA_TERMINATOR}' "
                    "and can not be wrapped in CDATA"
                )
            element.text = etree.CDATA(text)
        else:
            element.text = text


def build_xml(
    tree: Mapping[str, Any],
    root_tag: str,
    create_empty_tags: bool = False,
    collapse_empty_tags: bool = True,
    correlation_id: Optional[str] = None
) -> str:
    """Serialize ``tree`` into an XML document string.

    Examples:
        >>> xml = build_xml({"@attributes": {"id": "5"}, "name": "x"}, "item")
        >>> '<item id="5">x</item>' in xml
        True
    """
    builder = TreeToDomBuilder(correlation_id=correlation_id)
    return builder.build(tree, root_tag, create_empty_tags, collapse_empty_tags)
