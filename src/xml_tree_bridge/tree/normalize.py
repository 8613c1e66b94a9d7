"""Flattening of parsed XML into plain trees.

Parsed elements have asymmetric shapes (attributes next to children, text
next to attributes, repeated tags). They are flattened the way SimpleXML
casts documents to arrays:

- the document element is dropped; its children form the top mapping
- child tags become keys, repeated tags collect into a list
- attributes are kept under ``@attributes``
- an element with only text becomes that string (``""`` when empty)
- an element with attributes and text keeps the text under ``#text``
- text mixed with child elements, comments and processing instructions
  are dropped

The result is then passed through JSON so that callers only ever see
``dict``, ``list`` and ``str`` values.
"""

import json
from typing import Any, Dict, List, Union

from lxml import etree

from ..shared.errors import DecodeError
from .nodes import ATTRIBUTES_KEY

TEXT_KEY = "#text"

Tree = Union[Dict[str, Any], List[Any]]


def _text_of(element: etree._Element) -> str:
    # Text interrupted by comments or PIs continues in their tails
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    return "".join(parts)


def element_to_data(element: etree._Element, is_root: bool = False) -> Any:
    """Convert one element (and its subtree) into plain data."""
    attributes = dict(element.attrib)
    children = [child for child in element if isinstance(child.tag, str)]

    if not children:
        text = _text_of(element)
        if not attributes and not is_root:
            return text
        result: Dict[str, Any] = {}
        if attributes:
            result[ATTRIBUTES_KEY] = attributes
        if text.strip():
            result[TEXT_KEY] = text
        return result

    result = {}
    if attributes:
        result[ATTRIBUTES_KEY] = attributes
    for child in children:
        value = element_to_data(child)
        if child.tag not in result:
            result[child.tag] = value
        elif isinstance(result[child.tag], list):
            result[child.tag].append(value)
        else:
            result[child.tag] = [result[child.tag], value]
    return result


def normalize(data: Any) -> Tree:
    """Round-trip ``data`` through JSON and check it is a container.

    Raises:
        DecodeError: If the data can not be encoded or decoded, or does not
            yield a mapping or sequence
    """
    try:
        encoded = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Could not convert XML to JSON: {e}") from e
    try:
        decoded = json.loads(encoded)
    except ValueError as e:
        raise DecodeError(f"Could not decode JSON: {e}") from e

    if not isinstance(decoded, (dict, list)):
        raise DecodeError("Could not convert XML to array.")
    return decoded


def xml_to_tree(root: etree._Element) -> Tree:
    """Flatten a parsed document element into a plain tree.

    Examples:
        >>> root = etree.fromstring('<config><a id="1">x</a><b>y</b><b>z</b></config>')
        >>> xml_to_tree(root)
        {'a': {'@attributes': {'id': '1'}, '#text': 'x'}, 'b': ['y', 'z']}
    """
    return normalize(element_to_data(root, is_root=True))
