"""Tree layer: value helpers, node shapes, DOM building and normalization.

Key Components:
    TreeToDomBuilder: Serializes trees through an in-memory lxml document
    lower: Converts plain trees into explicit node shapes
    xml_to_tree: Flattens parsed elements into plain trees
    prune_empty: Recursively removes empty entries
"""

from .builder import TreeToDomBuilder, build_xml, needs_cdata
from .nodes import Attributed, Element, Node, Repeated, Scalar, lower
from .normalize import element_to_data, normalize, xml_to_tree
from .values import is_associative, is_empty, prune_empty, to_text

__all__ = [
    "TreeToDomBuilder",
    "build_xml",
    "needs_cdata",
    "Attributed",
    "Element",
    "Node",
    "Repeated",
    "Scalar",
    "lower",
    "element_to_data",
    "normalize",
    "xml_to_tree",
    "is_associative",
    "is_empty",
    "prune_empty",
    "to_text",
]
