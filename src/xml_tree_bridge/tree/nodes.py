"""Explicit node shapes for trees headed into a DOM.

Callers hand over plain mappings that use the reserved ``@attributes``
key. :func:`lower` turns such a mapping into a small tagged union so the
DOM builder dispatches on node type instead of probing for magic keys:

    Scalar      a leaf value, stringified when rendered
    Element     ordered (tag, node) children of one element
    Repeated    items that each become a sibling element with the same tag
    Attributed  attributes of the current element plus its content
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .values import is_associative, is_sequence, to_text

ATTRIBUTES_KEY = "@attributes"


@dataclass(frozen=True)
class Scalar:
    value: Any

    @property
    def text(self) -> str:
        return to_text(self.value)


@dataclass(frozen=True)
class Element:
    children: Tuple[Tuple[str, "Node"], ...]


@dataclass(frozen=True)
class Repeated:
    items: Tuple["Node", ...]

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class Attributed:
    """Attributes of the current element and what goes inside it.

    ``content`` is an :class:`Element` when two or more keys remained next
    to ``@attributes``, a :class:`Scalar` when exactly one did, and None
    when the element only carries attributes.
    """

    attributes: Tuple[Tuple[str, str], ...]
    content: Optional[Union[Element, Scalar]]


Node = Union[Scalar, Element, Repeated, Attributed]


def lower(value: Any) -> Node:
    """Convert a tree value into its node shape."""
    if is_associative(value):
        if ATTRIBUTES_KEY in value:
            return _lower_attributed(value)
        return Element(tuple((key, lower(child)) for key, child in value.items()))
    if is_sequence(value):
        return Repeated(tuple(lower(item) for item in value))
    return Scalar(value)


def _lower_attributed(mapping: Any) -> Attributed:
    raw_attributes = mapping[ATTRIBUTES_KEY]
    attributes: Tuple[Tuple[str, str], ...] = ()
    if is_associative(raw_attributes):
        attributes = tuple(
            (str(name), to_text(value)) for name, value in raw_attributes.items()
        )

    rest = [(key, value) for key, value in mapping.items() if key != ATTRIBUTES_KEY]
    content: Optional[Union[Element, Scalar]] = None
    if len(rest) > 1:
        content = Element(tuple((key, lower(value)) for key, value in rest))
    elif rest:
        # The only sibling is content, whatever its key; collections are
        # stringified rather than expanded.
        content = Scalar(rest[0][1])
    return Attributed(attributes, content)
