"""Helpers classifying and coercing tree values.

A tree is built from three shapes: mappings (``dict`` and other
``Mapping`` types), sequences (``list`` and ``tuple``) and scalars
(everything else).
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from ..character.encoding import decode_bytes


def is_associative(value: Any) -> bool:
    """Return True for mapping-shaped collections."""
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    """Return True for index-shaped collections."""
    return isinstance(value, (list, tuple))


def to_text(value: Any) -> str:
    """Coerce a leaf value to text.

    Scalars use a fixed representation (``None`` is empty, booleans are
    ``true``/``false``, bytes are decoded after encoding detection).
    Objects defining ``__str__`` are converted with it; anything else,
    including collections, falls back to ``repr()``.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return decode_bytes(value)[0]
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if type(value).__str__ is not object.__str__:
        return str(value)
    return repr(value)


def is_empty(value: Any) -> bool:
    """Return True for ``None``, empty strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, Mapping)):
        return len(value) == 0
    return False


def prune_empty(tree: Any) -> Any:
    """Recursively drop empty entries from mappings and sequences.

    Children are pruned first, so a container that only held empty values
    is removed from its parent as well. The top level is returned even when
    it ends up empty.
    """
    if is_associative(tree):
        pruned = {}
        for key, value in tree.items():
            value = prune_empty(value)
            if not is_empty(value):
                pruned[key] = value
        return pruned
    if is_sequence(tree):
        return [item for item in map(prune_empty, tree) if not is_empty(item)]
    return tree
