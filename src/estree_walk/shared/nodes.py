"""
ESTree Node Shape Discovery

Nodes are never declared up front: any structured value carrying a string
`type` field is a node. This module provides:
1. The node-shape predicate (`is_node`)
2. Generic child enumeration in field order (`discover_children`)
3. Ancestry records (`PathEntry`) and their display form (`format_path`)

Two node representations are recognized:
- Mappings, e.g. JSON output of acorn / espree / babel (`{"type": "Identifier", ...}`)
- Attribute objects, e.g. esprima-python nodes, SimpleNamespace, dataclasses
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from typing_extensions import TypeAlias

from ..utils.config import DISCRIMINATOR_FIELD, PATH_SEPARATOR, ROOT_PATH_LABEL

# Sequence types that may hold child nodes; str/bytes are scalars here
_SEQUENCE_TYPES = (list, tuple)


def is_node(value: Any) -> bool:
    """True if value is node-shaped: a mapping or object with a string `type` field."""
    if isinstance(value, Mapping):
        return isinstance(value.get(DISCRIMINATOR_FIELD), str)
    if isinstance(value, (type, str, bytes)) or isinstance(value, _SEQUENCE_TYPES):
        return False
    return isinstance(getattr(value, DISCRIMINATOR_FIELD, None), str)


def node_type(node: Any) -> str:
    """Return the discriminator of a node (e.g. "Program")."""
    if isinstance(node, Mapping):
        return node[DISCRIMINATOR_FIELD]
    return getattr(node, DISCRIMINATOR_FIELD)


def get_field(value: Any, name: str, default: Any = None) -> Any:
    """Read a field from a mapping or attribute-style value."""
    if isinstance(value, Mapping):
        return value.get(name, default)
    return getattr(value, name, default)


def iter_fields(node: Any) -> Iterator[Tuple[str, Any]]:
    """
    Yield (name, value) for each own field of a node, in declaration order.

    Mappings yield their items in insertion order. Dataclass instances follow
    their field declaration order; other objects follow `vars()` order and
    hide underscore-prefixed attributes.
    """
    if isinstance(node, Mapping):
        yield from node.items()
        return
    if dataclasses.is_dataclass(node):
        for f in dataclasses.fields(node):
            yield f.name, getattr(node, f.name)
        return
    try:
        attributes = vars(node)
    except TypeError:
        # __slots__ objects without a __dict__
        attributes = {
            name: getattr(node, name)
            for name in getattr(type(node), "__slots__", ())
            if hasattr(node, name)
        }
    for name, value in attributes.items():
        if not name.startswith("_"):
            yield name, value


class ChildEntry(NamedTuple):
    """One discovered child: field key, sequence index (None for direct fields), node."""
    key: str
    index: Optional[int]
    node: Any


ChildrenFn: TypeAlias = Callable[[Any], Iterable[ChildEntry]]


def discover_children(node: Any) -> List[ChildEntry]:
    """
    Enumerate the children of a node without a per-kind schema.

    Direct node-valued fields produce one entry each; list/tuple fields produce
    one entry per node-shaped element, keeping the element's original index.
    Non-node elements and scalar fields are skipped. The order is the field
    order followed by sequence order, so it is stable for a given node.
    """
    children: List[ChildEntry] = []
    for key, value in iter_fields(node):
        if is_node(value):
            children.append(ChildEntry(key, None, value))
        elif isinstance(value, _SEQUENCE_TYPES):
            for index, element in enumerate(value):
                if is_node(element):
                    children.append(ChildEntry(key, index, element))
    return children


@dataclass(frozen=True)
class PathEntry:
    """
    One ancestry record: `node` is the ancestor, `key` the field of `node`
    leading down, `index` the position when that field is a sequence.
    """
    node: Any
    key: str
    index: Optional[int] = None

    def __str__(self) -> str:
        if self.index is None:
            return self.key
        return f"{self.key}[{self.index}]"


Path: TypeAlias = Tuple[PathEntry, ...]


def parent_of(path: Path) -> Optional[Any]:
    """Immediate parent node of the node a path leads to (None at the root)."""
    return path[-1].node if path else None


def format_path(path: Path) -> str:
    """Render a path as `Program.body[0].declarations[0].id`."""
    if not path:
        return ROOT_PATH_LABEL
    segments = [node_type(path[0].node)]
    segments.extend(str(entry) for entry in path)
    return PATH_SEPARATOR.join(segments)
