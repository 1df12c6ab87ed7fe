"""
ESTree Serialization to S-Expressions
=====================================

Converts an ESTree tree to a canonical S-expression for testing and debugging:

    (Program :sourceType "script"
      :body [(ExpressionStatement :expression (Identifier :name "x"))])

Node kinds and `:field` keywords are sexpdata.Symbol (unquoted); strings are
quoted. Child fields hold nested forms, sequence fields use [...] brackets.
The tree is built bottom-up by the traversal engine: every node collects its
children's forms during descent and assembles its own form in its exit phase.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import sexpdata

from ..shared.nodes import ChildrenFn, Path, discover_children, is_node, iter_fields, node_type
from ..shared.source_location import SourceLocation
from ..traversal.driver import traverse
from .config import (
    DISCRIMINATOR_FIELD,
    END_OFFSET_FIELD,
    INDENT_STRING,
    LOCATION_FIELD,
    MAX_LINE_WIDTH,
    NIL_SYMBOL,
    RANGE_FIELD,
    START_OFFSET_FIELD,
)

_LOCATION_FIELDS = frozenset({LOCATION_FIELD, RANGE_FIELD, START_OFFSET_FIELD, END_OFFSET_FIELD})

# (field key, sequence index) -> serialized child form
_Slots = Dict[Tuple[str, Optional[int]], Any]


def _sym(s: str) -> sexpdata.Symbol:
    """Convert string to symbol (no quotes in output)."""
    return sexpdata.Symbol(s)


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = INDENT_STRING, max_line: int = MAX_LINE_WIDTH) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    if isinstance(sexpr, bool):
        return "true" if sexpr else "false"
    if isinstance(sexpr, (int, float)):
        return str(sexpr)
    # Check Symbol before str (sexpdata.Symbol subclasses str)
    if isinstance(sexpr, sexpdata.Symbol):
        return sexpr.value()
    if isinstance(sexpr, str):
        escaped = sexpr.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(sexpr, sexpdata.Brackets):
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr.I]
        one_line = "[" + " ".join(parts) + "]"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        next_prefix = indent_str * (indent + 1)
        return "[" + ("\n" + next_prefix).join(parts) + "]"
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # Keep each `:key value` pair together on one line
        lines = [parts[0]]
        rest = parts[1:]
        i = 0
        while i < len(rest):
            if rest[i].startswith(":") and i + 1 < len(rest):
                lines.append(f"{next_prefix}{rest[i]} {rest[i + 1]}")
                i += 2
            else:
                lines.append(next_prefix + rest[i])
                i += 1
        return "(" + "\n".join(lines) + f"\n{prefix})"
    return str(sexpr)


class TreeSerializer:
    """
    ESTree to structured S-expression serializer.

    Use as the visitor of a traversal whose initial context is a slot dict;
    the root's form is stored there under key ("root", None).
    """

    def __init__(self, include_location: bool = False, file: Optional[str] = None):
        self.include_location = include_location
        self.file = file

    def __call__(self, node: Any, parent_slots: _Slots, path: Path):
        slots: _Slots = {}
        yield slots
        key = (path[-1].key, path[-1].index) if path else ("root", None)
        parent_slots[key] = self._serialize_node(node, slots)

    def serialize_to_sexpr(self, node: Any, children: ChildrenFn = discover_children) -> Any:
        """Serialize an ESTree tree to structured sexpr (list/Symbol/str)."""
        result: _Slots = {}
        traverse(node, self, result, children=children)
        return result[("root", None)]

    def _serialize_node(self, node: Any, slots: _Slots) -> list:
        form: List[Any] = [_sym(node_type(node))]
        for key, value in iter_fields(node):
            if key == DISCRIMINATOR_FIELD:
                continue
            if key in _LOCATION_FIELDS:
                continue
            form.extend([_sym(f":{key}"), self._serialize_field(key, value, slots)])
        if self.include_location:
            location = SourceLocation.from_node(node, self.file)
            if location is not None:
                form.extend([_sym(":loc"), str(location)])
        return form

    def _serialize_field(self, key: str, value: Any, slots: _Slots) -> Any:
        if is_node(value):
            return slots.get((key, None)) or self._serialize_opaque(value)
        if isinstance(value, (list, tuple)):
            items = []
            for index, element in enumerate(value):
                if is_node(element):
                    items.append(slots.get((key, index)) or self._serialize_opaque(element))
                else:
                    items.append(self._serialize_scalar(element))
            return sexpdata.Brackets(items)
        return self._serialize_scalar(value)

    def _serialize_opaque(self, node: Any) -> list:
        """Node the child strategy did not descend into."""
        return [_sym(node_type(node)), _sym("...")]

    def _serialize_scalar(self, value: Any) -> Any:
        if value is None:
            return _sym(NIL_SYMBOL)
        if isinstance(value, bool):
            return _sym("true" if value else "false")
        if isinstance(value, (int, float, str)):
            return value
        if isinstance(value, Mapping):
            # Non-node records, e.g. regex {pattern, flags} or template {raw, cooked}
            form: List[Any] = []
            for k, v in value.items():
                form.extend([_sym(f":{k}"), self._serialize_scalar(v)])
            return form
        if isinstance(value, (list, tuple)):
            return sexpdata.Brackets([self._serialize_scalar(v) for v in value])
        return str(value)


def serialize_tree(node: Any,
                   include_location: bool = False,
                   pretty: bool = True,
                   file: Optional[str] = None) -> str:
    """
    Serialize an ESTree node to S-expression string.

    Args:
        node: Root node to serialize
        include_location: Append `:loc "file:line:column"` to nodes carrying `loc`
        pretty: Use pretty-printed format (default True). Set False for compact single-line.
        file: File name for locations (default: the node's `loc.source`)

    Returns:
        S-expression string (pretty-printed by default)
    """
    serializer = TreeSerializer(include_location=include_location, file=file)
    sexpr = serializer.serialize_to_sexpr(node)
    if pretty:
        return _pretty_dumps(sexpr)
    return sexpdata.dumps(sexpr)
