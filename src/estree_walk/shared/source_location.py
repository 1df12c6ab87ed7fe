"""
Source Location (Span)

Reads the optional ESTree `loc` / `range` metadata that parsers attach to nodes.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .nodes import get_field as _field
from ..utils.config import (
    COLUMN_DISPLAY_OFFSET,
    DEFAULT_SOURCE_NAME,
    END_OFFSET_FIELD,
    LOCATION_FIELD,
    RANGE_FIELD,
    START_OFFSET_FIELD,
)


def _position(value: Any) -> Optional[Tuple[int, int]]:
    line = _field(value, "line")
    column = _field(value, "column")
    if isinstance(line, int) and isinstance(column, int):
        return line, column
    return None


def _offsets(node: Any) -> Tuple[int, int]:
    span = _field(node, RANGE_FIELD)
    if isinstance(span, (list, tuple)) and len(span) == 2 and all(isinstance(p, int) for p in span):
        return span[0], span[1]
    start = _field(node, START_OFFSET_FIELD)
    end = _field(node, END_OFFSET_FIELD)
    if isinstance(start, int) and isinstance(end, int):
        return start, end
    return 0, 0


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of an ESTree node.

    - File, line, 1-based column (+ optional byte offsets and end position)
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    @classmethod
    def from_node(cls, node: Any, file: Optional[str] = None) -> Optional["SourceLocation"]:
        """
        Build a location from a node's `loc` (and `range` / `start`+`end`) fields.

        Returns None when the node carries no usable line/column information.
        """
        loc = _field(node, LOCATION_FIELD)
        if loc is None:
            return None
        start_pos = _position(_field(loc, "start"))
        if start_pos is None:
            return None
        end_pos = _position(_field(loc, "end")) or (0, -COLUMN_DISPLAY_OFFSET)
        source = _field(loc, "source")
        if file is None:
            file = source if isinstance(source, str) and source else DEFAULT_SOURCE_NAME
        start, end = _offsets(node)
        return cls(
            file=file,
            line=start_pos[0],
            column=start_pos[1] + COLUMN_DISPLAY_OFFSET,
            start=start,
            end=end,
            end_line=end_pos[0],
            end_column=end_pos[1] + COLUMN_DISPLAY_OFFSET,
        )

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
