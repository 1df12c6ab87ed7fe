"""
Traversal Errors

Only engine-detected conditions live here. Exceptions raised by visitor code
are never wrapped: they reach the `traverse` caller exactly as raised.
"""

from typing import Any, Optional

from .nodes import Path, format_path
from .source_location import SourceLocation
from ..utils.config import (
    GENERIC_TRAVERSAL_ERROR_CODE,
    INVALID_ROOT_NODE_CODE,
    VISITOR_PROTOCOL_VIOLATION_CODE,
)


# ---------------------------------------------------------------------------
# ANSI color helpers
# ---------------------------------------------------------------------------

_BOLD = "\033[1m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_RESET = "\033[0m"


def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ============================================================================
# Exception Classes
# ============================================================================

class TraversalError(Exception):
    """Base exception for all errors detected by the traversal engine"""
    error_code = GENERIC_TRAVERSAL_ERROR_CODE

    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.location = location
        self.path = path

    def format(self, color: bool = False) -> str:
        """
        Render in diagnostic style.

        Example output (plain, no color)::

            error[W0002]: visitor yielded more than once for FunctionDeclaration
             --> app.js:3:1
             at Program.body[2]
        """
        lines = [
            _style(f"error[{self.error_code}]", _BOLD, _RED, color=color)
            + _style(f": {self.message}", _BOLD, color=color)
        ]
        if self.location is not None:
            lines.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(self.location))
        if self.path is not None:
            lines.append(_style(" at ", _BOLD, _BLUE, color=color) + format_path(self.path))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format(color=False)


class InvalidRootNode(TraversalError):
    """The traversal root is not node-shaped; raised before any visitor runs."""
    error_code = INVALID_ROOT_NODE_CODE

    def __init__(self, root: Any):
        super().__init__(
            f"traversal root must be an ESTree node with a string `type` field, "
            f"got {type(root).__name__}"
        )
        self.root = root


class VisitorProtocolViolation(TraversalError):
    """A generator visitor suspended more than once for the same node."""
    error_code = VISITOR_PROTOCOL_VIOLATION_CODE

    def __init__(self, message: str, node: Any, path: Path):
        super().__init__(message, SourceLocation.from_node(node), path)
        self.node = node
