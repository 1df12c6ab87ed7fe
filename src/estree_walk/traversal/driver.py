"""
Traversal Driver

Depth-first walk: pre-order enter, post-order exit.

    visit(node, context, path):
        override = enter(node, context, path)
        child_context = override if present else context
        for each child (in discovery order):
            visit(child, child_context, path + (PathEntry(node, key, index),))
        exit(node, context, path)

Recursion depth equals tree depth. No depth limit is imposed: pathologically
deep trees surface as Python's RecursionError, which callers handle
(e.g. by raising sys.setrecursionlimit).
"""

import logging
from typing import Any, Generic, Optional, TypeVar

from ..shared.errors import InvalidRootNode
from ..shared.nodes import ChildrenFn, Path, PathEntry, discover_children, is_node, node_type
from .visitor import InvocationFactory, has_override, make_invocation_factory

logger = logging.getLogger(__name__)

C = TypeVar('C')


class TreeWalker(Generic[C]):
    """
    Reusable traversal of ESTree-shaped trees with one visitor.

    Each `walk` is independent; counters describe the most recent walk.
    Paths are immutable tuples, so the path a visitor sees is the same object
    in its enter and exit phases regardless of what its descendants do.
    """

    def __init__(self, visitor: Any, children: ChildrenFn = discover_children):
        self._start: InvocationFactory = make_invocation_factory(visitor)
        self._children = children
        self.nodes_visited = 0
        self.max_depth = 0

    def walk(self, root: Any, context: Optional[C] = None) -> None:
        """Traverse the tree under `root`. Visitor exceptions propagate unchanged."""
        if not is_node(root):
            raise InvalidRootNode(root)
        self.nodes_visited = 0
        self.max_depth = 0
        logger.debug(f"Starting traversal at {node_type(root)}")
        try:
            self._visit(root, context, ())
        except BaseException as e:
            logger.debug(
                f"Traversal aborted after {self.nodes_visited} nodes: {type(e).__name__}"
            )
            raise
        logger.debug(
            f"Traversal finished: {self.nodes_visited} nodes visited, max depth {self.max_depth}"
        )

    def _visit(self, node: Any, context: Any, path: Path) -> None:
        self.nodes_visited += 1
        if len(path) > self.max_depth:
            self.max_depth = len(path)

        invocation = self._start(node, context, path)
        override = invocation.enter()
        child_context = override if has_override(override) else context

        try:
            for key, index, child in self._children(node):
                self._visit(child, child_context, path + (PathEntry(node, key, index),))
        except BaseException:
            # Abandon suspended ancestors innermost first; no exit phase runs.
            # The failure that started the abort is the one that propagates.
            try:
                invocation.close()
            except BaseException as close_error:
                logger.debug(
                    f"Ignoring {type(close_error).__name__} while closing visitor "
                    f"for {node_type(node)}: {close_error}"
                )
            raise

        invocation.exit()


def traverse(root: Any,
             visitor: Any,
             context: Optional[C] = None,
             *,
             children: ChildrenFn = discover_children) -> None:
    """
    Walk an ESTree-shaped tree depth-first with a two-phase visitor.

    Args:
        root: Tree root; must be node-shaped (string `type` field)
        visitor: Generator function `(node, context, path)`, a `Visitor`
            instance, or any object with `enter` / `exit` methods
        context: Initial context passed to the root's visitor
        children: Child enumeration strategy (default: reflective discovery)

    Raises:
        InvalidRootNode: root is not node-shaped (no visitor has run)
        VisitorProtocolViolation: a generator visitor yielded twice
        Any exception raised by the visitor, unchanged
    """
    TreeWalker(visitor, children).walk(root, context)
