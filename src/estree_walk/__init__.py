"""
estree_walk: depth-first traversal of ESTree-shaped syntax trees.

    from estree_walk import traverse

    def visitor(node, context, path):
        print("enter", node["type"], len(path))
        yield
        print("exit", node["type"])

    traverse(tree, visitor)
"""

from .shared import (
    ChildEntry, Path, PathEntry, SourceLocation,
    discover_children, format_path, is_node, node_type, parent_of,
    TraversalError, InvalidRootNode, VisitorProtocolViolation,
)
from .traversal import NO_OVERRIDE, CallbackVisitor, TreeWalker, Visitor, traverse

__version__ = "0.1.0"
