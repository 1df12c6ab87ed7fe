"""
Shared components: node shape discovery, ancestry records, locations, errors.
"""

from .source_location import SourceLocation
from .nodes import (
    ChildEntry, ChildrenFn, Path, PathEntry, get_field,
    discover_children, format_path, is_node, iter_fields, node_type, parent_of,
)
from .errors import TraversalError, InvalidRootNode, VisitorProtocolViolation
