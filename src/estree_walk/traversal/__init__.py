"""
Traversal engine: visitor contract and depth-first driver.
"""

from .visitor import (
    NO_OVERRIDE, CallbackVisitor, Invocation, InvocationState, Visitor,
    has_override, make_invocation_factory,
)
from .driver import TreeWalker, traverse
