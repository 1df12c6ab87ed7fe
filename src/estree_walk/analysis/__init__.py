"""
Analyses built on the traversal engine.
"""

from .scopes import (
    Scope, ScopeTracker, Reference, ReferenceCollector,
    binding_identifiers, collect_scopes, declarations_by_scope, unresolved_references,
)
