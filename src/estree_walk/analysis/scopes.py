"""
Lexical Scope Analysis

Scopes are threaded through the traversal as the context: a node that opens a
scope yields a fresh child `Scope`, so everything below it (and nothing beside
it) sees that scope. No scope stack is kept; the driver's context propagation
is the stack.

Scope-opening nodes:
- module: the traversal root
- function: FunctionDeclaration, FunctionExpression, ArrowFunctionExpression
- block: BlockStatement (except a function's own body), for/for-in/for-of,
  switch, catch, class static blocks

`var` bindings hoist to the nearest function or module scope; everything else
is declared where it appears. References are resolved after the walk so that
hoisted declarations that appear later in the source are visible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..shared.nodes import Path, get_field, is_node, node_type, parent_of
from ..traversal.driver import traverse
from ..traversal.visitor import NO_OVERRIDE

logger = logging.getLogger(__name__)

MODULE_SCOPE = "module"
FUNCTION_SCOPE = "function"
BLOCK_SCOPE = "block"

FUNCTION_NODES = frozenset({"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"})
BLOCK_NODES = frozenset({
    "BlockStatement", "ForStatement", "ForInStatement", "ForOfStatement",
    "SwitchStatement", "CatchClause", "StaticBlock",
})
IMPORT_SPECIFIERS = frozenset({"ImportSpecifier", "ImportDefaultSpecifier", "ImportNamespaceSpecifier"})

# (parent type, key) pairs where a non-computed Identifier is a name, not a reference
_NAME_POSITIONS = frozenset({
    ("MemberExpression", "property"),
    ("Property", "key"),
    ("MethodDefinition", "key"),
    ("PropertyDefinition", "key"),
    ("LabeledStatement", "label"),
    ("BreakStatement", "label"),
    ("ContinueStatement", "label"),
    ("ImportSpecifier", "imported"),
    ("ExportSpecifier", "exported"),
    ("ExportAllDeclaration", "exported"),
    ("MetaProperty", "meta"),
    ("MetaProperty", "property"),
})


@dataclass(eq=False)
class Scope:
    """One lexical scope. Declarations keep source order."""
    kind: str
    node: Any
    parent: Optional[Scope] = None
    declarations: Dict[str, Any] = field(default_factory=dict)
    children: List[Scope] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.parent is not None:
            self.parent.children.append(self)

    @property
    def depth(self) -> int:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return depth

    def declare(self, name: str, node: Any) -> None:
        """Declare a name in this scope; the first declaration wins."""
        self.declarations.setdefault(name, node)

    def resolve(self, name: str) -> Optional[Scope]:
        """Innermost scope declaring `name`, checking this scope then its parents (shadowing)."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.declarations:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Optional[Any]:
        """Declaring node for `name`, or None if it is not declared in any enclosing scope."""
        scope = self.resolve(name)
        return scope.declarations[name] if scope is not None else None

    def function_scope(self) -> Scope:
        """Nearest enclosing function or module scope (the target of `var` hoisting)."""
        scope = self
        while scope.kind == BLOCK_SCOPE and scope.parent is not None:
            scope = scope.parent
        return scope

    def walk(self) -> Iterator[Scope]:
        """This scope and all nested scopes, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


def binding_identifiers(pattern: Any) -> List[Any]:
    """Identifier nodes bound by a declaration pattern, in source order."""
    if not is_node(pattern):
        return []
    kind = node_type(pattern)
    if kind == "Identifier":
        return [pattern]
    if kind == "ObjectPattern":
        found: List[Any] = []
        for prop in get_field(pattern, "properties") or ():
            if is_node(prop) and node_type(prop) == "RestElement":
                found.extend(binding_identifiers(get_field(prop, "argument")))
            else:
                found.extend(binding_identifiers(get_field(prop, "value")))
        return found
    if kind == "ArrayPattern":
        found = []
        for element in get_field(pattern, "elements") or ():
            found.extend(binding_identifiers(element))
        return found
    if kind == "RestElement":
        return binding_identifiers(get_field(pattern, "argument"))
    if kind == "AssignmentPattern":
        return binding_identifiers(get_field(pattern, "left"))
    return []


class ScopeTracker:
    """
    Generator visitor that threads `Scope` objects through a traversal.

    Subclasses hook in through `enter_node` / `exit_node`, which receive the
    scope the node lives in (for scope-opening nodes: the scope they open).

    Usage:
        class FunctionCounter(ScopeTracker):
            def enter_node(self, node, scope, path):
                ...

        module = FunctionCounter().run(tree)
    """

    def __init__(self) -> None:
        # id() -> Identifier node in binding position; the node is held so its id stays unique
        self._bindings: Dict[int, Any] = {}

    def reset(self) -> None:
        """Drop per-walk state. Called at the start of every `run`."""
        self._bindings = {}

    def run(self, root: Any) -> Scope:
        """Traverse `root` and return its module scope."""
        self.reset()
        module = Scope(MODULE_SCOPE, root)
        traverse(root, self, module)
        return module

    def __call__(self, node: Any, scope: Scope, path: Path):
        kind = self.scope_kind(node, path)
        inner = Scope(kind, node, parent=scope) if kind is not None else scope
        self.declare(node, scope, inner)
        self.enter_node(node, inner, path)
        yield inner if kind is not None else NO_OVERRIDE
        self.exit_node(node, inner, path)

    def scope_kind(self, node: Any, path: Path) -> Optional[str]:
        """Kind of scope `node` opens, or None."""
        kind = node_type(node)
        if kind in FUNCTION_NODES:
            return FUNCTION_SCOPE
        if kind in BLOCK_NODES:
            parent = parent_of(path)
            if kind == "BlockStatement" and is_node(parent) and node_type(parent) in FUNCTION_NODES:
                return None
            return BLOCK_SCOPE
        return None

    def is_binding(self, node: Any) -> bool:
        """True if `node` was declared as a binding earlier in this walk."""
        return self._bindings.get(id(node)) is node

    def _bind(self, scope: Scope, identifier: Any) -> None:
        self._bindings[id(identifier)] = identifier
        name = get_field(identifier, "name")
        if isinstance(name, str):
            scope.declare(name, identifier)

    def declare(self, node: Any, outer: Scope, inner: Scope) -> None:
        """Record the bindings `node` introduces. `outer` encloses the node, `inner` is its own scope."""
        kind = node_type(node)
        if kind in FUNCTION_NODES:
            name = get_field(node, "id")
            if is_node(name):
                # Declarations bind in the enclosing scope, expressions in their own
                self._bind(outer if kind == "FunctionDeclaration" else inner, name)
            for param in get_field(node, "params") or ():
                for identifier in binding_identifiers(param):
                    self._bind(inner, identifier)
        elif kind == "VariableDeclaration":
            target = outer.function_scope() if get_field(node, "kind") == "var" else outer
            for declarator in get_field(node, "declarations") or ():
                for identifier in binding_identifiers(get_field(declarator, "id")):
                    self._bind(target, identifier)
        elif kind == "ClassDeclaration":
            name = get_field(node, "id")
            if is_node(name):
                self._bind(outer, name)
        elif kind == "ClassExpression":
            name = get_field(node, "id")
            if is_node(name):
                self._bindings[id(name)] = name
        elif kind == "CatchClause":
            for identifier in binding_identifiers(get_field(node, "param")):
                self._bind(inner, identifier)
        elif kind in IMPORT_SPECIFIERS:
            local = get_field(node, "local")
            if is_node(local):
                module = outer
                while module.parent is not None:
                    module = module.parent
                self._bind(module, local)

    def enter_node(self, node: Any, scope: Scope, path: Path) -> None:
        pass

    def exit_node(self, node: Any, scope: Scope, path: Path) -> None:
        pass


@dataclass
class Reference:
    """An Identifier used as a value, with the scope it appears in."""
    name: str
    node: Any
    scope: Scope
    path: Path

    def resolve(self) -> Optional[Scope]:
        return self.scope.resolve(self.name)


class ReferenceCollector(ScopeTracker):
    """Collects every Identifier in reference position."""

    def __init__(self) -> None:
        super().__init__()
        self.references: List[Reference] = []

    def reset(self) -> None:
        super().reset()
        self.references = []

    def enter_node(self, node: Any, scope: Scope, path: Path) -> None:
        if node_type(node) != "Identifier" or self.is_binding(node):
            return
        if path:
            parent = path[-1]
            if (node_type(parent.node), parent.key) in _NAME_POSITIONS and not get_field(parent.node, "computed"):
                return
        name = get_field(node, "name")
        if isinstance(name, str):
            self.references.append(Reference(name, node, scope, path))


def collect_scopes(root: Any) -> Scope:
    """Build the scope tree of an ESTree program. Returns the module scope."""
    module = ScopeTracker().run(root)
    logger.debug(f"Collected {sum(1 for _ in module.walk())} scopes")
    return module


def unresolved_references(root: Any) -> List[Reference]:
    """References whose name is not declared in any enclosing scope (globals, typos)."""
    collector = ReferenceCollector()
    collector.run(root)
    unresolved = [ref for ref in collector.references if ref.resolve() is None]
    logger.debug(
        f"Resolved {len(collector.references) - len(unresolved)} of {len(collector.references)} references"
    )
    return unresolved


def declarations_by_scope(module: Scope) -> List[Tuple[Scope, List[str]]]:
    """(scope, declared names) for every scope, pre-order."""
    return [(scope, list(scope.declarations)) for scope in module.walk()]
