"""
Visitor Contract

A visitor handles every node in two phases around a single suspension point:

    def visitor(node, context, path):
        new_context = ...           # enter phase, before any child
        yield new_context           # suspension point: children are visited here
        ...                         # exit phase, after all children

The yielded value replaces the context for this node's children only. A bare
`yield` (or yielding None / NO_OVERRIDE) keeps the incoming context. A visitor
that never reaches `yield` has no exit phase; its children still see the
incoming context.

The same protocol is available without generators through `Visitor`
subclasses (`enter` returns the override, `exit` runs after the children).
Both forms are driven through `Invocation`, an explicit enter/exit state
machine, so the driver never has to know which one it was given.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Generator, Generic, Optional, TypeVar, Union

from typing_extensions import Final, TypeAlias

from ..shared.errors import VisitorProtocolViolation
from ..shared.nodes import Path, node_type

logger = logging.getLogger(__name__)

C = TypeVar('C')


class _NoOverride:
    """Sentinel type: the visitor keeps its incoming context for its children."""

    _instance: Optional["_NoOverride"] = None

    def __new__(cls) -> "_NoOverride":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_OVERRIDE"

    def __bool__(self) -> bool:
        return False


NO_OVERRIDE: Final = _NoOverride()


def has_override(value: Any) -> bool:
    """True if a value produced at the suspension point replaces the children's context."""
    return value is not None and value is not NO_OVERRIDE


VisitorGenerator: TypeAlias = Generator[Any, None, Any]
VisitorFunction: TypeAlias = Callable[[Any, Any, Path], Any]


class Visitor(Generic[C]):
    """
    Callback-style visitor with no-op defaults.

    Usage:
        class Counter(Visitor[None]):
            def __init__(self):
                self.count = 0

            def enter(self, node, context, path):
                self.count += 1
    """

    def enter(self, node: Any, context: C, path: Path) -> Optional[C]:
        """Runs before the children. Return a value to override their context."""
        return None

    def exit(self, node: Any, context: C, path: Path) -> None:
        """Runs after all children, with the same context and path as `enter`."""
        return None


class CallbackVisitor(Visitor[C]):
    """Visitor built from two plain functions; either may be omitted."""

    def __init__(self,
                 on_enter: Optional[Callable[[Any, C, Path], Optional[C]]] = None,
                 on_exit: Optional[Callable[[Any, C, Path], None]] = None):
        self._on_enter = on_enter
        self._on_exit = on_exit

    def enter(self, node: Any, context: C, path: Path) -> Optional[C]:
        if self._on_enter is None:
            return None
        return self._on_enter(node, context, path)

    def exit(self, node: Any, context: C, path: Path) -> None:
        if self._on_exit is not None:
            self._on_exit(node, context, path)


# ============================================
# INVOCATION STATE MACHINE
# ============================================

class InvocationState(Enum):
    PENDING = "pending"
    SUSPENDED = "suspended"
    DONE = "done"


class Invocation(ABC):
    """
    One visitor call for one node.

    enter() runs the enter phase and returns the override (or NO_OVERRIDE);
    exit() runs the exit phase at most once; close() abandons a suspended
    invocation without running its exit phase.
    """

    def __init__(self, node: Any, context: Any, path: Path):
        self.node = node
        self.context = context
        self.path = path
        self.state = InvocationState.PENDING

    @abstractmethod
    def enter(self) -> Any:
        raise NotImplementedError(f"{self.__class__.__name__} must implement enter()")

    @abstractmethod
    def exit(self) -> None:
        raise NotImplementedError(f"{self.__class__.__name__} must implement exit()")

    def close(self) -> None:
        self.state = InvocationState.DONE


class _GeneratorInvocation(Invocation):

    def __init__(self, generator: VisitorGenerator, node: Any, context: Any, path: Path):
        super().__init__(node, context, path)
        self._generator = generator

    def enter(self) -> Any:
        try:
            value = next(self._generator)
        except StopIteration:
            self.state = InvocationState.DONE
            logger.debug(f"Visitor finished without suspending at {node_type(self.node)}")
            return NO_OVERRIDE
        self.state = InvocationState.SUSPENDED
        return value

    def exit(self) -> None:
        if self.state is not InvocationState.SUSPENDED:
            return
        self.state = InvocationState.DONE
        try:
            self._generator.send(None)
        except StopIteration:
            return
        self._generator.close()
        raise VisitorProtocolViolation(
            f"visitor yielded more than once for {node_type(self.node)}",
            self.node,
            self.path,
        )

    def close(self) -> None:
        if self.state is InvocationState.SUSPENDED:
            self._generator.close()
        super().close()


class _CallbackInvocation(Invocation):

    def __init__(self, visitor: Visitor, node: Any, context: Any, path: Path):
        super().__init__(node, context, path)
        self._visitor = visitor

    def enter(self) -> Any:
        override = self._visitor.enter(self.node, self.context, self.path)
        self.state = InvocationState.SUSPENDED
        return override

    def exit(self) -> None:
        if self.state is not InvocationState.SUSPENDED:
            return
        self.state = InvocationState.DONE
        self._visitor.exit(self.node, self.context, self.path)


class _EnterOnlyInvocation(Invocation):
    """A plain function already ran to completion: it was its own enter phase."""

    def enter(self) -> Any:
        self.state = InvocationState.DONE
        return NO_OVERRIDE

    def exit(self) -> None:
        return None


InvocationFactory: TypeAlias = Callable[[Any, Any, Path], Invocation]


def make_invocation_factory(visitor: Union[Visitor, VisitorFunction, Any]) -> InvocationFactory:
    """
    Resolve a visitor of any supported form into a factory of invocations.

    Accepted forms: a `Visitor` instance, any object with callable `enter` and
    `exit` attributes, or a callable returning a generator (or nothing).
    """
    if isinstance(visitor, Visitor) or (
        callable(getattr(visitor, "enter", None)) and callable(getattr(visitor, "exit", None))
    ):
        def start_callback(node: Any, context: Any, path: Path) -> Invocation:
            return _CallbackInvocation(visitor, node, context, path)
        return start_callback

    if not callable(visitor):
        raise TypeError(
            f"visitor must be a callable or define enter()/exit(), got {type(visitor).__name__}"
        )

    def start_call(node: Any, context: Any, path: Path) -> Invocation:
        result = visitor(node, context, path)
        if inspect.isgenerator(result):
            return _GeneratorInvocation(result, node, context, path)
        return _EnterOnlyInvocation(node, context, path)
    return start_call
