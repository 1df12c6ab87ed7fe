#!/usr/bin/env python3
"""
Tests for the traversal driver: visit order, context propagation, paths,
error propagation and the accepted visitor forms.
"""

from types import SimpleNamespace

import pytest

from estree_walk import (
    NO_OVERRIDE, CallbackVisitor, InvalidRootNode, TreeWalker, Visitor,
    VisitorProtocolViolation, discover_children, format_path, node_type, traverse,
)
from estree_walk.shared.nodes import ChildEntry
from estree_walk.traversal.visitor import Invocation
from tests.test_utils import Recorder, ident, literal, node, program, var_decl


class TestTraversalOrder:
    """Pre-order enter, post-order exit"""

    def test_declaration_enter_and_exit_order(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder, None)
        assert recorder.order("enter") == [
            "Program", "VariableDeclaration", "VariableDeclarator", "Identifier", "Literal",
        ]
        assert recorder.order("exit") == [
            "Identifier", "Literal", "VariableDeclarator", "VariableDeclaration", "Program",
        ]
        assert len(recorder.order("enter")) == len(recorder.order("exit")) == 5

    def test_returns_none(self, declaration_tree, recorder):
        assert traverse(declaration_tree, recorder) is None

    def test_counts_match_reachable_nodes(self, function_tree, recorder):
        traverse(function_tree, recorder)
        assert len(recorder.order("enter")) == 15
        assert len(recorder.order("exit")) == 15

    def test_non_node_elements_and_scalars_are_skipped(self, recorder):
        tree = node(
            "ArrayExpression",
            elements=[literal(1), None, "text", 3, {"no": "type"}, ident("x")],
            extra={"loc": "not a node"},
            flag=True,
        )
        traverse(tree, recorder)
        assert recorder.order("enter") == ["ArrayExpression", "Literal", "Identifier"]

    def test_exit_follows_all_descendants(self, function_tree, recorder):
        traverse(function_tree, recorder)
        events = [(e.phase, e.kind, e.depth) for e in recorder.events]
        for i, (phase, kind, depth) in enumerate(events):
            if phase != "exit":
                continue
            # Every event between this node's enter and its exit is deeper
            enter_index = max(
                j for j, (p, k, d) in enumerate(events[:i]) if p == "enter" and k == kind and d == depth
            )
            assert all(d > depth for _, _, d in events[enter_index + 1:i])

    def test_field_order_is_declaration_order(self, recorder):
        tree = node("BinaryExpression", right=ident("b"), operator="+", left=ident("a"))
        traverse(tree, recorder)
        names = [path[-1].key for kind, path in recorder.paths[1:]]
        assert names == ["right", "left"]


class TestContextPropagation:
    """Overrides apply to a node's children only"""

    def test_initial_context_reaches_root(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder, "initial")
        assert recorder.context_of("Program") == "initial"

    def test_no_override_reuses_incoming_context(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder, "initial")
        assert {ctx for _, ctx in recorder.contexts()} == {"initial"}

    def test_function_gets_fresh_context_siblings_keep_original(self, function_tree):
        fresh = object()
        recorder = Recorder(overrides={"FunctionDeclaration": fresh})
        traverse(function_tree, recorder, "root")

        contexts = recorder.contexts()
        start = [kind for kind, _ in contexts].index("FunctionDeclaration")
        end = [kind for kind, _ in contexts].index("ExpressionStatement")

        assert contexts[start] == ("FunctionDeclaration", "root")
        assert all(ctx is fresh for _, ctx in contexts[start + 1:end])
        assert all(ctx == "root" for _, ctx in contexts[:start])
        assert all(ctx == "root" for _, ctx in contexts[end:])

    def test_sibling_override_does_not_leak(self, function_tree):
        recorder = Recorder(overrides={"VariableDeclaration": "decl"})
        traverse(function_tree, recorder, "root")
        assert recorder.context_of("FunctionDeclaration") == "root"
        assert recorder.context_of("ExpressionStatement") == "root"
        # The nested `let b` inherits the function's context then overrides for its own children
        assert recorder.context_of("VariableDeclarator", 1) == "decl"

    def test_exit_phase_sees_incoming_context(self, declaration_tree):
        recorder = Recorder(overrides={"Program": "children"})
        traverse(declaration_tree, recorder, "root")
        exits = dict(recorder.contexts("exit"))
        assert exits["Program"] == "root"
        assert exits["VariableDeclaration"] == "children"

    def test_nested_overrides_stack(self, function_tree):
        recorder = Recorder(overrides={"FunctionDeclaration": "fn", "BlockStatement": "block"})
        traverse(function_tree, recorder, "root")
        assert recorder.context_of("BlockStatement") == "fn"
        assert recorder.context_of("VariableDeclaration", 1) == "block"

    @pytest.mark.parametrize("value", [None, NO_OVERRIDE])
    def test_sentinels_keep_context(self, declaration_tree, value):
        recorder = Recorder(overrides={"Program": value})
        traverse(declaration_tree, recorder, "root")
        assert recorder.context_of("VariableDeclaration") == "root"

    @pytest.mark.parametrize("value", [0, "", False, []])
    def test_falsy_values_are_overrides(self, declaration_tree, value):
        recorder = Recorder(overrides={"Program": value})
        traverse(declaration_tree, recorder, "root")
        assert recorder.context_of("VariableDeclaration") == value

    def test_context_is_passed_by_reference(self, declaration_tree):
        seen = []

        def visitor(node, context, path):
            context.append(node_type(node))
            yield

        traverse(declaration_tree, visitor, seen)
        assert len(seen) == 5


class TestPaths:
    """Ancestry records"""

    def test_root_path_is_empty(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder)
        assert recorder.paths[0] == ("Program", ())

    def test_path_length_equals_depth(self, function_tree, recorder):
        traverse(function_tree, recorder)
        for (kind, path), event in zip(recorder.paths, recorder.order("enter")):
            assert kind == event
        depths = [e.depth for e in recorder.events if e.phase == "enter"]
        assert depths == [len(path) for _, path in recorder.paths]
        assert max(depths) == 5

    def test_path_reconstructs_descent_route(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder)
        kind, path = recorder.paths[3]
        assert kind == "Identifier"
        assert [(entry.key, entry.index) for entry in path] == [
            ("body", 0), ("declarations", 0), ("id", None),
        ]
        assert path[0].node is declaration_tree
        assert path[-1].node is declaration_tree["body"][0]["declarations"][0]
        assert format_path(path) == "Program.body[0].declarations[0].id"

    def test_following_entries_lead_back_to_node(self, function_tree):
        def visitor(node, context, path):
            current = path[0].node if path else node
            for entry in path:
                value = current[entry.key]
                current = value[entry.index] if entry.index is not None else value
            assert current is node
            yield

        traverse(function_tree, visitor)

    def test_same_path_object_in_enter_and_exit(self, function_tree):
        class PathChecker(Visitor):
            def __init__(self):
                self.entered = {}
                self.mismatches = 0

            def enter(self, node, context, path):
                self.entered[id(node)] = path

            def exit(self, node, context, path):
                if self.entered[id(node)] is not path:
                    self.mismatches += 1

        checker = PathChecker()
        traverse(function_tree, checker)
        assert checker.mismatches == 0
        assert len(checker.entered) == 15

    def test_paths_are_immutable(self, declaration_tree, recorder):
        traverse(declaration_tree, recorder)
        _, path = recorder.paths[2]
        assert isinstance(path, tuple)
        with pytest.raises(AttributeError):
            path[0].key = "other"


class TestErrors:
    """Invalid roots and visitor failures"""

    @pytest.mark.parametrize("root", [None, 1, "Program", [], {}, {"type": 3}, [{"type": "Program"}]])
    def test_invalid_root(self, root, recorder):
        with pytest.raises(InvalidRootNode) as exc_info:
            traverse(root, recorder)
        assert recorder.events == []
        assert exc_info.value.root is root
        assert "W0001" in str(exc_info.value)

    def test_visitor_failure_propagates_unchanged(self, declaration_tree):
        error = ValueError("boom")
        entered = []

        def visitor(node, context, path):
            entered.append(node_type(node))
            if node_type(node) == "Identifier":
                raise error
            yield

        with pytest.raises(ValueError) as exc_info:
            traverse(declaration_tree, visitor)
        assert exc_info.value is error
        assert entered == ["Program", "VariableDeclaration", "VariableDeclarator", "Identifier"]

    def test_failure_in_exit_phase_aborts(self, declaration_tree):
        events = []

        def visitor(node, context, path):
            kind = node_type(node)
            events.append(("enter", kind))
            yield
            if kind == "Identifier":
                raise RuntimeError("exit failure")
            events.append(("exit", kind))

        with pytest.raises(RuntimeError):
            traverse(declaration_tree, visitor)
        assert events[-1] == ("enter", "Identifier")
        assert ("enter", "Literal") not in events

    def test_suspended_ancestors_are_closed_without_exit(self, declaration_tree):
        events = []

        def visitor(node, context, path):
            kind = node_type(node)
            if kind == "Literal":
                raise KeyError(kind)
            try:
                yield
            except GeneratorExit:
                events.append(("closed", kind))
                raise
            events.append(("exit", kind))

        with pytest.raises(KeyError):
            traverse(declaration_tree, visitor)
        assert events == [
            ("exit", "Identifier"),
            ("closed", "VariableDeclarator"),
            ("closed", "VariableDeclaration"),
            ("closed", "Program"),
        ]

    def test_cleanup_failure_does_not_mask_original_error(self, declaration_tree):
        error = KeyError("Literal")
        closed = []

        def visitor(node, context, path):
            kind = node_type(node)
            if kind == "Literal":
                raise error
            try:
                yield
            finally:
                closed.append(kind)
                if kind == "VariableDeclarator":
                    raise RuntimeError("cleanup failure")

        with pytest.raises(KeyError) as exc_info:
            traverse(declaration_tree, visitor)
        assert exc_info.value is error
        assert closed == ["Identifier", "VariableDeclarator", "VariableDeclaration", "Program"]

    def test_yield_during_close_does_not_mask_original_error(self, declaration_tree):
        error = ValueError("boom")

        def visitor(node, context, path):
            if node_type(node) == "Literal":
                raise error
            try:
                yield
            except GeneratorExit:
                yield

        with pytest.raises(ValueError) as exc_info:
            traverse(declaration_tree, visitor)
        assert exc_info.value is error

    def test_callback_visitor_failure_skips_remaining_exits(self, declaration_tree):
        exits = []

        def on_enter(node, context, path):
            if node_type(node) == "Literal":
                raise LookupError("stop")

        visitor = CallbackVisitor(on_enter, lambda node, context, path: exits.append(node_type(node)))
        with pytest.raises(LookupError):
            traverse(declaration_tree, visitor)
        assert exits == ["Identifier"]

    def test_multiple_yields_violate_protocol(self, declaration_tree):
        entered = []

        def visitor(node, context, path):
            entered.append(node_type(node))
            yield
            if node_type(node) == "Identifier":
                yield

        with pytest.raises(VisitorProtocolViolation) as exc_info:
            traverse(declaration_tree, visitor)
        err = exc_info.value
        assert node_type(err.node) == "Identifier"
        assert len(err.path) == 3
        assert "W0002" in str(err)
        assert "Program.body[0].declarations[0].id" in str(err)
        assert "Literal" not in entered

    def test_protocol_violation_reports_location(self):
        tree = program(node(
            "ExpressionStatement",
            expression=ident("x"),
            loc={"source": "app.js", "start": {"line": 2, "column": 4}, "end": {"line": 2, "column": 6}},
        ))

        def visitor(node, context, path):
            yield
            yield

        with pytest.raises(VisitorProtocolViolation) as exc_info:
            traverse(tree, visitor)
        # The innermost node fails first and has no location
        assert exc_info.value.location is None
        assert node_type(exc_info.value.node) == "Identifier"

    def test_non_callable_visitor_rejected(self, declaration_tree):
        with pytest.raises(TypeError):
            traverse(declaration_tree, 42)


class TestVisitorForms:
    """Generator, enter-only, and callback visitors"""

    def test_plain_function_is_enter_only(self, declaration_tree):
        seen = []

        def visitor(node, context, path):
            seen.append((node_type(node), context))

        traverse(declaration_tree, visitor, "ctx")
        assert [kind for kind, _ in seen] == [
            "Program", "VariableDeclaration", "VariableDeclarator", "Identifier", "Literal",
        ]
        assert all(ctx == "ctx" for _, ctx in seen)

    def test_plain_function_return_value_is_not_an_override(self, declaration_tree):
        seen = []

        def visitor(node, context, path):
            seen.append(context)
            return "ignored"

        traverse(declaration_tree, visitor, "ctx")
        assert set(seen) == {"ctx"}

    def test_generator_finishing_before_yield_still_descends(self, function_tree):
        events = []

        def visitor(node, context, path):
            kind = node_type(node)
            events.append(("enter", kind, context))
            if kind == "FunctionDeclaration":
                return "not an override"
            yield "inner" if kind == "Program" else None
            events.append(("exit", kind))

        traverse(function_tree, visitor, "root")
        kinds = [e[1] for e in events if e[0] == "enter"]
        assert len(kinds) == 15
        assert ("exit", "FunctionDeclaration") not in events
        assert ("exit", "Program") in events
        # Children of the enter-only function keep the function's incoming context
        function_index = kinds.index("FunctionDeclaration")
        assert events[[e[:2] for e in events].index(("enter", "BlockStatement"))][2] == "inner"
        assert function_index > 0

    def test_visitor_subclass(self, declaration_tree):
        class DepthTracker(Visitor[int]):
            def __init__(self):
                self.depths = {}
                self.exited = []

            def enter(self, node, context, path):
                self.depths[node_type(node)] = context
                return context + 1

            def exit(self, node, context, path):
                self.exited.append(node_type(node))

        tracker = DepthTracker()
        traverse(declaration_tree, tracker, 0)
        assert tracker.depths == {
            "Program": 0, "VariableDeclaration": 1, "VariableDeclarator": 2, "Identifier": 3, "Literal": 3,
        }
        assert tracker.exited[-1] == "Program"

    def test_default_visitor_is_noop(self, declaration_tree):
        traverse(declaration_tree, Visitor())

    def test_invocation_base_is_abstract(self):
        with pytest.raises(TypeError):
            Invocation(literal(1), None, ())

        class EnterOnly(Invocation):
            def enter(self):
                return NO_OVERRIDE

        with pytest.raises(TypeError):
            EnterOnly(literal(1), None, ())

    def test_callback_visitor_with_enter_only(self, declaration_tree):
        kinds = []
        traverse(declaration_tree, CallbackVisitor(on_enter=lambda n, c, p: kinds.append(node_type(n))))
        assert len(kinds) == 5

    def test_duck_typed_enter_exit_object(self, declaration_tree):
        calls = []
        visitor = SimpleNamespace(
            enter=lambda n, c, p: calls.append(("enter", node_type(n))),
            exit=lambda n, c, p: calls.append(("exit", node_type(n))),
        )
        traverse(declaration_tree, visitor)
        assert calls[0] == ("enter", "Program")
        assert calls[-1] == ("exit", "Program")
        assert len(calls) == 10

    def test_custom_children_strategy(self, declaration_tree, recorder):
        def skip_initializers(node):
            return [child for child in discover_children(node) if child.key != "init"]

        traverse(declaration_tree, recorder, children=skip_initializers)
        assert "Literal" not in recorder.order("enter")
        assert len(recorder.order("exit")) == 4

    def test_children_strategy_may_be_a_generator(self, recorder):
        tree = node("Wrapper", hidden=ident("x"))

        def reveal(node):
            if node_type(node) == "Wrapper":
                yield ChildEntry("hidden", None, node["hidden"])

        traverse(tree, recorder, children=reveal)
        assert recorder.order("enter") == ["Wrapper", "Identifier"]

    def test_attribute_nodes(self, recorder):
        leaf = SimpleNamespace(type="Identifier", name="x")
        tree = SimpleNamespace(
            type="Program",
            body=[SimpleNamespace(type="ExpressionStatement", expression=leaf)],
        )
        traverse(tree, recorder)
        assert recorder.order("enter") == ["Program", "ExpressionStatement", "Identifier"]
        assert format_path(recorder.paths[-1][1]) == "Program.body[0].expression"


class TestTreeWalker:
    """Reusable walker state"""

    def test_counts_nodes_and_depth(self, function_tree, recorder):
        walker = TreeWalker(recorder)
        walker.walk(function_tree, "ctx")
        assert walker.nodes_visited == 15
        assert walker.max_depth == 5

    def test_counters_reset_between_walks(self, declaration_tree, recorder):
        walker = TreeWalker(recorder)
        walker.walk(declaration_tree)
        walker.walk(program(var_decl("let", "y")))
        # `let y;` has a null init: Program, VariableDeclaration, VariableDeclarator, Identifier
        assert walker.nodes_visited == 4
        assert walker.max_depth == 3

    def test_deep_tree_within_recursion_limit(self, recorder):
        tree = ident("leaf")
        for _ in range(200):
            tree = node("UnaryExpression", operator="-", prefix=True, argument=tree)
        traverse(tree, recorder)
        assert len(recorder.order("enter")) == 201
