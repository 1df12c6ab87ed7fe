"""
Pytest configuration and shared fixtures for all estree_walk tests.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))
from tests.test_utils import Recorder, declaration_program, function_program


# =============================================================================
# Tree fixtures (function-scoped: visitors may keep references to nodes)
# =============================================================================

@pytest.fixture
def declaration_tree():
    """Program{body:[VariableDeclaration{declarations:[VariableDeclarator{id, init}]}]}"""
    return declaration_program()


@pytest.fixture
def function_tree():
    """A function declaration between two top-level statements."""
    return function_program()


# =============================================================================
# Visitor fixtures
# =============================================================================

@pytest.fixture
def recorder():
    """Fresh recording visitor with no context overrides."""
    return Recorder()
