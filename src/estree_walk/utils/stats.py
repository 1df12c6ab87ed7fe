"""
Traversal statistics: node counts per kind and tree depth.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Tuple

from ..shared.nodes import ChildrenFn, Path, discover_children, node_type
from ..traversal.driver import traverse
from ..traversal.visitor import Visitor


@dataclass
class TraversalStats:
    node_count: int = 0
    max_depth: int = 0
    kinds: Counter = field(default_factory=Counter)

    def most_common(self, n: int = 10) -> List[Tuple[str, int]]:
        return self.kinds.most_common(n)

    def format(self) -> str:
        lines = [f"nodes: {self.node_count}", f"max depth: {self.max_depth}"]
        width = max((len(kind) for kind in self.kinds), default=0)
        for kind, count in sorted(self.kinds.items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"  {kind.ljust(width)}  {count}")
        return "\n".join(lines)


class _StatsVisitor(Visitor[None]):

    def __init__(self, stats: TraversalStats):
        self.stats = stats

    def enter(self, node: Any, context: None, path: Path) -> None:
        self.stats.node_count += 1
        self.stats.kinds[node_type(node)] += 1
        if len(path) > self.stats.max_depth:
            self.stats.max_depth = len(path)


def collect_stats(root: Any, children: ChildrenFn = discover_children) -> TraversalStats:
    """Count the nodes reachable from `root` (root included) and the deepest path length."""
    stats = TraversalStats()
    traverse(root, _StatsVisitor(stats), children=children)
    return stats
