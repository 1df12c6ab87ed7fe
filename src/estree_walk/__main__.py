"""CLI entry point: run `estree-walk tree.json` or `python -m estree_walk tree.json`.

The input is an ESTree tree serialized as JSON by an external parser, e.g.
`acorn --ecma2022 --locations app.js > tree.json`.
"""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .shared.errors import TraversalError
from .shared.nodes import node_type
from .utils.config import DEFAULT_FILE_ENCODING, use_color


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .analysis.scopes import collect_scopes, unresolved_references
    from .utils.serialization import serialize_tree
    from .utils.stats import collect_stats

    parser = argparse.ArgumentParser(prog="estree-walk", description="Walk an ESTree JSON tree and report on it.")
    parser.add_argument("file", type=Path, help="Path to an ESTree tree serialized as JSON")
    parser.add_argument("--dump", action="store_true", help="Print the tree as an S-expression")
    parser.add_argument("--locations", action="store_true", help="Include source locations in --dump output")
    parser.add_argument("--compact", action="store_true", help="Single-line --dump output")
    parser.add_argument("--scopes", action="store_true", help="Print lexical scopes and unresolved references")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    path = args.file.resolve()
    if not path.is_file():
        sys.stderr.write(f"estree-walk: error: file not found: {path}\n")
        return 1

    try:
        tree = json.loads(path.read_text(encoding=DEFAULT_FILE_ENCODING))
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"estree-walk: error: could not read file: {e}\n")
        return 1
    except json.JSONDecodeError as e:
        sys.stderr.write(f"estree-walk: error: invalid JSON: {e}\n")
        return 1

    try:
        if args.dump:
            print(serialize_tree(tree, include_location=args.locations, pretty=not args.compact, file=path.name))
        elif args.scopes:
            module = collect_scopes(tree)
            for scope in module.walk():
                names = ", ".join(scope.declarations) or "-"
                print(f"{'  ' * scope.depth}{scope.kind} {node_type(scope.node)}: {names}")
            unresolved = unresolved_references(tree)
            if unresolved:
                print("unresolved: " + ", ".join(sorted({ref.name for ref in unresolved})))
        else:
            print(collect_stats(tree).format())
    except TraversalError as e:
        sys.stderr.write(e.format(color=use_color()) + "\n")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
