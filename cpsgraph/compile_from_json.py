"""
compile_from_json.py — CLI for the cpsgraph compiler
====================================================
Compiles a graph JSON file into a standalone continuation-passing Python
script.

Usage
-----
    cpsgraph-compile <graph.json> [options]
    python -m cpsgraph.compile_from_json <graph.json> [options]

Options
-------
    --out      <dir>          Output directory (default: $CPSGRAPH_OUT_DIR or compiled/)
    --print                   Print the generated source instead of writing a file
    --library  NAME=MODULE    Add or override a runtime library (repeatable)
    --verbose                 Debug logging (default level: $CPSGRAPH_LOG_LEVEL or WARNING)

A `.env` file in the working directory is loaded first, so the two
environment variables can live there.

Any compile error aborts before anything is written.

Examples
--------
    cpsgraph-compile graphs/copy_json.json
    cpsgraph-compile graphs/copy_json.json --print --verbose
    cpsgraph-compile graphs/copy_json.json --library fs=myproject.fakefs
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from cpsgraph.compiler import CompileError, compile_graph, load_graph
from cpsgraph.compiler.template import DEFAULT_LIBRARIES, Library

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cpsgraph-compile",
        description="Compile a component graph JSON file to continuation-passing Python.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "graph_json",
        metavar="graph.json",
        help="Path to the graph JSON file to compile.",
    )
    p.add_argument(
        "--out",
        metavar="DIR",
        default=os.environ.get("CPSGRAPH_OUT_DIR", "compiled"),
        help="Output directory for the compiled .py file.",
    )
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a file.",
    )
    p.add_argument(
        "--library",
        metavar="NAME=MODULE",
        action="append",
        default=[],
        help="Map an import name to a runtime module (repeatable).",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def _graph_name_to_filename(graph_name: str) -> str:
    """Turn 'copy-json' → 'copy_json.py'."""
    safe = graph_name.lower().replace("-", "_").replace(" ", "_")
    return f"{safe}.py"


def _libraries(specs: List[str]) -> Dict[str, Library]:
    libraries = dict(DEFAULT_LIBRARIES)
    for spec in specs:
        name, sep, module = spec.partition("=")
        if not sep or not name or not module:
            raise ValueError(f"--library expects NAME=MODULE, got '{spec}'")
        libraries[name] = Library(module)
    return libraries


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else os.environ.get("CPSGRAPH_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")

    json_path = Path(args.graph_json)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    try:
        libraries = _libraries(args.library)
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    # ── Load, compile ────────────────────────────────────────────────────────
    try:
        document = load_graph(json_path)
        source = compile_graph(
            document.to_graph(),
            name=document.graph_name,
            libraries=libraries,
        )
    except CompileError as exc:
        print(f"[error] {exc.diagnostic()}", file=sys.stderr)
        return 1

    logger.info("compiled %s (%d instance(s))", document.graph_name, len(document.instances))

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        print(source, end="")
        return 0

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / _graph_name_to_filename(document.graph_name)
    out_path.write_text(source, encoding="utf-8")

    print(f"[cpsgraph-compile] wrote  : {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
