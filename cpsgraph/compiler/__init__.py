"""
cpsgraph Compiler
=================
Lowers a graph of component instances into continuation-passing Python.

Pipeline:
    [UseSite]        →  [graph.build_template]  →  TemplateContext
    TemplateContext  →  [scheduler]             →  Schedule
    Schedule         →  [emitter]               →  Python source str

Public API
----------
    from cpsgraph.compiler import compile_graph, use, ref

    source = compile_graph([
        use("ReadText", "rd", {"filename": "in.txt"}),
        use("LogText",  "lg", {"in": ref("rd.out")}),
    ])
    print(source)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from .document import GraphDocument, load_graph, parse_graph
from .emitter import EmitContext
from .endpoints import Binding, Literal, Reference, ValueSlot
from .errors import CompileError
from .graph import UseSite, build_template, literal, ref, text, use
from .instance import Action, InstanceContext
from .scheduler import JoinBarrier, Schedule
from .template import DEFAULT_LIBRARIES, Library, TemplateContext

if TYPE_CHECKING:
    from cpsgraph.components.catalog import ComponentRegistry


def compile_graph(
    graph: Iterable[UseSite],
    registry: Optional["ComponentRegistry"] = None,
    name: str = "main",
    libraries: Optional[Mapping[str, Library]] = None,
) -> str:
    """
    Compile a component graph into standalone Python source code.

    Args:
        graph:      Use-sites, in registration order.
        registry:   Component definitions; defaults to cpsgraph.components.registry.
        name:       Template name, used in diagnostics.
        libraries:  Library table for `imports()`; defaults to DEFAULT_LIBRARIES.

    Returns:
        Complete Python source as a single string.

    Raises:
        CompileError: On the first resolution, scheduling or emission failure.
    """
    template = build_template(graph, registry, name=name, libraries=libraries)
    template.resolve_acts()
    template.emit_code()
    return template.source()


__all__ = [
    "compile_graph",
    "build_template",
    "use",
    "ref",
    "text",
    "literal",
    "UseSite",
    "GraphDocument",
    "load_graph",
    "parse_graph",
    "TemplateContext",
    "InstanceContext",
    "EmitContext",
    "Action",
    "Binding",
    "Literal",
    "Reference",
    "ValueSlot",
    "JoinBarrier",
    "Schedule",
    "Library",
    "DEFAULT_LIBRARIES",
    "CompileError",
]
