"""
cpsgraph
========
Compiles a declarative graph of component instances into sequenced,
continuation-passing Python.

    from cpsgraph import compile_graph, use, ref

    source = compile_graph([
        use("ReadText",  "rd", {"filename": "in.json"}),
        use("ParseJSON", "jp", {"in": ref("rd.out")}),
        use("LogText",   "lg", {"in": ref("rd.out")}),
    ])
"""

from .compiler import compile_graph, ref, text, literal, use

__all__ = ["compile_graph", "ref", "text", "literal", "use"]
