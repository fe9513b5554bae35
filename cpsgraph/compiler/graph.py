"""
cpsgraph Compiler — Graph Description
=====================================
Builds the graph to compile by direct calls:

    graph = [
        use("ReadText",   "rd", {"filename": "in.json"}),
        use("ParseJSON",  "jp", {"in": ref("rd.out")}),
        use("EncodeJSON", "je", {"in": ref("jp.out")}),
        use("WriteText",  "wr", {"filename": "out.json", "in": ref("je.out")}),
    ]
    template = build_template(graph)

Plain Python values in an argument map become Literals (see
Literal.of); use ref() for wiring and text()/literal() for explicit
constants.  Order of use-sites does not matter for wiring, only for the
registration order of actions (and therefore root order).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Union

from .endpoints import Literal, Reference
from .errors import GraphFormatError
from .instance import InstanceContext
from .template import Library, TemplateContext

if TYPE_CHECKING:
    from cpsgraph.components.catalog import ComponentRegistry

logger = logging.getLogger(__name__)

Arg = Union[Reference, Literal]

# Tags whose values Literal.of() can infer, so an explicit tag can be checked.
_CHECKED_TAGS = ("text", "number", "boolean")


@dataclass
class UseSite:
    """One use of a component definition: kind, instance id, arguments."""

    kind: str
    id: str
    args: Dict[str, Arg] = field(default_factory=dict)


def ref(name: str) -> Reference:
    return Reference(name)


def text(value: str) -> Literal:
    return Literal("text", value)


def literal(value: Any, type: Optional[str] = None) -> Literal:
    """
    A constant, its type inferred or given explicitly.  An explicit "text",
    "number" or "boolean" tag must match the value; other tags are taken as-is.
    """
    if type is None:
        return Literal.of(value)
    if type in _CHECKED_TAGS and Literal.of(value).type != type:
        raise GraphFormatError(f"literal {value!r} is not a '{type}' value")
    return Literal(type, value)


def use(kind: str, id: str, args: Optional[Mapping[str, Any]] = None) -> UseSite:
    if not kind:
        raise GraphFormatError(f"missing kind for use-site '{id}'")
    if not id:
        raise GraphFormatError(f"missing id for use-site of '{kind}'")
    wrapped: Dict[str, Arg] = {}
    for name, value in (args or {}).items():
        wrapped[name] = value if isinstance(value, Reference) else Literal.of(value)
    return UseSite(kind, id, wrapped)


def build_template(
    graph: Iterable[UseSite],
    registry: Optional["ComponentRegistry"] = None,
    name: str = "main",
    libraries: Optional[Mapping[str, Library]] = None,
) -> TemplateContext:
    """
    Spawn a TemplateContext and, within it, one InstanceContext per use-site.

    Every kind is checked against the registry before any definition runs.
    """
    if registry is None:
        from cpsgraph.components import registry

    sites = list(graph)
    registry.validate(site.kind for site in sites)

    tpl = TemplateContext(name, libraries)
    for site in sites:
        defn = registry.get(site.kind)
        cs = InstanceContext(tpl, site.kind, site.id, site.args)
        tpl.bind_inst(site.id, cs)
        defn(cs)
        for arg in cs.unused_args():
            logger.warning("argument '%s' is not an input of %s", arg, cs.path())

    logger.info("built template '%s' with %d instance(s)", name, len(tpl.instances))
    return tpl


__all__ = ["UseSite", "ref", "text", "literal", "use", "build_template"]
