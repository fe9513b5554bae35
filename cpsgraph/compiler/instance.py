"""
cpsgraph Compiler — Instance Context
====================================
The API a component definition sees while it is being expanded at one
use-site.  A definition is an ordinary function:

    @registry.register("ParseJSON")
    def parse_json(cs: InstanceContext) -> None:
        json = cs.imports("json")
        inp  = cs.input("in", "text")
        out  = cs.output("out", "json")

        def emit(es):
            es.emit(f"{out.symbol} = {json}.loads({es.string(inp)})")
            es.emit_triggered(out, "")

        cs.action([inp], emit)

Nothing is emitted while the definition runs: inputs become Bindings,
outputs become ValueSlots, and actions are queued on the template for
scheduling once every instance exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Set, Union

from .endpoints import Binding, Literal, Reference, ValueSlot
from .errors import InvalidEndpointError, MissingFieldError, UnknownImportError

if TYPE_CHECKING:
    from .emitter import EmitContext
    from .template import TemplateContext

logger = logging.getLogger(__name__)

Waitable = Union[Binding, ValueSlot, Literal]
EmitFn = Callable[["EmitContext"], None]


# ── Action ───────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Action:
    """A unit of code emission, gated on the endpoints in `wait`."""

    instance: "InstanceContext"
    wait: List[Waitable]
    emit: EmitFn
    # Filled in by the scheduler: the non-constant endpoints of `wait`.
    needs: Optional[List[ValueSlot]] = field(default=None)
    emitted: bool = field(default=False)

    def render(self, es: "EmitContext") -> None:
        self.emitted = True
        self.emit(es)


# ── Instance context ─────────────────────────────────────────────────────────

class InstanceContext:
    """One use-site of a component definition inside a template."""

    def __init__(
        self,
        template: "TemplateContext",
        kind: str,
        id: str,
        args: Optional[Mapping[str, Union[Reference, Literal]]] = None,
    ):
        self.template = template
        self.kind = kind
        self.id = id
        self.args: Dict[str, Union[Reference, Literal]] = dict(args or {})
        self.fields: Dict[str, Union[ValueSlot, Binding]] = {}
        self.where = f"{kind}:{id}"
        self._consumed: Set[str] = set()

    def path(self) -> str:
        return f"{self.where} in {self.template.name}"

    # ── Symbols and imports ───────────────────────────────────────────────

    def imports(self, name: str) -> str:
        """Import a runtime library once per template; returns its symbol."""
        template = self.template
        sym = template.imports.get(name)
        if sym:
            return sym
        if name not in template.libraries:
            raise UnknownImportError(f"unknown import '{name}' in {self.path()}", path=self.path())
        sym = template.uid(name)
        template.imports[name] = sym
        logger.debug("import %s as %s (first used by %s)", name, sym, self.where)
        return sym

    def uid(self, name: str) -> str:
        """Unique name for a local function or private symbol."""
        return self.template.uid(name)

    # ── Fields ────────────────────────────────────────────────────────────

    def input(self, name: str, type: str, default: Any = None) -> Binding:
        """Declare a typed input; `default` is used when the argument is omitted."""
        source = self.args.get(name)
        if source is None:
            if default is None:
                raise MissingFieldError(
                    f"missing field '{name}' in {self.path()}",
                    path=self.path(), field=name,
                )
            source = Literal.of(default)
        self._consumed.add(name)
        return self.template.bind_to(name, type, self, source)

    def output(self, name: str, type: str) -> ValueSlot:
        """Declare a public output field."""
        slot = ValueSlot(name, type, self.template.uid(name), self)
        self.fields[name] = slot
        return slot

    def slot(self, name: str, type: str) -> ValueSlot:
        """Private state slot: same shape as an output but not addressable."""
        return ValueSlot(name, type, self.template.uid(name), self)

    def forward(self, name: str, binding: Binding) -> Binding:
        """Publish an input binding as a field, so `id.name` resolves through it."""
        self.fields[name] = binding
        return binding

    # ── Actions ───────────────────────────────────────────────────────────

    def action(self, wait: List[Waitable], emit: EmitFn) -> Action:
        """Queue an action in the template, to be scheduled once all instances exist."""
        for dep in wait:
            if not isinstance(dep, (Binding, ValueSlot, Literal)):
                raise InvalidEndpointError(
                    f"action in {self.path()} cannot wait on {dep!r}", path=self.path(),
                )
        act = Action(self, list(wait), emit)
        self.template.acts.append(act)
        logger.debug("action registered in %s waiting on %d endpoint(s)", self.where, len(wait))
        return act

    def unused_args(self) -> List[str]:
        return [name for name in self.args if name not in self._consumed]

    def __repr__(self) -> str:
        return f"InstanceContext({self.where!r})"


__all__ = ["Action", "InstanceContext", "Waitable", "EmitFn"]
