"""
cpsgraph Compiler — Endpoint Model
==================================
The values an instance input can be wired to.

Terminal endpoints (where every resolution ends):

    Literal     a typed constant           mode = CONST
    ValueSlot   a produce-once output      mode = ONCE

Non-terminal (resolved against a TemplateContext):

    Reference   a dotted path "id.field[.field…]", never cached
    Binding     one declared input of one instance, resolved once and memoized

Type tags are plain strings ("text", "json", "number", "boolean", …) and
are compared by exact equality; there is no coercion.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, List, Optional, Tuple, Union

from .errors import GraphFormatError

if TYPE_CHECKING:
    from .instance import Action, InstanceContext
    from .template import TemplateContext


class Mode(Enum):
    CONST = "const"
    ONCE = "once"


# ── Literal ──────────────────────────────────────────────────────────────────

class Literal:
    """A typed compile-time constant."""

    mode: ClassVar[Mode] = Mode.CONST

    def __init__(self, type: str, value: Any):
        self.type = type
        self.value = value

    @classmethod
    def of(cls, value: Any) -> "Literal":
        """Wrap a plain Python value, inferring its type tag."""
        if isinstance(value, Literal):
            return value
        # bool is a subclass of int, so test it first
        if isinstance(value, bool):
            return cls("boolean", value)
        if isinstance(value, (int, float)):
            return cls("number", value)
        if isinstance(value, str):
            return cls("text", value)
        if isinstance(value, (dict, list)):
            return cls("json", value)
        raise GraphFormatError(f"cannot use {value!r} as a literal value")

    def path(self) -> str:
        return f"literal-{self.type}"

    def resolve(self, template: Optional["TemplateContext"] = None) -> "Literal":
        return self

    def is_const(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Literal({self.type!r}, {self.value!r})"


# ── Value slot ───────────────────────────────────────────────────────────────

class ValueSlot:
    """
    A named output of an instance, produced exactly once in the emitted code.

    `symbol` is the generated variable name holding the value once produced.
    `queued` holds the single-dependency Actions that run as continuations
    of the code producing this slot, in the order they were queued.
    """

    mode: ClassVar[Mode] = Mode.ONCE

    def __init__(self, field: str, type: str, symbol: str, instance: "InstanceContext"):
        self.field = field
        self.type = type
        self.symbol = symbol
        self.instance = instance
        self.queued: List["Action"] = []
        self.triggered = False

    def path(self) -> str:
        return f"value-slot {self.field} in {self.instance.path()}"

    def resolve(self, template: Optional["TemplateContext"] = None) -> "ValueSlot":
        return self

    def is_const(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"ValueSlot({self.symbol!r}, {self.type!r})"


Endpoint = Union[Literal, ValueSlot]


# ── Reference ────────────────────────────────────────────────────────────────

class Reference:
    """An unresolved dotted path naming an instance and (optionally) fields."""

    def __init__(self, name: str):
        path: Tuple[str, ...] = tuple(name.split("."))
        if not name or not all(path):
            raise GraphFormatError(f"malformed reference '{name}'")
        self.name = name
        self.path = path

    def resolve(self, template: "TemplateContext") -> Any:
        # Resolved afresh for every Binding that uses it: a Reference carries
        # no template of its own.
        return template.resolve_path(self.path)

    def __repr__(self) -> str:
        return f"Reference({self.name!r})"


# ── Binding ──────────────────────────────────────────────────────────────────

class Binding:
    """
    One instance input wired to its source, resolved lazily.

    Created by InstanceContext.input() at the use-site; resolved through
    TemplateContext.resolve_binding() during scheduling, then memoized.
    """

    def __init__(
        self,
        field: str,
        type: str,
        instance: "InstanceContext",
        template: "TemplateContext",
        source: Union[Reference, Literal],
    ):
        self.field = field
        self.type = type
        self.instance = instance
        self.template = template
        self.source = source
        self.resolved: Optional[Endpoint] = None

    def path(self) -> str:
        return f"field '{self.field}' in {self.instance.path()}"

    def resolve(self, template: Optional["TemplateContext"] = None) -> Endpoint:
        if self.resolved is not None:
            return self.resolved
        # NB. always our own template, whatever the caller passes in.
        return self.template.resolve_binding(self)

    def is_const(self) -> bool:
        return self.resolve().is_const()

    def __repr__(self) -> str:
        return f"Binding({self.field!r}, {self.type!r}, {self.source!r})"


def is_terminal(value: Any) -> bool:
    return isinstance(value, (Literal, ValueSlot))


__all__ = [
    "Mode",
    "Literal",
    "ValueSlot",
    "Endpoint",
    "Reference",
    "Binding",
    "is_terminal",
]
