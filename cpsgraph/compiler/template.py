"""
cpsgraph Compiler — Template Context
====================================
The namespace of one compilation.  Owns:

  - the instance table        id → InstanceContext (ids unique)
  - the unique-symbol counters base name → last suffix used
  - the import table          library name → generated symbol
  - every Binding and Action registered by component definitions
  - after scheduling, the Schedule and its root Actions
  - after emission, the generated source lines

Lifecycle (each step runs exactly once, in order):

    bind_inst() + definition(cs)   per use-site   (graph construction)
    resolve_acts()                                 (scheduler.Scheduler)
    emit_code()                                    (emitter.emit_program)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Set

from .emitter import emit_program
from .endpoints import Binding, Literal, Reference, ValueSlot, is_terminal
from .errors import (
    DuplicateInstanceError,
    InvalidEndpointError,
    ReferenceCycleError,
    TypeMismatchError,
    UnknownFieldError,
    UnknownInstanceError,
)
from .scheduler import Schedule, Scheduler

if TYPE_CHECKING:
    from .instance import Action, InstanceContext

logger = logging.getLogger(__name__)


# ── Runtime libraries ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Library:
    """
    A module the generated program may import.

    `entrypoint`, when set, names a function of the module that the program
    calls under its `__main__` guard once every root statement has run (the
    callback runtime uses it to drain its event loop).
    """

    module: str
    entrypoint: Optional[str] = None


DEFAULT_LIBRARIES: Dict[str, Library] = {
    "fs":   Library("cpsgraph.runtime.fs", entrypoint="run"),
    "json": Library("json"),
}


def _safe_name(name: str) -> str:
    """Convert an arbitrary base name into a Python identifier prefix."""
    safe = re.sub(r"\W", "_", name)
    if not safe or safe[0].isdigit():
        safe = "_" + safe
    return safe


# ── Template context ─────────────────────────────────────────────────────────

class TemplateContext:

    def __init__(self, name: str = "main", libraries: Optional[Mapping[str, Library]] = None):
        self.name = name
        self.libraries: Dict[str, Library] = dict(
            DEFAULT_LIBRARIES if libraries is None else libraries
        )
        self.imports: Dict[str, str] = {}
        self.instances: Dict[str, "InstanceContext"] = {}
        self.bindings: List[Binding] = []
        self.acts: List["Action"] = []
        self.roots: List["Action"] = []
        self.schedule: Optional[Schedule] = None
        self.lines: List[str] = []
        self._uids: Dict[str, int] = {}
        self._resolving: Set[int] = set()
        self._emitted = False
        self._failure: Optional[Exception] = None

    # ── Symbols ───────────────────────────────────────────────────────────

    def uid(self, name: str) -> str:
        """Generate a unique symbol for the output code."""
        base = _safe_name(name)
        n = self._uids.get(base, 0) + 1
        self._uids[base] = n
        return f"{base}_{n}"

    # ── Graph construction ────────────────────────────────────────────────

    def bind_inst(self, id: str, inst: "InstanceContext") -> None:
        if id in self.instances:
            raise DuplicateInstanceError(
                f"duplicate id '{id}' on instance {inst.path()}", path=inst.path(),
            )
        self.instances[id] = inst

    def bind_to(self, name: str, type: str, inst: "InstanceContext", source: Any) -> Binding:
        """Create the Binding for one specific expansion of an input."""
        binding = Binding(name, type, inst, self, source)
        self.bindings.append(binding)
        return binding

    # ── Resolution ────────────────────────────────────────────────────────

    def resolve_path(self, path: Sequence[str]) -> Any:
        """Resolve a reference path fully: terminal endpoint, or an instance for a bare id."""
        return self.resolve_endpoint(self._walk(path))

    def resolve_endpoint(self, value: Any) -> Any:
        if isinstance(value, Binding):
            return self.resolve_binding(value)
        if isinstance(value, Reference):
            return self.resolve_path(value.path)
        return value

    def _walk(self, path: Sequence[str]) -> Any:
        """
        Follow a path up to (but not through) its last hop.

        Intermediate hops are resolved fully; the value of the final field is
        returned as stored, which may be another Binding.  This lets
        resolve_binding() follow Binding → Binding chains iteratively.
        """
        if not path:
            raise UnknownInstanceError("empty reference path")
        target: Any = self.instances.get(path[0])
        if target is None:
            raise UnknownInstanceError(f"no such instance '{path[0]}' in template {self.name}")
        dotted = ".".join(path)
        for i, field in enumerate(path[1:], start=1):
            if i > 1:
                target = self.resolve_endpoint(target)
            fields = getattr(target, "fields", None)
            if fields is None:
                raise UnknownFieldError(
                    f"{target.path()} does not have fields in '{dotted}'", field=field,
                )
            got = fields.get(field)
            if got is None:
                raise UnknownFieldError(
                    f"no such field '{field}' in instance {target.path()}", field=field,
                )
            target = got
        return target

    def _follow(self, binding: Binding, source: Reference) -> Any:
        try:
            return self._walk(source.path)
        except (UnknownInstanceError, UnknownFieldError) as exc:
            if exc.path is not None:
                raise
            # Attribute the dangling reference to the innermost binding using it.
            raise type(exc)(
                f"{exc.message} (reference '{source.name}' from {binding.path()})",
                path=binding.instance.path(), field=binding.field,
            ) from exc

    def resolve_binding(self, binding: Binding) -> Any:
        """
        Resolve a Binding to its terminal endpoint, memoizing every Binding
        passed through on the way.

        Raises ReferenceCycleError when a chain reaches a Binding whose own
        resolution is still in progress, and TypeMismatchError when the
        endpoint's tag differs from a Binding's declared type.
        """
        chain: List[Binding] = []
        target: Any = binding
        try:
            while isinstance(target, Binding):
                if target.resolved is not None:
                    target = target.resolved
                    break
                if id(target) in self._resolving:
                    loop = " -> ".join(b.path() for b in chain + [target])
                    raise ReferenceCycleError(
                        f"reference cycle: {loop}",
                        path=target.instance.path(), field=target.field,
                    )
                self._resolving.add(id(target))
                chain.append(target)
                source = target.source
                if isinstance(source, Reference):
                    target = self._follow(target, source)
                else:
                    target = source
        finally:
            for b in chain:
                self._resolving.discard(id(b))

        if not is_terminal(target):
            found = f"instance {target.path()}" if hasattr(target, "fields") else repr(target)
            failed = chain[-1] if chain else binding
            raise TypeMismatchError(
                f"type mismatch: field '{failed.field}' must be '{failed.type}' "
                f"but found {found} in {failed.instance.path()}",
                path=failed.instance.path(), field=failed.field,
            )

        # Check from the innermost binding outwards so the error names the
        # binding whose declared type actually disagrees.
        for b in reversed(chain):
            if target.type != b.type:
                raise TypeMismatchError(
                    f"type mismatch: field '{b.field}' must be '{b.type}' "
                    f"but found '{target.type}' in {b.instance.path()}",
                    path=b.instance.path(), field=b.field,
                )
            b.resolved = target
        return target

    # ── Scheduling and emission ───────────────────────────────────────────

    def resolve_acts(self) -> Schedule:
        """Resolve every binding, then queue each action as root, continuation or join."""
        if self.schedule is not None:
            return self.schedule
        for binding in self.bindings:
            binding.resolve()
        self.schedule = Scheduler(self).build()
        self.roots = self.schedule.roots
        return self.schedule

    def emit_code(self) -> List[str]:
        """Emit the program once; a failed emission raises again on every later call."""
        if self.schedule is None:
            raise InvalidEndpointError(f"template {self.name} must be scheduled before emission")
        if self._failure is not None:
            raise self._failure
        if not self._emitted:
            try:
                emit_program(self, self.schedule)
            except Exception as exc:
                # Partial output is never kept.
                self.lines.clear()
                self._failure = exc
                raise
            self._emitted = True
        return self.lines

    def source(self) -> str:
        return "\n".join(self.emit_code()) + "\n"


__all__ = ["Library", "DEFAULT_LIBRARIES", "TemplateContext"]
