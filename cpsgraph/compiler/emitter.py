"""
cpsgraph Compiler — Python Source Emitter
=========================================
Lowers a Schedule into the lines of a standalone Python program.

Output structure
----------------
    import cpsgraph.runtime.fs as fs_1         # deduplicated imports
    import json as json_1

    counter_1 = 2                              # join storage, if any
    out_1_1 = None
    …

    def arrive_1(value): …                     # actor roots (joins)
    def actor_1(): …

    def on_read_1(err, out_1):                 # ordinary roots, each
        …                                      # nesting its continuations
    fs_1.read_file('in.json', on_read_1)

    if __name__ == "__main__":                 # library entrypoints
        fs_1.run()

EmitContext
-----------
The environment handed to an Action's emission callback.  It carries the
current indentation prefix and an optional rename map (slot symbol →
capture symbol) so a join body relocated into its actor function reads
captures instead of symbols that are out of scope there.  Triggered
continuations inherit the rename map of the context that triggers them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from .endpoints import Binding, Literal, Mode, ValueSlot
from .errors import InvalidEndpointError, InvalidSlotError, TypeMismatchError, UnknownImportError

if TYPE_CHECKING:
    from .instance import InstanceContext
    from .scheduler import Schedule
    from .template import TemplateContext


# ── Emission context ──────────────────────────────────────────────────────────

class EmitContext:
    """Tracks the action context while emitting code."""

    def __init__(
        self,
        template: "TemplateContext",
        instance: "InstanceContext",
        prefix: str = "",
        renames: Optional[Mapping[str, str]] = None,
    ):
        self.template = template
        self.instance = instance
        self.lines: List[str] = template.lines
        self.prefix = prefix
        self.renames: Dict[str, str] = dict(renames or {})

    def nested(
        self,
        instance: "InstanceContext",
        indent: str,
        renames: Optional[Mapping[str, str]] = None,
    ) -> "EmitContext":
        """A child context one `indent` deeper, extending the rename map."""
        merged = dict(self.renames)
        if renames:
            merged.update(renames)
        return EmitContext(self.template, instance, self.prefix + indent, merged)

    # ── Expressions ───────────────────────────────────────────────────────

    def symbol(self, slot: ValueSlot) -> str:
        return self.renames.get(slot.symbol, slot.symbol)

    def string(self, binding: Any) -> str:
        """Expression text for a bound value."""
        ref = binding.resolve() if isinstance(binding, Binding) else binding
        if isinstance(ref, Literal):
            return repr(ref.value)
        if isinstance(ref, ValueSlot):
            return self.symbol(ref)
        raise InvalidEndpointError(
            f"inappropriate end-point for string(): {ref!r} in {self.instance.path()}",
            path=self.instance.path(),
        )

    def boolean(self, binding: Any) -> str:
        """Expression text for a boolean-typed bound value."""
        ref = binding.resolve() if isinstance(binding, Binding) else binding
        if not isinstance(ref, (Literal, ValueSlot)):
            raise InvalidEndpointError(
                f"inappropriate end-point for boolean(): {ref!r} in {self.instance.path()}",
                path=self.instance.path(),
            )
        if ref.type != "boolean":
            raise TypeMismatchError(
                f"binding must be a boolean value: {ref.path()}", path=self.instance.path(),
            )
        return self.string(ref)

    # ── Statements ────────────────────────────────────────────────────────

    def emit(self, code: str) -> None:
        for line in code.split("\n"):
            self.lines.append(self.prefix + line if line else "")

    def emit_triggered(self, slot: Any, indent: str = "    ") -> int:
        """
        Emit every Action queued on `slot`, `indent` deeper than this context.

        Must be called exactly once, from the code that produces the slot's
        value.  Returns the number of Actions emitted, so a callback body
        left empty can be given a `pass`.
        """
        if not isinstance(slot, ValueSlot) or slot.mode is not Mode.ONCE:
            raise InvalidSlotError(
                f"emit_triggered requires a local slot, got {slot!r} in {self.instance.path()}",
                path=self.instance.path(),
            )
        if slot.triggered:
            raise InvalidSlotError(
                f"{slot.path()} is produced more than once", path=self.instance.path(),
                field=slot.field,
            )
        slot.triggered = True
        for act in slot.queued:
            act.render(self.nested(act.instance, indent))
        return len(slot.queued)


# ── Program assembly ─────────────────────────────────────────────────────────

def _imports(template: "TemplateContext", schedule: "Schedule") -> List[str]:
    lines = []
    for lib, sym in schedule.imports.items():
        lines.append(f"import {template.libraries[lib].module} as {sym}")
    return lines


def _entrypoint(template: "TemplateContext", schedule: "Schedule") -> List[str]:
    calls = []
    for lib, sym in schedule.imports.items():
        entry = template.libraries[lib].entrypoint
        if entry:
            calls.append(f"    {sym}.{entry}()")
    if not calls:
        return []
    return ["", 'if __name__ == "__main__":'] + calls


def emit_program(template: "TemplateContext", schedule: "Schedule") -> List[str]:
    """
    Emit the complete program into `template.lines`.

    Args:
        template: The scheduled TemplateContext.
        schedule: Its Schedule (from Scheduler.build()).

    Returns:
        The template's line list.
    """
    lines = template.lines
    if schedule.imports:
        lines.extend(_imports(template, schedule))
        lines.append("")

    if schedule.barriers:
        for barrier in schedule.barriers:
            lines.extend(barrier.declarations())
        lines.append("")

    declared = len(schedule.imports)
    for act in schedule.roots:
        act.render(EmitContext(template, act.instance, ""))
    if len(schedule.imports) != declared:
        late = list(schedule.imports)[declared:]
        raise UnknownImportError(
            f"import(s) {', '.join(late)} requested during emission; "
            f"declare imports when the component is instantiated"
        )
    _check_all_emitted(template, schedule)

    lines.extend(_entrypoint(template, schedule))
    return lines


def _check_all_emitted(template: "TemplateContext", schedule: "Schedule") -> None:
    """Every action must have been emitted once its roots were walked."""
    pending = [act for act in template.acts if not act.emitted]
    for barrier in schedule.barriers:
        pending.extend(helper for helper in barrier.helpers if not helper.emitted)
    if not pending:
        return
    act = pending[0]
    # A slot nothing produces, e.g. two actions each waiting on the other.
    unproduced = next((n for n in act.needs or [] if not n.triggered), None)
    what = unproduced.path() if unproduced is not None else "a dependency"
    raise InvalidSlotError(
        f"action in {act.instance.path()} never runs: {what} is never produced "
        f"({len(pending)} action(s) left unemitted)",
        path=act.instance.path(),
        field=unproduced.field if unproduced is not None else None,
    )


__all__ = ["EmitContext", "emit_program"]
