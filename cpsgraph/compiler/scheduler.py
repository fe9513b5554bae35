"""
cpsgraph Compiler — Action Scheduler
====================================
Turns the flat list of registered Actions into a Schedule: the explicit
continuation structure the emitter lowers to Python source.

Each Action is classified by its `needs`: the endpoints in its wait-list
that are not compile-time constants:

  ┌──────────────┬────────────────────────────────────────────────────────┐
  │ len(needs)   │ scheduled as                                           │
  ├──────────────┼────────────────────────────────────────────────────────┤
  │ 0            │ root: emitted at top level, in registration order      │
  │ 1            │ continuation: queued on that ValueSlot, emitted nested │
  │              │ inside the code that produces the slot                 │
  │ ≥ 2          │ join: a JoinBarrier is synthesized (see below)         │
  └──────────────┴────────────────────────────────────────────────────────┘

Join synthesis
--------------
An Action waiting on N ≥ 2 slots cannot sit inside any one producer, so
its body is relocated into an actor function and fired by a countdown:

    counter_1 = 2                  # root-level storage
    out_1_1 = None                 # one capture per dependency
    out_2_1 = None

    def arrive_1(value):           # one arrival per dependency
        global counter_1, out_1_1
        out_1_1 = value
        counter_1 -= 1
        if not counter_1:
            actor_1()

    def actor_1():                 # the original body, with every
        ...out_1_1...out_2_1...    # dependency symbol renamed to its capture

and inside each producer's continuation a helper action emits
`arrive_N(<slot symbol>)`.  The actor runs exactly once, after the last
arrival, whatever the arrival order.

Python has no function hoisting, so storage is declared right after the
imports and actor roots are placed ahead of the ordinary roots: every
arrival and actor function exists before any producer can fire.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .endpoints import ValueSlot
from .instance import Action, EmitFn

if TYPE_CHECKING:
    from .emitter import EmitContext
    from .template import TemplateContext

logger = logging.getLogger(__name__)


# ── Join barrier ─────────────────────────────────────────────────────────────

@dataclass(eq=False)
class JoinBarrier:
    """The synthesized rendezvous for one multi-dependency Action."""

    action: Action
    needs: List[ValueSlot]
    counter: str
    actor: str
    captures: List[str]
    arrivals: List[str]
    actor_action: Optional[Action] = None
    helpers: List[Action] = field(default_factory=list)

    @property
    def capture_map(self) -> Dict[str, str]:
        """Dependency slot symbol → capture symbol."""
        return {need.symbol: cap for need, cap in zip(self.needs, self.captures)}

    def declarations(self) -> List[str]:
        lines = [f"{self.counter} = {len(self.needs)}"]
        lines.extend(f"{cap} = None" for cap in self.captures)
        return lines

    def emit_actor(self, es: "EmitContext") -> None:
        for arrival, capture in zip(self.arrivals, self.captures):
            es.emit(f"def {arrival}(value):")
            es.emit(f"    global {self.counter}, {capture}")
            es.emit(f"    {capture} = value")
            es.emit(f"    {self.counter} -= 1")
            es.emit(f"    if not {self.counter}:")
            es.emit(f"        {self.actor}()")
            es.emit("")
        es.emit(f"def {self.actor}():")
        body = es.nested(self.action.instance, "    ", self.capture_map)
        start = len(es.lines)
        self.action.render(body)
        if len(es.lines) == start:
            es.emit("    pass")
        es.emit("")

    def arrival_emitter(self, index: int) -> EmitFn:
        arrival, need = self.arrivals[index], self.needs[index]

        def emit(es: "EmitContext") -> None:
            es.emit(f"{arrival}({es.string(need)})")

        return emit


# ── Schedule ─────────────────────────────────────────────────────────────────

@dataclass
class Schedule:
    template_name: str
    # library name → import symbol, in first-use order
    imports: Dict[str, str] = field(default_factory=dict)
    barriers: List[JoinBarrier] = field(default_factory=list)
    # actor roots first (one per barrier), then ordinary roots in
    # registration order
    roots: List[Action] = field(default_factory=list)


# ── Scheduler ────────────────────────────────────────────────────────────────

class Scheduler:
    def __init__(self, template: "TemplateContext"):
        self.template = template

    def _needs(self, act: Action) -> List[ValueSlot]:
        needs: List[ValueSlot] = []
        for dep in act.wait:
            ref = dep.resolve()
            # A slot waited on twice is still one dependency.
            if not ref.is_const() and not any(ref is n for n in needs):
                needs.append(ref)
        return needs

    def _join(self, act: Action, needs: List[ValueSlot]) -> JoinBarrier:
        tpl = self.template
        barrier = JoinBarrier(
            action=act,
            needs=needs,
            counter=tpl.uid("counter"),
            actor=tpl.uid("actor"),
            captures=[tpl.uid(need.symbol) for need in needs],
            arrivals=[tpl.uid("arrive") for _ in needs],
        )
        barrier.actor_action = Action(act.instance, [], barrier.emit_actor)
        for index, need in enumerate(needs):
            helper = Action(act.instance, [need], barrier.arrival_emitter(index), needs=[need])
            need.queued.append(helper)
            barrier.helpers.append(helper)
        return barrier

    def build(self) -> Schedule:
        """Classify every registered Action and return the resulting Schedule."""
        barriers: List[JoinBarrier] = []
        roots: List[Action] = []

        for act in self.template.acts:
            needs = self._needs(act)
            act.needs = needs
            if not needs:
                logger.debug("root action in %s", act.instance.where)
                roots.append(act)
            elif len(needs) == 1:
                logger.debug(
                    "action in %s queued against %s", act.instance.where, needs[0].path(),
                )
                needs[0].queued.append(act)
            else:
                logger.debug(
                    "action in %s joins %d dependencies: %s",
                    act.instance.where, len(needs), ", ".join(n.symbol for n in needs),
                )
                barriers.append(self._join(act, needs))

        return Schedule(
            template_name=self.template.name,
            imports=self.template.imports,
            barriers=barriers,
            roots=[b.actor_action for b in barriers] + roots,
        )


__all__ = ["JoinBarrier", "Schedule", "Scheduler"]
