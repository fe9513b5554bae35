from typing import TYPE_CHECKING

from .catalog import registry

if TYPE_CHECKING:
    from ..compiler.emitter import EmitContext
    from ..compiler.instance import InstanceContext


@registry.register("LogText")
def log_text(cs: "InstanceContext") -> None:
    data = cs.input("in", "text")

    def emit(es: "EmitContext") -> None:
        es.emit(f"print({es.string(data)})")

    cs.action([data], emit)


@registry.register("ConcatText")
def concat_text(cs: "InstanceContext") -> None:
    left = cs.input("left", "text")
    right = cs.input("right", "text")
    out = cs.output("out", "text")

    def emit(es: "EmitContext") -> None:
        es.emit(f"{out.symbol} = {es.string(left)} + {es.string(right)}")
        es.emit_triggered(out, "")

    cs.action([left, right], emit)


@registry.register("RelayText")
def relay_text(cs: "InstanceContext") -> None:
    """Re-export an input as `out`; emits no code of its own."""
    cs.forward("out", cs.input("in", "text"))
