from typing import TYPE_CHECKING

from .catalog import registry

if TYPE_CHECKING:
    from ..compiler.emitter import EmitContext
    from ..compiler.instance import InstanceContext


@registry.register("ParseJSON")
def parse_json(cs: "InstanceContext") -> None:
    json = cs.imports("json")
    inp = cs.input("in", "text")
    out = cs.output("out", "json")

    def emit(es: "EmitContext") -> None:
        es.emit(f"{out.symbol} = {json}.loads({es.string(inp)})")
        es.emit_triggered(out, "")

    cs.action([inp], emit)


@registry.register("EncodeJSON")
def encode_json(cs: "InstanceContext") -> None:
    json = cs.imports("json")
    inp = cs.input("in", "json")
    out = cs.output("out", "text")

    def emit(es: "EmitContext") -> None:
        es.emit(f"{out.symbol} = {json}.dumps({es.string(inp)})")
        es.emit_triggered(out, "")

    cs.action([inp], emit)
