"""
File components.  Each operation is asynchronous in the generated program:
the component emits a callback definition holding its continuations, then
the runtime call that will invoke it.

    def on_read_1(err, out_1):
        if err:
            raise err
        <continuations of out_1>
    fs_1.read_file('in.txt', on_read_1)
"""

from typing import TYPE_CHECKING

from .catalog import registry

if TYPE_CHECKING:
    from ..compiler.emitter import EmitContext
    from ..compiler.instance import InstanceContext


def _emit_error_check(es: "EmitContext") -> None:
    es.emit("    if err:")
    es.emit("        raise err")


@registry.register("ReadText")
def read_text(cs: "InstanceContext") -> None:
    fs = cs.imports("fs")
    filename = cs.input("filename", "text")
    data = cs.output("out", "text")
    on_read = cs.uid("on_read")

    def emit(es: "EmitContext") -> None:
        es.emit(f"def {on_read}(err, {data.symbol}):")
        _emit_error_check(es)
        es.emit_triggered(data, "    ")
        es.emit(f"{fs}.read_file({es.string(filename)}, {on_read})")

    cs.action([filename], emit)


@registry.register("WriteText")
def write_text(cs: "InstanceContext") -> None:
    fs = cs.imports("fs")
    filename = cs.input("filename", "text")
    data = cs.input("in", "text")
    append = cs.input("append", "boolean", False)
    written = cs.output("path", "text")
    on_write = cs.uid("on_write")

    def emit(es: "EmitContext") -> None:
        es.emit(f"def {on_write}(err, {written.symbol}):")
        _emit_error_check(es)
        es.emit_triggered(written, "    ")
        es.emit(
            f"{fs}.write_file({es.string(filename)}, {es.string(data)}, {on_write}, "
            f"append={es.boolean(append)})"
        )

    cs.action([filename, data, append], emit)


@registry.register("StatFile")
def stat_file(cs: "InstanceContext") -> None:
    # Both outputs are produced by the same callback.
    fs = cs.imports("fs")
    filename = cs.input("filename", "text")
    size = cs.output("size", "number")
    modified = cs.output("modified", "number")
    on_stat = cs.uid("on_stat")

    def emit(es: "EmitContext") -> None:
        es.emit(f"def {on_stat}(err, {size.symbol}, {modified.symbol}):")
        _emit_error_check(es)
        es.emit_triggered(size, "    ")
        es.emit_triggered(modified, "    ")
        es.emit(f"{fs}.stat({es.string(filename)}, {on_stat})")

    cs.action([filename], emit)
