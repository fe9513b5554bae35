import pytest

from cpsgraph import compile_graph, ref, use
from cpsgraph.compiler import build_template
from cpsgraph.compiler.errors import InvalidSlotError, UnknownInstanceError
from cpsgraph.components import ComponentRegistry


CHAIN = [
    use("ReadText", "rd", {"filename": "in.json"}),
    use("ParseJSON", "jp", {"in": ref("rd.out")}),
    use("EncodeJSON", "je", {"in": ref("jp.out")}),
    use("WriteText", "wr", {"filename": "out.json", "in": ref("je.out")}),
]

CHAIN_SOURCE = """\
import cpsgraph.runtime.fs as fs_1
import json as json_1

def on_read_1(err, out_1):
    if err:
        raise err
    out_2 = json_1.loads(out_1)
    out_3 = json_1.dumps(out_2)
    def on_write_1(err, path_1):
        if err:
            raise err
    fs_1.write_file('out.json', out_3, on_write_1, append=False)
fs_1.read_file('in.json', on_read_1)

if __name__ == "__main__":
    fs_1.run()
"""

JOIN = [
    use("ReadText", "a", {"filename": "a.txt"}),
    use("ReadText", "b", {"filename": "b.txt"}),
    use("ConcatText", "c", {"left": ref("a.out"), "right": ref("b.out")}),
    use("LogText", "lg", {"in": ref("c.out")}),
]

JOIN_SOURCE = """\
import cpsgraph.runtime.fs as fs_1

counter_1 = 2
out_1_1 = None
out_2_1 = None

def arrive_1(value):
    global counter_1, out_1_1
    out_1_1 = value
    counter_1 -= 1
    if not counter_1:
        actor_1()

def arrive_2(value):
    global counter_1, out_2_1
    out_2_1 = value
    counter_1 -= 1
    if not counter_1:
        actor_1()

def actor_1():
    out_3 = out_1_1 + out_2_1
    print(out_3)

def on_read_1(err, out_1):
    if err:
        raise err
    arrive_1(out_1)
fs_1.read_file('a.txt', on_read_1)
def on_read_2(err, out_2):
    if err:
        raise err
    arrive_2(out_2)
fs_1.read_file('b.txt', on_read_2)

if __name__ == "__main__":
    fs_1.run()
"""


class TestScenarios:

    def test_chain(self):
        source = compile_graph(CHAIN)
        assert source == CHAIN_SOURCE
        compile(source, "<chain>", "exec")

    def test_chain_has_one_root(self):
        tpl = build_template(CHAIN)
        schedule = tpl.resolve_acts()
        assert [act.instance.id for act in schedule.roots] == ["rd"]

    def test_join(self):
        source = compile_graph(JOIN)
        assert source == JOIN_SOURCE
        compile(source, "<join>", "exec")

    def test_literal_only(self):
        source = compile_graph([use("LogText", "lg", {"in": "hello"})])
        assert source == "print('hello')\n"

    def test_literal_escaping(self):
        value = "say \"it's\"\n"
        source = compile_graph([use("LogText", "lg", {"in": value})])
        assert source == "print(" + repr(value) + ")\n"
        compile(source, "<escape>", "exec")

    def test_dangling_reference(self):
        tpl = build_template([use("LogText", "lg", {"in": ref("nope.out")})])
        with pytest.raises(UnknownInstanceError):
            tpl.resolve_acts()
        assert tpl.lines == []

    def test_dangling_reference_through_compile(self):
        with pytest.raises(UnknownInstanceError, match="nope"):
            compile_graph([use("LogText", "lg", {"in": ref("nope.out")})])

    def test_root_order(self):
        source = compile_graph([
            use("LogText", "one", {"in": "one"}),
            use("LogText", "two", {"in": "two"}),
            use("LogText", "three", {"in": "three"}),
        ])
        assert source.splitlines() == ["print('one')", "print('two')", "print('three')"]

    def test_continuations_nest_inside_producer(self):
        source = compile_graph([
            use("ReadText", "rd", {"filename": "a.txt"}),
            use("LogText", "first", {"in": ref("rd.out")}),
            use("LogText", "second", {"in": "between"}),
            use("LogText", "third", {"in": ref("rd.out")}),
        ])
        lines = source.splitlines()
        assert lines.index("    print(out_1)") < lines.index("print('between')")
        assert lines.count("    print(out_1)") == 2

    def test_append_flag(self):
        source = compile_graph([
            use("WriteText", "wr", {"filename": "log.txt", "in": "x", "append": True}),
        ])
        assert "fs_1.write_file('log.txt', 'x', on_write_1, append=True)" in source

    def test_join_inside_a_continuation(self):
        # cc1 runs inside rd's callback; its result then joins rd2.
        source = compile_graph([
            use("ReadText", "rd", {"filename": "a.txt"}),
            use("ReadText", "rd2", {"filename": "b.txt"}),
            use("ConcatText", "cc1", {"left": ref("rd.out"), "right": "!"}),
            use("ConcatText", "cc2", {"left": ref("cc1.out"), "right": ref("rd2.out")}),
            use("LogText", "lg", {"in": ref("cc2.out")}),
        ])
        lines = source.splitlines()
        assert "    out_3 = out_1 + '!'" in lines
        assert "    arrive_1(out_3)" in lines
        assert "    out_4 = out_3_1 + out_2_1" in lines
        compile(source, "<nested>", "exec")

    def test_action_cycle_is_rejected(self):
        # Each action waits on the other's output, so neither can run.
        with pytest.raises(InvalidSlotError, match="is never produced") as exc:
            compile_graph([
                use("ParseJSON", "jp", {"in": ref("je.out")}),
                use("EncodeJSON", "je", {"in": ref("jp.out")}),
                use("LogText", "lg", {"in": ref("je.out")}),
            ])
        assert exc.value.path == "ParseJSON:jp in main"
        assert "value-slot out in EncodeJSON:je in main" in exc.value.message

    def test_action_cycle_beside_a_root_leaves_no_output(self):
        tpl = build_template([
            use("ParseJSON", "jp", {"in": ref("je.out")}),
            use("EncodeJSON", "je", {"in": ref("jp.out")}),
            use("LogText", "lg", {"in": "hi"}),
        ])
        tpl.resolve_acts()
        with pytest.raises(InvalidSlotError):
            tpl.emit_code()
        assert tpl.lines == []

    def test_output_that_is_never_triggered(self):
        registry = ComponentRegistry()

        @registry.register("Silent")
        def silent(cs):
            name = cs.input("name", "text")
            cs.output("out", "text")
            cs.action([name], lambda es: es.emit("pass"))

        @registry.register("Log")
        def log(cs):
            value = cs.input("in", "text")
            cs.action([value], lambda es: es.emit(f"print({es.string(value)})"))

        with pytest.raises(InvalidSlotError, match="value-slot out in Silent:s in main"):
            compile_graph([
                use("Silent", "s", {"name": "x"}),
                use("Log", "lg", {"in": ref("s.out")}),
            ], registry)


class TestDeterminism:

    def test_same_graph_same_text(self):
        assert compile_graph(JOIN) == compile_graph(JOIN)
        assert compile_graph(CHAIN) == compile_graph(CHAIN)


class TestRuntime:

    def test_generated_program_runs(self, tmp_path, capsys):
        (tmp_path / "a.txt").write_text("hello ", encoding="utf-8")
        (tmp_path / "b.txt").write_text("world", encoding="utf-8")
        out = tmp_path / "out.txt"
        source = compile_graph([
            use("ReadText", "a", {"filename": str(tmp_path / "a.txt")}),
            use("ReadText", "b", {"filename": str(tmp_path / "b.txt")}),
            use("ConcatText", "c", {"left": ref("a.out"), "right": ref("b.out")}),
            use("WriteText", "wr", {"filename": str(out), "in": ref("c.out")}),
            use("LogText", "lg", {"in": ref("c.out")}),
        ])
        namespace = {"__name__": "generated"}
        exec(compile(source, "<generated>", "exec"), namespace)
        namespace["fs_1"].run()

        assert out.read_text(encoding="utf-8") == "hello world"
        assert capsys.readouterr().out == "hello world\n"

    def test_read_error_is_raised(self, tmp_path):
        source = compile_graph([
            use("ReadText", "rd", {"filename": str(tmp_path / "missing.txt")}),
            use("LogText", "lg", {"in": ref("rd.out")}),
        ])
        namespace = {"__name__": "generated"}
        exec(compile(source, "<generated>", "exec"), namespace)
        with pytest.raises(FileNotFoundError):
            namespace["fs_1"].run()
