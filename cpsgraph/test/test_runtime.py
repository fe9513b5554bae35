from cpsgraph.runtime import fs, loop


def _recorder():
    calls = []

    def callback(*args):
        calls.append(args)

    return calls, callback


class TestLoop:

    def test_defer_runs_on_a_later_iteration(self):
        calls = []
        loop.defer(calls.append, "later")
        assert calls == []
        loop.run()
        assert calls == ["later"]

    def test_submit_passes_the_result(self):
        calls, callback = _recorder()
        loop.submit(lambda: 42, callback)
        loop.run()
        assert calls == [(None, 42)]

    def test_callbacks_can_submit_more_work(self):
        calls, callback = _recorder()
        loop.submit(lambda: 1, lambda err, n: loop.submit(lambda: n + 1, callback))
        loop.run()
        assert calls == [(None, 2)]

    def test_run_with_nothing_pending(self):
        loop.run()


class TestFiles:

    def test_read_file(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("hello", encoding="utf-8")
        calls, callback = _recorder()
        fs.read_file(str(path), callback)
        loop.run()
        assert calls == [(None, "hello")]

    def test_read_missing_file(self, tmp_path):
        calls, callback = _recorder()
        fs.read_file(str(tmp_path / "missing.txt"), callback)
        loop.run()
        ((err, data),) = calls
        assert isinstance(err, FileNotFoundError)
        assert data is None

    def test_read_invalid_utf8(self, tmp_path):
        path = tmp_path / "binary.bin"
        path.write_bytes(b"\xff\xfe\xfa")
        calls, callback = _recorder()
        fs.read_file(str(path), callback)
        loop.run()
        ((err, data),) = calls
        assert isinstance(err, UnicodeDecodeError)
        assert data is None

    def test_write_and_append(self, tmp_path):
        path = tmp_path / "out.txt"
        calls, callback = _recorder()
        fs.write_file(str(path), "a", callback)
        loop.run()
        fs.write_file(str(path), "b", callback, append=True)
        loop.run()
        assert path.read_text(encoding="utf-8") == "ab"
        assert calls == [(None, str(path)), (None, str(path))]

    def test_stat(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("abc", encoding="utf-8")
        calls, callback = _recorder()
        fs.stat(str(path), callback)
        loop.run()
        ((err, size, modified),) = calls
        assert err is None
        assert size == 3
        assert modified > 0

    def test_stat_missing_file(self, tmp_path):
        calls, callback = _recorder()
        fs.stat(str(tmp_path / "missing.txt"), callback)
        loop.run()
        ((err, size, modified),) = calls
        assert isinstance(err, FileNotFoundError)
        assert size is None and modified is None
