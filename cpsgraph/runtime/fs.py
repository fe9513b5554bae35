"""
Callback-style file operations for generated programs.

Every callback receives the error (or None) first:

    read_file(path, callback)                  callback(err, text)
    write_file(path, data, callback, append)   callback(err, path)
    stat(path, callback)                       callback(err, size, modified)
"""

import os
from pathlib import Path
from typing import Any, Callable

from .loop import run, submit

__all__ = ["read_file", "write_file", "stat", "run"]


def read_file(path: str, callback: Callable[[Any, Any], None]) -> None:
    submit(lambda: Path(path).read_text(encoding="utf-8"), callback)


def write_file(
    path: str,
    data: str,
    callback: Callable[[Any, Any], None],
    append: bool = False,
) -> None:
    def work() -> str:
        with open(path, "a" if append else "w", encoding="utf-8") as fh:
            fh.write(data)
        return path

    submit(work, callback)


def stat(path: str, callback: Callable[[Any, Any, Any], None]) -> None:
    def work():
        st = os.stat(path)
        return st.st_size, st.st_mtime

    def done(err, result) -> None:
        if err is not None:
            callback(err, None, None)
        else:
            callback(None, *result)

    submit(work, done)
