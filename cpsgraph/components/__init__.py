"""
Bundled component definitions.

Importing this package registers every definition below into `registry`:

    ReadText    filename                      → out (text)
    WriteText   filename, in, append=False    → path (text)
    StatFile    filename                      → size, modified (number)
    LogText     in
    ConcatText  left, right                   → out (text)
    RelayText   in                            → out (re-export of `in`)
    ParseJSON   in (text)                     → out (json)
    EncodeJSON  in (json)                     → out (text)
"""

from .catalog import ComponentRegistry, registry
from . import files, json_codec, text

__all__ = ["ComponentRegistry", "registry"]
