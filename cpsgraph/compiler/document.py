"""
cpsgraph Compiler — Graph JSON Document
=======================================
Defines the serialisation format for component graphs and loads it into
the use-site list that build_template() consumes.

Canonical JSON format
---------------------

    {
      "graph_name": "copy-json",                     // human label (str, optional)
      "instances": [
        {
          "kind": "ReadText",                        // registered kind (str, required)
          "id":   "rd",                              // unique in this graph (str, required)
          "args": { "filename": "in.json" }          // input → value (object, optional)
        },
        {
          "kind": "ParseJSON",
          "id":   "jp",
          "args": { "in": { "ref": "rd.out" } }      // wiring to another instance
        }
      ]
    }

Argument values
---------------
  { "ref": "id.field" }                 → Reference
  { "literal": <value>, "type": "tag" } → Literal with an explicit type tag
  anything else                         → Literal, type inferred from the value
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .endpoints import Literal, Reference
from .errors import GraphFormatError
from .graph import UseSite, literal, ref, use


# ── Models ────────────────────────────────────────────────────────────────────

class UseSiteModel(BaseModel):
    kind: str = Field(min_length=1)
    id: str = Field(min_length=1)
    args: Dict[str, Any] = Field(default_factory=dict)


class GraphDocument(BaseModel):
    graph_name: str = "main"
    instances: List[UseSiteModel]

    def to_graph(self) -> List[UseSite]:
        return [
            use(site.kind, site.id, {name: _arg(value) for name, value in site.args.items()})
            for site in self.instances
        ]


def _arg(value: Any) -> Union[Reference, Literal]:
    if isinstance(value, dict) and set(value) == {"ref"}:
        if not isinstance(value["ref"], str):
            raise GraphFormatError(f"reference must be a string, got {value['ref']!r}")
        return ref(value["ref"])
    if isinstance(value, dict) and "literal" in value and set(value) <= {"literal", "type"}:
        return literal(value["literal"], value.get("type"))
    return Literal.of(value)


# ── Loading ──────────────────────────────────────────────────────────────────

def parse_graph(data: Mapping[str, Any]) -> GraphDocument:
    """
    Validate a parsed graph JSON dict.

    Raises:
        GraphFormatError: On any structural violation.
    """
    try:
        return GraphDocument.model_validate(data)
    except ValidationError as exc:
        raise GraphFormatError(f"invalid graph document: {exc}") from exc


def load_graph(path: Union[str, Path]) -> GraphDocument:
    """
    Load and validate a graph JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        GraphFormatError: If the file is not valid JSON or not a valid graph.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise GraphFormatError(f"{path}: not valid JSON: {exc}") from exc
    return parse_graph(data)


__all__ = ["UseSiteModel", "GraphDocument", "parse_graph", "load_graph"]
