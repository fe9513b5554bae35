"""
cpsgraph Compiler — Error Taxonomy
==================================
Every failure in the compiler is fatal: the first error aborts the whole
compilation and no partial output is written.

Each error carries a short ``kind`` tag plus the instance path and field
that caused it, so the CLI can print a one-line diagnostic.

  ┌───────────────────────┬──────────────────────────────────────────────┐
  │ kind                  │ raised when                                  │
  ├───────────────────────┼──────────────────────────────────────────────┤
  │ missing-definition    │ a use-site names an unregistered kind        │
  │ duplicate-instance-id │ two use-sites share an id                    │
  │ missing-field         │ required input has no argument, no default   │
  │ unknown-instance      │ reference names no instance                  │
  │ unknown-field         │ reference names no field on the instance     │
  │ type-mismatch         │ resolved tag differs from the declared type  │
  │ invalid-endpoint      │ emission got something that is not terminal  │
  │ invalid-slot          │ trigger on something not a produce-once slot │
  │ unknown-import        │ component imports an unknown library         │
  │ reference-cycle       │ a binding chain loops back on itself         │
  │ graph-format          │ malformed graph description                  │
  └───────────────────────┴──────────────────────────────────────────────┘
"""

from __future__ import annotations

from typing import Optional


class CompileError(ValueError):
    """Base class for all graph compilation failures."""

    kind = "compile-error"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.field = field

    def diagnostic(self) -> str:
        return f"{self.kind}: {self.message}"


class MissingDefinitionError(CompileError):
    kind = "missing-definition"


class DuplicateInstanceError(CompileError):
    kind = "duplicate-instance-id"


class MissingFieldError(CompileError):
    kind = "missing-field"


class UnknownInstanceError(CompileError):
    kind = "unknown-instance"


class UnknownFieldError(CompileError):
    kind = "unknown-field"


class TypeMismatchError(CompileError):
    kind = "type-mismatch"


class InvalidEndpointError(CompileError):
    kind = "invalid-endpoint"


class InvalidSlotError(CompileError):
    kind = "invalid-slot"


class UnknownImportError(CompileError):
    kind = "unknown-import"


class ReferenceCycleError(CompileError):
    kind = "reference-cycle"


class GraphFormatError(CompileError):
    """Raised when a graph description fails structural validation."""

    kind = "graph-format"


__all__ = [
    "CompileError",
    "MissingDefinitionError",
    "DuplicateInstanceError",
    "MissingFieldError",
    "UnknownInstanceError",
    "UnknownFieldError",
    "TypeMismatchError",
    "InvalidEndpointError",
    "InvalidSlotError",
    "UnknownImportError",
    "ReferenceCycleError",
    "GraphFormatError",
]
