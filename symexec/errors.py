"""Structured error objects for the SYMEXEC engine.

Every error is machine-readable. Fatal conditions are raised as
exceptions that wrap one or more SymexecError records, so the driver can
abort the current unit and still report what went wrong as JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Optional


class ErrorKind(Enum):
    PRECONDITION_VIOLATION = "precondition_violation"
    UNKNOWN_OPERATOR = "unknown_operator"
    REVISIT_REJECTED = "revisit_rejected"
    TRACE_ERROR = "trace_error"


@dataclass
class SymexecError:
    kind: ErrorKind
    message: str
    point: Optional[Hashable] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.point is not None:
            d["point"] = str(self.point)
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.point}" if self.point is not None else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


def precondition_error(
    operation: str,
    message: str,
    point: Optional[Hashable] = None,
    **details: Any,
) -> SymexecError:
    details["operation"] = operation
    return SymexecError(
        kind=ErrorKind.PRECONDITION_VIOLATION,
        message=f"{operation}: {message}",
        point=point,
        details=details,
    )


def unknown_operator_error(op: Any) -> SymexecError:
    return SymexecError(
        kind=ErrorKind.UNKNOWN_OPERATOR,
        message=f"No textual form for operator {op!r}",
        details={"operator": repr(op)},
    )


def revisit_error(point: Hashable, visits: int) -> SymexecError:
    return SymexecError(
        kind=ErrorKind.REVISIT_REJECTED,
        message=f"Program point '{point}' reached again by a different state",
        point=point,
        details={"visits": visits},
    )


def trace_error(message: str, index: Optional[int] = None) -> SymexecError:
    details: dict[str, Any] = {}
    if index is not None:
        details["operation_index"] = index
    return SymexecError(
        kind=ErrorKind.TRACE_ERROR,
        message=message,
        details=details,
    )


class AnalysisError(Exception):
    """Exception wrapping one or more SymexecErrors."""

    def __init__(self, errors: list[SymexecError] | SymexecError):
        if isinstance(errors, SymexecError):
            errors = [errors]
        self.errors = errors
        super().__init__(self._format())

    def _format(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps([e.to_dict() for e in self.errors], indent=indent)


class PreconditionViolation(AnalysisError):
    """Internal-logic error; aborts analysis of the current unit."""


class TraceError(AnalysisError):
    """Malformed operation trace."""
