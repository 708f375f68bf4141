"""
ptb.errors — exceptions for block construction, resolution and classification.

Failures the caller can do something about are raised as *typed exceptions* that carry a
stable machine code and JSON-safe details. Engine-side failures are different: a block
that aborts or runs out of gas is a normal outcome and is reported as a value
(`ptb.types.result.ExecutionError`) on the `ExecutionResult`, never raised.

Hierarchy
---------
PtbError (base)
 ├─ ConstructionError     : detected synchronously while building; never reaches the engine
 │   ├─ InvalidIdentifier : malformed object id / address literal
 │   ├─ TypeTagError      : malformed type tag string
 │   ├─ CodecError        : value cannot be BCS-encoded (range, type)
 │   └─ ValidationError   : bad argument reference or block shape
 │        ├─ MissingVersion : Shared / MutRef input without a pinned version
 │        └─ StaleVersion   : pinned version lower than the last known one
 ├─ ResolutionError       : referenced entity has no snapshot in the object store
 │   └─ ObjectNotFound
 ├─ ClassificationError   : a hint matched nothing (caller-side logic bug)
 ├─ ExecutionFailed       : raised only by ExecutionResult.raise_for_status()
 ├─ OutOfGas              : simulated engine ran out of gas (becomes a failure result)
 ├─ StateConflict         : journal write collided with existing state
 ├─ TraceFormatError      : persisted trace document does not match the schema
 └─ MoveAbort             : raised by simulated entry functions to abort a block

These classes import nothing from the rest of the package so they can be used from
low-level modules (ids, codec, journal) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class PtbError(Exception):
    """
    Base error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'INPUT_OUT_OF_RANGE', 'OBJECT_NOT_FOUND').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "ptb error"
    code: str = "PTB_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for traces and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


# -------- construction --------------------------------------------------------


class ConstructionError(PtbError):
    """Anything wrong with a block that is detectable before submission."""
    def __init__(
        self,
        message: str = "invalid construction",
        *,
        code: str = "CONSTRUCTION_ERROR",
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, data=data)


class InvalidIdentifier(ConstructionError):
    def __init__(self, message: str = "invalid identifier", *, value: Any = None):
        super().__init__(
            message,
            code="INVALID_IDENTIFIER",
            data=_details(None, value=None if value is None else repr(value)),
        )


class TypeTagError(ConstructionError):
    def __init__(self, message: str = "invalid type tag", *, tag: Optional[str] = None):
        super().__init__(message, code="TYPE_TAG_ERROR", data=_details(None, tag=tag))


class CodecError(ConstructionError):
    def __init__(self, message: str = "cannot encode value", *, kind: Optional[str] = None):
        super().__init__(message, code="CODEC_ERROR", data=_details(None, kind=kind))


class ValidationError(ConstructionError):
    """
    A block failed validation. Only the *first* offending reference is reported.

    Optional fields:
        command_index:     index of the command holding the bad argument (if any)
        argument_position: position of the bad argument inside that command (if any)
        input_index:       index of the offending input (for input-level checks)
    """
    def __init__(
        self,
        message: str = "invalid block",
        *,
        code: str = "INVALID_BLOCK",
        command_index: Optional[int] = None,
        argument_position: Optional[int] = None,
        input_index: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            code=code,
            data=_details(
                data,
                command_index=command_index,
                argument_position=argument_position,
                input_index=input_index,
            ),
        )
        self.command_index = command_index
        self.argument_position = argument_position
        self.input_index = input_index


class MissingVersion(ValidationError):
    def __init__(
        self,
        message: str = "shared and mutable-reference inputs must carry a version",
        *,
        object_id: Optional[str] = None,
        input_index: Optional[int] = None,
    ):
        super().__init__(
            message,
            code="MISSING_VERSION",
            input_index=input_index,
            data=_details(None, object_id=object_id),
        )
        self.object_id = object_id


class StaleVersion(ValidationError):
    def __init__(
        self,
        message: str = "input version is older than the last known version",
        *,
        object_id: Optional[str] = None,
        version: Optional[int] = None,
        known_version: Optional[int] = None,
        input_index: Optional[int] = None,
    ):
        super().__init__(
            message,
            code="STALE_VERSION",
            input_index=input_index,
            data=_details(None, object_id=object_id, version=version, known_version=known_version),
        )
        self.object_id = object_id
        self.version = version
        self.known_version = known_version


# -------- resolution ----------------------------------------------------------


class ResolutionError(PtbError):
    def __init__(
        self,
        message: str = "resolution failed",
        *,
        code: str = "RESOLUTION_ERROR",
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, data=data)


class ObjectNotFound(ResolutionError):
    def __init__(self, message: str = "object not found", *, object_id: Optional[str] = None):
        super().__init__(message, code="OBJECT_NOT_FOUND", data=_details(None, object_id=object_id))
        self.object_id = object_id


# -------- classification / execution -----------------------------------------


class ClassificationError(PtbError):
    """
    The requested entity is not among the block's effects.

    This signals a caller-side bug (asking for a type the command never produces),
    not a transient condition; do not retry.
    """
    def __init__(self, message: str = "no created object matches", *, hint: Optional[str] = None):
        super().__init__(message=message, code="CLASSIFICATION_ERROR", data=_details(None, hint=hint))
        self.hint = hint


class ExecutionFailed(PtbError):
    """Raised on demand for a failed ExecutionResult; carries the engine's error untouched."""
    def __init__(self, message: str = "execution failed", *, error: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="EXECUTION_FAILED", data=_details(None, error=error))


class OutOfGas(PtbError):
    """
    Gas budget exhausted inside the simulated engine.

    Never escapes an engine: it is converted into an OUT_OF_GAS failure result.
    """
    def __init__(self, message: str = "out of gas", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="OUT_OF_GAS", data=data)


class StateConflict(PtbError):
    """A journal write collided with existing state (e.g., creating an id that already exists)."""
    def __init__(self, message: str = "state conflict", *, object_id: Optional[str] = None):
        super().__init__(message=message, code="STATE_CONFLICT", data=_details(None, object_id=object_id))
        self.object_id = object_id


class TraceFormatError(PtbError):
    """A trace document does not match the persisted schema."""
    def __init__(self, message: str = "malformed trace document", *, path: Optional[str] = None):
        super().__init__(message=message, code="TRACE_FORMAT", data=_details(None, path=path))
        self.path = path


class MoveAbort(PtbError):
    """
    Abort raised by an entry function running inside the simulated engine.

    Attributes:
        abort_code: numeric abort code (contract-defined)
        location:   'package::module::function' where the abort happened (if known)
    """
    def __init__(self, abort_code: int = 0, message: str = "aborted", *, location: Optional[str] = None):
        super().__init__(
            message=message,
            code="ABORTED",
            data=_details(None, abort_code=int(abort_code), location=location),
        )
        self.abort_code = int(abort_code)
        self.location = location


__all__ = [
    "PtbError",
    "ConstructionError",
    "InvalidIdentifier",
    "TypeTagError",
    "CodecError",
    "ValidationError",
    "MissingVersion",
    "StaleVersion",
    "ResolutionError",
    "ObjectNotFound",
    "ClassificationError",
    "ExecutionFailed",
    "OutOfGas",
    "StateConflict",
    "TraceFormatError",
    "MoveAbort",
]
