"""
ptb.types.result — ExecutionResult container returned by an engine.

`ExecutionResult` is the only thing the core consumes from an engine. It is deliberately
small and JSON-friendly.

Fields
------
* success  : bool
* gas_used : int                      — total gas charged (also on failure)
* created  : tuple[ObjectId, ...]     — engine order, *not* command order
* mutated  : tuple[ObjectId, ...]
* events   : tuple[Event, ...]        — emitted events in order
* error    : Optional[ExecutionError] — set iff success is False

A failed result never carries `created` / `mutated` entries: execution is atomic and a
failure is a no-op against the object store.

Utilities
---------
* `.to_dict()` / `.from_dict()` for camelCase JSON conversion.
* `.raise_for_status()` for callers who prefer exceptions over result values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..errors import ExecutionFailed
from .ids import ObjectId


@dataclass(frozen=True)
class Event:
    event_type: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"eventType": self.event_type, "data": self.data}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Event":
        return cls(event_type=str(d["eventType"]), data=d.get("data"))


@dataclass(frozen=True)
class ExecutionError:
    """
    Structured engine failure. `code` is a stable string (ABORTED, OUT_OF_GAS,
    OBJECT_NOT_FOUND, …); `command_index` is the failing command, when known.
    """
    code: str
    message: str = ""
    command_index: Optional[int] = None
    data: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        where = f" in command {self.command_index}" if self.command_index is not None else ""
        return f"{self.code}: {self.message}{where}"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.command_index is not None:
            out["commandIndex"] = self.command_index
        if self.data is not None:
            out["data"] = self.data
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ExecutionError":
        ci = d.get("commandIndex")
        return cls(
            code=str(d["code"]),
            message=str(d.get("message", "")),
            command_index=None if ci is None else int(ci),
            data=d.get("data"),
        )


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    gas_used: int = 0
    created: Tuple[ObjectId, ...] = ()
    mutated: Tuple[ObjectId, ...] = ()
    events: Tuple[Event, ...] = ()
    error: Optional[ExecutionError] = None

    def __post_init__(self) -> None:
        if int(self.gas_used) < 0:
            raise ValueError("gas_used must be >= 0")
        object.__setattr__(self, "gas_used", int(self.gas_used))
        object.__setattr__(self, "created", tuple(ObjectId(x) for x in self.created))
        object.__setattr__(self, "mutated", tuple(ObjectId(x) for x in self.mutated))
        object.__setattr__(self, "events", tuple(self.events))
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success:
            if self.error is None:
                raise ValueError("a failed result must carry an error")
            if self.created or self.mutated:
                raise ValueError("a failed result cannot report created/mutated objects")

    # ----------------------------- constructors ------------------------------

    @classmethod
    def ok(
        cls,
        gas_used: int,
        created: Iterable[ObjectId] = (),
        mutated: Iterable[ObjectId] = (),
        events: Iterable[Event] = (),
    ) -> "ExecutionResult":
        return cls(True, gas_used, tuple(created), tuple(mutated), tuple(events))

    @classmethod
    def failure(
        cls,
        code: str,
        message: str = "",
        *,
        gas_used: int = 0,
        command_index: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> "ExecutionResult":
        return cls(False, gas_used, error=ExecutionError(code, message, command_index, data))

    # ----------------------------- conveniences ------------------------------

    def raise_for_status(self) -> "ExecutionResult":
        """Raise ExecutionFailed if the block failed; returns self otherwise."""
        if self.success:
            return self
        if self.error is None:
            raise TypeError("failed ExecutionResult carries no error")
        raise ExecutionFailed(str(self.error), error=self.error.to_dict())

    # --------------------------- (de)serialization ---------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "gasUsed": self.gas_used,
            "created": [str(x) for x in self.created],
            "mutated": [str(x) for x in self.mutated],
            "events": [e.to_dict() for e in self.events],
            "error": None if self.error is None else self.error.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ExecutionResult":
        err = d.get("error")
        return cls(
            success=bool(d["success"]),
            gas_used=int(d.get("gasUsed", 0)),
            created=tuple(d.get("created", ())),
            mutated=tuple(d.get("mutated", ())),
            events=tuple(Event.from_dict(e) for e in d.get("events", ())),
            error=None if err is None else ExecutionError.from_dict(err),
        )

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        status = "ok" if self.success else f"failed[{self.error.code if self.error else '?'}]"
        return (
            f"ExecutionResult({status}, gas_used={self.gas_used}, "
            f"created={len(self.created)}, mutated={len(self.mutated)}, events={len(self.events)})"
        )


__all__ = ["Event", "ExecutionError", "ExecutionResult"]
