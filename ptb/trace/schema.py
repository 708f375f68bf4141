"""
ptb.trace.schema — persisted JSON shape of execution traces.

Document layout (camelCase keys; keys marked ? are omitted when unset):

    {
      "protocol": "APEX Protocol",
      "version": "0.1.0",
      "timestamp": "1700000000s",
      "traces": [
        {
          "label": "create position", "group"?: "basic flow", "sender": "0x…",
          "inputs":   [{"index", "inputType", "objectId"?, "typeTag"?, "value"?}],
          "commands": [{"index", "commandType", "package"?, "module"?, "function"?,
                        "typeArgs": [...], "args": [...]}],
          "outputs":  {"success", "gasUsed",
                       "createdObjects": [{"objectId", "objectType", "owner"}],
                       "mutatedObjects": ["0x…"],
                       "events": [{"eventType", "data"}],
                       "error"?: "CODE: message"}
        }
      ]
    }

Every dataclass here converts with `to_dict()` / `from_dict()`, and
`TraceDocument.from_dict(doc.to_dict()) == doc` holds for every document.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..errors import TraceFormatError


def _put(out: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        out[key] = value


def _opt_str(d: Mapping[str, Any], key: str) -> Optional[str]:
    v = d.get(key)
    return None if v is None else str(v)


@dataclass(frozen=True)
class TraceInput:
    index: int
    input_type: str
    object_id: Optional[str] = None
    type_tag: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"index": self.index, "inputType": self.input_type}
        _put(out, "objectId", self.object_id)
        _put(out, "typeTag", self.type_tag)
        _put(out, "value", self.value)
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceInput":
        return cls(
            index=int(d["index"]),
            input_type=str(d["inputType"]),
            object_id=_opt_str(d, "objectId"),
            type_tag=_opt_str(d, "typeTag"),
            value=_opt_str(d, "value"),
        )


@dataclass(frozen=True)
class TraceCommand:
    index: int
    command_type: str
    package: Optional[str] = None
    module: Optional[str] = None
    function: Optional[str] = None
    type_args: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_args", tuple(self.type_args))
        object.__setattr__(self, "args", tuple(self.args))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"index": self.index, "commandType": self.command_type}
        _put(out, "package", self.package)
        _put(out, "module", self.module)
        _put(out, "function", self.function)
        out["typeArgs"] = list(self.type_args)
        out["args"] = list(self.args)
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceCommand":
        return cls(
            index=int(d["index"]),
            command_type=str(d["commandType"]),
            package=_opt_str(d, "package"),
            module=_opt_str(d, "module"),
            function=_opt_str(d, "function"),
            type_args=tuple(str(t) for t in d.get("typeArgs", ())),
            args=tuple(str(a) for a in d.get("args", ())),
        )


@dataclass(frozen=True)
class CreatedObject:
    object_id: str
    object_type: str
    owner: str

    def to_dict(self) -> Dict[str, Any]:
        return {"objectId": self.object_id, "objectType": self.object_type, "owner": self.owner}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CreatedObject":
        return cls(str(d["objectId"]), str(d["objectType"]), str(d["owner"]))


@dataclass(frozen=True)
class TraceEvent:
    event_type: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"eventType": self.event_type, "data": self.data}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceEvent":
        return cls(str(d["eventType"]), d.get("data"))


@dataclass(frozen=True)
class TraceOutputs:
    success: bool
    gas_used: int = 0
    created_objects: Tuple[CreatedObject, ...] = ()
    mutated_objects: Tuple[str, ...] = ()
    events: Tuple[TraceEvent, ...] = ()
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_objects", tuple(self.created_objects))
        object.__setattr__(self, "mutated_objects", tuple(self.mutated_objects))
        object.__setattr__(self, "events", tuple(self.events))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "gasUsed": self.gas_used,
            "createdObjects": [c.to_dict() for c in self.created_objects],
            "mutatedObjects": list(self.mutated_objects),
            "events": [e.to_dict() for e in self.events],
        }
        _put(out, "error", self.error)
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceOutputs":
        return cls(
            success=bool(d["success"]),
            gas_used=int(d.get("gasUsed", 0)),
            created_objects=tuple(CreatedObject.from_dict(c) for c in d.get("createdObjects", ())),
            mutated_objects=tuple(str(m) for m in d.get("mutatedObjects", ())),
            events=tuple(TraceEvent.from_dict(e) for e in d.get("events", ())),
            error=_opt_str(d, "error"),
        )


@dataclass(frozen=True)
class TraceEntry:
    label: str
    sender: str
    inputs: Tuple[TraceInput, ...]
    commands: Tuple[TraceCommand, ...]
    outputs: TraceOutputs
    group: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "commands", tuple(self.commands))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"label": self.label}
        _put(out, "group", self.group)
        out.update(
            sender=self.sender,
            inputs=[i.to_dict() for i in self.inputs],
            commands=[c.to_dict() for c in self.commands],
            outputs=self.outputs.to_dict(),
        )
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceEntry":
        return cls(
            label=str(d["label"]),
            sender=str(d["sender"]),
            inputs=tuple(TraceInput.from_dict(i) for i in d.get("inputs", ())),
            commands=tuple(TraceCommand.from_dict(c) for c in d.get("commands", ())),
            outputs=TraceOutputs.from_dict(d["outputs"]),
            group=_opt_str(d, "group"),
        )


def unix_timestamp() -> str:
    """Seconds since the epoch, rendered as "<secs>s"."""
    return f"{int(time.time())}s"


@dataclass(frozen=True)
class TraceDocument:
    protocol: str
    version: str
    timestamp: str
    traces: Tuple[TraceEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "traces", tuple(self.traces))

    @classmethod
    def new(cls, protocol: str, version: str, traces: Iterable[TraceEntry] = ()) -> "TraceDocument":
        return cls(protocol, version, unix_timestamp(), tuple(traces))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "version": self.version,
            "timestamp": self.timestamp,
            "traces": [t.to_dict() for t in self.traces],
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TraceDocument":
        try:
            return cls(
                protocol=str(d["protocol"]),
                version=str(d["version"]),
                timestamp=str(d["timestamp"]),
                traces=tuple(TraceEntry.from_dict(t) for t in d.get("traces", ())),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise TraceFormatError(f"invalid trace document: {e!r}") from e

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ---- files ----


def load_trace_file(path: Union[str, Path]) -> TraceDocument:
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise TraceFormatError(f"{p.name} is not valid JSON: {e.msg}", path=str(p)) from e
    if not isinstance(raw, dict):
        raise TraceFormatError(f"{p.name}: root must be an object", path=str(p))
    return TraceDocument.from_dict(raw)


def write_trace_file(doc: TraceDocument, path: Union[str, Path]) -> Path:
    """Write `doc` as pretty JSON, replacing `path` atomically. OSError propagates."""
    p = Path(path)
    tmp = p.with_name(p.name + ".tmp")
    try:
        tmp.write_text(doc.to_json() + "\n", encoding="utf-8")
        os.replace(tmp, p)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return p


__all__ = [
    "TraceInput",
    "TraceCommand",
    "CreatedObject",
    "TraceEvent",
    "TraceOutputs",
    "TraceEntry",
    "TraceDocument",
    "unix_timestamp",
    "load_trace_file",
    "write_trace_file",
]
