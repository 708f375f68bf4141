"""
ptb.types.inputs — object handles and block inputs.

* `ObjectHandle`  — a point-in-time snapshot of an entity: id, version, raw state bytes and
                    (optionally) its type tag. Immutable; re-resolve after any block that
                    may have touched the entity.
* `PureInput`     — raw bytes whose meaning is defined by the receiving command
                    (BCS-encoded scalars, strings, addresses; see ptb.codec.bcs).
* `ObjectInput`   — an ObjectHandle plus the AccessMode it is referenced under and the
                    version pinned for the engine's staleness check.

Inputs are ordered inside a block and referenced only by position (`Input(i)`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .access import AccessMode
from .ids import ObjectId
from .type_tag import TypeTag


@dataclass(frozen=True)
class ObjectHandle:
    object_id: ObjectId
    version: int
    state: bytes
    type_tag: Optional[TypeTag] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "object_id", ObjectId(self.object_id))
        if int(self.version) < 0:
            raise ValueError("version must be >= 0")
        object.__setattr__(self, "version", int(self.version))
        object.__setattr__(self, "state", bytes(self.state))


@dataclass(frozen=True)
class PureInput:
    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray, memoryview)):
            raise TypeError(f"pure input value must be bytes-like, got {type(self.value).__name__}")
        object.__setattr__(self, "value", bytes(self.value))

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"PureInput(0x{self.value.hex()})"


@dataclass(frozen=True)
class ObjectInput:
    """
    An object referenced by a block.

    `version` is what the engine checks against its own store. Use `ObjectInput.of()` to
    derive it from the handle: it is pinned for Shared / MutRef access and left unset for
    the other modes.
    """
    handle: ObjectHandle
    mode: AccessMode
    version: Optional[int] = None

    @classmethod
    def of(cls, handle: ObjectHandle, mode: AccessMode) -> "ObjectInput":
        return cls(handle, mode, handle.version if mode.requires_version else None)

    @property
    def object_id(self) -> ObjectId:
        return self.handle.object_id

    @property
    def type_tag(self) -> Optional[TypeTag]:
        return self.handle.type_tag


InputValue = Union[PureInput, ObjectInput]


__all__ = ["ObjectHandle", "PureInput", "ObjectInput", "InputValue"]
