"""
ptb.types.access — access modes for object inputs.

An access mode tells the engine what a block may do with a referenced object:

    ImmutableReference  — read only
    MutableReference    — read/write, object stays with its owner
    Owned               — by value; may be consumed, transferred or wrapped
    Shared(mutable)     — consensus object, read-only or read/write
    Receiving           — an object sent to another object, claimed in this block

Shared and mutable-reference accesses are version-checked: the input must carry the
last version known to the caller so that the engine can detect staleness.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AccessKind(str, Enum):
    IMMUTABLE_REF = "imm_ref"
    MUTABLE_REF = "mut_ref"
    OWNED = "owned"
    SHARED = "shared"
    RECEIVING = "receiving"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class AccessMode:
    kind: AccessKind
    mutable: bool = False

    def __post_init__(self) -> None:
        # Only shared access carries an independent mutability flag; the others imply it.
        implied = {
            AccessKind.IMMUTABLE_REF: False,
            AccessKind.MUTABLE_REF: True,
            AccessKind.OWNED: True,
            AccessKind.RECEIVING: True,
        }
        if self.kind in implied:
            object.__setattr__(self, "mutable", implied[self.kind])

    # ---------- constructors ----------

    @classmethod
    def imm_ref(cls) -> "AccessMode":
        return cls(AccessKind.IMMUTABLE_REF)

    @classmethod
    def mut_ref(cls) -> "AccessMode":
        return cls(AccessKind.MUTABLE_REF)

    @classmethod
    def owned(cls) -> "AccessMode":
        return cls(AccessKind.OWNED)

    @classmethod
    def shared(cls, mutable: bool = True) -> "AccessMode":
        return cls(AccessKind.SHARED, mutable=bool(mutable))

    @classmethod
    def receiving(cls) -> "AccessMode":
        return cls(AccessKind.RECEIVING)

    # ---------- properties ----------

    @property
    def requires_version(self) -> bool:
        """Shared and mutable-reference inputs must pin a version."""
        return self.kind in (AccessKind.SHARED, AccessKind.MUTABLE_REF)

    @property
    def is_shared(self) -> bool:
        return self.kind is AccessKind.SHARED

    @property
    def label(self) -> str:
        """Trace rendering: ImmRef, MutRef, Owned, SharedMut, SharedImm, Receiving."""
        if self.kind is AccessKind.SHARED:
            return "SharedMut" if self.mutable else "SharedImm"
        return _LABELS[self.kind]

    @classmethod
    def from_label(cls, label: str) -> "AccessMode":
        try:
            return _FROM_LABEL[label]
        except KeyError:
            raise ValueError(f"unknown access mode label: {label!r}") from None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.label


_LABELS = {
    AccessKind.IMMUTABLE_REF: "ImmRef",
    AccessKind.MUTABLE_REF: "MutRef",
    AccessKind.OWNED: "Owned",
    AccessKind.RECEIVING: "Receiving",
}

_FROM_LABEL = {
    "ImmRef": AccessMode.imm_ref(),
    "MutRef": AccessMode.mut_ref(),
    "Owned": AccessMode.owned(),
    "SharedMut": AccessMode.shared(True),
    "SharedImm": AccessMode.shared(False),
    "Receiving": AccessMode.receiving(),
}


__all__ = ["AccessKind", "AccessMode"]
