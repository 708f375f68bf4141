"""
ptb.state.store — versioned, ownership-tagged object store.

The store is the caller's point-in-time view of ledger objects. It holds one
`StoredObject` per id: the latest version, the raw state bytes, an optional type tag and
the owner. The resolver reads it; the simulated engine writes it (through a Journal, so
a failed block never touches it); `load()` seeds synthetic and well-known objects before
execution.

Owners
------
    AddressOwner(address)      — owned by an account
    ObjectOwner(object_id)     — owned by another object (dynamic field / receiving)
    Shared(initial_version)    — consensus object
    Immutable                  — frozen (packages, frozen objects)

Owners render like the ledger's debug format (`AddressOwner(0x…)`, `Shared(1)`, …); that
string is what traces store under `owner`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional, Union

from ..types.ids import HexLike, ObjectId, is_object_id
from ..types.inputs import ObjectHandle
from ..types.type_tag import TypeTag, as_type_tag

log = logging.getLogger(__name__)

ZERO_ADDRESS = ObjectId("0x0")


# ---------------------------------- owners -----------------------------------


@dataclass(frozen=True)
class AddressOwner:
    address: ObjectId

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", ObjectId(self.address))

    def __str__(self) -> str:
        return f"AddressOwner({self.address})"


@dataclass(frozen=True)
class ObjectOwner:
    object_id: ObjectId

    def __post_init__(self) -> None:
        object.__setattr__(self, "object_id", ObjectId(self.object_id))

    def __str__(self) -> str:
        return f"ObjectOwner({self.object_id})"


@dataclass(frozen=True)
class Shared:
    initial_version: int

    def __str__(self) -> str:
        return f"Shared({self.initial_version})"


@dataclass(frozen=True)
class Immutable:
    def __str__(self) -> str:
        return "Immutable"


Owner = Union[AddressOwner, ObjectOwner, Shared, Immutable]


# ------------------------------ stored objects -------------------------------


@dataclass(frozen=True)
class StoredObject:
    object_id: ObjectId
    version: int
    state: bytes
    owner: Owner
    type_tag: Optional[TypeTag] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "object_id", ObjectId(self.object_id))
        object.__setattr__(self, "state", bytes(self.state))
        object.__setattr__(self, "type_tag", as_type_tag(self.type_tag))
        if int(self.version) < 0:
            raise ValueError("version must be >= 0")

    @property
    def is_shared(self) -> bool:
        return isinstance(self.owner, Shared)

    @property
    def is_immutable(self) -> bool:
        return isinstance(self.owner, Immutable)

    def owned_by(self, address: HexLike) -> bool:
        return isinstance(self.owner, AddressOwner) and self.owner.address == ObjectId(address)

    def handle(self) -> ObjectHandle:
        return ObjectHandle(self.object_id, self.version, self.state, self.type_tag)

    def evolve(self, **changes) -> "StoredObject":
        return replace(self, **changes)


# ---------------------------------- store ------------------------------------


class ObjectStore:
    """
    In-memory object store.

    Not thread-safe: the usage model is one block in flight per store.
    """

    def __init__(self) -> None:
        self._objects: Dict[ObjectId, StoredObject] = {}

    # ----- reads -----

    def lookup(self, object_id: HexLike) -> Optional[StoredObject]:
        return self._objects.get(ObjectId(object_id))

    def current_version(self, object_id: HexLike) -> Optional[int]:
        obj = self.lookup(object_id)
        return None if obj is None else obj.version

    def __contains__(self, object_id: object) -> bool:
        if not is_object_id(object_id):
            return False
        return ObjectId(object_id) in self._objects  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[StoredObject]:
        return iter(sorted(self._objects.values(), key=lambda o: o.object_id))

    def owned_by(self, address: HexLike) -> Iterator[StoredObject]:
        addr = ObjectId(address)
        return (o for o in self if isinstance(o.owner, AddressOwner) and o.owner.address == addr)

    # ----- writes -----

    def load(
        self,
        object_id: HexLike,
        state: bytes,
        type_hint: Union[str, TypeTag, None] = None,
        is_shared: bool = False,
        is_immutable: bool = False,
        version: int = 1,
        owner: Optional[Owner] = None,
    ) -> StoredObject:
        """
        Seed an object (synthetic fixtures, well-known singletons).

        The owner is derived from the flags unless given explicitly; plain owned objects
        default to the zero address.
        """
        if is_shared and is_immutable:
            raise ValueError("an object cannot be both shared and immutable")
        if owner is None:
            if is_shared:
                owner = Shared(int(version))
            elif is_immutable:
                owner = Immutable()
            else:
                owner = AddressOwner(ZERO_ADDRESS)
        obj = StoredObject(ObjectId(object_id), int(version), bytes(state), owner, as_type_tag(type_hint))
        self._objects[obj.object_id] = obj
        log.debug("store.load id=%s version=%d owner=%s", obj.object_id.short(), obj.version, obj.owner)
        return obj

    def put(self, obj: StoredObject) -> None:
        self._objects[obj.object_id] = obj

    def delete(self, object_id: HexLike) -> bool:
        return self._objects.pop(ObjectId(object_id), None) is not None


__all__ = [
    "ZERO_ADDRESS",
    "AddressOwner",
    "ObjectOwner",
    "Shared",
    "Immutable",
    "Owner",
    "StoredObject",
    "ObjectStore",
]
