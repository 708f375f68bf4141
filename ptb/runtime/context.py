"""
ptb.runtime.context — execution state and the handler-facing CallContext.

Values
------
Commands in the simulated engine exchange Python values:

    PureValue(data)              — bytes of a pure input (decode with .as_u64(), .as_address(), …)
    ObjectRef(object_id)         — an object living in the block's journal
    tuple                        — a vector built by BuildCollection
    UpgradeTicket / UpgradeReceipt — hot-potato values of the package upgrade flow
    anything else                — returned by registered entry functions

ExecState
---------
Per-submission mutable state: journal, gas meter, read-only set, command results, events
and the creation counter. Built-ins and CallContext both operate on it.

CallContext
-----------
What an entry function sees. Every write is charged gas and checked against the access
the block was granted:

    ctx.sender, ctx.timestamp_ms, ctx.tx_digest, ctx.type_args
    ctx.load(ref) / ctx.state(ref) / ctx.type_of(ref)
    ctx.create(type, state)  ctx.create_shared(type, state)  ctx.create_immutable(type, state)
    ctx.mutate(ref, state)   ctx.delete(ref)   ctx.transfer(ref, recipient)
    ctx.share(ref)           ctx.freeze(ref)   ctx.emit(event_type, data)
    ctx.abort(code, message)
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from ..codec import bcs
from ..errors import MoveAbort, PtbError
from ..gas.meter import GasMeter
from ..gas.table import GasTable
from ..state.journal import Journal
from ..state.store import (AddressOwner, Immutable, ObjectOwner, Owner, Shared,
                           StoredObject)
from ..types.ids import HexLike, ObjectId
from ..types.result import Event
from ..types.type_tag import TypeTag, as_type_tag


class CommandFailure(PtbError):
    """Engine-internal failure of one command; turned into a failed ExecutionResult."""
    def __init__(self, code: str, message: str, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code=code, data=data)


# ------------------------------- values -------------------------------------


@dataclass(frozen=True)
class PureValue:
    data: bytes

    def as_u8(self) -> int:
        return bcs.decode_uint(self.data, bits=8)

    def as_u64(self) -> int:
        return bcs.decode_u64(self.data)

    def as_bool(self) -> bool:
        return bcs.decode_bool(self.data)

    def as_address(self) -> ObjectId:
        return bcs.decode_address(self.data)

    def as_string(self) -> str:
        return bcs.decode_string(self.data)

    def as_bytes(self) -> bytes:
        return bcs.decode_bytes(self.data)


@dataclass(frozen=True)
class ObjectRef:
    object_id: ObjectId


@dataclass(frozen=True)
class UpgradeTicket:
    cap_id: ObjectId
    package: ObjectId
    digest: bytes = b""


@dataclass(frozen=True)
class UpgradeReceipt:
    cap_id: ObjectId
    package: ObjectId


Value = Any


# ---------------------------- execution state -------------------------------


@dataclass
class ExecState:
    journal: Journal
    meter: GasMeter
    gas_table: GasTable
    sender: ObjectId
    tx_digest: bytes
    lamport_version: int
    timestamp_ms: int
    inputs: Tuple[Value, ...] = ()
    readonly: Set[ObjectId] = field(default_factory=set)
    results: List[Tuple[Value, ...]] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)
    mutable_inputs: Set[ObjectId] = field(default_factory=set)
    package_aliases: List[Tuple[ObjectId, ObjectId]] = field(default_factory=list)
    creations: int = 0

    # ----- gas -----

    def charge(self, builtin: str, times: int = 1) -> None:
        self.meter.debit(self.gas_table.builtin_cost(builtin) * times, reason=builtin)

    # ----- ids -----

    def fresh_id(self) -> ObjectId:
        """SHA3-256(tx digest ‖ creation index as u64 LE)."""
        h = hashlib.sha3_256(self.tx_digest + self.creations.to_bytes(8, "little")).digest()
        self.creations += 1
        return ObjectId(h)

    # ----- objects -----

    def load(self, ref: Union[ObjectRef, HexLike]) -> StoredObject:
        oid = ref.object_id if isinstance(ref, ObjectRef) else ObjectId(ref)
        obj = self.journal.get(oid)
        if obj is None:
            raise CommandFailure("OBJECT_NOT_FOUND", f"object {oid.short()} does not exist", data={"object_id": str(oid)})
        return obj

    def writable(self, ref: Union[ObjectRef, HexLike]) -> StoredObject:
        obj = self.load(ref)
        if obj.object_id in self.readonly or obj.is_immutable:
            raise CommandFailure(
                "INVALID_ACCESS",
                f"object {obj.object_id.short()} is read-only in this block",
                data={"object_id": str(obj.object_id)},
            )
        return obj

    def create(
        self,
        type_tag: Union[str, TypeTag, None],
        state: bytes,
        owner: Owner,
        *,
        object_id: Optional[ObjectId] = None,
    ) -> ObjectRef:
        """Stage a new object. Pass `object_id` when the state embeds an id taken from fresh_id()."""
        self.charge("object_create")
        oid = object_id if object_id is not None else self.fresh_id()
        if isinstance(owner, Shared):
            owner = Shared(self.lamport_version)
        self.journal.create(StoredObject(oid, self.lamport_version, bytes(state), owner, as_type_tag(type_tag)))
        return ObjectRef(oid)

    def write(self, obj: StoredObject, **changes: Any) -> StoredObject:
        self.charge("object_write")
        new = obj.evolve(**changes)
        self.journal.put(new)
        return new

    def delete(self, ref: Union[ObjectRef, HexLike]) -> None:
        obj = self.writable(ref)
        if obj.is_shared:
            raise CommandFailure("INVALID_ACCESS", f"shared object {obj.object_id.short()} cannot be deleted")
        self.charge("object_delete")
        self.journal.delete(obj.object_id)

    def emit(self, event_type: str, data: Any) -> None:
        self.charge("event_emit")
        self.events.append(Event(event_type, data))


# ------------------------------ CallContext ---------------------------------


class CallContext:
    """Handle passed to registered entry functions as their first argument."""

    def __init__(self, state: ExecState, target: str, type_args: Tuple[TypeTag, ...] = ()) -> None:
        self._state = state
        self.target = target
        self.type_args = type_args

    @property
    def sender(self) -> ObjectId:
        return self._state.sender

    @property
    def timestamp_ms(self) -> int:
        return self._state.timestamp_ms

    @property
    def tx_digest(self) -> bytes:
        return self._state.tx_digest

    # ----- reads -----

    def load(self, ref: ObjectRef) -> StoredObject:
        return self._state.load(ref)

    def state(self, ref: ObjectRef) -> bytes:
        return self._state.load(ref).state

    def type_of(self, ref: ObjectRef) -> Optional[TypeTag]:
        return self._state.load(ref).type_tag

    # ----- creation -----

    def create(self, type_tag: Union[str, TypeTag], state: bytes, owner: Optional[HexLike] = None) -> ObjectRef:
        """New object owned by `owner` (default: the sender)."""
        return self._state.create(type_tag, state, AddressOwner(owner if owner is not None else self.sender))

    def create_shared(self, type_tag: Union[str, TypeTag], state: bytes) -> ObjectRef:
        return self._state.create(type_tag, state, Shared(0))

    def create_immutable(self, type_tag: Union[str, TypeTag], state: bytes) -> ObjectRef:
        return self._state.create(type_tag, state, Immutable())

    def create_child(self, parent: ObjectRef, type_tag: Union[str, TypeTag], state: bytes) -> ObjectRef:
        """New object owned by another object (claimable with AcquireReceived)."""
        return self._state.create(type_tag, state, ObjectOwner(parent.object_id))

    # ----- mutation -----

    def mutate(self, ref: ObjectRef, state: bytes) -> None:
        obj = self._state.writable(ref)
        self._state.write(obj, state=bytes(state))

    def delete(self, ref: ObjectRef) -> None:
        self._state.delete(ref)

    def transfer(self, ref: ObjectRef, recipient: HexLike) -> None:
        obj = self._state.writable(ref)
        if obj.is_shared:
            raise CommandFailure("INVALID_ACCESS", f"shared object {obj.object_id.short()} cannot be transferred")
        self._state.write(obj, owner=AddressOwner(recipient))

    def share(self, ref: ObjectRef) -> None:
        obj = self._state.writable(ref)
        if not obj.is_shared:
            self._state.write(obj, owner=Shared(self._state.lamport_version))

    def freeze(self, ref: ObjectRef) -> None:
        obj = self._state.writable(ref)
        if obj.is_shared:
            raise CommandFailure("INVALID_ACCESS", f"shared object {obj.object_id.short()} cannot be frozen")
        self._state.write(obj, owner=Immutable())

    # ----- events / aborts -----

    def emit(self, event_type: str, data: Any = None) -> None:
        self._state.emit(event_type, data)

    def abort(self, code: int, message: str = "aborted") -> None:
        raise MoveAbort(code, message, location=self.target)


__all__ = [
    "CommandFailure",
    "PureValue",
    "ObjectRef",
    "UpgradeTicket",
    "UpgradeReceipt",
    "Value",
    "ExecState",
    "CallContext",
]
