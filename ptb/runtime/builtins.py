"""
ptb.runtime.builtins — built-in command semantics of the simulated engine.

Every function has the same shape:

    run_x(state: ExecState, command, args: tuple[Value, ...], registry) -> tuple[Value, ...]

`args` are the command's arguments already resolved to values, in `command.arguments()`
order. The returned tuple holds the command's outputs (what `Result(c, o)` refers to).
Failures are raised as `CommandFailure` (or `MoveAbort` from entry functions); the
simulator turns them into a failed ExecutionResult and reverts the journal.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence, Tuple

from ..codec import bcs
from ..state.store import AddressOwner, Immutable, ObjectOwner, StoredObject
from ..types.commands import (AcquireReceived, BuildCollection, Invoke,
                              MergeValues, Publish, SplitValue,
                              TransferOwnership, Upgrade)
from ..types.ids import ID_LENGTH, ObjectId
from ..types.type_tag import UPGRADE_CAP_TYPE, StructTag
from .context import (CallContext, CommandFailure, ExecState, ObjectRef,
                      PureValue, UpgradeReceipt, UpgradeTicket, Value)
from .registry import FunctionRegistry
from .well_known import (FRAMEWORK_PACKAGES, coin_balance, coin_state,
                         is_coin, parse_upgrade_cap, upgrade_cap_state)

log = logging.getLogger(__name__)

_U64_MAX = (1 << 64) - 1


# ---- argument helpers ----


def _object(value: Value, what: str) -> ObjectRef:
    if not isinstance(value, ObjectRef):
        raise CommandFailure("INVALID_ARGUMENT", f"{what} must be an object, got {type(value).__name__}")
    return value


def _pure(value: Value, what: str) -> PureValue:
    if not isinstance(value, PureValue):
        raise CommandFailure("INVALID_ARGUMENT", f"{what} must be a pure value, got {type(value).__name__}")
    return value


def _coin(state: ExecState, ref: ObjectRef) -> Tuple[StoredObject, int]:
    obj = state.writable(ref)
    if not is_coin(obj):
        raise CommandFailure(
            "TYPE_MISMATCH",
            f"object {obj.object_id.short()} is not a coin ({obj.type_tag})",
            data={"object_id": str(obj.object_id)},
        )
    try:
        return obj, coin_balance(obj.state)
    except ValueError as e:
        raise CommandFailure("INVALID_OBJECT_STATE", str(e), data={"object_id": str(obj.object_id)}) from None


def _check_dependencies(state: ExecState, deps: Iterable[ObjectId]) -> None:
    for dep in deps:
        if dep in FRAMEWORK_PACKAGES:
            continue
        obj = state.journal.get(dep)
        if obj is None or not obj.is_immutable:
            raise CommandFailure("DEPENDENCY_NOT_FOUND", f"package {dep.short()} is not published", data={"package": str(dep)})


def _package_state(modules: Sequence[bytes]) -> bytes:
    return bcs.encode_vector(modules, bcs.encode_bytes)


# ---- commands ----


def run_invoke(state: ExecState, cmd: Invoke, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    rec = registry.lookup(cmd.package, cmd.module, cmd.function)
    if rec is None:
        raise CommandFailure("FUNCTION_NOT_FOUND", f"no entry function {cmd.target}", data={"target": cmd.target})
    out: Any = rec.handler(CallContext(state, rec.target, cmd.type_args), *args)
    if out is None:
        values: Tuple[Value, ...] = ()
    elif isinstance(out, (tuple, list)):
        values = tuple(out)
    else:
        values = (out,)
    if len(values) > cmd.returns:
        raise CommandFailure(
            "INVALID_RETURN",
            f"{cmd.target} returned {len(values)} values, block declared {cmd.returns}",
            data={"target": cmd.target, "returned": len(values), "declared": cmd.returns},
        )
    return values


def run_transfer(state: ExecState, cmd: TransferOwnership, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    *objects, destination = args
    dest = _pure(destination, "transfer destination")
    if len(dest.data) != ID_LENGTH:
        raise CommandFailure("INVALID_ARGUMENT", f"transfer destination must be a {ID_LENGTH}-byte address")
    recipient = ObjectId(dest.data)
    for i, value in enumerate(objects):
        obj = state.writable(_object(value, f"objects[{i}]"))
        if obj.is_shared:
            raise CommandFailure("INVALID_ACCESS", f"shared object {obj.object_id.short()} cannot be transferred")
        state.write(obj, owner=AddressOwner(recipient))
    return ()


def run_split(state: ExecState, cmd: SplitValue, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    source, *amount_values = args
    obj, balance = _coin(state, _object(source, "split source"))
    amounts = [_pure(v, f"amounts[{i}]").as_u64() for i, v in enumerate(amount_values)]
    total = sum(amounts)
    if total > balance:
        raise CommandFailure(
            "INSUFFICIENT_BALANCE",
            f"cannot split {total} from a coin holding {balance}",
            data={"object_id": str(obj.object_id), "requested": total, "balance": balance},
        )
    state.write(obj, state=coin_state(obj.object_id, balance - total))
    out = []
    for amount in amounts:
        oid = state.fresh_id()
        out.append(state.create(obj.type_tag, coin_state(oid, amount), AddressOwner(state.sender), object_id=oid))
    return tuple(out)


def run_merge(state: ExecState, cmd: MergeValues, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    destination, *sources = args
    dest, total = _coin(state, _object(destination, "merge destination"))
    for i, value in enumerate(sources):
        ref = _object(value, f"sources[{i}]")
        if ref.object_id == dest.object_id:
            raise CommandFailure("INVALID_ARGUMENT", "a coin cannot be merged into itself")
        src, amount = _coin(state, ref)
        if src.type_tag != dest.type_tag:
            raise CommandFailure("TYPE_MISMATCH", f"cannot merge {src.type_tag} into {dest.type_tag}")
        total += amount
        if total > _U64_MAX:
            raise CommandFailure("ARITHMETIC_OVERFLOW", "merged balance does not fit in u64")
        state.delete(ref)
    state.write(dest, state=coin_state(dest.object_id, total))
    return ()


def run_make_vec(state: ExecState, cmd: BuildCollection, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    if isinstance(cmd.element_type, StructTag):
        for i, value in enumerate(args):
            ref = _object(value, f"elements[{i}]")
            actual = state.load(ref).type_tag
            if actual != cmd.element_type:
                raise CommandFailure("TYPE_MISMATCH", f"elements[{i}] is {actual}, expected {cmd.element_type}")
    return (tuple(args),)


def run_publish(state: ExecState, cmd: Publish, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    state.charge("module_byte", sum(len(m) for m in cmd.modules))
    _check_dependencies(state, cmd.dependencies)
    package = state.create(None, _package_state(cmd.modules), Immutable())
    cap_id = state.fresh_id()
    cap = state.create(
        UPGRADE_CAP_TYPE, upgrade_cap_state(cap_id, package.object_id), AddressOwner(state.sender), object_id=cap_id
    )
    log.debug("publish package=%s cap=%s modules=%d", package.object_id.short(), cap_id.short(), len(cmd.modules))
    return (cap,)


def run_upgrade(state: ExecState, cmd: Upgrade, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    (ticket,) = args
    if not isinstance(ticket, UpgradeTicket):
        raise CommandFailure("INVALID_ARGUMENT", f"upgrade ticket expected, got {type(ticket).__name__}")
    if ticket.package != cmd.package:
        raise CommandFailure(
            "INVALID_ARGUMENT",
            f"ticket authorizes {ticket.package.short()}, not {cmd.package.short()}",
            data={"package": str(cmd.package), "ticket_package": str(ticket.package)},
        )
    cap = state.load(ticket.cap_id)
    if cap.type_tag != UPGRADE_CAP_TYPE or parse_upgrade_cap(cap.state)[0] != cmd.package:
        raise CommandFailure("INVALID_ARGUMENT", "ticket does not reference the package's UpgradeCap")
    if state.journal.get(cmd.package) is None:
        raise CommandFailure("OBJECT_NOT_FOUND", f"package {cmd.package.short()} does not exist", data={"object_id": str(cmd.package)})
    state.charge("module_byte", sum(len(m) for m in cmd.modules))
    _check_dependencies(state, cmd.dependencies)
    upgraded = state.create(None, _package_state(cmd.modules), Immutable())
    state.package_aliases.append((cmd.package, upgraded.object_id))
    return (UpgradeReceipt(ticket.cap_id, upgraded.object_id),)


def run_receive(state: ExecState, cmd: AcquireReceived, args: Tuple[Value, ...], registry: FunctionRegistry) -> Tuple[Value, ...]:
    obj = state.load(cmd.object_id)
    owner = obj.owner
    allowed = obj.owned_by(state.sender) or (
        isinstance(owner, ObjectOwner) and owner.object_id in state.mutable_inputs
    )
    if not allowed:
        raise CommandFailure(
            "NOT_OWNER",
            f"object {obj.object_id.short()} is owned by {owner}, not reachable by the sender",
            data={"object_id": str(obj.object_id), "owner": str(owner)},
        )
    if cmd.object_type is not None and obj.type_tag != cmd.object_type:
        raise CommandFailure("TYPE_MISMATCH", f"received object is {obj.type_tag}, expected {cmd.object_type}")
    state.readonly.discard(obj.object_id)
    state.write(obj, owner=AddressOwner(state.sender))
    return (ObjectRef(obj.object_id),)


__all__ = [
    "run_invoke",
    "run_transfer",
    "run_split",
    "run_merge",
    "run_make_vec",
    "run_publish",
    "run_upgrade",
    "run_receive",
]
