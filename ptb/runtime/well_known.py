"""
ptb.runtime.well_known — framework constants, well-known objects and framework functions.

* `CLOCK_OBJECT_ID` (0x6): shared clock singleton; state = id ‖ u64 LE timestamp_ms.
* Coins: `0x2::coin::Coin<T>` with state = id ‖ u64 LE balance.
* Upgrade caps: `0x2::package::UpgradeCap` with state = id ‖ package ‖ u64 LE version ‖ u8 policy.
* `register_framework(registry)` installs `0x2::package::authorize_upgrade` and
  `0x2::package::commit_upgrade`, the two calls that bracket an `Upgrade` command.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Tuple, Union

from ..errors import MoveAbort
from ..state.store import AddressOwner, ObjectStore, StoredObject
from ..types.ids import HexLike, ObjectId
from ..types.type_tag import (CLOCK_TYPE, SUI_TYPE, UPGRADE_CAP_TYPE, StructTag, TypeTag,
                              as_type_tag, coin_type)
from .context import CallContext, ObjectRef, PureValue, UpgradeReceipt, UpgradeTicket
from .registry import FunctionRegistry

MOVE_STDLIB_ID = ObjectId("0x1")
FRAMEWORK_ID = ObjectId("0x2")
SYSTEM_ID = ObjectId("0x3")
CLOCK_OBJECT_ID = ObjectId("0x6")

FRAMEWORK_PACKAGES = frozenset({MOVE_STDLIB_ID, FRAMEWORK_ID, SYSTEM_ID})

SUI_COIN_TYPE = coin_type(SUI_TYPE)

# abort codes of the framework upgrade functions
E_WRONG_CAP = 1
E_WRONG_RECEIPT = 2


# ------------------------------- encodings ----------------------------------


def coin_state(object_id: HexLike, balance: int) -> bytes:
    return ObjectId(object_id).raw + int(balance).to_bytes(8, "little")


def coin_balance(state: bytes) -> int:
    if len(state) != 40:
        raise ValueError(f"coin state must be 40 bytes, got {len(state)}")
    return int.from_bytes(state[32:40], "little")


def is_coin(obj: StoredObject) -> bool:
    t = obj.type_tag
    return isinstance(t, StructTag) and t.address == FRAMEWORK_ID and t.module == "coin" and t.name == "Coin"


def clock_state(timestamp_ms: int) -> bytes:
    return CLOCK_OBJECT_ID.raw + int(timestamp_ms).to_bytes(8, "little")


def clock_timestamp(state: bytes) -> int:
    return int.from_bytes(state[32:40], "little")


def upgrade_cap_state(cap_id: HexLike, package: HexLike, version: int = 1, policy: int = 0) -> bytes:
    return ObjectId(cap_id).raw + ObjectId(package).raw + int(version).to_bytes(8, "little") + bytes([policy])


def parse_upgrade_cap(state: bytes) -> Tuple[ObjectId, int, int]:
    """(package, version, policy)"""
    if len(state) != 73:
        raise ValueError(f"upgrade cap state must be 73 bytes, got {len(state)}")
    return ObjectId(state[32:64]), int.from_bytes(state[64:72], "little"), state[72]


# ------------------------------- seeding ------------------------------------


def seed_clock(store: ObjectStore, timestamp_ms: int = 1_700_000_000_000) -> StoredObject:
    """Load the shared clock at 0x6, version 1."""
    return store.load(CLOCK_OBJECT_ID, clock_state(timestamp_ms), CLOCK_TYPE, is_shared=True, version=1)


def mint_coin(
    store: ObjectStore,
    owner: HexLike,
    amount: int,
    coin: Union[str, TypeTag, None] = None,
    *,
    object_id: Optional[HexLike] = None,
) -> ObjectId:
    """
    Put a coin owned by `owner` into the store and return its id.

    Without an explicit id, one is derived from (owner, amount, store size) and
    re-hashed until it is unused.
    """
    if amount < 0 or amount >= 1 << 64:
        raise ValueError("coin amount must fit in u64")
    tag = SUI_COIN_TYPE if coin is None else (coin_type(coin) if _is_inner(coin) else coin)
    if object_id is None:
        seed = b"mint" + ObjectId(owner).raw + int(amount).to_bytes(8, "little") + len(store).to_bytes(8, "little")
        oid = ObjectId(hashlib.sha3_256(seed).digest())
        while oid in store:
            oid = ObjectId(hashlib.sha3_256(oid.raw).digest())
    else:
        oid = ObjectId(object_id)
    store.load(oid, coin_state(oid, amount), tag, owner=AddressOwner(owner))
    return oid


def _is_inner(coin: Union[str, TypeTag]) -> bool:
    """True if `coin` names the coin's inner type (0x2::sui::SUI) rather than Coin<…> itself."""
    tag = as_type_tag(coin)
    return not (isinstance(tag, StructTag) and tag.address == FRAMEWORK_ID and tag.module == "coin" and tag.name == "Coin")


# --------------------------- framework functions ----------------------------


def _authorize_upgrade(ctx: CallContext, cap: ObjectRef, policy: PureValue, digest: PureValue) -> UpgradeTicket:
    obj = ctx.load(cap)
    if obj.type_tag != UPGRADE_CAP_TYPE:
        ctx.abort(E_WRONG_CAP, "argument is not an UpgradeCap")
    package, _version, cap_policy = parse_upgrade_cap(obj.state)
    if policy.as_u8() < cap_policy:
        ctx.abort(E_WRONG_CAP, "requested policy is more permissive than the cap allows")
    return UpgradeTicket(obj.object_id, package, digest.as_bytes())


def _commit_upgrade(ctx: CallContext, cap: ObjectRef, receipt: UpgradeReceipt) -> None:
    obj = ctx.load(cap)
    if not isinstance(receipt, UpgradeReceipt) or receipt.cap_id != obj.object_id:
        raise MoveAbort(E_WRONG_RECEIPT, "receipt does not belong to this cap", location=ctx.target)
    _package, version, policy = parse_upgrade_cap(obj.state)
    ctx.mutate(cap, upgrade_cap_state(obj.object_id, receipt.package, version + 1, policy))


def register_framework(registry: FunctionRegistry) -> FunctionRegistry:
    registry.register_module(
        FRAMEWORK_ID,
        "package",
        {"authorize_upgrade": _authorize_upgrade, "commit_upgrade": _commit_upgrade},
    )
    return registry


__all__ = [
    "MOVE_STDLIB_ID",
    "FRAMEWORK_ID",
    "SYSTEM_ID",
    "CLOCK_OBJECT_ID",
    "FRAMEWORK_PACKAGES",
    "SUI_COIN_TYPE",
    "coin_state",
    "coin_balance",
    "is_coin",
    "clock_state",
    "clock_timestamp",
    "upgrade_cap_state",
    "parse_upgrade_cap",
    "seed_clock",
    "mint_coin",
    "register_framework",
]
