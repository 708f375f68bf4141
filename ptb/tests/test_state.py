from __future__ import annotations

import pytest

from ptb.builder import BlockBuilder
from ptb.errors import ObjectNotFound, StaleVersion, StateConflict
from ptb.state import (AddressOwner, Immutable, Journal, ObjectOwner,
                       ObjectStore, ReferenceResolver, Shared, StoredObject)
from ptb.types import AccessMode, ObjectId

# =============================================================================
# Helpers
# =============================================================================


def _obj(oid: str, version: int = 1, state: bytes = b"x") -> StoredObject:
    return StoredObject(ObjectId(oid), version, state, AddressOwner("0xa11ce"), "0xabc::m::T")


# =============================================================================
# ObjectStore
# =============================================================================


def test_load_derives_owner_from_flags():
    store = ObjectStore()
    assert isinstance(store.load("0x1", b"", is_shared=True, version=4).owner, Shared)
    assert store.lookup("0x1").owner == Shared(4)
    assert isinstance(store.load("0x2", b"", is_immutable=True).owner, Immutable)
    assert store.load("0x3", b"").owner == AddressOwner("0x0")
    with pytest.raises(ValueError):
        store.load("0x4", b"", is_shared=True, is_immutable=True)


def test_owner_renderings():
    assert str(AddressOwner("0x1")) == f"AddressOwner({ObjectId('0x1')})"
    assert str(ObjectOwner("0x1")) == f"ObjectOwner({ObjectId('0x1')})"
    assert str(Shared(3)) == "Shared(3)"
    assert str(Immutable()) == "Immutable"


def test_store_iteration_is_sorted_and_membership_tolerates_junk():
    store = ObjectStore()
    store.load("0x9", b"")
    store.load("0x3", b"")
    assert [o.object_id for o in store] == [ObjectId("0x3"), ObjectId("0x9")]
    assert "0x3" in store
    assert "not-an-id" not in store
    assert 3 not in store


def test_owned_by():
    store = ObjectStore()
    store.load("0x1", b"", owner=AddressOwner("0xa11ce"))
    store.load("0x2", b"", owner=AddressOwner("0xb0b"))
    assert [o.object_id for o in store.owned_by("0xa11ce")] == [ObjectId("0x1")]


# =============================================================================
# ReferenceResolver
# =============================================================================


def test_resolve_returns_latest_snapshot():
    store = ObjectStore()
    store.load("0x1", b"v1", "0xabc::m::T", version=1)
    resolver = ReferenceResolver(store)
    h = resolver.resolve("0x1")
    assert (h.version, h.state, str(h.type_tag)) == (1, b"v1", str(store.lookup("0x1").type_tag))

    store.put(store.lookup("0x1").evolve(version=2, state=b"v2"))
    assert resolver.resolve("0x1").version == 2
    assert h.version == 1  # handles are snapshots


def test_resolve_missing_raises():
    resolver = ReferenceResolver(ObjectStore())
    with pytest.raises(ObjectNotFound) as ei:
        resolver.resolve("0x77")
    assert ei.value.object_id == str(ObjectId("0x77"))
    assert resolver.try_resolve("0x77") is None
    assert resolver.current_version("0x77") is None


def test_resolve_input_pins_version_for_shared():
    store = ObjectStore()
    store.load("0x5", b"", is_shared=True, version=7)
    inp = ReferenceResolver(store).resolve_input("0x5", AccessMode.shared())
    assert inp.version == 7
    assert inp.mode == AccessMode.shared()


def test_check_fresh_detects_consumed_and_advanced_objects():
    store = ObjectStore()
    store.load("0x1", b"", version=1)
    resolver = ReferenceResolver(store)
    b = BlockBuilder()
    b.move_call("0xabc::m::f", [b.object(resolver.resolve("0x1"), AccessMode.owned())])
    block = b.build()

    resolver.check_fresh(block)

    store.put(store.lookup("0x1").evolve(version=2))
    with pytest.raises(StaleVersion) as ei:
        resolver.check_fresh(block)
    assert (ei.value.version, ei.value.known_version) == (1, 2)

    store.delete("0x1")
    with pytest.raises(ObjectNotFound):
        resolver.check_fresh(block)


# =============================================================================
# Journal
# =============================================================================


def test_journal_revert_leaves_store_untouched():
    store = ObjectStore()
    store.put(_obj("0x1", state=b"before"))
    j = Journal(store)
    j.put(_obj("0x1", version=2, state=b"after"))
    j.create(_obj("0x2"))
    j.delete("0x1")
    assert j.get("0x1") is None
    j.revert()
    assert store.lookup("0x1").state == b"before"
    assert store.lookup("0x2") is None
    assert j.get("0x1").state == b"before"


def test_journal_commit_applies_net_effect():
    store = ObjectStore()
    store.put(_obj("0x1"))
    store.put(_obj("0x3"))
    j = Journal(store)
    j.put(_obj("0x1", version=2, state=b"new"))
    j.create(_obj("0x2"))
    j.delete("0x3")

    assert j.created_ids() == {ObjectId("0x2")}
    assert j.written_ids() == {ObjectId("0x1"), ObjectId("0x2")}
    assert j.deleted_ids() == {ObjectId("0x3")}

    j.commit()
    assert store.lookup("0x1").state == b"new"
    assert "0x2" in store
    assert "0x3" not in store
    assert j.created_ids() == set()


def test_journal_nested_checkpoints():
    store = ObjectStore()
    j = Journal(store)
    j.create(_obj("0x1"))
    marker = j.checkpoint()
    assert marker == 2
    j.create(_obj("0x2"))
    j.revert_to(1)
    assert j.exists("0x1") and not j.exists("0x2")
    assert j.created_ids() == {ObjectId("0x1")}
    j.begin()
    j.put(_obj("0x1", version=5))
    j.commit_to(1)
    assert j.get("0x1").version == 5
    assert "0x1" not in store
    j.commit()
    assert store.lookup("0x1").version == 5


def test_journal_create_conflict():
    store = ObjectStore()
    store.put(_obj("0x1"))
    with pytest.raises(StateConflict):
        Journal(store).create(_obj("0x1"))


def test_created_then_deleted_is_not_reported():
    j = Journal(ObjectStore())
    j.create(_obj("0x1"))
    j.delete("0x1")
    assert j.created_ids() == set()
    assert j.written_ids() == set()
    assert j.deleted_ids() == set()
