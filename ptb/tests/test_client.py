from __future__ import annotations

import logging

import pytest

from ptb import metrics
from ptb.effects import ByStructuralType, PreferShared
from ptb.errors import ObjectNotFound, StaleVersion, ValidationError
from ptb.runtime import PtbClient, mint_coin
from ptb.types import AccessMode, ExecutionResult, Result

# =============================================================================
# Helpers
# =============================================================================


class SpyEngine:
    """Records submissions and reports success without touching any state."""

    def __init__(self) -> None:
        self.calls = []

    def submit(self, block, sender):
        self.calls.append((block, sender))
        return ExecutionResult.ok(0)


def _blocks(result: str) -> float:
    value = metrics.get_registry().get_sample_value("ptb_blocks_submitted_total", {"result": result})
    return value or 0.0


# =============================================================================
# Submission
# =============================================================================


def test_register_through_client(client, recorder, store, demo_pkg, alice):
    b = client.builder()
    b.move_call(f"{demo_pkg}::registry::register", [b.pure_string("alpha")])
    result = client.execute_builder(b, label="register service", group="basic flow")

    assert result.success
    assert len(result.created) >= 1
    assert _blocks("success") == 1.0

    (entry,) = recorder.entries()
    assert entry.label == "register service"
    assert entry.group == "basic flow"
    assert entry.sender == str(alice)
    assert entry.inputs[0].input_type == "Pure"
    assert entry.inputs[0].value == "0x05" + b"alpha".hex()
    cmd = entry.commands[0]
    assert (cmd.command_type, cmd.module, cmd.function) == ("MoveCall", "registry", "register")
    assert cmd.package == str(demo_pkg)
    assert cmd.args == ("Input(0)",)
    created = entry.outputs.created_objects[0]
    assert created.object_id == str(result.created[0])
    assert created.object_type == f"{demo_pkg}::registry::Service"
    assert created.owner == f"AddressOwner({alice})"
    assert entry.outputs.events[0].event_type == "ServiceRegistered"


def test_invalid_reference_never_reaches_the_engine(resolver, recorder, alice):
    spy = SpyEngine()
    client = PtbClient(spy, resolver, sender=alice, recorder=recorder)
    b = client.builder()
    b.move_call("0xabc::registry::register", [b.pure_string("alpha")])
    b.move_call("0xabc::registry::touch", [Result(5, 0)])

    with pytest.raises(ValidationError) as ei:
        client.execute_builder(b, label="bad reference")
    assert ei.value.code == "FORWARD_RESULT"
    assert spy.calls == []
    assert len(recorder) == 0


def test_reusing_a_consumed_input_is_rejected(client, recorder, resolver, store, alice):
    a = mint_coin(store, alice, 10)
    c = mint_coin(store, alice, 20)
    b = client.builder()
    src = b.object(resolver.resolve(c), AccessMode.owned())
    dst = b.object(resolver.resolve(a), AccessMode.owned())
    b.merge(dst, [src])
    block = b.build()

    assert client.execute(block, label="merge").success
    with pytest.raises(ObjectNotFound):
        client.execute(block, label="merge again")
    assert len(recorder) == 1
    assert _blocks("rejected") == 1.0


def test_outdated_shared_handle_is_rejected(client, resolver, store, demo_pkg):
    _, fund = client.execute_and_classify(
        _single_call(client, f"{demo_pkg}::fund::open"), PreferShared(), label="open fund"
    )
    b = client.builder()
    b.move_call(f"{demo_pkg}::fund::deposit", [b.object(resolver.resolve(fund), AccessMode.shared()), b.pure_u64(5)])
    block = b.build()

    assert client.execute(block, label="deposit").success
    with pytest.raises(StaleVersion):
        client.execute(block, label="deposit again")

    # re-resolving gives a fresh handle
    b = client.builder()
    b.move_call(f"{demo_pkg}::fund::deposit", [b.object(resolver.resolve(fund), AccessMode.shared()), b.pure_u64(5)])
    assert client.execute_builder(b, label="deposit re-resolved").success
    assert int.from_bytes(store.lookup(fund).state, "little") == 10


def _single_call(client, target):
    b = client.builder()
    b.move_call(target)
    return b.build()


def test_failures_are_returned_and_recorded(client, recorder, demo_pkg, caplog):
    b = client.builder()
    b.move_call(f"{demo_pkg}::fund::fail_after_create", [b.pure_u64(3)])
    with caplog.at_level(logging.INFO, logger="ptb.runtime.client"):
        result = client.execute_builder(b, label="abort")

    assert not result.success
    assert result.error.code == "ABORTED"
    assert "failed" in caplog.text
    (entry,) = recorder.entries()
    assert entry.outputs.success is False
    assert entry.outputs.error == "ABORTED: refused"
    assert entry.outputs.gas_used == result.gas_used
    assert entry.outputs.created_objects == ()
    assert _blocks("failure") == 1.0


def test_execute_and_classify_by_type(client, store, demo_pkg):
    result, cap = client.execute_and_classify(
        _single_call(client, f"{demo_pkg}::fund::open"), ByStructuralType("ManagerCap"), label="open"
    )
    assert result.success
    assert len(result.created) == 2
    assert store.lookup(cap).type_tag.name == "ManagerCap"


def test_sender_override(client, recorder, store, demo_pkg, bob):
    result = client.execute(
        _single_call(client, f"{demo_pkg}::fund::open"), label="as bob", sender=bob
    )
    owned = [oid for oid in result.created if store.lookup(oid).owned_by(bob)]
    assert len(owned) == 1
    assert recorder.entries()[0].sender == str(bob)


def test_client_without_recorder(engine, resolver, alice, demo_pkg):
    client = PtbClient(engine, resolver, sender=alice)
    assert client.execute(_single_call(client, f"{demo_pkg}::fund::open"), label="open").success


# =============================================================================
# Dry runs
# =============================================================================


def test_dry_run_commits_and_records_nothing(client, recorder, store, demo_pkg):
    before = {obj.object_id: obj for obj in store}
    result = client.dry_run(_single_call(client, f"{demo_pkg}::fund::open"))

    assert result.success, result.error
    assert len(result.created) == 2
    assert all(store.lookup(oid) is None for oid in result.created)
    assert {obj.object_id: obj for obj in store} == before
    assert len(recorder) == 0
    assert _blocks("success") == 0.0


def test_inspect_returns_per_command_results(client, resolver, store, alice, bob):
    coin = mint_coin(store, alice, 100)
    before = store.lookup(coin)
    b = client.builder()
    parts = b.split(b.object(resolver.resolve(coin), AccessMode.owned()), [1, 2])
    b.transfer(list(parts), bob)
    result, results = client.inspect(b.build(), sender=alice)

    assert result.success, result.error
    split_out, transfer_out = results
    assert sorted(ref.object_id for ref in split_out) == list(result.created)
    assert transfer_out == ()
    assert store.lookup(coin) == before
    assert all(store.lookup(ref.object_id) is None for ref in split_out)


def test_dry_run_rejects_stale_inputs(client, resolver, store, alice):
    coin = mint_coin(store, alice, 10)
    b = client.builder()
    b.transfer([b.object(resolver.resolve(coin), AccessMode.owned())], "0xb0b")
    block = b.build()
    assert client.execute(block, label="send").success
    with pytest.raises(StaleVersion):
        client.dry_run(block)


def test_dry_run_needs_a_simulating_engine(resolver, alice):
    client = PtbClient(SpyEngine(), resolver, sender=alice)
    with pytest.raises(TypeError):
        client.dry_run(_single_call(client, "0xabc::registry::register"))


def test_raise_for_status_without_error_is_a_type_error():
    result = ExecutionResult.failure("ABORTED", "refused")
    object.__setattr__(result, "error", None)
    with pytest.raises(TypeError):
        result.raise_for_status()
