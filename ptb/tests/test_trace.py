from __future__ import annotations

import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ptb.errors import TraceFormatError
from ptb.state import AddressOwner, ObjectStore
from ptb.trace import (CreatedObject, TraceCommand, TraceDocument, TraceEntry,
                       TraceEvent, TraceInput, TraceOutputs, create_entry,
                       load_trace_file, render_command, render_input,
                       render_outputs, write_trace_file)
from ptb.types import (AccessMode, AcquireReceived, Block, BuildCollection,
                       Event, ExecutionResult, Input, Invoke, MergeValues,
                       ObjectHandle, ObjectId, ObjectInput, Publish, PureInput,
                       Result, SplitValue, TransferOwnership, Upgrade,
                       parse_type_tag)

# =============================================================================
# Rendering
# =============================================================================


def test_render_pure_and_object_inputs():
    assert render_input(PureInput(b"\x01\x02"), 0) == TraceInput(0, "Pure", value="0x0102")
    h = ObjectHandle("0x11", 4, b"", parse_type_tag("0xabc::fund::Fund"))
    got = render_input(ObjectInput.of(h, AccessMode.shared()), 1)
    assert got.input_type == "SharedMut"
    assert got.object_id == str(ObjectId("0x11"))
    assert got.type_tag == f"{ObjectId('0xabc')}::fund::Fund"
    assert render_input(ObjectInput.of(h, AccessMode.shared(False)), 2).input_type == "SharedImm"
    assert render_input(ObjectInput.of(h, AccessMode.receiving()), 3).input_type == "Receiving"


def test_render_move_call():
    cmd = Invoke.call("0xabc::fund::join", [Input(0), Result(1, 2)], ["0x2::sui::SUI"])
    got = render_command(cmd, 3)
    assert got.index == 3
    assert got.command_type == "MoveCall"
    assert (got.package, got.module, got.function) == (str(ObjectId("0xabc")), "fund", "join")
    assert got.type_args == (f"{ObjectId('0x2')}::sui::SUI",)
    assert got.args == ("Input(0)", "Result(1, 2)")


@pytest.mark.parametrize(
    "cmd, command_type, args",
    [
        (TransferOwnership((Result(0, 0), Input(1)), Input(2)), "TransferObjects",
         ("objects: [Result(0, 0), Input(1)]", "to: Input(2)")),
        (SplitValue(Input(0), (Input(1), Input(2))), "SplitCoins",
         ("coin: Input(0)", "amounts: [Input(1), Input(2)]")),
        (MergeValues(Input(0), (Input(1),)), "MergeCoins",
         ("destination: Input(0)", "sources: [Input(1)]")),
        (BuildCollection(None, (Input(0), Input(1))), "MakeMoveVec",
         ("elements: [Input(0), Input(1)]",)),
        (Publish((b"a", b"b"), ("0x1",)), "Publish",
         ("modules: 2 modules", f"deps: [{ObjectId('0x1')}]")),
        (Upgrade((b"a",), "0xabc", Result(0, 0)), "Upgrade",
         ("modules: 1 modules", "ticket: Result(0, 0)")),
        (AcquireReceived("0x44"), "Receive", (f"object_id: {ObjectId('0x44')}",)),
    ],
)
def test_render_builtin_commands(cmd, command_type, args):
    got = render_command(cmd, 0)
    assert got.command_type == command_type
    assert got.args == args


def test_render_typed_collection_and_upgrade_package():
    assert render_command(BuildCollection("u64", ()), 0).type_args == ("u64",)
    up = render_command(Upgrade((b"a",), "0xabc", Result(0, 0)), 1)
    assert up.package == str(ObjectId("0xabc"))


def test_render_unknown_command():
    with pytest.raises(TypeError):
        render_command(object(), 0)  # type: ignore[arg-type]


def test_render_outputs_success():
    store = ObjectStore()
    created = store.load("0x51", b"", "0xabc::fund::Position", owner=AddressOwner("0xa11ce"))
    ghost = ObjectId("0x52")
    result = ExecutionResult.ok(
        1234,
        created=[created.object_id, ghost],
        mutated=["0x53"],
        events=[Event("Joined", {"raw": b"\x01", "ids": (ObjectId("0x1"),)})],
    )
    out = render_outputs(result, store.lookup)
    assert out.success and out.gas_used == 1234 and out.error is None
    assert out.created_objects[0] == CreatedObject(
        str(created.object_id), f"{ObjectId('0xabc')}::fund::Position", f"AddressOwner({ObjectId('0xa11ce')})"
    )
    assert out.created_objects[1] == CreatedObject(str(ghost), "unknown", "unknown")
    assert out.mutated_objects == (str(ObjectId("0x53")),)
    assert out.events == (TraceEvent("Joined", {"raw": "0x01", "ids": [str(ObjectId("0x1"))]}),)
    json.dumps(out.to_dict())


def test_render_outputs_failure():
    result = ExecutionResult.failure("OUT_OF_GAS", "out of gas: MoveCall", gas_used=500, command_index=0)
    out = render_outputs(result, ObjectStore().lookup)
    assert out.to_dict() == {
        "success": False,
        "gasUsed": 500,
        "createdObjects": [],
        "mutatedObjects": [],
        "events": [],
        "error": "OUT_OF_GAS: out of gas: MoveCall",
    }


def test_create_entry_shape():
    block = Block((PureInput(b"\x05alpha"),), (Invoke.call("0xabc::registry::register", [Input(0)]),))
    entry = create_entry("register", "0xa11ce", block, ExecutionResult.ok(10), ObjectStore().lookup)
    d = entry.to_dict()
    assert list(d) == ["label", "sender", "inputs", "commands", "outputs"]
    assert d["sender"] == str(ObjectId("0xa11ce"))
    assert d["inputs"] == [{"index": 0, "inputType": "Pure", "value": "0x05616c706861"}]
    assert d["commands"][0]["typeArgs"] == []
    assert "group" not in d
    grouped = create_entry("register", "0xa11ce", block, ExecutionResult.ok(10), ObjectStore().lookup, group="demo")
    assert grouped.to_dict()["group"] == "demo"


# =============================================================================
# Schema round trip
# =============================================================================

_text = st.text(min_size=1, max_size=20)
_hex = st.binary(min_size=1, max_size=32).map(lambda b: "0x" + b.hex())
_json_leaf = st.one_of(st.none(), st.booleans(), st.integers(min_value=-(2**53), max_value=2**53), _text)

_inputs = st.builds(
    TraceInput,
    index=st.integers(min_value=0, max_value=50),
    input_type=st.sampled_from(["Pure", "ImmRef", "MutRef", "Owned", "SharedMut", "SharedImm", "Receiving"]),
    object_id=st.none() | _hex,
    type_tag=st.none() | _text,
    value=st.none() | _hex,
)
_commands = st.builds(
    TraceCommand,
    index=st.integers(min_value=0, max_value=50),
    command_type=st.sampled_from(["MoveCall", "TransferObjects", "SplitCoins", "MergeCoins", "MakeMoveVec"]),
    package=st.none() | _hex,
    module=st.none() | _text,
    function=st.none() | _text,
    type_args=st.lists(_text, max_size=3).map(tuple),
    args=st.lists(_text, max_size=4).map(tuple),
)
_outputs = st.builds(
    TraceOutputs,
    success=st.booleans(),
    gas_used=st.integers(min_value=0, max_value=10**9),
    created_objects=st.lists(st.builds(CreatedObject, _hex, _text, _text), max_size=3).map(tuple),
    mutated_objects=st.lists(_hex, max_size=3).map(tuple),
    events=st.lists(st.builds(TraceEvent, _text, st.dictionaries(_text, _json_leaf, max_size=3)), max_size=2).map(tuple),
    error=st.none() | _text,
)
_entries = st.builds(
    TraceEntry,
    label=_text,
    sender=_hex,
    inputs=st.lists(_inputs, max_size=3).map(tuple),
    commands=st.lists(_commands, max_size=3).map(tuple),
    outputs=_outputs,
    group=st.none() | _text,
)
_documents = st.builds(TraceDocument, protocol=_text, version=_text, timestamp=_text, traces=st.lists(_entries, max_size=3).map(tuple))


@given(_documents)
def test_document_survives_json(doc):
    again = TraceDocument.from_dict(json.loads(doc.to_json()))
    assert again == doc


def test_from_dict_rejects_missing_keys():
    with pytest.raises(TraceFormatError):
        TraceDocument.from_dict({"protocol": "p", "version": "v"})
    with pytest.raises(TraceFormatError):
        TraceDocument.from_dict({"protocol": "p", "version": "v", "timestamp": "1s", "traces": [{"label": "x"}]})


def test_new_document_has_unix_timestamp():
    doc = TraceDocument.new("APEX Protocol", "0.1.0")
    assert doc.timestamp.endswith("s")
    assert int(doc.timestamp[:-1]) > 1_600_000_000


# =============================================================================
# Files
# =============================================================================


def test_write_and_load(tmp_path):
    doc = TraceDocument("APEX Protocol", "0.1.0", "1700000000s")
    p = write_trace_file(doc, tmp_path / "ptb_traces.json")
    assert load_trace_file(p) == doc
    assert not (tmp_path / "ptb_traces.json.tmp").exists()
    assert json.loads(p.read_text())["traces"] == []


def test_load_rejects_bad_files(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text("{not json")
    with pytest.raises(TraceFormatError) as ei:
        load_trace_file(p)
    assert ei.value.path == str(p)
    p.write_text("[1, 2]")
    with pytest.raises(TraceFormatError):
        load_trace_file(p)


def test_write_into_missing_directory(tmp_path):
    doc = TraceDocument("APEX Protocol", "0.1.0", "1s")
    with pytest.raises(OSError):
        write_trace_file(doc, tmp_path / "missing" / "t.json")
