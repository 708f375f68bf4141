from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ptb.builder import BlockBuilder, build
from ptb.errors import MissingVersion, StaleVersion, ValidationError
from ptb.types import (AccessMode, BuildCollection, Input, Invoke, MergeValues,
                       ObjectHandle, ObjectId, ObjectInput, PureInput, Result,
                       SplitValue, TransferOwnership)

PKG = "0xabc"


def _handle(oid: str = "0x11", version: int = 3) -> ObjectHandle:
    return ObjectHandle(oid, version, b"state", "0xabc::fund::Fund")


# =============================================================================
# Argument references (DAG)
# =============================================================================


def test_forward_result_reference_is_rejected():
    # a block whose second command reads Result(5, 0) while only two commands exist
    inputs = [PureInput(b"\x05alpha")]
    commands = [
        Invoke.call(f"{PKG}::registry::register", [Input(0)]),
        Invoke.call(f"{PKG}::registry::touch", [Result(5, 0)]),
    ]
    with pytest.raises(ValidationError) as ei:
        build(inputs, commands)
    err = ei.value
    assert err.code == "FORWARD_RESULT"
    assert err.command_index == 1
    assert err.argument_position == 0


def test_self_reference_is_forward():
    with pytest.raises(ValidationError) as ei:
        build([], [Invoke.call(f"{PKG}::m::f", [Result(0, 0)])])
    assert ei.value.code == "FORWARD_RESULT"


def test_input_out_of_range():
    with pytest.raises(ValidationError) as ei:
        build([PureInput(b"\x01")], [Invoke.call(f"{PKG}::m::f", [Input(0), Input(1)])])
    assert ei.value.code == "INPUT_OUT_OF_RANGE"
    assert ei.value.argument_position == 1


def test_output_index_beyond_declared_returns():
    commands = [
        Invoke.call(f"{PKG}::m::make", returns=2),
        Invoke.call(f"{PKG}::m::use", [Result(0, 1)]),
        Invoke.call(f"{PKG}::m::use", [Result(0, 2)]),
    ]
    with pytest.raises(ValidationError) as ei:
        build([], commands)
    assert ei.value.code == "RESULT_OUT_OF_RANGE"
    assert ei.value.command_index == 2


def test_split_outputs_follow_amount_count():
    commands = [
        SplitValue(Input(0), (Input(1), Input(2))),
        TransferOwnership((Result(0, 0), Result(0, 1)), Input(3)),
    ]
    inputs = [ObjectInput.of(_handle(), AccessMode.owned()), PureInput(b"\x01" * 8), PureInput(b"\x02" * 8),
              PureInput(b"\x00" * 32)]
    block = build(inputs, commands)
    assert len(block) == 2

    with pytest.raises(ValidationError) as ei:
        build(inputs, list(commands) + [TransferOwnership((Result(0, 2),), Input(3))])
    assert ei.value.code == "RESULT_OUT_OF_RANGE"


def test_commands_without_outputs_cannot_be_referenced():
    commands = [
        MergeValues(Input(0), (Input(1),)),
        Invoke.call(f"{PKG}::m::use", [Result(0, 0)]),
    ]
    inputs = [ObjectInput.of(_handle("0x1"), AccessMode.owned()), ObjectInput.of(_handle("0x2"), AccessMode.owned())]
    with pytest.raises(ValidationError) as ei:
        build(inputs, commands)
    assert ei.value.code == "RESULT_OUT_OF_RANGE"


# =============================================================================
# Block shape and inputs
# =============================================================================


def test_empty_block():
    with pytest.raises(ValidationError) as ei:
        build([PureInput(b"")], [])
    assert ei.value.code == "EMPTY_BLOCK"


@pytest.mark.parametrize(
    "command",
    [
        SplitValue(Input(0), ()),
        MergeValues(Input(0), ()),
        TransferOwnership((), Input(0)),
        BuildCollection(None, ()),
    ],
)
def test_missing_operands(command):
    with pytest.raises(ValidationError) as ei:
        build([PureInput(b"\x00")], [command])
    assert ei.value.code == "MISSING_OPERAND"


def test_empty_typed_collection_is_allowed():
    block = build([], [BuildCollection("u64", ())])
    assert block.commands[0].output_count == 1


def test_unknown_command_type():
    with pytest.raises(ValidationError) as ei:
        build([], [object()])  # type: ignore[list-item]
    assert ei.value.code == "UNKNOWN_COMMAND"


def test_duplicate_object_inputs():
    h = _handle()
    with pytest.raises(ValidationError) as ei:
        build(
            [ObjectInput.of(h, AccessMode.imm_ref()), ObjectInput.of(h, AccessMode.imm_ref())],
            [Invoke.call(f"{PKG}::m::f", [Input(0)])],
        )
    assert ei.value.code == "DUPLICATE_OBJECT"
    assert ei.value.input_index == 1


@pytest.mark.parametrize("mode", [AccessMode.shared(), AccessMode.shared(False), AccessMode.mut_ref()])
def test_shared_and_mutable_inputs_need_a_version(mode):
    inp = ObjectInput(_handle(), mode, version=None)
    with pytest.raises(MissingVersion):
        build([inp], [Invoke.call(f"{PKG}::m::f", [Input(0)])])


def test_of_pins_versions_only_where_required():
    h = _handle(version=9)
    assert ObjectInput.of(h, AccessMode.shared()).version == 9
    assert ObjectInput.of(h, AccessMode.mut_ref()).version == 9
    assert ObjectInput.of(h, AccessMode.owned()).version is None
    assert ObjectInput.of(h, AccessMode.imm_ref()).version is None


def test_stale_version_against_oracle():
    inp = ObjectInput.of(_handle("0x11", 3), AccessMode.shared())
    commands = [Invoke.call(f"{PKG}::m::f", [Input(0)])]
    build([inp], commands, versions={inp.object_id: 3})
    with pytest.raises(StaleVersion) as ei:
        build([inp], commands, versions={inp.object_id: 4})
    assert ei.value.known_version == 4
    assert ei.value.code == "STALE_VERSION"


def test_invalid_call_target():
    with pytest.raises(ValidationError) as ei:
        Invoke.call("0xabc::only_module", [])
    assert ei.value.code == "INVALID_TARGET"


def test_first_offending_argument_is_reported():
    inputs = [PureInput(b"\x01")]
    commands = [Invoke.call(f"{PKG}::m::f", [Input(3), Result(4, 0)])]
    with pytest.raises(ValidationError) as ei:
        build(inputs, commands)
    assert ei.value.code == "INPUT_OUT_OF_RANGE"
    assert ei.value.argument_position == 0


@given(
    n_inputs=st.integers(min_value=0, max_value=4),
    refs=st.lists(st.integers(min_value=0, max_value=8), min_size=1, max_size=6),
)
def test_builder_reports_first_bad_input_reference(n_inputs, refs):
    inputs = [PureInput(bytes([i])) for i in range(n_inputs)]
    commands = [Invoke.call(f"{PKG}::m::f", [Input(r) for r in refs])]
    bad = [pos for pos, r in enumerate(refs) if r >= n_inputs]
    if not bad:
        assert len(build(inputs, commands).commands) == 1
        return
    with pytest.raises(ValidationError) as ei:
        build(inputs, commands)
    assert ei.value.code == "INPUT_OUT_OF_RANGE"
    assert ei.value.argument_position == bad[0]


_calls = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=3),
        st.lists(st.tuples(st.integers(min_value=0, max_value=6), st.integers(min_value=0, max_value=3)), max_size=4),
    ),
    min_size=1,
    max_size=5,
)


@given(calls=_calls)
def test_builder_reports_first_bad_result_reference(calls):
    commands = [
        Invoke.call(f"{PKG}::m::f{i}", [Result(c, o) for c, o in refs], returns=returns)
        for i, (returns, refs) in enumerate(calls)
    ]
    expected = None
    for i, (_, refs) in enumerate(calls):
        for pos, (c, o) in enumerate(refs):
            if c >= i:
                expected = ("FORWARD_RESULT", i, pos)
            elif o >= calls[c][0]:
                expected = ("RESULT_OUT_OF_RANGE", i, pos)
            if expected:
                break
        if expected:
            break

    if expected is None:
        assert build([], commands).commands == tuple(commands)
        return
    with pytest.raises(ValidationError) as ei:
        build([], commands)
    err = ei.value
    assert (err.code, err.command_index, err.argument_position) == expected


# =============================================================================
# Fluent builder
# =============================================================================


def test_fluent_builder_assembles_split_and_transfer():
    b = BlockBuilder()
    coin = b.object(_handle(), AccessMode.owned())
    parts = b.split(coin, [100, 250])
    b.transfer(list(parts), "0xb0b")
    block = b.build()

    assert len(block.inputs) == 4  # coin, two amounts, recipient
    assert isinstance(block.commands[0], SplitValue)
    assert block.commands[1].objects == (Result(0, 0), Result(0, 1))
    assert block.commands[1].destination == Input(3)


def test_fluent_object_is_deduplicated_per_mode():
    b = BlockBuilder()
    h = _handle()
    first = b.object(h, AccessMode.shared())
    assert b.object(h, AccessMode.shared()) == first
    with pytest.raises(ValidationError) as ei:
        b.object(h, AccessMode.imm_ref())
    assert ei.value.code == "CONFLICTING_ACCESS"


def test_fluent_object_requires_a_mode():
    with pytest.raises(ValueError):
        BlockBuilder().object(_handle())


def test_command_result_indexing():
    b = BlockBuilder()
    res = b.move_call(f"{PKG}::m::make", returns=2)
    assert res[1] == Result(0, 1)
    assert list(res) == [Result(0, 0), Result(0, 1)]
    assert res.first == Result(0, 0)
    b.move_call(f"{PKG}::m::use", [res, res[1]])
    block = b.build()
    assert block.commands[1].args == (Result(0, 0), Result(0, 1))


def test_fluent_rejects_bad_reference_at_build():
    b = BlockBuilder()
    b.move_call(f"{PKG}::m::make")
    b.move_call(f"{PKG}::m::use", [Result(5, 0)])
    with pytest.raises(ValidationError):
        b.build()


def test_block_digest_is_deterministic():
    def make():
        b = BlockBuilder()
        b.move_call(f"{PKG}::registry::register", [b.pure_string("alpha")])
        return b.build()

    assert make().digest() == make().digest()
    other = BlockBuilder()
    other.move_call(f"{PKG}::registry::register", [other.pure_string("beta")])
    assert other.build().digest() != make().digest()


def test_object_slot_holding_a_pure_input_is_a_type_error():
    b = BlockBuilder()
    b.pure_u8(1)
    b._objects[ObjectId("0x11")] = 0
    with pytest.raises(TypeError):
        b.object(_handle(), AccessMode.owned())
