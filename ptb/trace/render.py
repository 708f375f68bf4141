"""
ptb.trace.render — turn blocks and results into trace schema records.

Argument renderings follow the ledger's debug output: `MoveCall` lists its arguments
as `Input(0)`, `Result(1, 0)`; the other commands label each operand
(`coin: Input(0)`, `amounts: [Input(1), Input(2)]`, `to: Input(3)`, …).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from ..state.store import StoredObject
from ..types.block import Block
from ..types.commands import (AcquireReceived, BuildCollection, Command,
                              Invoke, MergeValues, Publish, SplitValue,
                              TransferOwnership, Upgrade, render_args)
from ..types.ids import HexLike, ObjectId
from ..types.inputs import InputValue, PureInput
from ..types.result import ExecutionResult
from .schema import (CreatedObject, TraceCommand, TraceEntry, TraceEvent,
                     TraceInput, TraceOutputs)

Lookup = Callable[[ObjectId], Optional[StoredObject]]


def render_input(value: InputValue, index: int) -> TraceInput:
    if isinstance(value, PureInput):
        return TraceInput(index, "Pure", value="0x" + value.value.hex())
    tag = value.type_tag
    return TraceInput(
        index,
        value.mode.label,
        object_id=str(value.object_id),
        type_tag=None if tag is None else str(tag),
    )


def _ids(values: Sequence[ObjectId]) -> str:
    return "[" + ", ".join(str(v) for v in values) + "]"


def _invoke(cmd: Invoke, index: int) -> TraceCommand:
    return TraceCommand(
        index,
        cmd.command_type,
        package=str(cmd.package),
        module=cmd.module,
        function=cmd.function,
        type_args=tuple(str(t) for t in cmd.type_args),
        args=tuple(str(a) for a in cmd.args),
    )


def _transfer(cmd: TransferOwnership, index: int) -> TraceCommand:
    return TraceCommand(index, cmd.command_type, args=(f"objects: {render_args(cmd.objects)}", f"to: {cmd.destination}"))


def _split(cmd: SplitValue, index: int) -> TraceCommand:
    return TraceCommand(index, cmd.command_type, args=(f"coin: {cmd.source}", f"amounts: {render_args(cmd.amounts)}"))


def _merge(cmd: MergeValues, index: int) -> TraceCommand:
    return TraceCommand(
        index, cmd.command_type, args=(f"destination: {cmd.destination}", f"sources: {render_args(cmd.sources)}")
    )


def _make_vec(cmd: BuildCollection, index: int) -> TraceCommand:
    type_args = () if cmd.element_type is None else (str(cmd.element_type),)
    return TraceCommand(index, cmd.command_type, type_args=type_args, args=(f"elements: {render_args(cmd.elements)}",))


def _publish(cmd: Publish, index: int) -> TraceCommand:
    return TraceCommand(
        index, cmd.command_type, args=(f"modules: {len(cmd.modules)} modules", f"deps: {_ids(cmd.dependencies)}")
    )


def _upgrade(cmd: Upgrade, index: int) -> TraceCommand:
    return TraceCommand(
        index,
        cmd.command_type,
        package=str(cmd.package),
        args=(f"modules: {len(cmd.modules)} modules", f"ticket: {cmd.ticket}"),
    )


def _receive(cmd: AcquireReceived, index: int) -> TraceCommand:
    type_args = () if cmd.object_type is None else (str(cmd.object_type),)
    return TraceCommand(index, cmd.command_type, type_args=type_args, args=(f"object_id: {cmd.object_id}",))


_RENDERERS: Dict[Type[object], Callable[[Any, int], TraceCommand]] = {
    Invoke: _invoke,
    TransferOwnership: _transfer,
    SplitValue: _split,
    MergeValues: _merge,
    BuildCollection: _make_vec,
    Publish: _publish,
    Upgrade: _upgrade,
    AcquireReceived: _receive,
}


def render_command(cmd: Command, index: int) -> TraceCommand:
    try:
        renderer = _RENDERERS[type(cmd)]
    except KeyError:
        raise TypeError(f"cannot render command of type {type(cmd).__name__}") from None
    return renderer(cmd, index)


def _json_safe(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def render_outputs(result: ExecutionResult, lookup: Lookup) -> TraceOutputs:
    """
    Outputs of one execution. Created objects carry their type tag and owner as seen
    through `lookup` after the block; either is "unknown" when not available.
    """
    if not result.success:
        err = result.error
        return TraceOutputs(
            success=False,
            gas_used=result.gas_used,
            error=None if err is None else f"{err.code}: {err.message}",
        )
    created: List[CreatedObject] = []
    for oid in result.created:
        obj = lookup(oid)
        if obj is None:
            created.append(CreatedObject(str(oid), "unknown", "unknown"))
        else:
            object_type = "unknown" if obj.type_tag is None else str(obj.type_tag)
            created.append(CreatedObject(str(oid), object_type, str(obj.owner)))
    return TraceOutputs(
        success=True,
        gas_used=result.gas_used,
        created_objects=tuple(created),
        mutated_objects=tuple(str(m) for m in result.mutated),
        events=tuple(TraceEvent(e.event_type, _json_safe(e.data)) for e in result.events),
    )


def create_entry(
    label: str,
    sender: HexLike,
    block: Block,
    result: ExecutionResult,
    lookup: Lookup,
    group: Optional[str] = None,
) -> TraceEntry:
    inputs: Tuple[TraceInput, ...] = tuple(render_input(v, i) for i, v in enumerate(block.inputs))
    commands: Tuple[TraceCommand, ...] = tuple(render_command(c, i) for i, c in enumerate(block.commands))
    return TraceEntry(
        label=label,
        sender=str(ObjectId(sender)),
        inputs=inputs,
        commands=commands,
        outputs=render_outputs(result, lookup),
        group=group,
    )


__all__ = ["Lookup", "render_input", "render_command", "render_outputs", "create_entry"]
