"""
ptb.builder.fluent — incremental block composition.

`BlockBuilder` accumulates inputs and commands and hands them to `build()` at the end, so
every block it produces went through the same validation as a hand-assembled one.

Examples
--------
    b = BlockBuilder()
    coin = b.object(resolver.resolve(coin_id), AccessMode.owned())
    parts = b.split(coin, [100, 250])               # amounts become pure u64 inputs
    b.transfer([parts[0], parts[1]], recipient)     # recipient becomes a pure address
    pos = b.move_call("0xabc::fund::join", [b.object(fund, AccessMode.shared()), parts[0]])
    block = b.build(versions=resolver.current_version)

Command helpers return a `CommandResult`: index it (`res[1]`) for a specific output, or
pass it directly to mean its first output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..codec import bcs
from ..errors import ValidationError
from ..types.access import AccessMode
from ..types.block import Block
from ..types.commands import (AcquireReceived, Argument, BuildCollection,
                              Command, Input, Invoke, MergeValues, Publish,
                              Result, SplitValue, TransferOwnership, Upgrade)
from ..types.ids import HexLike, ObjectId
from ..types.inputs import InputValue, ObjectHandle, ObjectInput, PureInput
from ..types.type_tag import TypeTag
from .validate import VersionOracle, build


@dataclass(frozen=True)
class CommandResult:
    command_index: int
    output_count: int

    def __getitem__(self, output_index: int) -> Result:
        if not isinstance(output_index, int):
            raise TypeError("output index must be an int")
        return Result(self.command_index, output_index)

    def __iter__(self):
        return (Result(self.command_index, o) for o in range(self.output_count))

    def __len__(self) -> int:
        return self.output_count

    @property
    def first(self) -> Result:
        return Result(self.command_index, 0)


Arg = Union[Input, Result, CommandResult]


def _as_arg(value: Arg) -> Argument:
    if isinstance(value, CommandResult):
        return value.first
    if isinstance(value, (Input, Result)):
        return value
    raise TypeError(f"expected Input, Result or CommandResult, got {type(value).__name__}")


class BlockBuilder:
    def __init__(self) -> None:
        self._inputs: List[InputValue] = []
        self._commands: List[Command] = []
        self._objects: Dict[ObjectId, int] = {}

    @property
    def inputs(self) -> Tuple[InputValue, ...]:
        return tuple(self._inputs)

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._commands)

    # ------------------------------------------------------------------ inputs

    def pure(self, value: bytes) -> Input:
        self._inputs.append(PureInput(value))
        return Input(len(self._inputs) - 1)

    def pure_u8(self, value: int) -> Input:
        return self.pure(bcs.encode_u8(value))

    def pure_u64(self, value: int) -> Input:
        return self.pure(bcs.encode_u64(value))

    def pure_bool(self, value: bool) -> Input:
        return self.pure(bcs.encode_bool(value))

    def pure_address(self, value: HexLike) -> Input:
        return self.pure(bcs.encode_address(value))

    def pure_string(self, value: str) -> Input:
        return self.pure(bcs.encode_string(value))

    def pure_vector_u8(self, value: bytes) -> Input:
        return self.pure(bcs.encode_bytes(value))

    def object(self, handle: Union[ObjectHandle, ObjectInput], mode: Optional[AccessMode] = None) -> Input:
        """
        Add an object input (once per object id).

        Re-adding the same object under the same mode returns the existing Input; a
        different mode raises ValidationError(CONFLICTING_ACCESS).
        """
        if isinstance(handle, ObjectInput):
            if mode is not None and mode != handle.mode:
                raise ValueError("mode given twice with different values")
            inp = handle
        else:
            if mode is None:
                raise ValueError("an access mode is required for an object handle")
            inp = ObjectInput.of(handle, mode)

        index = self._objects.get(inp.object_id)
        if index is not None:
            existing = self._inputs[index]
            if not isinstance(existing, ObjectInput):
                raise TypeError(f"input {index} is a {type(existing).__name__}, not the object input it was recorded as")
            if existing.mode != inp.mode or existing.version != inp.version:
                raise ValidationError(
                    f"object {inp.object_id.short()} already used as {existing.mode.label} "
                    f"(input {index}), cannot add it as {inp.mode.label}",
                    code="CONFLICTING_ACCESS",
                    input_index=index,
                    data={"object_id": str(inp.object_id)},
                )
            return Input(index)

        self._inputs.append(inp)
        self._objects[inp.object_id] = len(self._inputs) - 1
        return Input(len(self._inputs) - 1)

    # ---------------------------------------------------------------- commands

    def _push(self, cmd: Command) -> CommandResult:
        self._commands.append(cmd)
        return CommandResult(len(self._commands) - 1, cmd.output_count)

    def move_call(
        self,
        target: str,
        args: Sequence[Arg] = (),
        type_args: Sequence[Union[str, TypeTag]] = (),
        returns: int = 1,
    ) -> CommandResult:
        return self._push(Invoke.call(target, [_as_arg(a) for a in args], type_args, returns))

    def split(self, source: Arg, amounts: Sequence[Union[int, Arg]]) -> CommandResult:
        """Split `source`; plain ints become pure u64 inputs."""
        amount_args = [self.pure_u64(a) if isinstance(a, int) else _as_arg(a) for a in amounts]
        return self._push(SplitValue(_as_arg(source), tuple(amount_args)))

    def merge(self, destination: Arg, sources: Sequence[Arg]) -> CommandResult:
        return self._push(MergeValues(_as_arg(destination), tuple(_as_arg(s) for s in sources)))

    def transfer(self, objects: Sequence[Arg], recipient: Union[HexLike, Arg]) -> CommandResult:
        """Transfer `objects`; a hex/bytes recipient becomes a pure address input."""
        if isinstance(recipient, (str, bytes, bytearray, memoryview)):
            dest: Argument = self.pure_address(recipient)
        else:
            dest = _as_arg(recipient)
        return self._push(TransferOwnership(tuple(_as_arg(o) for o in objects), dest))

    def make_vec(self, elements: Sequence[Arg], element_type: Union[str, TypeTag, None] = None) -> CommandResult:
        return self._push(BuildCollection(element_type, tuple(_as_arg(e) for e in elements)))

    def publish(self, modules: Sequence[bytes], dependencies: Sequence[HexLike] = ()) -> CommandResult:
        return self._push(Publish(tuple(modules), tuple(ObjectId(d) for d in dependencies)))

    def upgrade(
        self,
        modules: Sequence[bytes],
        package: HexLike,
        ticket: Arg,
        dependencies: Sequence[HexLike] = (),
    ) -> CommandResult:
        return self._push(
            Upgrade(tuple(modules), ObjectId(package), _as_arg(ticket), tuple(ObjectId(d) for d in dependencies))
        )

    def receive(self, object_id: HexLike, object_type: Union[str, TypeTag, None] = None) -> CommandResult:
        return self._push(AcquireReceived(ObjectId(object_id), object_type))

    # ------------------------------------------------------------------- build

    def build(self, *, versions: Optional[VersionOracle] = None) -> Block:
        return build(self._inputs, self._commands, versions=versions)


__all__ = ["BlockBuilder", "CommandResult"]
