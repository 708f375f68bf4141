"""
ptb.builder.validate — assemble and validate a Block.

`build(inputs, commands)` is the only sanctioned way to obtain a `Block`. It is pure data
assembly: nothing is read from or written to the store, and either a complete Block is
returned or a `ValidationError` describing the *first* offending item is raised.

Checks, in order
----------------
Inputs (by index):
  * object inputs are unique per object id                       DUPLICATE_OBJECT
  * Shared / MutRef inputs carry a pinned version                 MISSING_VERSION
  * pinned versions are not older than the version oracle's       STALE_VERSION
Commands (by index, arguments by position):
  * at least one command                                          EMPTY_BLOCK
  * known command variant                                         UNKNOWN_COMMAND
  * required operands present (amounts, sources, objects, …)      MISSING_OPERAND
  * Input(i): 0 <= i < len(inputs)                                INPUT_OUT_OF_RANGE
  * Result(c, o): c < current command index                       FORWARD_RESULT
  * Result(c, o): c >= 0 and 0 <= o < commands[c].output_count    RESULT_OUT_OF_RANGE

The forward-reference rule makes every block a DAG in submission order, so an engine can
execute commands in one left-to-right pass.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence, Union

from ..errors import MissingVersion, StaleVersion, ValidationError
from ..types.block import Block
from ..types.commands import (COMMAND_TYPES, Argument, BuildCollection,
                              Command, Input, Invoke, MergeValues, Publish,
                              Result, SplitValue, TransferOwnership, Upgrade)
from ..types.ids import ObjectId
from ..types.inputs import InputValue, ObjectInput, PureInput

log = logging.getLogger(__name__)

VersionOracle = Union[Callable[[ObjectId], Optional[int]], Mapping[ObjectId, int]]


def _known_version(versions: VersionOracle, oid: ObjectId) -> Optional[int]:
    if isinstance(versions, Mapping):
        return versions.get(oid)
    return versions(oid)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def _check_inputs(inputs: Sequence[InputValue], versions: Optional[VersionOracle]) -> None:
    seen = {}
    for i, inp in enumerate(inputs):
        if isinstance(inp, PureInput):
            continue
        if not isinstance(inp, ObjectInput):
            raise ValidationError(
                f"input {i} is neither a pure value nor an object reference ({type(inp).__name__})",
                code="INVALID_INPUT",
                input_index=i,
            )
        oid = inp.object_id
        if oid in seen:
            raise ValidationError(
                f"object {oid.short()} appears as input {seen[oid]} and input {i}",
                code="DUPLICATE_OBJECT",
                input_index=i,
                data={"object_id": str(oid)},
            )
        seen[oid] = i
        if inp.mode.requires_version and inp.version is None:
            raise MissingVersion(
                f"input {i} ({inp.mode.label} {oid.short()}) has no pinned version",
                object_id=str(oid),
                input_index=i,
            )
        if versions is not None and inp.version is not None:
            known = _known_version(versions, oid)
            if known is not None and inp.version < known:
                raise StaleVersion(
                    f"input {i} pins version {inp.version} of {oid.short()}, last known is {known}",
                    object_id=str(oid),
                    version=inp.version,
                    known_version=known,
                    input_index=i,
                )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _missing_operand(cmd: Command) -> Optional[str]:
    if isinstance(cmd, SplitValue) and not cmd.amounts:
        return "SplitCoins needs at least one amount"
    if isinstance(cmd, MergeValues) and not cmd.sources:
        return "MergeCoins needs at least one source"
    if isinstance(cmd, TransferOwnership) and not cmd.objects:
        return "TransferObjects needs at least one object"
    if isinstance(cmd, (Publish, Upgrade)) and not cmd.modules:
        return f"{cmd.command_type} needs at least one module"
    if isinstance(cmd, BuildCollection) and not cmd.elements and cmd.element_type is None:
        return "MakeMoveVec without elements needs an element type"
    if isinstance(cmd, Invoke) and not (cmd.module and cmd.function):
        return "MoveCall needs a module and a function"
    return None


def _check_argument(
    arg: Argument,
    *,
    command_index: int,
    position: int,
    n_inputs: int,
    commands: Sequence[Command],
) -> None:
    where = dict(command_index=command_index, argument_position=position)
    if isinstance(arg, Input):
        if not 0 <= arg.index < n_inputs:
            raise ValidationError(
                f"command {command_index} argument {position}: {arg} is out of range "
                f"(block has {n_inputs} inputs)",
                code="INPUT_OUT_OF_RANGE",
                **where,
            )
        return
    if isinstance(arg, Result):
        if arg.command_index >= command_index:
            raise ValidationError(
                f"command {command_index} argument {position}: {arg} refers to a command "
                f"that does not precede it",
                code="FORWARD_RESULT",
                **where,
            )
        if arg.command_index < 0:
            raise ValidationError(
                f"command {command_index} argument {position}: {arg} has a negative command index",
                code="RESULT_OUT_OF_RANGE",
                **where,
            )
        produced = commands[arg.command_index].output_count
        if not 0 <= arg.output_index < produced:
            raise ValidationError(
                f"command {command_index} argument {position}: {arg} is out of range "
                f"(command {arg.command_index} produces {produced} outputs)",
                code="RESULT_OUT_OF_RANGE",
                **where,
            )
        return
    raise ValidationError(
        f"command {command_index} argument {position}: not an Input or Result ({type(arg).__name__})",
        code="INVALID_ARGUMENT",
        **where,
    )


def _check_commands(n_inputs: int, commands: Sequence[Command]) -> None:
    if not commands:
        raise ValidationError("a block needs at least one command", code="EMPTY_BLOCK")
    for c, cmd in enumerate(commands):
        if not isinstance(cmd, COMMAND_TYPES):
            raise ValidationError(
                f"command {c} has unknown type {type(cmd).__name__}",
                code="UNKNOWN_COMMAND",
                command_index=c,
            )
        missing = _missing_operand(cmd)
        if missing is not None:
            raise ValidationError(f"command {c}: {missing}", code="MISSING_OPERAND", command_index=c)
        for pos, arg in enumerate(cmd.arguments()):
            _check_argument(arg, command_index=c, position=pos, n_inputs=n_inputs, commands=commands)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build(
    inputs: Sequence[InputValue],
    commands: Sequence[Command],
    *,
    versions: Optional[VersionOracle] = None,
) -> Block:
    """
    Validate and assemble a Block.

    Args:
        inputs:   ordered block inputs.
        commands: ordered commands referencing inputs or earlier results.
        versions: optional version oracle (callable or mapping id → last known version)
                  used to reject stale pinned versions.

    Raises:
        ValidationError (or MissingVersion / StaleVersion) for the first offending item.
    """
    inputs_t = tuple(inputs)
    commands_t = tuple(commands)
    _check_inputs(inputs_t, versions)
    _check_commands(len(inputs_t), commands_t)
    block = Block(inputs_t, commands_t)
    log.debug("built block inputs=%d commands=%d", len(inputs_t), len(commands_t))
    return block


__all__ = ["build", "VersionOracle"]
