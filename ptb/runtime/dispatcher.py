"""
ptb.runtime.dispatcher — route each command of a block to its built-in implementation.

The routing table is keyed by command class and must cover every member of
`ptb.types.commands.COMMAND_TYPES`; an unmapped command raises `DispatchError` instead of
being skipped. `dispatch()` also charges the per-command gas cost and resolves the
command's `Input` / `Result` arguments to values before calling the handler.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple, Type

from ..errors import PtbError
from ..types.commands import (COMMAND_TYPES, AcquireReceived, Argument,
                              BuildCollection, Command, Input, Invoke,
                              MergeValues, Publish, Result, SplitValue,
                              TransferOwnership, Upgrade)
from . import builtins
from .context import CommandFailure, ExecState, Value
from .registry import FunctionRegistry


class DispatchError(PtbError):
    """Raised when a command has no implementation. This is an engine defect, not a block failure."""
    def __init__(self, message: str = "no handler for command", *, command_type: str = "?"):
        super().__init__(message=message, code="DISPATCH_ERROR", data={"command_type": command_type})


CommandHandler = Callable[[ExecState, Command, Tuple[Value, ...], FunctionRegistry], Tuple[Value, ...]]

HANDLERS: Dict[Type[object], CommandHandler] = {
    Invoke: builtins.run_invoke,
    TransferOwnership: builtins.run_transfer,
    SplitValue: builtins.run_split,
    MergeValues: builtins.run_merge,
    BuildCollection: builtins.run_make_vec,
    Publish: builtins.run_publish,
    Upgrade: builtins.run_upgrade,
    AcquireReceived: builtins.run_receive,
}

_missing = [c.__name__ for c in COMMAND_TYPES if c not in HANDLERS]
if _missing:  # pragma: no cover - import-time guard
    raise ImportError(f"dispatcher has no handler for: {', '.join(_missing)}")


def resolve_argument(state: ExecState, arg: Argument) -> Value:
    if isinstance(arg, Input):
        return state.inputs[arg.index]
    if isinstance(arg, Result):
        outputs = state.results[arg.command_index]
        if arg.output_index >= len(outputs):
            raise CommandFailure(
                "RESULT_UNAVAILABLE",
                f"command {arg.command_index} produced {len(outputs)} values, {arg} is not one of them",
                data={"command_index": arg.command_index, "output_index": arg.output_index},
            )
        return outputs[arg.output_index]
    raise DispatchError(f"unknown argument kind {type(arg).__name__}", command_type=type(arg).__name__)


def dispatch(state: ExecState, command: Command, registry: FunctionRegistry) -> Tuple[Value, ...]:
    """Run one command against `state`; returns its outputs."""
    handler = HANDLERS.get(type(command))
    if handler is None:
        raise DispatchError(
            f"no handler for command {type(command).__name__}",
            command_type=getattr(command, "command_type", type(command).__name__),
        )
    state.meter.debit(state.gas_table.command_cost(command.command_type), reason=command.command_type)
    args = tuple(resolve_argument(state, a) for a in command.arguments())
    return handler(state, command, args, registry)


__all__ = ["DispatchError", "HANDLERS", "resolve_argument", "dispatch"]
