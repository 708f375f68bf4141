"""
ptb.types.block — the immutable, validated transaction block.

A `Block` is an ordered tuple of inputs plus an ordered tuple of commands. It is produced by
`ptb.builder.build()` (or `BlockBuilder.build()`), which performs the argument-reference
validation; constructing a Block directly skips those checks and is reserved for tests and
decoders.

`Block.digest()` hashes a canonical JSON rendering of the block with SHA3-256. The digest
is stable across processes and is what the simulated engine derives new object ids from.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterator, List, Tuple

from .commands import COMMAND_TYPES, Command, Input, Result
from .inputs import InputValue, ObjectInput, PureInput
from .ids import ObjectId


def _canon(value: Any) -> Any:
    if isinstance(value, (Input, Result)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (tuple, list)):
        return [_canon(v) for v in value]
    if value is None or isinstance(value, (bool, int, str)):
        return value
    # type tags and other value types render through str()
    return str(value)


def input_to_canonical(value: InputValue) -> Dict[str, Any]:
    if isinstance(value, PureInput):
        return {"pure": "0x" + value.value.hex()}
    h = value.handle
    return {
        "object": str(h.object_id),
        "mode": value.mode.label,
        "version": value.version,
        "typeTag": None if h.type_tag is None else str(h.type_tag),
    }


def command_to_canonical(cmd: Command) -> Dict[str, Any]:
    if not isinstance(cmd, COMMAND_TYPES):
        raise TypeError(f"unknown command type: {type(cmd).__name__}")
    out: Dict[str, Any] = {"commandType": cmd.command_type}
    for f in fields(cmd):
        out[f.name] = _canon(getattr(cmd, f.name))
    return out


@dataclass(frozen=True)
class Block:
    inputs: Tuple[InputValue, ...]
    commands: Tuple[Command, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "commands", tuple(self.commands))

    def object_inputs(self) -> Iterator[Tuple[int, ObjectInput]]:
        """(index, input) for every object input, in input order."""
        for i, inp in enumerate(self.inputs):
            if isinstance(inp, ObjectInput):
                yield i, inp

    def object_ids(self) -> List[ObjectId]:
        return [inp.object_id for _, inp in self.object_inputs()]

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "inputs": [input_to_canonical(i) for i in self.inputs],
            "commands": [command_to_canonical(c) for c in self.commands],
        }

    def digest(self) -> bytes:
        payload = json.dumps(self.to_canonical(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha3_256(payload.encode("utf-8")).digest()

    def __len__(self) -> int:
        return len(self.commands)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"Block(inputs={len(self.inputs)}, commands={len(self.commands)}, digest=0x{self.digest().hex()[:16]}…)"


__all__ = ["Block", "input_to_canonical", "command_to_canonical"]
