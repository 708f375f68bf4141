"""
ptb.types.commands — block arguments and command variants.

Arguments
---------
* `Input(i)`          — the i-th block input
* `Result(c, o)`      — the o-th value produced by command c (c must precede the user)

Commands
--------
Each command is a frozen dataclass exposing:
  * `command_type`  — trace name (MoveCall, TransferObjects, SplitCoins, …)
  * `output_count`  — how many values the command is declared to produce
  * `arguments()`   — every Argument it references, in positional order

    Invoke(package, module, function, type_args, args, returns)   -> `returns` outputs
    TransferOwnership(objects, destination)                        -> 0
    SplitValue(source, amounts)                                    -> len(amounts)
    MergeValues(destination, sources)                              -> 0
    BuildCollection(element_type, elements)                        -> 1
    Publish(modules, dependencies)                                 -> 1 (UpgradeCap)
    Upgrade(modules, package, ticket, dependencies)                -> 1 (UpgradeReceipt)
    AcquireReceived(object_id, object_type)                        -> 1

`Invoke.returns` cannot be inferred without the callee's signature, so it is declared by
the caller and defaults to one value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Sequence, Tuple, Union

from ..errors import ValidationError
from .ids import ObjectId
from .type_tag import TypeTag, as_type_tag


# ------------------------------- arguments ----------------------------------


@dataclass(frozen=True)
class Input:
    index: int

    def __str__(self) -> str:
        return f"Input({self.index})"


@dataclass(frozen=True)
class Result:
    command_index: int
    output_index: int = 0

    def __str__(self) -> str:
        return f"Result({self.command_index}, {self.output_index})"


Argument = Union[Input, Result]


def _args(values: Sequence[Any], field_name: str) -> Tuple[Argument, ...]:
    out = tuple(values)
    for i, a in enumerate(out):
        if not isinstance(a, (Input, Result)):
            raise TypeError(f"{field_name}[{i}] must be Input or Result, got {type(a).__name__}")
    return out


def _arg(value: Any, field_name: str) -> Argument:
    if not isinstance(value, (Input, Result)):
        raise TypeError(f"{field_name} must be Input or Result, got {type(value).__name__}")
    return value


def render_args(args: Sequence[Argument]) -> str:
    return "[" + ", ".join(str(a) for a in args) + "]"


# -------------------------------- commands ----------------------------------


@dataclass(frozen=True)
class Invoke:
    command_type: ClassVar[str] = "MoveCall"

    package: ObjectId
    module: str
    function: str
    type_args: Tuple[TypeTag, ...] = ()
    args: Tuple[Argument, ...] = ()
    returns: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "package", ObjectId(self.package))
        object.__setattr__(self, "type_args", tuple(as_type_tag(t) for t in self.type_args))
        object.__setattr__(self, "args", _args(self.args, "args"))
        if int(self.returns) < 0:
            raise ValueError("returns must be >= 0")

    @classmethod
    def call(
        cls,
        target: str,
        args: Sequence[Argument] = (),
        type_args: Sequence[Union[str, TypeTag]] = (),
        returns: int = 1,
    ) -> "Invoke":
        """Build from a `package::module::function` target string."""
        parts = target.split("::")
        if len(parts) != 3 or not all(parts):
            raise ValidationError(
                f"call target must be 'package::module::function', got {target!r}",
                code="INVALID_TARGET",
            )
        return cls(ObjectId(parts[0]), parts[1], parts[2], tuple(type_args), tuple(args), returns)

    @property
    def target(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"

    @property
    def output_count(self) -> int:
        return self.returns

    def arguments(self) -> Tuple[Argument, ...]:
        return self.args


@dataclass(frozen=True)
class TransferOwnership:
    command_type: ClassVar[str] = "TransferObjects"

    objects: Tuple[Argument, ...]
    destination: Argument

    def __post_init__(self) -> None:
        object.__setattr__(self, "objects", _args(self.objects, "objects"))
        _arg(self.destination, "destination")

    @property
    def output_count(self) -> int:
        return 0

    def arguments(self) -> Tuple[Argument, ...]:
        return self.objects + (self.destination,)


@dataclass(frozen=True)
class SplitValue:
    command_type: ClassVar[str] = "SplitCoins"

    source: Argument
    amounts: Tuple[Argument, ...]

    def __post_init__(self) -> None:
        _arg(self.source, "source")
        object.__setattr__(self, "amounts", _args(self.amounts, "amounts"))

    @property
    def output_count(self) -> int:
        return len(self.amounts)

    def arguments(self) -> Tuple[Argument, ...]:
        return (self.source,) + self.amounts


@dataclass(frozen=True)
class MergeValues:
    command_type: ClassVar[str] = "MergeCoins"

    destination: Argument
    sources: Tuple[Argument, ...]

    def __post_init__(self) -> None:
        _arg(self.destination, "destination")
        object.__setattr__(self, "sources", _args(self.sources, "sources"))

    @property
    def output_count(self) -> int:
        return 0

    def arguments(self) -> Tuple[Argument, ...]:
        return (self.destination,) + self.sources


@dataclass(frozen=True)
class BuildCollection:
    command_type: ClassVar[str] = "MakeMoveVec"

    element_type: Optional[TypeTag]
    elements: Tuple[Argument, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "element_type", as_type_tag(self.element_type))
        object.__setattr__(self, "elements", _args(self.elements, "elements"))

    @property
    def output_count(self) -> int:
        return 1

    def arguments(self) -> Tuple[Argument, ...]:
        return self.elements


@dataclass(frozen=True)
class Publish:
    command_type: ClassVar[str] = "Publish"

    modules: Tuple[bytes, ...]
    dependencies: Tuple[ObjectId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "modules", tuple(bytes(m) for m in self.modules))
        object.__setattr__(self, "dependencies", tuple(ObjectId(d) for d in self.dependencies))

    @property
    def output_count(self) -> int:
        return 1

    def arguments(self) -> Tuple[Argument, ...]:
        return ()


@dataclass(frozen=True)
class Upgrade:
    command_type: ClassVar[str] = "Upgrade"

    modules: Tuple[bytes, ...]
    package: ObjectId
    ticket: Argument
    dependencies: Tuple[ObjectId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "modules", tuple(bytes(m) for m in self.modules))
        object.__setattr__(self, "package", ObjectId(self.package))
        _arg(self.ticket, "ticket")
        object.__setattr__(self, "dependencies", tuple(ObjectId(d) for d in self.dependencies))

    @property
    def output_count(self) -> int:
        return 1

    def arguments(self) -> Tuple[Argument, ...]:
        return (self.ticket,)


@dataclass(frozen=True)
class AcquireReceived:
    command_type: ClassVar[str] = "Receive"

    object_id: ObjectId
    object_type: Optional[TypeTag] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "object_id", ObjectId(self.object_id))
        object.__setattr__(self, "object_type", as_type_tag(self.object_type))

    @property
    def output_count(self) -> int:
        return 1

    def arguments(self) -> Tuple[Argument, ...]:
        return ()


Command = Union[
    Invoke,
    TransferOwnership,
    SplitValue,
    MergeValues,
    BuildCollection,
    Publish,
    Upgrade,
    AcquireReceived,
]

COMMAND_TYPES = (
    Invoke,
    TransferOwnership,
    SplitValue,
    MergeValues,
    BuildCollection,
    Publish,
    Upgrade,
    AcquireReceived,
)


__all__ = [
    "Input",
    "Result",
    "Argument",
    "render_args",
    "Invoke",
    "TransferOwnership",
    "SplitValue",
    "MergeValues",
    "BuildCollection",
    "Publish",
    "Upgrade",
    "AcquireReceived",
    "Command",
    "COMMAND_TYPES",
]
