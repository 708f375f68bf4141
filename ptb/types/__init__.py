"""
ptb.types — canonical block, input and result types.

Small, dependency-light dataclasses shared by the builder, the resolver, engines, the
classifier and the trace recorder.

Public surface (re-exported):
    ObjectId, Address             : 32-byte identities (0x-hex str subclass)
    TypeTag, StructTag, …         : parsed Move-style type tags
    AccessKind, AccessMode        : how a block references an object
    ObjectHandle                  : point-in-time snapshot of an object
    PureInput, ObjectInput        : block inputs
    Input, Result                 : argument references
    Invoke, SplitValue, …         : command variants
    Block                         : validated, immutable block
    ExecutionResult, Event, …     : engine output
"""

from __future__ import annotations

from .access import AccessKind, AccessMode
from .block import Block
from .commands import (COMMAND_TYPES, AcquireReceived, Argument,
                       BuildCollection, Command, Input, Invoke, MergeValues,
                       Publish, Result, SplitValue, TransferOwnership, Upgrade)
from .ids import Address, ObjectId, is_object_id
from .inputs import InputValue, ObjectHandle, ObjectInput, PureInput
from .result import Event, ExecutionError, ExecutionResult
from .type_tag import (PrimitiveTag, StructTag, TypeTag, VectorTag,
                       parse_struct_tag, parse_type_tag)

__all__ = [
    "ObjectId",
    "Address",
    "is_object_id",
    "TypeTag",
    "PrimitiveTag",
    "VectorTag",
    "StructTag",
    "parse_type_tag",
    "parse_struct_tag",
    "AccessKind",
    "AccessMode",
    "ObjectHandle",
    "PureInput",
    "ObjectInput",
    "InputValue",
    "Input",
    "Result",
    "Argument",
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
    "Block",
    "Event",
    "ExecutionError",
    "ExecutionResult",
]
