"""
ptb.state.resolver — turn object ids into versioned snapshots for block inputs.

The resolver is mode-agnostic: it only guarantees that a returned `ObjectHandle` is the
latest snapshot known to the caller's store. The access mode is chosen by the caller when
building the input (`resolve_input()` is a shortcut that does both).

Handles are single-use. After a block that may have touched an object, re-resolve it;
`check_fresh()` detects blocks built from handles that are no longer current (consumed
objects, advanced versions) before they are submitted again.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import ObjectNotFound, StaleVersion
from ..types.access import AccessMode
from ..types.block import Block
from ..types.ids import HexLike, ObjectId
from ..types.inputs import ObjectHandle, ObjectInput
from .store import ObjectStore

log = logging.getLogger(__name__)


class ReferenceResolver:
    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def resolve(self, object_id: HexLike) -> ObjectHandle:
        """Latest snapshot of `object_id`; raises ObjectNotFound if the store has none."""
        oid = ObjectId(object_id)
        obj = self.store.lookup(oid)
        if obj is None:
            raise ObjectNotFound(f"no snapshot for {oid.short()}", object_id=str(oid))
        log.debug("resolve id=%s version=%d", oid.short(), obj.version)
        return obj.handle()

    def try_resolve(self, object_id: HexLike) -> Optional[ObjectHandle]:
        obj = self.store.lookup(object_id)
        return None if obj is None else obj.handle()

    def resolve_input(self, object_id: HexLike, mode: AccessMode) -> ObjectInput:
        return ObjectInput.of(self.resolve(object_id), mode)

    def current_version(self, object_id: HexLike) -> Optional[int]:
        return self.store.current_version(object_id)

    def check_fresh(self, block: Block) -> None:
        """
        Raise if `block` references an object that no longer exists (ObjectNotFound) or
        one whose snapshot is older than the store's (StaleVersion).
        """
        for index, inp in block.object_inputs():
            obj = self.store.lookup(inp.object_id)
            if obj is None:
                raise ObjectNotFound(
                    f"input {index} references {inp.object_id.short()}, which no longer exists",
                    object_id=str(inp.object_id),
                )
            seen = inp.version if inp.version is not None else inp.handle.version
            if seen < obj.version:
                raise StaleVersion(
                    f"input {index} holds version {seen} of {inp.object_id.short()}, "
                    f"store has {obj.version}; re-resolve before resubmitting",
                    object_id=str(inp.object_id),
                    version=seen,
                    known_version=obj.version,
                    input_index=index,
                )


__all__ = ["ReferenceResolver"]
