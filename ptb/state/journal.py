"""
ptb.state.journal — journaling object writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over an `ObjectStore`. It supports nested
checkpoints via a stack of overlays. Writes go to the top overlay; reads consult overlays
from top → base. `commit()` merges the top overlay into the next layer (or into the store
if it is the last layer). `revert()` discards the top overlay.

The simulated engine runs every block inside one journal: if any command fails, the
journal is reverted and the store is left exactly as it was.

Intended usage
--------------
    j = Journal(store)
    j.begin()                       # start a checkpoint
    obj = j.get(coin_id)
    j.put(obj.evolve(state=new_state))
    j.delete(other_id)
    j.commit()                      # apply to parent/store

Notes
-----
- This journal does not enforce ownership or access rules; callers validate first.
- `written_ids()` / `deleted_ids()` report the net effect across all layers; the engine
  turns them into `created` / `mutated`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..errors import StateConflict
from ..types.ids import HexLike, ObjectId
from .store import ObjectStore, StoredObject


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `objects`: objects written (created or updated) in this layer.
    - `deleted`: ids marked for deletion in this layer.
    """

    objects: Dict[ObjectId, StoredObject] = field(default_factory=dict)
    deleted: Set[ObjectId] = field(default_factory=set)

    def put(self, obj: StoredObject) -> None:
        self.objects[obj.object_id] = obj
        self.deleted.discard(obj.object_id)

    def delete_here(self, oid: ObjectId) -> None:
        self.objects.pop(oid, None)
        self.deleted.add(oid)


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write object journal with nested checkpoints.

    Parameters
    ----------
    store : ObjectStore
        The base (persisted) object store.

    API highlights
    --------------
    - begin() / commit() / revert()
    - get(), exists(), put(), create(), delete()
    - checkpoint() / commit_to(marker) / revert_to(marker)
    """

    def __init__(self, store: ObjectStore) -> None:
        self._store = store
        # Start with a single empty overlay for convenience.
        self._layers: List[_Overlay] = [_Overlay()]
        self._created: Set[ObjectId] = set()

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker (int)."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the store if it is the root.
        """
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
            return
        self._apply_to_store(top)
        self._created.clear()
        self._layers.append(_Overlay())

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            top = self._layers.pop()
            self._created.difference_update(top.objects.keys())
        else:
            self._layers[0] = _Overlay()
            self._created.clear()

    def checkpoint(self) -> int:
        """Alias for `begin()` returning a marker token (current depth)."""
        return self.begin()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker` (1 applies to the store)."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    # --------------------------------------------------------------------- #
    # Object API
    # --------------------------------------------------------------------- #

    def get(self, object_id: HexLike) -> Optional[StoredObject]:
        """Read with overlay precedence; None if absent or deleted."""
        oid = ObjectId(object_id)
        for layer in reversed(self._layers):
            if oid in layer.deleted:
                return None
            local = layer.objects.get(oid)
            if local is not None:
                return local
        return self._store.lookup(oid)

    def exists(self, object_id: HexLike) -> bool:
        return self.get(object_id) is not None

    def put(self, obj: StoredObject) -> None:
        """Stage an update (or creation) in the top overlay."""
        self._layers[-1].put(obj)

    def create(self, obj: StoredObject) -> None:
        """Stage a new object; raises StateConflict if the id is already visible."""
        if self.exists(obj.object_id):
            raise StateConflict("object already exists", object_id=str(obj.object_id))
        self._layers[-1].put(obj)
        self._created.add(obj.object_id)

    def delete(self, object_id: HexLike) -> bool:
        """
        Mark an object deleted in the top overlay. Returns True if it was visible.
        """
        oid = ObjectId(object_id)
        visible = self.exists(oid)
        self._layers[-1].delete_here(oid)
        self._created.discard(oid)
        return visible

    # --------------------------------------------------------------------- #
    # Net effect
    # --------------------------------------------------------------------- #

    def created_ids(self) -> Set[ObjectId]:
        """Ids created inside this journal and still alive."""
        return {oid for oid in self._created if self.exists(oid)}

    def written_ids(self) -> Set[ObjectId]:
        """Ids with a pending write that are still visible (created or mutated)."""
        s: Set[ObjectId] = set()
        for layer in self._layers:
            s.update(layer.objects.keys())
        return {oid for oid in s if self.exists(oid)}

    def deleted_ids(self) -> Set[ObjectId]:
        """Store objects that are deleted by the pending layers."""
        s: Set[ObjectId] = set()
        for layer in self._layers:
            s.update(layer.deleted)
        return {oid for oid in s if not self.exists(oid) and oid in self._store}

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        for oid in src.deleted - set(src.objects.keys()):
            dst.delete_here(oid)
        for obj in src.objects.values():
            dst.put(obj)

    def _apply_to_store(self, layer: _Overlay) -> None:
        for oid in layer.deleted:
            self._store.delete(oid)
        for obj in layer.objects.values():
            self._store.put(obj)


__all__ = ["Journal"]
