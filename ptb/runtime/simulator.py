"""
ptb.runtime.simulator — in-process execution engine over an ObjectStore.

`SimulatedEngine` implements the `ExecutionEngine` contract for tests and local
development. It is not a VM: built-in commands (split/merge/transfer/collection/
publish/upgrade/receive) are interpreted directly and `Invoke` is routed to Python
handlers registered in a `FunctionRegistry`.

Submission pipeline
-------------------
1. Derive the transaction digest: SHA3-256(block digest ‖ sender ‖ submission counter).
2. Assign the lamport version: max(version of every object input) + 1, raised at commit
   time so it also exceeds every object the block wrote.
3. Charge the block base cost, then check every input against the store:
     missing object                       → OBJECT_NOT_FOUND
     version differs from the store       → STALE_VERSION
     Owned / MutRef not owned by sender   → NOT_OWNER
     mutable access to shared/immutable   → INVALID_ACCESS
     Shared access to a non-shared object → INVALID_ACCESS
     Receiving whose parent is not a mutable input → NOT_OWNER
4. Run the commands left to right through `dispatcher.dispatch`. Writes land in a
   `Journal` overlay.
5. On success: stamp every written object (and every mutable input) with the lamport
   version, commit the journal and report `created` / `mutated` sorted by id.
   On failure: revert the journal and report the error with the failing command index.
   `dry_run` and `inspect` run the same pipeline and always revert.

Gas is charged from a `GasTable` against a `GasMeter` holding the configured budget.
Exhaustion fails the block with OUT_OF_GAS and `gas_used == budget`.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Mapping, Optional, Tuple, Union

from ..codec import bcs
from ..config import PtbConfig, get_config
from ..errors import CodecError, MoveAbort, OutOfGas, PtbError, StateConflict
from ..gas.meter import GasMeter
from ..gas.table import DEFAULT_GAS_TABLE, GasTable, load_gas_table
from ..state.journal import Journal
from ..state.store import ObjectOwner, ObjectStore, Shared, StoredObject
from ..types.access import AccessKind
from ..types.block import Block
from ..types.ids import HexLike, ObjectId
from ..types.inputs import ObjectInput, PureInput
from ..types.result import ExecutionResult
from .context import CommandFailure, ExecState, ObjectRef, PureValue, Value
from .dispatcher import dispatch
from .registry import FunctionRegistry, Handler
from .well_known import CLOCK_OBJECT_ID, clock_timestamp, register_framework

log = logging.getLogger(__name__)

# failures that become a failed ExecutionResult; anything else is an engine defect
_BLOCK_FAILURES = (CommandFailure, MoveAbort, OutOfGas, StateConflict, CodecError)


class SimulatedEngine:
    """
    Parameters
    ----------
    store : ObjectStore
        Object state the engine reads and, on success, writes.
    registry : FunctionRegistry, optional
        Entry-function handlers. A fresh registry with the framework functions
        (`0x2::package::authorize_upgrade` / `commit_upgrade`) is used by default.
    gas_budget : int
        Gas available to each submitted block.
    gas_table : GasTable, optional
        Costs; defaults to `DEFAULT_GAS_TABLE`.
    clock_timestamp_ms : int
        Timestamp seen by entry functions when the store has no clock object.
    """

    def __init__(
        self,
        store: ObjectStore,
        registry: Optional[FunctionRegistry] = None,
        *,
        gas_budget: int = 50_000_000,
        gas_table: Optional[GasTable] = None,
        clock_timestamp_ms: int = 1_700_000_000_000,
    ) -> None:
        if gas_budget <= 0:
            raise ValueError("gas_budget must be > 0")
        self.store = store
        self.registry = registry if registry is not None else register_framework(FunctionRegistry())
        self.gas_budget = int(gas_budget)
        self.gas_table = gas_table or DEFAULT_GAS_TABLE
        self.clock_timestamp_ms = int(clock_timestamp_ms)
        self._submissions = 0

    @classmethod
    def from_config(
        cls,
        store: ObjectStore,
        registry: Optional[FunctionRegistry] = None,
        cfg: Optional[PtbConfig] = None,
    ) -> "SimulatedEngine":
        cfg = cfg or get_config()
        return cls(
            store,
            registry,
            gas_budget=cfg.engine.gas_budget,
            gas_table=load_gas_table(cfg.engine.gas_table_path),
            clock_timestamp_ms=cfg.engine.clock_timestamp_ms,
        )

    # ------------------------------------------------------------------ deploy

    def deploy_package(
        self,
        handlers: Mapping[str, Mapping[str, Handler]],
        package_id: Optional[HexLike] = None,
    ) -> ObjectId:
        """
        Register `{module: {function: handler}}` under a package id and store the package
        as an immutable object. Returns the package id (derived when not given).
        """
        names = sorted(handlers)
        if package_id is None:
            seed = b"package" + len(self.store).to_bytes(8, "little") + "|".join(names).encode("utf-8")
            pkg = ObjectId(hashlib.sha3_256(seed).digest())
            while pkg in self.store:
                pkg = ObjectId(hashlib.sha3_256(pkg.raw).digest())
        else:
            pkg = ObjectId(package_id)
        self.store.load(pkg, bcs.encode_vector(names, bcs.encode_string), is_immutable=True)
        for module in names:
            self.registry.register_module(pkg, module, handlers[module])
        log.info("deployed package %s modules=%s", pkg.short(), ",".join(names))
        return pkg

    # ------------------------------------------------------------------ submit

    def submit(self, block: Block, sender: HexLike) -> ExecutionResult:
        result, _ = self._execute(block, sender, commit=True)
        return result

    def dry_run(self, block: Block, sender: HexLike) -> ExecutionResult:
        """Execute `block` exactly as `submit` would, then discard every write."""
        result, _ = self._execute(block, sender, commit=False)
        return result

    def inspect(self, block: Block, sender: HexLike) -> Tuple[ExecutionResult, Tuple[Tuple[Value, ...], ...]]:
        """
        Dry-run `block` and also return the values each command produced, in command
        order. A failed block reports the results of the commands that ran before it.
        """
        result, state = self._execute(block, sender, commit=False)
        return result, tuple(state.results)

    def _execute(self, block: Block, sender: HexLike, *, commit: bool) -> Tuple[ExecutionResult, ExecState]:
        sender_id = ObjectId(sender)
        counter = self._submissions + 1
        if commit:
            self._submissions = counter
        tx_digest = hashlib.sha3_256(
            block.digest() + sender_id.raw + counter.to_bytes(8, "little")
        ).digest()

        journal = Journal(self.store)
        state = ExecState(
            journal=journal,
            meter=GasMeter(self.gas_budget),
            gas_table=self.gas_table,
            sender=sender_id,
            tx_digest=tx_digest,
            lamport_version=self._lamport_version(block),
            timestamp_ms=self._timestamp(journal),
        )

        index: Optional[int] = None
        try:
            state.charge("block_base")
            state.inputs = tuple(self._load_input(state, i, inp) for i, inp in enumerate(block.inputs))
            self._check_receiving(state, block)
            for index, command in enumerate(block.commands):
                state.results.append(dispatch(state, command, self.registry))
            result = self._finish(state, commit=commit)
        except _BLOCK_FAILURES as exc:
            journal.revert()
            result = self._failure(exc, index, state.meter.used)
        except BaseException:
            journal.revert()
            raise

        mode = "block" if commit else "dry run"
        if result.success:
            log.debug(
                "%s 0x%s ok gas=%d created=%d mutated=%d",
                mode, tx_digest.hex()[:16], result.gas_used, len(result.created), len(result.mutated),
            )
        else:
            log.debug("%s 0x%s failed: %s", mode, tx_digest.hex()[:16], result.error)
        return result, state

    # ------------------------------------------------------------------ internals

    def _lamport_version(self, block: Block) -> int:
        versions = [self.store.current_version(oid) for oid in block.object_ids()]
        known = [v for v in versions if v is not None]
        return max(known) + 1 if known else 1

    def _timestamp(self, journal: Journal) -> int:
        clock = journal.get(CLOCK_OBJECT_ID)
        if clock is None or len(clock.state) != 40:
            return self.clock_timestamp_ms
        return clock_timestamp(clock.state)

    def _load_input(self, state: ExecState, index: int, inp: Union[PureInput, ObjectInput]) -> Value:
        if isinstance(inp, PureInput):
            state.charge("input_pure_byte", len(inp.value))
            return PureValue(inp.value)

        state.charge("input_object")
        oid = inp.object_id
        obj = state.journal.get(oid)
        if obj is None:
            raise CommandFailure(
                "OBJECT_NOT_FOUND",
                f"input {index} references {oid.short()}, which does not exist",
                data={"input_index": index, "object_id": str(oid)},
            )
        pinned = inp.version if inp.version is not None else inp.handle.version
        if pinned != obj.version:
            raise CommandFailure(
                "STALE_VERSION",
                f"input {index} pins version {pinned} of {oid.short()}, current is {obj.version}",
                data={"input_index": index, "object_id": str(oid), "version": pinned, "current": obj.version},
            )
        self._check_access(state, index, inp, obj)
        return ObjectRef(oid)

    def _check_access(self, state: ExecState, index: int, inp: ObjectInput, obj: StoredObject) -> None:
        kind = inp.mode.kind
        oid = obj.object_id

        def fail(code: str, message: str) -> CommandFailure:
            return CommandFailure(
                code,
                f"input {index} ({inp.mode.label} {oid.short()}): {message}",
                data={"input_index": index, "object_id": str(oid), "owner": str(obj.owner)},
            )

        if kind in (AccessKind.OWNED, AccessKind.MUTABLE_REF):
            if obj.is_shared or obj.is_immutable:
                raise fail("INVALID_ACCESS", "object is not address-owned")
            if not obj.owned_by(state.sender):
                raise fail("NOT_OWNER", "object is not owned by the sender")
            state.mutable_inputs.add(oid)
        elif kind is AccessKind.IMMUTABLE_REF:
            if obj.is_shared:
                raise fail("INVALID_ACCESS", "shared objects must be referenced as shared")
            if not obj.is_immutable and not obj.owned_by(state.sender):
                raise fail("NOT_OWNER", "object is not owned by the sender")
            state.readonly.add(oid)
        elif kind is AccessKind.SHARED:
            if not obj.is_shared:
                raise fail("INVALID_ACCESS", "object is not shared")
            if inp.mode.mutable:
                state.mutable_inputs.add(oid)
            else:
                state.readonly.add(oid)
        elif kind is AccessKind.RECEIVING:
            if not isinstance(obj.owner, ObjectOwner):
                raise fail("INVALID_ACCESS", "only objects owned by another object can be received")
            state.readonly.add(oid)

    @staticmethod
    def _check_receiving(state: ExecState, block: Block) -> None:
        # the parent may appear later in the input list than the received object
        for index, inp in block.object_inputs():
            if inp.mode.kind is not AccessKind.RECEIVING:
                continue
            obj = state.journal.get(inp.object_id)
            parent = obj.owner.object_id
            if parent not in state.mutable_inputs:
                raise CommandFailure(
                    "NOT_OWNER",
                    f"input {index} (Receiving {obj.object_id.short()}): parent {parent.short()} is not a mutable input",
                    data={"input_index": index, "object_id": str(obj.object_id), "owner": str(obj.owner)},
                )

    def _finish(self, state: ExecState, *, commit: bool = True) -> ExecutionResult:
        journal = state.journal
        created = journal.created_ids()
        touched = journal.written_ids() | {oid for oid in state.mutable_inputs if journal.exists(oid)}
        # a written object never moves back, input or not
        prior = [self.store.current_version(oid) for oid in touched - created]
        lamport = max([state.lamport_version] + [v + 1 for v in prior if v is not None])
        for oid in touched:
            obj = journal.get(oid)
            changes = {}
            if obj.version != lamport:
                changes["version"] = lamport
            if isinstance(obj.owner, Shared) and obj.owner.initial_version != lamport:
                before = self.store.lookup(oid)
                if before is None or not before.is_shared:
                    changes["owner"] = Shared(lamport)
            if changes:
                journal.put(obj.evolve(**changes))
        result = ExecutionResult.ok(
            state.meter.used,
            created=sorted(created),
            mutated=sorted(touched - created),
            events=state.events,
        )
        if not commit:
            journal.revert()
            return result
        journal.commit()
        for source, dest in state.package_aliases:
            self.registry.alias_package(source, dest)
        return result

    @staticmethod
    def _failure(exc: PtbError, index: Optional[int], gas_used: int) -> ExecutionResult:
        code = exc.code
        if isinstance(exc, CodecError):
            code = "INVALID_ARGUMENT"
        return ExecutionResult.failure(
            code,
            exc.message,
            gas_used=gas_used,
            command_index=index,
            data=exc.data,
        )


__all__ = ["SimulatedEngine"]
