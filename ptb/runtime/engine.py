"""
ptb.runtime.engine — the execution engine boundary.

An engine accepts a validated `Block` plus the sending address and returns an
`ExecutionResult`. Anything that honours this contract can sit behind `PtbClient`:
a node RPC adapter, a replay harness, or `SimulatedEngine`.

Contract
--------
* Atomic: a failed result leaves the engine's object state untouched and reports no
  `created` / `mutated` ids.
* Failures are values. Aborts, gas exhaustion and access violations come back as
  `ExecutionResult(success=False, error=...)`; only defects in the engine itself raise.
* `created` ordering is engine-defined and need not follow command order.

Engines that can execute without committing also implement `SimulatingEngine`:
`dry_run` returns the result `submit` would have produced and leaves state untouched;
`inspect` does the same and also returns the values each command produced.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable

from ..types.block import Block
from ..types.ids import HexLike
from ..types.result import ExecutionResult


@runtime_checkable
class ExecutionEngine(Protocol):
    def submit(self, block: Block, sender: HexLike) -> ExecutionResult:
        ...


@runtime_checkable
class SimulatingEngine(ExecutionEngine, Protocol):
    def dry_run(self, block: Block, sender: HexLike) -> ExecutionResult:
        ...

    def inspect(self, block: Block, sender: HexLike) -> Tuple[ExecutionResult, Tuple[Tuple[Any, ...], ...]]:
        ...


__all__ = ["ExecutionEngine", "SimulatingEngine"]
