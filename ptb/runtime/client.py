"""
ptb.runtime.client — one-call orchestration: check → submit → record → classify.

`PtbClient` wires the pieces a caller would otherwise connect by hand:

    client = PtbClient(engine, ReferenceResolver(store), recorder=TraceRecorder(), sender=alice)
    b = BlockBuilder()
    b.move_call(f"{pkg}::registry::register", [b.pure_string("alpha")])
    result = client.execute(b.build(), label="register")
    svc = client.classifier.expect(result, ByStructuralType("Service"))

Before submission the block's object inputs are checked against the resolver's store,
so a block built from consumed or outdated handles is rejected (ObjectNotFound /
StaleVersion) without reaching the engine. Engine failures are returned untouched as
failed ExecutionResults and recorded like successes.

`dry_run` and `inspect` run a block through an engine that supports it without
committing; `inspect` also returns what every command produced.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .. import metrics
from ..builder.fluent import BlockBuilder
from ..effects.classify import ClassifyHint, EffectClassifier
from ..errors import ObjectNotFound, StaleVersion
from ..state.resolver import ReferenceResolver
from ..trace.recorder import TraceRecorder
from ..trace.render import create_entry
from ..types.block import Block
from ..types.ids import HexLike, ObjectId
from ..types.result import ExecutionResult
from .context import Value
from .engine import ExecutionEngine, SimulatingEngine

log = logging.getLogger(__name__)


class PtbClient:
    def __init__(
        self,
        engine: ExecutionEngine,
        resolver: ReferenceResolver,
        *,
        sender: HexLike,
        recorder: Optional[TraceRecorder] = None,
        classifier: Optional[EffectClassifier] = None,
    ) -> None:
        self.engine = engine
        self.resolver = resolver
        self.sender = ObjectId(sender)
        self.recorder = recorder
        self.classifier = classifier or EffectClassifier(resolver.store.lookup)

    def builder(self) -> BlockBuilder:
        return BlockBuilder()

    def execute(
        self,
        block: Block,
        *,
        label: str,
        sender: Optional[HexLike] = None,
        group: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Submit `block` and record it.

        Raises ObjectNotFound / StaleVersion (before any engine call) when the block
        references objects that are gone or have moved on since they were resolved.
        """
        who = self.sender if sender is None else ObjectId(sender)
        try:
            self.resolver.check_fresh(block)
        except (ObjectNotFound, StaleVersion):
            metrics.observe_block(result="rejected", gas_used=0, commands=len(block.commands))
            log.info("block %r rejected before submission: stale or consumed input", label)
            raise

        result = self.engine.submit(block, who)
        metrics.observe_block(
            result="success" if result.success else "failure",
            gas_used=result.gas_used,
            commands=len(block.commands),
        )
        if result.success:
            log.info(
                "block %r ok gas=%d created=%d mutated=%d",
                label, result.gas_used, len(result.created), len(result.mutated),
            )
        else:
            log.info("block %r failed: %s", label, result.error)

        if self.recorder is not None:
            self.recorder.record(create_entry(label, who, block, result, self.resolver.store.lookup, group))
        return result

    def execute_builder(
        self,
        builder: BlockBuilder,
        *,
        label: str,
        sender: Optional[HexLike] = None,
        group: Optional[str] = None,
    ) -> ExecutionResult:
        """Build with the resolver as version oracle, then `execute`."""
        block = builder.build(versions=self.resolver.current_version)
        return self.execute(block, label=label, sender=sender, group=group)

    def dry_run(self, block: Block, *, sender: Optional[HexLike] = None) -> ExecutionResult:
        """
        Execute `block` without committing anything. Nothing is recorded and the block
        metrics are left alone. Stale or consumed inputs raise as in `execute`.
        """
        result, _ = self._simulate(block, sender, with_results=False)
        return result

    def inspect(
        self, block: Block, *, sender: Optional[HexLike] = None
    ) -> Tuple[ExecutionResult, Tuple[Tuple[Value, ...], ...]]:
        """Dry-run `block` and return the per-command results alongside the outcome."""
        return self._simulate(block, sender, with_results=True)

    def _simulate(
        self, block: Block, sender: Optional[HexLike], *, with_results: bool
    ) -> Tuple[ExecutionResult, Tuple[Tuple[Value, ...], ...]]:
        if not isinstance(self.engine, SimulatingEngine):
            raise TypeError(f"{type(self.engine).__name__} cannot execute without committing")
        who = self.sender if sender is None else ObjectId(sender)
        self.resolver.check_fresh(block)
        if with_results:
            result, results = self.engine.inspect(block, who)
        else:
            result, results = self.engine.dry_run(block, who), ()
        log.debug("dry run ok=%s gas=%d", result.success, result.gas_used)
        return result, results

    def execute_and_classify(
        self,
        block: Block,
        hint: ClassifyHint,
        *,
        label: str,
        sender: Optional[HexLike] = None,
        group: Optional[str] = None,
    ) -> Tuple[ExecutionResult, Optional[ObjectId]]:
        result = self.execute(block, label=label, sender=sender, group=group)
        return result, self.classifier.classify(result, hint)


__all__ = ["PtbClient"]
