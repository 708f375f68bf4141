"""
ptb.metrics — Prometheus counters & histograms for block submission, classification and tracing.

Design goals
------------
* Centralized registry: consumers can call `get_registry()` and `generate_latest_text()`
  to expose metrics (e.g., from a sidecar HTTP handler).
* Simple helpers cover the common paths: `observe_block(...)`, `observe_classify(...)`,
  `observe_trace_recorded()`, `observe_trace_flush(...)`.

Exposed metrics (names are prefixed with `ptb_`):
  - blocks_submitted_total{result}        : Counter — blocks submitted by outcome
  - block_gas_used                        : Histogram — gas used per block
  - block_commands                        : Histogram — commands per block
  - classify_total{hint,outcome}          : Counter — classification outcomes
  - traces_recorded_total                 : Counter — trace entries recorded
  - trace_flush_total{result}             : Counter — trace flushes by outcome

Labels:
  - result  ∈ {success, failure, rejected} for blocks; {ok, error, empty} for flushes
  - hint    ∈ {first_created, prefer_shared, prefer_owned, by_type}
  - outcome ∈ {match, fallback, not_found}
"""

from __future__ import annotations

import os
from typing import Iterable, Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry,
                               Counter, Histogram, generate_latest)

# ------------------------------ configuration -------------------------------

_PREFIX = "ptb_"


def _buckets_from_env(name: str, default: Iterable[float]) -> Iterable[float]:
    raw = os.getenv(name)
    if not raw:
        return default
    out = []
    for tok in raw.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out or default


_GAS_BUCKETS = tuple(_buckets_from_env(
    "PTB_METRICS_GAS_BUCKETS",
    (1_000, 2_000, 5_000, 10_000, 20_000, 50_000, 100_000, 500_000, 1_000_000, 10_000_000),
))
_COMMAND_BUCKETS = tuple(_buckets_from_env(
    "PTB_METRICS_COMMAND_BUCKETS",
    (1, 2, 3, 4, 6, 8, 12, 16, 32, 64, 128, 256, 1024),
))


# ------------------------------ registry & ctor ------------------------------

_registry: Optional[CollectorRegistry] = None

BLOCKS_SUBMITTED_TOTAL: Counter
BLOCK_GAS_USED: Histogram
BLOCK_COMMANDS: Histogram
CLASSIFY_TOTAL: Counter
TRACES_RECORDED_TOTAL: Counter
TRACE_FLUSH_TOTAL: Counter


def _build_metrics(reg: CollectorRegistry) -> None:
    """Instantiate metrics bound to `reg`."""
    global BLOCKS_SUBMITTED_TOTAL, BLOCK_GAS_USED, BLOCK_COMMANDS
    global CLASSIFY_TOTAL, TRACES_RECORDED_TOTAL, TRACE_FLUSH_TOTAL

    BLOCKS_SUBMITTED_TOTAL = Counter(
        _PREFIX + "blocks_submitted_total",
        "Blocks submitted to an engine (by result).",
        labelnames=("result",),
        registry=reg,
    )
    BLOCK_GAS_USED = Histogram(
        _PREFIX + "block_gas_used",
        "Gas used per submitted block.",
        buckets=_GAS_BUCKETS,
        registry=reg,
    )
    BLOCK_COMMANDS = Histogram(
        _PREFIX + "block_commands",
        "Commands per submitted block.",
        buckets=_COMMAND_BUCKETS,
        registry=reg,
    )
    CLASSIFY_TOTAL = Counter(
        _PREFIX + "classify_total",
        "Effect classification outcomes (by hint and outcome).",
        labelnames=("hint", "outcome"),
        registry=reg,
    )
    TRACES_RECORDED_TOTAL = Counter(
        _PREFIX + "traces_recorded_total",
        "Trace entries recorded.",
        registry=reg,
    )
    TRACE_FLUSH_TOTAL = Counter(
        _PREFIX + "trace_flush_total",
        "Trace flushes (by result).",
        labelnames=("result",),
        registry=reg,
    )


def set_registry(registry: CollectorRegistry) -> None:
    """
    Inject a custom CollectorRegistry (e.g., an app-global one). Rebinds all metrics;
    counts recorded against the previous registry are not carried over.
    """
    global _registry
    _registry = registry
    _build_metrics(registry)


def get_registry() -> CollectorRegistry:
    """Return the metrics registry, creating one on first use."""
    reg = _registry
    if reg is None:
        reg = CollectorRegistry()
        set_registry(reg)
    return reg


# ------------------------------ helpers -------------------------------------


def observe_block(*, result: str, gas_used: int, commands: int) -> None:
    """
    Record one block submission.

    Args:
        result: 'success', 'failure' (engine reported failure) or 'rejected' (never sent)
        gas_used: gas reported by the engine (ignored for rejected blocks)
        commands: number of commands in the block
    """
    get_registry()
    BLOCKS_SUBMITTED_TOTAL.labels(result=result).inc()
    if result != "rejected":
        BLOCK_GAS_USED.observe(float(max(0, gas_used)))
    BLOCK_COMMANDS.observe(float(max(0, commands)))


def observe_classify(*, hint: str, outcome: str) -> None:
    get_registry()
    CLASSIFY_TOTAL.labels(hint=hint, outcome=outcome).inc()


def observe_trace_recorded() -> None:
    get_registry()
    TRACES_RECORDED_TOTAL.inc()


def observe_trace_flush(result: str) -> None:
    get_registry()
    TRACE_FLUSH_TOTAL.labels(result=result).inc()


# ------------------------------ exposition ----------------------------------


def generate_latest_text() -> bytes:
    """Prometheus exposition format for the current registry."""
    return generate_latest(get_registry())


__all__ = [
    "get_registry",
    "set_registry",
    "generate_latest_text",
    "observe_block",
    "observe_classify",
    "observe_trace_recorded",
    "observe_trace_flush",
    "CONTENT_TYPE_LATEST",
]
