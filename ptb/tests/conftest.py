"""
Shared fixtures for the ptb test-suite.

- A seeded object store (clock at 0x6), resolver, simulated engine, recorder and client.
- `demo_pkg`: the demo package (see demo_contracts.py) deployed on the engine.
- Metrics are rebound to a fresh CollectorRegistry for every test.
"""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from ptb import metrics
from ptb.runtime import PtbClient, SimulatedEngine, mint_coin, seed_clock
from ptb.state import ObjectStore, ReferenceResolver
from ptb.trace import TraceRecorder
from ptb.types import ObjectId

from .demo_contracts import DEMO_MODULES

ALICE = ObjectId("0xa11ce")
BOB = ObjectId("0xb0b")


@pytest.fixture(autouse=True)
def _fresh_metrics():
    metrics.set_registry(CollectorRegistry())
    yield


@pytest.fixture
def alice() -> ObjectId:
    return ALICE


@pytest.fixture
def bob() -> ObjectId:
    return BOB


@pytest.fixture
def store() -> ObjectStore:
    s = ObjectStore()
    seed_clock(s, 1_700_000_000_000)
    return s


@pytest.fixture
def resolver(store) -> ReferenceResolver:
    return ReferenceResolver(store)


@pytest.fixture
def engine(store) -> SimulatedEngine:
    return SimulatedEngine(store, gas_budget=10_000_000)


@pytest.fixture
def demo_pkg(engine) -> ObjectId:
    return engine.deploy_package(DEMO_MODULES)


@pytest.fixture
def recorder() -> TraceRecorder:
    return TraceRecorder("APEX Protocol", "0.1.0")


@pytest.fixture
def client(engine, resolver, recorder, alice) -> PtbClient:
    return PtbClient(engine, resolver, sender=alice, recorder=recorder)


@pytest.fixture
def alice_coin(store, alice) -> ObjectId:
    return mint_coin(store, alice, 1_000)
