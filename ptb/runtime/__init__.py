"""
ptb.runtime — the engine boundary, the simulated engine and client orchestration.

Public surface:
    ExecutionEngine     : protocol every engine implements
    SimulatingEngine    : engines that can also dry-run and inspect
    SimulatedEngine     : in-process engine over an ObjectStore
    FunctionRegistry    : entry-function handlers for Invoke
    CallContext         : what a handler receives as its first argument
    PtbClient           : check → submit → record → classify
"""

from .client import PtbClient
from .context import (CallContext, CommandFailure, ObjectRef, PureValue,
                      UpgradeReceipt, UpgradeTicket)
from .dispatcher import DispatchError
from .engine import ExecutionEngine, SimulatingEngine
from .registry import FunctionRegistry, HandlerRecord
from .simulator import SimulatedEngine
from .well_known import (CLOCK_OBJECT_ID, FRAMEWORK_ID, SUI_COIN_TYPE,
                         coin_balance, mint_coin, seed_clock)

__all__ = [
    "ExecutionEngine",
    "SimulatingEngine",
    "SimulatedEngine",
    "FunctionRegistry",
    "HandlerRecord",
    "CallContext",
    "CommandFailure",
    "DispatchError",
    "PureValue",
    "ObjectRef",
    "UpgradeTicket",
    "UpgradeReceipt",
    "PtbClient",
    "CLOCK_OBJECT_ID",
    "FRAMEWORK_ID",
    "SUI_COIN_TYPE",
    "coin_balance",
    "mint_coin",
    "seed_clock",
]
