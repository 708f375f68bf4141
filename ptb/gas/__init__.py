"""
ptb.gas — gas cost table and meter for the simulated engine.
"""

from .meter import GasMeter, GasSnapshot
from .table import DEFAULT_GAS_TABLE, GasTable, load_gas_table

__all__ = ["GasMeter", "GasSnapshot", "GasTable", "load_gas_table", "DEFAULT_GAS_TABLE"]
