"""
ptb.builder — block validation (`build`) and incremental composition (`BlockBuilder`).
"""

from .fluent import BlockBuilder, CommandResult
from .validate import VersionOracle, build

__all__ = ["build", "VersionOracle", "BlockBuilder", "CommandResult"]
