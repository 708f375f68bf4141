"""
ptb — programmable transaction blocks: composition, reference resolution, effect
classification and execution tracing.

This package exposes only lightweight metadata at import time. The working surface lives
in the subpackages:

    ptb.types     — ids, type tags, access modes, inputs, commands, blocks, results
    ptb.codec     — BCS encoding of pure (non-object) input values
    ptb.state     — object store, reference resolver, write journal
    ptb.builder   — block validation and the fluent BlockBuilder
    ptb.runtime   — engine boundary, simulated engine, client orchestration
    ptb.effects   — classification of created objects
    ptb.trace     — trace schema, renderers and the TraceRecorder
"""

from .version import __version__, package_version

__all__ = ["__version__", "package_version"]
