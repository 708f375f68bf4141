"""
ptb.trace — execution trace schema, renderers and the thread-safe recorder.
"""

from .recorder import TraceRecorder
from .render import create_entry, render_command, render_input, render_outputs
from .schema import (CreatedObject, TraceCommand, TraceDocument, TraceEntry,
                     TraceEvent, TraceInput, TraceOutputs, load_trace_file,
                     write_trace_file)

__all__ = [
    "TraceRecorder",
    "TraceDocument",
    "TraceEntry",
    "TraceInput",
    "TraceCommand",
    "TraceOutputs",
    "CreatedObject",
    "TraceEvent",
    "load_trace_file",
    "write_trace_file",
    "render_input",
    "render_command",
    "render_outputs",
    "create_entry",
]
