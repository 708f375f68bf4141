"""
ptb.trace.recorder — thread-safe, append-only log of execution traces.

A `TraceRecorder` is created by the application and passed to whoever submits blocks
(usually `PtbClient`). There is no process-wide instance; tests create their own.

    rec = TraceRecorder("APEX Protocol", "0.1.0")
    rec.record(entry)            # any thread
    rec.entries()                # consistent snapshot
    rec.drain_to(sink)           # sink(TraceDocument); log is cleared afterwards
    rec.flush("ptb_traces.json") # best-effort JSON persistence at shutdown

`flush` is the one place in the package that suppresses an error: an OSError while
writing is logged and the entries stay in the recorder so a later flush can retry.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .. import metrics
from ..config import PtbConfig, get_config
from .schema import TraceDocument, TraceEntry, write_trace_file

log = logging.getLogger(__name__)

Sink = Callable[[TraceDocument], None]


class TraceRecorder:
    def __init__(
        self,
        protocol: str = "APEX Protocol",
        version: str = "0.1.0",
        *,
        path: Union[str, Path] = "ptb_traces.json",
    ) -> None:
        self.protocol = protocol
        self.version = version
        self.path = Path(path)
        self._lock = threading.Lock()
        self._entries: List[TraceEntry] = []

    @classmethod
    def from_config(cls, cfg: Optional[PtbConfig] = None) -> "TraceRecorder":
        cfg = cfg or get_config()
        return cls(cfg.trace.protocol_name, cfg.trace.protocol_version, path=cfg.trace.path)

    def record(self, entry: TraceEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        metrics.observe_trace_recorded()

    def entries(self) -> Tuple[TraceEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def document(self) -> TraceDocument:
        """Snapshot of the current log as a document (does not clear it)."""
        return TraceDocument.new(self.protocol, self.version, self.entries())

    def drain_to(self, sink: Sink) -> int:
        """
        Hand the accumulated entries to `sink` as one document and clear the log.

        Returns the number of entries drained; an empty log does not call `sink`. If
        `sink` raises, the entries are kept and the exception propagates.
        """
        with self._lock:
            if not self._entries:
                return 0
            doc = TraceDocument.new(self.protocol, self.version, self._entries)
            sink(doc)
            self._entries.clear()
            return len(doc.traces)

    def flush(self, path: Union[str, Path, None] = None) -> bool:
        """Write the log to `path` (default: `self.path`) and clear it. Returns False (and logs) on failure."""
        p = self.path if path is None else Path(path)
        try:
            count = self.drain_to(lambda doc: write_trace_file(doc, p))
        except OSError as e:
            log.warning("failed to write traces to %s: %s", p, e)
            metrics.observe_trace_flush("error")
            return False
        if count == 0:
            metrics.observe_trace_flush("empty")
            return True
        log.info("wrote %d traces to %s", count, p)
        metrics.observe_trace_flush("ok")
        return True


__all__ = ["Sink", "TraceRecorder"]
