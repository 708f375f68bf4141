"""
ptb.cli — command-line entrypoints.

  • ptb inspect FILE   — table of the traces in a trace file
  • ptb validate FILE  — schema round-trip check (exit 1 on mismatch)
  • ptb config         — effective configuration
  • ptb version        — package version

Usage:
    python -m ptb.cli.main --help
"""

from __future__ import annotations

from ..version import __version__

__all__ = ["__version__"]
