"""
ptb.tests helpers

- Deterministic test defaults (Hypothesis profile).
- Paths: PKG_ROOT, ROOT
"""

from __future__ import annotations

import os
from pathlib import Path

from hypothesis import settings

# ----- Paths -----
HERE = Path(__file__).resolve()
PKG_ROOT = HERE.parents[1]          # <repo>/ptb
ROOT = PKG_ROOT.parents[0]          # <repo>

# Hypothesis defaults: faster local runs, deeper CI runs
settings.register_profile("local", settings(max_examples=60, deadline=None))
settings.register_profile("ci", settings(max_examples=200, deadline=None))
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "ci" if os.environ.get("CI") else "local"))
