"""
ptb.gas.table — per-command and per-operation gas costs for the simulated engine.

Overview
--------
Costs are in-code defaults, optionally merged with a YAML or JSON file and explicit
overrides. The table is immutable and validated once at load time.

Schema (YAML)
-------------
meta:
  version: "v1"
commands:
  # charged once per command, keyed by trace name
  MoveCall: 1000
  SplitCoins: 400
builtins:
  # charged per operation inside a command
  input_object: 100
  object_create: 300
  object_write: 150
  object_delete: 50
  event_emit: 80
  module_byte: 2

Determinism notes
-----------------
* Unknown/negative/float/bool costs are rejected.
* Keys merge with *last-wins* precedence: defaults < file contents < explicit overrides.

Usage
-----
    from ptb.gas.table import load_gas_table
    gas = load_gas_table()
    gas.command_cost("SplitCoins")
    gas.builtin_cost("object_create")
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

# ------------------------------ defaults -------------------------------------

_DEFAULT_META: Dict[str, Any] = {"version": "v1", "notes": "built-in defaults"}

_DEFAULT_COMMANDS: Dict[str, int] = {
    "MoveCall": 1_000,
    "TransferObjects": 300,
    "SplitCoins": 400,
    "MergeCoins": 400,
    "MakeMoveVec": 200,
    "Publish": 5_000,
    "Upgrade": 5_000,
    "Receive": 300,
}

_DEFAULT_BUILTINS: Dict[str, int] = {
    "block_base": 1_000,
    "input_object": 100,
    "input_pure_byte": 1,
    "object_create": 300,
    "object_write": 150,
    "object_delete": 50,
    "event_emit": 80,
    "module_byte": 2,
}


# ------------------------------ datatypes ------------------------------------

@dataclass(frozen=True)
class GasTable:
    """
    Immutable container of gas costs for block commands and per-operation builtins.
    """
    meta: Tuple[Tuple[str, Any], ...]
    commands: Tuple[Tuple[str, int], ...]
    builtins: Tuple[Tuple[str, int], ...]

    # ---------- lookup ----------

    def command_cost(self, command_type: str) -> int:
        """Gas charged once for a command, keyed by its trace name (MoveCall, …)."""
        try:
            return dict(self.commands)[command_type]
        except KeyError as e:
            raise KeyError(f"unknown command type: {command_type!r}") from e

    def builtin_cost(self, name: str) -> int:
        try:
            return dict(self.builtins)[name]
        except KeyError as e:
            raise KeyError(f"unknown builtin: {name!r}") from e

    # ---------- conversions ----------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": dict(self.meta),
            "commands": dict(self.commands),
            "builtins": dict(self.builtins),
        }

    # ---------- construction ----------

    @staticmethod
    def _validate_costs(kind: str, table: Mapping[str, Any]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for k, v in table.items():
            if not isinstance(k, str):
                raise TypeError(f"{kind}: key must be str (got {type(k).__name__})")
            if isinstance(v, bool):
                raise TypeError(f"{kind}.{k}: cost must be int, not bool")
            if not isinstance(v, int):
                raise TypeError(f"{kind}.{k}: cost must be int")
            if v < 0:
                raise ValueError(f"{kind}.{k}: cost must be non-negative")
            out[k] = int(v)
        return dict(sorted(out.items(), key=lambda kv: kv[0]))

    @classmethod
    def build(
        cls,
        *,
        meta: Mapping[str, Any],
        commands: Mapping[str, Any],
        builtins: Mapping[str, Any],
    ) -> "GasTable":
        meta_c = dict(sorted(((str(k), meta[k]) for k in meta.keys()), key=lambda kv: kv[0]))
        return GasTable(
            meta=tuple(meta_c.items()),
            commands=tuple(cls._validate_costs("commands", commands).items()),
            builtins=tuple(cls._validate_costs("builtins", builtins).items()),
        )


# ------------------------------ helpers --------------------------------------

def _merge_dicts(*dicts: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for d in dicts:
        for k, v in d.items():
            out[str(k)] = v
    return out


def _load_yaml_or_json(path: Path) -> Dict[str, Any]:
    txt = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        loaded = yaml.safe_load(txt)
    else:
        loaded = json.loads(txt)
    if not isinstance(loaded, dict):
        raise ValueError(f"{path.name}: root must be a mapping")
    return loaded


# ------------------------------ public API -----------------------------------

@lru_cache(maxsize=8)
def _load_cached(path: Optional[str]) -> GasTable:
    return _build_table(path, None)


def _build_table(path: Optional[str], overrides: Optional[Mapping[str, Any]]) -> GasTable:
    meta = dict(_DEFAULT_META)
    commands = dict(_DEFAULT_COMMANDS)
    builtins = dict(_DEFAULT_BUILTINS)

    if path is not None:
        data = _load_yaml_or_json(Path(path))
        meta = _merge_dicts(meta, dict(data.get("meta") or {}))
        commands = _merge_dicts(commands, dict(data.get("commands") or {}))
        builtins = _merge_dicts(builtins, dict(data.get("builtins") or {}))

    if overrides:
        meta = _merge_dicts(meta, dict(overrides.get("meta") or {}))
        commands = _merge_dicts(commands, dict(overrides.get("commands") or {}))
        builtins = _merge_dicts(builtins, dict(overrides.get("builtins") or {}))

    return GasTable.build(meta=meta, commands=commands, builtins=builtins)


def load_gas_table(
    path: Optional[Union[str, Path]] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GasTable:
    """
    Load and validate a `GasTable`.

    Parameters
    ----------
    path:
        Optional YAML/JSON file with `meta`, `commands` and `builtins`. Without it the
        in-code defaults are used.
    overrides:
        Optional partial overrides `{ "commands": {...}, "builtins": {...} }`, applied
        last. Tables without overrides are cached per path.
    """
    p = None if path is None else str(path)
    if overrides:
        return _build_table(p, overrides)
    return _load_cached(p)


DEFAULT_GAS_TABLE = GasTable.build(meta=_DEFAULT_META, commands=_DEFAULT_COMMANDS, builtins=_DEFAULT_BUILTINS)


__all__ = ["GasTable", "load_gas_table", "DEFAULT_GAS_TABLE"]
