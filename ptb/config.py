"""
ptb.config — runtime configuration for block composition, the simulated engine and traces.

This module centralizes knobs for:
  • Network selection (rpc URL, DeepBook package addresses, token types)
  • Trace persistence (output path, protocol name/version written into the document)
  • Simulated engine (gas budget, gas table, clock timestamp)
  • Classification policy (whether structural hints may fall back to the first created)

Configuration may be provided via environment variables. Safe defaults are chosen so a
local developer run works out of the box.

Environment variables (all optional):
  PTB_NETWORK               -> mainnet | testnet | localnet (default: localnet)
  PTB_PACKAGE               -> address of the deployed application package (default: 0x0)
  PTB_TRACE_PATH            -> trace output file (default: ptb_traces.json)
  PTB_PROTOCOL_NAME         -> protocol name in trace documents (default: "APEX Protocol")
  PTB_PROTOCOL_VERSION      -> protocol version in trace documents (default: 0.1.0)
  PTB_GAS_BUDGET            -> per-block gas budget, e.g. "50_000_000" (default: 50000000)
  PTB_GAS_TABLE             -> optional YAML/JSON gas table for the simulated engine
  PTB_CLOCK_TIMESTAMP_MS    -> seeded clock timestamp in ms (default: 1700000000000)
  PTB_STRICT_CLASSIFY       -> 0/1/true/false (default: 1; structural hints never fall back)

Programmatic usage:
    from ptb.config import get_config
    cfg = get_config()
    engine = SimulatedEngine(store, gas_budget=cfg.engine.gas_budget)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

# ----------------------------- helpers -------------------------------------


_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}


def _bool_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    return bool(v) if v != "" else default


def _int_value(value: Union[str, int], name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip().replace("_", ""))
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


# ------------------------------ networks ------------------------------------


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    rpc_url: str
    deepbook_package: str
    deepbook_margin_package: str
    tokens: Tuple[Tuple[str, Optional[str]], ...]

    def token(self, symbol: str) -> Optional[str]:
        """Type tag string of a well-known token, or None if not deployed on this network."""
        return dict(self.tokens).get(symbol.lower())


NETWORKS: Dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(
        name="mainnet",
        rpc_url="https://fullnode.mainnet.sui.io:443",
        deepbook_package="0x2d93777cc8b67c064b495e8606f2f8f5fd578450347bbe7b36e0bc03963c1c40",
        deepbook_margin_package="0x97d9473771b01f77b0940c589484184b49f6444627ec121314fae6a6d36fb86b",
        tokens=(
            ("sui", "0x2::sui::SUI"),
            ("usdc", "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC"),
            ("usdt", "0xc060006111016b8a020ad5b33834984a437aaa7d3c74c18e09a95d48aceab08c::coin::COIN"),
            ("deep", "0xdeeb7a4662eec9f2f3def03fb937a663dddaa2e215b8078a284d026b7946c270::deep::DEEP"),
        ),
    ),
    "testnet": NetworkConfig(
        name="testnet",
        rpc_url="https://fullnode.testnet.sui.io:443",
        deepbook_package="0x22be4cade64bf2d02412c7e8d0e8beea2f78828b948118d46735315409371a3c",
        deepbook_margin_package="0xd6a42f4df4db73d68cbeb52be66698d2fe6a9464f45ad113ca52b0c6ebd918b6",
        tokens=(("sui", "0x2::sui::SUI"), ("usdc", None), ("usdt", None), ("deep", None)),
    ),
    "localnet": NetworkConfig(
        name="localnet",
        rpc_url="http://127.0.0.1:9000",
        deepbook_package="0x0",
        deepbook_margin_package="0x0",
        tokens=(("sui", "0x2::sui::SUI"), ("usdc", None), ("usdt", None), ("deep", None)),
    ),
}


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class TraceSettings:
    path: Path = Path("ptb_traces.json")
    protocol_name: str = "APEX Protocol"
    protocol_version: str = "0.1.0"


@dataclass(frozen=True)
class EngineSettings:
    gas_budget: int = 50_000_000
    gas_table_path: Optional[Path] = None
    clock_timestamp_ms: int = 1_700_000_000_000


@dataclass(frozen=True)
class ClassifySettings:
    strict: bool = True


@dataclass(frozen=True)
class PtbConfig:
    network: NetworkConfig
    package: str
    trace: TraceSettings
    engine: EngineSettings
    classify: ClassifySettings

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["trace"]["path"] = str(self.trace.path)
        gtp = self.engine.gas_table_path
        d["engine"]["gas_table_path"] = None if gtp is None else str(gtp)
        d["network"]["tokens"] = dict(self.network.tokens)
        return d


# ------------------------------ loader --------------------------------------


def _validate(cfg: PtbConfig) -> PtbConfig:
    if cfg.engine.gas_budget <= 0:
        raise ValueError("gas_budget must be > 0")
    if cfg.engine.clock_timestamp_ms < 0:
        raise ValueError("clock_timestamp_ms must be ≥ 0")
    if not cfg.trace.protocol_name:
        raise ValueError("protocol_name must not be empty")
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, int, bool, Path]]] = None,
) -> PtbConfig:
    """
    Build a PtbConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides (win over env); keys support:
          'network', 'package', 'trace_path', 'protocol_name', 'protocol_version',
          'gas_budget', 'gas_table_path', 'clock_timestamp_ms', 'strict_classify'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    network_name = str(overrides.get("network", env.get("PTB_NETWORK", "localnet"))).strip().lower()
    try:
        network = NETWORKS[network_name]
    except KeyError:
        raise ValueError(
            f"unknown network {network_name!r} (expected one of {', '.join(sorted(NETWORKS))})"
        ) from None

    trace = TraceSettings(
        path=Path(str(overrides.get("trace_path", env.get("PTB_TRACE_PATH", "ptb_traces.json")))).expanduser(),
        protocol_name=str(overrides.get("protocol_name", env.get("PTB_PROTOCOL_NAME", "APEX Protocol"))),
        protocol_version=str(overrides.get("protocol_version", env.get("PTB_PROTOCOL_VERSION", "0.1.0"))),
    )

    gas_table = overrides.get("gas_table_path", env.get("PTB_GAS_TABLE"))
    engine = EngineSettings(
        gas_budget=_int_value(overrides.get("gas_budget", env.get("PTB_GAS_BUDGET", 50_000_000)), "gas_budget"),
        gas_table_path=None if not gas_table else Path(str(gas_table)).expanduser(),
        clock_timestamp_ms=_int_value(
            overrides.get("clock_timestamp_ms", env.get("PTB_CLOCK_TIMESTAMP_MS", 1_700_000_000_000)),
            "clock_timestamp_ms",
        ),
    )

    if "strict_classify" in overrides:
        strict = bool(overrides["strict_classify"])
    else:
        strict = _bool_env(env.get("PTB_STRICT_CLASSIFY"), True)

    return _validate(
        PtbConfig(
            network=network,
            package=str(overrides.get("package", env.get("PTB_PACKAGE", "0x0"))),
            trace=trace,
            engine=engine,
            classify=ClassifySettings(strict=strict),
        )
    )


@lru_cache(maxsize=1)
def get_config() -> PtbConfig:
    """
    Cached global config. Suitable for application bootstraps and the CLI.
    """
    return load_config()


# ----------------------------- pretty-print ---------------------------------


def summary(cfg: Optional[PtbConfig] = None) -> str:
    """
    Return a human-friendly one-line summary of the most important knobs.
    """
    cfg = cfg or get_config()
    return (
        "ptb{"
        f"net={cfg.network.name}, pkg={cfg.package}, "
        f"trace={cfg.trace.path}, proto={cfg.trace.protocol_name}@{cfg.trace.protocol_version}, "
        f"gas={cfg.engine.gas_budget}, clock={cfg.engine.clock_timestamp_ms}, "
        f"strict_classify={int(cfg.classify.strict)}"
        "}"
    )


__all__ = [
    "NetworkConfig",
    "NETWORKS",
    "TraceSettings",
    "EngineSettings",
    "ClassifySettings",
    "PtbConfig",
    "load_config",
    "get_config",
    "summary",
]
