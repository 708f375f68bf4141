from __future__ import annotations

from pathlib import Path

import pytest

from ptb.config import NETWORKS, load_config, summary


def test_defaults():
    cfg = load_config({})
    assert cfg.network is NETWORKS["localnet"]
    assert cfg.package == "0x0"
    assert cfg.trace.path == Path("ptb_traces.json")
    assert (cfg.trace.protocol_name, cfg.trace.protocol_version) == ("APEX Protocol", "0.1.0")
    assert cfg.engine.gas_budget == 50_000_000
    assert cfg.engine.gas_table_path is None
    assert cfg.engine.clock_timestamp_ms == 1_700_000_000_000
    assert cfg.classify.strict is True


def test_environment_values():
    cfg = load_config(
        {
            "PTB_NETWORK": " Testnet ",
            "PTB_PACKAGE": "0xabc",
            "PTB_TRACE_PATH": "/tmp/out.json",
            "PTB_GAS_BUDGET": "2_000_000",
            "PTB_GAS_TABLE": "/etc/ptb/gas.yaml",
            "PTB_CLOCK_TIMESTAMP_MS": "42",
            "PTB_STRICT_CLASSIFY": "off",
        }
    )
    assert cfg.network.name == "testnet"
    assert cfg.package == "0xabc"
    assert cfg.trace.path == Path("/tmp/out.json")
    assert cfg.engine.gas_budget == 2_000_000
    assert cfg.engine.gas_table_path == Path("/etc/ptb/gas.yaml")
    assert cfg.engine.clock_timestamp_ms == 42
    assert cfg.classify.strict is False


def test_overrides_win_over_environment():
    cfg = load_config(
        {"PTB_NETWORK": "testnet", "PTB_GAS_BUDGET": "5"},
        overrides={"network": "mainnet", "gas_budget": 7, "strict_classify": False},
    )
    assert cfg.network.name == "mainnet"
    assert cfg.engine.gas_budget == 7
    assert cfg.classify.strict is False


@pytest.mark.parametrize(
    "env",
    [
        {"PTB_NETWORK": "devnet"},
        {"PTB_GAS_BUDGET": "0"},
        {"PTB_GAS_BUDGET": "-10"},
        {"PTB_GAS_BUDGET": "lots"},
        {"PTB_CLOCK_TIMESTAMP_MS": "-1"},
        {"PTB_PROTOCOL_NAME": ""},
    ],
)
def test_invalid_values(env):
    with pytest.raises(ValueError):
        load_config(env)


def test_network_tokens():
    assert NETWORKS["mainnet"].token("SUI") == "0x2::sui::SUI"
    assert NETWORKS["testnet"].token("usdc") is None
    assert NETWORKS["localnet"].token("btc") is None


def test_summary_and_dict():
    cfg = load_config({"PTB_GAS_TABLE": "gas.json"})
    line = summary(cfg)
    assert line.startswith("ptb{net=localnet, pkg=0x0, ")
    assert "proto=APEX Protocol@0.1.0" in line
    assert line.endswith("strict_classify=1}")
    d = cfg.to_dict()
    assert d["trace"]["path"] == "ptb_traces.json"
    assert d["engine"]["gas_table_path"] == "gas.json"
    assert d["network"]["tokens"]["sui"] == "0x2::sui::SUI"
    assert d["classify"] == {"strict": True}
