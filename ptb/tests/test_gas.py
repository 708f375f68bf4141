from __future__ import annotations

import json

import pytest
import yaml

from ptb.errors import OutOfGas
from ptb.gas import DEFAULT_GAS_TABLE, GasMeter, GasTable, load_gas_table
from ptb.types.commands import COMMAND_TYPES


def test_default_table_covers_every_command_type():
    for cls in COMMAND_TYPES:
        assert DEFAULT_GAS_TABLE.command_cost(cls.command_type) > 0


def test_unknown_keys_raise_keyerror():
    with pytest.raises(KeyError):
        DEFAULT_GAS_TABLE.command_cost("Teleport")
    with pytest.raises(KeyError):
        DEFAULT_GAS_TABLE.builtin_cost("nope")


def test_yaml_file_merges_over_defaults(tmp_path):
    p = tmp_path / "gas.yaml"
    p.write_text(yaml.safe_dump({"commands": {"MoveCall": 7}, "builtins": {"object_create": 11}}))
    table = load_gas_table(p)
    assert table.command_cost("MoveCall") == 7
    assert table.builtin_cost("object_create") == 11
    assert table.command_cost("SplitCoins") == DEFAULT_GAS_TABLE.command_cost("SplitCoins")


def test_json_file_and_overrides(tmp_path):
    p = tmp_path / "gas.json"
    p.write_text(json.dumps({"meta": {"version": "v2"}, "commands": {"Publish": 10}}))
    table = load_gas_table(p, overrides={"commands": {"Publish": 20}})
    assert table.command_cost("Publish") == 20
    assert table.to_dict()["meta"]["version"] == "v2"


@pytest.mark.parametrize("bad", [-1, 1.5, True, "3"])
def test_invalid_costs_are_rejected(bad):
    with pytest.raises((TypeError, ValueError)):
        GasTable.build(meta={}, commands={"MoveCall": bad}, builtins={})


def test_non_mapping_root_is_rejected(tmp_path):
    p = tmp_path / "gas.yaml"
    p.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_gas_table(p)


def test_meter_debits_and_exhausts_to_limit():
    m = GasMeter(100)
    m.debit(60, reason="a")
    assert (m.used, m.remaining) == (60, 40)
    with pytest.raises(OutOfGas) as ei:
        m.debit(50, reason="b")
    assert m.used == 100
    assert m.exhausted
    assert ei.value.code == "OUT_OF_GAS"
    assert ei.value.data["needed"] == 50
    assert ei.value.data["remaining"] == 40


def test_meter_try_debit_and_snapshots():
    m = GasMeter(10)
    snap = m.snapshot()
    assert m.try_debit(4)
    assert not m.try_debit(7)
    assert m.used == 4
    m.restore(snap)
    assert m.used == 0
    with pytest.raises(ValueError):
        m.debit(-1)
