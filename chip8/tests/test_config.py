"""Tests for MachineConfig."""

from __future__ import annotations

import json

import pytest

from chip8.config import MachineConfig
from chip8.keypad import Key


def test_defaults():
    config = MachineConfig()
    assert config.instructions_per_second == 700
    assert config.timer_hz == 60
    assert config.steps_per_timer_tick == 12
    assert config.rng_seed is None
    assert config.key_map["q"] == Key.KEY_4


def test_steps_per_timer_tick_never_zero():
    assert MachineConfig(instructions_per_second=1).steps_per_timer_tick == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"instructions_per_second": 0},
        {"timer_hz": -1},
        {"display_zoom": 0},
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        MachineConfig(**kwargs)


def test_key_map_names_are_lowercased():
    config = MachineConfig(key_map={"Up": 2})
    assert config.key_map == {"up": 2}


def test_dict_round_trip_preserves_fields():
    config = MachineConfig(name="test", rng_seed=7, key_map={"k": 0xB})
    data = config.to_dict()
    assert data["key_map"] == {"k": "0xB"}
    restored = MachineConfig.from_dict(data)
    assert restored == config


def test_from_dict_fills_defaults():
    config = MachineConfig.from_dict({"instructions_per_second": 1000})
    assert config.instructions_per_second == 1000
    assert config.key_map == MachineConfig().key_map


def test_save_and_load(tmp_path):
    path = tmp_path / "machine.json"
    MachineConfig(name="saved", display_zoom=4).save(str(path))
    assert json.loads(path.read_text())["display_zoom"] == 4
    loaded = MachineConfig.load(str(path))
    assert loaded.name == "saved"
    assert loaded.display_zoom == 4


def test_profiles():
    assert MachineConfig.for_profile("fast").instructions_per_second == 2000
    assert MachineConfig.for_profile("vip").name == "COSMAC VIP"
    assert MachineConfig.for_profile("nonexistent") == MachineConfig()
