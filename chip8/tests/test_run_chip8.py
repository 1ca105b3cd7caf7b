"""Tests for the headless runner and its command line front end."""

from __future__ import annotations

import json

import pytest

from chip8.cli import main
from chip8.config import MachineConfig
from chip8.errors import ProgramLoadError, StackUnderflowError
from chip8.run_chip8 import run_emulator

# LD V0, 0x30; LD ST, V0; LD I, 0; DRW V1, V1, 5; JP 0x208
SPIN_PROGRAM = bytes.fromhex("6030F018A000D1151208")


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "spin.ch8"
    path.write_bytes(SPIN_PROGRAM)
    return path


def test_fast_mode_ticks_timers_by_step_count(program_file):
    config = MachineConfig(instructions_per_second=600, timer_hz=60)
    emu, stats = run_emulator(program_file, num_steps=100, config=config, print_stats=False)
    assert stats.steps == 100
    assert stats.timer_ticks == 10
    assert stats.tone_ticks == 10
    assert emu.sound_timer == 0x30 - 10
    assert emu.pc == 0x208
    assert emu.framebuffer.lit_pixel_count() == 14
    assert stats.fault is None


def test_paced_mode_uses_clock(program_file):
    now = [0.0]

    def clock():
        return now[0]

    def sleep(delay):
        now[0] += delay

    config = MachineConfig(instructions_per_second=60, timer_hz=60)
    _, stats = run_emulator(
        program_file,
        num_steps=30,
        config=config,
        fast_mode=False,
        print_stats=False,
        clock=clock,
        sleep=sleep,
    )
    assert stats.steps == 30
    assert stats.elapsed_secs == pytest.approx(0.5)
    assert 28 <= stats.timer_ticks <= 30


def test_fault_is_reported_not_raised(tmp_path):
    path = tmp_path / "ret.ch8"
    path.write_bytes(bytes.fromhex("00EE"))
    emu, stats = run_emulator(path, num_steps=5, print_stats=False)
    assert isinstance(stats.fault, StackUnderflowError)
    assert stats.steps == 0
    assert emu.halted


def test_unknown_instructions_are_counted(tmp_path):
    path = tmp_path / "unknown.ch8"
    path.write_bytes(bytes.fromhex("0123F0FF"))
    _, stats = run_emulator(path, num_steps=2, print_stats=False)
    assert stats.unknown_instructions == 2


def test_png_and_text_output(program_file, tmp_path, capsys):
    png = tmp_path / "out.png"
    run_emulator(
        program_file,
        num_steps=4,
        save_png_path=png,
        zoom=2,
        dump_text=True,
    )
    assert png.read_bytes().startswith(b"\x89PNG")
    out = capsys.readouterr().out
    assert "####" in out
    assert "Executed 4 instructions" in out


def test_missing_program_raises(tmp_path):
    with pytest.raises(ProgramLoadError):
        run_emulator(tmp_path / "nope.ch8", print_stats=False)


class TestCli:
    def test_runs_program(self, program_file, capsys):
        assert main([str(program_file), "--steps", "10"]) == 0
        assert "Executed 10 instructions" in capsys.readouterr().out

    def test_disassemble(self, program_file, capsys):
        assert main([str(program_file), "--disassemble"]) == 0
        out = capsys.readouterr().out
        assert "0x200: 6030  LD V0, 0x30" in out
        assert "JP 0x208" in out

    def test_missing_program_exit_code(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.ch8")]) == 2
        assert "Error:" in capsys.readouterr().err

    def test_missing_config_exit_code(self, program_file, tmp_path, capsys):
        assert main([str(program_file), "--config", str(tmp_path / "none.json")]) == 2
        assert "Error: cannot load config" in capsys.readouterr().err

    def test_malformed_config_exit_code(self, program_file, tmp_path, capsys):
        config_path = tmp_path / "bad.json"
        config_path.write_text("{not json")
        assert main([str(program_file), "--config", str(config_path)]) == 2
        assert "Error:" in capsys.readouterr().err

    def test_invalid_config_value_exit_code(self, program_file, tmp_path):
        config_path = tmp_path / "zero.json"
        config_path.write_text(json.dumps({"timer_hz": 0}))
        assert main([str(program_file), "--config", str(config_path)]) == 2

    def test_fault_exit_code(self, tmp_path):
        path = tmp_path / "ret.ch8"
        path.write_bytes(bytes.fromhex("00EE"))
        assert main([str(path), "--steps", "3"]) == 1

    def test_config_file_and_png(self, program_file, tmp_path):
        config_path = tmp_path / "machine.json"
        config_path.write_text(json.dumps({"display_zoom": 3}))
        png = tmp_path / "screen.png"
        code = main(
            [str(program_file), "--steps", "4", "--config", str(config_path), "--save-png", str(png)]
        )
        assert code == 0
        assert png.exists()
