#!/usr/bin/env python3
"""Command line front end for the headless CHIP-8 runner."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from chip8.config import MachineConfig
from chip8.decoder import disassemble_program
from chip8.errors import ProgramLoadError
from chip8.loader import load_program_file
from chip8.run_chip8 import run_emulator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CHIP-8 interpreter (headless)")
    parser.add_argument("program", type=str, help="Program image to run")
    parser.add_argument(
        "--steps", type=int, default=10000, help="Number of instructions to execute"
    )
    parser.add_argument(
        "--config", type=str, help="Machine configuration JSON (see MachineConfig)"
    )
    parser.add_argument(
        "--profile",
        type=str,
        default="default",
        help="Preset configuration when --config is not given",
    )
    parser.add_argument(
        "--fast",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run unthrottled with step-derived timer ticks (default on)",
    )
    parser.add_argument("--seed", type=int, help="Seed for the RND instruction")
    parser.add_argument("--save-png", type=str, help="Save the final screen as PNG")
    parser.add_argument("--zoom", type=int, help="PNG scale factor")
    parser.add_argument(
        "--dump-text", action="store_true", help="Print the final screen as text"
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        help="Print a disassembly of the program and exit",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        try:
            config = MachineConfig.load(args.config)
        except (OSError, ValueError) as exc:
            print(f"Error: cannot load config {args.config}: {exc}", file=sys.stderr)
            return 2
    else:
        config = MachineConfig.for_profile(args.profile)
    if args.seed is not None:
        config.rng_seed = args.seed

    try:
        if args.disassemble:
            program = load_program_file(args.program)
            for address, raw, text in disassemble_program(program):
                print(f"0x{address:03X}: {raw:04X}  {text}")
            return 0

        _, stats = run_emulator(
            Path(args.program),
            num_steps=args.steps,
            config=config,
            fast_mode=args.fast,
            save_png_path=args.save_png,
            zoom=args.zoom,
            dump_text=args.dump_text,
        )
    except ProgramLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    return 1 if stats.fault is not None else 0


if __name__ == "__main__":
    sys.exit(main())
