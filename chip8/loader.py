"""Program image loading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .constants import MAX_PROGRAM_SIZE, PROGRAM_START
from .decoder import disassemble_program
from .errors import ProgramLoadError

logger = logging.getLogger(__name__)


def load_program_file(path: Union[str, Path]) -> bytes:
    """Read a program image from disk.

    The bytes are returned verbatim; nothing about their content is
    validated beyond the size fitting in program memory.

    Raises:
        ProgramLoadError: the file is unreadable, empty, or too large.
    """
    program_path = Path(path)
    try:
        data = program_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(
            f"Cannot read program {program_path}: {exc}", path=str(program_path)
        ) from exc

    if not data:
        raise ProgramLoadError(f"Program {program_path} is empty", path=str(program_path))
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramLoadError(
            f"Program {program_path} is {len(data)} bytes; at most {MAX_PROGRAM_SIZE} fit",
            path=str(program_path),
        )

    logger.info("Loaded %s: %d bytes", program_path, len(data))
    if logger.isEnabledFor(logging.DEBUG):
        for address, raw, text in disassemble_program(data, PROGRAM_START):
            logger.debug("0x%03X: %04X  %s", address, raw, text)
    return data


__all__ = ["load_program_file"]
