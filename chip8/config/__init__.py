"""Configuration system for the CHIP-8 interpreter."""

from .machine_config import MachineConfig

__all__ = ["MachineConfig"]
