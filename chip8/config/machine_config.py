"""Machine configuration for the CHIP-8 interpreter."""

from dataclasses import dataclass, field
from typing import Dict, Optional
import json

from ..constants import TIMER_HZ
from ..keypad import DEFAULT_KEY_MAP


def _default_key_map() -> Dict[str, int]:
    return {name: int(key) for name, key in DEFAULT_KEY_MAP.items()}


@dataclass
class MachineConfig:
    """Host pacing, display and input settings."""
    name: str = "CHIP-8"
    instructions_per_second: int = 700
    timer_hz: int = TIMER_HZ
    display_zoom: int = 8
    rng_seed: Optional[int] = None
    key_map: Dict[str, int] = field(default_factory=_default_key_map)

    def __post_init__(self):
        if self.instructions_per_second <= 0:
            raise ValueError(
                f"instructions_per_second must be positive, got {self.instructions_per_second}"
            )
        if self.timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {self.timer_hz}")
        if self.display_zoom < 1:
            raise ValueError(f"display_zoom must be at least 1, got {self.display_zoom}")
        self.key_map = {str(name).lower(): int(value) for name, value in self.key_map.items()}

    @property
    def steps_per_timer_tick(self) -> int:
        """Instructions executed between two timer ticks at nominal speed."""
        return max(1, round(self.instructions_per_second / self.timer_hz))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "instructions_per_second": self.instructions_per_second,
            "timer_hz": self.timer_hz,
            "display_zoom": self.display_zoom,
            "rng_seed": self.rng_seed,
            "key_map": {name: f"0x{value:X}" for name, value in self.key_map.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MachineConfig':
        key_map = data.get("key_map")
        if key_map is None:
            key_map = _default_key_map()
        else:
            key_map = {
                name: int(value, 16) if isinstance(value, str) else value
                for name, value in key_map.items()
            }
        return cls(
            name=data.get("name", "CHIP-8"),
            instructions_per_second=data.get("instructions_per_second", 700),
            timer_hz=data.get("timer_hz", TIMER_HZ),
            display_zoom=data.get("display_zoom", 8),
            rng_seed=data.get("rng_seed"),
            key_map=key_map,
        )

    def save(self, path: str) -> None:
        """Save configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'MachineConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def for_profile(cls, profile: str) -> 'MachineConfig':
        """Get a preset configuration by name; unknown names get the default."""
        configs = {
            "default": cls(),
            "fast": cls(name="CHIP-8 (fast)", instructions_per_second=2000),
            "vip": cls(name="COSMAC VIP", instructions_per_second=500),
        }
        return configs.get(profile, configs["default"])
