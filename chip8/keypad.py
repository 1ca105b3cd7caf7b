"""Sixteen-key hexadecimal keypad state."""

from __future__ import annotations

import enum
import threading
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .constants import NUM_KEYS
from .errors import InvalidKeyError


class Key(enum.IntEnum):
    """Logical keypad keys, one per hexadecimal digit."""

    KEY_0 = 0x0
    KEY_1 = 0x1
    KEY_2 = 0x2
    KEY_3 = 0x3
    KEY_4 = 0x4
    KEY_5 = 0x5
    KEY_6 = 0x6
    KEY_7 = 0x7
    KEY_8 = 0x8
    KEY_9 = 0x9
    KEY_A = 0xA
    KEY_B = 0xB
    KEY_C = 0xC
    KEY_D = 0xD
    KEY_E = 0xE
    KEY_F = 0xF


def _build_key_map() -> Dict[str, Key]:
    """Return the QWERTY host layout.

    The physical 4x4 block on the left of a QWERTY keyboard stands in for
    the COSMAC VIP hex keypad::

        1 2 3 4      1 2 3 C
        Q W E R  ->  4 5 6 D
        A S D F      7 8 9 E
        Z X C V      A 0 B F
    """

    physical: List[str] = ["1", "2", "3", "4", "q", "w", "e", "r",
                           "a", "s", "d", "f", "z", "x", "c", "v"]
    logical: List[int] = [0x1, 0x2, 0x3, 0xC, 0x4, 0x5, 0x6, 0xD,
                          0x7, 0x8, 0x9, 0xE, 0xA, 0x0, 0xB, 0xF]
    return {name: Key(value) for name, value in zip(physical, logical)}


DEFAULT_KEY_MAP: Dict[str, Key] = _build_key_map()

KeyLike = Union[Key, int]


def _validate(key: KeyLike) -> Key:
    try:
        value = int(key)
    except (TypeError, ValueError) as exc:
        raise InvalidKeyError(f"Invalid key: {key!r}") from exc
    if not 0 <= value < NUM_KEYS:
        raise InvalidKeyError(f"Key out of range: {value}")
    return Key(value)


def resolve_key(
    key: Union[str, int, Key], key_map: Optional[Mapping[str, int]] = None
) -> Key:
    """Translate a host key name, hex digit or integer into a :class:`Key`.

    ``"0xA"`` and ``"KEY_A"`` always name a logical key. Anything else is
    looked up in ``key_map`` (case-insensitive) and finally parsed as a
    bare hex digit, so ``"a"`` means the physical A key under the default
    layout.
    """
    if isinstance(key, (Key, int)) and not isinstance(key, bool):
        return _validate(key)
    if not isinstance(key, str):
        raise InvalidKeyError(f"Invalid key: {key!r}")

    name = key.strip()
    upper = name.upper()
    if upper.startswith("0X") or upper.startswith("KEY_"):
        digits = name[2:] if upper.startswith("0X") else name[4:]
    else:
        mapping = DEFAULT_KEY_MAP if key_map is None else key_map
        if name.lower() in mapping:
            return _validate(mapping[name.lower()])
        if name in mapping:
            return _validate(mapping[name])
        digits = name

    try:
        return _validate(int(digits, 16))
    except ValueError as exc:
        raise InvalidKeyError(f"Unknown key: {key!r}") from exc


class InputState:
    """Pressed/released flags for the 16 keys plus the last key pressed.

    Written by the host's key-event source, read by the interpreter. All
    access goes through one lock; readers may see a state that is one
    host poll stale.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pressed: List[bool] = [False] * NUM_KEYS
        self._last_pressed: Optional[Key] = None

    def press(self, key: KeyLike) -> None:
        key = _validate(key)
        with self._lock:
            self._pressed[key] = True
            self._last_pressed = key

    def release(self, key: KeyLike) -> None:
        key = _validate(key)
        with self._lock:
            self._pressed[key] = False

    def release_all(self) -> None:
        with self._lock:
            self._pressed = [False] * NUM_KEYS

    def reset(self) -> None:
        """Release every key and forget the last key pressed."""
        with self._lock:
            self._pressed = [False] * NUM_KEYS
            self._last_pressed = None

    def is_pressed(self, key: KeyLike) -> bool:
        key = _validate(key)
        with self._lock:
            return self._pressed[key]

    def any_pressed(self) -> bool:
        with self._lock:
            return any(self._pressed)

    def last_pressed(self) -> Optional[Key]:
        with self._lock:
            return self._last_pressed

    def pressed_keys(self) -> Tuple[Key, ...]:
        with self._lock:
            return tuple(Key(idx) for idx, down in enumerate(self._pressed) if down)


__all__ = [
    "Key",
    "InputState",
    "DEFAULT_KEY_MAP",
    "resolve_key",
]
