"""
Hexadecimal Keypad for CHIP-8 Emulator
======================================

The CHIP-8 keypad has 16 keys labelled 0-F:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

The host owns the key state and is its only writer; the interpreter only
reads it (EX9E, EXA1, FX0A). On a PC keyboard the keypad is conventionally
mapped onto the left-hand 4x4 block:

    1 2 3 4
    Q W E R
    A S D F
    Z X C V
"""

from typing import Dict, List, Optional


# Host key name -> keypad index
KEY_MAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


class Keypad:
    """
    State of the 16 keypad keys.

    Keys can be addressed by index (0-15) or by host key name from
    KEY_MAP (case-insensitive).

    Example:
        >>> pad = Keypad()
        >>> pad.key_down("W")
        >>> pad.is_pressed(0x5)
        True
        >>> pad.first_pressed()
        5
    """

    NUM_KEYS = 16

    def __init__(self):
        self._pressed: List[bool] = [False] * self.NUM_KEYS

    @staticmethod
    def key_index(key: "int | str") -> int:
        """
        Resolve a key to its keypad index.

        Args:
            key: Index 0-15, or a host key name from KEY_MAP

        Raises:
            ValueError: If the key is not on the keypad
        """
        if isinstance(key, str):
            name = key.upper()
            if name not in KEY_MAP:
                valid = ", ".join(KEY_MAP)
                raise ValueError(f"Unknown key '{key}'. Valid keys: {valid}")
            return KEY_MAP[name]
        if not 0 <= key < Keypad.NUM_KEYS:
            raise ValueError(f"Key index must be 0-15, got {key}")
        return key

    def key_down(self, key: "int | str") -> None:
        """Mark a key as pressed."""
        self._pressed[self.key_index(key)] = True

    def key_up(self, key: "int | str") -> None:
        """Mark a key as released."""
        self._pressed[self.key_index(key)] = False

    def set_key(self, key: "int | str", pressed: bool) -> None:
        self._pressed[self.key_index(key)] = pressed

    def is_pressed(self, key: int) -> bool:
        """
        Check whether a keypad key is down.

        Only the low nibble is used, so any register value maps to a key.
        """
        return self._pressed[key & 0x0F]

    def any_pressed(self) -> bool:
        return any(self._pressed)

    def first_pressed(self) -> Optional[int]:
        """Lowest-numbered pressed key, or None."""
        for index, pressed in enumerate(self._pressed):
            if pressed:
                return index
        return None

    def pressed_keys(self) -> List[int]:
        return [i for i, pressed in enumerate(self._pressed) if pressed]

    def clear(self) -> None:
        """Release all keys."""
        self._pressed = [False] * self.NUM_KEYS
