"""
Randomness Sources for the CXNN Instruction
===========================================

CXNN sets VX to a random byte ANDed with NN. The source of those bytes is
injected into the CPU so tests can substitute a deterministic sequence.
"""

import random
from typing import Iterable, Optional, Protocol


class RandomSource(Protocol):
    """Anything that can hand out random bytes on demand."""

    def next_byte(self) -> int:
        """Return a value in 0-255."""
        ...


class DefaultRandomSource:
    """
    Pseudo-random bytes from random.Random.

    Args:
        seed: Optional seed; the same seed yields the same byte sequence
    """

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_byte(self) -> int:
        return self._random.randrange(256)


class SequenceRandomSource:
    """
    Replays a fixed list of bytes, cycling when exhausted.

    Example:
        >>> src = SequenceRandomSource([0x12, 0x34])
        >>> [src.next_byte() for _ in range(3)]
        [18, 52, 18]
    """

    def __init__(self, values: Iterable[int]):
        self._values = [v & 0xFF for v in values]
        if not self._values:
            raise ValueError("SequenceRandomSource needs at least one value")
        self._pos = 0

    def next_byte(self) -> int:
        value = self._values[self._pos]
        self._pos = (self._pos + 1) % len(self._values)
        return value
