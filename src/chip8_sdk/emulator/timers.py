"""
Delay and Sound Timers for CHIP-8 Emulator
==========================================

Both timers are 8-bit counters that count down at 60 Hz while nonzero.
The rate is fixed by the architecture and independent of how fast
instructions execute, so the host drives tick() from its own 60 Hz clock
rather than from the instruction loop.

A nonzero sound timer means a tone should be playing.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional


@dataclass
class TimerState:
    """Timer values for snapshotting."""
    delay: int = 0
    sound: int = 0


class Timers:
    """
    The two 60 Hz countdown timers.

    Attributes:
        on_sound_change: Optional callback invoked with the new on/off state
            whenever the sound timer crosses between zero and nonzero.

    Example:
        >>> timers = Timers()
        >>> timers.delay = 2
        >>> timers.tick(); timers.tick(); timers.tick()
        >>> timers.delay
        0
    """

    RATE_HZ = 60

    def __init__(self):
        self.state = TimerState()
        self.on_sound_change: Optional[Callable[[bool], None]] = None

    @property
    def delay(self) -> int:
        """Delay timer (8-bit)."""
        return self.state.delay

    @delay.setter
    def delay(self, value: int) -> None:
        self.state.delay = value & 0xFF

    @property
    def sound(self) -> int:
        """Sound timer (8-bit)."""
        return self.state.sound

    @sound.setter
    def sound(self, value: int) -> None:
        was_active = self.state.sound > 0
        self.state.sound = value & 0xFF
        self._notify(was_active)

    @property
    def sound_active(self) -> bool:
        """True while a tone should be emitted."""
        return self.state.sound > 0

    def tick(self) -> None:
        """Decrement both timers by one, stopping at zero."""
        if self.state.delay > 0:
            self.state.delay -= 1
        if self.state.sound > 0:
            self.state.sound -= 1
            self._notify(True)

    def reset(self) -> None:
        was_active = self.sound_active
        self.state = TimerState()
        self._notify(was_active)

    def _notify(self, was_active: bool) -> None:
        if self.on_sound_change and was_active != self.sound_active:
            self.on_sound_change(self.sound_active)

    def get_snapshot_data(self) -> List[int]:
        """Format: [delay, sound]"""
        return [self.state.delay, self.state.sound]

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        self.state.delay = data[offset]
        self.sound = data[offset + 1]
        return 2
