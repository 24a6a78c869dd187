"""
CHIP-8 Emulator - Interpreter Loop
==================================

This module provides the main `Emulator` class that wires memory, CPU,
display, keypad and timers together and drives them.

The two clocks of the machine are kept apart:
- step() executes exactly one instruction
- tick() decrements the 60 Hz timers once

A host calls step() at the configured instruction frequency and tick() at
60 Hz. run_frame() and run_for() do that interleaving deterministically for
hosts that think in frames or seconds rather than instructions.

Example usage:
    >>> from chip8_sdk.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(quirks="legacy"))
    >>> emu.load_rom("pong.ch8")
    >>> for _ in range(60):
    ...     event = emu.run_frame()
    ...     if event.is_error:
    ...         break
    >>> print(emu.display.get_text())
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Optional, Union

from ..errors import ExecutionError, LoadError, SnapshotError
from .breakpoints import BreakEvent, BreakpointManager, BreakReason
from .cpu import Chip8CPU
from .display import Display
from .keyboard import Keypad
from .memory import Memory
from .models import MemoryPolicy, Quirks, get_quirks
from .rng import DefaultRandomSource, RandomSource
from .timers import Timers

logger = logging.getLogger(__name__)

SNAPSHOT_MAGIC = b'C8S\x01'


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    All values are fixed for the lifetime of the emulator.

    Attributes:
        quirks: Quirk preset name ("legacy", "modern") or a Quirks instance.
            Default is "modern".
        frequency: Instructions per second used by run_frame()/run_for()
        memory_policy: What happens on access outside $000-$FFF
        seed: Seed for the default random source (None = unpredictable)

    Example:
        >>> config = EmulatorConfig(quirks="legacy", frequency=500)
        >>> config = EmulatorConfig(memory_policy=MemoryPolicy.FAULT, seed=1)
    """
    quirks: Union[str, Quirks] = "modern"
    frequency: int = 700
    memory_policy: MemoryPolicy = MemoryPolicy.WRAP
    seed: Optional[int] = None

    def __post_init__(self):
        if self.frequency <= 0:
            raise ValueError(f"frequency must be positive, got {self.frequency}")

    def resolve_quirks(self) -> Quirks:
        """Quirks instance for this configuration."""
        if isinstance(self.quirks, Quirks):
            return self.quirks
        return get_quirks(self.quirks)


class Emulator:
    """
    CHIP-8 virtual machine with debugging support.

    Execution errors never escape step() or run(): they are returned as a
    BreakEvent with reason ERROR, leaving PC on the faulting instruction.
    The host then decides to stop, or to call skip_instruction() and go on.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        quirks: Resolved quirk set
        memory: 4KB memory
        cpu: The interpreter core (accessible for low-level control)
        display: The 64x32 framebuffer
        keypad: The 16-key keypad (written by the host)
        timers: Delay and sound timers
        breakpoints: The breakpoint manager consulted by run()

    Example:
        >>> emu = Emulator()
        >>> emu.load_program(bytes([0x00, 0xE0, 0x12, 0x00]))
        >>> emu.run(1000).reason
        <BreakReason.MAX_STEPS: 6>
        >>> hex(emu.cpu.pc)
        '0x200'
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        rng: Optional[RandomSource] = None,
    ):
        """
        Initialize the emulator with given configuration.

        Args:
            config: EmulatorConfig. If None, modern quirks at 700 Hz.
            rng: Random source for CXNN. If None, a DefaultRandomSource
                 seeded from config.seed.

        Raises:
            ValueError: If the quirk mode name is invalid
        """
        self.config = config or EmulatorConfig()
        self.quirks = self.config.resolve_quirks()

        self.memory = Memory(self.config.memory_policy)
        self.display = Display()
        self.keypad = Keypad()
        self.timers = Timers()
        self.cpu = Chip8CPU(
            self.memory,
            self.display,
            self.keypad,
            self.timers,
            quirks=self.quirks,
            rng=rng or DefaultRandomSource(self.config.seed),
        )

        self.breakpoints = BreakpointManager()

        self._program = b""
        self._total_steps = 0
        self._total_ticks = 0
        # Steps owed to run_frame() that did not make a whole instruction yet
        self._step_credit = Fraction(0)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, data: bytes) -> None:
        """
        Reset the machine and load a program image at $200.

        The image is kept, so reset() restarts the same program.

        Args:
            data: Raw ROM bytes

        Raises:
            LoadError: If the image exceeds $1000 - $200 bytes
        """
        data = bytes(data)
        if len(data) > Memory.MAX_PROGRAM_SIZE:
            logger.error(f"Program too large: {len(data)} bytes")
            raise LoadError(
                f"program is {len(data)} bytes, "
                f"maximum is {Memory.MAX_PROGRAM_SIZE} bytes",
                size=len(data),
            )
        self._program = data
        self.reset()
        logger.info(f"Loaded program: {len(data)} bytes at ${Memory.PROGRAM_START:04X}")

    def load_rom(self, path: Union[str, Path]) -> None:
        """
        Load a ROM file (raw big-endian opcode stream, no header).

        Raises:
            LoadError: If the file cannot be read or is too large
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise LoadError(f"cannot read ROM {path}: {e.strerror or e}") from e
        logger.debug(f"Read ROM {path}")
        self.load_program(data)

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset to power-on state with the current program reloaded.

        Memory is cleared and the font reinstalled, registers and stack
        cleared, the display cleared, timers zeroed and the keypad released.
        """
        self.memory.reset()
        self.memory.load_program(self._program)
        self.cpu.reset()
        self.display.clear()
        self.timers.reset()
        self.keypad.clear()
        self.breakpoints.clear_break_request()
        self._total_steps = 0
        self._total_ticks = 0
        self._step_credit = Fraction(0)

    def step(self) -> BreakEvent:
        """
        Execute a single instruction.

        Returns:
            BreakEvent with reason STEP (cycles=1), KEY_WAIT when FX0A found
            no key down, or ERROR carrying the ExecutionError (cycles=0,
            PC unchanged)
        """
        pc = self.cpu.pc
        try:
            cycles = self.cpu.step()
        except ExecutionError as e:
            logger.debug(f"Execution error: {e}")
            return self.breakpoints.record(BreakEvent(
                BreakReason.ERROR,
                address=e.address,
                opcode=e.opcode,
                error=e,
                message=str(e),
            ))

        self._total_steps += cycles
        opcode = self.cpu.last_instruction.raw
        if self.cpu.waiting_for_key:
            return BreakEvent(
                BreakReason.KEY_WAIT, address=pc, opcode=opcode, cycles=cycles,
                message=f"Waiting for key at ${pc:04X}",
            )
        return BreakEvent(BreakReason.STEP, address=pc, opcode=opcode, cycles=cycles)

    def skip_instruction(self) -> None:
        """Advance PC past the current instruction without executing it."""
        self.cpu.pc += 2

    def tick(self) -> None:
        """One 60 Hz timer tick."""
        self.timers.tick()
        self._total_ticks += 1

    def _run_steps(self, limit: int, stop_on_key_wait: bool) -> BreakEvent:
        executed = 0
        while executed < limit:
            event = self.breakpoints.check_instruction(self.cpu)
            # A breakpoint on the starting PC does not stop a resumed run
            if event is not None and not (
                executed == 0 and event.reason is BreakReason.PC_BREAKPOINT
            ):
                event.cycles = executed
                return event

            event = self.step()
            if event.reason is BreakReason.ERROR:
                event.cycles = executed
                return event
            executed += event.cycles
            if stop_on_key_wait and event.reason is BreakReason.KEY_WAIT:
                event.cycles = executed
                return event

        return BreakEvent(
            BreakReason.MAX_STEPS,
            address=self.cpu.pc,
            cycles=executed,
            message=f"Reached max steps ({limit})",
        )

    def run(self, max_steps: int = 1_000_000) -> BreakEvent:
        """
        Run until a breakpoint, an error, a key wait or max_steps.

        Timers are not ticked; use run_frame() or run_for() for real-time
        behaviour.

        Args:
            max_steps: Maximum instructions to execute

        Returns:
            BreakEvent describing why execution stopped

        Example:
            >>> emu.breakpoints.add_breakpoint(0x20A)
            >>> event = emu.run(100_000)
            >>> if event.reason == BreakReason.PC_BREAKPOINT:
            ...     print(f"Hit breakpoint at ${event.address:04X}")
        """
        return self._run_steps(max_steps, stop_on_key_wait=True)

    def run_frame(self) -> BreakEvent:
        """
        Run one 1/60 s frame: frequency/60 instructions, then one tick.

        Fractional instructions are carried over to the next frame, so 60
        frames at 700 Hz execute exactly 700 instructions. A key wait keeps
        re-executing FX0A and does not end the frame. If the frame stops
        early on an error or breakpoint, the timers are not ticked.

        Returns:
            BreakEvent with reason STEP and the instructions executed, or
            the event that ended the frame early
        """
        self._step_credit += Fraction(self.config.frequency) / self.timers.RATE_HZ
        steps = int(self._step_credit)
        self._step_credit -= steps

        event = self._run_steps(steps, stop_on_key_wait=False)
        if event.reason is not BreakReason.MAX_STEPS:
            return event

        self.tick()
        return BreakEvent(BreakReason.STEP, address=self.cpu.pc, cycles=event.cycles)

    def run_for(self, seconds: float) -> BreakEvent:
        """
        Simulate a wall-clock window of the given length.

        Executes round(seconds * 60) frames, which interleaves instructions
        at the configured frequency with 60 Hz ticks.

        Returns:
            STEP event with total instructions executed, or the first
            event that stopped a frame early
        """
        frames = round(seconds * self.timers.RATE_HZ)
        executed = 0
        for _ in range(frames):
            event = self.run_frame()
            executed += event.cycles
            if event.reason is not BreakReason.STEP:
                event.cycles = executed
                return event
        return BreakEvent(BreakReason.STEP, address=self.cpu.pc, cycles=executed)

    # =========================================================================
    # Keypad Input
    # =========================================================================

    def press_key(self, key: Union[int, str]) -> None:
        """
        Press a key (index 0-F or host key name from KEY_MAP).

        The key remains pressed until release_key() is called.
        """
        self.keypad.key_down(key)

    def release_key(self, key: Union[int, str]) -> None:
        """Release a key."""
        self.keypad.key_up(key)

    # =========================================================================
    # Display and Sound Output
    # =========================================================================

    @property
    def width(self) -> int:
        return self.display.width

    @property
    def height(self) -> int:
        return self.display.height

    @property
    def display_text(self) -> str:
        """Framebuffer as ASCII art."""
        return self.display.get_text()

    def render_display(self, scale: int = 8) -> Optional[bytes]:
        """
        Render the framebuffer as PNG bytes.

        Returns:
            PNG image bytes, or None if Pillow is not installed
        """
        return self.display.render_image(scale)

    @property
    def delay_timer(self) -> int:
        return self.timers.delay

    @property
    def sound_timer(self) -> int:
        return self.timers.sound

    @property
    def sound_active(self) -> bool:
        """True while the audio collaborator should emit a tone."""
        return self.timers.sound_active

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        return self.memory.read_bytes(address, count)

    def write_byte(self, address: int, value: int) -> None:
        self.memory.write(address, value)

    def write_bytes(self, address: int, data: bytes) -> None:
        self.memory.write_bytes(address, data)

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        All register values by name.

        Returns:
            Dictionary with keys v0-vf, i, pc, sp, delay, sound
        """
        regs = {f"v{n:x}": value for n, value in enumerate(self.cpu.v)}
        regs.update(
            i=self.cpu.i,
            pc=self.cpu.pc,
            sp=self.cpu.sp,
            delay=self.timers.delay,
            sound=self.timers.sound,
        )
        return regs

    @property
    def total_steps(self) -> int:
        """Instructions executed since the last reset."""
        return self._total_steps

    @property
    def total_ticks(self) -> int:
        """Timer ticks since the last reset."""
        return self._total_ticks

    @property
    def waiting_for_key(self) -> bool:
        return self.cpu.waiting_for_key

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_bytes(self) -> bytes:
        """
        Serialize the machine state.

        Layout: magic 'C8S' + version, CPU, timers, memory, display.
        The keypad belongs to the host and is not included.
        """
        data = bytearray(SNAPSHOT_MAGIC)
        data.extend(bytes(self.cpu.get_snapshot_data()))
        data.extend(bytes(self.timers.get_snapshot_data()))
        data.extend(bytes(self.memory.get_snapshot_data()))
        data.extend(bytes(self.display.get_snapshot_data()))
        return bytes(data)

    def apply_snapshot_bytes(self, raw: bytes) -> None:
        """
        Restore state produced by get_snapshot_bytes().

        On failure the emulator is left exactly as it was.

        Raises:
            SnapshotError: If the header is wrong or the data is truncated
        """
        if raw[:4] != SNAPSHOT_MAGIC:
            raise SnapshotError("Invalid snapshot format (bad header)")

        backup = self.get_snapshot_bytes()
        try:
            self._apply_components(list(raw), 4)
        except (ValueError, IndexError) as e:
            self._apply_components(list(backup), 4)
            raise SnapshotError(f"Invalid snapshot data: {e}") from e

    def _apply_components(self, data: list[int], offset: int) -> None:
        offset += self.cpu.apply_snapshot_data(data, offset)
        offset += self.timers.apply_snapshot_data(data, offset)
        offset += self.memory.apply_snapshot_data(data, offset)
        offset += self.display.apply_snapshot_data(data, offset)
        if offset != len(data):
            raise ValueError(f"{len(data) - offset} trailing bytes")

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Save complete machine state to a file.

        Args:
            path: Path to save snapshot file
        """
        path = Path(path)
        path.write_bytes(self.get_snapshot_bytes())
        logger.info(f"Saved snapshot to {path}")

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Load machine state from a snapshot file.

        Raises:
            FileNotFoundError: If file doesn't exist
            SnapshotError: If snapshot format is invalid
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        self.apply_snapshot_bytes(path.read_bytes())
        logger.info(f"Loaded snapshot from {path}")

    def __repr__(self) -> str:
        """Return string representation of emulator state."""
        return (
            f"Emulator(quirks={self.quirks.name}, "
            f"pc=${self.cpu.pc:04X}, "
            f"steps={self._total_steps})"
        )
