"""
CHIP-8 Virtual Machine
======================

An interpreter for the CHIP-8 virtual machine: 4KB memory, sixteen 8-bit
registers, a 16-level return stack, two 60 Hz timers, a 64x32 monochrome
framebuffer and a 16-key keypad.

Quick Start
-----------

Run a ROM headless::

    >>> from chip8_sdk.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(quirks="modern", frequency=700))
    >>> emu.load_rom("ibm_logo.ch8")
    >>> event = emu.run_for(1.0)
    >>> print(emu.display_text)

Drive it by hand::

    >>> emu.step()      # one instruction
    >>> emu.tick()      # one 60 Hz timer tick

With debugging::

    >>> emu.breakpoints.add_breakpoint(0x228)
    >>> event = emu.run(100_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:04X}")

Quirk Modes
-----------

- **legacy**: COSMAC VIP behaviour (shifts read VY, FX55/FX65 advance I,
  BNNN adds V0)
- **modern**: CHIP-48/SUPER-CHIP behaviour (default)

Module Structure
----------------

- `emulator.py`: Main Emulator class (interpreter loop, high-level API)
- `cpu.py`: Register file and instruction executor
- `decoder.py`: Instruction word decoding and encoding
- `memory.py`: 4KB RAM with the built-in font
- `display.py`: Framebuffer
- `keyboard.py`: Keypad and host key mapping
- `timers.py`: Delay and sound timers
- `rng.py`: Random byte sources for CXNN
- `breakpoints.py`: Debugging support
- `models.py`: Quirk presets and memory policy
- `frontend.py`: pygame window (imported on demand)
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig, SNAPSHOT_MAGIC

# CPU components
from .cpu import Chip8CPU, CPUState
from .decoder import Op, Instruction, decode, encode

# Memory subsystem
from .memory import Memory, FONT_ADDRESS, FONT_SET

# I/O
from .display import Display, DisplayState
from .keyboard import Keypad, KEY_MAP
from .timers import Timers, TimerState
from .rng import RandomSource, DefaultRandomSource, SequenceRandomSource

# Debugging support
from .breakpoints import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
)

# Configuration
from .models import (
    Quirks,
    MemoryPolicy,
    QUIRKS_LEGACY,
    QUIRKS_MODERN,
    QUIRKS_DEFAULT,
    get_quirks,
    list_quirk_modes,
)

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",
    "SNAPSHOT_MAGIC",
    # CPU
    "Chip8CPU",
    "CPUState",
    "Op",
    "Instruction",
    "decode",
    "encode",
    # Memory
    "Memory",
    "FONT_ADDRESS",
    "FONT_SET",
    # I/O
    "Display",
    "DisplayState",
    "Keypad",
    "KEY_MAP",
    "Timers",
    "TimerState",
    "RandomSource",
    "DefaultRandomSource",
    "SequenceRandomSource",
    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
    "RegisterCondition",
    # Configuration
    "Quirks",
    "MemoryPolicy",
    "QUIRKS_LEGACY",
    "QUIRKS_MODERN",
    "QUIRKS_DEFAULT",
    "get_quirks",
    "list_quirk_modes",
]
