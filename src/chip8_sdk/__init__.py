"""
CHIP-8 SDK - Interpreter and Tools for the CHIP-8 Virtual Machine
=================================================================

This package provides an interpreter for CHIP-8, the 1970s virtual machine
for the COSMAC VIP, together with the tools around it.

Main Components
---------------
- **emulator**: The virtual machine
    Memory, CPU, display, keypad, timers, breakpoints and snapshots

- **disassembler**: CHIP-8 disassembler (c8disasm)
    Turns program images back into assembly listings

- **cli**: Command-line tools
    c8run runs ROMs in a pygame window or headless

Quick Start
-----------
Run a ROM headless:
    >>> from chip8_sdk import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom("ibm_logo.ch8")
    >>> emu.run_for(0.5)
    >>> print(emu.display_text)

Disassemble a ROM:
    >>> from chip8_sdk import Chip8Disassembler
    >>> print(Chip8Disassembler().disassemble_to_text(open("pong.ch8", "rb").read()))

Or use the command-line tools:
    $ c8run pong.ch8
    $ c8disasm pong.ch8

Version History
---------------
1.0.0 - Initial release with interpreter, pygame frontend and disassembler
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_sdk.errors import (
    Chip8Error,
    LoadError,
    SnapshotError,
    ExecutionError,
    UnknownOpcodeError,
    StackOverflowError,
    StackUnderflowError,
    MemoryAccessError,
)

from chip8_sdk.emulator import (
    Emulator,
    EmulatorConfig,
    BreakEvent,
    BreakReason,
    Quirks,
    MemoryPolicy,
    QUIRKS_LEGACY,
    QUIRKS_MODERN,
    get_quirks,
    SequenceRandomSource,
    DefaultRandomSource,
)

from chip8_sdk.disassembler import Chip8Disassembler, DisassembledInstruction

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "Chip8Error",
    "LoadError",
    "SnapshotError",
    "ExecutionError",
    "UnknownOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "BreakEvent",
    "BreakReason",
    "Quirks",
    "MemoryPolicy",
    "QUIRKS_LEGACY",
    "QUIRKS_MODERN",
    "get_quirks",
    "SequenceRandomSource",
    "DefaultRandomSource",
    # Disassembler
    "Chip8Disassembler",
    "DisassembledInstruction",
]
