"""
CHIP-8 SDK Error Hierarchy
==========================

This module defines the exception hierarchy for the entire CHIP-8 SDK.
All exceptions inherit from Chip8Error, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── LoadError - ROM cannot be loaded (too large, unreadable)
├── SnapshotError - malformed save-state file
└── ExecutionError (recoverable, raised while executing an instruction)
    ├── UnknownOpcodeError - bit pattern with no defined semantics
    ├── StackOverflowError - call depth exceeds the stack capacity
    ├── StackUnderflowError - return executed with an empty stack
    └── MemoryAccessError - address outside memory (fault policy only)

Design Philosophy
-----------------
Execution errors never leave the machine half-updated. The CPU restores the
program counter to the faulting instruction before raising, so the host can
inspect the state and decide whether to halt, skip the instruction, or
substitute its own behaviour. The interpreter itself never guesses.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            emu.load_rom("pong.ch8")
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Loading Exceptions
# =============================================================================

class LoadError(Chip8Error):
    """
    ROM cannot be loaded.

    Raised before any execution begins when:
    - The program is larger than the program space (0x1000 - 0x200 bytes)
    - The ROM file cannot be read
    """

    def __init__(self, message: str, size: Optional[int] = None):
        self.size = size
        super().__init__(message)


class SnapshotError(Chip8Error):
    """
    Invalid snapshot file.

    Raised when a snapshot has the wrong magic header, an unsupported
    version, or is truncated.
    """
    pass


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for recoverable errors raised while executing.

    Attributes:
        address: Address of the faulting instruction
        opcode: The 16-bit instruction word being executed
    """

    def __init__(
        self,
        message: str,
        address: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.address = address
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the message with address and opcode context.

        Example output:
            unknown opcode at $0204 (opcode $F0FF)
        """
        parts = [self.message]
        if self.address is not None:
            parts.append(f"at ${self.address:04X}")
        if self.opcode is not None:
            parts.append(f"(opcode ${self.opcode:04X})")
        return " ".join(parts)

    def attach(self, address: int, opcode: Optional[int]) -> "ExecutionError":
        """
        Fill in instruction context that was unknown where the error was raised.

        Memory raises MemoryAccessError without knowing which instruction
        was executing; the CPU attaches it on the way out.
        """
        if self.address is None:
            self.address = address
        if self.opcode is None:
            self.opcode = opcode
        self.args = (self._format_message(),)
        return self


class UnknownOpcodeError(ExecutionError):
    """
    Instruction word with no defined CHIP-8 semantics.

    Raised instead of silently executing a no-op so that ROM
    incompatibilities are observable.
    """

    def __init__(self, opcode: int, address: Optional[int] = None):
        super().__init__("unknown opcode", address=address, opcode=opcode)


class StackOverflowError(ExecutionError):
    """Subroutine call with the return stack already full."""

    def __init__(self, depth: int, address: Optional[int] = None, opcode: Optional[int] = None):
        self.depth = depth
        super().__init__(f"stack overflow (depth {depth})", address=address, opcode=opcode)


class StackUnderflowError(ExecutionError):
    """Return from subroutine with an empty stack."""

    def __init__(self, address: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("stack underflow", address=address, opcode=opcode)


class MemoryAccessError(ExecutionError):
    """
    Memory access outside 0x000-0xFFF.

    Only raised when the memory policy is FAULT; under the default WRAP
    policy addresses are reduced modulo the memory size instead.

    Attributes:
        target: The out-of-range address that was accessed
    """

    def __init__(self, target: int, address: Optional[int] = None, opcode: Optional[int] = None):
        self.target = target
        super().__init__(
            f"memory access out of range (${target:04X})",
            address=address,
            opcode=opcode,
        )
