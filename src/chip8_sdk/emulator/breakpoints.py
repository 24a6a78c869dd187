"""
Breakpoints and Execution Events for CHIP-8 Emulator
====================================================

Every call that advances the interpreter reports what happened through a
BreakEvent: a normal step, a breakpoint, a recoverable execution error, or
an exhausted step budget. Errors travel to the host inside the event rather
than as exceptions, so a run loop can decide to halt, skip or continue.

Debugging capabilities:
- PC breakpoints (break when PC reaches address)
- Register conditions (break when registers match)
- External break requests

Example usage:

    >>> from chip8_sdk.emulator import Emulator, BreakReason
    >>> emu = Emulator()
    >>> emu.breakpoints.add_breakpoint(0x208)
    >>> event = emu.run(10_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:04X}")
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set, TYPE_CHECKING

from ..errors import ExecutionError

if TYPE_CHECKING:
    from .cpu import Chip8CPU


class BreakReason(Enum):
    """Why a step or run returned."""
    STEP = auto()                # One instruction executed normally
    PC_BREAKPOINT = auto()       # PC reached a breakpoint address
    REGISTER_CONDITION = auto()  # Register condition met
    KEY_WAIT = auto()            # FX0A is waiting for a key
    USER_INTERRUPT = auto()      # request_break() was called
    MAX_STEPS = auto()           # Step budget exhausted
    ERROR = auto()               # Recoverable execution error


@dataclass
class BreakEvent:
    """
    Result of advancing the interpreter.

    Attributes:
        reason: Why execution stopped
        address: PC at the time of the event
        opcode: Instruction word involved (if applicable)
        cycles: Logical clock ticks consumed by the call
        error: The execution error (reason ERROR only)
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    opcode: Optional[int] = None
    cycles: int = 0
    error: Optional[ExecutionError] = None
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.reason is BreakReason.ERROR

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:04X}" if self.address is not None else "Breakpoint"
            case BreakReason.REGISTER_CONDITION:
                return "Register condition met"
            case BreakReason.KEY_WAIT:
                return "Waiting for key"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.MAX_STEPS:
                return "Maximum steps reached"
            case BreakReason.ERROR:
                return str(self.error) if self.error else "Runtime error"
            case _:
                return "User interrupt"


class RegisterCondition:
    """
    Condition on CPU registers.

    Supported registers: v0-vf, i, pc, sp, delay, sound

    Supported operators:
    - '==' : Equal
    - '!=' : Not equal
    - '<'  : Less than
    - '<=' : Less than or equal
    - '>'  : Greater than
    - '>=' : Greater than or equal
    - '&'  : Bitwise AND test (true if result non-zero)

    Examples:
        >>> cond = RegisterCondition('v3', '==', 0x42)
        >>> cond = RegisterCondition('i', '>', 0x300)
        >>> cond = RegisterCondition('vf', '&', 0x01)
    """

    VALID_REGISTERS = frozenset(
        [f"v{n:x}" for n in range(16)] + ["i", "pc", "sp", "delay", "sound"]
    )
    VALID_OPERATORS = frozenset({'==', '!=', '<', '<=', '>', '>=', '&'})

    def __init__(self, register: str, operator: str, value: int, description: str = ""):
        self.register = register.lower()
        self.operator = operator
        self.value = value
        self.description = description or f"{register} {operator} {value}"

        if self.register not in self.VALID_REGISTERS:
            raise ValueError(
                f"Unknown register '{register}'. "
                f"Valid registers: {', '.join(sorted(self.VALID_REGISTERS))}"
            )
        if self.operator not in self.VALID_OPERATORS:
            raise ValueError(
                f"Unknown operator '{operator}'. "
                f"Valid operators: {', '.join(sorted(self.VALID_OPERATORS))}"
            )

    def _read(self, cpu: "Chip8CPU") -> int:
        match self.register:
            case "i":
                return cpu.i
            case "pc":
                return cpu.pc
            case "sp":
                return cpu.sp
            case "delay":
                return cpu.timers.delay
            case "sound":
                return cpu.timers.sound
            case _:
                return cpu.v[int(self.register[1], 16)]

    def check(self, cpu: "Chip8CPU") -> bool:
        """
        Check if condition is met against CPU state.

        Returns:
            True if condition is met, False otherwise
        """
        actual = self._read(cpu)

        match self.operator:
            case '==':
                return actual == self.value
            case '!=':
                return actual != self.value
            case '<':
                return actual < self.value
            case '<=':
                return actual <= self.value
            case '>':
                return actual > self.value
            case '>=':
                return actual >= self.value
            case '&':
                return (actual & self.value) != 0
            case _:
                return False

    def __repr__(self) -> str:
        return f"RegisterCondition({self.register!r}, {self.operator!r}, {self.value!r})"


class BreakpointManager:
    """
    Manages breakpoints and register conditions.

    The Emulator consults check_instruction() before each instruction of
    a run() and stops when it returns an event.

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x20A)
        >>> mgr.add_register_condition(RegisterCondition('v0', '==', 0x00))
    """

    def __init__(self):
        self._pc_breakpoints: Set[int] = set()

        # Register conditions (list with possible None holes)
        self._register_conditions: List[Optional[RegisterCondition]] = []

        self._last_event: Optional[BreakEvent] = None
        self._break_requested: bool = False

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event that occurred."""
        return self._last_event

    @property
    def breakpoint_count(self) -> int:
        return len(self._pc_breakpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution will stop when PC reaches this address, before the
        instruction at that address is executed.
        """
        self._pc_breakpoints.add(address & 0xFFFF)

    def remove_breakpoint(self, address: int) -> None:
        self._pc_breakpoints.discard(address & 0xFFFF)

    def has_breakpoint(self, address: int) -> bool:
        return (address & 0xFFFF) in self._pc_breakpoints

    def clear_breakpoints(self) -> None:
        self._pc_breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        """Sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    # =========================================================================
    # Register Conditions
    # =========================================================================

    def add_register_condition(self, condition: RegisterCondition) -> int:
        """
        Add a register condition.

        Returns:
            Condition ID for later removal
        """
        self._register_conditions.append(condition)
        return len(self._register_conditions) - 1

    def add_condition(self, register: str, operator: str, value: int) -> int:
        """Shorthand for add_register_condition(RegisterCondition(...))."""
        return self.add_register_condition(RegisterCondition(register, operator, value))

    def remove_register_condition(self, condition_id: int) -> None:
        if 0 <= condition_id < len(self._register_conditions):
            self._register_conditions[condition_id] = None

    def clear_register_conditions(self) -> None:
        self._register_conditions.clear()

    def list_register_conditions(self) -> List[tuple[int, RegisterCondition]]:
        return [
            (i, cond) for i, cond in enumerate(self._register_conditions)
            if cond is not None
        ]

    # =========================================================================
    # Control
    # =========================================================================

    def request_break(self) -> None:
        """Request execution to break before the next instruction."""
        self._break_requested = True

    def clear_break_request(self) -> None:
        self._break_requested = False

    def clear_all(self) -> None:
        """Remove all breakpoints and conditions."""
        self.clear_breakpoints()
        self.clear_register_conditions()
        self._break_requested = False
        self._last_event = None

    def record(self, event: BreakEvent) -> BreakEvent:
        """Remember an event produced elsewhere (errors, step budget)."""
        self._last_event = event
        return event

    def check_instruction(self, cpu: "Chip8CPU") -> Optional[BreakEvent]:
        """
        Check if we should break before executing the instruction at PC.

        Returns:
            BreakEvent if a break condition holds, None to continue
        """
        pc = cpu.pc

        if self._break_requested:
            self._break_requested = False
            return self.record(BreakEvent(
                BreakReason.USER_INTERRUPT, address=pc, message="User interrupt"
            ))

        if pc in self._pc_breakpoints:
            return self.record(BreakEvent(
                BreakReason.PC_BREAKPOINT, address=pc, message=f"Breakpoint at ${pc:04X}"
            ))

        for cond in self._register_conditions:
            if cond is not None and cond.check(cpu):
                return self.record(BreakEvent(
                    BreakReason.REGISTER_CONDITION,
                    address=pc,
                    message=f"Condition: {cond.description}",
                ))

        return None
