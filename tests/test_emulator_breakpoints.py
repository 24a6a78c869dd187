"""
Breakpoint Unit Tests
=====================

Tests for BreakEvent, RegisterCondition and BreakpointManager, and for how
Emulator.run() consults them.
"""

import pytest
from chip8_sdk.emulator import (
    BreakEvent,
    BreakpointManager,
    BreakReason,
    Emulator,
    RegisterCondition,
)


def program(*words: int) -> bytes:
    return b"".join(bytes([(w >> 8) & 0xFF, w & 0xFF]) for w in words)


@pytest.fixture
def emu():
    """Emulator running a counter loop: V0 += 1; jump back."""
    e = Emulator()
    e.load_program(program(0x7001, 0x1200))
    return e


# =============================================================================
# BreakEvent Tests
# =============================================================================

class TestBreakEvent:
    """Test event formatting."""

    def test_message_wins(self):
        """An explicit message is used as the string form."""
        event = BreakEvent(BreakReason.STEP, message="hello")
        assert str(event) == "hello"

    def test_default_strings(self):
        """Without a message the reason is described."""
        assert str(BreakEvent(BreakReason.PC_BREAKPOINT, address=0x204)) == "Breakpoint at $0204"
        assert str(BreakEvent(BreakReason.MAX_STEPS)) == "Maximum steps reached"
        assert str(BreakEvent(BreakReason.KEY_WAIT)) == "Waiting for key"

    def test_is_error(self):
        """Only ERROR events are errors."""
        assert BreakEvent(BreakReason.ERROR).is_error
        assert not BreakEvent(BreakReason.STEP).is_error


# =============================================================================
# RegisterCondition Tests
# =============================================================================

class TestRegisterCondition:
    """Test condition evaluation."""

    @pytest.mark.parametrize("op,value,expected", [
        ("==", 5, True), ("!=", 5, False), ("<", 6, True), ("<=", 5, True),
        (">", 5, False), (">=", 5, True), ("&", 0x04, True), ("&", 0x02, False),
    ])
    def test_operators(self, emu, op, value, expected):
        """All operators compare against the register value."""
        emu.cpu.v[3] = 5
        assert RegisterCondition("v3", op, value).check(emu.cpu) is expected

    def test_special_registers(self, emu):
        """I, PC, SP and the timers can be tested."""
        emu.cpu.i = 0x300
        emu.timers.delay = 9
        assert RegisterCondition("I", "==", 0x300).check(emu.cpu)
        assert RegisterCondition("pc", "==", 0x200).check(emu.cpu)
        assert RegisterCondition("sp", "==", 0).check(emu.cpu)
        assert RegisterCondition("delay", "==", 9).check(emu.cpu)
        assert RegisterCondition("sound", "==", 0).check(emu.cpu)

    def test_invalid_register(self):
        """Unknown registers are rejected."""
        with pytest.raises(ValueError):
            RegisterCondition("vg", "==", 0)

    def test_invalid_operator(self):
        """Unknown operators are rejected."""
        with pytest.raises(ValueError):
            RegisterCondition("v0", "=~", 0)


# =============================================================================
# BreakpointManager Tests
# =============================================================================

class TestBreakpointManager:
    """Test breakpoint bookkeeping."""

    def test_add_remove(self):
        """Breakpoints can be added, listed and removed."""
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x300)
        mgr.add_breakpoint(0x200)
        assert mgr.list_breakpoints() == [0x200, 0x300]
        assert mgr.has_breakpoint(0x300)
        mgr.remove_breakpoint(0x300)
        assert mgr.breakpoint_count == 1

    def test_conditions(self):
        """Conditions get ids and can be removed."""
        mgr = BreakpointManager()
        first = mgr.add_condition("v0", "==", 1)
        second = mgr.add_condition("v1", "==", 2)
        mgr.remove_register_condition(first)
        assert [cid for cid, _ in mgr.list_register_conditions()] == [second]

    def test_clear_all(self):
        """clear_all() removes everything."""
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x200)
        mgr.add_condition("v0", "==", 1)
        mgr.request_break()
        mgr.clear_all()
        assert mgr.breakpoint_count == 0
        assert mgr.list_register_conditions() == []
        assert mgr.last_event is None


# =============================================================================
# Emulator.run() Integration
# =============================================================================

class TestRunWithBreakpoints:
    """Test run() stopping conditions."""

    def test_max_steps(self, emu):
        """run() stops after the step budget."""
        event = emu.run(10)
        assert event.reason is BreakReason.MAX_STEPS
        assert event.cycles == 10
        assert emu.cpu.v[0] == 5

    def test_pc_breakpoint(self, emu):
        """run() stops before the instruction at a breakpoint."""
        emu.breakpoints.add_breakpoint(0x202)
        event = emu.run(100)
        assert event.reason is BreakReason.PC_BREAKPOINT
        assert event.address == 0x202
        assert emu.cpu.pc == 0x202
        assert emu.cpu.v[0] == 1

    def test_resume_from_breakpoint(self, emu):
        """A second run() steps off the breakpoint it stopped on."""
        emu.breakpoints.add_breakpoint(0x202)
        emu.run(100)
        event = emu.run(100)
        assert event.reason is BreakReason.PC_BREAKPOINT
        assert emu.cpu.v[0] == 2

    def test_register_condition(self, emu):
        """run() stops when a condition becomes true."""
        emu.breakpoints.add_condition("v0", "==", 7)
        event = emu.run(1000)
        assert event.reason is BreakReason.REGISTER_CONDITION
        assert emu.cpu.v[0] == 7
        assert emu.breakpoints.last_event is event

    def test_request_break(self, emu):
        """A pending break request stops run() immediately."""
        emu.breakpoints.request_break()
        event = emu.run(1000)
        assert event.reason is BreakReason.USER_INTERRUPT
        assert event.cycles == 0

    def test_error_stops_run(self):
        """run() returns the error event without raising."""
        emu = Emulator()
        emu.load_program(program(0x6001, 0xFFFF))
        event = emu.run(100)
        assert event.reason is BreakReason.ERROR
        assert event.address == 0x202
        assert event.opcode == 0xFFFF
        assert event.cycles == 1

    def test_key_wait_stops_run(self):
        """run() returns KEY_WAIT while FX0A waits."""
        emu = Emulator()
        emu.load_program(program(0xF00A))
        event = emu.run(100)
        assert event.reason is BreakReason.KEY_WAIT
        assert emu.cpu.pc == 0x200
