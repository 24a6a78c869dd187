"""
Emulator Integration Tests
==========================

Tests for the complete emulator system, verifying that all components
work together correctly.

These tests ensure:
- Configuration and quirk selection
- Program loading and execution
- Error reporting through step() results
- Frame and wall-clock driven execution
- Keypad input handling
- Snapshot save/restore
"""

import pytest

from chip8_sdk.emulator import (
    Emulator,
    EmulatorConfig,
    BreakReason,
    MemoryPolicy,
    Quirks,
    QUIRKS_LEGACY,
    SequenceRandomSource,
    SNAPSHOT_MAGIC,
    get_quirks,
    list_quirk_modes,
)
from chip8_sdk.errors import (
    LoadError,
    MemoryAccessError,
    SnapshotError,
    StackUnderflowError,
    UnknownOpcodeError,
)


def program(*words: int) -> bytes:
    return b"".join(bytes([(w >> 8) & 0xFF, w & 0xFF]) for w in words)


@pytest.fixture
def emu():
    """Default emulator."""
    return Emulator()


# =============================================================================
# Configuration Tests
# =============================================================================

class TestConfiguration:
    """Test EmulatorConfig and quirk presets."""

    def test_defaults(self):
        """Default config is modern quirks at 700 Hz with wrapping memory."""
        config = EmulatorConfig()
        assert config.frequency == 700
        assert config.memory_policy is MemoryPolicy.WRAP
        assert Emulator(config).quirks.name == "modern"

    def test_legacy_by_name(self):
        """Quirks can be chosen by name."""
        emu = Emulator(EmulatorConfig(quirks="legacy"))
        assert emu.quirks is QUIRKS_LEGACY
        assert emu.quirks.is_legacy

    def test_custom_quirks(self):
        """A Quirks instance is used as-is."""
        quirks = Quirks("custom", True, False, True, clip_sprites=False)
        assert Emulator(EmulatorConfig(quirks=quirks)).quirks is quirks

    def test_unknown_mode(self):
        """Unknown quirk names raise ValueError listing the options."""
        with pytest.raises(ValueError, match="legacy"):
            get_quirks("schip")

    def test_aliases(self):
        """COSMAC and VIP are aliases for legacy."""
        assert get_quirks("cosmac") is QUIRKS_LEGACY
        assert get_quirks("VIP") is QUIRKS_LEGACY
        assert len(list_quirk_modes()) == 2

    @pytest.mark.parametrize("frequency", [0, -700])
    def test_invalid_frequency(self, frequency):
        """Frequency must be positive."""
        with pytest.raises(ValueError):
            EmulatorConfig(frequency=frequency)

    def test_config_is_frozen(self):
        """Configuration cannot change after construction."""
        config = EmulatorConfig()
        with pytest.raises(AttributeError):
            config.frequency = 1000

    def test_seed_is_reproducible(self):
        """The same seed yields the same random bytes."""
        rom = program(0xC0FF, 0xC1FF, 0xC2FF)
        results = []
        for _ in range(2):
            emu = Emulator(EmulatorConfig(seed=1234))
            emu.load_program(rom)
            emu.run(3)
            results.append(bytes(emu.cpu.v[:3]))
        assert results[0] == results[1]


# =============================================================================
# Program Loading Tests
# =============================================================================

class TestLoading:
    """Test load_program() and load_rom()."""

    def test_load_program(self, emu):
        """Program appears at $200 with PC there."""
        emu.load_program(program(0x00E0))
        assert emu.read_bytes(0x200, 2) == bytes([0x00, 0xE0])
        assert emu.cpu.pc == 0x200

    def test_too_large(self, emu):
        """Oversized programs are rejected before execution."""
        with pytest.raises(LoadError):
            emu.load_program(bytes(0xE01))

    def test_load_rom(self, emu, tmp_path):
        """ROM files are read raw."""
        rom = tmp_path / "test.ch8"
        rom.write_bytes(program(0x6042))
        emu.load_rom(rom)
        emu.step()
        assert emu.cpu.v[0] == 0x42

    def test_load_missing_rom(self, emu, tmp_path):
        """Unreadable ROMs raise LoadError."""
        with pytest.raises(LoadError):
            emu.load_rom(tmp_path / "missing.ch8")

    def test_reset_reloads_program(self, emu):
        """reset() restarts the loaded program from scratch."""
        emu.load_program(program(0x6042, 0xA300, 0xF055))
        emu.run(3)
        assert emu.read_byte(0x300) == 0x42
        emu.reset()
        assert emu.read_byte(0x300) == 0
        assert emu.read_bytes(0x200, 2) == bytes([0x60, 0x42])
        assert emu.registers["v0"] == 0
        assert emu.total_steps == 0


# =============================================================================
# Step and Error Tests
# =============================================================================

class TestStep:
    """Test step() results."""

    def test_step_event(self, emu):
        """A normal step reports STEP with one cycle."""
        emu.load_program(program(0x6042))
        event = emu.step()
        assert event.reason is BreakReason.STEP
        assert event.cycles == 1
        assert event.address == 0x200
        assert event.opcode == 0x6042

    def test_unknown_opcode_event(self, emu):
        """Unknown opcodes come back as ERROR events."""
        emu.load_program(program(0xFFFF))
        event = emu.step()
        assert event.reason is BreakReason.ERROR
        assert isinstance(event.error, UnknownOpcodeError)
        assert event.cycles == 0
        assert emu.cpu.pc == 0x200

    def test_underflow_event(self, emu):
        """Stack underflow is reported, not raised."""
        emu.load_program(program(0x00EE))
        event = emu.step()
        assert isinstance(event.error, StackUnderflowError)

    def test_fault_policy_event(self):
        """Memory faults are reported under the FAULT policy."""
        emu = Emulator(EmulatorConfig(memory_policy=MemoryPolicy.FAULT))
        emu.load_program(program(0xAFFF, 0xF155))
        emu.step()
        event = emu.step()
        assert isinstance(event.error, MemoryAccessError)

    def test_skip_instruction(self, emu):
        """After an error the host can skip the faulting instruction."""
        emu.load_program(program(0xFFFF, 0x6042))
        assert emu.step().is_error
        emu.skip_instruction()
        assert emu.step().reason is BreakReason.STEP
        assert emu.cpu.v[0] == 0x42

    def test_halt_is_clean(self, emu):
        """Repeated steps after an error report the same error."""
        emu.load_program(program(0x6001, 0xFFFF))
        emu.step()
        first = emu.step()
        second = emu.step()
        assert first.address == second.address == 0x202
        assert emu.cpu.v[0] == 1


# =============================================================================
# End-to-End Tests
# =============================================================================

class TestEndToEnd:
    """Test whole programs."""

    def test_clear_and_spin(self, emu):
        """00E0 then 1200, stepped 1000 times: clear display, PC at $200."""
        emu.load_program(program(0x00E0, 0x1200))
        for _ in range(1000):
            assert emu.step().reason is BreakReason.STEP
        assert emu.display.is_clear()
        assert emu.cpu.pc == 0x200

    def test_draw_digit(self, emu):
        """Drawing the font glyph for 0 shows its outline."""
        emu.load_program(program(0x6000, 0xF029, 0xD005, 0x1206))
        emu.run(10)
        assert emu.display_text.splitlines()[0].startswith("####.")
        assert emu.display_text.splitlines()[1].startswith("#..#.")
        assert emu.cpu.v[0xF] == 0

    def test_subroutine(self, emu):
        """CALL and RET return to the caller."""
        emu.load_program(program(0x2206, 0x6102, 0x1204, 0x6001, 0x00EE))
        emu.run(4)
        assert emu.cpu.v[0] == 1
        assert emu.cpu.v[1] == 2
        assert emu.cpu.sp == 0

    def test_random_with_sequence(self):
        """An injected sequence makes CXNN deterministic."""
        emu = Emulator(rng=SequenceRandomSource([0x5A]))
        emu.load_program(program(0xC0F0))
        emu.step()
        assert emu.cpu.v[0] == 0x50


# =============================================================================
# Keypad Tests
# =============================================================================

class TestKeyInput:
    """Test key-wait behavior through the emulator."""

    def test_key_wait_retry(self, emu):
        """FX0A holds PC until a key is pressed."""
        emu.load_program(program(0xF50A))
        for _ in range(10):
            event = emu.step()
            assert event.reason is BreakReason.KEY_WAIT
            assert emu.cpu.pc == 0x200
        assert emu.waiting_for_key

        emu.press_key(0x7)
        event = emu.step()
        assert event.reason is BreakReason.STEP
        assert emu.cpu.v[5] == 0x7
        assert emu.cpu.pc == 0x202

    def test_key_by_name(self, emu):
        """Host key names reach the keypad."""
        emu.load_program(program(0xF50A))
        emu.press_key("S")
        emu.step()
        assert emu.cpu.v[5] == 0x8
        emu.release_key("S")
        assert not emu.keypad.any_pressed()

    def test_timers_run_while_waiting(self, emu):
        """Ticks keep counting down during a key wait."""
        emu.load_program(program(0x6005, 0xF015, 0xF00A))
        for _ in range(5):
            emu.run_frame()
        assert emu.delay_timer == 0


# =============================================================================
# Frame and Time Tests
# =============================================================================

class TestRealTime:
    """Test run_frame() and run_for()."""

    def test_one_second(self, emu):
        """One simulated second executes frequency steps and 60 ticks."""
        emu.load_program(program(0x603C, 0xF015, 0x1204))
        event = emu.run_for(1.0)
        assert event.reason is BreakReason.STEP
        assert event.cycles == 700
        assert emu.total_steps == 700
        assert emu.total_ticks == 60
        assert emu.delay_timer == 0

    def test_fractional_frames(self):
        """Steps per frame carry their fractional part."""
        emu = Emulator(EmulatorConfig(frequency=90))
        emu.load_program(program(0x1200))
        counts = [emu.run_frame().cycles for _ in range(4)]
        assert counts == [1, 2, 1, 2]

    def test_sound_active(self, emu):
        """Sound timer drives sound_active and runs down with ticks."""
        emu.load_program(program(0x6002, 0xF018, 0x1204))
        emu.run(2)
        assert emu.sound_active
        assert emu.sound_timer == 2
        emu.tick()
        emu.tick()
        assert not emu.sound_active

    def test_frame_stops_on_error(self, emu):
        """An error ends the frame without ticking."""
        emu.load_program(program(0x6005, 0xF015, 0xFFFF))
        event = emu.run_frame()
        assert event.reason is BreakReason.ERROR
        assert event.cycles == 2
        assert emu.delay_timer == 5
        assert emu.total_ticks == 0

    def test_run_for_stops_on_error(self, emu):
        """run_for() returns the first error event."""
        emu.load_program(program(0x1204, 0x0000, 0xFFFF))
        event = emu.run_for(2.0)
        assert event.is_error
        assert event.address == 0x204


# =============================================================================
# Snapshot Tests
# =============================================================================

class TestSnapshots:
    """Test save_snapshot() and load_snapshot()."""

    def test_roundtrip(self, emu, tmp_path):
        """Saved state restores registers, timers, memory and display."""
        emu.load_program(program(0x6A42, 0xA050, 0xD005, 0x6010, 0xF015, 0x2300))
        emu.run(6)
        path = tmp_path / "state.c8s"
        emu.save_snapshot(path)
        assert path.read_bytes()[:4] == SNAPSHOT_MAGIC

        restored = Emulator()
        restored.load_snapshot(path)
        assert restored.registers == emu.registers
        assert restored.cpu.stack == [0x20C]
        assert restored.display_text == emu.display_text
        assert restored.read_bytes(0x200, 12) == emu.read_bytes(0x200, 12)

    def test_bad_magic(self, emu, tmp_path):
        """Files without the header are rejected."""
        path = tmp_path / "bad.c8s"
        path.write_bytes(b"XXXX" + bytes(100))
        with pytest.raises(SnapshotError):
            emu.load_snapshot(path)

    def test_truncated_leaves_state(self, emu):
        """A truncated snapshot fails and leaves the emulator untouched."""
        emu.load_program(program(0x6A42))
        emu.step()
        data = emu.get_snapshot_bytes()

        other = Emulator()
        other.load_program(program(0x6B17))
        other.step()
        with pytest.raises(SnapshotError):
            other.apply_snapshot_bytes(data[:200])
        assert other.cpu.v[0xB] == 0x17
        assert other.cpu.v[0xA] == 0
        assert other.cpu.pc == 0x202

    def test_trailing_bytes(self, emu):
        """Extra data after the display is rejected."""
        with pytest.raises(SnapshotError):
            emu.apply_snapshot_bytes(emu.get_snapshot_bytes() + b"\x00")

    def test_missing_file(self, emu, tmp_path):
        """Missing snapshot files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            emu.load_snapshot(tmp_path / "nope.c8s")

    def test_repr(self, emu):
        """repr shows quirks and PC."""
        assert repr(emu) == "Emulator(quirks=modern, pc=$0200, steps=0)"
