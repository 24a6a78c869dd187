#!/usr/bin/env python3
"""
CHIP-8 Emulator Demo
====================

This script demonstrates how to use the CHIP-8 SDK emulator to:
1. Create an emulator with a quirk preset
2. Load a program
3. Stop at a breakpoint and inspect registers
4. Feed keypad input
5. Save and restore a snapshot
6. Take screenshots

Usage:
    python examples/emulator_demo.py
"""

from pathlib import Path

from chip8_sdk.disassembler import Chip8Disassembler
from chip8_sdk.emulator import BreakReason, Emulator, EmulatorConfig

# Draws the hex digits 0-F from the built-in font in two rows, then waits
# for a key and stores it in V3.
DEMO_PROGRAM = bytes([
    0x00, 0xE0,  # $200 CLS
    0x60, 0x00,  # $202 LD V0, #00      digit
    0x61, 0x00,  # $204 LD V1, #00      x
    0x62, 0x00,  # $206 LD V2, #00      y
    0xF0, 0x29,  # $208 LD F, V0
    0xD1, 0x25,  # $20A DRW V1, V2, 5
    0x70, 0x01,  # $20C ADD V0, #01
    0x71, 0x05,  # $20E ADD V1, #05
    0x40, 0x08,  # $210 SNE V0, #08
    0x22, 0x20,  # $212 CALL #220      next row
    0x30, 0x10,  # $214 SE V0, #10
    0x12, 0x08,  # $216 JP #208
    0xF3, 0x0A,  # $218 LD V3, K
    0x12, 0x1A,  # $21A JP #21A
    0x00, 0x00,  # $21C
    0x00, 0x00,  # $21E
    0x61, 0x00,  # $220 LD V1, #00
    0x62, 0x06,  # $222 LD V2, #06
    0x00, 0xEE,  # $224 RET
])


def main():
    # Output directory for screenshots and snapshots
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Create an emulator instance
    # ==========================================================================
    # Quirk presets: "legacy" (COSMAC VIP) or "modern" (default)

    print("Creating CHIP-8 emulator...")
    emu = Emulator(EmulatorConfig(quirks="modern", frequency=700, seed=42))
    print(f"  {emu!r}")
    print(f"  Display: {emu.width}x{emu.height}")

    # ==========================================================================
    # 2. Load the program
    # ==========================================================================
    emu.load_program(DEMO_PROGRAM)

    print("\nProgram listing:")
    for instr in Chip8Disassembler().disassemble(DEMO_PROGRAM, count=14):
        print(f"  {instr}")

    # ==========================================================================
    # 3. Run to a breakpoint
    # ==========================================================================
    emu.breakpoints.add_breakpoint(0x218)
    event = emu.run(10_000)
    print(f"\n{event} after {event.cycles} instructions")
    print(f"  V0={emu.registers['v0']:#04x}  I=${emu.registers['i']:04X}")
    print(emu.display_text)

    # ==========================================================================
    # 4. Keypad input
    # ==========================================================================
    # Host keys 1234/QWER/ASDF/ZXCV map to the hex keypad

    event = emu.run(100)
    if event.reason is BreakReason.KEY_WAIT:
        print(f"\n{event}; pressing W")
        emu.press_key("W")
        emu.step()
        emu.release_key("W")
        print(f"  V3={emu.registers['v3']:#x}")

    # ==========================================================================
    # 5. Snapshots
    # ==========================================================================
    snapshot = output_dir / "demo.c8s"
    emu.save_snapshot(snapshot)
    emu.reset()
    print(f"\nAfter reset: {emu!r}")
    emu.load_snapshot(snapshot)
    print(f"After restore: {emu!r}")

    # ==========================================================================
    # 6. Take screenshots
    # ==========================================================================
    img = emu.render_display(scale=8)
    if img is None:
        print("\nInstall Pillow for screenshots")
    else:
        (output_dir / "demo_digits.png").write_bytes(img)
        print("\nSaved demo_digits.png")

    # ==========================================================================
    # 7. Real-time execution
    # ==========================================================================
    event = emu.run_for(1.0)
    print(f"\nOne second: {event.cycles} instructions, {emu.total_ticks} ticks")


if __name__ == "__main__":
    main()
