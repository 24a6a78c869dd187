"""
c8run - CHIP-8 ROM Runner
=========================

Runs a CHIP-8 ROM in a pygame window, or headless for a fixed number of
instructions.

Usage Examples
--------------
Play a game:
    $ c8run pong.ch8

Original COSMAC VIP behaviour, faster clock:
    $ c8run --legacy -f 1000 pong.ch8

Headless run with a screenshot:
    $ c8run --headless --steps 5000 --screenshot logo.png ibm_logo.ch8

Keypad
------
    1 2 3 4        1 2 3 C
    Q W E R   ->   4 5 6 D
    A S D F        7 8 9 E
    Z X C V        A 0 B F

Escape closes the window.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from chip8_sdk import __version__
from chip8_sdk.cli.errors import ExitCode, handle_cli_exception
from chip8_sdk.emulator import BreakReason, Emulator, EmulatorConfig, MemoryPolicy

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def run_headless(emu: Emulator, steps: int, on_error: str) -> int:
    """
    Run frame by frame until at least `steps` instructions have executed.

    Returns:
        Instructions executed (skipped instructions included)

    Raises:
        ExecutionError: On the first error when on_error is "halt"
    """
    executed = 0
    while executed < steps:
        event = emu.run_frame()
        executed += event.cycles
        if event.reason is BreakReason.ERROR:
            if on_error == "halt":
                raise event.error
            logger.warning(f"{event.error}; skipping instruction")
            emu.skip_instruction()
            executed += 1
    return executed


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--legacy/--modern",
    default=False,
    help="Quirk mode: original COSMAC VIP (legacy) or CHIP-48/SUPER-CHIP (modern, default)",
)
@click.option(
    "-f", "--frequency",
    type=click.IntRange(min=1),
    default=700,
    show_default=True,
    help="Instructions per second",
)
@click.option(
    "--memory-policy",
    type=click.Choice([p.value for p in MemoryPolicy]),
    default=MemoryPolicy.WRAP.value,
    show_default=True,
    help="Out-of-range memory access: wrap modulo 4KB or fault",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the random number generator (CXNN)",
)
@click.option(
    "--on-error",
    type=click.Choice(["halt", "skip"]),
    default="halt",
    show_default=True,
    help="Stop at the first execution error, or skip the faulting instruction",
)
@click.option(
    "--headless",
    is_flag=True,
    help="Run without a window and print the final display",
)
@click.option(
    "--steps",
    type=click.IntRange(min=0),
    default=10_000,
    show_default=True,
    help="Instructions to execute in headless mode",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Window pixels per CHIP-8 pixel",
)
@click.option(
    "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a PNG of the display after the run",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8run")
def main(
    rom: Path,
    legacy: bool,
    frequency: int,
    memory_policy: str,
    seed: Optional[int],
    on_error: str,
    headless: bool,
    steps: int,
    scale: int,
    screenshot: Optional[Path],
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM.

    ROM is a raw CHIP-8 program image, loaded at $200.

    Examples:

        # Play in a window
        c8run pong.ch8

        # Headless, 5000 instructions, legacy quirks
        c8run --headless --steps 5000 --legacy test.ch8
    """
    setup_logging(verbose)

    try:
        config = EmulatorConfig(
            quirks="legacy" if legacy else "modern",
            frequency=frequency,
            memory_policy=MemoryPolicy(memory_policy),
            seed=seed,
        )
        emu = Emulator(config)
        emu.load_rom(rom)
        logger.debug(f"Quirks: {emu.quirks.name}, {frequency} Hz, memory {memory_policy}")

        if headless:
            executed = run_headless(emu, steps, on_error)
            click.echo(emu.display_text)
            click.echo(f"Executed {executed} instructions, PC=${emu.cpu.pc:04X}")
        else:
            from chip8_sdk.emulator.frontend import Frontend

            halted = Frontend(emu, scale=scale, on_error=on_error, title=rom.name).run()
            if halted is not None:
                raise halted.error

        if screenshot:
            png = emu.render_display(scale)
            if png is None:
                click.echo("Error: Pillow is required for --screenshot", err=True)
                raise SystemExit(ExitCode.INTERNAL_ERROR)
            screenshot.write_bytes(png)
            click.echo(f"Screenshot written to {screenshot}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
