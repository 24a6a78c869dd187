"""
c8disasm - CHIP-8 Disassembler Command-Line Interface
=====================================================

Produces an assembly listing of a CHIP-8 ROM.

Usage Examples
--------------
Disassemble a ROM (loaded at $200):
    $ c8disasm pong.ch8

Limit number of instructions:
    $ c8disasm pong.ch8 --count 20

Output to file:
    $ c8disasm pong.ch8 -o pong.lst

Hex dump with disassembly:
    $ c8disasm pong.ch8 --hex
"""

import sys
from pathlib import Path
from typing import Optional

import click

from chip8_sdk import __version__
from chip8_sdk.cli.errors import ExitCode
from chip8_sdk.disassembler import Chip8Disassembler


def parse_address(text: str) -> int:
    """
    Parse an address given as 0x1FF, $1FF or decimal.

    Raises:
        ValueError: If the text is not a number
    """
    if text.lower().startswith("0x"):
        return int(text, 16)
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text)


def hex_dump(data: bytes, base_address: int) -> list[str]:
    """Comment lines with 16 bytes per row, hex and ASCII."""
    lines = ["; Hex dump:", "; " + "-" * 60]
    for i in range(0, len(data), 16):
        chunk = data[i:i + 16]
        hex_str = " ".join(f"{b:02X}" for b in chunk)
        ascii_str = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(f"; ${base_address + i:04X}: {hex_str:<48} {ascii_str}")
    lines.append("; " + "-" * 60)
    lines.append("")
    return lines


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0x200",
    help="Load address of the first byte (hex with 0x or $ prefix, or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 ROM.

    INPUT_FILE is the raw program image.

    Examples:

        # Full listing
        c8disasm pong.ch8

        # First 20 instructions, without the byte column
        c8disasm pong.ch8 --count 20 --no-bytes
    """
    try:
        base_address = parse_address(address)
    except ValueError:
        click.echo(f"Error: Invalid address '{address}'", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if not 0 <= base_address <= 0xFFF:
        click.echo("Error: Address must be 0-4095 (0x000-0xFFF)", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        data = input_file.read_bytes()
    except OSError as e:
        click.echo(f"Error reading {input_file}: {e}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:04X}", err=True)

    output_lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        f"; Base address: ${base_address:04X}",
        "",
    ]

    if show_hex:
        output_lines.extend(hex_dump(data, base_address))

    instructions = Chip8Disassembler().disassemble(data, start_address=base_address, count=count)
    for instr in instructions:
        if no_bytes:
            output_lines.append(f"${instr.address:04X}: {instr.text}")
        else:
            output_lines.append(str(instr))

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding='utf-8')
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.CHIP8_ERROR)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
