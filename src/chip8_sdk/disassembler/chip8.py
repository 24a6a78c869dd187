"""
CHIP-8 Disassembler
===================

Turns CHIP-8 program bytes back into assembly text using the emulator's
decoder, so the disassembler and the interpreter always agree on what an
instruction word means.

Mnemonics follow the common CHIP-8 assembly syntax: immediates and
addresses are written as #XXX, registers as V0-VF.

Usage:
    disasm = Chip8Disassembler()
    for instr in disasm.disassemble(rom_bytes, start_address=0x200):
        print(instr)

Words with no defined semantics are listed as DW #XXXX. A program with an
odd length ends with a DB #XX line for the last byte. CHIP-8 programs mix
sprite data with code, so a DW line usually marks data rather than a bad
instruction.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..emulator.decoder import Instruction, Op, decode


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    One disassembled instruction or data item.

    Attributes:
        address: Memory address of the first byte
        opcode: The instruction word (or the byte, for a trailing DB)
        mnemonic: The instruction mnemonic (e.g., "LD", "DRW", "DW")
        operand_str: Formatted operands (may be empty)
        raw_bytes: Bytes covered by this item
    """
    address: int
    opcode: int
    mnemonic: str
    operand_str: str
    raw_bytes: bytes

    @property
    def size(self) -> int:
        return len(self.raw_bytes)

    @property
    def is_data(self) -> bool:
        """True for DW/DB items that are not executable instructions."""
        return self.mnemonic in ("DW", "DB")

    @property
    def text(self) -> str:
        """Mnemonic and operands without address or bytes."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERANDS"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(5)
        return f"${self.address:04X}: {hex_bytes}  {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:04X}" if self.size == 2 else f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
        }


# =============================================================================
# Mnemonic Formatting
# =============================================================================

def format_instruction(ins: Instruction) -> Tuple[str, str]:
    """
    Mnemonic and operand string for a decoded instruction.

    Returns:
        (mnemonic, operands); ("DW", "#XXXX") for unknown words
    """
    vx = f"V{ins.x:X}"
    vy = f"V{ins.y:X}"
    nn = f"#{ins.nn:02X}"
    nnn = f"#{ins.nnn:03X}"

    match ins.op:
        case Op.SYS:
            return "SYS", nnn
        case Op.CLS:
            return "CLS", ""
        case Op.RET:
            return "RET", ""
        case Op.JP:
            return "JP", nnn
        case Op.CALL:
            return "CALL", nnn
        case Op.SE_VX_NN:
            return "SE", f"{vx}, {nn}"
        case Op.SNE_VX_NN:
            return "SNE", f"{vx}, {nn}"
        case Op.SE_VX_VY:
            return "SE", f"{vx}, {vy}"
        case Op.LD_VX_NN:
            return "LD", f"{vx}, {nn}"
        case Op.ADD_VX_NN:
            return "ADD", f"{vx}, {nn}"
        case Op.LD_VX_VY:
            return "LD", f"{vx}, {vy}"
        case Op.OR | Op.AND | Op.XOR | Op.SUB | Op.SHR | Op.SUBN | Op.SHL:
            return ins.op.name, f"{vx}, {vy}"
        case Op.ADD_VX_VY:
            return "ADD", f"{vx}, {vy}"
        case Op.SNE_VX_VY:
            return "SNE", f"{vx}, {vy}"
        case Op.LD_I:
            return "LD", f"I, {nnn}"
        case Op.JP_OFFSET:
            return "JP", f"V0, {nnn}"
        case Op.RND:
            return "RND", f"{vx}, {nn}"
        case Op.DRW:
            return "DRW", f"{vx}, {vy}, {ins.n}"
        case Op.SKP:
            return "SKP", vx
        case Op.SKNP:
            return "SKNP", vx
        case Op.LD_VX_DT:
            return "LD", f"{vx}, DT"
        case Op.LD_VX_K:
            return "LD", f"{vx}, K"
        case Op.LD_DT_VX:
            return "LD", f"DT, {vx}"
        case Op.LD_ST_VX:
            return "LD", f"ST, {vx}"
        case Op.ADD_I_VX:
            return "ADD", f"I, {vx}"
        case Op.LD_F_VX:
            return "LD", f"F, {vx}"
        case Op.LD_B_VX:
            return "LD", f"B, {vx}"
        case Op.LD_MEM_VX:
            return "LD", f"[I], {vx}"
        case Op.LD_VX_MEM:
            return "LD", f"{vx}, [I]"
        case _:
            return "DW", f"#{ins.raw:04X}"


# =============================================================================
# CHIP-8 Disassembler
# =============================================================================

class Chip8Disassembler:
    """
    Disassembler for CHIP-8 programs.

    Instructions are always two bytes and the listing is linear from the
    start of the data; no attempt is made to follow jumps.
    """

    PROGRAM_START = 0x200

    def disassemble_one(self, data: bytes, address: int = PROGRAM_START, offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble the item at data[offset].

        Args:
            data: Program bytes
            address: Memory address of data[offset]
            offset: Position in data

        Raises:
            ValueError: If offset is outside data
        """
        if not 0 <= offset < len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        if offset + 1 == len(data):
            byte = data[offset]
            return DisassembledInstruction(
                address=address,
                opcode=byte,
                mnemonic="DB",
                operand_str=f"#{byte:02X}",
                raw_bytes=bytes([byte]),
            )

        word = (data[offset] << 8) | data[offset + 1]
        mnemonic, operands = format_instruction(decode(word))
        return DisassembledInstruction(
            address=address,
            opcode=word,
            mnemonic=mnemonic,
            operand_str=operands,
            raw_bytes=bytes(data[offset:offset + 2]),
        )

    def disassemble(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble a program.

        Args:
            data: Program bytes
            start_address: Memory address of the first byte (default $200)
            count: Maximum number of items to produce (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, start_address + offset, offset)
            result.append(instr)
            offset += instr.size
        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
    ) -> str:
        """Disassemble and return a multi-line listing."""
        return "\n".join(str(instr) for instr in self.disassemble(data, start_address, count))
