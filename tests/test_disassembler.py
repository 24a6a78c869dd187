"""
Unit Tests for the Disassembler Module
======================================

Tests for the CHIP-8 disassembler.

Test coverage includes:
- Mnemonics and operand formatting for every instruction family
- Unknown words listed as DW
- Odd-length programs ending in DB
- Address tracking, count limits and listing text
"""

import pytest
from chip8_sdk.disassembler import (
    Chip8Disassembler,
    DisassembledInstruction,
    format_instruction,
)
from chip8_sdk.emulator import decode


class TestChip8Disassembler:
    """Tests for the CHIP-8 disassembler."""

    def setup_method(self):
        """Create disassembler instance for each test."""
        self.disasm = Chip8Disassembler()

    # -------------------------------------------------------------------------
    # Mnemonic Tests
    # -------------------------------------------------------------------------

    @pytest.mark.parametrize("word,text", [
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x0123, "SYS #123"),
        (0x1ABC, "JP #ABC"),
        (0x2ABC, "CALL #ABC"),
        (0x3A12, "SE VA, #12"),
        (0x4A12, "SNE VA, #12"),
        (0x5AB0, "SE VA, VB"),
        (0x6A12, "LD VA, #12"),
        (0x7A12, "ADD VA, #12"),
        (0x8AB0, "LD VA, VB"),
        (0x8AB1, "OR VA, VB"),
        (0x8AB2, "AND VA, VB"),
        (0x8AB3, "XOR VA, VB"),
        (0x8AB4, "ADD VA, VB"),
        (0x8AB5, "SUB VA, VB"),
        (0x8AB6, "SHR VA, VB"),
        (0x8AB7, "SUBN VA, VB"),
        (0x8ABE, "SHL VA, VB"),
        (0x9AB0, "SNE VA, VB"),
        (0xA123, "LD I, #123"),
        (0xB123, "JP V0, #123"),
        (0xCA0F, "RND VA, #0F"),
        (0xDAB5, "DRW VA, VB, 5"),
        (0xEA9E, "SKP VA"),
        (0xEAA1, "SKNP VA"),
        (0xFA07, "LD VA, DT"),
        (0xFA0A, "LD VA, K"),
        (0xFA15, "LD DT, VA"),
        (0xFA18, "LD ST, VA"),
        (0xFA1E, "ADD I, VA"),
        (0xFA29, "LD F, VA"),
        (0xFA33, "LD B, VA"),
        (0xFA55, "LD [I], VA"),
        (0xFA65, "LD VA, [I]"),
    ])
    def test_mnemonic(self, word, text):
        """Each instruction family has its own listing text."""
        instr = self.disasm.disassemble_one(bytes([word >> 8, word & 0xFF]))
        assert instr.text == text
        assert instr.size == 2
        assert not instr.is_data

    def test_unknown_is_dw(self):
        """Words with no semantics become DW data."""
        instr = self.disasm.disassemble_one(bytes([0xFF, 0xFF]))
        assert instr.mnemonic == "DW"
        assert instr.operand_str == "#FFFF"
        assert instr.is_data

    def test_format_instruction(self):
        """format_instruction() works on decoded instructions."""
        assert format_instruction(decode(0xD125)) == ("DRW", "V1, V2, 5")

    # -------------------------------------------------------------------------
    # Program Tests
    # -------------------------------------------------------------------------

    def test_addresses(self):
        """Addresses advance by two from the start address."""
        result = self.disasm.disassemble(bytes([0x00, 0xE0, 0x12, 0x00]))
        assert [i.address for i in result] == [0x200, 0x202]
        assert result[1].text == "JP #200"

    def test_start_address(self):
        """A custom start address is honored."""
        result = self.disasm.disassemble(bytes([0x00, 0xE0]), start_address=0x300)
        assert result[0].address == 0x300

    def test_odd_length(self):
        """A trailing odd byte becomes DB."""
        result = self.disasm.disassemble(bytes([0x00, 0xE0, 0xAB]))
        assert len(result) == 2
        assert result[1].mnemonic == "DB"
        assert result[1].operand_str == "#AB"
        assert result[1].size == 1

    def test_count(self):
        """count limits the number of items."""
        data = bytes([0x00, 0xE0] * 10)
        assert len(self.disasm.disassemble(data, count=3)) == 3

    def test_empty(self):
        """Empty data gives an empty listing."""
        assert self.disasm.disassemble(b"") == []

    def test_offset_out_of_range(self):
        """disassemble_one() rejects offsets past the data."""
        with pytest.raises(ValueError):
            self.disasm.disassemble_one(bytes([0x00, 0xE0]), offset=2)

    # -------------------------------------------------------------------------
    # Output Formatting Tests
    # -------------------------------------------------------------------------

    def test_str(self):
        """Listing lines carry address, bytes and text."""
        instr = self.disasm.disassemble_one(bytes([0x6A, 0x12]))
        assert str(instr) == "$0200: 6A 12  LD VA, #12"

    def test_str_db(self):
        """DB lines pad the byte column."""
        instr = self.disasm.disassemble_one(bytes([0xAB]))
        assert str(instr) == "$0200: AB     DB #AB"

    def test_to_text(self):
        """disassemble_to_text() joins listing lines."""
        text = self.disasm.disassemble_to_text(bytes([0x00, 0xE0, 0x00, 0xEE]))
        assert text.splitlines() == ["$0200: 00 E0  CLS", "$0202: 00 EE  RET"]

    def test_to_dict(self):
        """to_dict() gives JSON-friendly values."""
        instr = self.disasm.disassemble_one(bytes([0xA1, 0x23]))
        d = instr.to_dict()
        assert d["address"] == "$0200"
        assert d["address_int"] == 0x200
        assert d["opcode"] == "$A123"
        assert d["mnemonic"] == "LD"
        assert d["operand"] == "I, #123"
        assert d["bytes"] == ["$A1", "$23"]

    def test_dataclass(self):
        """DisassembledInstruction can be built directly."""
        instr = DisassembledInstruction(0x200, 0x00E0, "CLS", "", bytes([0x00, 0xE0]))
        assert instr.text == "CLS"
