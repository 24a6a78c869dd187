"""
Instruction Decoder Unit Tests
==============================

Tests for decoding 16-bit instruction words into Instructions and
encoding them back.
"""

import pytest
from chip8_sdk.emulator import Op, Instruction, decode, encode
from chip8_sdk.emulator.decoder import OPCODE_TABLE


# =============================================================================
# Totality
# =============================================================================

class TestDecodeTotality:
    """Every word decodes to something."""

    def test_every_word_decodes(self):
        """All 65536 words return an Instruction without raising."""
        for word in range(0x10000):
            ins = decode(word)
            assert isinstance(ins, Instruction)
            assert ins.raw == word

    def test_known_words_reencode(self):
        """Every known word re-encodes to itself."""
        for word in range(0x10000):
            ins = decode(word)
            if ins.is_known:
                assert encode(ins) == word, f"${word:04X} -> {ins.op.name}"

    def test_every_op_has_table_entry(self):
        """Each op except UNKNOWN has a base pattern and layout."""
        for op in Op:
            if op is Op.UNKNOWN:
                assert op not in OPCODE_TABLE
            else:
                assert op in OPCODE_TABLE


# =============================================================================
# Operand Extraction
# =============================================================================

class TestOperandFields:
    """Test field extraction."""

    def test_fields(self):
        """X, Y, N, NN and NNN come from the right nibbles."""
        ins = decode(0xD12F)
        assert ins.op is Op.DRW
        assert ins.family == 0xD
        assert ins.x == 0x1
        assert ins.y == 0x2
        assert ins.n == 0xF
        assert ins.nn == 0x2F
        assert ins.nnn == 0x12F

    def test_word_masked(self):
        """Values above 16 bits are masked."""
        assert decode(0x1_00E0).op is Op.CLS


# =============================================================================
# Family Disambiguation
# =============================================================================

class TestFamilies:
    """Test each family decodes to the right op."""

    @pytest.mark.parametrize("word,op", [
        (0x00E0, Op.CLS),
        (0x00EE, Op.RET),
        (0x0123, Op.SYS),
        (0x1ABC, Op.JP),
        (0x2ABC, Op.CALL),
        (0x3A12, Op.SE_VX_NN),
        (0x4A12, Op.SNE_VX_NN),
        (0x5AB0, Op.SE_VX_VY),
        (0x6A12, Op.LD_VX_NN),
        (0x7A12, Op.ADD_VX_NN),
        (0x8AB0, Op.LD_VX_VY),
        (0x8AB1, Op.OR),
        (0x8AB2, Op.AND),
        (0x8AB3, Op.XOR),
        (0x8AB4, Op.ADD_VX_VY),
        (0x8AB5, Op.SUB),
        (0x8AB6, Op.SHR),
        (0x8AB7, Op.SUBN),
        (0x8ABE, Op.SHL),
        (0x9AB0, Op.SNE_VX_VY),
        (0xA123, Op.LD_I),
        (0xB123, Op.JP_OFFSET),
        (0xCA12, Op.RND),
        (0xDAB5, Op.DRW),
        (0xEA9E, Op.SKP),
        (0xEAA1, Op.SKNP),
        (0xFA07, Op.LD_VX_DT),
        (0xFA0A, Op.LD_VX_K),
        (0xFA15, Op.LD_DT_VX),
        (0xFA18, Op.LD_ST_VX),
        (0xFA1E, Op.ADD_I_VX),
        (0xFA29, Op.LD_F_VX),
        (0xFA33, Op.LD_B_VX),
        (0xFA55, Op.LD_MEM_VX),
        (0xFA65, Op.LD_VX_MEM),
    ])
    def test_decode(self, word, op):
        """Canonical word decodes to its op."""
        assert decode(word).op is op

    @pytest.mark.parametrize("word", [
        0x5AB1, 0x8AB8, 0x8ABF, 0x9AB1, 0xEA00, 0xEA9F, 0xFA00, 0xFAFF,
    ])
    def test_unknown(self, word):
        """Undefined sub-patterns decode to UNKNOWN."""
        ins = decode(word)
        assert ins.op is Op.UNKNOWN
        assert not ins.is_known


# =============================================================================
# Encoding
# =============================================================================

class TestEncode:
    """Test encode()."""

    def test_encode_from_fields(self):
        """Instructions built by hand encode correctly."""
        ins = Instruction(op=Op.LD_VX_NN, raw=0, x=0xA, y=0, n=0, nn=0x42, nnn=0)
        assert encode(ins) == 0x6A42

    def test_encode_ignores_unused_fields(self):
        """Fields outside the layout are ignored."""
        ins = Instruction(op=Op.SKP, raw=0, x=0x3, y=0xF, n=0xF, nn=0xFF, nnn=0xFFF)
        assert encode(ins) == 0xE39E

    def test_encode_unknown_raises(self):
        """UNKNOWN has no canonical encoding."""
        with pytest.raises(ValueError):
            encode(decode(0xFFFF))
