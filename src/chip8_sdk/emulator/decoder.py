"""
CHIP-8 Instruction Decoder
==========================

Turns a raw 16-bit instruction word into a structured Instruction.

Every instruction is two bytes, big-endian. The top nibble selects the
family; families 0x0, 0x8, 0xE and 0xF are further disambiguated by the
low nibble or low byte. Operand fields use the conventional names:

    X    second nibble  (register index)
    Y    third nibble   (register index)
    N    fourth nibble  (4-bit constant)
    NN   low byte       (8-bit immediate)
    NNN  low 12 bits    (address)

decode() is total: every value in 0x0000-0xFFFF yields an Instruction,
with Op.UNKNOWN for words that have no defined semantics.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final


class Op(Enum):
    """Operation identifiers, one per CHIP-8 instruction."""
    SYS = auto()          # 0NNN  call machine code routine
    CLS = auto()          # 00E0  clear screen
    RET = auto()          # 00EE  return from subroutine
    JP = auto()           # 1NNN  jump
    CALL = auto()         # 2NNN  call subroutine
    SE_VX_NN = auto()     # 3XNN  skip if VX == NN
    SNE_VX_NN = auto()    # 4XNN  skip if VX != NN
    SE_VX_VY = auto()     # 5XY0  skip if VX == VY
    LD_VX_NN = auto()     # 6XNN  VX = NN
    ADD_VX_NN = auto()    # 7XNN  VX += NN (no carry flag)
    LD_VX_VY = auto()     # 8XY0  VX = VY
    OR = auto()           # 8XY1  VX |= VY
    AND = auto()          # 8XY2  VX &= VY
    XOR = auto()          # 8XY3  VX ^= VY
    ADD_VX_VY = auto()    # 8XY4  VX += VY, VF = carry
    SUB = auto()          # 8XY5  VX -= VY, VF = not borrow
    SHR = auto()          # 8XY6  shift right, VF = bit out
    SUBN = auto()         # 8XY7  VX = VY - VX, VF = not borrow
    SHL = auto()          # 8XYE  shift left, VF = bit out
    SNE_VX_VY = auto()    # 9XY0  skip if VX != VY
    LD_I = auto()         # ANNN  I = NNN
    JP_OFFSET = auto()    # BNNN  jump to NNN + V0 (BXNN: XNN + VX)
    RND = auto()          # CXNN  VX = random & NN
    DRW = auto()          # DXYN  draw sprite
    SKP = auto()          # EX9E  skip if key VX pressed
    SKNP = auto()         # EXA1  skip if key VX not pressed
    LD_VX_DT = auto()     # FX07  VX = delay timer
    LD_VX_K = auto()      # FX0A  wait for key
    LD_DT_VX = auto()     # FX15  delay timer = VX
    LD_ST_VX = auto()     # FX18  sound timer = VX
    ADD_I_VX = auto()     # FX1E  I += VX
    LD_F_VX = auto()      # FX29  I = font glyph for VX
    LD_B_VX = auto()      # FX33  BCD of VX at I..I+2
    LD_MEM_VX = auto()    # FX55  store V0..VX at I
    LD_VX_MEM = auto()    # FX65  load V0..VX from I
    UNKNOWN = auto()


# Operand layouts: which fields an instruction carries in its low 12 bits
LAYOUT_NONE: Final = ""
LAYOUT_NNN: Final = "nnn"
LAYOUT_XNN: Final = "xnn"
LAYOUT_XY: Final = "xy"
LAYOUT_XYN: Final = "xyn"
LAYOUT_X: Final = "x"

# Op -> (fixed bits, operand layout)
OPCODE_TABLE: Final[dict[Op, tuple[int, str]]] = {
    Op.SYS: (0x0000, LAYOUT_NNN),
    Op.CLS: (0x00E0, LAYOUT_NONE),
    Op.RET: (0x00EE, LAYOUT_NONE),
    Op.JP: (0x1000, LAYOUT_NNN),
    Op.CALL: (0x2000, LAYOUT_NNN),
    Op.SE_VX_NN: (0x3000, LAYOUT_XNN),
    Op.SNE_VX_NN: (0x4000, LAYOUT_XNN),
    Op.SE_VX_VY: (0x5000, LAYOUT_XY),
    Op.LD_VX_NN: (0x6000, LAYOUT_XNN),
    Op.ADD_VX_NN: (0x7000, LAYOUT_XNN),
    Op.LD_VX_VY: (0x8000, LAYOUT_XY),
    Op.OR: (0x8001, LAYOUT_XY),
    Op.AND: (0x8002, LAYOUT_XY),
    Op.XOR: (0x8003, LAYOUT_XY),
    Op.ADD_VX_VY: (0x8004, LAYOUT_XY),
    Op.SUB: (0x8005, LAYOUT_XY),
    Op.SHR: (0x8006, LAYOUT_XY),
    Op.SUBN: (0x8007, LAYOUT_XY),
    Op.SHL: (0x800E, LAYOUT_XY),
    Op.SNE_VX_VY: (0x9000, LAYOUT_XY),
    Op.LD_I: (0xA000, LAYOUT_NNN),
    Op.JP_OFFSET: (0xB000, LAYOUT_NNN),
    Op.RND: (0xC000, LAYOUT_XNN),
    Op.DRW: (0xD000, LAYOUT_XYN),
    Op.SKP: (0xE09E, LAYOUT_X),
    Op.SKNP: (0xE0A1, LAYOUT_X),
    Op.LD_VX_DT: (0xF007, LAYOUT_X),
    Op.LD_VX_K: (0xF00A, LAYOUT_X),
    Op.LD_DT_VX: (0xF015, LAYOUT_X),
    Op.LD_ST_VX: (0xF018, LAYOUT_X),
    Op.ADD_I_VX: (0xF01E, LAYOUT_X),
    Op.LD_F_VX: (0xF029, LAYOUT_X),
    Op.LD_B_VX: (0xF033, LAYOUT_X),
    Op.LD_MEM_VX: (0xF055, LAYOUT_X),
    Op.LD_VX_MEM: (0xF065, LAYOUT_X),
}

_ALU_OPS: Final = {
    0x0: Op.LD_VX_VY, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR,
    0x4: Op.ADD_VX_VY, 0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEY_OPS: Final = {0x9E: Op.SKP, 0xA1: Op.SKNP}

_MISC_OPS: Final = {
    0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX, 0x1E: Op.ADD_I_VX, 0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX, 0x55: Op.LD_MEM_VX, 0x65: Op.LD_VX_MEM,
}

# Families whose low 12 bits are all operands
_SIMPLE_OPS: Final = {
    0x1: Op.JP, 0x2: Op.CALL, 0x3: Op.SE_VX_NN, 0x4: Op.SNE_VX_NN,
    0x6: Op.LD_VX_NN, 0x7: Op.ADD_VX_NN, 0xA: Op.LD_I,
    0xB: Op.JP_OFFSET, 0xC: Op.RND, 0xD: Op.DRW,
}


@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction word.

    All operand fields are always extracted; which of them are meaningful
    depends on the op (see OPCODE_TABLE).

    Attributes:
        op: Operation identifier
        raw: The original 16-bit word
        x: Second nibble
        y: Third nibble
        n: Fourth nibble
        nn: Low byte
        nnn: Low 12 bits
    """
    op: Op
    raw: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @property
    def family(self) -> int:
        """Top nibble of the instruction word."""
        return self.raw >> 12

    @property
    def is_known(self) -> bool:
        return self.op is not Op.UNKNOWN

    def __str__(self) -> str:
        return f"{self.op.name} ${self.raw:04X}"


def decode(word: int) -> Instruction:
    """
    Decode a 16-bit instruction word.

    Args:
        word: Instruction word (masked to 16 bits)

    Returns:
        Instruction; op is Op.UNKNOWN for undefined bit patterns
    """
    word &= 0xFFFF
    family = word >> 12
    x = (word >> 8) & 0x0F
    y = (word >> 4) & 0x0F
    n = word & 0x000F
    nn = word & 0x00FF
    nnn = word & 0x0FFF

    match family:
        case 0x0:
            if word == 0x00E0:
                op = Op.CLS
            elif word == 0x00EE:
                op = Op.RET
            else:
                op = Op.SYS
        case 0x5:
            op = Op.SE_VX_VY if n == 0 else Op.UNKNOWN
        case 0x8:
            op = _ALU_OPS.get(n, Op.UNKNOWN)
        case 0x9:
            op = Op.SNE_VX_VY if n == 0 else Op.UNKNOWN
        case 0xE:
            op = _KEY_OPS.get(nn, Op.UNKNOWN)
        case 0xF:
            op = _MISC_OPS.get(nn, Op.UNKNOWN)
        case _:
            op = _SIMPLE_OPS[family]

    return Instruction(op=op, raw=word, x=x, y=y, n=n, nn=nn, nnn=nnn)


def encode(instruction: Instruction) -> int:
    """
    Rebuild the instruction word from the op and its operand fields.

    Inverse of decode() for every known op. Fields that the op's layout
    does not use are ignored.

    Raises:
        ValueError: For Op.UNKNOWN, which has no canonical encoding
    """
    if instruction.op is Op.UNKNOWN:
        raise ValueError(f"cannot encode unknown instruction ${instruction.raw:04X}")

    base, layout = OPCODE_TABLE[instruction.op]
    match layout:
        case "nnn":
            return base | (instruction.nnn & 0x0FFF)
        case "xnn":
            return base | ((instruction.x & 0xF) << 8) | (instruction.nn & 0xFF)
        case "xy":
            return base | ((instruction.x & 0xF) << 8) | ((instruction.y & 0xF) << 4)
        case "xyn":
            return (base | ((instruction.x & 0xF) << 8)
                    | ((instruction.y & 0xF) << 4) | (instruction.n & 0xF))
        case "x":
            return base | ((instruction.x & 0xF) << 8)
        case _:
            return base
