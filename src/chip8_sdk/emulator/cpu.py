"""
CHIP-8 CPU Interpreter
======================

Register file, return stack and instruction executor of the CHIP-8
virtual machine.

Registers:
- V0-VF: 16 general 8-bit registers. VF doubles as the carry, borrow,
  shift-out and sprite-collision flag, and flag results are written to it
  after the arithmetic result, so an instruction targeting VF ends with VF
  holding the flag.
- I: 16-bit index register
- PC: 16-bit program counter, advanced by 2 per instruction
- Stack: up to 16 return addresses (SP is the current depth)

Each step fetches one big-endian word at PC, decodes it and executes it.
Instructions are atomic: when execution fails the program counter is put
back on the faulting instruction and nothing else has been modified, so the
host can stop, skip or retry cleanly.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..errors import (
    ExecutionError,
    StackOverflowError,
    StackUnderflowError,
    UnknownOpcodeError,
)
from .decoder import Instruction, Op, decode
from .display import Display
from .keyboard import Keypad
from .memory import Memory
from .models import QUIRKS_DEFAULT, Quirks
from .rng import DefaultRandomSource, RandomSource
from .timers import Timers


@dataclass
class CPUState:
    """
    Complete CPU state for snapshotting.

    - v: 16 registers, each 8-bit unsigned
    - i, pc: 16-bit unsigned
    - stack: return addresses, oldest first
    """
    v: bytearray = field(default_factory=lambda: bytearray(16))
    i: int = 0
    pc: int = Memory.PROGRAM_START
    stack: List[int] = field(default_factory=list)


class Chip8CPU:
    """
    CHIP-8 interpreter core.

    The quirk set is fixed at construction and parameterizes the few
    instructions whose semantics differ between interpreters.

    Example:
        >>> cpu = Chip8CPU(Memory(), Display(), Keypad(), Timers())
        >>> cpu.memory.load_program(bytes([0x60, 0x2A]))  # V0 = 0x2A
        >>> cpu.step()
        1
        >>> hex(cpu.v[0])
        '0x2a'
    """

    STACK_DEPTH = 16
    FLAG = 0xF

    def __init__(
        self,
        memory: Memory,
        display: Display,
        keypad: Keypad,
        timers: Timers,
        quirks: Quirks = QUIRKS_DEFAULT,
        rng: Optional[RandomSource] = None,
    ):
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.timers = timers
        self.quirks = quirks
        self.rng: RandomSource = rng or DefaultRandomSource()
        self.state = CPUState()

        # Set when FX0A found no key down and will be re-executed
        self.waiting_for_key: bool = False
        self.last_instruction: Optional[Instruction] = None

        # on_instruction(pc, opcode): called after fetch, before execute
        self.on_instruction: Optional[Callable[[int, int], None]] = None

    # ========================================
    # Register Properties
    # ========================================

    @property
    def v(self) -> bytearray:
        """General registers V0-VF."""
        return self.state.v

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def sp(self) -> int:
        """Stack pointer: number of return addresses on the stack."""
        return len(self.state.stack)

    @property
    def stack(self) -> List[int]:
        """Copy of the return stack, oldest first."""
        return list(self.state.stack)

    def reset(self) -> None:
        """Clear registers and stack; PC back to the program start."""
        self.state = CPUState()
        self.waiting_for_key = False
        self.last_instruction = None

    # ========================================
    # Execution
    # ========================================

    def fetch(self) -> int:
        """Read the instruction word at PC without advancing."""
        return self.memory.read_word(self.pc)

    def step(self) -> int:
        """
        Execute exactly one instruction.

        Returns:
            Logical clock ticks consumed (always 1)

        Raises:
            ExecutionError: On unknown opcode, stack fault or (with the
                FAULT memory policy) an out-of-range access. PC is left on
                the faulting instruction.
        """
        pc = self.pc
        word = None
        try:
            word = self.fetch()
            instruction = decode(word)
            if self.on_instruction:
                self.on_instruction(pc, word)
            self.pc = pc + 2
            self.execute(instruction)
        except ExecutionError as exc:
            self.pc = pc
            raise exc.attach(pc, word)

        self.last_instruction = instruction
        return 1

    def execute(self, ins: Instruction) -> None:
        """
        Apply one decoded instruction to the machine state.

        PC has already been advanced past the instruction; jumps, calls
        and returns overwrite it, skips add another 2, and a key wait with
        no key down moves it back so the same instruction runs again.

        Args:
            ins: Decoded instruction
        """
        v = self.state.v
        x = ins.x
        y = ins.y
        self.waiting_for_key = False

        match ins.op:
            # ============================================
            # Flow control
            # ============================================
            case Op.CLS:
                self.display.clear()
            case Op.RET:
                if not self.state.stack:
                    raise StackUnderflowError()
                self.pc = self.state.stack.pop()
            case Op.JP:
                self.pc = ins.nnn
            case Op.CALL:
                if len(self.state.stack) >= self.STACK_DEPTH:
                    raise StackOverflowError(len(self.state.stack))
                self.state.stack.append(self.pc)
                self.pc = ins.nnn
            case Op.JP_OFFSET:
                if self.quirks.jump_uses_vx:
                    self.pc = ins.nnn + v[x]
                else:
                    self.pc = ins.nnn + v[0]

            # ============================================
            # Conditional skips
            # ============================================
            case Op.SE_VX_NN:
                if v[x] == ins.nn:
                    self.pc += 2
            case Op.SNE_VX_NN:
                if v[x] != ins.nn:
                    self.pc += 2
            case Op.SE_VX_VY:
                if v[x] == v[y]:
                    self.pc += 2
            case Op.SNE_VX_VY:
                if v[x] != v[y]:
                    self.pc += 2
            case Op.SKP:
                if self.keypad.is_pressed(v[x]):
                    self.pc += 2
            case Op.SKNP:
                if not self.keypad.is_pressed(v[x]):
                    self.pc += 2

            # ============================================
            # Register loads and arithmetic
            # ============================================
            case Op.LD_VX_NN:
                v[x] = ins.nn
            case Op.ADD_VX_NN:
                v[x] = (v[x] + ins.nn) & 0xFF
            case Op.LD_VX_VY:
                v[x] = v[y]
            case Op.OR:
                v[x] = v[x] | v[y]
            case Op.AND:
                v[x] = v[x] & v[y]
            case Op.XOR:
                v[x] = v[x] ^ v[y]
            case Op.ADD_VX_VY:
                total = v[x] + v[y]
                v[x] = total & 0xFF
                v[self.FLAG] = 1 if total > 0xFF else 0
            case Op.SUB:
                vx, vy = v[x], v[y]
                v[x] = (vx - vy) & 0xFF
                v[self.FLAG] = 1 if vx >= vy else 0
            case Op.SUBN:
                vx, vy = v[x], v[y]
                v[x] = (vy - vx) & 0xFF
                v[self.FLAG] = 1 if vy >= vx else 0
            case Op.SHR:
                src = v[y] if self.quirks.shift_uses_vy else v[x]
                v[x] = src >> 1
                v[self.FLAG] = src & 0x01
            case Op.SHL:
                src = v[y] if self.quirks.shift_uses_vy else v[x]
                v[x] = (src << 1) & 0xFF
                v[self.FLAG] = (src >> 7) & 0x01
            case Op.RND:
                v[x] = self.rng.next_byte() & ins.nn

            # ============================================
            # Index register and memory
            # ============================================
            case Op.LD_I:
                self.i = ins.nnn
            case Op.ADD_I_VX:
                total = self.i + v[x]
                if self.quirks.index_overflow_sets_vf and total > 0x0FFF:
                    v[self.FLAG] = 1
                self.i = total
            case Op.LD_F_VX:
                self.i = Memory.font_address(v[x])
            case Op.LD_B_VX:
                self.memory.check_range(self.i, 3)
                value = v[x]
                self.memory.write_bytes(self.i, (value // 100, (value // 10) % 10, value % 10))
            case Op.LD_MEM_VX:
                self.memory.check_range(self.i, x + 1)
                self.memory.write_bytes(self.i, v[:x + 1])
                if self.quirks.load_store_increments_i:
                    self.i = self.i + x + 1
            case Op.LD_VX_MEM:
                self.memory.check_range(self.i, x + 1)
                v[:x + 1] = self.memory.read_bytes(self.i, x + 1)
                if self.quirks.load_store_increments_i:
                    self.i = self.i + x + 1

            # ============================================
            # Display
            # ============================================
            case Op.DRW:
                self.memory.check_range(self.i, ins.n)
                sprite = self.memory.read_bytes(self.i, ins.n)
                collision = self.display.draw_sprite(
                    v[x], v[y], sprite, clip=self.quirks.clip_sprites
                )
                v[self.FLAG] = 1 if collision else 0

            # ============================================
            # Timers and keypad
            # ============================================
            case Op.LD_VX_DT:
                v[x] = self.timers.delay
            case Op.LD_DT_VX:
                self.timers.delay = v[x]
            case Op.LD_ST_VX:
                self.timers.sound = v[x]
            case Op.LD_VX_K:
                key = self.keypad.first_pressed()
                if key is None:
                    self.pc -= 2
                    self.waiting_for_key = True
                else:
                    v[x] = key

            # ============================================
            # Undefined
            # ============================================
            case Op.SYS | Op.UNKNOWN:
                # 0NNN would call native COSMAC code, which has no meaning here
                raise UnknownOpcodeError(ins.raw)

    # ========================================
    # Snapshot Support
    # ========================================

    def get_snapshot_data(self) -> list[int]:
        """
        Get CPU state as byte list for snapshot.

        Format: [V0..VF, Ihi, Ilo, PChi, PClo, depth, (hi, lo) per entry]
        """
        result = list(self.state.v)
        result.extend([
            (self.i >> 8) & 0xFF, self.i & 0xFF,
            (self.pc >> 8) & 0xFF, self.pc & 0xFF,
            len(self.state.stack),
        ])
        for address in self.state.stack:
            result.extend([(address >> 8) & 0xFF, address & 0xFF])
        return result

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """
        Restore CPU state from snapshot data.

        Returns:
            Number of bytes consumed from data
        """
        pos = offset
        registers = data[pos:pos + 16]
        if len(registers) != 16:
            raise ValueError("truncated register file")
        self.state.v[:] = bytes(registers)
        pos += 16
        self.i = (data[pos] << 8) | data[pos + 1]
        self.pc = (data[pos + 2] << 8) | data[pos + 3]
        depth = data[pos + 4]
        pos += 5
        if depth > self.STACK_DEPTH:
            raise ValueError(f"stack depth {depth} exceeds {self.STACK_DEPTH}")
        self.state.stack = [
            (data[pos + 2 * k] << 8) | data[pos + 2 * k + 1] for k in range(depth)
        ]
        pos += 2 * depth
        self.waiting_for_key = False
        return pos - offset
