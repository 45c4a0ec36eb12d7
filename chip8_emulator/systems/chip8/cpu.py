"""
CHIP-8 CPU emulation.

Each step fetches one big-endian instruction word at PC, decodes it into an
Instruction descriptor and dispatches it to a handler. Handlers return the
address of the next instruction when they transfer control (jumps, calls,
returns, skips, and FX0A while it waits for a key), or None to fall through
to the default PC + 2. Jump targets are therefore used exactly as encoded.
"""

from ...common.interfaces import CPU, Memory
from ...common.exceptions import UnknownInstruction
from ...constants import INSTRUCTION_SIZE
from .decoder import Op, Instruction, decode, disassemble
from .registers import RegisterFile
import random
import logging
import typing as t

logger = logging.getLogger("Chip8Emulator.CPU")

class StepResult(t.NamedTuple):
    """Outcome of a single CPU step."""
    address: int
    instruction: Instruction
    next_pc: int
    waiting: bool = False
    error: t.Optional[UnknownInstruction] = None

    @property
    def advanced(self) -> bool:
        return self.next_pc != self.address

class Chip8CPU(CPU):
    """
    Emulates the CHIP-8 interpreter's instruction engine.

    The CPU owns the register file. Memory, display, timers and keypad are
    connected by the owning system before the first step.
    """

    def __init__(self, registers: t.Optional[RegisterFile] = None,
                 rng: t.Optional[random.Random] = None):
        self.registers = registers or RegisterFile()
        self.rng = rng or random.Random()

        # Connected components
        self.memory = None
        self.display = None
        self.timers = None
        self.keypad = None

        # Called with each non-fatal UnknownInstruction
        self.on_unknown_instruction: t.Optional[t.Callable[[UnknownInstruction], None]] = None

        # Cycle counting
        self.cycles = 0
        self.unknown_count = 0

        # Address of the instruction being executed
        self._pc = self.registers.PC

        self._build_instruction_table()

        logger.info("CHIP-8 CPU initialized")

    def _build_instruction_table(self):
        """Build the dispatch table from decoded operation to handler."""
        self.instructions = {
            Op.CLS: self._cls,
            Op.RET: self._ret,
            Op.JP: self._jp,
            Op.CALL: self._call,
            Op.SE_BYTE: self._se_byte,
            Op.SNE_BYTE: self._sne_byte,
            Op.SE_REG: self._se_reg,
            Op.LD_BYTE: self._ld_byte,
            Op.ADD_BYTE: self._add_byte,
            Op.LD_REG: self._ld_reg,
            Op.OR: self._or,
            Op.AND: self._and,
            Op.XOR: self._xor,
            Op.ADD_REG: self._add_reg,
            Op.SUB: self._sub,
            Op.SHR: self._shr,
            Op.SUBN: self._subn,
            Op.SHL: self._shl,
            Op.SNE_REG: self._sne_reg,
            Op.LD_I: self._ld_i,
            Op.JP_V0: self._jp_v0,
            Op.RND: self._rnd,
            Op.DRW: self._drw,
            Op.SKP: self._skp,
            Op.SKNP: self._sknp,
            Op.LD_VX_DT: self._ld_vx_dt,
            Op.LD_VX_K: self._ld_vx_k,
            Op.LD_DT_VX: self._ld_dt_vx,
            Op.LD_ST_VX: self._ld_st_vx,
            Op.ADD_I: self._add_i,
            Op.LD_F: self._ld_f,
            Op.LD_B: self._ld_b,
            Op.STORE: self._store,
            Op.LOAD: self._load,
        }

    def set_memory(self, memory: Memory) -> None:
        """
        Connect the CPU to a memory system.

        Args:
            memory: Memory implementation
        """
        self.memory = memory

    def connect_display(self, display) -> None:
        self.display = display

    def connect_timers(self, timers) -> None:
        self.timers = timers

    def connect_keypad(self, keypad) -> None:
        self.keypad = keypad

    def reset(self) -> None:
        """Reset the CPU to its initial state."""
        self.registers.reset()
        self.cycles = 0
        self.unknown_count = 0
        self._pc = self.registers.PC

        logger.info(f"CPU reset. PC set to 0x{self.registers.PC:03X}")

    def fetch(self) -> int:
        """Read the instruction word at PC."""
        return self.memory.read_word(self.registers.PC)

    def step(self) -> StepResult:
        """
        Fetch, decode and execute one instruction.

        Returns:
            StepResult describing the executed instruction

        Raises:
            AddressOutOfRange, StackOverflow, StackUnderflow: fatal errors;
                PC is left pointing at the failing instruction
        """
        if not self.memory:
            raise RuntimeError("CPU has no memory attached")

        address = self.registers.PC
        instruction = decode(self.fetch())
        return self.execute(instruction, address)

    def execute(self, instruction: Instruction, address: t.Optional[int] = None) -> StepResult:
        """
        Execute an already decoded instruction as if it were fetched at address.

        Args:
            instruction: Decoded instruction
            address: Address of the instruction (defaults to the current PC)

        Returns:
            StepResult describing the executed instruction
        """
        if address is None:
            address = self.registers.PC
        self._pc = address

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"0x{address:03X}: {instruction.opcode:04X}  {disassemble(instruction)}")

        error = None
        handler = self.instructions.get(instruction.op)
        if handler is None:
            error = self._unknown(instruction)
            next_pc = None
        else:
            next_pc = handler(instruction)

        if next_pc is None:
            next_pc = address + INSTRUCTION_SIZE

        self.registers.PC = next_pc & 0xFFFF
        self.cycles += 1

        waiting = instruction.op is Op.LD_VX_K and next_pc == address
        return StepResult(address, instruction, self.registers.PC, waiting, error)

    def get_state(self) -> dict:
        """
        Get the current CPU state.

        Returns:
            Dictionary with CPU state
        """
        state = self.registers.get_state()
        state.update({
            "cycles": self.cycles,
            "stack": list(self.registers.stack),
            "unknown_instructions": self.unknown_count,
        })
        return state

    def _unknown(self, instruction: Instruction) -> UnknownInstruction:
        """Report an unrecognized opcode; execution continues."""
        error = UnknownInstruction(instruction.opcode, self._pc)
        self.unknown_count += 1
        if self.on_unknown_instruction:
            self.on_unknown_instruction(error)
        else:
            logger.warning(str(error))
        return error

    def _skip_if(self, condition: bool) -> t.Optional[int]:
        if condition:
            return self._pc + 2 * INSTRUCTION_SIZE
        return None

    # Instruction implementations

    def _cls(self, ins: Instruction) -> None:
        """00E0 - Clear the display."""
        self.display.clear()

    def _ret(self, ins: Instruction) -> int:
        """00EE - Return from a subroutine."""
        return self.registers.pop()

    def _jp(self, ins: Instruction) -> int:
        """1NNN - Jump to NNN."""
        return ins.nnn

    def _call(self, ins: Instruction) -> int:
        """2NNN - Call subroutine at NNN."""
        self.registers.push(self._pc + INSTRUCTION_SIZE)
        return ins.nnn

    def _se_byte(self, ins: Instruction) -> t.Optional[int]:
        return self._skip_if(self.registers.V[ins.x] == ins.nn)

    def _sne_byte(self, ins: Instruction) -> t.Optional[int]:
        return self._skip_if(self.registers.V[ins.x] != ins.nn)

    def _se_reg(self, ins: Instruction) -> t.Optional[int]:
        V = self.registers.V
        return self._skip_if(V[ins.x] == V[ins.y])

    def _sne_reg(self, ins: Instruction) -> t.Optional[int]:
        V = self.registers.V
        return self._skip_if(V[ins.x] != V[ins.y])

    def _ld_byte(self, ins: Instruction) -> None:
        self.registers.V[ins.x] = ins.nn

    def _add_byte(self, ins: Instruction) -> None:
        """7XNN - Add without touching VF."""
        V = self.registers.V
        V[ins.x] = (V[ins.x] + ins.nn) & 0xFF

    def _ld_reg(self, ins: Instruction) -> None:
        V = self.registers.V
        V[ins.x] = V[ins.y]

    def _or(self, ins: Instruction) -> None:
        V = self.registers.V
        V[ins.x] |= V[ins.y]

    def _and(self, ins: Instruction) -> None:
        V = self.registers.V
        V[ins.x] &= V[ins.y]

    def _xor(self, ins: Instruction) -> None:
        V = self.registers.V
        V[ins.x] ^= V[ins.y]

    # In the flag-setting ALU operations VF is written last, so that with
    # X == F the flag overrides the arithmetic result.

    def _add_reg(self, ins: Instruction) -> None:
        """8XY4 - VF = carry."""
        V = self.registers.V
        total = V[ins.x] + V[ins.y]
        V[ins.x] = total & 0xFF
        self.registers.VF = 1 if total > 0xFF else 0

    def _sub(self, ins: Instruction) -> None:
        """8XY5 - VF = NOT borrow."""
        V = self.registers.V
        flag = 1 if V[ins.x] > V[ins.y] else 0
        V[ins.x] = (V[ins.x] - V[ins.y]) & 0xFF
        self.registers.VF = flag

    def _shr(self, ins: Instruction) -> None:
        """8XY6 - VF = bit shifted out."""
        V = self.registers.V
        flag = V[ins.x] & 0x01
        V[ins.x] = V[ins.x] >> 1
        self.registers.VF = flag

    def _subn(self, ins: Instruction) -> None:
        """8XY7 - VX = VY - VX, VF = NOT borrow."""
        V = self.registers.V
        flag = 1 if V[ins.y] > V[ins.x] else 0
        V[ins.x] = (V[ins.y] - V[ins.x]) & 0xFF
        self.registers.VF = flag

    def _shl(self, ins: Instruction) -> None:
        """8XYE - VF = bit shifted out."""
        V = self.registers.V
        flag = (V[ins.x] & 0x80) >> 7
        V[ins.x] = (V[ins.x] << 1) & 0xFF
        self.registers.VF = flag

    def _ld_i(self, ins: Instruction) -> None:
        self.registers.I = ins.nnn

    def _jp_v0(self, ins: Instruction) -> int:
        """BNNN - Jump to NNN + V0."""
        return ins.nnn + self.registers.V[0]

    def _rnd(self, ins: Instruction) -> None:
        self.registers.V[ins.x] = self.rng.randint(0, 0xFF) & ins.nn

    def _drw(self, ins: Instruction) -> None:
        """DXYN - Draw an N-row sprite from memory[I] at (VX, VY)."""
        regs = self.registers
        sprite = [self.memory.read(regs.I + row) for row in range(ins.n)]
        collision = self.display.draw_sprite(regs.V[ins.x], regs.V[ins.y], sprite)
        regs.VF = 1 if collision else 0

    def _skp(self, ins: Instruction) -> t.Optional[int]:
        return self._skip_if(self.keypad.is_pressed(self.registers.V[ins.x] & 0x0F))

    def _sknp(self, ins: Instruction) -> t.Optional[int]:
        return self._skip_if(not self.keypad.is_pressed(self.registers.V[ins.x] & 0x0F))

    def _ld_vx_dt(self, ins: Instruction) -> None:
        self.registers.V[ins.x] = self.timers.delay

    def _ld_vx_k(self, ins: Instruction) -> t.Optional[int]:
        """FX0A - Block until a key press is latched."""
        key = self.keypad.wait_for_key()
        if key is None:
            # Re-execute this instruction next step
            return self._pc
        self.registers.V[ins.x] = key
        return None

    def _ld_dt_vx(self, ins: Instruction) -> None:
        self.timers.set_delay(self.registers.V[ins.x])

    def _ld_st_vx(self, ins: Instruction) -> None:
        self.timers.set_sound(self.registers.V[ins.x])

    def _add_i(self, ins: Instruction) -> None:
        regs = self.registers
        regs.I = (regs.I + regs.V[ins.x]) & 0xFFFF

    def _ld_f(self, ins: Instruction) -> None:
        """FX29 - Point I at the glyph for the digit in VX."""
        self.registers.I = self.memory.glyph_address(self.registers.V[ins.x])

    def _ld_b(self, ins: Instruction) -> None:
        """FX33 - Store the BCD digits of VX at I, I+1, I+2."""
        regs = self.registers
        value = regs.V[ins.x]
        self.memory.write_block(regs.I, bytes((value // 100, (value % 100) // 10, value % 10)))

    def _store(self, ins: Instruction) -> None:
        """FX55 - Store V0..VX at I; I is unchanged."""
        regs = self.registers
        self.memory.write_block(regs.I, bytes(regs.V[:ins.x + 1]))

    def _load(self, ins: Instruction) -> None:
        """FX65 - Load V0..VX from I; I is unchanged."""
        regs = self.registers
        for j in range(ins.x + 1):
            regs.V[j] = self.memory.read(regs.I + j)
