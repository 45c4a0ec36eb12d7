"""
CHIP-8 instruction decoding.

Decoding is a pure function from a 16-bit opcode to an Instruction descriptor:
the operation plus every operand field. Execution lives in cpu.py, which maps
each Op to a handler. The trace recorder and the disassembler share this
decoder with the CPU.
"""

from enum import Enum, auto
from typing import NamedTuple, Dict, Callable

class Op(Enum):
    """Decoded operations."""
    CLS = auto()       # 00E0
    RET = auto()       # 00EE
    JP = auto()        # 1NNN
    CALL = auto()      # 2NNN
    SE_BYTE = auto()   # 3XNN
    SNE_BYTE = auto()  # 4XNN
    SE_REG = auto()    # 5XY0
    LD_BYTE = auto()   # 6XNN
    ADD_BYTE = auto()  # 7XNN
    LD_REG = auto()    # 8XY0
    OR = auto()        # 8XY1
    AND = auto()       # 8XY2
    XOR = auto()       # 8XY3
    ADD_REG = auto()   # 8XY4
    SUB = auto()       # 8XY5
    SHR = auto()       # 8XY6
    SUBN = auto()      # 8XY7
    SHL = auto()       # 8XYE
    SNE_REG = auto()   # 9XY0
    LD_I = auto()      # ANNN
    JP_V0 = auto()     # BNNN
    RND = auto()       # CXNN
    DRW = auto()       # DXYN
    SKP = auto()       # EX9E
    SKNP = auto()      # EXA1
    LD_VX_DT = auto()  # FX07
    LD_VX_K = auto()   # FX0A
    LD_DT_VX = auto()  # FX15
    LD_ST_VX = auto()  # FX18
    ADD_I = auto()     # FX1E
    LD_F = auto()      # FX29
    LD_B = auto()      # FX33
    STORE = auto()     # FX55
    LOAD = auto()      # FX65
    UNKNOWN = auto()

class Instruction(NamedTuple):
    """A decoded instruction and its operand fields."""
    opcode: int
    op: Op
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @property
    def mnemonic(self) -> str:
        return disassemble(self).split(" ", 1)[0]

# Groups selected by the low nibble (0x8) or the low byte (0xE, 0xF)
ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.STORE,
    0x65: Op.LOAD,
}

# Groups fully determined by the top nibble
SIMPLE_OPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

def _decode_op(opcode: int) -> Op:
    group = opcode >> 12
    n = opcode & 0x000F
    nn = opcode & 0x00FF

    if group in SIMPLE_OPS:
        return SIMPLE_OPS[group]
    if group == 0x0:
        if opcode == 0x00E0:
            return Op.CLS
        if opcode == 0x00EE:
            return Op.RET
        # 0NNN machine-code routines are not supported
        return Op.UNKNOWN
    if group == 0x5:
        return Op.SE_REG if n == 0 else Op.UNKNOWN
    if group == 0x9:
        return Op.SNE_REG if n == 0 else Op.UNKNOWN
    if group == 0x8:
        return ALU_OPS.get(n, Op.UNKNOWN)
    if group == 0xE:
        return KEY_OPS.get(nn, Op.UNKNOWN)
    # group == 0xF
    return MISC_OPS.get(nn, Op.UNKNOWN)

def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode.

    Args:
        opcode: Big-endian instruction word

    Returns:
        Instruction descriptor; op is Op.UNKNOWN for unrecognized opcodes
    """
    opcode &= 0xFFFF
    return Instruction(
        opcode=opcode,
        op=_decode_op(opcode),
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        nn=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )

_FORMATS: Dict[Op, Callable[[Instruction], str]] = {
    Op.CLS: lambda i: "CLS",
    Op.RET: lambda i: "RET",
    Op.JP: lambda i: f"JP 0x{i.nnn:03X}",
    Op.CALL: lambda i: f"CALL 0x{i.nnn:03X}",
    Op.SE_BYTE: lambda i: f"SE V{i.x:X}, 0x{i.nn:02X}",
    Op.SNE_BYTE: lambda i: f"SNE V{i.x:X}, 0x{i.nn:02X}",
    Op.SE_REG: lambda i: f"SE V{i.x:X}, V{i.y:X}",
    Op.LD_BYTE: lambda i: f"LD V{i.x:X}, 0x{i.nn:02X}",
    Op.ADD_BYTE: lambda i: f"ADD V{i.x:X}, 0x{i.nn:02X}",
    Op.LD_REG: lambda i: f"LD V{i.x:X}, V{i.y:X}",
    Op.OR: lambda i: f"OR V{i.x:X}, V{i.y:X}",
    Op.AND: lambda i: f"AND V{i.x:X}, V{i.y:X}",
    Op.XOR: lambda i: f"XOR V{i.x:X}, V{i.y:X}",
    Op.ADD_REG: lambda i: f"ADD V{i.x:X}, V{i.y:X}",
    Op.SUB: lambda i: f"SUB V{i.x:X}, V{i.y:X}",
    Op.SHR: lambda i: f"SHR V{i.x:X}",
    Op.SUBN: lambda i: f"SUBN V{i.x:X}, V{i.y:X}",
    Op.SHL: lambda i: f"SHL V{i.x:X}",
    Op.SNE_REG: lambda i: f"SNE V{i.x:X}, V{i.y:X}",
    Op.LD_I: lambda i: f"LD I, 0x{i.nnn:03X}",
    Op.JP_V0: lambda i: f"JP V0, 0x{i.nnn:03X}",
    Op.RND: lambda i: f"RND V{i.x:X}, 0x{i.nn:02X}",
    Op.DRW: lambda i: f"DRW V{i.x:X}, V{i.y:X}, {i.n}",
    Op.SKP: lambda i: f"SKP V{i.x:X}",
    Op.SKNP: lambda i: f"SKNP V{i.x:X}",
    Op.LD_VX_DT: lambda i: f"LD V{i.x:X}, DT",
    Op.LD_VX_K: lambda i: f"LD V{i.x:X}, K",
    Op.LD_DT_VX: lambda i: f"LD DT, V{i.x:X}",
    Op.LD_ST_VX: lambda i: f"LD ST, V{i.x:X}",
    Op.ADD_I: lambda i: f"ADD I, V{i.x:X}",
    Op.LD_F: lambda i: f"LD F, V{i.x:X}",
    Op.LD_B: lambda i: f"LD B, V{i.x:X}",
    Op.STORE: lambda i: f"LD [I], V{i.x:X}",
    Op.LOAD: lambda i: f"LD V{i.x:X}, [I]",
    Op.UNKNOWN: lambda i: f"DW 0x{i.opcode:04X}",
}

def disassemble(instruction: Instruction) -> str:
    """Render an instruction in conventional CHIP-8 assembly syntax."""
    return _FORMATS[instruction.op](instruction)
