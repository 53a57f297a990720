"""
x86-64 Subset Emulator
======================

Executes the assembly produced by the code generator without an external
assembler or linker, so programs can be checked end to end in tests and
from the command line.

Supported Subset
----------------
| Instruction     | Effect                                     |
|-----------------|--------------------------------------------|
| mov dst, src    | dst = src (32-bit register or [rel x])     |
| add dst, src    | dst = dst + src, wrapping at 32 bits       |
| sub dst, src    | dst = dst - src, wrapping at 32 bits       |
| mul src         | EDX:EAX = EAX * src (unsigned)             |
| push r64        | push a 64-bit register                     |
| pop r64         | pop into a 64-bit register                 |
| ret             | stop; the native stack must be balanced    |

Writing a 32-bit register zero-extends into its 64-bit alias, as on real
hardware. Variables come from `name: dd value` lines in the data section.

Example:
    >>> emu = X86Emulator()
    >>> result = emu.run(compile_rpn("12+34+*"))
    >>> result.eax
    21
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from rpncc.errors import EmulatorError

logger = logging.getLogger(__name__)

MASK_32 = 0xFFFF_FFFF
MASK_64 = 0xFFFF_FFFF_FFFF_FFFF

# 32-bit register name -> 64-bit register it lives in
REGISTERS_32 = {"eax": "rax", "ebx": "rbx", "ecx": "rcx", "edx": "rdx"}
REGISTERS_64 = frozenset(REGISTERS_32.values())


@dataclass
class CPUState:
    """
    Register, stack and memory state.

    Attributes:
        registers: 64-bit register values keyed by name (rax, rbx, ...)
        stack: Native stack contents, bottom first
        memory: 32-bit variable cells keyed by symbol
    """
    registers: dict[str, int] = field(default_factory=lambda: dict.fromkeys(sorted(REGISTERS_64), 0))
    stack: list[int] = field(default_factory=list)
    memory: dict[str, int] = field(default_factory=dict)


@dataclass
class ExecutionResult:
    """
    Outcome of running a program.

    Attributes:
        eax: Unsigned value of EAX at ret
        memory: Final variable cells
        pushes: Number of push instructions executed
        pops: Number of pop instructions executed
        max_stack_depth: Deepest native stack reached
        steps: Number of instructions executed, including ret
    """
    eax: int
    memory: dict[str, int]
    pushes: int = 0
    pops: int = 0
    max_stack_depth: int = 0
    steps: int = 0

    @property
    def signed_eax(self) -> int:
        """EAX interpreted as a two's complement 32-bit integer."""
        return self.eax - (1 << 32) if self.eax & 0x8000_0000 else self.eax


@dataclass(frozen=True)
class Instruction:
    """One parsed instruction with its position in the assembly text."""
    mnemonic: str
    operands: tuple[str, ...]
    line_number: int
    line: str


class X86Emulator:
    """
    Interpreter for the instruction subset emitted by the code generator.

    Instrumentation:
        on_instruction(instruction, state): called before every instruction
    """

    MAX_STEPS = 1_000_000

    def __init__(self) -> None:
        self.state = CPUState()
        self.on_instruction: Optional[Callable[[Instruction, CPUState], None]] = None
        self._pushes = 0
        self._pops = 0
        self._max_depth = 0

    # ========================================
    # Assembly Parsing
    # ========================================

    def load(self, assembly: str) -> tuple[list[Instruction], dict[str, int]]:
        """
        Parse assembly text into instructions and text-section labels.

        Data declarations are loaded into memory as a side effect.

        Returns:
            (instructions, labels) where labels map to instruction indices
        """
        instructions: list[Instruction] = []
        labels: dict[str, int] = {}
        section = None

        for number, raw in enumerate(assembly.splitlines(), start=1):
            line = raw.split(";", 1)[0].strip()
            if not line:
                continue

            keyword, _, rest = line.partition(" ")
            if keyword in ("global", "extern"):
                continue
            if keyword == "section":
                section = rest.strip()
                continue

            if section == ".data":
                self._load_data(line, number, raw)
            elif section == ".text":
                if line.endswith(":"):
                    labels[line[:-1]] = len(instructions)
                    continue
                operands = tuple(op.strip() for op in rest.split(",")) if rest.strip() else ()
                instructions.append(Instruction(keyword.lower(), operands, number, raw))
            else:
                raise EmulatorError("statement outside of any section", number, raw)

        return instructions, labels

    def _load_data(self, line: str, number: int, raw: str) -> None:
        name, colon, declaration = line.partition(":")
        parts = declaration.split()
        if not colon or len(parts) != 2 or parts[0] != "dd":
            raise EmulatorError("unsupported data declaration", number, raw)
        try:
            value = int(parts[1], 0)
        except ValueError:
            raise EmulatorError("invalid data value", number, raw) from None
        self.state.memory[name.strip()] = value & MASK_32

    # ========================================
    # Execution
    # ========================================

    def run(self, assembly: str, entry_label: str = "_evaluate") -> ExecutionResult:
        """
        Execute assembly from entry_label until ret.

        Raises:
            EmulatorError: On unsupported code, stack underflow, missing
                entry point, or an unbalanced stack at ret
        """
        self.state = CPUState()
        self._pushes = self._pops = self._max_depth = 0

        instructions, labels = self.load(assembly)
        if entry_label not in labels:
            raise EmulatorError(f"entry label '{entry_label}' not found")

        pc = labels[entry_label]
        steps = 0
        while True:
            if pc >= len(instructions):
                raise EmulatorError("execution ran past the end of the text section")
            if steps >= self.MAX_STEPS:
                raise EmulatorError(f"no ret after {self.MAX_STEPS} instructions")

            instruction = instructions[pc]
            if self.on_instruction is not None:
                self.on_instruction(instruction, self.state)
            steps += 1
            pc += 1

            if instruction.mnemonic == "ret":
                if self.state.stack:
                    raise EmulatorError(
                        f"native stack holds {len(self.state.stack)} values at ret",
                        instruction.line_number, instruction.line,
                    )
                break
            self.execute(instruction)

        result = ExecutionResult(
            eax=self.read("eax"),
            memory=dict(self.state.memory),
            pushes=self._pushes,
            pops=self._pops,
            max_stack_depth=self._max_depth,
            steps=steps,
        )
        logger.debug(f"Executed {steps} instructions, eax={result.eax}")
        return result

    def execute(self, instruction: Instruction) -> None:
        """Execute one non-ret instruction."""
        mnemonic, ops = instruction.mnemonic, instruction.operands

        if mnemonic in ("mov", "add", "sub"):
            self._expect_operands(instruction, 2)
            dst, src = ops
            value = self.read(src, instruction)
            if mnemonic == "add":
                value = self.read(dst, instruction) + value
            elif mnemonic == "sub":
                value = self.read(dst, instruction) - value
            self.write(dst, value, instruction)
        elif mnemonic == "mul":
            self._expect_operands(instruction, 1)
            if ops[0] not in REGISTERS_32:
                raise EmulatorError("mul needs a 32-bit register operand", instruction.line_number, instruction.line)
            product = self.read("eax") * self.read(ops[0])
            self.write("eax", product)
            self.write("edx", product >> 32)
        elif mnemonic == "push":
            self._expect_operands(instruction, 1)
            register = self._register_64(ops[0], instruction)
            self.state.stack.append(self.state.registers[register])
            self._pushes += 1
            self._max_depth = max(self._max_depth, len(self.state.stack))
        elif mnemonic == "pop":
            self._expect_operands(instruction, 1)
            register = self._register_64(ops[0], instruction)
            if not self.state.stack:
                raise EmulatorError("pop from empty native stack", instruction.line_number, instruction.line)
            self.state.registers[register] = self.state.stack.pop()
            self._pops += 1
        else:
            raise EmulatorError(f"unsupported instruction '{mnemonic}'", instruction.line_number, instruction.line)

    # ========================================
    # Operand Access
    # ========================================

    def read(self, operand: str, instruction: Optional[Instruction] = None) -> int:
        """Read a 32-bit register, a [rel x] memory cell or a literal."""
        if operand in REGISTERS_32:
            return self.state.registers[REGISTERS_32[operand]] & MASK_32
        name = self._memory_name(operand)
        if name is not None:
            if name not in self.state.memory:
                raise self._error(f"undefined symbol '{name}'", instruction)
            return self.state.memory[name]
        try:
            return int(operand, 0) & MASK_32
        except ValueError:
            raise self._error(f"unsupported operand '{operand}'", instruction) from None

    def write(self, operand: str, value: int, instruction: Optional[Instruction] = None) -> None:
        """Write a 32-bit register (zero-extending) or a memory cell."""
        value &= MASK_32
        if operand in REGISTERS_32:
            self.state.registers[REGISTERS_32[operand]] = value
            return
        name = self._memory_name(operand)
        if name is None:
            raise self._error(f"cannot write to '{operand}'", instruction)
        if name not in self.state.memory:
            raise self._error(f"undefined symbol '{name}'", instruction)
        self.state.memory[name] = value

    @staticmethod
    def _memory_name(operand: str) -> Optional[str]:
        if operand.startswith("[") and operand.endswith("]"):
            inner = operand[1:-1].split()
            if len(inner) == 2 and inner[0] == "rel":
                return inner[1]
            if len(inner) == 1:
                return inner[0]
        return None

    def _register_64(self, operand: str, instruction: Instruction) -> str:
        if operand not in REGISTERS_64:
            raise self._error(f"expected a 64-bit register, got '{operand}'", instruction)
        return operand

    def _expect_operands(self, instruction: Instruction, count: int) -> None:
        if len(instruction.operands) != count:
            raise self._error(f"'{instruction.mnemonic}' takes {count} operand(s)", instruction)

    @staticmethod
    def _error(message: str, instruction: Optional[Instruction]) -> EmulatorError:
        if instruction is None:
            return EmulatorError(message)
        return EmulatorError(message, instruction.line_number, instruction.line)


def run_assembly(assembly: str, entry_label: str = "_evaluate") -> ExecutionResult:
    """Execute assembly text on a fresh emulator."""
    return X86Emulator().run(assembly, entry_label)


def evaluate(source: str) -> int:
    """
    Compile a postfix program and return the unsigned value it leaves in EAX.

    >>> evaluate("12+34+*")
    21
    """
    from rpncc.compiler import compile_rpn

    return run_assembly(compile_rpn(source)).eax
