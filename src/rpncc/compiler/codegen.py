"""
x86-64 Code Generator for Postfix Expressions
=============================================

This module turns a stream of postfix events (push a number, push a
variable, apply an operator, assign, end a statement) into NASM assembly
in a single pass. There is no tree and no intermediate representation:
the generator only remembers where each pending value currently lives.

Code Generation Strategy
------------------------
The generator mirrors the operand stack of a postfix evaluator with an
evaluation stack of locations (see rpncc.compiler.operands):

1. Numbers and variables are pushed as OnOperandStack and cost nothing
   until an operator needs them.
2. An operator pops two locations and combines them into EAX.
3. Before EAX is overwritten, the one older value still living in EAX
   is spilled with PUSH RAX and marked OnCpuStack.
4. A spilled value comes back with POP RBX when its partner is ready.

This evaluates any nesting depth with one accumulator and one scratch
register, using the native stack as overflow.

Register Usage
--------------
| Register   | Usage                                           |
|------------|-------------------------------------------------|
| EAX        | Accumulator, holds the result of every operator |
| EBX        | Scratch, holds one operand during a combine     |
| RAX / RBX  | 64-bit aliases used by PUSH and POP             |
| EDX        | Clobbered by MUL (high half of the product)     |

Combine Shapes
--------------
| lhs            | rhs            | Emitted code                        |
|----------------|----------------|-------------------------------------|
| OnOperandStack | OnOperandStack | mov eax, lhs / op eax, rhs          |
| OnOperandStack | InAccumulator  | mov ebx, eax / mov eax, lhs / op eax, ebx |
| InAccumulator  | OnOperandStack | op eax, rhs                         |
| OnCpuStack     | InAccumulator  | pop rbx / op eax, ebx               |

MUL only takes a register operand, so multiply always routes its second
operand through EBX.

The OnCpuStack/InAccumulator shape computes rhs op lhs. Addition and
multiplication do not care; subtraction comes out reversed in that shape
(e.g. '93-21--' yields (2-1)-(9-3)). This is the established behaviour
and tests pin it.

Generated Assembly Format
-------------------------
    global _evaluate
    section .text
    _evaluate:
        mov eax, 1
        add eax, 2
        ret
    section .data
    x: dd 0

Usage
-----
>>> gen = CodeGenerator()
>>> gen.prologue()
>>> gen.push_number(1)
>>> gen.push_number(2)
>>> gen.add()
>>> gen.epilogue()
>>> print(gen.assembly())
"""

import logging
from enum import Enum
from typing import Iterator

from rpncc.compiler.operands import (
    MAX_INTEGER,
    IN_ACCUMULATOR,
    ON_CPU_STACK,
    IntegerOperand,
    VariableOperand,
    OnOperandStack,
    Location,
    is_variable,
    text,
)
from rpncc.compiler.errors import (
    CodeGenError,
    MalformedInputError,
    StackUnderflowError,
    UnsupportedOperandShapeError,
    InvalidAssignmentTargetError,
    UnbalancedStatementError,
)

logger = logging.getLogger(__name__)


class BinaryOperator(Enum):
    """Arithmetic operators, valued by their x86 mnemonic."""
    ADD = "add"
    SUBTRACT = "sub"
    MULTIPLY = "mul"


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Single-pass register allocator and assembly emitter.

    One instance compiles exactly one program: the evaluation stack and
    the symbol set are never reset, and every event after epilogue()
    raises CodeGenError.

    Attributes:
        entry_label: Name of the exported entry point
    """

    ACCUMULATOR = "eax"
    ACCUMULATOR_64 = "rax"
    SCRATCH = "ebx"
    SCRATCH_64 = "rbx"

    def __init__(self, entry_label: str = "_evaluate"):
        self.entry_label = entry_label

        # Assembly output lines
        self._output: list[str] = []

        # Where every pending sub-expression result lives
        self._stack: list[Location] = []

        # Distinct variable names in first-use order (dict keys keep order)
        self._symbols: dict[str, None] = {}

        self._statement_count = 0
        self._started = False
        self._finished = False

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def stack(self) -> tuple[Location, ...]:
        """Snapshot of the evaluation stack, oldest entry first."""
        return tuple(self._stack)

    @property
    def symbols(self) -> tuple[str, ...]:
        """Variable names in the order they were first referenced."""
        return tuple(self._symbols)

    @property
    def statement_count(self) -> int:
        """Number of non-empty statements finalized so far."""
        return self._statement_count

    def lines(self) -> Iterator[str]:
        """Iterate over the lines emitted so far. Each call starts afresh."""
        return iter(list(self._output))

    def assembly(self) -> str:
        """Return the emitted lines as assembly text."""
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Emission Helpers
    # =========================================================================

    def _emit(self, line: str) -> None:
        self._output.append(line)

    def _emit_instruction(self, mnemonic: str, operand: str = "") -> None:
        if operand:
            self._emit(f"    {mnemonic} {operand}")
        else:
            self._emit(f"    {mnemonic}")

    def _emit_load(self, source: str) -> None:
        self._emit_instruction("mov", f"{self.ACCUMULATOR}, {source}")

    def _emit_operation(self, op: BinaryOperator, source: str) -> None:
        """Emit `eax = eax op source`. source may be an operand or EBX."""
        if op is BinaryOperator.MULTIPLY:
            if source != self.SCRATCH:
                self._emit_instruction("mov", f"{self.SCRATCH}, {source}")
            self._emit_instruction("mul", self.SCRATCH)
        else:
            self._emit_instruction(op.value, f"{self.ACCUMULATOR}, {source}")

    def _check_open(self) -> None:
        if self._finished:
            raise CodeGenError(
                "code generator already finished; use a new instance per program",
                stack=self._stack,
            )
        if not self._started:
            raise CodeGenError("prologue must be emitted first", stack=self._stack)

    # =========================================================================
    # Program Framing
    # =========================================================================

    def prologue(self) -> None:
        """Emit the entry point boilerplate. Must be called first, once."""
        if self._started:
            raise CodeGenError("prologue already emitted", stack=self._stack)
        self._started = True
        self._emit(f"global {self.entry_label}")
        self._emit("section .text")
        self._emit(f"{self.entry_label}:")

    def epilogue(self) -> None:
        """
        Finalize the trailing statement, return, and declare variables.

        Each distinct variable gets one zero-initialized 4-byte cell, in
        first-use order.
        """
        self._check_open()
        self.end_of_statement()
        self._emit_instruction("ret")

        if self._symbols:
            self._emit("section .data")
            for name in self._symbols:
                self._emit(f"{name}: dd 0")

        self._finished = True
        logger.debug(
            f"Epilogue: {self._statement_count} statements, "
            f"{len(self._symbols)} variables"
        )

    def end_of_statement(self) -> None:
        """
        Finalize one statement, leaving its value in EAX.

        An empty statement is a no-op. A lone unloaded operand is loaded so
        the statement value is always materialized.

        Raises:
            UnbalancedStatementError: If the stack holds more than one value
                or the only value is still spilled on the native stack
        """
        self._check_open()
        if not self._stack:
            return

        if len(self._stack) > 1:
            raise UnbalancedStatementError(
                f"statement leaves {len(self._stack)} values on the stack",
                stack=self._stack,
                hint="every value except the last must be consumed by an operator",
            )

        entry = self._stack[-1]
        if isinstance(entry, OnOperandStack):
            self._emit_load(text(entry.operand))
        elif entry != IN_ACCUMULATOR:
            raise UnbalancedStatementError(
                "statement value is still spilled on the native stack",
                stack=self._stack,
            )

        self._stack.pop()
        self._statement_count += 1

    # =========================================================================
    # Primaries
    # =========================================================================

    def push_number(self, value: int) -> None:
        """Push an unsigned 32-bit literal. Emits nothing."""
        self._check_open()
        if not 0 <= value <= MAX_INTEGER:
            raise MalformedInputError(
                f"integer literal {value} does not fit in 32 bits",
                stack=self._stack,
            )
        self._stack.append(OnOperandStack(IntegerOperand(value)))

    def push_variable(self, name: str) -> None:
        """Push a variable reference and record the name. Emits nothing."""
        self._check_open()
        if len(name) != 1 or not name.isascii() or not name.isalpha():
            raise MalformedInputError(
                f"invalid variable name {name!r}",
                stack=self._stack,
                hint="variables are single letters A-Z or a-z",
            )
        self._symbols.setdefault(name, None)
        self._stack.append(OnOperandStack(VariableOperand(name)))

    # =========================================================================
    # Operators
    # =========================================================================

    def add(self) -> None:
        self.binary_op(BinaryOperator.ADD)

    def subtract(self) -> None:
        self.binary_op(BinaryOperator.SUBTRACT)

    def multiply(self) -> None:
        self.binary_op(BinaryOperator.MULTIPLY)

    def binary_op(self, op: BinaryOperator) -> None:
        """
        Combine the two most recent values into EAX.

        Raises:
            StackUnderflowError: If fewer than two values are pending
            UnsupportedOperandShapeError: If the locations cannot be combined
        """
        self._check_open()
        before = self.stack
        if len(self._stack) < 2:
            raise StackUnderflowError(
                f"binary operator '{op.value}' needs two operands, found {len(self._stack)}",
                stack=before,
                hint="postfix operators follow both of their operands, e.g. '12+'",
            )

        lhs, rhs = self._stack[-2:]
        if not self._can_combine(lhs, rhs):
            raise UnsupportedOperandShapeError(
                f"unexpected operand shape for '{op.value}': lhs {lhs!r}, rhs {rhs!r}",
                stack=before,
            )

        del self._stack[-2:]
        self._spill_accumulator(before)

        if isinstance(lhs, OnOperandStack) and isinstance(rhs, OnOperandStack):
            self._emit_load(text(lhs.operand))
            self._emit_operation(op, text(rhs.operand))
        elif isinstance(lhs, OnOperandStack) and rhs == IN_ACCUMULATOR:
            # Keep operand order: rhs moves aside so lhs can take EAX
            self._emit_instruction("mov", f"{self.SCRATCH}, {self.ACCUMULATOR}")
            self._emit_load(text(lhs.operand))
            self._emit_operation(op, self.SCRATCH)
        elif lhs == IN_ACCUMULATOR and isinstance(rhs, OnOperandStack):
            self._emit_operation(op, text(rhs.operand))
        else:
            # OnCpuStack lhs, EAX rhs: computes rhs op lhs, reversed for subtraction
            self._emit_instruction("pop", self.SCRATCH_64)
            self._emit_operation(op, self.SCRATCH)

        logger.debug(f"Combined {lhs!r} {op.value} {rhs!r}")
        self._stack.append(IN_ACCUMULATOR)

    def assign(self) -> None:
        """
        Store the top value into the variable below it.

        The assigned value stays in EAX as the result, so assignments nest:
        'ba2==' sets both a and b to 2.

        Raises:
            StackUnderflowError: If fewer than two values are pending
            InvalidAssignmentTargetError: If the target is not a variable
            UnsupportedOperandShapeError: If the value cannot be stored
        """
        self._check_open()
        before = self.stack
        if len(self._stack) < 2:
            raise StackUnderflowError(
                f"assignment needs a target and a value, found {len(self._stack)} operands",
                stack=before,
                hint="write the variable first, then the value, then '=', e.g. 'x5='",
            )

        lhs, rhs = self._stack[-2:]
        if not is_variable(lhs):
            raise InvalidAssignmentTargetError(
                f"cannot assign to {lhs!r}",
                stack=before,
                hint="the left operand of '=' must be a variable, e.g. 'x5='",
            )
        if not isinstance(rhs, OnOperandStack) and rhs != IN_ACCUMULATOR:
            raise UnsupportedOperandShapeError(
                f"unexpected value shape for assignment: {rhs!r}",
                stack=before,
            )

        del self._stack[-2:]
        self._spill_accumulator(before)

        if isinstance(rhs, OnOperandStack):
            self._emit_load(text(rhs.operand))
        self._emit_instruction("mov", f"{text(lhs.operand)}, {self.ACCUMULATOR}")
        logger.debug(f"Assigned {rhs!r} to {lhs.operand!r}")
        self._stack.append(IN_ACCUMULATOR)

    # =========================================================================
    # Spilling
    # =========================================================================

    @staticmethod
    def _can_combine(lhs: Location, rhs: Location) -> bool:
        if isinstance(lhs, OnOperandStack):
            return isinstance(rhs, OnOperandStack) or rhs == IN_ACCUMULATOR
        if isinstance(rhs, OnOperandStack):
            return lhs == IN_ACCUMULATOR
        return lhs == ON_CPU_STACK and rhs == IN_ACCUMULATOR

    def _spill_accumulator(self, before: tuple[Location, ...]) -> None:
        """
        Push the older value held in EAX, if any, onto the native stack.

        Unloaded operands stay where they are; they can be loaded later at
        no cost. Only unloaded operands may sit above the accumulator entry.
        """
        index = None
        for i, entry in enumerate(self._stack):
            if entry == IN_ACCUMULATOR:
                if index is not None:
                    raise UnsupportedOperandShapeError(
                        "more than one pending value in the accumulator",
                        stack=before,
                    )
                index = i
            elif index is not None and not isinstance(entry, OnOperandStack):
                raise UnsupportedOperandShapeError(
                    f"{entry!r} above the accumulator value",
                    stack=before,
                )

        if index is None:
            return

        self._emit_instruction("push", self.ACCUMULATOR_64)
        self._stack[index] = ON_CPU_STACK
        logger.debug(f"Spilled accumulator at depth {index}")
