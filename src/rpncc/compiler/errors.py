"""
Compiler Error Hierarchy
========================

This module defines the exceptions raised while compiling a postfix
program. All of them inherit from RpnCompilerError, which itself inherits
from RpnccError for consistent error handling across the toolchain.

Every compiler error is fatal: the compilation is abandoned and no
assembly is returned. Each error records:

- kind: an ErrorKind naming the violated rule
- stack: a snapshot of the evaluation stack when the error occurred
- location: the input character being processed (when known)
- hint: a suggestion for fixing the input (when available)

Error Message Format
--------------------
    <input>:1:2: error: binary operator needs two operands, found 1
        1+
         ^
    stack: [OnOperandStack(1)]
    hint: postfix operators follow both of their operands, e.g. '12+'
"""

from enum import Enum
from typing import Optional, Sequence

from rpncc.errors import RpnccError, SourceLocation


class ErrorKind(Enum):
    """Classification of compiler failures."""
    MALFORMED_INPUT = "malformed input"
    STACK_UNDERFLOW = "stack underflow"
    UNSUPPORTED_OPERAND_SHAPE = "unsupported operand shape"
    INVALID_ASSIGNMENT_TARGET = "invalid assignment target"
    UNBALANCED_STATEMENT = "unbalanced statement"
    CODEGEN = "code generation"


# =============================================================================
# Base Compiler Exception
# =============================================================================

class RpnCompilerError(RpnccError):
    """
    Base exception for all compiler errors.

    Attributes:
        message: The error description
        stack: Snapshot of the evaluation stack (tuple of locations)
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The source text at the error location
    """

    kind: ErrorKind = ErrorKind.CODEGEN

    def __init__(
        self,
        message: str,
        stack: Sequence = (),
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.stack = tuple(stack)
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def attach_location(self, location: SourceLocation, source_line: Optional[str] = None) -> None:
        """
        Record the input position of the error if it is not known yet.

        The code generator works on events and has no idea where they came
        from; the compiler driver calls this before re-raising.
        """
        if self.location is not None:
            return
        self.location = location
        self.source_line = source_line
        self.args = (self._format_message(),)

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        parts.append(f"stack: [{', '.join(repr(entry) for entry in self.stack)}]")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class CodeGenError(RpnCompilerError):
    """Misuse of the code generator API (e.g. reuse after the epilogue)."""
    kind = ErrorKind.CODEGEN


# =============================================================================
# Input Errors
# =============================================================================

class MalformedInputError(RpnCompilerError):
    """
    The input cannot be a valid program.

    Examples:
        - A character outside the language alphabet
        - An empty statement such as '1;;2'
        - An integer literal outside the unsigned 32-bit range
    """
    kind = ErrorKind.MALFORMED_INPUT


class InvalidCharacterError(MalformedInputError):
    """A character that is not a digit, letter, operator or separator."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"unexpected input character '{char}' (0x{ord(char):02X})",
            location=location,
            hint="the language accepts 0-9, A-Z, a-z, '+', '-', '*', '=' and ';'",
            source_line=source_line,
        )


# =============================================================================
# Stack Discipline Errors
# =============================================================================

class StackUnderflowError(RpnCompilerError):
    """An operator was applied with fewer than two pending operands."""
    kind = ErrorKind.STACK_UNDERFLOW


class UnsupportedOperandShapeError(RpnCompilerError):
    """
    The operand locations reaching a combine step cannot be handled.

    Well-formed postfix input never produces these shapes, so this error
    points at an internal inconsistency rather than a user mistake.
    """
    kind = ErrorKind.UNSUPPORTED_OPERAND_SHAPE


class InvalidAssignmentTargetError(RpnCompilerError):
    """The left side of '=' is not a variable."""
    kind = ErrorKind.INVALID_ASSIGNMENT_TARGET


class UnbalancedStatementError(RpnCompilerError):
    """A statement ended with other than zero or one pending value."""
    kind = ErrorKind.UNBALANCED_STATEMENT
