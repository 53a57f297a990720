"""
rpncc Error Hierarchy
=====================

This module defines the root of the exception hierarchy for rpncc.
All exceptions inherit from RpnccError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
RpnccError (base)
├── RpnCompilerError (compiler-related, see rpncc.compiler.errors)
│   ├── MalformedInputError - invalid character or empty statement
│   ├── StackUnderflowError - operator without enough operands
│   ├── UnsupportedOperandShapeError - impossible operand locations
│   ├── InvalidAssignmentTargetError - assignment to a non-variable
│   └── UnbalancedStatementError - leftover values at end of statement
└── EmulatorError - the emulator cannot execute generated assembly

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class RpnccError(Exception):
    """
    Base exception for all rpncc errors.

        try:
            compile_rpn("12+34+*")
        except RpnccError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Emulator Exceptions
# =============================================================================

class EmulatorError(RpnccError):
    """
    Raised when the emulator meets assembly it cannot execute.

    Attributes:
        line_number: 1-indexed line of the assembly text, if known
        line: The offending assembly line, if known
    """

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        self.message = message
        self.line_number = line_number
        self.line = line
        if line_number:
            message = f"line {line_number}: {message}: {line.strip()!r}"
        super().__init__(message)
