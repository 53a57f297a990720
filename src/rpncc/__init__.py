"""
rpncc - Postfix Expression Compiler for x86-64
==============================================

This package compiles a minimal reverse-Polish arithmetic and assignment
language into NASM assembly for x86-64. The generated `_evaluate`
function takes no arguments and returns the value of the last statement
in EAX.

Main Components
---------------
- **compiler**: Lexer, single-pass code generator and driver
    Tracks where every pending value lives and evaluates any nesting
    depth with one accumulator register and the native stack

- **emulator**: In-process executor for the generated assembly

- **cli**: The `rpncc` command-line tool

Quick Start
-----------
Compile an expression:
    >>> from rpncc import compile_rpn
    >>> print(compile_rpn("12+34+*"))

Evaluate it without an assembler:
    >>> from rpncc import evaluate
    >>> evaluate("12+34+*")
    21

Or use the command-line tool:
    $ rpncc '12+34+*' -o out.asm
    $ rpncc --run 'x5=;x3+'
"""

__version__ = "1.0.0"

from rpncc.errors import RpnccError, SourceLocation, EmulatorError
from rpncc.compiler import (
    RpnCompiler,
    CompilerOptions,
    CompilerResult,
    compile_rpn,
    compile_file,
    RpnCompilerError,
    ErrorKind,
)
from rpncc.emulator import X86Emulator, ExecutionResult, run_assembly, evaluate

__all__ = [
    "__version__",
    # Errors
    "RpnccError",
    "SourceLocation",
    "EmulatorError",
    "RpnCompilerError",
    "ErrorKind",
    # Compiler
    "RpnCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_rpn",
    "compile_file",
    # Emulator
    "X86Emulator",
    "ExecutionResult",
    "run_assembly",
    "evaluate",
]
