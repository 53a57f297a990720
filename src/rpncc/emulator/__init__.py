"""
x86-64 Subset Emulator
======================

Runs the code generator's output in-process, replacing the
assemble-link-execute round trip through nasm and a C runtime.

Quick Start
-----------
    >>> from rpncc.emulator import evaluate, run_assembly
    >>> evaluate("12+34+*")
    21
    >>> result = run_assembly(compile_rpn("x5=;x3+"))
    >>> result.eax, result.memory
    (8, {'x': 5})
"""

from rpncc.emulator.cpu import (
    X86Emulator,
    CPUState,
    ExecutionResult,
    Instruction,
    run_assembly,
    evaluate,
)

__all__ = [
    "X86Emulator",
    "CPUState",
    "ExecutionResult",
    "Instruction",
    "run_assembly",
    "evaluate",
]
