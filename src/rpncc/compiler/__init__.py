"""
Postfix Expression Compiler
===========================

This package compiles a minimal postfix (reverse-Polish) language of
single-character tokens into x86-64 NASM assembly:

- A lexer turning characters into tokens
- A single-pass code generator that tracks where every pending value
  lives and evaluates any nesting depth with one accumulator register
- A driver tying the two together

Grammar
-------
    program   -> statement (';' statement)* [';']
    statement -> expr
    expr      -> primary | expr expr binop | variable expr '='
    primary   -> digit | variable
    binop     -> '+' | '-' | '*'

The value of the last statement is returned in EAX by the generated
`_evaluate` function.

Usage
-----
>>> from rpncc.compiler import compile_rpn
>>> asm_output = compile_rpn("x5=;x3+")
"""

from rpncc.compiler.compiler import (
    RpnCompiler,
    CompilerOptions,
    CompilerResult,
    compile_rpn,
    compile_file,
)
from rpncc.compiler.errors import (
    ErrorKind,
    RpnCompilerError,
    CodeGenError,
    MalformedInputError,
    InvalidCharacterError,
    StackUnderflowError,
    UnsupportedOperandShapeError,
    InvalidAssignmentTargetError,
    UnbalancedStatementError,
)
from rpncc.compiler.lexer import RpnLexer, RpnTokenType, RpnToken
from rpncc.compiler.codegen import CodeGenerator, BinaryOperator
from rpncc.compiler.operands import (
    IntegerOperand,
    VariableOperand,
    OnOperandStack,
    InAccumulator,
    OnCpuStack,
    text,
)

__all__ = [
    # Main API
    "RpnCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_rpn",
    "compile_file",
    # Errors
    "ErrorKind",
    "RpnCompilerError",
    "CodeGenError",
    "MalformedInputError",
    "InvalidCharacterError",
    "StackUnderflowError",
    "UnsupportedOperandShapeError",
    "InvalidAssignmentTargetError",
    "UnbalancedStatementError",
    # Lexer
    "RpnLexer",
    "RpnTokenType",
    "RpnToken",
    # Code generator
    "CodeGenerator",
    "BinaryOperator",
    # Operand model
    "IntegerOperand",
    "VariableOperand",
    "OnOperandStack",
    "InAccumulator",
    "OnCpuStack",
    "text",
]
