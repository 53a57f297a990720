"""
Postfix Compiler Main Module
============================

This module provides the main compiler interface. It drives the lexer
and feeds each token to the code generator as a semantic event:

    Source → Lex → Events → Code Generator → Assembly

Usage
-----
Command line:
    $ rpncc '12+34+*' -o out.asm

Programmatic:
    >>> from rpncc.compiler import compile_rpn
    >>> asm = compile_rpn('12+34+*')

Token to Event Mapping
----------------------
| Token     | Generator event          |
|-----------|--------------------------|
| DIGIT     | push_number(value)       |
| LETTER    | push_variable(name)      |
| PLUS      | add()                    |
| MINUS     | subtract()               |
| STAR      | multiply()               |
| EQUALS    | assign()                 |
| SEMICOLON | end_of_statement()       |
| EOF       | epilogue()               |

Error Handling
--------------
The first error aborts compilation. Errors raised by the code generator
are annotated with the position of the token being processed, so the
report points at the offending character.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rpncc.compiler.lexer import RpnLexer, RpnToken, RpnTokenType
from rpncc.compiler.codegen import CodeGenerator
from rpncc.compiler.errors import RpnCompilerError, MalformedInputError

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        entry_label: Name of the exported function that evaluates the program
        require_statement_values: Reject empty statements such as '1;;2' or
            a leading ';'. A single trailing ';' is always allowed.
    """
    entry_label: str = "_evaluate"
    require_statement_values: bool = True


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        assembly: Generated assembly text
        lines: Generated assembly lines
        symbols: Declared variables in first-use order
        statement_count: Number of non-empty statements
        token_count: Number of tokens lexed, including EOF
    """
    filename: str = ""
    success: bool = False
    assembly: str = ""
    lines: list[str] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)
    statement_count: int = 0
    token_count: int = 0


class RpnCompiler:
    """
    Compiler from postfix programs to x86-64 NASM assembly.

    Each compile call uses a fresh CodeGenerator, so one compiler can be
    reused for any number of programs.

    Example:
        compiler = RpnCompiler()
        result = compiler.compile_source("x5=;x3+")
        print(result.assembly)
    """

    # Operator and separator tokens mapped to generator methods
    EVENTS = {
        RpnTokenType.PLUS: "add",
        RpnTokenType.MINUS: "subtract",
        RpnTokenType.STAR: "multiply",
        RpnTokenType.EQUALS: "assign",
    }

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile program text to assembly.

        Args:
            source: Program text, one character per token
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the assembly

        Raises:
            RpnCompilerError: If compilation fails
        """
        generator = CodeGenerator(entry_label=self.options.entry_label)
        generator.prologue()

        token_count = 0
        statement_open = False
        for token in RpnLexer(source, filename).tokenize():
            token_count += 1
            try:
                statement_open = self._feed(generator, token, statement_open)
            except RpnCompilerError as e:
                e.attach_location(token.location, source)
                raise

        result = CompilerResult(
            filename=filename,
            success=True,
            assembly=generator.assembly(),
            lines=list(generator.lines()),
            symbols=list(generator.symbols),
            statement_count=generator.statement_count,
            token_count=token_count,
        )
        logger.info(
            f"Compiled {filename}: {result.statement_count} statements, "
            f"{len(result.symbols)} variables, {len(result.lines)} lines"
        )
        return result

    def compile_file(self, filepath: str) -> CompilerResult:
        """
        Compile a program file. A trailing newline is ignored.

        Raises:
            RpnCompilerError: If compilation fails
            FileNotFoundError: If the file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8").rstrip("\r\n")
        return self.compile_source(source, str(filepath))

    def _feed(self, generator: CodeGenerator, token: RpnToken, statement_open: bool) -> bool:
        """Dispatch one token. Returns whether the current statement has content."""
        if token.type == RpnTokenType.DIGIT:
            generator.push_number(token.value)
        elif token.type == RpnTokenType.LETTER:
            generator.push_variable(token.value)
        elif token.type in self.EVENTS:
            getattr(generator, self.EVENTS[token.type])()
        elif token.type == RpnTokenType.SEMICOLON:
            if not statement_open and self.options.require_statement_values:
                raise MalformedInputError(
                    "empty statement",
                    stack=generator.stack,
                    hint="remove the extra ';'",
                )
            generator.end_of_statement()
            return False
        elif token.type == RpnTokenType.EOF:
            generator.epilogue()
            return False
        return True


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_rpn(source: str, filename: str = "<input>") -> str:
    """
    Compile a postfix program to x86-64 NASM assembly.

    Example:
        >>> print(compile_rpn("7"))
        global _evaluate
        section .text
        _evaluate:
            mov eax, 7
            ret
        <BLANKLINE>
    """
    return RpnCompiler().compile_source(source, filename).assembly


def compile_file(filepath: str, output_path: Optional[str] = None) -> str:
    """
    Compile a program file, optionally writing the assembly to output_path.

    Raises:
        RpnCompilerError: If compilation fails
        FileNotFoundError: If source file not found
    """
    result = RpnCompiler().compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")

    return result.assembly
