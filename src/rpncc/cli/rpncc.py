"""
rpncc - Postfix Compiler Command-Line Interface
===============================================

Usage Examples
--------------
Print assembly for an expression:
    $ rpncc '12+34+*'

Write it to a file:
    $ rpncc '12+34+*' -o out.asm

Compile a program file:
    $ rpncc -f program.rpn -o program.asm

Evaluate with the built-in emulator:
    $ rpncc --run 'x5=;x3+'
    8

Assemble and link the output yourself:
    $ nasm -felf64 out.asm && cc runtime.c out.o
"""

import logging
from pathlib import Path
from typing import Optional

import click

from rpncc import __version__
from rpncc.compiler import RpnCompiler, CompilerOptions
from rpncc.emulator import run_assembly
from rpncc.cli.errors import handle_cli_exception

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


@click.command()
@click.argument("expression", required=False)
@click.option(
    "-f", "--file", "source_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the program from a file instead of the command line",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: stdout)",
)
@click.option(
    "--entry",
    default="_evaluate",
    show_default=True,
    help="Name of the exported entry label",
)
@click.option(
    "--run",
    is_flag=True,
    help="Execute the program on the built-in emulator and print the result",
)
@click.option(
    "--signed",
    is_flag=True,
    help="With --run, print the result as a signed 32-bit integer",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="rpncc")
def main(
    expression: Optional[str],
    source_file: Optional[Path],
    output: Optional[Path],
    entry: str,
    run: bool,
    signed: bool,
    verbose: bool,
) -> None:
    """
    Compile a postfix expression to x86-64 NASM assembly.

    EXPRESSION is the program text: single-character tokens with no
    spaces. Digits and letters are operands, '+', '-', '*' are operators,
    '=' assigns to a variable and ';' separates statements.

    \b
    Examples:
        rpncc 7                      # mov eax, 7
        rpncc '12+34+*'              # (1+2)*(3+4)
        rpncc 'a2=;a1+'              # assignment, then use
        rpncc --run '12+34+*'        # prints 21
    """
    setup_logging(verbose)
    logger.debug(f"rpncc {__version__}: entry={entry}, run={run}")

    try:
        if (expression is None) == (source_file is None):
            raise click.UsageError("give exactly one of EXPRESSION or --file")

        compiler = RpnCompiler(CompilerOptions(entry_label=entry))
        if source_file is not None:
            result = compiler.compile_file(str(source_file))
        else:
            result = compiler.compile_source(expression, "<command-line>")

        if output is not None:
            output.write_text(result.assembly, encoding="utf-8")

        if run:
            execution = run_assembly(result.assembly, entry)
            click.echo(execution.signed_eax if signed else execution.eax)
            if verbose:
                click.echo(
                    f"Executed {execution.steps} instructions, "
                    f"{execution.pushes} pushes, {execution.pops} pops",
                    err=True,
                )
            return

        if output is not None:
            click.echo(f"Compiled {result.filename} -> {output}")
        else:
            click.echo(result.assembly, nl=False)

        if verbose:
            click.echo(
                f"{result.statement_count} statements, "
                f"{len(result.symbols)} variables, {len(result.lines)} lines",
                err=True,
            )

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
