"""
Tests for the rpncc Command-Line Tool
=====================================
"""

from click.testing import CliRunner

from rpncc.cli.rpncc import main
from rpncc.cli.errors import ExitCode


class TestCompileCommand:

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Compile a postfix expression" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_prints_assembly(self):
        runner = CliRunner()
        result = runner.invoke(main, ["72+"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "global _evaluate",
            "section .text",
            "_evaluate:",
            "    mov eax, 7",
            "    add eax, 2",
            "    ret",
        ]

    def test_output_file(self, tmp_path):
        output = tmp_path / "out.asm"
        runner = CliRunner()
        result = runner.invoke(main, ["12+34+*", "-o", str(output)])
        assert result.exit_code == 0
        assert "push rax" in output.read_text()
        assert "Compiled" in result.output

    def test_source_file(self, tmp_path):
        source = tmp_path / "prog.rpn"
        source.write_text("a2=;a1+\n")
        runner = CliRunner()
        result = runner.invoke(main, ["-f", str(source), "--run"])
        assert result.exit_code == 0
        assert result.output.strip() == "3"

    def test_entry_label(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--entry", "main", "7"])
        assert result.exit_code == 0
        assert result.output.startswith("global main\n")


class TestRunOption:

    def test_run(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--run", "12+34+*"])
        assert result.exit_code == 0
        assert result.output.strip() == "21"

    def test_run_unsigned(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--run", "12-"])
        assert result.output.strip() == "4294967295"

    def test_run_signed(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--run", "--signed", "12-"])
        assert result.output.strip() == "-1"

    def test_run_with_entry_label(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--run", "--entry", "main", "x5=;x3+"])
        assert result.output.strip() == "8"

    def test_run_writes_output_file(self, tmp_path):
        """-o still writes the assembly when the program is also run."""
        output = tmp_path / "out.asm"
        runner = CliRunner()
        result = runner.invoke(main, ["--run", "12+34+*", "-o", str(output)])
        assert result.exit_code == 0
        assert result.output.strip() == "21"
        assert output.read_text().startswith("global _evaluate\n")


class TestErrors:

    def test_compile_error(self):
        runner = CliRunner()
        result = runner.invoke(main, ["1+"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "error: binary operator 'add' needs two operands" in result.output

    def test_invalid_character(self):
        runner = CliRunner()
        result = runner.invoke(main, ["1?"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "unexpected input character '?'" in result.output

    def test_no_input(self):
        runner = CliRunner()
        result = runner.invoke(main, [])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_expression_and_file(self, tmp_path):
        source = tmp_path / "prog.rpn"
        source.write_text("1")
        runner = CliRunner()
        result = runner.invoke(main, ["2", "-f", str(source)])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_missing_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["-f", str(tmp_path / "missing.rpn")])
        assert result.exit_code == 2
