"""
x86-64 Subset Emulator Tests
============================

Tests for the in-process executor, using hand-written assembly so the
emulator is checked independently of the code generator.
"""

import pytest

from rpncc.emulator import X86Emulator, run_assembly, evaluate
from rpncc.errors import EmulatorError


def program(*instructions: str, data: tuple[str, ...] = ()) -> str:
    lines = ["global _evaluate", "section .text", "_evaluate:"]
    lines.extend(f"    {instruction}" for instruction in instructions)
    lines.append("    ret")
    if data:
        lines.append("section .data")
        lines.extend(data)
    return "\n".join(lines) + "\n"


class TestInstructions:

    def test_mov_immediate(self):
        assert run_assembly(program("mov eax, 42")).eax == 42

    def test_add_sub(self):
        result = run_assembly(program("mov eax, 10", "add eax, 5", "sub eax, 3"))
        assert result.eax == 12

    def test_sub_wraps(self):
        result = run_assembly(program("mov eax, 0", "sub eax, 1"))
        assert result.eax == 0xFFFF_FFFF
        assert result.signed_eax == -1

    def test_add_wraps(self):
        result = run_assembly(program("mov eax, 4294967295", "add eax, 2"))
        assert result.eax == 1

    def test_mul_writes_edx(self):
        """MUL leaves the high half of the product in EDX."""
        emu = X86Emulator()
        result = emu.run(program("mov eax, 65536", "mov ebx, 65537", "mul ebx"))
        assert result.eax == 65536
        assert emu.read("edx") == 1

    def test_mul_requires_register(self):
        with pytest.raises(EmulatorError):
            run_assembly(program("mov eax, 2", "mul 3"))

    def test_memory(self):
        result = run_assembly(program(
            "mov eax, 7",
            "mov [rel x], eax",
            "mov eax, 1",
            "add eax, [rel x]",
            data=("x: dd 0", "y: dd 3"),
        ))
        assert result.eax == 8
        assert result.memory == {"x": 7, "y": 3}

    def test_push_pop(self):
        result = run_assembly(program(
            "mov eax, 5",
            "push rax",
            "mov eax, 6",
            "pop rbx",
            "sub eax, ebx",
        ))
        assert result.eax == 1
        assert result.pushes == 1
        assert result.pops == 1
        assert result.max_stack_depth == 1

    def test_32bit_write_zero_extends(self):
        emu = X86Emulator()
        emu.run(program("mov eax, 9", "push rax", "pop rbx"))
        assert emu.state.registers["rbx"] == 9

    def test_comments_and_blank_lines(self):
        asm = "global _evaluate\n\nsection .text ; code\n_evaluate:\n    mov eax, 3 ; three\n    ret\n"
        assert run_assembly(asm).eax == 3

    def test_steps(self):
        result = run_assembly(program("mov eax, 1", "add eax, 1"))
        assert result.steps == 3


class TestErrors:

    def test_unsupported_instruction(self):
        with pytest.raises(EmulatorError, match="unsupported instruction 'imul'"):
            run_assembly(program("imul eax, 3"))

    def test_pop_empty_stack(self):
        with pytest.raises(EmulatorError, match="empty native stack"):
            run_assembly(program("pop rbx"))

    def test_unbalanced_stack_at_ret(self):
        with pytest.raises(EmulatorError, match="at ret"):
            run_assembly(program("mov eax, 1", "push rax"))

    def test_missing_entry_label(self):
        with pytest.raises(EmulatorError, match="entry label"):
            run_assembly(program("mov eax, 1"), entry_label="main")

    def test_undefined_symbol(self):
        with pytest.raises(EmulatorError, match="undefined symbol 'z'"):
            run_assembly(program("mov eax, [rel z]"))

    def test_missing_ret(self):
        asm = "section .text\n_evaluate:\n    mov eax, 1\n"
        with pytest.raises(EmulatorError, match="past the end"):
            run_assembly(asm)

    def test_push_needs_64bit_register(self):
        with pytest.raises(EmulatorError):
            run_assembly(program("push eax"))

    def test_bad_data_declaration(self):
        with pytest.raises(EmulatorError, match="data declaration"):
            run_assembly(program("mov eax, 1", data=("x: dw 0",)))

    def test_error_reports_line(self):
        with pytest.raises(EmulatorError) as exc_info:
            run_assembly(program("mov eax, 1", "nop"))
        assert exc_info.value.line_number == 5


class TestInstrumentation:

    def test_on_instruction_hook(self):
        seen = []
        emu = X86Emulator()
        emu.on_instruction = lambda instruction, state: seen.append(instruction.mnemonic)
        emu.run(program("mov eax, 1", "add eax, 2"))
        assert seen == ["mov", "add", "ret"]

    def test_evaluate(self):
        assert evaluate("12+34+*") == 21

    def test_state_is_reset_between_runs(self):
        emu = X86Emulator()
        emu.run(program("mov eax, 1", "push rax", "pop rbx"))
        result = emu.run(program("mov eax, 2"))
        assert result.pushes == 0
        assert emu.read("ebx") == 0
