"""
Operand and Location Model
==========================

This module describes where the value of an already-parsed sub-expression
currently lives while the code generator walks a postfix expression.

Operands
--------
An operand is a value that can be written directly into an instruction
without loading it first:

| Operand          | Example | Rendered text |
|------------------|---------|---------------|
| IntegerOperand   | 7       | 7             |
| VariableOperand  | x       | [rel x]       |

Variables live in 4-byte cells in the data section, one per distinct
name. They are addressed RIP-relative so the output links as position
independent code.

Locations
---------
| Location        | Meaning                                          |
|-----------------|--------------------------------------------------|
| OnOperandStack  | Not loaded yet, usable as an instruction operand |
| InAccumulator   | Held in EAX                                      |
| OnCpuStack      | Spilled with PUSH RAX, recoverable only by POP   |

Only one value can be InAccumulator at a time. OnCpuStack values are
popped in the reverse order they were pushed, which matches the postfix
evaluation order.
"""

from dataclasses import dataclass
from typing import Union

# Largest value an immediate operand may hold (unsigned 32-bit)
MAX_INTEGER = 0xFFFF_FFFF


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class IntegerOperand:
    """An unsigned 32-bit literal constant."""
    value: int

    def __repr__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VariableOperand:
    """A named 4-byte memory cell. The name is a single ASCII letter."""
    name: str

    def __repr__(self) -> str:
        return self.name


Operand = Union[IntegerOperand, VariableOperand]


def text(operand: Operand) -> str:
    """
    Render an operand as NASM instruction operand text.

    >>> text(IntegerOperand(42))
    '42'
    >>> text(VariableOperand("x"))
    '[rel x]'
    """
    if isinstance(operand, IntegerOperand):
        return str(operand.value)
    return f"[rel {operand.name}]"


# =============================================================================
# Locations
# =============================================================================

@dataclass(frozen=True)
class OnOperandStack:
    """The value is an operand that has not been loaded into a register."""
    operand: Operand

    def __repr__(self) -> str:
        return f"OnOperandStack({self.operand!r})"


@dataclass(frozen=True)
class InAccumulator:
    """The value is held in the accumulator register."""

    def __repr__(self) -> str:
        return "InAccumulator"


@dataclass(frozen=True)
class OnCpuStack:
    """The value was spilled onto the native stack."""

    def __repr__(self) -> str:
        return "OnCpuStack"


Location = Union[OnOperandStack, InAccumulator, OnCpuStack]

IN_ACCUMULATOR = InAccumulator()
ON_CPU_STACK = OnCpuStack()


def is_variable(location: Location) -> bool:
    """Return True if the location is an unloaded variable reference."""
    return isinstance(location, OnOperandStack) and isinstance(location.operand, VariableOperand)
