"""Symbols and variables that make up symbolic expression trees."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

__all__ = ["Var", "SymKind", "Sym", "Visitor"]

_U16_MAX = 0xFFFF
_WORD_SIZE = 32


@dataclass(frozen=True)
class Var:
    """A symbolic variable, identified by a number in 1..65535."""

    number: int

    def __post_init__(self) -> None:
        if isinstance(self.number, bool) or not isinstance(self.number, int):
            raise TypeError(f"variable id must be an int, not {type(self.number).__name__}")
        if not 1 <= self.number <= _U16_MAX:
            raise ValueError(f"variable id out of range: {self.number}")

    def __str__(self) -> str:
        return f"var{self.number}"


class SymKind(Enum):
    """The kind of a node in an expression tree."""

    CONST = auto()
    VAR = auto()
    ADD = auto()
    MUL = auto()
    SUB = auto()
    DIV = auto()
    SDIV = auto()
    MOD = auto()
    SMOD = auto()
    ADDMOD = auto()
    MULMOD = auto()
    EXP = auto()
    LT = auto()
    GT = auto()
    SLT = auto()
    SGT = auto()
    EQ = auto()
    AND = auto()
    OR = auto()
    XOR = auto()
    BYTE = auto()
    SHL = auto()
    SHR = auto()
    SAR = auto()
    KECCAK256 = auto()
    SIGNEXTEND = auto()
    ISZERO = auto()
    NOT = auto()
    CALLDATALOAD = auto()
    EXTCODESIZE = auto()
    EXTCODEHASH = auto()
    MLOAD = auto()
    SLOAD = auto()
    BALANCE = auto()
    BLOCKHASH = auto()
    ADDRESS = auto()
    ORIGIN = auto()
    CALLER = auto()
    CALLVALUE = auto()
    CALLDATASIZE = auto()
    CODESIZE = auto()
    GASPRICE = auto()
    RETURNDATASIZE = auto()
    COINBASE = auto()
    TIMESTAMP = auto()
    NUMBER = auto()
    DIFFICULTY = auto()
    GASLIMIT = auto()
    CHAINID = auto()
    SELFBALANCE = auto()
    BASEFEE = auto()
    GETPC = auto()
    MSIZE = auto()
    GAS = auto()
    CREATE = auto()
    CREATE2 = auto()
    CALLCODE = auto()
    CALL = auto()
    STATICCALL = auto()
    DELEGATECALL = auto()


_ARITY: dict[SymKind, int] = {}
for _kinds, _count in (
    (
        (
            SymKind.ADD, SymKind.MUL, SymKind.SUB, SymKind.DIV, SymKind.SDIV,
            SymKind.MOD, SymKind.SMOD, SymKind.EXP, SymKind.LT, SymKind.GT,
            SymKind.SLT, SymKind.SGT, SymKind.EQ, SymKind.AND, SymKind.OR,
            SymKind.XOR, SymKind.BYTE, SymKind.SHL, SymKind.SHR, SymKind.SAR,
            SymKind.SIGNEXTEND, SymKind.KECCAK256,
        ),
        2,
    ),
    (
        (
            SymKind.ISZERO, SymKind.NOT, SymKind.CALLDATALOAD, SymKind.EXTCODESIZE,
            SymKind.EXTCODEHASH, SymKind.BLOCKHASH, SymKind.BALANCE,
            SymKind.MLOAD, SymKind.SLOAD,
        ),
        1,
    ),
    (
        (
            SymKind.ADDRESS, SymKind.ORIGIN, SymKind.CALLER, SymKind.CALLVALUE,
            SymKind.CALLDATASIZE, SymKind.CODESIZE, SymKind.GASPRICE,
            SymKind.RETURNDATASIZE, SymKind.COINBASE, SymKind.TIMESTAMP,
            SymKind.NUMBER, SymKind.DIFFICULTY, SymKind.GASLIMIT, SymKind.CHAINID,
            SymKind.SELFBALANCE, SymKind.BASEFEE, SymKind.GETPC, SymKind.MSIZE,
            SymKind.GAS, SymKind.CONST, SymKind.VAR,
        ),
        0,
    ),
    ((SymKind.ADDMOD, SymKind.MULMOD, SymKind.CREATE), 3),
    ((SymKind.CREATE2,), 4),
    ((SymKind.CALL, SymKind.CALLCODE), 7),
    ((SymKind.DELEGATECALL, SymKind.STATICCALL), 6),
):
    for _kind in _kinds:
        _ARITY[_kind] = _count
del _kinds, _count, _kind


SymValue = Union[bytes, Var, int, None]


@dataclass(frozen=True)
class Sym:
    """A node in the prefix-ordered representation of an expression.

    ``CONST`` nodes carry a 32-byte big-endian word, ``VAR`` nodes a
    :class:`Var`, ``GETPC`` nodes the program counter; all others carry
    nothing.
    """

    kind: SymKind
    value: SymValue = None

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if not isinstance(kind, SymKind):
            raise TypeError(f"expected a SymKind, not {type(kind).__name__}")
        if kind is SymKind.CONST:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError("a constant needs a 32-byte value")
            value = bytes(value)
            if len(value) != _WORD_SIZE:
                raise ValueError(f"a constant must be {_WORD_SIZE} bytes, got {len(value)}")
            object.__setattr__(self, "value", value)
        elif kind is SymKind.VAR:
            if not isinstance(value, Var):
                raise TypeError("a variable node needs a Var")
        elif kind is SymKind.GETPC:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError("a pc node needs an int offset")
            if not 0 <= value <= _U16_MAX:
                raise ValueError(f"pc offset out of range: {value}")
        elif value is not None:
            raise ValueError(f"{kind.name} takes no value")

    def children(self) -> int:
        """Number of operands this node takes."""
        return _ARITY[self.kind]


class Visitor:
    """Callbacks invoked while walking an expression; all default to no-ops."""

    def empty(self) -> None:
        """Called if the expression is empty."""

    def enter(self, sym: Sym) -> None:
        """Called when a node is first visited."""

    def between(self, sym: Sym, index: int) -> None:
        """Called between the children of a node."""

    def exit(self, sym: Sym) -> None:
        """Called when leaving a node for the last time."""