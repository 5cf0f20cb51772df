"""EVM instructions, their stack effects, and a simple disassembler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, NamedTuple, TypeVar

__all__ = ["Opcode", "Offset", "disassemble"]

_PUSH1 = 0x60
_PUSH32 = 0x7F
_DUP1 = 0x80
_SWAP1 = 0x90
_LOG0 = 0xA0
_INVALID = 0xFE

_JUMPS = frozenset({0x56, 0x57})
_JUMP_TARGETS = frozenset({0x5B})
_HALTS = frozenset({0x00, 0xF3, 0xFD, 0xFE, 0xFF})


class _Info(NamedTuple):
    mnemonic: str
    pops: int
    pushes: int


def _build_table() -> dict[int, _Info]:
    table: dict[int, _Info] = {}

    def define(code: int, mnemonic: str, pops: int, pushes: int) -> None:
        table[code] = _Info(mnemonic, pops, pushes)

    define(0x00, "stop", 0, 0)
    for code, name in zip(range(0x01, 0x08), ("add", "mul", "sub", "div", "sdiv", "mod", "smod")):
        define(code, name, 2, 1)
    define(0x08, "addmod", 3, 1)
    define(0x09, "mulmod", 3, 1)
    define(0x0A, "exp", 2, 1)
    define(0x0B, "signextend", 2, 1)

    for code, name in zip(range(0x10, 0x15), ("lt", "gt", "slt", "sgt", "eq")):
        define(code, name, 2, 1)
    define(0x15, "iszero", 1, 1)
    for code, name in zip(range(0x16, 0x19), ("and", "or", "xor")):
        define(code, name, 2, 1)
    define(0x19, "not", 1, 1)
    for code, name in zip(range(0x1A, 0x1E), ("byte", "shl", "shr", "sar")):
        define(code, name, 2, 1)

    define(0x20, "keccak256", 2, 1)

    define(0x30, "address", 0, 1)
    define(0x31, "balance", 1, 1)
    define(0x32, "origin", 0, 1)
    define(0x33, "caller", 0, 1)
    define(0x34, "callvalue", 0, 1)
    define(0x35, "calldataload", 1, 1)
    define(0x36, "calldatasize", 0, 1)
    define(0x37, "calldatacopy", 3, 0)
    define(0x38, "codesize", 0, 1)
    define(0x39, "codecopy", 3, 0)
    define(0x3A, "gasprice", 0, 1)
    define(0x3B, "extcodesize", 1, 1)
    define(0x3C, "extcodecopy", 4, 0)
    define(0x3D, "returndatasize", 0, 1)
    define(0x3E, "returndatacopy", 3, 0)
    define(0x3F, "extcodehash", 1, 1)

    define(0x40, "blockhash", 1, 1)
    block_info = (
        "coinbase", "timestamp", "number", "difficulty",
        "gaslimit", "chainid", "selfbalance", "basefee",
    )
    for code, name in zip(range(0x41, 0x49), block_info):
        define(code, name, 0, 1)

    define(0x50, "pop", 1, 0)
    define(0x51, "mload", 1, 1)
    define(0x52, "mstore", 2, 0)
    define(0x53, "mstore8", 2, 0)
    define(0x54, "sload", 1, 1)
    define(0x55, "sstore", 2, 0)
    define(0x56, "jump", 1, 0)
    define(0x57, "jumpi", 2, 0)
    define(0x58, "pc", 0, 1)
    define(0x59, "msize", 0, 1)
    define(0x5A, "gas", 0, 1)
    define(0x5B, "jumpdest", 0, 0)

    for n in range(1, 33):
        define(_PUSH1 + n - 1, f"push{n}", 0, 1)
    for n in range(1, 17):
        define(_DUP1 + n - 1, f"dup{n}", n, n + 1)
        define(_SWAP1 + n - 1, f"swap{n}", n + 1, n + 1)
    for n in range(5):
        define(_LOG0 + n, f"log{n}", n + 2, 0)

    define(0xF0, "create", 3, 1)
    define(0xF1, "call", 7, 1)
    define(0xF2, "callcode", 7, 1)
    define(0xF3, "return", 2, 0)
    define(0xF4, "delegatecall", 6, 1)
    define(0xF5, "create2", 4, 1)
    define(0xFA, "staticcall", 6, 1)
    define(0xFD, "revert", 2, 0)
    define(_INVALID, "invalid", 0, 0)
    define(0xFF, "selfdestruct", 1, 0)

    for code in range(256):
        if code not in table:
            define(code, f"invalid_{code:02x}", 0, 0)
    return table


_TABLE = _build_table()
_BY_MNEMONIC = {info.mnemonic: code for code, info in _TABLE.items()}
_UNASSIGNED = frozenset(
    code for code, info in _TABLE.items() if info.mnemonic.startswith("invalid_")
)


def _immediate_size(code: int) -> int:
    if _PUSH1 <= code <= _PUSH32:
        return code - _PUSH1 + 1
    return 0


@dataclass(frozen=True)
class Opcode:
    """A single EVM instruction: its byte value and any immediate data."""

    code: int
    immediate: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.code, bool) or not isinstance(self.code, int):
            raise TypeError(f"opcode must be an int, not {type(self.code).__name__}")
        if not 0 <= self.code <= 0xFF:
            raise ValueError(f"opcode out of range: {self.code}")
        if not isinstance(self.immediate, (bytes, bytearray, memoryview)):
            raise TypeError("immediate must be bytes")
        immediate = bytes(self.immediate)
        expected = _immediate_size(self.code)
        if len(immediate) != expected:
            raise ValueError(
                f"{_TABLE[self.code].mnemonic} takes {expected} immediate bytes, "
                f"got {len(immediate)}"
            )
        object.__setattr__(self, "immediate", immediate)

    @classmethod
    def from_mnemonic(cls, name: str, immediate: bytes = b"") -> Opcode:
        """Build an instruction from its mnemonic, e.g. ``"push1"`` or ``"add"``."""
        try:
            code = _BY_MNEMONIC[name.lower()]
        except KeyError:
            raise ValueError(f"unknown mnemonic: {name!r}") from None
        return cls(code, immediate)

    @classmethod
    def push(cls, data: bytes) -> Opcode:
        """Build the ``pushN`` instruction whose immediate is exactly ``data``."""
        data = bytes(data)
        if not 1 <= len(data) <= 32:
            raise ValueError(f"push data must be 1 to 32 bytes, got {len(data)}")
        return cls(_PUSH1 + len(data) - 1, data)

    def mnemonic(self) -> str:
        """The instruction's name."""
        return _TABLE[self.code].mnemonic

    def size(self) -> int:
        """Encoded length in bytes, including the immediate."""
        return 1 + len(self.immediate)

    def pops(self) -> int:
        """Number of stack items consumed."""
        return _TABLE[self.code].pops

    def pushes(self) -> int:
        """Number of stack items produced."""
        return _TABLE[self.code].pushes

    def is_jump(self) -> bool:
        """Whether this is ``jump`` or ``jumpi``."""
        return self.code in _JUMPS

    def is_jump_target(self) -> bool:
        """Whether this is ``jumpdest``."""
        return self.code in _JUMP_TARGETS

    def is_exit(self) -> bool:
        """Whether execution unconditionally halts at this instruction."""
        return self.code in _HALTS or self.code in _UNASSIGNED

    def __bytes__(self) -> bytes:
        return bytes((self.code,)) + self.immediate

    def __str__(self) -> str:
        if self.immediate:
            return f"{self.mnemonic()} 0x{self.immediate.hex()}"
        return self.mnemonic()


T = TypeVar("T")


@dataclass(frozen=True)
class Offset(Generic[T]):
    """An item paired with its byte position in a program."""

    offset: int
    item: T


def disassemble(data: bytes) -> Iterator[Offset[Opcode]]:
    """Decode bytecode into instructions paired with their offsets.

    Raises ValueError if the final push instruction is truncated.
    """
    data = bytes(data)
    position = 0
    while position < len(data):
        code = data[position]
        width = _immediate_size(code)
        start = position + 1
        immediate = data[start:start + width]
        if len(immediate) != width:
            raise ValueError(
                f"truncated {_TABLE[code].mnemonic} at offset {position:#x}"
            )
        yield Offset(position, Opcode(code, immediate))
        position = start + width