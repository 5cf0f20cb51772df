"""Symbolic expression trees over EVM values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .sym import Sym, SymKind, Var, Visitor

__all__ = ["Expr"]

_WORD_SIZE = 32

_ENTER_TEXT: dict[SymKind, str] = {
    SymKind.ADDMOD: "((",
    SymKind.MULMOD: "((",
    SymKind.KECCAK256: "keccak256(",
    SymKind.BYTE: "byte(",
    SymKind.SIGNEXTEND: "signextend(",
    SymKind.NOT: "~(",
    SymKind.CALLDATALOAD: "calldata(",
    SymKind.EXTCODESIZE: "extcodesize(",
    SymKind.EXTCODEHASH: "extcodehash(",
    SymKind.MLOAD: "mload(",
    SymKind.SLOAD: "sload(",
    SymKind.ADDRESS: "address(",
    SymKind.BALANCE: "balance(",
    SymKind.ORIGIN: "origin(",
    SymKind.CALLER: "caller(",
    SymKind.CALLVALUE: "callvalue(",
    SymKind.CALLDATASIZE: "calldatasize(",
    SymKind.CODESIZE: "codesize(",
    SymKind.GASPRICE: "gasprice(",
    SymKind.RETURNDATASIZE: "returndatasize(",
    SymKind.BLOCKHASH: "blockhash(",
    SymKind.COINBASE: "coinbase(",
    SymKind.TIMESTAMP: "timestamp(",
    SymKind.NUMBER: "number(",
    SymKind.DIFFICULTY: "difficulty(",
    SymKind.GASLIMIT: "gaslimit(",
    SymKind.CHAINID: "chainid(",
    SymKind.SELFBALANCE: "selfbalance(",
    SymKind.BASEFEE: "basefee(",
    SymKind.MSIZE: "msize(",
    SymKind.GAS: "gas(",
    SymKind.CREATE: "create(",
    SymKind.CALLCODE: "callcode(",
    SymKind.CALL: "call(",
    SymKind.STATICCALL: "staticcall(",
    SymKind.DELEGATECALL: "delegatecall(",
    SymKind.SHL: "shl(",
    SymKind.SHR: "shr(",
    SymKind.SAR: "sar(",
}

_INFIX: dict[SymKind, str] = {
    SymKind.ADD: " + ",
    SymKind.MUL: " × ",
    SymKind.SUB: " - ",
    SymKind.DIV: " ÷ ",
    SymKind.SDIV: " ÷⃡ ",
    SymKind.MOD: " ﹪ ",
    SymKind.SMOD: " ﹪⃡ ",
    SymKind.EXP: " ** ",
    SymKind.LT: " < ",
    SymKind.GT: " > ",
    SymKind.SLT: " <⃡ ",
    SymKind.SGT: " >⃡ ",
    SymKind.EQ: " = ",
    SymKind.AND: " & ",
    SymKind.OR: " | ",
    SymKind.XOR: " ^ ",
}

_MODULAR_INFIX: dict[SymKind, tuple[str, str]] = {
    SymKind.ADDMOD: (" + ", ") ﹪ "),
    SymKind.MULMOD: (" × ", ") ﹪ "),
}


class _DisplayVisitor(Visitor):
    def __init__(self) -> None:
        self.parts: list[str] = []

    def empty(self) -> None:
        self.parts.append("{}")

    def enter(self, sym: Sym) -> None:
        kind = sym.kind
        if kind is SymKind.CONST:
            self.parts.append("0x" + sym.value.hex())
        elif kind is SymKind.VAR:
            self.parts.append(str(sym.value))
        elif kind is SymKind.GETPC:
            self.parts.append(f"pc({sym.value}")
        else:
            self.parts.append(_ENTER_TEXT.get(kind, "("))

    def between(self, sym: Sym, index: int) -> None:
        kind = sym.kind
        if kind in _MODULAR_INFIX:
            self.parts.append(_MODULAR_INFIX[kind][index])
        else:
            self.parts.append(_INFIX.get(kind, ", "))

    def exit(self, sym: Sym) -> None:
        kind = sym.kind
        if kind in (SymKind.CONST, SymKind.VAR):
            return
        self.parts.append(" = 0)" if kind is SymKind.ISZERO else ")")


def _leaf(kind: SymKind, value=None) -> "Expr":
    return Expr((Sym(kind, value),))


@dataclass(frozen=True)
class Expr:
    """An expression tree, stored as its nodes in prefix order."""

    ops: tuple[Sym, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "ops", tuple(self.ops))

    def __str__(self) -> str:
        visitor = _DisplayVisitor()
        self.walk(visitor)
        return "".join(visitor.parts)

    @classmethod
    def _concat(cls, kind: SymKind, *args: Expr) -> Expr:
        op = Sym(kind)
        if op.children() != len(args):
            raise ValueError(
                f"{kind.name} takes {op.children()} operands, got {len(args)}"
            )
        ops = [op]
        for arg in args:
            ops.extend(arg.ops)
        return cls(tuple(ops))

    @classmethod
    def from_var(cls, var: Var) -> Expr:
        """An expression consisting of a single variable."""
        return cls((Sym(SymKind.VAR, var),))

    @classmethod
    def constant(cls, data: bytes) -> Expr:
        """A constant, left-padded with zeros to a 32-byte word."""
        data = bytes(data)
        if len(data) > _WORD_SIZE:
            raise ValueError(f"constant longer than {_WORD_SIZE} bytes: {len(data)}")
        return cls((Sym(SymKind.CONST, data.rjust(_WORD_SIZE, b"\x00")),))

    def as_var(self) -> Optional[Var]:
        """The variable if this expression is exactly one variable, else None."""
        if len(self.ops) == 1 and self.ops[0].kind is SymKind.VAR:
            return self.ops[0].value
        return None

    def walk(self, visitor: Visitor) -> None:
        """Traverse the tree, calling the visitor's callbacks in order.

        Raises ValueError if a node is missing operands.
        """
        ops = self.ops
        if not ops:
            visitor.empty()
            return

        visitor.enter(ops[0])
        frames: list[list] = [[ops[0], 0]]
        position = 1
        while frames:
            frame = frames[-1]
            sym, started = frame
            if started < sym.children():
                if started > 0:
                    visitor.between(sym, started - 1)
                if position >= len(ops):
                    raise ValueError(f"{sym.kind.name} is missing operands")
                child = ops[position]
                position += 1
                frame[1] += 1
                visitor.enter(child)
                frames.append([child, 0])
            else:
                visitor.exit(sym)
                frames.pop()

    @staticmethod
    def address() -> Expr:
        """``address`` (0x30)."""
        return _leaf(SymKind.ADDRESS)

    @staticmethod
    def origin() -> Expr:
        """``origin`` (0x32)."""
        return _leaf(SymKind.ORIGIN)

    @staticmethod
    def caller() -> Expr:
        """``caller`` (0x33)."""
        return _leaf(SymKind.CALLER)

    @staticmethod
    def call_value() -> Expr:
        """``callvalue`` (0x34)."""
        return _leaf(SymKind.CALLVALUE)

    @staticmethod
    def call_data_size() -> Expr:
        """``calldatasize`` (0x36)."""
        return _leaf(SymKind.CALLDATASIZE)

    @staticmethod
    def code_size() -> Expr:
        """``codesize`` (0x38)."""
        return _leaf(SymKind.CODESIZE)

    @staticmethod
    def gas_price() -> Expr:
        """``gasprice`` (0x3a)."""
        return _leaf(SymKind.GASPRICE)

    @staticmethod
    def return_data_size() -> Expr:
        """``returndatasize`` (0x3d)."""
        return _leaf(SymKind.RETURNDATASIZE)

    @staticmethod
    def coinbase() -> Expr:
        """``coinbase`` (0x41)."""
        return _leaf(SymKind.COINBASE)

    @staticmethod
    def timestamp() -> Expr:
        """``timestamp`` (0x42)."""
        return _leaf(SymKind.TIMESTAMP)

    @staticmethod
    def number() -> Expr:
        """``number`` (0x43)."""
        return _leaf(SymKind.NUMBER)

    @staticmethod
    def difficulty() -> Expr:
        """``difficulty`` (0x44)."""
        return _leaf(SymKind.DIFFICULTY)

    @staticmethod
    def gas_limit() -> Expr:
        """``gaslimit`` (0x45)."""
        return _leaf(SymKind.GASLIMIT)

    @staticmethod
    def chain_id() -> Expr:
        """``chainid`` (0x46)."""
        return _leaf(SymKind.CHAINID)

    @staticmethod
    def self_balance() -> Expr:
        """``selfbalance`` (0x47)."""
        return _leaf(SymKind.SELFBALANCE)

    @staticmethod
    def base_fee() -> Expr:
        """``basefee`` (0x48)."""
        return _leaf(SymKind.BASEFEE)

    @staticmethod
    def pc(offset: int) -> Expr:
        """``pc`` (0x58) at the given offset."""
        return _leaf(SymKind.GETPC, offset)

    @staticmethod
    def m_size() -> Expr:
        """``msize`` (0x59)."""
        return _leaf(SymKind.MSIZE)

    @staticmethod
    def gas() -> Expr:
        """``gas`` (0x5a)."""
        return _leaf(SymKind.GAS)

    @staticmethod
    def create(value: Expr, offset: Expr, length: Expr) -> Expr:
        """``create`` (0xf0)."""
        return Expr._concat(SymKind.CREATE, value, offset, length)

    @staticmethod
    def create2(value: Expr, offset: Expr, length: Expr, salt: Expr) -> Expr:
        """``create2`` (0xf5)."""
        return Expr._concat(SymKind.CREATE2, value, offset, length, salt)

    @staticmethod
    def call_code(gas, addr, value, args_offset, args_len, ret_offset, ret_len) -> Expr:
        """``callcode`` (0xf2)."""
        return Expr._concat(
            SymKind.CALLCODE, gas, addr, value, args_offset, args_len, ret_offset, ret_len
        )

    @staticmethod
    def call(gas, addr, value, args_offset, args_len, ret_offset, ret_len) -> Expr:
        """``call`` (0xf1)."""
        return Expr._concat(
            SymKind.CALL, gas, addr, value, args_offset, args_len, ret_offset, ret_len
        )

    @staticmethod
    def static_call(gas, addr, args_offset, args_len, ret_offset, ret_len) -> Expr:
        """``staticcall`` (0xfa)."""
        return Expr._concat(
            SymKind.STATICCALL, gas, addr, args_offset, args_len, ret_offset, ret_len
        )

    @staticmethod
    def delegate_call(gas, addr, args_offset, args_len, ret_offset, ret_len) -> Expr:
        """``delegatecall`` (0xf4)."""
        return Expr._concat(
            SymKind.DELEGATECALL, gas, addr, args_offset, args_len, ret_offset, ret_len
        )

    @staticmethod
    def keccak256(offset: Expr, length: Expr) -> Expr:
        """``keccak256`` (0x20)."""
        return Expr._concat(SymKind.KECCAK256, offset, length)

    def add(self, rhs: Expr) -> Expr:
        """``add`` (0x01)."""
        return self._concat(SymKind.ADD, self, rhs)

    def sub(self, rhs: Expr) -> Expr:
        """``sub`` (0x03)."""
        return self._concat(SymKind.SUB, self, rhs)

    def mul(self, rhs: Expr) -> Expr:
        """``mul`` (0x02)."""
        return self._concat(SymKind.MUL, self, rhs)

    def div(self, rhs: Expr) -> Expr:
        """``div`` (0x04)."""
        return self._concat(SymKind.DIV, self, rhs)

    def s_div(self, rhs: Expr) -> Expr:
        """``sdiv`` (0x05)."""
        return self._concat(SymKind.SDIV, self, rhs)

    def modulo(self, rhs: Expr) -> Expr:
        """``mod`` (0x06)."""
        return self._concat(SymKind.MOD, self, rhs)

    def s_modulo(self, rhs: Expr) -> Expr:
        """``smod`` (0x07)."""
        return self._concat(SymKind.SMOD, self, rhs)

    def add_mod(self, add: Expr, modulo: Expr) -> Expr:
        """``addmod`` (0x08)."""
        return self._concat(SymKind.ADDMOD, self, add, modulo)

    def mul_mod(self, mul: Expr, modulo: Expr) -> Expr:
        """``mulmod`` (0x09)."""
        return self._concat(SymKind.MULMOD, self, mul, modulo)

    def exp(self, rhs: Expr) -> Expr:
        """``exp`` (0x0a)."""
        return self._concat(SymKind.EXP, self, rhs)

    def lt(self, rhs: Expr) -> Expr:
        """``lt`` (0x10)."""
        return self._concat(SymKind.LT, self, rhs)

    def gt(self, rhs: Expr) -> Expr:
        """``gt`` (0x11)."""
        return self._concat(SymKind.GT, self, rhs)

    def s_lt(self, rhs: Expr) -> Expr:
        """``slt`` (0x12)."""
        return self._concat(SymKind.SLT, self, rhs)

    def s_gt(self, rhs: Expr) -> Expr:
        """``sgt`` (0x13)."""
        return self._concat(SymKind.SGT, self, rhs)

    def is_eq(self, rhs: Expr) -> Expr:
        """``eq`` (0x14)."""
        return self._concat(SymKind.EQ, self, rhs)

    def and_(self, rhs: Expr) -> Expr:
        """``and`` (0x16)."""
        return self._concat(SymKind.AND, self, rhs)

    def or_(self, rhs: Expr) -> Expr:
        """``or`` (0x17)."""
        return self._concat(SymKind.OR, self, rhs)

    def xor(self, rhs: Expr) -> Expr:
        """``xor`` (0x18)."""
        return self._concat(SymKind.XOR, self, rhs)

    def byte(self, value: Expr) -> Expr:
        """``byte`` (0x1a)."""
        return self._concat(SymKind.BYTE, self, value)

    def shl(self, rhs: Expr) -> Expr:
        """``shl`` (0x1b)."""
        return self._concat(SymKind.SHL, self, rhs)

    def shr(self, value: Expr) -> Expr:
        """``shr`` (0x1c)."""
        return self._concat(SymKind.SHR, self, value)

    def sar(self, rhs: Expr) -> Expr:
        """``sar`` (0x1d)."""
        return self._concat(SymKind.SAR, self, rhs)

    def sign_extend(self, b: Expr) -> Expr:
        """``signextend`` (0x0b)."""
        return self._concat(SymKind.SIGNEXTEND, self, b)

    def is_zero(self) -> Expr:
        """``iszero`` (0x15)."""
        return self._concat(SymKind.ISZERO, self)

    def not_(self) -> Expr:
        """``not`` (0x19)."""
        return self._concat(SymKind.NOT, self)

    def block_hash(self) -> Expr:
        """``blockhash`` (0x40)."""
        return self._concat(SymKind.BLOCKHASH, self)

    def balance(self) -> Expr:
        """``balance`` (0x31)."""
        return self._concat(SymKind.BALANCE, self)

    def call_data_load(self) -> Expr:
        """``calldataload`` (0x35)."""
        return self._concat(SymKind.CALLDATALOAD, self)

    def ext_code_size(self) -> Expr:
        """``extcodesize`` (0x3b)."""
        return self._concat(SymKind.EXTCODESIZE, self)

    def ext_code_hash(self) -> Expr:
        """``extcodehash`` (0x3f)."""
        return self._concat(SymKind.EXTCODEHASH, self)

    def m_load(self) -> Expr:
        """``mload`` (0x51)."""
        return self._concat(SymKind.MLOAD, self)

    def s_load(self) -> Expr:
        """``sload`` (0x54)."""
        return self._concat(SymKind.SLOAD, self)