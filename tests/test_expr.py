import pytest

from evmdasm.expr import Expr
from evmdasm.sym import Sym, SymKind, Var, Visitor


class _Recorder(Visitor):
    def __init__(self):
        self.events = []

    def empty(self):
        self.events.append(("empty",))

    def enter(self, sym):
        self.events.append(("enter", sym.kind))

    def between(self, sym, index):
        self.events.append(("between", sym.kind, index))

    def exit(self, sym):
        self.events.append(("exit", sym.kind))


def test_display_add_mod():
    expr = Expr(
        (
            Sym(SymKind.ADDMOD),
            Sym(SymKind.CALLER),
            Sym(SymKind.ORIGIN),
            Sym(SymKind.VAR, Var(1)),
        )
    )
    assert str(expr) == "((caller() + origin()) ﹪ var1)"


def test_display_call():
    expr = Expr(
        (
            Sym(SymKind.CALL),
            Sym(SymKind.GAS),
            Sym(SymKind.CALLER),
            Sym(SymKind.CALLVALUE),
            Sym(SymKind.SLOAD),
            Sym(SymKind.GETPC, 3),
            Sym(SymKind.MLOAD),
            Sym(SymKind.ORIGIN),
            Sym(SymKind.NUMBER),
            Sym(SymKind.TIMESTAMP),
        )
    )
    expected = (
        "call(gas(), caller(), callvalue(), sload(pc(3)), "
        "mload(origin()), number(), timestamp())"
    )
    assert str(expr) == expected


def test_display_add():
    expr = Expr(
        (
            Sym(SymKind.ADD),
            Sym(SymKind.CONST, bytes(32)),
            Sym(SymKind.CONST, b"\xff" * 32),
        )
    )
    expected = "(0x" + "00" * 32 + " + 0x" + "ff" * 32 + ")"
    assert str(expr) == expected


def test_builders_match_raw_ops():
    built = Expr.caller().add_mod(Expr.origin(), Expr.from_var(Var(1)))
    assert built.ops == (
        Sym(SymKind.ADDMOD),
        Sym(SymKind.CALLER),
        Sym(SymKind.ORIGIN),
        Sym(SymKind.VAR, Var(1)),
    )


def test_call_builder_display():
    expr = Expr.call(
        Expr.gas(),
        Expr.caller(),
        Expr.call_value(),
        Expr.pc(3).s_load(),
        Expr.origin().m_load(),
        Expr.number(),
        Expr.timestamp(),
    )
    assert str(expr) == (
        "call(gas(), caller(), callvalue(), sload(pc(3)), "
        "mload(origin()), number(), timestamp())"
    )


def test_is_zero_display():
    assert str(Expr.from_var(Var(2)).is_zero()) == "(var2 = 0)"


def test_not_and_calldata_display():
    assert str(Expr.from_var(Var(1)).not_()) == "~(var1)"
    assert str(Expr.from_var(Var(1)).call_data_load()) == "calldata(var1)"


def test_create2_display_uses_plain_parens():
    v = Expr.from_var
    expr = Expr.create2(v(Var(1)), v(Var(2)), v(Var(3)), v(Var(4)))
    assert str(expr) == "(var1, var2, var3, var4)"


def test_keccak_display():
    expr = Expr.keccak256(Expr.from_var(Var(1)), Expr.from_var(Var(2)))
    assert str(expr) == "keccak256(var1, var2)"


def test_empty_display():
    assert str(Expr()) == "{}"


def test_constant_is_left_padded():
    expr = Expr.constant(b"\x12\x34")
    assert expr.ops == (Sym(SymKind.CONST, bytes(30) + b"\x12\x34"),)


def test_constant_too_long():
    with pytest.raises(ValueError):
        Expr.constant(bytes(33))


def test_as_var():
    assert Expr.from_var(Var(5)).as_var() == Var(5)
    assert Expr.caller().as_var() is None
    assert Expr.from_var(Var(1)).add(Expr.from_var(Var(2))).as_var() is None


def test_walk_order():
    recorder = _Recorder()
    Expr.from_var(Var(1)).add(Expr.caller()).walk(recorder)
    assert recorder.events == [
        ("enter", SymKind.ADD),
        ("enter", SymKind.VAR),
        ("exit", SymKind.VAR),
        ("between", SymKind.ADD, 0),
        ("enter", SymKind.CALLER),
        ("exit", SymKind.CALLER),
        ("exit", SymKind.ADD),
    ]


def test_walk_empty():
    recorder = _Recorder()
    Expr().walk(recorder)
    assert recorder.events == [("empty",)]


def test_walk_missing_operand():
    expr = Expr((Sym(SymKind.ADD), Sym(SymKind.CALLER)))
    with pytest.raises(ValueError):
        expr.walk(_Recorder())


def test_equality_and_hash():
    a = Expr.from_var(Var(1)).sub(Expr.from_var(Var(2)))
    b = Expr.from_var(Var(1)).sub(Expr.from_var(Var(2)))
    assert a == b
    assert len({a, b}) == 1