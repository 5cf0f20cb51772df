import pytest

from evmdasm.annotated import (
    AnnotatedBlock,
    Branch,
    FallThrough,
    Terminate,
    Unconditional,
)
from evmdasm.basic import BasicBlock
from evmdasm.expr import Expr
from evmdasm.ops import Opcode
from evmdasm.sym import Var


def op(name):
    return Opcode.from_mnemonic(name)


def var(n):
    return Expr.from_var(Var(n))


def annotate(*ops):
    return AnnotatedBlock.annotate(BasicBlock(0x1234, list(ops)))


def test_annotate_stop():
    block = annotate(op("stop"))
    assert block.exit == Terminate()
    assert block.inputs.stack == []
    assert block.outputs.stack == []


@pytest.mark.parametrize(
    "name, build",
    [("add", Expr.add), ("mul", Expr.mul), ("sub", Expr.sub)],
)
def test_annotate_binary(name, build):
    block = annotate(op(name))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1), Var(2)]
    assert block.outputs.stack == [build(var(1), var(2))]


def test_annotate_swap1():
    block = annotate(op("swap1"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1), Var(2)]
    assert block.outputs.stack == [var(2), var(1)]


def test_annotate_swap2():
    block = annotate(op("swap2"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1), Var(2), Var(3)]
    assert block.outputs.stack == [var(3), var(2), var(1)]


def test_annotate_swap3():
    block = annotate(op("swap3"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(n) for n in range(1, 5)]
    assert block.outputs.stack == [var(4), var(2), var(3), var(1)]


def test_annotate_dup1():
    block = annotate(op("dup1"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1)]
    assert block.outputs.stack == [var(1), var(1)]


def test_annotate_dup2():
    block = annotate(op("dup2"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1), Var(2)]
    assert block.outputs.stack == [var(2), var(1), var(2)]


def test_annotate_dup3():
    block = annotate(op("dup3"))
    assert block.exit == FallThrough(0x1235)
    assert block.inputs.stack == [Var(1), Var(2), Var(3)]
    assert block.outputs.stack == [var(3), var(1), var(2), var(3)]


def test_annotate_push1():
    block = annotate(Opcode.push(bytes([77])))
    assert block.exit == FallThrough(0x1236)
    assert block.inputs.stack == []
    assert block.outputs.stack == [Expr.constant(bytes([77]))]


def test_annotate_push2():
    block = annotate(Opcode.push(bytes([0x12, 0x34])))
    assert block.exit == FallThrough(0x1237)
    assert block.inputs.stack == []
    assert block.outputs.stack == [Expr.constant(bytes(30) + bytes([0x12, 0x34]))]


def test_annotate_jump():
    block = annotate(
        Opcode.push(bytes([0xBB])),
        Opcode.push(bytes([0xAA])),
        op("jump"),
    )
    assert block.exit == Unconditional(Expr.constant(bytes([0xAA])))
    assert block.inputs.stack == []
    assert block.outputs.stack == [Expr.constant(bytes([0xBB]))]


def test_annotate_jumpi():
    block = annotate(
        Opcode.push(bytes([0x01])),
        Opcode.push(bytes([0x10])),
        op("jumpi"),
    )
    assert block.exit == Branch(
        condition=Expr.constant(bytes([0x01])),
        when_true=Expr.constant(bytes([0x10])),
        when_false=0x1239,
    )
    assert block.exit.fall_through() == 0x1239
    assert block.outputs.stack == []


def test_annotate_return_pops_inputs():
    block = annotate(op("return"))
    assert block.exit.is_terminate()
    assert block.inputs.stack == [Var(1), Var(2)]
    assert block.outputs.stack == []


def test_annotate_pc_uses_offset():
    block = annotate(op("jumpdest"), op("pc"))
    assert block.outputs.stack == [Expr.pc(0x1235)]
    assert block.jump_target is True
    assert block.size == 2
    assert block.offset == 0x1234


def test_annotate_not_jump_target():
    block = annotate(op("caller"))
    assert block.jump_target is False
    assert block.outputs.stack == [Expr.caller()]


def test_annotate_iszero_display():
    block = annotate(op("iszero"))
    assert [str(e) for e in block.outputs.stack] == ["(var1 = 0)"]


def test_annotate_mstore_discards():
    block = annotate(op("caller"), op("mstore"))
    assert block.inputs.stack == [Var(1)]
    assert block.outputs.stack == []


def test_annotate_call_operand_order():
    block = annotate(op("call"))
    assert block.inputs.stack == [Var(n) for n in range(1, 8)]
    assert block.outputs.stack == [Expr.call(*(var(n) for n in range(1, 8)))]


def test_annotate_invalid_terminates():
    block = annotate(Opcode(0x0C))
    assert block.exit == Terminate()


def test_annotate_empty_block_raises():
    with pytest.raises(ValueError):
        AnnotatedBlock.annotate(BasicBlock(0, []))


def test_annotate_exit_before_end_raises():
    with pytest.raises(ValueError):
        annotate(op("stop"), op("add"))


def test_exit_predicates():
    terminate = Terminate()
    fall = FallThrough(7)
    uncond = Unconditional(Expr.caller())
    branch = Branch(condition=Expr.caller(), when_true=Expr.origin(), when_false=9)

    assert [terminate.is_terminate(), fall.is_terminate()] == [True, False]
    assert [fall.is_fall_through(), branch.is_fall_through()] == [True, False]
    assert [uncond.is_unconditional(), terminate.is_unconditional()] == [True, False]
    assert [branch.is_branch(), uncond.is_branch()] == [True, False]
    assert [e.fall_through() for e in (terminate, fall, uncond, branch)] == [None, 7, None, 9]