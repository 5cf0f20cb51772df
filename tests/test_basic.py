import pytest

from evmdasm.basic import BasicBlock, Separator
from evmdasm.ops import Offset, Opcode, disassemble

JUMP = Opcode.from_mnemonic("jump")
JUMPDEST = Opcode.from_mnemonic("jumpdest")


def _push1(value):
    return Opcode.push(bytes([value]))


def test_three_pushes():
    ops = [
        Offset(0x00, _push1(5)),
        Offset(0x02, _push1(6)),
        Offset(0x04, _push1(7)),
    ]
    sep = Separator()
    assert sep.push_all(ops) is False
    assert sep.take() == []
    assert sep.finish() == BasicBlock(0x00, [_push1(5), _push1(6), _push1(7)])


def test_three_jumpdests():
    ops = [Offset(0x00, JUMPDEST), Offset(0x01, JUMPDEST), Offset(0x02, JUMPDEST)]
    sep = Separator()
    assert sep.push_all(ops) is True
    assert sep.take() == [BasicBlock(0x00, [JUMPDEST]), BasicBlock(0x01, [JUMPDEST])]
    assert sep.finish() == BasicBlock(0x02, [JUMPDEST])


def test_jumpdest_jump_jumpdest_jump():
    ops = [
        Offset(0x00, JUMPDEST),
        Offset(0x01, JUMP),
        Offset(0x02, JUMPDEST),
        Offset(0x03, JUMP),
    ]
    sep = Separator()
    assert sep.push_all(ops) is True
    assert sep.take() == [
        BasicBlock(0x00, [JUMPDEST, JUMP]),
        BasicBlock(0x02, [JUMPDEST, JUMP]),
    ]
    assert sep.finish() is None


def test_jump_jumpdest_jump_jumpdest():
    ops = [
        Offset(0x00, JUMP),
        Offset(0x01, JUMPDEST),
        Offset(0x02, JUMP),
        Offset(0x03, JUMPDEST),
    ]
    sep = Separator()
    assert sep.push_all(ops) is True
    assert sep.take() == [BasicBlock(0x00, [JUMP]), BasicBlock(0x01, [JUMPDEST, JUMP])]
    assert sep.finish() == BasicBlock(0x03, [JUMPDEST])


def test_three_jumps():
    ops = [Offset(0x00, JUMP), Offset(0x01, JUMP), Offset(0x02, JUMP)]
    sep = Separator()
    assert sep.push_all(ops) is True
    assert sep.take() == [
        BasicBlock(0x00, [JUMP]),
        BasicBlock(0x01, [JUMP]),
        BasicBlock(0x02, [JUMP]),
    ]
    assert sep.finish() is None


def test_finish_before_take_raises():
    sep = Separator()
    sep.push(Offset(0x00, JUMP))
    with pytest.raises(RuntimeError):
        sep.finish()


def test_exit_ends_block():
    sep = Separator()
    assert sep.push(Offset(0x00, _push1(1))) is False
    assert sep.push(Offset(0x02, Opcode.from_mnemonic("stop"))) is True
    assert sep.take() == [BasicBlock(0x00, [_push1(1), Opcode.from_mnemonic("stop")])]


def test_size():
    block = BasicBlock(0, [_push1(1), Opcode.push(b"\x12\x34"), JUMP])
    assert block.size() == 6


def test_from_disassembly():
    sep = Separator()
    sep.push_all(disassemble(bytes.fromhex("6003565b00")))
    blocks = sep.take()
    assert [b.offset for b in blocks] == [0, 3]
    assert [b.size() for b in blocks] == [3, 2]
    assert sep.finish() is None