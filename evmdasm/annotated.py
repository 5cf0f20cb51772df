"""Blocks of EVM instructions described as expressions over their inputs."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional

from .basic import BasicBlock
from .expr import Expr
from .ops import Opcode
from .sym import Var

__all__ = [
    "Exit",
    "Terminate",
    "FallThrough",
    "Unconditional",
    "Branch",
    "Inputs",
    "Outputs",
    "AnnotatedBlock",
]


class Exit:
    """How execution continues after the last instruction of a block."""

    def fall_through(self) -> Optional[int]:
        """Offset of the block executed when falling through, if there is one."""
        return None

    def is_fall_through(self) -> bool:
        """Whether this is a :class:`FallThrough`."""
        return isinstance(self, FallThrough)

    def is_terminate(self) -> bool:
        """Whether this is a :class:`Terminate`."""
        return isinstance(self, Terminate)

    def is_unconditional(self) -> bool:
        """Whether this is an :class:`Unconditional`."""
        return isinstance(self, Unconditional)

    def is_branch(self) -> bool:
        """Whether this is a :class:`Branch`."""
        return isinstance(self, Branch)


@dataclass(frozen=True)
class Terminate(Exit):
    """Unconditional halt: ``stop``, ``return``, ``revert`` and the like."""


@dataclass(frozen=True)
class FallThrough(Exit):
    """Unconditionally continue to the following block at ``offset``."""

    offset: int

    def fall_through(self) -> Optional[int]:
        return self.offset


@dataclass(frozen=True)
class Unconditional(Exit):
    """Unconditionally jump to ``target``."""

    target: Expr


@dataclass(frozen=True)
class Branch(Exit):
    """Jump to ``when_true`` if ``condition`` holds, else fall through."""

    condition: Expr
    when_true: Expr
    when_false: int

    def fall_through(self) -> Optional[int]:
        return self.when_false


@dataclass
class Inputs:
    """Values a block reads: the variables required on the stack at entry."""

    stack: list[Var] = field(default_factory=list)


@dataclass
class Outputs:
    """Values a block leaves behind: the stack at exit, top first."""

    stack: list[Expr] = field(default_factory=list)


_COMPUTED: dict[int, Callable[..., Expr]] = {
    0x01: Expr.add,
    0x02: Expr.mul,
    0x03: Expr.sub,
    0x04: Expr.div,
    0x05: Expr.s_div,
    0x06: Expr.modulo,
    0x07: Expr.s_modulo,
    0x08: Expr.add_mod,
    0x09: Expr.mul_mod,
    0x0A: Expr.exp,
    0x0B: Expr.sign_extend,
    0x10: Expr.lt,
    0x11: Expr.gt,
    0x12: Expr.s_lt,
    0x13: Expr.s_gt,
    0x14: Expr.is_eq,
    0x15: Expr.is_zero,
    0x16: Expr.and_,
    0x17: Expr.or_,
    0x18: Expr.xor,
    0x19: Expr.not_,
    0x1A: Expr.byte,
    0x1B: Expr.shl,
    0x1C: Expr.shr,
    0x1D: Expr.sar,
    0x20: Expr.keccak256,
    0x30: Expr.address,
    0x31: Expr.balance,
    0x32: Expr.origin,
    0x33: Expr.caller,
    0x34: Expr.call_value,
    0x35: Expr.call_data_load,
    0x36: Expr.call_data_size,
    0x38: Expr.code_size,
    0x3A: Expr.gas_price,
    0x3B: Expr.ext_code_size,
    0x3D: Expr.return_data_size,
    0x3F: Expr.ext_code_hash,
    0x40: Expr.block_hash,
    0x41: Expr.coinbase,
    0x42: Expr.timestamp,
    0x43: Expr.number,
    0x44: Expr.difficulty,
    0x45: Expr.gas_limit,
    0x46: Expr.chain_id,
    0x47: Expr.self_balance,
    0x48: Expr.base_fee,
    0x51: Expr.m_load,
    0x54: Expr.s_load,
    0x59: Expr.m_size,
    0x5A: Expr.gas,
    0xF0: Expr.create,
    0xF1: Expr.call,
    0xF2: Expr.call_code,
    0xF4: Expr.delegate_call,
    0xF5: Expr.create2,
    0xFA: Expr.static_call,
}

# Instructions whose effects on memory, storage or logs are not modelled:
# they only consume stack items.
_DISCARDING = frozenset({0x37, 0x39, 0x3C, 0x3E, 0x50, 0x52, 0x53, 0x55, *range(0xA0, 0xA5)})

_JUMP = 0x56
_JUMPI = 0x57
_GETPC = 0x58
_JUMPDEST = 0x5B
_PUSHES = range(0x60, 0x80)
_DUPS = range(0x80, 0x90)
_SWAPS = range(0x90, 0xA0)


class _Annotator:
    """Symbolically executes a basic block, recording the stack after each op."""

    def __init__(self, basic: BasicBlock) -> None:
        self.basic = basic
        self.vars = 0
        self.stacks: list[deque[Expr]] = [deque()]

    def new_var(self) -> Expr:
        self.vars += 1
        return Expr.from_var(Var(self.vars))

    def annotate(self) -> Exit:
        pc = self.basic.offset
        last_index = len(self.basic.ops) - 1
        for index, op in enumerate(self.basic.ops):
            self.stacks.append(deque(self.stacks[-1]))
            window = _StackWindow(self, op)
            exit_ = _annotate_one(pc, window, op)
            window.close()

            if exit_ is not None:
                if index != last_index:
                    raise ValueError(f"{op.mnemonic()} ends the block but is not its last op")
                matches = op.is_exit() if isinstance(exit_, Terminate) else op.is_jump()
                if not matches:
                    raise RuntimeError("bug: exit type doesn't match metadata")
                return exit_

            if op.is_exit():
                raise RuntimeError(f"bug: {op.mnemonic()} halts but produced no exit")
            pc += op.size()

        return FallThrough(pc)


class _StackWindow:
    """The stack as seen by one instruction, enforcing its pop/push counts."""

    def __init__(self, annotator: _Annotator, op: Opcode) -> None:
        self._annotator = annotator
        self._mnemonic = op.mnemonic()
        self._pops = op.pops()
        self._pushes = op.pushes()

    @property
    def _current(self) -> deque[Expr]:
        return self._annotator.stacks[-1]

    def _count_pops(self, count: int) -> None:
        if self._pops < count:
            raise RuntimeError(f"bug: {self._mnemonic} popped too many items")
        self._pops -= count

    def _count_pushes(self, count: int) -> None:
        if self._pops != 0:
            raise RuntimeError(f"bug: {self._mnemonic} pushed before popping everything")
        if self._pushes < count:
            raise RuntimeError(f"bug: {self._mnemonic} pushed too many items")
        self._pushes -= count

    def _expand(self, by: int) -> None:
        for _ in range(by):
            var = self._annotator.new_var()
            for stack in self._annotator.stacks:
                stack.append(var)

    def _ensure_depth(self, depth: int) -> None:
        missing = depth + 1 - len(self._current)
        if missing > 0:
            self._expand(missing)

    def pop(self) -> Expr:
        self._count_pops(1)
        self._ensure_depth(0)
        return self._current.popleft()

    def peek(self, depth: int) -> Expr:
        self._count_pops(depth + 1)
        self._count_pushes(depth + 1)
        self._ensure_depth(depth)
        return self._current[depth]

    def swap(self, depth: int) -> None:
        self._count_pops(depth + 1)
        self._count_pushes(depth + 1)
        self._ensure_depth(depth)
        stack = self._current
        stack[0], stack[depth] = stack[depth], stack[0]

    def push(self, expr: Expr) -> None:
        self._count_pushes(1)
        self._current.appendleft(expr)

    def close(self) -> None:
        if self._pops or self._pushes:
            raise RuntimeError(f"bug: {self._mnemonic} stack effect not fully applied")


def _annotate_one(pc: int, stack: _StackWindow, op: Opcode) -> Optional[Exit]:
    code = op.code

    build = _COMPUTED.get(code)
    if build is not None:
        args = [stack.pop() for _ in range(op.pops())]
        stack.push(build(*args))
        return None

    if code in _PUSHES:
        stack.push(Expr.constant(op.immediate))
    elif code in _DUPS:
        stack.push(stack.peek(code - _DUPS.start))
    elif code in _SWAPS:
        stack.swap(code - _SWAPS.start + 1)
    elif code == _GETPC:
        stack.push(Expr.pc(pc & 0xFFFF))
    elif code == _JUMPDEST:
        pass
    elif code in _DISCARDING:
        for _ in range(op.pops()):
            stack.pop()
    elif code == _JUMP:
        return Unconditional(stack.pop())
    elif code == _JUMPI:
        when_true = stack.pop()
        condition = stack.pop()
        return Branch(condition=condition, when_true=when_true, when_false=pc + 1)
    elif op.is_exit():
        for _ in range(op.pops()):
            stack.pop()
        return Terminate()
    else:
        raise RuntimeError(f"bug: unhandled instruction {op.mnemonic()}")
    return None


@dataclass
class AnnotatedBlock:
    """A basic block described as expressions applied to its inputs."""

    offset: int
    inputs: Inputs
    outputs: Outputs
    exit: Exit
    jump_target: bool
    size: int

    @classmethod
    def annotate(cls, basic: BasicBlock) -> AnnotatedBlock:
        """Symbolically execute ``basic``.

        Raises ValueError if the block is empty or continues after an exit.
        """
        if not basic.ops:
            raise ValueError("cannot annotate an empty block")

        annotator = _Annotator(basic)
        exit_ = annotator.annotate()

        input_vars = []
        for expr in annotator.stacks[0]:
            var = expr.as_var()
            if var is None:
                raise RuntimeError("bug: block input is not a variable")
            input_vars.append(var)

        return cls(
            offset=basic.offset,
            inputs=Inputs(stack=input_vars),
            outputs=Outputs(stack=list(annotator.stacks[-1])),
            exit=exit_,
            jump_target=basic.ops[0].is_jump_target(),
            size=basic.size(),
        )