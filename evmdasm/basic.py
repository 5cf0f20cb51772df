"""Basic blocks: instruction runs with a single entry and a single exit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .ops import Opcode, Offset

__all__ = ["BasicBlock", "Separator"]


@dataclass
class BasicBlock:
    """A list of instructions with a single point of entry and a single exit."""

    offset: int
    ops: list[Opcode] = field(default_factory=list)

    def size(self) -> int:
        """Total encoded length of the block's instructions."""
        return sum(op.size() for op in self.ops)


class Separator:
    """Split a stream of instructions into basic blocks."""

    def __init__(self) -> None:
        self._complete: list[BasicBlock] = []
        self._in_progress: Optional[BasicBlock] = None

    def push_all(self, items: Iterable[Offset[Opcode]]) -> bool:
        """Push every instruction; True if any block was completed."""
        available = False
        for item in items:
            if self.push(item):
                available = True
        return available

    def push(self, item: Offset[Opcode]) -> bool:
        """Push one instruction; True if it completed a block."""
        op = item.item
        if op.is_jump_target():
            completed = self._in_progress
            self._in_progress = BasicBlock(item.offset, [op])
            if completed is None:
                return False
            self._complete.append(completed)
            return True

        ends_block = op.is_jump() or op.is_exit()

        if self._in_progress is None:
            self._in_progress = BasicBlock(item.offset, [op])
        else:
            self._in_progress.ops.append(op)

        if ends_block:
            self._complete.append(self._in_progress)
            self._in_progress = None
            return True
        return False

    def take(self) -> list[BasicBlock]:
        """Remove and return all completed blocks."""
        blocks, self._complete = self._complete, []
        return blocks

    def finish(self) -> Optional[BasicBlock]:
        """Return the final, unterminated block once input is exhausted.

        Raises RuntimeError if completed blocks have not been taken.
        """
        if self._complete:
            raise RuntimeError("not all basic blocks have been taken")
        block, self._in_progress = self._in_progress, None
        return block