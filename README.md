# evmdasm

A library for taking EVM bytecode apart: decode it into instructions, split
the instructions into basic blocks, and describe each block symbolically as
expressions over the stack values it reads.

It has no dependencies beyond the standard library.

## Installation

    pip install evmdasm

## Decoding bytecode

`evmdasm.ops.disassemble` yields each instruction as an `Offset`, which pairs
an `Opcode` (`item`) with its byte position (`offset`):

```python
from evmdasm.ops import disassemble

for item in disassemble(bytes.fromhex("6003565b")):
    print(item.offset, item.item)
# 0 push1 0x03
# 2 jump
# 3 jumpdest
```

A push instruction whose immediate data runs past the end of the input raises
`ValueError`.

An `Opcode` holds the byte value (`code`) and the immediate data
(`immediate`). It can also be built with `Opcode.from_mnemonic("add")` or
`Opcode.push(b"\x12\x34")`, and reports its `mnemonic()`, `size()`,
`pops()`, `pushes()`, and whether it `is_jump()`, `is_jump_target()` or
`is_exit()`. Unassigned byte values are named `invalid_XX` (for example
`invalid_0c`) and, like `invalid` (`0xfe`), count as halting instructions.
`bytes(op)` gives the encoded instruction.

## Basic blocks

`evmdasm.basic.Separator` splits a stream of instructions into `BasicBlock`s.
A block ends after a jump or a halting instruction, and a new one starts at
every `jumpdest`:

```python
from evmdasm.basic import Separator
from evmdasm.ops import disassemble

separator = Separator()
separator.push_all(disassemble(bytes.fromhex("6003565b")))
blocks = separator.take()
last = separator.finish()
if last is not None:
    blocks.append(last)
```

`push` and `push_all` return `True` when a block has been completed.
`finish` raises `RuntimeError` if completed blocks are still waiting to be
taken. Each `BasicBlock` has an `offset`, a list of `ops`, and a `size()` in
bytes.

## Annotated blocks

`evmdasm.annotated.AnnotatedBlock.annotate` symbolically executes a basic
block and reports the stack values it reads, the stack it leaves behind (top
first), and how it exits:

```python
from evmdasm.annotated import AnnotatedBlock

block = AnnotatedBlock.annotate(blocks[0])
print([str(v) for v in block.inputs.stack])   # []
print([str(e) for e in block.outputs.stack])  # []
print(block.exit.is_unconditional())          # True
print(block.exit.target)                      # 0x00...03
```

The exit is one of `Terminate`, `FallThrough` (with the `offset` of the next
block), `Unconditional` (with a jump `target`) or `Branch` (with a
`condition`, a `when_true` target and a `when_false` offset). All of them
offer `fall_through()`, `is_fall_through()`, `is_terminate()`,
`is_unconditional()` and `is_branch()`. Annotating an empty block raises
`ValueError`.

Stack values the block reads without having pushed them become variables
`var1`, `var2`, … in the order they are first needed.

## Expressions

`evmdasm.expr.Expr` is an expression tree stored as `Sym` nodes in prefix
order. Expressions are built from leaves such as `Expr.caller()`,
`Expr.constant(data)` (left-padded to a 32-byte word) or
`Expr.from_var(var)`, and combined with methods such as `add`, `mul`,
`add_mod`, `is_zero` or `s_load`. They print in readable form:

```python
from evmdasm.expr import Expr
from evmdasm.sym import Var

expr = Expr.caller().add_mod(Expr.origin(), Expr.from_var(Var(1)))
print(expr)  # ((caller() + origin()) ﹪ var1)
```

Constants print as 64 hexadecimal digits. `Expr.walk` takes an
`evmdasm.sym.Visitor`, whose `empty`, `enter`, `between` and `exit` callbacks
are called as the tree is traversed; subclass it to examine expressions
yourself.

## What it does not do

- There is no command-line program; the package is used as a library.
- Annotation only tracks the stack. Memory, storage and log effects are not
  modelled: instructions such as `mstore`, `sstore`, `calldatacopy` and
  `log0`–`log4` simply consume their stack operands.
- Push immediates are not looked up as function selectors or otherwise
  interpreted.

## Modules

- `evmdasm.ops`: `Opcode`, `Offset` and `disassemble`.
- `evmdasm.sym`: `Var`, `SymKind`, `Sym` and `Visitor`.
- `evmdasm.expr`: `Expr`.
- `evmdasm.basic`: `BasicBlock` and `Separator`.
- `evmdasm.annotated`: `AnnotatedBlock`, `Inputs`, `Outputs`, `Exit` and the
  exit kinds `Terminate`, `FallThrough`, `Unconditional` and `Branch`.

## Development

    pip install -e ".[test]"
    pytest