"""Decode EVM bytecode, split it into basic blocks, and describe blocks symbolically."""

__version__ = "0.1.0"

__all__ = ["annotated", "basic", "expr", "ops", "sym"]