[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evmdasm"
version = "0.1.0"
description = "EVM bytecode disassembly into basic blocks and symbolic stack expressions"
requires-python = ">=3.10"
dependencies = []
keywords = ["evm", "ethereum", "disassembler", "bytecode", "basic-blocks", "symbolic-execution"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evmdasm"]

[tool.pytest.ini_options]
addopts = "-ra"
