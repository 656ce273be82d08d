"""
cellasm Command-Line Interface
==============================

- **cellasm**: lay out an assembly program and write its symbol table
  and memory map

The tool is a Click application with built-in help and unified error
reporting (see `cellasm.cli.errors`).
"""

__all__ = ["cellasm"]
