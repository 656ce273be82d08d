"""
cellasm - Assembler Front End for a Cell-Addressed Teaching Machine
===================================================================

The target machine addresses memory in whole cells: an instruction, a data
word, a reserved slot and one character of a string each take exactly one
address. Programs are loaded at address 1000 unless `.addr` says otherwise.

This package parses assembly source and computes its memory layout: the
address of every label and the content class of every occupied cell. The
result feeds the instruction encoder.

Quick Start
-----------
    >>> from cellasm import layout_source
    >>> layout = layout_source('''
    ... main:  add %a, %b
    ... msg:   .string "hi"
    ... ''')
    >>> layout.labels
    {'main': 1000, 'msg': 1001}

Or from the command line:
    $ cellasm prog.s -s prog.sym -m prog.map
"""

__version__ = "1.0.0"

from cellasm.assembler import (
    Assembler,
    Layout,
    Line,
    Placement,
    PlacementKind,
    layout_file,
    layout_memory,
    layout_source,
    parse_source,
)
from cellasm.constants import MEMORY_SIZE, PROGRAM_START
from cellasm.errors import (
    CellAsmError,
    AssemblerError,
    AssemblySyntaxError,
    ExpressionError,
    LayoutError,
    DuplicateLabelError,
    UnsupportedDirectiveError,
    ArgumentParseError,
    SourceLocation,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "layout_source",
    "layout_file",
    "layout_memory",
    "parse_source",
    "Layout",
    "Line",
    "Placement",
    "PlacementKind",
    # Constants
    "MEMORY_SIZE",
    "PROGRAM_START",
    # Exception hierarchy
    "CellAsmError",
    "AssemblerError",
    "AssemblySyntaxError",
    "ExpressionError",
    "LayoutError",
    "DuplicateLabelError",
    "UnsupportedDirectiveError",
    "ArgumentParseError",
    "SourceLocation",
]
