"""
Assembler Front End
===================

Parsing and memory layout for the cell-addressed teaching machine.

Main Components
---------------
- **Assembler**: Driver that parses source, lays it out and renders results
- **Parser**: Turns source text into Line records
- **layout_memory**: The layout pass (labels -> addresses, cells -> placements)
- **parse_const_expression**: Constant evaluator for directive arguments
- **parse_string_literal**: Decoder for `.string` arguments

Assembly Process
----------------
1. **Parsing**: each source line becomes a Line with its labels and at most
   one instruction or directive; directive arguments stay raw text.
2. **Layout**: a single forward pass binds labels to addresses and records,
   per address, a reserved cell, a character, or a reference to the line
   to be encoded later.

Encoding instructions into machine words is left to a later pass that
consumes the label table and memory map produced here.
"""

from cellasm.assembler.assembler import Assembler, layout_file, layout_source
from cellasm.assembler.expressions import ExpressionEvaluator, parse_const_expression
from cellasm.assembler.layout import (
    DirectiveKind,
    Layout,
    LayoutBuilder,
    Placement,
    PlacementKind,
    layout_memory,
)
from cellasm.assembler.lexer import Lexer, Token, TokenType
from cellasm.assembler.literals import parse_string_literal
from cellasm.assembler.parser import Directive, Instruction, Line, Parser, parse_source

__all__ = [
    # Driver
    "Assembler",
    "layout_source",
    "layout_file",
    # Parser
    "Parser",
    "parse_source",
    "Line",
    "Instruction",
    "Directive",
    # Layout
    "layout_memory",
    "LayoutBuilder",
    "Layout",
    "Placement",
    "PlacementKind",
    "DirectiveKind",
    # Argument readers
    "Lexer",
    "Token",
    "TokenType",
    "ExpressionEvaluator",
    "parse_const_expression",
    "parse_string_literal",
]
