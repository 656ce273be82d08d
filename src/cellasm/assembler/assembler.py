"""
Assembler Driver
================

This module provides the Assembler class, the front door to the toolchain.
It runs the parser and the memory layout pass and renders their results as
a symbol table and a memory map.

Example Usage
-------------
>>> from cellasm.assembler import Assembler
>>> asm = Assembler()
>>> layout = asm.assemble_string('''
... main:   add %a, %b
... loop:   jmp loop
... ''')
>>> asm.get_labels()
{'main': 1000, 'loop': 1001}
>>> print(asm.get_symbol_table())
# Symbol table
# Generated by cellasm
main 1000
loop 1001

Command-Line Usage
------------------
    $ cellasm prog.s -s prog.sym -m prog.map
"""

import logging
from pathlib import Path
from typing import Optional

from cellasm.constants import PROGRAM_START
from cellasm.errors import AssemblerError
from cellasm.assembler.layout import Layout, PlacementKind, layout_memory
from cellasm.assembler.parser import Directive, Instruction, Line, parse_source

logger = logging.getLogger(__name__)


class Assembler:
    """
    Parses source and lays it out in memory.

    Attributes:
        origin: Address the layout cursor starts at
        verbose: If True, log progress at INFO instead of DEBUG
    """

    def __init__(self, origin: int = PROGRAM_START, verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            origin: Initial layout address (default PROGRAM_START)
            verbose: Report progress at INFO level
        """
        self._origin = origin
        self._verbose = verbose
        self._layout: Optional[Layout] = None
        self._filename = "<input>"

    def _log(self, message: str, *args) -> None:
        logger.log(logging.INFO if self._verbose else logging.DEBUG, message, *args)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> Layout:
        """
        Parse and lay out source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The resulting Layout

        Raises:
            AssemblerError: If parsing or layout fails
        """
        self._filename = filename
        self._layout = None

        program = parse_source(source, filename)
        self._log("Parsed %d lines from %s", len(program), filename)

        layout = layout_memory(program, self._origin)
        self._log(
            "Placed %d labels and %d cells (%d..%d)",
            len(layout.labels), len(layout.memory), layout.start, layout.end,
        )

        self._layout = layout
        return layout

    def assemble_file(self, filepath: str | Path) -> Layout:
        """
        Parse and lay out a source file.

        Raises:
            AssemblerError: If parsing or layout fails
            FileNotFoundError: If the source file does not exist
        """
        filepath = Path(filepath)
        self._log("Assembling %s...", filepath)
        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Results
    # =========================================================================

    def get_layout(self) -> Layout:
        """Return the layout of the last successful assembly."""
        if self._layout is None:
            raise AssemblerError("nothing has been assembled yet")
        return self._layout

    def get_labels(self) -> dict[str, int]:
        """Return the label table (name -> address)."""
        return dict(self.get_layout().labels)

    def get_origin(self) -> int:
        return self._origin

    def get_symbol_table(self) -> str:
        """
        Render the label table.

        Format: `name address` per line, sorted by address then name.
        """
        labels = self.get_labels()
        lines = ["# Symbol table", "# Generated by cellasm"]
        for name, address in sorted(labels.items(), key=lambda item: (item[1], item[0])):
            lines.append(f"{name} {address}")
        return "\n".join(lines)

    def get_memory_map(self) -> str:
        """
        Render the memory map, one row per occupied address.

        Example:
            Memory Map
            ============================================================
             Addr  Kind      Content
            ------------------------------------------------------------
             1000  line      add %a, %b                     ; prog.s:1
             1001  char      'h'
             1002  reserved
        """
        layout = self.get_layout()
        addresses_by_label: dict[int, list[str]] = {}
        for name, address in layout.labels.items():
            addresses_by_label.setdefault(address, []).append(name)

        lines = [
            "Memory Map",
            "=" * 60,
            " Addr  Kind      Content",
            "-" * 60,
        ]

        for address in layout.addresses():
            for name in addresses_by_label.get(address, ()):
                lines.append(f"{name}:")

            placement = layout.memory[address]
            if placement.kind == PlacementKind.LINE:
                line = layout.line_at(address)
                content = _describe_line(line)
                if line.location is not None:
                    content = f"{content:30s} ; {line.location.filename}:{line.location.line}"
                lines.append(f"{address:5d}  line      {content}")
            elif placement.kind == PlacementKind.CHAR:
                lines.append(f"{address:5d}  char      {placement.char!r}")
            else:
                lines.append(f"{address:5d}  reserved")

        lines.append("-" * 60)
        lines.append(f"{len(layout.memory)} cells, {len(layout.labels)} labels")
        return "\n".join(lines)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol table file."""
        Path(filepath).write_text(self.get_symbol_table() + "\n", encoding="utf-8")
        self._log("Wrote symbols to %s", filepath)

    def write_map(self, filepath: str | Path) -> None:
        """Write the memory map file."""
        Path(filepath).write_text(self.get_memory_map() + "\n", encoding="utf-8")
        self._log("Wrote memory map to %s", filepath)


def _describe_line(line: Line) -> str:
    content = line.content
    if isinstance(content, Instruction):
        if content.operands:
            return f"{content.opcode} {', '.join(content.operands)}"
        return content.opcode
    if isinstance(content, Directive):
        return f".{content.name} {content.argument}".rstrip()
    return ""


# =============================================================================
# Convenience Functions
# =============================================================================

def layout_source(
    source: str,
    filename: str = "<input>",
    origin: int = PROGRAM_START,
) -> Layout:
    """
    Convenience function to lay out source code.

    Raises:
        AssemblerError: If parsing or layout fails
    """
    return Assembler(origin=origin).assemble_string(source, filename)


def layout_file(filepath: str | Path, origin: int = PROGRAM_START) -> Layout:
    """
    Convenience function to lay out a source file.

    Raises:
        AssemblerError: If parsing or layout fails
    """
    return Assembler(origin=origin).assemble_file(filepath)
