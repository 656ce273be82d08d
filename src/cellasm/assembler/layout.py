"""
Memory Layout Pass
==================

First pass of the assembler: walks the parsed program once, binds every
label to an address and records what will fill each occupied memory cell.
Nothing is encoded here. Instructions and `.word` directives are only
referenced, so the code generator can encode them once the label table
is complete.

Address Rules
-------------
The cursor starts at PROGRAM_START and each line moves it as follows:

| Content         | Placement(s)              | Cursor              |
|-----------------|---------------------------|---------------------|
| instruction     | one LINE                  | +1                  |
| `.word X`       | one LINE                  | +1                  |
| `.space N`      | N RESERVED                | +N                  |
| `.string "..."` | one CHAR per character    | +len(decoded)       |
| `.addr N`       | none                      | set to N            |
| labels only     | none                      | unchanged           |

Labels take the cursor value before the line's content, i.e. the address
of the next cell emitted. Forward references need no special handling
because this pass only records definitions.

`.addr` may move the cursor backwards. A later placement on an address
that is already occupied replaces the earlier one in the memory map; the
pass does not treat this as an error and leaves overlap policy to later
stages.

Example
-------
>>> from cellasm.assembler.parser import parse_source
>>> from cellasm.assembler.layout import layout_memory
>>> layout = layout_memory(parse_source('''
... first:  .space 10
... second: .space 5
... main:   jmp main
... '''))
>>> layout.labels
{'first': 1000, 'second': 1010, 'main': 1015}
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, TypeVar

from cellasm.constants import PROGRAM_START
from cellasm.errors import (
    AssemblerError,
    ArgumentParseError,
    DuplicateLabelError,
    SourceLocation,
    UnsupportedDirectiveError,
)
from cellasm.assembler.expressions import parse_const_expression
from cellasm.assembler.literals import parse_string_literal
from cellasm.assembler.parser import Directive, Instruction, Line

logger = logging.getLogger(__name__)

T = TypeVar("T")
ArgumentReader = Callable[[str, Optional[SourceLocation], Optional[str]], T]


# =============================================================================
# Directive Kinds
# =============================================================================

class DirectiveKind(Enum):
    """Directives understood by the layout pass."""
    WORD = "word"        # one deferred cell
    SPACE = "space"      # N reserved cells
    ADDR = "addr"        # move the cursor
    STRING = "string"    # one cell per character

    @classmethod
    def from_name(cls, name: str) -> Optional["DirectiveKind"]:
        """
        Look up a directive by name (without the dot).

        Returns None for names outside the recognized set. Matching is
        case-sensitive: `.WORD` is not `.word`.
        """
        try:
            return cls(name)
        except ValueError:
            return None


# =============================================================================
# Placements
# =============================================================================

class PlacementKind(Enum):
    """What occupies a memory cell after layout."""
    RESERVED = auto()    # uninitialized cell from .space
    CHAR = auto()        # one character from .string
    LINE = auto()        # instruction or .word, encoded later


@dataclass(frozen=True)
class Placement:
    """
    Content classification of one memory cell.

    Attributes:
        kind: The PlacementKind
        char: The character, for CHAR placements
        line_index: Index into the program sequence, for LINE placements
    """
    kind: PlacementKind
    char: Optional[str] = None
    line_index: Optional[int] = None

    @classmethod
    def reserved(cls) -> "Placement":
        return cls(PlacementKind.RESERVED)

    @classmethod
    def character(cls, char: str) -> "Placement":
        return cls(PlacementKind.CHAR, char=char)

    @classmethod
    def line(cls, index: int) -> "Placement":
        return cls(PlacementKind.LINE, line_index=index)


# =============================================================================
# Layout Result
# =============================================================================

@dataclass
class Layout:
    """
    Result of the layout pass.

    Attributes:
        labels: Label name -> address
        memory: Address -> Placement for every occupied cell
        program: The line sequence LINE placements index into
        start: Initial cursor value
        end: Cursor value after the last line
    """
    labels: dict[str, int] = field(default_factory=dict)
    memory: dict[int, Placement] = field(default_factory=dict)
    program: Sequence[Line] = ()
    start: int = PROGRAM_START
    end: int = PROGRAM_START

    def line_at(self, address: int) -> Optional[Line]:
        """Source line behind a LINE placement, None for other cells."""
        placement = self.memory.get(address)
        if placement is None or placement.kind != PlacementKind.LINE:
            return None
        return self.program[placement.line_index]

    def addresses(self) -> list[int]:
        """Occupied addresses in ascending order."""
        return sorted(self.memory)


# =============================================================================
# Layout Builder
# =============================================================================

class LayoutBuilder:
    """
    Walks a program once, threading the address cursor.

    A builder is single-use; `layout_memory()` is the usual entry point.
    """

    def __init__(self, program: Sequence[Line], start: int = PROGRAM_START):
        self._program = program
        self._cursor = start
        self._layout = Layout(program=program, start=start, end=start)
        self._label_sites: dict[str, Optional[SourceLocation]] = {}

    def build(self) -> Layout:
        """
        Run the pass.

        Returns:
            The completed Layout

        Raises:
            DuplicateLabelError: If a label is bound twice
            UnsupportedDirectiveError: If a directive name is not recognized
            ArgumentParseError: If a directive argument is rejected
        """
        for index, line in enumerate(self._program):
            self._bind_labels(line)
            if line.content is not None:
                self._place(index, line)

        self._layout.end = self._cursor
        logger.debug(
            "layout complete: %d labels, %d cells, cursor %d -> %d",
            len(self._layout.labels), len(self._layout.memory),
            self._layout.start, self._cursor,
        )
        return self._layout

    # =========================================================================
    # Labels
    # =========================================================================

    def _bind_labels(self, line: Line) -> None:
        labels = self._layout.labels

        for i, label in enumerate(line.labels):
            location = line.label_location(i)
            if label in labels:
                raise DuplicateLabelError(
                    label,
                    location=location,
                    original_location=self._label_sites.get(label),
                    source_line=line.text or None,
                )

            labels[label] = self._cursor
            self._label_sites[label] = location
            logger.debug("label %s = %d", label, self._cursor)

    # =========================================================================
    # Content Placement
    # =========================================================================

    def _place(self, index: int, line: Line) -> None:
        content = line.content

        if isinstance(content, Instruction):
            self._emit(Placement.line(index))
            return

        kind = DirectiveKind.from_name(content.name)

        if kind is None:
            raise UnsupportedDirectiveError(
                content.name,
                location=content.location,
                source_line=line.text or None,
            )

        if kind == DirectiveKind.WORD:
            self._emit(Placement.line(index))

        elif kind == DirectiveKind.SPACE:
            size = self._read_argument(content, line, parse_const_expression)
            for _ in range(size):
                self._emit(Placement.reserved())

        elif kind == DirectiveKind.ADDR:
            address = self._read_argument(content, line, parse_const_expression)
            logger.debug(".addr moves cursor %d -> %d", self._cursor, address)
            self._cursor = address

        elif kind == DirectiveKind.STRING:
            literal = self._read_argument(content, line, parse_string_literal)
            for char in literal:
                self._emit(Placement.character(char))

    def _emit(self, placement: Placement) -> None:
        """Record a placement at the cursor and advance it by one cell."""
        memory = self._layout.memory
        if self._cursor in memory:
            logger.debug("address %d placed twice, keeping the later placement", self._cursor)
        memory[self._cursor] = placement
        self._cursor += 1

    @staticmethod
    def _read_argument(directive: Directive, line: Line, reader: ArgumentReader[T]) -> T:
        """Run an argument reader, turning its failures into ArgumentParseError."""
        try:
            return reader(
                directive.argument,
                directive.argument_location,
                line.text or None,
            )
        except AssemblerError as e:
            raise ArgumentParseError(
                directive.name,
                directive.argument,
                reason=e,
                location=e.location or directive.location,
                source_line=line.text or None,
            ) from e


# =============================================================================
# Convenience Functions
# =============================================================================

def layout_memory(program: Sequence[Line], start: int = PROGRAM_START) -> Layout:
    """
    Lay out a parsed program in memory.

    Args:
        program: Lines in source order
        start: Initial address (defaults to PROGRAM_START)

    Returns:
        Layout with the label table and the memory map

    Raises:
        LayoutError: On the first duplicate label, unsupported directive
                     or malformed directive argument
    """
    return LayoutBuilder(program, start).build()
