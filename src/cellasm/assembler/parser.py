"""
Assembly Source Parser
======================

This module turns assembly source text into the `Line` records consumed by
the memory layout pass. Parsing is line oriented: every physical line holds
any number of labels followed by at most one instruction or directive.

Line Grammar
------------
```asm
main:   add %a, %b          ; label + instruction
loop:                       ; label alone, binds to the next cell
a: b:   jmp loop            ; several labels on one line
msg:    .string "hello"     ; label + directive
        .space 4 * 8        ; directive, raw argument "4 * 8"
```

- `;` starts a comment, except inside a string or character literal.
- A label is an identifier followed by `:`.
- A directive is `.name` followed by its raw argument text. The argument is
  kept unparsed; the layout pass decides how to read it.
- Anything else is an instruction: an opcode followed by operands. Operands
  are split on top-level commas when there are any, otherwise on
  whitespace, so `add %a, %b` and `add %a %b` are equivalent. Brackets,
  parentheses and quotes keep their contents together.

Instructions are opaque at this stage: the opcode and operand strings are
stored as written and interpreted by later passes.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from cellasm.errors import AssemblySyntaxError, SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Line Data Classes
# =============================================================================

@dataclass
class Instruction:
    """
    Machine instruction, kept opaque.

    Attributes:
        opcode: The mnemonic as written
        operands: Operand strings as written, e.g. ["%a", "[%sp+1]"]
        location: Position of the opcode
    """
    opcode: str
    operands: list[str] = field(default_factory=list)
    location: Optional[SourceLocation] = None


@dataclass
class Directive:
    """
    Assembler directive with its raw argument.

    Attributes:
        name: Directive name without the leading dot ("space" for `.space`)
        argument: Unparsed argument text, stripped of surrounding whitespace
        location: Position of the leading dot
        argument_location: Position of the first argument character
    """
    name: str
    argument: str = ""
    location: Optional[SourceLocation] = None
    argument_location: Optional[SourceLocation] = None


Content = Union[Instruction, Directive]


@dataclass
class Line:
    """
    One source line: labels plus optional content.

    Attributes:
        labels: Label names in the order they appear
        content: Instruction or directive, None for a label-only line
        location: Position of the line (column 1)
        text: The physical source line, used in error messages
        label_locations: Position of each label, parallel to `labels`
    """
    labels: list[str] = field(default_factory=list)
    content: Optional[Content] = None
    location: Optional[SourceLocation] = None
    text: str = ""
    label_locations: list[SourceLocation] = field(default_factory=list)

    def label_location(self, index: int) -> Optional[SourceLocation]:
        """Location of the label at `index`, falling back to the line's."""
        if index < len(self.label_locations):
            return self.label_locations[index]
        return self.location


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses assembly source into Line records.

    Usage:
        parser = Parser(source, "prog.s")
        lines = parser.parse()
    """

    LABEL_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_.]*)\s*:")
    DIRECTIVE_RE = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)")
    OPCODE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")

    OPEN_BRACKETS = {"(": ")", "[": "]", "{": "}"}

    def __init__(self, source: str, filename: str = "<input>"):
        self._source = source
        self._filename = filename

    def parse(self) -> list[Line]:
        """
        Parse the whole source.

        Returns:
            One Line per physical line that carries a label or content

        Raises:
            AssemblySyntaxError: If a line is malformed
        """
        lines: list[Line] = []

        # only "\n" ends a line; other separators belong to the text
        for number, text in enumerate(self._source.split("\n"), start=1):
            line = self._parse_line(text.removesuffix("\r"), number)
            if line is not None:
                lines.append(line)

        logger.debug("parsed %d lines from %s", len(lines), self._filename)
        return lines

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _location(self, number: int, column: int) -> SourceLocation:
        return SourceLocation(self._filename, number, column)

    def _error(self, message: str, text: str, number: int, column: int) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message,
            self._location(number, column),
            source_line=text,
        )

    def _parse_line(self, text: str, number: int) -> Optional[Line]:
        code = text[:self._find_comment(text, number)].rstrip()

        labels: list[str] = []
        label_locations: list[SourceLocation] = []
        pos = self._skip_spaces(code, 0)

        while match := self.LABEL_RE.match(code, pos):
            labels.append(match.group(1))
            label_locations.append(self._location(number, pos + 1))
            pos = self._skip_spaces(code, match.end())

        content: Optional[Content] = None
        if pos < len(code):
            if code[pos] == ".":
                content = self._parse_directive(code, text, number, pos)
            else:
                content = self._parse_instruction(code, text, number, pos)

        if not labels and content is None:
            return None

        return Line(
            labels=labels,
            content=content,
            location=self._location(number, 1),
            text=text,
            label_locations=label_locations,
        )

    def _parse_directive(self, code: str, text: str, number: int, pos: int) -> Directive:
        match = self.DIRECTIVE_RE.match(code, pos)
        if match is None:
            raise self._error("expected directive name after '.'", text, number, pos + 1)

        end = match.end()
        if end < len(code) and not code[end].isspace():
            raise self._error(
                f"unexpected '{code[end]}' after directive name",
                text, number, end + 1,
            )

        arg_start = self._skip_spaces(code, end)
        return Directive(
            name=match.group(1),
            argument=code[arg_start:].strip(),
            location=self._location(number, pos + 1),
            argument_location=self._location(number, arg_start + 1),
        )

    def _parse_instruction(self, code: str, text: str, number: int, pos: int) -> Instruction:
        match = self.OPCODE_RE.match(code, pos)
        if match is None:
            raise self._error(
                f"expected label, instruction or directive, got '{code[pos]}'",
                text, number, pos + 1,
            )

        end = match.end()
        if end < len(code) and not code[end].isspace():
            raise self._error(
                f"unexpected '{code[end]}' after '{match.group(0)}'",
                text, number, end + 1,
            )

        operands = self._split_operands(code, end, text, number)
        return Instruction(
            opcode=match.group(0),
            operands=operands,
            location=self._location(number, pos + 1),
        )

    # =========================================================================
    # Scanning Helpers
    # =========================================================================

    @staticmethod
    def _skip_spaces(code: str, pos: int) -> int:
        while pos < len(code) and code[pos].isspace():
            pos += 1
        return pos

    def _find_comment(self, text: str, number: int) -> int:
        """Index of the `;` that starts a comment, or len(text)."""
        quote = None
        quote_column = 0
        i = 0
        while i < len(text):
            char = text[i]
            if quote is not None:
                if char == "\\":
                    i += 1  # skip escaped character
                elif char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
                quote_column = i + 1
            elif char == ";":
                return i
            i += 1

        if quote is not None:
            kind = "string" if quote == '"' else "character"
            raise self._error(f"unterminated {kind} literal", text, number, quote_column)
        return len(text)

    def _split_operands(self, code: str, start: int, text: str, number: int) -> list[str]:
        """
        Split the operand field of an instruction.

        Top-level commas win over whitespace. Quoted text and bracketed
        groups are never split.
        """
        pieces: list[tuple[int, int]] = []   # (start, end) spans of words
        commas: list[int] = []
        closers: list[str] = []
        quote = None
        word_start = None

        i = start
        while i < len(code):
            char = code[i]

            if quote is not None:
                if char == "\\":
                    i += 1
                elif char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char in self.OPEN_BRACKETS:
                closers.append(self.OPEN_BRACKETS[char])
            elif closers and char == closers[-1]:
                closers.pop()
            elif char in ")]}":
                raise self._error(f"unbalanced '{char}'", text, number, i + 1)
            elif not closers and char == ",":
                commas.append(i)

            at_top = quote is None and not closers
            if at_top and (char.isspace() or char == ","):
                if word_start is not None:
                    pieces.append((word_start, i))
                    word_start = None
            elif word_start is None:
                word_start = i
            i += 1

        if closers:
            raise self._error(f"expected '{closers[-1]}'", text, number, len(code) + 1)
        if word_start is not None:
            pieces.append((word_start, len(code)))

        if not commas:
            return [code[s:e] for s, e in pieces]

        operands = []
        bounds = [start] + [c + 1 for c in commas]
        ends = commas + [len(code)]
        for s, e in zip(bounds, ends):
            operand = code[s:e].strip()
            if not operand:
                raise self._error("empty operand", text, number, s + 1)
            operands.append(operand)
        return operands


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> list[Line]:
    """
    Parse assembly source into Line records.

    Args:
        source: Assembly source text
        filename: Source filename for error messages

    Returns:
        List of Line records in source order
    """
    return Parser(source, filename).parse()
