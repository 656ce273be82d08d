"""
cellasm Error Hierarchy
=======================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from CellAsmError, so callers can catch every
toolchain error with a single except clause.

Exception Hierarchy
-------------------
CellAsmError (base)
└── AssemblerError (assembler-related)
    ├── AssemblySyntaxError - malformed source text or literal
    ├── ExpressionError - constant expression cannot be evaluated
    └── LayoutError - memory layout pass failed
        ├── DuplicateLabelError - label bound twice
        ├── UnsupportedDirectiveError - directive name not recognized
        └── ArgumentParseError - directive argument rejected

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


class CellAsmError(Exception):
    """
    Base exception for all cellasm errors.

        try:
            layout_file("program.s")
        except CellAsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source code, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(CellAsmError):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.s:3:1: error: duplicate label 'loop'
                loop: jmp loop
                ^
            hint: 'loop' was first defined at prog.s:1:1
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised when the parser or the argument lexer meets text that does not
    fit the grammar, e.g. an unterminated string literal or a label
    followed by garbage.
    """
    pass


class ExpressionError(AssemblerError):
    """
    Error evaluating a constant expression.

    Typical causes:
    - Division or modulo by zero
    - Symbol used where only constants are allowed
    - Tokens left over after a complete expression
    - Negative result where an unsigned value is required
    """
    pass


# =============================================================================
# Layout Exceptions
# =============================================================================

class LayoutError(AssemblerError):
    """Base exception for errors raised by the memory layout pass."""
    pass


class DuplicateLabelError(LayoutError):
    """
    Label defined more than once.

    Label names are global to the program and cannot be rebound, whatever
    address the second definition would have received.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnsupportedDirectiveError(LayoutError):
    """Directive name outside the recognized set (word, space, addr, string)."""

    SUPPORTED = ("addr", "space", "string", "word")

    def __init__(
        self,
        directive: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.directive = directive
        supported = ", ".join(f".{name}" for name in self.SUPPORTED)
        super().__init__(
            f"unsupported directive '.{directive}'",
            location=location,
            hint=f"supported directives: {supported}",
            source_line=source_line,
        )


class ArgumentParseError(LayoutError):
    """
    A directive argument was rejected.

    Raised when the constant-expression evaluator or the string-literal
    decoder fails on the argument of `.space`, `.addr` or `.string`, or
    leaves part of it unconsumed. The underlying error is kept in `reason`
    and chained as `__cause__`.
    """

    def __init__(
        self,
        directive: str,
        argument: str,
        reason: Optional[AssemblerError] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.directive = directive
        self.argument = argument
        self.reason = reason

        message = f"could not parse argument of '.{directive}': {argument!r}"
        hint = reason.message if reason is not None else None

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )
