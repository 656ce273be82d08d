"""
Directive Argument Lexer
========================

This module implements the tokenizer used on directive arguments. The line
parser hands over the raw argument text of `.space`, `.addr` and `.string`;
the lexer turns it into a token stream that the constant-expression
evaluator and the string-literal decoder consume.

Token Types
-----------
- IDENTIFIER: Symbol names (rejected later by the constant evaluator)
- NUMBER: Decimal, hex ($FF/0xFF), binary (%1010/0b1010), octal (@17/0o17)
- STRING: Double-quoted strings ("hello")
- Operators: +, -, *, /, %, &, |, ^, ~, <<, >>
- Delimiters: (, )
- EOF: End of input

Number Formats
--------------
| Format      | Prefix   | Example   | Value |
|-------------|----------|-----------|-------|
| Decimal     | (none)   | 123       | 123   |
| Hexadecimal | $ or 0x  | $7F, 0x7F | 127   |
| Binary      | % or 0b  | %1010     | 10    |
| Octal       | @ or 0o  | @177      | 127   |
| Character   | '        | 'A'       | 65    |

Example
-------
>>> from cellasm.assembler.lexer import Lexer
>>> for token in Lexer("(4 + $10) * 2").tokenize():
...     print(token)
Token(LPAREN, '(', 1:1)
Token(NUMBER, 4, 1:2)
Token(PLUS, '+', 1:4)
Token(NUMBER, 16, 1:6)
Token(RPAREN, ')', 1:9)
Token(STAR, '*', 1:11)
Token(NUMBER, 2, 1:13)
Token(EOF, 1:14)
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional
import string

from cellasm.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for directive arguments."""

    EOF = auto()

    # Values
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    STAR = auto()        # *
    SLASH = auto()       # /
    PERCENT = auto()     # %

    # Bitwise operators
    AMPERSAND = auto()   # &
    PIPE = auto()        # |
    CARET = auto()       # ^
    TILDE = auto()       # ~
    LSHIFT = auto()      # <<
    RSHIFT = auto()      # >>

    # Delimiters
    LPAREN = auto()      # (
    RPAREN = auto()      # )


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the argument text.

    Attributes:
        type: The TokenType classification
        value: str for identifiers, strings and operators, int for numbers
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
        text: Source text the token was scanned from
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str
    text: str = field(default="", compare=False)

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes the argument text of a directive.

    Usage:
        lexer = Lexer(argument, filename, line_number=3, column=8)
        tokens = list(lexer.tokenize())

    `line_number` and `column` give the position of the argument inside the
    source file so that token locations point at the real text. When
    `source_line` is given it is quoted in error messages instead of the
    bare argument.
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_."

    SINGLE_CHAR_TOKENS = {
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
        "%": TokenType.PERCENT,
        "&": TokenType.AMPERSAND,
        "|": TokenType.PIPE,
        "^": TokenType.CARET,
        "~": TokenType.TILDE,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
        "\\": "\\",
        '"': '"',
        "'": "'",
        "0": "\0",
    }

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        line_number: int = 1,
        column: int = 1,
        source_line: Optional[str] = None,
    ):
        self.source = source
        self.filename = filename
        self._source_line = source_line

        self._pos = 0
        self._line = line_number
        self._column = column

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the argument text.

        Yields:
            Token objects, always terminated by an EOF token

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue
            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        if self._at_end():
            return ""
        char = self.source[self._pos]
        self._pos += 1
        self._column += 1
        return char

    def _match(self, expected: str) -> bool:
        if self._peek() == expected:
            self._advance()
            return True
        return False

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_column: Optional[int] = None,
    ) -> Token:
        column = start_column or self._column
        # columns advance in step with _pos within one argument
        start = self._pos - (self._column - column)
        return Token(
            type=token_type,
            value=value,
            line=self._line,
            column=column,
            filename=self.filename,
            text=self.source[start:self._pos],
        )

    def _error(self, message: str, column: Optional[int] = None) -> AssemblySyntaxError:
        location = SourceLocation(self.filename, self._line, column or self._column)
        source_line = self._source_line if self._source_line is not None else self.source
        return AssemblySyntaxError(message, location, source_line=source_line)

    def _skip_whitespace(self) -> bool:
        skipped = False
        # '' in " \t" is True, so check for a character first
        while self._peek() and self._peek() in " \t\r\n":
            self._advance()
            skipped = True
        return skipped

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_column = self._column
        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_column)

        if char.isdigit():
            return self._scan_decimal_number(start_column)

        if char == "$":
            next_char = self._peek(1)
            if next_char and next_char in string.hexdigits:
                self._advance()  # consume $
                return self._scan_digits(16, string.hexdigits, "hexadecimal", start_column)
            self._advance()
            raise self._error("expected hexadecimal digits after '$'", start_column)

        next_char = self._peek(1)
        if char == "%" and next_char and next_char in "01":
            self._advance()  # consume %
            return self._scan_digits(2, "01", "binary", start_column)

        if char == "@" and next_char and next_char in "01234567":
            self._advance()  # consume @
            return self._scan_digits(8, "01234567", "octal", start_column)

        if char == '"':
            return self._scan_string(start_column)

        if char == "'":
            return self._scan_char(start_column)

        if char == "<":
            self._advance()
            if self._match("<"):
                return self._make_token(TokenType.LSHIFT, "<<", start_column)
            raise self._error("unexpected character '<'", start_column)

        if char == ">":
            self._advance()
            if self._match(">"):
                return self._make_token(TokenType.RSHIFT, ">>", start_column)
            raise self._error("unexpected character '>'", start_column)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], char, start_column)

        self._advance()
        raise self._error(f"unexpected character '{char}'", start_column)

    def _scan_identifier(self, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return self._make_token(TokenType.IDENTIFIER, "".join(chars), start_column)

    def _scan_decimal_number(self, start_column: int) -> Token:
        """Scan a decimal number, or a 0x / 0b / 0o prefixed one."""
        if self._peek() == "0":
            prefix = self._peek(1).lower()
            if prefix == "x":
                self._advance()
                self._advance()
                return self._scan_digits(16, string.hexdigits, "hexadecimal", start_column)
            if prefix == "b":
                self._advance()
                self._advance()
                return self._scan_digits(2, "01", "binary", start_column)
            if prefix == "o":
                self._advance()
                self._advance()
                return self._scan_digits(8, "01234567", "octal", start_column)

        return self._scan_digits(10, string.digits, "decimal", start_column)

    def _scan_digits(self, base: int, digits: str, kind: str, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in digits:
            chars.append(self._advance())

        if not chars:
            raise self._error(f"expected {kind} digits", start_column)

        # 12abc is one malformed number, not 12 followed by abc
        if self._peek() and self._peek() in self.IDENT_CHARS:
            raise self._error(f"invalid digit '{self._peek()}' in {kind} number")

        return self._make_token(TokenType.NUMBER, int("".join(chars), base), start_column)

    def _scan_string(self, start_column: int) -> Token:
        """
        Scan a double-quoted string literal.

        Supports escape sequences: \\n, \\r, \\t, \\\\, \\", \\', \\0, \\xNN.
        Any other character, including non-ASCII ones, is taken as is.
        """
        self._advance()  # consume opening "

        chars = []
        while not self._at_end():
            char = self._peek()

            if char == '"':
                self._advance()
                return self._make_token(TokenType.STRING, "".join(chars), start_column)

            if char == "\n":
                break

            if char == "\\":
                self._advance()
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        raise self._error("unterminated string literal", start_column)

    def _scan_char(self, start_column: int) -> Token:
        """Scan a single-quoted character literal into its code point."""
        self._advance()  # consume opening '

        if self._at_end() or self._peek() == "\n":
            raise self._error("unterminated character literal", start_column)

        if self._peek() == "\\":
            self._advance()
            char = self._scan_escape_sequence()
        else:
            char = self._advance()

        if self._peek() != "'":
            raise self._error("expected closing quote for character literal")
        self._advance()

        return self._make_token(TokenType.NUMBER, ord(char), start_column)

    def _scan_escape_sequence(self) -> str:
        if self._at_end():
            raise self._error("unexpected end of input in escape sequence")

        char = self._advance()

        if char in self.ESCAPE_SEQUENCES:
            return self.ESCAPE_SEQUENCES[char]

        if char == "x":
            hex_chars = []
            for _ in range(2):
                if self._peek() and self._peek() in string.hexdigits:
                    hex_chars.append(self._advance())
                else:
                    break

            if not hex_chars:
                raise self._error("expected hexadecimal digits after \\x")

            return chr(int("".join(hex_chars), 16))

        # Unknown escape - treat as literal
        return char
