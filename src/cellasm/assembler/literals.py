"""
String Literal Decoder
======================

Decodes the argument of a `.string` directive. The argument must be one
double-quoted literal and nothing else; escapes are resolved by the lexer.

>>> from cellasm.assembler.literals import parse_string_literal
>>> parse_string_literal('"caf\\xe9"')
'café'
"""

from typing import Optional

from cellasm.errors import AssemblySyntaxError, SourceLocation
from cellasm.assembler.lexer import Lexer, TokenType


def parse_string_literal(
    text: str,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> str:
    """
    Decode a quoted string literal.

    The result is a Python string, so its length is the number of
    characters (code points), not the number of encoded bytes.

    Args:
        text: Raw argument text, e.g. '"hello"'
        location: Where `text` starts in the source file
        source_line: Full source line for error context

    Returns:
        The decoded string

    Raises:
        AssemblySyntaxError: If `text` is not exactly one string literal
    """
    if location is not None:
        lexer = Lexer(text, location.filename, location.line, location.column, source_line)
    else:
        lexer = Lexer(text)

    tokens = [tok for tok in lexer.tokenize() if tok.type != TokenType.EOF]

    if not tokens:
        raise AssemblySyntaxError(
            "expected a string literal",
            location,
            source_line=source_line,
        )

    first = tokens[0]
    if first.type != TokenType.STRING:
        raise AssemblySyntaxError(
            "expected a double-quoted string literal",
            first.location,
            source_line=source_line,
        )

    if len(tokens) > 1:
        extra = tokens[1]
        raise AssemblySyntaxError(
            f"unexpected '{extra.value}' after string literal",
            extra.location,
            source_line=source_line,
        )

    return first.value
