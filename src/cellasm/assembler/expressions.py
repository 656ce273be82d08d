"""
Constant Expression Evaluator
=============================

This module evaluates the constant expressions that appear as directive
arguments (`.space N`, `.addr N`). Constant means no symbols: the layout
pass runs before labels are known, so an argument must be computable from
literals alone.

Supported Operations
--------------------
**Arithmetic:** + - * / %   (integer division)
**Bitwise:** & | ^ ~ << >>
**Grouping:** ( )

Expression Grammar
------------------
Recursive descent, precedence from lowest to highest:

1. Bitwise OR: |
2. Bitwise XOR: ^
3. Bitwise AND: &
4. Shift: << >>
5. Addition/Subtraction: + -
6. Multiplication/Division: * / %
7. Unary: + - ~
8. Primary: number, (grouped expression)

Values are Python integers with no word-size wrapping. Intermediate results
may be negative, but the final value is an address or a cell count and must
not be.

Example Usage
-------------
>>> from cellasm.assembler.expressions import parse_const_expression
>>> parse_const_expression("4 * (1 + $10)")
68
>>> parse_const_expression("1 << 4 | 1")
17
"""

import logging
from typing import Optional

from cellasm.errors import ExpressionError, SourceLocation
from cellasm.assembler.lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)


class ExpressionEvaluator:
    """
    Evaluates constant expressions from a token list.

    The evaluator is all-consuming: every token before EOF must belong to
    the expression, otherwise the input is rejected. This is what lets
    `.space 10 foo` fail instead of silently reserving ten cells.
    """

    def __init__(self):
        self._tokens: list[Token] = []
        self._pos = 0
        self._location: Optional[SourceLocation] = None

    # =========================================================================
    # Main Evaluation Interface
    # =========================================================================

    def evaluate(
        self,
        tokens: list[Token],
        location: Optional[SourceLocation] = None,
    ) -> int:
        """
        Evaluate an expression from a list of tokens.

        Args:
            tokens: Token list representing the expression
            location: Source location for error reporting

        Returns:
            The non-negative integer result

        Raises:
            ExpressionError: If the expression is malformed, uses a symbol,
                             leaves tokens unconsumed or is negative
        """
        self._tokens = [tok for tok in tokens if tok.type != TokenType.EOF]
        self._pos = 0
        self._location = location

        if not self._tokens:
            raise ExpressionError("empty expression", location)

        result = self._parse_or()

        if self._pos < len(self._tokens):
            tok = self._current()
            raise ExpressionError(
                f"unexpected '{tok.text or tok.value}' after expression",
                self._location or tok.location,
            )

        if result < 0:
            raise ExpressionError(
                f"expression evaluates to {result}, expected an unsigned value",
                self._location,
            )

        return result

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Optional[Token]:
        if self._pos >= len(self._tokens):
            return None
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, *types: TokenType) -> Optional[Token]:
        tok = self._current()
        if tok is not None and tok.type in types:
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        tok = self._current()
        if tok is None or tok.type != token_type:
            raise ExpressionError(message, self._location or self._where(tok))
        return self._advance()

    def _where(self, tok: Optional[Token]) -> Optional[SourceLocation]:
        if tok is not None:
            return tok.location
        if self._tokens:
            return self._tokens[-1].location
        return None

    # =========================================================================
    # Recursive Descent Parser with Evaluation
    # =========================================================================

    def _parse_or(self) -> int:
        left = self._parse_xor()
        while self._match(TokenType.PIPE):
            left = left | self._parse_xor()
        return left

    def _parse_xor(self) -> int:
        left = self._parse_and()
        while self._match(TokenType.CARET):
            left = left ^ self._parse_and()
        return left

    def _parse_and(self) -> int:
        left = self._parse_shift()
        while self._match(TokenType.AMPERSAND):
            left = left & self._parse_shift()
        return left

    def _parse_shift(self) -> int:
        left = self._parse_additive()

        while True:
            op = self._match(TokenType.LSHIFT, TokenType.RSHIFT)
            if op is None:
                break
            right = self._parse_additive()
            if right < 0:
                raise ExpressionError(
                    f"negative shift count {right}",
                    self._location or op.location,
                )
            left = left << right if op.type == TokenType.LSHIFT else left >> right

        return left

    def _parse_additive(self) -> int:
        left = self._parse_multiplicative()

        while True:
            if self._match(TokenType.PLUS):
                left = left + self._parse_multiplicative()
            elif self._match(TokenType.MINUS):
                left = left - self._parse_multiplicative()
            else:
                break

        return left

    def _parse_multiplicative(self) -> int:
        left = self._parse_unary()

        while True:
            if self._match(TokenType.STAR):
                left = left * self._parse_unary()
            elif op := self._match(TokenType.SLASH, TokenType.PERCENT):
                right = self._parse_unary()
                if right == 0:
                    what = "division" if op.type == TokenType.SLASH else "modulo"
                    raise ExpressionError(f"{what} by zero", self._location or op.location)
                left = left // right if op.type == TokenType.SLASH else left % right
            else:
                break

        return left

    def _parse_unary(self) -> int:
        if self._match(TokenType.PLUS):
            return self._parse_unary()
        if self._match(TokenType.MINUS):
            return -self._parse_unary()
        if self._match(TokenType.TILDE):
            return ~self._parse_unary()
        return self._parse_primary()

    def _parse_primary(self) -> int:
        """Parse numbers and parenthesized groups."""
        tok = self._current()

        if tok is None:
            raise ExpressionError(
                "unexpected end of expression",
                self._location or self._where(tok),
            )

        if tok.type == TokenType.NUMBER:
            self._advance()
            return tok.value

        if tok.type == TokenType.LPAREN:
            self._advance()
            result = self._parse_or()
            self._expect(TokenType.RPAREN, "expected ')' to close expression")
            return result

        if tok.type == TokenType.IDENTIFIER:
            raise ExpressionError(
                f"symbol '{tok.value}' not allowed in a constant expression",
                self._location or tok.location,
                hint="directive arguments are evaluated before labels are placed",
            )

        raise ExpressionError(
            f"expected value, got '{tok.value}'",
            self._location or tok.location,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_const_expression(
    text: str,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> int:
    """
    Tokenize and evaluate a constant expression string.

    Args:
        text: The expression text, e.g. a raw `.space` argument
        location: Where `text` starts in the source file
        source_line: Full source line for error context

    Returns:
        The non-negative integer value

    Raises:
        AssemblySyntaxError: If `text` cannot be tokenized
        ExpressionError: If the tokens do not form a complete constant expression
    """
    if location is not None:
        lexer = Lexer(text, location.filename, location.line, location.column, source_line)
    else:
        lexer = Lexer(text)

    value = ExpressionEvaluator().evaluate(list(lexer.tokenize()))
    logger.debug("constant expression %r = %d", text, value)
    return value
