# =============================================================================
# test_expressions.py - Constant Expression Evaluator Unit Tests
# =============================================================================
# Tests for the evaluator behind `.space` and `.addr` arguments.
#
# Test coverage includes:
#   - Simple values in every number format
#   - Operator precedence and associativity
#   - Bitwise operations
#   - All-consuming evaluation (trailing tokens rejected)
#   - Unsigned results, symbol rejection, division by zero
# =============================================================================

import pytest
from cellasm.assembler.expressions import ExpressionEvaluator, parse_const_expression
from cellasm.assembler.lexer import Lexer
from cellasm.errors import AssemblySyntaxError, ExpressionError, SourceLocation


def evaluate(expr: str) -> int:
    return parse_const_expression(expr)


# =============================================================================
# Simple Value Tests
# =============================================================================

class TestSimpleValues:
    """Test evaluation of single literals."""

    def test_decimal(self):
        assert evaluate("42") == 42

    def test_zero(self):
        assert evaluate("0") == 0

    def test_hex(self):
        assert evaluate("$FF") == 255
        assert evaluate("0x10") == 16

    def test_binary(self):
        assert evaluate("%1111") == 15

    def test_character(self):
        assert evaluate("'a'") == 97

    def test_surrounding_whitespace(self):
        assert evaluate("   7  ") == 7

    def test_no_word_size_wrapping(self):
        """Values are not truncated to a machine word."""
        assert evaluate("1 << 40") == 1 << 40


# =============================================================================
# Arithmetic and Precedence Tests
# =============================================================================

class TestArithmetic:
    """Test arithmetic operators and precedence."""

    def test_addition(self):
        assert evaluate("1+2") == 3

    def test_subtraction_left_associative(self):
        assert evaluate("10 - 3 - 2") == 5

    def test_multiplication_binds_tighter(self):
        assert evaluate("1 + 2 * 3") == 7

    def test_parentheses(self):
        assert evaluate("(1 + 2) * 3") == 9

    def test_nested_parentheses(self):
        assert evaluate("((2))*((3+1))") == 8

    def test_integer_division(self):
        assert evaluate("10 / 3") == 3

    def test_modulo(self):
        assert evaluate("10 % 3") == 1

    def test_negative_intermediate(self):
        """Intermediate values may be negative as long as the result is not."""
        assert evaluate("-5 + 10") == 5

    def test_unary_plus(self):
        assert evaluate("+5") == 5


class TestBitwise:
    """Test bitwise operators."""

    def test_and(self):
        assert evaluate("$FF & $0F") == 0x0F

    def test_or(self):
        assert evaluate("$F0 | $0F") == 0xFF

    def test_xor(self):
        assert evaluate("6 ^ 3") == 5

    def test_not(self):
        assert evaluate("~0 & $FF") == 0xFF

    def test_shifts(self):
        assert evaluate("1 << 4") == 16
        assert evaluate("256 >> 4") == 16

    def test_shift_below_addition(self):
        assert evaluate("1 << 2 + 1") == 8

    def test_or_is_lowest(self):
        assert evaluate("1 | 2 & 3") == 3


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test rejected expressions."""

    def test_empty(self):
        with pytest.raises(ExpressionError, match="empty expression"):
            evaluate("")

    def test_trailing_identifier(self):
        with pytest.raises(ExpressionError, match="unexpected 'foo'"):
            evaluate("10 foo")

    def test_trailing_number(self):
        with pytest.raises(ExpressionError, match="unexpected '2'"):
            evaluate("1 2")

    def test_trailing_number_quotes_source_text(self):
        with pytest.raises(ExpressionError, match="unexpected '%10'"):
            evaluate("10 %10")

    def test_trailing_hex_quotes_source_text(self):
        with pytest.raises(ExpressionError, match="unexpected '\\$ff'"):
            evaluate("1 $ff")

    def test_unbalanced_close_paren(self):
        with pytest.raises(ExpressionError):
            evaluate("10 )")

    def test_missing_close_paren(self):
        with pytest.raises(ExpressionError, match="expected '\\)'"):
            evaluate("(1 + 2")

    def test_dangling_operator(self):
        with pytest.raises(ExpressionError, match="unexpected end"):
            evaluate("1 +")

    def test_symbol_rejected(self):
        with pytest.raises(ExpressionError) as exc_info:
            evaluate("buffer + 1")
        assert "symbol 'buffer'" in exc_info.value.message
        assert exc_info.value.hint is not None

    def test_division_by_zero(self):
        with pytest.raises(ExpressionError, match="division by zero"):
            evaluate("1 / 0")

    def test_modulo_by_zero(self):
        with pytest.raises(ExpressionError, match="modulo by zero"):
            evaluate("1 % (2 - 2)")

    def test_negative_result(self):
        with pytest.raises(ExpressionError, match="unsigned"):
            evaluate("-1")

    def test_negative_shift(self):
        with pytest.raises(ExpressionError, match="negative shift"):
            evaluate("1 << -1")

    def test_lexer_errors_propagate(self):
        with pytest.raises(AssemblySyntaxError):
            evaluate("10 # 3")

    def test_error_location_points_into_source(self):
        location = SourceLocation("prog.s", 5, 8)
        with pytest.raises(ExpressionError) as exc_info:
            parse_const_expression("4 x", location, ".space 4 x")
        assert exc_info.value.location == SourceLocation("prog.s", 5, 10)


# =============================================================================
# Evaluator Class Tests
# =============================================================================

class TestExpressionEvaluator:
    """Direct use of ExpressionEvaluator on a token list."""

    def test_evaluate_tokens(self):
        tokens = list(Lexer("3 * 3").tokenize())
        assert ExpressionEvaluator().evaluate(tokens) == 9

    def test_evaluator_is_reusable(self):
        evaluator = ExpressionEvaluator()
        assert evaluator.evaluate(list(Lexer("1").tokenize())) == 1
        assert evaluator.evaluate(list(Lexer("2 + 2").tokenize())) == 4
