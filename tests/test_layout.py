# =============================================================================
# test_layout.py - Memory Layout Pass Unit Tests
# =============================================================================
# Tests for label placement and memory map construction.
#
# Test coverage includes:
#   - Label addresses for instructions and each directive
#   - Placements recorded in the memory map
#   - .addr cursor overrides, including overlapping placements
#   - Duplicate labels, unsupported directives, bad arguments
#   - Layouts built from parsed source
# =============================================================================

import pytest
from cellasm.assembler.layout import (
    DirectiveKind,
    Layout,
    Placement,
    PlacementKind,
    layout_memory,
)
from cellasm.assembler.parser import Directive, Instruction, Line, parse_source
from cellasm.constants import PROGRAM_START
from cellasm.errors import (
    ArgumentParseError,
    AssemblySyntaxError,
    DuplicateLabelError,
    ExpressionError,
    LayoutError,
    UnsupportedDirectiveError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def inst(*labels: str, opcode: str = "jmp", operands: tuple = ()) -> Line:
    return Line(list(labels), Instruction(opcode, list(operands)))


def directive(name: str, argument: str, *labels: str) -> Line:
    return Line(list(labels), Directive(name, argument))


# =============================================================================
# Label Placement Tests
# =============================================================================

class TestLabelPlacement:
    """Label addresses for each kind of line."""

    def test_simple(self):
        program = [
            inst("main", opcode="add", operands=("%a", "%b")),
            inst("loop", operands=("loop",)),
        ]
        labels = layout_memory(program).labels
        assert labels == {"main": PROGRAM_START, "loop": PROGRAM_START + 1}

    def test_program_start(self):
        assert PROGRAM_START == 1000
        assert layout_memory([inst("main")]).labels == {"main": 1000}

    def test_addr(self):
        program = [
            directive("addr", "10"),
            inst("main", operands=("main",)),
        ]
        assert layout_memory(program).labels == {"main": 10}

    def test_space(self):
        program = [
            directive("space", "10", "first"),
            directive("space", "5", "second"),
            inst("main", operands=("main",)),
        ]
        assert layout_memory(program).labels == {
            "first": PROGRAM_START,
            "second": PROGRAM_START + 10,
            "main": PROGRAM_START + 15,
        }

    def test_word(self):
        program = [
            directive("word", "123", "first"),
            directive("word", "456", "second"),
            inst("main", operands=("main",)),
        ]
        assert layout_memory(program).labels == {
            "first": PROGRAM_START,
            "second": PROGRAM_START + 1,
            "main": PROGRAM_START + 2,
        }

    def test_string(self):
        program = [
            directive("string", '"hello"', "first"),
            directive("string", '"Émoticône: 🚙"', "second"),  # 12 characters
            inst("main", operands=("main",)),
        ]
        assert layout_memory(program).labels == {
            "first": PROGRAM_START,
            "second": PROGRAM_START + 5,
            "main": PROGRAM_START + 5 + 12,
        }

    def test_label_only_line_binds_to_next_cell(self):
        program = [
            Line(["before"]),
            inst("after"),
        ]
        assert layout_memory(program).labels == {"before": 1000, "after": 1000}

    def test_several_labels_same_address(self):
        program = [inst(), Line(["a", "b"], Instruction("nop"))]
        assert layout_memory(program).labels == {"a": 1001, "b": 1001}

    def test_space_zero(self):
        program = [
            directive("space", "0", "empty"),
            inst("next"),
        ]
        layout = layout_memory(program)
        assert layout.labels == {"empty": 1000, "next": 1000}
        assert list(layout.memory) == [1000]

    def test_empty_string(self):
        program = [directive("string", '""', "s"), inst("next")]
        assert layout_memory(program).labels == {"s": 1000, "next": 1000}

    def test_space_expression(self):
        program = [directive("space", "4 * (1 + 1)"), inst("main")]
        assert layout_memory(program).labels["main"] == 1008

    def test_forward_reference_is_fine(self):
        """Operands are not resolved here, so forward jumps lay out normally."""
        program = [inst("start", operands=("end",)), inst("end")]
        assert layout_memory(program).labels == {"start": 1000, "end": 1001}

    def test_custom_start(self):
        program = [inst("main"), inst("next")]
        assert layout_memory(program, start=0).labels == {"main": 0, "next": 1}

    def test_empty_program(self):
        layout = layout_memory([])
        assert layout.labels == {}
        assert layout.memory == {}
        assert layout.end == PROGRAM_START


# =============================================================================
# Memory Map Tests
# =============================================================================

class TestMemoryMap:
    """Placements recorded per address."""

    def test_instruction_references_line(self):
        program = [Line(), inst("main")]
        layout = layout_memory(program)
        assert layout.memory == {1000: Placement.line(1)}
        assert layout.line_at(1000) is program[1]

    def test_word_references_line(self):
        program = [directive("word", "some_label + 1")]
        layout = layout_memory(program)
        assert layout.memory[1000].kind == PlacementKind.LINE
        assert layout.memory[1000].line_index == 0

    def test_space_reserves_cells(self):
        layout = layout_memory([directive("space", "3")])
        assert layout.addresses() == [1000, 1001, 1002]
        assert all(p.kind == PlacementKind.RESERVED for p in layout.memory.values())

    def test_string_places_characters(self):
        layout = layout_memory([directive("string", '"hé!"')])
        assert layout.memory == {
            1000: Placement.character("h"),
            1001: Placement.character("é"),
            1002: Placement.character("!"),
        }

    def test_addr_emits_nothing(self):
        layout = layout_memory([directive("addr", "50")])
        assert layout.memory == {}
        assert layout.end == 50

    def test_line_at_other_cells(self):
        layout = layout_memory([directive("space", "1")])
        assert layout.line_at(1000) is None
        assert layout.line_at(5) is None

    def test_end_cursor(self):
        program = [inst(), directive("space", "4"), directive("string", '"ab"')]
        assert layout_memory(program).end == 1007

    def test_addr_can_move_backwards(self):
        program = [
            directive("addr", "2000"),
            inst("first"),
            directive("addr", "1500"),
            inst("second"),
        ]
        layout = layout_memory(program)
        assert layout.labels == {"first": 2000, "second": 1500}
        assert layout.addresses() == [1500, 2000]

    def test_overlapping_placement_is_not_an_error(self):
        """A rewind onto an occupied address keeps the later placement."""
        program = [
            directive("addr", "2000"),
            inst(),
            directive("addr", "2000"),
            directive("word", "5"),
        ]
        layout = layout_memory(program)
        assert layout.memory == {2000: Placement.line(3)}
        assert layout.end == 2001

    def test_layout_keeps_program(self):
        program = [inst("main")]
        layout = layout_memory(program)
        assert isinstance(layout, Layout)
        assert layout.program is program
        assert layout.start == PROGRAM_START


# =============================================================================
# Directive Kind Tests
# =============================================================================

class TestDirectiveKind:
    """The closed set of recognized directives."""

    def test_known_names(self):
        assert DirectiveKind.from_name("word") is DirectiveKind.WORD
        assert DirectiveKind.from_name("space") is DirectiveKind.SPACE
        assert DirectiveKind.from_name("addr") is DirectiveKind.ADDR
        assert DirectiveKind.from_name("string") is DirectiveKind.STRING

    def test_unknown_name(self):
        assert DirectiveKind.from_name("foo") is None

    def test_case_sensitive(self):
        assert DirectiveKind.from_name("WORD") is None


# =============================================================================
# Error Tests
# =============================================================================

class TestDuplicateLabels:
    """Labels cannot be bound twice."""

    def test_duplicate_across_lines(self):
        program = [inst("x"), directive("space", "3"), inst("x")]
        with pytest.raises(DuplicateLabelError) as exc_info:
            layout_memory(program)
        assert exc_info.value.label == "x"

    def test_duplicate_same_line(self):
        with pytest.raises(DuplicateLabelError):
            layout_memory([Line(["y", "y"])])

    def test_duplicate_is_layout_error(self):
        with pytest.raises(LayoutError):
            layout_memory([inst("x"), inst("x")])

    def test_duplicate_reports_both_sites(self):
        source = "x: nop\nnop\nx: nop"
        with pytest.raises(DuplicateLabelError) as exc_info:
            layout_memory(parse_source(source, "p.s"))
        error = exc_info.value
        assert error.location.line == 3
        assert error.original_location.line == 1
        assert "first defined at p.s:1:1" in str(error)


class TestUnsupportedDirectives:
    """Only word, space, addr and string are understood."""

    def test_unknown_directive(self):
        with pytest.raises(UnsupportedDirectiveError) as exc_info:
            layout_memory([directive("foo", "1")])
        assert exc_info.value.directive == "foo"

    def test_uppercase_directive(self):
        with pytest.raises(UnsupportedDirectiveError) as exc_info:
            layout_memory([directive("WORD", "1")])
        assert exc_info.value.directive == "WORD"

    def test_message_lists_supported(self):
        with pytest.raises(UnsupportedDirectiveError) as exc_info:
            layout_memory([directive("byte", "1")])
        assert ".space" in str(exc_info.value)


class TestArgumentErrors:
    """Directive arguments must parse completely."""

    @pytest.mark.parametrize("name, argument", [
        ("space", "10 foo"),
        ("space", "abc"),
        ("space", ""),
        ("space", "-1"),
        ("addr", "1 2"),
        ("addr", "10)"),
        ("string", "hello"),
        ("string", '"a" b'),
        ("string", '"abc'),
    ])
    def test_rejected(self, name, argument):
        with pytest.raises(ArgumentParseError) as exc_info:
            layout_memory([directive(name, argument)])
        assert exc_info.value.directive == name
        assert exc_info.value.argument == argument

    def test_cause_is_chained(self):
        with pytest.raises(ArgumentParseError) as exc_info:
            layout_memory([directive("space", "10 foo")])
        assert isinstance(exc_info.value.__cause__, ExpressionError)
        assert exc_info.value.reason is exc_info.value.__cause__

    def test_lexer_failure_is_wrapped(self):
        with pytest.raises(ArgumentParseError) as exc_info:
            layout_memory([directive("addr", "$")])
        assert isinstance(exc_info.value.__cause__, AssemblySyntaxError)

    def test_first_error_wins(self):
        program = [directive("foo", ""), inst("x"), inst("x")]
        with pytest.raises(UnsupportedDirectiveError):
            layout_memory(program)

    def test_error_location_from_source(self):
        source = "main: nop\n       .space 10 foo"
        with pytest.raises(ArgumentParseError) as exc_info:
            layout_memory(parse_source(source, "p.s"))
        error = exc_info.value
        assert error.location.line == 2
        assert error.location.column == 18
        assert error.source_line == "       .space 10 foo"


# =============================================================================
# Parsed Source Tests
# =============================================================================

class TestFromSource:
    """Layouts built from parsed text."""

    def test_mixed_program(self):
        source = """
        ; data first
        count:  .word 3
        buffer: .space 2
        msg:    .string "ok"
                .addr 1100
        main:   load count, %a
        loop:   jmp loop
        """
        layout = layout_memory(parse_source(source))
        assert layout.labels == {
            "count": 1000,
            "buffer": 1001,
            "msg": 1003,
            "main": 1100,
            "loop": 1101,
        }
        assert layout.memory[1003] == Placement.character("o")

    def test_string_with_line_separator(self):
        layout = layout_memory(parse_source('msg: .string "a\u2028b"\nmain: nop'))
        assert layout.labels == {"msg": 1000, "main": 1003}
        assert layout.memory[1001] == Placement.character("\u2028")

    def test_duplicate_after_form_feed_line(self):
        with pytest.raises(DuplicateLabelError) as exc_info:
            layout_memory(parse_source("x: nop\n\x0c\nx: nop", "p.s"))
        assert exc_info.value.location.line == 3
        assert layout.line_at(1100).content.opcode == "load"
