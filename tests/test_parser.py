## cauchemar — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from cauchemar import parser
from cauchemar.types import Literal, Operator, Call, IfBlock, WhileBlock
from cauchemar.formatting import format_command
from cauchemar.errors import (CauchemarParseError, CauchemarIncompleteParse, CauchemarRangeError,
                              CauchemarDuplicateRoutine, CauchemarMissingEntry, CauchemarLoadError)


def _commands(source: str, name: str = "PROGRAM"):
    """Helper: parse a small program and return the commands of one routine."""
    program = parser.parse(source, filename="<test>")
    return program.routines[name].commands


@pytest.mark.parametrize("text", ["0", "7", "-1", "120", "-0", "2147483647", "-2147483648"])
def test_integer_literals_parse_to_same_value(text):
    [cmd] = _commands(f"PROGRAM: {text}")
    assert cmd == Literal(int(text))
    assert int(format_command(cmd)) == int(text)


def test_integer_literal_with_leading_zero_is_rejected():
    with pytest.raises(CauchemarParseError):
        parser.parse("PROGRAM: 007")


@pytest.mark.parametrize("text", ["2147483648", "-2147483649", "99999999999"])
def test_integer_literal_out_of_range_is_load_error(text):
    with pytest.raises(CauchemarRangeError) as info:
        parser.parse(f"PROGRAM:\n  1 {text}")
    assert isinstance(info.value, CauchemarLoadError)
    assert (info.value.line, info.value.column) == (2, 5)


def test_minus_sign_binds_to_digits_only():
    assert _commands("PROGRAM: 5 -3 - 2 -") == (Literal(5), Literal(-3), Operator('-'), Literal(2), Operator('-'))


def test_operators_are_single_character_tokens():
    assert _commands("PROGRAM: 1 2+3*/") == (Literal(1), Literal(2), Operator('+'), Literal(3), Operator('*'), Operator('/'))


def test_string_literals_are_verbatim():
    cmds = _commands('PROGRAM: "hello, world" "" "a\\nb" "IF 1 THEN"')
    assert [c.value for c in cmds] == ["hello, world", "", "a\\nb", "IF 1 THEN"]


def test_boolean_literals_are_not_identifiers():
    true, false = _commands("PROGRAM: TRUE FALSE")
    assert true.value is True and false.value is False


def test_comments_are_skipped_anywhere_whitespace_is_allowed():
    source = "/* head */ PROGRAM /* before colon */ : 1/* tight */2 /* multi\n line */ +"
    assert _commands(source) == (Literal(1), Literal(2), Operator('+'))


def test_comments_do_not_nest():
    # The first closing marker ends the comment, the rest is ordinary source.
    assert _commands("PROGRAM: /* a /* b */ 1 */") == (Literal(1), Operator('*'), Operator('/'))


def test_unterminated_comment_is_syntax_error():
    with pytest.raises(CauchemarIncompleteParse) as info:
        parser.parse("PROGRAM: 1 /* never closed")
    assert "comment" in str(info.value)
    assert info.value.column == 12


def test_unterminated_string_is_syntax_error():
    with pytest.raises(CauchemarIncompleteParse) as info:
        parser.parse('PROGRAM:\n  "oops PRINT')
    assert "string" in str(info.value)
    assert (info.value.line, info.value.column) == (2, 3)


def test_unknown_character_reports_location():
    with pytest.raises(CauchemarParseError) as info:
        parser.parse("PROGRAM:\n  1 2 ?", filename="<test>")
    exc = info.value
    assert (exc.filename, exc.line, exc.column, exc.token) == ("<test>", 2, 7, "?")


def test_lowercase_identifier_is_rejected():
    with pytest.raises(CauchemarParseError):
        parser.parse("PROGRAM: print")


def test_identifier_followed_by_colon_starts_new_routine():
    program = parser.parse("A: 1 B\nB : 2\nPROGRAM: A")
    assert list(program.routines) == ["A", "B", "PROGRAM"]
    assert program.routines["A"].commands == (Literal(1), Call("B"))
    assert program.routines["B"].commands == (Literal(2),)
    assert program.routines["PROGRAM"].commands == (Call("A"),)


def test_routine_may_be_empty():
    program = parser.parse("NOTHING: PROGRAM: NOTHING")
    assert program.routines["NOTHING"].commands == ()


@pytest.mark.parametrize("keyword", ["IF", "ELSE", "THEN", "DO", "WHILE", "TRUE", "FALSE"])
def test_routine_named_exactly_as_keyword_is_rejected(keyword):
    with pytest.raises(CauchemarParseError) as info:
        parser.parse(f"{keyword}: 1\nPROGRAM: 2")
    assert info.value.token == keyword


def test_routine_named_with_keyword_as_substring_is_accepted():
    source = "IFFY: 1\nDONE: 2\nTHEN-WHAT: 3\nTRUE-ISH: 4\nPROGRAM: IFFY DONE THEN-WHAT TRUE-ISH"
    program = parser.parse(source)
    assert program.routines["PROGRAM"].commands == (Call("IFFY"), Call("DONE"), Call("THEN-WHAT"), Call("TRUE-ISH"))


def test_if_block_single_and_two_armed():
    single, double, empty = _commands("PROGRAM: IF 1 THEN IF 2 ELSE 3 THEN IF THEN")
    assert single == IfBlock((Literal(1),), ())
    assert double == IfBlock((Literal(2),), (Literal(3),))
    assert empty == IfBlock((), ())


def test_nested_blocks_match_by_recursive_descent():
    source = "PROGRAM: DO TRUE IF DO FALSE WHILE ELSE IF 1 THEN THEN FALSE WHILE"
    [loop] = _commands(source)
    assert loop == WhileBlock((
        Literal(True),
        IfBlock((WhileBlock((Literal(False),)),), (IfBlock((Literal(1),)),)),
        Literal(False),
    ))


def test_block_meta_records_location():
    [block] = _commands("PROGRAM:\n  DO\n    FALSE\n  WHILE")
    assert (block.meta['line'], block.meta['column']) == (2, 3)
    assert (block.meta['end_line'], block.meta['end_column']) == (4, 3)


@pytest.mark.parametrize("source", [
    "PROGRAM: 1 WHILE",
    "PROGRAM: 1 THEN",
    "PROGRAM: ELSE",
    "PROGRAM: DO 1 THEN",
    "PROGRAM: IF 1 WHILE",
    "PROGRAM: 1 : 2",
])
def test_malformed_nesting_is_syntax_error(source):
    with pytest.raises(CauchemarParseError) as info:
        parser.parse(source)
    assert info.value.line == 1
    assert info.value.expected


@pytest.mark.parametrize("source", ["", "   ", "/* only a comment */", "PROGRAM: DO 1", "PROGRAM: IF 1 ELSE 2"])
def test_unexpected_end_of_input_is_incomplete_parse(source):
    with pytest.raises(CauchemarIncompleteParse):
        parser.parse(source)


def test_duplicate_routine_is_load_error():
    with pytest.raises(CauchemarDuplicateRoutine) as info:
        parser.parse("TWICE: DUP +\nTWICE: 2 *\nPROGRAM: 4 TWICE")
    assert info.value.token == "TWICE"
    assert info.value.line == 2


def test_missing_entry_routine_is_load_error():
    with pytest.raises(CauchemarMissingEntry):
        parser.parse("MAIN: 1 PRINT")


def test_format_parse_error_context_highlights_token():
    source = "PROGRAM:\n  1 2 +\n  THEN PRINT\n"
    with pytest.raises(CauchemarParseError) as info:
        parser.parse(source, filename="<test>")
    exc = info.value
    context = parser.format_parse_error_context("<test>", exc.line, exc.column, exc.token, source=source)
    assert 'File "<test>", line 3' in context
    assert "THEN" in context


def test_deeply_nested_blocks_do_not_hit_recursion_limit():
    depth = 1500
    program = parser.parse("PROGRAM: " + "TRUE IF " * depth + "1" + " THEN" * depth)
    block = program.entry.commands[1]
    for _ in range(depth - 1):
        block = block.then[1]
    assert block.then == (Literal(1),)
    assert format_command(program.entry.commands[1]).count("IF") == depth

    program = parser.parse("PROGRAM: " + "DO " * depth + "FALSE WHILE " * depth)
    assert format_command(program.entry.commands[0]).count("WHILE") == depth


def test_format_parse_error_context_reads_file_when_no_source(tmp_path):
    path = tmp_path / "broken.cau"
    path.write_text("PROGRAM:\n  1 ELSE\n", encoding="utf-8")
    context = parser.format_parse_error_context(str(path), 2, 5, "ELSE")
    assert f'File "{path}", line 2' in context
    assert "ELSE" in context
    assert parser.format_parse_error_context(str(tmp_path / "missing.cau"), None, None, None) == ""
