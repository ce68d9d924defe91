"""Tests for the AIR tokenizer."""

import pytest

from airengine.errors import AirLexError
from airengine.lang.lexer import TokenKind, tokenize


def kinds(source):
    return [token.kind for token in tokenize(source)]


def values(source):
    return [token.value for token in tokenize(source) if token.kind is not TokenKind.EOF]


class TestBasicTokens:
    def test_empty_source_yields_only_eof(self):
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].kind is TokenKind.EOF

    def test_app_header(self):
        tokens = tokenize("@app:todo")
        assert [t.kind for t in tokens] == [
            TokenKind.AT_KEYWORD,
            TokenKind.COLON,
            TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]
        assert tokens[0].value == "@app"
        assert tokens[2].value == "todo"

    def test_type_keywords_and_booleans(self):
        tokens = tokenize("str int float bool date datetime enum true false other")
        assert [t.kind for t in tokens[:-1]] == [TokenKind.TYPE_KEYWORD] * 7 + [
            TokenKind.BOOLEAN,
            TokenKind.BOOLEAN,
            TokenKind.IDENTIFIER,
        ]

    def test_numbers_and_decimals(self):
        tokens = tokenize("12 3.5")
        assert tokens[0].is_(TokenKind.NUMBER, "12")
        assert tokens[1].is_(TokenKind.NUMBER, "3.5")

    def test_number_followed_by_letters_is_one_identifier(self):
        tokens = tokenize("7d")
        assert tokens[0].is_(TokenKind.IDENTIFIER, "7d")

    def test_identifiers_may_contain_hyphens(self):
        assert values("set-null") == ["set-null"]

    def test_operators(self):
        assert values(">|+?*!~^./-$<") == list(">|+?*!~^./-$<")
        assert set(kinds(">|+")[:-1]) == {TokenKind.OPERATOR}

    def test_unknown_character_becomes_symbol(self):
        tokens = tokenize("a % b")
        assert tokens[1].is_(TokenKind.SYMBOL, "%")

    def test_positions_are_one_based(self):
        tokens = tokenize("@app:t\n@state{x:int}")
        state = tokens[4]
        assert state.value == "@state"
        assert (state.line, state.column) == (2, 1)


class TestStrings:
    def test_string_value_excludes_quotes(self):
        tokens = tokenize('"hello world"')
        assert tokens[0].is_(TokenKind.STRING, "hello world")

    def test_escaped_quote(self):
        tokens = tokenize(r'"say \"hi\""')
        assert tokens[0].value == 'say "hi"'

    def test_unterminated_string_raises_with_position(self):
        with pytest.raises(AirLexError) as excinfo:
            tokenize('@app:t\n  "oops')
        assert excinfo.value.line == 2
        assert excinfo.value.column == 3
        assert str(excinfo.value) == "[AIR Lex Error] Line 2:3: Unterminated string literal"


class TestNewlines:
    def test_consecutive_newlines_collapse(self):
        assert kinds("a\n\n\nb") == [TokenKind.IDENTIFIER, TokenKind.NEWLINE, TokenKind.IDENTIFIER, TokenKind.EOF]

    def test_trailing_newline_dropped(self):
        assert kinds("a\n") == [TokenKind.IDENTIFIER, TokenKind.EOF]


class TestHashDisambiguation:
    def test_hex_after_comma_is_string(self):
        tokens = tokenize("(a,#fff)")
        assert tokens[3].is_(TokenKind.STRING, "#fff")
        assert tokens[4].kind is TokenKind.CLOSE_PAREN

    def test_hex_after_colon_is_string(self):
        tokens = tokenize("accent:#6366f1")
        assert tokens[2].is_(TokenKind.STRING, "#6366f1")

    @pytest.mark.parametrize("color", ["#abc", "#abcd", "#a1b2c3", "#a1b2c3d4"])
    def test_supported_hex_lengths(self, color):
        tokens = tokenize(f"c:{color}")
        assert tokens[2].is_(TokenKind.STRING, color)

    def test_five_hex_digits_is_a_reference(self):
        tokens = tokenize("c:#abcde")
        assert tokens[2].kind is TokenKind.HASH

    def test_reference_not_after_colon_or_comma(self):
        tokens = tokenize("(#user.name)")
        assert tokens[1].kind is TokenKind.HASH
        assert tokens[2].is_(TokenKind.IDENTIFIER, "user")

    def test_hex_prefix_of_longer_word_is_a_reference(self):
        tokens = tokenize("x:#added")
        assert tokens[2].kind is TokenKind.HASH
        assert tokens[3].is_(TokenKind.IDENTIFIER, "added")

    @pytest.mark.parametrize(
        "source",
        ["(a,#fff)", "(a,(b,#fff))", "(a,(b,(c,{d:#fff})))", "{x:[#000,#fff]}"],
    )
    def test_hex_after_comma_at_any_depth(self, source):
        strings = [t.value for t in tokenize(source) if t.kind is TokenKind.STRING]
        assert "#fff" in strings


class TestComments:
    def test_comment_at_depth_zero_is_skipped(self):
        assert kinds("  # note") == [TokenKind.EOF]

    def test_comment_line_between_blocks(self):
        assert values("a\n# note\nb") == ["a", "\n", "b"]

    def test_hash_at_line_start_inside_parens_is_not_a_comment(self):
        tokens = tokenize("(\n  # note\n)")
        assert any(t.kind is TokenKind.HASH for t in tokens)
        assert any(t.is_(TokenKind.IDENTIFIER, "note") for t in tokens)

    def test_hash_mid_line_is_not_a_comment(self):
        tokens = tokenize("a #b")
        assert tokens[1].kind is TokenKind.HASH
