"""Tests for the ein lexer."""

from __future__ import annotations

import io
import logging

import pytest

from ein.errors import InternalError
from ein.lexer import lex_all, start_lexer
from ein.tokens import T_ELSE, T_END, T_EOF, T_LEFT, T_RIGHT, Token, TokenKind
from tests.helpers import lex_pairs


class _BrokenStream(io.StringIO):
    """Yields its text one character at a time, then fails."""

    def read(self, size: int = -1) -> str:
        ch = super().read(1)
        if not ch:
            raise OSError("boom")
        return ch


class _ClosingStream(io.StringIO):
    """Behaves like a file closed under the lexer after ``limit`` reads."""

    def __init__(self, text: str, limit: int) -> None:
        super().__init__(text)
        self.limit = limit

    def read(self, size: int = -1) -> str:
        if self.limit == 0:
            self.close()
        self.limit -= 1
        return super().read(1)


class TestLexerBasic:
    def test_empty(self):
        assert lex_all("") == [T_EOF]

    def test_spaces(self):
        assert lex_all(" \t\n") == [Token(TokenKind.PLAINTEXT, " \t\n"), T_EOF]

    def test_plain_text(self):
        assert lex_all("this is some plain text") == [
            Token(TokenKind.PLAINTEXT, "this is some plain text"),
            T_EOF,
        ]

    def test_left_meta(self):
        assert lex_all("{{") == [T_LEFT, T_EOF]

    def test_right_meta(self):
        assert lex_all("}}") == [
            Token(TokenKind.ERROR, "unexpected right meta in lexPlaintext"),
            T_EOF,
        ]

    def test_simple_tag(self):
        assert lex_all("opening text {{tag_identifier}} closing text") == [
            Token(TokenKind.PLAINTEXT, "opening text "),
            T_LEFT,
            Token(TokenKind.IDENTIFIER, "tag_identifier"),
            T_RIGHT,
            Token(TokenKind.PLAINTEXT, " closing text"),
            T_EOF,
        ]

    def test_end_tag(self):
        assert lex_all("{{end}}") == [T_LEFT, T_END, T_RIGHT, T_EOF]

    def test_empty_tag(self):
        assert lex_all("{{}}") == [T_LEFT, T_RIGHT, T_EOF]

    def test_accepts_text_stream(self):
        assert lex_all(io.StringIO("a{{b}}")) == [
            Token(TokenKind.PLAINTEXT, "a"),
            T_LEFT,
            Token(TokenKind.IDENTIFIER, "b"),
            T_RIGHT,
            T_EOF,
        ]


class TestLexerPlaintext:
    def test_single_braces_are_text(self):
        assert lex_pairs("a { b } c") == [(TokenKind.PLAINTEXT, "a { b } c")]

    def test_text_between_tags(self):
        assert lex_pairs("{{a}} and {{b}}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "a"),
            (TokenKind.RIGHT_META, "}}"),
            (TokenKind.PLAINTEXT, " and "),
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "b"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_unicode_text_kept_verbatim(self):
        assert lex_pairs("héllo wörld ✓") == [(TokenKind.PLAINTEXT, "héllo wörld ✓")]

    def test_right_meta_after_text_is_fatal(self):
        # pending text is dropped and nothing after the error is scanned
        assert lex_all("abc}}def {{x}}") == [
            Token(TokenKind.ERROR, "unexpected right meta in lexPlaintext"),
            T_EOF,
        ]


class TestLexerTags:
    def test_keywords(self):
        assert lex_pairs("{{if}}")[1] == (TokenKind.IF, "if")
        assert lex_all("{{else}}")[1] == T_ELSE
        assert lex_all("{{end}}")[1] == T_END

    def test_for_is_not_a_keyword(self):
        assert lex_pairs("{{for}}")[1] == (TokenKind.IDENTIFIER, "for")

    def test_keyword_prefix_is_identifier(self):
        assert lex_pairs("{{ending}}")[1] == (TokenKind.IDENTIFIER, "ending")

    def test_whitespace_inside_tag_discarded(self):
        assert lex_pairs("{{  if \t x\n }}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IF, "if"),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_identifier_with_digits_and_underscores(self):
        assert lex_pairs("{{my_var_123}}")[1] == (TokenKind.IDENTIFIER, "my_var_123")

    def test_identifier_cannot_start_with_digit(self):
        # the digit is discarded like any other stray character
        assert lex_pairs("{{1x}}")[1] == (TokenKind.IDENTIFIER, "x")

    def test_unicode_identifier(self):
        assert lex_pairs("{{héllo_wörld}}")[1] == (TokenKind.IDENTIFIER, "héllo_wörld")

    def test_unicode_decimal_digit(self):
        # U+0663 ARABIC-INDIC DIGIT THREE is a decimal digit
        assert lex_pairs("{{x٣}}")[1] == (TokenKind.IDENTIFIER, "x٣")

    def test_stray_characters_discarded(self):
        assert lex_pairs("{{+x}}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_punctuation_splits_identifiers(self):
        assert lex_pairs("{{x.y}}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.IDENTIFIER, "y"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_lone_right_brace_in_tag_discarded(self):
        assert lex_pairs("{{x}y}}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "x"),
            (TokenKind.IDENTIFIER, "y"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_unterminated_tag(self):
        assert lex_all("{{x") == [T_LEFT, Token(TokenKind.IDENTIFIER, "x"), T_EOF]


class TestLexerErrors:
    def test_left_meta_inside_tag_recovers_at_next_line(self):
        assert lex_all("{{ {{x}}\nafter") == [
            T_LEFT,
            Token(TokenKind.ERROR, "unexpected left meta in lexTagBody"),
            Token(TokenKind.PLAINTEXT, "after"),
            T_EOF,
        ]

    def test_left_meta_inside_tag_at_last_line(self):
        assert lex_all("{{ {{x}} trailing") == [
            T_LEFT,
            Token(TokenKind.ERROR, "unexpected left meta in lexTagBody"),
            T_EOF,
        ]

    def test_recovered_scan_continues_with_tags(self):
        assert lex_pairs("{{{{\n{{y}}") == [
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.ERROR, "unexpected left meta in lexTagBody"),
            (TokenKind.LEFT_META, "{{"),
            (TokenKind.IDENTIFIER, "y"),
            (TokenKind.RIGHT_META, "}}"),
        ]

    def test_unexpected_exception_is_reported(self):
        with pytest.raises(InternalError, match="lexer failed") as exc:
            lex_all(_ClosingStream("{{x}} tail", limit=5))
        assert isinstance(exc.value.__cause__, ValueError)

    def test_unexpected_exception_still_ends_stream(self):
        channel, thread = start_lexer(_ClosingStream("{{x}} tail", limit=5))
        tokens = list(channel)
        thread.join()
        assert tokens == [T_LEFT, Token(TokenKind.IDENTIFIER, "x"), T_RIGHT, T_EOF]
        assert isinstance(channel.error, ValueError)

    def test_read_error(self):
        assert lex_all(_BrokenStream("ab")) == [
            Token(TokenKind.ERROR, "lex error in next: boom"),
            Token(TokenKind.PLAINTEXT, "ab"),
            T_EOF,
        ]


class TestLexerStream:
    @pytest.mark.parametrize("source", [
        "",
        "plain",
        "{{",
        "}}",
        "{{x",
        "{{}}",
        "{{ {{x}}\nafter",
        "{{if x}}a{{else}}b{{end}}",
    ])
    def test_exactly_one_eof_at_the_end(self, source):
        tokens = lex_all(source)
        assert [t.kind for t in tokens].count(TokenKind.EOF) == 1
        assert tokens[-1] == T_EOF

    @pytest.mark.parametrize("source", [
        "{{x}}",
        "a {{x}} b {{y}} c",
        "{{if x}}tales of us{{end}}",
        "{{if x}}tales of us{{else}}voicething{{end}}",
        "{{if a}}{{if b}}{{c}}{{end}}{{end}}",
    ])
    def test_meta_tokens_balance(self, source):
        kinds = [t.kind for t in lex_all(source)]
        assert kinds.count(TokenKind.LEFT_META) == kinds.count(TokenKind.RIGHT_META)

    @pytest.mark.parametrize("source", ["a", "hello world", " \n\t ", "x } y { z"])
    def test_input_without_tags_is_one_plaintext_token(self, source):
        assert lex_all(source) == [Token(TokenKind.PLAINTEXT, source), T_EOF]

    def test_start_lexer_runs_on_background_thread(self):
        channel, thread = start_lexer("{{x}}")
        assert thread.name == "ein-lexer"
        assert thread.daemon
        tokens = list(channel)
        thread.join()
        assert not thread.is_alive()
        assert tokens[-1] == T_EOF
        assert channel.closed

    def test_injected_logger(self, caplog):
        logger = logging.getLogger("test.ein.lexer")
        caplog.set_level(logging.DEBUG, logger="test.ein.lexer")
        lex_all("{{x}}", logger=logger)
        messages = [r.getMessage() for r in caplog.records if r.name == "test.ein.lexer"]
        assert "lex out: {ident: x}" in messages
        assert "lex out: {EOF: EOF}" in messages
