"""Pygments lexer for ein templates."""

from pygments.lexer import RegexLexer, words
from pygments.token import Error, Keyword, Name, Punctuation, Text, Whitespace


class EinLexer(RegexLexer):
    """Pygments lexer for ein templates."""

    name = "Ein"
    aliases = ["ein"]
    filenames = ["*.ein"]
    mimetypes = ["text/x-ein"]

    tokens = {
        "root": [
            # Tag opener
            (r"\{\{", Punctuation, "tag"),
            # Plain text up to the next brace
            (r"[^{]+", Text),
            (r"\{", Text),
        ],
        # Inside {{ ... }}
        "tag": [
            (r"\}\}", Punctuation, "#pop"),
            (r"\s+", Whitespace),
            (
                words(
                    ("if", "else", "end", "for"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword,
            ),
            (r"[^\W\d]\w*", Name.Variable),
            (r".", Error),
        ],
    }
