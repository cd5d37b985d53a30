"""
Lexer (tokenizer) for the configuration syntax.

Supports:
- Identifiers (section and option names, may contain '.' and '-')
- Quoted strings (double quotes, \\" and \\\\ escapes only)
- Integers, floats, dates and the booleans true/false
- Brackets, equals sign, comma and end-of-line
- Single-line (#) comments
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import re

from .const import COMMENT_CHAR, ESCAPE_CHAR, QUOTE_CHAR
from .errors import LexerError
from .values import LiteralError, ValueKind, classify_literal, convert_literal


class TokenType(Enum):
    """Token types for the configuration syntax."""

    # Names
    IDENTIFIER = auto()    # section or option name

    # Literals
    BOOL = auto()          # true, false
    INT = auto()           # 42, -7
    FLOAT = auto()         # 3.14, 1e6
    DATE = auto()          # 2024-01-31
    STRING = auto()        # "quoted string"

    # Delimiters
    LBRACKET = auto()      # [
    RBRACKET = auto()      # ]
    EQUALS = auto()        # =
    COMMA = auto()         # ,

    # Special
    EOL = auto()           # end of line
    EOF = auto()           # end of file


LITERAL_TYPES = {
    ValueKind.BOOL: TokenType.BOOL,
    ValueKind.INT: TokenType.INT,
    ValueKind.FLOAT: TokenType.FLOAT,
    ValueKind.DATE: TokenType.DATE,
    ValueKind.STRING: TokenType.STRING,
}

VALUE_TYPES = frozenset(LITERAL_TYPES.values())

SINGLE_CHAR_TOKENS = {
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "=": TokenType.EQUALS,
    ",": TokenType.COMMA,
}

IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")

# Characters that end a bare word
WORD_DELIMITERS = frozenset(" \t\r\n") | frozenset(SINGLE_CHAR_TOKENS) | {COMMENT_CHAR, QUOTE_CHAR}


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str
    line: int
    column: int
    raw: str = ""  # Original text representation

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def is_value(self) -> bool:
        return self.type in VALUE_TYPES


class Lexer:
    """
    Tokenizer for the configuration syntax.

    Tokens are produced lazily; once EOF has been reached the lexer keeps
    returning EOF. Scanning the same text again needs a new Lexer.

    Example config:
        version = [1, 0, 10]

        [database]
        dbname = "mydb"   # comment
        created = 2024-01-31
    """

    def __init__(self, source: str, filename: str | None = None):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

        if source.startswith("\ufeff"):
            self.pos = 1

    def _error(self, message: str, line: int, column: int) -> LexerError:
        return LexerError(message, line, column, self.filename)

    def _current(self) -> str:
        """Get current character or empty string if at end."""
        if self.pos >= len(self.source):
            return ""
        return self.source[self.pos]

    def _advance(self) -> str:
        """Advance position and return current character."""
        if self.pos >= len(self.source):
            return ""

        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def _skip_whitespace(self) -> None:
        """Skip blanks; newlines are significant and left in place."""
        char = self._current()
        while char and char in " \t\r":
            self._advance()
            char = self._current()

    def _skip_comment(self) -> bool:
        """Skip a '#' comment up to (not including) the newline."""
        if self._current() != COMMENT_CHAR:
            return False
        while self._current() and self._current() != "\n":
            self._advance()
        return True

    def _read_string(self) -> Token:
        """Read a quoted string literal."""
        start_line = self.line
        start_col = self.column
        start_pos = self.pos
        self._advance()  # skip opening quote

        result = []

        while self._current() != QUOTE_CHAR:
            char = self._current()

            if not char or char == "\n":
                raise self._error("Unterminated string literal", start_line, start_col)

            if char == ESCAPE_CHAR:
                self._advance()
                escape_char = self._current()

                if escape_char in (QUOTE_CHAR, ESCAPE_CHAR):
                    result.append(escape_char)
                    self._advance()
                else:
                    # Unsupported escapes are kept verbatim
                    result.append(char)
            else:
                result.append(char)
                self._advance()

        self._advance()  # skip closing quote

        return Token(
            type=TokenType.STRING,
            value="".join(result),
            line=start_line,
            column=start_col,
            raw=self.source[start_pos:self.pos],
        )

    def _read_word(self) -> Token:
        """Read a bare word: literal (date, bool, number) or identifier."""
        start_line = self.line
        start_col = self.column
        start_pos = self.pos

        while self._current() and self._current() not in WORD_DELIMITERS:
            self._advance()

        word = self.source[start_pos:self.pos]

        kind = classify_literal(word)
        if kind is not None:
            try:
                convert_literal(kind, word)
            except LiteralError as e:
                raise self._error(str(e), start_line, start_col) from None
            return Token(LITERAL_TYPES[kind], word, start_line, start_col, word)

        if IDENTIFIER_RE.fullmatch(word):
            return Token(TokenType.IDENTIFIER, word, start_line, start_col, word)

        if len(word) == 1:
            raise self._error(f"Unexpected character: {word!r}", start_line, start_col)
        raise self._error(f"Invalid literal or identifier: {word!r}", start_line, start_col)

    def next_token(self) -> Token:
        """Get the next token from the source."""
        self._skip_whitespace()
        self._skip_comment()

        if self.pos >= len(self.source):
            return Token(TokenType.EOF, "", self.line, self.column)

        char = self._current()
        start_line = self.line
        start_col = self.column

        if char == "\n":
            self._advance()
            return Token(TokenType.EOL, "\n", start_line, start_col, "\n")

        # Single character tokens
        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(SINGLE_CHAR_TOKENS[char], char, start_line, start_col, char)

        if char == QUOTE_CHAR:
            return self._read_string()

        return self._read_word()

    def tokenize(self) -> Iterator[Token]:
        """Generate tokens up to and including EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def __iter__(self) -> Iterator[Token]:
        """Allow iteration over tokens."""
        return self.tokenize()


def tokenize(source: str, filename: str | None = None) -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
