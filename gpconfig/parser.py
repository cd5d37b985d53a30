"""
Recursive descent parser for the configuration syntax.

Parses tokens from the lexer into a document of sections and options.
Sections cannot be nested; option values are scalars or flat arrays.
"""

from dataclasses import dataclass, field
from typing import Iterator

from .const import ROOT_SECTION
from .errors import ParseError, ValueTypeError
from .lexer import LITERAL_TYPES, Lexer, Token, TokenType
from .logging import get_logger
from .values import Value, convert_literal


logger = get_logger("parser")

TOKEN_KINDS = {token_type: kind for kind, token_type in LITERAL_TYPES.items()}


def normalize(name: str) -> str:
    """Section and option names are case-insensitive."""
    return name.lower()


@dataclass
class Option:
    """
    A named value inside a section.

    Examples:
        port = 5432            -> Option(name="port", value=Value(INT, 5432))
        hosts = ["a", "b"]     -> Option(name="hosts", value=Value(ARRAY, ("a", "b")))
    """
    name: str
    value: Value
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Option({self.name}, {self.value.python_value!r})"


@dataclass
class Section:
    """
    A named group of options. The root section has the empty name.

    Option names are stored lowercase and looked up case-insensitively.
    """
    name: str
    options: dict[str, Option] = field(default_factory=dict)
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Section({self.name!r}, options={len(self.options)})"

    def __contains__(self, name: str) -> bool:
        return normalize(name) in self.options

    def __len__(self) -> int:
        return len(self.options)

    def get_option(self, name: str) -> Option | None:
        """Get option by case-insensitive name."""
        return self.options.get(normalize(name))

    def get_value(self, name: str) -> Value | None:
        """Get option value by case-insensitive name."""
        option = self.get_option(name)
        if option:
            return option.value
        return None

    def set_option(self, option: Option) -> Option | None:
        """Store option, returning the one it replaced (if any)."""
        key = normalize(option.name)
        previous = self.options.get(key)
        self.options[key] = option
        return previous

    def copy(self) -> "Section":
        """Shallow copy with its own option mapping."""
        return Section(
            name=self.name,
            options=dict(self.options),
            line=self.line,
            column=self.column,
        )


@dataclass
class ConfigDocument:
    """
    Root document: sections in definition order, keyed by lowercase name.
    """
    sections: dict[str, Section] = field(default_factory=dict)
    filename: str | None = None

    def __len__(self) -> int:
        return len(self.sections)

    def get_section(self, name: str) -> Section | None:
        """Get section by case-insensitive name."""
        return self.sections.get(normalize(name))

    def open_section(self, name: str, line: int = 0, column: int = 0) -> Section:
        """Return existing section or append a new one."""
        key = normalize(name)
        section = self.sections.get(key)
        if section is None:
            section = Section(name=key, line=line, column=column)
            self.sections[key] = section
        return section

    def merged(self, other: "ConfigDocument") -> "ConfigDocument":
        """
        Return a new document with `other` layered on top of this one.

        Options in `other` override options of the same name; new sections
        are appended. Neither input is modified.
        """
        result = ConfigDocument(
            sections={key: section.copy() for key, section in self.sections.items()},
            filename=other.filename or self.filename,
        )

        for key, section in other.sections.items():
            target = result.sections.get(key)
            if target is None:
                result.sections[key] = section.copy()
                continue
            for option in section.options.values():
                previous = target.set_option(option)
                if previous is not None:
                    logger.debug(
                        "Option '%s' in section '%s' overridden (line %d)",
                        option.name, key, option.line,
                    )

        return result


class ConfigParser:
    """
    Recursive descent parser for the configuration syntax.

    Grammar:
        config  := { section | option }
        section := '[' IDENTIFIER ']' EOL { option }
        option  := IDENTIFIER '=' ( value | array ) EOL
        value   := BOOL | INT | FLOAT | DATE | STRING
        array   := '[' {EOL} value {EOL} { ',' {EOL} value {EOL} } ']'

    Blank lines and comments may appear wherever EOL is expected, and end
    of input terminates the last line. Parsing stops at the first error.
    """

    def __init__(
        self,
        source: str,
        filename: str | None = None,
        strict: bool = False,
    ):
        self.lexer = Lexer(source, filename)
        self.filename = filename
        self.strict = strict

        self._tokens: Iterator[Token] = self.lexer.tokenize()
        self.current_token: Token = next(self._tokens)

    def _error(self, message: str, token: Token, error_class: type[ParseError] = ParseError) -> ParseError:
        return error_class(message, token.line, token.column, self.filename)

    def _advance(self) -> Token:
        """Advance to next token and return previous."""
        previous = self.current_token
        if previous.type != TokenType.EOF:
            self.current_token = next(self._tokens)
        return previous

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self.current_token.type == token_type

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Expect current token to be of given type, advance and return it."""
        if not self._check(token_type):
            raise self._error(f"{message}, got {describe(self.current_token)}", self.current_token)
        return self._advance()

    def _skip_eols(self) -> None:
        while self._check(TokenType.EOL):
            self._advance()

    def _expect_eol(self, context: str) -> None:
        """A line must end after a header or an option."""
        if self._check(TokenType.EOF):
            return
        self._expect(TokenType.EOL, f"Expected end of line after {context}")

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        doc = ConfigDocument(filename=self.filename)
        section = doc.open_section(ROOT_SECTION)

        self._skip_eols()

        while not self._check(TokenType.EOF):
            if self._check(TokenType.LBRACKET):
                section = self._parse_section_header(doc)
            elif self._check(TokenType.IDENTIFIER):
                self._parse_option(section)
            else:
                raise self._error(
                    f"Expected section header or option, got {describe(self.current_token)}",
                    self.current_token,
                )
            self._skip_eols()

        # Root section only survives if something was put in it
        if not doc.sections[ROOT_SECTION].options:
            del doc.sections[ROOT_SECTION]

        logger.debug(
            "Parsed %s: %d section(s)",
            self.filename or "<string>", len(doc.sections),
        )
        return doc

    def _parse_section_header(self, doc: ConfigDocument) -> Section:
        """Parse '[' IDENTIFIER ']' EOL."""
        open_token = self._expect(TokenType.LBRACKET, "Expected '['")
        name_token = self._expect(TokenType.IDENTIFIER, "Expected section name after '['")
        self._expect(TokenType.RBRACKET, f"Expected ']' to close section '{name_token.value}'")
        self._expect_eol(f"section header '{name_token.value}'")

        if doc.get_section(name_token.value) is not None:
            logger.debug("Section '%s' reopened at line %d", name_token.value, open_token.line)

        return doc.open_section(name_token.value, open_token.line, open_token.column)

    def _parse_option(self, section: Section) -> None:
        """Parse IDENTIFIER '=' (value | array) EOL."""
        name_token = self._expect(TokenType.IDENTIFIER, "Expected option name")
        name = name_token.value
        self._expect(TokenType.EQUALS, f"Expected '=' after option '{name}'")

        if self._check(TokenType.LBRACKET):
            value = self._parse_array()
        else:
            value = self._parse_value()

        self._expect_eol(f"value of option '{name}'")

        if name in section and self.strict:
            raise self._error(
                f"Duplicate option '{name}' in section '{section.name}'", name_token
            )

        previous = section.set_option(
            Option(name=normalize(name), value=value, line=name_token.line, column=name_token.column)
        )
        if previous is not None:
            logger.debug(
                "Option '%s' redefined at line %d (first defined at line %d)",
                name, name_token.line, previous.line,
            )

    def _parse_value(self) -> Value:
        """Parse a single scalar literal."""
        token = self.current_token

        if self._check(TokenType.LBRACKET):
            raise self._error("Nested arrays are not supported", token, ValueTypeError)

        if self._check(TokenType.IDENTIFIER):
            # Bare words that are not literals, e.g. `mode = fast`
            raise self._error(f"Expected value, got {describe(token)}", token, ValueTypeError)

        if not token.is_value:
            raise self._error(f"Expected value, got {describe(token)}", token)

        self._advance()
        kind = TOKEN_KINDS[token.type]
        if token.type == TokenType.STRING:
            data = token.value
        else:
            data = convert_literal(kind, token.value)
        return Value(kind=kind, data=data, line=token.line, column=token.column)

    def _parse_array(self) -> Value:
        """Parse a bracketed, homogeneous list of scalar values."""
        open_token = self._expect(TokenType.LBRACKET, "Expected '['")
        self._skip_eols()

        if self._check(TokenType.RBRACKET):
            raise self._error("Empty arrays are not supported", self.current_token)

        first = self._parse_value()
        items = [first.data]
        self._skip_eols()

        while self._check(TokenType.COMMA):
            self._advance()
            self._skip_eols()
            element = self._parse_value()
            if element.kind is not first.kind:
                raise ValueTypeError(
                    f"Array element type mismatch: expected {first.kind.value}, "
                    f"got {element.kind.value}",
                    element.line,
                    element.column,
                    self.filename,
                )
            items.append(element.data)
            self._skip_eols()

        self._expect(TokenType.RBRACKET, "Expected ',' or ']' in array")

        return Value.array(items, first.kind, line=open_token.line, column=open_token.column)


def describe(token: Token) -> str:
    """Human readable token description for error messages."""
    if token.type == TokenType.EOF:
        return "end of file"
    if token.type == TokenType.EOL:
        return "end of line"
    if token.type == TokenType.IDENTIFIER:
        return f"identifier '{token.value}'"
    if token.is_value:
        return f"{token.type.name.lower()} {token.raw}"
    return f"'{token.raw}'"


def parse_config(source: str, filename: str | None = None, strict: bool = False) -> ConfigDocument:
    """
    Convenience function to parse a configuration string.

    Args:
        source: Configuration source text
        filename: Filename for error messages
        strict: Reject options defined twice in the same section

    Returns:
        Parsed ConfigDocument
    """
    parser = ConfigParser(source, filename, strict)
    return parser.parse()
