"""
Exception hierarchy for configuration parsing, access and decoding.

Parse-time faults carry a source position; access and decode faults are
local conditions reported to the caller.
"""


class ConfigError(Exception):
    """Base class for all gpconfig errors."""

    pass


class PositionedError(ConfigError):
    """An error annotated with filename (when known), line and column."""

    def __init__(
        self,
        message: str,
        line: int | None,
        column: int | None,
        filename: str | None = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(self._format())

    def _format(self) -> str:
        if self.filename:
            return f"{self.filename}, line {self.line}, column {self.column}: {self.message}"
        return f"Line {self.line}, column {self.column}: {self.message}"


class LexerError(PositionedError):
    """Unrecognized character or malformed literal."""

    pass


class ParseError(PositionedError):
    """Token stream does not match the grammar."""

    pass


class ValueTypeError(ParseError):
    """Array element does not share the kind of the first element."""

    pass


class ConfigFileError(PositionedError):
    """
    Configuration file could not be read.

    The fault is not tied to a place in the text, so line and column are None.
    """

    def __init__(self, message: str, filename: str):
        super().__init__(message, None, None, filename)

    def _format(self) -> str:
        return f"{self.filename}: {self.message}"


class AccessError(ConfigError):
    """Base class for accessor failures."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0] if self.args else ""


class MissingKeyError(AccessError, KeyError):
    """Accessor path does not resolve to an option."""

    def __init__(self, path: str):
        super().__init__(path, f"Missing key: {path}")


class TypeMismatchError(AccessError, TypeError):
    """Stored value kind differs from the requested one."""

    def __init__(self, path: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(path, f"Type mismatch for '{path}': expected {expected}, got {actual}")


class DecodeError(ConfigError):
    """Section could not be mapped onto a record."""

    pass


class DecodeTypeError(DecodeError, TypeError):
    """Option value cannot be coerced into the target field type."""

    def __init__(self, section: str, option: str, field: str, expected: str, actual: str):
        self.section = section
        self.option = option
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Cannot decode option '{option}' of section '{section}' into field "
            f"'{field}': expected {expected}, got {actual}"
        )


class MissingOptionError(DecodeError):
    """A required field has no matching option."""

    def __init__(self, section: str, option: str, field: str):
        self.section = section
        self.option = option
        self.field = field
        super().__init__(
            f"Missing required option '{option}' in section '{section}' (field '{field}')"
        )
