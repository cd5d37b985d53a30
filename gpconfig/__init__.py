"""
gpconfig: parser for a restricted, case-insensitive TOML-like format.

    from gpconfig import Configuration

    cfg = Configuration()
    cfg.load_string('version = [1, 0, 10]\n[database]\ndbname = "mydb"\n')
    cfg.get_string("database.dbname")    # "mydb"
"""

from .configuration import Configuration
from .const import APP_VERSION
from .decoder import RecordBinder, decode, option
from .errors import (
    AccessError,
    ConfigError,
    ConfigFileError,
    DecodeError,
    DecodeTypeError,
    LexerError,
    MissingKeyError,
    MissingOptionError,
    ParseError,
    PositionedError,
    TypeMismatchError,
    ValueTypeError,
)
from .lexer import Lexer, Token, TokenType
from .parser import ConfigDocument, ConfigParser, Option, Section
from .values import Value, ValueKind, coerce_literal
from .writer import dump, dumps

__version__ = APP_VERSION

__all__ = [
    "Configuration",
    "ConfigDocument",
    "ConfigParser",
    "Lexer",
    "Token",
    "TokenType",
    "Option",
    "Section",
    "Value",
    "ValueKind",
    "coerce_literal",
    "decode",
    "option",
    "RecordBinder",
    "dump",
    "dumps",
    "ConfigError",
    "PositionedError",
    "LexerError",
    "ParseError",
    "ValueTypeError",
    "ConfigFileError",
    "AccessError",
    "MissingKeyError",
    "TypeMismatchError",
    "DecodeError",
    "DecodeTypeError",
    "MissingOptionError",
    "__version__",
]
