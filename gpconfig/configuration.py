"""
Configuration store with layered loading and typed accessors.
"""

from datetime import date
from pathlib import Path
from typing import Any
import threading

from .const import DEFAULT_ENCODING, PATH_SEPARATOR, ROOT_SECTION
from .decoder import decode
from .errors import ConfigFileError, MissingKeyError, TypeMismatchError
from .logging import get_logger
from .parser import ConfigDocument, Section, parse_config
from .values import Value, ValueKind
from .writer import dumps


logger = get_logger("configuration")


class Configuration:
    """
    Case-insensitive collection of sections and options.

    Every load parses into a staging document first; only a fully parsed
    document is merged into the live tree, so a failed load leaves earlier
    state untouched. Later loads override options of earlier ones.

    Usage:
        cfg = Configuration()
        cfg.load_string(defaults)
        cfg.load_file("debug.cfg")          # overrides some defaults
        dbname = cfg.get_string("database.dbname")
        user = cfg.get_string_default("database.user", "admin")

    Loads are serialized by an internal lock and publish the merged tree by
    swapping a single reference; readers work on whichever tree was current
    when they started and never see a partial load.
    """

    def __init__(self, strict: bool = False, encoding: str = DEFAULT_ENCODING):
        """
        Initialize an empty configuration.

        Args:
            strict: Reject options defined twice within a single load
            encoding: Text encoding used by load_file()
        """
        self.strict = strict
        self.encoding = encoding
        self._document = ConfigDocument()
        self._load_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Configuration(sections={self.sections()!r})"

    def __len__(self) -> int:
        return len(self._document)

    def __contains__(self, path: str) -> bool:
        return self.has(path)

    # Loading

    def load_string(self, source: str, filename: str | None = None) -> None:
        """
        Parse configuration text and merge it into this configuration.

        Args:
            source: Configuration source text
            filename: Filename reported in error messages

        Raises:
            LexerError, ParseError: If the text cannot be parsed
        """
        staged = parse_config(source, filename, self.strict)

        with self._load_lock:
            self._document = self._document.merged(staged)

        logger.debug(
            "Loaded %s: %d section(s) now defined",
            filename or "<string>", len(self._document),
        )

    def load_file(self, path: str | Path) -> None:
        """
        Read a configuration file and merge it into this configuration.

        Args:
            path: Path to the configuration file

        Raises:
            ConfigFileError: If the file cannot be read or decoded
            LexerError, ParseError: If the file cannot be parsed
        """
        path = Path(path)

        try:
            source = path.read_text(encoding=self.encoding)
        except OSError as e:
            raise ConfigFileError(
                f"Cannot read configuration file: {e.strerror or e}", str(path)
            ) from e
        except UnicodeDecodeError as e:
            raise ConfigFileError(
                f"Configuration file is not valid {self.encoding}: {e.reason}", str(path)
            ) from e

        self.load_string(source, str(path))

    # Introspection

    def sections(self) -> list[str]:
        """Names of all sections in definition order ('' is the root section)."""
        return list(self._document.sections)

    @property
    def document(self) -> ConfigDocument:
        """
        The currently published tree.

        Loads replace it rather than modify it, so a caller holding it reads
        one consistent state.
        """
        return self._document

    def section(self, name: str) -> Section | None:
        """Get a section by case-insensitive name."""
        return self._document.get_section(name)

    def options(self, section: str = ROOT_SECTION) -> dict[str, Any]:
        """
        Option values of a section as plain Python values.

        Returns an empty dict for unknown sections.
        """
        found = self._document.get_section(section)
        if found is None:
            return {}
        return _plain_values(found)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        """Whole configuration as nested plain Python values."""
        document = self._document
        return {name: _plain_values(section) for name, section in document.sections.items()}

    def _lookup(self, path: str) -> Value | None:
        """
        Resolve a dotted path, or None if it does not resolve.

        Names may contain dots themselves, so every split point is tried
        from left to right before falling back to a root option.
        """
        document = self._document

        # A leading separator never names the root section
        pos = path.find(PATH_SEPARATOR, 1)
        while pos != -1:
            section = document.get_section(path[:pos])
            if section is not None:
                value = section.get_value(path[pos + 1:])
                if value is not None:
                    return value
            pos = path.find(PATH_SEPARATOR, pos + 1)

        root = document.get_section(ROOT_SECTION)
        if root is not None:
            return root.get_value(path)
        return None

    def has(self, path: str) -> bool:
        """Check whether a path resolves to an option."""
        return self._lookup(path) is not None

    def get(self, path: str) -> Value:
        """
        Get the raw Value at a path.

        Raises:
            MissingKeyError: If the path does not resolve
        """
        value = self._lookup(path)
        if value is None:
            raise MissingKeyError(path)
        return value

    # Typed accessors

    def _get_typed(self, path: str, kind: ValueKind, item_kind: ValueKind | None = None) -> Any:
        return _check_kind(path, self.get(path), kind, item_kind)

    def _get_typed_default(
        self,
        path: str,
        default: Any,
        kind: ValueKind,
        item_kind: ValueKind | None = None,
    ) -> Any:
        # Default only covers a missing key; a wrong type is still an error
        value = self._lookup(path)
        if value is None:
            return default
        return _check_kind(path, value, kind, item_kind)

    def get_bool(self, path: str) -> bool:
        return self._get_typed(path, ValueKind.BOOL)

    def get_int(self, path: str) -> int:
        return self._get_typed(path, ValueKind.INT)

    def get_float(self, path: str) -> float:
        return self._get_typed(path, ValueKind.FLOAT)

    def get_date(self, path: str) -> date:
        return self._get_typed(path, ValueKind.DATE)

    def get_string(self, path: str) -> str:
        return self._get_typed(path, ValueKind.STRING)

    def get_bool_array(self, path: str) -> list[bool]:
        return self._get_typed(path, ValueKind.ARRAY, ValueKind.BOOL)

    def get_int_array(self, path: str) -> list[int]:
        return self._get_typed(path, ValueKind.ARRAY, ValueKind.INT)

    def get_float_array(self, path: str) -> list[float]:
        return self._get_typed(path, ValueKind.ARRAY, ValueKind.FLOAT)

    def get_date_array(self, path: str) -> list[date]:
        return self._get_typed(path, ValueKind.ARRAY, ValueKind.DATE)

    def get_string_array(self, path: str) -> list[str]:
        return self._get_typed(path, ValueKind.ARRAY, ValueKind.STRING)

    # Default-valued accessors: default when missing, TypeMismatchError when mistyped

    def get_bool_default(self, path: str, default: bool) -> bool:
        return self._get_typed_default(path, default, ValueKind.BOOL)

    def get_int_default(self, path: str, default: int) -> int:
        return self._get_typed_default(path, default, ValueKind.INT)

    def get_float_default(self, path: str, default: float) -> float:
        return self._get_typed_default(path, default, ValueKind.FLOAT)

    def get_date_default(self, path: str, default: date) -> date:
        return self._get_typed_default(path, default, ValueKind.DATE)

    def get_string_default(self, path: str, default: str) -> str:
        return self._get_typed_default(path, default, ValueKind.STRING)

    def get_bool_array_default(self, path: str, default: list[bool]) -> list[bool]:
        return self._get_typed_default(path, default, ValueKind.ARRAY, ValueKind.BOOL)

    def get_int_array_default(self, path: str, default: list[int]) -> list[int]:
        return self._get_typed_default(path, default, ValueKind.ARRAY, ValueKind.INT)

    def get_float_array_default(self, path: str, default: list[float]) -> list[float]:
        return self._get_typed_default(path, default, ValueKind.ARRAY, ValueKind.FLOAT)

    def get_date_array_default(self, path: str, default: list[date]) -> list[date]:
        return self._get_typed_default(path, default, ValueKind.ARRAY, ValueKind.DATE)

    def get_string_array_default(self, path: str, default: list[str]) -> list[str]:
        return self._get_typed_default(path, default, ValueKind.ARRAY, ValueKind.STRING)

    # Decoding and serialization

    def decode(self, section: str, record: Any, required: bool = False) -> None:
        """
        Copy options of a section onto the fields of a dataclass instance.

        See gpconfig.decoder.decode().
        """
        decode(self, section, record, required=required)

    def dumps(self) -> str:
        """Canonical text form that loads back into an equal configuration."""
        return dumps(self._document)


def _plain_values(section: Section) -> dict[str, Any]:
    return {name: option.value.python_value for name, option in section.options.items()}


def _check_kind(path: str, value: Value, kind: ValueKind, item_kind: ValueKind | None) -> Any:
    if value.kind is not kind or value.item_kind is not item_kind:
        expected = kind.value if item_kind is None else f"array of {item_kind.value}"
        raise TypeMismatchError(path, expected, value.type_name)
    return value.python_value
