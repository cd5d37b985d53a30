"""
Map the options of a section onto record fields.

Two ways to describe a record:

Dataclasses, where each field maps to the option of the same name
(case-insensitive) unless option() names another one:

    @dataclass
    class Database:
        name: str = option("dbname")
        username: str = option("user", required=True)
        password: str = ""

    db = Database()
    cfg.decode("database", db)

Arbitrary objects, through an explicit RecordBinder:

    binder = RecordBinder()
    binder.bind("dbname", str, lambda v: setattr(db, "name", v))
    binder.apply(cfg, "database")

Supported field types: bool, int, float, str, datetime.date, list[T] of
those, Optional[T] and Any. An Int option widens into a float field;
no other conversion takes place.
"""

from dataclasses import dataclass, field, fields, is_dataclass, FrozenInstanceError
from datetime import date
from typing import Any, Callable, Union, get_args, get_origin, get_type_hints
import types

from .errors import DecodeError, DecodeTypeError, MissingOptionError
from .logging import get_logger
from .parser import Section
from .values import Value, ValueKind


logger = get_logger("decoder")

OPTION_KEY = "option"
REQUIRED_KEY = "required"

SCALAR_TARGETS = {
    bool: ValueKind.BOOL,
    int: ValueKind.INT,
    float: ValueKind.FLOAT,
    str: ValueKind.STRING,
    date: ValueKind.DATE,
}


def option(name: str | None = None, *, required: bool = False, **kwargs: Any) -> Any:
    """
    dataclasses.field() carrying an explicit option name.

    Args:
        name: Option name to read instead of the field name
        required: Fail decoding when the option is missing
        **kwargs: Passed through to dataclasses.field()
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[OPTION_KEY] = name
    if required:
        metadata[REQUIRED_KEY] = True
    return field(metadata=metadata, **kwargs)


class _Mismatch(Exception):
    """Raised by _coerce; turned into DecodeTypeError with context."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(expected, actual)


def _type_name(target: Any) -> str:
    if get_origin(target) is None and isinstance(target, type):
        return target.__name__
    return str(target).replace("typing.", "")


def _unwrap_optional(target: Any) -> Any:
    """Optional[T] and T | None become T."""
    if get_origin(target) in (Union, types.UnionType):
        args = [arg for arg in get_args(target) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return target


def _coerce_scalar(kind: ValueKind, data: Any, target: Any) -> Any:
    if target is Any:
        return data
    expected = SCALAR_TARGETS.get(target)
    if expected is None:
        raise DecodeError(f"Unsupported field type: {_type_name(target)}")
    if kind is expected:
        return data
    if target is float and kind is ValueKind.INT:
        return float(data)
    raise _Mismatch(_type_name(target), kind.value)


def _coerce(value: Value, target: Any) -> Any:
    """Convert a Value into the Python type a field declares."""
    target = _unwrap_optional(target)

    if target is Any:
        return value.python_value

    origin = get_origin(target)
    if target is list or origin is list:
        if value.kind is not ValueKind.ARRAY:
            raise _Mismatch(_type_name(target), value.type_name)
        args = get_args(target)
        item_target = _unwrap_optional(args[0]) if args else Any
        return [_coerce_scalar(value.item_kind, item, item_target) for item in value.data]

    if origin is not None:
        raise DecodeError(f"Unsupported field type: {_type_name(target)}")

    if value.kind is ValueKind.ARRAY:
        if target not in SCALAR_TARGETS:
            raise DecodeError(f"Unsupported field type: {_type_name(target)}")
        raise _Mismatch(_type_name(target), value.type_name)

    return _coerce_scalar(value.kind, value.data, target)


def _convert(
    value: Value,
    target: Any,
    section_name: str,
    option_name: str,
    field_name: str,
) -> Any:
    try:
        return _coerce(value, target)
    except _Mismatch as e:
        raise DecodeTypeError(section_name, option_name, field_name, e.expected, e.actual) from None


def decode(config: Any, section_name: str, record: Any, required: bool = False) -> None:
    """
    Copy options of a section onto the fields of a dataclass instance.

    Fields without a matching option keep their current value, unless the
    field is marked required or `required` is set for the call. Options
    without a matching field are ignored. A missing section is treated as
    an empty one. Nothing is assigned unless every field decodes.

    Args:
        config: Configuration to read from
        section_name: Section name ('' for root options)
        record: Dataclass instance to fill
        required: Treat every field as required

    Raises:
        DecodeTypeError: If an option cannot be coerced into its field type
        MissingOptionError: If a required option is missing
        DecodeError: If the record or one of its field types is unsupported
    """
    if not is_dataclass(record) or isinstance(record, type):
        raise DecodeError(f"Decode target must be a dataclass instance, got {type(record).__name__}")

    section: Section | None = config.section(section_name)
    hints = get_type_hints(type(record))
    updates: dict[str, Any] = {}

    for record_field in fields(record):
        option_name = record_field.metadata.get(OPTION_KEY, record_field.name)
        value = section.get_value(option_name) if section is not None else None

        if value is None:
            if required or record_field.metadata.get(REQUIRED_KEY, False):
                raise MissingOptionError(section_name, option_name, record_field.name)
            continue

        updates[record_field.name] = _convert(
            value,
            hints.get(record_field.name, Any),
            section_name,
            option_name,
            record_field.name,
        )

    try:
        for name, data in updates.items():
            setattr(record, name, data)
    except FrozenInstanceError as e:
        raise DecodeError(f"Cannot decode into frozen dataclass {type(record).__name__}") from e

    logger.debug(
        "Decoded %d field(s) of %s from section '%s'",
        len(updates), type(record).__name__, section_name,
    )


@dataclass
class Binding:
    """One option-to-setter mapping of a RecordBinder."""
    option: str
    target: Any
    setter: Callable[[Any], None]
    required: bool = False


class RecordBinder:
    """
    Explicit option-to-setter table for records that are not dataclasses.

    Bindings are applied in registration order, after every option of the
    section has been converted successfully.
    """

    def __init__(self):
        self.bindings: list[Binding] = []

    def bind(
        self,
        option_name: str,
        target: Any,
        setter: Callable[[Any], None],
        required: bool = False,
    ) -> "RecordBinder":
        """
        Register a setter for an option.

        Args:
            option_name: Option to read (case-insensitive)
            target: Python type to coerce into, e.g. int or list[str]
            setter: Called with the converted value
            required: Fail when the option is missing

        Returns:
            The binder, for chaining
        """
        self.bindings.append(Binding(option_name, target, setter, required))
        return self

    def apply(self, config: Any, section_name: str, required: bool = False) -> int:
        """
        Convert every bound option of a section and call the setters.

        Returns:
            Number of setters called
        """
        section: Section | None = config.section(section_name)
        pending: list[tuple[Callable[[Any], None], Any]] = []

        for binding in self.bindings:
            value = section.get_value(binding.option) if section is not None else None

            if value is None:
                if required or binding.required:
                    raise MissingOptionError(section_name, binding.option, binding.option)
                continue

            pending.append(
                (
                    binding.setter,
                    _convert(value, binding.target, section_name, binding.option, binding.option),
                )
            )

        for setter, data in pending:
            setter(data)

        return len(pending)
