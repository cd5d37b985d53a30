"""
Value model for configuration options.

A Value is a tagged variant: one of the scalar kinds (bool, int, float,
date, string) or a homogeneous array of one scalar kind.

Literal coercion precedence for bare (unquoted) text:
    1. Date     2024-01-31
    2. Bool     true, false (case-sensitive)
    3. Numeric  Int unless a decimal point or exponent is present, then Float
    4. String   everything else
Quoted strings are always String.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any
import math
import re

from .const import INT_MAX, INT_MIN


class ValueKind(Enum):
    """Variants of a configuration value."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DATE = "date"
    STRING = "string"
    ARRAY = "array"

    @property
    def is_scalar(self) -> bool:
        return self is not ValueKind.ARRAY


BOOL_KEYWORDS = {"true": True, "false": False}

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
INT_RE = re.compile(r"[+-]?[0-9]+")
FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.[0-9]+(?:[eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+)")


class LiteralError(ValueError):
    """Literal looks like a date or number but is not a valid one."""

    pass


def classify_literal(text: str) -> ValueKind | None:
    """
    Classify bare literal text following the coercion precedence.

    Returns None when the text is not a date, bool or number.
    """
    if DATE_RE.fullmatch(text):
        return ValueKind.DATE
    if text in BOOL_KEYWORDS:
        return ValueKind.BOOL
    if INT_RE.fullmatch(text):
        return ValueKind.INT
    if FLOAT_RE.fullmatch(text):
        return ValueKind.FLOAT
    return None


def convert_literal(kind: ValueKind, text: str) -> Any:
    """
    Convert literal text of a known scalar kind to its Python value.

    Raises:
        LiteralError: If the text is out of range or not a calendar date
    """
    if kind is ValueKind.DATE:
        try:
            return date.fromisoformat(text)
        except ValueError:
            raise LiteralError(f"Invalid date: {text}") from None
    if kind is ValueKind.BOOL:
        return BOOL_KEYWORDS[text]
    if kind is ValueKind.INT:
        number = int(text)
        if not INT_MIN <= number <= INT_MAX:
            raise LiteralError(f"Integer out of range: {text}")
        return number
    if kind is ValueKind.FLOAT:
        number = float(text)
        if not math.isfinite(number):
            raise LiteralError(f"Float out of range: {text}")
        return number
    if kind is ValueKind.STRING:
        return text
    raise LiteralError(f"Not a scalar kind: {kind.value}")


def kind_of(data: Any) -> ValueKind:
    """Return the scalar kind of a Python value."""
    # bool first: bool is a subclass of int
    if isinstance(data, bool):
        return ValueKind.BOOL
    if isinstance(data, int):
        return ValueKind.INT
    if isinstance(data, float):
        return ValueKind.FLOAT
    if isinstance(data, date):
        return ValueKind.DATE
    if isinstance(data, str):
        return ValueKind.STRING
    raise TypeError(f"Unsupported value type: {type(data).__name__}")


@dataclass(frozen=True)
class Value:
    """
    A typed configuration value.

    Scalars keep their Python value in ``data``. Arrays keep a tuple of
    Python scalars in ``data`` and their common kind in ``item_kind``.
    """

    kind: ValueKind
    data: Any
    item_kind: ValueKind | None = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.kind is ValueKind.ARRAY:
            if self.item_kind is None or not self.item_kind.is_scalar:
                raise ValueError("Array values need a scalar item kind")
            for item in self.data:
                if kind_of(item) is not self.item_kind:
                    raise ValueError(
                        f"Array of {self.item_kind.value} cannot hold {kind_of(item).value}"
                    )
        elif self.item_kind is not None:
            raise ValueError("Only arrays have an item kind")

    @classmethod
    def scalar(cls, data: Any, line: int = 0, column: int = 0) -> "Value":
        """Wrap a Python scalar."""
        return cls(kind=kind_of(data), data=data, line=line, column=column)

    @classmethod
    def array(
        cls,
        items: list[Any] | tuple[Any, ...],
        item_kind: ValueKind | None = None,
        line: int = 0,
        column: int = 0,
    ) -> "Value":
        """Wrap a homogeneous sequence of Python scalars."""
        items = tuple(items)
        if item_kind is None:
            if not items:
                raise ValueError("Cannot infer the item kind of an empty array")
            item_kind = kind_of(items[0])
        return cls(
            kind=ValueKind.ARRAY,
            data=items,
            item_kind=item_kind,
            line=line,
            column=column,
        )

    @property
    def type_name(self) -> str:
        """Human readable kind, e.g. ``int`` or ``array of string``."""
        if self.kind is ValueKind.ARRAY and self.item_kind is not None:
            return f"array of {self.item_kind.value}"
        return self.kind.value

    @property
    def python_value(self) -> Any:
        """Python value; arrays become lists."""
        if self.kind is ValueKind.ARRAY:
            return list(self.data)
        return self.data


def coerce_literal(text: str, line: int = 0, column: int = 0) -> Value:
    """
    Turn bare literal text into a Value.

    Follows the fixed precedence Date, Bool, numeric, String. Text that
    looks like a date or number but is invalid (e.g. ``2024-13-01``) raises
    LiteralError rather than silently becoming a String.
    """
    kind = classify_literal(text) or ValueKind.STRING
    return Value(kind=kind, data=convert_literal(kind, text), line=line, column=column)
