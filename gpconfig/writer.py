"""
Canonical text output for a configuration.

Loading the output of dumps() into an empty Configuration yields an equal
tree: root options first, then one block per section, names in lowercase.
"""

from typing import Any, TextIO

from .const import ESCAPE_CHAR, QUOTE_CHAR, ROOT_SECTION
from .logging import get_logger
from .parser import ConfigDocument
from .values import Value, ValueKind


logger = get_logger("writer")


def quote_string(text: str) -> str:
    """Quote a string, escaping the quote and escape characters."""
    if "\n" in text:
        raise ValueError("Strings cannot contain line breaks")
    escaped = text.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2).replace(QUOTE_CHAR, ESCAPE_CHAR + QUOTE_CHAR)
    return f"{QUOTE_CHAR}{escaped}{QUOTE_CHAR}"


def format_scalar(kind: ValueKind, data: Any) -> str:
    if kind is ValueKind.BOOL:
        return "true" if data else "false"
    if kind is ValueKind.INT:
        return str(data)
    if kind is ValueKind.FLOAT:
        return repr(data)
    if kind is ValueKind.DATE:
        return data.isoformat()
    if kind is ValueKind.STRING:
        return quote_string(data)
    raise ValueError(f"Not a scalar kind: {kind.value}")


def format_value(value: Value) -> str:
    """Render a value as it would appear after '='."""
    if value.kind is ValueKind.ARRAY:
        items = ", ".join(format_scalar(value.item_kind, item) for item in value.data)
        return f"[{items}]"
    return format_scalar(value.kind, value.data)


def dumps(config: Any) -> str:
    """
    Serialize a configuration to text.

    Args:
        config: Configuration or ConfigDocument to serialize

    Returns:
        Configuration text, empty for an empty configuration
    """
    # Work on one published tree even if a load lands meanwhile
    document = config if isinstance(config, ConfigDocument) else config.document
    lines: list[str] = []

    # Root options must precede the first header whatever their load order
    names = sorted(document.sections, key=lambda name: name != ROOT_SECTION)

    for name in names:
        section = document.sections[name]

        if name != ROOT_SECTION:
            if lines:
                lines.append("")
            lines.append(f"[{name}]")

        for option_name, option in section.options.items():
            lines.append(f"{option_name} = {format_value(option.value)}")

    logger.debug("Serialized %d section(s)", len(document))

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def dump(config: Any, fp: TextIO) -> None:
    """Serialize a configuration to a text stream."""
    fp.write(dumps(config))
