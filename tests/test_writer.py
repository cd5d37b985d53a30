"""
Tests for canonical serialization.
"""

import io

import pytest

from gpconfig import Configuration, dump, dumps, writer
from gpconfig.writer import quote_string


def test_dumps_canonical_form() -> None:
    cfg = Configuration()
    cfg.load_string(
        "# comment\n"
        "Version = [1, 0, 10]\n"
        "[DataBase]\n"
        "   dbname = \"mydb\"   # inline\n"
        "   created = 2024-01-31\n"
        "   ratio = 0.25\n"
        "   big = 1e16\n"
        "   on = true\n"
    )

    assert dumps(cfg) == (
        "version = [1, 0, 10]\n"
        "\n"
        "[database]\n"
        "dbname = \"mydb\"\n"
        "created = 2024-01-31\n"
        "ratio = 0.25\n"
        "big = 1e+16\n"
        "on = true\n"
    )


def test_round_trip(config: Configuration) -> None:
    """Reloading the canonical text yields an equal tree."""
    reloaded = Configuration()
    reloaded.load_string(config.dumps())

    assert reloaded.as_dict() == config.as_dict()
    assert reloaded.dumps() == config.dumps()


def test_round_trip_of_tricky_strings() -> None:
    cfg = Configuration()
    cfg.load_string(r'path = "C:\temp\\dir"' + "\n" + r'quote = "say \"hi\""' + "\n")

    reloaded = Configuration()
    reloaded.load_string(cfg.dumps())

    assert reloaded.get_string("path") == r"C:\temp\dir"
    assert reloaded.get_string("quote") == 'say "hi"'


def test_root_options_come_first() -> None:
    """Root options loaded after a section still precede every header."""
    cfg = Configuration()
    cfg.load_string("[s]\na = 1\n")
    cfg.load_string("top = 2\n")

    text = cfg.dumps()
    assert text.startswith("top = 2\n")

    reloaded = Configuration()
    reloaded.load_string(text)
    assert reloaded.as_dict() == cfg.as_dict()


def test_empty_section_survives_round_trip() -> None:
    cfg = Configuration()
    cfg.load_string("[empty]\n")

    assert cfg.dumps() == "[empty]\n"


def test_empty_configuration() -> None:
    assert dumps(Configuration()) == ""


def test_dump_to_stream(config: Configuration) -> None:
    stream = io.StringIO()
    dump(config, stream)

    assert stream.getvalue() == config.dumps()


def test_quote_string_rejects_line_breaks() -> None:
    assert quote_string('a"b\\c') == '"a\\"b\\\\c"'

    with pytest.raises(ValueError):
        quote_string("two\nlines")


def test_dumps_reads_one_tree(monkeypatch: pytest.MonkeyPatch) -> None:
    """A load that lands while dumping does not leak into the output."""
    cfg = Configuration()
    cfg.load_string("[db]\nx = 1\n")
    format_value = writer.format_value
    seen = []

    def format_during_load(value):
        if not seen:
            cfg.load_string("[db]\nx = 2\n[extra]\ny = 3\n")
        seen.append(value)
        return format_value(value)

    monkeypatch.setattr(writer, "format_value", format_during_load)

    assert cfg.dumps() == "[db]\nx = 1\n"
    assert cfg.dumps() == "[db]\nx = 2\n\n[extra]\ny = 3\n"


def test_dumps_accepts_document(config: Configuration) -> None:
    assert dumps(config.document) == config.dumps()
