"""
Tests for loading, layering and typed access.
"""

from datetime import date
from pathlib import Path
import threading

import pytest

from gpconfig import Configuration, configuration
from gpconfig.errors import (
    ConfigFileError,
    LexerError,
    MissingKeyError,
    ParseError,
    TypeMismatchError,
    ValueTypeError,
)
from gpconfig.values import ValueKind


def test_documented_example() -> None:
    cfg = Configuration()
    cfg.load_string('version = [1, 0, 10]\n[database]\n dbname = "mydb"\n')

    assert cfg.get_int_array("version") == [1, 0, 10]
    assert cfg.get_string("database.dbname") == "mydb"

    with pytest.raises(TypeMismatchError) as exc_info:
        cfg.get_int("version")

    assert exc_info.value.expected == "int"
    assert exc_info.value.actual == "array of int"


def test_typed_getters(config: Configuration) -> None:
    assert config.get_int_array("version") == [1, 0, 10]
    assert config.get_bool("debug") is False
    assert config.get_string("database.dbname") == "mydb"
    assert config.get_int("database.port") == 5432
    assert config.get_float("database.timeout") == 2.5
    assert config.get_date("database.created") == date(2024, 1, 31)
    assert config.get_string_array("database.replicas") == ["db1", "db2"]


def test_lookups_ignore_case(config: Configuration) -> None:
    """[Database]/dbname and [database]/DBNAME resolve identically."""
    assert config.get_string("Database.dbname") == "mydb"
    assert config.get_string("database.DBNAME") == "mydb"
    assert config.get_string("DATABASE.DbName") == "mydb"
    assert config.get_bool("DEBUG") is False


def test_missing_key(config: Configuration) -> None:
    with pytest.raises(MissingKeyError) as exc_info:
        config.get_string("database.host")

    assert exc_info.value.path == "database.host"
    assert str(exc_info.value) == "Missing key: database.host"
    # Also usable as a plain KeyError
    assert isinstance(exc_info.value, KeyError)

    with pytest.raises(MissingKeyError):
        config.get_string("nosuchsection.dbname")


def test_no_cross_type_coercion(config: Configuration) -> None:
    """An int is not a float, a bool is not an int, a date is not a string."""
    with pytest.raises(TypeMismatchError):
        config.get_float("database.port")

    with pytest.raises(TypeMismatchError):
        config.get_int("debug")

    with pytest.raises(TypeMismatchError):
        config.get_string("database.created")

    with pytest.raises(TypeMismatchError):
        config.get_int_array("database.replicas")

    with pytest.raises(TypeMismatchError) as exc_info:
        config.get_string_array("database.dbname")

    assert isinstance(exc_info.value, TypeError)
    assert exc_info.value.expected == "array of string"
    assert exc_info.value.actual == "string"


def test_default_used_only_when_missing(config: Configuration) -> None:
    assert config.get_string_default("database.host", "localhost") == "localhost"
    assert config.get_string_default("database.dbname", "other") == "mydb"
    assert config.get_int_default("database.port", 1) == 5432
    assert config.get_bool_default("verbose", True) is True
    assert config.get_float_default("database.retry", 0.5) == 0.5
    assert config.get_date_default("database.expires", date(2030, 1, 1)) == date(2030, 1, 1)
    assert config.get_int_array_default("ports", [80]) == [80]
    assert config.get_string_array_default("database.replicas", []) == ["db1", "db2"]


def test_default_does_not_hide_type_mismatch(config: Configuration) -> None:
    with pytest.raises(TypeMismatchError):
        config.get_int_default("database.dbname", 0)

    with pytest.raises(TypeMismatchError):
        config.get_bool_array_default("version", [True])


def test_array_getters() -> None:
    cfg = Configuration()
    cfg.load_string(
        "flags = [true, false]\n"
        "ratios = [0.5, 1.5]\n"
        "days = [2024-01-01, 2024-12-31]\n"
    )

    assert cfg.get_bool_array("flags") == [True, False]
    assert cfg.get_float_array("ratios") == [0.5, 1.5]
    assert cfg.get_date_array("days") == [date(2024, 1, 1), date(2024, 12, 31)]
    assert cfg.get_float_array_default("missing", [1.0]) == [1.0]
    assert cfg.get_date_array_default("missing", []) == []


def test_returned_arrays_are_copies(config: Configuration) -> None:
    replicas = config.get_string_array("database.replicas")
    replicas.append("db3")

    assert config.get_string_array("database.replicas") == ["db1", "db2"]


def test_layered_override(config: Configuration) -> None:
    """A second load overrides only the options it defines."""
    config.load_string('[DATABASE]\ndbname = "mydb_test"\n[cache]\nsize = 64\n')

    assert config.get_string("database.dbname") == "mydb_test"
    assert config.get_string("database.user") == "foo"
    assert config.get_int("database.port") == 5432
    assert config.get_int("cache.size") == 64
    assert config.sections() == ["", "database", "cache"]


def test_override_may_change_type(config: Configuration) -> None:
    config.load_string('database.port = "x"\n[database]\nport = "5433"\n')

    assert config.get_string("database.port") == "5433"


def test_failed_load_leaves_state_untouched(config: Configuration) -> None:
    before = config.as_dict()

    with pytest.raises(ValueTypeError):
        config.load_string('debug = true\n[database]\ndbname = "new"\nport = [1, "a"]\n')

    assert config.as_dict() == before
    assert config.get_bool("debug") is False


def test_load_file(config_file: Path) -> None:
    cfg = Configuration()
    cfg.load_file(config_file)

    assert cfg.get_string("database.user") == "foo"


def test_load_file_error_carries_filename(tmp_path: Path) -> None:
    path = tmp_path / "broken.cfg"
    path.write_text("[ok]\nvalue = 1\n[broken\n", encoding="utf-8")

    cfg = Configuration()
    with pytest.raises(ParseError) as exc_info:
        cfg.load_file(path)

    assert exc_info.value.filename == str(path)
    assert exc_info.value.line == 3
    assert str(exc_info.value).startswith(f"{path}, line 3, column 8: ")
    assert len(cfg) == 0


def test_lex_error_from_file_carries_filename(tmp_path: Path) -> None:
    path = tmp_path / "bad.cfg"
    path.write_text("a = $\n", encoding="utf-8")

    with pytest.raises(LexerError) as exc_info:
        Configuration().load_file(path)

    assert exc_info.value.filename == str(path)
    assert (exc_info.value.line, exc_info.value.column) == (1, 5)


def test_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "absent.cfg"

    with pytest.raises(ConfigFileError) as exc_info:
        Configuration().load_file(path)

    assert exc_info.value.filename == str(path)
    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.line is None
    assert exc_info.value.column is None
    assert str(exc_info.value).startswith(f"{path}: Cannot read configuration file")


def test_undecodable_file(tmp_path: Path) -> None:
    path = tmp_path / "latin1.cfg"
    path.write_bytes('name = "caf\xe9"\n'.encode("latin-1"))

    with pytest.raises(ConfigFileError, match="not valid utf-8"):
        Configuration().load_file(path)

    cfg = Configuration(encoding="latin-1")
    cfg.load_file(path)
    assert cfg.get_string("name") == "caf\xe9"


def test_strict_configuration() -> None:
    cfg = Configuration(strict=True)
    cfg.load_string("a = 1\n")
    # Overriding across loads is always allowed
    cfg.load_string("a = 2\n")

    assert cfg.get_int("a") == 2

    with pytest.raises(ParseError, match="Duplicate option"):
        cfg.load_string("b = 1\nb = 2\n")

    assert not cfg.has("b")


def test_dotted_names() -> None:
    """Section and option names may contain dots themselves."""
    cfg = Configuration()
    cfg.load_string(
        "log.level = \"info\"\n"
        "[server.http]\n"
        "bind.port = 8080\n"
        "[server]\n"
        "http.bind = \"0.0.0.0\"\n"
    )

    assert cfg.get_string("log.level") == "info"
    assert cfg.get_int("server.http.bind.port") == 8080
    assert cfg.get_string("server.http.bind") == "0.0.0.0"


def test_introspection(config: Configuration) -> None:
    assert len(config) == 2
    assert config.sections() == ["", "database"]
    assert "database.dbname" in config
    assert "database.host" not in config
    assert config.section("DATABASE").name == "database"
    assert config.section("nope") is None
    assert config.options("nope") == {}
    assert config.options()["version"] == [1, 0, 10]
    assert config.get("database.port").kind is ValueKind.INT


def test_concurrent_loads_and_reads() -> None:
    cfg = Configuration()
    cfg.load_string("[base]\nvalue = 0\n")
    errors: list[Exception] = []

    def writer(index: int) -> None:
        try:
            for step in range(50):
                cfg.load_string(f"[w{index}]\nstep = {step}\n")
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    def reader() -> None:
        try:
            for _ in range(200):
                assert cfg.get_int("base.value") == 0
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    # No load was lost
    for index in range(4):
        assert cfg.get_int(f"w{index}.step") == 49


def test_leading_separator_is_not_root() -> None:
    cfg = Configuration()
    cfg.load_string("x = 1\n[a]\nb = 2\n")

    assert cfg.has("x")
    assert cfg.has("a.b")
    assert not cfg.has(".x")
    assert not cfg.has(".a.b")
    with pytest.raises(MissingKeyError):
        cfg.get(".x")


def test_as_dict_reads_one_tree(monkeypatch: pytest.MonkeyPatch) -> None:
    """A load that lands while collecting values does not leak into the result."""
    cfg = Configuration()
    cfg.load_string("[db]\nx = 1\n")
    plain_values = configuration._plain_values
    seen = []

    def values_during_load(section):
        if not seen:
            cfg.load_string("[db]\nx = 2\n[extra]\ny = 3\n")
        seen.append(section.name)
        return plain_values(section)

    monkeypatch.setattr(configuration, "_plain_values", values_during_load)

    assert cfg.as_dict() == {"db": {"x": 1}}
    assert cfg.as_dict() == {"db": {"x": 2}, "extra": {"y": 3}}
    assert cfg.document.get_section("extra") is not None
