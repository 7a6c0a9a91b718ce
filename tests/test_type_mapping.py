import pytest

from ddlscan.services.type_mapping import (
    FALLBACK_TYPE,
    SQL_TYPE_MAP,
    is_serial_type,
    map_sql_type,
    normalize_type_name,
)


@pytest.mark.parametrize(
    ("sql_type", "expected"),
    [
        ("INT", "Integer"),
        ("integer", "Integer"),
        ("BIGINT", "Long"),
        ("bigserial", "Long"),
        ("SMALLINT", "Short"),
        ("TINYINT", "Byte"),
        ("DECIMAL(10, 2)", "BigDecimal"),
        ("numeric(12,4)", "BigDecimal"),
        ("REAL", "Float"),
        ("FLOAT", "Double"),
        ("double precision", "Double"),
        ("BOOLEAN", "Boolean"),
        ("VARCHAR(255)", "String"),
        ("character varying(40)", "String"),
        ("TEXT", "String"),
        ("JSONB", "String"),
        ("DATE", "LocalDate"),
        ("TIME", "LocalTime"),
        ("TIMESTAMP", "LocalDateTime"),
        ("timestamp with time zone", "LocalDateTime"),
        ("INTERVAL", "Duration"),
        ("UUID", "UUID"),
        ("BYTEA", "byte[]"),
    ],
)
def test_map_sql_type_known_types(sql_type: str, expected: str) -> None:
    assert map_sql_type(sql_type) == expected


def test_map_sql_type_arrays_map_recursively() -> None:
    assert map_sql_type("INT[]") == "List<Integer>"
    assert map_sql_type("text[]") == "List<String>"
    assert map_sql_type("VARCHAR(20)[][]") == "List<List<String>>"
    assert map_sql_type("ARRAY") == "List<Object>"


def test_map_sql_type_is_total() -> None:
    assert map_sql_type("CUSTOM_DOMAIN") == FALLBACK_TYPE
    assert map_sql_type("") == FALLBACK_TYPE
    assert map_sql_type(None) == FALLBACK_TYPE
    assert map_sql_type("   ") == FALLBACK_TYPE


def test_map_sql_type_is_deterministic() -> None:
    for sql_type in SQL_TYPE_MAP:
        assert map_sql_type(sql_type) == map_sql_type(sql_type.lower())


def test_normalize_type_name_strips_arguments() -> None:
    assert normalize_type_name("varchar (100)") == "VARCHAR"
    assert normalize_type_name("  timestamp   without  time zone ") == "TIMESTAMP WITHOUT TIME ZONE"
    assert normalize_type_name("numeric(10,2)[]") == "NUMERIC[]"


def test_is_serial_type() -> None:
    assert is_serial_type("serial")
    assert is_serial_type("BIGSERIAL")
    assert not is_serial_type("INT")
    assert not is_serial_type(None)
