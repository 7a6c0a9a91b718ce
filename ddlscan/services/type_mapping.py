# [파일 설명]
# - 목적: SQL 타입명을 생성기들이 공통으로 쓰는 범용 타입명으로 매핑한다.
# - 제공 기능: 고정 매핑 테이블 조회, 배열 타입의 재귀 매핑, sqlglot DataType 노드의 타입명 추출을 제공한다.
# - 입력/출력: SQL 타입 문자열을 받아 범용 타입 문자열을 반환한다.
# - 주의 사항: 매핑은 결정론적이며 전체 함수다. 알 수 없는 타입은 Object로 매핑한다.
# - 연관 모듈: ddlscan.services.ddl_parser, ddlscan.services.function_extractor에서 사용된다.
from __future__ import annotations

import re

from sqlglot import exp

TYPE_ARGUMENTS_PATTERN = re.compile(r"\s*\(.*\)\s*")
WHITESPACE_PATTERN = re.compile(r"\s+")

FALLBACK_TYPE = "Object"
STRING_TYPE = "String"

_TYPE_GROUPS: dict[str, tuple[str, ...]] = {
    "Integer": ("INTEGER", "INT", "INT4", "MEDIUMINT", "SERIAL", "SERIAL4"),
    "Long": ("BIGINT", "INT8", "BIGSERIAL", "SERIAL8"),
    "Short": ("SMALLINT", "INT2", "SMALLSERIAL", "SERIAL2"),
    "Byte": ("TINYINT",),
    "BigDecimal": ("DECIMAL", "NUMERIC", "NUMBER", "MONEY", "SMALLMONEY"),
    "Float": ("REAL", "FLOAT4"),
    "Double": ("DOUBLE", "FLOAT8", "DOUBLE PRECISION", "FLOAT"),
    "Boolean": ("BOOLEAN", "BOOL", "BIT"),
    STRING_TYPE: (
        "VARCHAR",
        "CHARACTER VARYING",
        "NVARCHAR",
        "TEXT",
        "MEDIUMTEXT",
        "LONGTEXT",
        "TINYTEXT",
        "CHAR",
        "CHARACTER",
        "BPCHAR",
        "NCHAR",
        "CLOB",
        "NCLOB",
        "CITEXT",
        "NAME",
        "JSON",
        "JSONB",
        "XML",
        "INET",
        "CIDR",
        "MACADDR",
        "POINT",
        "LINE",
        "LSEG",
        "BOX",
        "PATH",
        "POLYGON",
        "CIRCLE",
        "ENUM",
    ),
    "LocalDate": ("DATE",),
    "LocalTime": ("TIME", "TIMETZ", "TIME WITH TIME ZONE", "TIME WITHOUT TIME ZONE"),
    "LocalDateTime": (
        "TIMESTAMP",
        "TIMESTAMPTZ",
        "TIMESTAMP WITH TIME ZONE",
        "TIMESTAMP WITHOUT TIME ZONE",
        "TIMESTAMPLTZ",
        "DATETIME",
        "DATETIME2",
    ),
    "Duration": ("INTERVAL",),
    "UUID": ("UUID", "UNIQUEIDENTIFIER"),
    "byte[]": (
        "BYTEA",
        "BLOB",
        "LONGBLOB",
        "MEDIUMBLOB",
        "TINYBLOB",
        "BINARY",
        "VARBINARY",
        "LONGVARBINARY",
    ),
    "List<Object>": ("ARRAY",),
}

SQL_TYPE_MAP: dict[str, str] = {
    sql_name: generic for generic, names in _TYPE_GROUPS.items() for sql_name in names
}

SERIAL_TYPES = frozenset(
    {"SERIAL", "SERIAL2", "SERIAL4", "SERIAL8", "SMALLSERIAL", "BIGSERIAL"}
)


# [함수 설명]
# - 목적: SQL 타입명을 범용 타입명으로 변환한다.
# - 입력: sql_type (예: "VARCHAR(100)", "int[]", "CUSTOM_TYPE")
# - 출력: "String", "List<Integer>", "Object"
# - 에러 처리: 예외 없이 항상 어떤 타입이든 반환한다.
# - 결정론: 동일 입력에 대해 항상 동일한 결과를 반환한다.
def map_sql_type(sql_type: str | None) -> str:
    if not sql_type:
        return FALLBACK_TYPE
    normalized = normalize_type_name(sql_type)
    if normalized.endswith("[]"):
        return f"List<{map_sql_type(normalized[:-2])}>"
    return SQL_TYPE_MAP.get(normalized, FALLBACK_TYPE)


def normalize_type_name(sql_type: str) -> str:
    array_suffix = ""
    stripped = sql_type.strip()
    while stripped.endswith("[]"):
        array_suffix += "[]"
        stripped = stripped[:-2].rstrip()
    base = TYPE_ARGUMENTS_PATTERN.sub(" ", stripped).strip()
    base = WHITESPACE_PATTERN.sub(" ", base).upper()
    return base + array_suffix


def is_serial_type(sql_type: str | None) -> bool:
    if not sql_type:
        return False
    return normalize_type_name(sql_type) in SERIAL_TYPES


# [함수 설명]
# - 목적: sqlglot DataType 노드에서 매핑 테이블 조회용 타입명을 추출한다.
# - 입력: data_type: exp.DataType, dialect(원문 SQL의 방언)
# - 출력: "INT", "VARCHAR", "REAL", "BYTEA", "INT[]", 사용자 정의 타입의 원래 이름 등
# - 주의 사항: sqlglot 타입 enum은 방언 간 동의어를 합친다(REAL/FLOAT4 → FLOAT).
#   원문 방언으로 다시 렌더링한 이름을 써야 REAL → Float 처럼 원래 타입이 유지된다.
def data_type_name(data_type: exp.DataType, dialect: str | None = None) -> str:
    type_enum = data_type.this
    if type_enum == exp.DataType.Type.ARRAY:
        element_types = [
            item for item in data_type.expressions if isinstance(item, exp.DataType)
        ]
        if element_types:
            return data_type_name(element_types[0], dialect) + "[]"
        return "ARRAY"
    if type_enum == exp.DataType.Type.USERDEFINED:
        kind = data_type.args.get("kind")
        if kind:
            return str(kind).upper()
    rendered = normalize_type_name(data_type.sql(dialect=dialect))
    if rendered:
        return rendered
    return type_enum.name if hasattr(type_enum, "name") else str(type_enum).upper()


def data_type_arguments(data_type: exp.DataType) -> list[str]:
    if data_type.this == exp.DataType.Type.ARRAY:
        return []
    return [item.sql() for item in data_type.expressions]
