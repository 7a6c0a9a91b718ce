# [파일 설명]
# - 목적: CREATE TABLE 파싱(컬럼 타입/제약/테이블 수준 제약/주석/확장)을 검증한다.
# - 입력/출력: 고정 DDL 문자열을 파싱해 SqlSchema 필드를 단언한다.
# - 연관 모듈: ddlscan.services.ddl_parser
import pytest

from ddlscan.config import ParserOptions
from ddlscan.services.ddl_parser import SqlSchemaParser


@pytest.fixture
def parser() -> SqlSchemaParser:
    return SqlSchemaParser(ParserOptions())


def test_parse_simple_table(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE products (
            id BIGINT PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            price DECIMAL(10, 2),
            active BOOLEAN DEFAULT TRUE
        );
        """
    )

    assert schema.name == "inline-sql"
    assert schema.source_file == "inline-sql"
    assert schema.parse_errors == ()
    assert len(schema.tables) == 1

    table = schema.tables[0]
    assert table.name == "products"
    assert table.entity_name == "Product"
    assert table.entity_variable_name == "product"
    assert [column.name for column in table.columns] == ["id", "name", "price", "active"]

    id_column = table.column_by_name("id")
    assert id_column is not None
    assert id_column.primary_key
    assert not id_column.nullable
    assert id_column.generic_type == "Long"

    name_column = table.column_by_name("NAME")
    assert name_column is not None
    assert not name_column.nullable
    assert name_column.sql_type == "VARCHAR(100)"
    assert name_column.generic_type == "String"
    assert name_column.length == 100
    assert name_column.field_name == "name"

    price = table.column_by_name("price")
    assert price is not None
    assert price.nullable
    assert price.generic_type == "BigDecimal"
    assert price.precision == 10
    assert price.scale == 2

    active = table.column_by_name("active")
    assert active is not None
    assert active.generic_type == "Boolean"
    assert active.default_value is not None
    assert active.default_value.upper() == "TRUE"


def test_parse_column_types(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE events (
            id UUID PRIMARY KEY,
            happened_on DATE,
            created_at TIMESTAMP,
            body TEXT,
            attempts INT
        );
        """
    )

    table = schema.tables[0]
    generic_types = {column.name: column.generic_type for column in table.columns}
    assert generic_types == {
        "id": "UUID",
        "happened_on": "LocalDate",
        "created_at": "LocalDateTime",
        "body": "String",
        "attempts": "Integer",
    }


def test_parse_column_types_keep_source_spelling(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE measurements (
            id BIGINT PRIMARY KEY,
            ratio REAL,
            weight FLOAT4,
            reading DOUBLE PRECISION,
            payload BYTEA,
            amount NUMERIC(10, 2)
        );
        """
    )

    table = schema.tables[0]
    assert table.column_by_name("ratio").sql_type == "REAL"
    assert table.column_by_name("ratio").generic_type == "Float"
    assert table.column_by_name("weight").generic_type == "Float"
    assert table.column_by_name("reading").generic_type == "Double"
    assert table.column_by_name("payload").sql_type == "BYTEA"
    assert table.column_by_name("payload").generic_type == "byte[]"

    amount = table.column_by_name("amount")
    assert amount.generic_type == "BigDecimal"
    assert (amount.precision, amount.scale) == (10, 2)


def test_parse_auto_increment_columns(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(255));
        CREATE TABLE accounts (id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY);
        """
    )

    users, accounts = schema.tables
    assert users.column_by_name("id").auto_increment
    assert not users.column_by_name("email").auto_increment
    assert accounts.column_by_name("id").auto_increment


def test_parse_default_and_check(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE orders (
            id BIGINT PRIMARY KEY,
            status VARCHAR(20) DEFAULT 'pending' NOT NULL,
            quantity INT DEFAULT 0 CHECK (quantity >= 0)
        );
        """
    )

    table = schema.tables[0]
    status = table.column_by_name("status")
    assert status.default_value == "'pending'"
    assert not status.nullable

    quantity = table.column_by_name("quantity")
    assert quantity.default_value == "0"
    assert quantity.check_constraint is not None
    assert "quantity >= 0" in quantity.check_constraint


def test_table_level_primary_key_wins(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE order_lines (
            order_id BIGINT PRIMARY KEY,
            line_no INT,
            sku VARCHAR(40),
            PRIMARY KEY (order_id, line_no)
        );
        """
    )

    table = schema.tables[0]
    assert table.primary_key_columns == ("order_id", "line_no")
    for column in table.columns:
        assert column.primary_key == (column.name in table.primary_key_columns)
    assert not table.column_by_name("line_no").nullable


def test_demoted_primary_key_column_recomputes_nullability(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE codes (
            code VARCHAR(10) PRIMARY KEY,
            label VARCHAR(40) NOT NULL PRIMARY KEY,
            id BIGINT,
            PRIMARY KEY (id)
        );
        """
    )

    table = schema.tables[0]
    assert table.primary_key_columns == ("id",)
    assert not table.column_by_name("id").nullable
    assert not table.column_by_name("code").primary_key
    assert table.column_by_name("code").nullable
    assert not table.column_by_name("label").primary_key
    assert not table.column_by_name("label").nullable


def test_table_level_unique_constraints(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE users (
            id BIGINT PRIMARY KEY,
            email VARCHAR(255),
            tenant_id BIGINT,
            username VARCHAR(50),
            UNIQUE (email),
            CONSTRAINT uq_tenant_username UNIQUE (tenant_id, username)
        );
        """
    )

    table = schema.tables[0]
    assert "email" in table.unique_constraints
    assert "tenant_id,username" in table.unique_constraints
    assert table.column_by_name("email").unique
    assert not table.column_by_name("tenant_id").unique
    assert not table.column_by_name("username").unique


def test_table_level_check_constraint(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE products (
            id BIGINT PRIMARY KEY,
            price DECIMAL(10, 2),
            CHECK (price > 0)
        );
        """
    )

    table = schema.tables[0]
    assert len(table.check_constraints) == 1
    assert "price > 0" in table.check_constraints[0]


def test_schema_qualified_table(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string("CREATE TABLE sales.invoices (id BIGINT PRIMARY KEY);")

    table = schema.tables[0]
    assert table.name == "invoices"
    assert table.schema == "sales"
    assert table.qualified_name == "sales.invoices"
    assert schema.table_by_name("INVOICES") is table


def test_derived_table_properties(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE order_items (
            id BIGINT PRIMARY KEY,
            order_id BIGINT REFERENCES orders(id),
            quantity INT NOT NULL,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        );
        """
    )

    table = schema.tables[0]
    assert table.entity_name == "OrderItem"
    assert table.module_name == "orderitems"
    assert [column.name for column in table.business_columns] == ["quantity"]
    assert table.extends_base
    assert not table.is_junction_table


def test_comment_on_table_and_column(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE customers (id BIGINT PRIMARY KEY, email VARCHAR(255));
        COMMENT ON TABLE customers IS 'Registered customers';
        COMMENT ON COLUMN customers.email IS 'Login e-mail';
        """
    )

    table = schema.tables[0]
    assert table.comment == "Registered customers"
    assert table.column_by_name("email").comment == "Login e-mail"
    assert schema.parse_errors == ()


def test_create_extension_recorded(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE EXTENSION IF NOT EXISTS "uuid-ossp";
        CREATE TABLE tokens (id UUID PRIMARY KEY);
        """
    )

    assert schema.extensions == ("uuid-ossp",)
    assert [table.name for table in schema.tables] == ["tokens"]


def test_empty_and_comment_only_input(parser: SqlSchemaParser) -> None:
    empty = parser.parse_string("")
    comments = parser.parse_string(
        """
        -- This is a comment
        /* Multi-line
           comment */
        """
    )

    assert empty.tables == ()
    assert comments.tables == ()
    assert comments.parse_errors == ()


def test_dml_statements_are_skipped(parser: SqlSchemaParser) -> None:
    schema = parser.parse_string(
        """
        CREATE TABLE roles (id BIGINT PRIMARY KEY, name VARCHAR(30));
        INSERT INTO roles (id, name) VALUES (1, 'admin');
        SELECT * FROM roles;
        DROP TABLE IF EXISTS legacy_roles;
        """
    )

    assert [table.name for table in schema.tables] == ["roles"]
    assert schema.parse_errors == ()


def test_parse_file_uses_file_name(tmp_path, parser: SqlSchemaParser) -> None:
    sql_file = tmp_path / "schema.sql"
    sql_file.write_text("CREATE TABLE notes (id BIGINT PRIMARY KEY);", encoding="utf-8")

    schema = parser.parse_file(sql_file)

    assert schema.name == "schema.sql"
    assert schema.source_file == "schema.sql"
    assert schema.tables[0].name == "notes"


def test_parse_file_missing_raises(tmp_path, parser: SqlSchemaParser) -> None:
    with pytest.raises(OSError):
        parser.parse_file(tmp_path / "missing.sql")
