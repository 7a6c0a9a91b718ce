# [파일 설명]
# - 목적: 인라인/테이블 수준/ALTER TABLE 외래 키 정규화와 ALTER 지연 처리를 검증한다.
# - 연관 모듈: ddlscan.services.ddl_parser
from ddlscan.config import ParserOptions
from ddlscan.services.ddl_parser import SqlSchemaParser
from ddlscan.services.models import ForeignKeyAction


def _parse(sql: str, *, defer_alter: bool = True):
    return SqlSchemaParser(ParserOptions(defer_alter=defer_alter)).parse_string(sql)


def test_inline_reference() -> None:
    schema = _parse(
        """
        CREATE TABLE categories (id BIGINT PRIMARY KEY);
        CREATE TABLE products (
            id BIGINT PRIMARY KEY,
            category_id BIGINT REFERENCES categories(id)
        );
        """
    )

    products = schema.table_by_name("products")
    assert len(products.foreign_keys) == 1
    fk = products.foreign_keys[0]
    assert fk.column_name == "category_id"
    assert fk.referenced_table == "categories"
    assert fk.referenced_column == "id"
    assert fk.on_delete == ForeignKeyAction.NO_ACTION
    assert fk.referenced_entity_name == "Category"
    assert fk.field_name == "category"


def test_inline_reference_with_actions() -> None:
    schema = _parse(
        """
        CREATE TABLE order_items (
            id BIGINT PRIMARY KEY,
            order_id BIGINT REFERENCES orders(id) ON DELETE CASCADE ON UPDATE SET NULL
        );
        """
    )

    fk = schema.tables[0].foreign_keys[0]
    assert fk.on_delete == ForeignKeyAction.CASCADE
    assert fk.on_update == ForeignKeyAction.SET_NULL


def test_inline_reference_without_column_defaults_to_id() -> None:
    schema = _parse(
        """
        CREATE TABLE comments (
            id BIGINT PRIMARY KEY,
            post_id BIGINT NOT NULL REFERENCES posts
        );
        """
    )

    fk = schema.tables[0].foreign_keys[0]
    assert fk.referenced_table == "posts"
    assert fk.referenced_column == "id"
    assert not schema.tables[0].column_by_name("post_id").nullable


def test_table_level_foreign_key() -> None:
    schema = _parse(
        """
        CREATE TABLE users (id BIGINT PRIMARY KEY);
        CREATE TABLE orders (
            id BIGINT PRIMARY KEY,
            buyer_id BIGINT NOT NULL,
            CONSTRAINT fk_orders_buyer FOREIGN KEY (buyer_id)
                REFERENCES users (id) ON DELETE RESTRICT
        );
        """
    )

    fk = schema.table_by_name("orders").foreign_keys[0]
    assert fk.name == "fk_orders_buyer"
    assert fk.column_name == "buyer_id"
    assert fk.referenced_table == "users"
    assert fk.referenced_column == "id"
    assert fk.on_delete == ForeignKeyAction.RESTRICT
    assert fk.field_name == "buyer"


def test_alter_table_add_foreign_key() -> None:
    schema = _parse(
        """
        CREATE TABLE categories (id BIGINT PRIMARY KEY);
        CREATE TABLE products (id BIGINT PRIMARY KEY, category_id BIGINT);
        ALTER TABLE products
            ADD CONSTRAINT fk_products_category FOREIGN KEY (category_id)
            REFERENCES categories (id) ON DELETE SET NULL;
        """
    )

    products = schema.table_by_name("products")
    assert len(products.foreign_keys) == 1
    fk = products.foreign_keys[0]
    assert fk.name == "fk_products_category"
    assert fk.referenced_table == "categories"
    assert fk.on_delete == ForeignKeyAction.SET_NULL
    assert schema.parse_errors == ()


def test_alter_before_create_is_applied_when_deferred() -> None:
    sql = """
        CREATE TABLE customers (id BIGINT PRIMARY KEY);
        ALTER TABLE orders ADD CONSTRAINT fk_orders_customer
            FOREIGN KEY (customer_id) REFERENCES customers (id);
        CREATE TABLE orders (id BIGINT PRIMARY KEY, customer_id BIGINT);
    """

    schema = _parse(sql, defer_alter=True)

    orders = schema.table_by_name("orders")
    assert [fk.column_name for fk in orders.foreign_keys] == ["customer_id"]
    assert schema.parse_errors == ()


def test_alter_before_create_is_dropped_in_single_pass() -> None:
    sql = """
        CREATE TABLE customers (id BIGINT PRIMARY KEY);
        ALTER TABLE orders ADD CONSTRAINT fk_orders_customer
            FOREIGN KEY (customer_id) REFERENCES customers (id);
        CREATE TABLE orders (id BIGINT PRIMARY KEY, customer_id BIGINT);
    """

    schema = _parse(sql, defer_alter=False)

    orders = schema.table_by_name("orders")
    assert orders.foreign_keys == ()
    assert "ALTER references unknown table: orders" in schema.parse_errors


def test_alter_on_unknown_table_reports_warning() -> None:
    schema = _parse(
        """
        CREATE TABLE products (id BIGINT PRIMARY KEY);
        ALTER TABLE unknown_table ADD COLUMN status VARCHAR(20);
        """
    )

    assert any("unknown table" in error for error in schema.parse_errors)
    assert len(schema.tables) == 1


def test_alter_add_primary_key() -> None:
    schema = _parse(
        """
        CREATE TABLE tags (id BIGINT, label VARCHAR(40));
        ALTER TABLE tags ADD PRIMARY KEY (id);
        """
    )

    table = schema.tables[0]
    assert table.primary_key_columns == ("id",)
    assert table.column_by_name("id").primary_key
