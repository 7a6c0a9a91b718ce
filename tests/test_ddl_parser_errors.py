from ddlscan.config import ParserOptions
from ddlscan.services.ddl_parser import SqlSchemaParser
from ddlscan.services.sql_text import preview, split_statements


def _parse(sql: str):
    return SqlSchemaParser(ParserOptions()).parse_string(sql)


def test_invalid_statement_keeps_valid_tables() -> None:
    schema = _parse(
        """
        CREATE TABLE authors (id BIGINT PRIMARY KEY, name VARCHAR(80));
        CREATE TABLE books (id BIGINT PRIMARY KEY, author_id BIGINT REFERENCES authors(id));
        CREATE TABLE broken (id INT PRIMARY KEY, title VARCHAR(10)
        """
    )

    assert [table.name for table in schema.tables] == ["authors", "books"]
    assert len(schema.parse_errors) >= 1
    assert schema.parse_errors[0].startswith("Batch parse failed, trying individual statements:")
    assert any(
        error.startswith("Could not parse CREATE TABLE: CREATE TABLE broken")
        for error in schema.parse_errors
    )


def test_warning_preview_is_truncated() -> None:
    schema = _parse(
        "CREATE TABLE very_long_table_name_for_preview (id INT PRIMARY KEY, "
        "description VARCHAR(200), other_column INT"
    )

    failures = [error for error in schema.parse_errors if error.startswith("Could not parse")]
    assert failures
    statement_preview = failures[0].split(": ", 1)[1]
    assert len(statement_preview) <= 50


def test_parse_never_raises_on_garbage() -> None:
    schema = _parse("))) ;;; CREATE TABLE ok_table (id INT PRIMARY KEY);")

    assert schema.table_by_name("ok_table") is not None


def test_preview_collapses_whitespace() -> None:
    assert preview("CREATE   TABLE\n\tfoo (id INT)") == "CREATE TABLE foo (id INT)"
    assert len(preview("x" * 80)) == 50


def test_split_statements_respects_strings() -> None:
    parts = split_statements("INSERT INTO t VALUES ('a;b'); CREATE TABLE u (a INT, b INT);")

    assert parts == ["INSERT INTO t VALUES ('a;b')", "CREATE TABLE u (a INT, b INT)"]


def test_split_statements_isolates_unclosed_parenthesis_and_comments() -> None:
    parts = split_statements(
        """
        -- the user's table; keep it
        CREATE TABLE a (id INT;
        /* it's ; here */ CREATE TABLE b (id INT);
        """
    )

    assert parts == ["CREATE TABLE a (id INT", "CREATE TABLE b (id INT)"]


def test_malformed_statement_in_the_middle_keeps_later_tables() -> None:
    schema = _parse(
        """
        CREATE TABLE users (id BIGINT PRIMARY KEY);
        CREATE TABLE broken (id INT PRIMARY KEY;
        CREATE TABLE posts (id BIGINT PRIMARY KEY, user_id BIGINT REFERENCES users(id));
        """
    )

    assert [table.name for table in schema.tables] == ["users", "posts"]
    failures = [error for error in schema.parse_errors if error.startswith("Could not parse")]
    assert failures == ["Could not parse CREATE TABLE: CREATE TABLE broken (id INT PRIMARY KEY"]
    assert schema.table_by_name("posts").foreign_keys[0].referenced_table == "users"


def test_comment_with_quote_before_batch_failure_keeps_tables() -> None:
    schema = _parse(
        """
        -- the user's table; keep it
        CREATE TABLE users (id BIGINT PRIMARY KEY);
        /* it's the broken one */
        CREATE TABLE broken (id INT PRIMARY KEY, title VARCHAR(10);
        CREATE TABLE tags (id BIGINT PRIMARY KEY, label VARCHAR(20));
        """
    )

    assert [table.name for table in schema.tables] == ["users", "tags"]
    assert any(
        error.startswith("Could not parse CREATE TABLE: CREATE TABLE broken")
        for error in schema.parse_errors
    )
