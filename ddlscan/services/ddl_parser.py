# [파일 설명]
# - 목적: SQL DDL 원문을 불변 SqlSchema로 변환한다.
# - 제공 기능: 함수 추출 후 본문 마스킹, sqlglot 일괄 파싱과 문장 단위 재시도,
#   CREATE TABLE/INDEX/EXTENSION, ALTER TABLE, COMMENT ON 처리를 제공한다.
# - 입력/출력: SQL 문자열(또는 파일 경로)을 받아 SqlSchema를 반환한다.
# - 주의 사항: 잘못된 SQL은 예외 대신 parse_errors 경고로 기록한다. 파일 I/O 오류만 전파한다.
# - 연관 모듈: ddlscan.services.function_extractor, ddlscan.services.models, ddlscan.config
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from sqlglot import exp, parse
from sqlglot.errors import ParseError, TokenError

from ddlscan.config import ParserOptions, load_parser_options
from ddlscan.services.function_extractor import extract_functions
from ddlscan.services.models import (
    ColumnDraft,
    ForeignKeyAction,
    FunctionType,
    IndexType,
    SqlForeignKey,
    SqlFunction,
    SqlIndex,
    TableDraft,
)
from ddlscan.services.schema import SqlSchema
from ddlscan.services.sql_text import (
    balanced_parentheses,
    clean_identifier,
    column_list,
    mask_dollar_quoted,
    preview,
    split_qualified_name,
    split_statements,
    split_top_level,
    summarize_sql,
)
from ddlscan.services.type_mapping import (
    data_type_arguments,
    data_type_name,
    is_serial_type,
    map_sql_type,
)

logger = logging.getLogger(__name__)

INLINE_SOURCE_NAME = "inline-sql"

_NAME = r'(?:"[^"]+"|`[^`]+`|[\w$]+)(?:\s*\.\s*(?:"[^"]+"|`[^`]+`|[\w$]+))*'

NOT_NULL_PATTERN = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
PRIMARY_KEY_PATTERN = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
UNIQUE_PATTERN = re.compile(r"\bUNIQUE\b", re.IGNORECASE)
AUTO_INCREMENT_PATTERN = re.compile(
    r"\b(?:AUTO_INCREMENT|AUTOINCREMENT|IDENTITY|SERIAL)\b"
    r"|\bGENERATED\s+(?:ALWAYS|BY\s+DEFAULT)\s+AS\s+IDENTITY\b",
    re.IGNORECASE,
)
DEFAULT_PATTERN = re.compile(r"(?<!SET )\bDEFAULT\s+('(?:[^']|'')*'|\S+)", re.IGNORECASE)
CHECK_PATTERN = re.compile(r"\bCHECK\s*(?=\()", re.IGNORECASE)
INLINE_REFERENCE_PATTERN = re.compile(
    rf"(?:CONSTRAINT\s+(?P<name>{_NAME})\s+)?REFERENCES\s+(?P<table>{_NAME})"
    r"\s*(?:\(\s*(?P<column>[^)]*?)\s*\))?",
    re.IGNORECASE,
)
ON_DELETE_PATTERN = re.compile(
    r"\bON\s+DELETE\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)", re.IGNORECASE
)
ON_UPDATE_PATTERN = re.compile(
    r"\bON\s+UPDATE\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)", re.IGNORECASE
)

CONSTRAINT_NAME_PATTERN = re.compile(
    rf"^CONSTRAINT\s+(?P<name>{_NAME})\s+(?P<body>.*)$", re.IGNORECASE | re.DOTALL
)
TABLE_PRIMARY_KEY_PATTERN = re.compile(
    r"^PRIMARY\s+KEY\s*\((?P<columns>[^)]*)\)", re.IGNORECASE
)
TABLE_FOREIGN_KEY_PATTERN = re.compile(
    rf"^FOREIGN\s+KEY\s*\((?P<columns>[^)]*)\)\s*REFERENCES\s+(?P<table>{_NAME})"
    r"\s*(?:\((?P<referenced>[^)]*)\))?",
    re.IGNORECASE,
)
TABLE_UNIQUE_PATTERN = re.compile(r"^UNIQUE\b[^(]*\((?P<columns>[^)]*)\)", re.IGNORECASE)
TABLE_CHECK_PATTERN = re.compile(r"^CHECK\b", re.IGNORECASE)
TABLE_INDEX_PATTERN = re.compile(
    r"^(?:INDEX|KEY)\b\s*(?P<name>[\w\"`]+)?\s*\((?P<columns>[^)]*)\)", re.IGNORECASE
)

CREATE_TABLE_PREFIX = re.compile(
    r"^\s*CREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:(?:TEMP|TEMPORARY|UNLOGGED)\s+)?TABLE\b",
    re.IGNORECASE,
)
CREATE_INDEX_PATTERN = re.compile(
    r"^\s*CREATE\s+(?P<unique>UNIQUE\s+)?INDEX\s+(?:CONCURRENTLY\s+)?"
    rf"(?:IF\s+NOT\s+EXISTS\s+)?(?:(?P<name>{_NAME})\s+)?ON\s+(?:ONLY\s+)?(?P<table>{_NAME})"
    r"\s*(?:USING\s+(?P<method>\w+)\s*)?\((?P<columns>(?:[^()]|\([^()]*\))*)\)",
    re.IGNORECASE,
)
CREATE_EXTENSION_PATTERN = re.compile(
    r"^\s*CREATE\s+EXTENSION\s+(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>\"[^\"]+\"|[\w-]+)",
    re.IGNORECASE,
)
CREATE_ROUTINE_PREFIX = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?P<kind>FUNCTION|PROCEDURE)\s+(?P<name>"
    + _NAME
    + r")",
    re.IGNORECASE,
)
ALTER_TABLE_PATTERN = re.compile(
    r"^\s*ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?"
    rf"(?P<table>{_NAME})\s*(?P<actions>.*)$",
    re.IGNORECASE | re.DOTALL,
)
ALTER_ADD_PREFIX = re.compile(r"^ADD\s+", re.IGNORECASE)
COMMENT_ON_PATTERN = re.compile(
    rf"^\s*COMMENT\s+ON\s+(?P<kind>TABLE|COLUMN)\s+(?P<target>{_NAME})\s+IS\s+"
    r"(?P<value>'(?:[^']|'')*'|NULL)",
    re.IGNORECASE | re.DOTALL,
)

SILENT_STATEMENT_TYPES = (
    exp.Query,
    exp.DML,
    exp.Drop,
    exp.Set,
    exp.Transaction,
    exp.Commit,
    exp.Rollback,
    exp.Use,
)


@dataclass
class _PendingStatement:
    kind: str
    table_name: str
    text: str
    column_name: str | None = None


# [클래스 설명]
# - 역할: 한 번의 parse() 호출 동안 누적되는 가변 상태를 보관한다.
# - 핵심 동작: 테이블 draft, 함수, 독립 인덱스, 확장, 경고, 지연된 ALTER/COMMENT를 모은다.
# - 제약/주의: parse()가 끝나면 freeze()로 불변 SqlSchema를 만들고 버린다.
@dataclass
class _ParseState:
    tables: list[TableDraft] = field(default_factory=list)
    functions: list[SqlFunction] = field(default_factory=list)
    standalone_indexes: list[SqlIndex] = field(default_factory=list)
    extensions: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    pending: list[_PendingStatement] = field(default_factory=list)

    def table(self, name: str) -> TableDraft | None:
        lookup = name.lower()
        for table in self.tables:
            if table.name.lower() == lookup:
                return table
        return None

    def has_function(self, name: str) -> bool:
        lookup = name.lower()
        return any(function.name.lower() == lookup for function in self.functions)

    def freeze(self, source_name: str) -> SqlSchema:
        return SqlSchema(
            name=source_name,
            source_file=source_name,
            tables=tuple(table.build() for table in self.tables),
            functions=tuple(self.functions),
            standalone_indexes=tuple(self.standalone_indexes),
            extensions=tuple(self.extensions),
            parse_errors=tuple(self.errors),
        )


class SqlSchemaParser:
    def __init__(self, options: ParserOptions | None = None) -> None:
        self.options = options or load_parser_options()

    def _render(self, node: exp.Expression) -> str:
        return node.sql(dialect=self.options.dialect, comments=False)

    def parse_string(self, sql: str) -> SqlSchema:
        return self.parse(sql, INLINE_SOURCE_NAME)

    def parse_file(self, path: str | Path) -> SqlSchema:
        file_path = Path(path)
        content = file_path.read_text(encoding="utf-8")
        return self.parse(content, file_path.name)

    # [함수 설명]
    # - 목적: SQL 원문 전체를 파싱해 스키마를 만든다.
    # - 입력: sql 원문, source_name(스키마 이름과 source_file에 사용)
    # - 출력: SqlSchema
    # - 에러 처리: 일괄 파싱 실패 시 경고를 남기고 ';' 단위로 재시도한다.
    # - 결정론: 테이블/함수/인덱스는 원문 선언 순서를 유지한다.
    # - 보안: 원문 SQL 대신 길이/해시만 로그로 남긴다.
    def parse(self, sql: str, source_name: str) -> SqlSchema:
        summary = summarize_sql(sql)
        logger.info(
            "parse: source=%s sql_len=%s sql_hash=%s",
            source_name,
            summary["len"],
            summary["sha256_8"],
        )

        state = _ParseState()
        state.functions.extend(extract_functions(sql))
        masked = mask_dollar_quoted(sql)

        try:
            statements = parse(masked, read=self.options.dialect)
        except (ParseError, TokenError) as exc:
            state.errors.append(
                f"Batch parse failed, trying individual statements: {_error_summary(exc)}"
            )
            self._parse_individually(masked, state)
        else:
            for statement in statements:
                self._visit(statement, state)

        self._resolve_pending(state)

        schema = state.freeze(source_name)
        logger.info(
            "parse: source=%s tables=%s functions=%s indexes=%s warnings=%s",
            source_name,
            len(schema.tables),
            len(schema.functions),
            len(schema.standalone_indexes),
            len(schema.parse_errors),
        )
        return schema

    def _parse_individually(self, masked: str, state: _ParseState) -> None:
        for raw in split_statements(masked):
            try:
                statements = parse(raw, read=self.options.dialect)
            except (ParseError, TokenError):
                if CREATE_TABLE_PREFIX.match(raw):
                    state.errors.append(f"Could not parse CREATE TABLE: {preview(raw)}")
                else:
                    state.errors.append(f"Could not parse statement: {preview(raw)}")
                continue
            for statement in statements:
                self._visit(statement, state)

    # [함수 설명]
    # - 목적: 파싱된 문장 하나를 종류별 처리기로 분기한다.
    # - 입력: sqlglot 문장 노드(빈 문장이면 None), 누적 상태
    # - 출력: 없음 (state를 갱신한다)
    # - 에러 처리: 처리기 내부 오류는 "Error parsing statement" 경고로 기록한다.
    def _visit(self, statement: exp.Expression | None, state: _ParseState) -> None:
        if statement is None:
            return
        try:
            if isinstance(statement, exp.Create):
                self._visit_create(statement, state)
            elif isinstance(statement, exp.Alter):
                self._visit_alter(self._render(statement), state)
            elif isinstance(statement, exp.Comment):
                self._visit_comment(self._render(statement), state)
            elif isinstance(statement, exp.Command):
                self._visit_command(statement, state)
            elif isinstance(statement, SILENT_STATEMENT_TYPES):
                return
            elif isinstance(statement, (exp.Condition, exp.Alias)):
                text = self._render(statement)
                state.errors.append(f"Could not parse statement: {preview(text)}")
        except Exception as exc:  # pragma: no cover - unexpected node shapes
            logger.warning("parse: statement skipped error_type=%s", type(exc).__name__)
            state.errors.append(f"Error parsing statement: {exc}")

    def _visit_create(self, statement: exp.Create, state: _ParseState) -> None:
        kind = (statement.args.get("kind") or "").upper()
        text = self._render(statement)
        if kind == "TABLE":
            self._visit_create_table(statement, state)
        elif kind == "INDEX":
            self._visit_create_index(text, state)
        elif kind in {"FUNCTION", "PROCEDURE"}:
            name = statement.this.name if statement.this is not None else ""
            self._add_structural_function(name, kind, state)
        elif kind == "EXTENSION":
            self._visit_create_extension(text, state)

    def _visit_command(self, statement: exp.Command, state: _ParseState) -> None:
        text = self._render(statement)
        keyword = str(statement.this or "").upper()
        if keyword == "CREATE":
            if CREATE_TABLE_PREFIX.match(text):
                state.errors.append(f"Could not parse CREATE TABLE: {preview(text)}")
            elif CREATE_INDEX_PATTERN.match(text):
                self._visit_create_index(text, state)
            elif CREATE_EXTENSION_PATTERN.match(text):
                self._visit_create_extension(text, state)
            else:
                routine = CREATE_ROUTINE_PREFIX.match(text)
                if routine:
                    self._add_structural_function(
                        clean_identifier(routine.group("name")) or "",
                        routine.group("kind").upper(),
                        state,
                    )
        elif keyword == "ALTER":
            self._visit_alter(text, state)
        elif keyword == "COMMENT":
            self._visit_comment(text, state)

    # [함수 설명]
    # - 목적: CREATE TABLE 한 건을 테이블 draft로 변환한다.
    # - 입력: sqlglot Create 노드
    # - 출력: 없음 (state.tables에 추가한다)
    # - 주의 사항: 컬럼 정의를 먼저 모두 처리한 뒤 테이블 수준 제약을 적용한다.
    #   테이블 수준 PRIMARY KEY가 컬럼 수준 PK 플래그보다 우선한다.
    def _visit_create_table(self, statement: exp.Create, state: _ParseState) -> None:
        schema_node = statement.this
        if not isinstance(schema_node, exp.Schema):
            # CREATE TABLE ... AS SELECT 처럼 컬럼 정의가 없는 형태
            return
        table_node = schema_node.this
        draft = TableDraft(
            name=table_node.name,
            schema=table_node.db or None,
        )

        constraints: list[str] = []
        for item in schema_node.expressions:
            if isinstance(item, exp.ColumnDef):
                self._add_column(item, draft)
            else:
                constraints.append(self._render(item))

        for constraint in constraints:
            self._apply_table_constraint(constraint, draft)

        state.tables.append(draft)

    def _add_column(self, column_def: exp.ColumnDef, draft: TableDraft) -> None:
        data_type = column_def.args.get("kind")
        type_name = (
            data_type_name(data_type, self.options.dialect)
            if isinstance(data_type, exp.DataType)
            else ""
        )
        arguments = data_type_arguments(data_type) if isinstance(data_type, exp.DataType) else []
        sql_type = f"{type_name}({', '.join(arguments)})" if arguments else type_name

        spec = " ".join(
            self._render(constraint)
            for constraint in column_def.args.get("constraints") or []
        )

        column = ColumnDraft(
            name=column_def.name,
            sql_type=sql_type,
            generic_type=map_sql_type(type_name),
        )
        numeric_arguments = [int(argument) for argument in arguments if argument.isdigit()]
        if numeric_arguments:
            column.length = numeric_arguments[0]
        if len(numeric_arguments) >= 2:
            column.precision = numeric_arguments[0]
            column.scale = numeric_arguments[1]

        column.primary_key = bool(PRIMARY_KEY_PATTERN.search(spec))
        column.not_null = bool(NOT_NULL_PATTERN.search(spec))
        column.nullable = not (column.not_null or column.primary_key)
        column.unique = bool(UNIQUE_PATTERN.search(spec))
        column.auto_increment = bool(AUTO_INCREMENT_PATTERN.search(spec)) or is_serial_type(
            type_name
        )
        default = DEFAULT_PATTERN.search(spec)
        if default:
            column.default_value = default.group(1)
        check = CHECK_PATTERN.search(spec)
        if check:
            column.check_constraint = balanced_parentheses(spec, check.end())

        draft.columns.append(column)
        if column.primary_key:
            draft.primary_key_columns.append(column.name)

        reference = INLINE_REFERENCE_PATTERN.search(spec)
        if reference:
            draft.foreign_keys.append(
                _foreign_key(
                    column_name=column.name,
                    referenced_table=reference.group("table"),
                    referenced_columns=reference.group("column"),
                    name=reference.group("name"),
                    options=spec[reference.end() :],
                )
            )

    # [함수 설명]
    # - 목적: 테이블 수준 제약(또는 ALTER TABLE ADD 절) 하나를 draft에 반영한다.
    # - 입력: 렌더링된 제약 문자열 (예: "CONSTRAINT fk FOREIGN KEY (a) REFERENCES t (id)")
    # - 출력: 반영 여부
    # - 주의 사항: 인식하지 못한 제약(EXCLUDE, LIKE 등)은 무시한다.
    def _apply_table_constraint(self, text: str, draft: TableDraft) -> bool:
        name = None
        body = text.strip()
        named = CONSTRAINT_NAME_PATTERN.match(body)
        if named:
            name = clean_identifier(named.group("name"))
            body = named.group("body").strip()

        primary_key = TABLE_PRIMARY_KEY_PATTERN.match(body)
        if primary_key:
            draft.set_primary_key(column_list(primary_key.group("columns")))
            return True

        foreign_key = TABLE_FOREIGN_KEY_PATTERN.match(body)
        if foreign_key:
            columns = column_list(foreign_key.group("columns"))
            if columns:
                draft.foreign_keys.append(
                    _foreign_key(
                        column_name=columns[0],
                        referenced_table=foreign_key.group("table"),
                        referenced_columns=foreign_key.group("referenced"),
                        name=name,
                        options=body[foreign_key.end() :],
                    )
                )
            return True

        unique = TABLE_UNIQUE_PATTERN.match(body)
        if unique:
            columns = column_list(unique.group("columns"))
            if columns:
                draft.add_unique(columns)
            return True

        if TABLE_CHECK_PATTERN.match(body):
            draft.check_constraints.append(body)
            return True

        index = TABLE_INDEX_PATTERN.match(body)
        if index:
            draft.indexes.append(
                SqlIndex(
                    name=clean_identifier(index.group("name")),
                    table_name=draft.name,
                    columns=tuple(column_list(index.group("columns"))),
                )
            )
            return True
        return False

    def _visit_create_index(self, text: str, state: _ParseState) -> None:
        match = CREATE_INDEX_PATTERN.match(text)
        if not match:
            state.errors.append(f"Could not parse statement: {preview(text)}")
            return
        _, table_name = split_qualified_name(match.group("table"))
        index_name = match.group("name")
        state.standalone_indexes.append(
            SqlIndex(
                name=split_qualified_name(index_name)[1] if index_name else None,
                table_name=table_name,
                columns=tuple(column_list(match.group("columns"))),
                unique=bool(match.group("unique")),
                type=IndexType.parse(match.group("method")),
            )
        )

    def _visit_create_extension(self, text: str, state: _ParseState) -> None:
        match = CREATE_EXTENSION_PATTERN.match(text)
        if match:
            name = clean_identifier(match.group("name")) or ""
            if name and name not in state.extensions:
                state.extensions.append(name)

    def _add_structural_function(self, name: str, kind: str, state: _ParseState) -> None:
        if not name or state.has_function(name):
            return
        state.functions.append(
            SqlFunction(
                name=name,
                type=FunctionType.PROCEDURE if kind == "PROCEDURE" else FunctionType.FUNCTION,
            )
        )

    def _visit_alter(self, text: str, state: _ParseState) -> None:
        match = ALTER_TABLE_PATTERN.match(text)
        if not match:
            return
        _, table_name = split_qualified_name(match.group("table"))
        self._schedule(
            _PendingStatement(kind="ALTER", table_name=table_name, text=match.group("actions")),
            state,
        )

    def _visit_comment(self, text: str, state: _ParseState) -> None:
        match = COMMENT_ON_PATTERN.match(text)
        if not match:
            return
        parts = [clean_identifier(part) or "" for part in match.group("target").split(".")]
        kind = match.group("kind").upper()
        if kind == "TABLE":
            pending = _PendingStatement(kind=kind, table_name=parts[-1], text=match.group("value"))
        elif len(parts) >= 2:
            pending = _PendingStatement(
                kind=kind,
                table_name=parts[-2],
                text=match.group("value"),
                column_name=parts[-1],
            )
        else:
            return
        self._schedule(pending, state)

    # defer_alter이면 ALTER/COMMENT는 모든 CREATE TABLE 처리 후에 반영된다.
    def _schedule(self, pending: _PendingStatement, state: _ParseState) -> None:
        if self.options.defer_alter:
            state.pending.append(pending)
        else:
            self._apply_pending(pending, state)

    def _resolve_pending(self, state: _ParseState) -> None:
        for pending in state.pending:
            self._apply_pending(pending, state)
        state.pending.clear()

    # [함수 설명]
    # - 목적: 지연된 ALTER TABLE/COMMENT ON 문장을 이미 파싱된 테이블에 반영한다.
    # - 입력: 지연 문장, 누적 상태
    # - 출력: 없음
    # - 에러 처리: 대상 테이블이 없으면 "... references unknown table" 경고를 남기고 버린다.
    def _apply_pending(self, pending: _PendingStatement, state: _ParseState) -> None:
        table = state.table(pending.table_name)
        if table is None:
            label = "ALTER" if pending.kind == "ALTER" else "COMMENT"
            state.errors.append(f"{label} references unknown table: {pending.table_name}")
            return

        if pending.kind == "ALTER":
            for action in split_top_level(pending.text):
                self._apply_table_constraint(ALTER_ADD_PREFIX.sub("", action, count=1), table)
        elif pending.kind == "TABLE":
            table.comment = _comment_value(pending.text)
        else:
            column = table.column(pending.column_name or "")
            if column is None:
                state.errors.append(
                    "COMMENT references unknown column: "
                    f"{pending.table_name}.{pending.column_name}"
                )
                return
            column.comment = _comment_value(pending.text)


# sqlglot 오류 메시지의 두 번째 줄부터는 원문 SQL 발췌이므로 첫 줄만 남긴다.
def _error_summary(exc: ParseError | TokenError) -> str:
    if isinstance(exc, TokenError):
        return "Error tokenizing SQL"
    lines = str(exc).splitlines()
    return lines[0] if lines else type(exc).__name__


def _comment_value(value: str) -> str | None:
    if value.upper() == "NULL":
        return None
    return value[1:-1].replace("''", "'")


def _foreign_key(
    column_name: str,
    referenced_table: str,
    referenced_columns: str | None,
    name: str | None,
    options: str,
) -> SqlForeignKey:
    _, table_name = split_qualified_name(referenced_table)
    referenced = column_list(referenced_columns) if referenced_columns else []
    on_delete = ON_DELETE_PATTERN.search(options)
    on_update = ON_UPDATE_PATTERN.search(options)
    return SqlForeignKey(
        column_name=column_name,
        referenced_table=table_name,
        referenced_column=referenced[0] if referenced else "id",
        name=clean_identifier(name),
        on_delete=ForeignKeyAction.parse(on_delete.group(1) if on_delete else None),
        on_update=ForeignKeyAction.parse(on_update.group(1) if on_update else None),
    )
