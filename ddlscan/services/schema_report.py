# [파일 설명]
# - 목적: SqlSchema 파싱 결과를 API/MCP 응답용 dict 리포트로 변환한다.
# - 제공 기능: 스키마 요약, 관계 리포트, 검증 리포트, 타입 매핑 리포트를 제공한다.
# - 입력/출력: SQL 원문(또는 타입명 목록)을 받아 version/errors를 포함한 dict를 반환한다.
# - 주의 사항: 원문 SQL은 리포트에 포함하지 않는다. 함수 본문도 길이만 노출한다.
# - 연관 모듈: ddlscan.api.schema, ddlscan.mcp_streamable_http에서 호출된다.
from __future__ import annotations

import logging

from ddlscan.config import ParserOptions
from ddlscan.services.ddl_parser import INLINE_SOURCE_NAME, SqlSchemaParser
from ddlscan.services.models import SqlColumn, SqlForeignKey, SqlFunction, SqlIndex, SqlTable
from ddlscan.services.relationships import ManyToManyRelation, TableRelationship
from ddlscan.services.schema import SqlSchema
from ddlscan.services.sql_text import summarize_sql
from ddlscan.services.type_mapping import map_sql_type

logger = logging.getLogger(__name__)

REPORT_VERSION = "1.2.0"


def parse_schema(
    sql: str, options: ParserOptions | None = None, source_name: str = INLINE_SOURCE_NAME
) -> SqlSchema:
    return SqlSchemaParser(options).parse(sql, source_name)


# [함수 설명]
# - 목적: 테이블/함수/인덱스/확장 전체를 담은 스키마 리포트를 만든다.
# - 입력: sql 원문, 파서 옵션, 소스 이름
# - 출력: version, summary, tables, functions, standalone_indexes, extensions,
#   creation_order, errors를 포함한 dict
# - 에러 처리: 파싱 경고는 errors에 그대로 담는다.
# - 결정론: 선언 순서를 유지하므로 동일 입력에 대해 동일 출력이다.
def build_schema_report(
    sql: str, options: ParserOptions | None = None, source_name: str = INLINE_SOURCE_NAME
) -> dict[str, object]:
    summary = summarize_sql(sql)
    logger.info(
        "build_schema_report: sql_len=%s sql_hash=%s", summary["len"], summary["sha256_8"]
    )
    schema = parse_schema(sql, options, source_name)
    return {
        "version": REPORT_VERSION,
        "name": schema.name,
        "summary": {
            "table_count": len(schema.tables),
            "entity_table_count": len(schema.entity_tables),
            "junction_table_count": len(schema.junction_tables),
            "function_count": len(schema.functions),
            "standalone_index_count": len(schema.standalone_indexes),
            "warning_count": len(schema.parse_errors),
        },
        "tables": [_table_entry(table) for table in schema.tables],
        "functions": [_function_entry(function) for function in schema.functions],
        "functions_by_table": {
            table: [function.name for function in functions]
            for table, functions in schema.functions_by_table().items()
        },
        "standalone_indexes": [_index_entry(index) for index in schema.standalone_indexes],
        "extensions": list(schema.extensions),
        "creation_order": schema.creation_order(),
        "errors": list(schema.parse_errors),
    }


def build_relationship_report(
    sql: str, options: ParserOptions | None = None, source_name: str = INLINE_SOURCE_NAME
) -> dict[str, object]:
    summary = summarize_sql(sql)
    logger.info(
        "build_relationship_report: sql_len=%s sql_hash=%s",
        summary["len"],
        summary["sha256_8"],
    )
    schema = parse_schema(sql, options, source_name)
    relationships = schema.all_relationships()

    inverse: list[dict[str, object]] = []
    many_to_many: list[dict[str, object]] = []
    for table in schema.entity_tables:
        inverse.extend(
            _relationship_entry(relationship)
            for relationship in schema.inverse_relationships(table)
        )
        many_to_many.extend(
            _many_to_many_entry(table.name, relation)
            for relation in schema.many_to_many_relations(table)
        )

    return {
        "version": REPORT_VERSION,
        "summary": {
            "relationship_count": len(relationships),
            "inverse_count": len(inverse),
            "many_to_many_count": len(many_to_many),
        },
        "relationships": [_relationship_entry(relationship) for relationship in relationships],
        "inverse_relationships": inverse,
        "many_to_many": many_to_many,
        "junction_tables": [table.name for table in schema.junction_tables],
        "entity_tables": [table.name for table in schema.entity_tables],
        "errors": list(schema.parse_errors),
    }


def build_validation_report(
    sql: str, options: ParserOptions | None = None, source_name: str = INLINE_SOURCE_NAME
) -> dict[str, object]:
    summary = summarize_sql(sql)
    logger.info(
        "build_validation_report: sql_len=%s sql_hash=%s",
        summary["len"],
        summary["sha256_8"],
    )
    schema = parse_schema(sql, options, source_name)
    issues = schema.validate()
    logger.info("build_validation_report: issues=%s", len(issues))
    return {
        "version": REPORT_VERSION,
        "valid": not issues and not schema.parse_errors,
        "issues": issues,
        "creation_order": schema.creation_order(),
        "errors": list(schema.parse_errors),
    }


def build_type_mapping_report(sql_types: list[str]) -> dict[str, object]:
    logger.info("build_type_mapping_report: types=%s", len(sql_types))
    return {
        "version": REPORT_VERSION,
        "mappings": [
            {"sql_type": sql_type, "generic_type": map_sql_type(sql_type)}
            for sql_type in sql_types
        ],
        "errors": [],
    }


def _column_entry(column: SqlColumn) -> dict[str, object]:
    return {
        "name": column.name,
        "field_name": column.field_name,
        "sql_type": column.sql_type,
        "generic_type": column.generic_type,
        "nullable": column.nullable,
        "length": column.length,
        "precision": column.precision,
        "scale": column.scale,
        "primary_key": column.primary_key,
        "unique": column.unique,
        "auto_increment": column.auto_increment,
        "default_value": column.default_value,
        "check_constraint": column.check_constraint,
        "comment": column.comment,
    }


def _foreign_key_entry(fk: SqlForeignKey) -> dict[str, object]:
    return {
        "name": fk.name,
        "column_name": fk.column_name,
        "referenced_table": fk.referenced_table,
        "referenced_column": fk.referenced_column,
        "referenced_entity_name": fk.referenced_entity_name,
        "field_name": fk.field_name,
        "on_delete": fk.on_delete.value,
        "on_update": fk.on_update.value,
    }


def _index_entry(index: SqlIndex) -> dict[str, object]:
    return {
        "name": index.name,
        "table_name": index.table_name,
        "columns": list(index.columns),
        "unique": index.unique,
        "type": index.type.value,
    }


def _table_entry(table: SqlTable) -> dict[str, object]:
    return {
        "name": table.name,
        "schema": table.schema,
        "comment": table.comment,
        "entity_name": table.entity_name,
        "entity_variable_name": table.entity_variable_name,
        "module_name": table.module_name,
        "is_junction_table": table.is_junction_table,
        "extends_base": table.extends_base,
        "primary_key_columns": list(table.primary_key_columns),
        "unique_constraints": list(table.unique_constraints),
        "check_constraints": list(table.check_constraints),
        "columns": [_column_entry(column) for column in table.columns],
        "business_columns": [column.name for column in table.business_columns],
        "foreign_keys": [_foreign_key_entry(fk) for fk in table.foreign_keys],
        "indexes": [_index_entry(index) for index in table.indexes],
    }


def _function_entry(function: SqlFunction) -> dict[str, object]:
    return {
        "name": function.name,
        "type": function.type.value,
        "parameters": [
            {
                "name": parameter.name,
                "sql_type": parameter.sql_type,
                "generic_type": parameter.generic_type,
                "mode": parameter.mode.value,
            }
            for parameter in function.parameters
        ],
        "return_type": function.return_type,
        "language": function.language,
        "body_len": len(function.body or ""),
    }


def _relationship_entry(relationship: TableRelationship) -> dict[str, object]:
    return {
        "source_table": relationship.source_table.name,
        "target_table": relationship.target_table.name,
        "column_name": relationship.foreign_key.column_name,
        "referenced_column": relationship.foreign_key.referenced_column,
        "relation_type": relationship.relation_type.value,
        "owning": relationship.owning,
    }


def _many_to_many_entry(table_name: str, relation: ManyToManyRelation) -> dict[str, object]:
    return {
        "source_table": table_name,
        "junction_table": relation.junction_table,
        "source_column": relation.source_column,
        "target_column": relation.target_column,
        "target_table": relation.target_table.name,
        "collection_name": relation.collection_name,
    }
