# [파일 설명]
# - 목적: 스키마 분석 API 라우트와 요청/응답 모델을 정의한다.
# - 제공 기능: /parse, /relationships, /validate, /type-mapping POST 엔드포인트를 제공한다.
# - 입력/출력: Pydantic 모델로 요청을 수신하고 version/errors를 포함한 응답을 반환한다.
# - 주의 사항: 원문 SQL은 로깅/응답에 직접 노출하지 않는다.
# - 연관 모듈: ddlscan.services.schema_report, ddlscan.config
from __future__ import annotations

import logging
from dataclasses import replace

from fastapi import APIRouter
from pydantic import BaseModel, Field, field_validator, model_validator

from ddlscan.config import ParserOptions, is_known_dialect, load_parser_options
from ddlscan.services.ddl_parser import INLINE_SOURCE_NAME
from ddlscan.services.schema_report import (
    build_relationship_report,
    build_schema_report,
    build_type_mapping_report,
    build_validation_report,
)
from ddlscan.services.sql_text import summarize_sql

logger = logging.getLogger(__name__)

router = APIRouter()


# [클래스 설명]
# - 역할: 요청 단위 파서 옵션(환경 변수 기본값을 덮어쓴다)을 정의한다.
# - 제약/주의: None인 필드는 환경 변수 기반 기본값을 그대로 사용한다.
#   dialect는 sqlglot이 아는 방언 이름이어야 한다(모르면 422).
class ParseOptions(BaseModel):
    dialect: str | None = None
    defer_alter: bool | None = None

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, value: str | None) -> str | None:
        if value is not None and not is_known_dialect(value):
            raise ValueError(f"Unknown SQL dialect: {value}")
        return value


class SchemaRequest(BaseModel):
    sql: str = Field(..., min_length=1)
    source_name: str = INLINE_SOURCE_NAME
    options: ParseOptions = Field(default_factory=ParseOptions)


class TypeMappingRequest(BaseModel):
    sql_types: list[str] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_types(self) -> TypeMappingRequest:
        if any(not item.strip() for item in self.sql_types):
            raise ValueError("sql_types must not contain blank entries.")
        return self


class ColumnModel(BaseModel):
    name: str
    field_name: str
    sql_type: str
    generic_type: str
    nullable: bool
    length: int | None
    precision: int | None
    scale: int | None
    primary_key: bool
    unique: bool
    auto_increment: bool
    default_value: str | None
    check_constraint: str | None
    comment: str | None


class ForeignKeyModel(BaseModel):
    name: str | None
    column_name: str
    referenced_table: str
    referenced_column: str
    referenced_entity_name: str
    field_name: str
    on_delete: str
    on_update: str


class IndexModel(BaseModel):
    name: str | None
    table_name: str
    columns: list[str]
    unique: bool
    type: str


# [클래스 설명]
# - 역할: 테이블 한 건의 파싱 결과와 파생 속성(엔티티명/모듈명/정션 여부)을 표현한다.
# - 사용 위치: SchemaResponse.tables
class TableModel(BaseModel):
    name: str
    schema_name: str | None = Field(default=None, alias="schema")
    comment: str | None
    entity_name: str
    entity_variable_name: str
    module_name: str
    is_junction_table: bool
    extends_base: bool
    primary_key_columns: list[str]
    unique_constraints: list[str]
    check_constraints: list[str]
    columns: list[ColumnModel]
    business_columns: list[str]
    foreign_keys: list[ForeignKeyModel]
    indexes: list[IndexModel]

    model_config = {"populate_by_name": True}


class ParameterModel(BaseModel):
    name: str
    sql_type: str
    generic_type: str
    mode: str


class FunctionModel(BaseModel):
    name: str
    type: str
    parameters: list[ParameterModel]
    return_type: str | None
    language: str
    body_len: int


class SchemaSummary(BaseModel):
    table_count: int
    entity_table_count: int
    junction_table_count: int
    function_count: int
    standalone_index_count: int
    warning_count: int


class SchemaResponse(BaseModel):
    version: str
    name: str
    summary: SchemaSummary
    tables: list[TableModel]
    functions: list[FunctionModel]
    functions_by_table: dict[str, list[str]]
    standalone_indexes: list[IndexModel]
    extensions: list[str]
    creation_order: list[str]
    errors: list[str]


class RelationshipModel(BaseModel):
    source_table: str
    target_table: str
    column_name: str
    referenced_column: str
    relation_type: str
    owning: bool


class ManyToManyModel(BaseModel):
    source_table: str
    junction_table: str
    source_column: str
    target_column: str
    target_table: str
    collection_name: str


class RelationshipSummary(BaseModel):
    relationship_count: int
    inverse_count: int
    many_to_many_count: int


class RelationshipResponse(BaseModel):
    version: str
    summary: RelationshipSummary
    relationships: list[RelationshipModel]
    inverse_relationships: list[RelationshipModel]
    many_to_many: list[ManyToManyModel]
    junction_tables: list[str]
    entity_tables: list[str]
    errors: list[str]


class ValidationResponse(BaseModel):
    version: str
    valid: bool
    issues: list[str]
    creation_order: list[str]
    errors: list[str]


class TypeMappingItem(BaseModel):
    sql_type: str
    generic_type: str


class TypeMappingResponse(BaseModel):
    version: str
    mappings: list[TypeMappingItem]
    errors: list[str]


def resolve_options(options: ParseOptions) -> ParserOptions:
    resolved = load_parser_options()
    if options.dialect:
        resolved = replace(resolved, dialect=options.dialect)
    if options.defer_alter is not None:
        resolved = replace(resolved, defer_alter=options.defer_alter)
    return resolved


def _log_request(endpoint: str, sql: str) -> None:
    summary = summarize_sql(sql)
    logger.info(
        "%s: sql_len=%s sql_hash=%s", endpoint, summary["len"], summary["sha256_8"]
    )


# [함수 설명]
# - 목적: /schema/parse 요청을 처리해 테이블/함수/인덱스 전체 리포트를 반환한다.
# - 입력: SchemaRequest(sql, source_name, options)
# - 출력: SchemaResponse
# - 에러 처리: 파싱 경고는 errors 목록으로 반환하고 예외로 만들지 않는다.
# - 보안: 원문 SQL은 로그에 요약 정보로만 기록한다.
@router.post("/parse", response_model=SchemaResponse)
def parse_schema(request: SchemaRequest) -> SchemaResponse:
    _log_request("schema.parse", request.sql)
    result = build_schema_report(
        request.sql, resolve_options(request.options), request.source_name
    )
    return SchemaResponse(**result)


@router.post("/relationships", response_model=RelationshipResponse)
def relationships(request: SchemaRequest) -> RelationshipResponse:
    _log_request("schema.relationships", request.sql)
    result = build_relationship_report(
        request.sql, resolve_options(request.options), request.source_name
    )
    return RelationshipResponse(**result)


# [함수 설명]
# - 목적: /schema/validate 요청을 처리해 코드 생성 전 확인할 스키마 이슈를 반환한다.
# - 입력: SchemaRequest
# - 출력: ValidationResponse (valid, issues, creation_order, errors)
@router.post("/validate", response_model=ValidationResponse)
def validate(request: SchemaRequest) -> ValidationResponse:
    _log_request("schema.validate", request.sql)
    result = build_validation_report(
        request.sql, resolve_options(request.options), request.source_name
    )
    return ValidationResponse(**result)


@router.post("/type-mapping", response_model=TypeMappingResponse)
def type_mapping(request: TypeMappingRequest) -> TypeMappingResponse:
    return TypeMappingResponse(**build_type_mapping_report(request.sql_types))
