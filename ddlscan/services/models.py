# [파일 설명]
# - 목적: 파싱된 DDL을 표현하는 불변 스키마 모델(테이블/컬럼/FK/인덱스/함수)을 정의한다.
# - 제공 기능: 엔티티명, 모듈명, 비즈니스 컬럼, 정션 테이블 여부 등 파생 속성을 계산한다.
# - 입력/출력: 파서가 생성한 값을 보관하며, 파생 속성은 저장하지 않고 매번 계산한다.
# - 주의 사항: 모든 모델은 frozen dataclass이며 목록 필드는 tuple로 고정한다.
# - 연관 모듈: ddlscan.services.ddl_parser가 생성하고 relationships/schema 모듈이 소비한다.
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ddlscan.services.naming import (
    is_audit_column,
    lower_first,
    singularize,
    to_camel_case,
    to_pascal_case,
    to_property_name,
)


class ForeignKeyAction(str, Enum):
    CASCADE = "CASCADE"
    SET_NULL = "SET_NULL"
    SET_DEFAULT = "SET_DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO_ACTION"

    @classmethod
    def parse(cls, action: str | None) -> ForeignKeyAction:
        if not action:
            return cls.NO_ACTION
        normalized = "_".join(action.upper().split())
        try:
            return cls(normalized)
        except ValueError:
            return cls.NO_ACTION


class IndexType(str, Enum):
    BTREE = "BTREE"
    GIN = "GIN"
    GIST = "GIST"
    HASH = "HASH"
    BRIN = "BRIN"

    @classmethod
    def parse(cls, method: str | None) -> IndexType:
        if not method:
            return cls.BTREE
        try:
            return cls(method.upper())
        except ValueError:
            return cls.BTREE


class FunctionType(str, Enum):
    FUNCTION = "FUNCTION"
    PROCEDURE = "PROCEDURE"


class ParameterMode(str, Enum):
    IN = "IN"
    OUT = "OUT"
    INOUT = "INOUT"


@dataclass(frozen=True)
class SqlColumn:
    name: str
    sql_type: str
    generic_type: str
    nullable: bool = True
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default_value: str | None = None
    check_constraint: str | None = None
    comment: str | None = None

    @property
    def field_name(self) -> str:
        return to_camel_case(self.name)


@dataclass(frozen=True)
class SqlForeignKey:
    column_name: str
    referenced_table: str
    referenced_column: str = "id"
    name: str | None = None
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION

    @property
    def referenced_entity_name(self) -> str:
        return to_pascal_case(singularize(self.referenced_table))

    @property
    def field_name(self) -> str:
        return to_property_name(self.column_name)


@dataclass(frozen=True)
class SqlIndex:
    name: str | None
    table_name: str
    columns: tuple[str, ...] = ()
    unique: bool = False
    type: IndexType = IndexType.BTREE


@dataclass(frozen=True)
class SqlParameter:
    name: str
    sql_type: str
    generic_type: str
    mode: ParameterMode = ParameterMode.IN


@dataclass(frozen=True)
class SqlFunction:
    name: str
    type: FunctionType = FunctionType.FUNCTION
    parameters: tuple[SqlParameter, ...] = ()
    return_type: str | None = None
    language: str = "sql"
    body: str | None = None


# [클래스 설명]
# - 역할: CREATE TABLE 한 건의 파싱 결과를 보관한다.
# - 핵심 동작: 엔티티명/모듈명/비즈니스 컬럼/정션 여부를 컬럼과 FK 목록에서 계산한다.
# - 제약/주의: primary_key_columns가 각 컬럼의 primary_key 플래그와 일치하도록 파서가 보장한다.
@dataclass(frozen=True)
class SqlTable:
    name: str
    schema: str | None = None
    comment: str | None = None
    columns: tuple[SqlColumn, ...] = ()
    foreign_keys: tuple[SqlForeignKey, ...] = ()
    indexes: tuple[SqlIndex, ...] = ()
    primary_key_columns: tuple[str, ...] = ()
    unique_constraints: tuple[str, ...] = ()
    check_constraints: tuple[str, ...] = ()

    @property
    def entity_name(self) -> str:
        return to_pascal_case(singularize(self.name))

    @property
    def entity_variable_name(self) -> str:
        return lower_first(self.entity_name)

    @property
    def module_name(self) -> str:
        return self.name.lower().replace("_", "")

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name

    def column_by_name(self, column_name: str) -> SqlColumn | None:
        lookup = column_name.lower()
        for column in self.columns:
            if column.name.lower() == lookup:
                return column
        return None

    def foreign_key_columns(self) -> set[str]:
        return {fk.column_name.lower() for fk in self.foreign_keys}

    # 비즈니스 컬럼: PK, FK, 감사(audit) 컬럼을 제외한 나머지
    @property
    def business_columns(self) -> tuple[SqlColumn, ...]:
        fk_columns = self.foreign_key_columns()
        return tuple(
            column
            for column in self.columns
            if not column.primary_key
            and column.name.lower() not in fk_columns
            and not is_audit_column(column.name)
        )

    # [함수 설명]
    # - 목적: 다대다 관계만을 구현하는 정션 테이블인지 판별한다.
    # - 입력: self
    # - 출력: 서로 다른 두 컬럼에 대한 FK가 정확히 2개이고 비즈니스 컬럼이 없으면 True
    @property
    def is_junction_table(self) -> bool:
        if len(self.foreign_keys) != 2:
            return False
        if len(self.foreign_key_columns()) != 2:
            return False
        return not self.business_columns

    @property
    def extends_base(self) -> bool:
        names = {column.name.lower() for column in self.columns}
        return "estado" in names or "created_at" in names

    def has_unique_constraint_on(self, column_name: str) -> bool:
        lookup = column_name.lower()
        if any(constraint.lower() == lookup for constraint in self.unique_constraints):
            return True
        return any(
            index.unique and len(index.columns) == 1 and index.columns[0].lower() == lookup
            for index in self.indexes
        )


@dataclass
class ColumnDraft:
    name: str
    sql_type: str
    generic_type: str
    nullable: bool = True
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default_value: str | None = None
    check_constraint: str | None = None
    comment: str | None = None
    # 명시적 NOT NULL 여부. PK 변경 시 nullable 재계산에 쓴다.
    not_null: bool = False

    def build(self) -> SqlColumn:
        return SqlColumn(
            name=self.name,
            sql_type=self.sql_type,
            generic_type=self.generic_type,
            nullable=self.nullable,
            length=self.length,
            precision=self.precision,
            scale=self.scale,
            primary_key=self.primary_key,
            unique=self.unique,
            auto_increment=self.auto_increment,
            default_value=self.default_value,
            check_constraint=self.check_constraint,
            comment=self.comment,
        )


# [클래스 설명]
# - 역할: 한 번의 parse() 호출 안에서만 변경되는 테이블 빌더다.
# - 핵심 동작: 테이블 수준 제약/ALTER/COMMENT를 반영한 뒤 build()로 불변 SqlTable을 만든다.
# - 제약/주의: parse()가 끝나면 외부로 노출되지 않는다.
@dataclass
class TableDraft:
    name: str
    schema: str | None = None
    comment: str | None = None
    columns: list[ColumnDraft] = field(default_factory=list)
    foreign_keys: list[SqlForeignKey] = field(default_factory=list)
    indexes: list[SqlIndex] = field(default_factory=list)
    primary_key_columns: list[str] = field(default_factory=list)
    unique_constraints: list[str] = field(default_factory=list)
    check_constraints: list[str] = field(default_factory=list)

    def column(self, column_name: str) -> ColumnDraft | None:
        lookup = column_name.lower()
        for column in self.columns:
            if column.name.lower() == lookup:
                return column
        return None

    # [함수 설명]
    # - 목적: 테이블 수준 PRIMARY KEY(...)를 최종 기준으로 PK 목록과 컬럼 플래그를 재계산한다.
    # - 입력: PK 컬럼명 목록
    # - 출력: 없음 (draft를 갱신한다)
    def set_primary_key(self, column_names: list[str]) -> None:
        lookup = {name.lower() for name in column_names}
        self.primary_key_columns = list(column_names)
        for column in self.columns:
            column.primary_key = column.name.lower() in lookup
            column.nullable = not (column.primary_key or column.not_null)

    def add_unique(self, column_names: list[str]) -> None:
        self.unique_constraints.append(",".join(column_names))
        if len(column_names) == 1:
            column = self.column(column_names[0])
            if column is not None:
                column.unique = True

    def build(self) -> SqlTable:
        return SqlTable(
            name=self.name,
            schema=self.schema,
            comment=self.comment,
            columns=tuple(column.build() for column in self.columns),
            foreign_keys=tuple(self.foreign_keys),
            indexes=tuple(self.indexes),
            primary_key_columns=tuple(self.primary_key_columns),
            unique_constraints=tuple(self.unique_constraints),
            check_constraints=tuple(self.check_constraints),
        )
