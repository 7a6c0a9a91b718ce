# [파일 설명]
# - 목적: FK 목록에서 테이블 간 관계(1:1, N:1, 1:N, N:M)를 추론한다.
# - 제공 기능: FK 관계 분류, 역방향 관계, 정션 테이블 기반 다대다 관계, 소스 테이블별 그룹핑을 제공한다.
# - 입력/출력: 불변 SqlTable 목록을 받아 관계 객체 목록을 반환한다.
# - 주의 사항: 관계는 저장하지 않는 읽기 전용 파생 뷰다. 참조 대상이 없는 FK는 건너뛴다.
# - 연관 모듈: ddlscan.services.schema.SqlSchema가 위임 호출한다.
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from ddlscan.services.models import SqlForeignKey, SqlTable
from ddlscan.services.naming import pluralize


class RelationType(str, Enum):
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_ONE = "MANY_TO_ONE"
    MANY_TO_MANY = "MANY_TO_MANY"


INVERSE_RELATION_TYPES = {
    RelationType.ONE_TO_ONE: RelationType.ONE_TO_ONE,
    RelationType.MANY_TO_ONE: RelationType.ONE_TO_MANY,
    RelationType.ONE_TO_MANY: RelationType.MANY_TO_ONE,
    RelationType.MANY_TO_MANY: RelationType.MANY_TO_MANY,
}


# [클래스 설명]
# - 역할: FK 한 건이 만드는 소스→타겟 관계를 표현한다.
# - 핵심 동작: inverse()로 타겟 테이블 쪽에서 본 미러 관계를 만든다.
# - 제약/주의: owning=False인 관계는 inverse()가 만든 파생 관계다.
@dataclass(frozen=True)
class TableRelationship:
    source_table: SqlTable
    target_table: SqlTable
    foreign_key: SqlForeignKey
    relation_type: RelationType
    owning: bool = True

    def inverse(self) -> TableRelationship:
        return TableRelationship(
            source_table=self.target_table,
            target_table=self.source_table,
            foreign_key=self.foreign_key,
            relation_type=INVERSE_RELATION_TYPES[self.relation_type],
            owning=not self.owning,
        )


@dataclass(frozen=True)
class ManyToManyRelation:
    junction_table: str
    source_column: str
    target_column: str
    target_table: SqlTable
    collection_name: str


def find_table(tables: Iterable[SqlTable], name: str | None) -> SqlTable | None:
    if not name:
        return None
    lookup = name.lower()
    for table in tables:
        if table.name.lower() == lookup:
            return table
    return None


# [함수 설명]
# - 목적: FK 한 건의 관계 유형을 분류한다.
# - 입력: fk, FK를 가진 테이블(source)
# - 출력: RelationType
# - 결정 규칙: 정션 테이블 → MANY_TO_MANY, FK 컬럼이 단일 PK이거나 UNIQUE → ONE_TO_ONE,
#   그 외 → MANY_TO_ONE 순서로 판정한다.
def infer_relation_type(fk: SqlForeignKey, source: SqlTable) -> RelationType:
    if source.is_junction_table:
        return RelationType.MANY_TO_MANY

    column_name = fk.column_name.lower()
    primary_keys = [name.lower() for name in source.primary_key_columns]
    if primary_keys == [column_name]:
        return RelationType.ONE_TO_ONE

    column = source.column_by_name(fk.column_name)
    if column is not None and column.unique:
        return RelationType.ONE_TO_ONE
    if source.has_unique_constraint_on(fk.column_name):
        return RelationType.ONE_TO_ONE
    return RelationType.MANY_TO_ONE


def build_relationships(tables: Sequence[SqlTable]) -> list[TableRelationship]:
    relationships: list[TableRelationship] = []
    for table in tables:
        for fk in table.foreign_keys:
            target = find_table(tables, fk.referenced_table)
            if target is None:
                continue
            relationships.append(
                TableRelationship(
                    source_table=table,
                    target_table=target,
                    foreign_key=fk,
                    relation_type=infer_relation_type(fk, table),
                )
            )
    return relationships


def group_by_source(
    relationships: Iterable[TableRelationship],
) -> dict[str, list[TableRelationship]]:
    grouped: dict[str, list[TableRelationship]] = {}
    for relationship in relationships:
        grouped.setdefault(relationship.source_table.name, []).append(relationship)
    return grouped


# [함수 설명]
# - 목적: 대상 테이블 쪽에 붙는 역방향 관계(예: MANY_TO_ONE의 ONE_TO_MANY)를 구한다.
# - 입력: 대상 테이블, 전체 관계 목록
# - 출력: 대상 테이블을 source로 하는 역방향 관계 목록
# - 주의 사항: 정션 테이블에서 나온 관계는 다대다로 따로 다루므로 제외한다.
def find_inverse_relationships(
    table: SqlTable, relationships: Iterable[TableRelationship]
) -> list[TableRelationship]:
    lookup = table.name.lower()
    return [
        relationship.inverse()
        for relationship in relationships
        if relationship.target_table.name.lower() == lookup
        and not relationship.source_table.is_junction_table
    ]


# [함수 설명]
# - 목적: 정션 테이블을 통해 주어진 테이블과 연결된 다대다 관계를 구한다.
# - 입력: 엔티티 테이블, 전체 테이블 목록
# - 출력: 반대편 테이블과 컬렉션 이름을 담은 ManyToManyRelation 목록
# - 결정론: 정션 테이블의 선언 순서를 그대로 따른다.
def find_many_to_many_relations(
    table: SqlTable, tables: Sequence[SqlTable]
) -> list[ManyToManyRelation]:
    relations: list[ManyToManyRelation] = []
    lookup = table.name.lower()
    for junction in tables:
        if not junction.is_junction_table:
            continue
        first, second = junction.foreign_keys
        # 자기 참조 정션(user_friends 등)은 양쪽 FK가 모두 같은 테이블을 가리킨다.
        for this_fk, other_fk in ((first, second), (second, first)):
            if this_fk.referenced_table.lower() != lookup:
                continue
            other_table = find_table(tables, other_fk.referenced_table)
            if other_table is None:
                continue
            relations.append(
                ManyToManyRelation(
                    junction_table=junction.name,
                    source_column=this_fk.column_name,
                    target_column=other_fk.column_name,
                    target_table=other_table,
                    collection_name=pluralize(other_table.entity_variable_name),
                )
            )
    return relations
