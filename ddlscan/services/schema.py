# [파일 설명]
# - 목적: 한 SQL 파일의 전체 파싱 결과(SqlSchema)를 정의한다.
# - 제공 기능: 엔티티/정션 테이블 목록, 관계 파생, 모듈/함수 그룹핑, 생성 순서, 스키마 검증을 제공한다.
# - 입력/출력: 파서가 만든 불변 모델을 보관하고 사람이 읽을 수 있는 문자열 이슈 목록을 반환한다.
# - 주의 사항: parse() 이후 변경되지 않는다. 관계는 호출 시마다 계산한다.
# - 연관 모듈: ddlscan.services.relationships에 관계 계산을 위임한다.
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

import networkx as nx

from ddlscan.services.models import SqlFunction, SqlIndex, SqlTable
from ddlscan.services.naming import is_audit_table, singularize
from ddlscan.services.relationships import (
    ManyToManyRelation,
    TableRelationship,
    build_relationships,
    find_inverse_relationships,
    find_many_to_many_relations,
    find_table,
    group_by_source,
)

GLOBAL_FUNCTION_GROUP = "_global"


@dataclass(frozen=True)
class SqlSchema:
    name: str
    source_file: str
    tables: tuple[SqlTable, ...] = ()
    functions: tuple[SqlFunction, ...] = ()
    standalone_indexes: tuple[SqlIndex, ...] = ()
    extensions: tuple[str, ...] = ()
    parse_errors: tuple[str, ...] = ()

    @property
    def entity_tables(self) -> list[SqlTable]:
        return [
            table
            for table in self.tables
            if not table.is_junction_table and not is_audit_table(table.name)
        ]

    @property
    def junction_tables(self) -> list[SqlTable]:
        return [table for table in self.tables if table.is_junction_table]

    def table_by_name(self, name: str) -> SqlTable | None:
        return find_table(self.tables, name)

    def all_relationships(self) -> list[TableRelationship]:
        return build_relationships(self.tables)

    def relationships_by_table(self) -> dict[str, list[TableRelationship]]:
        return group_by_source(self.all_relationships())

    def relationships_for_table(self, table: SqlTable) -> list[TableRelationship]:
        return self.relationships_by_table().get(table.name, [])

    def inverse_relationships(self, table: SqlTable) -> list[TableRelationship]:
        return find_inverse_relationships(table, self.all_relationships())

    def many_to_many_relations(self, table: SqlTable) -> list[ManyToManyRelation]:
        return find_many_to_many_relations(table, self.tables)

    def tables_by_module(self) -> dict[str, list[SqlTable]]:
        grouped: dict[str, list[SqlTable]] = {}
        for table in self.entity_tables:
            grouped.setdefault(table.module_name, []).append(table)
        return grouped

    # [함수 설명]
    # - 목적: 함수명 패턴(get_user_by_id → users)으로 관련 테이블별 함수 목록을 묶는다.
    # - 입력: self
    # - 출력: 테이블명 → 함수 목록, 매칭되지 않으면 "_global"
    def functions_by_table(self) -> dict[str, list[SqlFunction]]:
        grouped: dict[str, list[SqlFunction]] = {}
        for function in self.functions:
            grouped.setdefault(self._infer_function_table(function.name), []).append(function)
        return grouped

    def _infer_function_table(self, function_name: str) -> str:
        lowered = function_name.lower()
        for table in self.tables:
            table_name = table.name.lower()
            if singularize(table_name) in lowered:
                return table_name
        return GLOBAL_FUNCTION_GROUP

    def dependency_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        for table in self.tables:
            graph.add_node(table.name)
        for table in self.tables:
            for fk in table.foreign_keys:
                target = self.table_by_name(fk.referenced_table)
                if target is None or target.name == table.name:
                    continue
                graph.add_edge(target.name, table.name)
        return graph

    # [함수 설명]
    # - 목적: 참조되는 테이블이 먼저 오도록 테이블 생성 순서를 계산한다.
    # - 입력: self
    # - 출력: 테이블명 목록
    # - 에러 처리: FK 순환이 있으면 선언 순서를 그대로 반환한다.
    # - 결정론: 동순위는 선언 순서로 정렬한다.
    def creation_order(self) -> list[str]:
        position = {table.name: index for index, table in enumerate(self.tables)}
        graph = self.dependency_graph()
        try:
            return list(
                nx.lexicographical_topological_sort(graph, key=lambda name: position[name])
            )
        except nx.NetworkXUnfeasible:
            return [table.name for table in self.tables]

    # [함수 설명]
    # - 목적: 코드 생성 전에 확인해야 할 스키마 문제를 찾는다.
    # - 입력: self
    # - 출력: 사람이 읽을 수 있는 이슈 문자열 목록
    # - 에러 처리: 예외를 던지지 않고 모든 이슈를 수집한다.
    # - 결정론: 테이블 선언 순서와 정렬된 순환 목록으로 출력 순서를 고정한다.
    def validate(self) -> list[str]:
        issues: list[str] = []

        for table in self.tables:
            if not table.primary_key_columns:
                issues.append(f"Table '{table.name}' has no primary key")

        for table in self.tables:
            for fk in table.foreign_keys:
                if table.column_by_name(fk.column_name) is None:
                    issues.append(
                        f"Foreign key column '{fk.column_name}' not found in table "
                        f"'{table.name}'"
                    )
                referenced = self.table_by_name(fk.referenced_table)
                if referenced is None:
                    issues.append(
                        f"Foreign key in '{table.name}' references non-existent table "
                        f"'{fk.referenced_table}'"
                    )
                elif referenced.columns and referenced.column_by_name(fk.referenced_column) is None:
                    issues.append(
                        f"Foreign key in '{table.name}' references non-existent column "
                        f"'{fk.referenced_table}.{fk.referenced_column}'"
                    )

        entity_counts = Counter(table.entity_name for table in self.tables)
        for entity_name, count in entity_counts.items():
            if count > 1:
                issues.append(f"Multiple tables would generate entity name '{entity_name}'")

        for cycle in _sorted_cycles(self.dependency_graph()):
            issues.append("Circular foreign key dependency: " + " -> ".join(cycle))

        return issues


def _sorted_cycles(graph: nx.DiGraph) -> list[list[str]]:
    cycles = []
    for cycle in nx.simple_cycles(graph):
        start = cycle.index(min(cycle))
        rotated = cycle[start:] + cycle[:start]
        cycles.append(rotated + [rotated[0]])
    return sorted(cycles)
