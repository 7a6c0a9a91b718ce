# [파일 설명]
# - 목적: 테이블/컬럼 이름에서 엔티티/필드 이름을 유도하는 명명 규칙을 제공한다.
# - 제공 기능: 단수/복수 변환, PascalCase/camelCase 변환, FK 컬럼의 속성명 변환을 제공한다.
# - 입력/출력: 문자열을 받아 변환된 문자열을 반환한다.
# - 주의 사항: 규칙 기반 영어 변환만 지원한다(불규칙 복수형 미지원).
# - 연관 모듈: ddlscan.services.models, ddlscan.services.relationships에서 사용된다.
from __future__ import annotations

VOWELS = "aeiouAEIOU"

AUDIT_COLUMNS = frozenset(
    {
        "estado",
        "fecha_creacion",
        "fecha_actualizacion",
        "fecha_eliminacion",
        "creado_por",
        "modificado_por",
        "eliminado_por",
        "version",
        "created_at",
        "updated_at",
        "deleted_at",
        "created_by",
        "updated_by",
        "deleted_by",
    }
)


# [함수 설명]
# - 목적: 단수 명사를 복수형으로 변환한다.
# - 입력: name (예: category, bus, day)
# - 출력: categories, buses, days
# - 주의 사항: 자음+y → ies, s/x/z/ch/sh → +es, 그 외 +s 규칙만 적용한다.
def pluralize(name: str) -> str:
    if not name:
        return name
    if name.endswith("y") and len(name) > 1 and name[-2] not in VOWELS:
        return name[:-1] + "ies"
    if name.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


# [함수 설명]
# - 목적: 복수형 테이블명을 단수형으로 변환한다.
# - 입력: name (예: categories, classes, boxes, statuses, houses, users)
# - 출력: category, class, box, status, house, user
def singularize(name: str) -> str:
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("sses"):
        return name[:-2]
    if name.endswith(("xes", "ches", "shes")):
        return name[:-2]
    if name.endswith("uses") and len(name) > 4 and name[-5] not in VOWELS:
        return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def to_pascal_case(name: str) -> str:
    parts = [part for part in name.replace("-", "_").lower().split("_") if part]
    return "".join(part[0].upper() + part[1:] for part in parts)


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    if not pascal:
        return pascal
    return pascal[0].lower() + pascal[1:]


def lower_first(name: str) -> str:
    if not name:
        return name
    return name[0].lower() + name[1:]


# [함수 설명]
# - 목적: FK 컬럼명에서 _id 접미사를 제거해 관계 속성명으로 만든다.
# - 입력: user_id, parent_category_id, status
# - 출력: user, parentCategory, status
def to_property_name(column_name: str) -> str:
    base = column_name
    if base.lower().endswith("_id") and len(base) > 3:
        base = base[:-3]
    return to_camel_case(base)


def is_audit_column(column_name: str) -> bool:
    return column_name.lower() in AUDIT_COLUMNS


def is_audit_table(table_name: str) -> bool:
    lower = table_name.lower()
    return lower.endswith("_aud") or lower.endswith("_audit") or lower == "revision_info"
