# [파일 설명]
# - 목적: DDL 원문을 파서에 넘기기 전후로 필요한 텍스트 유틸리티를 제공한다.
# - 제공 기능: 로그용 요약, 주석 제거, 달러 인용 본문 마스킹, 괄호 깊이 기반 분할을 제공한다.
# - 입력/출력: 원문 SQL 문자열을 받아 정리된 문자열 또는 분할 목록을 반환한다.
# - 주의 사항: 원문 SQL 자체는 로그에 남기지 않고 길이/해시만 기록한다.
# - 연관 모듈: 파서(ddlscan.services.ddl_parser)와 함수 추출기에서 사용된다.
from __future__ import annotations

import hashlib
import re

BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
LINE_COMMENT_PATTERN = re.compile(r"--.*?$", re.MULTILINE)
DOLLAR_QUOTED_PATTERN = re.compile(
    r"\$\$.*?\$\$|\$(?P<tag>[A-Za-z_]\w*)\$.*?\$(?P=tag)\$", re.DOTALL
)
QUOTED_IDENTIFIER_CHARS = "\"`[]"


# [함수 설명]
# - 목적: SQL 원문 대신 로그에 남길 요약 정보를 계산한다.
# - 입력: sql: str
# - 출력: 길이와 sha256 앞 8자리를 담은 dict
# - 결정론: 동일 입력에 대해 항상 동일한 값을 반환한다.
# - 보안: 원문 SQL은 반환하지 않는다.
def summarize_sql(sql: str) -> dict[str, int | str]:
    sql_hash = hashlib.sha256(sql.encode("utf-8")).hexdigest()[:8]
    return {"len": len(sql), "sha256_8": sql_hash}


# [함수 설명]
# - 목적: 블록/라인 주석을 공백으로 치환한다.
# - 입력: sql: str
# - 출력: 주석이 제거된 SQL 문자열
# - 주의 사항: 문자열 리터럴은 유지한다. DEFAULT 값 추출에 필요하다.
def strip_comments(sql: str) -> str:
    sql = BLOCK_COMMENT_PATTERN.sub(" ", sql)
    sql = LINE_COMMENT_PATTERN.sub(" ", sql)
    return sql


# [함수 설명]
# - 목적: $$...$$ 또는 $tag$...$tag$ 본문을 '' 로 치환해 구조 파서가 절차형 문법을 보지 않게 한다.
# - 입력: sql: str
# - 출력: 본문이 마스킹된 SQL 문자열
def mask_dollar_quoted(sql: str) -> str:
    return DOLLAR_QUOTED_PATTERN.sub("''", sql)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    in_string = False
    for ch in text:
        if ch == "'":
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(depth - 1, 0)
            elif ch == separator and depth == 0:
                parts.append("".join(buf).strip())
                buf = []
                continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return [part for part in parts if part]


# [함수 설명]
# - 목적: start 위치의 여는 괄호부터 짝이 맞는 닫는 괄호까지를 잘라낸다.
# - 입력: text, start(여는 괄호 위치)
# - 출력: "( ... )" 문자열, 괄호가 닫히지 않으면 끝까지
def balanced_parentheses(text: str, start: int) -> str:
    depth = 0
    in_string = False
    for index in range(start, len(text)):
        ch = text[index]
        if ch == "'":
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
    return text[start:]


# [함수 설명]
# - 목적: 일괄 파싱이 실패했을 때 재시도할 문장 단위로 SQL을 나눈다.
# - 입력: sql: str (주석 포함 가능)
# - 출력: 주석이 제거된 문장 목록
# - 주의 사항: 문자열 리터럴 안의 ';'만 보호한다. 괄호 깊이는 추적하지 않으므로
#   닫히지 않은 괄호가 있는 문장도 자기 자신만 실패한다.
def split_statements(sql: str) -> list[str]:
    statements: list[str] = []
    buf: list[str] = []
    in_string = False
    for ch in strip_comments(sql):
        if ch == "'":
            in_string = not in_string
        elif ch == ";" and not in_string:
            statements.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    statements.append("".join(buf).strip())
    return [statement for statement in statements if statement]


def clean_identifier(name: str | None) -> str | None:
    if name is None:
        return None
    return name.strip().strip(QUOTED_IDENTIFIER_CHARS)


# [함수 설명]
# - 목적: "schema.table" 형태의 이름을 (schema, table)로 분리한다.
# - 입력: 따옴표가 포함될 수 있는 식별자 문자열
# - 출력: (스키마 또는 None, 테이블명)
def split_qualified_name(name: str) -> tuple[str | None, str]:
    parts = [clean_identifier(part) or "" for part in name.split(".")]
    if len(parts) == 1:
        return None, parts[0]
    return parts[-2], parts[-1]


def column_list(text: str) -> list[str]:
    columns: list[str] = []
    for item in split_top_level(text):
        token = item.split()[0] if item.split() else ""
        cleaned = clean_identifier(token)
        if cleaned:
            columns.append(cleaned)
    return columns


def preview(statement: str, limit: int = 50) -> str:
    compact = " ".join(statement.split())
    return compact[:limit]
