# [파일 설명]
# - 목적: 달러 인용($$ / $tag$) 본문을 가진 CREATE FUNCTION/PROCEDURE를 정규식으로 추출한다.
# - 제공 기능: 함수명/종류/파라미터/반환 타입/언어/본문 추출과 파라미터 분할을 제공한다.
# - 입력/출력: 원문 SQL을 받아 SqlFunction 목록을 반환한다.
# - 주의 사항: 구조 파서와 독립된 패스다. 주석을 제거한 원문에 대해 동작한다.
# - 연관 모듈: ddlscan.services.ddl_parser가 구조 파싱 전에 호출한다.
from __future__ import annotations

import logging
import re

from ddlscan.services.models import FunctionType, ParameterMode, SqlFunction, SqlParameter
from ddlscan.services.sql_text import clean_identifier, split_top_level, strip_comments
from ddlscan.services.type_mapping import map_sql_type

logger = logging.getLogger(__name__)

CREATE_FUNCTION_PATTERN = re.compile(
    r"CREATE\s+(?:OR\s+REPLACE\s+)?(?P<kind>FUNCTION|PROCEDURE)\s+"
    r"(?P<name>(?:\"[^\"]+\"|[\w$]+)(?:\s*\.\s*(?:\"[^\"]+\"|[\w$]+))?)\s*"
    r"\((?P<params>(?:[^()]|\([^()]*\))*)\)"
    r"(?P<header>[^$;]*?)\bAS\s*(?P<quote>\$(?:[A-Za-z_]\w*)?\$)(?P<body>.*?)(?P=quote)"
    r"(?P<trailer>\s*LANGUAGE\s+\w+)?",
    re.IGNORECASE | re.DOTALL,
)
RETURNS_PATTERN = re.compile(
    r"\bRETURNS\s+(?P<type>.+?)\s*(?=\b(?:LANGUAGE|IMMUTABLE|STABLE|VOLATILE|STRICT|CALLED|"
    r"SECURITY|PARALLEL|COST|ROWS|LEAKPROOF|WINDOW|SET)\b|$)",
    re.IGNORECASE | re.DOTALL,
)
LANGUAGE_PATTERN = re.compile(r"\bLANGUAGE\s+'?(?P<language>\w+)'?", re.IGNORECASE)
PARAMETER_DEFAULT_PATTERN = re.compile(r"\s+(?:DEFAULT\b|=).*$", re.IGNORECASE | re.DOTALL)

DEFAULT_LANGUAGE = "sql"
DEFAULT_PARAMETER_TYPE = "text"
PARAMETER_MODES = {"IN", "OUT", "INOUT", "VARIADIC"}


# [함수 설명]
# - 목적: SQL 원문에서 달러 인용 본문을 가진 함수/프로시저를 모두 추출한다.
# - 입력: content: str
# - 출력: 선언 순서대로 정렬된 SqlFunction 목록
# - 에러 처리: 매칭되지 않는 선언은 건너뛴다(구조 파서 쪽에서 다시 다룬다).
# - 결정론: 원문 등장 순서를 그대로 유지한다.
def extract_functions(content: str) -> list[SqlFunction]:
    functions: list[SqlFunction] = []
    for match in CREATE_FUNCTION_PATTERN.finditer(strip_comments(content)):
        header = match.group("header") or ""
        returns = RETURNS_PATTERN.search(header)
        language = LANGUAGE_PATTERN.search(header) or LANGUAGE_PATTERN.search(
            match.group("trailer") or ""
        )
        functions.append(
            SqlFunction(
                name=clean_identifier(match.group("name").replace(" ", "")) or "",
                type=(
                    FunctionType.PROCEDURE
                    if match.group("kind").upper() == "PROCEDURE"
                    else FunctionType.FUNCTION
                ),
                parameters=tuple(parse_parameters(match.group("params"))),
                return_type=" ".join(returns.group("type").split()) if returns else None,
                language=language.group("language").lower() if language else DEFAULT_LANGUAGE,
                body=match.group("body").strip(),
            )
        )
    logger.info("extract_functions: functions=%s", len(functions))
    return functions


def parse_parameters(params: str | None) -> list[SqlParameter]:
    parameters: list[SqlParameter] = []
    if not params or not params.strip():
        return parameters
    for raw in split_top_level(params):
        parameter = _parse_parameter(raw, len(parameters) + 1)
        if parameter is not None:
            parameters.append(parameter)
    return parameters


# [함수 설명]
# - 목적: "[IN|OUT|INOUT] name type [DEFAULT ...]" 형식의 파라미터 하나를 해석한다.
# - 입력: raw 파라미터 문자열, 위치(1부터 시작)
# - 출력: SqlParameter 또는 빈 문자열이면 None
# - 주의 사항: 이름 없는 파라미터는 paramN 이름을 부여한다. VARIADIC은 IN으로 취급한다.
def _parse_parameter(raw: str, position: int) -> SqlParameter | None:
    text = PARAMETER_DEFAULT_PATTERN.sub("", raw.strip())
    tokens = text.split()
    if not tokens:
        return None

    mode = ParameterMode.IN
    if len(tokens) > 1 and tokens[0].upper() in PARAMETER_MODES:
        if tokens[0].upper() != "VARIADIC":
            mode = ParameterMode(tokens[0].upper())
        tokens = tokens[1:]

    if len(tokens) == 1:
        name = f"param{position}"
        sql_type = tokens[0]
    else:
        name = clean_identifier(tokens[0]) or f"param{position}"
        sql_type = " ".join(tokens[1:])

    if not sql_type:
        sql_type = DEFAULT_PARAMETER_TYPE

    return SqlParameter(
        name=name,
        sql_type=sql_type,
        generic_type=map_sql_type(sql_type),
        mode=mode,
    )
