# [파일 설명]
# - 목적: 환경 변수에서 파서 옵션을 읽어 불변 설정 객체로 제공한다.
# - 제공 기능: DDLSCAN_DIALECT, DDLSCAN_DEFER_ALTER 해석과 기본값 적용을 제공한다.
# - 입력/출력: 프로세스 환경 변수를 읽어 ParserOptions를 반환한다.
# - 주의 사항: 호출 시점의 환경을 읽는다. 캐시하지 않는다.
# - 연관 모듈: ddlscan.services.ddl_parser, ddlscan.api.schema에서 사용된다.
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from sqlglot.dialects.dialect import Dialect

logger = logging.getLogger(__name__)

DEFAULT_DIALECT = "postgres"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ParserOptions:
    dialect: str = DEFAULT_DIALECT
    defer_alter: bool = True


def is_known_dialect(name: str) -> bool:
    try:
        Dialect.get_or_raise(name)
    except ValueError:
        return False
    return True


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return default


# [함수 설명]
# - 목적: 환경 변수 기반 파서 옵션을 구성한다.
# - 입력: DDLSCAN_DIALECT(sqlglot read dialect), DDLSCAN_DEFER_ALTER(true/false)
# - 출력: ParserOptions
# - 에러 처리: 알 수 없는 값은 기본값으로 대체한다.
def load_parser_options() -> ParserOptions:
    dialect = os.getenv("DDLSCAN_DIALECT", "").strip() or DEFAULT_DIALECT
    if not is_known_dialect(dialect):
        logger.warning("unknown DDLSCAN_DIALECT; falling back to %s", DEFAULT_DIALECT)
        dialect = DEFAULT_DIALECT
    return ParserOptions(
        dialect=dialect,
        defer_alter=_env_flag("DDLSCAN_DEFER_ALTER", True),
    )
