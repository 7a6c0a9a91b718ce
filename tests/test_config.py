# [파일 설명]
# - 목적: 환경 변수 기반 파서 옵션 해석을 검증한다.
# - 연관 모듈: ddlscan.config
from ddlscan.config import DEFAULT_DIALECT, is_known_dialect, load_parser_options


def test_load_parser_options_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DDLSCAN_DIALECT", raising=False)
    monkeypatch.delenv("DDLSCAN_DEFER_ALTER", raising=False)

    options = load_parser_options()

    assert options.dialect == DEFAULT_DIALECT
    assert options.defer_alter is True


def test_load_parser_options_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("DDLSCAN_DIALECT", "mysql")
    monkeypatch.setenv("DDLSCAN_DEFER_ALTER", "off")

    options = load_parser_options()

    assert options.dialect == "mysql"
    assert options.defer_alter is False


def test_unknown_dialect_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("DDLSCAN_DIALECT", "nosuch")
    monkeypatch.setenv("DDLSCAN_DEFER_ALTER", "maybe")

    options = load_parser_options()

    assert not is_known_dialect("nosuch")
    assert options.dialect == DEFAULT_DIALECT
    assert options.defer_alter is True
