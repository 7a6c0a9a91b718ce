# [파일 설명]
# - 목적: Streamable HTTP MCP(JSON-RPC) 엔드포인트를 제공한다.
# - 제공 기능: initialize/tools/list/tools/call/ping 처리와 프로토콜 버전 검증을 수행한다.
# - 입력/출력: JSON-RPC 요청을 받아 표준 응답 또는 202/405를 반환한다.
# - 주의 사항: 알림 메시지는 202로 응답하며, 도구 실행 실패는 isError로 표시한다.
# - 연관 모듈: ddlscan.api.schema 라우트 함수를 재사용한다.
from __future__ import annotations

import os
from typing import Any

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from ddlscan.api.schema import (
    ParseOptions,
    SchemaRequest,
    parse_schema,
    relationships,
    validate,
)

DEFAULT_SUPPORTED_PROTOCOL_VERSIONS = ("2025-03-26", "2025-11-25")
DEFAULT_PROTOCOL_VERSION = "2025-03-26"

SCHEMA_INPUT = {
    "type": "object",
    "properties": {
        "sql": {"type": "string", "description": "SQL DDL text to parse."},
        "dialect": {
            "type": "string",
            "description": "sqlglot read dialect (default: postgres).",
            "default": "postgres",
        },
        "defer_alter": {
            "type": "boolean",
            "description": "Apply ALTER TABLE/COMMENT ON after every CREATE TABLE.",
            "default": True,
        },
        "source_name": {"type": "string", "description": "Schema name (default: inline-sql)."},
    },
    "required": ["sql"],
}

TOOLS = (
    {
        "name": "ddl.parse",
        "description": (
            "Parse SQL DDL into tables, columns, foreign keys, indexes and functions."
        ),
        "outputSchema": {
            "type": "object",
            "properties": {
                "version": {"type": "string"},
                "summary": {"type": "object"},
                "tables": {"type": "array"},
                "functions": {"type": "array"},
                "standalone_indexes": {"type": "array"},
                "extensions": {"type": "array", "items": {"type": "string"}},
                "creation_order": {"type": "array", "items": {"type": "string"}},
                "errors": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
    {
        "name": "ddl.relationships",
        "description": (
            "Infer ONE_TO_ONE, MANY_TO_ONE, ONE_TO_MANY and MANY_TO_MANY relationships "
            "from foreign keys and junction tables."
        ),
        "outputSchema": {
            "type": "object",
            "properties": {
                "version": {"type": "string"},
                "relationships": {"type": "array"},
                "inverse_relationships": {"type": "array"},
                "many_to_many": {"type": "array"},
                "junction_tables": {"type": "array", "items": {"type": "string"}},
                "errors": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
    {
        "name": "ddl.validate",
        "description": "Report schema issues such as missing primary keys and dangling FKs.",
        "outputSchema": {
            "type": "object",
            "properties": {
                "version": {"type": "string"},
                "valid": {"type": "boolean"},
                "issues": {"type": "array", "items": {"type": "string"}},
                "errors": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
)

TOOL_HANDLERS = {
    "ddl.parse": parse_schema,
    "ddl.relationships": relationships,
    "ddl.validate": validate,
}


# [함수 설명]
# - 목적: 환경 변수 기반 지원 프로토콜 버전 목록을 구성한다.
# - 입력: MCP_SUPPORTED_PROTOCOL_VERSIONS 환경 변수 (콤마 구분)
# - 출력: 프로토콜 버전 문자열 집합
# - 에러 처리: 빈 값은 기본 목록으로 대체한다.
def _load_supported_protocol_versions() -> set[str]:
    env_value = os.getenv("MCP_SUPPORTED_PROTOCOL_VERSIONS", "").strip()
    if not env_value:
        return set(DEFAULT_SUPPORTED_PROTOCOL_VERSIONS)
    return {item.strip() for item in env_value.split(",") if item.strip()}


# [함수 설명]
# - 목적: Origin 헤더가 허용 목록에 포함되는지 판별한다.
# - 입력: origin 문자열, MCP_ALLOWED_ORIGINS 환경 변수 (콤마 구분)
# - 출력: 허용 여부 (bool)
# - 에러 처리: origin이 없거나 허용 목록이 비어 있으면 검증을 생략한다.
# - 보안: 허용되지 않은 브라우저 Origin은 403으로 차단한다.
def _origin_allowed(origin: str | None) -> bool:
    if not origin:
        return True
    env_value = os.getenv("MCP_ALLOWED_ORIGINS", "").strip()
    allowed = {item.strip() for item in env_value.split(",") if item.strip()}
    return not allowed or origin in allowed


# [함수 설명]
# - 목적: MCP-Protocol-Version 헤더를 검증한다.
# - 입력: FastAPI headers
# - 출력: 협상된 프로토콜 버전 문자열
# - 에러 처리: 지원하지 않는 버전은 400으로 응답한다.
def _resolve_protocol_version(headers: Any) -> str:
    header_value = headers.get("MCP-Protocol-Version")
    if header_value:
        if header_value not in _load_supported_protocol_versions():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported MCP-Protocol-Version",
            )
        return header_value
    return DEFAULT_PROTOCOL_VERSION


def _jsonrpc_response(
    request_id: Any, *, result: Any | None = None, error: Any | None = None
) -> JSONResponse:
    payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id}
    if error is not None:
        payload["error"] = error
    else:
        payload["result"] = result
    return JSONResponse(status_code=status.HTTP_200_OK, content=payload)


def _handle_initialize(_: dict[str, Any]) -> dict[str, Any]:
    return {
        "protocolVersion": "2025-11-25",
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": {
            "name": "ddlscan-mcp-server",
            "version": "0.1.0",
            "description": "SQL DDL schema parsing + relationship inference MCP server",
        },
        "instructions": "Call tools/list then tools/call with a SQL DDL script.",
    }


def _handle_tools_list() -> dict[str, Any]:
    return {"tools": [{**tool, "inputSchema": SCHEMA_INPUT} for tool in TOOLS]}


def _build_tool_result(
    summary: str,
    structured_content: dict[str, Any] | None,
    *,
    is_error: bool = False,
) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": summary}],
        "structuredContent": structured_content or {},
        "isError": is_error,
    }


def _summarize_payload(name: str, payload: dict[str, Any]) -> str:
    errors = payload.get("errors", [])
    if name == "ddl.parse":
        summary = payload.get("summary", {})
        return (
            "Parse complete. "
            f"tables={summary.get('table_count', 0)}, "
            f"functions={summary.get('function_count', 0)}, errors={len(errors)}."
        )
    if name == "ddl.relationships":
        return (
            "Relationship inference complete. "
            f"relationships={len(payload.get('relationships', []))}, "
            f"many_to_many={len(payload.get('many_to_many', []))}, errors={len(errors)}."
        )
    return (
        "Validation complete. "
        f"valid={payload.get('valid')}, issues={len(payload.get('issues', []))}, "
        f"errors={len(errors)}."
    )


# [함수 설명]
# - 목적: tools/call 요청을 처리한다.
# - 입력: params 딕셔너리 (name, arguments)
# - 출력: CallToolResult 딕셔너리
# - 에러 처리: 입력 오류/예외는 isError로 반환한다.
# - 보안: SQL 원문을 결과 텍스트에 포함하지 않는다.
def _handle_tools_call(params: dict[str, Any]) -> dict[str, Any]:
    name = params.get("name")
    arguments = params.get("arguments")
    if not name:
        return _build_tool_result("Tool name is required.", None, is_error=True)
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return _build_tool_result(f"Unknown tool: {name}.", None, is_error=True)
    if not isinstance(arguments, dict):
        return _build_tool_result("Tool arguments must be an object.", None, is_error=True)
    try:
        request_model = SchemaRequest(
            sql=arguments.get("sql", ""),
            source_name=arguments.get("source_name") or "inline-sql",
            options=ParseOptions(
                dialect=arguments.get("dialect"),
                defer_alter=arguments.get("defer_alter"),
            ),
        )
    except ValidationError as exc:
        return _build_tool_result(
            f"Invalid arguments: {exc.error_count()} validation error(s).", None, is_error=True
        )
    try:
        result: BaseModel = handler(request_model)
        payload = result.model_dump(by_alias=True)
        return _build_tool_result(_summarize_payload(name, payload), payload, is_error=False)
    except Exception as exc:  # noqa: BLE001 - tool errors returned via isError
        return _build_tool_result(f"Tool execution failed: {exc}.", None, is_error=True)


# [함수 설명]
# - 목적: Streamable HTTP MCP POST 요청을 처리한다.
# - 입력: JSON-RPC 메시지 객체
# - 출력: JSON-RPC 응답 또는 202 상태
# - 에러 처리: 잘못된 JSON/페이로드는 400으로 응답한다.
# - 보안: Origin/프로토콜 버전 검증을 수행한다.
async def mcp_post(request: Request) -> Response:
    if not _origin_allowed(request.headers.get("origin")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Origin not allowed")
    _resolve_protocol_version(request.headers)

    try:
        payload = await request.json()
    except Exception as exc:  # noqa: BLE001 - request validation
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from exc

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON-RPC payload",
        )

    method = payload.get("method")
    if method == "notifications/initialized":
        return Response(status_code=status.HTTP_202_ACCEPTED)

    request_id = payload.get("id")
    if method is None or request_id is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)

    params = payload.get("params") or {}
    if not isinstance(params, dict):
        return _jsonrpc_response(
            request_id,
            error={"code": -32602, "message": "Invalid params"},
        )

    if method == "initialize":
        return _jsonrpc_response(request_id, result=_handle_initialize(params))
    if method == "tools/list":
        return _jsonrpc_response(request_id, result=_handle_tools_list())
    if method == "tools/call":
        return _jsonrpc_response(request_id, result=_handle_tools_call(params))
    if method == "ping":
        return _jsonrpc_response(request_id, result={})

    return _jsonrpc_response(
        request_id,
        error={"code": -32601, "message": f"Method not found: {method}"},
    )


# SSE 스트림은 지원하지 않는다.
def mcp_get() -> Response:
    return Response(status_code=status.HTTP_405_METHOD_NOT_ALLOWED)
