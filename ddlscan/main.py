# [파일 설명]
# - 목적: FastAPI 애플리케이션을 생성하고 라우터를 조립한다.
# - 제공 기능: /health 엔드포인트, /schema 라우터, /mcp 엔드포인트 등록을 제공한다.
# - 입력/출력: HTTP 요청에 대해 상태 정보 또는 분석 결과를 반환한다.
# - 주의 사항: 라우팅만 담당한다.
# - 연관 모듈: ddlscan.api.schema, ddlscan.mcp_streamable_http
from fastapi import FastAPI, Request, Response

from ddlscan.api.schema import router as schema_router
from ddlscan.mcp_streamable_http import mcp_get, mcp_post

app = FastAPI(title="ddlscan")


# [함수 설명]
# - 목적: 서비스 상태 확인을 위한 헬스 체크 응답을 제공한다.
# - 입력: 요청 바디 없이 호출된다.
# - 출력: status 필드를 포함한 간단한 상태 응답을 반환한다.
@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(schema_router, prefix="/schema")


@app.post("/mcp")
async def mcp_post_route(request: Request) -> Response:
    return await mcp_post(request)


@app.get("/mcp")
def mcp_get_route() -> Response:
    return mcp_get()
