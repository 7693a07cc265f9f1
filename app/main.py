"""FastAPI 애플리케이션 진입점."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse, Response
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.api import extract, generate, trips
from app.api.dependencies import require_service_secret
from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.logging_config import configure_logging

configure_logging()
logger = get_logger(__name__)
settings = get_settings()


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_docs_mode(mode: str) -> str:
    normalized = (mode or "").strip().lower()
    if normalized in {"disabled", "secret", "public"}:
        return normalized
    logger.warning("유효하지 않은 DOCS_MODE 값입니다. disabled로 대체합니다: %s", mode)
    return "disabled"


def _configure_proxy_headers(app_: FastAPI) -> None:
    if not settings.PROXY_HEADERS_ENABLED:
        return

    trusted_hosts = _split_csv(settings.PROXY_TRUSTED_HOSTS) or ["127.0.0.1"]
    app_.add_middleware(ProxyHeadersMiddleware, trusted_hosts=trusted_hosts)


def _configure_trusted_hosts(app_: FastAPI) -> None:
    trusted_hosts = _split_csv(settings.TRUSTED_HOSTS)
    if not trusted_hosts:
        return

    app_.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)


def _configure_cors(app_: FastAPI) -> None:
    origins = _split_csv(settings.CORS_ALLOW_ORIGINS)
    if not origins:
        return

    allow_methods = _split_csv(settings.CORS_ALLOW_METHODS) or ["GET"]
    allow_headers = _split_csv(settings.CORS_ALLOW_HEADERS) or ["Content-Type", "x-service-secret"]
    allow_credentials = settings.CORS_ALLOW_CREDENTIALS

    if "*" in origins and allow_credentials:
        logger.warning(
            "CORS_ALLOW_ORIGINS에 '*'와 CORS_ALLOW_CREDENTIALS=true가 함께 설정되어 "
            "allow_credentials를 false로 강제합니다."
        )
        allow_credentials = False

    app_.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )


docs_mode = _resolve_docs_mode(settings.DOCS_MODE)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """시작 로그를 남기고, 종료 시 진행 중인 비동기 일정 생성 작업을 취소합니다."""
    logger.info("Egypt Trip Planner starting: env=%s docs_mode=%s", settings.APP_ENV, docs_mode)
    yield
    pending = list(generate.active_jobs.values())
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Cancelled in-flight trip jobs: count=%d", len(pending))


app = FastAPI(
    lifespan=lifespan,
    title="Egypt Trip Planner",
    description="관심사 임베딩 기반 이집트 여행 일정 생성 및 예산 최적화 서비스",
    version="0.1.0",
    docs_url="/docs" if docs_mode == "public" else None,
    redoc_url="/redoc" if docs_mode == "public" else None,
    openapi_url="/openapi.json" if docs_mode == "public" else None,
)

_configure_proxy_headers(app)
_configure_trusted_hosts(app)
_configure_cors(app)

app.include_router(trips.router)
app.include_router(generate.router)
app.include_router(extract.router)


@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    """기본 보안 헤더를 응답에 추가합니다."""
    response = await call_next(request)
    if not settings.SECURITY_HEADERS_ENABLED:
        return response

    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    response.headers.setdefault("Cache-Control", "no-store")
    if settings.ENABLE_HSTS and request.url.scheme == "https":
        response.headers.setdefault("Strict-Transport-Security", f"max-age={settings.HSTS_MAX_AGE_SECONDS}")
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외를 표준 형식으로 처리합니다."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    message = str(exc) if settings.EXPOSE_INTERNAL_ERRORS else "내부 서버 오류가 발생했습니다."
    return JSONResponse(status_code=500, content={"detail": message})


if docs_mode == "secret":

    @app.get("/openapi.json", include_in_schema=False, dependencies=[Depends(require_service_secret)])
    def openapi_json() -> JSONResponse:
        """서비스 시크릿 인증 후 OpenAPI 스키마를 반환합니다."""
        return JSONResponse(app.openapi())

    @app.get("/docs", include_in_schema=False, dependencies=[Depends(require_service_secret)])
    def swagger_ui() -> Response:
        """서비스 시크릿 인증 후 Swagger UI를 반환합니다."""
        return get_swagger_ui_html(openapi_url="/openapi.json", title=f"{app.title} - Swagger UI")

    @app.get("/redoc", include_in_schema=False, dependencies=[Depends(require_service_secret)])
    def redoc_ui() -> Response:
        """서비스 시크릿 인증 후 ReDoc UI를 반환합니다."""
        return get_redoc_html(openapi_url="/openapi.json", title=f"{app.title} - ReDoc")


@app.get("/")
def health_check() -> dict:
    """헬스 체크 엔드포인트."""
    return {"status": "ok", "message": "Egypt Trip Planner is running"}
