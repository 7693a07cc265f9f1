"""애플리케이션 전역 설정을 관리하는 모듈."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수 기반 설정 모델."""

    OPENAI_API_KEY: str
    SERVICE_SECRET: str
    LLM_MODEL_NAME: str = "gpt-4o-mini"
    NARRATIVE_LLM_TEMPERATURE: float = 0.3
    NARRATIVE_MAX_TOKENS: int = 1500
    EXTRACTION_LLM_TEMPERATURE: float = 0.5
    EMBEDDING_MODEL_NAME: str = "text-embedding-3-small"
    EMBEDDING_DIMENSION: int = 384
    DATABASE_URL: str = ""
    RAG_TOP_K: int = 10
    REQUEST_TIMEOUT_SECONDS: int = 60
    LLM_TIMEOUT_SECONDS: int = 30
    NARRATIVE_TIMEOUT_SECONDS: int = 20
    TRIP_BUILD_TIMEOUT_SECONDS: int = 180
    EXTERNAL_API_TIMEOUT_SECONDS: int = 15
    CALLBACK_TIMEOUT_SECONDS: int = 10
    CALLBACK_MAX_RETRIES: int = 2
    CALLBACK_BACKOFF_BASE_SECONDS: float = 0.5
    CALLBACK_BACKOFF_MAX_SECONDS: float = 5.0
    APP_ENV: str = "development"
    DOCS_MODE: str = "disabled"
    EXPOSE_INTERNAL_ERRORS: bool = False
    CORS_ALLOW_ORIGINS: str = ""
    CORS_ALLOW_METHODS: str = "GET,POST,OPTIONS"
    CORS_ALLOW_HEADERS: str = "Content-Type,x-service-secret"
    CORS_ALLOW_CREDENTIALS: bool = False
    SECURITY_HEADERS_ENABLED: bool = True
    ENABLE_HSTS: bool = False
    HSTS_MAX_AGE_SECONDS: int = 31536000
    PROXY_HEADERS_ENABLED: bool = True
    PROXY_TRUSTED_HOSTS: str = "127.0.0.1"
    TRUSTED_HOSTS: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("RAG_TOP_K", mode="before")
    @classmethod
    def _clamp_rag_top_k(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 10
        except (TypeError, ValueError):
            numeric = 10
        return min(50, max(1, numeric))

    @field_validator("EMBEDDING_DIMENSION", mode="before")
    @classmethod
    def _validate_embedding_dimension(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 384
        except (TypeError, ValueError):
            numeric = 384
        return numeric if numeric > 0 else 384


@lru_cache
def get_settings() -> Settings:
    """Settings 인스턴스를 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다."""
    return Settings()
