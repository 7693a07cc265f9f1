"""Stage 기반 LLM 클라이언트 선택 및 호출 유틸."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from time import perf_counter
from typing import Any

from langchain_openai import ChatOpenAI

from app.core.config import Settings, get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy

logger = get_logger(__name__)


class Stage(StrEnum):
    """LLM 호출 stage."""

    DAY_NARRATIVE = "DAY_NARRATIVE"
    TRIP_EXTRACTION = "TRIP_EXTRACTION"


@dataclass(frozen=True, slots=True)
class StageOptions:
    """Stage별 호출 옵션."""

    temperature: float
    max_tokens: int | None
    timeout_seconds: int


def resolve_stage_options(stage: Stage, settings: Settings | None = None) -> StageOptions:
    """설정에서 stage별 온도/최대 토큰/타임아웃을 결정합니다."""
    resolved_settings = settings or get_settings()
    timeout_policy = get_timeout_policy(resolved_settings)
    if stage == Stage.DAY_NARRATIVE:
        return StageOptions(
            temperature=float(resolved_settings.NARRATIVE_LLM_TEMPERATURE),
            max_tokens=resolved_settings.NARRATIVE_MAX_TOKENS,
            timeout_seconds=timeout_policy.narrative_timeout_seconds,
        )
    return StageOptions(
        temperature=float(resolved_settings.EXTRACTION_LLM_TEMPERATURE),
        max_tokens=None,
        timeout_seconds=timeout_policy.llm_timeout_seconds,
    )


@lru_cache(maxsize=32)
def _get_chat_openai_client(
    model: str,
    temperature: float,
    max_tokens: int | None,
    timeout_seconds: int,
    api_key: str,
) -> ChatOpenAI:
    return ChatOpenAI(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key,
        request_timeout=timeout_seconds,
    )


def get_chat_client(stage: Stage, settings: Settings | None = None) -> ChatOpenAI:
    """Stage 옵션이 적용된 캐시된 `ChatOpenAI` 클라이언트를 반환합니다."""
    resolved_settings = settings or get_settings()
    options = resolve_stage_options(stage, resolved_settings)
    return _get_chat_openai_client(
        resolved_settings.LLM_MODEL_NAME.strip(),
        options.temperature,
        options.max_tokens,
        options.timeout_seconds,
        resolved_settings.OPENAI_API_KEY,
    )


async def ainvoke(
    stage: Stage,
    payload: Any,
    *,
    client: Any | None = None,
    timeout_seconds: float | None = None,
    settings: Settings | None = None,
) -> Any:
    """Stage 클라이언트로 비동기 LLM 호출을 수행합니다.

    `asyncio.wait_for`로 호출 전체 시간을 제한하며, 타임아웃과 오류는 로그를 남긴 뒤 그대로 전파합니다.

    Args:
        stage: 호출 stage
        payload: 메시지 목록 또는 프롬프트 값
        client: 주입할 채팅 모델 (None이면 설정 기반 클라이언트)
        timeout_seconds: 전체 호출 제한 시간 (None이면 stage 기본값)
        settings: 설정 (None이면 전역 설정)
    """
    if client is None or timeout_seconds is None:
        resolved_settings = settings or get_settings()
        if timeout_seconds is None:
            timeout_seconds = resolve_stage_options(stage, resolved_settings).timeout_seconds
        if client is None:
            client = get_chat_client(stage, resolved_settings)

    started = perf_counter()
    try:
        response = await asyncio.wait_for(client.ainvoke(payload), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(
            "LLM call timed out: stage=%s timeout_seconds=%s latency_ms=%.1f",
            stage.value,
            timeout_seconds,
            (perf_counter() - started) * 1000,
        )
        raise
    except Exception as exc:
        logger.warning(
            "LLM call failed: stage=%s latency_ms=%.1f error=%s",
            stage.value,
            (perf_counter() - started) * 1000,
            exc,
        )
        raise

    logger.info("LLM call succeeded: stage=%s latency_ms=%.1f", stage.value, (perf_counter() - started) * 1000)
    return response
