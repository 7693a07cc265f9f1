"""여행 일정 결과 콜백 전송(재시도 포함)."""

from __future__ import annotations

import asyncio
from typing import Any

import requests

from app.core.config import Settings, get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy, to_requests_timeout

logger = get_logger(__name__)

SERVICE_SECRET_HEADER = "x-service-secret"


def build_result_url(base_url: str, job_id: str) -> str:
    """`{callback_url}/trips/{job_id}/result` 형태의 콜백 URL을 만듭니다."""
    return f"{str(base_url).rstrip('/')}/trips/{job_id}/result"


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return True
    if isinstance(exc, requests.HTTPError):
        status_code = exc.response.status_code if exc.response is not None else None
        return status_code is None or status_code == 429 or status_code >= 500
    return False


def _status_code(exc: Exception) -> int | None:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    return None


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """`attempt`번째 실패 뒤 대기 시간. 지수적으로 늘어나며 `max_delay`를 넘지 않습니다."""
    return min(max_delay, base_delay * (2 ** (attempt - 1)))


async def deliver_trip_result(
    *,
    base_url: str,
    job_id: str,
    payload: dict[str, Any],
    settings: Settings | None = None,
) -> bool:
    """작업 결과를 콜백 URL로 전송하고, 일시적 오류는 지수 백오프로 재시도합니다.

    Returns:
        전송 성공 여부. 재시도 불가 오류이거나 재시도를 모두 소진하면 False.
    """
    resolved_settings = settings or get_settings()
    url = build_result_url(base_url, job_id)
    max_attempts = 1 + max(0, int(resolved_settings.CALLBACK_MAX_RETRIES))
    base_delay = max(0.0, float(resolved_settings.CALLBACK_BACKOFF_BASE_SECONDS))
    max_delay = max(base_delay, float(resolved_settings.CALLBACK_BACKOFF_MAX_SECONDS))
    request_timeout = to_requests_timeout(get_timeout_policy(resolved_settings).callback_timeout_seconds)
    headers = {SERVICE_SECRET_HEADER: resolved_settings.SERVICE_SECRET}
    status = payload.get("status")

    def _send() -> requests.Response:
        return requests.post(url, json=payload, headers=headers, timeout=request_timeout)

    for attempt in range(1, max_attempts + 1):
        try:
            response = await asyncio.to_thread(_send)
            response.raise_for_status()
        except Exception as exc:
            retryable = _is_retryable(exc)
            if attempt >= max_attempts or not retryable:
                logger.error(
                    "Trip callback failed permanently: job_id=%s status=%s attempts=%d url=%s "
                    "status_code=%s retryable=%s error=%s",
                    job_id,
                    status,
                    attempt,
                    url,
                    _status_code(exc),
                    retryable,
                    exc,
                )
                return False

            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Trip callback failed, retrying: job_id=%s attempt=%d/%d delay=%.2fs status_code=%s error=%s",
                job_id,
                attempt,
                max_attempts,
                delay,
                _status_code(exc),
                exc,
            )
            await asyncio.sleep(delay)
            continue

        logger.info("Trip callback delivered: job_id=%s status=%s attempt=%d", job_id, status, attempt)
        return True

    return False
