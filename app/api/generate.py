"""여행 일정 비동기 생성 트리거 API."""

import asyncio

from fastapi import APIRouter, Depends, status

from app.api.dependencies import require_service_secret
from app.core.logger import get_logger
from app.schemas.generate import GenerateAckResponse, GenerateRequest
from app.services.trip_service import process_generate_request

router = APIRouter(prefix="/api/v1", tags=["generate"])
logger = get_logger(__name__)
active_jobs: dict[str, asyncio.Task] = {}

GENERATE_ACK_EXAMPLES = {
    "accepted": {
        "summary": "요청 수락",
        "description": "비동기 처리 요청이 정상적으로 접수된 경우. 결과는 {callback_url}/trips/{job_id}/result 로 전송된다.",
        "value": {"status": "ACCEPTED", "job_id": "trip-job-12345"},
    }
}

GENERATE_ERROR_EXAMPLES = {
    401: {
        "missing_secret": {
            "summary": "서비스 시크릿 누락",
            "value": {"detail": "서비스 시크릿 헤더가 누락되었습니다."},
        },
        "invalid_secret": {
            "summary": "서비스 시크릿 불일치",
            "value": {"detail": "유효하지 않은 서비스 시크릿입니다."},
        },
    },
    500: {
        "missing_config": {
            "summary": "서비스 시크릿 미설정",
            "value": {"detail": "서비스 시크릿 설정이 없습니다."},
        }
    },
}


def _track_job(job_id: str, task: asyncio.Task) -> None:
    active_jobs[job_id] = task

    def _on_done(done: asyncio.Task) -> None:
        if active_jobs.get(job_id) is done:
            active_jobs.pop(job_id, None)
        if done.cancelled():
            logger.info("Trip job cancelled: job_id=%s", job_id)
            return
        exc = done.exception()
        if exc is not None:
            logger.error("Trip job failed: job_id=%s", job_id, exc_info=exc)

    task.add_done_callback(_on_done)


@router.post(
    "/generate",
    response_model=GenerateAckResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(require_service_secret)],
    responses={
        202: {
            "description": "생성 요청 수락",
            "content": {"application/json": {"examples": GENERATE_ACK_EXAMPLES}},
        },
        401: {
            "description": "인증 실패",
            "content": {"application/json": {"examples": GENERATE_ERROR_EXAMPLES[401]}},
        },
        500: {
            "description": "서버 오류",
            "content": {"application/json": {"examples": GENERATE_ERROR_EXAMPLES[500]}},
        },
    },
)
async def generate_trip(request: GenerateRequest) -> GenerateAckResponse:
    """여행 일정 생성 작업을 수락하고 비동기로 처리한다. 결과는 콜백으로 전송한다."""
    task = asyncio.create_task(
        process_generate_request(
            job_id=request.job_id,
            callback_url=str(request.callback_url),
            payload=request.payload,
        )
    )
    _track_job(request.job_id, task)
    logger.info("Trip generate request accepted: job_id=%s", request.job_id)
    return GenerateAckResponse(job_id=request.job_id)
