"""대화형 여행 정보 추출 API."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import require_service_secret
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy
from app.schemas.extract import ExtractRequest, ExtractResponse
from app.services.extraction_service import extract_trip_data

router = APIRouter(prefix="/api/v1", tags=["extract"])
logger = get_logger(__name__)

EXTRACT_RESPONSE_EXAMPLES = {
    "incomplete": {
        "summary": "정보 수집 중",
        "description": "필수 정보가 아직 모이지 않은 경우",
        "value": {
            "success": True,
            "data": {"complete": False},
            "response": "Wonderful! How many days are you planning to spend in Egypt?",
            "error": None,
        },
    },
    "complete": {
        "summary": "정보 수집 완료",
        "description": "모든 정보가 모여 JSON 블록이 반환된 경우",
        "value": {
            "success": True,
            "data": {
                "age": 28,
                "budget": 10000,
                "days": 4,
                "interests": ["history"],
                "cities": ["Cairo"],
                "complete": True,
            },
            "response": '{"age": 28, "budget": 10000, "days": 4, "interests": ["history"], '
            '"cities": ["Cairo"], "complete": true}',
            "error": None,
        },
    },
}


@router.post(
    "/extract",
    response_model=ExtractResponse,
    dependencies=[Depends(require_service_secret)],
    responses={
        200: {
            "description": "추출 결과",
            "content": {"application/json": {"examples": EXTRACT_RESPONSE_EXAMPLES}},
        },
        401: {"description": "서비스 시크릿 누락 또는 불일치"},
        504: {"description": "추출 요청 시간 초과"},
    },
)
async def extract_trip(request: ExtractRequest) -> ExtractResponse:
    """대화 메시지에서 여행 정보를 추출한다. 전체 처리 시간은 `REQUEST_TIMEOUT_SECONDS`로 제한한다."""
    try:
        return await asyncio.wait_for(
            extract_trip_data(request.message, request.conversation_history),
            timeout=get_timeout_policy().request_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        logger.warning("Trip data extraction timed out")
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="여행 정보 추출 시간이 초과되었습니다.",
        ) from exc
