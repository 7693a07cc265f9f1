"""여행 일정 동기 생성 API."""

import asyncio
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.api.dependencies import require_service_secret
from app.core.logger import get_logger
from app.schemas.trip import FrontendTripResponse, TripPlan
from app.services.trip_service import build_trip_plan, to_frontend_format

router = APIRouter(prefix="/api/v1", tags=["trips"])
logger = get_logger(__name__)

TRIP_REQUEST_EXAMPLES = {
    "direct": {
        "summary": "직접 요청",
        "description": "여행 정보를 그대로 전달하는 경우 (누락된 값은 기본값 사용)",
        "value": {"age": 30, "budget": 12000, "days": 4, "interests": ["history", "culture"], "cities": ["Cairo", "Luxor"]},
    },
    "extraction_envelope": {
        "summary": "추출 결과 봉투",
        "description": "대화형 추출 결과를 그대로 전달하는 경우",
        "value": {
            "success": True,
            "data": {"age": 25, "budget": 6000, "days": 3, "interests": ["beaches"], "cities": None, "complete": True},
        },
    },
}

TRIP_ERROR_RESPONSES = {
    401: {"description": "서비스 시크릿 누락 또는 불일치"},
    500: {"description": "서비스 시크릿 미설정 또는 내부 오류"},
    504: {"description": "여행 일정 생성 시간 초과"},
}


async def _build_or_timeout(payload: dict[str, Any]) -> TripPlan:
    try:
        return await build_trip_plan(payload)
    except asyncio.TimeoutError as exc:
        logger.warning("Trip build timed out")
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="여행 일정 생성 시간이 초과되었습니다.",
        ) from exc


@router.post(
    "/trips",
    response_model=TripPlan,
    dependencies=[Depends(require_service_secret)],
    responses=TRIP_ERROR_RESPONSES,
)
async def create_trip_plan(
    payload: dict[str, Any] = Body(..., openapi_examples=TRIP_REQUEST_EXAMPLES),
) -> TripPlan:
    """여행 일정을 생성해 반환한다. 미완료 추출 결과이면 `success=false` 일정을 반환한다."""
    trip_plan = await _build_or_timeout(payload)
    logger.info("Trip plan created: success=%s days=%d", trip_plan.success, len(trip_plan.days))
    return trip_plan


@router.post(
    "/trips/destinations",
    response_model=FrontendTripResponse,
    response_model_by_alias=True,
    dependencies=[Depends(require_service_secret)],
    responses=TRIP_ERROR_RESPONSES,
)
async def create_trip_destinations(
    payload: dict[str, Any] = Body(..., openapi_examples=TRIP_REQUEST_EXAMPLES),
) -> FrontendTripResponse:
    """여행 일정을 생성한 뒤 프런트엔드 목적지 카드 형태로 반환한다."""
    trip_plan = await _build_or_timeout(payload)
    return to_frontend_format(trip_plan)
