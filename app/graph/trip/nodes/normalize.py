"""여행 요청 정규화 노드."""

from __future__ import annotations

from app.core.logger import get_logger
from app.graph.trip.state import TripState
from app.schemas.trip import TripRequest

logger = get_logger(__name__)

INCOMPLETE_REQUEST_ERROR = "Trip data extraction incomplete. Please provide all required information."


async def normalize_trip_request(state: TripState) -> TripState:
    """원시 요청에 기본값을 적용합니다. 미완료 추출 결과이면 오류를 기록합니다."""
    request = TripRequest.from_payload(state.get("trip_payload"))
    if request is None:
        logger.warning("Incomplete trip request payload")
        return {**state, "error": INCOMPLETE_REQUEST_ERROR}

    logger.info(
        "Trip request normalized: age=%d budget=%.2f days=%d cities=%s interests=%s",
        request.age,
        request.budget,
        request.days,
        request.cities,
        request.interests,
    )
    return {**state, "trip_request": request.model_dump(mode="json")}
