"""여행 일정 생성 파이프라인 실행 및 비동기 작업 처리 서비스."""

from __future__ import annotations

import asyncio
import random
import re
from typing import Any

from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy
from app.graph.trip.workflow import compiled_trip_graph
from app.schemas.generate import CallbackError, GenerateCallbackFailure, GenerateCallbackSuccess
from app.schemas.trip import DestinationSuggestion, EntryFee, FrontendTripResponse, TripPlan
from app.services.callback_delivery import deliver_trip_result
from app.services.narrative_service import format_amount

logger = get_logger(__name__)

TRAVEL_RECOMMENDATIONS = [
    "Book popular attractions in advance",
    "Stay hydrated and wear sun protection",
    "Consider hiring local guides for historical sites",
]


async def run_trip_pipeline(
    payload: dict[str, Any] | None,
    *,
    data_store: Any | None = None,
    embedding_service: Any | None = None,
    narrative_service: Any | None = None,
    rng: random.Random | None = None,
    top_k: int | None = None,
    embedding_dimension: int | None = None,
) -> TripPlan:
    """여행 일정 그래프를 실행하고 결과를 반환합니다.

    협력자를 생략하면 설정 기반 프로세스 전역 인스턴스를 사용합니다.
    """
    configurable = {
        key: value
        for key, value in {
            "data_store": data_store,
            "embedding_service": embedding_service,
            "narrative_service": narrative_service,
            "rng": rng,
            "top_k": top_k,
            "embedding_dimension": embedding_dimension,
        }.items()
        if value is not None
    }
    result = await compiled_trip_graph.ainvoke(
        {"trip_payload": payload or {}},
        config={"configurable": configurable},
    )

    trip_plan = result.get("trip_plan")
    if not trip_plan:
        raise RuntimeError("trip_plan 결과가 없습니다.")
    return TripPlan.model_validate(trip_plan)


async def build_trip_plan(payload: dict[str, Any] | None, **collaborators: Any) -> TripPlan:
    """전체 생성 시간을 `TRIP_BUILD_TIMEOUT_SECONDS`로 제한해 파이프라인을 실행합니다.

    Raises:
        asyncio.TimeoutError: 제한 시간을 넘긴 경우
    """
    timeout_policy = get_timeout_policy(get_settings())
    return await asyncio.wait_for(
        run_trip_pipeline(payload, **collaborators),
        timeout=timeout_policy.trip_build_timeout_seconds,
    )


async def process_generate_request(job_id: str, callback_url: str, payload: dict[str, Any]) -> None:
    """여행 일정을 생성한 뒤 결과를 콜백으로 전송합니다."""
    try:
        trip_plan = await build_trip_plan(payload)
        if trip_plan.success:
            callback = GenerateCallbackSuccess(data=trip_plan)
        else:
            callback = GenerateCallbackFailure(
                error=CallbackError(code="PIPELINE_ERROR", message=trip_plan.error or "Trip plan generation failed"),
            )
    except asyncio.TimeoutError:
        logger.warning("Trip build timed out: job_id=%s", job_id)
        callback = GenerateCallbackFailure(
            error=CallbackError(code="TRIP_BUILD_TIMEOUT", message="여행 일정 생성 시간이 초과되었습니다."),
        )
    except Exception as exc:
        logger.exception("Trip pipeline failed: job_id=%s", job_id)
        callback = GenerateCallbackFailure(
            error=CallbackError(code="PIPELINE_ERROR", message=str(exc)),
        )

    await deliver_trip_result(
        base_url=callback_url,
        job_id=job_id,
        payload=callback.model_dump(mode="json"),
    )


def _slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def _priority(score: float) -> str:
    if score > 0.7:
        return "high"
    if score > 0.4:
        return "medium"
    return "low"


def to_frontend_format(trip_plan: TripPlan, rng: random.Random | None = None) -> FrontendTripResponse:
    """여행 일정을 프런트엔드 목적지 카드 형태로 변환합니다.

    평점은 유사도에서 `min(5, 3 + 2 * score)`로 환산하고, 리뷰 수는 주입된 난수원으로 만듭니다.
    """
    review_rng = rng or random.Random()
    destinations: list[DestinationSuggestion] = []
    for day_index, day in enumerate(trip_plan.days):
        for site_index, site in enumerate(day.sites):
            score = site.similarity_score
            destinations.append(
                DestinationSuggestion(
                    id=f"site-{day_index}-{site_index}",
                    name=site.name,
                    region=site.city,
                    short_description=site.description,
                    cover_image=f"/assets/destinations/{_slugify(site.name)}.svg",
                    average_rating=min(5.0, 3 + score * 2),
                    review_count=review_rng.randint(100, 1099),
                    entry_fee=EntryFee(adult=f"{format_amount(site.cost_egp)} EGP"),
                    visit_duration=f"{format_amount(site.average_time_spent_hours)} hours",
                    reason=f"Similarity score: {score}",
                    priority=_priority(score),
                    site_data=site,
                )
            )

    return FrontendTripResponse(
        destinations=destinations,
        trip_plan=trip_plan,
        daily_plans=trip_plan.days,
        total_estimated_cost=trip_plan.trip_summary.total_trip_cost_egp,
        recommendations=list(TRAVEL_RECOMMENDATIONS),
    )
