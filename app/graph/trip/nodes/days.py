"""일자별 일정 생성 노드."""

from __future__ import annotations

import asyncio
import random

from langchain_core.runnables import RunnableConfig

from app.core.config import get_settings
from app.core.logger import get_logger
from app.graph.trip.state import TripState
from app.schemas.trip import DailyPlan, TripRequest
from app.services.day_builder import DayBuildDependencies, build_daily_plan
from app.services.data_store import get_data_store
from app.services.embedding import get_embedding_service
from app.services.narrative_service import get_narrative_service

logger = get_logger(__name__)


async def _interest_embedding(embedding_service, interests: list[str], dimension: int | None) -> list[float]:
    """관심사 임베딩을 한 번 생성합니다. 실패하면 0 벡터를 사용합니다."""
    embedding = None
    if embedding_service is not None:
        embedding = await asyncio.to_thread(embedding_service.get_embedding, " ".join(interests))
    if embedding:
        return list(embedding)

    size = dimension or get_settings().EMBEDDING_DIMENSION
    logger.warning("Interest embedding unavailable, using zero vector: dimension=%d", size)
    return [0.0] * size


async def build_daily_plans(state: TripState, config: RunnableConfig) -> TripState:
    """일자 순서대로 하루 일정을 만들고, 실패한 날은 빈 일정으로 대체합니다."""
    if state.get("error"):
        return state

    configurable = config.get("configurable", {})
    request = TripRequest.model_validate(state["trip_request"])

    data_store = configurable.get("data_store")
    if data_store is None:
        data_store = get_data_store()

    embedding_service = configurable.get("embedding_service")
    if embedding_service is None:
        try:
            embedding_service = get_embedding_service()
        except Exception as exc:
            logger.warning("EmbeddingService initialization failed: %s", exc)

    narrative_service = configurable.get("narrative_service") or get_narrative_service()
    rng = configurable.get("rng") or random.Random()
    top_k = configurable.get("top_k") or get_settings().RAG_TOP_K

    user_embedding = await _interest_embedding(
        embedding_service,
        request.interests,
        configurable.get("embedding_dimension"),
    )
    deps = DayBuildDependencies(
        data_store=data_store,
        narrative_service=narrative_service,
        rng=rng,
        top_k=top_k,
    )

    city_allocation = state.get("city_allocation") or []
    used_sites: set[str] = set()
    daily_plans: list[dict] = []
    for index in range(request.days):
        day_number = index + 1
        assigned_city = city_allocation[index] if index < len(city_allocation) else None
        try:
            plan = await build_daily_plan(request, day_number, used_sites, assigned_city, user_embedding, deps)
        except Exception:
            logger.exception("Day build failed, using placeholder: day=%d", day_number)
            plan = DailyPlan.placeholder(day_number, assigned_city)
        daily_plans.append(plan.model_dump(mode="json"))

    return {**state, "daily_plans": daily_plans}
