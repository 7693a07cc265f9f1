"""도시 배분 노드."""

from __future__ import annotations

from app.core.city_allocation import allocate_cities
from app.graph.trip.state import TripState
from app.schemas.trip import TripRequest


async def allocate_trip_cities(state: TripState) -> TripState:
    """여행 일수를 도시별 연속 블록으로 배분합니다."""
    if state.get("error"):
        return state

    request = TripRequest.model_validate(state["trip_request"])
    return {**state, "city_allocation": allocate_cities(request.cities, request.days)}
