"""여행 일정 요약 노드."""

from __future__ import annotations

from app.core.budget_policy import calculate_budget_allocation
from app.core.logger import get_logger
from app.graph.trip.state import TripState
from app.schemas.trip import DailyPlan, TripPlan, TripRequest, TripSummary, UserPreferences

logger = get_logger(__name__)

NATIONWIDE_LABEL = "Not specified (Nationwide)"


async def summarize_trip_plan(state: TripState) -> TripState:
    """일자별 비용을 합산해 최종 여행 일정을 만듭니다. 오류가 있으면 실패 응답을 만듭니다."""
    if state.get("error"):
        failed = TripPlan(success=False, error=state["error"])
        return {**state, "trip_plan": failed.model_dump(mode="json")}

    request = TripRequest.model_validate(state["trip_request"])
    days = [DailyPlan.model_validate(plan) for plan in state.get("daily_plans") or []]
    allocation = calculate_budget_allocation(request.budget, request.days)

    total_cost = round(sum(day.daily_cost_egp for day in days), 2)
    trip_plan = TripPlan(
        success=True,
        user_preferences=UserPreferences(
            age=request.age,
            total_budget_egp=request.budget,
            daily_budget_egp=allocation.daily_budget,
            interests=request.interests,
            duration_days=request.days,
            city=request.cities[0] if request.cities else NATIONWIDE_LABEL,
            city_allocation=state.get("city_allocation") or [],
        ),
        days=days,
        trip_summary=TripSummary(
            total_trip_cost_egp=total_cost,
            remaining_budget_egp=round(request.budget - total_cost, 2),
        ),
    )
    logger.info(
        "Trip plan completed: days=%d total_cost=%.2f remaining=%.2f",
        len(days),
        trip_plan.trip_summary.total_trip_cost_egp,
        trip_plan.trip_summary.remaining_budget_egp,
    )
    return {**state, "trip_plan": trip_plan.model_dump(mode="json")}
