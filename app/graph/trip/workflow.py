"""여행 일정 그래프 워크플로우 구성."""

from langgraph.graph import END, StateGraph

from app.graph.trip.nodes import (
    allocate_trip_cities,
    build_daily_plans,
    normalize_trip_request,
    summarize_trip_plan,
)
from app.graph.trip.state import TripState


def _create_trip_workflow() -> StateGraph:
    """여행 일정 그래프 워크플로우를 생성합니다."""
    workflow = StateGraph(TripState)

    workflow.add_node("normalize_trip_request", normalize_trip_request)
    workflow.add_node("allocate_trip_cities", allocate_trip_cities)
    workflow.add_node("build_daily_plans", build_daily_plans)
    workflow.add_node("summarize_trip_plan", summarize_trip_plan)

    workflow.set_entry_point("normalize_trip_request")
    workflow.add_edge("normalize_trip_request", "allocate_trip_cities")
    workflow.add_edge("allocate_trip_cities", "build_daily_plans")
    workflow.add_edge("build_daily_plans", "summarize_trip_plan")
    workflow.add_edge("summarize_trip_plan", END)

    return workflow


compiled_trip_graph = _create_trip_workflow().compile()
