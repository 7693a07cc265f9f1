"""여행 일정 그래프 노드 모음."""

from app.graph.trip.nodes.allocate import allocate_trip_cities
from app.graph.trip.nodes.days import build_daily_plans
from app.graph.trip.nodes.normalize import normalize_trip_request
from app.graph.trip.nodes.summarize import summarize_trip_plan

__all__ = ["normalize_trip_request", "allocate_trip_cities", "build_daily_plans", "summarize_trip_plan"]
