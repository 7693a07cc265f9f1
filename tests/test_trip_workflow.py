"""여행 일정 그래프 End-to-End 테스트."""

from __future__ import annotations

import asyncio
import random

import pytest

from app.core.config import get_settings
from app.database import get_engine
from app.graph.trip.nodes.normalize import INCOMPLETE_REQUEST_ERROR
from app.schemas.trip import TripRequest
from app.services.data_store import get_data_store
from app.services.trip_service import run_trip_pipeline
from tests.mocks.mock_collaborators import FixedEmbeddingService, ScriptedNarrativeService
from tests.mocks.mock_data_store import InMemoryDataStore, build_sample_catalog

SCENARIO_PROFILE = {"age": 25, "budget": 6000, "days": 3, "interests": ["history"], "cities": ["Cairo", "Alexandria"]}


def _set_required_env(monkeypatch, **overrides: str) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("SERVICE_SECRET", "test-service-secret")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


def _run(payload: dict, store: InMemoryDataStore, *, seed: int = 42, narrative_service=None, vector=None):
    return asyncio.run(
        run_trip_pipeline(
            payload,
            data_store=store,
            embedding_service=FixedEmbeddingService([1.0, 0.0, 0.0] if vector is None else vector),
            narrative_service=narrative_service or ScriptedNarrativeService(),
            rng=random.Random(seed),
            top_k=10,
        )
    )


def test_trip_request_defaults_missing_and_invalid_fields() -> None:
    request = TripRequest.from_payload({"age": "abc", "budget": -10, "days": 0, "interests": None})

    assert request.age == 25
    assert request.budget == 5000
    assert request.days == 3
    assert request.interests == ["culture", "history"]
    assert request.cities == ["Cairo"]


@pytest.mark.parametrize("value", ["inf", "-inf", "nan", float("inf"), float("nan"), 1e999])
def test_trip_request_defaults_non_finite_numbers(value) -> None:
    request = TripRequest.from_payload({"age": value, "budget": value, "days": value})

    assert request.age == 25
    assert request.budget == 5000
    assert request.days == 3


def test_non_finite_budget_plans_with_default_budget(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()

    plan = _run({**SCENARIO_PROFILE, "budget": "nan", "days": "inf"}, InMemoryDataStore(sites, restaurants))

    assert plan.success is True
    assert len(plan.days) == 3
    assert plan.user_preferences.total_budget_egp == 5000
    assert plan.trip_summary.remaining_budget_egp == pytest.approx(5000 - plan.trip_summary.total_trip_cost_egp)


def test_trip_request_from_incomplete_envelope_is_none() -> None:
    assert TripRequest.from_payload({"success": True, "data": {"complete": False}}) is None
    assert TripRequest.from_payload({"success": False, "data": None}) is None


def test_multi_city_trip_allocates_days_and_balances_totals(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()

    plan = _run(SCENARIO_PROFILE, InMemoryDataStore(sites, restaurants))

    assert plan.success is True
    assert plan.user_preferences.city_allocation == ["Cairo", "Cairo", "Alexandria"]
    assert plan.user_preferences.daily_budget_egp == pytest.approx(2000)
    assert [day.day for day in plan.days] == [1, 2, 3]
    assert [site.name for site in plan.days[0].sites] == ["Pyramids of Giza", "Egyptian Museum"]
    assert {site.city for site in plan.days[2].sites} == {"Alexandria"}
    assert plan.days[2].city == "Alexandria"

    total = round(sum(day.daily_cost_egp for day in plan.days), 2)
    assert plan.trip_summary.total_trip_cost_egp == pytest.approx(total)
    assert plan.trip_summary.remaining_budget_egp == pytest.approx(6000 - total)

    visited = [site.name for day in plan.days for site in day.sites]
    assert len(visited) == len(set(visited))


def test_daily_cost_includes_sites_and_meals(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()

    plan = _run(SCENARIO_PROFILE, InMemoryDataStore(sites, restaurants))

    for day in plan.days:
        meals = day.restaurants
        meal_cost = sum(meal.budget_egp for meal in (meals.breakfast, meals.lunch, meals.dinner) if meal)
        site_cost = sum(site.cost_egp for site in day.sites)
        assert day.daily_cost_egp == pytest.approx(site_cost + meal_cost)
        assert day.day_summary.sites_count == len(day.sites)
        assert day.comprehensive_itinerary.startswith(f"🌅 **Day {day.day} - ")


def test_day_one_uses_seed_sites_when_retrieval_is_empty(monkeypatch) -> None:
    _set_required_env(monkeypatch)

    plan = _run({"age": 30, "budget": 3000, "days": 1, "interests": ["history"], "cities": ["Cairo"]}, InMemoryDataStore())

    day = plan.days[0]
    assert [site.name for site in day.sites] == ["Pyramids of Giza", "Egyptian Museum"]
    assert all(site.cost_egp > 0 for site in day.sites)
    assert day.day_summary.primary_city == "Giza"


def test_no_restaurants_leaves_meals_empty_and_costs_sites_only(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, _ = build_sample_catalog()

    plan = _run(
        {"age": 30, "budget": 1900, "days": 1, "interests": ["history"], "cities": ["Cairo"]},
        InMemoryDataStore(sites, []),
    )

    day = plan.days[0]
    assert day.restaurants.breakfast is None
    assert day.restaurants.lunch is None
    assert day.restaurants.dinner is None
    assert day.daily_cost_egp == pytest.approx(sum(site.cost_egp for site in day.sites))
    assert day.daily_cost_egp == pytest.approx(1800)
    assert "Local Café" in day.comprehensive_itinerary
    assert [activity.type for activity in day.activities] == ["site", "site"]


def test_later_days_fall_back_to_regional_sites_when_nothing_is_found(monkeypatch) -> None:
    _set_required_env(monkeypatch)

    plan = _run({"age": 30, "budget": 9000, "days": 3, "interests": ["history"], "cities": ["Siwa"]}, InMemoryDataStore())

    assert [site.name for site in plan.days[1].sites] == ["Karnak Temple", "Valley of the Kings"]
    assert [site.name for site in plan.days[2].sites] == ["Bibliotheca Alexandrina", "Citadel of Qaitbay"]


def test_same_seed_produces_identical_plans(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()
    payload = {**SCENARIO_PROFILE, "cities": ["Luxor", "Alexandria"], "days": 4}

    first = _run(payload, InMemoryDataStore(sites, restaurants), seed=7)
    second = _run(payload, InMemoryDataStore(sites, restaurants), seed=7)

    assert first.model_dump() == second.model_dump()


def test_narrative_failure_falls_back_to_template(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()
    narrative_service = ScriptedNarrativeService(failing_days={2})

    plan = _run(SCENARIO_PROFILE, InMemoryDataStore(sites, restaurants), narrative_service=narrative_service)

    assert plan.days[1].comprehensive_itinerary.startswith("🌅 **Day 2 - Cairo Adventure**")
    assert [context.day_number for context in narrative_service.contexts] == [1, 2, 3]


def test_failed_day_becomes_placeholder(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()

    from app.graph.trip.nodes import days as days_module

    original = days_module.build_daily_plan

    async def _flaky_build_daily_plan(request, day_number, *args, **kwargs):
        if day_number == 2:
            raise RuntimeError("unexpected failure")
        return await original(request, day_number, *args, **kwargs)

    monkeypatch.setattr("app.graph.trip.nodes.days.build_daily_plan", _flaky_build_daily_plan)

    plan = _run(SCENARIO_PROFILE, InMemoryDataStore(sites, restaurants))

    assert len(plan.days) == 3
    assert plan.days[1].sites == []
    assert plan.days[1].daily_cost_egp == 0
    assert plan.days[1].city == "Cairo"
    assert plan.trip_summary.total_trip_cost_egp == pytest.approx(plan.days[0].daily_cost_egp + plan.days[2].daily_cost_egp)


def test_missing_embedding_uses_zero_vector(monkeypatch) -> None:
    _set_required_env(monkeypatch, EMBEDDING_DIMENSION="3")
    sites, restaurants = build_sample_catalog()
    store = InMemoryDataStore(sites, restaurants)

    plan = asyncio.run(
        run_trip_pipeline(
            {**SCENARIO_PROFILE, "days": 2},
            data_store=store,
            embedding_service=FixedEmbeddingService(None),
            narrative_service=ScriptedNarrativeService(),
            rng=random.Random(1),
            top_k=10,
        )
    )

    assert plan.success is True
    assert len(plan.days[1].sites) == 2
    assert all(site.similarity_score == 0.0 for site in plan.days[1].sites)


def test_incomplete_extraction_envelope_returns_failed_plan(monkeypatch) -> None:
    _set_required_env(monkeypatch)

    plan = _run({"success": True, "data": {"complete": False}}, InMemoryDataStore())

    assert plan.success is False
    assert plan.error == INCOMPLETE_REQUEST_ERROR
    assert plan.days == []


def test_empty_city_list_plans_nationwide(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    sites, restaurants = build_sample_catalog()

    plan = _run({**SCENARIO_PROFILE, "cities": []}, InMemoryDataStore(sites, restaurants))

    assert plan.user_preferences.city == "Not specified (Nationwide)"
    assert plan.user_preferences.city_allocation == [None, None, None]
    assert len(plan.days) == 3


def test_unconfigured_database_still_plans_every_day(monkeypatch) -> None:
    _set_required_env(monkeypatch, DATABASE_URL="")
    get_data_store.cache_clear()
    get_engine.cache_clear()

    plan = asyncio.run(
        run_trip_pipeline(
            SCENARIO_PROFILE,
            embedding_service=FixedEmbeddingService([1.0, 0.0, 0.0]),
            narrative_service=ScriptedNarrativeService(),
            rng=random.Random(3),
            top_k=10,
        )
    )
    get_data_store.cache_clear()

    assert plan.success is True
    assert len(plan.days) == 3
    assert [site.name for site in plan.days[0].sites] == ["Pyramids of Giza", "Egyptian Museum"]
    assert all(len(day.sites) == 2 for day in plan.days[1:])
