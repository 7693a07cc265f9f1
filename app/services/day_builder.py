"""하루 일정 조립 서비스.

명소 선택 → 식당 배정 → 예산 최적화 → 내러티브 → 표준 일정 항목 순서로 하루를 만듭니다.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from app.core.budget_policy import calculate_budget_allocation
from app.core.geo import Coordinate, haversine_distance
from app.core.logger import get_logger
from app.core.similarity import DEFAULT_TOP_K
from app.schemas.enums import ActivityType, MealType
from app.schemas.trip import (
    Activity,
    ActivityCoordinates,
    DailyPlan,
    DaySummary,
    MealPlan,
    PlannedSite,
    SiteCandidate,
    TripRequest,
)
from app.services.budget_optimizer import optimize_day_budget
from app.services.candidate_retriever import retrieve_site_candidates
from app.services.data_store import DataStoreProtocol
from app.services.meal_assigner import MealAssignment, assign_meals, fetch_day_restaurants
from app.services.narrative_service import (
    DayNarrativeContext,
    NarrativeService,
    build_template_narrative,
    format_amount,
)
from app.services.site_selector import (
    get_day_one_sites,
    get_regional_fallback_sites,
    select_sites_by_location,
)

logger = get_logger(__name__)

DAY_ONE_SEED_CITIES = {"cairo", "giza"}
ESTIMATED_DAY_DURATION = "10 hours"

_MEAL_SLOTS: dict[MealType, tuple[str, str]] = {
    MealType.BREAKFAST: ("08:00", "1 hour"),
    MealType.LUNCH: ("12:00", "1 hour"),
    MealType.DINNER: ("19:00", "1.5 hours"),
}
_SITE_SLOTS = (("morning-site", "09:00"), ("afternoon-site", "15:00"))


@dataclass(frozen=True, slots=True)
class DayBuildDependencies:
    """하루 일정 조립에 주입되는 협력자."""

    data_store: DataStoreProtocol
    narrative_service: NarrativeService
    rng: random.Random
    top_k: int = DEFAULT_TOP_K


async def _select_day_sites(
    request: TripRequest,
    day_number: int,
    target_city: str | None,
    used_sites: set[str],
    user_embedding: Sequence[float],
    sites_budget: float,
    deps: DayBuildDependencies,
) -> list[SiteCandidate]:
    async def _retrieve() -> list[SiteCandidate]:
        return await retrieve_site_candidates(
            deps.data_store,
            user_embedding,
            city=target_city,
            max_cost=sites_budget,
            max_age=request.age,
            limit=deps.top_k,
            rng=deps.rng,
        )

    if day_number == 1:
        selected = await get_day_one_sites(deps.data_store)
        if target_city and target_city.lower() not in DAY_ONE_SEED_CITIES:
            candidates = await _retrieve()
            chosen = select_sites_by_location(candidates, used_sites) if candidates else []
            if chosen:
                logger.info("Day-one seeds replaced for city=%s", target_city)
                selected = chosen
        return selected

    candidates = await _retrieve()
    selected = select_sites_by_location(candidates, used_sites)
    if not selected:
        logger.warning("No sites selected: day=%d city=%s candidates=%d", day_number, target_city, len(candidates))
        selected = get_regional_fallback_sites(day_number, deps.rng)
    return selected


def _distance_between(sites: Sequence[PlannedSite]) -> float:
    if len(sites) < 2:
        return 0.0
    first = Coordinate.of(sites[0])
    second = Coordinate.of(sites[1])
    if first is None or second is None:
        return 0.0
    return haversine_distance(first, second)


def build_activities(day_number: int, sites: Sequence[PlannedSite], meals: MealPlan) -> list[Activity]:
    """08:00 아침, 09:00 오전 명소, 12:00 점심, 15:00 오후 명소, 19:00 저녁 순서의 표준 일정 항목."""

    def _meal(meal_type: MealType) -> Activity | None:
        restaurant = meals.get(meal_type)
        if restaurant is None:
            return None
        time, duration = _MEAL_SLOTS[meal_type]
        return Activity(
            id=f"day-{day_number}-{meal_type.value}",
            time=time,
            title=f"{meal_type.value.capitalize()} at {restaurant.name}",
            description=restaurant.description,
            location=restaurant.city,
            type=ActivityType.RESTAURANT,
            duration=duration,
            cost_egp=restaurant.budget_egp,
            meal_type=meal_type,
        )

    def _site(index: int) -> Activity | None:
        if index >= len(sites):
            return None
        site = sites[index]
        slot, time = _SITE_SLOTS[index]
        return Activity(
            id=f"day-{day_number}-{slot}",
            time=time,
            title=f"Visit {site.name}",
            description=site.description,
            location=site.city,
            type=ActivityType.SITE,
            duration=f"{format_amount(site.average_time_spent_hours)} hours",
            cost_egp=site.cost_egp,
            activities=list(site.activities),
            coordinates=ActivityCoordinates(latitude=site.latitude, longitude=site.longitude),
        )

    ordered = [_meal(MealType.BREAKFAST), _site(0), _meal(MealType.LUNCH), _site(1), _meal(MealType.DINNER)]
    return [activity for activity in ordered if activity is not None]


async def build_daily_plan(
    request: TripRequest,
    day_number: int,
    used_sites: set[str],
    assigned_city: str | None,
    user_embedding: Sequence[float],
    deps: DayBuildDependencies,
) -> DailyPlan:
    """하루 일정을 조립합니다.

    선택된 명소 이름은 `used_sites`에 추가되어 이후 일자에서 제외됩니다.

    Args:
        request: 정규화된 여행 요청
        day_number: 1부터 시작하는 일자
        used_sites: 이번 여행에서 이미 배정된 명소 이름 (제자리 갱신)
        assigned_city: 도시 배분 결과 (None이면 요청의 첫 도시, 그것도 없으면 전체)
        user_embedding: 관심사 임베딩
        deps: 저장소/내러티브/난수원

    Returns:
        완성된 하루 일정
    """
    target_city = assigned_city or (request.cities[0] if request.cities else None)
    allocation = calculate_budget_allocation(request.budget, request.days)
    logger.info(
        "Building day: day=%d city=%s daily_budget=%.2f sites_budget=%.2f food_budget=%.2f",
        day_number,
        target_city or "any",
        allocation.daily_budget,
        allocation.sites_budget,
        allocation.food_budget,
    )

    selected = await _select_day_sites(
        request,
        day_number,
        target_city,
        used_sites,
        user_embedding,
        allocation.sites_budget,
        deps,
    )
    used_sites.update(site.name for site in selected)

    sites = [site.to_planned() for site in selected]
    daily_cost = sum(site.cost_egp for site in sites)

    assignment = MealAssignment(meals=MealPlan())
    if sites:
        site_city = sites[0].city
        distinct_cities = {site.city for site in sites}
        if len(distinct_cities) > 1:
            logger.warning("Sites span multiple cities: cities=%s primary=%s", sorted(distinct_cities), site_city)
        restaurants = await fetch_day_restaurants(deps.data_store, site_city, allocation.food_budget)
        assignment = assign_meals(sites, restaurants)
        daily_cost += assignment.meals.total_cost()

    daily_cost = await optimize_day_budget(
        deps.data_store,
        daily_budget=allocation.daily_budget,
        daily_cost=daily_cost,
        sites=sites,
        meals=assignment.meals,
        used_restaurants=assignment.used_restaurants,
    )
    daily_cost = round(daily_cost, 2)

    context = DayNarrativeContext(
        day_number=day_number,
        sites=sites,
        meals=assignment.meals,
        daily_total=daily_cost,
        age=request.age,
        interests=tuple(request.interests),
    )
    try:
        narrative = await deps.narrative_service.generate(context)
    except Exception:
        logger.exception("Narrative service raised, using template: day=%d", day_number)
        narrative = build_template_narrative(context)

    activities = build_activities(day_number, sites, assignment.meals)
    primary_city = sites[0].city if sites else (target_city or "Cairo")
    return DailyPlan(
        day=day_number,
        city=primary_city,
        sites=sites,
        distance_between_sites_km=_distance_between(sites),
        restaurants=assignment.meals,
        daily_cost_egp=daily_cost,
        comprehensive_itinerary=narrative,
        activities=activities,
        day_summary=DaySummary(
            total_activities=len(activities),
            sites_count=len(sites),
            restaurants_count=assignment.meals.assigned_count(),
            estimated_duration=ESTIMATED_DAY_DURATION,
            primary_city=primary_city,
        ),
    )
