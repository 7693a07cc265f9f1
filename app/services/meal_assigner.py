"""명소 좌표 기준 최근접 식당 배정 서비스."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from app.core.geo import Coordinate, haversine_distance
from app.core.logger import get_logger
from app.schemas.enums import MealType
from app.schemas.trip import MealPlan, PlannedRestaurant, PlannedSite, RestaurantCandidate
from app.services.data_store import DataStoreProtocol

logger = get_logger(__name__)


@dataclass(slots=True)
class MealAssignment:
    """하루 식사 배정 결과와 당일 사용한 식당 키."""

    meals: MealPlan
    used_restaurants: set[str] = field(default_factory=set)


async def fetch_day_restaurants(
    data_store: DataStoreProtocol,
    city: str,
    food_budget: float,
) -> list[RestaurantCandidate]:
    """첫 명소 도시에서 식비 예산 이하인 식당을 한 번에 조회합니다."""
    try:
        documents = await data_store.find_restaurants(city=city, max_cost=food_budget)
    except Exception as exc:
        logger.warning("Restaurant lookup failed: city=%s error=%s", city, exc)
        return []
    logger.info("Restaurant candidates: city=%s max_cost=%.2f count=%d", city, food_budget, len(documents))
    return [RestaurantCandidate.model_validate(document) for document in documents]


def find_closest_restaurant(
    restaurants: Sequence[RestaurantCandidate],
    anchor: Coordinate,
    meal_type: MealType,
    exclude: set[str],
) -> tuple[RestaurantCandidate, float] | None:
    """식사 유형이 맞고 아직 사용하지 않은 식당 중 기준 좌표에 가장 가까운 곳을 찾습니다.

    좌표가 없는 식당은 건너뛰며, 거리가 같으면 먼저 나온 식당을 유지합니다.
    """
    closest: tuple[RestaurantCandidate, float] | None = None
    for restaurant in restaurants:
        if restaurant.type != meal_type or restaurant.key in exclude:
            continue
        location = Coordinate.of(restaurant)
        if location is None:
            continue
        distance = haversine_distance(anchor, location)
        if closest is None or distance < closest[1]:
            closest = (restaurant, distance)
    return closest


def meal_anchors(sites: Sequence[PlannedSite]) -> dict[MealType, Coordinate | None]:
    """식사별 기준 좌표. 점심도 첫 명소 좌표를 기준으로 합니다."""
    first = Coordinate.of(sites[0]) if sites else None
    last = Coordinate.of(sites[1]) if len(sites) >= 2 else first
    return {
        MealType.BREAKFAST: first,
        MealType.LUNCH: first,
        MealType.DINNER: last,
    }


def assign_meals(
    sites: Sequence[PlannedSite],
    restaurants: Sequence[RestaurantCandidate],
) -> MealAssignment:
    """아침/점심/저녁 순서로 기준 좌표에 가장 가까운 식당을 배정합니다.

    같은 식당은 하루에 한 번만 배정되며, 배정할 식당이 없으면 해당 슬롯은 None입니다.
    """
    assignment = MealAssignment(meals=MealPlan())
    if not sites:
        return assignment

    for meal_type, anchor in meal_anchors(sites).items():
        if anchor is None:
            logger.warning("Meal anchor missing coordinates: meal=%s site=%s", meal_type.value, sites[0].name)
            continue
        match = find_closest_restaurant(restaurants, anchor, meal_type, assignment.used_restaurants)
        if match is None:
            logger.info("No restaurant available: meal=%s city=%s", meal_type.value, sites[0].city)
            continue
        restaurant, distance = match
        assignment.meals.assign(meal_type, PlannedRestaurant.from_candidate(restaurant, meal_type, distance))
        assignment.used_restaurants.add(restaurant.key)
        logger.info(
            "Meal assigned: meal=%s restaurant=%s distance_km=%.2f",
            meal_type.value,
            restaurant.name,
            distance,
        )
    return assignment
