"""하루 예산 활용률을 높이는 식당 업그레이드와 프리미엄 체험 추가 서비스."""

from __future__ import annotations

from typing import Sequence

from app.core.budget_policy import (
    DINNER_UPGRADE_SHARE,
    LUNCH_UPGRADE_SHARE,
    OPTIMIZE_MIN_REMAINING,
    PREMIUM_ACTIVITIES,
    PREMIUM_ACTIVITY_COUNT,
    PREMIUM_CAP,
    PREMIUM_MIN_REMAINING,
    PREMIUM_SHARE,
    RESTAURANT_UPGRADE_CAP,
    RESTAURANT_UPGRADE_MIN_REMAINING,
    RESTAURANT_UPGRADE_SHARE,
    UPGRADE_MIN_ALLOWANCE,
    should_optimize,
)
from app.core.geo import Coordinate, haversine_distance, midpoint
from app.core.logger import get_logger
from app.schemas.enums import MealType
from app.schemas.trip import MealPlan, PlannedRestaurant, PlannedSite, RestaurantCandidate
from app.services.data_store import DataStoreProtocol

logger = get_logger(__name__)


def _upgrade_anchor(sites: Sequence[PlannedSite], meal_type: MealType) -> Coordinate | None:
    first = Coordinate.of(sites[0])
    if len(sites) < 2:
        return first
    second = Coordinate.of(sites[1])
    if meal_type == MealType.DINNER:
        return second
    if first is None or second is None:
        return first
    return midpoint(first, second)


async def _find_upgrade(
    data_store: DataStoreProtocol,
    city: str,
    meal_type: MealType,
    current: PlannedRestaurant,
    max_delta: float,
    exclude: set[str],
) -> tuple[RestaurantCandidate, float] | None:
    documents = await data_store.find_restaurants(
        city=city,
        meal_type=meal_type.value,
        min_cost=current.budget_egp,
        max_cost=current.budget_egp + max_delta,
    )
    for document in documents:
        candidate = RestaurantCandidate.model_validate(document)
        if candidate.key in exclude or candidate.name == current.name:
            continue
        delta = candidate.price_for(meal_type) - current.budget_egp
        if 0 < delta <= max_delta:
            return candidate, delta
    return None


async def _try_upgrade(
    data_store: DataStoreProtocol,
    sites: Sequence[PlannedSite],
    meals: MealPlan,
    meal_type: MealType,
    max_delta: float,
    exclude: set[str],
) -> float:
    current = meals.get(meal_type)
    if current is None:
        return 0.0
    try:
        match = await _find_upgrade(data_store, sites[0].city, meal_type, current, max_delta, exclude)
    except Exception as exc:
        logger.warning("Restaurant upgrade lookup failed: meal=%s error=%s", meal_type.value, exc)
        return 0.0
    if match is None:
        return 0.0

    candidate, delta = match
    anchor = _upgrade_anchor(sites, meal_type)
    location = Coordinate.of(candidate)
    distance = haversine_distance(anchor, location) if anchor and location else 0.0
    meals.assign(meal_type, PlannedRestaurant.from_candidate(candidate, meal_type, distance))
    exclude.add(candidate.key)
    logger.info(
        "Restaurant upgraded: meal=%s from=%s to=%s delta=%.2f",
        meal_type.value,
        current.name,
        candidate.name,
        delta,
    )
    return delta


def add_premium_experiences(sites: Sequence[PlannedSite], daily_budget: float, daily_cost: float) -> float:
    """남은 예산이 충분하면 명소마다 프리미엄 체험 비용과 활동을 추가합니다.

    명소별 추가 금액은 처음 계산한 잔여 예산을 기준으로 하며 갱신하지 않습니다.

    Returns:
        추가 후 하루 비용
    """
    remaining = daily_budget - daily_cost
    if remaining <= PREMIUM_MIN_REMAINING:
        return daily_cost

    extras = list(PREMIUM_ACTIVITIES[:PREMIUM_ACTIVITY_COUNT])
    for site in sites:
        premium = round(min(remaining * PREMIUM_SHARE, PREMIUM_CAP), 2)
        site.cost_egp += premium
        site.activities = [*site.activities, *extras]
        daily_cost += premium
        logger.info("Premium experience added: site=%s amount=%.2f", site.name, premium)
    return daily_cost


async def optimize_day_budget(
    data_store: DataStoreProtocol,
    *,
    daily_budget: float,
    daily_cost: float,
    sites: Sequence[PlannedSite],
    meals: MealPlan,
    used_restaurants: set[str],
) -> float:
    """하루 예산이 많이 남으면 저녁/점심을 더 비싼 식당으로 바꾸고 프리미엄 체험을 추가합니다.

    비용을 줄이거나 더 싼 식당을 고르지 않으며, 하루 예산을 넘기지 않습니다.
    `sites`와 `meals`는 제자리에서 갱신됩니다.

    Returns:
        최적화 후 하루 비용
    """
    remaining = daily_budget - daily_cost
    logger.info(
        "Budget utilization: cost=%.2f budget=%.2f utilization=%.1f%% remaining=%.2f",
        daily_cost,
        daily_budget,
        (daily_cost / daily_budget * 100) if daily_budget else 0.0,
        remaining,
    )

    if should_optimize(daily_budget, daily_cost) and sites and remaining > RESTAURANT_UPGRADE_MIN_REMAINING:
        allowance = min(remaining * RESTAURANT_UPGRADE_SHARE, RESTAURANT_UPGRADE_CAP)
        if allowance > UPGRADE_MIN_ALLOWANCE:
            daily_cost += await _try_upgrade(
                data_store, sites, meals, MealType.DINNER, allowance * DINNER_UPGRADE_SHARE, used_restaurants
            )

        new_remaining = daily_budget - daily_cost
        if new_remaining > OPTIMIZE_MIN_REMAINING:
            daily_cost += await _try_upgrade(
                data_store, sites, meals, MealType.LUNCH, new_remaining * LUNCH_UPGRADE_SHARE, used_restaurants
            )

    optimized = add_premium_experiences(sites, daily_budget, daily_cost)
    logger.info(
        "Budget optimized: cost=%.2f budget=%.2f remaining=%.2f",
        optimized,
        daily_budget,
        daily_budget - optimized,
    )
    return optimized
