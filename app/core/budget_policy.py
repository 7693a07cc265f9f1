"""일일 예산 배분과 예산 최적화 정책 상수."""

from __future__ import annotations

from dataclasses import dataclass

from app.schemas.enums import MealType, PriceRange

SITES_SHARE = 0.65
FOOD_SHARE = 0.35

OPTIMIZE_UTILIZATION_THRESHOLD = 0.85
OPTIMIZE_MIN_REMAINING = 100.0
RESTAURANT_UPGRADE_MIN_REMAINING = 200.0
RESTAURANT_UPGRADE_SHARE = 0.6
RESTAURANT_UPGRADE_CAP = 500.0
DINNER_UPGRADE_SHARE = 0.5
LUNCH_UPGRADE_SHARE = 0.4
UPGRADE_MIN_ALLOWANCE = 100.0

PREMIUM_MIN_REMAINING = 150.0
PREMIUM_SHARE = 0.3
PREMIUM_CAP = 200.0
PREMIUM_ACTIVITIES = (
    "Private guided tour",
    "Professional photography session",
    "VIP access",
    "Audio guide rental",
    "Souvenir shopping",
)
PREMIUM_ACTIVITY_COUNT = 2

_MEAL_PRICE_MATRIX: dict[MealType, dict[PriceRange, float]] = {
    MealType.BREAKFAST: {PriceRange.BUDGET: 80, PriceRange.MODERATE: 150, PriceRange.UPSCALE: 250},
    MealType.LUNCH: {PriceRange.BUDGET: 150, PriceRange.MODERATE: 300, PriceRange.UPSCALE: 450},
    MealType.DINNER: {PriceRange.BUDGET: 150, PriceRange.MODERATE: 350, PriceRange.UPSCALE: 550},
}
_FALLBACK_MEAL_PRICE = 200.0

_DEFAULT_OPENING_HOURS: dict[MealType, str] = {
    MealType.BREAKFAST: "08:00",
    MealType.LUNCH: "11:00",
    MealType.DINNER: "17:00",
}
_DEFAULT_CLOSING_HOURS: dict[MealType, str] = {
    MealType.BREAKFAST: "16:00",
    MealType.LUNCH: "20:00",
    MealType.DINNER: "23:00",
}

# 식사 슬롯이 비었을 때 내러티브에 표시하는 자리표시 이름과 가격
MEAL_PLACEHOLDERS: dict[MealType, tuple[str, float]] = {
    MealType.BREAKFAST: ("Local Café", 100),
    MealType.LUNCH: ("Local Restaurant", 200),
    MealType.DINNER: ("Traditional Restaurant", 300),
}


@dataclass(frozen=True, slots=True)
class BudgetAllocation:
    """하루 예산과 명소/식비 배분."""

    daily_budget: float
    sites_budget: float
    food_budget: float


def calculate_budget_allocation(total_budget: float, days: int) -> BudgetAllocation:
    """총 예산을 일수로 나눈 뒤 65% 명소 / 35% 식비로 배분합니다."""
    daily_budget = total_budget / max(1, days)
    return BudgetAllocation(
        daily_budget=daily_budget,
        sites_budget=daily_budget * SITES_SHARE,
        food_budget=daily_budget * FOOD_SHARE,
    )


def default_meal_price(meal_type: MealType | str, price_range: str | None = None) -> float:
    """식사 유형과 가격대에 맞는 기본 가격을 반환합니다. 알 수 없는 가격대는 Moderate로 봅니다."""
    try:
        prices = _MEAL_PRICE_MATRIX[MealType(meal_type)]
    except ValueError:
        return _FALLBACK_MEAL_PRICE
    try:
        return float(prices[PriceRange(price_range)])
    except ValueError:
        return float(prices[PriceRange.MODERATE])


def default_opening_hours(meal_type: MealType | str) -> str:
    try:
        return _DEFAULT_OPENING_HOURS[MealType(meal_type)]
    except ValueError:
        return "09:00"


def default_closing_hours(meal_type: MealType | str) -> str:
    try:
        return _DEFAULT_CLOSING_HOURS[MealType(meal_type)]
    except ValueError:
        return "22:00"


def should_optimize(daily_budget: float, daily_cost: float) -> bool:
    """예산 활용률이 85% 미만이고 잔여 예산이 100 이상 남았는지 판단합니다."""
    if daily_budget <= 0:
        return False
    utilization = daily_cost / daily_budget
    remaining = daily_budget - daily_cost
    return utilization < OPTIMIZE_UTILIZATION_THRESHOLD and remaining > OPTIMIZE_MIN_REMAINING
