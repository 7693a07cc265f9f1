"""여행 플래너 공통 Enum 정의."""

from enum import StrEnum


class MealType(StrEnum):
    """식사 구분. 식당 하나는 한 가지 식사 유형만 제공합니다."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class PriceRange(StrEnum):
    """식당 가격대."""

    BUDGET = "Budget"
    MODERATE = "Moderate"
    UPSCALE = "Upscale"


class ActivityType(StrEnum):
    """표준화된 일정 항목 유형."""

    SITE = "site"
    RESTAURANT = "restaurant"


class CallbackStatus(StrEnum):
    """비동기 작업 콜백 상태."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
