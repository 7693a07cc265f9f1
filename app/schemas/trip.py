"""여행 일정 생성 요청/응답 스키마."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.budget_policy import default_closing_hours, default_meal_price, default_opening_hours
from app.schemas.enums import ActivityType, MealType

DEFAULT_AGE = 25
DEFAULT_BUDGET = 5000.0
DEFAULT_DAYS = 3
DEFAULT_INTERESTS = ["culture", "history"]
DEFAULT_CITIES = ["Cairo"]

DEFAULT_SITE_ACTIVITIES = ["Exploring", "Photography"]


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None


class TripRequest(BaseModel):
    """여행 일정 생성 요청 모델.

    누락되거나 잘못된 값은 거절하지 않고 기본값으로 대체합니다.

    Fields:
        `age`: 여행자 나이 (기본 25)
        `budget`: 총 예산 EGP (기본 5000)
        `days`: 여행 일수 (기본 3)
        `interests`: 관심사 태그 목록 (기본 culture, history)
        `cities`: 방문 도시 목록 (기본 Cairo, 빈 목록은 "어느 도시든"으로 해석)
    """

    age: int = Field(default=DEFAULT_AGE, description="여행자 나이")
    budget: float = Field(default=DEFAULT_BUDGET, description="총 예산 (EGP)")
    days: int = Field(default=DEFAULT_DAYS, description="여행 일수")
    interests: list[str] = Field(default_factory=lambda: list(DEFAULT_INTERESTS), description="관심사 목록")
    cities: list[str] = Field(default_factory=lambda: list(DEFAULT_CITIES), description="방문 도시 목록")

    @field_validator("age", mode="before")
    @classmethod
    def _default_age(cls, value: Any) -> int:
        numeric = _to_number(value)
        if numeric is None or numeric <= 0:
            return DEFAULT_AGE
        return int(numeric)

    @field_validator("budget", mode="before")
    @classmethod
    def _default_budget(cls, value: Any) -> float:
        numeric = _to_number(value)
        if numeric is None or numeric <= 0:
            return DEFAULT_BUDGET
        return numeric

    @field_validator("days", mode="before")
    @classmethod
    def _default_days(cls, value: Any) -> int:
        numeric = _to_number(value)
        if numeric is None or numeric < 1:
            return DEFAULT_DAYS
        return int(numeric)

    @field_validator("interests", mode="before")
    @classmethod
    def _default_interests(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return list(DEFAULT_INTERESTS)
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @field_validator("cities", mode="before")
    @classmethod
    def _default_cities(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return list(DEFAULT_CITIES)
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> TripRequest | None:
        """원시 요청 또는 추출 결과 봉투(`{success, data}`)에서 요청을 만듭니다.

        추출 결과가 실패했거나 미완료이면 None을 반환합니다.
        """
        data = payload or {}
        if "success" in data:
            extracted = data.get("data")
            if not data.get("success") or not isinstance(extracted, dict) or not extracted.get("complete"):
                return None
            data = extracted
        return cls.model_validate({key: value for key, value in data.items() if value is not None})


class SiteCandidate(BaseModel):
    """문서 저장소에서 읽은 명소를 한 번에 정규화한 후보 모델."""

    name: str = "Unknown Site"
    city: str = "Cairo"
    governorate: str | None = None
    description: str = "No description available"
    activities: list[str] = Field(default_factory=lambda: list(DEFAULT_SITE_ACTIVITIES))
    opening_time: str = "08:00"
    closing_time: str = "18:00"
    average_time_spent_hours: float = 2.0
    cost_egp: float = 0.0
    age_limit: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    similarity_score: float = 0.0

    @classmethod
    def from_document(cls, document: dict[str, Any], **overrides: Any) -> SiteCandidate:
        """느슨한 문서 형태를 기본값이 적용된 후보로 변환합니다."""
        merged = {**document, **overrides}
        return cls(
            name=merged.get("name") or "Unknown Site",
            city=merged.get("city") or "Cairo",
            governorate=merged.get("governorate") or None,
            description=merged.get("description") or "No description available",
            activities=list(merged.get("activities") or DEFAULT_SITE_ACTIVITIES),
            opening_time=merged.get("opening_time") or "08:00",
            closing_time=merged.get("closing_time") or "18:00",
            average_time_spent_hours=float(merged.get("average_time_spent_hours") or 2.0),
            cost_egp=float(merged.get("cost_egp") or merged.get("budget") or 0.0),
            age_limit=merged.get("age_limit"),
            latitude=merged.get("latitude"),
            longitude=merged.get("longitude"),
            similarity_score=float(merged.get("similarity_score") or 0.0),
        )

    def to_planned(self) -> PlannedSite:
        return PlannedSite(
            name=self.name,
            city=self.city,
            description=self.description,
            similarity_score=self.similarity_score,
            activities=list(self.activities),
            opening_time=self.opening_time,
            closing_time=self.closing_time,
            average_time_spent_hours=self.average_time_spent_hours,
            cost_egp=self.cost_egp,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class RestaurantCandidate(BaseModel):
    """문서 저장소에서 읽은 식당 후보 모델."""

    id: str | None = None
    name: str = "Unknown Restaurant"
    city: str = "Cairo"
    description: str = "No description available"
    average_budget_egp: float | None = None
    type: MealType | None = None
    price_range: str | None = None
    opening_hours: str | None = None
    closing_hours: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> MealType | None:
        if value is None:
            return None
        try:
            return MealType(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def key(self) -> str:
        """하루 안에서 식당 중복을 막기 위한 식별 키."""
        return self.id or self.name

    def price_for(self, meal_type: MealType) -> float:
        if self.average_budget_egp:
            return float(self.average_budget_egp)
        return default_meal_price(meal_type, self.price_range)


class PlannedSite(BaseModel):
    """일정에 배치된 명소."""

    name: str = Field(..., description="명소 이름")
    city: str = Field(..., description="도시")
    description: str = Field(..., description="명소 설명")
    similarity_score: float = Field(0.0, description="관심사 유사도 점수")
    activities: list[str] = Field(default_factory=list, description="활동 태그")
    opening_time: str = Field("08:00", description="개장 시간")
    closing_time: str = Field("18:00", description="폐장 시간")
    average_time_spent_hours: float = Field(2.0, description="평균 체류 시간")
    cost_egp: float = Field(0.0, description="입장료 (EGP)")
    latitude: float | None = Field(None, description="위도")
    longitude: float | None = Field(None, description="경도")


class PlannedRestaurant(BaseModel):
    """식사 슬롯에 배정된 식당."""

    name: str = Field(..., description="식당 이름")
    city: str = Field(..., description="도시")
    description: str = Field(..., description="식당 설명")
    budget_egp: float = Field(..., description="1인 예상 비용 (EGP)")
    opening_hours: str = Field(..., description="영업 시작")
    closing_hours: str = Field(..., description="영업 종료")
    distance_km: float = Field(0.0, description="기준 좌표로부터의 거리")

    @classmethod
    def from_candidate(
        cls,
        restaurant: RestaurantCandidate,
        meal_type: MealType,
        distance_km: float = 0.0,
    ) -> PlannedRestaurant:
        return cls(
            name=restaurant.name,
            city=restaurant.city,
            description=restaurant.description,
            budget_egp=restaurant.price_for(meal_type),
            opening_hours=restaurant.opening_hours or default_opening_hours(meal_type),
            closing_hours=restaurant.closing_hours or default_closing_hours(meal_type),
            distance_km=round(distance_km, 2),
        )


class MealPlan(BaseModel):
    """하루 세 끼 식당 배정. 배정되지 않은 슬롯은 None입니다."""

    breakfast: PlannedRestaurant | None = None
    lunch: PlannedRestaurant | None = None
    dinner: PlannedRestaurant | None = None

    def get(self, meal_type: MealType) -> PlannedRestaurant | None:
        return getattr(self, meal_type.value)

    def assign(self, meal_type: MealType, restaurant: PlannedRestaurant | None) -> None:
        setattr(self, meal_type.value, restaurant)

    def total_cost(self) -> float:
        return sum(meal.budget_egp for meal in (self.breakfast, self.lunch, self.dinner) if meal is not None)

    def assigned_count(self) -> int:
        return sum(1 for meal in (self.breakfast, self.lunch, self.dinner) if meal is not None)


class ActivityCoordinates(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class Activity(BaseModel):
    """프런트엔드 표시용 표준화 일정 항목."""

    id: str
    time: str
    title: str
    description: str
    location: str
    type: ActivityType
    duration: str
    cost_egp: float
    meal_type: MealType | None = None
    activities: list[str] | None = None
    coordinates: ActivityCoordinates | None = None


class DaySummary(BaseModel):
    total_activities: int = 0
    sites_count: int = 0
    restaurants_count: int = 0
    estimated_duration: str = "10 hours"
    primary_city: str | None = None


class DailyPlan(BaseModel):
    """하루 일정 모델."""

    day: int = Field(..., ge=1, description="여행 N일차 (1부터 시작)")
    city: str | None = Field(None, description="배정 도시")
    sites: list[PlannedSite] = Field(default_factory=list, description="방문 명소 (최대 2곳)")
    distance_between_sites_km: float = Field(0.0, description="두 명소 사이 거리")
    restaurants: MealPlan = Field(default_factory=MealPlan, description="식사별 식당")
    daily_cost_egp: float = Field(0.0, description="하루 비용 (EGP)")
    comprehensive_itinerary: str | None = Field(None, description="내러티브 일정 텍스트")
    activities: list[Activity] = Field(default_factory=list, description="시간순 표준 일정")
    day_summary: DaySummary | None = Field(None, description="일정 요약")

    @classmethod
    def placeholder(cls, day: int, city: str | None = None) -> DailyPlan:
        """일자 생성 실패 시 사용하는 빈 일정."""
        return cls(day=day, city=city)


class UserPreferences(BaseModel):
    age: int
    total_budget_egp: float
    daily_budget_egp: float
    interests: list[str]
    duration_days: int
    city: str
    city_allocation: list[str | None]


class TripSummary(BaseModel):
    total_trip_cost_egp: float = 0.0
    remaining_budget_egp: float = 0.0


class TripPlan(BaseModel):
    """여행 전체 일정 응답 모델.

    `total_trip_cost_egp`는 일자별 비용의 합이고, 잔여 예산은 음수가 될 수 있습니다.
    """

    success: bool = Field(True, description="일정 생성 성공 여부")
    error: str | None = Field(None, description="실패 사유")
    user_preferences: UserPreferences | None = Field(None, description="정규화된 사용자 선호")
    days: list[DailyPlan] = Field(default_factory=list, description="일자별 일정")
    trip_summary: TripSummary = Field(default_factory=TripSummary, description="예산 요약")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryFee(_CamelModel):
    adult: str


class DestinationSuggestion(_CamelModel):
    """프런트엔드 목적지 카드 모델."""

    id: str
    name: str
    region: str
    category: str = "historical"
    short_description: str
    cover_image: str
    average_rating: float
    review_count: int
    entry_fee: EntryFee
    visit_duration: str
    reason: str
    priority: str
    site_data: PlannedSite


class FrontendTripResponse(_CamelModel):
    """프런트엔드 표시용 여행 일정 응답."""

    destinations: list[DestinationSuggestion]
    trip_plan: TripPlan
    daily_plans: list[DailyPlan]
    total_estimated_cost: float
    recommendations: list[str]
