"""여행 일정 그래프 상태 정의."""

from typing import TypedDict


class TripState(TypedDict, total=False):
    """여행 일정 생성 그래프 상태.

    Keys:
        trip_payload: 원시 요청 또는 추출 결과 봉투
        trip_request: 기본값이 적용된 요청
        city_allocation: 일자별 배정 도시 (None은 전체 도시)
        daily_plans: 일자별 일정
        trip_plan: 최종 여행 일정 응답
        error: 오류 메시지
    """

    trip_payload: dict
    trip_request: dict
    city_allocation: list[str | None]
    daily_plans: list[dict]
    trip_plan: dict | None
    error: str | None
