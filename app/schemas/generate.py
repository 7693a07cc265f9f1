"""여행 일정 비동기 생성 트리거 및 콜백 스키마."""

from typing import Any, Literal

from pydantic import AnyHttpUrl, BaseModel, Field

from app.schemas.enums import CallbackStatus
from app.schemas.trip import TripPlan


class GenerateRequest(BaseModel):
    """비동기 여행 일정 생성 요청 모델."""

    job_id: str = Field(..., min_length=1, description="호출 측이 발급한 작업 ID")
    callback_url: AnyHttpUrl = Field(..., description="결과 콜백을 받을 Webhook 기본 URL")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="여행 요청(age, budget, days, interests, cities) 또는 추출 결과 봉투",
    )


class GenerateAckResponse(BaseModel):
    """즉시 반환하는 수락 응답."""

    job_id: str = Field(..., description="수락된 작업 ID")
    status: str = Field("ACCEPTED", description="요청 수락 상태")


class CallbackError(BaseModel):
    """콜백 실패 시 오류 정보."""

    code: str = Field(..., description="오류 코드")
    message: str = Field(..., description="오류 메시지")


class GenerateCallbackSuccess(BaseModel):
    """성공 콜백 페이로드."""

    status: Literal[CallbackStatus.SUCCESS] = Field(CallbackStatus.SUCCESS, description="작업 성공 상태")
    data: TripPlan = Field(..., description="생성된 여행 일정")


class GenerateCallbackFailure(BaseModel):
    """실패 콜백 페이로드."""

    status: Literal[CallbackStatus.FAILED] = Field(CallbackStatus.FAILED, description="작업 실패 상태")
    error: CallbackError = Field(..., description="실패 상세")
