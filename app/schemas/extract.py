"""대화형 여행 정보 추출 스키마."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ConversationTurn(BaseModel):
    """이전 대화 한 턴."""

    role: Literal["user", "assistant"] = Field(..., description="발화자")
    content: str = Field(..., description="발화 내용")


class ExtractRequest(BaseModel):
    """여행 정보 추출 요청 모델."""

    message: str = Field(..., min_length=1, description="사용자 메시지")
    conversation_history: list[ConversationTurn] = Field(default_factory=list, description="이전 대화 기록")


class ExtractResponse(BaseModel):
    """여행 정보 추출 응답 모델.

    `data.complete`가 true이면 `data`를 그대로 여행 일정 생성 요청으로 사용할 수 있습니다.
    """

    success: bool = Field(..., description="LLM 호출 성공 여부")
    data: dict[str, Any] | None = Field(None, description="추출된 여행 정보")
    response: str = Field(..., description="사용자에게 보여줄 응답 텍스트")
    error: str | None = Field(None, description="실패 사유")
