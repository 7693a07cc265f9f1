"""대화형 여행 정보 추출 서비스.

사용자와의 대화에서 나이/예산/일수/관심사/도시를 모으고, 모두 모이면
LLM이 JSON 블록을 반환하도록 안내합니다.
"""

from __future__ import annotations

import json
import re
from typing import Any, Sequence

from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from app.core.llm_router import Stage, ainvoke
from app.core.logger import get_logger
from app.schemas.extract import ConversationTurn, ExtractResponse
from app.services.narrative_service import clean_ai_response

logger = get_logger(__name__)

REQUIRED_KEYS = ("age", "budget", "days", "interests", "cities")
USD_TO_EGP = 50
EUR_TO_EGP = 58

ERROR_MESSAGE = "Failed to process request"
ERROR_RESPONSE = "Sorry, I encountered an error. Please try again."

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

EXTRACTION_SYSTEM_PROMPT = f"""
You are Amira, a friendly Egyptian travel assistant who loves helping people discover Egypt.
Be warm, enthusiastic and helpful while staying concise.

YOUR MISSION: Extract trip planning information from natural language and guide the user through a short conversation.

INFORMATION NEEDED:
1. Age (5-100 years)
2. Budget in EGP (minimum 1,000 EGP per day)
3. Trip duration (1-30 days)
4. Interests (history, beaches, culture, adventure, etc.)
5. Cities (optional - Cairo, Luxor, Hurghada, Sharm El Sheikh, etc.)

EXTRACTION GUIDELINES:
- Extract any information you can find in the user's words
- Age: "I'm 25", "25 years old"
- Budget: "2000 EGP", "around 1500 per day", "budget of 3000"
- Duration: "5 days", "week long", "10 day trip"
- Interests: "love history", "interested in beaches"
- Cities: "want to visit Cairo", "Luxor sounds amazing"

CURRENCY CONVERSION (always convert to EGP):
- 1 USD = {USD_TO_EGP} EGP
- 1 EUR = {EUR_TO_EGP} EGP
- Always show the conversion, for example "That's 5000 EGP (converted from $100)"

When information is missing, ask for ONE missing piece at a time and explain why you need it.

When all information is collected, return ONLY this JSON:
{{{{
  "age": AGE_NUMBER,
  "budget": BUDGET_NUMBER_IN_EGP,
  "days": DAYS_NUMBER,
  "interests": ["interest1", "interest2"],
  "cities": ["City1"] or [],
  "complete": true
}}}}

Keep responses to 4-5 sentences and show excitement about the trip.
"""

EXTRACTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", EXTRACTION_SYSTEM_PROMPT),
        MessagesPlaceholder("history"),
        ("human", "{message}"),
    ]
)


def _history_messages(history: Sequence[ConversationTurn]) -> list[tuple[str, str]]:
    return [("ai" if turn.role == "assistant" else "human", turn.content) for turn in history]


def parse_trip_data(text: str) -> dict[str, Any]:
    """응답 텍스트의 JSON 블록에서 완성된 여행 정보를 읽습니다.

    `complete`가 true이고 필수 키가 모두 있을 때만 반환하며, 빈 도시 목록은 None으로 바꿉니다.
    그 외에는 `{"complete": False}`를 반환합니다.
    """
    match = _JSON_BLOCK.search(text or "")
    if match is None:
        return {"complete": False}
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.info("No valid JSON in extraction reply, treating as conversational response")
        return {"complete": False}

    if not isinstance(data, dict) or not data.get("complete") or not all(key in data for key in REQUIRED_KEYS):
        return {"complete": False}

    data["cities"] = data["cities"] or None
    return data


async def extract_trip_data(
    message: str,
    conversation_history: Sequence[ConversationTurn] = (),
    *,
    client: Any | None = None,
) -> ExtractResponse:
    """대화에서 여행 정보를 추출합니다. LLM 호출 실패는 `success=false` 응답으로 변환합니다."""
    messages = EXTRACTION_PROMPT.format_messages(
        history=_history_messages(conversation_history),
        message=message,
    )
    try:
        response = await ainvoke(Stage.TRIP_EXTRACTION, messages, client=client)
    except Exception:
        logger.exception("Trip data extraction failed")
        return ExtractResponse(success=False, error=ERROR_MESSAGE, response=ERROR_RESPONSE)

    text = clean_ai_response(str(getattr(response, "content", response)))
    data = parse_trip_data(text)
    logger.info("Trip data extraction: complete=%s history_turns=%d", data.get("complete"), len(conversation_history))
    return ExtractResponse(success=True, data=data, response=text)
