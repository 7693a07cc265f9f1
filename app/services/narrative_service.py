"""하루 일정 내러티브 생성 서비스.

LLM으로 일정 텍스트를 생성하고, 실패/타임아웃/너무 짧은 응답이면
결정적인 템플릿 내러티브로 대체합니다. 프롬프트 구성은 이 모듈 안에서만 다룹니다.
"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Sequence

from langchain_core.prompts import ChatPromptTemplate

from app.core.budget_policy import MEAL_PLACEHOLDERS
from app.core.llm_router import Stage, ainvoke
from app.core.logger import get_logger
from app.schemas.enums import MealType
from app.schemas.trip import MealPlan, PlannedSite

logger = get_logger(__name__)

MIN_NARRATIVE_LENGTH = 200

_CHAT_TEMPLATE_TOKENS = re.compile(r"<\|(?:header_start|header_end|im_start|im_end|system|user|assistant)\|>")

_PLACEHOLDER_DESCRIPTIONS: dict[MealType, str] = {
    MealType.BREAKFAST: "Local breakfast experience",
    MealType.LUNCH: "Traditional Egyptian lunch",
    MealType.DINNER: "Authentic Egyptian dinner experience",
}

# (키워드, 안내 문구). 명소 이름/도시에 가장 많이 일치한 규칙을 사용하며 동점이면 앞선 규칙이 우선합니다.
_TRANSPORTATION_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("pyramid", "giza", "sphinx"),
        "🚗 Taxi/Uber to Pyramids (150-200 EGP from Cairo center) or organized tour bus. "
        "🐪 Camel rides available on-site (100-150 EGP). Avoid walking long distances in desert heat.",
    ),
    (
        ("museum", "egyptian museum", "coptic", "islamic cairo"),
        "🚇 Cairo Metro (5-10 EGP) or taxi (30-80 EGP within city). "
        "🚶 Walking between nearby sites in Islamic/Coptic Cairo. Use ride-sharing apps for convenience.",
    ),
    (
        ("luxor", "karnak", "valley of kings", "hatshepsut", "thebes"),
        "🚗 Private taxi for full day (300-500 EGP) or organized tour. "
        "🚲 Bicycle rental for East Bank sites (50-100 EGP/day). ⛵ Felucca boat for Nile crossing (20-50 EGP).",
    ),
    (
        ("aswan", "philae", "abu simbel", "high dam", "nubian"),
        "🚗 Private taxi/driver (400-600 EGP/day) for multiple sites. ⛵ Motorboat to Philae Temple (100-150 EGP). "
        "🚌 Tour bus for Abu Simbel (300-500 EGP including transport).",
    ),
    (
        ("alexandria", "bibliotheca", "citadel", "catacombs", "montaza"),
        "🚗 Taxi or ride-sharing within city (20-60 EGP per trip). 🚌 Local buses (5-10 EGP). "
        "🚶 Walking along Corniche between waterfront sites.",
    ),
    (
        ("hurghada", "sharm", "dahab", "marsa alam", "red sea"),
        "🚗 Hotel shuttle or taxi to dive sites (100-200 EGP). "
        "🚤 Boat trips for snorkeling/diving (300-800 EGP including transport). 🚌 Tourist buses between resorts.",
    ),
    (
        ("siwa", "oasis", "desert"),
        "🚗 4WD vehicle essential for desert sites (500-800 EGP/day with driver). "
        "🚲 Bicycle for town exploration (30-50 EGP/day). 🐪 Camel treks for sunset tours.",
    ),
)
_NO_SITES_TRANSPORTATION = "Use local transportation as needed (approximately 50-100 EGP per trip)"
_CAIRO_TRANSPORTATION = (
    "🚇 Cairo Metro (5-10 EGP), taxi (30-100 EGP per trip), or ride-sharing apps. "
    "🚶 Walking between nearby sites when possible."
)
_GENERIC_TRANSPORTATION = (
    "🚗 Local taxi or ride-sharing (50-150 EGP per trip). 🚌 Public buses available (10-30 EGP). "
    "Consider hiring a driver for multiple sites."
)

NARRATIVE_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a professional Egypt travel planner. Write clear, practical full-day itineraries "
            "and never invent names or prices that are not given to you.",
        ),
        ("human", "{day_brief}"),
    ]
)


def format_amount(value: float) -> str:
    """금액을 소수점 둘째 자리까지, 불필요한 0 없이 표시합니다."""
    text = f"{round(float(value), 2):.2f}"
    return text.rstrip("0").rstrip(".")


@dataclass(frozen=True, slots=True)
class DayNarrativeContext:
    """내러티브 생성에 필요한 하루 일정 정보."""

    day_number: int
    sites: Sequence[PlannedSite]
    meals: MealPlan
    daily_total: float
    age: int
    interests: Sequence[str] = field(default_factory=tuple)

    @property
    def primary_city(self) -> str:
        return self.sites[0].city if self.sites else "Cairo"


def clean_ai_response(text: str | None) -> str:
    """채팅 템플릿 토큰 잔여물을 제거합니다."""
    if not text:
        return ""
    return _CHAT_TEMPLATE_TOKENS.sub("", text).strip()


def suggest_transportation(sites: Sequence[PlannedSite], primary_city: str | None) -> str:
    """명소 이름과 도시 키워드로 이동 수단 안내 문구를 고릅니다."""
    if not sites:
        return _NO_SITES_TRANSPORTATION

    site_names = [(site.name or "").lower() for site in sites]
    city = (primary_city or "").lower()

    best_suggestion: str | None = None
    best_count = 0
    for keywords, suggestion in _TRANSPORTATION_RULES:
        count = sum(1 for keyword in keywords if keyword in city or any(keyword in name for name in site_names))
        if count > best_count:
            best_count = count
            best_suggestion = suggestion

    if best_suggestion is not None:
        return best_suggestion
    if "cairo" in city or "giza" in city:
        return _CAIRO_TRANSPORTATION
    return _GENERIC_TRANSPORTATION


def estimate_transportation_cost(sites: Sequence[PlannedSite], primary_city: str | None) -> int:
    """하루 이동 비용(EGP) 추정치를 반환합니다."""
    if not sites:
        return 100

    site_names = [(site.name or "").lower() for site in sites]
    city = (primary_city or "").lower()

    if any("pyramid" in name or "giza" in name for name in site_names):
        return 200
    if "luxor" in city or "aswan" in city:
        return 300
    if "alexandria" in city:
        return 150
    if any("museum" in name or "cairo" in name for name in site_names):
        return 80
    return 120


def _meal_line(meals: MealPlan, meal_type: MealType) -> tuple[str, str, float]:
    restaurant = meals.get(meal_type)
    if restaurant is None:
        name, price = MEAL_PLACEHOLDERS[meal_type]
        return name, _PLACEHOLDER_DESCRIPTIONS[meal_type], float(price)
    return restaurant.name, restaurant.description, restaurant.budget_egp


def _site_block(time: str, label: str, site: PlannedSite, tip: str) -> list[str]:
    return [
        f"**{time} - {label}**",
        f"Visit {site.name} - {site.description}",
        f"⏱️ Duration: {format_amount(site.average_time_spent_hours)} hours | "
        f"💰 Cost: {format_amount(site.cost_egp)} EGP | 📍 Location: {site.city}",
        f"🎯 Activities: {', '.join(site.activities) or 'Exploring, Photography'}",
        f"💡 Tip: {tip}",
        "",
    ]


def build_template_narrative(context: DayNarrativeContext) -> str:
    """LLM 없이 결정적으로 하루 일정 텍스트를 만듭니다.

    빈 식사 슬롯은 자리표시 식당 이름과 기본 가격으로 표시합니다.
    """
    city = context.primary_city
    lines = [f"🌅 **Day {context.day_number} - {city} Adventure**", ""]

    name, description, price = _meal_line(context.meals, MealType.BREAKFAST)
    lines += [
        "**08:00 - Breakfast**",
        f"Breakfast at {name} - {description}",
        f"💰 Budget: {format_amount(price)} EGP | ⏱️ Duration: 1 hour",
        "💡 Tip: Start your day with traditional ful medames and fresh bread",
        "",
    ]

    if context.sites:
        lines += _site_block(
            "09:00",
            "Morning Site Visit",
            context.sites[0],
            "Arrive early to avoid crowds and enjoy the best lighting for photos",
        )

    name, description, price = _meal_line(context.meals, MealType.LUNCH)
    lines += [
        "**12:00 - Lunch Break**",
        f"Lunch at {name} - {description}",
        f"💰 Budget: {format_amount(price)} EGP | ⏱️ Duration: 1 hour",
        "💡 Tip: Try traditional Egyptian dishes and stay hydrated",
        "",
    ]

    if len(context.sites) >= 2:
        lines += _site_block(
            "15:00",
            "Afternoon Site Visit",
            context.sites[1],
            "Perfect time for afternoon exploration with comfortable temperatures",
        )
    else:
        lines += [
            "**15:00 - Free Time**",
            "Explore local markets or relax at your accommodation",
            "💡 Tip: Use this time to rest and prepare for dinner",
            "",
        ]

    name, description, price = _meal_line(context.meals, MealType.DINNER)
    lines += [
        "**19:00 - Dinner**",
        f"Dinner at {name} - {description}",
        f"💰 Budget: {format_amount(price)} EGP | ⏱️ Duration: 1.5 hours",
        "💡 Tip: Experience local flavors and enjoy the evening atmosphere",
        "",
        f"**Transportation:** {suggest_transportation(context.sites, city)}",
        f"**Transportation Cost:** Approximately {estimate_transportation_cost(context.sites, city)} EGP for the day",
        f"**Daily Total:** {format_amount(context.daily_total)} EGP (excluding transportation)",
    ]
    return "\n".join(lines) + "\n"


def validate_and_fix_narrative(text: str | None, context: DayNarrativeContext) -> str:
    """LLM 응답을 검증하고 표기/합계/제목을 실제 값으로 고칩니다. 너무 짧으면 템플릿을 반환합니다."""
    if not text or len(text) < MIN_NARRATIVE_LENGTH:
        logger.warning("Narrative too short, using template: day=%d length=%d", context.day_number, len(text or ""))
        return build_template_narrative(context)

    fixed = text
    for label in ("💰 Budget:", "⏱️ Duration:", "📍 Location:", "🎯 Activities:", "💡 Tip:"):
        icon, word = label.split(" ", 1)
        fixed = re.sub(re.escape(icon) + r"\s*" + re.escape(word), label, fixed)

    daily_total = f"**Daily Total:** {format_amount(context.daily_total)} EGP"
    fixed = re.sub(r"\*\*Daily Total:\*\*\s*\d+(?:\.\d+)?\s*EGP", lambda _: daily_total, fixed)
    fixed = re.sub(r"\n{3,}", "\n\n", fixed)
    title = f"Day {context.day_number} - {context.primary_city} Adventure"
    fixed = re.sub(r"Day \d+ - .* Adventure", lambda _: title, fixed)
    return fixed


def _site_brief(site: PlannedSite) -> str:
    description = (site.description or "Historic site")[:80]
    return f"- {site.name} ({site.city}): {description}... | COST: {format_amount(site.cost_egp)} EGP"


def _meal_brief(meals: MealPlan, meal_type: MealType) -> str:
    restaurant = meals.get(meal_type)
    label = meal_type.value.capitalize()
    if restaurant is None:
        return f"- {label}: Not scheduled"
    return f"- {label}: {restaurant.name} | COST: {format_amount(restaurant.budget_egp)} EGP"


def build_day_brief(context: DayNarrativeContext) -> str:
    """LLM에 전달할 하루 일정 요약과 출력 형식 지시문을 만듭니다."""
    sites = "\n".join(_site_brief(site) for site in context.sites) or "- No sites scheduled"
    meals = "\n".join(_meal_brief(context.meals, meal_type) for meal_type in MealType)
    interests = ", ".join(context.interests) or "general sightseeing"
    return (
        f"Create a professional full-day Egypt travel itinerary for Day {context.day_number}.\n\n"
        "STRICT REQUIREMENTS:\n"
        "- Use ONLY the exact restaurant names and costs provided\n"
        "- Use ONLY the exact site names and costs provided\n"
        "- Follow the format template EXACTLY\n"
        "- Keep descriptions professional and informative\n"
        "- Include practical travel tips\n\n"
        f"USER PROFILE: Age {context.age}, interests: {interests}\n\n"
        f"SITES FOR TODAY:\n{sites}\n\n"
        f"RESTAURANTS FOR TODAY:\n{meals}\n\n"
        "REQUIRED FORMAT (copy exactly, replace details where needed):\n\n"
        f"{build_template_narrative(context)}\n"
        "IMPORTANT: Use this exact format and the exact costs provided above."
    )


class NarrativeService(ABC):
    """하루 일정 정보를 받아 내러티브 텍스트를 반환하는 협력자."""

    @abstractmethod
    async def generate(self, context: DayNarrativeContext) -> str:
        raise NotImplementedError


class TemplateNarrativeService(NarrativeService):
    """LLM 없이 템플릿만 사용하는 내러티브 서비스."""

    async def generate(self, context: DayNarrativeContext) -> str:
        return build_template_narrative(context)


class LLMNarrativeService(NarrativeService):
    """`ChatOpenAI` 기반 내러티브 서비스. 실패 시 템플릿으로 대체합니다."""

    def __init__(self, client: Any | None = None, timeout_seconds: float | None = None):
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def generate(self, context: DayNarrativeContext) -> str:
        messages = NARRATIVE_PROMPT.format_messages(day_brief=build_day_brief(context))
        try:
            response = await ainvoke(
                Stage.DAY_NARRATIVE,
                messages,
                client=self._client,
                timeout_seconds=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Narrative generation timed out, using template: day=%d", context.day_number)
            return build_template_narrative(context)
        except Exception:
            logger.exception("Narrative generation failed, using template: day=%d", context.day_number)
            return build_template_narrative(context)

        content = getattr(response, "content", response)
        return validate_and_fix_narrative(clean_ai_response(str(content)), context)


@lru_cache
def get_narrative_service() -> NarrativeService:
    """프로세스 전역 `LLMNarrativeService`를 반환합니다."""
    return LLMNarrativeService()
