"""하루 방문 명소 선택 서비스.

같은 지역(주/도시)에 모인 명소 2곳을 고르는 것을 기본으로 하며,
1일차 고정 명소(피라미드 + 이집트 박물관)와 검색 결과가 없을 때 사용할
일자별 지역 대체 명소를 함께 제공합니다.
"""

from __future__ import annotations

import random
from typing import Any, Sequence

from app.core.logger import get_logger
from app.schemas.trip import SiteCandidate
from app.services.data_store import DataStoreProtocol

logger = get_logger(__name__)

SITES_PER_DAY = 2

PYRAMIDS_NAME_PATTERNS = ["pyramid", "giza"]
MUSEUM_NAME_PATTERNS = ["egyptian museum", "museum"]
PYRAMIDS_DEFAULT_COST = 800.0
MUSEUM_DEFAULT_COST = 1000.0

PYRAMIDS_OF_GIZA = SiteCandidate(
    name="Pyramids of Giza",
    city="Giza",
    governorate="Giza",
    description=(
        "The last surviving wonder of the ancient world, these magnificent pyramids "
        "have stood for over 4,500 years."
    ),
    similarity_score=1.0,
    activities=["Exploring", "Photography", "Camel Riding"],
    opening_time="08:00",
    closing_time="17:00",
    average_time_spent_hours=3.0,
    cost_egp=PYRAMIDS_DEFAULT_COST,
    latitude=29.9792,
    longitude=31.1342,
)

EGYPTIAN_MUSEUM = SiteCandidate(
    name="Egyptian Museum",
    city="Cairo",
    governorate="Cairo",
    description=(
        "Home to the world's most extensive collection of ancient Egyptian artifacts, "
        "including treasures from Tutankhamun's tomb."
    ),
    similarity_score=1.0,
    activities=["Museum Tour", "Photography", "Learning"],
    opening_time="09:00",
    closing_time="17:00",
    average_time_spent_hours=2.5,
    cost_egp=MUSEUM_DEFAULT_COST,
    latitude=30.0478,
    longitude=31.2336,
)

# 2일차부터 순서대로 적용하며, 마지막 항목은 5일차 이후 계속 사용합니다.
REGIONAL_FALLBACKS: tuple[tuple[str, tuple[str, str]], ...] = (
    ("Luxor", ("Karnak Temple", "Valley of the Kings")),
    ("Alexandria", ("Bibliotheca Alexandrina", "Citadel of Qaitbay")),
    ("Aswan", ("Philae Temple", "High Dam")),
    ("Cairo", ("Citadel of Saladin", "Khan el-Khalili")),
)
FALLBACK_COSTS = (500.0, 300.0)
FALLBACK_SCORE = 0.7


def _location_key(site: SiteCandidate) -> str:
    return (site.governorate or site.city or "unknown").strip().lower()


def _same_text(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def _shares_location(site: SiteCandidate, other: SiteCandidate) -> bool:
    return _same_text(site.city, other.city) or _same_text(site.governorate, other.governorate)


def _by_score(sites: Sequence[SiteCandidate]) -> list[SiteCandidate]:
    return sorted(sites, key=lambda site: site.similarity_score, reverse=True)


def select_sites_by_location(
    candidates: Sequence[SiteCandidate],
    used_sites: set[str] | frozenset[str] = frozenset(),
) -> list[SiteCandidate]:
    """이미 방문한 명소를 제외하고 같은 지역의 명소를 최대 2곳 선택합니다.

    Args:
        candidates: 유사도 점수가 부여된 후보 목록
        used_sites: 이번 여행에서 이미 배정된 명소 이름

    Returns:
        선택된 명소 (0~2곳). 후보가 없으면 빈 목록
    """
    available = [site for site in candidates if site.name not in used_sites]
    if not available:
        return []

    groups: dict[str, list[SiteCandidate]] = {}
    for site in available:
        groups.setdefault(_location_key(site), []).append(site)

    multi_site_groups = {key: sites for key, sites in groups.items() if len(sites) >= SITES_PER_DAY}
    if multi_site_groups:
        best_key = max(
            multi_site_groups,
            key=lambda key: sum(site.similarity_score for site in multi_site_groups[key]) / len(multi_site_groups[key]),
        )
        selected = _by_score(multi_site_groups[best_key])[:SITES_PER_DAY]
        logger.info(
            "Site selection: policy=same_location location=%s sites=%s",
            best_key,
            [site.name for site in selected],
        )
        return selected

    primary = max(available, key=lambda site: site.similarity_score)
    partner = next(
        (site for site in available if site is not primary and _shares_location(site, primary)),
        None,
    )
    if partner is not None:
        logger.info(
            "Site selection: policy=same_city_pair city=%s sites=%s",
            primary.city,
            [primary.name, partner.name],
        )
        return [primary, partner]

    selected = _by_score(available)[:SITES_PER_DAY]
    logger.warning(
        "Site selection relaxed location constraint: locations=%d sites=%s",
        len(groups),
        [site.name for site in selected],
    )
    return selected


def _same_document(first: dict[str, Any], second: dict[str, Any]) -> bool:
    if first.get("id") is not None and second.get("id") is not None:
        return first["id"] == second["id"]
    return first.get("name") == second.get("name")


async def get_day_one_sites(data_store: DataStoreProtocol) -> list[SiteCandidate]:
    """1일차 고정 명소(피라미드 + 이집트 박물관)를 반환합니다.

    저장소에서 이름으로 찾고, 없거나 조회에 실패하면 고정 레코드를 사용합니다.
    """
    try:
        pyramids = await data_store.find_site_by_name(PYRAMIDS_NAME_PATTERNS)
        museum = await data_store.find_site_by_name(MUSEUM_NAME_PATTERNS)
    except Exception as exc:
        logger.warning("Day-one site lookup failed, using static seeds: error=%s", exc)
        return [PYRAMIDS_OF_GIZA.model_copy(deep=True), EGYPTIAN_MUSEUM.model_copy(deep=True)]

    if pyramids and museum and _same_document(pyramids, museum):
        logger.info("Day-one museum lookup matched the pyramids site, using static seed: name=%s", museum.get("name"))
        museum = None

    sites = [
        SiteCandidate.from_document(pyramids, cost_egp=pyramids.get("budget") or PYRAMIDS_DEFAULT_COST)
        if pyramids
        else PYRAMIDS_OF_GIZA.model_copy(deep=True),
        SiteCandidate.from_document(museum, cost_egp=museum.get("budget") or MUSEUM_DEFAULT_COST)
        if museum
        else EGYPTIAN_MUSEUM.model_copy(deep=True),
    ]
    logger.info("Day-one sites prepared: %s", [site.name for site in sites])
    return sites


def get_regional_fallback_sites(day_number: int, rng: random.Random) -> list[SiteCandidate]:
    """검색/선택 결과가 없을 때 일자별 지역 대체 명소 2곳을 만듭니다.

    좌표는 대략적인 값이며 주입된 난수원으로 흔들어 생성합니다.
    """
    index = min(max(day_number - 2, 0), len(REGIONAL_FALLBACKS) - 1)
    city, names = REGIONAL_FALLBACKS[index]
    logger.info("Regional fallback sites: day=%d city=%s", day_number, city)
    return [
        SiteCandidate(
            name=name,
            city=city,
            governorate=city,
            description=f"Historic site in {city}",
            similarity_score=FALLBACK_SCORE,
            activities=["Exploring", "Photography"],
            opening_time="08:00",
            closing_time="17:00",
            average_time_spent_hours=2.5,
            cost_egp=cost,
            latitude=30.0 + rng.random() * 2,
            longitude=31.0 + rng.random() * 2,
        )
        for name, cost in zip(names, FALLBACK_COSTS)
    ]
