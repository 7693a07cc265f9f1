"""여행 일수를 도시별 연속 블록으로 배분하는 정책."""

from __future__ import annotations

from app.core.logger import get_logger

logger = get_logger(__name__)


def allocate_cities(cities: list[str] | None, total_days: int) -> list[str | None]:
    """N일을 M개 도시에 연속 블록으로 배분합니다.

    나머지 일수는 앞에 나열된 도시부터 하루씩 더 받습니다.
    도시가 없거나 하나뿐이면 모든 날을 그 도시(또는 None)로 채웁니다.
    """
    days = max(0, int(total_days))
    if not cities or len(cities) <= 1:
        city = cities[0] if cities else None
        logger.info("Single city allocation: city=%s days=%d", city or "any", days)
        return [city] * days

    base_days, extra_days = divmod(days, len(cities))
    allocation: list[str | None] = []
    for index, city in enumerate(cities):
        days_for_city = base_days + (1 if index < extra_days else 0)
        allocation.extend([city] * days_for_city)

    logger.info(
        "City allocation: days=%d cities=%d base=%d extra=%d blocks=%s",
        days,
        len(cities),
        base_days,
        extra_days,
        " -> ".join(_describe_blocks(allocation)),
    )
    return allocation


def _describe_blocks(allocation: list[str | None]) -> list[str]:
    blocks: list[str] = []
    start = 0
    for index in range(1, len(allocation) + 1):
        if index == len(allocation) or allocation[index] != allocation[start]:
            blocks.append(f"{allocation[start]}:{start + 1}-{index}")
            start = index
    return blocks
