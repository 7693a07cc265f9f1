"""명소/식당 문서 저장소 추상화와 SQLAlchemy 구현."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, sessionmaker

from app.core.logger import get_logger
from app.database import get_session_local
from app.models.restaurant import Restaurant
from app.models.site import Site

logger = get_logger(__name__)


class DataStoreProtocol(ABC):
    """플래너가 사용하는 문서 조회 인터페이스를 정의합니다.

    모든 메서드는 느슨한 문서(dict)를 반환하며, 기본값 적용은 호출 측의
    정규화 단계(`SiteCandidate.from_document`, `RestaurantCandidate`)에서 한 번만 수행합니다.
    """

    @abstractmethod
    async def find_sites(
        self,
        *,
        city: str | None = None,
        max_cost: float | None = None,
        max_age: int | None = None,
        require_embedding: bool = True,
    ) -> list[dict[str, Any]]:
        """조건에 맞는 명소를 조회합니다.

        Args:
            city: 도시 필터 (None이면 전체)
            max_cost: 입장료 상한
            max_age: 연령 제한 상한 (명소의 `age_limit`이 이 값 이하)
            require_embedding: 임베딩이 있는 문서만 조회할지 여부

        Returns:
            명소 문서 목록
        """
        raise NotImplementedError

    @abstractmethod
    async def find_sites_by_city(self, city: str | None, limit: int) -> list[dict[str, Any]]:
        """도시 조건만으로 최대 `limit`개의 명소를 조회합니다."""
        raise NotImplementedError

    @abstractmethod
    async def find_site_by_name(self, patterns: list[str]) -> dict[str, Any] | None:
        """이름에 패턴 중 하나라도 포함된(대소문자 무시) 첫 번째 명소를 조회합니다."""
        raise NotImplementedError

    @abstractmethod
    async def find_restaurants(
        self,
        *,
        city: str | None,
        meal_type: str | None = None,
        min_cost: float | None = None,
        max_cost: float | None = None,
    ) -> list[dict[str, Any]]:
        """조건에 맞는 식당을 조회합니다.

        Args:
            city: 도시 필터
            meal_type: 식사 유형 필터 (breakfast/lunch/dinner)
            min_cost: 평균 비용 하한
            max_cost: 평균 비용 상한

        Returns:
            식당 문서 목록
        """
        raise NotImplementedError


def _site_to_document(site: Site) -> dict[str, Any]:
    embedding = site.search_embedding
    return {
        "id": str(site.id),
        "name": site.name,
        "city": site.city,
        "governorate": site.governorate,
        "description": site.description,
        "activities": list(site.activities or []),
        "opening_time": site.opening_time,
        "closing_time": site.closing_time,
        "average_time_spent_hours": site.average_time_spent_hours,
        "budget": site.budget,
        "age_limit": site.age_limit,
        "latitude": site.latitude,
        "longitude": site.longitude,
        "embedding": [float(value) for value in embedding] if embedding is not None else None,
    }


def _restaurant_to_document(restaurant: Restaurant) -> dict[str, Any]:
    return {
        "id": str(restaurant.id),
        "name": restaurant.name,
        "city": restaurant.city,
        "description": restaurant.description,
        "average_budget_egp": restaurant.average_budget_egp,
        "type": restaurant.type,
        "price_range": restaurant.price_range,
        "opening_hours": restaurant.opening_hours,
        "closing_hours": restaurant.closing_hours,
        "latitude": restaurant.latitude,
        "longitude": restaurant.longitude,
    }


class SqlDataStore(DataStoreProtocol):
    """SQLAlchemy 세션 기반 문서 저장소.

    프로세스 시작 시 한 번 생성해 플래너에 주입합니다. 동기 쿼리는
    `asyncio.to_thread`로 실행해 이벤트 루프를 막지 않습니다.

    세션 팩토리를 생략하면 첫 쿼리에서 설정 기반 엔진으로 만듭니다. 엔진 생성 오류는
    해당 쿼리의 예외로 전달되어 호출 측의 대체 경로가 처리합니다.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def _session(self) -> Session:
        if self._session_factory is None:
            self._session_factory = get_session_local()
        return self._session_factory()

    async def find_sites(
        self,
        *,
        city: str | None = None,
        max_cost: float | None = None,
        max_age: int | None = None,
        require_embedding: bool = True,
    ) -> list[dict[str, Any]]:
        def _query() -> list[dict[str, Any]]:
            stmt = select(Site)
            if require_embedding:
                stmt = stmt.where(Site.search_embedding.is_not(None))
            if city:
                stmt = stmt.where(func.lower(Site.city) == city.lower())
            if max_cost is not None:
                stmt = stmt.where(Site.budget <= max_cost)
            if max_age is not None:
                stmt = stmt.where(Site.age_limit <= max_age)
            with self._session() as session:
                return [_site_to_document(site) for site in session.scalars(stmt.order_by(Site.id))]

        return await asyncio.to_thread(_query)

    async def find_sites_by_city(self, city: str | None, limit: int) -> list[dict[str, Any]]:
        def _query() -> list[dict[str, Any]]:
            stmt = select(Site)
            if city:
                stmt = stmt.where(func.lower(Site.city) == city.lower())
            with self._session() as session:
                return [_site_to_document(site) for site in session.scalars(stmt.order_by(Site.id).limit(limit))]

        return await asyncio.to_thread(_query)

    async def find_site_by_name(self, patterns: list[str]) -> dict[str, Any] | None:
        if not patterns:
            return None

        def _query() -> dict[str, Any] | None:
            conditions = [func.lower(Site.name).contains(pattern.lower()) for pattern in patterns]
            stmt = select(Site).where(or_(*conditions)).order_by(Site.id).limit(1)
            with self._session() as session:
                site = session.scalars(stmt).first()
                return _site_to_document(site) if site is not None else None

        return await asyncio.to_thread(_query)

    async def find_restaurants(
        self,
        *,
        city: str | None,
        meal_type: str | None = None,
        min_cost: float | None = None,
        max_cost: float | None = None,
    ) -> list[dict[str, Any]]:
        def _query() -> list[dict[str, Any]]:
            stmt = select(Restaurant)
            if city:
                stmt = stmt.where(func.lower(Restaurant.city) == city.lower())
            if meal_type:
                stmt = stmt.where(func.lower(Restaurant.type) == str(meal_type).lower())
            if min_cost is not None:
                stmt = stmt.where(Restaurant.average_budget_egp >= min_cost)
            if max_cost is not None:
                stmt = stmt.where(Restaurant.average_budget_egp <= max_cost)
            with self._session() as session:
                return [_restaurant_to_document(row) for row in session.scalars(stmt.order_by(Restaurant.id))]

        return await asyncio.to_thread(_query)


@lru_cache
def get_data_store() -> DataStoreProtocol:
    """프로세스 전역 `SqlDataStore`를 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다."""
    logger.info("Initializing SQL data store")
    return SqlDataStore()
