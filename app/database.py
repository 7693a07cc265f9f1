from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings


@lru_cache
def get_engine() -> Engine:
    """`SQLAlchemy` 엔진을 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다.

    Raises:
        RuntimeError: `DATABASE_URL`이 설정되지 않은 경우.
    """
    database_url = get_settings().DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL이 설정되지 않았습니다.")
    return create_engine(database_url, pool_pre_ping=True)


def get_session_local(engine: Engine | None = None) -> sessionmaker[Session]:
    """`SessionLocal` 팩토리를 반환한다. 엔진을 생략하면 설정 기반 엔진을 사용한다."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine or get_engine())
