# app/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """명소/식당 컬렉션 모델이 공유하는 선언적 기본 클래스.

    `Site`와 `Restaurant` 모델이 같은 메타데이터 레지스트리를 사용하므로
    테스트에서는 `Base.metadata.create_all`로 두 테이블을 한 번에 만들 수 있습니다.
    """

    pass
