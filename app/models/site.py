# app/models/site.py
from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


# 관광 명소 테이블 정의
class Site(Base):
    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # 명소 기본 정보
    name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)  # 예: Karnak Temple
    city: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)  # 예: Luxor
    governorate: Mapped[str | None] = mapped_column(String(100), nullable=True)  # 예: Luxor
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 활동 태그 목록 (예: ["Exploring", "Photography"])
    activities: Mapped[list | None] = mapped_column(JSON, nullable=True)

    opening_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    closing_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    average_time_spent_hours: Mapped[float | None] = mapped_column(Float, nullable=True)

    # 입장료 (EGP)와 연령 제한
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    age_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # 관심사 임베딩 벡터 (차원 고정하지 않음, 길이가 다른 벡터는 랭킹에서 제외)
    # 후보 수가 적어 선형 스캔으로 비교하므로 인덱스를 두지 않습니다.
    search_embedding: Mapped[list[float] | None] = mapped_column(Vector(), nullable=True)

    def __repr__(self):
        return f"<Site(name={self.name}, city={self.city})>"
