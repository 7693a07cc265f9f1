# app/models/restaurant.py
from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


# 식당 테이블 정의
class Restaurant(Base):
    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 1인 평균 비용 (EGP)
    average_budget_egp: Mapped[float | None] = mapped_column(Float, nullable=True)

    # 식사 유형: breakfast, lunch, dinner 중 하나
    type: Mapped[str | None] = mapped_column(String(20), index=True, nullable=True)
    price_range: Mapped[str | None] = mapped_column(String(20), nullable=True)  # Budget / Moderate / Upscale

    opening_hours: Mapped[str | None] = mapped_column(String(10), nullable=True)
    closing_hours: Mapped[str | None] = mapped_column(String(10), nullable=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self):
        return f"<Restaurant(name={self.name}, city={self.city}, type={self.type})>"
