import uuid
from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from bootcamp_api.db.session import Base
from bootcamp_api.models.common import UUIDMixin, TimestampMixin

SKILL_LEVELS = ("beginner", "intermediate", "advanced")

class Course(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "courses"
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    weeks: Mapped[str] = mapped_column(String(20), nullable=False)
    tuition: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_skill: Mapped[str] = mapped_column(String(20), nullable=False)  # beginner|intermediate|advanced
    scholarship_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bootcamps.id", ondelete="CASCADE"), nullable=False, index=True
    )

    bootcamp = relationship("Bootcamp", back_populates="courses")
