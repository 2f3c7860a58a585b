from sqlalchemy import JSON, Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from bootcamp_api.db.session import Base
from bootcamp_api.models.common import ARRAY_COLUMN, UUIDMixin, TimestampMixin

CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)
DEFAULT_PHOTO = "no-photo.jpg"

class Bootcamp(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "bootcamps"
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    website: Mapped[str | None] = mapped_column(String(300), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Geocoded location; the raw address is never stored.
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    formatted_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    zipcode: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(50), nullable=True)

    careers: Mapped[list] = mapped_column(JSON, nullable=False, default=list, info=ARRAY_COLUMN)
    average_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    average_cost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    photo: Mapped[str] = mapped_column(String(500), nullable=False, default=DEFAULT_PHOTO)
    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    courses = relationship(
        "Course",
        back_populates="bootcamp",
        cascade="all, delete-orphan",
    )
