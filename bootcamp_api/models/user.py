from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column
from bootcamp_api.db.session import Base
from bootcamp_api.models.common import UUIDMixin, TimestampMixin

ROLE_USER = "user"
ROLE_PUBLISHER = "publisher"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_PUBLISHER, ROLE_ADMIN)

class User(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "users"
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)  # user|publisher|admin
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
