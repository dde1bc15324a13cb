from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from unihaven.db.database import Base
from unihaven.models.base import TimestampMixin

if TYPE_CHECKING:
    from unihaven.models.advertiser import Advertiser


class UserRole(enum.Enum):
    STUDENT = "STUDENT"
    HOSTEL_OWNER = "HOSTEL_OWNER"
    CARETAKER = "CARETAKER"
    ADVERTISER = "ADVERTISER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    REGULAR = "REGULAR"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[Optional[str]] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.STUDENT, nullable=False
    )
    is_suspended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # NULL while suspended means indefinite: only an admin can lift it
    suspended_until: Mapped[Optional[datetime]] = mapped_column(DateTime)

    advertisers: Mapped[List["Advertiser"]] = relationship(back_populates="user")

    @property
    def display_name(self) -> str:
        return self.username or self.full_name

    def __repr__(self) -> str:
        return f"<User {self.id}:{self.email}>"
