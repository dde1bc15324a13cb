from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from unihaven.db.database import Base
from unihaven.models.base import TimestampMixin

if TYPE_CHECKING:
    from unihaven.models.ad import Ad
    from unihaven.models.user import User


class Advertiser(Base, TimestampMixin):
    __tablename__ = "advertisers"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    national_id: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    user: Mapped[Optional["User"]] = relationship(back_populates="advertisers")
    ads: Mapped[List["Ad"]] = relationship(
        back_populates="advertiser", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Advertiser {self.business_name}>"
