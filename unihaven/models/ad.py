from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from unihaven.db.database import Base
from unihaven.models.base import TimestampMixin, utcnow

if TYPE_CHECKING:
    from unihaven.models.advertiser import Advertiser


class AdType(enum.Enum):
    POSTER = "POSTER"
    VIDEO = "VIDEO"
    ROOM = "ROOM"
    SERVICE = "SERVICE"
    GENERAL = "GENERAL"


class Ad(Base, TimestampMixin):
    __tablename__ = "ads"

    id: Mapped[int] = mapped_column(primary_key=True)
    advertiser_id: Mapped[int] = mapped_column(
        ForeignKey("advertisers.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    ad_type: Mapped[AdType] = mapped_column(
        Enum(AdType), default=AdType.POSTER, nullable=False
    )
    campus: Mapped[Optional[str]] = mapped_column(String(255))
    media_url: Mapped[Optional[str]] = mapped_column(Text)
    start_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # Flipped to False once by the reconciler when end_date passes; never reactivated
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    advertiser: Mapped["Advertiser"] = relationship(back_populates="ads")

    def __repr__(self) -> str:
        return f"<Ad {self.id}:{self.title}>"
