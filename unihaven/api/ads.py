from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unihaven.config import get_settings
from unihaven.db.database import get_db
from unihaven.models.ad import Ad, AdType
from unihaven.models.advertiser import Advertiser
from unihaven.models.base import to_naive_utc, utcnow
from unihaven.scheduler.lifecycle import derive_ad_status

router = APIRouter(prefix="/api", tags=["ads"])


class CreateAdvertiserRequest(BaseModel):
    business_name: str
    national_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[int] = None


class AdvertiserResponse(BaseModel):
    id: int
    business_name: str
    email: Optional[str]
    phone: Optional[str]
    user_id: Optional[int]


class CreateAdRequest(BaseModel):
    advertiser_id: int
    title: str
    end_date: datetime
    description: Optional[str] = None
    ad_type: AdType = AdType.POSTER
    campus: Optional[str] = None
    media_url: Optional[str] = None
    start_date: Optional[datetime] = None


class AdResponse(BaseModel):
    id: int
    advertiser_id: int
    title: str
    ad_type: AdType
    campus: Optional[str]
    start_date: datetime
    end_date: datetime
    active: bool
    last_reminder_sent_at: Optional[datetime]
    status: str


def _advertiser_response(advertiser: Advertiser) -> AdvertiserResponse:
    return AdvertiserResponse(
        id=advertiser.id,
        business_name=advertiser.business_name,
        email=advertiser.email,
        phone=advertiser.phone,
        user_id=advertiser.user_id,
    )


def _ad_response(ad: Ad) -> AdResponse:
    window = timedelta(days=get_settings().ad_reminder_window_days)
    status = derive_ad_status(
        ad.active, ad.end_date, ad.last_reminder_sent_at, utcnow(), window
    )
    return AdResponse(
        id=ad.id,
        advertiser_id=ad.advertiser_id,
        title=ad.title,
        ad_type=ad.ad_type,
        campus=ad.campus,
        start_date=ad.start_date,
        end_date=ad.end_date,
        active=ad.active,
        last_reminder_sent_at=ad.last_reminder_sent_at,
        status=status.phase.value,
    )


@router.post("/advertisers", status_code=201)
async def create_advertiser(
    body: CreateAdvertiserRequest, db: AsyncSession = Depends(get_db)
):
    advertiser = Advertiser(
        business_name=body.business_name,
        national_id=body.national_id,
        email=body.email,
        phone=body.phone,
        user_id=body.user_id,
    )
    db.add(advertiser)
    await db.commit()
    await db.refresh(advertiser)
    return _advertiser_response(advertiser)


@router.get("/advertisers/{advertiser_id}")
async def get_advertiser(advertiser_id: int, db: AsyncSession = Depends(get_db)):
    advertiser = await db.get(Advertiser, advertiser_id)
    if not advertiser:
        raise HTTPException(status_code=404, detail="Advertiser not found")
    return _advertiser_response(advertiser)


@router.get("/advertisers/{advertiser_id}/ads")
async def list_advertiser_ads(advertiser_id: int, db: AsyncSession = Depends(get_db)):
    if not await db.get(Advertiser, advertiser_id):
        raise HTTPException(status_code=404, detail="Advertiser not found")

    result = await db.execute(
        select(Ad).where(Ad.advertiser_id == advertiser_id).order_by(Ad.end_date.asc())
    )
    return {"items": [_ad_response(ad) for ad in result.scalars().all()]}


@router.post("/ads", status_code=201)
async def create_ad(body: CreateAdRequest, db: AsyncSession = Depends(get_db)):
    if not await db.get(Advertiser, body.advertiser_id):
        raise HTTPException(status_code=404, detail="Advertiser not found")

    now = utcnow()
    end_date = to_naive_utc(body.end_date)
    start_date = to_naive_utc(body.start_date) if body.start_date else now
    if end_date <= now:
        raise HTTPException(status_code=400, detail="end_date must be in the future")
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    ad = Ad(
        advertiser_id=body.advertiser_id,
        title=body.title,
        description=body.description,
        ad_type=body.ad_type,
        campus=body.campus,
        media_url=body.media_url,
        start_date=start_date,
        end_date=end_date,
        active=True,
    )
    db.add(ad)
    await db.commit()
    await db.refresh(ad)
    return _ad_response(ad)


@router.get("/ads/{ad_id}")
async def get_ad(ad_id: int, db: AsyncSession = Depends(get_db)):
    ad = await db.get(Ad, ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Ad not found")
    return _ad_response(ad)


@router.delete("/ads/{ad_id}", status_code=204)
async def delete_ad(ad_id: int, db: AsyncSession = Depends(get_db)):
    ad = await db.get(Ad, ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Ad not found")
    await db.delete(ad)
    await db.commit()
