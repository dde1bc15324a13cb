from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unihaven.api.admin import require_admin_key
from unihaven.db.database import get_db
from unihaven.models.base import to_naive_utc, utcnow
from unihaven.models.notification_log import NotificationType
from unihaven.models.user import User, UserRole
from unihaven.notifications.dispatcher import NotificationDispatcher
from unihaven.notifications.formatter import (
    format_account_reinstated,
    format_account_suspended,
)
from unihaven.scheduler.lifecycle import is_user_active

router = APIRouter(prefix="/api", tags=["users"])


class CreateUserRequest(BaseModel):
    full_name: str
    email: str
    username: Optional[str] = None
    role: UserRole = UserRole.STUDENT


class SuspendRequest(BaseModel):
    # None suspends indefinitely
    until: Optional[datetime] = None


class UserResponse(BaseModel):
    id: int
    username: Optional[str]
    full_name: str
    email: str
    role: UserRole
    is_suspended: bool
    suspended_until: Optional[datetime]


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        is_suspended=user.is_suspended,
        suspended_until=user.suspended_until,
    )


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/users", status_code=201)
async def create_user(body: CreateUserRequest, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        full_name=body.full_name,
        email=body.email,
        username=body.username,
        role=body.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return _user_response(user)


@router.get("/users/{user_id}")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return _user_response(await _get_user_or_404(db, user_id))


@router.get("/users/{user_id}/status")
async def get_user_status(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await _get_user_or_404(db, user_id)
    return {"active": is_user_active(user.is_suspended, user.suspended_until, utcnow())}


@router.post("/users/{user_id}/suspend", dependencies=[Depends(require_admin_key)])
async def suspend_user(
    user_id: int, body: SuspendRequest, db: AsyncSession = Depends(get_db)
):
    user = await _get_user_or_404(db, user_id)

    until = to_naive_utc(body.until) if body.until else None
    if until is not None and until <= utcnow():
        raise HTTPException(status_code=400, detail="Suspension date must be in the future")

    user.is_suspended = True
    user.suspended_until = until
    await db.commit()
    await db.refresh(user)

    dispatcher = NotificationDispatcher(db)
    sent = await dispatcher.dispatch(
        NotificationType.account_suspended,
        user.id,
        user.email,
        user.display_name,
        format_account_suspended(user.display_name, until),
    )
    return {"data": _user_response(user), "email_sent": sent}


@router.post("/users/{user_id}/unsuspend", dependencies=[Depends(require_admin_key)])
async def unsuspend_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await _get_user_or_404(db, user_id)
    user.is_suspended = False
    user.suspended_until = None
    await db.commit()
    await db.refresh(user)

    dispatcher = NotificationDispatcher(db)
    sent = await dispatcher.dispatch(
        NotificationType.account_reinstated,
        user.id,
        user.email,
        user.display_name,
        format_account_reinstated(user.display_name),
    )
    return {"data": _user_response(user), "email_sent": sent}
