from fastapi import APIRouter

from unihaven.api.admin import router as admin_router
from unihaven.api.ads import router as ads_router
from unihaven.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(admin_router)
api_router.include_router(users_router)
api_router.include_router(ads_router)
