from fastapi import APIRouter

from passcode_service.presentation.routers.v1.passcodes import router as passcodes_router
from passcode_service.presentation.routers.wechat import router as wechat_router
from passcode_service.presentation.routes.health import router as health_router

api = APIRouter()

# Add all v1 routers here
routers = (passcodes_router,)
for router in routers:
    api.include_router(router, prefix="/v1")

api.include_router(wechat_router)
api.include_router(health_router)
