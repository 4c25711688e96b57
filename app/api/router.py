from fastapi import APIRouter
from app.modules.apps.router import router as apps_router
from app.modules.templates.router import router as templates_router
from app.modules.notifications.router import router as notifications_router

api_router = APIRouter()
api_router.include_router(apps_router, prefix="/apps", tags=["apps"])
api_router.include_router(templates_router, prefix="/templates", tags=["templates"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
