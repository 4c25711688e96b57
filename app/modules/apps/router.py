import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.apps.schemas import AppCreate, AppUpdate, AppOut
from app.modules.apps.service import AppService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AppService:
    return AppService(session)

@router.post("", response_model=AppOut, status_code=201, dependencies=[Depends(require_scopes("apps:write"))])
async def register_app(
    payload: AppCreate,
    principal: Principal = Depends(get_principal),
    service: AppService = Depends(svc),
):
    return await service.register(payload.name, actor=principal.actor)

@router.get("", response_model=list[AppOut], dependencies=[Depends(require_scopes("apps:read"))])
async def list_apps(
    id: uuid.UUID | None = None,
    name: str | None = None,
    status: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: AppService = Depends(svc),
):
    return await service.list(app_id=id, name=name, status=status, limit=limit, offset=offset)

@router.get("/{app_id}", response_model=AppOut, dependencies=[Depends(require_scopes("apps:read"))])
async def get_app(app_id: uuid.UUID, service: AppService = Depends(svc)):
    return await service.get(app_id)

@router.patch("/{app_id}", response_model=AppOut, dependencies=[Depends(require_scopes("apps:write"))])
async def update_app(
    app_id: uuid.UUID,
    payload: AppUpdate,
    principal: Principal = Depends(get_principal),
    service: AppService = Depends(svc),
):
    return await service.update(app_id, name=payload.name, status=payload.status, actor=principal.actor)

@router.delete("/{app_id}", status_code=204, dependencies=[Depends(require_scopes("apps:write"))])
async def delete_app(
    app_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AppService = Depends(svc),
):
    await service.delete(app_id, actor=principal.actor)
