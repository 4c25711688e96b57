import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.templates.schemas import TemplateCreate, TemplateUpdate, TemplateOut, TagInfo, TagTypesUpdate
from app.modules.templates.service import TemplateService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> TemplateService:
    return TemplateService(session)

@router.post("", response_model=TemplateOut, status_code=201, dependencies=[Depends(require_scopes("templates:write"))])
async def create_template(
    payload: TemplateCreate,
    principal: Principal = Depends(get_principal),
    service: TemplateService = Depends(svc),
):
    return await service.create(actor=principal.actor, **payload.model_dump())

@router.get("", response_model=list[TemplateOut], dependencies=[Depends(require_scopes("templates:read"))])
async def list_templates(
    app_id: uuid.UUID | None = None,
    status: str | None = None,
    name: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: TemplateService = Depends(svc),
):
    return await service.list(app_id=app_id, status=status, name=name, limit=limit, offset=offset)

@router.get("/{template_id}", response_model=TemplateOut, dependencies=[Depends(require_scopes("templates:read"))])
async def get_template(template_id: uuid.UUID, service: TemplateService = Depends(svc)):
    return await service.get(template_id)

@router.patch("/{template_id}", response_model=TemplateOut, dependencies=[Depends(require_scopes("templates:write"))])
async def update_template(
    template_id: uuid.UUID,
    payload: TemplateUpdate,
    principal: Principal = Depends(get_principal),
    service: TemplateService = Depends(svc),
):
    return await service.update(template_id, actor=principal.actor, **payload.model_dump())

@router.get("/{template_id}/tags", response_model=list[TagInfo], dependencies=[Depends(require_scopes("templates:read"))])
async def get_template_tags(template_id: uuid.UUID, service: TemplateService = Depends(svc)):
    return await service.get_tags(template_id)

@router.patch("/{template_id}/tags", response_model=TemplateOut, dependencies=[Depends(require_scopes("templates:write"))])
async def update_template_tags(
    template_id: uuid.UUID,
    payload: TagTypesUpdate,
    principal: Principal = Depends(get_principal),
    service: TemplateService = Depends(svc),
):
    return await service.update_tag_types(template_id, payload.tag_types, actor=principal.actor)

@router.delete("/{template_id}", status_code=204, dependencies=[Depends(require_scopes("templates:write"))])
async def delete_template(
    template_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: TemplateService = Depends(svc),
):
    await service.delete(template_id, actor=principal.actor)
