import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.notifications.schemas import (
    SendRequest, BulkSendRequest, DispatchResult, RetryResult, HealthSummary, DeliveryRecordOut,
)
from app.modules.notifications.service import NotificationsService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> NotificationsService:
    return NotificationsService(session)

# dispatch endpoints authenticate by the api key in the body
@router.post("/send", response_model=DispatchResult)
async def send(payload: SendRequest, service: NotificationsService = Depends(svc)):
    return await service.send(
        api_key=payload.api_key,
        template_id=payload.template_id,
        recipient=payload.recipient,
        recipients=payload.recipients,
        placeholders=payload.placeholders,
    )

@router.post("/send/bulk", response_model=DispatchResult)
async def send_bulk(payload: BulkSendRequest, service: NotificationsService = Depends(svc)):
    return await service.send_bulk(
        api_key=payload.api_key,
        template_id=payload.template_id,
        recipients=[r.model_dump() for r in payload.recipients],
        global_placeholders=payload.global_placeholders,
    )

@router.post("/{record_id}/retry", response_model=RetryResult)
async def retry(record_id: uuid.UUID, service: NotificationsService = Depends(svc)):
    return await service.retry(record_id)

@router.get("/health", response_model=HealthSummary)
async def health(
    app_id: uuid.UUID | None = None,
    template_id: uuid.UUID | None = None,
    service: NotificationsService = Depends(svc),
):
    return await service.health(app_id=app_id, template_id=template_id)

@router.get("/logs", response_model=list[DeliveryRecordOut], dependencies=[Depends(require_scopes("notifications:read"))])
async def list_notifications(
    app_id: uuid.UUID | None = None,
    template_id: uuid.UUID | None = None,
    recipient: str | None = None,
    subject: str | None = None,
    status: str | None = None,
    sort_by: str = "created_at",
    sort_dir: str = "asc",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: NotificationsService = Depends(svc),
):
    return await service.list(app_id=app_id, template_id=template_id, recipient=recipient,
                              subject=subject, status=status, sort_by=sort_by, sort_dir=sort_dir,
                              limit=limit, offset=offset)

@router.get("/{record_id}", response_model=DeliveryRecordOut, dependencies=[Depends(require_scopes("notifications:read"))])
async def get_notification(record_id: uuid.UUID, service: NotificationsService = Depends(svc)):
    return await service.get(record_id)
