import uuid
from typing import Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.notifications.models import DeliveryRecord

class DeliveryRecordRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> DeliveryRecord:
        obj = DeliveryRecord(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, record_id: uuid.UUID) -> DeliveryRecord | None:
        return await self.session.get(DeliveryRecord, record_id)

    async def list(self, *, app_id: uuid.UUID | None = None, template_id: uuid.UUID | None = None,
                   recipient: str | None = None, subject: str | None = None, status: str | None = None,
                   sort_by: str = "created_at", descending: bool = False,
                   limit: int = 50, offset: int = 0) -> Sequence[DeliveryRecord]:
        q = select(DeliveryRecord)
        if app_id is not None:
            q = q.where(DeliveryRecord.app_id == app_id)
        if template_id is not None:
            q = q.where(DeliveryRecord.template_id == template_id)
        if recipient:
            q = q.where(func.lower(DeliveryRecord.recipient).contains(recipient.lower()))
        if subject:
            q = q.where(func.lower(DeliveryRecord.subject).contains(subject.lower()))
        if status:
            q = q.where(DeliveryRecord.status == status.upper())
        column = getattr(DeliveryRecord, sort_by)
        q = q.order_by(column.desc() if descending else column.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def count_by_status(self, *, app_id: uuid.UUID | None = None,
                              template_id: uuid.UUID | None = None) -> dict[str, int]:
        q = select(DeliveryRecord.status, func.count()).group_by(DeliveryRecord.status)
        if app_id is not None:
            q = q.where(DeliveryRecord.app_id == app_id)
        if template_id is not None:
            q = q.where(DeliveryRecord.template_id == template_id)
        res = await self.session.execute(q)
        return {status: count for status, count in res.all()}
