import uuid
from typing import Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.apps.models import App

class AppRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> App:
        obj = App(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, app_id: uuid.UUID) -> App | None:
        return await self.session.get(App, app_id)

    async def get_by_api_key(self, api_key: str) -> App | None:
        res = await self.session.execute(select(App).where(App.api_key == api_key))
        return res.scalar_one_or_none()

    async def get_by_name(self, name: str) -> App | None:
        res = await self.session.execute(select(App).where(App.name == name))
        return res.scalars().first()

    async def list(self, *, app_id: uuid.UUID | None = None, name: str | None = None, status: str | None = None,
                   include_deleted: bool = False, limit: int = 50, offset: int = 0) -> Sequence[App]:
        q = select(App)
        if app_id is not None:
            q = q.where(App.id == app_id)
        if name:
            q = q.where(func.lower(App.name).contains(name.lower()))
        if status:
            q = q.where(App.status == status.upper())
        if not include_deleted:
            q = q.where(App.is_deleted.is_(False))
        q = q.order_by(App.created_at.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()
