import uuid
from typing import Iterable, Sequence
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.templates.models import Template, TemplateTag, TagDatatype

class TemplateRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Template:
        obj = Template(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, template_id: uuid.UUID) -> Template | None:
        return await self.session.get(Template, template_id)

    async def exists_by_app_and_name(self, app_id: uuid.UUID, name: str) -> bool:
        q = select(func.count()).select_from(Template).where(Template.app_id == app_id, Template.name == name)
        res = await self.session.execute(q)
        return res.scalar_one() > 0

    async def list_for_app(self, app_id: uuid.UUID) -> Sequence[Template]:
        res = await self.session.execute(select(Template).where(Template.app_id == app_id))
        return res.scalars().all()

    async def list(self, *, app_id: uuid.UUID | None = None, status: str | None = None, name: str | None = None,
                   include_deleted: bool = False, limit: int = 50, offset: int = 0) -> Sequence[Template]:
        q = select(Template)
        if app_id is not None:
            q = q.where(Template.app_id == app_id)
        if status:
            q = q.where(Template.status == status.upper())
        if name:
            q = q.where(func.lower(Template.name).contains(name.lower()))
        if not include_deleted:
            q = q.where(Template.is_deleted.is_(False))
        q = q.order_by(Template.created_at.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    # ---- tags ----

    async def get_tags(self, template_id: uuid.UUID) -> Sequence[TemplateTag]:
        q = select(TemplateTag).where(TemplateTag.template_id == template_id).order_by(TemplateTag.tag_name)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def get_tag_types(self, template_id: uuid.UUID) -> dict[str, TagDatatype]:
        return {t.tag_name: t.datatype for t in await self.get_tags(template_id)}

    async def replace_tags(self, template_id: uuid.UUID, tag_names: Iterable[str]) -> Sequence[TemplateTag]:
        """Delete-all-then-insert; runs inside the caller's transaction."""
        await self.session.execute(delete(TemplateTag).where(TemplateTag.template_id == template_id))
        tags = [
            TemplateTag(template_id=template_id, tag_name=name, datatype=TagDatatype.STRING)
            for name in sorted(set(tag_names))
        ]
        self.session.add_all(tags)
        await self.session.flush()
        return tags
