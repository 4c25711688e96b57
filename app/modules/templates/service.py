import uuid
import logging
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.base import utcnow
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError, StateError, DuplicateError
from app.modules.apps.repository import AppRepository
from app.modules.templates.models import Template, TemplateTag, TagDatatype, TEMPLATE_STATUSES
from app.modules.templates.repository import TemplateRepository
from app.modules.templates.schemas import TemplateOut, TagInfo
from app.modules.templates.markup import process_body
from app.modules.templates.tagging import extract_tags

logger = logging.getLogger(__name__)

def _blank(value: str | None) -> bool:
    return value is None or not value.strip()

def to_out(t: Template, tags: Sequence[TemplateTag]) -> TemplateOut:
    return TemplateOut(
        id=t.id,
        app_id=t.app_id,
        name=t.name,
        subject=t.subject,
        body=t.body,
        status=t.status,
        is_deleted=t.is_deleted,
        tags=[TagInfo(tag_name=tag.tag_name, datatype=tag.datatype.value) for tag in tags],
        created_at=t.created_at,
        updated_at=t.updated_at,
        created_by=t.created_by,
        updated_by=t.updated_by,
    )

class TemplateService:
    def __init__(self, session: AsyncSession):
        self.repo = TemplateRepository(session)
        self.apps = AppRepository(session)
        self.session = session

    def _check_lengths(self, subject: str | None, body: str | None) -> None:
        if subject is not None and len(subject) > settings.MAX_SUBJECT_LENGTH:
            raise ValidationError(f"Subject cannot exceed {settings.MAX_SUBJECT_LENGTH} characters.")
        if body is not None and len(body) > settings.MAX_BODY_LENGTH:
            raise ValidationError(f"Body cannot exceed {settings.MAX_BODY_LENGTH} characters.")

    async def _get(self, template_id: uuid.UUID) -> Template:
        t = await self.repo.get(template_id)
        if not t:
            raise NotFoundError(f"Template not found with ID: {template_id}")
        return t

    async def create(self, *, app_id: uuid.UUID, name: str, subject: str, body: str,
                     status: str | None = None, actor: str) -> TemplateOut:
        logger.debug(f"Creating template '{name}' for app {app_id}")
        if _blank(name):
            raise ValidationError("Template name is required")
        if _blank(subject):
            raise ValidationError("Subject is required")
        if _blank(body):
            raise ValidationError("Body is required")
        self._check_lengths(subject, body)

        status = status.upper() if status and status.strip() else "DRAFT"
        if status not in ("ACTIVE", "DRAFT"):
            raise ValidationError("Status must be either ACTIVE or DRAFT.")

        app = await self.apps.get(app_id)
        if not app:
            raise NotFoundError("App not found")
        if not app.is_active or app.is_deleted:
            raise StateError("Cannot create template for an inactive application.")
        if await self.repo.exists_by_app_and_name(app_id, name):
            raise DuplicateError(f"Template with name '{name}' already exists for this app.")

        body = process_body(body)
        t = await self.repo.create(
            app_id=app_id,
            name=name,
            subject=subject,
            body=body,
            status=status,
            is_active=status == "ACTIVE",
            is_deleted=False,
            created_by=actor,
        )
        tags = await self.repo.replace_tags(t.id, extract_tags(subject, body))
        await self.session.commit()
        logger.info(f"Template '{t.name}' ({t.id}) created with status {t.status} and {len(tags)} tags")
        return to_out(t, tags)

    async def update(self, template_id: uuid.UUID, *, app_id: uuid.UUID | None = None, name: str | None = None,
                     subject: str | None = None, body: str | None = None, status: str | None = None,
                     actor: str) -> TemplateOut:
        t = await self._get(template_id)
        if t.is_deleted:
            raise StateError("Cannot edit a DELETED template")
        self._check_lengths(subject, body)

        if t.status == "ARCHIVED" and (status is None or any(v is not None for v in (name, subject, body, app_id))):
            raise StateError("Cannot edit properties of an ARCHIVED template. Only status can be changed.")
        if app_id is not None:
            raise StateError("App ID cannot be changed for an existing template")
        if name is None and subject is None and body is None and status is None:
            raise ValidationError("No fields to update")
        if body is not None and not _blank(body):
            body = process_body(body)

        new_status = status.upper() if status is not None else None
        name_changed = name is not None and name != t.name
        subject_changed = subject is not None and subject != t.subject
        body_changed = body is not None and body != t.body
        status_changed = new_status is not None and new_status != t.status
        if not (name_changed or subject_changed or body_changed or status_changed):
            raise StateError("Nothing is changed")

        if name is not None:
            if _blank(name):
                raise ValidationError("Template name cannot be empty")
            if name_changed:
                if await self.repo.exists_by_app_and_name(t.app_id, name):
                    raise DuplicateError(f"Template with name '{name}' already exists for this app.")
                t.name = name
        if subject is not None:
            if _blank(subject):
                raise ValidationError("Subject cannot be empty")
            if subject_changed:
                t.subject = subject
        if body is not None:
            if _blank(body):
                raise ValidationError("Body cannot be empty")
            if body_changed:
                t.body = body

        if new_status is not None:
            if new_status == "DELETED":
                raise StateError("Cannot change status to DELETED via update. Use the delete endpoint instead.")
            if new_status not in TEMPLATE_STATUSES:
                raise ValidationError("Invalid status value. Allowed values: ACTIVE, ARCHIVED, DRAFT")
            if status_changed:
                if new_status == "ACTIVE" and (_blank(t.subject) or _blank(t.body)):
                    raise ValidationError("Template cannot be set to ACTIVE status with empty subject or body")
                t.status = new_status
                t.is_active = new_status == "ACTIVE"
                t.is_deleted = False

        t.updated_at = utcnow()
        t.updated_by = actor
        await self.session.flush()

        if subject_changed or body_changed:
            tags = await self.repo.replace_tags(t.id, extract_tags(t.subject, t.body))
        else:
            tags = await self.repo.get_tags(t.id)
        await self.session.commit()
        logger.info(f"Template {template_id} updated")
        return to_out(t, tags)

    async def get(self, template_id: uuid.UUID) -> TemplateOut:
        t = await self._get(template_id)
        return to_out(t, await self.repo.get_tags(t.id))

    async def list(self, *, app_id: uuid.UUID | None = None, status: str | None = None, name: str | None = None,
                   limit: int = 50, offset: int = 0) -> list[TemplateOut]:
        if app_id is not None:
            app = await self.apps.get(app_id)
            if not app:
                raise NotFoundError(f"Application not found with ID: {app_id}")
            if app.is_deleted:
                raise StateError("Cannot filter templates for a deleted application")
        include_deleted = False
        if status and status.strip():
            if status.upper() not in TEMPLATE_STATUSES:
                raise ValidationError("Invalid status value. Allowed values: ACTIVE, ARCHIVED, DRAFT, DELETED")
            include_deleted = status.upper() == "DELETED"
        rows = await self.repo.list(app_id=app_id, status=status or None, name=name,
                                    include_deleted=include_deleted, limit=limit, offset=offset)
        return [to_out(t, await self.repo.get_tags(t.id)) for t in rows]

    async def get_tags(self, template_id: uuid.UUID) -> Sequence[TagInfo]:
        t = await self._get(template_id)
        return [TagInfo(tag_name=tag.tag_name, datatype=tag.datatype.value) for tag in await self.repo.get_tags(t.id)]

    async def update_tag_types(self, template_id: uuid.UUID, tag_types: dict[str, str], *, actor: str) -> TemplateOut:
        t = await self._get(template_id)
        tags = {tag.tag_name: tag for tag in await self.repo.get_tags(t.id)}
        for tag_name, raw in tag_types.items():
            try:
                datatype = TagDatatype((raw or "").upper())
            except ValueError:
                raise ValidationError(f"Invalid datatype: {raw}. Allowed: STRING, NUMBER, BOOLEAN")
            tag = tags.get(tag_name)
            if tag is None:
                raise NotFoundError(f"Tag '{tag_name}' not found in this template")
            tag.datatype = datatype
        t.updated_at = utcnow()
        t.updated_by = actor
        await self.session.flush()
        await self.session.commit()
        return to_out(t, list(tags.values()))

    async def delete(self, template_id: uuid.UUID, *, actor: str) -> None:
        t = await self._get(template_id)
        if t.is_deleted:
            raise StateError("Template already deleted")
        t.status = "DELETED"
        t.is_active = False
        t.is_deleted = True
        t.updated_at = utcnow()
        t.updated_by = actor
        await self.session.commit()
        logger.info(f"Template {template_id} soft-deleted by {actor}")
