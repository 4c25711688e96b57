import uuid
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.base import utcnow
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError, StateError, DuplicateError
from app.modules.apps.models import App, APP_STATUSES
from app.modules.apps.repository import AppRepository
from app.modules.templates.repository import TemplateRepository

logger = logging.getLogger(__name__)

class AppService:
    def __init__(self, session: AsyncSession):
        self.repo = AppRepository(session)
        self.templates = TemplateRepository(session)
        self.session = session

    def _check_name(self, name: str | None) -> str:
        if name is None or not name.strip():
            raise ValidationError("App name cannot be empty.")
        if len(name) > settings.MAX_APP_NAME_LENGTH:
            raise ValidationError(f"App name cannot exceed {settings.MAX_APP_NAME_LENGTH} characters.")
        return name

    async def register(self, name: str, *, actor: str) -> App:
        logger.info(f"Registering new application: {name}")
        self._check_name(name)
        if await self.repo.get_by_name(name):
            raise DuplicateError(f"Application with name '{name}' already exists.")
        obj = await self.repo.create(
            name=name,
            api_key=str(uuid.uuid4()),
            status="ACTIVE",
            is_active=True,
            is_deleted=False,
            created_by=actor,
        )
        await self.session.commit()
        logger.info(f"Registered app '{obj.name}' with id {obj.id}")
        return obj

    async def get(self, app_id: uuid.UUID) -> App:
        obj = await self.repo.get(app_id)
        if not obj:
            raise NotFoundError(f"App not found with id: {app_id}")
        return obj

    async def list(self, *, app_id: uuid.UUID | None = None, name: str | None = None, status: str | None = None,
                   limit: int = 50, offset: int = 0):
        include_deleted = False
        if status and status.strip():
            if status.upper() not in APP_STATUSES:
                raise ValidationError("Invalid status value. Allowed values: ACTIVE, ARCHIVED, DELETED")
            include_deleted = status.upper() == "DELETED"
        return await self.repo.list(app_id=app_id, name=name, status=status or None,
                                    include_deleted=include_deleted, limit=limit, offset=offset)

    async def update(self, app_id: uuid.UUID, *, name: str | None = None, status: str | None = None, actor: str) -> App:
        obj = await self.get(app_id)
        if obj.is_deleted:
            raise StateError("Cannot edit a DELETED app")
        if name is None and status is None:
            raise ValidationError("No fields to update")

        new_status = status.upper() if status is not None else None
        name_changed = name is not None and name != obj.name
        status_changed = new_status is not None and new_status != obj.status
        if not name_changed and not status_changed:
            raise StateError("Nothing is changed")

        if name is not None:
            self._check_name(name)
            if name_changed:
                existing = await self.repo.get_by_name(name)
                if existing and existing.id != obj.id:
                    raise DuplicateError(f"App with name '{name}' already exists.")
                obj.name = name

        if new_status is not None:
            if new_status == "DELETED":
                raise StateError("Use the DELETE endpoint to delete an application")
            if new_status not in ("ACTIVE", "ARCHIVED"):
                raise ValidationError("Invalid status value. Allowed values: ACTIVE, ARCHIVED")
            if status_changed:
                obj.status = new_status
                obj.is_active = new_status == "ACTIVE"
                obj.is_deleted = False

        obj.updated_at = utcnow()
        obj.updated_by = actor
        await self.session.flush()
        await self.session.commit()
        logger.info(f"App {app_id} updated")
        return obj

    async def delete(self, app_id: uuid.UUID, *, actor: str) -> None:
        """Soft-delete the app and stamp DELETED on every template it owns. The api key is kept."""
        logger.info(f"Attempting to delete app {app_id}")
        obj = await self.get(app_id)
        if obj.is_deleted:
            raise StateError("App already deleted")

        now = utcnow()
        templates = await self.templates.list_for_app(obj.id)
        for t in templates:
            t.status = "DELETED"
            t.is_active = False
            t.is_deleted = True
            t.updated_at = now
            t.updated_by = actor
        logger.info(f"Marked {len(templates)} templates as DELETED for app '{obj.name}' ({app_id})")

        obj.status = "DELETED"
        obj.is_active = False
        obj.is_deleted = True
        obj.updated_at = now
        obj.updated_by = actor
        await self.session.flush()
        await self.session.commit()
        logger.info(f"App '{obj.name}' ({app_id}) deleted by {actor}")
