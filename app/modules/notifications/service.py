import re
import uuid
import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.base import utcnow
from app.core.errors import AuthenticationError, NotFoundError, ValidationError, StateError
from app.modules.apps.repository import AppRepository
from app.modules.notifications.models import DeliveryRecord, SENT, FAILED, DELIVERY_STATUSES
from app.modules.notifications.placeholders import PlaceholderValue, validate_placeholders, resolve
from app.modules.notifications.repository import DeliveryRecordRepository
from app.modules.notifications.schemas import DispatchResult, RetryResult, HealthSummary
from app.modules.templates.models import TagDatatype
from app.modules.templates.repository import TemplateRepository
from app.platform.ports.delivery import DeliveryTransportPort
from app.platform.provider_registry import registry

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

LOG_SORT_FIELDS = ("created_at", "updated_at", "recipient", "subject", "status", "retry_count")

def check_recipients(addresses: Sequence[str | None]) -> list[str]:
    """Syntax-check every address and reject duplicates (case-insensitive)."""
    if not any(a and a.strip() for a in addresses):
        logger.warning("No recipients provided in request")
        raise ValidationError("At least one recipient must be provided")
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in addresses:
        if raw is None or not raw.strip():
            raise ValidationError("Recipient email is missing or null.")
        address = raw.strip()
        if not EMAIL_RE.match(address):
            raise ValidationError(f"Recipient '{address}' is not a valid email address.")
        key = address.lower()
        if key in seen:
            raise ValidationError("Duplicate emails are not allowed in the request.")
        seen.add(key)
        cleaned.append(address)
    return cleaned

def merge_placeholders(global_values: Mapping[str, PlaceholderValue | None] | None,
                       personal: Mapping[str, PlaceholderValue | None] | None) -> dict[str, PlaceholderValue | None]:
    merged = dict(global_values or {})
    merged.update(personal or {})
    return merged

def format_health_percentage(sent: int, failed: int) -> str:
    total = sent + failed
    if total == 0:
        return "-"
    pct = f"{sent / total * 100:.2f}".rstrip("0").rstrip(".")
    return f"{pct}%"

@dataclass(frozen=True)
class DispatchContext:
    """Snapshot of the resolved tenant/template, taken before the recipient loop."""
    app_id: uuid.UUID
    template_id: uuid.UUID
    subject: str
    body: str
    tag_types: dict[str, TagDatatype] = field(default_factory=dict)

@dataclass
class DeliveryOutcome:
    recipient: str
    record_id: uuid.UUID
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

def summarize(outcomes: list[DeliveryOutcome], message: str) -> DispatchResult:
    succeeded = [o.recipient for o in outcomes if o.ok]
    failed = [o.recipient for o in outcomes if not o.ok]
    return DispatchResult(
        status="SUCCESS" if not failed else "PARTIAL_SUCCESS",
        total_recipients=len(outcomes),
        success_count=len(succeeded),
        failure_count=len(failed),
        successful_recipients=succeeded,
        failed_recipients=failed,
        message=message.format(total=len(outcomes), ok=len(succeeded), failed=len(failed)),
    )

class NotificationsService:
    def __init__(self, session: AsyncSession, transport: DeliveryTransportPort | None = None):
        self.session = session
        self.apps = AppRepository(session)
        self.templates = TemplateRepository(session)
        self.records = DeliveryRecordRepository(session)
        self.transport = transport or registry.delivery_transport()

    # ---- preconditions ----

    async def _load_context(self, api_key: str, template_id: uuid.UUID) -> DispatchContext:
        app = await self.apps.get_by_api_key(api_key)
        if not app:
            logger.error("Invalid API key presented")
            raise AuthenticationError("Invalid API Key")

        template = await self.templates.get(template_id)
        if not template:
            logger.error(f"Template not found with ID: {template_id}")
            raise NotFoundError(f"Template not found with ID: {template_id}")

        if template.app_id != app.id:
            logger.error(
                f"Cross-tenant template use: app '{app.name}' ({app.id}) tried template "
                f"'{template.name}' ({template.id}) owned by app {template.app_id}"
            )
            raise AuthenticationError(f"Template ID {template_id} does not belong to this application.")

        if app.is_deleted or app.status != "ACTIVE":
            raise StateError(f"Application is {app.status} or deleted, cannot send.")
        if template.status != "ACTIVE":
            raise StateError(f"Template is not active. Current status: {template.status}")

        return DispatchContext(
            app_id=app.id,
            template_id=template.id,
            subject=template.subject,
            body=template.body,
            tag_types=await self.templates.get_tag_types(template.id),
        )

    # ---- per-recipient delivery ----

    async def _persist(self, ctx: DispatchContext, recipient: str, subject: str, body: str,
                       status: str, error: str | None) -> DeliveryRecord:
        record = await self.records.create(
            template_id=ctx.template_id,
            app_id=ctx.app_id,
            recipient=recipient,
            subject=subject,
            body=body,
            status=status,
            retry_count=0,
            error_message=error,
        )
        # one transaction per record so earlier outcomes survive later failures
        await self.session.commit()
        return record

    async def _deliver_one(self, ctx: DispatchContext, recipient: str,
                           placeholders: Mapping[str, PlaceholderValue | None],
                           revalidate: bool = False) -> DeliveryOutcome:
        subject, body = ctx.subject, ctx.body
        try:
            if revalidate:
                validate_placeholders(ctx.tag_types, placeholders)
            subject = resolve(ctx.subject, placeholders)
            body = resolve(ctx.body, placeholders)
            await self.transport.deliver(recipient, subject, body)
            record = await self._persist(ctx, recipient, subject, body, SENT, None)
        except Exception as ex:  # noqa
            error = getattr(ex, "message", None) or str(ex) or ex.__class__.__name__
            logger.warning(f"Failed to send notification to {recipient}: {error}")
            await self.session.rollback()
            record = await self._persist(ctx, recipient, subject, body, FAILED, error)
            return DeliveryOutcome(recipient=recipient, record_id=record.id, error=error)
        logger.info(f"Notification sent to {recipient}")
        return DeliveryOutcome(recipient=recipient, record_id=record.id)

    # ---- operations ----

    async def send(self, *, api_key: str, template_id: uuid.UUID, recipient: str | None = None,
                   recipients: Sequence[str] | None = None,
                   placeholders: Mapping[str, PlaceholderValue | None] | None = None) -> DispatchResult:
        """Send one template with shared placeholders to one or more recipients."""
        logger.info("Received notification request")
        combined: list[str | None] = []
        if recipient is not None:
            combined.append(recipient)
        combined.extend(recipients or [])
        addresses = check_recipients(combined)

        ctx = await self._load_context(api_key, template_id)
        placeholders = dict(placeholders or {})
        # shared across recipients: a bad map aborts the whole request
        validate_placeholders(ctx.tag_types, placeholders)

        logger.info(f"Starting notification process for {len(addresses)} recipient(s)")
        outcomes = []
        for address in addresses:
            outcomes.append(await self._deliver_one(ctx, address, placeholders))
        return summarize(outcomes, "Processed {total} recipient(s). {ok} succeeded, {failed} failed.")

    async def send_bulk(self, *, api_key: str, template_id: uuid.UUID, recipients: Sequence[Mapping[str, object]],
                        global_placeholders: Mapping[str, PlaceholderValue | None] | None = None) -> DispatchResult:
        """Send one template to many recipients, each with its own placeholders.

        ``recipients`` items carry ``email`` and optional ``placeholders``; personal
        values win over ``global_placeholders``. Every recipient is validated before
        anything is persisted.
        """
        recipients = recipients or []
        for item in recipients:
            if item is None:
                raise ValidationError("Bulk recipient entry cannot be null.")
        addresses = check_recipients([item.get("email") for item in recipients])
        merged = [merge_placeholders(global_placeholders, item.get("placeholders")) for item in recipients]

        ctx = await self._load_context(api_key, template_id)

        for address, values in zip(addresses, merged):
            try:
                validate_placeholders(ctx.tag_types, values)
            except ValidationError as e:
                logger.error(f"Bulk pre-validation failed for {address}: {e.message}")
                raise ValidationError(f"Recipient '{address}': {e.message}",
                                      details={"recipient": address, **(e.details or {})})

        logger.info(f"Starting personalized bulk notification process for {len(addresses)} recipients")
        outcomes = []
        for address, values in zip(addresses, merged):
            outcomes.append(await self._deliver_one(ctx, address, values, revalidate=True))
        return summarize(outcomes, "Personalized bulk notification processing completed. {ok} succeeded, {failed} failed.")

    async def retry(self, record_id: uuid.UUID) -> RetryResult:
        """Re-attempt a FAILED record. SENT records are terminal."""
        logger.info(f"Retrying notification {record_id}")
        record = await self.records.get(record_id)
        if not record:
            raise NotFoundError(f"Notification not found with ID: {record_id}")
        if record.status != FAILED:
            raise StateError("Only FAILED notifications can be retried.")

        record.retry_count = (record.retry_count or 0) + 1
        record.updated_at = utcnow()
        try:
            await self.transport.deliver(record.recipient, record.subject, record.body)
        except Exception as ex:  # noqa
            record.error_message = f"Retry failed: {ex}"
            await self.session.commit()
            logger.error(f"Retry failed for notification {record_id}: {ex}")
            return RetryResult(status=FAILED, notification_id=record.id, retry_count=record.retry_count,
                               message=record.error_message)

        record.status = SENT
        record.error_message = None
        await self.session.commit()
        logger.info(f"Notification {record_id} retried successfully. New retry count: {record.retry_count}")
        return RetryResult(status=SENT, notification_id=record.id, retry_count=record.retry_count,
                           message="Notification retried successfully")

    async def health(self, *, app_id: uuid.UUID | None = None,
                     template_id: uuid.UUID | None = None) -> HealthSummary:
        counts = await self.records.count_by_status(app_id=app_id, template_id=template_id)
        sent, failed = counts.get(SENT, 0), counts.get(FAILED, 0)
        return HealthSummary(
            successful_notifications=sent,
            failed_notifications=failed,
            health_percentage=format_health_percentage(sent, failed),
        )

    async def get(self, record_id: uuid.UUID) -> DeliveryRecord:
        record = await self.records.get(record_id)
        if not record:
            raise NotFoundError(f"Notification not found with id: {record_id}")
        return record

    async def list(self, *, app_id: uuid.UUID | None = None, template_id: uuid.UUID | None = None,
                   recipient: str | None = None, subject: str | None = None, status: str | None = None,
                   sort_by: str = "created_at", sort_dir: str = "asc",
                   limit: int = 50, offset: int = 0) -> Sequence[DeliveryRecord]:
        if template_id is not None and not await self.templates.get(template_id):
            raise NotFoundError(f"Template not found with ID: {template_id}")
        if status and status.strip() and status.upper() not in DELIVERY_STATUSES:
            raise ValidationError(f"Invalid status: {status}. Allowed values: SENT, FAILED")
        if sort_by not in LOG_SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {sort_by}. Allowed values: {', '.join(LOG_SORT_FIELDS)}")
        if sort_dir.lower() not in ("asc", "desc"):
            raise ValidationError(f"Invalid sort direction: {sort_dir}. Allowed values: asc, desc")
        return await self.records.list(app_id=app_id, template_id=template_id, recipient=recipient,
                                       subject=subject, status=status or None, sort_by=sort_by,
                                       descending=sort_dir.lower() == "desc", limit=limit, offset=offset)
