import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, ForeignKey
from app.core.base import Base, AuditedMixin

SENT = "SENT"
FAILED = "FAILED"
DELIVERY_STATUSES = (SENT, FAILED)

class DeliveryRecord(Base, AuditedMixin):
    """One attempted send of one template to one recipient."""
    __tablename__ = "notification"

    template_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("template.id"), index=True)
    app_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("app.id"), index=True)
    recipient: Mapped[str] = mapped_column(String(320))
    subject: Mapped[str] = mapped_column(Text)
    body: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), index=True)  # SENT | FAILED
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
