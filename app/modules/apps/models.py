from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean
from app.core.base import Base, AuditedMixin

APP_STATUSES = ("ACTIVE", "ARCHIVED", "DELETED")

class App(Base, AuditedMixin):
    """A registered caller application (tenant) identified by its api key."""
    name: Mapped[str] = mapped_column(String(100))
    api_key: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    status: Mapped[str] = mapped_column(String(16), default="ACTIVE")  # ACTIVE | ARCHIVED | DELETED
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
