import enum
import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, ForeignKey, UniqueConstraint, Enum as SAEnum
from app.core.base import Base, AuditedMixin

TEMPLATE_STATUSES = ("DRAFT", "ACTIVE", "ARCHIVED", "DELETED")

class TagDatatype(str, enum.Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"

class Template(Base, AuditedMixin):
    __table_args__ = (UniqueConstraint("app_id", "name", name="uq_template_app_name"),)

    app_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("app.id"), index=True)  # immutable after creation
    name: Mapped[str] = mapped_column(String(128))
    subject: Mapped[str] = mapped_column(String(255))
    body: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), default="DRAFT")  # DRAFT | ACTIVE | ARCHIVED | DELETED
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)

class TemplateTag(Base):
    __tablename__ = "templatetag"
    __table_args__ = (UniqueConstraint("template_id", "tag_name", name="uq_templatetag_template_tag"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    template_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("template.id"), index=True)
    tag_name: Mapped[str] = mapped_column(String(128))
    datatype: Mapped[TagDatatype] = mapped_column(
        SAEnum(TagDatatype, native_enum=False, length=16), default=TagDatatype.STRING
    )
