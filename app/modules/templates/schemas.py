import uuid
from datetime import datetime
from pydantic import BaseModel, Field

class TemplateCreate(BaseModel):
    app_id: uuid.UUID
    name: str
    subject: str
    body: str
    status: str | None = None  # ACTIVE | DRAFT, defaults to DRAFT

class TemplateUpdate(BaseModel):
    app_id: uuid.UUID | None = None  # rejected when present
    name: str | None = None
    subject: str | None = None
    body: str | None = None
    status: str | None = None

class TagInfo(BaseModel):
    tag_name: str
    datatype: str

class TagTypesUpdate(BaseModel):
    tag_types: dict[str, str] = Field(default_factory=dict)

class TemplateOut(BaseModel):
    id: uuid.UUID
    app_id: uuid.UUID
    name: str
    subject: str
    body: str
    status: str
    is_deleted: bool
    tags: list[TagInfo]
    created_at: datetime | None
    updated_at: datetime | None
    created_by: str | None
    updated_by: str | None
