import uuid
from datetime import datetime
from pydantic import BaseModel, Field

class AppCreate(BaseModel):
    name: str = Field(..., min_length=1)

class AppUpdate(BaseModel):
    name: str | None = None
    status: str | None = None

class AppOut(BaseModel):
    id: uuid.UUID
    name: str
    api_key: str
    status: str
    is_active: bool
    is_deleted: bool
    created_at: datetime | None
    updated_at: datetime | None
    created_by: str | None
    updated_by: str | None

    class Config:
        from_attributes = True
