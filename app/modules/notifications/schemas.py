import uuid
from typing import Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic.alias_generators import to_camel

# strict members keep the JSON kind (true stays bool, 5 stays int) for tag type checks;
# null is let through so the tag check reports it as missing
Placeholder = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class SendRequest(CamelModel):
    api_key: str = Field(..., min_length=1)
    template_id: uuid.UUID
    recipient: str | None = None
    recipients: list[str] | None = None
    placeholders: dict[str, Placeholder | None] | None = None

class BulkRecipient(CamelModel):
    email: str
    placeholders: dict[str, Placeholder | None] | None = None

class BulkSendRequest(CamelModel):
    api_key: str = Field(..., min_length=1)
    template_id: uuid.UUID
    recipients: list[BulkRecipient] = Field(default_factory=list)
    global_placeholders: dict[str, Placeholder | None] | None = None

class DispatchResult(CamelModel):
    status: str  # SUCCESS | PARTIAL_SUCCESS
    total_recipients: int
    success_count: int
    failure_count: int
    successful_recipients: list[str]
    failed_recipients: list[str]
    message: str

class RetryResult(CamelModel):
    status: str  # SENT | FAILED
    notification_id: uuid.UUID
    retry_count: int
    message: str

class HealthSummary(CamelModel):
    successful_notifications: int
    failed_notifications: int
    health_percentage: str

class DeliveryRecordOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    app_id: uuid.UUID
    template_id: uuid.UUID
    recipient: str
    subject: str
    body: str
    status: str
    retry_count: int
    error_message: str | None
    created_at: datetime | None
    updated_at: datetime | None
