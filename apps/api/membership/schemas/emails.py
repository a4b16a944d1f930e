from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


class SendEmailRequest(BaseModel):
    to: EmailStr
    subject: str
    content: str

    @field_validator("subject", "content")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("Must not be blank")
        return value


class EmailResponse(BaseModel):
    id: str
    from_address: str
    to_address: str
    subject: str
    content: str
    member_id: Optional[str] = None
    created_at: Optional[datetime] = None
