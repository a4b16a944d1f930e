from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from membership.core.constants import DEFAULT_BOOKING_PURPOSE, MAX_BOOKING_PURPOSE_LENGTH


class MemberType(str, Enum):
    """Membership category; regular members carry of_mg=True."""
    REGULAR_MEMBERS = "REGULAR_MEMBERS"
    SUPPORTING_MEMBERS = "SUPPORTING_MEMBERS"

    @property
    def of_mg(self) -> bool:
        return self is MemberType.REGULAR_MEMBERS


class BookingResponse(BaseModel):
    id: str
    member_id: Optional[str] = None
    member_name: Optional[str] = None
    member_email: Optional[str] = None
    expected_purpose: Optional[str] = None
    expected_amount: Optional[Decimal] = None
    received_at: Optional[datetime] = None
    actual_purpose: Optional[str] = None
    actual_amount: Optional[Decimal] = None
    note: Optional[str] = None
    account_statement_page: Optional[str] = None
    code: Optional[str] = None
    created_at: Optional[datetime] = None


class AssignBookingRequest(BaseModel):
    member_type: MemberType
    expected_amount: Decimal = Field(ge=Decimal("0.01"))
    actual_amount: Decimal = Field(ge=Decimal("0.01"))
    actual_purpose: Optional[str] = DEFAULT_BOOKING_PURPOSE

    @field_validator("actual_purpose")
    @classmethod
    def validate_purpose(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > MAX_BOOKING_PURPOSE_LENGTH:
            raise ValueError(f"Purpose must be at most {MAX_BOOKING_PURPOSE_LENGTH} characters")
        return value


class AssignBookingResponse(BaseModel):
    created: int
