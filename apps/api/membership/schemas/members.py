from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Name must not be blank")
    if len(trimmed) > 100:
        raise ValueError("Name must be at most 100 characters")
    return trimmed


class MemberResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    salutation: Optional[str] = None
    academic_title: Optional[str] = None
    rank: Optional[str] = None
    birthday: Optional[date] = None
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    of_mg: bool = False
    roles: list[str] = []
    email_verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class MemberCreateRequest(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    salutation: Optional[str] = Field(None, max_length=20)
    academic_title: Optional[str] = Field(None, max_length=50)
    rank: Optional[str] = Field(None, max_length=50)
    birthday: Optional[date] = None
    street: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=10)
    country: Optional[str] = Field(None, max_length=100)
    of_mg: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _strip_name(value)


class PatchMemberRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    salutation: Optional[str] = Field(None, max_length=20)
    academic_title: Optional[str] = Field(None, max_length=50)
    rank: Optional[str] = Field(None, max_length=50)
    birthday: Optional[date] = None
    street: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=10)
    country: Optional[str] = Field(None, max_length=100)
    of_mg: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return _strip_name(value)


class MemberSearchHit(BaseModel):
    """One ranked search hit: the member, the best match tier reached, and its trigram score."""

    member: MemberResponse
    tier: str
    score: float
