"""Pydantic request/response schemas."""

from membership.schemas.auth import (
    LoginRequest,
    TokenResponse,
    ChangePasswordRequest,
    SetupPasswordRequest,
    DeleteAccountRequest,
    UpdateProfileRequest,
    ExportMyDataRequest,
)
from membership.schemas.common import PageResponse
from membership.schemas.members import (
    MemberResponse,
    MemberCreateRequest,
    PatchMemberRequest,
    MemberSearchHit,
)
from membership.schemas.bookings import (
    MemberType,
    BookingResponse,
    AssignBookingRequest,
    AssignBookingResponse,
)
from membership.schemas.emails import SendEmailRequest, EmailResponse

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "ChangePasswordRequest",
    "SetupPasswordRequest",
    "DeleteAccountRequest",
    "UpdateProfileRequest",
    "ExportMyDataRequest",
    "PageResponse",
    "MemberResponse",
    "MemberCreateRequest",
    "PatchMemberRequest",
    "MemberSearchHit",
    "MemberType",
    "BookingResponse",
    "AssignBookingRequest",
    "AssignBookingResponse",
    "SendEmailRequest",
    "EmailResponse",
]
