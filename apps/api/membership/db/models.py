import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    Text,
    Boolean,
    Numeric,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Table,
    Uuid,
)
from sqlalchemy.orm import relationship

from .session import Base


def uuid4_str():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


member_roles = Table(
    "member_roles",
    Base.metadata,
    Column("member_id", Uuid(as_uuid=False), ForeignKey("members.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid(as_uuid=False), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Member(Base):
    __tablename__ = "members"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)

    # Registration details
    salutation = Column(String(20), nullable=True)
    academic_title = Column(String(50), nullable=True)
    rank = Column(String(50), nullable=True)
    birthday = Column(Date, nullable=True)
    street = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(10), nullable=True)
    country = Column(String(100), nullable=True)
    of_mg = Column(Boolean, default=False, nullable=False)  # regular member; supporting member otherwise

    # Credentials (password is unset until the member completes setup)
    hashed_password = Column(String(255), nullable=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    password_setup_token_hash = Column(String(255), nullable=True, index=True)
    password_setup_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    roles = relationship("Role", secondary=member_roles, lazy="selectin")
    bookings = relationship("Booking", back_populates="member")
    emails = relationship("Email", back_populates="member")

    __table_args__ = (Index("ix_members_name_deleted", "name", "deleted_at"),)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def role_names(self) -> list[str]:
        return sorted(r.name for r in self.roles or [])

    def has_role(self, name: str) -> bool:
        return any(r.name == name for r in self.roles or [])


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    member_id = Column(Uuid(as_uuid=False), ForeignKey("members.id", ondelete="SET NULL"), nullable=True)

    expected_purpose = Column(String(255), nullable=True)
    expected_amount = Column(Numeric(10, 2), nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=True)
    actual_purpose = Column(String(255), nullable=True)
    actual_amount = Column(Numeric(10, 2), nullable=True)
    note = Column(String(255), nullable=True)
    account_statement_page = Column(String(255), nullable=True)
    code = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    member = relationship("Member", back_populates="bookings", lazy="selectin")

    __table_args__ = (
        Index("ix_bookings_member_id", "member_id"),
        Index("ix_bookings_received_at", "received_at"),
    )


class Email(Base):
    """Audit log of every email sent; member_id is None for system emails."""
    __tablename__ = "emails"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    from_address = Column(String(255), nullable=False)
    to_address = Column(String(255), nullable=False)
    subject = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    member_id = Column(Uuid(as_uuid=False), ForeignKey("members.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    member = relationship("Member", back_populates="emails")

    __table_args__ = (
        Index("ix_emails_member_id", "member_id"),
        Index("ix_emails_created_at", "created_at"),
    )

    @property
    def is_system_email(self) -> bool:
        return self.member_id is None
