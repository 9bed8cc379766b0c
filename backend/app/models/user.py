"""
FinSight Backend — User SQLAlchemy Models
===========================================

What:  ORM models for the `users` table.
How:   Single-table inheritance. One `users` table, discriminated by
       `profile_type`, backs two explicit record types:

           User (abstract base: identity + credentials)
           ├── AccountProfile   profile_type="account"
           │     phone_number, address, company_name, pincode, city
           └── InvestorProfile  profile_type="investor"
                 amount, risk_appetite

Credential invariant (pre-save hook):
    Once a row is written, `password` holds HMAC-SHA256(salt, plaintext) as
    hex, never the plaintext. The before_insert listener always hashes; the
    before_update listener hashes (and draws a new salt) only when the
    `password` attribute actually changed. Application code therefore
    assigns the plaintext to `user.password` and lets the flush do the rest.

Uniqueness:
    `email` carries a unique index. Concurrent signups for the same email are
    settled by the store: the loser's flush raises IntegrityError.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Float, String, Text, Uuid, event, inspect, text
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.database import Base
from app.security import hash_password

ROLES = ("user", "agent")


class User(Base):
    """Identity and credential columns shared by every profile type."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    profile_type: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Identifying attribute; stored lower-cased
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # Plaintext only between assignment and flush; see module docstring
    password: Mapped[str] = mapped_column(Text, nullable=False)
    salt: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __mapper_args__ = {
        "polymorphic_on": "profile_type",
        "polymorphic_abstract": True,
    }

    @validates("role")
    def validate_role(self, key: str, value: Optional[str]) -> str:
        if value is None:
            return "user"
        if value not in ROLES:
            raise ValueError(f"Invalid role '{value}'. Must be one of: {ROLES}")
        return value

    @validates("email")
    def normalize_email(self, key: str, value: str) -> str:
        return value.strip().lower() if value else value

    def token_claims(self) -> Dict[str, Any]:
        """Claims embedded in bearer tokens. Never includes credentials."""
        return {
            "sub": str(self.id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
        }

    def public_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, email='{self.email}')>"


class AccountProfile(User):
    """Contact/address profile used by regular users and agents."""

    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pincode: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "account"}

    def public_dict(self) -> Dict[str, Any]:
        data = super().public_dict()
        data.update(
            phoneNumber=self.phone_number,
            address=self.address,
            companyName=self.company_name,
            pincode=self.pincode,
            city=self.city,
        )
        return data


class InvestorProfile(User):
    """Investment profile: capital available and appetite for risk."""

    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_appetite: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __mapper_args__ = {"polymorphic_identity": "investor"}

    def public_dict(self) -> Dict[str, Any]:
        data = super().public_dict()
        data.update(amount=self.amount, riskAppetite=self.risk_appetite)
        return data


# ══════════════════════════════════════════════════════════════════════════
# Pre-save hashing hook
# ══════════════════════════════════════════════════════════════════════════

def apply_password_hash(user: User) -> None:
    """Replace the plaintext in `user.password` with a digest under a new salt."""
    if not user.password:
        raise ValueError("Cannot persist a user without a password")
    user.salt, user.password = hash_password(user.password)


@event.listens_for(User, "before_insert", propagate=True)
def _hash_password_on_insert(mapper, connection, target: User) -> None:
    apply_password_hash(target)


@event.listens_for(User, "before_update", propagate=True)
def _hash_password_on_update(mapper, connection, target: User) -> None:
    if inspect(target).attrs.password.history.has_changes():
        apply_password_hash(target)
