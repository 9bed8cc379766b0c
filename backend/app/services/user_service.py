"""
FinSight Backend — User Service (signup & login)
==================================================

What:  Account creation and credential checks.
Why:   Keeps credential logic out of the HTTP layer and testable with a
       mocked session.
How:   Composes the User models (pre-save hashing hook), verify_password,
       and a TokenService handed in by the caller.
Who:   Called by the auth routes.

Signup:
    validate → reject known email (409) → build AccountProfile or
    InvestorProfile → flush (hook hashes) → IntegrityError from the unique
    index also maps to 409

Login:
    validate → look up by email → verify digest → issue token
    Unknown email and wrong password produce the same AuthError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AuthError, ConflictError, DatabaseError, ValidationError
from app.models.user import ROLES, AccountProfile, InvestorProfile, User
from app.security import TokenService, verify_password
from app.services.validation import require_fields

logger = logging.getLogger(__name__)

LOGIN_FIELDS = ("email", "password")
SIGNUP_FIELDS = ("name", "email", "password")

# Public (camelCase) field name → AccountProfile attribute
ACCOUNT_FIELDS = {
    "phoneNumber": "phone_number",
    "address": "address",
    "companyName": "company_name",
    "pincode": "pincode",
    "city": "city",
}


@dataclass
class LoginResult:
    token: str
    user: User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Stateless; every call receives its session and collaborators."""

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == normalize_email(email)))
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", type(e).__name__)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e
        return result.scalar_one_or_none()

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        tokens: TokenService,
    ) -> LoginResult:
        """
        Verify credentials and issue a bearer token.

        Raises:
            ValidationError: email or password missing (→ 400)
            AuthError:       unknown email or wrong password (→ 401)
        """
        require_fields(
            {"email": email, "password": password},
            LOGIN_FIELDS,
            "Email and password are required",
        )

        user = await self.get_by_email(db, email)
        if user is None or not verify_password(password, user.salt, user.password):
            logger.info("Failed login attempt")
            raise AuthError(message="Invalid email or password", code="invalid_credentials")

        token = tokens.issue(user.token_claims())
        logger.info("User %s logged in", user.id)
        return LoginResult(token=token, user=user)

    async def signup(self, db: AsyncSession, payload: Mapping[str, Any]) -> User:
        """
        Create a user record.

        An InvestorProfile is created when the payload carries `amount` or
        `riskAppetite`; otherwise an AccountProfile.

        Raises:
            ValidationError: name, email or password missing, or bad role (→ 400)
            ConflictError:   email already registered (→ 409)
        """
        require_fields(payload, SIGNUP_FIELDS, "Name, email and password are required")

        role = payload.get("role") or "user"
        if role not in ROLES:
            raise ValidationError(message=f"Role must be one of: {', '.join(ROLES)}", fields=["role"])

        email = normalize_email(payload["email"])
        if await self.get_by_email(db, email) is not None:
            raise ConflictError(context={"email": email})

        user = self._build_user(payload, email, role)
        db.add(user)
        try:
            # The pre-save hook hashes the password during this flush
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            await db.rollback()
            logger.info("Signup rejected by unique email index")
            raise ConflictError(context={"email": email}) from e
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", type(e).__name__, exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        logger.info("Created %s %s", type(user).__name__, user.id)
        return user

    def _build_user(self, payload: Mapping[str, Any], email: str, role: str) -> User:
        common = {
            "name": payload["name"].strip(),
            "email": email,
            "password": payload["password"],
            "role": role,
        }
        if payload.get("amount") is not None or payload.get("riskAppetite") is not None:
            return InvestorProfile(
                amount=payload.get("amount"),
                risk_appetite=payload.get("riskAppetite"),
                **common,
            )
        profile = {attr: payload.get(field) for field, attr in ACCOUNT_FIELDS.items()}
        return AccountProfile(**profile, **common)


user_service = UserService()
