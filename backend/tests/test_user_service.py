"""
FinSight Backend — User Service Unit Tests
============================================

What:  Tests for UserService signup/login and the User models' pre-save hook.
How:   Business rules run against a mock session; the hashing hook and the
       unique email index run against a real SQLite schema, since a mock
       cannot flush.

What we test:
    ✅ Login: missing fields, unknown email, wrong password, success
    ✅ Signup: missing fields, bad role, existing email, IntegrityError race
    ✅ Profile type chosen from the payload
    ✅ Stored password is a digest; re-salted only when the password changes
    ✅ Unique index keeps a single row per email
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.exceptions import AuthError, ConflictError, ValidationError
from app.models.user import AccountProfile, InvestorProfile, User
from app.security import TokenStatus, hash_password, verify_password
from app.services.user_service import UserService

SIGNUP = {"name": "Asha Rao", "email": "asha@example.com", "password": "pa55word"}


def _lookup_returns(session, user):
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    session.execute = AsyncMock(return_value=result)


def _stored_user(password="pa55word"):
    user = AccountProfile(name="Asha Rao", email="asha@example.com", password="x", role="user")
    user.id = uuid4()
    user.salt, user.password = hash_password(password)
    return user


class TestLogin:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [(None, "pw"), ("a@b.com", None), ("", ""), ("  ", "pw")])
    async def test_missing_fields(self, mock_db_session, token_service, email, password):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.login(mock_db_session, email, password, token_service)
        assert exc_info.value.message == "Email and password are required"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db_session, token_service):
        _lookup_returns(mock_db_session, None)

        with pytest.raises(AuthError) as exc_info:
            await self.service.login(mock_db_session, "nobody@example.com", "pw", token_service)

        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_wrong_password_same_error_as_unknown_email(self, mock_db_session, token_service):
        _lookup_returns(mock_db_session, _stored_user())

        with pytest.raises(AuthError) as exc_info:
            await self.service.login(mock_db_session, "asha@example.com", "wrong", token_service)

        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_success_issues_token_with_user_claims(self, mock_db_session, token_service):
        user = _stored_user()
        _lookup_returns(mock_db_session, user)

        result = await self.service.login(mock_db_session, "ASHA@example.com ", "pa55word", token_service)

        assert result.user is user
        verified = token_service.verify(result.token)
        assert verified.status is TokenStatus.VALID
        assert verified.claims["sub"] == str(user.id)
        assert verified.claims["email"] == "asha@example.com"
        assert verified.claims["role"] == "user"
        assert "password" not in verified.claims
        assert "salt" not in verified.claims


class TestSignup:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "email", "password"])
    async def test_missing_fields(self, mock_db_session, field):
        payload = dict(SIGNUP)
        del payload[field]

        with pytest.raises(ValidationError) as exc_info:
            await self.service.signup(mock_db_session, payload)

        assert exc_info.value.fields == [field]
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_role(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.signup(mock_db_session, dict(SIGNUP, role="admin"))
        assert exc_info.value.fields == ["role"]

    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, mock_db_session):
        _lookup_returns(mock_db_session, _stored_user())

        with pytest.raises(ConflictError) as exc_info:
            await self.service.signup(mock_db_session, SIGNUP)

        assert exc_info.value.message == "User already exists with this email"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unique_index_race_conflicts(self, mock_db_session):
        _lookup_returns(mock_db_session, None)
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed"))
        )

        with pytest.raises(ConflictError):
            await self.service.signup(mock_db_session, SIGNUP)

        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_account_profile_by_default(self, mock_db_session):
        _lookup_returns(mock_db_session, None)

        user = await self.service.signup(
            mock_db_session,
            dict(SIGNUP, email=" Asha@Example.COM", phoneNumber="9999999999", city="Pune", role="agent"),
        )

        assert isinstance(user, AccountProfile)
        assert user.email == "asha@example.com"
        assert user.phone_number == "9999999999"
        assert user.city == "Pune"
        assert user.role == "agent"
        mock_db_session.add.assert_called_once_with(user)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_investor_profile_when_amount_given(self, mock_db_session):
        _lookup_returns(mock_db_session, None)

        user = await self.service.signup(
            mock_db_session, dict(SIGNUP, amount=250000.0, riskAppetite="moderate")
        )

        assert isinstance(user, InvestorProfile)
        assert user.amount == 250000.0
        assert user.risk_appetite == "moderate"
        assert user.role == "user"


class TestPersistence:
    """Runs against a real SQLite schema."""

    @pytest.mark.asyncio
    async def test_password_hashed_on_insert(self, sqlite_session_factory):
        async with sqlite_session_factory() as session:
            user = await UserService().signup(session, SIGNUP)
            await session.commit()

        async with sqlite_session_factory() as session:
            stored = (await session.execute(select(User))).scalar_one()

        assert isinstance(stored, AccountProfile)
        assert stored.password != "pa55word"
        assert stored.salt
        assert verify_password("pa55word", stored.salt, stored.password)
        assert stored.id == user.id

    @pytest.mark.asyncio
    async def test_resalted_only_when_password_changes(self, sqlite_session_factory):
        async with sqlite_session_factory() as session:
            user = await UserService().signup(session, SIGNUP)
            await session.commit()
            first_salt, first_digest = user.salt, user.password

            user.name = "Asha R."
            await session.commit()
            assert (user.salt, user.password) == (first_salt, first_digest)

            user.password = "n3w-pa55word"
            await session.commit()
            assert user.salt != first_salt
            assert verify_password("n3w-pa55word", user.salt, user.password)
            assert not verify_password("pa55word", user.salt, user.password)

    @pytest.mark.asyncio
    async def test_login_after_signup(self, sqlite_session_factory, token_service):
        service = UserService()
        async with sqlite_session_factory() as session:
            await service.signup(session, dict(SIGNUP, amount=1000))
            await session.commit()

        async with sqlite_session_factory() as session:
            result = await service.login(session, "asha@example.com", "pa55word", token_service)

        assert isinstance(result.user, InvestorProfile)
        assert token_service.verify(result.token).is_valid

    @pytest.mark.asyncio
    async def test_unique_index_keeps_one_row(self, sqlite_session_factory):
        service = UserService()
        async with sqlite_session_factory() as session:
            await service.signup(session, SIGNUP)
            await session.commit()

        # Skip the up-front lookup, as a concurrent signup would
        async with sqlite_session_factory() as session:
            with patch.object(service, "get_by_email", AsyncMock(return_value=None)):
                with pytest.raises(ConflictError):
                    await service.signup(session, dict(SIGNUP, name="Someone Else"))

        async with sqlite_session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(User))).scalar_one()
        assert count == 1
