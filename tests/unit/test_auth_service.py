"""
Unit tests for auth_service module.
"""

from unittest.mock import AsyncMock

import pytest

from careerfeed.models.user import UserSummaryRecord
from careerfeed.services.auth_service import (
    MSG_ACCOUNT_EXISTS,
    MSG_CREATE_FAILED,
    MSG_INVALID_CREDENTIALS,
    MSG_INVALID_EMAIL,
    MSG_LOGIN_ERROR,
    MSG_MISSING_FIELDS,
    MSG_PASSWORD_MISMATCH,
    MSG_PASSWORD_TOO_SHORT,
    is_valid_email,
)

SIGNUP = ("Ada Lovelace", "ada@x.test", "secret1", "secret1", "female", "1815", "UK")


class TestEmailValidation:
    """Test cases for the email format check."""

    def test_valid_and_invalid_addresses(self):
        """Test the local@domain.tld shape."""
        assert is_valid_email("ada@x.test")
        assert not is_valid_email("ada@x")
        assert not is_valid_email("ada x@y.test")
        assert not is_valid_email("admin")


class TestRegisterUser:
    """Test cases for signup."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override,message",
        [
            ({0: ""}, MSG_MISSING_FIELDS),
            ({5: ""}, MSG_MISSING_FIELDS),
            ({1: "not-an-email"}, MSG_INVALID_EMAIL),
            ({3: "secret2"}, MSG_PASSWORD_MISMATCH),
            ({2: "abc", 3: "abc"}, MSG_PASSWORD_TOO_SHORT),
        ],
    )
    async def test_validation_errors(self, app, override, message):
        """Test each validation rule and its message."""
        # Arrange
        args = list(SIGNUP)
        for index, value in override.items():
            args[index] = value

        # Act
        result = await app.auth.register_user(*args)

        # Assert
        assert result.success is False
        assert result.error == message
        assert await app.master.read_all() == []

    @pytest.mark.asyncio
    async def test_success_writes_both_records_and_session(self, app):
        """Test that a new account is stored and logged in."""
        # Act
        result = await app.auth.register_user(*SIGNUP)

        # Assert
        assert result.success is True
        assert result.user.email_address == "ada@x.test"
        assert result.user.avatar_url.startswith("/assets/faces/")
        detail = await app.details.load("Ada Lovelace")
        row = await app.master.find_by_email("ada@x.test")
        assert detail.password == "secret1"
        assert detail.profile_picture.startswith("Faces/")
        assert "_female_" in detail.profile_picture
        assert row.profile_picture == detail.profile_picture
        assert app.auth.get_current_user().full_name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_session_never_holds_password(self, app):
        """Test that the session user has no password field."""
        result = await app.auth.register_user(*SIGNUP)

        assert "password" not in result.user.model_dump()
        assert "secret1" not in app.store.get_item("currentUser")

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, app):
        """Test that an existing email blocks signup regardless of case."""
        await app.auth.register_user(*SIGNUP)

        result = await app.auth.register_user(
            "Someone Else", "ADA@x.test", "secret1", "secret1", "female", "1990", "UK"
        )

        assert result.success is False
        assert result.error == MSG_ACCOUNT_EXISTS

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, app):
        """Test that an existing full name blocks signup."""
        await app.auth.register_user(*SIGNUP)

        result = await app.auth.register_user(
            "ada lovelace", "other@x.test", "secret1", "secret1", "female", "1990", "UK"
        )

        assert result.error == MSG_ACCOUNT_EXISTS

    @pytest.mark.asyncio
    async def test_failed_sync_reports_create_failed(self, app):
        """Test the message when the dual write does not go through."""
        app.auth.engine.sync_user = AsyncMock(return_value=False)

        result = await app.auth.register_user(*SIGNUP)

        assert result.success is False
        assert result.error == MSG_CREATE_FAILED
        assert app.auth.get_current_user() is None


class TestLoginUser:
    """Test cases for login and logout."""

    @pytest.mark.asyncio
    async def test_login_merges_detail_fields(self, app, ada_payload):
        """Test that profile lists from the detail record reach the session."""
        # Arrange
        await app.engine.sync_user(ada_payload)

        # Act
        result = await app.auth.login_user("ADA@x.test", "secret1")

        # Assert
        assert result.success is True
        assert result.user.skills == ["Python"]
        assert result.user.interests == ["Mathematics", "Engineering"]
        assert result.user.recommendations_selected == ["Junior Data Analyst"]
        assert result.user.avatar == "01_female_2001.jpg.jpg"
        assert result.user.is_admin is False

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, app, ada_payload):
        """Test that a bad password gets the generic credentials message."""
        await app.engine.sync_user(ada_payload)

        result = await app.auth.login_user("ada@x.test", "wrong")

        assert result.success is False
        assert result.error == MSG_INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_unknown_email_rejected(self, app):
        """Test that an unknown account gets the same message."""
        result = await app.auth.login_user("nobody@x.test", "secret1")
        assert result.error == MSG_INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_summary_only_user_can_log_in(self, app):
        """Test login for a row that has no detail record."""
        # Arrange
        await app.master.append(
            UserSummaryRecord(
                full_name="Rahim Uddin",
                email_address="rahim@example.com",
                password="rahim123",
                gender="male",
                recommendations_selected="Data Analyst",
            )
        )

        # Act
        result = await app.auth.login_user("rahim@example.com", "rahim123")

        # Assert
        assert result.success is True
        assert result.user.skills == []
        assert result.user.recommendations_selected == ["Data Analyst"]

    @pytest.mark.asyncio
    async def test_unexpected_error_reported(self, app):
        """Test that a storage fault during login is not raised."""
        app.auth.master.find_by_email = AsyncMock(side_effect=RuntimeError("boom"))

        result = await app.auth.login_user("ada@x.test", "secret1")

        assert result.success is False
        assert result.error == MSG_LOGIN_ERROR

    @pytest.mark.asyncio
    async def test_admin_shortcut(self, app):
        """Test that the admin credentials log in without any stored row."""
        result = await app.auth.login_user("admin", "admin")

        assert result.success is True
        assert result.user.is_admin is True
        assert result.user.full_name == "Admin"
        assert app.auth.get_current_user().is_admin is True

    @pytest.mark.asyncio
    async def test_logout_clears_session(self, app):
        """Test that logout removes the session user."""
        await app.auth.register_user(*SIGNUP)

        app.auth.logout_user()

        assert app.auth.get_current_user() is None


class TestInitializeAdmin:
    """Test cases for admin bootstrap."""

    @pytest.mark.asyncio
    async def test_creates_admin_row_once(self, app):
        """Test that the admin row is written to the summary store only once."""
        # Act
        first = await app.auth.initialize_admin_user()
        second = await app.auth.initialize_admin_user()

        # Assert
        assert first is True
        assert second is False
        rows = await app.master.read_all()
        assert [r.email_address for r in rows] == ["admin"]
        assert rows[0].profile_picture.startswith("Faces/")
        assert await app.details.load("Admin") is None
