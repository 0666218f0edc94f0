"""
Authentication Service

Signup, login, logout and admin bootstrap on top of the sync layer.

Signup probes the master store for an existing name or email before it lets
the sync engine create the account. Login checks credentials against the
master store and merges in the profile fields of the user's detail record.
The admin account lives in the master store only; it has no detail record.
"""

import re
from typing import Any, Optional

from careerfeed.models.config import AdminConfig
from careerfeed.models.user import (
    AuthResult,
    SessionUser,
    UserDetailRecord,
    UserSummaryRecord,
)
from careerfeed.services.avatars import AvatarCatalog
from careerfeed.services.session import SessionManager
from careerfeed.storage.detail_store import DetailStore
from careerfeed.storage.master_store import MasterStore
from careerfeed.sync_engine import SyncEngine
from careerfeed.utils.logger import get_logger, user_action

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

MSG_MISSING_FIELDS = "Please fill in all fields"
MSG_INVALID_EMAIL = "Please enter a valid email address"
MSG_PASSWORD_MISMATCH = "Passwords do not match"
MSG_PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
MSG_ACCOUNT_EXISTS = "Account already exists. Please log in instead."
MSG_CREATE_FAILED = "Failed to create account. Please try again."
MSG_INVALID_CREDENTIALS = "Invalid email address or password"
MSG_LOGIN_ERROR = "An error occurred during login"

# Detail fields copied into the session on login
PROFILE_SESSION_FIELDS = (
    "education",
    "interests",
    "skills",
    "custom_interest",
    "custom_skill",
    "recommendations_saved",
    "recommendations_rejected",
)

logger: Any = get_logger(
    correlation_id="auth-service",
    phase="auth",
    component="auth_service",
)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


class AuthService:
    """Account creation and credential checks."""

    def __init__(
        self,
        engine: SyncEngine,
        master: MasterStore,
        details: DetailStore,
        sessions: SessionManager,
        avatars: AvatarCatalog,
        admin: Optional[AdminConfig] = None,
    ):
        self.engine = engine
        self.master = master
        self.details = details
        self.sessions = sessions
        self.avatars = avatars
        self.admin = admin or AdminConfig()

    async def initialize_admin_user(self) -> bool:
        """
        Create the admin summary row if it does not exist yet.

        Writes straight to the master store, bypassing the sync engine.

        Returns:
            True if the row was created
        """
        if await self.master.find_by_email(self.admin.email) is not None:
            return False

        created = await self.master.append(
            UserSummaryRecord(
                full_name=self.admin.full_name,
                email_address=self.admin.email,
                password=self.admin.password,
                gender=self.admin.gender,
                year=self.admin.year,
                country=self.admin.country,
                profile_picture=self.avatars.random_resource(self.admin.gender),
            )
        )
        if created:
            logger.info("admin_user_created", email_address=self.admin.email)
        return created

    async def register_user(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        gender: str,
        year: str,
        country: str,
    ) -> AuthResult:
        """
        Create an account and log the new user in.

        Returns:
            AuthResult with the session user, or the first validation error
        """
        if not all([name, email, password, confirm_password, gender, year, country]):
            return AuthResult(success=False, error=MSG_MISSING_FIELDS)
        if not is_valid_email(email):
            return AuthResult(success=False, error=MSG_INVALID_EMAIL)
        if password != confirm_password:
            return AuthResult(success=False, error=MSG_PASSWORD_MISMATCH)
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthResult(success=False, error=MSG_PASSWORD_TOO_SHORT)

        with user_action("signup", email_address=email):
            return await self._create_account(
                name, email, password, gender, year, country
            )

    async def login_user(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and open a session.

        Returns:
            AuthResult with the merged session user on success
        """
        if email.lower() == self.admin.email.lower() and password == self.admin.password:
            return self._login_admin()

        with user_action("login", email_address=email):
            try:
                row = await self.master.find_by_email(email)
                if row is None or row.password != password:
                    logger.info("login_rejected")
                    return AuthResult(success=False, error=MSG_INVALID_CREDENTIALS)

                detail = await self.details.load(row.full_name) if row.full_name else None
            except Exception as e:
                logger.error("login_failed", error=str(e))
                return AuthResult(success=False, error=MSG_LOGIN_ERROR)

            user = self._session_user(row, detail)
            self.sessions.save(user)
            logger.info("user_logged_in", has_detail=detail is not None)
            return AuthResult(success=True, user=user)

    def get_current_user(self) -> Optional[SessionUser]:
        return self.sessions.current()

    def logout_user(self) -> None:
        self.sessions.clear()

    async def _create_account(
        self,
        name: str,
        email: str,
        password: str,
        gender: str,
        year: str,
        country: str,
    ) -> AuthResult:
        existing = await self.engine.check_exists(name, email)
        if existing.exists:
            logger.info(
                "signup_rejected_existing_account",
                by_name=existing.by_name,
                by_email=existing.by_email,
            )
            return AuthResult(success=False, error=MSG_ACCOUNT_EXISTS)

        record = UserDetailRecord(
            full_name=name,
            email_address=email,
            password=password,
            gender=gender,
            country=country,
            year=year,
            profile_picture=self.avatars.random_resource(gender),
        )
        if not await self.engine.sync_user(record):
            return AuthResult(success=False, error=MSG_CREATE_FAILED)

        user = self._session_user(UserSummaryRecord.from_detail(record), record)
        self.sessions.save(user)
        logger.info("user_registered")
        return AuthResult(success=True, user=user)

    def _login_admin(self) -> AuthResult:
        data = self.avatars.with_avatar_metadata(
            {
                "full_name": self.admin.full_name,
                "email_address": self.admin.email,
                "gender": self.admin.gender,
                "is_admin": True,
            }
        )
        user = SessionUser.model_validate(data)
        self.sessions.save(user)
        logger.info("admin_logged_in")
        return AuthResult(success=True, user=user)

    def _session_user(
        self, row: UserSummaryRecord, detail: Optional[UserDetailRecord]
    ) -> SessionUser:
        data: dict[str, Any] = row.model_dump(exclude={"password"})
        if detail is not None:
            for field in PROFILE_SESSION_FIELDS:
                data[field] = getattr(detail, field)
            data["recommendations_selected"] = detail.recommendations_selected
        return SessionUser.model_validate(self.avatars.with_avatar_metadata(data))
