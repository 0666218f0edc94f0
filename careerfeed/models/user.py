"""User record models for the dual-record store.

A user lives in two shapes: a flattened summary row in the tabular master store
and a full detail document in the detail store. Both are built here from one
explicit field list so that no layer has to guess which fields are optional.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

SUMMARY_COLUMNS = [
    "full_name",
    "email_address",
    "password",
    "gender",
    "country",
    "year",
    "profile_picture",
    "recommendations_selected",
    "bio",
]

DETAIL_LIST_FIELDS = {
    "interests",
    "skills",
    "recommendations_saved",
    "recommendations_selected",
    "recommendations_rejected",
}

# Legacy summary column -> canonical column
LEGACY_FIELD_MAP = {
    "name": "full_name",
    "email": "email_address",
    "avatar": "profile_picture",
}

DEFAULT_LIST_DELIMITER = "; "


def migrate_legacy_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Map a legacy summary row onto the canonical column names.

    Canonical values win when a row carries both the legacy and the canonical
    column. A bare avatar file name is turned into a ``Faces/`` resource path.

    Args:
        row: Raw row as read from the baseline CSV or the local layer

    Returns:
        New dict keyed by canonical column names only
    """
    migrated = {key: value for key, value in row.items() if key not in LEGACY_FIELD_MAP}

    for legacy, canonical in LEGACY_FIELD_MAP.items():
        legacy_value = row.get(legacy)
        if legacy_value and not migrated.get(canonical):
            if legacy == "avatar" and "/" not in str(legacy_value):
                legacy_value = f"Faces/{legacy_value}"
            migrated[canonical] = legacy_value

    return migrated


def split_delimited(value: str) -> list[str]:
    """Split a ``;``-joined list back into its items, dropping blanks."""
    return [item.strip() for item in value.split(";") if item.strip()]


class UserSummaryRecord(BaseModel):
    """One row of the tabular master store.

    Holds only the essential fields used for authentication and the
    uniqueness index. Identity is the case-insensitive email address.
    """

    full_name: str = ""
    email_address: str = ""
    password: str = ""
    gender: str = ""
    country: str = ""
    year: str = ""
    profile_picture: str = ""
    recommendations_selected: str = ""
    bio: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_string(cls, v: Any) -> str:
        """Store every column as text, the way a CSV cell is stored."""
        if v is None:
            return ""
        return str(v)

    @classmethod
    def from_detail(
        cls, detail: "UserDetailRecord", delimiter: str = DEFAULT_LIST_DELIMITER
    ) -> "UserSummaryRecord":
        """Flatten a detail record into its summary row."""
        return cls(
            full_name=detail.full_name,
            email_address=detail.email_address,
            password=detail.password,
            gender=detail.gender,
            country=detail.country,
            year=detail.year,
            profile_picture=detail.profile_picture,
            recommendations_selected=delimiter.join(detail.recommendations_selected),
            bio=detail.bio,
        )

    def matches_email(self, email: str) -> bool:
        return self.email_address.lower() == email.lower()

    def matches_name(self, name: str) -> bool:
        return self.full_name.lower() == name.lower()


class UserDetailRecord(BaseModel):
    """Full profile document, one per user, keyed by normalized full name.

    Every field has an explicit default. Writing a record always replaces the
    stored document as a whole; there is no field-level merge.
    """

    full_name: str = ""
    email_address: str = ""
    password: str = ""
    gender: str = ""
    country: str = ""
    year: str = ""
    education: str = ""
    interests: list[str] = Field(default_factory=list)
    custom_interest: str = ""
    skills: list[str] = Field(default_factory=list)
    custom_skill: str = ""
    profile_picture: str = ""
    bio: str = ""
    recommendations_saved: list[str] = Field(default_factory=list)
    recommendations_selected: list[str] = Field(default_factory=list)
    recommendations_rejected: list[str] = Field(default_factory=list)

    @field_validator(
        "interests",
        "skills",
        "recommendations_saved",
        "recommendations_selected",
        "recommendations_rejected",
        mode="before",
    )
    @classmethod
    def coerce_to_list(cls, v: Any) -> list[str]:
        """Accept a delimited string where a list is expected."""
        if v is None:
            return []
        if isinstance(v, str):
            return split_delimited(v)
        return [str(item) for item in v]

    @field_validator(
        "full_name",
        "email_address",
        "password",
        "gender",
        "country",
        "year",
        "education",
        "custom_interest",
        "custom_skill",
        "profile_picture",
        "bio",
        mode="before",
    )
    @classmethod
    def coerce_to_string(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UserDetailRecord":
        """Build a complete detail record from a caller-supplied payload.

        Missing or ``None`` fields take their default, legacy ``name`` and
        ``email`` keys fill ``full_name`` and ``email_address``, and keys that
        are not part of the record are ignored.

        Args:
            payload: Mapping or model with (a subset of) the detail fields

        Returns:
            UserDetailRecord with every field populated
        """
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()

        data = {
            name: payload[name]
            for name in cls.model_fields
            if payload.get(name) is not None
        }
        if not data.get("full_name") and payload.get("name"):
            data["full_name"] = payload["name"]
        if not data.get("email_address") and payload.get("email"):
            data["email_address"] = payload["email"]

        return cls(**data)

    def has_identity(self) -> bool:
        """Check that the record carries a non-empty name and email."""
        return bool(self.full_name.strip()) and bool(self.email_address.strip())


class SessionUser(BaseModel):
    """Merged view of the authenticated user kept for the session."""

    full_name: str = ""
    email_address: str = ""
    gender: str = ""
    country: str = ""
    year: str = ""
    bio: str = ""
    profile_picture: str = ""
    avatar: str = ""
    avatar_url: str = ""
    is_admin: bool = False
    education: str = ""
    interests: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    custom_interest: str = ""
    custom_skill: str = ""
    recommendations_saved: list[str] = Field(default_factory=list)
    recommendations_selected: list[str] = Field(default_factory=list)
    recommendations_rejected: list[str] = Field(default_factory=list)

    @field_validator(
        "interests",
        "skills",
        "recommendations_saved",
        "recommendations_selected",
        "recommendations_rejected",
        mode="before",
    )
    @classmethod
    def coerce_to_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return split_delimited(v)
        return list(v)


class ExistenceCheck(BaseModel):
    """Result of probing the master store by name and email."""

    exists: bool = False
    by_name: bool = False
    by_email: bool = False


class SyncResult(BaseModel):
    """Outcome of one dual write.

    Attributes:
        valid: Payload carried a name and an email; nothing is written otherwise
        detail_saved: Detail document was written
        summary_saved: Summary row was replaced or appended
        created: Summary row did not exist before this write
    """

    valid: bool = True
    detail_saved: bool = False
    summary_saved: bool = False
    created: bool = False

    @property
    def ok(self) -> bool:
        return self.valid and self.detail_saved and self.summary_saved


class AuthResult(BaseModel):
    """Outcome of a login or registration attempt."""

    success: bool
    user: Optional[SessionUser] = None
    error: Optional[str] = None
