"""
Unit tests for user record models.
"""

from careerfeed.models.user import (
    SessionUser,
    SyncResult,
    UserDetailRecord,
    UserSummaryRecord,
    migrate_legacy_row,
)


class TestMigrateLegacyRow:
    """Test cases for legacy summary row migration."""

    def test_maps_legacy_columns(self):
        """Test that name/email/avatar become canonical columns."""
        # Arrange
        row = {
            "name": "Admin",
            "email": "admin",
            "password": "admin",
            "avatar": "02_male_1998.jpg.jpg",
        }

        # Act
        migrated = migrate_legacy_row(row)

        # Assert
        assert migrated == {
            "full_name": "Admin",
            "email_address": "admin",
            "password": "admin",
            "profile_picture": "Faces/02_male_1998.jpg.jpg",
        }

    def test_canonical_values_win(self):
        """Test that a canonical column is not overwritten by its legacy twin."""
        row = {"email": "old@x.test", "email_address": "new@x.test"}
        assert migrate_legacy_row(row)["email_address"] == "new@x.test"

    def test_avatar_path_kept_as_is(self):
        """Test that an avatar already given as a path is not prefixed again."""
        row = {"email": "a@x.test", "avatar": "Faces/custom.png"}
        assert migrate_legacy_row(row)["profile_picture"] == "Faces/custom.png"


class TestUserDetailRecord:
    """Test cases for UserDetailRecord construction."""

    def test_from_payload_defaults_every_missing_field(self):
        """Test that a minimal payload produces a complete record."""
        # Act
        record = UserDetailRecord.from_payload(
            {"full_name": "Ada Lovelace", "email_address": "ada@x.test"}
        )

        # Assert
        assert record.interests == []
        assert record.skills == []
        assert record.recommendations_rejected == []
        assert record.education == ""
        assert record.bio == ""

    def test_from_payload_treats_none_as_default(self):
        """Test that None values fall back to field defaults."""
        record = UserDetailRecord.from_payload(
            {"full_name": "Ada", "email_address": "a@x.test", "skills": None, "bio": None}
        )
        assert record.skills == []
        assert record.bio == ""

    def test_from_payload_accepts_legacy_keys(self):
        """Test that name/email fill the canonical identity fields."""
        record = UserDetailRecord.from_payload({"name": "Ada", "email": "a@x.test"})
        assert record.full_name == "Ada"
        assert record.email_address == "a@x.test"

    def test_from_payload_ignores_unknown_keys(self):
        """Test that presentation fields like avatar_url are dropped."""
        record = UserDetailRecord.from_payload(
            {"full_name": "Ada", "email_address": "a@x.test", "avatar_url": "/x.png"}
        )
        assert "avatar_url" not in record.model_dump()

    def test_delimited_string_becomes_list(self):
        """Test that a summary-style string is split for list fields."""
        record = UserDetailRecord(
            recommendations_selected="Junior Data Analyst; Backend Engineer"
        )
        assert record.recommendations_selected == [
            "Junior Data Analyst",
            "Backend Engineer",
        ]

    def test_has_identity(self):
        """Test identity check for blank and whitespace names."""
        assert UserDetailRecord(full_name="Ada", email_address="a@x.test").has_identity()
        assert not UserDetailRecord(full_name="  ", email_address="a@x.test").has_identity()
        assert not UserDetailRecord(full_name="Ada").has_identity()


class TestUserSummaryRecord:
    """Test cases for UserSummaryRecord."""

    def test_from_detail_flattens_lists(self, ada_payload):
        """Test that selected recommendations are joined into one cell."""
        # Arrange
        ada_payload["recommendations_selected"] = ["Junior Data Analyst", "Backend Engineer"]
        detail = UserDetailRecord.from_payload(ada_payload)

        # Act
        summary = UserSummaryRecord.from_detail(detail)

        # Assert
        assert summary.recommendations_selected == "Junior Data Analyst; Backend Engineer"
        assert summary.full_name == "Ada Lovelace"
        assert summary.password == "secret1"
        assert "skills" not in summary.model_dump()

    def test_values_coerced_to_text(self):
        """Test that numbers and None are stored as text like CSV cells."""
        summary = UserSummaryRecord(year=1998, bio=None)
        assert summary.year == "1998"
        assert summary.bio == ""

    def test_matching_ignores_case(self):
        """Test case-insensitive email and name matching."""
        summary = UserSummaryRecord(full_name="Ada Lovelace", email_address="Ada@X.test")
        assert summary.matches_email("ada@x.TEST")
        assert summary.matches_name("ADA LOVELACE")


class TestResultModels:
    """Test cases for result and session models."""

    def test_sync_result_ok_requires_both_halves(self):
        """Test that ok is only true when both writes succeeded."""
        assert SyncResult(detail_saved=True, summary_saved=True).ok
        assert not SyncResult(detail_saved=True, summary_saved=False).ok
        assert not SyncResult(valid=False, detail_saved=True, summary_saved=True).ok

    def test_session_user_splits_selected_string(self):
        """Test that a summary-row string becomes a list in the session."""
        user = SessionUser(recommendations_selected="A; B")
        assert user.recommendations_selected == ["A", "B"]
