"""
Tests for Pydantic schemas validation.
"""
import pytest

from chatgenius.errors import ScopeRequired
from chatgenius.schemas.message import Message, UserProfile
from chatgenius.schemas.record import (
    IndexTarget,
    MessageKind,
    RecordMetadata,
    RecordSource,
    ScopeFilter,
)


class TestMessageSchema:
    """Tests for Message parsing from Firebase snapshots."""

    def test_camel_case_keys(self):
        message = Message.model_validate({
            "id": "m1",
            "content": "hi",
            "userId": "u1",
            "threadId": "T1",
            "parentId": "m0",
            "replyCount": 2,
            "timestamp": 1000,
        })

        assert message.user_id == "u1"
        assert message.thread_id == "T1"
        assert message.parent_id == "m0"
        assert message.reply_count == 2
        assert message.is_thread_reply is True

    def test_snake_case_keys(self):
        message = Message(id="m1", user_id="u1", content="hi")
        assert message.user_id == "u1"
        assert message.type is None

    def test_string_timestamp_parsed(self):
        message = Message.model_validate({"id": "m1", "timestamp": "1700000000000"})
        assert message.timestamp == 1700000000000

    def test_bad_timestamp_falls_back_to_now(self):
        message = Message.model_validate({"id": "m1", "timestamp": "yesterday"})
        assert message.timestamp > 1_600_000_000_000

    def test_null_content(self):
        assert Message.model_validate({"id": "m1", "content": None}).content == ""


class TestUserProfileSchema:
    def test_aliases(self):
        profile = UserProfile.model_validate({
            "displayName": "Ada",
            "photoURL": "https://example.com/a.png",
            "lastSeen": 1234,
        })
        assert profile.display_name == "Ada"
        assert profile.photo_url == "https://example.com/a.png"
        assert profile.last_seen == 1234

    def test_status_object_flattened(self):
        profile = UserProfile.model_validate({"status": {"state": "online", "lastChanged": 1}})
        assert profile.status == "online"


class TestRecordMetadata:
    """Tests for flat record metadata."""

    def test_flattened_values_are_scalars(self):
        metadata = RecordMetadata(record_id="m1", user_id="u1", content="hi", timestamp=5)

        flat = metadata.to_index_metadata()

        assert flat["message_type"] == "message"
        assert flat["source"] == "workspace-search"
        assert flat["user_last_seen"] == 0
        assert all(isinstance(value, (str, int, float)) for value in flat.values())

    def test_profile_round_trip(self):
        profile = UserProfile(user_id="u1", display_name="Ada", role="admin", last_seen=42)

        metadata = RecordMetadata(record_id="m1", user_id="u1").with_profile(profile)
        restored = RecordMetadata.from_index_metadata(metadata.to_index_metadata()).profile()

        assert restored.display_name == "Ada"
        assert restored.role == "admin"
        assert restored.last_seen == 42
        assert restored.email is None

    def test_missing_profile_stored_as_empty(self):
        metadata = RecordMetadata(record_id="m1").with_profile(None)
        assert metadata.user_display_name == ""
        assert metadata.user_last_seen == 0


class TestScopeFilter:
    """Tests for ScopeFilter validation."""

    def test_workspace_scope(self):
        scope = ScopeFilter(workspace_id="W1").validate_scope()
        assert scope.target == IndexTarget.WORKSPACE
        assert scope.index_filter() == {"workspace_id": "W1", "source": RecordSource.WORKSPACE_SEARCH.value}

    def test_user_scope(self):
        scope = ScopeFilter(user_id="u1", message_type=MessageKind.BIO).validate_scope()
        assert scope.target == IndexTarget.AGENT
        assert scope.index_filter() == {"user_id": "u1", "message_type": "bio"}

    @pytest.mark.parametrize("kwargs", [
        {},
        {"workspace_id": ""},
        {"workspace_id": "   "},
        {"workspace_id": "W1", "user_id": "u1"},
        {"workspace_id": "W1", "message_type": MessageKind.BIO},
    ])
    def test_invalid_scopes(self, kwargs):
        with pytest.raises(ScopeRequired):
            ScopeFilter(**kwargs).validate_scope()

    def test_matches(self):
        scope = ScopeFilter(workspace_id="W1")
        assert scope.matches({"workspace_id": "W1", "source": "workspace-search"}) is True
        assert scope.matches({"workspace_id": "W2", "source": "workspace-search"}) is False
        assert scope.matches({"workspace_id": "W1", "source": "ai-agent"}) is False
