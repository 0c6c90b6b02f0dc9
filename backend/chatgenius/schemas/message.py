"""
Pydantic schemas for chat entities read from the store of record.
Firebase snapshots use camelCase keys; both camelCase and snake_case are accepted.
"""
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    """Current time in epoch milliseconds (Firebase timestamp format)."""
    return int(time.time() * 1000)


class Message(BaseModel):
    """A chat message. Owned by the chat system, read-only here."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    content: str = ""
    user_id: str = Field("", alias="userId")
    type: Optional[str] = None  # Untyped records never qualify for embedding
    timestamp: int = Field(default_factory=now_ms)
    workspace_id: Optional[str] = Field(None, alias="workspaceId")
    channel_id: Optional[str] = Field(None, alias="channelId")
    thread_id: Optional[str] = Field(None, alias="threadId")
    parent_id: Optional[str] = Field(None, alias="parentId")
    reply_count: Optional[int] = Field(None, alias="replyCount")

    @field_validator("content", mode="before")
    @classmethod
    def _content_not_null(cls, value):
        return "" if value is None else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value):
        # Older clients wrote timestamps as strings
        if isinstance(value, bool) or value is None:
            return now_ms()
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return now_ms()
        return now_ms()

    @property
    def is_thread_reply(self) -> bool:
        return bool(self.thread_id)


class UserProfile(BaseModel):
    """A user profile as stored under ``users/<uid>``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field("", alias="userId")
    display_name: Optional[str] = Field(None, alias="displayName")
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    bio: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    last_seen: Optional[int] = Field(None, alias="lastSeen")

    @field_validator("last_seen", mode="before")
    @classmethod
    def _parse_last_seen(cls, value):
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return None
        return None

    @field_validator("status", mode="before")
    @classmethod
    def _flatten_status(cls, value):
        # Presence writes {"state": "online", ...} objects on some clients
        if isinstance(value, dict):
            return value.get("state") or value.get("status")
        return value
