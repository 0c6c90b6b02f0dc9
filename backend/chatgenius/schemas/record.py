"""
Schemas for embedding records, retrieval scopes and pipeline results.

The vector index only accepts flat metadata (strings and numbers), so
RecordMetadata has named, typed, flat fields and is flattened explicitly
at the upsert boundary.
"""
import enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from chatgenius.errors import ScopeRequired
from chatgenius.schemas.message import UserProfile

MetadataValue = Union[str, int, float]


class MessageKind(str, enum.Enum):
    """Kind of source content behind a record."""
    MESSAGE = "message"
    BIO = "bio"


class RecordSource(str, enum.Enum):
    """Which logical index a record was written for."""
    WORKSPACE_SEARCH = "workspace-search"
    AI_AGENT = "ai-agent"


class IndexTarget(str, enum.Enum):
    """Logical vector indexes."""
    WORKSPACE = "workspace"
    AGENT = "agent"


SOURCE_FOR_TARGET = {
    IndexTarget.WORKSPACE: RecordSource.WORKSPACE_SEARCH,
    IndexTarget.AGENT: RecordSource.AI_AGENT,
}


class RecordMetadata(BaseModel):
    """Flat metadata stored alongside each vector."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    record_id: str
    user_id: str = ""
    content: str = ""
    timestamp: int = 0
    context: str = ""
    message_type: MessageKind = MessageKind.MESSAGE
    source: RecordSource = RecordSource.WORKSPACE_SEARCH
    workspace_id: str = ""
    channel_id: str = ""
    thread_id: str = ""

    # Denormalized author profile, captured at embedding time
    user_display_name: str = ""
    user_email: str = ""
    user_photo_url: str = ""
    user_bio: str = ""
    user_role: str = ""
    user_status: str = ""
    user_last_seen: int = 0

    def with_profile(self, profile: Optional[UserProfile]) -> "RecordMetadata":
        """Return a copy with the author profile fields filled in ("" when unknown)."""
        if profile is None:
            profile = UserProfile()
        return self.model_copy(update={
            "user_display_name": profile.display_name or "",
            "user_email": profile.email or "",
            "user_photo_url": profile.photo_url or "",
            "user_bio": profile.bio or "",
            "user_role": profile.role or "",
            "user_status": profile.status or "",
            "user_last_seen": profile.last_seen or 0,
        })

    def profile(self) -> UserProfile:
        """Rebuild the denormalized author profile."""
        return UserProfile(
            user_id=self.user_id,
            display_name=self.user_display_name or None,
            email=self.user_email or None,
            photo_url=self.user_photo_url or None,
            bio=self.user_bio or None,
            role=self.user_role or None,
            status=self.user_status or None,
            last_seen=self.user_last_seen or None,
        )

    def to_index_metadata(self) -> Dict[str, MetadataValue]:
        """
        Flatten to the index's metadata format.

        Raises:
            ValueError: If any value is not a string or number
        """
        flat = self.model_dump(mode="json")
        for key, value in flat.items():
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                raise ValueError(f"Metadata field '{key}' must be a string or number, got {type(value).__name__}")
        return flat

    @classmethod
    def from_index_metadata(cls, metadata: Mapping[str, Any]) -> "RecordMetadata":
        return cls.model_validate(dict(metadata))


class ScopeFilter(BaseModel):
    """
    Mandatory tenant boundary for retrieval.

    Exactly one of ``workspace_id`` (general search) or ``user_id``
    (AI agent persona) must be set. ``message_type`` narrows a user scope.
    """

    workspace_id: Optional[str] = None
    user_id: Optional[str] = None
    message_type: Optional[MessageKind] = None

    def validate_scope(self) -> "ScopeFilter":
        """
        Raises:
            ScopeRequired: If no scope or an ambiguous scope is given
        """
        has_workspace = bool(self.workspace_id and self.workspace_id.strip())
        has_user = bool(self.user_id and self.user_id.strip())
        if has_workspace == has_user:
            if has_workspace:
                raise ScopeRequired("Exactly one of workspace_id or user_id may be set")
            raise ScopeRequired()
        if self.message_type is not None and not has_user:
            raise ScopeRequired("message_type can only narrow a user_id scope")
        return self

    @property
    def target(self) -> IndexTarget:
        return IndexTarget.WORKSPACE if self.workspace_id else IndexTarget.AGENT

    def index_filter(self) -> Dict[str, MetadataValue]:
        """Equality filter on flat metadata fields."""
        if self.workspace_id:
            return {
                "workspace_id": self.workspace_id,
                "source": RecordSource.WORKSPACE_SEARCH.value,
            }
        conditions: Dict[str, MetadataValue] = {"user_id": self.user_id}
        if self.message_type is not None:
            conditions["message_type"] = self.message_type.value
        return conditions

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        """Client-side check that a record belongs to this scope."""
        return all(metadata.get(key) == value for key, value in self.index_filter().items())


class RetrievalResult(BaseModel):
    """One retrieved record."""
    id: str
    content: str
    score: float
    user_id: str
    timestamp: int
    context: str
    message_type: MessageKind = MessageKind.MESSAGE
    workspace_id: str = ""
    user_profile: UserProfile = Field(default_factory=UserProfile)


class IngestionStatus(str, enum.Enum):
    INGESTED = "ingested"
    SKIPPED = "skipped"
    FAILED = "failed"


class IngestionOutcome(BaseModel):
    """Result of driving one message (or bio) through the pipeline."""
    record_id: str
    status: IngestionStatus
    error: Optional[str] = None


class MigrationSummary(BaseModel):
    """Summary returned by a bulk migration run."""
    target: IndexTarget
    total_processed: int = 0
    total_users: int = 0
    total_messages: int = 0
    total_bios: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    cancelled: bool = False
    deleted_existing: bool = False
