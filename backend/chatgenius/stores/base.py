"""
Read interfaces onto the chat system's store of record.
The pipeline never owns messages or profiles; it only reads them
(and writes back generated persona summaries).
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from chatgenius.schemas.message import Message, UserProfile


class MessageStore(ABC):
    """Enumerates workspaces, channels, threads, messages and users."""

    @abstractmethod
    async def list_workspace_ids(self) -> List[str]:
        pass

    @abstractmethod
    async def list_channel_ids(self, workspace_id: str) -> List[str]:
        pass

    @abstractmethod
    async def list_messages(self, workspace_id: str, channel_id: str) -> List[Message]:
        pass

    @abstractmethod
    async def list_thread_ids(self, workspace_id: str, channel_id: str) -> List[str]:
        pass

    @abstractmethod
    async def list_thread_messages(self, workspace_id: str, channel_id: str, thread_id: str) -> List[Message]:
        pass

    @abstractmethod
    async def list_user_ids(self) -> List[str]:
        pass

    @abstractmethod
    async def list_user_workspace_ids(self, user_id: str) -> List[str]:
        pass


class ProfileStore(ABC):
    """User profile lookups and persona persistence."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the profile, or None if the user has none."""
        pass

    @abstractmethod
    async def get_persona(self, user_id: str) -> Optional[str]:
        """Return the stored persona summary, if any."""
        pass

    @abstractmethod
    async def save_persona(self, user_id: str, summary: str) -> None:
        pass
