"""
Firebase Realtime Database implementation of the message and profile stores.

Layout:
    workspaces/<wid>/channels/<cid>/messages/<mid>
    workspaces/<wid>/channels/<cid>/threads/<tid>/messages/<mid>
    users/<uid>                      (profile)
    users/<uid>/workspaces/<wid>     (membership)
    users/<uid>/persona              ({summary, lastUpdated})

The Admin SDK is synchronous; reads run in a worker thread.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import db
from pydantic import ValidationError

from chatgenius.schemas.message import Message, UserProfile, now_ms
from chatgenius.stores.base import MessageStore, ProfileStore

logger = logging.getLogger(__name__)


class FirebaseStore(MessageStore, ProfileStore):
    """Reads chat data with the Firebase Admin SDK."""

    def __init__(self, app: firebase_admin.App):
        self._app = app

    async def _get(self, path: str, shallow: bool = False) -> Any:
        ref = db.reference(path, app=self._app)
        return await asyncio.to_thread(ref.get, shallow=shallow)

    async def _keys(self, path: str) -> List[str]:
        # Shallow reads return {key: True} without downloading children
        value = await self._get(path, shallow=True)
        if not isinstance(value, dict):
            return []
        return list(value.keys())

    def _parse_messages(self, raw: Any, workspace_id: str, channel_id: str, thread_id: Optional[str] = None) -> List[Message]:
        if not isinstance(raw, dict):
            return []

        messages = []
        for message_id, value in raw.items():
            if not isinstance(value, dict):
                logger.warning(f"Skipping malformed message {message_id} in {workspace_id}/{channel_id}")
                continue
            data: Dict[str, Any] = {
                **value,
                "id": message_id,
                "workspaceId": workspace_id,
                "channelId": channel_id,
            }
            if thread_id:
                data["threadId"] = thread_id
            try:
                messages.append(Message.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Skipping invalid message {message_id} in {workspace_id}/{channel_id}: {e}")
        return messages

    async def list_workspace_ids(self) -> List[str]:
        return await self._keys("workspaces")

    async def list_channel_ids(self, workspace_id: str) -> List[str]:
        return await self._keys(f"workspaces/{workspace_id}/channels")

    async def list_messages(self, workspace_id: str, channel_id: str) -> List[Message]:
        raw = await self._get(f"workspaces/{workspace_id}/channels/{channel_id}/messages")
        return self._parse_messages(raw, workspace_id, channel_id)

    async def list_thread_ids(self, workspace_id: str, channel_id: str) -> List[str]:
        return await self._keys(f"workspaces/{workspace_id}/channels/{channel_id}/threads")

    async def list_thread_messages(self, workspace_id: str, channel_id: str, thread_id: str) -> List[Message]:
        raw = await self._get(f"workspaces/{workspace_id}/channels/{channel_id}/threads/{thread_id}/messages")
        return self._parse_messages(raw, workspace_id, channel_id, thread_id)

    async def list_user_ids(self) -> List[str]:
        return await self._keys("users")

    async def list_user_workspace_ids(self, user_id: str) -> List[str]:
        return await self._keys(f"users/{user_id}/workspaces")

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        raw = await self._get(f"users/{user_id}")
        if not isinstance(raw, dict):
            return None
        # Drop nested subtrees (workspaces, persona, settings) before validation
        flat = {key: value for key, value in raw.items() if not isinstance(value, dict) or key == "status"}
        return UserProfile.model_validate({**flat, "userId": user_id})

    async def get_persona(self, user_id: str) -> Optional[str]:
        raw = await self._get(f"users/{user_id}/persona")
        if isinstance(raw, dict):
            return raw.get("summary") or None
        return None

    async def save_persona(self, user_id: str, summary: str) -> None:
        ref = db.reference(f"users/{user_id}", app=self._app)
        await asyncio.to_thread(
            ref.update,
            {"persona": {"summary": summary, "lastUpdated": now_ms()}}
        )
