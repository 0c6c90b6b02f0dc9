"""
Store-of-record access (messages, profiles).
"""
from chatgenius.stores.base import MessageStore, ProfileStore

__all__ = ["MessageStore", "ProfileStore"]
