"""Beanie ODM schemas for MongoDB collections."""

from .idea import Idea
from .init import DOCUMENT_MODELS, init_beanie_odm
from .session import ChatMessage, Participant, Session
from .session_state import SessionState

__all__ = [
    "DOCUMENT_MODELS",
    "ChatMessage",
    "Idea",
    "Participant",
    "Session",
    "SessionState",
    "init_beanie_odm",
]
