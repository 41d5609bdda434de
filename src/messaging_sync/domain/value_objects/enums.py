from __future__ import annotations

from enum import StrEnum


class ConversationKind(StrEnum):
    DIRECT = "direct"
    GROUP = "group"


class UserRole(StrEnum):
    STUDENT = "student"
    COMPANY = "company"
    COORDINATOR = "coordinator"
    SYSTEM = "system"


class MessageType(StrEnum):
    TEXT = "text"
    SYSTEM = "system"
    IMAGE = "image"

