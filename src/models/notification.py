"""Notification events handed to the display layer"""
from enum import Enum
from typing import Any
from datetime import datetime
from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    """Kinds of progression events worth showing"""
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    LEVEL_UP = "level_up"
    COMBO_BONUS = "combo_bonus"


class Notification(BaseModel):
    """Progression event for a user"""
    kind: NotificationKind
    user_key: str
    message: str
    created_at: datetime
    payload: dict[str, Any] = Field(default_factory=dict)
