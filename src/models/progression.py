"""Progression models: streaks, combos, XP and levels"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class StreakState(BaseModel):
    """Derived streak counters (never persisted)"""
    current: int = 0
    longest: int = 0


class SpecializedStreaks(BaseModel):
    """Streaks over time-of-day / day-of-week filtered pulls"""
    morning: StreakState = Field(default_factory=StreakState)
    evening: StreakState = Field(default_factory=StreakState)
    weekend: StreakState = Field(default_factory=StreakState)


class ComboState(BaseModel):
    """Session-scoped combo counter, kept in memory only"""
    count: int = 0
    last_action_at: Optional[datetime] = None


class XPLedgerEntry(BaseModel):
    """A single XP award"""
    amount: int
    reason: str
    timestamp: datetime


class UserXP(BaseModel):
    """Persisted cumulative XP for a user"""
    total_xp: int = 0
    level: int = 1
    last_updated: Optional[datetime] = None


class LevelInfo(BaseModel):
    """Level derived from cumulative XP"""
    level: int
    current_xp: int
    xp_for_next_level: int
    progress_percent: float
    total_xp: int
    level_tier: str
