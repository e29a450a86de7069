"""Event ledger models: pulls and auxiliary engagement events"""
from typing import Optional
import datetime as dt
from datetime import datetime
from pydantic import BaseModel, Field


class PullRecord(BaseModel):
    """One daily card pull; `date` is the ledger's day partition key"""
    date: dt.date
    card_id: int
    timestamp: datetime


class FavoriteRecord(BaseModel):
    """A card the user has marked as favorite"""
    card_id: int
    timestamp: datetime
    note: Optional[str] = None


class ShareRecord(BaseModel):
    """A card share to an external platform"""
    card_id: int
    timestamp: datetime
    platform: Optional[str] = None


class ReferralRecord(BaseModel):
    """A referred user; completed once they pull their first card"""
    referred_user: str
    timestamp: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None


class JournalEntry(BaseModel):
    """Reflection written against a pulled card (one per card)"""
    card_id: int
    timestamp: datetime
    responses: list[str] = Field(default_factory=list)
    word_count: int = 0
    completed: bool = True


class JournalStats(BaseModel):
    """Journal counters derived from the journal ledger"""
    entries: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_words: int = 0
    longest_entry: int = 0


class FreePullRecord(BaseModel):
    """Onboarding flag: wallet has used its first (free) pull"""
    used: bool = False
    timestamp: Optional[datetime] = None
