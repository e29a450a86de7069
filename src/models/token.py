"""Token gating models"""
from typing import Literal, Optional
from pydantic import BaseModel


class TokenBalance(BaseModel):
    """Balance supplied by the wallet collaborator; never fetched by the engine"""
    formatted_balance: float = 0
    has_balance: bool = False


class HolderTier(BaseModel):
    """Cosmetic holder tier reached by a balance"""
    name: str
    threshold: int
    rank: int  # 1 = lowest tier


class TierProgress(BaseModel):
    """Progress from the current tier toward the next one"""
    current: Optional[HolderTier] = None
    next: Optional[HolderTier] = None
    tokens_remaining: float = 0
    progress_percent: float = 0


class PullEligibility(BaseModel):
    """Whether a user may pull today, and why"""
    eligible: bool
    reason: Literal["free_pull", "has_tokens", "open_access", "needs_tokens", "already_pulled", "invalid_user"]
    message: str
