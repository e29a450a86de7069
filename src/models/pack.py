"""Content pack models"""
from datetime import datetime
from pydantic import BaseModel, Field


class Pack(BaseModel):
    """Bonus content bundle definition"""
    id: str
    name: str
    description: str
    card_range: tuple[int, int]
    min_token_balance: int = 0  # 0 = free pack
    requires_wallet: bool = False

    @property
    def is_free(self) -> bool:
        return self.min_token_balance <= 0


class PackClaim(BaseModel):
    """A user's claim on a pack (one per pack)"""
    pack_id: str
    claim_date: datetime
    times_used: int = 0


class PackCollection(BaseModel):
    """All pack claims for a user, persisted as one record"""
    claimed_packs: list[PackClaim] = Field(default_factory=list)
