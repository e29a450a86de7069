"""Monitoring infrastructure for the pull progression engine"""
from src.monitoring.prometheus_metrics import (
    metrics,
    track_pull_recorded,
    track_engagement_event,
    track_xp_awarded,
    track_achievement_unlocked,
    track_pack_claimed,
    track_storage_error,
)

__all__ = [
    "metrics",
    "track_pull_recorded",
    "track_engagement_event",
    "track_xp_awarded",
    "track_achievement_unlocked",
    "track_pack_claimed",
    "track_storage_error",
]
