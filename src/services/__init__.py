"""
Service Layer Package

Business logic that composes the engine modules in src/gamification into
user-facing actions.

Core Services:
- GamificationService: pulls, XP, streaks, combos, achievements, summaries
"""

from src.services.gamification_service import GamificationService

__all__ = [
    "GamificationService",
]
