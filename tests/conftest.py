"""Global test fixtures and utilities for daily-pull-engine tests"""
import pytest
from datetime import datetime, timezone

from src.gamification.context import EngineContext
from src.gamification.notifications import CollectingNotificationSink
from src.services.gamification_service import GamificationService
from src.storage.kv_store import MemoryStore

from tests.helpers import UTC, FixedClock


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def test_user_key():
    """Standard test wallet address"""
    return "0xAbC123"


@pytest.fixture
def clock():
    """Fixed clock: Wednesday 2024-06-05 10:00 UTC"""
    return FixedClock(datetime(2024, 6, 5, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """Empty in-memory store"""
    return MemoryStore()


@pytest.fixture
def notifier():
    """Notification sink that keeps everything it receives"""
    return CollectingNotificationSink()


@pytest.fixture
def ctx(store, clock, notifier):
    """Engine context over the memory store and fixed clock"""
    return EngineContext(store=store, timezone=UTC, clock=clock, notifier=notifier)


@pytest.fixture
def service(ctx):
    """GamificationService over the test context"""
    return GamificationService(ctx)
