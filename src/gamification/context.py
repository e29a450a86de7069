"""
Engine context

Everything the engine needs for one process/session, passed explicitly
into engine calls: the durable store, the clock, the user's timezone,
the in-memory combo tracker and the notification sink.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo
import logging

from src import config
from src.gamification.combo_tracker import ComboTracker
from src.gamification.notifications import LoggingNotificationSink, NotificationSink
from src.storage import KeyValueStore, create_store

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """Per-session engine state and collaborators"""
    store: KeyValueStore
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo(config.DEFAULT_TIMEZONE))
    clock: Optional[Callable[[], datetime]] = None
    notifier: NotificationSink = field(default_factory=LoggingNotificationSink)
    combos: Optional[ComboTracker] = None

    def __post_init__(self):
        if self.clock is None:
            self.clock = lambda: datetime.now(self.timezone)
        if self.combos is None:
            self.combos = ComboTracker(clock=self.now)

    def now(self) -> datetime:
        """Current time in the context timezone (always aware)"""
        current = self.clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=self.timezone)
        return current.astimezone(self.timezone)

    def today(self) -> date:
        """Current calendar day in the context timezone"""
        return self.now().date()

    def reset_session(self) -> None:
        """Drop session-scoped state (logout / user switch)"""
        self.combos.reset()
        logger.info("Engine session state reset")


def create_context(
    store: Optional[KeyValueStore] = None,
    timezone: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
    notifier: Optional[NotificationSink] = None,
) -> EngineContext:
    """Build an EngineContext from configuration, with optional overrides"""
    tz_name = timezone or config.DEFAULT_TIMEZONE
    try:
        tz = ZoneInfo(tz_name)
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}, using UTC")
        tz = ZoneInfo("UTC")

    return EngineContext(
        store=store or create_store(),
        timezone=tz,
        clock=clock,
        notifier=notifier or LoggingNotificationSink(),
    )
