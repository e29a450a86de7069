"""Prometheus metrics definitions and helpers"""
import logging
from typing import Optional
from prometheus_client import CollectorRegistry, Counter, REGISTRY
from src.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self, enabled: bool = ENABLE_PROMETHEUS, registry: Optional[CollectorRegistry] = None):
        if not enabled:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        registry = registry if registry is not None else REGISTRY

        try:
            # Ledger Metrics
            self.pulls_recorded_total = Counter(
                'pulls_recorded_total',
                'Total daily pulls appended to the ledger',
                registry=registry
            )

            self.engagement_events_total = Counter(
                'engagement_events_total',
                'Total auxiliary engagement events recorded',
                ['event_type'],
                registry=registry
            )

            # Progression Metrics
            self.xp_awarded_total = Counter(
                'xp_awarded_total',
                'Total XP awarded',
                ['reason_type'],
                registry=registry
            )

            self.level_ups_total = Counter(
                'level_ups_total',
                'Total level thresholds crossed',
                registry=registry
            )

            self.achievements_unlocked_total = Counter(
                'achievements_unlocked_total',
                'Total achievements unlocked',
                ['achievement_id'],
                registry=registry
            )

            self.packs_claimed_total = Counter(
                'packs_claimed_total',
                'Total packs claimed',
                ['pack_id'],
                registry=registry
            )

            # Storage Metrics
            self.storage_errors_total = Counter(
                'storage_errors_total',
                'Total storage failures recovered with a default',
                ['operation', 'error_type'],
                registry=registry
            )

            self._enabled = True
            logger.info("Prometheus metrics initialized")

        except ValueError as e:
            # Duplicate registration in the same registry
            logger.error(f"Failed to initialize Prometheus metrics: {e}", exc_info=True)
            self._enabled = False

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


def track_pull_recorded() -> None:
    """Track a new ledger row"""
    if not metrics.enabled:
        return
    metrics.pulls_recorded_total.inc()


def track_engagement_event(event_type: str) -> None:
    """Track favorite/share/referral/journal events"""
    if not metrics.enabled:
        return
    metrics.engagement_events_total.labels(event_type=event_type).inc()


def track_xp_awarded(amount: int, reason: str, levels_gained: int = 0) -> None:
    """Track XP award and any level thresholds crossed"""
    if not metrics.enabled:
        return

    # Reasons are free text; label by the leading word to keep cardinality low
    reason_type = reason.split()[0].lower() if reason else "unknown"
    metrics.xp_awarded_total.labels(reason_type=reason_type).inc(amount)
    if levels_gained:
        metrics.level_ups_total.inc(levels_gained)


def track_achievement_unlocked(achievement_id: str) -> None:
    """Track achievement unlock"""
    if not metrics.enabled:
        return
    metrics.achievements_unlocked_total.labels(achievement_id=achievement_id).inc()


def track_pack_claimed(pack_id: str) -> None:
    """Track pack claim"""
    if not metrics.enabled:
        return
    metrics.packs_claimed_total.labels(pack_id=pack_id).inc()


def track_storage_error(operation: str, error_type: str) -> None:
    """Track a storage failure that was absorbed by a fallback"""
    if not metrics.enabled:
        return
    metrics.storage_errors_total.labels(operation=operation, error_type=error_type).inc()
