"""Tests for Prometheus metrics helpers"""
from unittest.mock import patch

from prometheus_client import CollectorRegistry

from src.monitoring import prometheus_metrics
from src.monitoring.prometheus_metrics import PrometheusMetrics


def test_disabled_metrics_are_noops():
    disabled = PrometheusMetrics(enabled=False)
    assert disabled.enabled is False

    with patch.object(prometheus_metrics, "metrics", disabled):
        prometheus_metrics.track_pull_recorded()
        prometheus_metrics.track_xp_awarded(10, "Pulled card")
        prometheus_metrics.track_storage_error("load", "StorageUnavailableError")


def test_counters_increment():
    registry = CollectorRegistry()
    local = PrometheusMetrics(enabled=True, registry=registry)

    with patch.object(prometheus_metrics, "metrics", local):
        prometheus_metrics.track_pull_recorded()
        prometheus_metrics.track_xp_awarded(25, "Achievement unlocked: 7 Day Streak", levels_gained=1)
        prometheus_metrics.track_achievement_unlocked("streak_7")
        prometheus_metrics.track_pack_claimed("practice_pack")

    assert registry.get_sample_value("pulls_recorded_total") == 1
    assert registry.get_sample_value("xp_awarded_total", {"reason_type": "achievement"}) == 25
    assert registry.get_sample_value("level_ups_total") == 1
    assert registry.get_sample_value("achievements_unlocked_total", {"achievement_id": "streak_7"}) == 1
    assert registry.get_sample_value("packs_claimed_total", {"pack_id": "practice_pack"}) == 1


def test_duplicate_registration_disables():
    registry = CollectorRegistry()
    PrometheusMetrics(enabled=True, registry=registry)
    assert PrometheusMetrics(enabled=True, registry=registry).enabled is False
