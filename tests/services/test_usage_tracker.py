"""Tests for `services/usage_tracker.py`."""

import threading

from services.usage_tracker import UsageTracker
from shared.models import LLMProvider, TTSProvider


def test_starts_empty(usage_tracker):
    assert usage_tracker.snapshot() == {}
    assert usage_tracker.total_cost() == 0


def test_records_calls_and_cost(usage_tracker):
    usage_tracker.record(LLMProvider.OPENAI)
    usage_tracker.record(LLMProvider.OPENAI)
    usage_tracker.record(TTSProvider.CARTESIA)
    usage_tracker.record("groq")

    snapshot = usage_tracker.snapshot()

    assert snapshot["openai"] == {"calls": 2, "estimated_cost": 0.03}
    assert snapshot["cartesia"] == {"calls": 1, "estimated_cost": 0.05}
    assert snapshot["groq"] == {"calls": 1, "estimated_cost": 0.0}
    assert usage_tracker.total_cost() == 0.08


def test_unknown_provider_is_free(usage_tracker):
    usage_tracker.record("mystery")
    assert usage_tracker.snapshot()["mystery"] == {"calls": 1, "estimated_cost": 0.0}


def test_reset(usage_tracker):
    usage_tracker.record("openai")
    usage_tracker.reset()
    assert usage_tracker.snapshot() == {}


def test_concurrent_records_are_not_lost():
    tracker = UsageTracker({"openai": 0.015})

    def work():
        for _ in range(200):
            tracker.record("openai")

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert tracker.snapshot()["openai"]["calls"] == 1600
