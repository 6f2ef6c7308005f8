"""
Per-provider usage and estimated cost.

Every billable provider invocation is recorded here: the language-understanding
provider once per request, the synthesis provider once per synthesis. Costs are
flat per-call estimates taken from config.json ("pricing"); the free defaults
(Groq, WebSpeech) cost 0. Counters live in process memory and are also mirrored
to the Prometheus `provider_calls_total` counter.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Union

from monitoring.metrics import PROVIDER_CALLS

logger = logging.getLogger(__name__)


@dataclass
class ProviderUsage:
    calls: int = 0
    estimated_cost: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class UsageTracker:
    """
    Thread-safe additive usage counters.

    Args:
        pricing (Dict[str, float]): Estimated cost per call, keyed by provider id.
    """

    def __init__(self, pricing: Dict[str, float]) -> None:
        self.pricing = dict(pricing)
        self._usage: Dict[str, ProviderUsage] = {}
        self._lock = threading.Lock()

    def record(self, provider: Union[str, Enum]) -> ProviderUsage:
        """Count one call to `provider` and return its updated totals."""
        provider_id = provider.value if isinstance(provider, Enum) else str(provider)
        if provider_id not in self.pricing:
            logger.warning(f"[UsageTracker] No price configured for provider '{provider_id}'; counting it as free")
        cost = float(self.pricing.get(provider_id, 0.0))

        with self._lock:
            usage = self._usage.setdefault(provider_id, ProviderUsage())
            usage.calls += 1
            usage.estimated_cost = round(usage.estimated_cost + cost, 6)
            current = ProviderUsage(usage.calls, usage.estimated_cost)

        PROVIDER_CALLS.labels(provider=provider_id).inc()
        logger.debug(f"[UsageTracker] {provider_id}: {current.calls} calls, ${current.estimated_cost:.4f}")
        return current

    def reset(self) -> None:
        with self._lock:
            self._usage.clear()
        logger.info("[UsageTracker] Usage counters reset")

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Return a copy of the counters: {provider_id: {"calls": n, "estimated_cost": usd}}."""
        with self._lock:
            return {provider_id: usage.to_dict() for provider_id, usage in self._usage.items()}

    def total_cost(self) -> float:
        with self._lock:
            return round(sum(usage.estimated_cost for usage in self._usage.values()), 6)
