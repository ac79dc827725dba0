"""
Retry Policy

Bounded, delayed re-queueing applied uniformly to every processing or upload
failure.
"""

from dataclasses import dataclass
from typing import Tuple

from config.settings import (
    MAX_UPLOAD_RETRIES,
    RESET_RETRY_COUNT_ON_MANUAL_RETRY,
    RETRY_DELAYS_SECONDS,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attributes:
        max_retries: Automatic retries before an item settles in ERROR
        delays: Delay before retry #1, #2, ... (last value repeats)
        reset_on_manual_retry: Manual retry restores the full retry budget

    Example:
        policy = RetryPolicy()
        policy.should_retry(0)  # True
        policy.delay_for(0)     # 2.0
        policy.delay_for(7)     # 5.0 (clamped)
        policy.should_retry(2)  # False
    """

    max_retries: int = MAX_UPLOAD_RETRIES
    delays: Tuple[float, ...] = RETRY_DELAYS_SECONDS
    reset_on_manual_retry: bool = RESET_RETRY_COUNT_ON_MANUAL_RETRY

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if not self.delays:
            raise ValueError("delays cannot be empty")
        if any(d < 0 for d in self.delays):
            raise ValueError("delays cannot contain negative values")

    def should_retry(self, retry_count: int) -> bool:
        """True if an item that has already retried `retry_count` times may retry again"""
        return retry_count < self.max_retries

    def delay_for(self, retry_count: int) -> float:
        """Delay before the next retry, indexed by the count *before* incrementing"""
        index = min(retry_count, len(self.delays) - 1)
        return float(self.delays[index])

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        """Build from a QueueConfig"""
        return cls(
            max_retries=config.max_retries,
            delays=config.retry_delays,
            reset_on_manual_retry=config.reset_retry_count_on_manual_retry,
        )
