"""
Social Marketer Core Components

Foundational infrastructure for the video pipeline:
- Configuration loaded from the environment
- Deadline racing for long-running calls
- Retry policy with linear backoff
"""

from .config import Config, get_config
from .deadline import DeadlineExceeded, TimeoutRacer
from .retry import RetryPolicy

__all__ = ["Config", "get_config", "DeadlineExceeded", "TimeoutRacer", "RetryPolicy"]
