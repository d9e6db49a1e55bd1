"""
Video Generation Service

Renders wisdom entries through the local Social Effects companion:
- client: single /generate request with response validation
- orchestrator: ensure-running, deadline race, retries, shutdown
- errors: classified failure taxonomy
"""

from .client import GenerationClient
from .errors import (
    ConnectionFailed,
    EncodingFailed,
    GenerationError,
    GenerationFailed,
    GenerationTimeout,
    HTTPStatus,
    InvalidResponse,
    ServerStartFailed,
)
from .models import (
    GenerationRequest,
    GenerationResult,
    WisdomEntry,
    sanitize_title,
)
from .orchestrator import VideoGenerationOrchestrator

__all__ = [
    "GenerationClient",
    "VideoGenerationOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "WisdomEntry",
    "sanitize_title",
    "GenerationError",
    "ServerStartFailed",
    "EncodingFailed",
    "HTTPStatus",
    "InvalidResponse",
    "GenerationFailed",
    "ConnectionFailed",
    "GenerationTimeout",
]
