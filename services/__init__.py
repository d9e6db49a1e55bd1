"""
Social Marketer Services

- companion: Social Effects process supervision
- video_generation: Companion render client and orchestrator
"""

from .companion import SubprocessSupervisor
from .video_generation import (
    GenerationClient,
    GenerationRequest,
    GenerationResult,
    VideoGenerationOrchestrator,
)

__all__ = [
    "SubprocessSupervisor",
    "GenerationClient",
    "GenerationRequest",
    "GenerationResult",
    "VideoGenerationOrchestrator",
]
