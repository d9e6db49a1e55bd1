"""
Configuration management for the Social Marketer video pipeline.

Centralizes all configuration including:
- Social Effects companion service endpoint and launch command
- Startup, health probe and shutdown timeouts
- Generation request timeout, outer deadline and retry settings
"""

import os
import shlex
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_COMPANION_URL = "http://localhost:5390"
DEFAULT_COMPANION_COMMAND = "swift run SocialEffects api-server 5390"


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass
class CompanionConfig:
    """Social Effects companion service configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("SOCIAL_EFFECTS_URL", DEFAULT_COMPANION_URL).rstrip("/")
    )
    command: list[str] = field(
        default_factory=lambda: shlex.split(
            os.getenv("SOCIAL_EFFECTS_COMMAND", DEFAULT_COMPANION_COMMAND)
        )
    )
    working_dir: Optional[str] = field(
        default_factory=lambda: os.getenv(
            "SOCIAL_EFFECTS_DIR",
            os.path.expanduser("~/Developer/social-effects"),
        )
    )

    # Timeouts (seconds)
    startup_timeout: float = field(default_factory=lambda: _env_float("SOCIAL_EFFECTS_STARTUP_TIMEOUT", 5.0))
    startup_poll_interval: float = 0.5
    health_timeout: float = field(default_factory=lambda: _env_float("SOCIAL_EFFECTS_HEALTH_TIMEOUT", 8.0))
    shutdown_timeout: float = field(default_factory=lambda: _env_float("SOCIAL_EFFECTS_SHUTDOWN_TIMEOUT", 5.0))

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/generate"

    @property
    def health_url(self) -> str:
        return f"{self.base_url}/health"

    @property
    def shutdown_url(self) -> str:
        return f"{self.base_url}/shutdown"


@dataclass
class GenerationConfig:
    """Video generation request settings."""

    # Per-request HTTP timeout; expected to fire before the outer deadline
    request_timeout: float = field(default_factory=lambda: _env_float("VIDEO_REQUEST_TIMEOUT", 300.0))
    # Outer backstop covering every attempt of one generate() call
    deadline: float = field(default_factory=lambda: _env_float("VIDEO_GENERATION_DEADLINE", 480.0))

    max_attempts: int = field(default_factory=lambda: _env_int("VIDEO_MAX_ATTEMPTS", 2))
    backoff_base: float = field(default_factory=lambda: _env_float("VIDEO_BACKOFF_BASE", 2.0))

    # Diagnostic flag forwarded to the renderer on every request
    ping_pong: bool = True


@dataclass
class Config:
    """Main configuration class."""

    companion: CompanionConfig = field(default_factory=CompanionConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    # Logs request bodies when enabled
    debug: bool = field(
        default_factory=lambda: os.getenv("SOCIAL_MARKETER_DEBUG", "false").lower() == "true"
    )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.companion.command:
            issues.append("SOCIAL_EFFECTS_COMMAND is empty")

        if self.generation.max_attempts < 1:
            issues.append("VIDEO_MAX_ATTEMPTS must be at least 1")

        if self.generation.backoff_base < 0:
            issues.append("VIDEO_BACKOFF_BASE must not be negative")

        if self.generation.deadline <= self.generation.request_timeout:
            issues.append(
                "VIDEO_GENERATION_DEADLINE should exceed VIDEO_REQUEST_TIMEOUT "
                f"({self.generation.deadline}s <= {self.generation.request_timeout}s)"
            )

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
    return _config
