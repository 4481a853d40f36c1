"""
Runtime settings for pingprobe.

Values come from the environment (optionally a .env file) and fall back
to the defaults below.
"""

import os
import shlex
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


ENV_PREFIX = "PINGPROBE_"


@dataclass(frozen=True)
class Settings:
    """Probe settings."""
    commands_timeout: int = 25        # overall wall-clock bound for measurement commands, seconds
    progress_interval: float = 0.5    # how long partial results are coalesced before a push, seconds
    command_prefix: tuple[str, ...] = field(default_factory=tuple)  # e.g. ("unbuffer",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            dotenv: Whether to load a .env file into os.environ first

        Raises:
            ValueError: If a numeric setting cannot be parsed
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = dict(os.environ)

        defaults = cls()

        def get(name: str) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name)
            if value is None or value.strip() == "":
                return None
            return value.strip()

        timeout = get("COMMANDS_TIMEOUT")
        interval = get("PROGRESS_INTERVAL")
        prefix = get("COMMAND_PREFIX")
        level = get("LOG_LEVEL")

        settings = cls(
            commands_timeout=int(timeout) if timeout is not None else defaults.commands_timeout,
            progress_interval=float(interval) if interval is not None else defaults.progress_interval,
            command_prefix=tuple(shlex.split(prefix)) if prefix is not None else defaults.command_prefix,
            log_level=level.upper() if level is not None else defaults.log_level,
        )

        if settings.commands_timeout <= 0:
            raise ValueError(f"{ENV_PREFIX}COMMANDS_TIMEOUT must be positive, got {settings.commands_timeout}")
        if settings.progress_interval < 0:
            raise ValueError(f"{ENV_PREFIX}PROGRESS_INTERVAL must not be negative, got {settings.progress_interval}")

        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings.from_env()
