import logging
import os
from dataclasses import dataclass
from typing import Optional

from .rules import QuorumRule

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings for the web interface and demos"""
    quorum: int = 50
    initial_balance: int = 1000
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 10000
    state_dir: Optional[str] = None  # unset: deployments live in memory only

    def __post_init__(self):
        # Reuse the quorum range check
        QuorumRule(self.quorum)
        if self.initial_balance < 0:
            raise ValueError("Initial balance must not be negative")
        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL
        ):
            raise ValueError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            quorum=_env_int("GOVERNOR_QUORUM", 50),
            initial_balance=_env_int("GOVERNOR_INITIAL_BALANCE", 1000),
            log_level=os.environ.get("GOVERNOR_LOG_LEVEL", "INFO"),
            host=os.environ.get("GOVERNOR_HOST", "0.0.0.0"),
            port=_env_int("PORT", 10000),
            state_dir=os.environ.get("GOVERNOR_STATE_DIR") or None,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
