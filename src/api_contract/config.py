"""Runtime settings, read from the environment."""

import logging
import os
from typing import Mapping

from pydantic import BaseModel

DEFAULT_BASE_URL = "http://localhost:8080"


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    token: str = ""
    timeout: float = 30.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get("API_BASE_URL", DEFAULT_BASE_URL),
            token=env.get("API_TOKEN", ""),
            timeout=float(env.get("API_TIMEOUT", "30")),
            log_level=env.get("API_CONTRACT_LOG_LEVEL", "WARNING").upper(),
        )


def configure_logging(level: str | int) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
