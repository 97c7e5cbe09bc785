"""Process configuration, read from BUZZ_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    codec: str = "json"                   # BUZZ_CODEC
    call_timeout: Optional[float] = None  # BUZZ_CALL_TIMEOUT, seconds; unset = never
    debug: bool = False                   # BUZZ_DEBUG, attach a Debugger in Buzz()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        timeout: Optional[float] = None
        raw = env.get("BUZZ_CALL_TIMEOUT", "").strip()
        if raw:
            try:
                timeout = float(raw)
            except ValueError:
                raise ValueError(f"BUZZ_CALL_TIMEOUT must be a number, got {raw!r}") from None
            if timeout <= 0:
                timeout = None

        return cls(
            codec=env.get("BUZZ_CODEC", "json").strip() or "json",
            call_timeout=timeout,
            debug=env.get("BUZZ_DEBUG", "").strip().lower() in _TRUE,
        )


_settings: Optional[Settings] = None


def settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reload() -> Settings:
    global _settings
    _settings = Settings.from_env()
    return _settings
