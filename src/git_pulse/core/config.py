from __future__ import annotations

from dataclasses import dataclass
from os import environ
from typing import Mapping

from .git_runner import GitRunnerConfig
from .logging import get_logger

log = get_logger(__name__)

_DEFAULT_TIMEOUT_S = 10.0
_DEFAULT_LOG_LIMIT = 50
_DEFAULT_REMOTE = "origin"


def _env_float(env: Mapping[str, str], key: str, default: float | None) -> float | None:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    if raw.strip().lower() in {"0", "none", "off"}:
        return None
    try:
        return float(raw)
    except ValueError:
        log.warning("config.invalid_value", key=key, value=raw, fallback=default)
        return default


def _env_int(env: Mapping[str, str], key: str, default: int | None) -> int | None:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("config.invalid_value", key=key, value=raw, fallback=default)
        return default
    return value if value > 0 else None


@dataclass(frozen=True)
class PulseConfig:
    timeout_s: float | None = _DEFAULT_TIMEOUT_S
    max_output_chars: int | None = None
    log_limit: int = _DEFAULT_LOG_LIMIT
    remote: str = _DEFAULT_REMOTE

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "PulseConfig":
        env = environ if env is None else env
        return cls(
            timeout_s=_env_float(env, "GIT_PULSE_TIMEOUT", _DEFAULT_TIMEOUT_S),
            max_output_chars=_env_int(env, "GIT_PULSE_MAX_OUTPUT", None),
            log_limit=_env_int(env, "GIT_PULSE_LOG_LIMIT", _DEFAULT_LOG_LIMIT) or 0,
            remote=(env.get("GIT_PULSE_REMOTE") or _DEFAULT_REMOTE).strip() or _DEFAULT_REMOTE,
        )

    def runner_config(self) -> GitRunnerConfig:
        return GitRunnerConfig(timeout_s=self.timeout_s, max_output_chars=self.max_output_chars)
