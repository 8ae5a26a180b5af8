from __future__ import annotations

from pathlib import Path

from ..core.config import PulseConfig
from ..core.git_runner import SafeGitRunner
from ..core.logging import get_logger
from ..core.security import resolve_root

log = get_logger(__name__)


def make_runner(root: str | Path = ".", config: PulseConfig | None = None) -> SafeGitRunner:
    cfg = config or PulseConfig.from_env()
    return SafeGitRunner(root=resolve_root(root), config=cfg.runner_config())


def note_skipped(category: str, skipped: int) -> None:
    if skipped:
        log.debug("parse.skipped_lines", category=category, skipped=skipped)
