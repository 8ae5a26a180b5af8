"""
One refresh of the dashboard: every data category is fetched on its own
worker and degrades on its own. A failing category leaves its defaults in
the snapshot and records the error text under `errors[category]`.
"""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any, Callable

from . import queries
from ..core.config import PulseConfig
from ..core.errors import GitPulseError
from ..core.logging import get_logger
from ..core.models import CommitGraph, DashboardSnapshot
from ..core.parsers import parse_upstream_counts, total_line_stats
from ..core.security import require_git_repo

log = get_logger(__name__)


def _settle(name: str, fut: Future, errors: dict[str, str]) -> Any:
    try:
        return fut.result()
    except GitPulseError as e:
        log.warning("dashboard.category_failed", category=name, error=str(e))
        errors[name] = str(e)
        return None
    except Exception as e:
        # anything else is a bug in one category, not a reason to drop the rest
        log.warning("dashboard.category_failed", category=name, error=str(e), exc_info=True)
        errors[name] = str(e) or type(e).__name__
        return None


def load_dashboard(root: str | Path = ".", config: PulseConfig | None = None) -> DashboardSnapshot:
    cfg = config or PulseConfig.from_env()
    repo = require_git_repo(root)
    snap = DashboardSnapshot(root=str(repo))

    tasks: dict[str, Callable[[], Any]] = {
        "branch": partial(queries.get_current_branch, repo, cfg),
        "status": partial(queries.get_working_tree_status, repo, cfg),
        "branches": partial(queries.get_branches, repo, cfg),
        "last_commit_time": partial(queries.get_last_commit_time, repo, cfg),
        "line_stats": partial(queries.get_line_stats, repo, cfg),
        "default_branch": partial(queries.get_default_branch, repo, cfg),
        "graph": partial(queries.get_commit_graph, repo, None, cfg),
    }

    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="git-pulse") as pool:
        futures = {name: pool.submit(fn) for name, fn in tasks.items()}
        results = {name: _settle(name, fut, snap.errors) for name, fut in futures.items()}

    snap.branch = results["branch"] or "unknown"

    if results["status"] is not None:
        snap.files = results["status"].items

    if results["branches"] is not None:
        for b in results["branches"]:
            if b.is_current and b.upstream:
                snap.upstream = parse_upstream_counts(b.upstream)
                break

    snap.last_commit_time = results["last_commit_time"]

    if results["line_stats"] is not None:
        snap.line_stats = results["line_stats"]
        totals = total_line_stats(snap.line_stats)
        snap.lines_added, snap.lines_deleted = totals.added, totals.deleted

    snap.graph = results["graph"] or CommitGraph(rows=[])

    default = results["default_branch"]
    if default:
        snap.default_branch = default
        snap.is_default_branch = snap.branch == default
        if not snap.is_default_branch and results["branch"]:
            try:
                snap.default_comparison = queries.get_branch_comparison(repo, default, cfg)
            except GitPulseError as e:
                log.warning("dashboard.category_failed", category="default_comparison", error=str(e))
                snap.errors["default_comparison"] = str(e)
            except Exception as e:
                log.warning(
                    "dashboard.category_failed", category="default_comparison", error=str(e), exc_info=True
                )
                snap.errors["default_comparison"] = str(e) or type(e).__name__

    return snap
