from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .common import make_runner, note_skipped
from ..core.config import PulseConfig
from ..core.default_branch import compare_with_default, resolve_default_branch
from ..core.errors import ExternalToolError
from ..core.models import AheadBehind, Branch, Commit, CommitGraph, FileChange, LineStat, Parsed
from ..core.parsers import (
    GRAPH_LOG_FORMAT,
    LOG_FORMAT,
    align_graph,
    parse_branches,
    parse_commit_graph,
    parse_commit_log,
    parse_graph_lines,
    parse_numstat,
    parse_status_porcelain,
    parse_unix_timestamp,
    parse_upstream_counts,
    summarize_status,
)
from ..core.security import safe_repo_path

Root = str | Path


def _log_range_args(limit: int | None) -> list[str]:
    args = ["--all", "--date-order"]
    if limit and limit > 0:
        args.append(f"-{int(limit)}")
    return args


def _effective_limit(limit: int | None, config: PulseConfig | None) -> int | None:
    if limit is not None:
        return limit
    return (config or PulseConfig.from_env()).log_limit


def get_working_tree_status(root: Root = ".", config: PulseConfig | None = None) -> Parsed[FileChange]:
    r = make_runner(root, config)
    out = r.output(["status", "--porcelain=v1"], context="get_working_tree_status(status)")
    parsed = parse_status_porcelain(out)
    note_skipped("status", parsed.skipped)
    return parsed


def has_uncommitted_changes(root: Root = ".", config: PulseConfig | None = None) -> bool:
    return len(get_working_tree_status(root, config)) > 0


def get_status_summary(root: Root = ".", config: PulseConfig | None = None) -> str:
    """'clean' or 'N changes'."""
    r = make_runner(root, config)
    return summarize_status(r.output(["status", "--porcelain"], context="get_status_summary(status)"))


def get_branches(root: Root = ".", config: PulseConfig | None = None) -> Parsed[Branch]:
    r = make_runner(root, config)
    out = r.output(["branch", "-vv", "--all"], context="get_branches(branch)")
    parsed = parse_branches(out)
    note_skipped("branches", parsed.skipped)
    return parsed


def get_current_branch(root: Root = ".", config: PulseConfig | None = None) -> str:
    r = make_runner(root, config)
    return r.output(["branch", "--show-current"], context="get_current_branch(branch)").strip()


def get_upstream_status(root: Root = ".", config: PulseConfig | None = None) -> AheadBehind:
    """Ahead/behind of the current branch against its tracking branch, from `branch -vv`."""
    for b in get_branches(root, config):
        if b.is_current and b.upstream:
            return parse_upstream_counts(b.upstream)
    return AheadBehind()


def get_commits(
    root: Root = ".",
    limit: int | None = None,
    config: PulseConfig | None = None,
) -> tuple[Parsed[Commit], list[str]]:
    """
    Two invocations over the same range: the typed log and the `--graph`
    rendering. Returns the commits and, per commit, the graph prefix of the
    graph line at the same index. If the repository changes between the two
    calls the prefixes can misalign; prefer get_commit_graph.
    """
    r = make_runner(root, config)
    rng = _log_range_args(_effective_limit(limit, config))

    log_out = r.output(["log", f"--pretty=format:{LOG_FORMAT}", *rng], context="get_commits(log)")
    graph_out = r.output(["log", "--graph", "--oneline", *rng], context="get_commits(log --graph)")

    commits = parse_commit_log(log_out)
    note_skipped("log", commits.skipped)
    return commits, align_graph(commits.items, parse_graph_lines(graph_out))


def get_commit_graph(
    root: Root = ".",
    limit: int | None = None,
    config: PulseConfig | None = None,
) -> CommitGraph:
    """Commits and graph glyphs from a single `log --graph` invocation."""
    r = make_runner(root, config)
    rng = _log_range_args(_effective_limit(limit, config))
    out = r.output(
        ["log", "--graph", f"--pretty=format:{GRAPH_LOG_FORMAT}", *rng],
        context="get_commit_graph(log --graph)",
    )
    graph = parse_commit_graph(out)
    note_skipped("graph", graph.skipped)
    return graph


def get_last_commit_time(root: Root = ".", config: PulseConfig | None = None) -> datetime:
    r = make_runner(root, config)
    res = r.run(["log", "-1", "--format=%ct"])
    out = res.stdout.strip()
    if res.exit_code != 0 or not out:
        raise ExternalToolError(
            "get_last_commit_time(log) failed: no commits found",
            argv=res.argv,
            exit_code=res.exit_code,
            output=res.combined_output.strip(),
        )
    return parse_unix_timestamp(out)


def get_line_stats(root: Root = ".", config: PulseConfig | None = None) -> dict[str, LineStat]:
    """Per-file added/deleted counts of unstaged changes."""
    r = make_runner(root, config)
    return parse_numstat(r.output(["diff", "--numstat"], context="get_line_stats(diff)"))


def get_diff(path: str, staged: bool = False, root: Root = ".", config: PulseConfig | None = None) -> str:
    r = make_runner(root, config)
    args = ["diff"]
    if staged:
        args.append("--staged")
    args.extend(["--", safe_repo_path(r.root, path)])
    return r.output(args, context="get_diff(diff)")


def get_default_branch(root: Root = ".", config: PulseConfig | None = None) -> str:
    cfg = config or PulseConfig.from_env()
    return resolve_default_branch(make_runner(root, cfg), remote=cfg.remote)


def get_branch_comparison(
    root: Root = ".",
    default_branch: str | None = None,
    config: PulseConfig | None = None,
) -> AheadBehind:
    cfg = config or PulseConfig.from_env()
    r = make_runner(root, cfg)
    default_branch = default_branch or resolve_default_branch(r, remote=cfg.remote)
    return compare_with_default(r, default_branch, remote=cfg.remote)
