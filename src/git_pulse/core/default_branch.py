from __future__ import annotations

from typing import Callable

from .errors import DefaultBranchUnresolved
from .git_runner import SafeGitRunner
from .logging import get_logger
from .models import AheadBehind
from .parsers import parse_branch_comparison, parse_remote_head_branch, strip_remote_prefix

log = get_logger(__name__)

CONVENTIONAL_BRANCHES: tuple[str, ...] = ("main", "master", "dev", "develop")

Strategy = Callable[[SafeGitRunner, str], str | None]


def from_symbolic_ref(runner: SafeGitRunner, remote: str) -> str | None:
    """refs/remotes/<remote>/HEAD, set by clone or `git remote set-head`."""
    res = runner.run(["symbolic-ref", f"refs/remotes/{remote}/HEAD", "--short"])
    if not res.ok:
        return None
    return strip_remote_prefix(res.stdout, remote) or None


def from_remote_show(runner: SafeGitRunner, remote: str) -> str | None:
    """'HEAD branch:' line of `git remote show` (contacts the remote)."""
    res = runner.run(["remote", "show", remote])
    if not res.ok:
        return None
    return parse_remote_head_branch(res.stdout)


def from_conventional_names(runner: SafeGitRunner, remote: str) -> str | None:
    """First of main/master/dev/develop that exists on the remote."""
    for name in CONVENTIONAL_BRANCHES:
        if runner.run(["rev-parse", "--verify", f"{remote}/{name}"]).ok:
            return name
    return None


STRATEGIES: tuple[Strategy, ...] = (
    from_symbolic_ref,
    from_remote_show,
    from_conventional_names,
)


def resolve_default_branch(
    runner: SafeGitRunner,
    remote: str = "origin",
    strategies: tuple[Strategy, ...] = STRATEGIES,
) -> str:
    """
    Try each strategy once, in order; the first name found wins.
    Raises DefaultBranchUnresolved when none succeeds.
    """
    for strategy in strategies:
        name = strategy(runner, remote)
        if name:
            log.debug("default_branch.resolved", remote=remote, branch=name, strategy=strategy.__name__)
            return name
        log.debug("default_branch.strategy_failed", remote=remote, strategy=strategy.__name__)
    raise DefaultBranchUnresolved(remote)


def compare_with_default(runner: SafeGitRunner, default_branch: str, remote: str = "origin") -> AheadBehind:
    """Commits HEAD is ahead of / behind <remote>/<default_branch>."""
    out = runner.output(
        ["rev-list", "--left-right", "--count", f"{remote}/{default_branch}...HEAD"],
        context="compare_with_default(rev-list)",
    )
    return parse_branch_comparison(out)
