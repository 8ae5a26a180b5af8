from __future__ import annotations

from pathlib import Path

from .common import make_runner
from ..core.config import PulseConfig
from ..core.default_branch import resolve_default_branch
from ..core.git_runner import SafeGitRunner, require_ok
from ..core.logging import get_logger
from ..core.models import GitRunResult
from ..core.security import safe_repo_path

log = get_logger(__name__)

Root = str | Path


def _require_ok(ok: bool, msg: str) -> None:
    if not ok:
        raise ValueError(msg)


def _branch_name(name: str) -> str:
    name = (name or "").strip()
    _require_ok(bool(name), "branch name is required")
    _require_ok(not name.startswith("-"), f"Invalid branch name: {name}")
    return name


def _write(runner: SafeGitRunner, args: list[str], context: str) -> GitRunResult:
    res = require_ok(runner.run(args, read_only=False), context=context)
    log.info("git.write", argv=res.argv, root=res.root)
    return res


def switch_branch(name: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    return _write(make_runner(root, config), ["checkout", _branch_name(name)], "switch_branch(checkout)")


def create_branch(name: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    return _write(make_runner(root, config), ["branch", _branch_name(name)], "create_branch(branch)")


def delete_branch(
    name: str,
    force: bool = False,
    root: Root = ".",
    config: PulseConfig | None = None,
) -> GitRunResult:
    flag = "-D" if force else "-d"
    return _write(make_runner(root, config), ["branch", flag, _branch_name(name)], "delete_branch(branch)")


def create_branch_from_default(name: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    """
    Fetch the remote's default branch, then create and check out `name` from it.
    """
    cfg = config or PulseConfig.from_env()
    runner = make_runner(root, cfg)
    name = _branch_name(name)
    default = resolve_default_branch(runner, remote=cfg.remote)

    _write(runner, ["fetch", cfg.remote, default], "create_branch_from_default(fetch)")
    return _write(
        runner,
        ["checkout", "-b", name, f"{cfg.remote}/{default}"],
        "create_branch_from_default(checkout)",
    )


def stage_file(path: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    r = make_runner(root, config)
    return _write(r, ["add", "--", safe_repo_path(r.root, path)], "stage_file(add)")


def unstage_file(path: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    r = make_runner(root, config)
    return _write(r, ["restore", "--staged", "--", safe_repo_path(r.root, path)], "unstage_file(restore)")


def stage_all(root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    return _write(make_runner(root, config), ["add", "-A"], "stage_all(add)")


def commit(message: str, root: Root = ".", config: PulseConfig | None = None) -> GitRunResult:
    _require_ok(bool((message or "").strip()), "commit message is required")
    return _write(make_runner(root, config), ["commit", "-m", message], "commit(commit)")
