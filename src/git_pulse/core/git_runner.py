from __future__ import annotations

import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import ExternalToolError, GitPolicyError
from .logging import get_logger
from .models import GitRunResult
from .security import resolve_root

log = get_logger(__name__)

TIMEOUT_EXIT_CODE = 124


def _kill_process_tree_windows(pid: int) -> None:
    """
    Kill a process tree on Windows (git may spawn helper processes such as
    credential managers, ssh, pagers, etc.).
    """
    subprocess.run(
        ["taskkill", "/PID", str(pid), "/T", "/F"],
        capture_output=True,
        text=True,
    )


def _kill_process_group_posix(p: subprocess.Popen) -> None:
    """
    Kill entire process group on POSIX when start_new_session=True.
    Falls back to p.kill() if the group kill fails.
    """
    try:
        os.killpg(p.pid, signal.SIGKILL)
    except OSError:
        try:
            p.kill()
        except OSError:
            pass


def _kill(p: subprocess.Popen) -> None:
    if os.name == "nt":
        _kill_process_tree_windows(p.pid)
    else:
        _kill_process_group_posix(p)


def require_ok(res: GitRunResult, context: str) -> GitRunResult:
    if res.timed_out:
        raise ExternalToolError(
            f"{context} timed out after {res.duration_ms} ms",
            argv=res.argv,
            exit_code=res.exit_code,
            output=res.combined_output,
        )
    if res.exit_code != 0:
        output = res.combined_output.strip()
        raise ExternalToolError(
            f"{context} failed: {output or f'exit code {res.exit_code}'}",
            argv=res.argv,
            exit_code=res.exit_code,
            output=output,
        )
    return res


@dataclass(frozen=True)
class GitRunnerConfig:
    """
    Runner configuration. `timeout_s=None` runs without a deadline and
    `max_output_chars=None` keeps the full output.
    """
    timeout_s: float | None = None
    max_output_chars: int | None = None
    executable: str = "git"

    # Read-only allowlist: prevents accidental mutating commands.
    read_only_allowlist: tuple[str, ...] = (
        "rev-parse",
        "rev-list",
        "symbolic-ref",
        "status",
        "log",
        "diff",
        "show",
        "branch",
        "remote",
        "config",
        "ls-files",
        "merge-base",
    )


class SafeGitRunner:
    """
    Local git runner bound to one working directory:
      - No shell, stdin closed, non-interactive environment
      - Enforces cwd=root
      - Optional hard deadline that kills the child's process group/tree
      - Optional output ceiling with deterministic truncation
      - Single attempt; never retries
    """

    def __init__(self, root: str | Path, config: GitRunnerConfig | None = None) -> None:
        self.root = resolve_root(root)
        self.config = config or GitRunnerConfig()

    def run(
        self,
        args: Iterable[str],
        *,
        read_only: bool = True,
        env: dict[str, str] | None = None,
    ) -> GitRunResult:
        args_list = list(args)
        self._validate_args(args_list, read_only=read_only)

        argv = [self.config.executable, *args_list]
        merged_env = self._build_env(env)

        start = time.perf_counter()
        stdout, stderr, exit_code, timed_out = self._run_process(
            argv=argv,
            cwd=self.root,
            env=merged_env,
            timeout_s=self.config.timeout_s,
        )
        duration_ms = int((time.perf_counter() - start) * 1000)

        stdout, stderr, output_truncated = self._apply_output_ceiling(stdout, stderr)

        if timed_out:
            log.warning("git.timeout", argv=argv, root=str(self.root), timeout_s=self.config.timeout_s)
        elif exit_code != 0:
            log.warning("git.nonzero_exit", argv=argv, exit_code=exit_code, stderr=stderr.strip()[:500])
        else:
            log.debug("git.run", argv=argv, exit_code=exit_code, duration_ms=duration_ms)

        return GitRunResult(
            argv=argv,
            root=str(self.root),
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=timed_out,
            output_truncated=output_truncated,
        )

    def output(
        self,
        args: Iterable[str],
        *,
        context: str,
        read_only: bool = True,
    ) -> str:
        """Run, fail with ExternalToolError on non-zero exit, return stdout."""
        res = self.run(args, read_only=read_only)
        require_ok(res, context=context)
        return res.stdout

    def _validate_args(self, args_list: list[str], *, read_only: bool) -> None:
        if not args_list:
            raise GitPolicyError("Empty git args are not allowed.")

        if not read_only:
            return
        lowered = [a.strip().lower() for a in args_list]
        subcmd = lowered[0]
        if subcmd not in self.config.read_only_allowlist:
            raise GitPolicyError(
                f"Blocked git subcommand in read-only mode: '{subcmd}'. "
                f"Allowed: {', '.join(self.config.read_only_allowlist)}"
            )

        dangerous_flags = {
            "--global", "--system",
            "--unset", "--unset-all", "--add", "--replace-all",
            "--delete",
            "--force", "-f",
        }

        if any(f in lowered for f in dangerous_flags):
            raise GitPolicyError(f"Blocked potentially mutating git flags in read-only mode: {args_list}")

        if subcmd == "branch":
            # any bare positional is a branch to create; -vv/--all/--show-current etc. are flags
            if any(t in {"-d", "--delete", "-m", "-c"} for t in lowered[1:]):
                raise GitPolicyError("Blocked branch mutation in read-only mode.")
            if any(not t.startswith("-") for t in lowered[1:]):
                raise GitPolicyError("Blocked branch creation in read-only mode.")

        if subcmd == "remote" and len(lowered) >= 2:
            op = lowered[1]
            if op in {"set-url", "add", "remove", "rename", "prune", "set-head"}:
                raise GitPolicyError("Blocked remote mutation in read-only mode.")

        if subcmd == "config" and len(lowered) >= 3:
            raise GitPolicyError("Blocked config write in read-only mode.")

        if subcmd == "symbolic-ref" and len([t for t in lowered[1:] if not t.startswith("-")]) >= 2:
            raise GitPolicyError("Blocked symbolic-ref write in read-only mode.")

    def _build_env(self, extra_env: dict[str, str] | None) -> dict[str, str]:
        """
        Build a controlled environment that prevents interactive hangs.
        """
        merged_env = dict(os.environ)
        merged_env.update(
            {
                "GIT_TERMINAL_PROMPT": "0",
                "GCM_INTERACTIVE": "Never",
                "GIT_PAGER": "cat",
                "LC_ALL": "C",
                "GIT_OPTIONAL_LOCKS": "0",
            }
        )

        if extra_env:
            merged_env.update(extra_env)

        return merged_env

    def _run_process(
        self,
        *,
        argv: list[str],
        cwd: Path,
        env: dict[str, str],
        timeout_s: float | None,
    ) -> tuple[str, str, int, bool]:
        """
        Popen + communicate(timeout). Returns (stdout, stderr, exit_code, timed_out).
        """
        # POSIX: allow killing full process group
        popen_kwargs: dict = {}
        if os.name != "nt":
            popen_kwargs["start_new_session"] = True

        try:
            p = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                **popen_kwargs,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(f"{argv[0]} executable not found in PATH.", argv=argv) from e
        except OSError as e:
            raise ExternalToolError(f"Failed to spawn {argv[0]}: {type(e).__name__}: {e}", argv=argv) from e

        try:
            out, err = p.communicate(timeout=timeout_s)
            return out or "", err or "", int(p.returncode or 0), False

        except subprocess.TimeoutExpired:
            try:
                _kill(p)
            finally:
                try:
                    out, err = p.communicate(timeout=0.5)
                except (subprocess.TimeoutExpired, OSError, ValueError):
                    out, err = ("", "")

            return out or "", err or "", TIMEOUT_EXIT_CODE, True

        except Exception as e:
            # Ensure process is not left running
            try:
                _kill(p)
            except OSError:
                pass
            raise ExternalToolError(f"Failed while running {argv[0]}: {type(e).__name__}: {e}", argv=argv) from e

    def _apply_output_ceiling(self, stdout: str, stderr: str) -> tuple[str, str, bool]:
        """
        Enforce output ceiling (stdout+stderr). Prefer keeping stderr.
        Deterministic truncation: keep up to half for stderr, rest for stdout.
        """
        if self.config.max_output_chars is None:
            return stdout, stderr, False

        max_chars = max(1, int(self.config.max_output_chars))
        if len(stdout) + len(stderr) <= max_chars:
            return stdout, stderr, False

        keep_stderr = min(len(stderr), max_chars // 2)
        keep_stdout = max_chars - keep_stderr

        return stdout[:keep_stdout], stderr[:keep_stderr], True
