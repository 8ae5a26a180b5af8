from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from git_pulse.core.logging import configure_logging
from git_pulse.core.models import to_jsonable
from git_pulse.tools import (
    commit,
    create_branch,
    create_branch_from_default,
    delete_branch,
    get_branch_comparison,
    get_branches,
    get_commit_graph,
    get_commits,
    get_current_branch,
    get_default_branch,
    get_diff,
    get_last_commit_time,
    get_line_stats,
    get_status_summary,
    get_working_tree_status,
    load_dashboard,
    stage_all,
    stage_file,
    switch_branch,
    unstage_file,
)

mcp = FastMCP("git-pulse")


@mcp.tool()
def dashboard_tool(root: str = ".") -> dict:
    return to_jsonable(load_dashboard(root=root))


@mcp.tool()
def status_tool(root: str = ".") -> dict:
    parsed = get_working_tree_status(root=root)
    return {"files": to_jsonable(parsed.items), "count": len(parsed), "skipped": parsed.skipped}


@mcp.tool()
def status_summary_tool(root: str = ".") -> dict:
    return {"summary": get_status_summary(root=root)}


@mcp.tool()
def branches_tool(root: str = ".") -> dict:
    parsed = get_branches(root=root)
    return {"branches": to_jsonable(parsed.items), "count": len(parsed), "skipped": parsed.skipped}


@mcp.tool()
def current_branch_tool(root: str = ".") -> dict:
    return {"branch": get_current_branch(root=root)}


@mcp.tool()
def log_tool(root: str = ".", limit: int = 50) -> dict:
    commits, prefixes = get_commits(root=root, limit=limit)
    return {
        "commits": to_jsonable(commits.items),
        "graph": prefixes,
        "skipped": commits.skipped,
    }


@mcp.tool()
def graph_tool(root: str = ".", limit: int = 50) -> dict:
    return to_jsonable(get_commit_graph(root=root, limit=limit))


@mcp.tool()
def last_commit_time_tool(root: str = ".") -> dict:
    return {"last_commit_time": get_last_commit_time(root=root).isoformat()}


@mcp.tool()
def line_stats_tool(root: str = ".") -> dict:
    return {"files": to_jsonable(get_line_stats(root=root))}


@mcp.tool()
def diff_tool(path: str, root: str = ".", staged: bool = False) -> dict:
    return {"path": path, "staged": staged, "diff": get_diff(path, staged=staged, root=root)}


@mcp.tool()
def default_branch_tool(root: str = ".") -> dict:
    default = get_default_branch(root=root)
    comparison = get_branch_comparison(root=root, default_branch=default)
    return {"default_branch": default, "ahead": comparison.ahead, "behind": comparison.behind}


def _result(res: Any) -> dict:
    return {"exit_code": res.exit_code, "output": res.combined_output.strip()}


@mcp.tool()
def switch_branch_tool(name: str, root: str = ".") -> dict:
    return _result(switch_branch(name, root=root))


@mcp.tool()
def create_branch_tool(name: str, root: str = ".", from_default: bool = False) -> dict:
    if from_default:
        return _result(create_branch_from_default(name, root=root))
    return _result(create_branch(name, root=root))


@mcp.tool()
def delete_branch_tool(name: str, root: str = ".", force: bool = False) -> dict:
    return _result(delete_branch(name, force=force, root=root))


@mcp.tool()
def stage_tool(root: str = ".", path: str | None = None, unstage: bool = False) -> dict:
    if path is None:
        return _result(stage_all(root=root))
    if unstage:
        return _result(unstage_file(path, root=root))
    return _result(stage_file(path, root=root))


@mcp.tool()
def commit_tool(message: str, root: str = ".") -> dict:
    return _result(commit(message, root=root))


def main() -> None:
    configure_logging()
    mcp.run()


if __name__ == "__main__":
    main()
