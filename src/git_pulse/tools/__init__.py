from .actions import (
    commit,
    create_branch,
    create_branch_from_default,
    delete_branch,
    stage_all,
    stage_file,
    switch_branch,
    unstage_file,
)
from .dashboard import load_dashboard
from .queries import (
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
    get_upstream_status,
    get_working_tree_status,
    has_uncommitted_changes,
)

__all__ = [
    "commit",
    "create_branch",
    "create_branch_from_default",
    "delete_branch",
    "stage_all",
    "stage_file",
    "switch_branch",
    "unstage_file",
    "load_dashboard",
    "get_branch_comparison",
    "get_branches",
    "get_commit_graph",
    "get_commits",
    "get_current_branch",
    "get_default_branch",
    "get_diff",
    "get_last_commit_time",
    "get_line_stats",
    "get_status_summary",
    "get_upstream_status",
    "get_working_tree_status",
    "has_uncommitted_changes",
]
