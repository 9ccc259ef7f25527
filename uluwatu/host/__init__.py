"""Host interface for uluwatu.

Provides abstractions for host platform operations (filesystem, CI environment).
"""

from .filesystem import ensure_dir, clear_dir, copy_tree, tree_digest, diff_trees
from .environment import CIContext, resolve_ci_context

__all__ = [
    "ensure_dir",
    "clear_dir",
    "copy_tree",
    "tree_digest",
    "diff_trees",
    "CIContext",
    "resolve_ci_context",
]
