"""CI environment access and trigger resolution.

The pipeline runs on a CI host that describes the triggering event through
environment variables. This module maps those variables to a CIContext.

Trigger surface:
- push to the main branch: build and deploy
- pull_request: build only
- anything else: nothing runs

The deploy step is additionally gated on the ref being the main branch,
so a pull request never publishes even though it builds.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

BRANCH_REF_PREFIX = "refs/heads/"


@dataclass
class CIContext:
    """Triggering event for a pipeline run.

    Attributes:
        event: Event name (push, pull_request, workflow_dispatch, ...)
        ref: Fully qualified git ref (refs/heads/main, refs/pull/7/merge)
        token: Token used to push the publish branch (None outside CI)
        repository: owner/name of the repository
        actor: User that triggered the run
    """
    event: str
    ref: str
    token: Optional[str] = None
    repository: Optional[str] = None
    actor: Optional[str] = None

    @property
    def branch(self) -> Optional[str]:
        """Branch name for branch refs, None for tags and pull request refs."""
        if self.ref.startswith(BRANCH_REF_PREFIX):
            return self.ref[len(BRANCH_REF_PREFIX):]
        return None

    def should_run(self, main_branch: str = "main") -> bool:
        """Whether the job runs at all for this event."""
        if self.event == "pull_request":
            return True
        return self.event == "push" and self.branch == main_branch

    def should_deploy(self, main_branch: str = "main") -> bool:
        """Whether the publish step runs (only for the main branch ref)."""
        return self.ref == f"{BRANCH_REF_PREFIX}{main_branch}"

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        token = "***" if self.token else None
        return (
            f"CIContext(event={self.event!r}, ref={self.ref!r}, token={token!r}, "
            f"repository={self.repository!r}, actor={self.actor!r})"
        )


def resolve_ci_context(environ: Optional[Mapping[str, str]] = None) -> CIContext:
    """Build a CIContext from GitHub Actions style variables.

    Outside CI the context looks like a local push to no branch, so
    nothing deploys.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        CIContext for the current run

    Examples:
        >>> ctx = resolve_ci_context({"GITHUB_EVENT_NAME": "push",
        ...                           "GITHUB_REF": "refs/heads/main"})
        >>> ctx.should_deploy("main")
        True
    """
    env = os.environ if environ is None else environ
    return CIContext(
        event=env.get("GITHUB_EVENT_NAME", "local"),
        ref=env.get("GITHUB_REF", ""),
        token=env.get("GITHUB_TOKEN") or None,
        repository=env.get("GITHUB_REPOSITORY") or None,
        actor=env.get("GITHUB_ACTOR") or None,
    )
