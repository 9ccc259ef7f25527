"""Publish the built site to the pages branch.

The publish directory is pushed as a single commit to a dedicated branch
(gh-pages by default) that the hosting platform serves. Each deploy
replaces the branch history with one commit holding exactly the publish
directory, so stale files never linger.

The CI token is embedded in the push URL only. It is never logged and is
redacted from any git error surfaced in a DeployError.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import DeployError
from .host.filesystem import copy_tree

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = ("github-actions[bot]", "github-actions[bot]@users.noreply.github.com")
NOJEKYLL = ".nojekyll"


def remote_url(repository: str, token: str, host: str = "github.com") -> str:
    """Authenticated HTTPS push URL for owner/name."""
    return f"https://x-access-token:{token}@{host}/{repository}.git"


def _redact(text: str, token: str) -> str:
    return text.replace(token, "***") if token else text


def _git(args: list[str], cwd: Path, token: str) -> str:
    """Run one git command, raising DeployError on failure."""
    try:
        result = subprocess.run(
            ["git", *args], cwd=cwd, capture_output=True, text=True
        )
    except FileNotFoundError:
        raise DeployError("git executable not found")

    if result.returncode != 0:
        # args may hold the token (push URL)
        command = _redact(" ".join(args), token)
        raise DeployError(
            f"git {command} failed with status {result.returncode}",
            details={"stderr": _redact(result.stderr, token)},
        )
    return result.stdout


def publish(
    publish_dir: Path,
    repository: str,
    token: Optional[str],
    branch: str = "gh-pages",
    message: Optional[str] = None,
    author: tuple[str, str] = DEFAULT_AUTHOR,
    host: str = "github.com",
) -> None:
    """Force-push the publish directory as the only commit of branch.

    Args:
        publish_dir: Built site (must be non-empty)
        repository: owner/name of the target repository
        token: CI token allowed to push
        branch: Pages branch name
        message: Commit message
        author: (name, email) for the commit
        host: Git host name

    Raises:
        DeployError: If the token or output is missing, or git fails
    """
    publish_dir = Path(publish_dir)
    if not token:
        raise DeployError("No token available to push the publish branch")
    if not repository:
        raise DeployError("No target repository given")
    if not publish_dir.is_dir() or not any(publish_dir.iterdir()):
        raise DeployError(f"Publish directory is empty or missing: {publish_dir}")

    message = message or f"deploy: publish {publish_dir.name}"
    name, email = author

    with tempfile.TemporaryDirectory(prefix="uluwatu-deploy-") as work:
        work_tree = Path(work)
        copied = copy_tree(publish_dir, work_tree)
        (work_tree / NOJEKYLL).touch()

        _git(["init", "--quiet"], work_tree, token)
        _git(["checkout", "--quiet", "--orphan", branch], work_tree, token)
        _git(["add", "--all"], work_tree, token)
        _git(
            ["-c", f"user.name={name}", "-c", f"user.email={email}",
             "commit", "--quiet", "-m", message],
            work_tree, token,
        )
        _git(
            ["push", "--quiet", "--force", remote_url(repository, token, host), f"{branch}:{branch}"],
            work_tree, token,
        )

    logger.info("Published %d files to %s@%s", copied, repository, branch)
