"""Publish pipeline: check, build, verify, deploy.

The pipeline is a single sequential job. Each step runs only after the
previous one succeeded; the first failure propagates and stops the job.
There is no retry and no partial-publish recovery.

TRIGGER SURFACE:
- push to the main branch: all steps
- pull_request: all steps except deploy
- any other event: nothing runs

USAGE:
    settings = Settings("site")
    result = run_pipeline(settings, resolve_ci_context())
    for step in result.steps:
        print(step.name, step.status.value)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .build import BuildResult, build_site
from .checks import CheckReport, check_drafts_excluded, check_publish_output, run_checks
from .config import Settings
from .content import Corpus
from .deploy import publish
from .host.environment import CIContext

logger = logging.getLogger(__name__)

STEPS = ("check", "build", "verify", "deploy")


class StepStatus(Enum):
    """Outcome of a pipeline step."""

    RAN = "ran"
    SKIPPED = "skipped"


@dataclass
class StepOutcome:
    name: str
    status: StepStatus
    reason: str = ""


@dataclass
class PipelineResult:
    """What a pipeline run did.

    Attributes:
        steps: Outcome of each step, in order
        build: Build result (None if the build did not run)
        report: Combined check report
    """
    steps: list[StepOutcome] = field(default_factory=list)
    build: Optional[BuildResult] = None
    report: CheckReport = field(default_factory=CheckReport)

    def status(self, name: str) -> Optional[StepStatus]:
        for step in self.steps:
            if step.name == name:
                return step.status
        return None

    @property
    def deployed(self) -> bool:
        return self.status("deploy") == StepStatus.RAN


def should_run(ctx: CIContext, main_branch: str = "main") -> bool:
    """Whether the job runs for this event (push to main, or a pull request)."""
    return ctx.should_run(main_branch)


def should_deploy(ctx: CIContext, main_branch: str = "main") -> bool:
    """Whether the deploy step runs (only when the ref is the main branch)."""
    return ctx.should_deploy(main_branch)


def run_pipeline(
    settings: Settings,
    ctx: CIContext,
    deployer: Callable[..., None] = publish,
) -> PipelineResult:
    """Run the publish job for a CI event.

    Args:
        settings: Site settings
        ctx: Triggering CI event
        deployer: Publish function (deploy.publish in production)

    Returns:
        PipelineResult describing each step

    Raises:
        CheckFailed: If content or output checks report errors
        BuildError: If the generator fails
        DeployError: If publishing fails
    """
    result = PipelineResult()

    if not should_run(ctx, settings.main_branch):
        reason = f"event {ctx.event!r} on {ctx.ref or 'no ref'} does not trigger the job"
        logger.info("Skipping pipeline: %s", reason)
        result.steps = [StepOutcome(name, StepStatus.SKIPPED, reason) for name in STEPS]
        return result

    logger.info("Pipeline triggered by %r", ctx)

    corpus = Corpus.load(settings.content_path)
    report = run_checks(corpus, settings)
    result.report = report
    report.raise_for_failures()
    result.steps.append(StepOutcome("check", StepStatus.RAN))

    result.build = build_site(settings, corpus=corpus)
    result.steps.append(StepOutcome("build", StepStatus.RAN))

    publish_dir = result.build.publish_dir
    verify = CheckReport()
    verify.extend(check_publish_output(publish_dir, settings.domain))
    if not settings.build_drafts:
        verify.extend(check_drafts_excluded(corpus, publish_dir))
    result.report.extend(verify.findings)
    verify.raise_for_failures()
    result.steps.append(StepOutcome("verify", StepStatus.RAN))

    if should_deploy(ctx, settings.main_branch):
        deployer(
            publish_dir,
            repository=ctx.repository,
            token=ctx.token,
            branch=settings.publish_branch,
        )
        result.steps.append(StepOutcome("deploy", StepStatus.RAN))
    else:
        reason = f"ref {ctx.ref!r} is not refs/heads/{settings.main_branch}"
        logger.info("Skipping deploy: %s", reason)
        result.steps.append(StepOutcome("deploy", StepStatus.SKIPPED, reason))

    return result
