"""Command line interface for uluwatu.

Commands:
    check              Run content checks over every post
    build              Build the site into the publish directory
    verify-idempotent  Build twice and compare the outputs
    deploy             Push the publish directory to the pages branch
    ci                 Run the full pipeline for the current CI event
    list               List posts with date, draft flag and tags
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .build import build_site, get_generator
from .checks import CheckReport, check_idempotent_build, run_checks
from .config import Settings
from .content import Corpus
from .deploy import publish
from .exceptions import CheckFailed, UluwatuError
from .host.environment import resolve_ci_context
from .pipeline import run_pipeline

logger = logging.getLogger("uluwatu")


def configure_logging(level: str, verbose: bool = False) -> None:
    """Configure the root logger once for the process."""
    if verbose:
        level = "debug"
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uluwatu",
        description="Check, build and publish a Markdown blog.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--site", type=Path, default=Path("."), help="site root (default: .)")
    parser.add_argument("--config", type=Path, help="explicit config.toml path")
    parser.add_argument("--profile", choices=["production", "preview"], help="build profile")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="run content checks")

    build = sub.add_parser("build", help="build the site")
    build.add_argument("--destination", type=Path, help="publish directory override")
    build.add_argument("--generator", choices=["native", "hugo"], help="generator override")
    build.add_argument("--drafts", action="store_true", help="include draft posts")

    sub.add_parser("verify-idempotent", help="build twice and compare outputs")
    sub.add_parser("deploy", help="push the publish directory to the pages branch")
    sub.add_parser("ci", help="run the pipeline for the current CI event")

    listing = sub.add_parser("list", help="list posts")
    listing.add_argument("--drafts", action="store_true", help="include draft posts")
    return parser


def print_report(report: CheckReport) -> None:
    for finding in report.findings:
        print(finding)
    print(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")


def cmd_check(settings: Settings, args: argparse.Namespace) -> int:
    corpus = Corpus.load(settings.content_path)
    report = run_checks(corpus, settings)
    print_report(report)
    return 0 if report.ok else 1


def cmd_build(settings: Settings, args: argparse.Namespace) -> int:
    if args.drafts:
        settings.build_drafts = True
    if args.generator:
        settings.generator = args.generator

    corpus = Corpus.load(settings.content_path)
    result = build_site(settings, corpus=corpus, publish_dir=args.destination)
    report = run_checks(corpus, settings, publish_dir=result.publish_dir)
    print_report(report)
    print(f"Built {result.pages} pages into {result.publish_dir} ({result.generator})")
    return 0 if report.ok else 1


def cmd_verify_idempotent(settings: Settings, args: argparse.Namespace) -> int:
    corpus = Corpus.load(settings.content_path)
    generator = get_generator(settings.generator)
    findings = check_idempotent_build(
        lambda target: build_site(settings, corpus=corpus, publish_dir=target, generator=generator)
    )
    report = CheckReport(findings)
    print_report(report)
    return 0 if report.ok else 1


def cmd_deploy(settings: Settings, args: argparse.Namespace) -> int:
    ctx = resolve_ci_context()
    publish(
        settings.publish_path,
        repository=ctx.repository,
        token=ctx.token,
        branch=settings.publish_branch,
    )
    return 0


def cmd_ci(settings: Settings, args: argparse.Namespace) -> int:
    result = run_pipeline(settings, resolve_ci_context())
    for step in result.steps:
        suffix = f" ({step.reason})" if step.reason else ""
        print(f"{step.name}: {step.status.value}{suffix}")
    return 0


def cmd_list(settings: Settings, args: argparse.Namespace) -> int:
    corpus = Corpus.load(settings.content_path)
    for post in corpus.published(include_drafts=args.drafts):
        date = post.date.strftime("%Y-%m-%d") if post.date else "----------"
        flag = " [draft]" if post.draft else ""
        tags = f"  ({', '.join(post.tags)})" if post.tags else ""
        print(f"{date}  {post.url_path}{flag}  {post.title}{tags}")
    return 0


COMMANDS = {
    "check": cmd_check,
    "build": cmd_build,
    "verify-idempotent": cmd_verify_idempotent,
    "deploy": cmd_deploy,
    "ci": cmd_ci,
    "list": cmd_list,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings(args.site, config_path=args.config, profile=args.profile)
    except UluwatuError as e:
        configure_logging("info", args.verbose)
        logger.error("%s", e)
        return 1

    configure_logging(settings.log_level, args.verbose)

    try:
        return COMMANDS[args.command](settings, args)
    except CheckFailed as e:
        for finding in e.findings:
            print(finding)
        logger.error("%s", e)
        return 1
    except UluwatuError as e:
        logger.error("%s", e)
        if e.details and e.details.get("stderr"):
            logger.error("%s", e.details["stderr"].rstrip())
        return 1


if __name__ == "__main__":
    sys.exit(main())
