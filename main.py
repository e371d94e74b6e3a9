#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path

from src.generation import ProviderInvoker
from src.integrations.github import PLATFORM_ERRORS, GitHubClient
from src.integrations.github.issues import GitHubIssueError, resolve_repository, resolve_token
from src.workflows import (
    RunReport,
    WorkflowConfig,
    WorkflowSetupError,
    load_workflow_config,
    run_prompt_comment,
    run_prompt_reply,
)

OUTPUT_TEXT = "text"
OUTPUT_JSON = "json"
WORKFLOWS = ("prompt-comment", "prompt-reply")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("main")


def build_workflow_parser(workflow: str) -> argparse.ArgumentParser:
    descriptions = {
        "prompt-comment": "Answer prompt comments on labeled issues in GitHub Discussions.",
        "prompt-reply": "Reply to discussion comments using the configured prompt templates.",
    }
    parser = argparse.ArgumentParser(
        description=descriptions[workflow],
        prog=f"python -m main {workflow}",
    )
    parser.add_argument(
        "--repo",
        help="Target repository in owner/repo form. Defaults to $GITHUB_REPOSITORY.",
    )
    parser.add_argument(
        "--token",
        help="GitHub token. Defaults to $GH_TOKEN or $GITHUB_TOKEN.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a workflow YAML config (default: config/workflows.yaml when present).",
    )
    parser.add_argument(
        "--api-url",
        help="Base URL for the GitHub API (set for GitHub Enterprise). Overrides the config.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging verbosity (default: $LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "--output",
        choices=[OUTPUT_TEXT, OUTPUT_JSON],
        default=OUTPUT_TEXT,
        help="Output format for the run summary.",
    )
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def format_report(report: RunReport, mode: str) -> str:
    if mode == OUTPUT_JSON:
        return json.dumps(asdict(report), indent=2)
    return report.summary()


def build_invoker(config: WorkflowConfig) -> ProviderInvoker:
    return ProviderInvoker(
        timeout=config.request_timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def workflow_cli(workflow: str, args: argparse.Namespace) -> int:
    configure_logging(args.log_level)

    try:
        config = load_workflow_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    api_url = args.api_url or config.api_url
    try:
        token = resolve_token(args.token)
        repository = resolve_repository(args.repo)
        platform = GitHubClient(token=token, repository=repository, api_url=api_url)
    except GitHubIssueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    logger.info("Starting %s workflow for %s", workflow, repository)
    invoker = build_invoker(config)

    try:
        if workflow == "prompt-comment":
            report = run_prompt_comment(platform, invoker, config, token=token)
        else:
            report = run_prompt_reply(platform, invoker, config)
    except (WorkflowSetupError, *PLATFORM_ERRORS) as exc:
        logger.error("%s workflow failed: %s", workflow, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(format_report(report, args.output))
    return 0


def main(argv: list[str] | None = None) -> int:
    raw_args = sys.argv[1:] if argv is None else argv

    if not raw_args or raw_args[0] not in WORKFLOWS:
        choices = ", ".join(WORKFLOWS)
        print(f"usage: python -m main {{{choices}}} [options]", file=sys.stderr)
        return 2

    workflow = raw_args[0]
    parser = build_workflow_parser(workflow)
    try:
        args = parser.parse_args(raw_args[1:])
    except argparse.ArgumentError as exc:
        parser.error(str(exc))

    return workflow_cli(workflow, args)


if __name__ == "__main__":
    raise SystemExit(main())
