"""Pieces shared by the prompt-comment and prompt-reply workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from src.generation import ProviderConfig, ProviderError, extract_provider_configs
from src.integrations.github import PLATFORM_ERRORS
from src.integrations.github.discussions import Discussion, DiscussionComment
from src.integrations.github.issues import Issue, IssueComment
from src.parsing import AttachmentError

logger = logging.getLogger(__name__)

# Failures confined to a single work item; the batch carries on.
ITEM_ERRORS: tuple[type[BaseException], ...] = (ProviderError, AttachmentError, *PLATFORM_ERRORS)


class WorkflowSetupError(RuntimeError):
    """A shared precondition of the run is missing; the whole run aborts."""


class Platform(Protocol):
    """The GitHub operations a workflow run depends on."""

    def list_issues(self, labels: Sequence[str]) -> list[Issue]:
        ...

    def list_issue_comments(self, issue_number: int) -> list[IssueComment]:
        ...

    def add_issue_comment_reaction(self, comment_id: int, content: str) -> None:
        ...

    def list_discussions(self) -> list[Discussion]:
        ...

    def find_discussion_by_title(self, title: str) -> Discussion | None:
        ...

    def create_discussion(self, title: str, body: str, category_name: str) -> Discussion:
        ...

    def list_discussion_comments(self, discussion_number: int) -> list[DiscussionComment]:
        ...

    def add_discussion_comment(self, discussion_id: str, body: str) -> DiscussionComment:
        ...

    def add_discussion_reply(
        self, discussion_id: str, comment_id: str, body: str
    ) -> DiscussionComment:
        ...

    def add_discussion_reaction(self, subject_id: str, content: str) -> None:
        ...


@dataclass
class RunReport:
    """Counters describing one workflow run."""

    workflow: str
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    posted: int = 0
    unmarked: int = 0

    def summary(self) -> str:
        return (
            f"{self.workflow}: processed={self.processed} posted={self.posted} "
            f"skipped={self.skipped} failed={self.failed} unmarked={self.unmarked}"
        )


def first_labeled_issue(platform: Platform, labels: Sequence[str]) -> Issue:
    issues = platform.list_issues(labels)
    if not issues:
        raise WorkflowSetupError(f"No open issue labeled {', '.join(labels)}")
    issue = issues[0]
    logger.info("Using issue #%d: %s", issue.number, issue.title)
    return issue


def load_provider_configs(platform: Platform, labels: Sequence[str]) -> list[ProviderConfig]:
    """Read provider configurations from the comments of the configuration issue."""

    issue = first_labeled_issue(platform, labels)
    comments = platform.list_issue_comments(issue.number)
    configs = extract_provider_configs(
        comments, is_rejected=lambda comment: comment.thumbs_down > 0
    )
    if not configs:
        raise WorkflowSetupError(
            f"Issue #{issue.number} holds no complete provider configuration"
        )
    logger.info(
        "Loaded %d provider configuration(s): %s",
        len(configs),
        ", ".join(f"{config.name} ({config.kind})" for config in configs),
    )
    return configs


__all__ = [
    "ITEM_ERRORS",
    "Platform",
    "RunReport",
    "WorkflowSetupError",
    "first_labeled_issue",
    "load_provider_configs",
]
