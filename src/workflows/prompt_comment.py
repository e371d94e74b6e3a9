"""prompt-comment: turn prompt comments on labeled issues into discussion posts.

For every issue labeled ``prompt`` and ``comment``, each unmarked comment of
the form ``<Kind>Prompt: <content>`` is sent to the configured providers and
the answer is posted to the discussion titled like the issue (created in the
configured category when missing). The comment is marked afterwards.
"""

from __future__ import annotations

import logging
from typing import Callable

from src.generation import ProcessingTracker, ProviderConfig, ProviderInvoker, extract_prompt
from src.integrations.github.discussions import Discussion
from src.integrations.github.issues import Issue, IssueComment
from src.parsing import Attachment, download_attachment, find_attachment_url

from .common import ITEM_ERRORS, Platform, RunReport, load_provider_configs
from .config import WorkflowConfig

logger = logging.getLogger(__name__)

AttachmentLoader = Callable[[str, str], Attachment]


class PromptCommentRun:
    def __init__(
        self,
        platform: Platform,
        invoker: ProviderInvoker,
        config: WorkflowConfig,
        *,
        attachment_loader: AttachmentLoader | None = None,
        token: str | None = None,
    ) -> None:
        self._platform = platform
        self._invoker = invoker
        self._config = config
        self._token = token
        self._load_attachment = attachment_loader or self._download
        self._tracker = ProcessingTracker(platform)
        self._discussions: dict[str, Discussion] = {}
        self.report = RunReport("prompt-comment")

    def _download(self, url: str, label: str) -> Attachment:
        return download_attachment(
            url, label=label, token=self._token, timeout=self._config.request_timeout
        )

    def run(self) -> RunReport:
        configs = load_provider_configs(self._platform, self._config.config_labels)

        issues = self._platform.list_issues(self._config.comment_labels)
        logger.info(
            "Found %d issue(s) labeled %s", len(issues), ", ".join(self._config.comment_labels)
        )
        for issue in issues:
            self._process_issue(issue, configs)

        logger.info("%s", self.report.summary())
        return self.report

    def _process_issue(self, issue: Issue, configs: list[ProviderConfig]) -> None:
        logger.info("Processing issue #%d: %s", issue.number, issue.title)
        try:
            comments = self._platform.list_issue_comments(issue.number)
        except ITEM_ERRORS as exc:
            self.report.failed += 1
            logger.warning("Could not list comments of issue #%d: %s", issue.number, exc)
            return

        for comment in comments:
            if self._tracker.is_processed(comment):
                self.report.skipped += 1
                logger.info("Skipping comment %s (already processed)", comment.id)
                continue
            prompt = extract_prompt(comment.body)
            if prompt is None:
                self.report.skipped += 1
                logger.info("Skipping comment %s (no prompt found)", comment.id)
                continue

            logger.info("Processing %s from comment %s", prompt.kind, comment.id)
            try:
                self._generate_and_post(issue, comment, prompt.content, configs)
            except ITEM_ERRORS as exc:
                self.report.failed += 1
                logger.warning("Error while processing comment %s: %s", comment.id, exc)
                continue

            self.report.processed += 1
            if not self._tracker.mark_processed(comment):
                self.report.unmarked += 1

    def _generate_and_post(
        self,
        issue: Issue,
        comment: IssueComment,
        content: str,
        configs: list[ProviderConfig],
    ) -> None:
        attachment = None
        link = find_attachment_url(content)
        if link is not None:
            label, url = link
            attachment = self._load_attachment(url, label)

        result = self._invoker.invoke(configs, content, attachment)
        logger.info("Comment %s answered by %s", comment.id, result.provider_used)

        discussion = self._discussion_for(issue)
        self._platform.add_discussion_comment(discussion.id, result.text.strip())
        self.report.posted += 1

    def _discussion_for(self, issue: Issue) -> Discussion:
        cached = self._discussions.get(issue.title)
        if cached is not None:
            return cached
        discussion = self._platform.find_discussion_by_title(issue.title)
        if discussion is None:
            logger.info("Creating discussion: %s", issue.title)
            discussion = self._platform.create_discussion(
                issue.title, issue.title, self._config.discussion_category
            )
        self._discussions[issue.title] = discussion
        return discussion


def run_prompt_comment(
    platform: Platform,
    invoker: ProviderInvoker,
    config: WorkflowConfig,
    *,
    attachment_loader: AttachmentLoader | None = None,
    token: str | None = None,
) -> RunReport:
    """Run the prompt-comment workflow once over the repository."""

    return PromptCommentRun(
        platform, invoker, config, attachment_loader=attachment_loader, token=token
    ).run()


__all__ = ["AttachmentLoader", "PromptCommentRun", "run_prompt_comment"]
