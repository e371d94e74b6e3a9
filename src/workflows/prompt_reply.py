"""prompt-reply: answer discussion comments with every loaded prompt template.

Templates come from the comments of the first issue labeled ``prompt`` and
``reply``. Each unmarked top-level discussion comment is substituted into
every template and the generated text is posted as a threaded reply. A
comment is marked only when every template succeeded; templates used during
the run are marked once all discussions have been visited.
"""

from __future__ import annotations

import logging

from src.generation import (
    ProcessingTracker,
    PromptTemplate,
    ProviderConfig,
    ProviderInvoker,
    extract_prompt,
    fill_template,
)
from src.integrations.github.discussions import Discussion, DiscussionComment
from src.integrations.github.issues import IssueComment

from .common import (
    ITEM_ERRORS,
    Platform,
    RunReport,
    first_labeled_issue,
    load_provider_configs,
)
from .config import WorkflowConfig

logger = logging.getLogger(__name__)


def load_prompt_templates(
    platform: Platform,
    labels: tuple[str, ...],
    tracker: ProcessingTracker,
) -> tuple[dict[str, PromptTemplate], dict[int, IssueComment]]:
    """Return templates keyed by kind plus their source comments keyed by id.

    A later comment declaring the same kind replaces the earlier template.
    """

    issue = first_labeled_issue(platform, labels)
    templates: dict[str, PromptTemplate] = {}
    sources: dict[int, IssueComment] = {}
    for comment in platform.list_issue_comments(issue.number):
        if tracker.is_processed(comment):
            logger.info("Skipping template comment %s (already processed)", comment.id)
            continue
        record = extract_prompt(comment.body)
        if record is None:
            logger.debug("Comment %s holds no template", comment.id)
            continue
        templates[record.kind] = PromptTemplate(
            kind=record.kind, content=record.content, source_id=comment.id
        )
        sources[comment.id] = comment
    logger.info("Loaded %d prompt template(s)", len(templates))
    return templates, sources


class PromptReplyRun:
    def __init__(
        self,
        platform: Platform,
        invoker: ProviderInvoker,
        config: WorkflowConfig,
        used_template_ids: set[int],
    ) -> None:
        self._platform = platform
        self._invoker = invoker
        self._config = config
        self._used = used_template_ids
        self._tracker = ProcessingTracker(platform)
        self.report = RunReport("prompt-reply")

    def run(self) -> RunReport:
        configs = load_provider_configs(self._platform, self._config.config_labels)
        templates, sources = load_prompt_templates(
            self._platform, self._config.reply_labels, self._tracker
        )
        if not templates:
            logger.warning("No unprocessed prompt templates; nothing to do")
            return self.report

        discussions = self._platform.list_discussions()
        logger.info("Found %d discussion(s)", len(discussions))
        for discussion in discussions:
            self._process_discussion(discussion, templates, configs)

        self._mark_used_templates(sources)
        logger.info("%s", self.report.summary())
        return self.report

    def _process_discussion(
        self,
        discussion: Discussion,
        templates: dict[str, PromptTemplate],
        configs: list[ProviderConfig],
    ) -> None:
        logger.info("Processing discussion #%d: %s", discussion.number, discussion.title)
        try:
            comments = self._platform.list_discussion_comments(discussion.number)
        except ITEM_ERRORS as exc:
            self.report.failed += 1
            logger.warning(
                "Could not list comments of discussion #%d: %s", discussion.number, exc
            )
            return

        for comment in comments:
            if self._tracker.is_processed(comment):
                self.report.skipped += 1
                logger.info("Skipping comment %s (already processed)", comment.id)
                continue
            if self._reply_with_templates(discussion, comment, templates, configs):
                self.report.processed += 1
                if not self._tracker.mark_processed(comment):
                    self.report.unmarked += 1

    def _reply_with_templates(
        self,
        discussion: Discussion,
        comment: DiscussionComment,
        templates: dict[str, PromptTemplate],
        configs: list[ProviderConfig],
    ) -> bool:
        all_succeeded = True
        for kind, template in templates.items():
            try:
                prompt = fill_template(template.content, comment.body)
                result = self._invoker.invoke(configs, prompt)
                self._platform.add_discussion_reply(
                    discussion.id, comment.id, result.text.strip()
                )
            except ITEM_ERRORS as exc:
                all_succeeded = False
                self.report.failed += 1
                logger.warning("Template %s failed on comment %s: %s", kind, comment.id, exc)
                continue
            logger.info("Replied to comment %s with template %s", comment.id, kind)
            self.report.posted += 1
            self._used.add(template.source_id)
        return all_succeeded

    def _mark_used_templates(self, sources: dict[int, IssueComment]) -> None:
        logger.info("Marking %d template(s) as processed", len(self._used))
        for source_id in sorted(self._used):
            source = sources.get(source_id)
            if source is None:
                continue
            if not self._tracker.mark_processed(source):
                self.report.unmarked += 1


def run_prompt_reply(
    platform: Platform,
    invoker: ProviderInvoker,
    config: WorkflowConfig,
    used_template_ids: set[int] | None = None,
) -> RunReport:
    """Run the prompt-reply workflow once over the repository.

    ``used_template_ids`` collects the source ids of templates applied during
    this run; pass a set to inspect it afterwards.
    """

    used = used_template_ids if used_template_ids is not None else set()
    return PromptReplyRun(platform, invoker, config, used).run()


__all__ = ["PromptReplyRun", "load_prompt_templates", "run_prompt_reply"]
