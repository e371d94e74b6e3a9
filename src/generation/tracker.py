"""Reaction-based processed markers for work items.

A thumbs-down reaction on a comment is the only record that it has been
handled. Writing the marker is a separate call from posting the generated
text, so a crash between the two leaves the item unmarked and it is
processed again on the next run.
"""

from __future__ import annotations

import logging
from typing import Protocol, Union

from src.integrations.github import PLATFORM_ERRORS
from src.integrations.github.discussions import THUMBS_DOWN, DiscussionComment
from src.integrations.github.issues import IssueComment

logger = logging.getLogger(__name__)

ISSUE_THUMBS_DOWN = "-1"

WorkItem = Union[IssueComment, DiscussionComment]


class ReactionPlatform(Protocol):
    def add_issue_comment_reaction(self, comment_id: int, content: str) -> None:
        ...

    def add_discussion_reaction(self, subject_id: str, content: str) -> None:
        ...


def _item_key(item: WorkItem) -> tuple[str, str]:
    if isinstance(item, IssueComment):
        return ("issue-comment", str(item.id))
    if isinstance(item, DiscussionComment):
        return ("discussion-comment", item.id)
    raise TypeError(f"Unsupported work item: {type(item).__name__}")


class ProcessingTracker:
    """Answer whether a work item was handled and mark it once it has been."""

    def __init__(self, platform: ReactionPlatform) -> None:
        self._platform = platform
        self._marked: set[tuple[str, str]] = set()

    def is_processed(self, item: WorkItem) -> bool:
        if _item_key(item) in self._marked:
            return True
        if isinstance(item, IssueComment):
            return item.thumbs_down > 0
        return THUMBS_DOWN in item.reactions

    def mark_processed(self, item: WorkItem) -> bool:
        """Write the marker; failures are logged and reported as ``False``."""
        key = _item_key(item)
        try:
            if isinstance(item, IssueComment):
                self._platform.add_issue_comment_reaction(item.id, ISSUE_THUMBS_DOWN)
            else:
                self._platform.add_discussion_reaction(item.id, THUMBS_DOWN)
        except PLATFORM_ERRORS as exc:
            logger.warning("Could not mark %s %s as processed: %s", key[0], key[1], exc)
            return False
        self._marked.add(key)
        logger.debug("Marked %s %s as processed", key[0], key[1])
        return True


__all__ = ["ISSUE_THUMBS_DOWN", "ProcessingTracker", "ReactionPlatform", "WorkItem"]
