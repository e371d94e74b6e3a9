"""In-memory GitHub platform and provider session used by the workflow tests."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Sequence
from unittest.mock import MagicMock

import requests

from src.integrations.github.discussions import (
    Discussion,
    DiscussionComment,
    GitHubDiscussionError,
)
from src.integrations.github.issues import GitHubIssueError, Issue, IssueComment


class FakePlatform:
    """Keeps issues, discussions, and reactions in memory across runs."""

    def __init__(self, *, categories: Iterable[str] = ("General",)) -> None:
        self.issues: list[Issue] = []
        self.categories = set(categories)
        self.discussions: list[Discussion] = []
        self.posted: list[tuple[str, str]] = []
        self.replies: list[tuple[str, str, str]] = []
        self.fail_marks = False
        self.broken_discussions: set[int] = set()
        self._issue_comments: dict[int, list[IssueComment]] = {}
        self._discussion_comments: dict[int, list[DiscussionComment]] = {}
        self._issue_reactions: dict[int, dict[str, int]] = {}
        self._discussion_reactions: dict[str, list[str]] = {}
        self._next_id = 1000

    # ----- seeding -----
    def add_issue(self, number: int, title: str, labels: Sequence[str]) -> Issue:
        issue = Issue(number=number, title=title, labels=tuple(labels))
        self.issues.append(issue)
        self._issue_comments.setdefault(number, [])
        return issue

    def add_issue_comment(
        self, issue_number: int, body: str, *, created_at: str = "", thumbs_down: int = 0
    ) -> IssueComment:
        comment = IssueComment(id=self._new_id(), body=body, created_at=created_at)
        self._issue_comments[issue_number].append(comment)
        if thumbs_down:
            self._issue_reactions[comment.id] = {"-1": thumbs_down}
        return comment

    def add_discussion(self, number: int, title: str) -> Discussion:
        discussion = Discussion(id=f"D_{number}", number=number, title=title)
        self.discussions.append(discussion)
        self._discussion_comments.setdefault(number, [])
        return discussion

    def add_top_level_comment(
        self, discussion_number: int, body: str, *, reactions: Sequence[str] = ()
    ) -> DiscussionComment:
        comment = DiscussionComment(id=f"DC_{self._new_id()}", body=body)
        self._discussion_comments[discussion_number].append(comment)
        if reactions:
            self._discussion_reactions[comment.id] = list(reactions)
        return comment

    def issue_marked(self, comment: IssueComment) -> bool:
        return self._issue_reactions.get(comment.id, {}).get("-1", 0) > 0

    def discussion_marked(self, comment: DiscussionComment) -> bool:
        return "THUMBS_DOWN" in self._discussion_reactions.get(comment.id, [])

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # ----- platform operations -----
    def list_issues(self, labels: Sequence[str]) -> list[Issue]:
        return [issue for issue in self.issues if set(labels) <= set(issue.labels)]

    def list_issue_comments(self, issue_number: int) -> list[IssueComment]:
        return [
            replace(comment, reactions=dict(self._issue_reactions.get(comment.id, {})))
            for comment in self._issue_comments.get(issue_number, [])
        ]

    def add_issue_comment_reaction(self, comment_id: int, content: str) -> None:
        if self.fail_marks:
            raise GitHubIssueError("GitHub API error (403): Resource not accessible")
        counts = self._issue_reactions.setdefault(comment_id, {})
        counts[content] = counts.get(content, 0) + 1

    def list_discussions(self) -> list[Discussion]:
        return list(self.discussions)

    def find_discussion_by_title(self, title: str) -> Discussion | None:
        for discussion in self.discussions:
            if discussion.title == title:
                return discussion
        return None

    def create_discussion(self, title: str, body: str, category_name: str) -> Discussion:
        if category_name not in self.categories:
            raise GitHubDiscussionError(f"Discussion category '{category_name}' not found")
        number = len(self.discussions) + 1
        discussion = Discussion(
            id=f"D_{number}", number=number, title=title, body=body, category_name=category_name
        )
        self.discussions.append(discussion)
        self._discussion_comments[number] = []
        return discussion

    def list_discussion_comments(self, discussion_number: int) -> list[DiscussionComment]:
        if discussion_number in self.broken_discussions:
            raise GitHubDiscussionError("GitHub GraphQL error (502): Bad Gateway")
        return [
            replace(comment, reactions=tuple(self._discussion_reactions.get(comment.id, [])))
            for comment in self._discussion_comments.get(discussion_number, [])
        ]

    def add_discussion_comment(self, discussion_id: str, body: str) -> DiscussionComment:
        self.posted.append((discussion_id, body))
        comment = DiscussionComment(id=f"DC_{self._new_id()}", body=body)
        for discussion in self.discussions:
            if discussion.id == discussion_id:
                self._discussion_comments[discussion.number].append(comment)
        return comment

    def add_discussion_reply(
        self, discussion_id: str, comment_id: str, body: str
    ) -> DiscussionComment:
        self.replies.append((discussion_id, comment_id, body))
        return DiscussionComment(id=f"DC_{self._new_id()}", body=body)

    def add_discussion_reaction(self, subject_id: str, content: str) -> None:
        if self.fail_marks:
            raise GitHubDiscussionError("GitHub GraphQL error (403): Forbidden")
        self._discussion_reactions.setdefault(subject_id, []).append(content)


def echo_session(
    *, failing_endpoints: Iterable[str] = (), failing_marker: str | None = None
) -> MagicMock:
    """A requests session whose chat endpoint echoes ``answer to: <prompt>``.

    Calls to ``failing_endpoints`` or whose prompt contains ``failing_marker``
    return HTTP 500.
    """

    failing = set(failing_endpoints)

    def post(url: str, *, json: Any, headers: Any, params: Any, timeout: Any) -> MagicMock:
        content = json["messages"][0]["content"]
        response = MagicMock()
        if url in failing or (failing_marker and failing_marker in content):
            response.json.return_value = {"error": "server error"}
            response.raise_for_status.side_effect = requests.HTTPError(
                "500 Server Error", response=response
            )
            return response
        response.json.return_value = {
            "choices": [{"message": {"content": f"  answer to: {content}\n"}}]
        }
        return response

    session = MagicMock()
    session.post.side_effect = post
    return session


def config_comment(name: str, url: str, key: str) -> str:
    return f"name: {name}\nurl: {url}\nkey: {key}\ntype: openai"
