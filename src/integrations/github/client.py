"""Repository-scoped GitHub client combining the REST and GraphQL helpers."""

from __future__ import annotations

from typing import Sequence

from . import discussions, issues
from .discussions import Discussion, DiscussionComment, GitHubDiscussionError
from .issues import DEFAULT_API_URL, GitHubIssueError, Issue, IssueComment


class GitHubClient:
    """Bind a token and ``owner/repo`` to the issue and discussion operations."""

    def __init__(self, *, token: str, repository: str, api_url: str = DEFAULT_API_URL) -> None:
        if not token:
            raise GitHubIssueError("A GitHub token is required.")
        issues.normalize_repository(repository)
        self._token = token
        self._repository = repository
        self._api_url = api_url.rstrip("/")

    @property
    def repository(self) -> str:
        return self._repository

    # ----- Issues -----
    def list_issues(self, labels: Sequence[str]) -> list[Issue]:
        return issues.list_issues(
            token=self._token,
            repository=self._repository,
            labels=labels,
            api_url=self._api_url,
        )

    def list_issue_comments(self, issue_number: int) -> list[IssueComment]:
        return issues.list_issue_comments(
            token=self._token,
            repository=self._repository,
            issue_number=issue_number,
            api_url=self._api_url,
        )

    def add_issue_comment_reaction(self, comment_id: int, content: str) -> None:
        issues.add_issue_comment_reaction(
            token=self._token,
            repository=self._repository,
            comment_id=comment_id,
            content=content,
            api_url=self._api_url,
        )

    # ----- Discussions -----
    def list_discussions(self) -> list[Discussion]:
        return discussions.list_discussions(
            token=self._token,
            repository=self._repository,
            api_url=self._api_url,
        )

    def find_discussion_by_title(self, title: str) -> Discussion | None:
        return discussions.find_discussion_by_title(
            token=self._token,
            repository=self._repository,
            title=title,
            api_url=self._api_url,
        )

    def create_discussion(self, title: str, body: str, category_name: str) -> Discussion:
        category = discussions.get_category_by_name(
            token=self._token,
            repository=self._repository,
            category_name=category_name,
            api_url=self._api_url,
        )
        if category is None:
            raise GitHubDiscussionError(
                f"Discussion category '{category_name}' not found in {self._repository}."
            )
        return discussions.create_discussion(
            token=self._token,
            repository=self._repository,
            category_id=category.id,
            title=title,
            body=body,
            api_url=self._api_url,
        )

    def list_discussion_comments(self, discussion_number: int) -> list[DiscussionComment]:
        return discussions.list_discussion_comments(
            token=self._token,
            repository=self._repository,
            discussion_number=discussion_number,
            api_url=self._api_url,
        )

    def add_discussion_comment(self, discussion_id: str, body: str) -> DiscussionComment:
        return discussions.add_discussion_comment(
            token=self._token,
            discussion_id=discussion_id,
            body=body,
            api_url=self._api_url,
        )

    def add_discussion_reply(
        self, discussion_id: str, comment_id: str, body: str
    ) -> DiscussionComment:
        return discussions.add_discussion_reply(
            token=self._token,
            discussion_id=discussion_id,
            comment_id=comment_id,
            body=body,
            api_url=self._api_url,
        )

    def add_discussion_reaction(self, subject_id: str, content: str) -> None:
        discussions.add_reaction(
            token=self._token,
            subject_id=subject_id,
            content=content,
            api_url=self._api_url,
        )


__all__ = ["GitHubClient"]
