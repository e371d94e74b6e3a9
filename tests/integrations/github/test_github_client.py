"""Tests for the repository-scoped GitHub client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from src.integrations.github import GitHubClient
from src.integrations.github.discussions import DiscussionCategory, GitHubDiscussionError
from src.integrations.github.issues import GitHubIssueError


@pytest.fixture
def client() -> GitHubClient:
    return GitHubClient(
        token="test-token", repository="octo/repo", api_url="https://ghe.example.com/api/v3/"
    )


class TestConstruction:
    def test_requires_token(self) -> None:
        with pytest.raises(GitHubIssueError, match="token"):
            GitHubClient(token="", repository="octo/repo")

    def test_validates_repository(self) -> None:
        with pytest.raises(GitHubIssueError):
            GitHubClient(token="t", repository="not-a-repo")

    def test_repository_property(self, client: GitHubClient) -> None:
        assert client.repository == "octo/repo"


class TestDelegation:
    @patch("src.integrations.github.issues.list_issues")
    def test_list_issues(self, mock_list: MagicMock, client: GitHubClient) -> None:
        client.list_issues(("api",))

        mock_list.assert_called_once_with(
            token="test-token",
            repository="octo/repo",
            labels=("api",),
            api_url="https://ghe.example.com/api/v3",
        )

    @patch("src.integrations.github.discussions.add_discussion_reply")
    def test_add_discussion_reply(self, mock_reply: MagicMock, client: GitHubClient) -> None:
        client.add_discussion_reply("D_1", "DC_2", "text")

        kwargs = mock_reply.call_args.kwargs
        assert (kwargs["discussion_id"], kwargs["comment_id"], kwargs["body"]) == (
            "D_1",
            "DC_2",
            "text",
        )

    @patch("src.integrations.github.discussions.add_reaction")
    def test_add_discussion_reaction(self, mock_react: MagicMock, client: GitHubClient) -> None:
        client.add_discussion_reaction("DC_2", "THUMBS_DOWN")

        assert mock_react.call_args.kwargs["subject_id"] == "DC_2"
        assert mock_react.call_args.kwargs["content"] == "THUMBS_DOWN"


class TestCreateDiscussion:
    @patch("src.integrations.github.discussions.create_discussion")
    @patch("src.integrations.github.discussions.get_category_by_name")
    def test_resolves_category(
        self, mock_category: MagicMock, mock_create: MagicMock, client: GitHubClient
    ) -> None:
        mock_category.return_value = DiscussionCategory(id="DIC_7", name="General")

        client.create_discussion("Title", "Title", "General")

        assert mock_category.call_args.kwargs["category_name"] == "General"
        kwargs = mock_create.call_args.kwargs
        assert kwargs["category_id"] == "DIC_7"
        assert kwargs["title"] == "Title"

    @patch("src.integrations.github.discussions.create_discussion")
    @patch("src.integrations.github.discussions.get_category_by_name", return_value=None)
    def test_missing_category(
        self, mock_category: MagicMock, mock_create: MagicMock, client: GitHubClient
    ) -> None:
        with pytest.raises(GitHubDiscussionError, match="category 'General' not found"):
            client.create_discussion("Title", "Title", "General")
        mock_create.assert_not_called()
