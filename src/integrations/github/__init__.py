"""GitHub integration utilities."""

from .client import GitHubClient
from .discussions import Discussion, DiscussionComment, GitHubDiscussionError
from .issues import GitHubIssueError, Issue, IssueComment

PLATFORM_ERRORS = (GitHubIssueError, GitHubDiscussionError)

__all__ = [
    "GitHubClient",
    "Discussion",
    "DiscussionComment",
    "GitHubDiscussionError",
    "GitHubIssueError",
    "Issue",
    "IssueComment",
    "PLATFORM_ERRORS",
]
