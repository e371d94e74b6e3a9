"""REST helpers for GitHub issues, issue comments, and comment reactions."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence
from urllib import error, parse, request

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
PER_PAGE = 100


class GitHubIssueError(RuntimeError):
    """Raised when the GitHub API returns an error."""


@dataclass(frozen=True)
class Issue:
    """An open issue returned by the issues listing endpoint."""

    number: int
    title: str
    body: str = ""
    labels: tuple[str, ...] = ()

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "Issue":
        try:
            number = int(payload["number"])
        except (KeyError, TypeError, ValueError) as exc:  # pragma: no cover - protective
            raise GitHubIssueError("Unexpected GitHub issue payload") from exc
        labels = tuple(
            str(label.get("name", ""))
            for label in payload.get("labels") or []
            if isinstance(label, Mapping)
        )
        return cls(
            number=number,
            title=str(payload.get("title") or ""),
            body=str(payload.get("body") or ""),
            labels=labels,
        )


@dataclass(frozen=True)
class IssueComment:
    """A comment on an issue, including its reaction rollup."""

    id: int
    body: str
    created_at: str = ""
    author_login: str = ""
    reactions: Mapping[str, int] = field(default_factory=dict)

    @property
    def thumbs_down(self) -> int:
        return int(self.reactions.get("-1", 0) or 0)

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "IssueComment":
        try:
            comment_id = int(payload["id"])
        except (KeyError, TypeError, ValueError) as exc:  # pragma: no cover - protective
            raise GitHubIssueError("Unexpected GitHub comment payload") from exc
        user = payload.get("user") or {}
        rollup = payload.get("reactions") or {}
        reactions: dict[str, int] = {}
        if isinstance(rollup, Mapping):
            for key, value in rollup.items():
                if isinstance(value, int) and not isinstance(value, bool):
                    reactions[str(key)] = value
        return cls(
            id=comment_id,
            body=str(payload.get("body") or ""),
            created_at=str(payload.get("created_at") or ""),
            author_login=str(user.get("login", "")) if isinstance(user, Mapping) else "",
            reactions=reactions,
        )


def normalize_repository(repository: str | None) -> tuple[str, str]:
    """Split an ``owner/repo`` string into its two components."""

    if not repository:
        raise GitHubIssueError("Repository must be provided as 'owner/repo'.")
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise GitHubIssueError(f"Invalid repository format: {repository!r}")
    return owner, name


def resolve_repository(explicit_repo: str | None) -> str:
    """Return the repository name, preferring explicit input over the environment."""

    if explicit_repo:
        return explicit_repo
    repo = os.environ.get("GITHUB_REPOSITORY")
    if not repo:
        raise GitHubIssueError(
            "Repository not provided; set --repo or the GITHUB_REPOSITORY environment variable."
        )
    return repo


def resolve_token(explicit_token: str | None) -> str:
    """Return the token, preferring explicit input over the environment."""

    if explicit_token:
        return explicit_token
    token = os.environ.get("GH_TOKEN") or os.environ.get("GITHUB_TOKEN")
    if not token:
        raise GitHubIssueError(
            "Token not provided; set --token or the GH_TOKEN/GITHUB_TOKEN environment variable."
        )
    return token


def _rest_request(
    *,
    token: str,
    url: str,
    method: str = "GET",
    payload: Mapping[str, Any] | None = None,
) -> Any:
    raw_body = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = request.Request(url, data=raw_body, method=method)
    req.add_header("Authorization", f"Bearer {token}")
    req.add_header("Accept", "application/vnd.github+json")
    req.add_header("X-GitHub-Api-Version", API_VERSION)
    if raw_body is not None:
        req.add_header("Content-Type", "application/json; charset=utf-8")

    try:
        with request.urlopen(req) as response:
            response_bytes = response.read()
    except error.HTTPError as exc:
        error_text = exc.read().decode("utf-8", errors="replace")
        raise GitHubIssueError(
            f"GitHub API error ({exc.code}): {error_text.strip()}"
        ) from exc
    except error.URLError as exc:
        raise GitHubIssueError(f"Failed to reach GitHub API: {exc.reason}") from exc

    if not response_bytes:
        return {}
    try:
        return json.loads(response_bytes.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise GitHubIssueError("GitHub API returned invalid JSON.") from exc


def _paginate(*, token: str, url: str, params: Mapping[str, str]) -> list[Mapping[str, Any]]:
    items: list[Mapping[str, Any]] = []
    page = 1
    while True:
        query = dict(params, per_page=str(PER_PAGE), page=str(page))
        payload = _rest_request(token=token, url=f"{url}?{parse.urlencode(query)}")
        if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
            raise GitHubIssueError("Unexpected GitHub list response payload.")
        items.extend(entry for entry in payload if isinstance(entry, Mapping))
        if len(payload) < PER_PAGE:
            return items
        page += 1


def list_issues(
    *,
    token: str,
    repository: str,
    labels: Sequence[str] = (),
    state: str = "open",
    api_url: str = DEFAULT_API_URL,
) -> list[Issue]:
    """Return issues carrying every label in ``labels``; pull requests are excluded."""

    owner, name = normalize_repository(repository)
    params = {"state": state}
    if labels:
        params["labels"] = ",".join(labels)
    url = f"{api_url.rstrip('/')}/repos/{owner}/{name}/issues"
    entries = _paginate(token=token, url=url, params=params)
    return [Issue.from_api_payload(entry) for entry in entries if not entry.get("pull_request")]


def list_issue_comments(
    *,
    token: str,
    repository: str,
    issue_number: int,
    api_url: str = DEFAULT_API_URL,
) -> list[IssueComment]:
    """Return every comment on an issue in creation order."""

    if issue_number < 1:
        raise GitHubIssueError("Issue number must be a positive integer.")
    owner, name = normalize_repository(repository)
    url = f"{api_url.rstrip('/')}/repos/{owner}/{name}/issues/{issue_number}/comments"
    entries = _paginate(token=token, url=url, params={})
    return [IssueComment.from_api_payload(entry) for entry in entries]


def add_issue_comment_reaction(
    *,
    token: str,
    repository: str,
    comment_id: int,
    content: str = "-1",
    api_url: str = DEFAULT_API_URL,
) -> None:
    """Create a reaction on an issue comment."""

    owner, name = normalize_repository(repository)
    url = (
        f"{api_url.rstrip('/')}/repos/{owner}/{name}/issues/comments/{comment_id}/reactions"
    )
    _rest_request(token=token, url=url, method="POST", payload={"content": content})


__all__ = [
    "API_VERSION",
    "DEFAULT_API_URL",
    "GitHubIssueError",
    "Issue",
    "IssueComment",
    "add_issue_comment_reaction",
    "list_issue_comments",
    "list_issues",
    "normalize_repository",
    "resolve_repository",
    "resolve_token",
]
