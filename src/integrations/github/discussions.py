"""GitHub Discussions GraphQL client used to publish generated text."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence
from urllib import error, request

DEFAULT_API_URL = "https://api.github.com"
PAGE_SIZE = 100
THUMBS_DOWN = "THUMBS_DOWN"


class GitHubDiscussionError(RuntimeError):
    """Raised when a GitHub Discussions API operation fails."""


@dataclass(frozen=True)
class DiscussionCategory:
    """Represents a GitHub Discussions category."""

    id: str
    name: str
    slug: str = ""

    @classmethod
    def from_graphql(cls, data: Mapping[str, Any]) -> "DiscussionCategory":
        """Create from GraphQL response node."""
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            slug=str(data.get("slug", "")),
        )


@dataclass(frozen=True)
class Discussion:
    """Represents a GitHub Discussion."""

    id: str
    number: int
    title: str
    body: str = ""
    url: str = ""
    category_name: str = ""

    @classmethod
    def from_graphql(cls, data: Mapping[str, Any]) -> "Discussion":
        """Create from GraphQL response node."""
        category = data.get("category") or {}
        return cls(
            id=str(data.get("id", "")),
            number=int(data.get("number", 0)),
            title=str(data.get("title", "")),
            body=str(data.get("body", "")),
            url=str(data.get("url", "")),
            category_name=str(category.get("name", "")),
        )


@dataclass(frozen=True)
class DiscussionComment:
    """A top-level discussion comment with the content tags of its reactions."""

    id: str
    body: str
    url: str = ""
    author_login: str = ""
    created_at: str = ""
    reactions: tuple[str, ...] = ()

    @classmethod
    def from_graphql(cls, data: Mapping[str, Any]) -> "DiscussionComment":
        """Create from GraphQL response node."""
        author = data.get("author") or {}
        reaction_nodes = (data.get("reactions") or {}).get("nodes") or []
        return cls(
            id=str(data.get("id", "")),
            body=str(data.get("body", "")),
            url=str(data.get("url", "")),
            author_login=str(author.get("login", "")),
            created_at=str(data.get("createdAt", "")),
            reactions=tuple(
                str(node.get("content", ""))
                for node in reaction_nodes
                if isinstance(node, Mapping)
            ),
        )


def _graphql_endpoint(api_url: str) -> str:
    """Build the GraphQL endpoint from an API URL."""
    normalized = api_url.rstrip("/")
    if normalized.endswith("/api/v3"):
        return f"{normalized[:-len('/api/v3')]}/api/graphql"
    return f"{normalized}/graphql"


def _graphql_request(
    *,
    token: str,
    api_url: str,
    query: str,
    variables: Mapping[str, Any] | None = None,
) -> Mapping[str, Any]:
    """Execute a GraphQL request and return the data payload."""
    payload: dict[str, Any] = {"query": query}
    if variables:
        payload["variables"] = dict(variables)

    url = _graphql_endpoint(api_url)
    raw_body = json.dumps(payload).encode("utf-8")
    req = request.Request(url, data=raw_body, method="POST")
    req.add_header("Authorization", f"Bearer {token}")
    req.add_header("Accept", "application/vnd.github+json")
    req.add_header("Content-Type", "application/json; charset=utf-8")

    try:
        with request.urlopen(req) as response:
            response_bytes = response.read()
    except error.HTTPError as exc:
        error_text = exc.read().decode("utf-8", errors="replace")
        raise GitHubDiscussionError(
            f"GitHub GraphQL error ({exc.code}): {error_text.strip()}"
        ) from exc
    except error.URLError as exc:
        raise GitHubDiscussionError(
            f"Failed to reach GitHub GraphQL API: {exc.reason}"
        ) from exc

    try:
        data = json.loads(response_bytes.decode("utf-8"))
    except ValueError as exc:
        raise GitHubDiscussionError("GitHub GraphQL returned invalid JSON.") from exc
    if not isinstance(data, Mapping):
        raise GitHubDiscussionError("Unexpected GitHub GraphQL payload.")
    if "errors" in data:
        errors = data.get("errors", [])
        messages = []
        for err in errors:
            if isinstance(err, Mapping):
                messages.append(err.get("message", "Unknown GraphQL error"))
        formatted = "; ".join(messages) if messages else "GitHub GraphQL reported errors."
        raise GitHubDiscussionError(formatted)

    output = data.get("data")
    if not isinstance(output, Mapping):
        raise GitHubDiscussionError("Unexpected GitHub GraphQL payload.")
    return output


def _paginate_connection(
    *,
    token: str,
    api_url: str,
    query: str,
    variables: Mapping[str, Any],
    path: Sequence[str],
) -> Iterator[Mapping[str, Any]]:
    """Yield every node of the connection found at ``path``, following ``endCursor``."""
    cursor: str | None = None
    while True:
        data = _graphql_request(
            token=token,
            api_url=api_url,
            query=query,
            variables={**variables, "first": PAGE_SIZE, "after": cursor},
        )
        node: Any = data
        for key in path:
            node = node.get(key) if isinstance(node, Mapping) else None
            if node is None:
                raise GitHubDiscussionError(f"GitHub GraphQL payload missing '{key}'.")

        for item in node.get("nodes") or []:
            if isinstance(item, Mapping):
                yield item

        page_info = node.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            return
        cursor = page_info.get("endCursor")
        if not cursor:
            return


def normalize_repository(repository: str | None) -> tuple[str, str]:
    """Split an ``owner/repo`` string into its two components."""
    if not repository:
        raise GitHubDiscussionError("Repository must be provided as 'owner/repo'.")
    owner, sep, name = repository.partition("/")
    if not sep or not owner or not name:
        raise GitHubDiscussionError(f"Invalid repository format: {repository!r}")
    return owner, name


# =============================================================================
# Repository Info
# =============================================================================


def get_repository_id(
    *,
    token: str,
    repository: str,
    api_url: str = DEFAULT_API_URL,
) -> str:
    """Get the GraphQL node ID for a repository."""
    owner, name = normalize_repository(repository)

    query = """
    query($owner: String!, $name: String!) {
      repository(owner: $owner, name: $name) {
        id
      }
    }
    """

    data = _graphql_request(
        token=token,
        api_url=api_url,
        query=query,
        variables={"owner": owner, "name": name},
    )

    repo_data = data.get("repository")
    if not isinstance(repo_data, Mapping) or not repo_data.get("id"):
        raise GitHubDiscussionError(f"Repository not found: {repository}")

    return str(repo_data["id"])


# =============================================================================
# Discussion Categories
# =============================================================================


def list_discussion_categories(
    *,
    token: str,
    repository: str,
    api_url: str = DEFAULT_API_URL,
    limit: int = 25,
) -> list[DiscussionCategory]:
    """List all discussion categories for a repository."""
    owner, name = normalize_repository(repository)

    query = """
    query($owner: String!, $name: String!, $first: Int!) {
      repository(owner: $owner, name: $name) {
        discussionCategories(first: $first) {
          nodes {
            id
            name
            slug
          }
        }
      }
    }
    """

    data = _graphql_request(
        token=token,
        api_url=api_url,
        query=query,
        variables={"owner": owner, "name": name, "first": limit},
    )

    repo_data = data.get("repository")
    if not isinstance(repo_data, Mapping):
        raise GitHubDiscussionError(f"Repository not found: {repository}")

    categories_data = repo_data.get("discussionCategories")
    if not isinstance(categories_data, Mapping):
        return []

    nodes = categories_data.get("nodes", [])
    if not isinstance(nodes, Sequence):
        return []

    return [DiscussionCategory.from_graphql(n) for n in nodes if isinstance(n, Mapping)]


def get_category_by_name(
    *,
    token: str,
    repository: str,
    category_name: str,
    api_url: str = DEFAULT_API_URL,
) -> DiscussionCategory | None:
    """Find a discussion category by name (case-insensitive)."""
    categories = list_discussion_categories(
        token=token,
        repository=repository,
        api_url=api_url,
    )
    name_lower = category_name.lower()
    for cat in categories:
        if cat.name.lower() == name_lower:
            return cat
    return None


# =============================================================================
# Discussions
# =============================================================================


def list_discussions(
    *,
    token: str,
    repository: str,
    api_url: str = DEFAULT_API_URL,
) -> list[Discussion]:
    """List every discussion in a repository."""
    owner, name = normalize_repository(repository)

    query = """
    query($owner: String!, $name: String!, $first: Int!, $after: String) {
      repository(owner: $owner, name: $name) {
        discussions(first: $first, after: $after) {
          pageInfo {
            hasNextPage
            endCursor
          }
          nodes {
            id
            number
            title
            body
            url
            category {
              name
            }
          }
        }
      }
    }
    """

    nodes = _paginate_connection(
        token=token,
        api_url=api_url,
        query=query,
        variables={"owner": owner, "name": name},
        path=("repository", "discussions"),
    )
    return [Discussion.from_graphql(node) for node in nodes]


def find_discussion_by_title(
    *,
    token: str,
    repository: str,
    title: str,
    api_url: str = DEFAULT_API_URL,
) -> Discussion | None:
    """Find a discussion whose title matches exactly."""
    for disc in list_discussions(token=token, repository=repository, api_url=api_url):
        if disc.title == title:
            return disc
    return None


def create_discussion(
    *,
    token: str,
    repository: str,
    category_id: str,
    title: str,
    body: str,
    api_url: str = DEFAULT_API_URL,
) -> Discussion:
    """Create a new discussion in a repository."""
    if not category_id:
        raise GitHubDiscussionError("Category ID is required to create a discussion.")
    if not title:
        raise GitHubDiscussionError("Title is required to create a discussion.")

    repository_id = get_repository_id(
        token=token,
        repository=repository,
        api_url=api_url,
    )

    mutation = """
    mutation($repositoryId: ID!, $categoryId: ID!, $title: String!, $body: String!) {
      createDiscussion(input: {
        repositoryId: $repositoryId,
        categoryId: $categoryId,
        title: $title,
        body: $body
      }) {
        discussion {
          id
          number
          title
          body
          url
          category {
            name
          }
        }
      }
    }
    """

    data = _graphql_request(
        token=token,
        api_url=api_url,
        query=mutation,
        variables={
            "repositoryId": repository_id,
            "categoryId": category_id,
            "title": title,
            "body": body,
        },
    )

    create_data = data.get("createDiscussion")
    if not isinstance(create_data, Mapping):
        raise GitHubDiscussionError("Failed to create discussion: unexpected response.")

    discussion_data = create_data.get("discussion")
    if not isinstance(discussion_data, Mapping) or not discussion_data.get("id"):
        raise GitHubDiscussionError("Failed to create discussion: no discussion returned.")

    return Discussion.from_graphql(discussion_data)


# =============================================================================
# Discussion Comments
# =============================================================================


def list_discussion_comments(
    *,
    token: str,
    repository: str,
    discussion_number: int,
    api_url: str = DEFAULT_API_URL,
) -> list[DiscussionComment]:
    """List the top-level comments of a discussion together with their reactions."""
    owner, name = normalize_repository(repository)

    if discussion_number < 1:
        raise GitHubDiscussionError("Discussion number must be a positive integer.")

    query = """
    query($owner: String!, $name: String!, $number: Int!, $first: Int!, $after: String) {
      repository(owner: $owner, name: $name) {
        discussion(number: $number) {
          comments(first: $first, after: $after) {
            pageInfo {
              hasNextPage
              endCursor
            }
            nodes {
              id
              body
              url
              createdAt
              author {
                login
              }
              reactions(first: 100) {
                nodes {
                  content
                }
              }
            }
          }
        }
      }
    }
    """

    nodes = _paginate_connection(
        token=token,
        api_url=api_url,
        query=query,
        variables={"owner": owner, "name": name, "number": discussion_number},
        path=("repository", "discussion", "comments"),
    )
    return [DiscussionComment.from_graphql(node) for node in nodes]


def _add_comment(
    *,
    token: str,
    api_url: str,
    discussion_id: str,
    body: str,
    reply_to_id: str | None,
) -> DiscussionComment:
    if not discussion_id:
        raise GitHubDiscussionError("Discussion ID is required to add a comment.")
    if not body:
        raise GitHubDiscussionError("Comment body is required.")

    mutation = """
    mutation($discussionId: ID!, $body: String!, $replyToId: ID) {
      addDiscussionComment(input: {discussionId: $discussionId, body: $body, replyToId: $replyToId}) {
        comment {
          id
          body
          url
          createdAt
          author {
            login
          }
        }
      }
    }
    """

    data = _graphql_request(
        token=token,
        api_url=api_url,
        query=mutation,
        variables={"discussionId": discussion_id, "body": body, "replyToId": reply_to_id},
    )

    add_data = data.get("addDiscussionComment")
    if not isinstance(add_data, Mapping):
        raise GitHubDiscussionError("Failed to add comment: unexpected response.")

    comment_data = add_data.get("comment")
    if not isinstance(comment_data, Mapping) or not comment_data.get("id"):
        raise GitHubDiscussionError("Failed to add comment: no comment returned.")

    return DiscussionComment.from_graphql(comment_data)


def add_discussion_comment(
    *,
    token: str,
    discussion_id: str,
    body: str,
    api_url: str = DEFAULT_API_URL,
) -> DiscussionComment:
    """Add a top-level comment to a discussion."""
    return _add_comment(
        token=token,
        api_url=api_url,
        discussion_id=discussion_id,
        body=body,
        reply_to_id=None,
    )


def add_discussion_reply(
    *,
    token: str,
    discussion_id: str,
    comment_id: str,
    body: str,
    api_url: str = DEFAULT_API_URL,
) -> DiscussionComment:
    """Reply to a top-level discussion comment."""
    if not comment_id:
        raise GitHubDiscussionError("Comment ID is required to reply.")
    return _add_comment(
        token=token,
        api_url=api_url,
        discussion_id=discussion_id,
        body=body,
        reply_to_id=comment_id,
    )


def add_reaction(
    *,
    token: str,
    subject_id: str,
    content: str = THUMBS_DOWN,
    api_url: str = DEFAULT_API_URL,
) -> None:
    """React to any reactable node (discussion comments included)."""
    if not subject_id:
        raise GitHubDiscussionError("Subject ID is required to add a reaction.")

    mutation = """
    mutation($subjectId: ID!, $content: ReactionContent!) {
      addReaction(input: {subjectId: $subjectId, content: $content}) {
        reaction {
          content
        }
      }
    }
    """

    data = _graphql_request(
        token=token,
        api_url=api_url,
        query=mutation,
        variables={"subjectId": subject_id, "content": content},
    )
    if not isinstance(data.get("addReaction"), Mapping):
        raise GitHubDiscussionError("Failed to add reaction: unexpected response.")


__all__ = [
    "DEFAULT_API_URL",
    "THUMBS_DOWN",
    "Discussion",
    "DiscussionCategory",
    "DiscussionComment",
    "GitHubDiscussionError",
    "add_discussion_comment",
    "add_discussion_reply",
    "add_reaction",
    "create_discussion",
    "find_discussion_by_title",
    "get_category_by_name",
    "get_repository_id",
    "list_discussion_categories",
    "list_discussion_comments",
    "list_discussions",
    "normalize_repository",
]
