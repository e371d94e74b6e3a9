"""Parse provider configurations out of free-text comment bodies.

Each configuration comment holds ``key: value`` lines::

    name: gemini-2.0-flash
    url: https://generativelanguage.googleapis.com/v1beta
    key: first-credential
    key: backup-credential
    type: gemini

Keys are matched case-insensitively by substring in the fixed order
``name``, ``url``, ``key``, ``type``; the first rule that matches a line wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Protocol, TypeVar

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r"^(.*?)[:：](.*)$")
_QUOTES = ("'", '"')


class ProviderKind(str, Enum):
    """Request/response shape of a provider."""

    STANDARD_CHAT = "openai"
    GEMINI = "gemini"


DEFAULT_KIND = ProviderKind.STANDARD_CHAT.value


@dataclass(frozen=True)
class ProviderConfig:
    """One named model endpoint with its credentials in priority order."""

    name: str
    endpoint: str = ""
    credentials: tuple[str, ...] = ()
    kind: str = DEFAULT_KIND

    @property
    def provider_kind(self) -> ProviderKind | None:
        """The recognised kind, or ``None`` for an opaque tag."""
        try:
            return ProviderKind(self.kind)
        except ValueError:
            return None

    @property
    def requires_endpoint(self) -> bool:
        return self.provider_kind is not ProviderKind.GEMINI

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.name:
            missing.append("name")
        if self.requires_endpoint and not self.endpoint:
            missing.append("url")
        if not self.credentials:
            missing.append("key")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass
class _Draft:
    name: str = ""
    endpoint: str = ""
    credentials: list[str] = field(default_factory=list)
    kind: str = DEFAULT_KIND

    def set_name(self, value: str) -> None:
        self.name = value

    def set_endpoint(self, value: str) -> None:
        self.endpoint = value

    def add_credential(self, value: str) -> None:
        self.credentials.append(value)

    def set_kind(self, value: str) -> None:
        self.kind = value.lower()

    def freeze(self) -> ProviderConfig:
        return ProviderConfig(
            name=self.name,
            endpoint=self.endpoint,
            credentials=tuple(self.credentials),
            kind=self.kind,
        )


# Order matters: a key such as "api_key_name" resolves to ``name``.
_RULES: tuple[tuple[str, Callable[[_Draft, str], None]], ...] = (
    ("name", _Draft.set_name),
    ("url", _Draft.set_endpoint),
    ("key", _Draft.add_credential),
    ("type", _Draft.set_kind),
)


def _clean_value(raw: str) -> str:
    value = raw.replace("\r", "").strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        value = value[1:-1]
    return value


def parse_provider_config(text: str) -> ProviderConfig:
    """Parse a configuration comment body; unrecognised lines are ignored."""

    draft = _Draft()
    for line in text.split("\n"):
        match = _LINE_PATTERN.match(line)
        if not match:
            continue
        key = match.group(1).strip().lower()
        value = _clean_value(match.group(2))
        for needle, apply in _RULES:
            if needle in key:
                apply(draft, value)
                break
    return draft.freeze()


class ConfigSource(Protocol):
    """A configuration comment as returned by the platform client."""

    id: int
    body: str
    created_at: str


SourceT = TypeVar("SourceT", bound=ConfigSource)


def _created_at(source: ConfigSource) -> datetime:
    raw = (source.created_at or "").strip()
    if not raw:
        return datetime.min.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_provider_configs(
    sources: Iterable[SourceT],
    *,
    is_rejected: Callable[[SourceT], bool],
) -> list[ProviderConfig]:
    """Return complete configurations, oldest source first.

    Sources flagged by ``is_rejected`` are skipped before parsing.
    """

    configs: list[ProviderConfig] = []
    for source in sorted(sources, key=_created_at):
        if is_rejected(source):
            logger.debug("Skipping rejected configuration comment %s", source.id)
            continue
        config = parse_provider_config(source.body)
        missing = config.missing_fields()
        if missing:
            logger.debug(
                "Discarding configuration comment %s; missing %s",
                source.id,
                ", ".join(missing),
            )
            continue
        configs.append(config)
    return configs


__all__ = [
    "DEFAULT_KIND",
    "ProviderConfig",
    "ProviderKind",
    "extract_provider_configs",
    "parse_provider_config",
]
