"""Configuration helpers for the prompt workflows."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from src.integrations.github.issues import DEFAULT_API_URL

_DEFAULT_CONFIG_PATH = Path("config/workflows.yaml")


@dataclass(slots=True)
class WorkflowConfig:
    config_labels: tuple[str, ...] = ("api",)
    comment_labels: tuple[str, ...] = ("prompt", "comment")
    reply_labels: tuple[str, ...] = ("prompt", "reply")
    discussion_category: str = "General"
    request_timeout: int = 60
    temperature: float = 0.7
    max_tokens: int = 4000
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WorkflowConfig":
        defaults = cls()
        return cls(
            config_labels=_labels(payload.get("config_labels"), defaults.config_labels),
            comment_labels=_labels(payload.get("comment_labels"), defaults.comment_labels),
            reply_labels=_labels(payload.get("reply_labels"), defaults.reply_labels),
            discussion_category=str(
                payload.get("discussion_category") or defaults.discussion_category
            ),
            request_timeout=_positive_int(
                payload.get("request_timeout"), defaults.request_timeout, "request_timeout"
            ),
            temperature=float(payload.get("temperature", defaults.temperature)),
            max_tokens=_positive_int(payload.get("max_tokens"), defaults.max_tokens, "max_tokens"),
            api_url=str(payload.get("api_url") or defaults.api_url),
        )


def load_workflow_config(config_path: Path | None) -> WorkflowConfig:
    """Load workflow configuration from YAML or fallback to defaults."""

    if config_path is not None:
        resolved = Path(config_path).expanduser()
        if not resolved.exists():
            raise FileNotFoundError(f"Workflow config '{resolved}' does not exist")
        return _load(resolved)

    if _DEFAULT_CONFIG_PATH.exists():
        return _load(_DEFAULT_CONFIG_PATH)

    return WorkflowConfig()


def _load(path: Path) -> WorkflowConfig:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Workflow config must be a mapping")
    return WorkflowConfig.from_dict(data)


def _labels(values: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if values is None:
        return default
    if isinstance(values, str):
        values = [values]
    labels: list[str] = []
    for raw in values:
        token = str(raw).strip()
        if token:
            labels.append(token)
    if not labels:
        raise ValueError("Label lists must contain at least one label")
    return tuple(dict.fromkeys(labels))


def _positive_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    number = int(value)
    if number < 1:
        raise ValueError(f"{name} must be a positive integer")
    return number


__all__ = ["WorkflowConfig", "load_workflow_config"]
