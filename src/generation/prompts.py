"""Prompt records extracted from comment bodies and template filling."""

from __future__ import annotations

import re
from dataclasses import dataclass

ARTICLE_PLACEHOLDER = "{{article}}"

_PROMPT_PATTERN = re.compile(r"^(\w+Prompt)[:：](.*)$", re.DOTALL | re.ASCII)


@dataclass(frozen=True)
class PromptRecord:
    kind: str
    content: str


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt record remembered together with the comment it came from."""

    kind: str
    content: str
    source_id: int


def extract_prompt(text: str) -> PromptRecord | None:
    """Return the prompt declared at the very start of ``text``, if any.

    ``"SummaryPrompt: hello"`` yields ``PromptRecord("SummaryPrompt", "hello")``;
    the ``...Prompt:`` token must open the text.
    """

    match = _PROMPT_PATTERN.match(text)
    if not match:
        return None
    return PromptRecord(kind=match.group(1), content=match.group(2).strip())


def fill_template(template: str, content: str) -> str:
    """Substitute ``content`` for the first placeholder, appending one when absent."""

    if ARTICLE_PLACEHOLDER not in template:
        template = f"{template} {ARTICLE_PLACEHOLDER}"
    return template.replace(ARTICLE_PLACEHOLDER, content, 1)


__all__ = [
    "ARTICLE_PLACEHOLDER",
    "PromptRecord",
    "PromptTemplate",
    "extract_prompt",
    "fill_template",
]
