"""Priority-ordered, credential-ordered failover across LLM providers."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

import requests

from src.parsing import Attachment, AttachmentError, attachment_text

from .config import ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 4000
DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


class ProviderError(RuntimeError):
    """Base class for provider invocation failures."""


class ProviderCredentialFailure(ProviderError):
    """A single call with one credential failed."""

    def __init__(self, message: str, *, provider: str = "", credential_index: int = 0) -> None:
        super().__init__(message)
        self.provider = provider
        self.credential_index = credential_index


class NoProviderAvailable(ProviderError):
    """No configuration with a supported kind was supplied."""


class AllProvidersFailed(ProviderError):
    """Every credential of every supported configuration failed."""

    def __init__(self, last_error: BaseException | None, attempts: int) -> None:
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"All providers failed after {attempts} attempt(s){detail}")
        self.last_error = last_error
        self.attempts = attempts


@dataclass(frozen=True)
class InvocationResult:
    text: str
    provider_used: str
    attempts: int = 1


class PreparedAttachment:
    """Attachment with its base64 and text renditions computed at most once."""

    def __init__(self, attachment: Attachment) -> None:
        self.attachment = attachment
        self._encoded: str | None = None
        self._text: str | None = None
        self._text_loaded = False

    @property
    def encoded(self) -> str:
        if self._encoded is None:
            self._encoded = base64.b64encode(self.attachment.data).decode("ascii")
        return self._encoded

    @property
    def text(self) -> str | None:
        if not self._text_loaded:
            self._text_loaded = True
            try:
                self._text = attachment_text(self.attachment)
            except AttachmentError as exc:
                logger.warning("Could not extract text from %s: %s", self.attachment.filename, exc)
        return self._text


@dataclass(frozen=True)
class GenerationSettings:
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


# ----- StandardChat (OpenAI-compatible) -----
def build_standard_chat_request(
    config: ProviderConfig,
    prompt: str,
    attachment: PreparedAttachment | None,
    settings: GenerationSettings,
) -> tuple[str, dict[str, Any]]:
    content = prompt
    if attachment is not None:
        text = attachment.text
        if text:
            name = attachment.attachment.filename or "attachment"
            content = f"{prompt}\n\n[{name}]\n{text}"
        else:
            logger.debug("%s cannot take binary attachments; sending text only", config.name)
    payload = {
        "model": config.name,
        "messages": [{"role": "user", "content": content}],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    return config.endpoint, payload


def authorize_standard_chat(credential: str) -> tuple[dict[str, str], dict[str, str]]:
    return {"Authorization": f"Bearer {credential}", "Content-Type": "application/json"}, {}


def extract_standard_chat_text(data: Any) -> str:
    """First choice's message content or legacy text; otherwise the raw JSON."""
    choices = data.get("choices") if isinstance(data, Mapping) else None
    if _is_list(choices) and choices and isinstance(choices[0], Mapping):
        first = choices[0]
        message = first.get("message")
        if isinstance(message, Mapping) and isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(first.get("text"), str):
            return first["text"]
    return json.dumps(data, ensure_ascii=False)


# ----- GeminiStyle -----
def gemini_endpoint(config: ProviderConfig) -> str:
    base = config.endpoint or DEFAULT_GEMINI_ENDPOINT
    if "{model}" in base:
        return base.replace("{model}", config.name)
    base = base.rstrip("/")
    if base.endswith(":generateContent"):
        return base
    return f"{base}/models/{config.name}:generateContent"


def build_gemini_request(
    config: ProviderConfig,
    prompt: str,
    attachment: PreparedAttachment | None,
    settings: GenerationSettings,
) -> tuple[str, dict[str, Any]]:
    parts: list[dict[str, Any]] = [{"text": prompt}]
    if attachment is not None:
        parts.append(
            {
                "inlineData": {
                    "mimeType": attachment.attachment.mime_type,
                    "data": attachment.encoded,
                }
            }
        )
    payload = {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "temperature": settings.temperature,
            "maxOutputTokens": settings.max_tokens,
        },
    }
    return gemini_endpoint(config), payload


def authorize_gemini(credential: str) -> tuple[dict[str, str], dict[str, str]]:
    return {"Content-Type": "application/json"}, {"key": credential}


def extract_gemini_text(data: Any) -> str:
    """First candidate's first part; missing candidates count as a failed call."""
    candidates = data.get("candidates") if isinstance(data, Mapping) else None
    if not candidates:
        feedback = data.get("promptFeedback") if isinstance(data, Mapping) else None
        reason = feedback.get("blockReason") if isinstance(feedback, Mapping) else None
        raise ValueError(f"response has no candidates (block reason: {reason or 'unknown'})")
    if not _is_list(candidates):
        raise ValueError(f"unexpected candidates payload: {type(candidates).__name__}")
    content = candidates[0].get("content") if isinstance(candidates[0], Mapping) else None
    parts = content.get("parts") if isinstance(content, Mapping) else None
    first = parts[0] if _is_list(parts) and parts else None
    if not isinstance(first, Mapping) or not isinstance(first.get("text"), str):
        raise ValueError("first candidate has no text part")
    return first["text"]


@dataclass(frozen=True)
class ProviderShape:
    build: Callable[
        [ProviderConfig, str, PreparedAttachment | None, GenerationSettings],
        tuple[str, dict[str, Any]],
    ]
    authorize: Callable[[str], tuple[dict[str, str], dict[str, str]]]
    extract: Callable[[Any], str]


PROVIDER_SHAPES: Mapping[ProviderKind, ProviderShape] = {
    ProviderKind.STANDARD_CHAT: ProviderShape(
        build=build_standard_chat_request,
        authorize=authorize_standard_chat,
        extract=extract_standard_chat_text,
    ),
    ProviderKind.GEMINI: ProviderShape(
        build=build_gemini_request,
        authorize=authorize_gemini,
        extract=extract_gemini_text,
    ),
}


def _redact(message: str, credential: str) -> str:
    return message.replace(credential, "***") if credential else message


class ProviderInvoker:
    """Produce generated text from the first configuration and credential that works.

    Configurations are tried in list order and, within one configuration,
    credentials are tried in list order. The first successful call ends the
    invocation. Each call is bounded by ``timeout`` seconds; there is no
    overall deadline, so the worst case is configs x credentials x timeout.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._settings = GenerationSettings(temperature=temperature, max_tokens=max_tokens)

    def invoke(
        self,
        configs: Sequence[ProviderConfig],
        prompt: str,
        attachment: Attachment | None = None,
    ) -> InvocationResult:
        """Return the first successful generation.

        Raises:
            NoProviderAvailable: ``configs`` is empty or has no supported kind.
            AllProvidersFailed: every credential was tried and failed.
        """
        if not any(config.provider_kind is not None for config in configs):
            raise NoProviderAvailable(
                f"No provider with a supported type among {len(configs)} configuration(s)."
            )

        prepared = PreparedAttachment(attachment) if attachment is not None else None
        attempts = 0
        last_error: ProviderError | None = None

        for config in configs:
            kind = config.provider_kind
            if kind is None:
                logger.warning(
                    "Skipping provider %s with unsupported type %r", config.name, config.kind
                )
                continue
            shape = PROVIDER_SHAPES[kind]
            url, payload = shape.build(config, prompt, prepared, self._settings)

            total = len(config.credentials)
            for index, credential in enumerate(config.credentials, start=1):
                attempts += 1
                try:
                    text = self._call(shape, config, url, payload, credential, index)
                except ProviderCredentialFailure as exc:
                    last_error = exc
                    logger.warning(
                        "Provider %s credential %d/%d failed: %s", config.name, index, total, exc
                    )
                    continue
                logger.info(
                    "Provider %s answered with credential %d/%d after %d attempt(s)",
                    config.name,
                    index,
                    total,
                    attempts,
                )
                return InvocationResult(text=text, provider_used=config.name, attempts=attempts)

            logger.info("Provider %s exhausted; falling through", config.name)

        raise AllProvidersFailed(last_error, attempts)

    def _call(
        self,
        shape: ProviderShape,
        config: ProviderConfig,
        url: str,
        payload: Mapping[str, Any],
        credential: str,
        index: int,
    ) -> str:
        headers, params = shape.authorize(credential)
        try:
            response = self._session.post(
                url,
                json=payload,
                headers=headers,
                params=params or None,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            error_msg = f"request failed: {exc}"
            if getattr(exc, "response", None) is not None:
                try:
                    error_data = exc.response.json()
                    if isinstance(error_data, Mapping) and "error" in error_data:
                        error_msg = f"{error_msg} - {error_data['error']}"
                except ValueError:
                    pass
            raise ProviderCredentialFailure(
                _redact(error_msg, credential), provider=config.name, credential_index=index
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderCredentialFailure(
                f"invalid JSON response: {exc}", provider=config.name, credential_index=index
            ) from exc

        try:
            text = shape.extract(data)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderCredentialFailure(
                f"malformed response: {exc}", provider=config.name, credential_index=index
            ) from exc
        if not text.strip():
            raise ProviderCredentialFailure(
                "empty response text", provider=config.name, credential_index=index
            )
        return text


__all__ = [
    "AllProvidersFailed",
    "DEFAULT_GEMINI_ENDPOINT",
    "InvocationResult",
    "NoProviderAvailable",
    "PROVIDER_SHAPES",
    "ProviderCredentialFailure",
    "ProviderError",
    "ProviderInvoker",
    "build_gemini_request",
    "build_standard_chat_request",
    "extract_gemini_text",
    "extract_standard_chat_text",
    "gemini_endpoint",
]
