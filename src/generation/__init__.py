"""Provider configuration, prompts, invocation, and processed-item tracking."""

from .config import ProviderConfig, ProviderKind, extract_provider_configs, parse_provider_config
from .invoker import (
    AllProvidersFailed,
    InvocationResult,
    NoProviderAvailable,
    ProviderCredentialFailure,
    ProviderError,
    ProviderInvoker,
)
from .prompts import PromptRecord, PromptTemplate, extract_prompt, fill_template
from .tracker import ProcessingTracker

__all__ = [
    "AllProvidersFailed",
    "InvocationResult",
    "NoProviderAvailable",
    "ProcessingTracker",
    "PromptRecord",
    "PromptTemplate",
    "ProviderConfig",
    "ProviderCredentialFailure",
    "ProviderError",
    "ProviderInvoker",
    "ProviderKind",
    "extract_prompt",
    "extract_provider_configs",
    "fill_template",
    "parse_provider_config",
]
