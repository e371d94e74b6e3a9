"""Scheduled workflows that relay prompts between GitHub and LLM providers."""

from .common import RunReport, WorkflowSetupError
from .config import WorkflowConfig, load_workflow_config
from .prompt_comment import run_prompt_comment
from .prompt_reply import run_prompt_reply

__all__ = [
    "RunReport",
    "WorkflowConfig",
    "WorkflowSetupError",
    "load_workflow_config",
    "run_prompt_comment",
    "run_prompt_reply",
]
