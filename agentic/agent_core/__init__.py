"""Prompt orchestration core: plugins, completion runtime and approval gate.

This package contains the "engine room" of the agent system.

Design overview
---------------

A prompt is one user turn. ``runtime.CompletionEngine`` completes it in rounds:

- Every round, the ``plugins.PluginRegistry`` walks the registered plugins in
  order. Each contributes tools and free-text context items and may read or
  write its slice of the prompt ``State``. The result is a frozen
  ``PreparationSnapshot``.
- The engine sends the conversation and the snapshot's tool definitions to the
  model through ``model_provider.ModelService`` (pydantic-ai direct requests).
- Tool calls the model asks for run one at a time. Failures are fed back to the
  model as ``error`` results. A tool needing human confirmation pauses the
  prompt until ``approve`` or ``reject`` is called.
- A text answer, or reaching the round cap, completes the prompt.

Typical usage
-------------

Most applications should use ``service.PromptService``, built with
``factory.build_prompt_service``:

1. Register plugins.
2. ``create`` an executor for the user's input and ``run`` it.
3. If it pauses for approval, ``approve``/``reject`` by prompt id; with a
   checkpoint repository attached this also works after a restart.
"""

from .errors import (
    AgenticError,
    ApprovalNotFoundError,
    ApprovalRequiredError,
    ModelNotConfiguredError,
    PluginRegistrationError,
    PromptNotFoundError,
    UnknownExecutionModeError,
)
from .factory import build_prompt_service, build_services
from .model_provider import ModelService
from .plugins import Plugin, PluginPrepareContext, PluginRegistry, PluginSetupContext, PreparationSnapshot
from .runtime import CompletionEngine, CompletionEvent, CompletionOptions, EventBus
from .schemas.domain import ApprovalRequest, ContextItem, Prompt, PromptCheckpoint, PromptState
from .service import ExecutionMode, ExecutionModeRegistry, PromptExecutor, PromptService
from .services import Services
from .state import State
from .tools import ApprovalCheck, Tool, ToolInput

__all__ = [
    "AgenticError",
    "ApprovalCheck",
    "ApprovalNotFoundError",
    "ApprovalRequest",
    "ApprovalRequiredError",
    "CompletionEngine",
    "CompletionEvent",
    "CompletionOptions",
    "ContextItem",
    "EventBus",
    "ExecutionMode",
    "ExecutionModeRegistry",
    "ModelNotConfiguredError",
    "ModelService",
    "Plugin",
    "PluginPrepareContext",
    "PluginRegistrationError",
    "PluginRegistry",
    "PluginSetupContext",
    "PreparationSnapshot",
    "Prompt",
    "PromptCheckpoint",
    "PromptExecutor",
    "PromptNotFoundError",
    "PromptService",
    "PromptState",
    "Services",
    "State",
    "Tool",
    "ToolInput",
    "UnknownExecutionModeError",
    "build_prompt_service",
    "build_services",
]
