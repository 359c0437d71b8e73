from __future__ import annotations

"""High-level prompt orchestration service.

``PromptService`` provides an application-friendly API for running prompts
without wiring completion engines by hand.

Workflow
--------

- ``create``:

  1. Resolves the execution mode (``classic`` by default).
  2. Builds an executor for the prompt and tracks it as active.
  3. Bridges the executor's events onto the process ``EventBus`` and, when a
     checkpoint repository is attached, saves a checkpoint after every output
     change.

- ``approve``/``reject``:

  1. Finds the active executor for the prompt, restoring it from its latest
     checkpoint when it is no longer in memory.
  2. Resolves the pending tool call, which resumes the round loop.

Completed prompts are dropped from the active set, and so are prompts whose
``run``/``approve``/``reject`` through the service raised; those resume from
their latest checkpoint on the next ``approve``/``reject`` or ``restore``.
Executors driven directly stay tracked until ``discard``. ``PromptService`` is
intentionally thin: execution semantics live in the executor.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from .errors import ApprovalNotFoundError, PromptNotFoundError, UnknownExecutionModeError
from .repos.interfaces import PromptCheckpointRepository
from .runtime.engine import CompletionEngine
from .runtime.events import EventBus, EventEmitter, Handler, Unsubscribe
from .runtime.models import CompletionOptions
from .schemas.domain import (
    ApprovalRequest,
    Prompt,
    PromptCheckpoint,
    PromptEvent,
    PromptEventType,
    PromptState,
    PromptUsage,
)
from .services import Services
from .state import State

logger = logging.getLogger(__name__)


class PromptExecutor(Protocol):
    """What the prompt service needs from an execution mode's executor."""

    @property
    def prompt(self) -> Prompt: ...

    @property
    def id(self) -> str: ...

    @property
    def user_id(self) -> str: ...

    @property
    def state(self) -> State: ...

    @property
    def usage(self) -> Optional[PromptUsage]: ...

    async def run(self) -> Prompt: ...

    async def approve(self, tool_call_id: str) -> Prompt: ...

    async def reject(self, tool_call_id: str, reason: Optional[str] = None) -> Prompt: ...

    def on(self, event: str, handler: Handler) -> Unsubscribe: ...

    def checkpoint(self) -> PromptCheckpoint: ...


@dataclass(frozen=True)
class ExecutionMode:
    """A named factory of prompt executors."""

    id: str
    name: str
    create_executor: Callable[[CompletionOptions], PromptExecutor]


class ExecutionModeRegistry:
    """
    Registry of execution modes.

    The ``classic`` mode (text and tools through ``CompletionEngine``) is
    registered on construction. Registering a mode with an existing id
    replaces it.
    """

    def __init__(self, services: Optional[Services] = None) -> None:
        self._modes: Dict[str, ExecutionMode] = {}
        self.register(ExecutionMode(id="classic", name="Classic (text + tools)", create_executor=CompletionEngine))

    def register(self, mode: ExecutionMode) -> None:
        self._modes[mode.id] = mode

    def get(self, mode_id: str) -> Optional[ExecutionMode]:
        return self._modes.get(mode_id)

    def require(self, mode_id: str) -> ExecutionMode:
        """
        Retrieve a mode by id.

        Raises:
            UnknownExecutionModeError: If no mode is registered with the id.
        """
        mode = self._modes.get(mode_id)
        if mode is None:
            raise UnknownExecutionModeError(mode_id)
        return mode

    def list(self) -> List[ExecutionMode]:
        return list(self._modes.values())


class PromptService:
    """Create, track and resume prompt executors."""

    def __init__(self, services: Services) -> None:
        self._services = services
        self._bus = services.get(EventBus)
        self._modes = services.get(ExecutionModeRegistry)
        self._active: Dict[str, PromptExecutor] = {}
        self._checkpoints: Optional[PromptCheckpointRepository] = None
        self._persistence: EventEmitter[str] = EventEmitter()

    @property
    def bus(self) -> EventBus:
        return self._bus

    def use_checkpoints(self, repo: PromptCheckpointRepository) -> None:
        """Persist a checkpoint of every executor after each output change and on completion."""
        self._checkpoints = repo
        self._persistence.on("checkpoint", repo.save)

    def create(
        self,
        *,
        user_id: str,
        input: Optional[str] = None,
        model: str = "normal",
        mode: str = "classic",
        history: Sequence[Prompt] = (),
        state: Union[State, Mapping[str, Any], None] = None,
        max_rounds: Optional[int] = None,
    ) -> PromptExecutor:
        """
        Create and track an executor for a new prompt. The caller runs it.

        Raises:
            UnknownExecutionModeError: If ``mode`` is not registered.
        """
        factory = self._modes.require(mode)
        executor = factory.create_executor(
            CompletionOptions(
                services=self._services,
                user_id=user_id,
                model=model,
                input=input,
                history=history,
                state=state,
                max_rounds=max_rounds,
                mode=mode,
            )
        )
        self._track(executor)
        logger.info(f"Created prompt {executor.id} for user {user_id} in mode '{mode}'")
        self._publish(executor, PromptEventType.created, {})
        return executor

    def register(self, executor: PromptExecutor) -> None:
        """Track an executor built outside ``create``."""
        self._track(executor)

    def get_active(self, prompt_id: str) -> Optional[PromptExecutor]:
        return self._active.get(prompt_id)

    def discard(self, prompt_id: str) -> None:
        """Stop tracking a prompt; its checkpoints are kept."""
        if self._active.pop(prompt_id, None) is not None:
            logger.info(f"Discarded prompt {prompt_id} from the active set")

    async def restore(self, prompt_id: str, *, history: Optional[Sequence[Prompt]] = None) -> PromptExecutor:
        """
        Rebuild an executor from the prompt's latest checkpoint.

        The executor is built by the execution mode recorded in the checkpoint,
        with the checkpointed history, state, round count and round cap.

        Args:
            prompt_id: The prompt to restore.
            history: Replaces the checkpointed conversation history when given.

        Raises:
            PromptNotFoundError: If no checkpoint repository is attached or it has
                no checkpoint for the prompt.
            UnknownExecutionModeError: If the checkpointed mode is no longer registered.
        """
        checkpoint = await self._checkpoints.latest(prompt_id) if self._checkpoints is not None else None
        if checkpoint is None:
            raise PromptNotFoundError(prompt_id)
        mode = self._modes.require(checkpoint.mode)
        executor = mode.create_executor(
            CompletionOptions.from_checkpoint(checkpoint, services=self._services, history=history)
        )
        if executor.prompt.state != PromptState.completed:
            self._track(executor)
        logger.info(f"Restored prompt {prompt_id} in mode '{mode.id}' from checkpoint at round {checkpoint.rounds}")
        return executor

    async def run(self, prompt_id: str) -> Prompt:
        """
        Run an active prompt until it completes or pauses.

        A provider failure drops the prompt from the active set before it is
        re-raised; retry by restoring it from its latest checkpoint.

        Raises:
            PromptNotFoundError: If the prompt is not active.
        """
        executor = self._active.get(prompt_id)
        if executor is None:
            raise PromptNotFoundError(prompt_id)
        return await self._drive(executor, executor.run)

    async def approve(self, prompt_id: str, tool_call_id: str) -> Prompt:
        """
        Approve a prompt's pending tool call.

        Raises:
            PromptNotFoundError: If the prompt is neither active nor checkpointed.
            ApprovalNotFoundError: If ``tool_call_id`` is not the pending call.
        """
        executor = await self._resolve(prompt_id)
        return await self._drive(executor, lambda: executor.approve(tool_call_id))

    async def reject(self, prompt_id: str, tool_call_id: str, reason: Optional[str] = None) -> Prompt:
        """
        Reject a prompt's pending tool call.

        Raises:
            PromptNotFoundError: If the prompt is neither active nor checkpointed.
            ApprovalNotFoundError: If ``tool_call_id`` is not the pending call.
        """
        executor = await self._resolve(prompt_id)
        return await self._drive(executor, lambda: executor.reject(tool_call_id, reason))

    async def drain(self) -> None:
        """Await outstanding event handlers and checkpoint writes."""
        await self._persistence.drain()
        await self._bus.drain()

    async def _drive(self, executor: PromptExecutor, operation: Callable[[], Awaitable[Prompt]]) -> Prompt:
        try:
            return await operation()
        except ApprovalNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Prompt {executor.id} failed: {e}")
            self.discard(executor.id)
            raise

    async def _resolve(self, prompt_id: str) -> PromptExecutor:
        executor = self._active.get(prompt_id)
        if executor is not None:
            return executor
        return await self.restore(prompt_id)

    def _track(self, executor: PromptExecutor) -> None:
        self._active[executor.id] = executor
        executor.on("updated", self._on_updated)
        executor.on("approval-requested", self._on_approval_requested)
        executor.on("completed", self._on_completed)

    def _save_checkpoint(self, executor: PromptExecutor) -> None:
        if self._checkpoints is not None:
            self._persistence.emit("checkpoint", executor.checkpoint())

    def _on_updated(self, executor: PromptExecutor) -> None:
        output = executor.prompt.last_output
        if output is not None:
            self._publish(executor, PromptEventType.output, {"output": output.model_dump(mode="json")})
        self._save_checkpoint(executor)

    def _on_approval_requested(self, executor: PromptExecutor, request: ApprovalRequest) -> None:
        self._publish(executor, PromptEventType.approval_requested, {"request": request.model_dump(mode="json")})

    def _on_completed(self, executor: PromptExecutor) -> None:
        self._active.pop(executor.id, None)
        prompt = executor.prompt
        payload = {
            "output": [o.model_dump(mode="json") for o in prompt.output],
            "usage": prompt.usage.model_dump(mode="json") if prompt.usage else None,
        }
        self._publish(executor, PromptEventType.completed, payload)
        self._save_checkpoint(executor)

    def _publish(self, executor: PromptExecutor, event_type: PromptEventType, payload: Dict[str, Any]) -> None:
        self._bus.publish(
            PromptEvent(prompt_id=executor.id, user_id=executor.user_id, type=event_type, payload=payload)
        )
