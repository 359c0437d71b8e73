from __future__ import annotations

"""Completion engine.

``CompletionEngine`` owns the life-cycle of one ``Prompt``: it runs the round
loop, calls the model, executes the tool calls the model asks for and pauses
when a call needs human confirmation.

Round loop
----------

Every round the engine:

1. Checks the round cap. Reaching it completes the prompt with a synthesized
   truncation text.
2. Builds a ``PreparationSnapshot`` through the ``PluginRegistry``.
3. Sends the history, the current prompt and the snapshot's tool definitions to
   the model.
4. Runs the requested tool calls one at a time, appending one ``tool`` output
   per call; or, when the model answered with text only, appends it and
   completes the prompt.

Tool failures never escape: an unknown tool, malformed arguments and errors
raised by tool logic become ``error`` results the model sees next round. A
model provider failure is logged and re-raised, leaving the prompt ``running``.

Approval gate
-------------

A tool asks for confirmation through its ``require_approval`` check or by
raising ``ApprovalRequiredError``. The engine records a ``pending`` result,
moves the prompt to ``waiting_for_approval`` and stops. Remaining calls of the
same model response are kept as deferred calls. ``approve`` re-runs the call
with ``ToolInput.approved=True``; ``reject`` records the rejection reason as an
``error``. Both then run the deferred calls, which may pause again, before the
model is called again.

The round counter lives on the engine and survives pauses and checkpoints, so a
resumed prompt never exceeds the cap in total.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from pydantic_ai.messages import ModelResponse, TextPart, ToolCallPart

from agentic.core.monitoring import log_model_call, log_prompt_completion

from ..errors import ApprovalNotFoundError, ApprovalRequiredError
from ..model_provider import ModelService
from ..plugins.prepare import PreparationSnapshot
from ..plugins.registry import PluginRegistry
from ..schemas.domain import (
    ApprovalRequest,
    Prompt,
    PromptCheckpoint,
    PromptOutputText,
    PromptOutputTool,
    PromptState,
    PromptUsage,
    ToolCallRequest,
    ToolResult,
    ToolResultError,
    ToolResultPending,
    ToolResultSuccess,
)
from ..services import Services
from ..state import State
from ..tools.base import Tool, ToolInput
from .events import CompletionEvent, EventEmitter, Handler, Unsubscribe
from .messages import build_messages
from .models import CompletionOptions

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by user"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_arguments(arguments: Any) -> Any:
    """
    Decode tool call arguments as sent by the provider.

    Raises:
        json.JSONDecodeError: If ``arguments`` is a string that is not valid JSON.
    """
    if arguments is None:
        return {}
    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        return json.loads(arguments)
    return arguments


class CompletionEngine:
    """Drive one prompt through the round loop and the approval gate.

    Events (see ``on``):

    - ``updated``: ``handler(engine)`` after every output mutation.
    - ``approval-requested``: ``handler(engine, ApprovalRequest)`` when a call pauses.
    - ``completed``: ``handler(engine)`` once the prompt is terminal.
    """

    def __init__(self, options: CompletionOptions) -> None:
        """
        Initialize the engine.

        Args:
            options: The prompt to complete and its collaborators.
        """
        self._services: Services = options.services
        self._registry = self._services.get(PluginRegistry)
        self._models = self._services.get(ModelService)

        self._history: Tuple[Prompt, ...] = tuple(options.history)
        self._state = options.state if isinstance(options.state, State) else State(options.state)
        if options.prompt is not None:
            self._prompt = options.prompt.model_copy(deep=True)
        else:
            self._prompt = Prompt(user_id=options.user_id, model=options.model, input=options.input)

        self._max_rounds = options.max_rounds or self._services.settings.max_rounds
        self._mode = options.mode
        self._rounds = options.rounds
        self._deferred: List[ToolCallRequest] = list(options.deferred_calls)
        self._snapshot: Optional[PreparationSnapshot] = None

        self._events: EventEmitter[CompletionEvent] = EventEmitter()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def prompt(self) -> Prompt:
        return self._prompt

    @property
    def id(self) -> str:
        return self._prompt.id

    @property
    def user_id(self) -> str:
        return self._prompt.user_id

    @property
    def state(self) -> State:
        return self._state

    @property
    def usage(self) -> Optional[PromptUsage]:
        return self._prompt.usage

    @property
    def rounds(self) -> int:
        return self._rounds

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def events(self) -> EventEmitter[CompletionEvent]:
        return self._events

    @property
    def pending_approval(self) -> Optional[ApprovalRequest]:
        """The outstanding approval request, if the prompt is waiting for one."""
        output = self._prompt.last_output
        if self._prompt.state != PromptState.waiting_for_approval or not isinstance(output, PromptOutputTool):
            return None
        if not isinstance(output.result, ToolResultPending):
            return None
        return ApprovalRequest(
            prompt_id=self._prompt.id,
            tool_call_id=output.call_id,
            tool_name=output.function,
            input=output.input,
            reason=output.result.reason,
        )

    def on(self, event: CompletionEvent | str, handler: Handler) -> Unsubscribe:
        """
        Subscribe to an engine event.

        Returns:
            A callable removing the subscription.
        """
        return self._events.on(CompletionEvent(event), handler)

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def checkpoint(self) -> PromptCheckpoint:
        """Capture everything needed to rehydrate this engine."""
        return PromptCheckpoint(
            prompt_id=self._prompt.id,
            prompt=self._prompt.model_copy(deep=True),
            history=[p.model_copy(deep=True) for p in self._history],
            state=self._state.to_dict(),
            mode=self._mode,
            rounds=self._rounds,
            max_rounds=self._max_rounds,
            deferred_calls=list(self._deferred),
        )

    @classmethod
    def from_checkpoint(
        cls,
        checkpoint: PromptCheckpoint,
        *,
        services: Services,
        history: Optional[Sequence[Prompt]] = None,
        max_rounds: Optional[int] = None,
    ) -> "CompletionEngine":
        """
        Rehydrate an engine from a checkpoint.

        Args:
            checkpoint: The checkpoint written by ``checkpoint``.
            services: Service locator of the new engine.
            history: Earlier prompts of the conversation; defaults to the
                checkpointed history.
            max_rounds: Round cap; defaults to the checkpointed cap.

        Returns:
            An engine continuing the checkpointed prompt.
        """
        return cls(
            CompletionOptions.from_checkpoint(checkpoint, services=services, history=history, max_rounds=max_rounds)
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def run(self) -> Prompt:
        """
        Run rounds until the prompt completes or pauses for approval.

        Returns the prompt unchanged when it is already completed or waiting.

        Raises:
            Exception: Whatever the model provider raised; the prompt stays ``running``.
        """
        async with self._lock:
            if self._prompt.state != PromptState.running:
                return self._prompt
            await self._run_loop()
            return self._prompt

    async def approve(self, tool_call_id: str) -> Prompt:
        """
        Approve the pending tool call and resume.

        Raises:
            ApprovalNotFoundError: If ``tool_call_id`` is not the pending call.
        """
        async with self._lock:
            output = self._pending_output(tool_call_id)
            logger.info(f"Tool call {tool_call_id} ('{output.function}') approved for prompt {self.id}")

            snapshot = await self._current_snapshot()
            tool = snapshot.tool(output.function)
            if tool is None:
                result: ToolResult = ToolResultError(message=f'Tool "{output.function}" no longer available')
            else:
                result = await self._run_tool(tool, output.input, approved=True)
            await self._resolve(output, result)
            return self._prompt

    async def reject(self, tool_call_id: str, reason: Optional[str] = None) -> Prompt:
        """
        Reject the pending tool call and resume.

        Args:
            tool_call_id: Id of the pending call.
            reason: Error message fed back to the model. Defaults to ``Rejected by user``.

        Raises:
            ApprovalNotFoundError: If ``tool_call_id`` is not the pending call.
        """
        async with self._lock:
            output = self._pending_output(tool_call_id)
            logger.info(f"Tool call {tool_call_id} ('{output.function}') rejected for prompt {self.id}")
            await self._resolve(output, ToolResultError(message=reason or DEFAULT_REJECTION_REASON))
            return self._prompt

    # ------------------------------------------------------------------
    # Round loop
    # ------------------------------------------------------------------

    async def _run_loop(self) -> None:
        if self._deferred:
            snapshot = await self._current_snapshot()
            if await self._run_deferred(snapshot):
                return

        while self._prompt.state == PromptState.running:
            if self._rounds >= self._max_rounds:
                logger.warning(f"Prompt {self.id} reached the maximum of {self._max_rounds} rounds; stopping")
                message = f"Exceeded maximum number of rounds ({self._max_rounds}). Stopping."
                self._append(PromptOutputText(content=message, end=_utc_now()))
                self._complete()
                break

            self._rounds += 1
            logger.debug(f"Prompt {self.id}: starting round {self._rounds}/{self._max_rounds}")
            snapshot = await self._registry.prepare(
                user_id=self.user_id, prompts=(*self._history, self._prompt), state=self._state
            )
            self._snapshot = snapshot

            response = await self._call_model(snapshot)
            calls = [part for part in response.parts if isinstance(part, ToolCallPart)]
            if calls:
                self._deferred = [
                    ToolCallRequest(call_id=part.tool_call_id, name=part.tool_name, arguments=part.args)
                    for part in calls
                ]
                if await self._run_deferred(snapshot):
                    return
                continue

            text = "".join(part.content for part in response.parts if isinstance(part, TextPart))
            self._append(PromptOutputText(content=text, end=_utc_now()))
            self._complete()

    async def _call_model(self, snapshot: PreparationSnapshot) -> ModelResponse:
        messages = build_messages((*self._history, self._prompt), snapshot.system_prompt())
        logger.debug(f"Prompt {self.id}: calling model '{self._prompt.model}' with {len(messages)} messages")
        try:
            response = await self._models.request(self._prompt.model, messages, snapshot.tool_definitions())
        except Exception as e:
            logger.error(f"Model request failed for prompt {self.id}: {e}", exc_info=True)
            raise
        self._accumulate_usage(response)
        return response

    def _accumulate_usage(self, response: ModelResponse) -> None:
        usage = self._prompt.usage or PromptUsage()
        request_usage = response.usage
        usage.input_tokens += request_usage.input_tokens
        usage.output_tokens += request_usage.output_tokens
        usage.total_tokens = usage.input_tokens + usage.output_tokens
        reasoning = (request_usage.details or {}).get("reasoning_tokens")
        if reasoning is not None:
            usage.reasoning_tokens = (usage.reasoning_tokens or 0) + reasoning
        if response.model_name:
            usage.resolved_model = response.model_name
        self._prompt.usage = usage
        log_model_call(self.id, response.model_name, request_usage.input_tokens, request_usage.output_tokens)

    async def _current_snapshot(self) -> PreparationSnapshot:
        if self._snapshot is None:
            self._snapshot = await self._registry.prepare(
                user_id=self.user_id, prompts=(*self._history, self._prompt), state=self._state
            )
        return self._snapshot

    # ------------------------------------------------------------------
    # Tool execution
    # ------------------------------------------------------------------

    async def _run_deferred(self, snapshot: PreparationSnapshot) -> bool:
        """Run deferred calls in order; True when one of them paused the prompt."""
        while self._deferred:
            call = self._deferred.pop(0)
            if await self._execute_call(snapshot, call):
                return True
        return False

    async def _execute_call(self, snapshot: PreparationSnapshot, call: ToolCallRequest) -> bool:
        start = _utc_now()
        tool = snapshot.tool(call.name)
        if tool is None:
            available = ", ".join(snapshot.tool_ids)
            logger.warning(f"Model called unknown tool '{call.name}' in prompt {self.id}")
            message = f'Tool "{call.name}" not found. Available tools: {available}'
            self._record(call, call.arguments, ToolResultError(message=message), start)
            return False

        try:
            arguments = parse_arguments(call.arguments)
        except json.JSONDecodeError as e:
            message = f'Invalid JSON in arguments for tool "{call.name}": {e}'
            self._record(call, call.arguments, ToolResultError(message=message), start)
            return False

        result = await self._run_tool(tool, arguments, approved=False)
        if isinstance(result, ToolResultPending):
            output = PromptOutputTool(
                call_id=call.call_id, function=call.name, input=arguments, result=result, start=start
            )
            self._pause(output)
            return True

        self._record(call, arguments, result, start)
        return False

    def _record(self, call: ToolCallRequest, arguments: Any, result: ToolResult, start: datetime) -> None:
        self._append(
            PromptOutputTool(
                call_id=call.call_id, function=call.name, input=arguments, result=result, start=start, end=_utc_now()
            )
        )

    async def _run_tool(self, tool: Tool, arguments: Any, *, approved: bool) -> ToolResult:
        try:
            parsed = tool.parse_input(arguments)
        except ValidationError as e:
            return ToolResultError(message=f'Invalid arguments for tool "{tool.id}": {e}')

        tool_input = ToolInput(
            input=parsed, user_id=self.user_id, state=self._state, services=self._services, approved=approved
        )
        try:
            if not approved:
                check = await tool.check_approval(tool_input)
                if check is not None and check.required:
                    return ToolResultPending(reason=check.reason or f'Tool "{tool.id}" requires approval')
            value = await tool.invoke(tool_input)
        except ApprovalRequiredError as e:
            if approved:
                return ToolResultError(message=f'Error in tool "{tool.id}": {e.reason}')
            return ToolResultPending(reason=e.reason)
        except Exception as e:
            logger.error(f"Tool '{tool.id}' failed in prompt {self.id}: {e}", exc_info=True)
            return ToolResultError(message=f'Error in tool "{tool.id}": {e}')

        try:
            return ToolResultSuccess(output=tool.serialize_output(value))
        except ValidationError as e:
            return ToolResultError(message=f'Invalid output from tool "{tool.id}": {e}')

    # ------------------------------------------------------------------
    # Output and state transitions
    # ------------------------------------------------------------------

    def _append(self, output: PromptOutputText | PromptOutputTool) -> None:
        self._prompt.output.append(output)
        self._events.emit(CompletionEvent.updated, self)

    def _pause(self, output: PromptOutputTool) -> None:
        self._prompt.output.append(output)
        self._prompt.state = PromptState.waiting_for_approval
        request = self.pending_approval
        logger.info(f"Prompt {self.id} waiting for approval of '{output.function}' ({output.call_id})")
        self._events.emit(CompletionEvent.updated, self)
        self._events.emit(CompletionEvent.approval_requested, self, request)

    def _pending_output(self, tool_call_id: str) -> PromptOutputTool:
        output = self._prompt.last_output
        if (
            self._prompt.state != PromptState.waiting_for_approval
            or not isinstance(output, PromptOutputTool)
            or not output.is_pending
            or output.call_id != tool_call_id
        ):
            raise ApprovalNotFoundError(self.id, tool_call_id)
        return output

    async def _resolve(self, output: PromptOutputTool, result: ToolResult) -> None:
        output.result = result
        output.end = _utc_now()
        self._prompt.state = PromptState.running
        self._events.emit(CompletionEvent.updated, self)
        await self._run_loop()

    def _complete(self) -> None:
        self._prompt.state = PromptState.completed
        logger.info(f"Prompt {self.id} completed after {self._rounds} rounds with {len(self._prompt.output)} outputs")
        log_prompt_completion(self.id, self.user_id, len(self._prompt.output), self._rounds)
        self._events.emit(CompletionEvent.completed, self)
