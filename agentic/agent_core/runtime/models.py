from __future__ import annotations

"""Completion engine inputs.

``CompletionOptions`` collects everything one ``CompletionEngine`` needs. A fresh
turn only sets ``services``, ``user_id`` and ``input``; a rehydrated turn also
carries the checkpointed ``prompt``, ``rounds`` and ``deferred_calls``, built
with ``CompletionOptions.from_checkpoint``.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from ..schemas.domain import Prompt, PromptCheckpoint, ToolCallRequest
from ..services import Services
from ..state import State


@dataclass(frozen=True)
class CompletionOptions:
    """Construction options for ``CompletionEngine``.

    Attributes
    ----------
    services:
        Service locator; the engine resolves the plugin registry and the model
        service from it.
    user_id:
        The user owning the prompt.
    model:
        Model key of a new prompt (``normal`` or ``high``).
    input:
        User input of a new prompt.
    history:
        Earlier prompts of the conversation, oldest first.
    state:
        The plugin state bag, or its serialized form. A ``State`` is used as is.
    max_rounds:
        Round cap; defaults to ``settings.max_rounds``.
    mode:
        Id of the execution mode that built the executor; stored in checkpoints.
    prompt:
        An existing prompt to continue instead of creating a new one.
    rounds:
        Rounds already consumed by ``prompt``.
    deferred_calls:
        Tool calls of the last model response still waiting to run.
    """

    services: Services
    user_id: str
    model: str = "normal"
    input: Optional[str] = None
    history: Sequence[Prompt] = ()
    state: Union[State, Mapping[str, Any], None] = None
    max_rounds: Optional[int] = None
    mode: str = "classic"

    prompt: Optional[Prompt] = None
    rounds: int = 0
    deferred_calls: Sequence[ToolCallRequest] = ()

    @classmethod
    def from_checkpoint(
        cls,
        checkpoint: PromptCheckpoint,
        *,
        services: Services,
        history: Optional[Sequence[Prompt]] = None,
        max_rounds: Optional[int] = None,
    ) -> "CompletionOptions":
        """
        Build options continuing a checkpointed prompt.

        Args:
            checkpoint: The checkpoint to continue.
            services: Service locator of the new executor.
            history: Replaces the checkpointed history when given.
            max_rounds: Replaces the checkpointed round cap when given.
        """
        return cls(
            services=services,
            user_id=checkpoint.prompt.user_id,
            model=checkpoint.prompt.model,
            history=tuple(checkpoint.history) if history is None else tuple(history),
            state=checkpoint.state,
            max_rounds=max_rounds or checkpoint.max_rounds,
            mode=checkpoint.mode,
            prompt=checkpoint.prompt,
            rounds=checkpoint.rounds,
            deferred_calls=checkpoint.deferred_calls,
        )
