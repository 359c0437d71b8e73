from __future__ import annotations

"""In-memory repository implementations.

Suitable for tests and single-process deployments; nothing survives a restart.
Stored checkpoints are deep copies, so later changes to the engine's prompt do
not leak into saved history.
"""

from collections import defaultdict
from typing import DefaultDict, List, Optional

from ..schemas.domain import PromptCheckpoint


class InMemoryPromptCheckpointRepository:
    """Keep every saved checkpoint per prompt, oldest first."""

    def __init__(self) -> None:
        self._checkpoints: DefaultDict[str, List[PromptCheckpoint]] = defaultdict(list)

    async def save(self, checkpoint: PromptCheckpoint) -> None:
        self._checkpoints[checkpoint.prompt_id].append(checkpoint.model_copy(deep=True))

    async def latest(self, prompt_id: str) -> Optional[PromptCheckpoint]:
        items = self._checkpoints.get(prompt_id)
        if not items:
            return None
        return items[-1].model_copy(deep=True)

    async def delete(self, prompt_id: str) -> None:
        self._checkpoints.pop(prompt_id, None)

    async def history(self, prompt_id: str) -> List[PromptCheckpoint]:
        """Return every checkpoint of a prompt, oldest first."""
        return [c.model_copy(deep=True) for c in self._checkpoints.get(prompt_id, [])]
