from __future__ import annotations

"""Repository interface contracts.

The prompt service depends on these Protocols instead of concrete persistence
implementations. The completion engine itself never writes to storage; it
hands out ``PromptCheckpoint`` snapshots that listeners persist here.

Contract guidelines
-------------------

- All methods are async.
- ``save`` keeps every checkpoint; ``latest`` returns the newest one.
- Deleting checkpoints of an unknown prompt is a no-op.
"""

from typing import Optional, Protocol

from ..schemas.domain import PromptCheckpoint


class PromptCheckpointRepository(Protocol):
    """Persist and load prompt checkpoints for pause/resume."""

    async def save(self, checkpoint: PromptCheckpoint) -> None:
        """
        Save a checkpoint.

        Args:
            checkpoint: The engine snapshot to persist.
        """
        ...

    async def latest(self, prompt_id: str) -> Optional[PromptCheckpoint]:
        """
        Retrieve the newest checkpoint of a prompt.

        Args:
            prompt_id: The prompt identifier.

        Returns:
            The newest checkpoint if any, else None.
        """
        ...

    async def delete(self, prompt_id: str) -> None:
        """
        Delete every checkpoint of a prompt.

        Args:
            prompt_id: The prompt identifier.
        """
        ...
