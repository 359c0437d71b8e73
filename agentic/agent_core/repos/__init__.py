"""Persistence boundary for prompt pause/resume.

The completion engine never touches storage. It exposes ``checkpoint()`` and
``CompletionEngine.from_checkpoint``; the prompt service persists checkpoints
through a ``PromptCheckpointRepository``.

- ``interfaces``: async repository Protocols.
- ``memory``: in-memory implementation for tests and single-process use.
"""

from .interfaces import PromptCheckpointRepository
from .memory import InMemoryPromptCheckpointRepository

__all__ = [
    "PromptCheckpointRepository",
    "InMemoryPromptCheckpointRepository",
]
