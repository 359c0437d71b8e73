"""Agentic core.

This package contains the orchestration core of an agent framework: it
mediates between a language-model provider and pluggable capabilities
("tools"), driving a multi-round protocol until a final answer emerges or a
human approval gate intervenes.

Core subpackages
----------------

- ``agentic.agent_core``:

  - Plugin composition and per-round context preparation.
  - The completion engine with its round loop and approval gate.
  - Prompt service, execution modes and the process event bus.
  - Checkpoint repositories for pause/resume.

- ``agentic.core``:

  - Settings loaded from the environment.
  - Logging configuration and optional Logfire monitoring.
"""
