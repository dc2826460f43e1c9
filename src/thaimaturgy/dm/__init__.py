"""Dungeon Master module for Thaimaturgy.

This module provides the AI Dungeon Master functionality:
- Turn orchestration against an AI provider
- System prompt assembly from the game state
- Running story memory for long sessions

The model narrates and proposes changes through tools; every roll and
every state change is executed by Python.
"""

from __future__ import annotations

from .memory import MemorySummarizer
from .orchestrator import Orchestrator, OrchestratorResponse
from .prompts import build_system_prompt, get_default_system_prompt

__all__ = [
    "Orchestrator",
    "OrchestratorResponse",
    "MemorySummarizer",
    "build_system_prompt",
    "get_default_system_prompt",
]
