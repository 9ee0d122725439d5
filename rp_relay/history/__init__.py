"""
Conversation history helpers.

- Draft transcript composition and draft system prompt construction
"""

from __future__ import annotations

from .transcript import (
    DraftContext,
    build_draft_messages,
    build_draft_system_prompt,
    compose_transcript,
)

__all__ = [
    "DraftContext",
    "build_draft_messages",
    "build_draft_system_prompt",
    "compose_transcript",
]
