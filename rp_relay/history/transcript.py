"""
Transcript utilities for the draft assistant.

The draft persona writes a reply on behalf of the user's character. Handing it
the raw chat-role history makes models confuse who is speaking, so the history
is flattened into a labelled script and sent as a single user turn.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rp_relay.models import DraftCharacter, Message

DEFAULT_ACTIVE_CHARACTER = "Assistant"


@dataclass(frozen=True)
class DraftContext:
    draft_character: DraftCharacter
    guidance: str = ""
    active_character_name: str = DEFAULT_ACTIVE_CHARACTER


def _role_and_content(message: Message | dict[str, Any]) -> tuple[str, str]:
    if isinstance(message, Message):
        return message.role, message.content
    return message.get("role", "user"), message.get("content") or ""


def compose_transcript(
    messages: Sequence[Message | dict[str, Any]],
    assistant_speaker: str,
    draft_speaker: str,
) -> str:
    """
    Render the history as ``"<speaker>:\\n<content>"`` paragraphs.

    Assistant turns belong to the active character; every other role,
    unknown ones included, is attributed to the draft character.
    """
    paragraphs = []
    for message in messages:
        role, content = _role_and_content(message)
        speaker = assistant_speaker if role == "assistant" else draft_speaker
        paragraphs.append(f"{speaker}:\n{content}")
    return "\n\n".join(paragraphs)


def build_draft_system_prompt(
    draft_character: DraftCharacter, guidance: str = ""
) -> str:
    name = draft_character.name
    prompt = (
        f"You are a creative writing assistant drafting the next reply for the "
        f"character {name}.\n\n"
        f"CHARACTER PROFILE:\n"
        f"{name}: {draft_character.desc}\n\n"
        f"YOUR TASK:\n"
        f"- Read the conversation transcript carefully for full context\n"
        f"- Write ONLY as {name}, never as any other character\n"
        f"- Match the tone, pace, and emotional register of the scene\n"
        f"- This is a DRAFT that the user will review and edit\n"
        f"- Do NOT add any preamble, explanation, or meta-commentary\n"
        f"- Do NOT repeat or echo the other character's last line\n"
        f"- Reply ONLY with {name}'s dialogue/response, without a name label"
    )
    if guidance and guidance.strip():
        prompt += f"\n\nADDITIONAL GUIDANCE FOR THIS DRAFT:\n{guidance.strip()}"
    return prompt


def build_draft_messages(
    messages: Sequence[Message | dict[str, Any]], context: DraftContext
) -> list[Message]:
    """Exactly two turns: the draft system prompt and the transcript."""
    name = context.draft_character.name
    transcript = compose_transcript(
        messages,
        assistant_speaker=context.active_character_name,
        draft_speaker=name,
    )
    closing = f"Write {name}'s next reply to continue this scene."
    system_prompt = build_draft_system_prompt(
        context.draft_character, context.guidance
    )
    return [
        Message(role="system", content=system_prompt),
        Message(role="user", content=f"{transcript}\n\n{closing}"),
    ]
