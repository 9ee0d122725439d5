"""
Relay data models

Pydantic v2 models for the inbound request bodies, the provider-agnostic
message list, the built outbound request and the uniform reply envelope.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]

JSON = dict[str, Any]
MsgList = list[dict[str, Any]]


# ---------- conversation ----------

class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""


class DraftCharacter(BaseModel):
    name: str = ""
    desc: str = ""


# ---------- inbound bodies ----------

class ChatRequest(BaseModel):
    """Body of ``POST /chat``. Unknown fields (a caller key included) are ignored."""

    provider: str = ""
    model: str = ""
    messages: list[Message] = Field(default_factory=list)


class DraftRequest(ChatRequest):
    """Body of ``POST /draft``."""

    model_config = ConfigDict(populate_by_name=True)

    draft_char: DraftCharacter | None = Field(default=None, alias="draftChar")
    draft_prompt: str | None = Field(default=None, alias="draftPrompt")
    user_api_key: str | None = Field(default=None, alias="userApiKey")
    active_char_name: str | None = Field(default=None, alias="activeCharName")


# ---------- outbound ----------

class ProviderRequest(BaseModel):
    """One fully-built provider call. Adjustments return copies, never mutate."""

    model_config = ConfigDict(frozen=True)

    provider: str
    url: str
    headers: dict[str, str]
    body: JSON


class ProviderResult(BaseModel):
    text: str
    reasoning_content: str | None = None


# ---------- response envelope ----------

class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
    reasoning_content: str | None = None


class Choice(BaseModel):
    message: AssistantMessage


class ChatResponse(BaseModel):
    choices: list[Choice]

    @classmethod
    def from_result(cls, result: ProviderResult) -> ChatResponse:
        return cls(
            choices=[
                Choice(
                    message=AssistantMessage(
                        content=result.text,
                        reasoning_content=result.reasoning_content,
                    )
                )
            ]
        )
