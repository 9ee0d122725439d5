"""
Relay Service

This module holds the business logic behind both endpoints:
- Primary chat: server key only, messages forwarded as-is
- Draft chat: caller key when present, history flattened into a transcript
- Payload ceiling, single outbound call, uniform result extraction
"""

from __future__ import annotations

import logging

from rp_relay.config import RelaySettings
from rp_relay.errors import PayloadTooLargeError, ValidationError
from rp_relay.history.transcript import (
    DEFAULT_ACTIVE_CHARACTER,
    DraftContext,
    build_draft_messages,
)
from rp_relay.http_client import UpstreamHttpClient, read_body
from rp_relay.llm.adjustments import apply_adjustments, draft_adjustments
from rp_relay.llm.client import build_provider_request
from rp_relay.llm.extract import extract_result
from rp_relay.llm.profiles import resolve_provider
from rp_relay.models import (
    ChatRequest,
    DraftRequest,
    ProviderRequest,
    ProviderResult,
)

logger = logging.getLogger(__name__)


def serialized_size(request: ChatRequest) -> int:
    """UTF-8 size of the whole validated request body."""
    return len(request.model_dump_json(by_alias=True).encode())


class RelayService:
    """
    Request orchestrator, one linear pass per call:
    1. Validates the request and enforces the payload ceiling
    2. Builds the provider request
    3. Makes exactly one outbound call
    4. Extracts a uniform result
    """

    def __init__(self, settings: RelaySettings, http: UpstreamHttpClient):
        self.settings = settings
        self.http = http

    # ---------- public ----------

    async def chat(self, request: ChatRequest) -> ProviderResult:
        """Primary persona. Caller-supplied keys are never honoured here."""
        logger.info(
            f"/chat provider={request.provider} model={request.model} "
            f"messages={len(request.messages)}"
        )
        self._require_messages(request)
        provider = resolve_provider(request.provider)
        self._require_model(request)
        self._enforce_payload_limit(request)

        provider_request = build_provider_request(
            provider, request.model, request.messages, self.settings, user_key=None
        )
        result = await self._forward(provider_request)
        logger.info(f"Chat success: {result.text[:100]}")
        return result

    async def draft(self, request: DraftRequest) -> ProviderResult:
        """Secondary persona drafting a reply for the user's character."""
        draft_char = request.draft_char
        logger.info(
            f"/draft provider={request.provider} model={request.model} "
            f"draft_char={draft_char.name if draft_char else None}"
        )
        self._require_messages(request)
        if draft_char is None or not draft_char.name.strip():
            raise ValidationError("No draft character provided")
        provider = resolve_provider(request.provider)
        self._require_model(request)
        self._enforce_payload_limit(request)

        user_key = (request.user_api_key or "").strip() or None
        if user_key:
            logger.info("Draft: using caller-supplied key")
        else:
            logger.info("Draft: using server key")

        context = DraftContext(
            draft_character=draft_char,
            guidance=request.draft_prompt or "",
            active_character_name=(request.active_char_name or "").strip()
            or DEFAULT_ACTIVE_CHARACTER,
        )
        draft_messages = build_draft_messages(request.messages, context)

        provider_request = build_provider_request(
            provider, request.model, draft_messages, self.settings, user_key=user_key
        )
        provider_request = apply_adjustments(
            provider_request, draft_adjustments(provider, request.model)
        )
        result = await self._forward(provider_request)
        logger.info(f"Draft success: {result.text[:100]}")
        return result

    # ---------- helpers ----------

    @staticmethod
    def _require_messages(request: ChatRequest) -> None:
        if not request.messages:
            raise ValidationError("No messages provided")

    @staticmethod
    def _require_model(request: ChatRequest) -> None:
        if not request.model.strip():
            raise ValidationError("No model provided")

    def _enforce_payload_limit(self, request: ChatRequest) -> None:
        size = serialized_size(request)
        if size > self.settings.max_payload_bytes:
            logger.warning(
                f"Rejecting oversized payload: {size} bytes "
                f"(limit {self.settings.max_payload_bytes})"
            )
            raise PayloadTooLargeError(size, self.settings.max_payload_bytes)

    async def _forward(self, provider_request: ProviderRequest) -> ProviderResult:
        logger.info(f"Calling: {provider_request.url}")
        response = await self.http.post_json(
            provider_request.url, provider_request.headers, provider_request.body
        )
        return extract_result(
            provider_request.provider, response.status_code, read_body(response)
        )
