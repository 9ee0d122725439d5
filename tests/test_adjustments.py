import pytest

from rp_relay.llm.adjustments import (
    NOTHINK_MARKER,
    apply_adjustments,
    draft_adjustments,
    needs_thinking_suppression,
    raise_token_ceiling,
    suppress_thinking,
)
from rp_relay.llm.client import build_provider_request

MSGS = [
    {"role": "system", "content": "sys"},
    {"role": "user", "content": "Write something"},
]


def _last_user(body):
    return [m for m in body["messages"] if m["role"] == "user"][-1]["content"]


@pytest.mark.parametrize("provider", ["openrouter", "openai", "anthropic"])
def test_raise_token_ceiling(settings, provider):
    req = build_provider_request(provider, "m", MSGS, settings)
    raised = raise_token_ceiling(req)

    assert raised.body["max_tokens"] == 2048
    # The original request value is untouched.
    assert req.body["max_tokens"] == 1024


def test_raise_token_ceiling_leaves_mancer_alone(settings):
    req = build_provider_request("mancer", "m", MSGS, settings)
    assert raise_token_ceiling(req) is req


def test_suppress_thinking_sets_flag_and_marker(settings):
    req = build_provider_request("openrouter", "z-ai/glm-4.5", MSGS, settings)
    out = suppress_thinking(req)

    assert out.body["enable_thinking"] is False
    assert _last_user(out.body).endswith(NOTHINK_MARKER)
    assert "enable_thinking" not in req.body
    assert _last_user(req.body) == "Write something"


def test_suppress_thinking_does_not_stack_on_mancer(settings):
    req = build_provider_request("mancer", "m", MSGS, settings)
    out = apply_adjustments(req, [suppress_thinking, suppress_thinking])

    assert _last_user(out.body) == "Write something" + NOTHINK_MARKER
    assert _last_user(out.body).count("/nothink") == 1
    assert out == req


@pytest.mark.parametrize(
    "provider, model, expected",
    [
        ("mancer", "mytholite", True),
        ("openrouter", "z-ai/GLM-4.5", True),
        ("openai", "glm-tuned", True),
        ("anthropic", "claude-3-5-sonnet", False),
        ("openrouter", "meta-llama/llama-3-70b", False),
    ],
)
def test_needs_thinking_suppression(provider, model, expected):
    assert needs_thinking_suppression(provider, model) is expected


def test_draft_adjustments_order():
    assert draft_adjustments("openai", "gpt-4o") == [raise_token_ceiling]
    assert draft_adjustments("openrouter", "GLM-4") == [
        raise_token_ceiling,
        suppress_thinking,
    ]


def test_apply_adjustments_without_steps_returns_same_request(settings):
    req = build_provider_request("openai", "m", MSGS, settings)
    assert apply_adjustments(req, []) is req
