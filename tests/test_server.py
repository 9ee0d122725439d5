import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import ALL_KEYS, RecordingUpstream
from rp_relay.config import RelaySettings
from rp_relay.http_client import UpstreamHttpClient
from rp_relay.llm.adjustments import NOTHINK_MARKER
from rp_relay.server import RelayServer, create_app

HISTORY = [
    {"role": "user", "content": "Hi"},
    {"role": "assistant", "content": "Hello"},
]


def _client(upstream, settings: RelaySettings) -> TestClient:
    http = UpstreamHttpClient(transport=httpx.MockTransport(upstream))
    return TestClient(create_app(settings, http))


def _chat_body(**overrides):
    body = {"provider": "openai", "model": "gpt-4o", "messages": HISTORY}
    body.update(overrides)
    return body


def _draft_body(**overrides):
    body = {
        "provider": "openai",
        "model": "gpt-4o",
        "messages": HISTORY,
        "draftChar": {"name": "Sam", "desc": "A tired detective."},
        "activeCharName": "Victoria",
    }
    body.update(overrides)
    return body


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def client(upstream, settings):
    with _client(upstream, settings) as c:
        yield c


# --- /chat ---------------------------------------------------------------------


def test_chat_success_envelope(client, upstream):
    resp = client.post("/chat", json=_chat_body())

    assert resp.status_code == 200
    assert resp.json() == {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": "Hello there",
                    "reasoning_content": None,
                }
            }
        ]
    }
    assert len(upstream.calls) == 1
    assert str(upstream.calls[0].url) == "https://api.openai.com/v1/chat/completions"
    assert upstream.last_json["messages"] == HISTORY


def test_chat_api_prefix_alias(client, upstream):
    resp = client.post("/api/chat", json=_chat_body())
    assert resp.status_code == 200
    assert len(upstream.calls) == 1


def test_chat_ignores_caller_key(client, upstream):
    client.post(
        "/chat",
        json=_chat_body(provider="openrouter", model="m", userApiKey="caller-key"),
    )
    assert upstream.last_headers["Authorization"] == "Bearer server-openrouter"


def test_chat_without_server_key_is_config_error(upstream, keyless_settings):
    with _client(upstream, keyless_settings) as c:
        resp = c.post("/chat", json=_chat_body(provider="anthropic", model="c"))

    assert resp.status_code == 500
    assert "ANTHROPIC_API_KEY" in resp.json()["error"]
    assert upstream.calls == []


@pytest.mark.parametrize(
    "provider", ["mancer", "openrouter", "openai", "anthropic", "bogus"]
)
@pytest.mark.parametrize("route", ["/chat", "/draft"])
def test_empty_messages_rejected(client, upstream, provider, route):
    resp = client.post(route, json=_draft_body(provider=provider, messages=[]))
    assert resp.status_code == 400
    assert resp.json() == {"error": "No messages provided"}
    assert upstream.calls == []


@pytest.mark.parametrize("provider", ["gemini", "OpenAI", " openai "])
def test_unknown_provider(client, upstream, provider):
    resp = client.post("/chat", json=_chat_body(provider=provider))
    assert resp.status_code == 400
    assert resp.json() == {"error": f"Unknown provider: {provider}"}
    assert upstream.calls == []


def test_missing_model(client):
    resp = client.post("/chat", json=_chat_body(model=" "))
    assert resp.status_code == 400
    assert resp.json() == {"error": "No model provided"}


def test_malformed_message_role_is_json_400(client, upstream):
    resp = client.post(
        "/chat", json=_chat_body(messages=[{"role": "tool", "content": "x"}])
    )
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid request body")
    assert upstream.calls == []


@pytest.mark.parametrize("route", ["/chat", "/draft"])
def test_oversized_payload_rejected_before_network(upstream, route):
    small = RelaySettings(provider_keys=dict(ALL_KEYS), max_payload_bytes=200)
    big = [{"role": "user", "content": "x" * 500}]
    with _client(upstream, small) as c:
        resp = c.post(route, json=_draft_body(messages=big))

    assert resp.status_code == 413
    assert "reduce the conversation context" in resp.json()["error"]
    assert upstream.calls == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"draftChar": {"name": "Sam", "desc": "x" * 5_000}},
        {"draftPrompt": "y" * 5_000},
    ],
)
def test_draft_extras_count_toward_payload_limit(upstream, overrides):
    limited = RelaySettings(provider_keys=dict(ALL_KEYS), max_payload_bytes=1_000)
    with _client(upstream, limited) as c:
        assert c.post("/draft", json=_draft_body()).status_code == 200
        resp = c.post("/draft", json=_draft_body(**overrides))

    assert resp.status_code == 413
    assert len(upstream.calls) == 1


@pytest.mark.parametrize(
    "status, body, expected_status",
    [
        (429, {"error": {"message": "Too many requests"}}, 429),
        (402, {"error": {"message": "Payment required"}}, 402),
        (400, {"error": {"message": "max token limit exceeded"}}, 413),
        (503, {"error": {"message": "Overloaded"}}, 500),
    ],
)
def test_upstream_errors_are_classified(settings, status, body, expected_status):
    upstream = RecordingUpstream(status_code=status, body=body)
    with _client(upstream, settings) as c:
        resp = c.post("/chat", json=_chat_body(provider="openrouter", model="m"))

    assert resp.status_code == expected_status
    assert "error" in resp.json()


@pytest.mark.parametrize(
    "body, error",
    [
        ({"choices": []}, "No message found in API response"),
        ({"choices": [None]}, "No message found in API response"),
        (
            {"choices": [{"message": {"content": [{"type": "text"}]}}]},
            "Could not extract text from API response",
        ),
    ],
)
def test_extraction_failure_is_500(settings, body, error):
    upstream = RecordingUpstream(body=body)
    with _client(upstream, settings) as c:
        resp = c.post("/chat", json=_chat_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": error}


def test_transport_failure_is_500(settings):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(unreachable, settings) as c:
        resp = c.post("/chat", json=_chat_body())

    assert resp.status_code == 500
    assert resp.json()["error"].startswith("Could not reach api.openai.com")


@pytest.mark.parametrize(
    "route, method", [("/chat", "chat"), ("/draft", "draft")]
)
def test_unexpected_exception_is_json_500(
    monkeypatch, upstream, settings, route, method
):
    async def explode(request):
        raise RuntimeError("boom")

    server = RelayServer(
        settings, UpstreamHttpClient(transport=httpx.MockTransport(upstream))
    )
    monkeypatch.setattr(server.relay_service, method, explode)

    with TestClient(server.app) as c:
        resp = c.post(route, json=_draft_body())

    assert resp.status_code == 500
    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == {"error": "Internal server error"}


def test_anthropic_reply(settings):
    upstream = RecordingUpstream(
        body={"content": [{"type": "text", "text": "Bonjour"}]}
    )
    with _client(upstream, settings) as c:
        resp = c.post(
            "/chat",
            json=_chat_body(
                provider="anthropic",
                model="claude-3-5-sonnet",
                messages=[{"role": "system", "content": "sys"}, *HISTORY],
            ),
        )

    assert resp.json()["choices"][0]["message"]["content"] == "Bonjour"
    sent = upstream.last_json
    assert sent["system"] == "sys"
    assert sent["messages"][-1]["role"] == "user"


# --- /draft --------------------------------------------------------------------


def test_draft_requires_character(client, upstream):
    resp = client.post("/draft", json=_draft_body(draftChar={"name": "  "}))
    assert resp.status_code == 400
    assert resp.json() == {"error": "No draft character provided"}
    assert upstream.calls == []


def test_draft_sends_system_and_transcript(client, upstream):
    resp = client.post("/draft", json=_draft_body(draftPrompt="Keep it short."))

    assert resp.status_code == 200
    sent = upstream.last_json["messages"]
    assert [m["role"] for m in sent] == ["system", "user"]
    assert "Sam: A tired detective." in sent[0]["content"]
    assert "Keep it short." in sent[0]["content"]
    assert sent[1]["content"].startswith("Sam:\nHi\n\nVictoria:\nHello")
    assert upstream.last_json["max_tokens"] == 2048


def test_draft_prefers_caller_key(client, upstream):
    client.post("/api/draft", json=_draft_body(userApiKey="  caller-key  "))
    assert upstream.last_headers["Authorization"] == "Bearer caller-key"


def test_draft_falls_back_to_server_key(client, upstream):
    client.post("/draft", json=_draft_body(userApiKey=""))
    assert upstream.last_headers["Authorization"] == "Bearer server-openai"


def test_draft_caller_key_without_server_key(upstream, keyless_settings):
    with _client(upstream, keyless_settings) as c:
        resp = c.post("/draft", json=_draft_body(userApiKey="caller-key"))
    assert resp.status_code == 200


@pytest.mark.parametrize(
    "provider, model",
    [("mancer", "mytholite"), ("openrouter", "z-ai/GLM-4.5"), ("openai", "glm-4")],
)
def test_draft_thinking_suppression(client, upstream, provider, model):
    resp = client.post("/draft", json=_draft_body(provider=provider, model=model))

    assert resp.status_code == 200
    sent = upstream.last_json
    assert sent["enable_thinking"] is False
    last_user = sent["messages"][-1]["content"]
    assert last_user.endswith(NOTHINK_MARKER)
    assert last_user.count("/nothink") == 1


def test_draft_without_thinking_model_has_no_marker(client, upstream):
    client.post(
        "/draft",
        json=_draft_body(provider="openrouter", model="meta-llama/llama-3"),
    )
    sent = upstream.last_json
    assert "enable_thinking" not in sent
    assert "/nothink" not in sent["messages"][-1]["content"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
