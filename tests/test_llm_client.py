import pytest
import requests

from specgen import llm_client


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _chat(content):
    return _FakeResponse(200, {"choices": [{"message": {"content": content}}]})


@pytest.fixture
def no_providers(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "")
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "")
    monkeypatch.setattr(llm_client, "OPENROUTER_FALLBACK_MODEL", "")
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "")


def test_no_credentials_raises(no_providers, monkeypatch):
    def never(*a, **k):
        raise AssertionError("no request expected without credentials")

    monkeypatch.setattr(llm_client.requests, "post", never)
    with pytest.raises(llm_client.UpstreamError, match="Missing LLM credentials"):
        llm_client.generate("sys", "user")
    assert llm_client.status() == {"provider": None, "model": None, "has_token": False, "using": "none"}


def test_status_reports_provider_order(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "or-key")
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")
    s = llm_client.status()
    assert s["provider"] == "openrouter"
    assert s["has_token"] is True
    assert s["order"] == ["openrouter", "groq"]


def test_openai_preferred_and_json_mode_requested(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, json, timeout))
        return _chat('{"components": []}')

    monkeypatch.setattr(llm_client.requests, "post", fake_post)
    out = llm_client.generate("sys", "user")
    assert out == '{"components": []}'
    assert len(calls) == 1
    url, body, timeout = calls[0]
    assert url == llm_client.OPENAI_ENDPOINT
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0] == {"role": "system", "content": "sys"}
    assert timeout == llm_client.LLM_TIMEOUT_SECS


def test_retries_without_json_mode_on_400(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")
    bodies = []

    def fake_post(url, headers=None, json=None, timeout=None):
        bodies.append(json)
        if "response_format" in json:
            return _FakeResponse(400, text="response_format not supported")
        return _chat("{}")

    monkeypatch.setattr(llm_client.requests, "post", fake_post)
    assert llm_client.generate("sys", "user") == "{}"
    assert len(bodies) == 2
    assert "response_format" not in bodies[1]


def test_fails_over_to_next_provider(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "or-key")
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")
    hit = []

    def fake_post(url, headers=None, json=None, timeout=None):
        hit.append(url)
        if url == llm_client.OPENROUTER_ENDPOINT:
            return _FakeResponse(500, text="boom")
        return _chat("from groq")

    monkeypatch.setattr(llm_client.requests, "post", fake_post)
    assert llm_client.generate("sys", "user") == "from groq"
    assert hit == [llm_client.OPENROUTER_ENDPOINT, llm_client.GROQ_ENDPOINT]


def test_openrouter_fallback_model_tried_before_next_provider(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "or-key")
    monkeypatch.setattr(llm_client, "OPENROUTER_MODEL", "primary/model")
    monkeypatch.setattr(llm_client, "OPENROUTER_FALLBACK_MODEL", "backup/model")
    models = []

    def fake_post(url, headers=None, json=None, timeout=None):
        models.append(json["model"])
        if json["model"] == "primary/model":
            return _chat("   ")
        return _chat("ok")

    monkeypatch.setattr(llm_client.requests, "post", fake_post)
    assert llm_client.generate("sys", "user") == "ok"
    assert models == ["primary/model", "backup/model"]


def test_timeouts_everywhere_raise_upstream_error(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")

    def slow(*a, **k):
        raise requests.Timeout("too slow")

    monkeypatch.setattr(llm_client.requests, "post", slow)
    with pytest.raises(llm_client.UpstreamError, match="All providers failed"):
        llm_client.generate("sys", "user")


def test_non_json_body_is_a_failure(no_providers, monkeypatch):
    monkeypatch.setattr(llm_client, "GROQ_API_KEY", "groq-key")
    monkeypatch.setattr(llm_client.requests, "post", lambda *a, **k: _FakeResponse(200, None, "<html>"))
    with pytest.raises(llm_client.UpstreamError):
        llm_client.generate("sys", "user")
