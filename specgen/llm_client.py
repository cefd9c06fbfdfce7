"""
Content-generation capability: one chat completion per request, returning the
raw candidate text. Parsing and validation of that text belong to the
pipeline; this module only gets text out of an OpenAI-compatible endpoint.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, NamedTuple, Optional

import requests

log = logging.getLogger(__name__)

OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or os.getenv("OPEN_AI_KEY") or "").strip()
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini").strip()
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "").strip()
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "openai/gpt-4.1-mini").strip()
OPENROUTER_FALLBACK_MODEL = os.getenv("OPENROUTER_FALLBACK_MODEL", "").strip()
OPENROUTER_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

# Groq (OpenAI-compatible) last-resort provider
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "").strip()
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile").strip()
GROQ_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"

try:
    TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.95") or 0.95)
except ValueError:
    TEMPERATURE = 0.95
try:
    LLM_TIMEOUT_SECS = float(os.getenv("LLM_TIMEOUT_SECS", "30") or 30)
except ValueError:
    LLM_TIMEOUT_SECS = 30.0
try:
    LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1800") or 1800)
except ValueError:
    LLM_MAX_TOKENS = 1800


class UpstreamError(RuntimeError):
    """No candidate text could be obtained from any provider."""


class _Provider(NamedTuple):
    name: str
    endpoint: str
    api_key: str
    models: List[str]


def _providers() -> List[_Provider]:
    out: List[_Provider] = []
    if OPENAI_API_KEY:
        out.append(_Provider("openai", OPENAI_ENDPOINT, OPENAI_API_KEY, [OPENAI_MODEL]))
    if OPENROUTER_API_KEY:
        models = [OPENROUTER_MODEL]
        if OPENROUTER_FALLBACK_MODEL and OPENROUTER_FALLBACK_MODEL != OPENROUTER_MODEL:
            models.append(OPENROUTER_FALLBACK_MODEL)
        out.append(_Provider("openrouter", OPENROUTER_ENDPOINT, OPENROUTER_API_KEY, models))
    if GROQ_API_KEY:
        out.append(_Provider("groq", GROQ_ENDPOINT, GROQ_API_KEY, [GROQ_MODEL]))
    return out


def status() -> Dict[str, Any]:
    providers = _providers()
    if not providers:
        return {"provider": None, "model": None, "has_token": False, "using": "none"}
    first = providers[0]
    return {
        "provider": first.name,
        "model": first.models[0],
        "has_token": True,
        "using": first.name,
        "order": [p.name for p in providers],
    }


def _extract_text(data: Any) -> Optional[str]:
    try:
        text = data.get("choices", [{}])[0].get("message", {}).get("content")
    except (AttributeError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text.strip() else None


def _call_chat(provider: _Provider, model: str, system_prompt: str, user_prompt: str) -> Optional[str]:
    """One chat completion; None on any failure."""
    headers = {
        "Authorization": f"Bearer {provider.api_key}",
        "Content-Type": "application/json",
    }
    if provider.name == "openrouter":
        headers["X-Title"] = "specgen"
    body: Dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": TEMPERATURE,
        "max_tokens": LLM_MAX_TOKENS,
    }
    # Prefer JSON mode; retry once without it when the model rejects it
    body_with_json = dict(body)
    body_with_json["response_format"] = {"type": "json_object"}

    try:
        resp = requests.post(provider.endpoint, headers=headers, json=body_with_json, timeout=LLM_TIMEOUT_SECS)
        if resp.status_code == 400:
            resp = requests.post(provider.endpoint, headers=headers, json=body, timeout=LLM_TIMEOUT_SECS)
    except requests.Timeout:
        log.warning("%s: request timed out after %.1fs (model=%s)", provider.name, LLM_TIMEOUT_SECS, model)
        return None
    except requests.RequestException as e:
        log.warning("%s: request error: %r", provider.name, e)
        return None

    if resp.status_code != 200:
        try:
            msg = resp.text[:400]
        except Exception:
            msg = str(resp.status_code)
        log.warning("%s HTTP %s (model=%s): %s", provider.name, resp.status_code, model, msg)
        return None

    try:
        data = resp.json()
    except ValueError:
        log.warning("%s: non-JSON HTTP body", provider.name)
        return None

    text = _extract_text(data)
    if text is None:
        log.warning("%s: empty response text", provider.name)
    return text


def generate(system_prompt: str, user_prompt: str) -> str:
    """Return raw candidate text from the first provider that answers.

    Raises UpstreamError when no provider is configured or all of them fail.
    """
    providers = _providers()
    if not providers:
        raise UpstreamError("Missing LLM credentials")
    log.info("llm providers_order=%s", [p.name for p in providers])
    for provider in providers:
        for model in provider.models:
            log.info("llm attempting provider=%s model=%s", provider.name, model)
            text = _call_chat(provider, model, system_prompt, user_prompt)
            if text is not None:
                log.info("llm chosen provider=%s model=%s", provider.name, model)
                return text
    raise UpstreamError("All providers failed")
