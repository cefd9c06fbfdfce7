import logging
import os
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from specgen import llm_client, pipeline, ratelimit
from specgen.auth import extract_client_key, require_api_key
from specgen.media_catalog import CATALOG
from specgen.prompts import build_prompts
from specgen.render import render, render_html
from specgen.validators import validate_spec

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

FALLBACK_ON_UPSTREAM_FAILURE = os.getenv("FALLBACK_ON_UPSTREAM_FAILURE", "0").lower() in {"1", "true", "yes", "on"}

_rl_instance = None
_REDIS_URL = os.getenv("REDIS_URL", "").strip()
if _REDIS_URL and not os.getenv("PYTEST_CURRENT_TEST"):
    try:
        from specgen.redis_ratelimit import RedisRateLimiter

        _rl_instance = RedisRateLimiter(_REDIS_URL)
    except Exception:
        log.exception("ratelimit: Redis limiter unavailable; using in-process limiter")
        _rl_instance = None


app = FastAPI(title="specgen")

allow_origins = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


class SpecRequest(BaseModel):
    intent: Dict[str, Any] = Field(default_factory=dict, description="Normalized brief from the intent extractor")


class BuildRequest(BaseModel):
    candidate: str = Field("", description="Raw candidate text as returned by the generation service")
    intent: Dict[str, Any] = Field(default_factory=dict)


class DocumentRequest(BaseModel):
    spec: Dict[str, Any]


def _safe_rate_check(bucket: str, key: str) -> Tuple[bool, int, int]:
    """
    Return (allowed, remaining, reset_ts).
    Prefers the Redis limiter; if Redis is unreachable, falls back to the in-process limiter.
    """
    if _rl_instance is not None:
        try:
            return _rl_instance.check_and_increment(bucket, key)
        except Exception as e:
            log.warning("ratelimit: Redis check failed (%r); using in-process limiter", e)
    return ratelimit.check_and_increment(bucket, key)


def _rate_limit_headers(remaining: int, reset_ts: int, *, limited: bool = False) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset_ts),
    }
    if limited:
        wait_seconds = max(0, reset_ts - int(time.time()))
        headers["Retry-After"] = str(wait_seconds)
    return headers


def _rate_limit_payload(reset_ts: int) -> Dict[str, Any]:
    wait_seconds = max(0, reset_ts - int(time.time()))
    return {
        "error": "rate limit exceeded",
        "reset": reset_ts,
        "retry_after_seconds": wait_seconds,
        "message": f"Rate limit exceeded. Try again in {wait_seconds} seconds.",
    }


def _outcome_response(outcome: pipeline.BuildOutcome, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    headers = dict(headers or {})
    headers["X-Spec-Fallback"] = "1" if outcome.fallback else "0"
    return JSONResponse(outcome.spec.to_json_dict(), headers=headers)


def _invalid(errors: List[Dict[str, str]]) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": {"valid": False, "errors": errors}})


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/llm/status")
def llm_status_endpoint() -> Dict[str, Any]:
    return llm_client.status()


@app.get("/media")
def media_endpoint() -> List[Dict[str, Any]]:
    return [{"id": e.id, "url": e.url, "tags": list(e.tags)} for e in CATALOG.values()]


@app.post("/spec")
def spec_endpoint(req: SpecRequest, request: Request, api_key: str = Depends(require_api_key)):
    """
    Generate a document for an intent. Everything after the upstream call is
    total: once candidate text exists, a valid document is returned.
    """
    client_key = extract_client_key(api_key, request.client.host if request.client else "anon")
    if not llm_client.status().get("has_token") and not FALLBACK_ON_UPSTREAM_FAILURE:
        return JSONResponse(status_code=503, content={"error": "Missing LLM credentials"})

    allowed, remaining, reset_ts = _safe_rate_check("spec", client_key)
    log.info("rate_limit check allowed=%s remaining=%s", allowed, remaining)
    if not allowed:
        return JSONResponse(
            status_code=429,
            content=_rate_limit_payload(reset_ts),
            headers=_rate_limit_headers(remaining, reset_ts, limited=True),
        )

    system_prompt, user_prompt = build_prompts(req.intent)
    try:
        raw = llm_client.generate(system_prompt, user_prompt)
    except llm_client.UpstreamError as e:
        if not FALLBACK_ON_UPSTREAM_FAILURE:
            log.warning("spec: upstream failure: %s", e)
            return JSONResponse(
                status_code=502,
                content={"error": "upstream generation failed", "detail": str(e)},
                headers=_rate_limit_headers(remaining, reset_ts),
            )
        log.warning("spec: upstream failure (%s); degrading to empty candidate", e)
        raw = ""

    outcome = pipeline.build_with_report(raw, req.intent)
    return _outcome_response(outcome, _rate_limit_headers(remaining, reset_ts))


@app.post("/spec/build")
def build_endpoint(req: BuildRequest, api_key: str = Depends(require_api_key)):
    """Run the document pipeline on caller-supplied candidate text."""
    return _outcome_response(pipeline.build_with_report(req.candidate, req.intent))


@app.post("/validate")
def validate_endpoint(req: DocumentRequest):
    """
    Returns 200 and {"detail":{"valid":true}} on success,
            422 and {"detail":{"valid":false,"errors":[...]}} on failure.
    """
    result = validate_spec(req.spec)
    if not result.ok:
        return _invalid(result.errors)
    return {"detail": {"valid": True}}


@app.post("/render")
def render_endpoint(req: DocumentRequest):
    result = validate_spec(req.spec)
    if not result.ok:
        return _invalid(result.errors)
    return render(result.spec).model_dump(mode="json")


@app.post("/preview", response_class=HTMLResponse)
def preview_endpoint(req: DocumentRequest):
    result = validate_spec(req.spec)
    if not result.ok:
        return _invalid(result.errors)
    return HTMLResponse(render_html(result.spec))
