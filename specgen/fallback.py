from __future__ import annotations

import os
from typing import Any, Optional

from specgen.intent import coerce_intent
from specgen.normalize import normalize_node
from specgen.validators import (
    BODY_MAX,
    CTA_ACTION_MAX,
    CTA_LABEL_MAX,
    FIXED_STYLE,
    TITLE_MAX,
    UiSpec,
)

DEFAULT_TITLE = "Welcome"
DEFAULT_BODY = "Discover what is new and find the option that fits you best."
DEFAULT_CTA = "Learn more"
CTA_DEFAULT_ACTION = os.getenv("CTA_DEFAULT_ACTION", "click").strip()[:CTA_ACTION_MAX]


def _clip(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    cut = text[: limit - 1].rstrip()
    return cut + "…"


def _first_text(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v
    return None


def build_fallback(intent: Any) -> UiSpec:
    """
    Minimal single-card document built straight from the intent.

    Total and deterministic: the same intent always yields the same document,
    and the result always passes validation. Intent text longer than the slot
    ceilings is clipped here, since this document has no further fallback.
    """
    ctx = coerce_intent(intent)
    title = _clip(_first_text(ctx.title, ctx.goal) or DEFAULT_TITLE, TITLE_MAX)
    body = _clip(_first_text(ctx.body) or DEFAULT_BODY, BODY_MAX)
    label = _clip(_first_text(ctx.cta) or DEFAULT_CTA, CTA_LABEL_MAX)

    cta = {"slot": "cta", "label": label}
    if CTA_DEFAULT_ACTION:
        cta["action"] = CTA_DEFAULT_ACTION
    card = normalize_node(
        {
            "kind": "Card",
            "slots": [
                {"slot": "title", "text": title or DEFAULT_TITLE},
                {"slot": "body", "text": body or DEFAULT_BODY},
                cta,
            ],
        }
    )
    return UiSpec.model_validate(
        {
            "layout": "one-card-cta",
            "style": dict(FIXED_STYLE),
            "components": [{"kind": "Stage", "children": [card]}],
        }
    )
