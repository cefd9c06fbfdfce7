from __future__ import annotations

import json
from typing import Any, Tuple

from specgen.intent import Intent, coerce_intent
from specgen.media import rank_media
from specgen.media_catalog import media_library
from specgen.validators import BODY_MAX, CTA_ACTION_MAX, CTA_LABEL_MAX, LAYOUTS, TITLE_MAX

_SHAPE_HINT = f"""
### UiSpec shape

{{
  "layout": one of {json.dumps(list(LAYOUTS))},
  "style": {{}},
  "components": [
    {{ "kind": "Stage", "children": [CardNode, ...] }}
  ]
}}

CardNode:

{{
  "kind": "Card",
  "slots": [
    {{ "slot": "title", "text": string (max {TITLE_MAX} chars) }},
    {{ "slot": "body", "text": string (max {BODY_MAX} chars) }},
    {{ "slot": "cta", "label": string (max {CTA_LABEL_MAX} chars), "action"?: string (max {CTA_ACTION_MAX} chars) }},
    {{ "slot": "media", "kind": "image" | "placeholder", "id"?: string }}
  ]
}}

Layouts and card counts:
- "one-card-cta": exactly 1 card (hero with one clear call to action).
- "two-block-cards": exactly 2 cards.
- "three-list-items": exactly 3 cards, compact list rows.
- "four-cards-cta": exactly 4 cards in a 2x2 grid.
""".strip()

_MEDIA_RULES = """
### Media selection rules (IMPORTANT)

- First infer the campaign's main product or category from the intent: brand, series, device type.
- If one or more library ids clearly match it, use them with "kind": "image". Ids may repeat.
- If NONE of the library ids clearly match, use "kind": "placeholder" and omit "id".
  Never show a different brand or product line than the one being promoted.
- Only ids from the library below are allowed.
""".strip()

_CONTENT_RULES = """
### Card content rules

- Copy MUST come from the intent: respect its goal, tone, DOs and DON'Ts.
- "title": short and strong. "body": 1-3 concise sentences. "cta": a clear action.
- Cards must be distinct angles (hero, benefits, lifestyle, bonuses, ...).
- No fields beyond this schema. Respect every max length; longer text is rejected.
""".strip()


def build_system_prompt(intent: Any) -> str:
    """System prompt: grammar, media library ranked for this intent, content rules."""
    ctx = coerce_intent(intent)
    ranked = [media_id for media_id, _score in rank_media(ctx)]
    library = json.dumps(media_library(ranked), indent=2, ensure_ascii=False)
    layout_line = ""
    if ctx.layout in LAYOUTS:
        layout_line = f'\nPreferred layout (a hint, not a rule): "{ctx.layout}".\n'
    return (
        "You generate a UiSpec JSON document describing a small promotional card layout.\n"
        "Return ONLY valid JSON. No markdown, no comments, no explanations.\n\n"
        f"{_SHAPE_HINT}\n{layout_line}\n"
        f"{_MEDIA_RULES}\n\n"
        f"### Image library\n\n{library}\n\n"
        f"{_CONTENT_RULES}\n"
        f"Tone: {ctx.tone}.\n"
    )


def build_user_prompt(intent: Any) -> str:
    return coerce_intent(intent).corpus()


def build_prompts(intent: Any) -> Tuple[str, str]:
    ctx: Intent = coerce_intent(intent)
    return build_system_prompt(ctx), build_user_prompt(ctx)
