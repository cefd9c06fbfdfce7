from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

TONES: Tuple[str, ...] = ("neutral", "friendly", "premium", "playful", "urgent", "professional")


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool)]
        return "; ".join(parts) if parts else None
    return None


class Intent(BaseModel):
    """Normalized brief produced by the upstream intent extractor.

    Unknown keys are kept: they take part in media relevance scoring.
    """

    model_config = ConfigDict(extra="allow")

    goal: str = ""
    tone: str = "neutral"
    layout: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    cta: Optional[str] = None

    @field_validator("goal", mode="before")
    @classmethod
    def _goal_text(cls, v: Any) -> str:
        return _as_text(v) or ""

    @field_validator("layout", "title", "body", "cta", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        if isinstance(v, Mapping):
            # {"label": "Shop now"} is a common shape for cta
            v = v.get("label") or v.get("text")
        return _as_text(v)

    @field_validator("tone", mode="before")
    @classmethod
    def _closed_tone(cls, v: Any) -> str:
        t = (_as_text(v) or "").strip().lower()
        return t if t in TONES else "neutral"

    def corpus(self) -> str:
        """Serialized form used as the relevance-scoring token corpus."""
        data = self.model_dump(exclude_none=True)
        try:
            return json.dumps(data, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(data)


def coerce_intent(raw: Any) -> Intent:
    """Best-effort conversion of any value into an Intent; never raises."""
    if isinstance(raw, Intent):
        return raw
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return Intent(goal=raw)
    if not isinstance(raw, Mapping):
        return Intent()
    data: Dict[str, Any] = {str(k): v for k, v in raw.items()}
    try:
        return Intent.model_validate(data)
    except ValidationError:
        known = {k: data.get(k) for k in ("goal", "tone", "layout", "title", "body", "cta")}
        try:
            return Intent.model_validate(known)
        except ValidationError:
            return Intent()
