from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from specgen.intent import Intent, coerce_intent
from specgen.media_catalog import CATALOG, catalog_ids, resolve_url

log = logging.getLogger(__name__)

MIN_TOKEN_LEN = 3

_SPLIT_RE = re.compile(r"[^a-z0-9]+")
_DIGITS_RE = re.compile(r"[0-9]+")

__all__ = ["tokenize", "score_media_id", "resolve_media", "resolve_node_media", "rank_media", "resolve_url"]


def tokenize(text: str) -> List[str]:
    """Lower-case, split on non-alphanumerics, strip digits, drop short tokens.

    "watch8-combo" -> ["watch", "combo"]
    """
    out: List[str] = []
    for raw in _SPLIT_RE.split((text or "").lower()):
        t = _DIGITS_RE.sub("", raw)
        if len(t) >= MIN_TOKEN_LEN:
            out.append(t)
    return out


def _corpus_tokens(intent: Any) -> Set[str]:
    if not isinstance(intent, Intent):
        intent = coerce_intent(intent)
    return set(tokenize(intent.corpus()))


def score_media_id(media_id: str, intent: Any) -> int:
    """Number of distinct id tokens that also occur in the intent corpus."""
    id_tokens = set(tokenize(media_id))
    intent_tokens = _corpus_tokens(intent)
    if not id_tokens or not intent_tokens:
        return 0
    return len(id_tokens & intent_tokens)


def _placeholder(slot: Mapping[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in slot.items() if k != "id"}
    out["kind"] = "placeholder"
    return out


def resolve_media(slot: Any, intent: Any) -> Any:
    """Return a copy of a media slot that is safe to show for this intent.

    Images survive only with a catalog id that shares at least one token with
    the intent; everything else becomes a placeholder.
    """
    if not isinstance(slot, Mapping):
        return slot
    kind = slot.get("kind")
    if kind != "image":
        if "id" not in slot:
            return dict(slot)
        out = dict(slot)
        out.pop("id", None)
        return out
    media_id = slot.get("id")
    if not isinstance(media_id, str) or media_id not in CATALOG:
        log.debug("media: degrading unknown id=%r to placeholder", media_id)
        return _placeholder(slot)
    if score_media_id(media_id, intent) <= 0:
        log.debug("media: degrading irrelevant id=%s to placeholder", media_id)
        return _placeholder(slot)
    return dict(slot)


def resolve_node_media(node: Any, intent: Any) -> Any:
    """Apply resolve_media depth-first to every media slot in a subtree.

    Media nodes also carry kind/id in props; those follow the same rules.
    """
    if not isinstance(node, Mapping):
        return node
    out = dict(node)
    slots = out.get("slots")
    if isinstance(slots, list):
        out["slots"] = [
            resolve_media(s, intent) if isinstance(s, Mapping) and s.get("slot") == "media" else s
            for s in slots
        ]
    if out.get("kind") == "Media":
        props = out.get("props")
        if isinstance(props, Mapping) and ("kind" in props or "id" in props):
            resolved = resolve_media({"kind": props.get("kind"), "id": props.get("id")}, intent)
            new_props = {k: v for k, v in props.items() if k not in ("kind", "id")}
            new_props["kind"] = resolved.get("kind") if resolved.get("kind") == "image" else "placeholder"
            if "id" in resolved:
                new_props["id"] = resolved["id"]
            out["props"] = new_props
    children = out.get("children")
    if isinstance(children, list):
        out["children"] = [resolve_node_media(c, intent) for c in children]
    return out


def rank_media(intent: Any, ids: Optional[List[str]] = None) -> List[Tuple[str, int]]:
    """(id, score) pairs, best first; equal scores keep catalog order."""
    pool = ids if ids is not None else catalog_ids()
    intent_tokens = _corpus_tokens(intent)
    scored: List[Tuple[str, int]] = []
    for media_id in pool:
        if media_id not in CATALOG:
            continue
        scored.append((media_id, len(set(tokenize(media_id)) & intent_tokens)))
    # sorted() is stable, so ties stay in declaration order
    return sorted(scored, key=lambda pair: -pair[1])
