"""Turn untrusted candidate text into a UiSpec that is always safe to render.

Stages run in a fixed order: parse, normalize, resolve media, force style,
validate. Every failure ends in the fallback document, so ``build`` never
raises and never returns an empty or unrenderable document.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from specgen.fallback import build_fallback
from specgen.intent import Intent, coerce_intent
from specgen.media import resolve_node_media
from specgen.normalize import ensure_stage, normalize_components
from specgen.parsing import parse_candidate
from specgen.render import card_body, card_cta, card_title
from specgen.validators import FIXED_STYLE, LAYOUTS, Node, UiSpec, validate_spec

log = logging.getLogger(__name__)

_LAYOUT_BY_CARD_COUNT = {1: "one-card-cta", 2: "two-block-cards", 3: "three-list-items"}


class BuildOutcome(NamedTuple):
    spec: UiSpec
    fallback: bool
    reason: Optional[str] = None
    errors: Tuple[Dict[str, str], ...] = ()


def _iter_raw_cards(node: Any) -> Iterator[Mapping[str, Any]]:
    if not isinstance(node, Mapping):
        return
    if node.get("kind") == "Card":
        yield node
    children = node.get("children")
    if isinstance(children, list):
        for c in children:
            yield from _iter_raw_cards(c)


def _pick_layout(candidate: Mapping[str, Any], components: List[Any], intent: Intent) -> Any:
    layout = candidate.get("layout")
    if layout is not None:
        return layout
    if intent.layout in LAYOUTS:
        return intent.layout
    count = sum(1 for c in components for _ in _iter_raw_cards(c))
    return _LAYOUT_BY_CARD_COUNT.get(count, "four-cards-cta")


def iter_cards(node: Node) -> Iterator[Node]:
    if node.kind == "Card":
        yield node
    for c in node.children or []:
        yield from iter_cards(c)


def card_has_content(card: Node) -> bool:
    """True when the card resolves to a non-empty title, body or CTA label."""
    return bool(card_title(card) or card_body(card) or card_cta(card))


def _fallback(intent: Intent, reason: str, errors: Optional[List[Dict[str, str]]] = None) -> BuildOutcome:
    if errors:
        violations = "; ".join(f"{e['path']}: {e['message']}" for e in errors[:20])
        log.warning("pipeline: fallback reason=%s violations=%s", reason, violations)
    else:
        log.warning("pipeline: fallback reason=%s", reason)
    return BuildOutcome(build_fallback(intent), True, reason, tuple(errors or ()))


def _build(raw: Any, intent: Intent) -> BuildOutcome:
    parsed = parse_candidate(raw)
    if isinstance(parsed, list):
        # a bare list of nodes is read as the component list
        parsed = {"components": parsed}
    candidate: Mapping[str, Any] = parsed if isinstance(parsed, Mapping) else {}

    components = normalize_components(candidate.get("components"))
    if not components:
        return _fallback(intent, "empty")

    assembled: Dict[str, Any] = ensure_stage({"components": components})
    assembled["components"] = [resolve_node_media(c, intent) for c in assembled["components"]]
    assembled["layout"] = _pick_layout(candidate, components, intent)
    assembled["style"] = dict(FIXED_STYLE)

    result = validate_spec(assembled)
    if result.spec is None:
        return _fallback(intent, "schema", result.errors)

    spec = result.spec
    cards = list(iter_cards(spec.components[0]))
    if not cards:
        return _fallback(intent, "no_cards")
    if not all(card_has_content(c) for c in cards):
        return _fallback(intent, "empty_card")
    return BuildOutcome(spec, False)


def build_with_report(raw: Any, intent: Any) -> BuildOutcome:
    """Like build(), but also reports whether and why the fallback was used."""
    ctx = coerce_intent(intent)
    try:
        return _build(raw, ctx)
    except Exception:
        log.exception("pipeline: unexpected failure; serving fallback")
        return BuildOutcome(build_fallback(ctx), True, "internal")


def build(raw: Any, intent: Any) -> UiSpec:
    """Raw candidate JSON text + intent context -> guaranteed-valid UiSpec."""
    return build_with_report(raw, intent).spec
