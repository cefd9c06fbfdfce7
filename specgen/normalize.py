"""Rewrite candidate documents into the canonical tree shape.

Candidates arrive as plain parsed JSON. Nothing here validates or invents
content; slot data is only moved to where the schema and renderer expect it.
Inputs are never mutated.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

# Card-level slot -> the child node kind that canonically carries it
PROMOTED_SLOTS: Dict[str, str] = {"title": "Heading", "body": "Text", "cta": "Button"}


def _slot_name(slot: Any) -> Any:
    return slot.get("slot") if isinstance(slot, Mapping) else None


def _clean_slot(slot: Any) -> Any:
    if not isinstance(slot, Mapping):
        return slot
    out = dict(slot)
    if out.get("slot") == "cta" and "action" in out and not isinstance(out["action"], str):
        out.pop("action")
    return out


def _promote_card_slots(node: Dict[str, Any]) -> Dict[str, Any]:
    slots = node.get("slots")
    if not isinstance(slots, list):
        return node
    if not any(_slot_name(s) in PROMOTED_SLOTS for s in slots):
        return node

    children = node.get("children")
    children = list(children) if isinstance(children, list) else []
    present = {c.get("kind") for c in children if isinstance(c, Mapping)}

    kept: List[Any] = []
    promoted: List[Dict[str, Any]] = []
    for s in slots:
        name = _slot_name(s)
        kind = PROMOTED_SLOTS.get(name)
        if kind is None:
            kept.append(s)
            continue
        if kind not in present:
            promoted.append({"kind": kind, "slots": [s]})
            present.add(kind)

    out = dict(node)
    if kept:
        out["slots"] = kept
    else:
        out.pop("slots", None)
    # title, body, cta order regardless of how the candidate listed them
    order = list(PROMOTED_SLOTS.values())
    promoted.sort(key=lambda c: order.index(c["kind"]))
    out["children"] = children + promoted
    return out


def normalize_node(node: Any) -> Any:
    """Canonicalize one node and its subtree (top-down). Idempotent."""
    if not isinstance(node, Mapping):
        return node
    out = dict(node)
    slots = out.get("slots")
    if isinstance(slots, list):
        out["slots"] = [_clean_slot(s) for s in slots]
    if out.get("kind") == "Card":
        out = _promote_card_slots(out)
    children = out.get("children")
    if isinstance(children, list):
        out["children"] = [normalize_node(c) for c in children]
    return out


def normalize_components(components: Any) -> List[Any]:
    """Coerce a candidate component list and canonicalize every root."""
    if isinstance(components, Mapping):
        components = [components]
    if not isinstance(components, list):
        return []
    return [normalize_node(c) for c in components]


def ensure_stage(spec_like: Any) -> Dict[str, Any]:
    """Wrap the root list in a synthesized Stage unless it already starts with one."""
    out = dict(spec_like) if isinstance(spec_like, Mapping) else {}
    comps = out.get("components")
    if not isinstance(comps, list) or not comps:
        return out
    first = comps[0]
    if isinstance(first, Mapping) and first.get("kind") == "Stage":
        return out
    out["components"] = [{"kind": "Stage", "children": list(comps)}]
    return out
