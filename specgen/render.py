from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup
from pydantic import BaseModel, Field

from specgen.media_catalog import resolve_url
from specgen.validators import Node, UiSpec

STAGE_SIZE = 400
_GRID_COLUMNS = {"four-cards-cta": 2, "two-block-cards": 2, "three-list-items": 1}

# Jinja environment over the templates shipped with the package
_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html", "xml"]),
    enable_async=False,
)


class Primitive(BaseModel):
    """One visual element handed to the presentation layer."""

    type: str
    props: Dict[str, Any] = Field(default_factory=dict)
    children: List["Primitive"] = Field(default_factory=list)


Primitive.model_rebuild()


def _slot_text(n: Node, name: str) -> Optional[str]:
    s = n.slot(name)
    return s.text if s is not None and s.text else None


def _slot_cta(n: Node) -> Optional[Any]:
    s = n.slot("cta")
    return s if s is not None and s.label else None


def _has_child(n: Node, kind: str) -> bool:
    return any(c.kind == kind for c in n.children or [])


def _first_child(n: Node, kind: str) -> Optional[Node]:
    for c in n.children or []:
        if c.kind == kind:
            return c
    return None


def _first_child_value(n: Node, kind: str, read: Callable[[Node], Any]) -> Optional[Any]:
    """First non-empty value read from the children of the given kind."""
    for c in n.children or []:
        if c.kind == kind:
            value = read(c)
            if value:
                return value
    return None


def card_title(n: Node) -> Optional[str]:
    own = _slot_text(n, "title")
    if own:
        return own
    return _first_child_value(n, "Heading", lambda c: _slot_text(c, "title"))


def card_body(n: Node) -> Optional[str]:
    own = _slot_text(n, "body")
    if own:
        return own
    return _first_child_value(n, "Text", lambda c: _slot_text(c, "body"))


def card_cta(n: Node) -> Optional[Any]:
    own = _slot_cta(n)
    if own:
        return own
    return _first_child_value(n, "Button", _slot_cta)


def _media_ref(n: Node) -> Optional[Dict[str, Any]]:
    """kind/id from the node's media slot; Media nodes may also carry them in props."""
    s = n.slot("media")
    if s is not None:
        return {"kind": s.kind, "id": s.id}
    props = n.props or {}
    if n.kind == "Media" and ("kind" in props or "id" in props):
        kind = props.get("kind") if props.get("kind") in ("image", "placeholder") else "placeholder"
        media_id = props.get("id") if isinstance(props.get("id"), str) else None
        return {"kind": kind, "id": media_id}
    return None


def _media(ref: Optional[Dict[str, Any]], size: str = "full") -> Primitive:
    ref = ref or {"kind": "placeholder", "id": None}
    src = resolve_url(ref.get("id")) if ref.get("kind") == "image" else None
    if src:
        return Primitive(type="media", props={"kind": "image", "id": ref.get("id"), "src": src, "size": size})
    return Primitive(type="media", props={"kind": "placeholder", "src": None, "size": size})


def _heading(text: Optional[str]) -> Primitive:
    return Primitive(type="heading", props={"text": text or ""})


def _text(text: Optional[str], muted: bool = False) -> Primitive:
    return Primitive(type="text", props={"text": text or "", "muted": muted})


def _button(cta: Any) -> Primitive:
    return Primitive(type="button", props={"label": cta.label, "action": cta.action})


def _card_variant(n: Node, layout: str) -> str:
    variant = (n.props or {}).get("variant")
    if variant in ("block", "list"):
        return variant
    return "list" if layout == "three-list-items" else "block"


def _render_children(n: Node, layout: str) -> List[Primitive]:
    out: List[Primitive] = []
    for c in n.children or []:
        p = render_node(c, layout)
        if p is not None:
            out.append(p)
    return out


def _render_hero_card(n: Node) -> Primitive:
    """one-card-cta: media fills the frame, text stacks beneath, CTA pinned to the bottom."""
    ref = _media_ref(n)
    if ref is None:
        media_child = _first_child(n, "Media")
        ref = _media_ref(media_child) if media_child else None
    title = card_title(n)
    body = card_body(n)
    cta = card_cta(n)

    text_stack: List[Primitive] = []
    if title:
        text_stack.append(_heading(title))
    if body:
        text_stack.append(_text(body))
    regions = [
        Primitive(type="region", props={"role": "media", "flex": True}, children=[_media(ref, "full")]),
        Primitive(type="region", props={"role": "text", "flex": False}, children=text_stack),
    ]
    if cta:
        regions.append(Primitive(type="region", props={"role": "cta", "flex": False}, children=[_button(cta)]))
    return Primitive(
        type="card",
        props={"bg": "#FFFFFF", "radius": "lg", "variant": "block", "full_height": True},
        children=regions,
    )


def _render_card(n: Node, layout: str) -> Primitive:
    if layout == "one-card-cta":
        return _render_hero_card(n)

    # Slot-only content is drawn unless a child node of the same kind will draw it
    children: List[Primitive] = []
    media = n.slot("media")
    if media is not None and not _has_child(n, "Media"):
        children.append(_media(_media_ref(n), "full"))
    title = _slot_text(n, "title")
    if title and not _has_child(n, "Heading"):
        children.append(_heading(title))
    body = _slot_text(n, "body")
    if body and not _has_child(n, "Text"):
        children.append(_text(body))
    cta = _slot_cta(n)
    if cta and not _has_child(n, "Button"):
        children.append(_button(cta))
    children.extend(_render_children(n, layout))
    return Primitive(
        type="card",
        props={"bg": "#FFFFFF", "radius": "lg", "variant": _card_variant(n, layout), "full_height": False},
        children=children,
    )


def render_node(n: Node, layout: str) -> Optional[Primitive]:
    kind = n.kind
    props = n.props or {}
    if kind == "Stage":
        padded = layout != "one-card-cta"
        return Primitive(
            type="stage",
            props={"padded": padded, "width": STAGE_SIZE, "height": STAGE_SIZE},
            children=_render_children(n, layout),
        )
    if kind == "Grid":
        columns = props.get("columns")
        if not isinstance(columns, int) or isinstance(columns, bool) or not 1 <= columns <= 4:
            columns = _GRID_COLUMNS.get(layout, 2)
        return Primitive(type="grid", props={"columns": columns}, children=_render_children(n, layout))
    if kind == "Card":
        return _render_card(n, layout)
    if kind == "Media":
        size = props.get("size") if props.get("size") in ("full", "cover") else "full"
        return _media(_media_ref(n), size)
    if kind == "Heading":
        return _heading(_slot_text(n, "title"))
    if kind == "Text":
        return _text(_slot_text(n, "body"), muted=bool(props.get("muted")))
    if kind == "Button":
        cta = _slot_cta(n)
        # no label, no button: a default label is the fallback document's job
        return _button(cta) if cta else None
    return None


def render(spec: UiSpec) -> Primitive:
    """Walk a validated document and produce its visual tree."""
    children: List[Primitive] = []
    for c in spec.components:
        p = render_node(c, spec.layout)
        if p is not None:
            children.append(p)
    return Primitive(
        type="document",
        props={"layout": spec.layout, "bg": spec.style.bg, "radius": spec.style.radius},
        children=children,
    )


def _render_primitive(p: Primitive) -> Markup:
    """
    Map a primitive to partials/<type>.html.
    Unknown types fall back to a generic box.
    """
    inner = Markup("").join(_render_primitive(c) for c in p.children)
    try:
        tpl = _env.get_template(f"partials/{p.type}.html")
    except TemplateNotFound:
        tpl = _env.get_template("partials/generic.html")
    return Markup(tpl.render(p=p, props=p.props, children=inner))


def render_html(spec: UiSpec, title: str = "Preview") -> str:
    """Full HTML page for a validated document."""
    tree = render(spec)
    body = Markup("").join(_render_primitive(c) for c in tree.children)
    base = _env.get_template("page.html")
    return base.render(title=title, tree=tree, body=body)
