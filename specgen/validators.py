from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from specgen.media_catalog import CATALOG

TITLE_MAX = 60
BODY_MAX = 220
CTA_LABEL_MAX = 28
CTA_ACTION_MAX = 120

LAYOUTS: Tuple[str, ...] = ("one-card-cta", "two-block-cards", "three-list-items", "four-cards-cta")
NODE_KINDS: Tuple[str, ...] = ("Stage", "Grid", "Card", "Media", "Heading", "Text", "Button")
SLOT_KINDS: Tuple[str, ...] = ("title", "body", "cta", "media")

STYLE_BG = "#FFFFFF"
STYLE_RADIUS = "lg"

Layout = Literal["one-card-cta", "two-block-cards", "three-list-items", "four-cards-cta"]
NodeKind = Literal["Stage", "Grid", "Card", "Media", "Heading", "Text", "Button"]


class TitleSlot(BaseModel):
    slot: Literal["title"]
    text: str = Field(max_length=TITLE_MAX)


class BodySlot(BaseModel):
    slot: Literal["body"]
    text: str = Field(max_length=BODY_MAX)


class CtaSlot(BaseModel):
    slot: Literal["cta"]
    label: str = Field(max_length=CTA_LABEL_MAX)
    action: Optional[str] = Field(default=None, max_length=CTA_ACTION_MAX)


class MediaSlot(BaseModel):
    slot: Literal["media"]
    kind: Literal["placeholder", "image"] = "placeholder"
    # catalog key, only meaningful when kind == "image"
    id: Optional[str] = None

    @model_validator(mode="after")
    def _image_needs_catalog_id(self) -> "MediaSlot":
        if self.kind == "image" and (not self.id or self.id not in CATALOG):
            raise ValueError(f"unknown media id {self.id!r}")
        return self


Slot = Annotated[Union[TitleSlot, BodySlot, CtaSlot, MediaSlot], Field(discriminator="slot")]


class Node(BaseModel):
    kind: NodeKind
    # rendering hints only; recognized keys: variant, size, muted, columns, kind, id
    props: Optional[Dict[str, Any]] = None
    slots: Optional[List[Slot]] = None
    children: Optional[List["Node"]] = None

    def slot(self, name: str) -> Optional[Any]:
        for s in self.slots or []:
            if s.slot == name:
                return s
        return None


Node.model_rebuild()


class Style(BaseModel):
    model_config = ConfigDict(frozen=True)

    bg: Literal["#FFFFFF"] = STYLE_BG
    radius: Literal["lg"] = STYLE_RADIUS


class UiSpec(BaseModel):
    layout: Layout
    style: Style = Field(default_factory=Style)
    components: List[Node] = Field(min_length=1)

    @model_validator(mode="after")
    def _root_is_stage(self) -> "UiSpec":
        if self.components and self.components[0].kind != "Stage":
            raise ValueError("first component must be a Stage")
        return self

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


FIXED_STYLE: Dict[str, str] = {"bg": STYLE_BG, "radius": STYLE_RADIUS}

_UI_SPEC_ADAPTER = TypeAdapter(UiSpec)


class ValidationResult(NamedTuple):
    spec: Optional[UiSpec]
    errors: List[Dict[str, str]]

    @property
    def ok(self) -> bool:
        return self.spec is not None


def _format_loc(loc: Tuple[Any, ...]) -> str:
    """Render a pydantic error location as components[0].slots[1].text.

    Discriminated unions add the tag value as an extra segment right after the
    list index; it carries no information for a reader, so it is dropped.
    """
    out = ""
    prev: Any = None
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        elif isinstance(prev, int) and part in SLOT_KINDS:
            pass
        elif part.startswith("function-") or part.startswith("lax-") or part == "Node":
            # pydantic internals for validators / recursive refs
            pass
        else:
            out += f".{part}" if out else str(part)
        prev = part
    return out or "(root)"


def _format_message(err: Dict[str, Any]) -> str:
    etype = err.get("type")
    ctx = err.get("ctx") or {}
    if etype == "string_too_long":
        return f"exceeds {ctx.get('max_length')} chars"
    if etype == "missing":
        return "required property is missing"
    if etype == "too_short" and ctx.get("min_length") == 1:
        return "must contain at least one element"
    if etype == "union_tag_invalid":
        return f"unknown slot {ctx.get('tag')!r}; expected one of {', '.join(SLOT_KINDS)}"
    if etype == "union_tag_not_found":
        return "missing 'slot' discriminator"
    msg = str(err.get("msg") or "invalid")
    # "Value error, first component must be a Stage" -> "first component must be a Stage"
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


def collect_errors(candidate: Any) -> List[Dict[str, str]]:
    """
    Return a list of {"path": "...", "message": "..."} dicts, empty when the
    candidate is a valid UiSpec.
    """
    return validate_spec(candidate).errors


def validate_spec(candidate: Any) -> ValidationResult:
    """Validate an arbitrary (already parsed) value against the UiSpec grammar.

    Never raises: failures come back as a path-addressed error list.
    """
    if isinstance(candidate, UiSpec):
        candidate = candidate.model_dump(mode="json", exclude_none=True)
    try:
        spec = _UI_SPEC_ADAPTER.validate_python(candidate)
    except ValidationError as ve:
        errors: List[Dict[str, str]] = []
        for e in ve.errors():
            errors.append({"path": _format_loc(tuple(e.get("loc", ()))), "message": _format_message(e)})
        return ValidationResult(None, errors or [{"path": "(root)", "message": "invalid"}])
    except RecursionError:
        return ValidationResult(None, [{"path": "(root)", "message": "document is nested too deeply"}])
    return ValidationResult(spec, [])


def ui_spec_json_schema() -> Dict[str, Any]:
    """JSON Schema (draft 2020-12) for the document grammar."""
    return UiSpec.model_json_schema()
