import copy

from specgen.normalize import ensure_stage, normalize_components, normalize_node


def _card(*slots, children=None):
    node = {"kind": "Card", "slots": list(slots)}
    if children is not None:
        node["children"] = children
    return node


TITLE = {"slot": "title", "text": "Hi"}
BODY = {"slot": "body", "text": "Body copy"}
CTA = {"slot": "cta", "label": "Shop now", "action": "open"}
MEDIA = {"slot": "media", "kind": "image", "id": "watch-ultra"}


def test_card_slot_is_promoted_and_stage_is_wrapped():
    raw = {"components": [{"kind": "Card", "slots": [{"slot": "title", "text": "Hi"}]}]}
    out = ensure_stage({"components": normalize_components(raw["components"])})
    stage = out["components"][0]
    assert stage["kind"] == "Stage"
    card = stage["children"][0]
    assert card["kind"] == "Card"
    assert "slots" not in card
    assert card["children"] == [{"kind": "Heading", "slots": [{"slot": "title", "text": "Hi"}]}]


def test_promotion_order_and_media_preserved():
    card = normalize_node(_card(CTA, MEDIA, BODY, TITLE))
    assert card["slots"] == [MEDIA]
    assert [c["kind"] for c in card["children"]] == ["Heading", "Text", "Button"]
    assert card["children"][2]["slots"] == [CTA]


def test_existing_child_is_not_duplicated():
    heading = {"kind": "Heading", "slots": [{"slot": "title", "text": "Already here"}]}
    card = normalize_node(_card(TITLE, BODY, children=[heading]))
    kinds = [c["kind"] for c in card["children"]]
    assert kinds.count("Heading") == 1
    assert card["children"][0] == heading
    assert "Text" in kinds
    # originating slots are removed either way
    assert "slots" not in card


def test_non_card_nodes_keep_their_slots():
    node = {"kind": "Stage", "slots": [TITLE], "children": [{"kind": "Heading", "slots": [TITLE]}]}
    assert normalize_node(node) == node


def test_nested_cards_are_normalized():
    grid = {"kind": "Grid", "children": [_card(TITLE), _card(BODY)]}
    out = normalize_node({"kind": "Stage", "children": [grid]})
    cards = out["children"][0]["children"]
    assert cards[0]["children"][0]["kind"] == "Heading"
    assert cards[1]["children"][0]["kind"] == "Text"


def test_normalize_is_idempotent():
    samples = [
        _card(TITLE),
        _card(TITLE, BODY, CTA, MEDIA),
        _card(BODY, children=[{"kind": "Text", "slots": [BODY]}]),
        {"kind": "Stage", "children": [_card(CTA), {"kind": "Grid", "children": [_card(TITLE, MEDIA)]}]},
        {"kind": "Card"},
        {"kind": "Card", "slots": []},
        _card({"slot": "cta", "label": "Go", "action": 7}),
        "not a node",
        None,
    ]
    for node in samples:
        once = normalize_node(node)
        assert normalize_node(once) == once


def test_input_is_not_mutated():
    node = {"kind": "Stage", "children": [_card(TITLE, BODY, MEDIA)]}
    before = copy.deepcopy(node)
    normalize_node(node)
    ensure_stage({"components": [node["children"][0]]})
    assert node == before


def test_non_string_cta_action_is_dropped():
    card = normalize_node(_card({"slot": "cta", "label": "Go", "action": {"href": "/x"}}))
    assert card["children"][0]["slots"] == [{"slot": "cta", "label": "Go"}]


def test_ensure_stage_is_noop_on_canonical_root():
    spec = {"components": [{"kind": "Stage", "children": []}, {"kind": "Card"}]}
    assert ensure_stage(spec) == spec
    assert ensure_stage(ensure_stage({"components": [{"kind": "Card"}]})) == ensure_stage(
        {"components": [{"kind": "Card"}]}
    )


def test_ensure_stage_wraps_whole_list():
    out = ensure_stage({"components": [{"kind": "Card"}, {"kind": "Card"}]})
    assert len(out["components"]) == 1
    assert len(out["components"][0]["children"]) == 2


def test_component_list_coercion():
    assert normalize_components(None) == []
    assert normalize_components("x") == []
    assert normalize_components({"kind": "Card"}) == [{"kind": "Card"}]
