import json

import jsonschema
import pytest

from specgen.fallback import build_fallback
from specgen.pipeline import build
from specgen.validators import ui_spec_json_schema


@pytest.fixture(scope="module")
def validator():
    schema = ui_spec_json_schema()
    jsonschema.Draft202012Validator.check_schema(schema)
    return jsonschema.Draft202012Validator(schema)


def test_fallback_document_matches_exported_schema(validator):
    doc = build_fallback({"goal": "Autumn sale", "cta": "Shop now"}).to_json_dict()
    assert list(validator.iter_errors(doc)) == []


def test_built_document_matches_exported_schema(validator):
    candidate = json.dumps(
        {
            "layout": "two-block-cards",
            "components": [
                {"kind": "Card", "slots": [{"slot": "title", "text": "One"}, {"slot": "media", "kind": "image", "id": "watch8-combo"}]},
                {"kind": "Card", "slots": [{"slot": "body", "text": "Two"}]},
            ],
        }
    )
    doc = build(candidate, {"goal": "Watch8 deals"}).to_json_dict()
    assert list(validator.iter_errors(doc)) == []


def test_exported_schema_rejects_long_title(validator):
    doc = build_fallback({"goal": "Sale"}).to_json_dict()
    doc["components"][0]["children"][0]["children"][0]["slots"][0]["text"] = "x" * 61
    assert list(validator.iter_errors(doc))


def test_exported_schema_rejects_unknown_layout(validator):
    doc = build_fallback({}).to_json_dict()
    doc["layout"] = "carousel"
    assert list(validator.iter_errors(doc))
