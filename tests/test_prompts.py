import json

from specgen.intent import Intent, coerce_intent
from specgen.prompts import build_prompts, build_system_prompt, build_user_prompt


def _library(system_prompt):
    start = system_prompt.index("### Image library") + len("### Image library")
    end = system_prompt.index("### Card content rules")
    return json.loads(system_prompt[start:end])


def test_library_is_ranked_for_intent():
    system = build_system_prompt({"goal": "Galaxy Watch Ultra launch"})
    ids = [m["id"] for m in _library(system)]
    assert ids[0] == "watch-ultra"
    assert ids[1] == "watch8-combo"
    assert len(ids) == 6
    assert all("description" in m and "exampleUrl" in m for m in _library(system))


def test_layout_hint_and_tone():
    system = build_system_prompt({"goal": "x", "layout": "three-list-items", "tone": "Playful"})
    assert 'Preferred layout (a hint, not a rule): "three-list-items"' in system
    assert "Tone: playful." in system
    assert "Preferred layout" not in build_system_prompt({"goal": "x", "layout": "carousel"})


def test_user_prompt_is_the_intent_corpus():
    user = build_user_prompt({"goal": "Espresso machines", "audience": "baristas"})
    data = json.loads(user)
    assert data["goal"] == "Espresso machines"
    assert data["audience"] == "baristas"


def test_build_prompts_accepts_anything():
    system, user = build_prompts(None)
    assert "UiSpec" in system
    assert json.loads(user) == {"goal": "", "tone": "neutral"}


def test_coerce_intent_is_lenient():
    assert coerce_intent("plain words").goal == "plain words"
    assert coerce_intent('{"goal": "json"}').goal == "json"
    assert coerce_intent(42) == Intent()
    odd = coerce_intent({"goal": ["a", "b"], "tone": 7, "cta": {"label": "Go"}})
    assert (odd.goal, odd.tone, odd.cta) == ("a; b", "neutral", "Go")
