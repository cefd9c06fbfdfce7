from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

log = logging.getLogger(__name__)

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_FENCED_ANY_RE = re.compile(r"```\s*([\s\S]*?)```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def _balanced_json_slice(s: str) -> Optional[str]:
    """First balanced {...} object in s, ignoring braces inside strings."""
    in_str = False
    esc = False
    depth = 0
    start_idx = -1
    for i, ch in enumerate(s):
        if in_str:
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx != -1:
                return s[start_idx : i + 1]
    return None


def repair_json_loose(text: str) -> str:
    """Best-effort repair for truncated JSON by closing open strings/brackets."""
    t = (text or "").strip()
    if not t:
        return t
    in_str = False
    esc = False
    stack = []
    for ch in t:
        if in_str:
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]" and stack:
            stack.pop()
    if in_str:
        t += '"'
    t = _TRAILING_COMMA_RE.sub(r"\1", t.rstrip().rstrip(","))
    return t + "".join(reversed(stack))


def json_from_text(text: str) -> Any:
    """Extract a JSON value from model output; raise ValueError on failure.

    Strategy:
    - Plain json.loads of the whole text.
    - Fenced blocks: ```json ...``` first, then any ``` ... ```.
    - First balanced {...} object.
    - Sanitize: remove trailing commas, normalize smart quotes.
    - Close a truncated object as a last resort.
    """
    t = (text or "").strip()
    if not t:
        raise ValueError("empty candidate text")
    try:
        return json.loads(t)
    except ValueError:
        pass

    m = _FENCED_JSON_RE.search(t) or _FENCED_ANY_RE.search(t)
    candidate = m.group(1).strip() if m else None
    if not candidate:
        candidate = _balanced_json_slice(t)
    if not candidate and "{" in t:
        candidate = repair_json_loose(t[t.index("{"):])

    if candidate:
        try:
            return json.loads(candidate)
        except ValueError:
            s = _TRAILING_COMMA_RE.sub(r"\1", candidate)
            s = s.replace("“", '"').replace("”", '"').replace("’", "'")
            try:
                return json.loads(s)
            except ValueError:
                pass
    raise ValueError("No JSON content found")


def parse_candidate(text: Any) -> Any:
    """Parse raw candidate text; malformed input becomes an empty object."""
    if not isinstance(text, str):
        return {}
    try:
        return json_from_text(text)
    except (ValueError, RecursionError) as e:
        log.info("candidate: malformed input (%s); using empty object", e)
        return {}
