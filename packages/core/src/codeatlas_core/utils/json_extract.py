"""Locate a JSON object inside a model completion.

Some models wrap their JSON in a markdown fence or surround it with prose.
The policy is deliberately narrow and runs in two stages:

  1. A fence opener tagged ``json`` (any case), or an untagged opener, whose
     body starts with ``{``: the first balanced object after the opener.
  2. Otherwise the first balanced ``{...}`` span anywhere in the text.

Braces inside JSON string literals (including escaped quotes) are ignored
while balancing, so code fences or braces inside string values survive.
If neither stage matches, the stripped text is returned unchanged and the
caller's json.loads decides. When the text holds several JSON-like spans,
the first one wins. Unbalanced spans are never repaired and top-level
arrays are never extracted.
"""

from __future__ import annotations

import re

_FENCE_OPEN_RE = re.compile(r"```[ \t]*([A-Za-z]*)[ \t]*\r?\n")


def extract_first_object(text: str) -> str | None:
    """Return the first balanced {...} span in text, or None."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_fenced_json(text: str) -> str | None:
    for match in _FENCE_OPEN_RE.finditer(text):
        tag = match.group(1).lower()
        body = text[match.end() :].lstrip()
        if tag not in ("json", "") or not body.startswith("{"):
            continue
        obj = extract_first_object(body)
        if obj is not None:
            return obj
    return None


def extract_json_object(text: str) -> str:
    stripped = text.strip()
    fenced = extract_fenced_json(stripped)
    if fenced is not None:
        return fenced
    span = extract_first_object(stripped)
    if span is not None:
        return span
    return stripped
