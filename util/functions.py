# util/functions.py
import json
from typing import Any, Dict


def clip_words(text: str, max_words: int = 100) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def fill_prompt(template: str, **values: str) -> str:
    """
    Replace every `{key}` placeholder in `template`. Unknown braces are left alone,
    which keeps literal JSON examples inside prompts intact.
    """
    out = template
    for key, value in values.items():
        out = out.replace("{" + key + "}", value)
    return out


def strip_code_fence(raw: str) -> str:
    raw = (raw or "").strip()
    if raw.startswith("```"):
        raw = raw.strip("`").strip()
        if raw.lower().startswith("json"):
            raw = raw[4:].strip()
    return raw


def parse_json_object(raw: str) -> Dict[str, Any] | None:
    """
    Parse a model reply into a dict. Tolerates code fences and prose around a single
    top-level object. Returns None when nothing usable is found.
    """
    text = strip_code_fence(raw)
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start < 0 or end <= start:
            return None
        try:
            obj = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            return None
    return obj if isinstance(obj, dict) else None
