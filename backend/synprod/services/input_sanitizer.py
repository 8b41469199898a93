"""
Input sanitation for user-supplied recipe text (names, units, notes, search).

sanitize()              — plain-text fields: strips scripts, handlers and all tags
sanitize_description()  — free-text fields: strips scripts and SQL call patterns
is_safe()               — pre-validation check used before sanitising
sanitize_search()       — LIKE-pattern input: strips wildcards, caps length
"""
import re
from typing import Optional

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>|javascript:|on\w+\s*=", re.IGNORECASE | re.DOTALL)
_SQL_CALL_RE = re.compile(
    r"(union|select|insert|update|delete|drop|create|alter|exec|execute|script|javascript|eval)\s*\(",
    re.IGNORECASE,
)

MAX_SEARCH_LENGTH = 100

# &amp; must be decoded last so "&amp;lt;" does not collapse to "<"
_ENTITY_DECODE = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
    ("&amp;", "&"),
)

# & must be encoded first
_ENTITY_ENCODE = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    cleaned = _SCRIPT_RE.sub("", text)
    cleaned = _HTML_TAG_RE.sub("", cleaned)
    for entity, char in _ENTITY_DECODE:
        cleaned = cleaned.replace(entity, char)
    return cleaned.strip()


def sanitize_description(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    cleaned = _SCRIPT_RE.sub("", text)
    cleaned = _SQL_CALL_RE.sub("", cleaned)
    return cleaned.strip()


def is_safe(text: Optional[str]) -> bool:
    if not text:
        return True
    return not (_SCRIPT_RE.search(text) or _SQL_CALL_RE.search(text))


def encode(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    for char, entity in _ENTITY_ENCODE:
        text = text.replace(char, entity)
    return text


def sanitize_search(text: Optional[str]) -> str:
    if not text or not text.strip():
        return ""
    cleaned = re.sub(r"[%_]", "", text).strip()
    return cleaned[:MAX_SEARCH_LENGTH]
