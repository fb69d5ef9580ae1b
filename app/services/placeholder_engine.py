"""
Placeholder template engine.

WHAT: Fills `{{key}}`, `#{key}` and `{key}` tokens in email subjects and
bodies.

WHY: Users write their invoice emails by hand and have used all three
token styles over time, so all three are accepted. Whitespace inside the
braces is tolerated (`{{ total }}`).

HOW: All known keys are compiled into one regular expression and the
template is scanned once, left to right. Replacement text is never
re-scanned, so a value that itself looks like a token stays literal and
the result does not depend on key order. Tokens for keys that are not in
the mapping are left exactly as written.
"""

import re
from typing import Any, Mapping


def _pattern_for(keys) -> "re.Pattern[str]":
    # Longest first so "client_name" is preferred over "client"
    alternation = "|".join(
        re.escape(key) for key in sorted(keys, key=len, reverse=True)
    )
    return re.compile(
        r"\{\{\s*(?P<double>" + alternation + r")\s*\}\}"
        r"|#\{\s*(?P<hash>" + alternation + r")\s*\}"
        r"|\{\s*(?P<single>" + alternation + r")\s*\}"
    )


def render_placeholders(template: str, values: Mapping[str, Any]) -> str:
    """
    Substitute every known placeholder in a single pass.

    Args:
        template: Text containing placeholder tokens
        values: Key to replacement value; None renders as ""

    Returns:
        The merged text

    Example:
        >>> render_placeholders("{{x}} #{x} {x} {y}", {"x": "A"})
        'A A A {y}'
    """
    keys = [key for key in (values or {}) if key]
    if not template or not keys:
        return template or ""

    def substitute(match: "re.Match[str]") -> str:
        key = match.group("double") or match.group("hash") or match.group("single")
        value = values[key]
        return "" if value is None else str(value)

    return _pattern_for(keys).sub(substitute, template)


def text_to_html(body: str) -> str:
    """
    Turn a plain-text body into HTML line breaks.

    Used by the freeform send path, where the user typed the body in a
    textarea. The text is not escaped: freeform bodies may carry markup.
    """
    if not body:
        return ""
    return body.replace("\r\n", "\n").replace("\n", "<br>")

