"""``{{key}}`` placeholder substitution for email templates."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional


_PLACEHOLDER = re.compile(r"\{\{([^{}]*)\}\}")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), default=str)


def render(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """Replace every ``{{key}}`` for each key present in ``variables``.

    Placeholders without a matching key are left untouched. There is no
    escaping and no recursive expansion.

    Example:
        >>> render("Hello {{name}}, you have {{count}} messages.", {"name": "John", "count": 5})
        'Hello John, you have 5 messages.'
    """
    values = {str(k): v for k, v in (variables or {}).items()}
    if not values:
        return template

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return _stringify(values[key])
        return match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


class TemplateEngine:
    """Injectable wrapper around :func:`render`."""

    def render(self, template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        return render(template, variables)
