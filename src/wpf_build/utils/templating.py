"""``{{name}}`` placeholder substitution."""

import re
from typing import Any, Mapping

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def render(template: str, variables: Mapping[str, Any]) -> str:
    """
    Replace every ``{{name}}`` in ``template`` with ``variables[name]``.

    Unknown or ``None`` variables render as an empty string, never as the
    literal placeholder. Substituted values are not re-scanned.
    """

    def _substitute(match: re.Match) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(_substitute, template)


def placeholders(template: str) -> list[str]:
    """Names referenced by ``template``, in order of first appearance."""
    seen: list[str] = []
    for name in PLACEHOLDER.findall(template):
        if name not in seen:
            seen.append(name)
    return seen
