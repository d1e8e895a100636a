from __future__ import annotations

import re
from pathlib import Path

from unitmaker.cli.lib.errors import RenderError, ValidationError

DESCRIPTION = "DESCRIPTION"
COMMAND = "COMMAND"
UNIT_NAME = "UNIT_NAME"
TIMER_SPEC = "TIMER_SPEC"
FREQUENCY = "FREQUENCY"
CALENDAR = "CALENDAR"

KNOWN_PLACEHOLDERS = (DESCRIPTION, COMMAND, UNIT_NAME, TIMER_SPEC, FREQUENCY, CALENDAR)

_TOKEN_RE = re.compile(r"\[\[([A-Z][A-Z0-9_]*)\]\]")


def token(name: str) -> str:
    return f"[[{name}]]"


def load_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def escape_value(value: str, *, field: str) -> str:
    """
    Make a user value safe to embed into a single `Key=value` line.

    Substitution itself is literal, so nothing needs escaping for it; the
    only thing a unit file cannot carry is a line break inside a value.
    """
    if "\n" in value or "\r" in value:
        raise ValidationError(f"{field} must be a single line")
    return value


def render_template(template: str, replacements: dict[str, str]) -> str:
    """
    Replaces [[KEY]] with replacements["KEY"] in a single pass.

    Values are inserted verbatim and never rescanned, so a value that itself
    contains `[[...]]`, `&` or backslashes comes out byte-for-byte. Tokens
    without a binding are left in place.
    """
    def _sub(m: re.Match) -> str:
        return replacements.get(m.group(1), m.group(0))

    return _TOKEN_RE.sub(_sub, template)


def has_token(text: str, name: str) -> bool:
    return token(name) in text


def drop_lines_with(text: str, name: str) -> str:
    """Remove every line that mentions the [[name]] token."""
    t = token(name)
    return "".join(
        line for line in text.splitlines(keepends=True) if t not in line)


def unresolved(text: str, names=KNOWN_PLACEHOLDERS) -> list[str]:
    found = {m.group(1) for m in _TOKEN_RE.finditer(text)}
    return [n for n in names if n in found]


def render_unit(template: str, bindings: dict[str, str], *, what: str) -> str:
    """
    Render `template` and fail on known placeholders it uses but that have
    no binding, or on an empty result.

    The check looks at the template, not the output, so values that happen
    to contain `[[...]]` are not mistaken for leftovers.
    """
    left = [n for n in unresolved(template) if n not in bindings]
    if left:
        raise RenderError(
            f"{what}: unresolved placeholder(s) "
            + ", ".join(token(n) for n in left))
    text = render_template(template, bindings)
    if not text.strip():
        raise RenderError(f"{what}: rendered content is empty")
    return text


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
