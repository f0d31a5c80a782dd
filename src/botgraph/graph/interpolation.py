"""
botgraph.graph.interpolation

Placeholder substitution for user-authored strings.

Responsibilities:
- Substitute `{{name}}` from the invocation's variable map.
- Substitute dotted context accessors: `{{user.id}}`, `{{user.username}}`,
  `{{user.mention}}`, `{{guild.id}}`, `{{guild.name}}`, `{{channel.id}}`,
  `{{channel.name}}`, `{{options.<name>}}`.
- Leave unknown placeholders verbatim.

Both effect backends call into this module; it is the only interpolation syntax.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from botgraph.graph.context import InvocationContext

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")
_BARE_REFERENCE = re.compile(r"^\{\{\s*([\w.]+)\s*\}\}$")
_NUMERIC_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

_MISSING = object()


def interpolate(text: str, variables: Mapping[str, Any], ctx: InvocationContext) -> str:
    def _sub(match: re.Match[str]) -> str:
        value = lookup(match.group(1), variables, ctx)
        if value is _MISSING:
            return match.group(0)
        return to_text(value)

    return _PLACEHOLDER.sub(_sub, text)


def interpolate_value(value: Any, variables: Mapping[str, Any], ctx: InvocationContext) -> Any:
    if isinstance(value, str):
        return interpolate(value, variables, ctx)
    return value


def resolve_reference(ref: str, variables: Mapping[str, Any], ctx: InvocationContext) -> Any:
    """
    Resolve a variable reference as written in a node field: either a bare name
    (`count`, `user.id`) or a single placeholder (`{{count}}`). Returns None when unset.
    """

    ref = ref.strip()
    bare = _BARE_REFERENCE.match(ref)
    if bare:
        ref = bare.group(1)
    value = lookup(ref, variables, ctx)
    return None if value is _MISSING else value


def resolve_operand(ref: str, variables: Mapping[str, Any], ctx: InvocationContext) -> Any:
    """
    Left-hand side of a condition: a reference when it resolves, otherwise numeric
    text or a template compared as written. Unset names stay None.
    """

    value = resolve_reference(ref, variables, ctx)
    if value is not None:
        return value
    text = ref.strip()
    if _BARE_REFERENCE.match(text):
        return None
    if _NUMERIC_LITERAL.match(text) or _PLACEHOLDER.search(text):
        return interpolate(text, variables, ctx)
    return None


def lookup(path: str, variables: Mapping[str, Any], ctx: InvocationContext) -> Any:
    if path in variables:
        return variables[path]
    head, _, attr = path.partition(".")
    if not attr:
        return _MISSING
    if head == "user":
        return _attr(ctx.user, attr)
    if head == "guild" and ctx.guild is not None:
        return _attr(ctx.guild, attr)
    if head == "channel":
        return _attr(ctx.channel, attr)
    if head == "options":
        return ctx.options.get(attr, _MISSING)
    return _MISSING


def _attr(obj: Any, attr: str) -> Any:
    if attr not in ("id", "name", "username", "mention"):
        return _MISSING
    return getattr(obj, attr, _MISSING)


def to_text(value: Any) -> str:
    """Text form used for substitution and string comparisons."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


# --- Module Notes -----------------------------------------------------------
# Older editor builds wrote single-brace `{name}` placeholders; those are no longer
# substituted and render verbatim, identically in the live and simulated backends.
