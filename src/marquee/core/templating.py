"""Template resolution: localization, built-in placeholders, and chat colors.

A template is plain text with ``{TAG}`` tokens. Resolution runs in a fixed
order because localized text may itself contain built-in placeholders:

1. localization tags (``{map_name}`` -> per-locale text, default-locale fallback)
2. built-ins (``{SERVERNAME}``, ``{MAP}``, ``{TIME}``, ...) and the map
   display-name rename
3. newlines collapsed to U+2029 for single-line surfaces
4. color tokens (``{RED}``, ``{BLUE}``, ...) to chat control characters

Anything left unmatched passes through verbatim. Nothing here raises on
template content.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

TAG_PATTERN = re.compile(r"\{([^}]*)\}")

PARAGRAPH_SEPARATOR = "\u2029"

TIME_FORMAT = "%H:%M:%S"
DATE_FORMAT = "%d.%m.%Y"

# Chat color control characters understood by the CS2 chat surface.
CHAT_COLORS: dict[str, str] = {
    "DEFAULT": "\x01",
    "WHITE": "\x01",
    "DARKRED": "\x02",
    "LIGHTPURPLE": "\x03",
    "GREEN": "\x04",
    "OLIVE": "\x05",
    "LIME": "\x06",
    "RED": "\x07",
    "GREY": "\x08",
    "YELLOW": "\x09",
    "LIGHTYELLOW": "\x09",
    "SILVER": "\x0a",
    "BLUEGREY": "\x0a",
    "BLUE": "\x0b",
    "LIGHTBLUE": "\x0b",
    "DARKBLUE": "\x0c",
    "PURPLE": "\x0e",
    "MAGENTA": "\x0e",
    "LIGHTRED": "\x0f",
    "GOLD": "\x10",
    "ORANGE": "\x10",
}


@dataclass
class PlaceholderContext:
    """Values for the built-in placeholders, computed fresh for each resolution."""

    server_name: str
    server_subname: str = ""
    map_name: str = ""
    ip_address: str = "127.0.0.1"
    port: int = 27015
    max_participants: int = 0
    participant_count: int = 0
    now: datetime = field(default_factory=datetime.now)
    player_name: str | None = None
    map_display_names: Mapping[str, str] = field(default_factory=dict)


def find_tags(template: str) -> list[str]:
    """Distinct tag names in order of first appearance."""
    seen: dict[str, None] = {}
    for match in TAG_PATTERN.finditer(template):
        seen.setdefault(match.group(1), None)
    return list(seen)


def localize(
    template: str,
    locale: str | None,
    table: Mapping[str, Mapping[str, str]] | None,
    default_locale: str | None,
) -> str:
    """Replace localization tags with the text for ``locale``.

    Falls back to ``default_locale`` when the requester's locale has no entry.
    Tags with no usable translation are left as they are. Only tags present in
    the raw template are considered; substituted text is not re-scanned.
    """
    if not table:
        return template

    result = template
    for tag_name in find_tags(template):
        translations = table.get(tag_name)
        if translations is None:
            continue
        text = translations.get(locale) if locale is not None else None
        if text is None and default_locale is not None:
            text = translations.get(default_locale)
        if text is None:
            continue
        result = result.replace("{" + tag_name + "}", text)
    return result


def replace_builtins(message: str, ctx: PlaceholderContext) -> str:
    """Expand the built-in placeholders, then apply the map display-name rename."""
    replaced = (
        message.replace("{MAP}", ctx.map_name)
        .replace("{TIME}", ctx.now.strftime(TIME_FORMAT))
        .replace("{DATE}", ctx.now.strftime(DATE_FORMAT))
        .replace("{SERVERNAME}", ctx.server_name)
        .replace("{SERVERSUBNAME}", ctx.server_subname)
        .replace("{IP}", ctx.ip_address)
        .replace("{PORT}", str(ctx.port))
        .replace("{MAXPLAYERS}", str(ctx.max_participants))
        .replace("{PLAYERS}", str(ctx.participant_count))
    )
    if ctx.player_name is not None:
        replaced = replaced.replace("{PLAYERNAME}", ctx.player_name)

    friendly = ctx.map_display_names.get(ctx.map_name) if ctx.map_name else None
    if friendly is not None:
        replaced = replaced.replace(ctx.map_name, friendly)
    return replaced


def replace_color_tags(message: str) -> str:
    """Swap ``{COLOR}`` tokens for chat control characters; unknown tokens stay."""

    def _sub(match: re.Match[str]) -> str:
        code = CHAT_COLORS.get(match.group(1).upper())
        return code if code is not None else match.group(0)

    return TAG_PATTERN.sub(_sub, message)


def resolve(
    template: str,
    locale: str | None,
    ctx: PlaceholderContext,
    table: Mapping[str, Mapping[str, str]] | None = None,
    default_locale: str | None = None,
) -> str:
    """Resolve a raw template into the final text for one requester."""
    message = localize(template, locale, table, default_locale)
    message = replace_builtins(message, ctx)
    message = message.replace("\n", PARAGRAPH_SEPARATOR)
    return replace_color_tags(message)
