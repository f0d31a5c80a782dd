"""
botgraph.platform.commands

Transformation from stored commands to the platform registration schema.
"""

from __future__ import annotations

from typing import Any, Protocol

OPTION_TYPES: dict[str, int] = {
    "STRING": 3,
    "INTEGER": 4,
    "BOOLEAN": 5,
    "USER": 6,
    "CHANNEL": 7,
    "ROLE": 8,
    "MENTIONABLE": 9,
    "NUMBER": 10,
}


class CommandLike(Protocol):
    name: str
    description: str | None
    options: list[dict[str, Any]]


def option_type(raw: Any) -> int:
    return OPTION_TYPES.get(str(raw).upper(), OPTION_TYPES["STRING"])


def to_registration(command: CommandLike) -> dict[str, Any]:
    options = command.options if isinstance(command.options, list) else []
    return {
        "name": command.name,
        "description": command.description or "No description",
        "options": [
            {
                "name": opt.get("name"),
                "description": opt.get("description") or "No description",
                "type": option_type(opt.get("type")),
                "required": bool(opt.get("required", False)),
            }
            for opt in options
        ],
    }
