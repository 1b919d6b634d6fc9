"""Serialize messages for the API and export conversations to Markdown and JSON."""

import json
import logging
from datetime import datetime, timezone

from .core import Message, suggestion_from_dict
from .errors import ValidationError
from .suggestions import visible

logger = logging.getLogger(__name__)

_LABELS = {
    "music": "Music",
    "quote": "Quote",
    "movie": "Movie",
    "series": "Series",
    "book": "Book",
    "action": "Ritual",
}


def message_to_dict(msg: Message) -> dict:
    """Convert a Message to its JSON wire form."""
    data = {
        "id": msg.id,
        "type": msg.role,
        "content": msg.content,
        "timestamp": msg.timestamp.isoformat(),
    }
    if msg.mood:
        data["mood"] = msg.mood
    if msg.suggestions:
        data["suggestions"] = [s.to_dict() for s in msg.suggestions]
    return data


def message_from_dict(data: dict) -> Message:
    """Rebuild a Message from its wire form.

    Accepts either ``type`` or ``role`` for the speaker. A suggestion list
    that fails validation is dropped rather than failing the message.
    """
    role = data.get("type") or data.get("role") or "user"
    suggestions = None
    raw = data.get("suggestions")
    if raw:
        try:
            suggestions = tuple(suggestion_from_dict(s) for s in raw)
        except (ValidationError, TypeError) as e:
            logger.debug("Dropping suggestions of message %s: %s", data.get("id"), e)

    return Message(
        id=str(data.get("id") or ""),
        role="user" if role == "user" else "assistant",
        content=str(data.get("content") or ""),
        timestamp=_parse_iso(data.get("timestamp")) or datetime.now(timezone.utc),
        mood=data.get("mood") or None,
        suggestions=suggestions,
    )


def describe_suggestion(s) -> str:
    """One-line human summary of a suggestion."""
    label = _LABELS.get(s.type, s.type.capitalize())
    if s.type == "quote":
        text = f'"{s.text}"'
        return f"{label}: {text} - {s.author}" if s.author else f"{label}: {text}"
    if s.type == "action":
        return f"{label}: {s.label} ({s.minutes:g} min)" if s.minutes else f"{label}: {s.label}"
    if s.type == "music":
        return f"{label}: {s.title} ({s.subtitle})" if s.subtitle else f"{label}: {s.title}"
    line = f"{label}: {s.title}"
    if s.year:
        line += f" ({s.year})"
    if s.note:
        line += f" - {s.note}"
    return line


def conversation_to_markdown(messages: list[Message], title: str = "VibeCheck conversation") -> str:
    """Export a conversation as clean Markdown."""
    lines = [f"# {title}", ""]
    lines.append(f"**Messages:** {len(messages)}")
    lines.extend(["", "---", ""])

    for msg in messages:
        role_label = msg.role.capitalize()
        ts = f" ({msg.timestamp.strftime('%Y-%m-%d %H:%M')})"
        mood = f" · mood: {msg.mood}" if msg.mood else ""
        lines.append(f"## {role_label}{ts}{mood}")
        lines.append("")
        lines.append(msg.content)
        shown = visible(msg.suggestions)
        if shown:
            lines.append("")
            lines.extend(f"- {describe_suggestion(s)}" for s in shown)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def conversation_to_json(messages: list[Message]) -> str:
    """Export a conversation as structured JSON."""
    data = {
        "message_count": len(messages),
        "messages": [message_to_dict(m) for m in messages],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def _parse_iso(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
