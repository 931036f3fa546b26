"""Output formatters — text, JSON (NDJSON), colorized (ANSI), HTML cards."""

import html
import json
from datetime import datetime, timezone
from typing import Callable

from log_timeline.linkify import make_ids_clickable
from log_timeline.models import EntityIndex, EntityType, LogEvent, Source
from log_timeline.search import MARK_CLASS, highlight_text

# ANSI color codes
COLORS = {
    "DEBUG": "\033[36m",   # cyan
    "INFO": "\033[32m",    # green
    "WARN": "\033[33m",    # yellow
    "WARNING": "\033[33m", # yellow
    "ERROR": "\033[31m",   # red
}
RESET = "\033[0m"

# CSS badge classes for the HTML event card
LEVEL_BADGES = {
    "ERROR": "bg-red-100 text-red-800",
    "WARN": "bg-yellow-100 text-yellow-800",
    "INFO": "bg-blue-100 text-blue-800",
    "DEBUG": "bg-gray-100 text-gray-800",
}
SOURCE_BADGES = {
    Source.CLIENT: "bg-blue-100 text-blue-800",
    Source.SERVER: "bg-green-100 text-green-800",
}
DEFAULT_BADGE = "bg-gray-100 text-gray-800"

ENTITY_HEADINGS = {
    EntityType.DOC_ID: "DocIDs",
    EntityType.CHARM_ID: "CharmIDs",
    EntityType.SPACE_ID: "SpaceIDs",
}


def format_timestamp(timestamp: int) -> str:
    """Epoch milliseconds → 'HH:MM:SS.mmm' (UTC); the raw number if out of range."""
    try:
        dt = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return str(timestamp)
    return dt.strftime("%H:%M:%S.") + f"{timestamp % 1000:03d}"


def level_badge(level: str) -> str:
    return LEVEL_BADGES.get(level.upper(), DEFAULT_BADGE)


def source_badge(source: Source) -> str:
    return SOURCE_BADGES.get(source, DEFAULT_BADGE)


def render_message(message: str, query: str | None = None, mark_class: str = MARK_CLASS) -> str:
    """Escape, linkify IDs, then highlight the query around the inserted markup."""
    escaped = html.escape(message, quote=False)
    return highlight_text(make_ids_clickable(escaped), query, mark_class)


def event_to_dict(event: LogEvent) -> dict:
    return {
        "timestamp": event.timestamp,
        "time": format_timestamp(event.timestamp),
        "source": event.source.value,
        "level": event.level,
        "module": event.module,
        "message": event.message,
    }


def format_text(event: LogEvent) -> str:
    """One line per event; continuation lines stay as-is below it."""
    return (
        f"[{format_timestamp(event.timestamp)}] [{event.source.value}] "
        f"{event.level} {event.module}: {event.message}"
    )


def format_json(event: LogEvent) -> str:
    """Return NDJSON — one JSON object per line, compatible with jq."""
    return json.dumps(event_to_dict(event), ensure_ascii=False)


def format_color(event: LogEvent) -> str:
    """Return the event line with ANSI-colored level."""
    color = COLORS.get(event.level.upper(), "")
    return (
        f"[{format_timestamp(event.timestamp)}] [{event.source.value}] "
        f"{color}{event.level}{RESET} {event.module}: {event.message}"
    )


def format_html(
    event: LogEvent,
    index: int,
    query: str | None = None,
    is_current_match: bool = False,
    mark_class: str = MARK_CLASS,
) -> str:
    """Render an event card with id ``event-<index>`` for scroll targeting."""
    classes = "event-card current-match" if is_current_match else "event-card"
    return (
        f'<div id="event-{index}" class="{classes}">'
        f'<span class="timestamp">{format_timestamp(event.timestamp)}</span>'
        f'<span class="{source_badge(event.source)}">{event.source.value}</span>'
        f'<span class="{level_badge(event.level)}">{html.escape(event.level)}</span>'
        f'<span class="module">{html.escape(event.module)}</span>'
        f'<p class="message">{render_message(event.message, query, mark_class)}</p>'
        f'</div>'
    )


def get_formatter(output_format: str = "text", color: bool = False) -> Callable[[LogEvent], str]:
    """Factory that returns the right line formatter based on args."""
    if output_format == "json":
        return format_json
    if color:
        return format_color
    return format_text


def format_entity_summary(index: EntityIndex, limit: int = 5) -> str:
    """Human-readable entity overview, a few IDs per type."""
    lines = [f"Entities: {len(index)}"]
    for entity_type in EntityType:
        ids = index.by_type[entity_type]
        lines.append("")
        lines.append(f"{ENTITY_HEADINGS[entity_type]} ({len(ids)}):")
        for entity_id in ids[:limit]:
            info = index.entities[entity_id]
            lines.append(
                f"  {entity_id}  events={info.event_count} "
                f"first={format_timestamp(info.first_seen)} "
                f"last={format_timestamp(info.last_seen)}"
            )
        if len(ids) > limit:
            lines.append(f"  ... {len(ids) - limit} more")
    return "\n".join(lines)


def format_entities_json(index: EntityIndex) -> str:
    """JSON entity index output, events reduced to their timestamps."""
    return json.dumps({
        "total_entities": len(index),
        "by_type": {t.value: list(ids) for t, ids in index.by_type.items()},
        "entities": {
            entity_id: {
                "type": info.type.value,
                "first_seen": info.first_seen,
                "last_seen": info.last_seen,
                "event_count": info.event_count,
                "event_timestamps": [e.timestamp for e in info.events],
            }
            for entity_id, info in index.entities.items()
        },
    }, indent=2)
