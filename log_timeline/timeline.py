"""Client and server entries mapped onto one sorted list of LogEvent."""

import json
from typing import Any, Iterable

from log_timeline.models import ClientLogEntry, LogEvent, ServerLogEntry, Source


def message_part_to_string(part: Any) -> str:
    """Render one client message part for display.

    None → "", objects and arrays → compact JSON, booleans as JSON literals,
    everything else via str().
    """
    if part is None:
        return ""
    if isinstance(part, (dict, list, tuple, bool)):
        return json.dumps(part, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(part)


def messages_to_string(messages: Iterable[Any]) -> str:
    """Join message parts with single spaces."""
    return " ".join(message_part_to_string(part) for part in messages)


def from_client_entry(entry: ClientLogEntry) -> LogEvent:
    return LogEvent(
        timestamp=entry.timestamp if entry.timestamp is not None else 0,
        level=entry.level or "",
        module=entry.module or "",
        message=messages_to_string(entry.messages),
        source=Source.CLIENT,
        raw_entry=entry,
    )


def from_server_entry(entry: ServerLogEntry) -> LogEvent:
    return LogEvent(
        timestamp=entry.timestamp,
        level=entry.level,
        module=entry.module,
        message=entry.message,
        source=Source.SERVER,
        raw_entry=entry,
    )


def build_timeline(
    client_entries: Iterable[ClientLogEntry],
    server_entries: Iterable[ServerLogEntry],
) -> list[LogEvent]:
    """Merge both sources into one list ordered by timestamp.

    sorted() is stable: equal timestamps keep input order, client first.
    """
    events = [from_client_entry(e) for e in client_entries]
    events.extend(from_server_entry(e) for e in server_entries)
    return sorted(events, key=lambda event: event.timestamp)


def raw_entries(events: Iterable[LogEvent]) -> tuple[list[ClientLogEntry], list[ServerLogEntry]]:
    """Split a timeline back into its (client, server) source entries."""
    client: list[ClientLogEntry] = []
    server: list[ServerLogEntry] = []
    for event in events:
        if event.source is Source.CLIENT:
            client.append(event.raw_entry)
        else:
            server.append(event.raw_entry)
    return client, server
