"""Parsers for client JSON exports and server text logs.

Auto-detect order:
  1. Starts with '{' → client export (needs a non-empty ``logs`` array)
  2. Server text (needs at least one recognized line)
  3. UnknownFormat
"""

import calendar
import io
import json
import logging
import re
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, NamedTuple

import jsonschema

from log_timeline.errors import InvalidData, InvalidJson, LogParseError, UnknownFormat
from log_timeline.models import ClientExport, ClientLogEntry, RawEntry, ServerLogEntry, Source

logger = logging.getLogger(__name__)

EXPORT_TIMESTAMP_FIELD = "exportedTimestamp"
DEFAULT_SERVER_MODULE = "server"

# ---------------------------------------------------------------------------
# Compiled regex patterns
# ---------------------------------------------------------------------------

# [INFO][toolshed::14:30:45.123] Server started on port 8000
_TAGGED_RE = re.compile(
    r'^\[(?P<level>[A-Za-z]+)\]'
    r'\[(?P<module>[^\[\]]+?)::'
    r'(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})\.(?P<ms>\d{3})\]'
    r' ?(?P<message>.*)$'
)

# [14:30:45.123] INFO (4242): Server started on port 8000
_BRACKETED_TIME_RE = re.compile(
    r'^\[(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})\.(?P<ms>\d{3})\]\s+'
    r'(?P<level>[A-Za-z]+)\s+'
    r'\((?P<pid>\d+)\):'
    r' ?(?P<message>.*)$'
)


class ParsedLogs(NamedTuple):
    source: Source
    entries: tuple[RawEntry, ...]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decode(content: str | bytes) -> str:
    """Bytes are read as UTF-8; a leading BOM is dropped."""
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace")
    return content.lstrip("\ufeff")


def _as_int(value: Any) -> int | None:
    """JSON numbers → int; anything else (including bools) → None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _day_start_ms(day: date) -> int:
    return calendar.timegm(day.timetuple()) * 1000


def _time_of_day_ms(match: re.Match) -> int | None:
    """Milliseconds since midnight, or None for an impossible clock time."""
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    second = int(match.group("second"))
    if hour > 23 or minute > 59 or second > 59:
        return None
    return ((hour * 60 + minute) * 60 + second) * 1000 + int(match.group("ms"))


@lru_cache(maxsize=8)
def _envelope_validator(timestamp_field: str) -> jsonschema.Draft202012Validator:
    schema = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": [timestamp_field, "logs"],
        "properties": {
            timestamp_field: {"type": "integer"},
            "logs": {"type": "array", "items": {"type": "object"}},
        },
    }
    return jsonschema.Draft202012Validator(schema)


def _envelope_errors(data: Any, timestamp_field: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return (fields at fault, validator messages) for an export envelope."""
    fields: list[str] = []
    details: list[str] = []
    for error in _envelope_validator(timestamp_field).iter_errors(data):
        details.append(error.message)
        if error.validator == "required":
            missing = [f for f in error.validator_value if f not in error.instance]
            fields.extend(missing)
        elif error.absolute_path:
            fields.append(str(error.absolute_path[0]))
        else:
            fields.append("$")
    return tuple(dict.fromkeys(fields)), tuple(details)


# ---------------------------------------------------------------------------
# Client export
# ---------------------------------------------------------------------------


def _client_entry(record: dict) -> ClientLogEntry:
    messages = record.get("messages", [])
    if messages is None:
        messages = []
    elif not isinstance(messages, list):
        messages = [messages]
    return ClientLogEntry(
        timestamp=_as_int(record.get("timestamp")),
        level=_as_str(record.get("level")),
        module=_as_str(record.get("module")),
        key=_as_str(record.get("key")),
        messages=tuple(messages),
    )


def parse_client(content: str | bytes, timestamp_field: str = EXPORT_TIMESTAMP_FIELD) -> ClientExport:
    """Parse a client IndexedDB export.

    Raises InvalidJson when the text does not decode, and InvalidData when the
    envelope lacks the export timestamp or the ``logs`` array. Individual
    records with missing fields are kept with those fields set to None.
    """
    try:
        data = json.loads(_decode(content))
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        raise InvalidJson(e) from e

    fields, details = _envelope_errors(data, timestamp_field)
    if fields:
        raise InvalidData(fields, details)

    logs = tuple(_client_entry(record) for record in data["logs"])
    return ClientExport(exported_at=int(data[timestamp_field]), logs=logs)


# ---------------------------------------------------------------------------
# Server text logs
# ---------------------------------------------------------------------------


def _match_server_line(line: str) -> tuple[re.Match, str] | None:
    """Try each server line shape in order; return (match, module or '')."""
    m = _TAGGED_RE.match(line)
    if m:
        return m, m.group("module")
    m = _BRACKETED_TIME_RE.match(line)
    if m:
        return m, ""
    return None


def parse_server(
    content: str | bytes,
    today: date | None = None,
    default_module: str = DEFAULT_SERVER_MODULE,
) -> list[ServerLogEntry]:
    """Parse server text logs line by line.

    Lines matching neither shape are appended to the previous entry's
    message after a newline; with no previous entry they are dropped.
    Blank lines inside an entry are kept, blank lines ending it are not.
    Time-of-day stamps are placed on ``today`` (current UTC date by default).
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    day_ms = _day_start_ms(today)

    entries: list[ServerLogEntry] = []
    current: dict | None = None

    def flush():
        if current is not None:
            parts = current["parts"]
            while len(parts) > 1 and not parts[-1].strip():
                parts.pop()
            entries.append(ServerLogEntry(
                timestamp=current["timestamp"],
                level=current["level"],
                module=current["module"],
                message="\n".join(parts),
            ))

    for raw in io.StringIO(_decode(content)):
        line = raw.rstrip("\r\n")
        matched = _match_server_line(line)
        offset = _time_of_day_ms(matched[0]) if matched else None
        if matched is None or offset is None:
            if current is not None:
                current["parts"].append(line)
            continue

        flush()
        m, module = matched
        current = {
            "timestamp": day_ms + offset,
            "level": m.group("level"),
            "module": module or default_module,
            "parts": [m.group("message")],
        }

    flush()
    return entries


# ---------------------------------------------------------------------------
# Auto-detect entry point
# ---------------------------------------------------------------------------


def detect_and_parse(
    content: str | bytes,
    timestamp_field: str = EXPORT_TIMESTAMP_FIELD,
    today: date | None = None,
    default_module: str = DEFAULT_SERVER_MODULE,
) -> ParsedLogs:
    """Parse content as whichever log format it is.

    Raises UnknownFormat if neither format yields any entries.
    """
    text = _decode(content)

    # 1. Client export, starts with '{'
    if text.lstrip().startswith("{"):
        try:
            export = parse_client(text, timestamp_field)
        except LogParseError as e:
            logger.debug("Not a client export: %s", e)
        else:
            if export.logs:
                logger.debug("Detected client export with %d entries", len(export.logs))
                return ParsedLogs(Source.CLIENT, export.logs)
            logger.debug("Client export has no log entries")

    # 2. Server text
    server_logs = parse_server(text, today=today, default_module=default_module)
    if server_logs:
        logger.debug("Detected server logs with %d entries", len(server_logs))
        return ParsedLogs(Source.SERVER, tuple(server_logs))

    # 3. Unknown
    raise UnknownFormat()
