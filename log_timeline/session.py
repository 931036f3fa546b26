"""Timeline session — uploaded logs, derived index, and search state.

Each upload is appended to what is already loaded and the timeline and
entity index are rebuilt from scratch. A failed upload leaves every piece
of state as it was.
"""

import logging
import threading
import time
from datetime import date

from log_timeline.config import Config
from log_timeline.entities import build_entity_index
from log_timeline.errors import LogParseError
from log_timeline.models import EntityIndex, LogEvent, Source
from log_timeline.navigation import MatchState
from log_timeline.parsers import ParsedLogs, detect_and_parse
from log_timeline.search import search_timeline
from log_timeline.timeline import build_timeline, raw_entries

logger = logging.getLogger(__name__)


class TimelineSession:
    """Holds one viewer's timeline. Mutations are serialized by a lock."""

    def __init__(self, config: Config | None = None, today: date | None = None):
        self._config = config or Config()
        self._today = today
        self._lock = threading.Lock()
        self._timeline: tuple[LogEvent, ...] = ()
        self._entity_index = EntityIndex()
        self._filtered: tuple[LogEvent, ...] = ()
        self._match = MatchState()

    # -- read-only views ---------------------------------------------------

    @property
    def timeline(self) -> tuple[LogEvent, ...]:
        return self._timeline

    @property
    def entity_index(self) -> EntityIndex:
        return self._entity_index

    @property
    def filtered_timeline(self) -> tuple[LogEvent, ...]:
        return self._filtered

    @property
    def query(self) -> str | None:
        return self._match.query

    @property
    def match_state(self) -> MatchState:
        return self._match

    @property
    def current_match_index(self) -> int:
        return self._match.cursor

    def current_event(self) -> LogEvent | None:
        if not self._filtered:
            return None
        return self._filtered[self._match.cursor]

    # -- ingestion -----------------------------------------------------------

    def ingest(self, content: str | bytes, name: str = "<upload>") -> ParsedLogs:
        """Parse an upload and merge it into the timeline.

        Raises the LogParseError from detection; state is untouched then.
        """
        parser_config = self._config.parser
        with self._lock:
            start = time.monotonic()
            try:
                parsed = detect_and_parse(
                    content,
                    timestamp_field=parser_config.export_timestamp_field,
                    today=self._today,
                    default_module=parser_config.server_module,
                )
            except LogParseError as e:
                logger.warning("Could not parse %s (%s); keeping current timeline", name, e)
                raise
            parse_ms = (time.monotonic() - start) * 1000
            logger.info(
                "Parsed %d %s log entries from %s in %.0fms",
                len(parsed.entries), parsed.source.value, name, parse_ms,
            )

            client, server = raw_entries(self._timeline)
            if parsed.source is Source.CLIENT:
                client.extend(parsed.entries)
            else:
                server.extend(parsed.entries)

            timeline = tuple(build_timeline(client, server))
            entity_index = build_entity_index(timeline)

            self._timeline = timeline
            self._entity_index = entity_index
            self._refilter()
            logger.info(
                "Timeline rebuilt: %d events, %d entities",
                len(timeline), len(entity_index),
            )
        return parsed

    def reset(self) -> None:
        """Discard every loaded entry and the search state."""
        with self._lock:
            self._timeline = ()
            self._entity_index = EntityIndex()
            self._filtered = ()
            self._match = MatchState()

    # -- search and navigation ----------------------------------------------

    def set_query(self, query: str | None) -> tuple[LogEvent, ...]:
        """Filter the timeline; the match cursor goes back to the first result."""
        with self._lock:
            self._filtered = tuple(search_timeline(self._timeline, query))
            self._match = self._match.with_query(query, len(self._filtered))
            return self._filtered

    def next_match(self) -> str:
        """Step to the next match; returns the element id to scroll to."""
        with self._lock:
            self._match = self._match.next()
            return self._match.scroll_target()

    def prev_match(self) -> str:
        """Step to the previous match; returns the element id to scroll to."""
        with self._lock:
            self._match = self._match.prev()
            return self._match.scroll_target()

    def _refilter(self) -> None:
        # Called with self._lock held.
        self._filtered = tuple(search_timeline(self._timeline, self._match.query))
        self._match = self._match.with_match_count(len(self._filtered))
