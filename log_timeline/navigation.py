"""Match cursor for stepping through search results.

The transition functions are pure: (cursor, match_count) -> cursor.
MatchState bundles them with the query that produced the matches.
"""

from dataclasses import dataclass, replace
from enum import Enum


class MatchStatus(str, Enum):
    IDLE = "idle"              # no query
    HAS_MATCHES = "has_matches"
    NO_MATCHES = "no_matches"


def advance(cursor: int, match_count: int) -> int:
    """Next match, wrapping past the last one. Stays at 0 with no matches."""
    if match_count <= 0:
        return 0
    return (cursor + 1) % match_count


def retreat(cursor: int, match_count: int) -> int:
    """Previous match, wrapping from 0 to the last one. Stays at 0 with no matches."""
    if match_count <= 0:
        return 0
    return (cursor - 1) % match_count


def reset() -> int:
    return 0


def scroll_target(cursor: int) -> str:
    """DOM id of the event card the presentation layer should scroll to."""
    return f"event-{cursor}"


@dataclass(frozen=True)
class MatchState:
    query: str | None = None
    match_count: int = 0
    cursor: int = 0

    @property
    def status(self) -> MatchStatus:
        if not self.query:
            return MatchStatus.IDLE
        if self.match_count == 0:
            return MatchStatus.NO_MATCHES
        return MatchStatus.HAS_MATCHES

    def with_query(self, query: str | None, match_count: int) -> "MatchState":
        """New query: cursor goes back to the first match."""
        return MatchState(query=query, match_count=match_count, cursor=reset())

    def with_match_count(self, match_count: int) -> "MatchState":
        """Same query over a changed timeline; cursor kept if still in range."""
        cursor = self.cursor if self.cursor < match_count else reset()
        return replace(self, match_count=match_count, cursor=cursor)

    def next(self) -> "MatchState":
        return replace(self, cursor=advance(self.cursor, self.match_count))

    def prev(self) -> "MatchState":
        return replace(self, cursor=retreat(self.cursor, self.match_count))

    def scroll_target(self) -> str:
        return scroll_target(self.cursor)

    def label(self) -> str | None:
        """'Match 2 of 3' while there are matches to navigate, else None."""
        if self.status is not MatchStatus.HAS_MATCHES:
            return None
        return f"Match {self.cursor + 1} of {self.match_count}"
