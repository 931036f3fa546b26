"""Fuzzy search and highlighting over timeline events.

Matching is a case-insensitive subsequence test bounded to a single line:
every pattern character must be found, in order, on the same line of text.
Highlighting applies the same rule, only touches text outside HTML tags and
character references such as ``&amp;``, and prefers long verbatim runs
of the pattern over scattered single characters.
"""

import re
from typing import Iterable

from log_timeline.models import LogEvent

MARK_CLASS = "bg-yellow-200"
MARK_CLOSE = "</mark>"

# Tags and character references; never searched or split by a <mark>
_OPAQUE_RE = re.compile(r"(<[^<>]*>|&#?[A-Za-z0-9]+;)")


def mark_open(mark_class: str = MARK_CLASS) -> str:
    return f'<mark class="{mark_class}">'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fold(text: str) -> str:
    """Lowercase text without changing its length, so indexes line up."""
    lowered = text.lower()
    if len(lowered) == len(text):
        return lowered
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)


def _is_subsequence(text: str, pattern: str) -> bool:
    it = iter(text)
    return all(ch in it for ch in pattern)


def _matches_folded(text: str, pattern: str) -> bool:
    """Line-bounded subsequence test; both arguments already folded."""
    if not pattern:
        return True
    if not text:
        return False
    return any(_is_subsequence(line, pattern) for line in text.split("\n"))


def _consume(segment: str, pattern: str, tail: str) -> tuple[list[tuple[int, int]], str]:
    """Match as much of pattern as possible inside one folded text segment.

    At each step the longest prefix of the remaining pattern that occurs
    verbatim is taken, provided the rest of the pattern can still be found
    in what follows (the remainder of this segment plus ``tail``). Returns
    the matched (start, end) spans and the unmatched rest of the pattern.
    """
    spans: list[tuple[int, int]] = []
    pos = 0
    while pattern and pos < len(segment):
        for k in range(len(pattern), 0, -1):
            idx = segment.find(pattern[:k], pos)
            if idx == -1:
                continue
            if _is_subsequence(segment[idx + k:] + tail, pattern[k:]):
                break
        else:
            break
        spans.append((idx, idx + k))
        pos = idx + k
        pattern = pattern[k:]
    return spans, pattern


def _merge_spans(spans: list[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in spans:
        if merged and merged[-1][1] == start:
            merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def _wrap(text: str, spans: list[tuple[int, int]], mark_class: str) -> str:
    parts = []
    pos = 0
    for start, end in _merge_spans(spans):
        parts.append(text[pos:start])
        parts.append(mark_open(mark_class))
        parts.append(text[start:end])
        parts.append(MARK_CLOSE)
        pos = end
    parts.append(text[pos:])
    return "".join(parts)


def _highlight_line(line: str, pattern: str, mark_class: str) -> str | None:
    """Highlight one line, or return None if the whole pattern does not fit in it."""
    # re.split with a capture group: even indexes are text, odd are markup
    segments = _OPAQUE_RE.split(line)
    folded = [_fold(s) if i % 2 == 0 else "" for i, s in enumerate(segments)]

    remaining = pattern
    spans_by_segment: dict[int, list[tuple[int, int]]] = {}
    for i in range(0, len(segments), 2):
        if not remaining:
            break
        if not folded[i]:
            continue
        tail = "".join(folded[i + 2::2])
        spans, remaining = _consume(folded[i], remaining, tail)
        if spans:
            spans_by_segment[i] = spans

    if remaining:
        return None

    return "".join(
        _wrap(s, spans_by_segment[i], mark_class) if i in spans_by_segment else s
        for i, s in enumerate(segments)
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fuzzy_match(text: str, pattern: str) -> bool:
    """True if pattern's characters appear in order on a single line of text.

    Characters need not be consecutive. Case-insensitive. An empty pattern
    matches everything, including empty text.
    """
    return _matches_folded(_fold(text), _fold(pattern))


def event_matches(event: LogEvent, query: str) -> bool:
    """True if the query fuzzy-matches the event's message, module, or level."""
    pattern = _fold(query)
    return (
        _matches_folded(_fold(event.message), pattern)
        or _matches_folded(_fold(event.module), pattern)
        or _matches_folded(_fold(event.level), pattern)
    )


def search_timeline(events: Iterable[LogEvent], query: str | None) -> list[LogEvent]:
    """Filter events by fuzzy query, preserving order. Empty/None returns all."""
    if not query:
        return list(events)
    return [event for event in events if event_matches(event, query)]


def highlight_text(text: str, query: str | None, mark_class: str = MARK_CLASS) -> str:
    """Wrap fuzzy-matched characters of text in <mark> tags.

    Existing tags and character references pass through untouched; only
    the text between them is marked.
    Each line is highlighted independently and only if the entire query
    matches within it. Adjacent matched characters share one <mark>.
    Returns text unchanged for an empty query or when nothing matches.
    """
    if not query or not text:
        return text

    pattern = _fold(query)
    lines = text.split("\n")
    changed = False
    out: list[str] = []
    for line in lines:
        highlighted = _highlight_line(line, pattern, mark_class)
        if highlighted is None:
            out.append(line)
        else:
            out.append(highlighted)
            changed = True

    return "\n".join(out) if changed else text


def strip_marks(text: str, mark_class: str = MARK_CLASS) -> str:
    """Remove <mark> wrappers inserted by highlight_text."""
    return text.replace(mark_open(mark_class), "").replace(MARK_CLOSE, "")

