"""Find CIDs and DIDs in text and wrap them in markup.

Matches baedrei…, bafyrei…, ba4jcb… CIDs (``ba`` + 49 or more base32-ish
characters) as standalone tokens, plus did:key DIDs.
"""

import html
import re

CID_PATTERN = re.compile(r"(?<![A-Za-z0-9])ba[a-z0-9]{49,}(?![A-Za-z0-9])")
DID_PATTERN = re.compile(r"did:key:z6Mk[A-HJ-NP-Za-km-z1-9]+")

CLICKABLE_CLASS = "clickable-id"
TOGGLE_ACTION = "toggle_track"


def id_kind(identifier: str) -> str:
    return "did" if identifier.startswith("did:") else "cid"


def clickable_span(identifier: str) -> str:
    escaped = html.escape(identifier)
    return (
        f'<span class="{CLICKABLE_CLASS}" data-kind="{id_kind(identifier)}" '
        f'data-action="{TOGGLE_ACTION}" data-id="{escaped}">{escaped}</span>'
    )


def extract_clickable_ids(text: str) -> list[str]:
    """Return distinct IDs in text: CIDs first, then DIDs, each in scan order."""
    ids = [m.group(0) for m in CID_PATTERN.finditer(text)]
    ids.extend(m.group(0) for m in DID_PATTERN.finditer(text))
    return list(dict.fromkeys(ids))


def make_ids_clickable(text: str) -> str:
    """Wrap every literal occurrence of each found ID in a clickable span.

    All IDs are replaced in a single pass over the original text, longest
    first, so inserted markup is never searched again.
    """
    ids = extract_clickable_ids(text)
    if not ids:
        return text
    alternation = "|".join(re.escape(i) for i in sorted(ids, key=len, reverse=True))
    return re.sub(alternation, lambda m: clickable_span(m.group(0)), text)
