"""Entity extraction — doc, charm, and space IDs found in log messages.

CIDs (docs and charms) start with "baedrei"; which of the two a CID is
comes from its surrounding text, not from the ID itself. Space IDs are
did:key DIDs.
"""

import re
from typing import Callable, Iterable

from log_timeline.models import Entities, EntityIndex, EntityInfo, EntityType, LogEvent

CID_PATTERN = re.compile(r"baedrei[a-z0-9]{50,}")
DID_PATTERN = re.compile(r"did:key:z6Mk[A-HJ-NP-Za-km-z1-9]+")

CHARM_MARKER = "charm "

Classifier = Callable[[str, re.Match], EntityType]


def default_classifier(text: str, match: re.Match) -> EntityType:
    """Charm if "charm <cid>" appears anywhere in the text, doc otherwise."""
    if f"{CHARM_MARKER}{match.group(0)}" in text:
        return EntityType.CHARM_ID
    return EntityType.DOC_ID


def preceding_word_classifier(text: str, match: re.Match) -> EntityType:
    """Charm only if this occurrence is directly preceded by "charm "."""
    if text[:match.start()].endswith(CHARM_MARKER):
        return EntityType.CHARM_ID
    return EntityType.DOC_ID


def extract_entities(text: str, classifier: Classifier = default_classifier) -> Entities:
    """Extract distinct doc, charm, and space IDs from text, first-seen order.

    A CID is classified once, at its first occurrence.
    """
    found: dict[EntityType, dict[str, None]] = {t: {} for t in EntityType}
    seen_cids: set[str] = set()

    for m in CID_PATTERN.finditer(text):
        cid = m.group(0)
        if cid in seen_cids:
            continue
        seen_cids.add(cid)
        found[classifier(text, m)][cid] = None

    for m in DID_PATTERN.finditer(text):
        found[EntityType.SPACE_ID][m.group(0)] = None

    return Entities(
        doc_ids=tuple(found[EntityType.DOC_ID]),
        charm_ids=tuple(found[EntityType.CHARM_ID]),
        space_ids=tuple(found[EntityType.SPACE_ID]),
    )


def _typed_ids(entities: Entities) -> Iterable[tuple[str, EntityType]]:
    for entity_id in entities.doc_ids:
        yield entity_id, EntityType.DOC_ID
    for entity_id in entities.charm_ids:
        yield entity_id, EntityType.CHARM_ID
    for entity_id in entities.space_ids:
        yield entity_id, EntityType.SPACE_ID


def build_entity_index(
    events: Iterable[LogEvent],
    classifier: Classifier = default_classifier,
) -> EntityIndex:
    """Index every entity mentioned in a timeline.

    The type recorded for an ID is the one from its first observation;
    later events only add to its event list.
    """
    # {entity_id: (type, [events])}
    buckets: dict[str, tuple[EntityType, list[LogEvent]]] = {}

    for event in events:
        entities = extract_entities(event.message, classifier)
        for entity_id, entity_type in _typed_ids(entities):
            buckets.setdefault(entity_id, (entity_type, []))[1].append(event)

    entities_map: dict[str, EntityInfo] = {}
    by_type: dict[EntityType, list[str]] = {t: [] for t in EntityType}

    for entity_id, (entity_type, seen_in) in buckets.items():
        timestamps = [e.timestamp for e in seen_in]
        entities_map[entity_id] = EntityInfo(
            id=entity_id,
            type=entity_type,
            first_seen=min(timestamps),
            last_seen=max(timestamps),
            event_count=len(seen_in),
            events=tuple(seen_in),
        )
        by_type[entity_type].append(entity_id)

    return EntityIndex(
        entities=entities_map,
        by_type={t: tuple(ids) for t, ids in by_type.items()},
    )
