"""Normalized log records shared by the parser, timeline, and entity index.

Client and server exports parse into their own entry types; both map onto
LogEvent, the unit of the unified timeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Source(str, Enum):
    CLIENT = "client"
    SERVER = "server"


class EntityType(str, Enum):
    DOC_ID = "doc_id"
    CHARM_ID = "charm_id"
    SPACE_ID = "space_id"


@dataclass(frozen=True)
class ClientLogEntry:
    timestamp: int | None
    level: str | None
    module: str | None
    key: str | None
    messages: tuple[Any, ...] = ()


@dataclass(frozen=True)
class ClientExport:
    exported_at: int
    logs: tuple[ClientLogEntry, ...]


@dataclass(frozen=True)
class ServerLogEntry:
    timestamp: int
    level: str
    module: str
    message: str


RawEntry = Union[ClientLogEntry, ServerLogEntry]


@dataclass(frozen=True)
class LogEvent:
    timestamp: int
    level: str
    module: str
    message: str
    source: Source
    # Excluded from equality so two events compare by what they display.
    raw_entry: RawEntry | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Entities:
    """Distinct identifiers found in one piece of text, first-seen order."""

    doc_ids: tuple[str, ...] = ()
    charm_ids: tuple[str, ...] = ()
    space_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityInfo:
    id: str
    type: EntityType
    first_seen: int
    last_seen: int
    event_count: int
    events: tuple[LogEvent, ...]


@dataclass(frozen=True)
class EntityIndex:
    entities: dict[str, EntityInfo] = field(default_factory=dict)
    by_type: dict[EntityType, tuple[str, ...]] = field(
        default_factory=lambda: {t: () for t in EntityType}
    )

    @property
    def doc_ids(self) -> tuple[str, ...]:
        return self.by_type[EntityType.DOC_ID]

    @property
    def charm_ids(self) -> tuple[str, ...]:
        return self.by_type[EntityType.CHARM_ID]

    @property
    def space_ids(self) -> tuple[str, ...]:
        return self.by_type[EntityType.SPACE_ID]

    def __len__(self) -> int:
        return len(self.entities)
