"""
Store events and listeners.

Stores announce two categories of change: *management* events for structural
changes (pyramids or mosaics added, updated or removed) and *content* events
for data changes inside existing mosaics. Listeners receive every event sent
by the store they are registered with; events of an unknown category are
ignored so new kinds can be added without breaking existing listeners.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, ClassVar, Dict, FrozenSet, Iterable, List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .types import TilePosition

__all__ = [
    "EventCategory",
    "ManagementType",
    "ContentType",
    "StoreEvent",
    "ManagementEvent",
    "ContentEvent",
    "StoreListener",
    "CountingListener",
    "EventSupport",
    "classify",
    "on_event",
]

logger = logging.getLogger(__name__)


class EventCategory(str, Enum):
    """Kinds of store event recognised by listeners."""
    MANAGEMENT = "management"
    CONTENT = "content"


class ManagementType(str, Enum):
    PYRAMID_ADD = "pyramid_add"
    PYRAMID_UPDATE = "pyramid_update"
    PYRAMID_DELETE = "pyramid_delete"
    MOSAIC_ADD = "mosaic_add"
    MOSAIC_UPDATE = "mosaic_update"
    MOSAIC_DELETE = "mosaic_delete"


class ContentType(str, Enum):
    DATA_UPDATE = "data_update"
    TILE_ADD = "tile_add"
    TILE_UPDATE = "tile_update"
    TILE_DELETE = "tile_delete"


class StoreEvent(BaseModel):
    """Immutable notification raised by a store."""

    category: ClassVar[Optional[EventCategory]] = None

    source_id: Optional[str] = Field(None, description="Identifier of the emitting store")
    pyramid_id: Optional[str] = Field(None, description="Pyramid concerned by the event")
    mosaic_id: Optional[str] = Field(None, description="Mosaic concerned by the event")

    model_config = ConfigDict(frozen=True)


class ManagementEvent(StoreEvent):
    """A pyramid or mosaic was created, updated or removed."""

    category: ClassVar[Optional[EventCategory]] = EventCategory.MANAGEMENT

    type: ManagementType

    @classmethod
    def pyramid_added(cls, source_id: Optional[str], pyramid_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.PYRAMID_ADD, source_id=source_id, pyramid_id=pyramid_id)

    @classmethod
    def pyramid_updated(cls, source_id: Optional[str], pyramid_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.PYRAMID_UPDATE, source_id=source_id, pyramid_id=pyramid_id)

    @classmethod
    def pyramid_deleted(cls, source_id: Optional[str], pyramid_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.PYRAMID_DELETE, source_id=source_id, pyramid_id=pyramid_id)

    @classmethod
    def mosaic_added(cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.MOSAIC_ADD, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id)

    @classmethod
    def mosaic_updated(cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.MOSAIC_UPDATE, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id)

    @classmethod
    def mosaic_deleted(cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str) -> "ManagementEvent":
        return cls(type=ManagementType.MOSAIC_DELETE, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id)


class ContentEvent(StoreEvent):
    """Data inside an existing mosaic changed."""

    category: ClassVar[Optional[EventCategory]] = EventCategory.CONTENT

    type: ContentType
    tiles: Tuple[TilePosition, ...] = Field(default=(), description="Affected (column, row) positions")

    @classmethod
    def data_updated(cls, source_id: Optional[str]) -> "ContentEvent":
        return cls(type=ContentType.DATA_UPDATE, source_id=source_id)

    @classmethod
    def tiles_added(
        cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str, tiles: Iterable[TilePosition]
    ) -> "ContentEvent":
        return cls(
            type=ContentType.TILE_ADD, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id, tiles=tuple(tiles)
        )

    @classmethod
    def tiles_updated(
        cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str, tiles: Iterable[TilePosition]
    ) -> "ContentEvent":
        return cls(
            type=ContentType.TILE_UPDATE, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id, tiles=tuple(tiles)
        )

    @classmethod
    def tiles_deleted(
        cls, source_id: Optional[str], pyramid_id: str, mosaic_id: str, tiles: Iterable[TilePosition]
    ) -> "ContentEvent":
        return cls(
            type=ContentType.TILE_DELETE, source_id=source_id, pyramid_id=pyramid_id, mosaic_id=mosaic_id, tiles=tuple(tiles)
        )


def classify(event: object) -> Optional[EventCategory]:
    """Category of ``event``, or None for anything that is not a known store event."""
    category = getattr(type(event), "category", None)
    return category if isinstance(category, EventCategory) else None


class StoreListener(Protocol):
    """Observer registered with a store."""

    def on_event(self, event: StoreEvent) -> None:
        ...


def on_event(listener: StoreListener, event: StoreEvent) -> None:
    """Deliver ``event`` to ``listener``."""
    listener.on_event(event)


class CountingListener:
    """Listener counting events per category and keeping the last of each."""

    def __init__(self) -> None:
        self.num_management_events = 0
        self.num_content_events = 0
        self.last_management_event: Optional[ManagementEvent] = None
        self.last_content_event: Optional[ContentEvent] = None
        self._lock = threading.Lock()
        self._handlers: Dict[EventCategory, Callable[[StoreEvent], None]] = {
            EventCategory.MANAGEMENT: self._on_management,
            EventCategory.CONTENT: self._on_content,
        }

    def _on_management(self, event: StoreEvent) -> None:
        self.num_management_events += 1
        self.last_management_event = event  # type: ignore[assignment]

    def _on_content(self, event: StoreEvent) -> None:
        self.num_content_events += 1
        self.last_content_event = event  # type: ignore[assignment]

    def on_event(self, event: StoreEvent) -> None:
        handler = self._handlers.get(classify(event))  # type: ignore[arg-type]
        if handler is None:
            return
        with self._lock:
            handler(event)

    def reset(self) -> None:
        with self._lock:
            self.num_management_events = 0
            self.num_content_events = 0
            self.last_management_event = None
            self.last_content_event = None


class EventSupport:
    """Listener registry that stores delegate event delivery to."""

    def __init__(self) -> None:
        self._listeners: List[Tuple[StoreListener, Optional[FrozenSet[EventCategory]]]] = []
        self._lock = threading.Lock()

    def add_listener(
        self,
        listener: StoreListener,
        categories: Optional[Iterable[EventCategory]] = None,
    ) -> None:
        """
        Register ``listener``.

        Args:
            listener: Observer to notify
            categories: Only deliver events of these categories; all events when None
        """
        wanted = frozenset(categories) if categories is not None else None
        with self._lock:
            self._listeners.append((listener, wanted))

    def remove_listener(self, listener: StoreListener) -> bool:
        """Deregister every registration of ``listener``; True if any existed."""
        with self._lock:
            before = len(self._listeners)
            self._listeners = [(l, c) for l, c in self._listeners if l is not listener]
            return len(self._listeners) != before

    @property
    def listeners(self) -> List[StoreListener]:
        with self._lock:
            return [listener for listener, _ in self._listeners]

    def send_event(self, event: StoreEvent) -> StoreEvent:
        """Deliver ``event`` to each matching listener; listener errors propagate."""
        with self._lock:
            registrations = list(self._listeners)

        category = classify(event)
        if category is None:
            logger.debug(f"Sending event of unknown category: {type(event).__name__}")
        for listener, wanted in registrations:
            if wanted is not None and category not in wanted:
                continue
            on_event(listener, event)
        return event
