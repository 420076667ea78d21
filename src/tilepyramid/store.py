"""
In-memory multi-resolution store.

Holds pyramids, their mosaics and opaque tile payloads, and raises a
management or content event for every mutation.
"""

import logging
import threading
import uuid
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import StoreConfig
from .core import aggregate_envelopes
from .errors import InvalidArgumentError, NotFoundError
from .events import ContentEvent, EventSupport, ManagementEvent
from .mosaic import GridMosaic, Mosaic
from .pyramid import InMemoryPyramid
from .types import CRSLike, Envelope, TilePosition, to_crs

logger = logging.getLogger(__name__)

TileKey = Tuple[str, str]  # (pyramid id, mosaic id)
TileEntry = Tuple[Mosaic, Dict[TilePosition, bytes]]  # owning mosaic, payloads


class PyramidStore(EventSupport):
    """
    Thread-safe in-memory store of pyramids.

    Pyramids returned by the store are live views: change them through the
    store methods so that events are raised. Tiles belong to the mosaic
    instance they were written to and are discarded once that instance is no
    longer part of its pyramid.
    """

    def __init__(self, identifier: Optional[str] = None, config: Optional[StoreConfig] = None) -> None:
        super().__init__()
        self.config = config or StoreConfig()
        self.identifier = identifier or self.config.identifier or str(uuid.uuid4())
        self._pyramids: Dict[str, InMemoryPyramid] = {}
        self._tiles: Dict[TileKey, TileEntry] = {}
        self._state_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Pyramids
    # ------------------------------------------------------------------
    def pyramids(self) -> List[InMemoryPyramid]:
        with self._state_lock:
            return list(self._pyramids.values())

    def get_pyramid(self, pyramid_id: str) -> InMemoryPyramid:
        with self._state_lock:
            try:
                return self._pyramids[pyramid_id]
            except KeyError as exc:
                raise NotFoundError(f"No pyramid '{pyramid_id}' in store '{self.identifier}'", cause=exc) from exc

    def create_pyramid(
        self,
        crs: Optional[CRSLike],
        identifier: Optional[str] = None,
        format: Optional[str] = None,
    ) -> InMemoryPyramid:
        pyramid = InMemoryPyramid(crs, identifier)
        pyramid.format = format if format is not None else self.config.format_tag()
        with self._state_lock:
            if pyramid.identifier in self._pyramids:
                raise InvalidArgumentError(f"Pyramid '{pyramid.identifier}' already exists")
            self._pyramids[pyramid.identifier] = pyramid
        logger.debug(f"Created pyramid {pyramid.identifier} in store {self.identifier}")
        self.send_event(ManagementEvent.pyramid_added(self.identifier, pyramid.identifier))
        return pyramid

    def set_pyramid_format(self, pyramid_id: str, format: Optional[str]) -> ManagementEvent:
        with self._state_lock:
            self.get_pyramid(pyramid_id).format = format
        event = ManagementEvent.pyramid_updated(self.identifier, pyramid_id)
        self.send_event(event)
        return event

    def delete_pyramid(self, pyramid_id: str) -> ManagementEvent:
        with self._state_lock:
            pyramid = self.get_pyramid(pyramid_id)
            for mosaic in pyramid.mosaics():
                self._tiles.pop((pyramid_id, mosaic.identifier), None)
            del self._pyramids[pyramid_id]
        logger.debug(f"Deleted pyramid {pyramid_id} from store {self.identifier}")
        event = ManagementEvent.pyramid_deleted(self.identifier, pyramid_id)
        self.send_event(event)
        return event

    # ------------------------------------------------------------------
    # Mosaics
    # ------------------------------------------------------------------
    def create_mosaic(self, pyramid_id: str, mosaic: Mosaic) -> Mosaic:
        with self._state_lock:
            self.get_pyramid(pyramid_id).add_mosaic(mosaic)
            self._tiles[(pyramid_id, mosaic.identifier)] = (mosaic, {})
        self.send_event(ManagementEvent.mosaic_added(self.identifier, pyramid_id, mosaic.identifier))
        return mosaic

    def update_mosaic(self, pyramid_id: str, mosaic: Mosaic) -> ManagementEvent:
        """
        Replace the mosaic that has the same identifier as ``mosaic``.

        Existing tiles are kept, except those falling outside the new grid
        when tile validation is enabled.
        """
        key = (pyramid_id, mosaic.identifier)
        with self._state_lock:
            self.get_pyramid(pyramid_id).replace_mosaic(mosaic)
            entry = self._tiles.get(key)
            tiles = entry[1] if entry is not None else {}
            if self.config.validate_tiles and isinstance(mosaic, GridMosaic):
                tiles = {p: data for p, data in tiles.items() if mosaic.contains_tile(p)}
            self._tiles[key] = (mosaic, tiles)
        logger.debug(f"Updated mosaic {mosaic.identifier} in pyramid {pyramid_id}")
        event = ManagementEvent.mosaic_updated(self.identifier, pyramid_id, mosaic.identifier)
        self.send_event(event)
        return event

    def delete_mosaic(self, pyramid_id: str, mosaic_id: str) -> ManagementEvent:
        with self._state_lock:
            self.get_pyramid(pyramid_id).remove_mosaic(mosaic_id)
            self._tiles.pop((pyramid_id, mosaic_id), None)
        event = ManagementEvent.mosaic_deleted(self.identifier, pyramid_id, mosaic_id)
        self.send_event(event)
        return event

    # ------------------------------------------------------------------
    # Tiles
    # ------------------------------------------------------------------
    def _prune_tiles(self) -> None:
        live = {
            (pyramid.identifier, mosaic.identifier): mosaic
            for pyramid in self._pyramids.values()
            for mosaic in pyramid.mosaics()
        }
        stale = [key for key, (owner, _) in self._tiles.items() if live.get(key) is not owner]
        for key in stale:
            del self._tiles[key]
        if stale:
            logger.debug(f"Dropped tiles of {len(stale)} detached mosaic(s)")

    def _tile_map(self, pyramid_id: str, mosaic_id: str) -> Dict[TilePosition, bytes]:
        mosaic = self.get_pyramid(pyramid_id).get_mosaic(mosaic_id)
        self._prune_tiles()
        key = (pyramid_id, mosaic.identifier)
        if key not in self._tiles:
            self._tiles[key] = (mosaic, {})
        return self._tiles[key][1]

    def _check_positions(self, mosaic: Mosaic, positions: Iterable[TilePosition]) -> None:
        if not self.config.validate_tiles or not isinstance(mosaic, GridMosaic):
            return
        outside = [p for p in positions if not mosaic.contains_tile(p)]
        if outside:
            raise InvalidArgumentError(
                f"Tiles {outside} are outside the {mosaic.grid_size} grid of mosaic '{mosaic.identifier}'"
            )

    def write_tiles(self, pyramid_id: str, mosaic_id: str, tiles: Mapping[TilePosition, bytes]) -> ContentEvent:
        """
        Store tile payloads, replacing any existing tile at the same position.

        Returns:
            The raised event: TILE_ADD when every position was empty, TILE_UPDATE otherwise
        """
        if not tiles:
            raise InvalidArgumentError("No tiles to write")
        positions = [(int(col), int(row)) for col, row in tiles]
        with self._state_lock:
            mosaic = self.get_pyramid(pyramid_id).get_mosaic(mosaic_id)
            self._check_positions(mosaic, positions)
            tile_map = self._tile_map(pyramid_id, mosaic_id)
            replaced = any(position in tile_map for position in positions)
            for position, data in zip(positions, tiles.values()):
                tile_map[position] = data
        logger.debug(f"Wrote {len(positions)} tile(s) to {pyramid_id}/{mosaic_id}")
        factory = ContentEvent.tiles_updated if replaced else ContentEvent.tiles_added
        event = factory(self.identifier, pyramid_id, mosaic_id, positions)
        self.send_event(event)
        return event

    def delete_tiles(self, pyramid_id: str, mosaic_id: str, positions: Iterable[TilePosition]) -> ContentEvent:
        removed: List[TilePosition] = []
        with self._state_lock:
            tile_map = self._tile_map(pyramid_id, mosaic_id)
            for position in positions:
                if tile_map.pop(tuple(position), None) is not None:  # type: ignore[arg-type]
                    removed.append(tuple(position))  # type: ignore[arg-type]
        event = ContentEvent.tiles_deleted(self.identifier, pyramid_id, mosaic_id, removed)
        self.send_event(event)
        return event

    def read_tile(self, pyramid_id: str, mosaic_id: str, position: TilePosition) -> bytes:
        with self._state_lock:
            tile_map = self._tile_map(pyramid_id, mosaic_id)
            try:
                return tile_map[tuple(position)]  # type: ignore[index]
            except KeyError as exc:
                raise NotFoundError(f"No tile {position} in {pyramid_id}/{mosaic_id}", cause=exc) from exc

    def tile_positions(self, pyramid_id: str, mosaic_id: str) -> List[TilePosition]:
        with self._state_lock:
            return sorted(self._tile_map(pyramid_id, mosaic_id))

    def notify_data_updated(self) -> ContentEvent:
        """Announce that content changed by means other than the tile methods."""
        event = ContentEvent.data_updated(self.identifier)
        self.send_event(event)
        return event

    # ------------------------------------------------------------------
    # Extent
    # ------------------------------------------------------------------
    def envelope(self) -> Optional[Envelope]:
        """Union of all pyramid envelopes in the configured default CRS."""
        envelopes = [env for env in (p.envelope() for p in self.pyramids()) if env is not None]
        return aggregate_envelopes(envelopes, crs=to_crs(self.config.default_crs))
