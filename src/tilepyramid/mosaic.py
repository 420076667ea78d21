"""Mosaic protocol and the concrete mosaics used by in-memory pyramids."""

from __future__ import annotations

import uuid
from typing import Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pyproj import CRS

from .errors import InvalidArgumentError
from .types import CRSLike, Envelope, TilePosition, to_crs

__all__ = [
    "Mosaic",
    "StaticMosaic",
    "GridMosaic",
]


@runtime_checkable
class Mosaic(Protocol):
    """One resolution level of a pyramid."""

    @property
    def identifier(self) -> str:
        ...

    @property
    def envelope(self) -> Envelope:
        ...


def _new_identifier() -> str:
    return str(uuid.uuid4())


class StaticMosaic(BaseModel):
    """Mosaic whose extent is given explicitly."""

    identifier: str = Field(default_factory=_new_identifier, description="Mosaic identifier")
    envelope: Envelope = Field(..., description="Spatial extent of the mosaic")

    def __str__(self) -> str:
        return f"StaticMosaic {self.identifier} {self.envelope}"


class GridMosaic(BaseModel):
    """
    Regular grid of equally sized tiles anchored at its upper-left corner.

    The first axis grows east and the second grows south from the corner;
    any further ordinate of ``upper_left`` yields a zero-width dimension.
    """

    identifier: str = Field(default_factory=_new_identifier, description="Mosaic identifier")
    upper_left: Tuple[float, ...] = Field(..., description="Corner of tile (0, 0)")
    scale: float = Field(..., gt=0, description="CRS units per pixel")
    tile_size: Tuple[int, int] = Field(..., description="Tile (width, height) in pixels")
    grid_size: Tuple[int, int] = Field(..., description="Grid (columns, rows) in tiles")
    crs: Optional[CRS] = Field(None, description="Coordinate Reference System")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("crs", mode="before")
    @classmethod
    def coerce_crs(cls, value: Optional[CRSLike]) -> Optional[CRS]:
        return None if value is None else to_crs(value)

    @field_validator("upper_left")
    @classmethod
    def ensure_planar(cls, value: Tuple[float, ...]) -> Tuple[float, ...]:
        if len(value) < 2:
            raise ValueError("upper_left needs at least two ordinates")
        return value

    @field_validator("tile_size", "grid_size")
    @classmethod
    def ensure_positive(cls, value: Tuple[int, int]) -> Tuple[int, int]:
        if value[0] <= 0 or value[1] <= 0:
            raise ValueError("tile and grid sizes must be positive")
        return value

    @property
    def envelope(self) -> Envelope:
        tile_w, tile_h = self.tile_size
        cols, rows = self.grid_size
        ul_x, ul_y, *rest = self.upper_left
        width = self.scale * tile_w * cols
        height = self.scale * tile_h * rows
        return Envelope(
            lower=(ul_x, ul_y - height, *rest),
            upper=(ul_x + width, ul_y, *rest),
            crs=self.crs,
        )

    def contains_tile(self, position: TilePosition) -> bool:
        col, row = position
        cols, rows = self.grid_size
        return 0 <= col < cols and 0 <= row < rows

    def tile_envelope(self, position: TilePosition) -> Envelope:
        """Extent of a single tile of this mosaic."""
        if not self.contains_tile(position):
            raise InvalidArgumentError(f"Tile {position} is outside the {self.grid_size} grid")
        col, row = position
        tile_w = self.scale * self.tile_size[0]
        tile_h = self.scale * self.tile_size[1]
        ul_x, ul_y, *rest = self.upper_left
        min_x = ul_x + col * tile_w
        max_y = ul_y - row * tile_h
        return Envelope(
            lower=(min_x, max_y - tile_h, *rest),
            upper=(min_x + tile_w, max_y, *rest),
            crs=self.crs,
        )

    def __str__(self) -> str:
        return (
            f"GridMosaic {self.identifier} scale={self.scale:g} "
            f"tile={self.tile_size[0]}x{self.tile_size[1]} grid={self.grid_size[0]}x{self.grid_size[1]}"
        )
