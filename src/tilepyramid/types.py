"""
Type definitions and models for multi-resolution tile storage.
"""

from enum import Enum
from typing import Any, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pyproj import CRS
from pyproj.exceptions import CRSError

from .errors import InconsistentDimensionError, InvalidArgumentError

CRSLike = Union[CRS, str, int]
TilePosition = Tuple[int, int]  # (column, row)


class Format(str, Enum):
    """Common tile payload formats."""
    GEOTIFF = "image/tiff"
    PNG = "image/png"
    JPEG = "image/jpeg"


def to_crs(crs: Optional[CRSLike]) -> CRS:
    """
    Coerce a user supplied CRS into a ``pyproj.CRS``.

    Args:
        crs: ``pyproj.CRS``, authority string ("EPSG:4326"), WKT or EPSG integer

    Returns:
        pyproj CRS instance

    Raises:
        InvalidArgumentError: If the CRS is missing or cannot be parsed
    """
    if crs is None:
        raise InvalidArgumentError("Coordinate reference system is required")
    if isinstance(crs, CRS):
        return crs
    try:
        return CRS.from_user_input(crs)
    except CRSError as exc:
        raise InvalidArgumentError(f"Invalid CRS: {crs}", cause=exc) from exc


def crs_label(crs: CRS) -> str:
    """Human readable rendering of a CRS, its name if available, else its code."""
    if crs.name:
        return crs.name
    authority = crs.to_authority()
    if authority is not None:
        return f"{authority[0]}:{authority[1]}"
    return crs.to_string()


class Envelope(BaseModel):
    """Axis-aligned bounding region, optionally tied to a CRS."""
    lower: Tuple[float, ...] = Field(..., description="Lower corner, one ordinate per dimension")
    upper: Tuple[float, ...] = Field(..., description="Upper corner, one ordinate per dimension")
    crs: Optional[CRS] = Field(None, description="Coordinate Reference System")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("crs", mode="before")
    @classmethod
    def coerce_crs(cls, value: Any) -> Optional[CRS]:
        if value is None:
            return None
        return to_crs(value)

    @model_validator(mode="after")
    def validate_corners(self):
        """Validate that both corners agree in dimension and lower <= upper."""
        if not self.lower:
            raise ValueError("Envelope needs at least one dimension")
        if len(self.lower) != len(self.upper):
            raise ValueError(
                f"lower and upper corners differ in dimension: {len(self.lower)} vs {len(self.upper)}"
            )
        for i, (lo, hi) in enumerate(zip(self.lower, self.upper)):
            if lo > hi:
                raise ValueError(f"lower ordinate {lo} exceeds upper ordinate {hi} in dimension {i}")
        return self

    @classmethod
    def from_bounds(
        cls,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        crs: Optional[CRSLike] = None,
    ) -> "Envelope":
        """Create a 2-D envelope from simple coordinates."""
        return cls(lower=(min_x, min_y), upper=(max_x, max_y), crs=crs)

    @property
    def dimension(self) -> int:
        return len(self.lower)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of a 2-D envelope."""
        if self.dimension != 2:
            raise InconsistentDimensionError(f"bounds requires a 2-D envelope, got {self.dimension}-D")
        return self.lower[0], self.lower[1], self.upper[0], self.upper[1]

    def span(self, dim: int) -> float:
        return self.upper[dim] - self.lower[dim]

    def _check_compatible(self, other: "Envelope") -> None:
        if self.dimension != other.dimension:
            raise InconsistentDimensionError(
                f"Cannot combine a {self.dimension}-D envelope with a {other.dimension}-D envelope"
            )
        if self.crs is not None and other.crs is not None and self.crs != other.crs:
            raise InvalidArgumentError(
                f"Cannot combine envelopes with different CRS: {crs_label(self.crs)} vs {crs_label(other.crs)}"
            )

    def add(self, other: "Envelope") -> "Envelope":
        """
        Expand this envelope in place so that it also covers ``other``.

        Args:
            other: Envelope to merge into this one

        Returns:
            This envelope, for chaining

        Raises:
            InconsistentDimensionError: If dimensions differ
            InvalidArgumentError: If both envelopes carry different CRS
        """
        self._check_compatible(other)
        self.lower = tuple(np.minimum(self.lower, other.lower).tolist())
        self.upper = tuple(np.maximum(self.upper, other.upper).tolist())
        if self.crs is None:
            self.crs = other.crs
        return self

    def contains(self, other: "Envelope") -> bool:
        """Check if ``other`` lies entirely inside this envelope."""
        self._check_compatible(other)
        return bool(
            np.all(np.asarray(self.lower) <= np.asarray(other.lower))
            and np.all(np.asarray(self.upper) >= np.asarray(other.upper))
        )

    def intersects(self, other: "Envelope") -> bool:
        """Check if this envelope shares any point with ``other``."""
        self._check_compatible(other)
        return bool(
            np.all(np.asarray(self.lower) <= np.asarray(other.upper))
            and np.all(np.asarray(self.upper) >= np.asarray(other.lower))
        )

    def __str__(self) -> str:
        lower = " ".join(f"{v:g}" for v in self.lower)
        upper = " ".join(f"{v:g}" for v in self.upper)
        return f"BOX({lower}, {upper})"
