"""Pyramid abstractions: identified, CRS-bound collections of mosaics."""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Protocol

from pyproj import CRS

from .core import aggregate_envelopes, to_string_tree
from .errors import InvalidArgumentError, NotFoundError
from .mosaic import Mosaic
from .types import CRSLike, Envelope, crs_label, to_crs

__all__ = [
    "PyramidSource",
    "AbstractPyramid",
    "InMemoryPyramid",
    "compute_envelope",
    "render_pyramid",
]

logger = logging.getLogger(__name__)


class PyramidSource(Protocol):
    """Anything that can enumerate the mosaics of one pyramid."""

    @property
    def identifier(self) -> str:
        ...

    @property
    def crs(self) -> CRS:
        ...

    def mosaics(self) -> Iterable[Mosaic]:
        ...


def compute_envelope(source: PyramidSource) -> Optional[Envelope]:
    """
    Aggregate extent of all mosaics of ``source``.

    Returns:
        Envelope in the pyramid CRS bounding every mosaic, or None when the
        pyramid has no mosaics

    Raises:
        InconsistentDimensionError: If mosaic envelopes differ in dimension
        InvalidArgumentError: If a mosaic envelope cannot be projected into the pyramid CRS
    """
    return aggregate_envelopes((mosaic.envelope for mosaic in source.mosaics()), crs=source.crs)


def render_pyramid(source: PyramidSource) -> str:
    """Debug rendering: type, CRS and identifier followed by the mosaic tree."""
    label = f"{type(source).__name__} {crs_label(source.crs)} {source.identifier}"
    return to_string_tree(label, source.mosaics())


class AbstractPyramid(ABC):
    """
    Base class for pyramids.

    Subclasses supply :meth:`mosaics`; identity, CRS, format, envelope and
    rendering are handled here.
    """

    def __init__(self, crs: Optional[CRSLike], identifier: Optional[str] = None) -> None:
        self._crs = to_crs(crs)
        self._identifier = identifier if identifier else str(uuid.uuid4())
        self.format: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def crs(self) -> CRS:
        return self._crs

    @abstractmethod
    def mosaics(self) -> Iterable[Mosaic]:
        """Mosaics currently belonging to this pyramid."""

    def envelope(self) -> Optional[Envelope]:
        return compute_envelope(self)

    def __str__(self) -> str:
        return render_pyramid(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r}, crs={crs_label(self.crs)!r})"


class InMemoryPyramid(AbstractPyramid):
    """Pyramid keeping its mosaics in insertion order."""

    def __init__(
        self,
        crs: Optional[CRSLike],
        identifier: Optional[str] = None,
        mosaics: Optional[Iterable[Mosaic]] = None,
    ) -> None:
        super().__init__(crs, identifier)
        self._mosaics: Dict[str, Mosaic] = {}
        for mosaic in mosaics or ():
            self.add_mosaic(mosaic)

    def mosaics(self) -> List[Mosaic]:
        return list(self._mosaics.values())

    def add_mosaic(self, mosaic: Mosaic) -> Mosaic:
        if mosaic.identifier in self._mosaics:
            raise InvalidArgumentError(
                f"Mosaic '{mosaic.identifier}' already exists in pyramid '{self.identifier}'"
            )
        self._mosaics[mosaic.identifier] = mosaic
        logger.debug(f"Added mosaic {mosaic.identifier} to pyramid {self.identifier}")
        return mosaic

    def get_mosaic(self, mosaic_id: str) -> Mosaic:
        try:
            return self._mosaics[mosaic_id]
        except KeyError as exc:
            raise NotFoundError(f"No mosaic '{mosaic_id}' in pyramid '{self.identifier}'", cause=exc) from exc

    def remove_mosaic(self, mosaic_id: str) -> Mosaic:
        mosaic = self.get_mosaic(mosaic_id)
        del self._mosaics[mosaic_id]
        logger.debug(f"Removed mosaic {mosaic_id} from pyramid {self.identifier}")
        return mosaic

    def replace_mosaic(self, mosaic: Mosaic) -> Mosaic:
        """Swap in ``mosaic`` for the existing mosaic with the same identifier, keeping its position."""
        previous = self.get_mosaic(mosaic.identifier)
        self._mosaics[mosaic.identifier] = mosaic
        logger.debug(f"Replaced mosaic {mosaic.identifier} in pyramid {self.identifier}")
        return previous
