"""tilepyramid - multi-resolution pyramid tile storage with change events."""

from ._version import __version__

from .config import StoreConfig
from .core import aggregate_envelopes, crs_domain, envelope_union, to_string_tree, transform_envelope
from .errors import (
    ConfigurationError,
    InconsistentDimensionError,
    InvalidArgumentError,
    NotFoundError,
    TilePyramidError,
)
from .events import (
    ContentEvent,
    ContentType,
    CountingListener,
    EventCategory,
    EventSupport,
    ManagementEvent,
    ManagementType,
    StoreEvent,
    StoreListener,
    classify,
    on_event,
)
from .mosaic import GridMosaic, Mosaic, StaticMosaic
from .pyramid import AbstractPyramid, InMemoryPyramid, PyramidSource, compute_envelope, render_pyramid
from .store import PyramidStore
from .types import CRSLike, Envelope, Format, TilePosition, crs_label, to_crs

__all__ = [
    "__version__",
    "StoreConfig",
    "aggregate_envelopes",
    "crs_domain",
    "envelope_union",
    "to_string_tree",
    "transform_envelope",
    "ConfigurationError",
    "InconsistentDimensionError",
    "InvalidArgumentError",
    "NotFoundError",
    "TilePyramidError",
    "ContentEvent",
    "ContentType",
    "CountingListener",
    "EventCategory",
    "EventSupport",
    "ManagementEvent",
    "ManagementType",
    "StoreEvent",
    "StoreListener",
    "classify",
    "on_event",
    "GridMosaic",
    "Mosaic",
    "StaticMosaic",
    "AbstractPyramid",
    "InMemoryPyramid",
    "PyramidSource",
    "compute_envelope",
    "render_pyramid",
    "PyramidStore",
    "CRSLike",
    "Envelope",
    "Format",
    "TilePosition",
    "crs_label",
    "to_crs",
]
