"""
Core envelope operations shared by pyramids and stores.
"""

import logging
from typing import Any, Iterable, Optional, Tuple

import numpy as np
from pyproj import CRS
from pyproj.exceptions import ProjError
from pyproj.transformer import Transformer

from .errors import InvalidArgumentError
from .types import CRSLike, Envelope, crs_label, to_crs

logger = logging.getLogger(__name__)


# Envelope Operations


def envelope_union(env1: Envelope, env2: Envelope) -> Envelope:
    """
    Create union of two envelopes without modifying either.

    Args:
        env1: First envelope
        env2: Second envelope

    Returns:
        New envelope covering both inputs

    Raises:
        InconsistentDimensionError: If envelopes have different dimensions
        InvalidArgumentError: If envelopes have different CRS
    """
    return env1.model_copy().add(env2)


def transform_envelope(envelope: Envelope, dst_crs: CRSLike) -> Envelope:
    """
    Transform an envelope into another CRS.

    Envelopes without a CRS, or already in ``dst_crs``, are returned as a copy
    labelled with ``dst_crs``. Reprojection densifies the edges so that the
    result covers the whole source region. A result that wraps around the
    antimeridian is widened to the full x range of the target domain, and
    non-finite ordinates are clamped to that domain.

    Args:
        envelope: Envelope to transform
        dst_crs: Destination coordinate reference system

    Raises:
        InvalidArgumentError: If a reprojection is needed for a non 2-D envelope,
            or the result cannot be bounded inside the target domain
    """
    target = to_crs(dst_crs)
    if envelope.crs is None or envelope.crs == target:
        return Envelope(lower=envelope.lower, upper=envelope.upper, crs=target)

    if envelope.dimension != 2:
        raise InvalidArgumentError(
            f"Reprojection supports 2-D envelopes only, got a {envelope.dimension}-D envelope"
        )

    logger.debug(f"Reprojecting envelope {envelope} from {crs_label(envelope.crs)} to {crs_label(target)}")
    transformer = Transformer.from_crs(envelope.crs, target, always_xy=True)
    try:
        xmin, ymin, xmax, ymax = transformer.transform_bounds(*envelope.bounds, densify_pts=21)
    except ProjError as exc:
        raise InvalidArgumentError(
            f"Cannot reproject {envelope} to {crs_label(target)}", cause=exc
        ) from exc

    bounds = np.array([xmin, ymin, xmax, ymax], dtype=float)
    wraps = bool(np.isfinite(bounds[[0, 2]]).all() and bounds[0] > bounds[2])
    if wraps or not np.isfinite(bounds).all():
        domain = np.array(crs_domain(target), dtype=float)
        if wraps:
            # crossing the antimeridian: cover the full x range of the target
            logger.warning(f"Envelope {envelope} wraps around in {crs_label(target)}, widening x to the domain")
            bounds[[0, 2]] = domain[[0, 2]]
        bounds = np.where(np.isfinite(bounds), bounds, domain)
        if bounds[0] > bounds[2] or bounds[1] > bounds[3]:
            raise InvalidArgumentError(f"Cannot bound {envelope} inside the domain of {crs_label(target)}")

    return Envelope(lower=(bounds[0], bounds[1]), upper=(bounds[2], bounds[3]), crs=target)


def crs_domain(crs: CRS) -> Tuple[float, float, float, float]:
    """
    Valid (min_x, min_y, max_x, max_y) of ``crs`` in its own units, x first.

    Geographic CRS span the whole globe; projected CRS use their area of use.

    Raises:
        InvalidArgumentError: If the domain is unknown or not a finite, non-wrapping box
    """
    if crs.is_geographic:
        return -180.0, -90.0, 180.0, 90.0

    area = crs.area_of_use
    if area is None:
        raise InvalidArgumentError(f"{crs_label(crs)} declares no area of use")
    transformer = Transformer.from_crs(CRS.from_epsg(4326), crs, always_xy=True)
    try:
        domain = transformer.transform_bounds(*area.bounds, densify_pts=21)
    except ProjError as exc:
        raise InvalidArgumentError(f"Cannot compute the domain of {crs_label(crs)}", cause=exc) from exc
    if not np.isfinite(domain).all() or domain[0] > domain[2] or domain[1] > domain[3]:
        raise InvalidArgumentError(f"{crs_label(crs)} has no usable finite domain: {domain}")
    return tuple(float(v) for v in domain)  # type: ignore[return-value]


def aggregate_envelopes(envelopes: Iterable[Envelope], crs: Optional[CRS] = None) -> Optional[Envelope]:
    """
    Fold a sequence of envelopes into the envelope covering all of them.

    The first envelope is copied, never aliased; the rest are added in
    iteration order.

    Args:
        envelopes: Envelopes to aggregate
        crs: Frame of the result; envelopes in another CRS are reprojected into it

    Returns:
        Aggregate envelope, or None when ``envelopes`` is empty
    """
    result: Optional[Envelope] = None
    for envelope in envelopes:
        if crs is not None:
            # transform_envelope always builds a new instance
            envelope = transform_envelope(envelope, crs)
        if result is None:
            result = envelope.model_copy()
        else:
            result.add(envelope)
    return result


# Diagnostics


def to_string_tree(label: str, children: Iterable[Any]) -> str:
    """
    Render ``label`` followed by one tree branch per child.

    Multi-line child renderings are indented under their branch.
    """
    lines = [label]
    items = list(children)
    for index, child in enumerate(items):
        last = index == len(items) - 1
        branch, indent = ("└─ ", "   ") if last else ("├─ ", "│  ")
        child_lines = str(child).splitlines() or [""]
        lines.append(branch + child_lines[0])
        lines.extend(indent + line for line in child_lines[1:])
    return "\n".join(lines)
