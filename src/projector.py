"""Coordinate projector: reference-image pixels <-> displayed-image pixels.

Projection is a pure proportional scale. Mirroring is left to the
renderer (see render_transform); projected coordinates are never flipped
here.
"""

import math
from typing import List, Optional

from config.settings import settings
from src.models import (
    CoordinateCatalog,
    DiagramConfig,
    Dimensions,
    DisplayPosition,
    Finding,
    ProjectedFinding,
    ReferenceCoordinate,
)

MIRROR_TRANSFORM = "scaleX(-1)"


def _usable(dims: Optional[Dimensions]) -> bool:
    return dims is not None and dims.width > 0 and dims.height > 0


def project(
    coord: ReferenceCoordinate,
    reference: Dimensions,
    display: Optional[Dimensions],
) -> Optional[DisplayPosition]:
    """Scale a reference coordinate to the displayed image.

    Returns None while the display size is unknown.
    """
    if not _usable(display):
        return None
    return DisplayPosition(
        left=coord.x / reference.width * display.width,
        top=coord.y / reference.height * display.height,
    )


def project_findings(
    findings: List[Finding],
    diagram: DiagramConfig,
    display: Optional[Dimensions],
) -> Optional[List[ProjectedFinding]]:
    """Project findings onto `diagram` as shown at `display` size.

    Findings are numbered from 1 in list order. Returns None while the
    display size is unknown.
    """
    if not _usable(display):
        return None
    return [
        ProjectedFinding(
            display_position=project(f.reference_coordinate, diagram.reference_dimensions, display),
            index=i,
            finding=f,
        )
        for i, f in enumerate(findings, start=1)
    ]


def render_transform(diagram: Optional[DiagramConfig]) -> Optional[str]:
    """CSS transform the renderer applies to the image and its overlay layer."""
    if diagram is not None and diagram.mirrored:
        return MIRROR_TRANSFORM
    return None


def mirror_position(position: DisplayPosition, display_width: float) -> DisplayPosition:
    """Horizontally flip a position, for renderers that do not apply a transform."""
    return DisplayPosition(left=display_width - position.left, top=position.top)


def unproject(
    position: DisplayPosition,
    reference: Dimensions,
    display: Dimensions,
) -> ReferenceCoordinate:
    """Map a display point (e.g. a click) back to reference pixels."""
    return ReferenceCoordinate(
        x=position.left / display.width * reference.width,
        y=position.top / display.height * reference.height,
    )


def nearest_body_part(
    point: ReferenceCoordinate,
    catalog: CoordinateCatalog,
    max_distance: Optional[float] = None,
) -> Optional[str]:
    """Closest catalog key to `point` within `max_distance` reference pixels."""
    if max_distance is None:
        max_distance = settings.HIT_TEST_RADIUS_PX

    best_key = None
    best_distance = math.inf
    for key in catalog.keys():
        coord = catalog.get(key)
        distance = math.hypot(coord.x - point.x, coord.y - point.y)
        if distance < best_distance:
            best_key, best_distance = key, distance

    if best_key is None or best_distance > max_distance:
        return None
    return best_key
