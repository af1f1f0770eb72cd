"""Board-surface to screen-space mapping.

Board-surface coordinates are normalized to 0-1000 on both axes, independent
of the camera. The board's footprint in the frame is a quadrilateral given by
its four screen-space corners; a point is placed by bilinear interpolation
over that quadrilateral. This is exact for parallelograms and close enough for
the mild trapezoids a hand-held camera produces (the corners are themselves a
model estimate, not a calibration).
"""

from __future__ import annotations

from typing import Tuple

from .models import Corners, Point

SURFACE_SCALE = 1000.0


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def project(u: float, v: float, corners: Corners) -> Point:
    """Map board-surface ``(u, v)`` to a screen point.

    Values outside 0-1000 extrapolate linearly; they are not clamped.
    """
    tu = u / SURFACE_SCALE
    tv = v / SURFACE_SCALE
    tl, tr, br, bl = corners.top_left, corners.top_right, corners.bottom_right, corners.bottom_left
    top_x = _lerp(tl.x, tr.x, tu)
    top_y = _lerp(tl.y, tr.y, tu)
    bottom_x = _lerp(bl.x, br.x, tu)
    bottom_y = _lerp(bl.y, br.y, tu)
    return Point(x=_lerp(top_x, bottom_x, tv), y=_lerp(top_y, bottom_y, tv))


def project_point(p: Point, corners: Corners) -> Point:
    return project(p.x, p.y, corners)


def project_box(xmin: float, ymin: float, xmax: float, ymax: float, corners: Corners) -> Tuple[Point, Point, Point, Point]:
    """Project an axis-aligned board-surface box; returns TL, TR, BR, BL.

    The box is taken as given. An inverted box (xmin > xmax) simply comes
    out mirrored.
    """
    return (
        project(xmin, ymin, corners),
        project(xmax, ymin, corners),
        project(xmax, ymax, corners),
        project(xmin, ymax, corners),
    )


def box_centroid(xmin: float, ymin: float, xmax: float, ymax: float, corners: Corners) -> Point:
    return project((xmin + xmax) / 2, (ymin + ymax) / 2, corners)
