"""
ROI placement from a user-drawn region.
"""

from typing import Optional, Sequence

import numpy as np

from boxdrop.models import RoiRect


def bounding_box(points: Sequence[Sequence[float]]) -> tuple[int, int, int, int]:
    """
    Axis-aligned bounding box of a set of points.

    Args:
        points: Sequence of (x, y) points

    Returns:
        (xmin, ymin, xmax, ymax) as integers, min floored and max ceiled
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise ValueError("Cannot compute the bounding box of an empty region")

    xmin, ymin = np.floor(pts.min(axis=0)).astype(int)
    xmax, ymax = np.ceil(pts.max(axis=0)).astype(int)
    return int(xmin), int(ymin), int(xmax), int(ymax)


def compute_roi(
    region: Optional[Sequence[Sequence[float]]],
    size: int,
) -> Optional[RoiRect]:
    """
    Center a ``size`` x ``size`` square on the bounding box of ``region``.

    Centers use floor division, so odd extents round toward negative infinity.

    Args:
        region: Points of the user-drawn annotation, or None
        size: Side length of the ROI in pixels

    Returns:
        RoiRect, or None if no region was supplied
    """
    if size <= 0:
        raise ValueError(f"ROI size must be positive, got {size}")
    if region is None or len(region) == 0:
        return None

    xmin, ymin, xmax, ymax = bounding_box(region)
    x_center = (xmin + xmax) // 2
    y_center = (ymin + ymax) // 2

    return RoiRect(
        x=x_center - size // 2,
        y=y_center - size // 2,
        size=size,
    )
