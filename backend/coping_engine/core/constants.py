"""Fixed coping dimensions. All lengths are millimeters."""

from __future__ import annotations

import math

GROUT_WIDTH_MM = 5.0

# Thinnest cut row worth laying against a boundary
MIN_BOUNDARY_CUT_ROW_MM = 100.0

# Kept between the outermost row and a boundary while dragging
BOUNDARY_SAFETY_MARGIN_MM = 2.0

# Turning angle above which an outline vertex counts as a corner
CORNER_ANGLE_THRESHOLD_DEG = 45.0

MIN_CUT_MM = 200.0


def min_center_cut(along: float) -> float:
    """Smallest acceptable centre cut for a paver of the given along-edge size.

    A 600mm paver may not be cut below 300mm, anything smaller not below 200mm.
    """
    return max(MIN_CUT_MM, float(math.floor(along / 2)))
