"""Pixel-space geometry shared by the detection stages.

Boxes use inclusive bounds: a box covering a single pixel has
``min_x == max_x`` and ``min_y == max_y``.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Point:
    """Integer pixel coordinate."""
    x: int
    y: int


@dataclass(frozen=True)
class RegionBox:
    """Axis-aligned rectangle with inclusive pixel bounds."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return max(0, self.max_x - self.min_x + 1)

    @property
    def height(self) -> int:
        return max(0, self.max_y - self.min_y + 1)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    def union(self, other: "RegionBox") -> "RegionBox":
        return RegionBox(
            min_x=min(self.min_x, other.min_x),
            min_y=min(self.min_y, other.min_y),
            max_x=max(self.max_x, other.max_x),
            max_y=max(self.max_y, other.max_y),
        )

    def intersect(self, other: "RegionBox") -> Optional["RegionBox"]:
        """Overlapping box, or None when the boxes are disjoint."""
        box = RegionBox(
            min_x=max(self.min_x, other.min_x),
            min_y=max(self.min_y, other.min_y),
            max_x=min(self.max_x, other.max_x),
            max_y=min(self.max_y, other.max_y),
        )
        if box.is_empty:
            return None
        return box

    def shrink(self, amount: int) -> "RegionBox":
        """Move every side inward by ``amount`` (may produce an empty box)."""
        return RegionBox(
            min_x=self.min_x + amount,
            min_y=self.min_y + amount,
            max_x=self.max_x - amount,
            max_y=self.max_y - amount,
        )

    @classmethod
    def full_image(cls, width: int, height: int) -> "RegionBox":
        return cls(0, 0, width - 1, height - 1)


def intersection_area(a: RegionBox, b: RegionBox) -> int:
    overlap = a.intersect(b)
    return overlap.area if overlap else 0


def iou(a: RegionBox, b: RegionBox) -> float:
    """Intersection over union of two boxes."""
    inter = intersection_area(a, b)
    if inter == 0:
        return 0.0
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def overlap_over_smaller(a: RegionBox, b: RegionBox) -> float:
    """Fraction of the smaller box covered by the other one."""
    inter = intersection_area(a, b)
    if inter == 0:
        return 0.0
    smaller = min(a.area, b.area)
    if smaller <= 0:
        return 0.0
    return inter / smaller


def rect_gap(a: RegionBox, b: RegionBox) -> int:
    """Manhattan gap between two boxes, 0 when they touch or overlap."""
    dx = 0
    if a.max_x < b.min_x:
        dx = b.min_x - a.max_x
    elif b.max_x < a.min_x:
        dx = a.min_x - b.max_x

    dy = 0
    if a.max_y < b.min_y:
        dy = b.min_y - a.max_y
    elif b.max_y < a.min_y:
        dy = a.min_y - b.max_y

    return dx + dy


def merge_until_max_regions(regions: List[RegionBox], max_count: int) -> List[RegionBox]:
    """
    Union the closest pair of boxes until at most ``max_count`` remain.

    Args:
        regions: Boxes to merge (not modified)
        max_count: Upper bound on the result size, <= 0 disables merging

    Returns:
        New list with at most ``max_count`` boxes
    """
    merged = list(regions)
    if max_count <= 0 or len(merged) <= max_count:
        return merged

    while len(merged) > max_count:
        best = None
        best_gap = None
        for i in range(len(merged)):
            for j in range(i + 1, len(merged)):
                gap = rect_gap(merged[i], merged[j])
                if best_gap is None or gap < best_gap:
                    best_gap = gap
                    best = (i, j)

        i, j = best
        merged[i] = merged[i].union(merged[j])
        del merged[j]

    return merged
