"""Connected-component labeling of boolean masks."""

import logging
from dataclasses import dataclass, field
from typing import List

import cv2
import numpy as np

from floorplan_vision.services.geometry import RegionBox

logger = logging.getLogger(__name__)


@dataclass
class ComponentInfo:
    """Bounding box, pixel count and border contact of one component."""
    box: RegionBox
    area: int
    touches_border: bool


@dataclass
class ComponentLabels:
    """Result of one labeling pass.

    ``labels[y, x]`` is the index into ``components`` of the component that
    owns the pixel, or -1 for pixels outside the mask.
    """
    labels: np.ndarray
    components: List[ComponentInfo] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.components)


def label_components(mask: np.ndarray) -> ComponentLabels:
    """
    Label the 8-connected foreground regions of a mask.

    Label ids follow raster discovery order: the component holding the first
    foreground pixel in row-major order is 0, the next new one is 1, etc.

    Args:
        mask: Boolean mask, True = foreground

    Returns:
        Label grid and per-component info
    """
    h, w = mask.shape[:2]
    num_labels, raw_labels, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=8
    )

    if num_labels <= 1:
        return ComponentLabels(labels=np.full((h, w), -1, dtype=np.int32))

    # OpenCV numbering depends on the algorithm picked; renumber by first pixel
    present, first_index = np.unique(raw_labels.ravel(), return_index=True)
    foreground = present > 0
    order = present[foreground][np.argsort(first_index[foreground], kind="stable")]

    remap = np.full(num_labels, -1, dtype=np.int32)
    remap[order] = np.arange(order.size, dtype=np.int32)
    labels = remap[raw_labels]

    components = []
    for raw_id in order:
        left = int(stats[raw_id, cv2.CC_STAT_LEFT])
        top = int(stats[raw_id, cv2.CC_STAT_TOP])
        width = int(stats[raw_id, cv2.CC_STAT_WIDTH])
        height = int(stats[raw_id, cv2.CC_STAT_HEIGHT])
        box = RegionBox(left, top, left + width - 1, top + height - 1)
        touches = (
            box.min_x == 0 or box.min_y == 0 or
            box.max_x == w - 1 or box.max_y == h - 1
        )
        components.append(ComponentInfo(
            box=box,
            area=int(stats[raw_id, cv2.CC_STAT_AREA]),
            touches_border=touches
        ))

    logger.debug(f"Labeled {len(components)} components in {w}x{h} mask")
    return ComponentLabels(labels=labels, components=components)


def component_bounding_boxes(mask: np.ndarray) -> List[RegionBox]:
    """Bounding boxes of all 8-connected components, in discovery order."""
    return [c.box for c in label_components(mask).components]
