"""Conversions between 0-1000 relative boxes and pixel coordinates.

Room rectangles leave the detectors as ``[ymin, xmin, ymax, xmax]`` on a
0-1000 scale so that classical and model-based detectors are
interchangeable; consumers that draw on a cropped image need pixels.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from floorplan_vision.schemas.floorplan import DetectedRoom, Room, RoomStatus, RoomType
from floorplan_vision.services.geometry import RegionBox

logger = logging.getLogger(__name__)


def to_1000(value: int, total: int) -> int:
    """Pixel coordinate -> 0-1000 relative coordinate (truncated, clamped)."""
    if total <= 0:
        return 0
    out = int(value / total * 1000.0)
    return max(0, min(1000, out))


def from_1000(value: int, total: int) -> int:
    """0-1000 relative coordinate -> pixel coordinate (truncated)."""
    return int(value / 1000.0 * total)


def parse_room_type(value: Optional[str]) -> RoomType:
    """Map a free-form type string onto RoomType, UNKNOWN if unrecognised."""
    if not value:
        return RoomType.UNKNOWN
    try:
        return RoomType(value.strip().upper())
    except ValueError:
        return RoomType.UNKNOWN


def calculate_crop_and_remap(
    img_w: int,
    img_h: int,
    content_box: Optional[Sequence[int]],
    rooms: Iterable[DetectedRoom]
) -> Tuple[RegionBox, List[Room]]:
    """
    Compute the crop rectangle and remap rooms into it.

    Args:
        img_w: Original image width in pixels
        img_h: Original image height in pixels
        content_box: ``[ymin, xmin, ymax, xmax]`` on 0-1000, or None for the full image
        rooms: Rooms with 0-1000 ``[ymin, xmin, ymax, xmax]`` rects

    Returns:
        Tuple of (crop box in pixels, rooms with ``[x, y, w, h]`` relative to the crop)
    """
    # Exclusive pixel bounds of the crop
    c_ymin, c_xmin, c_ymax, c_xmax = 0, 0, img_h, img_w
    if content_box is not None and len(content_box) == 4:
        c_ymin = from_1000(content_box[0], img_h)
        c_xmin = from_1000(content_box[1], img_w)
        c_ymax = from_1000(content_box[2], img_h)
        c_xmax = from_1000(content_box[3], img_w)
    else:
        logger.info("No content box given, cropping to the full image")

    c_xmin = max(0, c_xmin)
    c_ymin = max(0, c_ymin)
    c_xmax = min(img_w, c_xmax)
    c_ymax = min(img_h, c_ymax)

    crop = RegionBox(c_xmin, c_ymin, c_xmax - 1, c_ymax - 1)

    remapped = []
    for room in rooms:
        if len(room.rect) != 4:
            continue

        r_ymin = from_1000(room.rect[0], img_h)
        r_xmin = from_1000(room.rect[1], img_w)
        r_ymax = from_1000(room.rect[2], img_h)
        r_xmax = from_1000(room.rect[3], img_w)

        width = r_xmax - r_xmin
        height = r_ymax - r_ymin
        if width <= 0 or height <= 0:
            continue

        remapped.append(Room(
            name=room.name,
            type=parse_room_type(room.type),
            rect=[r_xmin - c_xmin, r_ymin - c_ymin, width, height],
            status=RoomStatus.AVAILABLE
        ))

    return crop, remapped
