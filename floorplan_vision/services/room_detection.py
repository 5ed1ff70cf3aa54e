"""Classical room detection for floor plan images.

Finds rooms without any model inference by:
1. Thresholding dark strokes into a wall mask and closing small gaps
2. Labeling free space and discarding the exterior (background) regions
3. Picking room centres as peaks of the distance-to-wall transform
4. Growing a wall-bounded rectangle out of every peak
5. Labeling rectangles via OCR and suppressing duplicates

Rooms are returned as ``[ymin, xmin, ymax, xmax]`` on a 0-1000 scale.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

import cv2
import numpy as np

from floorplan_vision.core.config import Settings, settings as default_settings
from floorplan_vision.schemas.floorplan import DetectedRoom, RoomType
from floorplan_vision.services.components import ComponentInfo, label_components
from floorplan_vision.services.geometry import (
    Point,
    RegionBox,
    iou,
    merge_until_max_regions,
    overlap_over_smaller,
)
from floorplan_vision.services.layout import to_1000
from floorplan_vision.services.morphology import close_mask, invert_mask
from floorplan_vision.services.ocr_service import TextRecognizer, build_text_recognizer
from floorplan_vision.services.preprocessing import decode_image, to_grayscale

logger = logging.getLogger(__name__)

TARGET_ROOM_COUNT = 12
TARGET_ROOM_UPPER_BOUND = 16  # "12 more or less" upper tolerance

WALL_INTENSITY_THRESHOLD = 140
WALL_CLOSING_RADIUS = 1
WALL_DENSITY_THRESHOLD = 0.08  # an edge stops once 8% of it is wall

BACKGROUND_BORDER_RATIO = 0.10
BACKGROUND_AREA_RATIO = 0.05
BACKGROUND_HUGE_AREA_RATIO = 0.25

SUPPRESS_IOU = 0.50
SUPPRESS_CONTAINMENT = 0.70

_ROOM_TYPE_KEYWORDS = [
    (("meeting", "conference", "conf"), RoomType.MEETING),
    (("hall", "corridor", "lobby"), RoomType.HALLWAY),
    (("office",), RoomType.OFFICE),
]


@dataclass
class Candidate:
    """Grown rectangle waiting for overlap suppression."""
    box: RegionBox
    label: Optional[str] = None
    room_type: RoomType = RoomType.UNKNOWN


def build_wall_mask(gray: np.ndarray, threshold: int = WALL_INTENSITY_THRESHOLD) -> np.ndarray:
    """Dark strokes on a light background: wall iff intensity < threshold."""
    return gray < threshold


def distance_transform(free: np.ndarray) -> np.ndarray:
    """
    City-block distance from each free pixel to the nearest non-free pixel.

    OpenCV's two-pass L1 transform with a 3x3 mask is exact for the city-block
    metric. Pixels outside the image are not walls, so a free region with no
    wall at all keeps a large value.
    """
    d = cv2.distanceTransform(free.astype(np.uint8), cv2.DIST_L1, 3)
    return np.rint(d).astype(np.int64)


def find_background_components(
    labels: np.ndarray,
    components: List[ComponentInfo],
    w: int,
    h: int
) -> Set[int]:
    """
    Identify exterior free-space components.

    Only border-touching components qualify: those covering more than 10% of
    the border pixels and more than 5% of the image, or more than 25% of the
    image on their own. Rooms that merely touch one image edge are kept. If
    nothing qualifies, the largest border-touching component is used.

    Returns:
        Set of background component ids
    """
    background = set()
    if not components:
        return background

    border = np.concatenate([
        labels[0, :], labels[h - 1, :], labels[1:h - 1, 0], labels[1:h - 1, w - 1]
    ])
    border = border[border >= 0]
    border_count = np.bincount(border, minlength=len(components))

    total_border = max(1, 2 * (w + h) - 4)
    image_area = w * h

    for comp_id, comp in enumerate(components):
        if not comp.touches_border:
            continue
        border_ratio = border_count[comp_id] / total_border
        area_ratio = comp.area / image_area
        if (border_ratio > BACKGROUND_BORDER_RATIO and area_ratio > BACKGROUND_AREA_RATIO) or \
                area_ratio > BACKGROUND_HUGE_AREA_RATIO:
            background.add(comp_id)

    if not background:
        best_id = -1
        best_area = 0
        for comp_id, comp in enumerate(components):
            if comp.touches_border and comp.area > best_area:
                best_area = comp.area
                best_id = comp_id
        if best_id >= 0:
            logger.debug(f"No exterior component found, falling back to component {best_id}")
            background.add(best_id)

    return background


def dedupe_nearby_seeds(seeds: List[Point], min_distance: int) -> List[Point]:
    """Keep seeds in order, dropping any within ``min_distance`` of a kept one."""
    if not seeds:
        return []
    min_distance = max(4, min_distance)
    threshold_sq = min_distance * min_distance

    kept_x = np.empty(len(seeds), dtype=np.int64)
    kept_y = np.empty(len(seeds), dtype=np.int64)
    result = []
    for seed in seeds:
        n = len(result)
        if n:
            dx = kept_x[:n] - seed.x
            dy = kept_y[:n] - seed.y
            if np.any(dx * dx + dy * dy <= threshold_sq):
                continue
        kept_x[n] = seed.x
        kept_y[n] = seed.y
        result.append(seed)
    return result


def local_max_seeds(distance: np.ndarray, candidates: np.ndarray, min_peak: int) -> List[Point]:
    """
    Interior peaks of the distance field.

    A pixel is a peak if it is a candidate, its distance is at least
    ``min_peak`` and no 8-neighbour has a larger distance. Plateaus yield
    several peaks, which the dedupe pass collapses.
    """
    h, w = distance.shape[:2]
    if h < 3 or w < 3:
        return []
    min_peak = max(3, min_peak)

    center = distance[1:-1, 1:-1]
    is_peak = candidates[1:-1, 1:-1] & (center >= min_peak)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            neighbour = distance[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]
            is_peak &= neighbour <= center

    ys, xs = np.nonzero(is_peak)
    seeds = [Point(int(x) + 1, int(y) + 1) for y, x in zip(ys, xs)]
    return dedupe_nearby_seeds(seeds, min_peak)


def _edge_is_open(section: np.ndarray) -> bool:
    total = section.size
    if total < 3:
        return True
    return np.count_nonzero(section) / total < WALL_DENSITY_THRESHOLD


def grow_room_from_seed(seed: Point, wall_mask: np.ndarray) -> RegionBox:
    """
    Expand a rectangle from ``seed`` until every edge runs into a wall.

    Each iteration tries to push the left, right, top and bottom edges out by
    one pixel, independently. An edge moves if the wall fraction of the new
    row/column is below 8%.
    """
    h, w = wall_mask.shape[:2]
    max_grow = max(w, h) // 2

    min_x = max_x = seed.x
    min_y = max_y = seed.y

    for _ in range(max_grow):
        grew = False

        if min_x > 0 and _edge_is_open(wall_mask[min_y:max_y + 1, min_x - 1]):
            min_x -= 1
            grew = True

        if max_x < w - 1 and _edge_is_open(wall_mask[min_y:max_y + 1, max_x + 1]):
            max_x += 1
            grew = True

        if min_y > 0 and _edge_is_open(wall_mask[min_y - 1, min_x:max_x + 1]):
            min_y -= 1
            grew = True

        if max_y < h - 1 and _edge_is_open(wall_mask[max_y + 1, min_x:max_x + 1]):
            max_y += 1
            grew = True

        if not grew:
            break

    return RegionBox(min_x, min_y, max_x, max_y)


def infer_room_type(name: Optional[str]) -> RoomType:
    """Keyword heuristic on a room label."""
    if not name:
        return RoomType.UNKNOWN
    lowered = name.lower()
    for keywords, room_type in _ROOM_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return room_type
    return RoomType.UNKNOWN


def suppress_overlaps_and_sort(candidates: List[Candidate]) -> List[Candidate]:
    """
    Drop duplicate rectangles and return the rest in reading order.

    Larger rectangles win. A candidate is dropped when it overlaps a kept one
    with IoU >= 0.50 or when >= 70% of the smaller rectangle is covered.
    """
    ordered = sorted(
        candidates,
        key=lambda c: (-c.box.area, c.box.min_y, c.box.min_x)
    )

    kept = []
    for candidate in ordered:
        duplicate = any(
            iou(candidate.box, existing.box) >= SUPPRESS_IOU or
            overlap_over_smaller(candidate.box, existing.box) >= SUPPRESS_CONTAINMENT
            for existing in kept
        )
        if not duplicate:
            kept.append(candidate)

    kept.sort(key=lambda c: (c.box.min_y, c.box.min_x))
    return kept


class RoomDetector:
    """
    Room detector working directly on pixel grids.

    The OCR strategy is fixed at construction time; pass a
    ``NullTextRecognizer`` to run without any subprocess.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        text_recognizer: Optional[TextRecognizer] = None,
        max_rooms: Optional[int] = None
    ):
        self.settings = settings or default_settings
        self.text_recognizer = text_recognizer or build_text_recognizer(self.settings)
        self.max_rooms = self.settings.ROOM_DETECTION_MAX_ROOMS if max_rooms is None else max_rooms

    def detect_rooms(self, data: bytes) -> List[DetectedRoom]:
        """
        Detect rooms in encoded image bytes.

        Raises:
            InvalidImageError: If the bytes cannot be decoded
        """
        image = decode_image(data)
        return self.detect_rooms_in_image(image)

    def detect_rooms_in_image(self, image: np.ndarray) -> List[DetectedRoom]:
        """
        Detect rooms in a decoded image.

        Args:
            image: BGR or grayscale image

        Returns:
            Rooms in reading order, possibly empty
        """
        gray = to_grayscale(image)
        h, w = gray.shape[:2]

        wall_mask = close_mask(
            build_wall_mask(gray, self.settings.WALL_INTENSITY_THRESHOLD),
            self.settings.WALL_CLOSING_RADIUS
        )
        free_mask = invert_mask(wall_mask)

        labeled = label_components(free_mask)
        if not labeled.components:
            logger.info("No free-space components found")
            return []

        background = find_background_components(labeled.labels, labeled.components, w, h)
        room_space = free_mask.copy()
        if background:
            room_space &= ~np.isin(labeled.labels, sorted(background))

        distance = distance_transform(free_mask)

        # Seeds must sit at least a third of the deepest room point from walls
        max_distance = int(distance[room_space].max()) if room_space.any() else 0
        min_peak = max(15, max_distance // 3)

        # Exterior peaks take part in dedupe and are only dropped afterwards
        seeds = local_max_seeds(distance, free_mask, min_peak)
        seeds = dedupe_nearby_seeds(seeds, max(min_peak, min(w, h) // 30))

        min_component_area = max(220, (w * h) // 2600)
        room_seeds = []
        for seed in seeds:
            comp_id = int(labeled.labels[seed.y, seed.x])
            if comp_id < 0 or comp_id in background:
                continue
            if labeled.components[comp_id].area < min_component_area:
                logger.debug(f"Dropping seed {seed} in small component {comp_id}")
                continue
            room_seeds.append(seed)
        seeds = room_seeds
        logger.info(
            f"{len(labeled.components)} free components ({len(background)} background), "
            f"{len(seeds)} room seeds, min_peak={min_peak}"
        )
        if not seeds:
            return []

        min_room_dim = max(12, min(w, h) // 100)
        boxes = []
        for seed in seeds:
            box = grow_room_from_seed(seed, wall_mask)
            if box.max_x - box.min_x < min_room_dim or box.max_y - box.min_y < min_room_dim:
                logger.debug(f"Discarding small rectangle {box} grown from {seed}")
                continue
            boxes.append(box)

        if self.max_rooms and self.max_rooms > 0:
            boxes = merge_until_max_regions(boxes, self.max_rooms)

        candidates = []
        for box in boxes:
            label = None
            if self.text_recognizer.enabled:
                label = self.text_recognizer.recognize(image, box)
            candidates.append(Candidate(box=box, label=label, room_type=infer_room_type(label)))

        candidates = suppress_overlaps_and_sort(candidates)

        rooms = []
        counter = 1
        for candidate in candidates:
            name = candidate.label
            if not name:
                name = f"Room {counter}"
                counter += 1
            rooms.append(DetectedRoom(
                name=name,
                type=candidate.room_type,
                rect=[
                    to_1000(candidate.box.min_y, h),
                    to_1000(candidate.box.min_x, w),
                    to_1000(candidate.box.max_y, h),
                    to_1000(candidate.box.max_x, w),
                ]
            ))

        logger.info(f"Detected {len(rooms)} rooms")
        return rooms


def detect_rooms_from_floorplan(
    data: bytes,
    text_recognizer: Optional[TextRecognizer] = None
) -> List[DetectedRoom]:
    """Convenience wrapper: detect rooms in encoded image bytes with default settings."""
    return RoomDetector(text_recognizer=text_recognizer).detect_rooms(data)
