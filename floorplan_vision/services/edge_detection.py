"""Edge detection and content-box extraction for floor plans.

Finds the drawing area of a scanned or exported floor plan by:
1. Blurring and running a Sobel/Canny style edge detector
2. Dilating the edges so wall fragments merge into blobs
3. Merging the bounding boxes of all significant blobs
"""

import base64
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from floorplan_vision.schemas.floorplan import ContentBox, EdgeDetectionOptions
from floorplan_vision.services.components import label_components
from floorplan_vision.services.geometry import RegionBox
from floorplan_vision.services.layout import to_1000
from floorplan_vision.services.morphology import dilate_mask
from floorplan_vision.services.preprocessing import (
    apply_gaussian_blur,
    resize_to_max_width,
    to_grayscale,
)

logger = logging.getLogger(__name__)

CONTENT_DILATION_RADIUS = 10
SIGNIFICANT_AREA_RATIO = 0.05


def suppress_non_maxima(magnitude: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """
    Keep magnitudes not exceeded by either neighbour of their direction bin.

    Bins on the 0-180 degree direction: horizontal compares (y, x-1)/(y, x+1),
    22.5-67.5 compares (y+1, x-1)/(y-1, x+1), vertical compares (y-1, x)/(y+1, x)
    and 112.5-157.5 compares (y-1, x-1)/(y+1, x+1). Border pixels are 0.
    """
    mag = magnitude[1:-1, 1:-1]
    angle = direction[1:-1, 1:-1]

    horizontal = (angle < 22.5) | (angle >= 157.5)
    diagonal_up = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)

    q = np.select(
        [horizontal, diagonal_up, vertical],
        [magnitude[1:-1, 2:], magnitude[2:, :-2], magnitude[2:, 1:-1]],
        default=magnitude[:-2, :-2]
    )
    r = np.select(
        [horizontal, diagonal_up, vertical],
        [magnitude[1:-1, :-2], magnitude[:-2, 2:], magnitude[:-2, 1:-1]],
        default=magnitude[2:, 2:]
    )

    suppressed = np.zeros_like(magnitude, dtype=np.float64)
    suppressed[1:-1, 1:-1] = np.where((mag >= q) & (mag >= r), mag, 0.0)
    return suppressed


def detect_edges_canny(
    gray: np.ndarray,
    low_threshold: float = 50.0,
    high_threshold: float = 150.0
) -> np.ndarray:
    """
    Detect edges with Sobel gradients and non-maximum suppression.

    Only the high threshold is applied; there is no hysteresis pass linking
    weak edges, so ``low_threshold`` has no effect.

    Args:
        gray: Single-channel intensity image
        low_threshold: Unused, kept for Canny-compatible call sites
        high_threshold: Cut on the magnitude normalized to 0-255

    Returns:
        Boolean edge mask with the input's shape (border pixels always False)
    """
    h, w = gray.shape[:2]
    edges = np.zeros((h, w), dtype=bool)
    if h < 3 or w < 3:
        return edges

    src = gray.astype(np.float64)
    gx = cv2.Sobel(src, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(src, cv2.CV_64F, 0, 1, ksize=3)

    # Border pixels have no full 3x3 neighbourhood
    for grad in (gx, gy):
        grad[0, :] = 0
        grad[-1, :] = 0
        grad[:, 0] = 0
        grad[:, -1] = 0

    magnitude = np.hypot(gx, gy)
    direction = np.mod(np.degrees(np.arctan2(gy, gx)), 180.0)
    suppressed = suppress_non_maxima(magnitude, direction)

    norm_max = float(suppressed.max())
    if norm_max == 0:
        norm_max = 1.0

    normalized = suppressed / norm_max * 255.0
    edges[1:-1, 1:-1] = normalized[1:-1, 1:-1] > high_threshold
    return edges


def process_floorplan_for_analysis(
    image: np.ndarray,
    options: Optional[EdgeDetectionOptions] = None
) -> np.ndarray:
    """Resize, grayscale, blur and edge-detect a floor plan image."""
    if options is None:
        options = EdgeDetectionOptions()

    resized = resize_to_max_width(image, options.resize_max_width)
    gray = to_grayscale(resized)
    blurred = apply_gaussian_blur(gray, options.blur_radius)
    return detect_edges_canny(blurred, options.canny_low, options.canny_high)


def edges_to_data_url(
    image: np.ndarray,
    options: Optional[EdgeDetectionOptions] = None
) -> str:
    """Edge map of ``image`` as a ``data:image/png;base64,`` URL."""
    edges = process_floorplan_for_analysis(image, options)
    ok, encoded = cv2.imencode(".png", edges.astype(np.uint8) * 255)
    if not ok:
        raise ValueError("Failed to encode edge image as PNG")
    b64 = base64.b64encode(encoded.tobytes()).decode("ascii")
    return "data:image/png;base64," + b64


def get_main_content_bounding_box(
    edges: np.ndarray,
    dilation_radius: int = CONTENT_DILATION_RADIUS
) -> RegionBox:
    """
    Bounding box of the main drawing in an edge mask.

    Edges are dilated so nearby strokes merge, then every component whose
    bounding box is at least 5% of the largest one is kept. That retains
    detached parts (e.g. a separate garage) while dropping speckles.

    Args:
        edges: Boolean edge mask
        dilation_radius: Dilation radius; gaps up to ~2x this are bridged

    Returns:
        Content box in mask pixel coordinates
    """
    h, w = edges.shape[:2]
    image_box = RegionBox.full_image(w, h)

    dilated = dilate_mask(edges, dilation_radius)
    boxes = [c.box for c in label_components(dilated).components]

    if not boxes:
        logger.info("No edge components found, using full image bounds")
        return image_box

    max_area = max(box.area for box in boxes)
    threshold = int(max_area * SIGNIFICANT_AREA_RATIO)
    significant = [box for box in boxes if box.area >= threshold]

    union = significant[0]
    for box in significant[1:]:
        union = union.union(box)

    # Undo the dilation's growth; keep the raw union if that inverts the box
    final = union.shrink(max(0, dilation_radius))
    if final.is_empty:
        final = union

    clipped = final.intersect(image_box)
    if clipped is None:
        return image_box

    logger.info(
        f"Content box: {len(significant)}/{len(boxes)} significant components -> "
        f"({clipped.min_x}, {clipped.min_y})-({clipped.max_x}, {clipped.max_y})"
    )
    return clipped


def detect_content_box(
    image: np.ndarray,
    options: Optional[EdgeDetectionOptions] = None,
    dilation_radius: int = CONTENT_DILATION_RADIUS
) -> RegionBox:
    """Content box in the pixel space of the (possibly resized) processed image."""
    edges = process_floorplan_for_analysis(image, options)
    return get_main_content_bounding_box(edges, dilation_radius)


def scale_box_to_original(
    box: RegionBox,
    processed_size: Tuple[int, int],
    original_size: Tuple[int, int]
) -> RegionBox:
    """
    Map a box from processed-image pixels back to original-image pixels.

    Args:
        box: Box in the processed image
        processed_size: (width, height) of the processed image
        original_size: (width, height) of the original image
    """
    pw, ph = processed_size
    ow, oh = original_size
    scale_x = ow / pw
    scale_y = oh / ph

    # Scale the exclusive far edge so a full-width box maps to full width
    scaled = RegionBox(
        min_x=int(box.min_x * scale_x),
        min_y=int(box.min_y * scale_y),
        max_x=int((box.max_x + 1) * scale_x) - 1,
        max_y=int((box.max_y + 1) * scale_y) - 1,
    )
    clipped = scaled.intersect(RegionBox.full_image(ow, oh))
    return clipped if clipped is not None else RegionBox.full_image(ow, oh)


def crop_floorplan(
    image: np.ndarray,
    options: Optional[EdgeDetectionOptions] = None,
    dilation_radius: int = CONTENT_DILATION_RADIUS
) -> Tuple[np.ndarray, RegionBox]:
    """
    Crop an image to its detected drawing area.

    Returns:
        Tuple of (cropped image, content box in original pixels)
    """
    if options is None:
        options = EdgeDetectionOptions()

    edges = process_floorplan_for_analysis(image, options)
    box = get_main_content_bounding_box(edges, dilation_radius)

    oh, ow = image.shape[:2]
    eh, ew = edges.shape[:2]
    box = scale_box_to_original(box, (ew, eh), (ow, oh))

    cropped = image[box.min_y:box.max_y + 1, box.min_x:box.max_x + 1].copy()
    logger.info(f"Cropped {ow}x{oh} floor plan to {box.width}x{box.height}")
    return cropped, box


def content_box_to_relative(box: RegionBox, width: int, height: int) -> ContentBox:
    """Express a pixel content box as 0-1000 ``[ymin, xmin, ymax, xmax]`` bounds."""
    return ContentBox(
        original_width=width,
        original_height=height,
        bounds=[
            to_1000(box.min_y, height),
            to_1000(box.min_x, width),
            to_1000(box.max_y, height),
            to_1000(box.max_x, width),
        ]
    )
