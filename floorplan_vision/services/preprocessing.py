"""Image decoding and grayscale/blur preprocessing."""

import base64
import binascii
import logging
from typing import Optional

import cv2
import numpy as np

from floorplan_vision.core.exceptions import InvalidImageError

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode PNG/JPEG bytes into a BGR image.

    Args:
        data: Encoded image bytes

    Returns:
        BGR image as numpy array

    Raises:
        InvalidImageError: If the bytes are empty or not a decodable image
    """
    if not data:
        raise InvalidImageError("Empty image data")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise InvalidImageError(f"Image decode error: {e}") from e

    if image is None:
        raise InvalidImageError("Image decode error: unsupported or corrupt data")

    _check_dimensions(image)
    return image


def decode_base64_image(data: str) -> bytes:
    """Decode plain base64 or a ``data:image/...;base64,`` URL to bytes."""
    if data.startswith("data:"):
        parts = data.split(",")
        if len(parts) != 2:
            raise InvalidImageError("Invalid data URL format")
        data = parts[1]

    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 image: {e}") from e


def _check_dimensions(image: np.ndarray) -> None:
    if image.ndim < 2 or image.shape[0] <= 0 or image.shape[1] <= 0:
        raise InvalidImageError(f"Invalid image dimensions: {image.shape}")


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert BGR, BGRA or single-channel input to a uint8 intensity grid."""
    _check_dimensions(image)

    if image.ndim == 2:
        gray = image.copy()
    elif image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    elif image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image[:, :, 0].copy()

    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)

    return gray


def apply_gaussian_blur(gray: np.ndarray, radius: Optional[float]) -> np.ndarray:
    """Gaussian smoothing with sigma = radius; radius 0/None returns a copy."""
    if not radius or radius <= 0:
        return gray.copy()
    return cv2.GaussianBlur(gray, (0, 0), sigmaX=float(radius))


def resize_to_max_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """
    Shrink an image wider than ``max_width`` to fit a max_width x max_width box.

    Aspect ratio is preserved. Images that are not wider than the cap (or a
    cap of 0) are returned unchanged.
    """
    h, w = image.shape[:2]
    if max_width <= 0 or w <= max_width:
        return image

    scale = min(max_width / w, max_width / h)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    logger.debug(f"Resizing {w}x{h} -> {new_w}x{new_h}")
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LANCZOS4)
