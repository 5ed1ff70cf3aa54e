"""Binary morphology on boolean masks.

Square structuring elements are applied as two 1-D passes (horizontal,
then vertical). Pixels outside the image never contribute to a dilation
and always fail an erosion, so erosion clears a ``radius``-wide frame
along the image border.
"""

import cv2
import numpy as np


def _separable(op, mask: np.ndarray, radius: int) -> np.ndarray:
    size = 2 * radius + 1
    src = mask.astype(np.uint8)
    horizontal = op(
        src, np.ones((1, size), np.uint8),
        borderType=cv2.BORDER_CONSTANT, borderValue=0
    )
    vertical = op(
        horizontal, np.ones((size, 1), np.uint8),
        borderType=cv2.BORDER_CONSTANT, borderValue=0
    )
    return vertical.astype(bool)


def dilate_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Max filter over a (2r+1) x (2r+1) window."""
    if radius <= 0:
        return mask.astype(bool, copy=True)
    return _separable(cv2.dilate, mask, radius)


def erode_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """All-true filter over a (2r+1) x (2r+1) window."""
    if radius <= 0:
        return mask.astype(bool, copy=True)
    return _separable(cv2.erode, mask, radius)


def close_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Dilate then erode, merging fragments closer than ~2r pixels."""
    if radius <= 0:
        return mask.astype(bool, copy=True)
    return erode_mask(dilate_mask(mask, radius), radius)


def invert_mask(mask: np.ndarray) -> np.ndarray:
    return np.logical_not(mask)
