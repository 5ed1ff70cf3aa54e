"""OCR service for reading room labels inside detected rectangles."""

import logging
import re
import shutil
import threading
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from floorplan_vision.services.geometry import RegionBox

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 50
MIN_LABEL_LENGTH = 2
MIN_CROP_SIZE = 10

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9\-\s]")
_WHITESPACE = re.compile(r"\s+")

# pytesseract keeps the binary path in a module global
_TESSERACT_LOCK = threading.Lock()


def get_pytesseract():
    """Lazy import of pytesseract."""
    try:
        import pytesseract
    except ImportError:
        raise ImportError("pytesseract is required. Install with: pip install pytesseract")
    return pytesseract


def sanitize_ocr_text(raw: Optional[str]) -> str:
    """
    Clean raw OCR output into a short single-line label.

    Keeps ASCII letters, digits, hyphens and single spaces, truncated to 50
    characters. Anything shorter than 2 characters becomes "" (no label).
    Applying it twice gives the same result as applying it once.
    """
    if not raw:
        return ""

    text = _DISALLOWED_CHARS.sub("", raw)
    text = _WHITESPACE.sub(" ", text).strip()
    text = text[:MAX_LABEL_LENGTH].rstrip()

    if len(text) < MIN_LABEL_LENGTH:
        return ""
    return text


def crop_for_ocr(image: np.ndarray, box: RegionBox) -> Optional[np.ndarray]:
    """
    Crop ``box`` with a ~5% inward padding, or None if the result is under 10x10.

    The padding keeps wall strokes at the rectangle edges out of the crop.
    """
    h, w = image.shape[:2]
    pad_x = max(2, (box.max_x - box.min_x) // 20)
    pad_y = max(2, (box.max_y - box.min_y) // 20)

    x0 = max(0, box.min_x + pad_x)
    y0 = max(0, box.min_y + pad_y)
    x1 = min(w, box.max_x - pad_x)
    y1 = min(h, box.max_y - pad_y)

    if x1 - x0 < MIN_CROP_SIZE or y1 - y0 < MIN_CROP_SIZE:
        return None

    return image[y0:y1, x0:x1].copy()


def _prepare_for_ocr(crop: np.ndarray) -> np.ndarray:
    """Grayscale and +20% contrast around mid-gray."""
    if crop.ndim == 3:
        gray = cv2.cvtColor(crop, cv2.COLOR_BGR2GRAY)
    else:
        gray = crop
    return cv2.convertScaleAbs(gray, alpha=1.2, beta=-0.2 * 127.5)


class TextRecognizer(ABC):
    """Reads a short label from a region of an image.

    Implementations never raise for recognition failures; they return None.
    Callers skip ``recognize`` entirely when ``enabled`` is False.
    """

    enabled = True

    @abstractmethod
    def recognize(self, image: np.ndarray, box: RegionBox) -> Optional[str]:
        """Label text inside ``box``, or None."""


class NullTextRecognizer(TextRecognizer):
    """OCR disabled: every rectangle stays unlabeled."""

    enabled = False

    def recognize(self, image: np.ndarray, box: RegionBox) -> Optional[str]:
        return None


class TesseractTextRecognizer(TextRecognizer):
    """Runs the tesseract binary (through pytesseract) on a padded crop."""

    def __init__(
        self,
        tesseract_cmd: str = "tesseract",
        timeout: float = 2.0,
        language: str = "eng"
    ):
        """
        Initialize the recognizer.

        Args:
            tesseract_cmd: Executable name or path of tesseract
            timeout: Seconds before a single OCR call is abandoned
            language: Tesseract language code
        """
        self.tesseract_cmd = tesseract_cmd
        self.timeout = timeout
        self.language = language

    def recognize(self, image: np.ndarray, box: RegionBox) -> Optional[str]:
        crop = crop_for_ocr(image, box)
        if crop is None:
            return None

        pytesseract = get_pytesseract()
        prepared = Image.fromarray(_prepare_for_ocr(crop))

        try:
            with _TESSERACT_LOCK:
                pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
                raw = pytesseract.image_to_string(
                    prepared,
                    lang=self.language,
                    config="--psm 6",
                    timeout=self.timeout
                )
        except Exception as e:
            logger.warning(f"Tesseract OCR failed for box {box}: {e}")
            return None

        label = sanitize_ocr_text(raw)
        return label or None


def resolve_tesseract_cmd(custom_cmd: Optional[str] = None) -> Optional[str]:
    """Return a runnable tesseract command, preferring ``custom_cmd``."""
    if custom_cmd and custom_cmd.strip():
        if shutil.which(custom_cmd.strip()):
            return custom_cmd.strip()
        logger.warning(f"Configured tesseract command not found: {custom_cmd}")

    if shutil.which("tesseract"):
        return "tesseract"
    return None


def build_text_recognizer(settings) -> TextRecognizer:
    """Pick the OCR strategy once, from settings and what is installed."""
    if not settings.OCR_ENABLED:
        return NullTextRecognizer()

    cmd = resolve_tesseract_cmd(settings.TESSERACT_CMD)
    if cmd is None:
        logger.info("tesseract not available, room labels disabled")
        return NullTextRecognizer()

    return TesseractTextRecognizer(
        tesseract_cmd=cmd,
        timeout=settings.OCR_TIMEOUT_SECONDS,
        language=settings.OCR_LANGUAGE
    )
