import cv2
import numpy as np
import pytest

from floorplan_vision.services.ocr_service import NullTextRecognizer


def build_two_room_plan(width: int = 240, height: int = 140) -> np.ndarray:
    """White canvas, 4px black outer walls and a full-height divider in the middle."""
    image = np.full((height, width, 3), 255, dtype=np.uint8)
    image[:4, :] = 0
    image[height - 4:, :] = 0
    image[:, :4] = 0
    image[:, width - 4:] = 0

    mid = width // 2
    image[4:height - 4, mid - 2:mid + 2] = 0
    return image


def encode_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def two_room_plan():
    return build_two_room_plan()


@pytest.fixture
def two_room_png(two_room_plan):
    return encode_png(two_room_plan)


@pytest.fixture
def black_square_image():
    # 100x100 white image with a filled black square from (30, 30) to (69, 69)
    image = np.full((100, 100, 3), 255, dtype=np.uint8)
    image[30:70, 30:70] = 0
    return image


@pytest.fixture
def null_recognizer():
    return NullTextRecognizer()
