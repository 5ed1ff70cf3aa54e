import numpy as np
import pytest

from floorplan_vision.core.config import Settings
from floorplan_vision.services.geometry import RegionBox
from floorplan_vision.services.ocr_service import (
    NullTextRecognizer,
    TesseractTextRecognizer,
    TextRecognizer,
    build_text_recognizer,
    crop_for_ocr,
    resolve_tesseract_cmd,
    sanitize_ocr_text,
)


@pytest.mark.parametrize("raw, expected", [
    ("Office 101\n", "Office 101"),
    ("@@Conf-Room##", "Conf-Room"),
    ("Room\t\t 5", "Room 5"),
    ("-", ""),
    ("  a  ", ""),
    ("", ""),
    (None, ""),
])
def test_sanitize_ocr_text(raw, expected):
    assert sanitize_ocr_text(raw) == expected


def test_sanitize_truncates_long_labels():
    text = sanitize_ocr_text("A" * 80)
    assert text == "A" * 50

    text = sanitize_ocr_text("A" * 49 + " Bcd")
    assert text == "A" * 49


@pytest.mark.parametrize("raw", ["Office 101\n", "@@Conf-Room##", "x" * 70 + " y", "Meeting  Room\n\n2"])
def test_sanitize_is_idempotent(raw):
    once = sanitize_ocr_text(raw)
    assert sanitize_ocr_text(once) == once


def test_crop_for_ocr_pads_inward():
    image = np.zeros((100, 100, 3), dtype=np.uint8)

    crop = crop_for_ocr(image, RegionBox(10, 10, 89, 89))
    assert crop.shape == (73, 73, 3)

    crop = crop_for_ocr(image, RegionBox(0, 0, 15, 15))
    assert crop.shape == (11, 11, 3)


def test_crop_for_ocr_too_small():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    assert crop_for_ocr(image, RegionBox(0, 0, 12, 12)) is None


def test_null_recognizer():
    recognizer = NullTextRecognizer()
    assert not recognizer.enabled
    assert recognizer.recognize(np.zeros((50, 50), dtype=np.uint8), RegionBox(0, 0, 49, 49)) is None


def test_build_recognizer_disabled(mocker):
    which = mocker.patch("floorplan_vision.services.ocr_service.shutil.which", return_value="/usr/bin/tesseract")
    recognizer = build_text_recognizer(Settings(OCR_ENABLED=False))
    assert isinstance(recognizer, NullTextRecognizer)
    which.assert_not_called()


def test_build_recognizer_without_tesseract(mocker):
    mocker.patch("floorplan_vision.services.ocr_service.shutil.which", return_value=None)
    recognizer = build_text_recognizer(Settings(OCR_ENABLED=True))
    assert isinstance(recognizer, NullTextRecognizer)


def test_build_recognizer_with_tesseract(mocker):
    mocker.patch("floorplan_vision.services.ocr_service.shutil.which", return_value="/usr/bin/tesseract")
    recognizer = build_text_recognizer(
        Settings(OCR_ENABLED=True, TESSERACT_CMD=None, OCR_TIMEOUT_SECONDS=1.5, OCR_LANGUAGE="deu")
    )

    assert isinstance(recognizer, TesseractTextRecognizer)
    assert recognizer.enabled
    assert recognizer.tesseract_cmd == "tesseract"
    assert recognizer.timeout == 1.5
    assert recognizer.language == "deu"


def test_resolve_custom_tesseract_cmd(mocker):
    mocker.patch(
        "floorplan_vision.services.ocr_service.shutil.which",
        side_effect=lambda cmd: "/opt/tess/bin/tesseract" if cmd == "/opt/tess/bin/tesseract" else None
    )
    assert resolve_tesseract_cmd(" /opt/tess/bin/tesseract ") == "/opt/tess/bin/tesseract"
    assert resolve_tesseract_cmd("/missing/tesseract") is None


@pytest.fixture
def fake_pytesseract(mocker):
    fake = mocker.MagicMock()
    mocker.patch("floorplan_vision.services.ocr_service.get_pytesseract", return_value=fake)
    return fake


def test_tesseract_recognizer_returns_clean_label(fake_pytesseract):
    fake_pytesseract.image_to_string.return_value = "Office 12\n\x0c"
    recognizer = TesseractTextRecognizer(tesseract_cmd="/usr/bin/tesseract", timeout=2.0)
    image = np.full((100, 100, 3), 255, dtype=np.uint8)

    label = recognizer.recognize(image, RegionBox(0, 0, 99, 99))

    assert label == "Office 12"
    assert fake_pytesseract.pytesseract.tesseract_cmd == "/usr/bin/tesseract"
    _, kwargs = fake_pytesseract.image_to_string.call_args
    assert kwargs["config"] == "--psm 6"
    assert kwargs["timeout"] == 2.0
    assert kwargs["lang"] == "eng"


def test_tesseract_recognizer_failure_returns_none(fake_pytesseract):
    fake_pytesseract.image_to_string.side_effect = RuntimeError("Tesseract process timeout")
    recognizer = TesseractTextRecognizer()
    image = np.full((100, 100, 3), 255, dtype=np.uint8)

    assert recognizer.recognize(image, RegionBox(0, 0, 99, 99)) is None


def test_tesseract_recognizer_noise_returns_none(fake_pytesseract):
    fake_pytesseract.image_to_string.return_value = "|~"
    recognizer = TesseractTextRecognizer()
    image = np.full((100, 100, 3), 255, dtype=np.uint8)

    assert recognizer.recognize(image, RegionBox(0, 0, 99, 99)) is None


def test_tesseract_recognizer_skips_small_boxes(fake_pytesseract):
    recognizer = TesseractTextRecognizer()
    image = np.full((100, 100, 3), 255, dtype=np.uint8)

    assert recognizer.recognize(image, RegionBox(0, 0, 5, 5)) is None
    fake_pytesseract.image_to_string.assert_not_called()


def test_text_recognizer_is_abstract():
    with pytest.raises(TypeError):
        TextRecognizer()


def test_each_recognizer_uses_its_own_command(fake_pytesseract):
    seen = []

    def record_cmd(*args, **kwargs):
        seen.append(fake_pytesseract.pytesseract.tesseract_cmd)
        return "Office 1"

    fake_pytesseract.image_to_string.side_effect = record_cmd
    image = np.full((100, 100, 3), 255, dtype=np.uint8)
    box = RegionBox(0, 0, 99, 99)

    TesseractTextRecognizer(tesseract_cmd="/opt/a/tesseract").recognize(image, box)
    TesseractTextRecognizer(tesseract_cmd="/opt/b/tesseract").recognize(image, box)

    assert seen == ["/opt/a/tesseract", "/opt/b/tesseract"]
