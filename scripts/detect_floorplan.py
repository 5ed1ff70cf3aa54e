#!/usr/bin/env python3
"""Run content-box and room detection on a floor plan image.

Usage:
    python detect_floorplan.py <image_path> [--max-rooms N] [--no-ocr]
"""

import argparse
import logging
import sys

from floorplan_vision.core.config import settings
from floorplan_vision.core.exceptions import InvalidImageError
from floorplan_vision.schemas.floorplan import EdgeDetectionOptions
from floorplan_vision.services.edge_detection import content_box_to_relative, crop_floorplan
from floorplan_vision.services.ocr_service import NullTextRecognizer
from floorplan_vision.services.preprocessing import decode_image
from floorplan_vision.services.room_detection import RoomDetector


def run(image_path: str, max_rooms: int = 0, use_ocr: bool = True) -> int:
    """Detect and print the content box and rooms of one image."""
    print(f"\n{'='*60}")
    print(f"Floor plan detection")
    print(f"{'='*60}")
    print(f"Image: {image_path}")

    try:
        with open(image_path, "rb") as f:
            data = f.read()
    except OSError as e:
        print(f"ERROR: Could not read image: {e}")
        return 1

    try:
        image = decode_image(data)
    except InvalidImageError as e:
        print(f"ERROR: {e}")
        return 1

    h, w = image.shape[:2]
    print(f"Image size: {w}x{h} pixels")

    options = EdgeDetectionOptions.from_settings(settings)
    _, box = crop_floorplan(image, options, settings.CONTENT_DILATION_RADIUS)
    relative = content_box_to_relative(box, w, h)
    print(f"\nContent box (px): ({box.min_x}, {box.min_y}) - ({box.max_x}, {box.max_y})")
    print(f"Content box (0-1000 ymin,xmin,ymax,xmax): {relative.bounds}")

    recognizer = None if use_ocr else NullTextRecognizer()
    detector = RoomDetector(settings=settings, text_recognizer=recognizer, max_rooms=max_rooms)
    rooms = detector.detect_rooms_in_image(image)

    print(f"\n{'='*60}")
    print(f"RESULTS")
    print(f"{'='*60}")
    print(f"Rooms detected: {len(rooms)}")
    for room in rooms:
        print(f"  {room.name:<24} {room.type.value:<8} {room.rect}")

    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Detect content box and rooms in a floor plan image")
    parser.add_argument("image_path", help="PNG or JPEG floor plan")
    parser.add_argument("--max-rooms", type=int, default=settings.ROOM_DETECTION_MAX_ROOMS,
                        help="Merge rectangles until at most N remain (0 = no cap)")
    parser.add_argument("--no-ocr", action="store_true", help="Skip room label OCR")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    return run(args.image_path, max_rooms=args.max_rooms, use_ocr=not args.no_ocr)


if __name__ == "__main__":
    sys.exit(main())
