from floorplan_vision.schemas.floorplan import DetectedRoom, RoomStatus, RoomType
from floorplan_vision.services.geometry import RegionBox
from floorplan_vision.services.layout import (
    calculate_crop_and_remap,
    from_1000,
    parse_room_type,
    to_1000,
)


def test_to_1000_truncates_and_clamps():
    assert to_1000(500, 1000) == 500
    assert to_1000(1, 3) == 333
    assert to_1000(2000, 1000) == 1000
    assert to_1000(-5, 100) == 0
    assert to_1000(5, 0) == 0


def test_from_1000():
    assert from_1000(500, 2000) == 1000
    assert from_1000(0, 640) == 0
    assert from_1000(1000, 640) == 640


def test_parse_room_type():
    assert parse_room_type("meeting") == RoomType.MEETING
    assert parse_room_type(" Office ") == RoomType.OFFICE
    assert parse_room_type(RoomType.HALLWAY) == RoomType.HALLWAY
    assert parse_room_type("kitchen") == RoomType.UNKNOWN
    assert parse_room_type(None) == RoomType.UNKNOWN


def test_crop_and_remap_square():
    rooms = [DetectedRoom(name="Room 1", type=RoomType.OFFICE, rect=[600, 600, 800, 800])]

    crop, remapped = calculate_crop_and_remap(1000, 1000, [500, 500, 1000, 1000], rooms)

    assert crop == RegionBox(500, 500, 999, 999)
    assert len(remapped) == 1
    assert remapped[0].rect == [100, 100, 200, 200]
    assert remapped[0].name == "Room 1"
    assert remapped[0].type == RoomType.OFFICE
    assert remapped[0].status == RoomStatus.AVAILABLE


def test_crop_and_remap_wide_image():
    rooms = [DetectedRoom(name="Lobby", rect=[100, 100, 200, 200])]

    crop, remapped = calculate_crop_and_remap(2000, 1000, [0, 0, 1000, 500], rooms)

    assert crop == RegionBox(0, 0, 999, 999)
    assert remapped[0].rect == [200, 100, 200, 100]


def test_crop_and_remap_without_content_box():
    rooms = [DetectedRoom(name="Room 1", rect=[0, 0, 500, 500])]

    crop, remapped = calculate_crop_and_remap(400, 200, None, rooms)

    assert crop == RegionBox(0, 0, 399, 199)
    assert remapped[0].rect == [0, 0, 200, 100]


def test_crop_and_remap_skips_degenerate_rooms():
    rooms = [
        DetectedRoom(name="Flat", rect=[500, 500, 500, 600]),
        DetectedRoom(name="Inverted", rect=[600, 600, 500, 500]),
        DetectedRoom(name="Ok", rect=[100, 100, 300, 300]),
    ]

    _, remapped = calculate_crop_and_remap(1000, 1000, None, rooms)

    assert [r.name for r in remapped] == ["Ok"]
