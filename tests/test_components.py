import numpy as np

from floorplan_vision.services.components import component_bounding_boxes, label_components
from floorplan_vision.services.geometry import RegionBox


def _two_blob_mask():
    mask = np.zeros((8, 8), dtype=bool)
    mask[0:2, 3:5] = True
    mask[2, 5] = True  # diagonal neighbour of (1, 4)
    mask[4:6, 2:4] = True
    return mask


def test_labels_partition_the_mask():
    mask = _two_blob_mask()
    result = label_components(mask)

    assert len(result) == 2
    assert sum(c.area for c in result.components) == int(mask.sum())
    assert np.array_equal(result.labels >= 0, mask)


def test_diagonal_pixels_are_connected():
    result = label_components(_two_blob_mask())
    assert result.labels[2, 5] == result.labels[0, 3]


def test_labels_follow_raster_order():
    result = label_components(_two_blob_mask())

    assert result.labels[0, 3] == 0
    assert result.labels[4, 2] == 1
    assert result.components[0].box == RegionBox(3, 0, 5, 2)
    assert result.components[1].box == RegionBox(2, 4, 3, 5)
    assert result.components[0].area == 5
    assert result.components[1].area == 4


def test_touches_border():
    result = label_components(_two_blob_mask())
    assert result.components[0].touches_border
    assert not result.components[1].touches_border


def test_background_is_minus_one():
    result = label_components(_two_blob_mask())
    assert result.labels[7, 7] == -1
    assert result.labels[3, 0] == -1


def test_empty_mask():
    result = label_components(np.zeros((4, 6), dtype=bool))
    assert len(result) == 0
    assert result.labels.shape == (4, 6)
    assert (result.labels == -1).all()


def test_component_bounding_boxes():
    boxes = component_bounding_boxes(_two_blob_mask())
    assert boxes == [RegionBox(3, 0, 5, 2), RegionBox(2, 4, 3, 5)]
