# Pydantic schemas
from floorplan_vision.schemas.floorplan import (
    RoomType, RoomStatus, EdgeDetectionOptions, DetectedRoom, ContentBox, Room
)
