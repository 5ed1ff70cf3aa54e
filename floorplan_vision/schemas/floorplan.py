"""Floor plan Pydantic schemas for pipeline options and results."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RoomType(str, Enum):
    """Coarse room category inferred from a label."""
    OFFICE = "OFFICE"
    MEETING = "MEETING"
    HALLWAY = "HALLWAY"
    UNKNOWN = "UNKNOWN"


class RoomStatus(str, Enum):
    """Current availability of a room."""
    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    OFFLINE = "OFFLINE"


class EdgeDetectionOptions(BaseModel):
    """Parameters for the blur + Canny edge stage."""
    blur_radius: float = Field(1.2, ge=0, description="Gaussian sigma, 0 disables blurring")
    canny_low: float = Field(50.0, ge=0, description="Accepted for compatibility, not used")
    canny_high: float = Field(150.0, ge=0, description="Edge cut on the 0-255 normalized magnitude")
    resize_max_width: int = Field(800, ge=0, description="Max width before processing, 0 = no resize")

    @classmethod
    def from_settings(cls, settings) -> "EdgeDetectionOptions":
        return cls(
            blur_radius=settings.EDGE_BLUR_RADIUS,
            canny_low=settings.EDGE_CANNY_LOW,
            canny_high=settings.EDGE_CANNY_HIGH,
            resize_max_width=settings.EDGE_RESIZE_MAX_WIDTH,
        )


class DetectedRoom(BaseModel):
    """Room found on a floor plan, in 0-1000 relative coordinates."""
    name: str
    type: RoomType = RoomType.UNKNOWN
    rect: List[int] = Field(
        ...,
        min_length=4,
        max_length=4,
        description="[ymin, xmin, ymax, xmax] on a 0-1000 scale"
    )


class ContentBox(BaseModel):
    """Detected drawing area of the original image."""
    original_width: int = Field(..., gt=0)
    original_height: int = Field(..., gt=0)
    bounds: List[int] = Field(
        ...,
        min_length=4,
        max_length=4,
        description="[ymin, xmin, ymax, xmax] on a 0-1000 scale"
    )


class Room(BaseModel):
    """Room in pixel coordinates relative to a cropped floor plan."""
    id: Optional[str] = None
    floorplan_id: Optional[str] = None
    name: str
    type: RoomType = RoomType.UNKNOWN
    rect: List[int] = Field(
        ...,
        min_length=4,
        max_length=4,
        description="[x, y, w, h] in pixels"
    )
    status: RoomStatus = RoomStatus.AVAILABLE
