"""Application configuration settings."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Floor Plan Vision"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Edge detection / content box
    EDGE_BLUR_RADIUS: float = 1.2
    EDGE_CANNY_LOW: float = 50.0
    EDGE_CANNY_HIGH: float = 150.0
    EDGE_RESIZE_MAX_WIDTH: int = 800  # 0 disables resizing
    CONTENT_DILATION_RADIUS: int = 10  # bridges gaps up to ~2x radius

    # Room detection
    WALL_INTENSITY_THRESHOLD: int = 140  # darker than this is a wall stroke
    WALL_CLOSING_RADIUS: int = 1
    ROOM_DETECTION_MAX_ROOMS: int = 0  # 0 disables the region cap

    # OCR (room labels)
    OCR_ENABLED: bool = True
    TESSERACT_CMD: Optional[str] = None
    OCR_TIMEOUT_SECONDS: float = 2.0
    OCR_LANGUAGE: str = "eng"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
