from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Impulse Campus Core"
    VERSION: str = "0.1.0"
    BRIEF_DESCRIPTION: str = "Resolves free-text campus locations to coordinates and scores meetups by lobby size."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")
    LOG_LEVEL: str = Field("INFO", description="Root log level, e.g. DEBUG to see every resolver decision")

    # --- Reference data ---
    GAZETTEER_PATH: Optional[str] = Field(None, description="Override for the packaged campus_locations.json")
    POINT_CLASSIFICATIONS_PATH: Optional[str] = Field(None, description="Override for the packaged point_classifications.json")

    # Caller policy for unresolved meetup locations, never applied by the resolver itself
    DEFAULT_LOCATION_ID: str = Field("library", description="Location used when meetup text cannot be resolved")

    # --- Campus geometry (UT Dallas) ---
    CAMPUS_CENTER_LAT: float = 32.9886
    CAMPUS_CENTER_LNG: float = -96.7479
    CAMPUS_BBOX: List[float] = Field(
        [-96.7535, 32.9835, -96.7435, 32.9935], # [min_lng, min_lat, max_lng, max_lat]
        description="Bounding box for the campus [lng_min, lat_min, lng_max, lat_max]"
    )

    # --- Gazetteer review thresholds ---
    MIN_COORDINATE_DECIMALS: int = 6 # building-level accuracy
    COORDINATE_DISCREPANCY_METERS: float = 25.0

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()

def is_inside_campus_bbox(lat: float, lng: float) -> bool:
    """Return True when the point falls inside the configured campus bounding box."""
    min_lng, min_lat, max_lng, max_lat = settings.CAMPUS_BBOX
    return min_lat <= lat <= max_lat and min_lng <= lng <= max_lng
