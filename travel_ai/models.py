from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Intent(str, Enum):
    """The category of question the user picked in the UI."""
    INITIAL = "initial"
    HISTORY = "history"
    RESTAURANTS = "restaurants"
    TOURIST_SPOTS = "tourist_spots"
    SAFETY = "safety"
    CUSTOM = "custom"
    PHOTO = "photo"


class PermissionType(str, Enum):
    LOCATION = "location"
    CAMERA = "camera"


class PermissionStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"
    RESTRICTED = "restricted"


class Coordinate(BaseModel):
    """A single best-effort GPS fix reported by the device."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees.")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees.")
    altitude: float = Field(0.0, description="Altitude in meters, 0 when unknown.")
    accuracy: float = Field(-1.0, description="Horizontal accuracy in meters, negative when unknown.")


class LocationSpec(BaseModel):
    """
    Resolved location input for one request.

    Exactly one of `coordinate` or `place` is set; a request never mixes
    a GPS fix with manually entered text.
    """
    model_config = ConfigDict(frozen=True)

    coordinate: Optional[Coordinate] = Field(None, description="GPS fix, when the location came from the device.")
    place: Optional[str] = Field(None, description="Free-text place description entered by the user.")

    @model_validator(mode="after")
    def _exactly_one_source(self):
        if (self.coordinate is None) == (self.place is None):
            raise ValueError("LocationSpec needs exactly one of coordinate or place")
        return self

    @classmethod
    def from_coordinate(cls, coordinate: Coordinate) -> "LocationSpec":
        return cls(coordinate=coordinate)

    @classmethod
    def from_text(cls, place: str) -> "LocationSpec":
        return cls(place=place)


class PromptRequest(BaseModel):
    """One user action, built once and never mutated."""
    model_config = ConfigDict(frozen=True)

    intent: Intent
    location: LocationSpec
    prompt: Optional[str] = None
    photo: Optional[bytes] = None


class RequestState(BaseModel):
    """The UI-observable request lifecycle: Initial, Loading, Success(text) or Error(message)."""
    model_config = ConfigDict(frozen=True)

    status: Literal["initial", "loading", "success", "error"]
    text: Optional[str] = Field(None, description="Answer on success, message on error.")

    @classmethod
    def initial(cls) -> "RequestState":
        return cls(status="initial")

    @classmethod
    def loading(cls) -> "RequestState":
        return cls(status="loading")

    @classmethod
    def success(cls, text: str) -> "RequestState":
        return cls(status="success", text=text)

    @classmethod
    def error(cls, message: str) -> "RequestState":
        return cls(status="error", text=message)

    @property
    def output_text(self) -> str:
        """What the answer panel shows for this state."""
        if self.status == "initial":
            return "(My answers will appear here)"
        if self.status == "loading":
            return "Loading..."
        if self.status == "success":
            return self.text or ""
        return f"Error: {self.text}"
