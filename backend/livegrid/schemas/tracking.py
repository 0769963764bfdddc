from typing import Optional

from pydantic import BaseModel, Field


class Position(BaseModel):
    lat: float
    lon: float


class FitnessData(BaseModel):
    heart_rate: Optional[float] = None      # bpm
    power: Optional[float] = None           # watts
    cadence: Optional[float] = None         # cycles/min
    distance_meters: Optional[float] = None  # cumulative for the session
    activity_type: Optional[str] = None


class Coordinate(BaseModel):
    """One track sample. Lists of these are ordered by timestamp ascending."""

    position: Position
    timestamp: str  # ISO-8601 as sent by LiveTrack, reused as the `begin` cursor
    altitude: Optional[float] = None
    speed: Optional[float] = None  # m/s
    fitness_data: Optional[FitnessData] = None


class CoursePoint(BaseModel):
    position: Position


class Profile(BaseModel):
    name: str
    location: str = ""
    session_name: Optional[str] = None
    activity_type: Optional[str] = None


class TrackingData(BaseModel):
    session_id: str
    token: str
    profile: Profile
    coordinates: list[Coordinate] = Field(default_factory=list)
    course_points: list[CoursePoint] = Field(default_factory=list)
    last_update: str


class Athlete(BaseModel):
    id: str
    session_id: str = ""
    token: str = ""
    profile: Profile
    coordinates: list[Coordinate] = Field(default_factory=list)
    course_points: list[CoursePoint] = Field(default_factory=list)
    color: str
    original_url: str = ""
    last_update: str
    error: Optional[str] = None

    @property
    def is_trackable(self) -> bool:
        return bool(self.session_id and self.token and not self.error)

    @property
    def last_timestamp(self) -> Optional[str]:
        return self.coordinates[-1].timestamp if self.coordinates else None


class AthleteStats(BaseModel):
    total_distance: float   # meters
    total_time: float       # seconds
    avg_speed: float        # m/s
    max_speed: float
    elevation_gain: float   # meters
    elevation_loss: float
    min_altitude: float
    max_altitude: float
    avg_heart_rate: float
    max_heart_rate: float
    activity_type: str


# --------- Request / response bodies --------- #

class ExpandUrlRequest(BaseModel):
    url: str


class ExpandUrlBatchRequest(BaseModel):
    urls: list[str]


class ExpandUrlResult(BaseModel):
    original_url: str
    success: bool
    expanded_url: Optional[str] = None
    error: Optional[str] = None


class AthleteRequest(BaseModel):
    session_id: str
    token: str
    begin: Optional[str] = None


class AthleteUpdateRequest(AthleteRequest):
    # Updates always need a cursor
    begin: str


class FetchBatchRequest(BaseModel):
    athletes: list[AthleteRequest]


class UpdatesBatchRequest(BaseModel):
    athletes: list[AthleteUpdateRequest]


class AthleteFetchResult(BaseModel):
    session_id: str
    success: bool
    data: Optional[TrackingData] = None
    coordinates: Optional[list[Coordinate]] = None
    error: Optional[str] = None


class LoadAthletesRequest(BaseModel):
    urls: list[str]


class StatsRequest(BaseModel):
    coordinates: list[Coordinate]
