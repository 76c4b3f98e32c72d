from typing import List, Literal, Optional
from pydantic import BaseModel, Field, AliasChoices, ConfigDict

# ------- Request models -------
class TripRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    destination: str = Field(..., min_length=1, validation_alias=AliasChoices("destination", "tripLocation"))
    number_of_days: int = Field(..., ge=1, validation_alias=AliasChoices("number_of_days", "numberOfDays"))
    stages_per_day: int = Field(..., ge=0, validation_alias=AliasChoices("stages_per_day", "stagesPerDay"))
    notes: str = Field("", validation_alias=AliasChoices("notes", "tripNotes"))

class TripMetadata(BaseModel):
    """Structured trip constraints inferred from a free-form prompt."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    trip_name: str = Field(..., validation_alias=AliasChoices("trip_name", "tripName"))
    trip_location: str = Field(..., validation_alias=AliasChoices("trip_location", "tripLocation"))
    stages_per_day: int = Field(..., ge=0, validation_alias=AliasChoices("stages_per_day", "stagesPerDay"))
    budget: float = 0.0
    number_of_days: int = Field(..., ge=1, validation_alias=AliasChoices("number_of_days", "numberOfDays"))
    trip_notes: str = Field("", validation_alias=AliasChoices("trip_notes", "tripNotes"))

    def to_trip_request(self) -> "TripRequest":
        return TripRequest(
            destination=self.trip_location,
            number_of_days=self.number_of_days,
            stages_per_day=self.stages_per_day,
            notes=self.trip_notes,
        )

class MetadataPrompt(BaseModel):
    prompt: str = Field(..., min_length=1)

# ------- Cache models -------
class Coordinates(BaseModel):
    latitude: float
    longitude: float

class DestinationRecord(BaseModel):
    id: Optional[str] = None
    coordinates: Coordinates
    canonical_name: str
    aliases: List[str] = Field(default_factory=list)
    description: str = ""
    emoji: str = ""
    tags: List[str] = Field(default_factory=list)
    rating: Optional[float] = None

    def label(self) -> str:
        # The first alias is what users most recently saw for this spot.
        return self.aliases[0] if self.aliases else self.canonical_name

# ------- Stage models -------
class CandidateStage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    index: int = Field(..., ge=1, validation_alias=AliasChoices("index", "i"))
    location: str = Field(..., validation_alias=AliasChoices("location", "l"))
    description: str = Field("", validation_alias=AliasChoices("description", "d"))
    emoji: str = Field("", validation_alias=AliasChoices("emoji", "e"))
    latitude: Optional[float] = Field(None, validation_alias=AliasChoices("latitude", "lat"))
    longitude: Optional[float] = Field(None, validation_alias=AliasChoices("longitude", "lon", "lng"))
    rating: Optional[float] = None

class CacheResult(BaseModel):
    stages: List[CandidateStage] = Field(default_factory=list)

    def locations(self) -> List[str]:
        return [stage.location for stage in self.stages]

class GeneratedResult(BaseModel):
    stages: List[CandidateStage] = Field(default_factory=list)

# ------- Response models -------
class ItineraryStage(BaseModel):
    stage_index: int
    location_name: str
    description: str = ""
    emoji: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: Optional[float] = None
    source: Literal["cache", "generated"] = "generated"

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

class ItineraryDay(BaseModel):
    day: int
    stages: List[ItineraryStage] = Field(default_factory=list)

class Itinerary(BaseModel):
    days: List[ItineraryDay] = Field(default_factory=list)

    def stage_count(self) -> int:
        return sum(len(day.stages) for day in self.days)

    def iter_stages(self) -> List[ItineraryStage]:
        return [stage for day in self.days for stage in day.stages]

class CacheItineraryRequest(BaseModel):
    """Payload sent once the user accepts an itinerary."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: str = Field(..., validation_alias=AliasChoices("display_name", "destination", "tripLocation"))
    notes: str = Field("", validation_alias=AliasChoices("notes", "tripNotes"))
    itinerary: Itinerary
